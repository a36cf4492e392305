from __future__ import annotations

from typing import TYPE_CHECKING

import numpy as np

from thermokernels.fea.finite_elements.finite_element import (
    CoordinateSystem,
    FiniteElement,
    QuadratureData,
    coordinate_factor,
)
import thermokernels.fea.gauss as gauss

if TYPE_CHECKING:
    import numpy.typing as npt
    from thermokernels.fea.node import Node


class Line2(FiniteElement):
    """Linear one-dimensional element with two nodes along the x-axis."""

    def __init__(
        self,
        index: int,
        nodes: list[Node],
        n_integration_points: int = 2,
        coord_system: CoordinateSystem = CoordinateSystem.XYZ,
    ) -> None:
        """
        Initialize the linear line element.

        Args:
            index: Element index.
            nodes: The two nodes of the element, left to right.
            n_integration_points: Number of Gauss points.
            coord_system: Coordinate system used for the coordinate factor.
        """
        super().__init__(
            index=index,
            nodes=nodes,
            n_integration_points=n_integration_points,
            coord_system=coord_system,
        )
        self._gp, self._w = gauss.gauss_points_weights_edge(self.n_integration_points)

    @property
    def length(self) -> float:
        """Length of the element."""
        return float(self.x[1] - self.x[0])

    def get_integration_scheme(self) -> tuple[npt.NDArray[np.float64], npt.NDArray[np.float64]]:
        return self._gp, self._w

    def shape_functions(self, iso_coords: float) -> npt.NDArray[np.float64]:
        """Shape functions for a linear line element."""
        return np.array([(1 - iso_coords) / 2, (1 + iso_coords) / 2], dtype=np.float64)

    def reinit(self) -> QuadratureData:
        length = self.length
        if length <= 0.0:
            raise ValueError(f"{self!r} has non-positive length {length}.")

        n_qp = self._gp.size
        values = np.empty((2, n_qp), dtype=np.float64)
        for qp, xi in enumerate(self._gp):
            values[:, qp] = self.shape_functions(xi)

        # dN/dx is constant over the element
        grads = np.zeros((2, n_qp, 3), dtype=np.float64)
        grads[0, :, 0] = -1.0 / length
        grads[1, :, 0] = 1.0 / length

        points = values.T @ self.coords
        jxw = self._w * length / 2.0

        return QuadratureData(
            test=values,
            grad_test=grads,
            phi=values.copy(),
            grad_phi=grads.copy(),
            jxw=jxw,
            coord=coordinate_factor(points, self.coord_system),
            points=points,
        )
