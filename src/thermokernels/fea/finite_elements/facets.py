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


class PointFacet(FiniteElement):
    """
    End point of a one-dimensional mesh.

    The only shape function is 1 at the point; the outward normal is ``±x``.
    """

    def __init__(
        self,
        index: int,
        node: Node,
        normal_sign: float,
        coord_system: CoordinateSystem = CoordinateSystem.XYZ,
    ) -> None:
        """
        Initialize the point facet.

        Args:
            index: Facet index.
            node: The boundary node.
            normal_sign: +1 if the outward normal points in +x, -1 otherwise.
            coord_system: Coordinate system used for the coordinate factor.
        """
        super().__init__(index=index, nodes=[node], n_integration_points=1, coord_system=coord_system)
        if normal_sign == 0.0:
            raise ValueError("normal_sign must be non-zero.")
        self.normal = np.array([np.sign(normal_sign), 0.0, 0.0], dtype=np.float64)

    def get_integration_scheme(self) -> tuple[npt.NDArray[np.float64], npt.NDArray[np.float64]]:
        return np.array([0.0]), np.array([1.0])

    def shape_functions(self, iso_coords: float) -> npt.NDArray[np.float64]:
        return np.array([1.0], dtype=np.float64)

    def reinit(self) -> QuadratureData:
        values = np.ones((1, 1), dtype=np.float64)
        grads = np.zeros((1, 1, 3), dtype=np.float64)
        points = self.coords

        return QuadratureData(
            test=values,
            grad_test=grads,
            phi=values.copy(),
            grad_phi=grads.copy(),
            jxw=np.ones(1, dtype=np.float64),
            coord=coordinate_factor(points, self.coord_system),
            points=points,
            normals=self.normal[None, :].copy(),
        )


class Edge2(FiniteElement):
    """Linear boundary edge of a two-dimensional mesh with an outward normal."""

    def __init__(
        self,
        index: int,
        nodes: list[Node],
        inside_point: list[float] | npt.NDArray[np.float64],
        n_integration_points: int = 2,
        coord_system: CoordinateSystem = CoordinateSystem.XYZ,
    ) -> None:
        """
        Initialize the boundary edge.

        Args:
            index: Facet index.
            nodes: The two nodes of the edge.
            inside_point: Any point inside the parent element, used to orient the normal outward.
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

        tangent = self.coords[1] - self.coords[0]
        length = float(np.linalg.norm(tangent))
        if length == 0.0:
            raise ValueError(f"{self!r} has zero length.")
        self.length = length
        self.tangent = tangent / length

        normal = np.array([self.tangent[1], -self.tangent[0], 0.0], dtype=np.float64)
        midpoint = 0.5 * (self.coords[0] + self.coords[1])
        inside = np.zeros(3, dtype=np.float64)
        inside[:len(inside_point)] = inside_point
        if np.dot(normal, midpoint - inside) < 0.0:
            normal = -normal
        self.normal = normal

    def get_integration_scheme(self) -> tuple[npt.NDArray[np.float64], npt.NDArray[np.float64]]:
        return self._gp, self._w

    def shape_functions(self, iso_coords: float) -> npt.NDArray[np.float64]:
        """Shape functions for a linear edge."""
        return np.array([(1 - iso_coords) / 2, (1 + iso_coords) / 2], dtype=np.float64)

    def reinit(self) -> QuadratureData:
        n_qp = self._gp.size
        values = np.empty((2, n_qp), dtype=np.float64)
        for qp, xi in enumerate(self._gp):
            values[:, qp] = self.shape_functions(xi)

        # Tangential gradient only
        grads = np.empty((2, n_qp, 3), dtype=np.float64)
        grads[0] = -self.tangent / self.length
        grads[1] = self.tangent / self.length

        points = values.T @ self.coords

        return QuadratureData(
            test=values,
            grad_test=grads,
            phi=values.copy(),
            grad_phi=grads.copy(),
            jxw=self._w * self.length / 2.0,
            coord=coordinate_factor(points, self.coord_system),
            points=points,
            normals=np.tile(self.normal, (n_qp, 1)),
        )
