from __future__ import annotations

from typing import TYPE_CHECKING

import numpy as np
import numba as nb

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


# B_N = [
#   [dN1(r,s)/dr, dN2(r,s)/dr, dN3(r,s)/dr],
#   [dN1(r,s)/ds, dN2(r,s)/ds, dN3(r,s)/ds]
# ]
B_N = np.array([
    [-1.0, 1.0, 0.0],
    [-1.0, 0.0, 1.0],
])


@nb.njit(cache=True, fastmath=True)
def _inv2(
    a11: float,
    a12: float,
    a21: float,
    a22: float
) -> tuple[tuple[float, float, float, float], float]:
    """
    Compute the inverse and determinant of a 2×2 matrix [[a11, a12], [a21, a22]].

    Args:
        a11, a12, a21, a22: Elements of the 2x2 matrix.

    Returns:
        A tuple containing the elements of the inverse matrix and the determinant.
    """
    det = a11 * a22 - a12 * a21
    inv = (a22 / det, -a12 / det, -a21 / det, a11 / det)
    return inv, det


@nb.njit(cache=True, fastmath=True)
def _tri3_B_and_detJ(
    x: npt.NDArray[np.float64],
    y: npt.NDArray[np.float64]
) -> tuple[npt.NDArray[np.float64], float]:
    """
    Build the constant B matrix and |det(J)| for a Tri3 element.

    Args:
        x: (3, ) array of x-coordinates of the element's nodes.
        y: (3, ) array of y-coordinates of the element's nodes.

    Returns:
        B: (2, 3) array representing the B matrix.
        detJ_abs: Absolute value of the Jacobian determinant.
    """
    # J = B_N @ [[x], [y]].T
    J00 = B_N[0, 0] * x[0] + B_N[0, 1] * x[1] + B_N[0, 2] * x[2]
    J01 = B_N[0, 0] * y[0] + B_N[0, 1] * y[1] + B_N[0, 2] * y[2]
    J10 = B_N[1, 0] * x[0] + B_N[1, 1] * x[1] + B_N[1, 2] * x[2]
    J11 = B_N[1, 0] * y[0] + B_N[1, 1] * y[1] + B_N[1, 2] * y[2]

    (i00, i01, i10, i11), detJ = _inv2(J00, J01, J10, J11)

    # B = inv(J) @ B_N
    B = np.empty((2, 3), dtype=np.float64)
    for j in range(3):
        b0, b1 = B_N[0, j], B_N[1, j]
        B[0, j] = i00 * b0 + i01 * b1
        B[1, j] = i10 * b0 + i11 * b1

    return B, abs(detJ)


class Tri3(FiniteElement):
    """
    Represents a three-node linear triangular finite element (Tri3).
    """
    def __init__(
        self,
        index: int,
        nodes: list[Node],
        n_integration_points: int = 3,
        coord_system: CoordinateSystem = CoordinateSystem.XYZ,
    ) -> None:
        """
        Initialize the Tri3 element.

        Args:
            index: Element index.
            nodes: List of nodes that form the element.
            n_integration_points: Number of Gauss points (1 or 3).
            coord_system: Coordinate system used for the coordinate factor.
        """
        super().__init__(
            index=index,
            nodes=nodes,
            n_integration_points=n_integration_points,
            coord_system=coord_system,
        )
        if self.area == 0.0:
            raise ValueError(f"{self!r} is degenerate (zero area).")

        self._B, self._detJ = _tri3_B_and_detJ(self.x, self.y)
        self._gp, self._w = gauss.gauss_points_weights_triangle(self.n_integration_points)

    @property
    def area(self) -> float:
        """
        Calculate the signed area of the Tri3 element.

        Returns:
            Area of the triangular element (positive for counter-clockwise nodes).
        """
        x1, x2, x3 = self.x
        y1, y2, y3 = self.y

        return 0.5 * (x1 * (y2 - y3) + x2 * (y3 - y1) + x3 * (y1 - y2))

    @property
    def jacobian_determinant(self) -> float:
        """
        Absolute Jacobian determinant (constant for Tri3).

        Returns:
            |det(J)|
        """
        return self._detJ

    def get_integration_scheme(self) -> tuple[npt.NDArray[np.float64], npt.NDArray[np.float64]]:
        """
        Return cached Gauss points and weights.

        Returns:
            Tuple of Gauss points and weights for numerical integration.
        """
        return self._gp, self._w

    def shape_functions(self, iso_coords: npt.NDArray[np.float64]) -> npt.NDArray[np.float64]:
        """
        Calculate the shape functions for the Tri3 element.

        Args:
            iso_coords: Isoparametric coordinates [1 - r - s, r, s] in the range [0, 1].

        Returns:
            Shape function values at the given coordinates ``[N1, N2, N3]``.
        """
        # For Tri3, the shape functions are the isoparametric coordinates
        return np.asarray(iso_coords, dtype=np.float64)

    def reinit(self) -> QuadratureData:
        n_qp = self._w.size

        values = np.empty((3, n_qp), dtype=np.float64)
        for qp, gp_i in enumerate(self._gp):
            values[:, qp] = self.shape_functions(gp_i)

        # B is constant for Tri3
        grads = np.zeros((3, n_qp, 3), dtype=np.float64)
        grads[:, :, 0] = self._B[0, :, None]
        grads[:, :, 1] = self._B[1, :, None]

        points = values.T @ self.coords
        jxw = self._w * self._detJ

        return QuadratureData(
            test=values,
            grad_test=grads,
            phi=values.copy(),
            grad_phi=grads.copy(),
            jxw=jxw,
            coord=coordinate_factor(points, self.coord_system),
            points=points,
        )
