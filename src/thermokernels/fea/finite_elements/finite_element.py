from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass
from enum import StrEnum
from typing import TYPE_CHECKING, Optional

import numpy as np

if TYPE_CHECKING:
    import numpy.typing as npt
    from thermokernels.fea.node import Node


class CoordinateSystem(StrEnum):
    XYZ = "XYZ"
    RZ = "RZ"


@dataclass
class QuadratureData:
    """
    Shape function data of one element (or facet) at its quadrature points.

    Gradients, normals and points always carry three components; unused
    directions are zero.

    Attributes:
        test: (n_test, n_qp) test function values.
        grad_test: (n_test, n_qp, 3) test function gradients.
        phi: (n_trial, n_qp) trial function values.
        grad_phi: (n_trial, n_qp, 3) trial function gradients.
        jxw: (n_qp,) integration weight times Jacobian determinant.
        coord: (n_qp,) coordinate system factor (1 for Cartesian, 2πr for RZ).
        points: (n_qp, 3) physical quadrature point coordinates.
        normals: (n_qp, 3) outward unit normals, only for boundary facets.
    """
    test: npt.NDArray[np.float64]
    grad_test: npt.NDArray[np.float64]
    phi: npt.NDArray[np.float64]
    grad_phi: npt.NDArray[np.float64]
    jxw: npt.NDArray[np.float64]
    coord: npt.NDArray[np.float64]
    points: npt.NDArray[np.float64]
    normals: Optional[npt.NDArray[np.float64]] = None

    @property
    def n_test(self) -> int:
        return self.test.shape[0]

    @property
    def n_trial(self) -> int:
        return self.phi.shape[0]

    @property
    def n_qp(self) -> int:
        return self.jxw.shape[0]


def coordinate_factor(
    points: npt.NDArray[np.float64],
    coord_system: CoordinateSystem,
) -> npt.NDArray[np.float64]:
    """
    Coordinate factor applied on top of JxW at each quadrature point.

    Args:
        points: (n_qp, 3) physical coordinates of the quadrature points.
        coord_system: Coordinate system of the mesh.

    Returns:
        (n_qp,) array of factors.
    """
    if coord_system == CoordinateSystem.RZ:
        # Radial coordinate is the first component
        return 2.0 * np.pi * points[:, 0]
    return np.ones(points.shape[0], dtype=np.float64)


class FiniteElement(ABC):
    """
    Abstract base class for Lagrange elements and boundary facets.
    """

    def __init__(
        self,
        index: int,
        nodes: list[Node],
        n_integration_points: int,
        coord_system: CoordinateSystem = CoordinateSystem.XYZ,
    ) -> None:
        """
        Initialize the finite element.

        Args:
            index: Element index.
            nodes: List of nodes.
            n_integration_points: Number of integration points for numerical integration.
            coord_system: Coordinate system used for the coordinate factor.
        """
        self.id = index
        self.nodes = nodes
        self.n_integration_points = n_integration_points
        self.coord_system = coord_system
        self.global_dofs: npt.NDArray[np.int64] = np.array([node.uid for node in nodes], dtype=np.int64)

        self.x = np.array([node.coords[0] for node in nodes], dtype=np.float64)
        self.y = np.array([node.coords[1] for node in nodes], dtype=np.float64)

    def __repr__(self) -> str:
        """String representation of the finite element."""
        return f"{self.__class__.__name__}(id={self.id}, nodes={[node.uid for node in self.nodes]})"

    @property
    def number_of_nodes(self) -> int:
        """Number of nodes in the finite element."""
        return len(self.nodes)

    @property
    def coords(self) -> npt.NDArray[np.float64]:
        """(n_nodes, 3) nodal coordinates."""
        return np.array([node.coords for node in self.nodes], dtype=np.float64)

    @abstractmethod
    def get_integration_scheme(self) -> tuple[npt.NDArray[np.float64], npt.NDArray[np.float64]]:
        """
        Get the integration scheme for the finite element.

        Returns:
            Tuple of Gauss points and weights for numerical integration.
        """
        pass

    @abstractmethod
    def shape_functions(self, iso_coords: npt.NDArray[np.float64] | float) -> npt.NDArray[np.float64]:
        """Calculate the shape function values ``[N1, ..., Nn]`` at given local coordinates."""
        pass

    @abstractmethod
    def reinit(self) -> QuadratureData:
        """
        Evaluate shape functions, gradients and weights at all integration points.

        Returns:
            Quadrature data of the element (Galerkin: trial space equals test space).
        """
        pass
