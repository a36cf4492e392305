from thermokernels.fea.node import Node
from thermokernels.fea.mesh import Mesh
from thermokernels.fea.finite_elements import (
    CoordinateSystem,
    Edge2,
    FiniteElement,
    Line2,
    PointFacet,
    QuadratureData,
    Tri3,
)

__all__ = [
    "Node",
    "Mesh",
    "CoordinateSystem",
    "Edge2",
    "FiniteElement",
    "Line2",
    "PointFacet",
    "QuadratureData",
    "Tri3",
]
