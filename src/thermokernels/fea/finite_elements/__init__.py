from thermokernels.fea.finite_elements.finite_element import (
    CoordinateSystem,
    FiniteElement,
    QuadratureData,
)
from thermokernels.fea.finite_elements.line2 import Line2
from thermokernels.fea.finite_elements.tri3 import Tri3
from thermokernels.fea.finite_elements.facets import Edge2, PointFacet

__all__ = [
    "CoordinateSystem",
    "FiniteElement",
    "QuadratureData",
    "Line2",
    "Tri3",
    "Edge2",
    "PointFacet",
]
