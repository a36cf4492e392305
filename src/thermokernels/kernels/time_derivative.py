"""
Coefficient-weighted time derivative::

    Res = c * test * du/dt

The coefficient is a callback evaluated per quadrature point, so other
kernels can reuse this term with a field-dependent coefficient.
"""
from __future__ import annotations

from typing import TYPE_CHECKING, Callable, Optional

from thermokernels.kernels.base import Kernel
from thermokernels.parameters import CoefTimeDerivativeParams
from thermokernels.registry import register_object

if TYPE_CHECKING:
    from thermokernels.fields import FieldAccessor, VariableSystem

CoefficientFunction = Callable[["FieldAccessor", int], float]


@register_object
class CoefTimeDerivative(Kernel):
    params_class = CoefTimeDerivativeParams

    def __init__(
        self,
        params: CoefTimeDerivativeParams,
        system: VariableSystem,
        coefficient: Optional[CoefficientFunction] = None,
    ) -> None:
        """
        Args:
            params: Kernel parameters; ``params.coefficient`` is used when no callback is given.
            system: Variable registry.
            coefficient: Optional callback ``(fields, qp) -> c``.
        """
        super().__init__(params, system)
        self._coefficient = coefficient or (lambda fields, qp: params.coefficient)

    def coefficient(self, fields: FieldAccessor, qp: int) -> float:
        return self._coefficient(fields, qp)

    def compute_qp_residual(self, fields: FieldAccessor, i: int, qp: int) -> float:
        return self.coefficient(fields, qp) * fields.qdata.test[i, qp] * fields.u_dot[qp]

    def compute_qp_jacobian(self, fields: FieldAccessor, i: int, j: int, qp: int) -> float:
        q = fields.qdata
        return self.coefficient(fields, qp) * q.test[i, qp] * q.phi[j, qp] * fields.du_dot_du
