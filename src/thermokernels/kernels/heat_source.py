"""
Volumetric heat source or sink coupled into an energy balance::

    Res = -test * s

where s is the coupled heat source (W/m^3).
"""
from __future__ import annotations

from typing import TYPE_CHECKING

from thermokernels.kernels.base import Kernel
from thermokernels.parameters import HeatSourceParams
from thermokernels.registry import register_object

if TYPE_CHECKING:
    from thermokernels.fields import FieldAccessor, VariableSystem


@register_object
class HeatSource(Kernel):
    params_class = HeatSourceParams

    def __init__(self, params: HeatSourceParams, system: VariableSystem) -> None:
        super().__init__(params, system)
        self._coupled_source_var = self.coupled(params.coupled_source)

    def compute_qp_residual(self, fields: FieldAccessor, i: int, qp: int) -> float:
        return -fields.qdata.test[i, qp] * fields.value(self.params.coupled_source)[qp]

    def compute_qp_jacobian(self, fields: FieldAccessor, i: int, j: int, qp: int) -> float:
        return 0.0

    def compute_qp_off_diag_jacobian(self, fields: FieldAccessor, jvar: int, i: int, j: int, qp: int) -> float:
        if jvar == self._coupled_source_var:
            q = fields.qdata
            return -q.test[i, qp] * q.phi[j, qp]
        return 0.0
