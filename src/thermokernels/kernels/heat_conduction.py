"""
Heat conduction in an energy balance::

    Res = grad_test . grad_u * K * fv

where K is the thermal conductivity (W/m/K) and fv the volume fraction (-).
"""
from __future__ import annotations

from typing import TYPE_CHECKING

import numpy as np

from thermokernels.kernels.base import Kernel
from thermokernels.parameters import HeatConductionParams
from thermokernels.registry import register_object

if TYPE_CHECKING:
    from thermokernels.fields import FieldAccessor, VariableSystem


@register_object
class HeatConduction(Kernel):
    params_class = HeatConductionParams

    def __init__(self, params: HeatConductionParams, system: VariableSystem) -> None:
        super().__init__(params, system)
        self._conductivity_var = self.coupled(params.thermal_conductivity)
        self._volfrac_var = self.coupled(params.volume_frac)

    def compute_qp_residual(self, fields: FieldAccessor, i: int, qp: int) -> float:
        p = self.params
        grad_test = fields.qdata.grad_test[i, qp]
        return (
            fields.value(p.volume_frac)[qp]
            * fields.value(p.thermal_conductivity)[qp]
            * np.dot(grad_test, fields.grad_u[qp])
        )

    def compute_qp_jacobian(self, fields: FieldAccessor, i: int, j: int, qp: int) -> float:
        p = self.params
        q = fields.qdata
        return (
            fields.value(p.volume_frac)[qp]
            * fields.value(p.thermal_conductivity)[qp]
            * np.dot(q.grad_test[i, qp], q.grad_phi[j, qp])
        )

    def compute_qp_off_diag_jacobian(self, fields: FieldAccessor, jvar: int, i: int, j: int, qp: int) -> float:
        p = self.params
        q = fields.qdata
        flux = np.dot(q.grad_test[i, qp], fields.grad_u[qp])

        if jvar == self._conductivity_var:
            return fields.value(p.volume_frac)[qp] * q.phi[j, qp] * flux
        if jvar == self._volfrac_var:
            return q.phi[j, qp] * fields.value(p.thermal_conductivity)[qp] * flux
        return 0.0
