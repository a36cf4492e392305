"""
Exchange of thermal energy between two phases in the same domain::

    Res = test * h * A * fv * (T - T_other)

where h is the heat transfer coefficient (W/m^2/K), A the specific contact
area per volume between the phases (m^-1) and fv the volume fraction (-).
"""
from __future__ import annotations

from typing import TYPE_CHECKING

from thermokernels.kernels.base import Kernel
from thermokernels.parameters import HeatConvectionParams
from thermokernels.registry import register_object

if TYPE_CHECKING:
    from thermokernels.fields import FieldAccessor, VariableSystem


@register_object
class HeatConvection(Kernel):
    params_class = HeatConvectionParams

    def __init__(self, params: HeatConvectionParams, system: VariableSystem) -> None:
        super().__init__(params, system)
        self._hs_var = self.coupled(params.convection_coeff)
        self._other_temp_var = self.coupled(params.coupled_temperature)
        self._volfrac_var = self.coupled(params.volume_frac)
        self._specarea_var = self.coupled(params.specific_area)

    def _factors(self, fields: FieldAccessor, qp: int) -> tuple[float, float, float]:
        p = self.params
        return (
            fields.value(p.convection_coeff)[qp],
            fields.value(p.specific_area)[qp],
            fields.value(p.volume_frac)[qp],
        )

    def _temperature_difference(self, fields: FieldAccessor, qp: int) -> float:
        return fields.u[qp] - fields.value(self.params.coupled_temperature)[qp]

    def compute_qp_residual(self, fields: FieldAccessor, i: int, qp: int) -> float:
        hs, area, volfrac = self._factors(fields, qp)
        return fields.qdata.test[i, qp] * hs * area * volfrac * self._temperature_difference(fields, qp)

    def compute_qp_jacobian(self, fields: FieldAccessor, i: int, j: int, qp: int) -> float:
        hs, area, volfrac = self._factors(fields, qp)
        q = fields.qdata
        return q.test[i, qp] * hs * area * volfrac * q.phi[j, qp]

    def compute_qp_off_diag_jacobian(self, fields: FieldAccessor, jvar: int, i: int, j: int, qp: int) -> float:
        hs, area, volfrac = self._factors(fields, qp)
        q = fields.qdata
        test = q.test[i, qp]
        phi = q.phi[j, qp]

        if jvar == self._other_temp_var:
            return -test * hs * area * volfrac * phi
        if jvar == self._hs_var:
            return test * phi * area * volfrac * self._temperature_difference(fields, qp)
        if jvar == self._volfrac_var:
            return test * hs * area * phi * self._temperature_difference(fields, qp)
        if jvar == self._specarea_var:
            return test * hs * phi * volfrac * self._temperature_difference(fields, qp)
        return 0.0
