"""
Heat accumulation for thermal dynamics::

    Res = test * fv * rho * cp * dT/dt

where fv is the volume fraction (-), rho the material density (kg/m^3) and
cp the heat capacity of the material (J/kg/K).
"""
from __future__ import annotations

from typing import TYPE_CHECKING

from thermokernels.kernels.base import Kernel
from thermokernels.kernels.time_derivative import CoefTimeDerivative
from thermokernels.parameters import CoefTimeDerivativeParams, HeatAccumulationParams
from thermokernels.registry import register_object

if TYPE_CHECKING:
    from thermokernels.fields import FieldAccessor, VariableSystem


@register_object
class HeatAccumulation(Kernel):
    params_class = HeatAccumulationParams

    def __init__(self, params: HeatAccumulationParams, system: VariableSystem) -> None:
        super().__init__(params, system)
        self._density_var = self.coupled(params.density)
        self._heat_cap_var = self.coupled(params.heat_capacity)
        self._volfrac_var = self.coupled(params.volume_frac)

        self._time_derivative = CoefTimeDerivative(
            CoefTimeDerivativeParams(variable=params.variable),
            system,
            coefficient=self.volumetric_heat_capacity,
        )

    def volumetric_heat_capacity(self, fields: FieldAccessor, qp: int) -> float:
        """fv * rho * cp at a quadrature point (J/m^3/K)."""
        p = self.params
        return (
            fields.value(p.density)[qp]
            * fields.value(p.heat_capacity)[qp]
            * fields.value(p.volume_frac)[qp]
        )

    def compute_qp_residual(self, fields: FieldAccessor, i: int, qp: int) -> float:
        return self._time_derivative.compute_qp_residual(fields, i, qp)

    def compute_qp_jacobian(self, fields: FieldAccessor, i: int, j: int, qp: int) -> float:
        return self._time_derivative.compute_qp_jacobian(fields, i, j, qp)

    def compute_qp_off_diag_jacobian(self, fields: FieldAccessor, jvar: int, i: int, j: int, qp: int) -> float:
        p = self.params
        q = fields.qdata
        rho = fields.value(p.density)[qp]
        cp = fields.value(p.heat_capacity)[qp]
        volfrac = fields.value(p.volume_frac)[qp]
        phi = q.phi[j, qp]
        rate = q.test[i, qp] * fields.u_dot[qp]

        if jvar == self._density_var:
            return phi * cp * volfrac * rate
        if jvar == self._heat_cap_var:
            return rho * phi * volfrac * rate
        if jvar == self._volfrac_var:
            return rho * cp * phi * rate
        return 0.0
