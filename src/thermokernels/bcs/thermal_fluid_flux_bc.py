"""
Thermal fluid flux across a domain boundary.

The velocity decides the upwind side of the boundary::

    vel . n > 0  (outflow):  Res = test * (vel . n) * T     * rho * cp * fv
    otherwise    (inflow):   Res = test * (vel . n) * T_out * rho * cp * fv

Outflow carries the domain's own temperature; inflow carries the prescribed
outside temperature. This is the boundary term of
:class:`~thermokernels.kernels.heat_advection_conservative.HeatAdvectionConservative`.
"""
from __future__ import annotations

from typing import TYPE_CHECKING

import numpy as np

from thermokernels.errors import ConfigurationError
from thermokernels.kernels.base import IntegratedBC
from thermokernels.parameters import ThermalFluidFluxBCParams
from thermokernels.registry import register_object

if TYPE_CHECKING:
    import numpy.typing as npt

    from thermokernels.fields import FieldAccessor, VariableSystem


@register_object
class ThermalFluidFluxBC(IntegratedBC):
    params_class = ThermalFluidFluxBCParams

    def __init__(self, params: ThermalFluidFluxBCParams, system: VariableSystem) -> None:
        super().__init__(params, system)
        self._density_var = self.coupled(params.density)
        self._heat_cap_var = self.coupled(params.heat_capacity)
        self._volfrac_var = self.coupled(params.volume_frac)
        self._outside_temp_var = self.coupled(params.outside_temperature)
        self._velocity_vars = (
            self.coupled(params.vel_x),
            self.coupled(params.vel_y),
            self.coupled(params.vel_z),
        )

    def velocity(self, fields: FieldAccessor, qp: int) -> npt.NDArray[np.float64]:
        """Advection vector at a quadrature point, built from its components."""
        p = self.params
        return np.array([
            fields.value(p.vel_x)[qp],
            fields.value(p.vel_y)[qp],
            fields.value(p.vel_z)[qp],
        ])

    def _normal(self, fields: FieldAccessor, qp: int) -> npt.NDArray[np.float64]:
        normals = fields.qdata.normals
        if normals is None:
            raise ConfigurationError(f"{self!r} must be evaluated on boundary facets with normals.")
        return normals[qp]

    def normal_velocity(self, fields: FieldAccessor, qp: int) -> float:
        return float(np.dot(self.velocity(fields, qp), self._normal(fields, qp)))

    def is_outflow(self, fields: FieldAccessor, qp: int) -> bool:
        return self.normal_velocity(fields, qp) > 0.0

    def _heat_content_factor(self, fields: FieldAccessor, qp: int) -> float:
        p = self.params
        return (
            fields.value(p.density)[qp]
            * fields.value(p.heat_capacity)[qp]
            * fields.value(p.volume_frac)[qp]
        )

    def upwind_temperature(self, fields: FieldAccessor, qp: int) -> float:
        """Temperature carried across the boundary at a quadrature point."""
        if self.is_outflow(fields, qp):
            return fields.u[qp]
        return fields.value(self.params.outside_temperature)[qp]

    def compute_qp_residual(self, fields: FieldAccessor, i: int, qp: int) -> float:
        return (
            fields.qdata.test[i, qp]
            * self.normal_velocity(fields, qp)
            * self.upwind_temperature(fields, qp)
            * self._heat_content_factor(fields, qp)
        )

    def compute_qp_jacobian(self, fields: FieldAccessor, i: int, j: int, qp: int) -> float:
        if not self.is_outflow(fields, qp):
            # The outside temperature does not depend on the unknown
            return 0.0
        q = fields.qdata
        return (
            q.test[i, qp]
            * self.normal_velocity(fields, qp)
            * q.phi[j, qp]
            * self._heat_content_factor(fields, qp)
        )

    def compute_qp_off_diag_jacobian(self, fields: FieldAccessor, jvar: int, i: int, j: int, qp: int) -> float:
        p = self.params
        q = fields.qdata
        test = q.test[i, qp]
        phi = q.phi[j, qp]
        normal = self._normal(fields, qp)
        temperature = self.upwind_temperature(fields, qp)

        for direction, velocity_var in enumerate(self._velocity_vars):
            if jvar == velocity_var:
                return test * temperature * (phi * normal[direction]) * self._heat_content_factor(fields, qp)

        normal_velocity = self.normal_velocity(fields, qp)
        rho = fields.value(p.density)[qp]
        cp = fields.value(p.heat_capacity)[qp]
        volfrac = fields.value(p.volume_frac)[qp]

        if jvar == self._outside_temp_var:
            if self.is_outflow(fields, qp):
                return 0.0
            return test * normal_velocity * phi * rho * cp * volfrac
        if jvar == self._density_var:
            return test * normal_velocity * temperature * phi * cp * volfrac
        if jvar == self._heat_cap_var:
            return test * normal_velocity * temperature * rho * phi * volfrac
        if jvar == self._volfrac_var:
            return test * normal_velocity * temperature * rho * cp * phi
        return 0.0
