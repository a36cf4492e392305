"""
Heat advection in conservative (divergence) form::

    Res = -grad_test . vel * rho * cp * fv * T

where fv is the volume fraction (-), rho the material density (kg/m^3), cp
the heat capacity (J/kg/K), T the fluid temperature (K) and vel the fluid
velocity (m/s).

Integrating the divergence by parts moves a boundary term onto the flux
boundary condition, so this kernel must be paired with
:class:`~thermokernels.bcs.thermal_fluid_flux_bc.ThermalFluidFluxBC` on every
boundary that is not otherwise constrained.

Two upwinding types are available:

* ``none``: the centred Galerkin form. Numerical diffusion is minimal but the
  solution overshoots and undershoots near sharp fronts.
* ``full``: full upwinding. The energy leaving each upwind node is carried by
  the node's own temperature and redistributed over the downwind nodes in
  proportion to their inflow, so the element conserves energy exactly.
  Oscillations are avoided at the price of large numerical diffusion.
"""
from __future__ import annotations

import logging
import threading
from typing import TYPE_CHECKING

import numpy as np

from thermokernels.constants import TINY_INFLOW
from thermokernels.kernels.base import Kernel
from thermokernels.parameters import HeatAdvectionConservativeParams, UpwindingType
from thermokernels.registry import register_object

if TYPE_CHECKING:
    import numpy.typing as npt

    from thermokernels.fields import FieldAccessor, VariableSystem

logger = logging.getLogger(__name__)


@register_object
class HeatAdvectionConservative(Kernel):
    params_class = HeatAdvectionConservativeParams

    def __init__(self, params: HeatAdvectionConservativeParams, system: VariableSystem) -> None:
        super().__init__(params, system)
        self.upwinding = params.upwinding_type

        self._density_var = self.coupled(params.density)
        self._heat_cap_var = self.coupled(params.heat_capacity)
        self._volfrac_var = self.coupled(params.volume_frac)
        self._velocity_vars = (
            self.coupled(params.vel_x),
            self.coupled(params.vel_y),
            self.coupled(params.vel_z),
        )

        # Diagnostics only, never read during evaluation.
        # degenerate_redistributions counts residual evaluations of degenerate elements.
        self._diagnostics_lock = threading.Lock()
        self.degenerate_redistributions = 0
        self._warned_mismatch = False

    def __repr__(self) -> str:
        return f"{type(self).__name__}(variable='{self.variable}', upwinding='{self.upwinding}')"

    def velocity(self, fields: FieldAccessor, qp: int) -> npt.NDArray[np.float64]:
        """Advection vector at a quadrature point, built from its components."""
        p = self.params
        return np.array([
            fields.value(p.vel_x)[qp],
            fields.value(p.vel_y)[qp],
            fields.value(p.vel_z)[qp],
        ])

    def _heat_content_factor(self, fields: FieldAccessor, qp: int) -> float:
        p = self.params
        return (
            fields.value(p.density)[qp]
            * fields.value(p.heat_capacity)[qp]
            * fields.value(p.volume_frac)[qp]
        )

    def neg_speed(self, fields: FieldAccessor, i: int, qp: int) -> float:
        """-(grad_test_i . vel) * rho * cp * fv at a quadrature point."""
        grad_test = fields.qdata.grad_test[i, qp]
        return -np.dot(grad_test, self.velocity(fields, qp)) * self._heat_content_factor(fields, qp)

    def compute_qp_residual(self, fields: FieldAccessor, i: int, qp: int) -> float:
        return self.neg_speed(fields, i, qp) * fields.u[qp]

    def compute_qp_jacobian(self, fields: FieldAccessor, i: int, j: int, qp: int) -> float:
        return self.neg_speed(fields, i, qp) * fields.qdata.phi[j, qp]

    def compute_qp_off_diag_jacobian(self, fields: FieldAccessor, jvar: int, i: int, j: int, qp: int) -> float:
        p = self.params
        q = fields.qdata
        u = fields.u[qp]
        phi = q.phi[j, qp]
        grad_test = q.grad_test[i, qp]

        for direction, velocity_var in enumerate(self._velocity_vars):
            if jvar == velocity_var:
                return -u * (phi * grad_test[direction]) * self._heat_content_factor(fields, qp)

        rho = fields.value(p.density)[qp]
        cp = fields.value(p.heat_capacity)[qp]
        volfrac = fields.value(p.volume_frac)[qp]
        advection = np.dot(grad_test, self.velocity(fields, qp))

        if jvar == self._density_var:
            return -u * advection * phi * cp * volfrac
        if jvar == self._heat_cap_var:
            return -u * advection * rho * phi * volfrac
        if jvar == self._volfrac_var:
            return -u * advection * rho * cp * phi
        return 0.0

    def evaluate_residual(self, fields: FieldAccessor) -> npt.NDArray[np.float64]:
        if self.upwinding == UpwindingType.FULL:
            return self._full_upwind_residual(fields)
        return super().evaluate_residual(fields)

    def evaluate_jacobian(self, fields: FieldAccessor) -> npt.NDArray[np.float64]:
        if self.upwinding == UpwindingType.FULL:
            return self._full_upwind_jacobian(fields)
        return super().evaluate_jacobian(fields)

    def nodal_outflow(self, fields: FieldAccessor) -> npt.NDArray[np.float64]:
        """
        Raw outflow from each element node.

        ``R(n) = Σ_qp JxW·coord·negSpeed_n``. A positive value means energy
        flows out of node n.

        Returns:
            (n_test,) raw nodal outflow.
        """
        q = fields.qdata
        weights = q.jxw * q.coord
        outflow = np.zeros(q.n_test, dtype=np.float64)
        for n in range(q.n_test):
            for qp in range(q.n_qp):
                outflow[n] += weights[qp] * self.neg_speed(fields, n, qp)
        return outflow

    def _classify_nodes(
        self,
        fields: FieldAccessor,
    ) -> tuple[npt.NDArray[np.float64], npt.NDArray[np.bool_], float]:
        """
        Outflow, upwind mask and total inflow of one element.

        The partition depends only on velocity and geometry, so residual and
        Jacobian passes in the same state see the same upwind nodes.
        """
        outflow = self.nodal_outflow(fields)
        upwind = outflow >= 0.0
        # Positive by construction
        total_in = -float(np.sum(outflow[~upwind]))
        return outflow, upwind, total_in

    def _first_mismatch(self) -> bool:
        with self._diagnostics_lock:
            first = not self._warned_mismatch
            self._warned_mismatch = True
        return first

    def _can_redistribute(self, upwind: npt.NDArray[np.bool_], total_in: float, report: bool) -> bool:
        """
        Whether downwind nodes can share the outflow.

        Only the residual pass reports degeneracy, so a degenerate element is
        counted once per residual evaluation.
        """
        if upwind.all():
            return False
        if total_in > TINY_INFLOW:
            return True
        if not report:
            return False

        with self._diagnostics_lock:
            self.degenerate_redistributions += 1
        logger.warning(
            "%r: total inflow %.3e is numerically zero; downwind nodes keep their raw outflow.",
            self, total_in,
        )
        return False

    def _full_upwind_residual(self, fields: FieldAccessor) -> npt.NDArray[np.float64]:
        outflow, upwind, total_in = self._classify_nodes(fields)
        u_nodal = fields.u_nodal
        if u_nodal.size != outflow.size:
            raise ValueError(
                f"{self!r}: full upwinding needs the nodal value at each of the {outflow.size} "
                f"test nodes, got {u_nodal.size} nodal values."
            )

        re = outflow.copy()

        # Energy leaving each upwind node is carried by that node's temperature
        re[upwind] *= u_nodal[upwind]
        total_mass_out = float(np.sum(re[upwind]))

        # Downwind nodes receive the outflow in proportion to their inflow
        if self._can_redistribute(upwind, total_in, report=True):
            downwind = ~upwind
            re[downwind] *= total_mass_out / total_in

        return re

    def _full_upwind_jacobian(self, fields: FieldAccessor) -> npt.NDArray[np.float64]:
        outflow, upwind, total_in = self._classify_nodes(fields)
        q = fields.qdata

        ke = np.zeros((q.n_test, q.n_trial), dtype=np.float64)
        # d(total_mass_out) / d(u at node j)
        dtotal_mass_out = np.zeros(q.n_trial, dtype=np.float64)

        if q.n_test == q.n_trial:
            # Upwind node n carries outflow(n) * u_n, which depends on u at node n only
            nodes = np.flatnonzero(upwind)
            ke[nodes, nodes] += outflow[nodes]
            dtotal_mass_out[nodes] += ke[nodes, nodes]
        elif self._first_mismatch():
            logger.warning(
                "%r: test (%d) and trial (%d) spaces differ; the full-upwind Jacobian omits "
                "upwind node derivatives.",
                self, q.n_test, q.n_trial,
            )

        if self._can_redistribute(upwind, total_in, report=False):
            downwind = np.flatnonzero(~upwind)
            ke[downwind, :] += np.outer(outflow[downwind], dtotal_mass_out) / total_in

        return ke
