from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Callable, Optional

import numpy as np
import scipy as sp

from thermokernels.assembly import SystemState
from thermokernels.constants import DEFAULT_MAX_NEWTON_ITERATIONS, DEFAULT_NEWTON_TOLERANCE
from thermokernels.errors import ConvergenceError

if TYPE_CHECKING:
    import numpy.typing as npt

    from thermokernels.assembly import Assembler

logger = logging.getLogger(__name__)

spsolve = sp.sparse.linalg.spsolve

AuxProvider = Callable[[float], dict[str, "npt.NDArray[np.float64]"]]


class Solver:
    """
    Newton-Raphson driver for the assembled system.

    Transient problems use backward Euler: ``u_dot = (u - u_old) / dt`` and
    ``du_dot/du = 1 / dt``.
    """

    def __init__(
        self,
        assembler: Assembler,
        tolerance: float = DEFAULT_NEWTON_TOLERANCE,
        relative_tolerance: float = DEFAULT_NEWTON_TOLERANCE,
        max_iterations: int = DEFAULT_MAX_NEWTON_ITERATIONS,
    ) -> None:
        """
        Initialize the solver with an assembler.

        Args:
            assembler: Assembler of the problem to be solved.
            tolerance: Absolute tolerance on the infinity norm of the residual.
            relative_tolerance: Tolerance relative to the residual norm at the first iteration.
            max_iterations: Maximum number of Newton iterations per solve.
        """
        self.assembler = assembler
        self.tolerance = tolerance
        self.relative_tolerance = relative_tolerance
        self.max_iterations = max_iterations

    def _newton(
        self,
        u: npt.NDArray[np.float64],
        aux: dict[str, npt.NDArray[np.float64]],
        u_old: Optional[npt.NDArray[np.float64]] = None,
        dt: Optional[float] = None,
        time: float = 0.0,
    ) -> tuple[npt.NDArray[np.float64], int, float]:
        u = u.copy()

        def state() -> SystemState:
            if u_old is None:
                return SystemState(solution=u, aux=aux)
            return SystemState(solution=u, solution_dot=(u - u_old) / dt, du_dot_du=1.0 / dt, aux=aux)

        R = self.assembler.residual(state())
        r_norm = np.linalg.norm(R, ord=np.inf)
        r_norm_0 = r_norm

        iteration = 0
        while r_norm > max(self.tolerance, self.relative_tolerance * r_norm_0):
            if iteration == self.max_iterations:
                raise ConvergenceError(
                    f"Newton-Raphson did not converge after {iteration} iterations at time {time:.2f} s "
                    f"(residual norm {r_norm:.3e})."
                )
            # solve dRdu * delta = -R
            dRdu = self.assembler.jacobian(state())
            delta = spsolve(dRdu.tocsc(), -R)
            if not np.all(np.isfinite(delta)):
                raise ConvergenceError(f"Singular Jacobian at time {time:.2f} s, iteration {iteration}.")
            u += delta

            R = self.assembler.residual(state())
            r_norm = np.linalg.norm(R, ord=np.inf)
            iteration += 1
            logger.debug("Iteration %d - Residual Norm: %.6e", iteration, r_norm)

        return u, iteration, r_norm

    def solve_steady(
        self,
        initial_guess: npt.NDArray[np.float64],
        aux: Optional[dict[str, npt.NDArray[np.float64]]] = None,
    ) -> npt.NDArray[np.float64]:
        """
        Solve the steady problem.

        Args:
            initial_guess: (n_eq,) starting point of the Newton iteration.
            aux: Nodal values of the auxiliary variables.

        Returns:
            (n_eq,) converged solution.

        Raises:
            ConvergenceError: If Newton does not converge.
        """
        u, iteration, r_norm = self._newton(np.asarray(initial_guess, dtype=np.float64), aux or {})
        logger.info("Steady solve - Residual Norm: %.6e - Iterations: %d", r_norm, iteration)
        return u

    def solve_transient(
        self,
        initial_solution: npt.NDArray[np.float64],
        dt: float,
        total_time: float,
        aux: Optional[dict[str, npt.NDArray[np.float64]] | AuxProvider] = None,
    ) -> list[npt.NDArray[np.float64]]:
        """
        March the transient problem with backward Euler.

        Args:
            initial_solution: (n_eq,) solution at time zero.
            dt: Time step (s).
            total_time: End time (s).
            aux: Nodal values of the auxiliary variables, or a callable returning them for a given time.

        Returns:
            Solutions at time zero and at the end of every step.

        Raises:
            ConvergenceError: If Newton does not converge in some step.
        """
        if dt <= 0.0:
            raise ValueError(f"Time step must be positive, got {dt}.")

        n_steps = int(np.ceil(total_time / dt - 1e-9))
        u_old = np.asarray(initial_solution, dtype=np.float64).copy()
        results = [u_old.copy()]

        # Main time loop
        for step in range(1, n_steps + 1):
            current_time = step * dt

            aux_now = aux(current_time) if callable(aux) else (aux or {})
            u_new, iteration, r_norm = self._newton(u_old, aux_now, u_old=u_old, dt=dt, time=current_time)

            results.append(u_new.copy())
            u_old = u_new

            progress = int(min(current_time / total_time, 1.0) * 100)
            logger.info(
                "Progress: %d %% - Time: %.2f s - Step: %d - Residual Norm: %.6e - Iterations: %d",
                progress, current_time, step, r_norm, iteration,
            )

        return results
