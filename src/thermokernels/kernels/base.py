from __future__ import annotations

from abc import ABC, abstractmethod
from typing import TYPE_CHECKING, ClassVar, Optional

import numpy as np

from thermokernels.errors import ConfigurationError
from thermokernels.kernels.integration import (
    integrate_jacobian,
    integrate_off_diag_jacobian,
    integrate_residual,
)
from thermokernels.parameters import KernelParams

if TYPE_CHECKING:
    import numpy.typing as npt

    from thermokernels.fields import CoupledVar, FieldAccessor, VariableSystem


class ResidualObject(ABC):
    """
    Abstract base class for everything contributing to the residual.

    Subclasses supply the point-wise formulas; integration over the element
    is done by the loops in :mod:`thermokernels.kernels.integration`.
    """

    params_class: ClassVar[type[KernelParams]] = KernelParams

    def __init__(self, params: KernelParams, system: VariableSystem) -> None:
        """
        Args:
            params: Validated parameters of the object.
            system: Variable registry used to resolve coupled fields.

        Raises:
            ConfigurationError: If the parameters have the wrong type or refer to unknown variables.
        """
        if not isinstance(params, self.params_class):
            raise ConfigurationError(
                f"{type(self).__name__} expects {self.params_class.__name__}, got {type(params).__name__}."
            )
        self.params = params
        self.system = system
        self.variable = params.variable
        self.variable_number = system.number(params.variable)

        self._coupled_numbers: dict[str, Optional[int]] = {
            name: system.coupled(value) for name, value in params.coupled_vars().items()
        }

    def __repr__(self) -> str:
        return f"{type(self).__name__}(variable='{self.variable}')"

    def coupled(self, var: CoupledVar) -> Optional[int]:
        """Variable number of a coupled field, None for constants."""
        return self.system.coupled(var)

    @property
    def coupled_variable_numbers(self) -> set[int]:
        """Numbers of all variables this object is coupled to, excluding its own."""
        return {
            n for n in self._coupled_numbers.values()
            if n is not None and n != self.variable_number
        }

    @abstractmethod
    def compute_qp_residual(self, fields: FieldAccessor, i: int, qp: int) -> float:
        pass

    @abstractmethod
    def compute_qp_jacobian(self, fields: FieldAccessor, i: int, j: int, qp: int) -> float:
        pass

    def compute_qp_off_diag_jacobian(self, fields: FieldAccessor, jvar: int, i: int, j: int, qp: int) -> float:
        return 0.0

    def evaluate_residual(self, fields: FieldAccessor) -> npt.NDArray[np.float64]:
        """(n_test,) local residual of one element or facet."""
        return integrate_residual(self, fields)

    def evaluate_jacobian(self, fields: FieldAccessor) -> npt.NDArray[np.float64]:
        """(n_test, n_trial) derivative of the local residual w.r.t. the own variable."""
        return integrate_jacobian(self, fields)

    def evaluate_off_diag_jacobian(self, fields: FieldAccessor, jvar: int) -> npt.NDArray[np.float64]:
        """(n_test, n_trial) derivative of the local residual w.r.t. variable ``jvar``."""
        if jvar == self.variable_number:
            return self.evaluate_jacobian(fields)
        return integrate_off_diag_jacobian(self, fields, jvar)


class Kernel(ResidualObject):
    """Residual object integrated over element interiors."""


class IntegratedBC(ResidualObject):
    """Residual object integrated over boundary facets."""

    @property
    def boundary(self) -> list[str]:
        return list(getattr(self.params, "boundary", []))
