"""
Field Access
============
Variable numbering and quadrature-point field samples for one element.

A coupled field is referenced either by variable name or by a numeric
constant. Constants behave like uniform fields with no degrees of freedom,
so they never receive off-diagonal Jacobian contributions.
"""
from __future__ import annotations

from enum import StrEnum
from numbers import Real
from typing import TYPE_CHECKING, Mapping, Optional, Union

import numpy as np

from thermokernels.errors import ConfigurationError

if TYPE_CHECKING:
    import numpy.typing as npt
    from thermokernels.fea.finite_elements import QuadratureData


CoupledVar = Union[str, float]


class VariableKind(StrEnum):
    NONLINEAR = "nonlinear"
    AUXILIARY = "auxiliary"


class VariableSystem:
    """
    Registry of named variables.

    Nonlinear variables are solved for; auxiliary variables are prescribed
    fields (e.g. a velocity computed elsewhere). Each variable receives a
    unique number, used to key off-diagonal Jacobian blocks.
    """

    def __init__(self) -> None:
        self._numbers: dict[str, int] = {}
        self._kinds: dict[str, VariableKind] = {}

    def __repr__(self) -> str:
        return (
            f"{self.__class__.__name__}(nonlinear={self.nonlinear_variables}, "
            f"auxiliary={self.aux_variables})"
        )

    def __contains__(self, name: object) -> bool:
        return name in self._numbers

    def _add(self, name: str, kind: VariableKind) -> int:
        if not isinstance(name, str) or not name:
            raise ConfigurationError(f"Variable name must be a non-empty string, got {name!r}.")
        if name in self._numbers:
            raise ConfigurationError(f"Variable '{name}' is already defined.")
        number = len(self._numbers)
        self._numbers[name] = number
        self._kinds[name] = kind
        return number

    def add_variable(self, name: str) -> int:
        """Add a nonlinear (solved) variable and return its number."""
        return self._add(name, VariableKind.NONLINEAR)

    def add_aux_variable(self, name: str) -> int:
        """Add an auxiliary (prescribed) variable and return its number."""
        return self._add(name, VariableKind.AUXILIARY)

    def number(self, name: str) -> int:
        try:
            return self._numbers[name]
        except KeyError:
            raise ConfigurationError(
                f"Unknown variable '{name}'. Defined variables: {sorted(self._numbers)}"
            ) from None

    def name(self, number: int) -> str:
        for name, n in self._numbers.items():
            if n == number:
                return name
        raise ConfigurationError(f"No variable with number {number}.")

    def kind(self, name: str) -> VariableKind:
        self.number(name)
        return self._kinds[name]

    def is_nonlinear(self, name: str) -> bool:
        return self.kind(name) == VariableKind.NONLINEAR

    @property
    def variables(self) -> list[str]:
        return list(self._numbers)

    @property
    def nonlinear_variables(self) -> list[str]:
        return [n for n, k in self._kinds.items() if k == VariableKind.NONLINEAR]

    @property
    def aux_variables(self) -> list[str]:
        return [n for n, k in self._kinds.items() if k == VariableKind.AUXILIARY]

    def coupled(self, var: CoupledVar) -> Optional[int]:
        """
        Variable number of a coupled field, or None for a constant.

        Raises:
            ConfigurationError: If a named variable is not defined.
        """
        if isinstance(var, str):
            return self.number(var)
        return None


class FieldAccessor:
    """
    Field samples at the quadrature points of one element or facet.

    Values are interpolated from nodal values with the trial functions and
    cached per field for the lifetime of the accessor, which covers one
    evaluation pass.
    """

    def __init__(
        self,
        qdata: QuadratureData,
        variable: str,
        nodal_values: Mapping[str, npt.NDArray[np.float64]],
        nodal_dots: Optional[Mapping[str, npt.NDArray[np.float64]]] = None,
        du_dot_du: float = 0.0,
    ) -> None:
        """
        Args:
            qdata: Shape function data of the element.
            variable: Name of the primary variable of the kernel being evaluated.
            nodal_values: Nodal values on this element for every available field, (n_trial,) each.
            nodal_dots: Nodal time derivatives on this element; missing fields have zero rate.
            du_dot_du: Derivative of the time derivative with respect to the unknown.
        """
        self.qdata = qdata
        self.variable = variable
        self.du_dot_du = du_dot_du
        self._nodal = {k: np.asarray(v, dtype=np.float64) for k, v in nodal_values.items()}
        self._nodal_dots = {k: np.asarray(v, dtype=np.float64) for k, v in (nodal_dots or {}).items()}
        self._values: dict[CoupledVar, npt.NDArray[np.float64]] = {}
        self._gradients: dict[CoupledVar, npt.NDArray[np.float64]] = {}
        self._dots: dict[CoupledVar, npt.NDArray[np.float64]] = {}

        if variable not in self._nodal:
            raise ConfigurationError(f"No nodal values for primary variable '{variable}'.")
        for name, values in self._nodal.items():
            if values.shape != (qdata.n_trial,):
                raise ValueError(
                    f"Nodal values of '{name}' have shape {values.shape}, expected ({qdata.n_trial},)."
                )

    def _check(self, var: CoupledVar) -> None:
        if isinstance(var, str):
            if var not in self._nodal:
                raise ConfigurationError(f"Field '{var}' is not available on this element.")
        elif not isinstance(var, Real):
            raise ConfigurationError(f"Coupled field must be a name or a number, got {var!r}.")

    def nodal(self, var: CoupledVar) -> npt.NDArray[np.float64]:
        """(n_trial,) nodal values of a field."""
        self._check(var)
        if isinstance(var, str):
            return self._nodal[var]
        return np.full(self.qdata.n_trial, float(var), dtype=np.float64)

    def value(self, var: CoupledVar) -> npt.NDArray[np.float64]:
        """(n_qp,) values of a field at the quadrature points."""
        if var not in self._values:
            self._check(var)
            if isinstance(var, str):
                self._values[var] = self._nodal[var] @ self.qdata.phi
            else:
                self._values[var] = np.full(self.qdata.n_qp, float(var), dtype=np.float64)
        return self._values[var]

    def gradient(self, var: CoupledVar) -> npt.NDArray[np.float64]:
        """(n_qp, 3) gradients of a field at the quadrature points."""
        if var not in self._gradients:
            self._check(var)
            if isinstance(var, str):
                self._gradients[var] = np.einsum("j,jqd->qd", self._nodal[var], self.qdata.grad_phi)
            else:
                self._gradients[var] = np.zeros((self.qdata.n_qp, 3), dtype=np.float64)
        return self._gradients[var]

    def dot(self, var: CoupledVar) -> npt.NDArray[np.float64]:
        """(n_qp,) time derivatives of a field at the quadrature points."""
        if var not in self._dots:
            self._check(var)
            if isinstance(var, str) and var in self._nodal_dots:
                self._dots[var] = self._nodal_dots[var] @ self.qdata.phi
            else:
                self._dots[var] = np.zeros(self.qdata.n_qp, dtype=np.float64)
        return self._dots[var]

    @property
    def u(self) -> npt.NDArray[np.float64]:
        return self.value(self.variable)

    @property
    def grad_u(self) -> npt.NDArray[np.float64]:
        return self.gradient(self.variable)

    @property
    def u_dot(self) -> npt.NDArray[np.float64]:
        return self.dot(self.variable)

    @property
    def u_nodal(self) -> npt.NDArray[np.float64]:
        return self.nodal(self.variable)
