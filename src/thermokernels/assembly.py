"""
Global Assembly
===============
Reference assembly of kernel contributions into a global residual vector and
a sparse Jacobian.

Degrees of freedom are numbered node-major: ``dof = node * n_vars + k``
where ``k`` is the position of the variable among the nonlinear variables.

Element evaluations are independent; with ``n_threads > 1`` chunks of
elements are evaluated concurrently, each into private buffers that are
merged into the global structures under a lock.
"""
from __future__ import annotations

import logging
import threading
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Optional, Sequence

import numpy as np
import scipy as sp

from thermokernels.errors import ConfigurationError
from thermokernels.fields import FieldAccessor
from thermokernels.kernels.base import IntegratedBC, Kernel

if TYPE_CHECKING:
    import numpy.typing as npt

    from thermokernels.fea.finite_elements import FiniteElement, QuadratureData
    from thermokernels.fea.mesh import Mesh
    from thermokernels.fields import VariableSystem
    from thermokernels.kernels.base import ResidualObject

logger = logging.getLogger(__name__)


@dataclass
class SystemState:
    """
    Current state handed to the assembler.

    Attributes:
        solution: (n_eq,) nodal values of the nonlinear variables.
        solution_dot: (n_eq,) time derivative of the solution, None for steady problems.
        du_dot_du: Derivative of the time derivative w.r.t. the solution (1/dt for backward Euler).
        aux: Nodal values (n_nodes,) of every auxiliary variable.
    """
    solution: npt.NDArray[np.float64]
    solution_dot: Optional[npt.NDArray[np.float64]] = None
    du_dot_du: float = 0.0
    aux: dict[str, npt.NDArray[np.float64]] = field(default_factory=dict)


@dataclass
class _WorkItem:
    element: FiniteElement
    qdata: QuadratureData
    objects: list[ResidualObject]


class Assembler:
    """
    Assembles kernels over the mesh interior and boundary conditions over
    their boundaries.
    """

    def __init__(
        self,
        mesh: Mesh,
        system: VariableSystem,
        kernels: Sequence[Kernel],
        bcs: Sequence[IntegratedBC] = (),
        n_threads: int = 1,
    ) -> None:
        """
        Args:
            mesh: The mesh.
            system: Variable registry; nonlinear variables define the unknowns.
            kernels: Interior kernels.
            bcs: Integrated boundary conditions.
            n_threads: Number of worker threads used for element evaluation.

        Raises:
            ConfigurationError: If an object acts on an auxiliary variable or an unknown boundary.
        """
        if n_threads < 1:
            raise ConfigurationError(f"n_threads must be at least 1, got {n_threads}.")

        self.mesh = mesh
        self.system = system
        self.kernels = list(kernels)
        self.bcs = list(bcs)
        self.n_threads = n_threads

        self.variables = system.nonlinear_variables
        if not self.variables:
            raise ConfigurationError("The system has no nonlinear variables to assemble.")
        self._var_index = {name: k for k, name in enumerate(self.variables)}

        for obj in [*self.kernels, *self.bcs]:
            if obj.variable not in self._var_index:
                raise ConfigurationError(f"{obj!r} acts on '{obj.variable}', which is not a nonlinear variable.")

        self.n_nodes = mesh.number_of_nodes
        self.neq = self.n_nodes * len(self.variables)

        # Geometry does not change, so quadrature data is computed once
        self._items: list[_WorkItem] = []
        if self.kernels:
            for element in mesh.all_elements:
                self._items.append(_WorkItem(element, element.reinit(), list(self.kernels)))
        for bc in self.bcs:
            for boundary in bc.boundary:
                try:
                    facets = mesh.boundary(boundary)
                except KeyError as e:
                    raise ConfigurationError(e.args[0]) from None
                for facet in facets:
                    self._items.append(_WorkItem(facet, facet.reinit(), [bc]))

        self._lock = threading.Lock()
        logger.debug(
            "Assembler: %d equations, %d element and facet evaluations, %d thread(s).",
            self.neq, len(self._items), self.n_threads,
        )

    @property
    def number_of_equations(self) -> int:
        return self.neq

    def dofs(self, element: FiniteElement, variable: str) -> npt.NDArray[np.int64]:
        """Global dofs of a variable on an element."""
        return element.global_dofs * len(self.variables) + self._var_index[variable]

    def split(self, vector: npt.NDArray[np.float64]) -> dict[str, npt.NDArray[np.float64]]:
        """Split a global vector into nodal arrays per nonlinear variable."""
        vector = np.asarray(vector, dtype=np.float64)
        if vector.shape != (self.neq,):
            raise ValueError(f"Expected a vector of shape ({self.neq},), got {vector.shape}.")
        n_vars = len(self.variables)
        return {name: vector[k::n_vars] for k, name in enumerate(self.variables)}

    def combine(self, nodal: dict[str, npt.NDArray[np.float64]]) -> npt.NDArray[np.float64]:
        """Inverse of :meth:`split`."""
        vector = np.zeros(self.neq, dtype=np.float64)
        n_vars = len(self.variables)
        for k, name in enumerate(self.variables):
            try:
                vector[k::n_vars] = nodal[name]
            except KeyError:
                raise ConfigurationError(f"No nodal values for variable '{name}'.") from None
        return vector

    def _global_fields(
        self,
        state: SystemState,
    ) -> tuple[dict[str, npt.NDArray[np.float64]], dict[str, npt.NDArray[np.float64]]]:
        values = self.split(state.solution)
        dots = self.split(state.solution_dot) if state.solution_dot is not None else {}

        for name in self.system.aux_variables:
            if name not in state.aux:
                raise ConfigurationError(f"No nodal values for auxiliary variable '{name}'.")
            aux = np.asarray(state.aux[name], dtype=np.float64)
            if aux.shape != (self.n_nodes,):
                raise ValueError(f"Auxiliary variable '{name}' has shape {aux.shape}, expected ({self.n_nodes},).")
            values[name] = aux
        return values, dots

    def _accessors(
        self,
        item: _WorkItem,
        values: dict[str, npt.NDArray[np.float64]],
        dots: dict[str, npt.NDArray[np.float64]],
        du_dot_du: float,
    ) -> dict[str, FieldAccessor]:
        nodes = item.element.global_dofs
        nodal_values = {name: v[nodes] for name, v in values.items()}
        nodal_dots = {name: v[nodes] for name, v in dots.items()}
        return {
            variable: FieldAccessor(item.qdata, variable, nodal_values, nodal_dots, du_dot_du)
            for variable in {obj.variable for obj in item.objects}
        }

    def _chunks(self) -> list[list[_WorkItem]]:
        n_chunks = min(self.n_threads, max(len(self._items), 1))
        return [
            [self._items[k] for k in indices]
            for indices in np.array_split(np.arange(len(self._items)), n_chunks)
        ]

    def _run(self, work, chunks: list[list[_WorkItem]]) -> None:
        if self.n_threads == 1 or len(chunks) == 1:
            for chunk in chunks:
                work(chunk)
            return
        with ThreadPoolExecutor(max_workers=self.n_threads) as executor:
            # list() re-raises exceptions from the workers
            list(executor.map(work, chunks))

    def residual(self, state: SystemState) -> npt.NDArray[np.float64]:
        """
        Assemble the global residual vector.

        Returns:
            (n_eq,) residual.
        """
        values, dots = self._global_fields(state)
        global_residual = np.zeros(self.neq, dtype=np.float64)

        def work(items: list[_WorkItem]) -> None:
            local = np.zeros(self.neq, dtype=np.float64)
            for item in items:
                accessors = self._accessors(item, values, dots, state.du_dot_du)
                for obj in item.objects:
                    re = obj.evaluate_residual(accessors[obj.variable])
                    np.add.at(local, self.dofs(item.element, obj.variable), re)
            with self._lock:
                global_residual[:] += local

        self._run(work, self._chunks())
        return global_residual

    def jacobian(self, state: SystemState) -> sp.sparse.csr_matrix:
        """
        Assemble the global Jacobian, including off-diagonal blocks for every
        coupled nonlinear variable.

        Returns:
            (n_eq, n_eq) Jacobian in CSR format.
        """
        values, dots = self._global_fields(state)
        rows: list[npt.NDArray[np.int64]] = []
        cols: list[npt.NDArray[np.int64]] = []
        data: list[npt.NDArray[np.float64]] = []

        def work(items: list[_WorkItem]) -> None:
            local_rows: list[npt.NDArray[np.int64]] = []
            local_cols: list[npt.NDArray[np.int64]] = []
            local_data: list[npt.NDArray[np.float64]] = []

            for item in items:
                accessors = self._accessors(item, values, dots, state.du_dot_du)
                for obj in item.objects:
                    fields = accessors[obj.variable]
                    row_dofs = self.dofs(item.element, obj.variable)

                    coupled = [obj.variable] + [
                        self.system.name(n) for n in sorted(obj.coupled_variable_numbers)
                        if self.system.name(n) in self._var_index
                    ]
                    for jname in coupled:
                        ke = obj.evaluate_off_diag_jacobian(fields, self.system.number(jname))
                        col_dofs = self.dofs(item.element, jname)
                        # COO tolerates duplicates; .tocsr() sums them
                        local_rows.append(np.repeat(row_dofs, col_dofs.size))
                        local_cols.append(np.tile(col_dofs, row_dofs.size))
                        local_data.append(ke.ravel(order="C"))

            with self._lock:
                rows.extend(local_rows)
                cols.extend(local_cols)
                data.extend(local_data)

        self._run(work, self._chunks())

        if not data:
            return sp.sparse.csr_matrix((self.neq, self.neq), dtype=np.float64)

        return sp.sparse.coo_matrix(
            (np.concatenate(data), (np.concatenate(rows), np.concatenate(cols))),
            shape=(self.neq, self.neq),
            dtype=np.float64,
        ).tocsr()
