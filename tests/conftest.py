"""
Shared pytest fixtures for the test suite.

Provides small elements, a variable system with the fields used by the
thermal kernels, and helpers to build field accessors and finite-difference
Jacobians.
"""
import logging

import numpy as np
import pytest

from thermokernels.fea import Line2, Node, Tri3
from thermokernels.fields import FieldAccessor, VariableSystem


# =============================================================================
# Elements
# =============================================================================

@pytest.fixture
def line_element():
    """Line2 element on [0.5, 2.5]."""
    return Line2(index=0, nodes=[Node(0, [0.5]), Node(1, [2.5])])


@pytest.fixture
def unit_line_element():
    """Line2 element on [0, 1]."""
    return Line2(index=0, nodes=[Node(0, [0.0]), Node(1, [1.0])])


@pytest.fixture
def tri_element():
    """A general (non right-angled) Tri3 element."""
    return Tri3(index=0, nodes=[Node(0, [0.0, 0.0]), Node(1, [1.0, 0.2]), Node(2, [0.3, 0.9])])


# =============================================================================
# Variables
# =============================================================================

AUX_FIELDS = (
    "conductivity",
    "volume_fraction",
    "htc",
    "specific_area",
    "density",
    "heat_capacity",
    "source",
    "vel_x",
    "vel_y",
    "vel_z",
    "outside_temperature",
)


@pytest.fixture
def system():
    """Two nonlinear temperatures plus every coupled property as an auxiliary field."""
    s = VariableSystem()
    s.add_variable("temperature")
    s.add_variable("fluid_temperature")
    for name in AUX_FIELDS:
        s.add_aux_variable(name)
    return s


@pytest.fixture
def tri_values():
    """Non-uniform nodal values on a Tri3 element for every field in ``system``."""
    return {
        "temperature": np.array([300.0, 320.0, 310.0]),
        "fluid_temperature": np.array([350.0, 345.0, 360.0]),
        "conductivity": np.array([1.5, 2.0, 1.2]),
        "volume_fraction": np.array([0.4, 0.5, 0.45]),
        "htc": np.array([10.0, 12.0, 11.0]),
        "specific_area": np.array([3.0, 3.5, 2.5]),
        "density": np.array([1000.0, 990.0, 1010.0]),
        "heat_capacity": np.array([4.0, 4.2, 3.9]),
        "source": np.array([5.0, -2.0, 7.0]),
        "vel_x": np.array([1.0, 1.2, 0.8]),
        "vel_y": np.array([0.5, 0.3, 0.6]),
        "vel_z": np.array([0.0, 0.0, 0.0]),
        "outside_temperature": np.array([290.0, 295.0, 285.0]),
    }


# =============================================================================
# Helpers
# =============================================================================

def _make_fields(element_or_qdata, variable, values, dots=None, du_dot_du=0.0):
    qdata = element_or_qdata.reinit() if hasattr(element_or_qdata, "reinit") else element_or_qdata
    return FieldAccessor(qdata, variable, values, dots, du_dot_du)


def _finite_difference(evaluate, values, name, eps=1e-6):
    """
    Central-difference derivative of ``evaluate(values)`` with respect to the
    nodal values of field ``name``.
    """
    base = {k: np.array(v, dtype=np.float64) for k, v in values.items()}
    columns = []
    for j in range(base[name].size):
        plus = {k: v.copy() for k, v in base.items()}
        minus = {k: v.copy() for k, v in base.items()}
        plus[name][j] += eps
        minus[name][j] -= eps
        columns.append((evaluate(plus) - evaluate(minus)) / (2.0 * eps))
    return np.column_stack(columns)


@pytest.fixture
def make_fields():
    """Factory ``make_fields(element, variable, values, dots=None, du_dot_du=0.0)``."""
    return _make_fields


@pytest.fixture
def finite_difference():
    """Factory ``finite_difference(evaluate, values, name, eps=1e-6)``."""
    return _finite_difference


@pytest.fixture
def kernel_logs(caplog):
    caplog.set_level(logging.WARNING, logger="thermokernels")
    return caplog
