"""
Exception hierarchy for the kernel library.
"""


class ThermoKernelsError(Exception):
    """Base class for all errors raised by thermokernels."""


class ConfigurationError(ThermoKernelsError):
    """Raised when kernel parameters or variable couplings are invalid."""


class ConvergenceError(ThermoKernelsError):
    """Raised when the Newton driver fails to reduce the residual."""
