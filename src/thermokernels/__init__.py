"""
Finite-element kernels for nonlinear thermal transport: conduction, interphase
convection, heat accumulation, volumetric sources, conservative advection with
optional full upwinding and the matching thermal-fluid flux boundary condition.
"""
from thermokernels.errors import ConfigurationError, ConvergenceError, ThermoKernelsError
from thermokernels.fields import FieldAccessor, VariableSystem
from thermokernels.parameters import (
    CoefTimeDerivativeParams,
    HeatAccumulationParams,
    HeatAdvectionConservativeParams,
    HeatConductionParams,
    HeatConvectionParams,
    HeatSourceParams,
    ThermalFluidFluxBCParams,
    UpwindingType,
)
from thermokernels.kernels import (
    CoefTimeDerivative,
    HeatAccumulation,
    HeatAdvectionConservative,
    HeatConduction,
    HeatConvection,
    HeatSource,
)
from thermokernels.bcs import ThermalFluidFluxBC
from thermokernels.registry import create_object, list_objects, register_object
from thermokernels.assembly import Assembler, SystemState
from thermokernels.solver import Solver
from thermokernels.logging_config import setup_logging

__version__ = "0.1.0"

__all__ = [
    "ConfigurationError",
    "ConvergenceError",
    "ThermoKernelsError",
    "FieldAccessor",
    "VariableSystem",
    "CoefTimeDerivativeParams",
    "HeatAccumulationParams",
    "HeatAdvectionConservativeParams",
    "HeatConductionParams",
    "HeatConvectionParams",
    "HeatSourceParams",
    "ThermalFluidFluxBCParams",
    "UpwindingType",
    "CoefTimeDerivative",
    "HeatAccumulation",
    "HeatAdvectionConservative",
    "HeatConduction",
    "HeatConvection",
    "HeatSource",
    "ThermalFluidFluxBC",
    "create_object",
    "list_objects",
    "register_object",
    "Assembler",
    "SystemState",
    "Solver",
    "setup_logging",
]
