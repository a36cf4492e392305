from thermokernels.kernels.base import IntegratedBC, Kernel, ResidualObject
from thermokernels.kernels.heat_accumulation import HeatAccumulation
from thermokernels.kernels.heat_advection_conservative import HeatAdvectionConservative
from thermokernels.kernels.heat_conduction import HeatConduction
from thermokernels.kernels.heat_convection import HeatConvection
from thermokernels.kernels.heat_source import HeatSource
from thermokernels.kernels.time_derivative import CoefTimeDerivative

__all__ = [
    "IntegratedBC",
    "Kernel",
    "ResidualObject",
    "CoefTimeDerivative",
    "HeatAccumulation",
    "HeatAdvectionConservative",
    "HeatConduction",
    "HeatConvection",
    "HeatSource",
]
