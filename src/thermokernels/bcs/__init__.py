from thermokernels.bcs.thermal_fluid_flux_bc import ThermalFluidFluxBC

__all__ = ["ThermalFluidFluxBC"]
