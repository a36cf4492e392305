"""
Kernel Parameters
=================
Declarations of the configuration surface of every kernel.

Each kernel owns one parameters dataclass. Fields tagged ``coupled`` name a
coupled field (variable name) or give a numeric constant in its place;
fields without a default are required.
"""
from __future__ import annotations

from dataclasses import MISSING, asdict, dataclass, field, fields
from enum import StrEnum
from numbers import Real
from typing import Any, ClassVar, Dict, List

from thermokernels.errors import ConfigurationError
from thermokernels.fields import CoupledVar


class UpwindingType(StrEnum):
    NONE = "none"
    FULL = "full"


def coupled(doc: str, default: Any = MISSING) -> Any:
    """Declare a coupled field, required unless a default is given."""
    return field(default=default, metadata={"coupled": True, "doc": doc})


@dataclass(kw_only=True)
class KernelParams:
    """
    Base class for kernel parameters.

    Attributes:
        variable: Name of the variable the kernel acts on.
    """
    variable: str

    description: ClassVar[str] = ""

    def __post_init__(self) -> None:
        if not isinstance(self.variable, str) or not self.variable:
            raise ConfigurationError(f"{type(self).__name__}: 'variable' must be a non-empty string.")

        for f in fields(self):
            if not f.metadata.get("coupled"):
                continue
            value = getattr(self, f.name)
            if isinstance(value, str):
                if not value:
                    raise ConfigurationError(f"{type(self).__name__}: '{f.name}' must not be empty.")
            elif isinstance(value, Real) and not isinstance(value, bool):
                setattr(self, f.name, float(value))
            else:
                raise ConfigurationError(
                    f"{type(self).__name__}: '{f.name}' must be a variable name or a number, got {value!r}."
                )

    def coupled_vars(self) -> Dict[str, CoupledVar]:
        """Mapping of coupled parameter name to the field it refers to."""
        return {f.name: getattr(self, f.name) for f in fields(self) if f.metadata.get("coupled")}

    @classmethod
    def required_parameters(cls) -> List[str]:
        return [
            f.name for f in fields(cls)
            if f.default is MISSING and f.default_factory is MISSING
        ]

    @classmethod
    def parameter_docs(cls) -> Dict[str, str]:
        return {f.name: f.metadata.get("doc", "") for f in fields(cls)}

    def to_dict(self) -> Dict[str, Any]:
        d = asdict(self)
        for key, value in d.items():
            if isinstance(value, StrEnum):
                d[key] = value.value
        return d

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> KernelParams:
        """
        Build and validate parameters from a plain dictionary.

        Raises:
            ConfigurationError: On unknown keys, missing required keys or invalid values.
        """
        known = {f.name for f in fields(cls)}
        unknown = sorted(set(data) - known)
        if unknown:
            raise ConfigurationError(f"{cls.__name__}: unknown parameter(s) {unknown}.")

        missing = [name for name in cls.required_parameters() if name not in data]
        if missing:
            raise ConfigurationError(f"{cls.__name__}: missing required parameter(s) {missing}.")

        return cls(**data)


@dataclass(kw_only=True)
class HeatConductionParams(KernelParams):
    description: ClassVar[str] = "Heat conduction: fv * K * grad_test . grad_u"

    thermal_conductivity: CoupledVar = coupled("Name of the thermal conductivity variable (W/m/K)")
    volume_frac: CoupledVar = coupled("Variable for volume fraction (solid volume / total volume) (-)", 1.0)


@dataclass(kw_only=True)
class HeatConvectionParams(KernelParams):
    description: ClassVar[str] = "Interphase convective exchange: test * h * A * fv * (T - T_other)"

    convection_coeff: CoupledVar = coupled("Variable for heat transfer coefficient (W/m^2/K)")
    coupled_temperature: CoupledVar = coupled("Variable for the other phase temperature (K)")
    specific_area: CoupledVar = coupled(
        "Specific area for transfer [surface area of solids / volume solids] (m^-1)"
    )
    volume_frac: CoupledVar = coupled("Variable for volume fraction (solid volume / total volume) (-)", 1.0)


@dataclass(kw_only=True)
class CoefTimeDerivativeParams(KernelParams):
    description: ClassVar[str] = "Time derivative scaled by a constant: coefficient * test * du/dt"

    coefficient: float = field(default=1.0, metadata={"doc": "Coefficient of the time derivative"})

    def __post_init__(self) -> None:
        super().__post_init__()
        if isinstance(self.coefficient, bool) or not isinstance(self.coefficient, Real):
            raise ConfigurationError(f"{type(self).__name__}: 'coefficient' must be a number.")
        self.coefficient = float(self.coefficient)


@dataclass(kw_only=True)
class HeatAccumulationParams(KernelParams):
    description: ClassVar[str] = "Heat accumulation: test * fv * rho * cp * dT/dt"

    density: CoupledVar = coupled("The name of the density variable for the material (kg/m^3)")
    heat_capacity: CoupledVar = coupled("The name of the heat capacity variable for the material (J/kg/K)")
    volume_frac: CoupledVar = coupled("Variable for volume fraction (solid volume / total volume) (-)", 1.0)


@dataclass(kw_only=True)
class HeatSourceParams(KernelParams):
    description: ClassVar[str] = "Volumetric heat source or sink: -test * source"

    coupled_source: CoupledVar = coupled("Name of the coupled heat source variable (W/m^3)")


@dataclass(kw_only=True)
class _ThermalFluidParams(KernelParams):
    density: CoupledVar = coupled("The name of the density variable for the material (kg/m^3)")
    heat_capacity: CoupledVar = coupled("The name of the heat capacity variable for the material (J/kg/K)")
    vel_x: CoupledVar = coupled("Variable for velocity in x-direction (m/s)")
    vel_y: CoupledVar = coupled("Variable for velocity in y-direction (m/s)")
    vel_z: CoupledVar = coupled("Variable for velocity in z-direction (m/s)")
    volume_frac: CoupledVar = coupled("Variable for volume fraction (solid volume / total volume) (-)", 1.0)


@dataclass(kw_only=True)
class HeatAdvectionConservativeParams(_ThermalFluidParams):
    description: ClassVar[str] = (
        "Conservative heat advection: -grad_test . vel * rho * cp * fv * T. "
        "Must be paired with ThermalFluidFluxBC on open boundaries."
    )

    upwinding_type: UpwindingType = field(
        default=UpwindingType.NONE,
        metadata={
            "doc": "Type of upwinding used. None: typically results in overshoots and undershoots, "
                   "but numerical diffusion is minimized. Full: overshoots and undershoots are "
                   "avoided, but numerical diffusion is large"
        },
    )

    def __post_init__(self) -> None:
        super().__post_init__()
        try:
            self.upwinding_type = UpwindingType(self.upwinding_type)
        except ValueError:
            raise ConfigurationError(
                f"{type(self).__name__}: unrecognized upwinding_type {self.upwinding_type!r}. "
                f"Valid values: {[u.value for u in UpwindingType]}"
            ) from None


@dataclass(kw_only=True)
class ThermalFluidFluxBCParams(_ThermalFluidParams):
    description: ClassVar[str] = "Upwind thermal fluid flux across a boundary"

    boundary: List[str] = field(
        metadata={"doc": "Names of the boundaries the condition applies to"},
    )
    outside_temperature: CoupledVar = coupled("Variable for the temperature outside the boundary (K)")

    def __post_init__(self) -> None:
        super().__post_init__()
        if isinstance(self.boundary, str):
            self.boundary = [self.boundary]
        if not self.boundary or not all(isinstance(b, str) and b for b in self.boundary):
            raise ConfigurationError(
                f"{type(self).__name__}: 'boundary' must list at least one boundary name."
            )
        self.boundary = list(self.boundary)
