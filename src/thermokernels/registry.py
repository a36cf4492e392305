from __future__ import annotations

from typing import TYPE_CHECKING, Any, Dict, Union

from thermokernels.errors import ConfigurationError

if TYPE_CHECKING:
    from thermokernels.fields import VariableSystem
    from thermokernels.kernels.base import ResidualObject
    from thermokernels.parameters import KernelParams

_REGISTRY: dict[str, type[ResidualObject]] = {}


def register_object(cls: type[ResidualObject]) -> type[ResidualObject]:
    """Class decorator to register a kernel or boundary condition under its class name."""
    key = cls.__name__
    if key in _REGISTRY and _REGISTRY[key] is not cls:
        raise ValueError(f"An object named '{key}' is already registered.")
    _REGISTRY[key] = cls
    return cls


def get_object_class(type_name: str) -> type[ResidualObject]:
    cls = _REGISTRY.get(type_name)
    if not cls:
        raise ConfigurationError(
            f"No object registered for type '{type_name}'. Registered: {list_objects()}"
        )
    return cls


def create_object(
    type_name: str,
    params: Union[Dict[str, Any], KernelParams],
    system: VariableSystem,
) -> ResidualObject:
    """
    Build a registered object from its type name.

    Args:
        type_name: Registered class name, e.g. ``"HeatConduction"``.
        params: Parameters as a dictionary (validated) or a parameters instance.
        system: Variable registry.
    """
    cls = get_object_class(type_name)
    if isinstance(params, dict):
        params = cls.params_class.from_dict(params)
    return cls(params, system)


def list_objects() -> list[str]:
    return sorted(_REGISTRY.keys())
