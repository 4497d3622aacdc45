"""
Load, merge and save simulation configurations.
"""

import yaml
from pathlib import Path
from typing import Dict, Any, Union
from dataclasses import fields, is_dataclass
from loguru import logger

from .schema import (
    SimulationConfig,
    sa_compressible_preset, sst_compressible_preset, incompressible_preset,
)


PRESETS = {
    'sa-compressible': sa_compressible_preset,
    'sst-compressible': sst_compressible_preset,
    'incompressible': incompressible_preset,
}


def _overlay(base: dict, overrides: dict) -> dict:
    """Return ``base`` with ``overrides`` laid over it, section by section."""
    merged = dict(base)
    for key, value in overrides.items():
        current = merged.get(key)
        merged[key] = _overlay(current, value) if isinstance(current, dict) and isinstance(value, dict) else value
    return merged


def _coerce_type(value, field_type):
    """Coerce a YAML scalar to the declared field type."""
    # PyYAML reads "1e-5" (no dot in the mantissa) as a string
    if isinstance(value, bool) or field_type not in (float, int):
        return value
    if isinstance(value, str) or (field_type is float and isinstance(value, int)):
        try:
            return field_type(value)
        except ValueError:
            return value
    return value


def _dict_to_dataclass(cls, data: dict):
    """Convert a nested dictionary to a dataclass instance."""
    if not is_dataclass(cls):
        return data

    defaults = cls()
    kwargs = {}
    known = {f.name: f.type for f in fields(cls)}

    for key, value in data.items():
        if key not in known:
            logger.warning(f"Ignoring unknown config key '{key}' in {cls.__name__}")
            continue

        default_value = getattr(defaults, key)
        if is_dataclass(default_value) and isinstance(value, dict):
            kwargs[key] = _dict_to_dataclass(type(default_value), value)
        else:
            kwargs[key] = _coerce_type(value, known[key])

    return cls(**kwargs)


def from_dict(data: Dict[str, Any]) -> SimulationConfig:
    """
    Create SimulationConfig from a dictionary.

    Handles nested structures and applies defaults for missing values.
    A ``preset`` key selects a base configuration that the remaining
    sections override.
    """
    data = dict(data)
    preset = data.pop('preset', None)
    if preset:
        if preset not in PRESETS:
            raise ValueError(f"Unknown preset {preset!r}; choose from {sorted(PRESETS)}")
        data = _overlay(PRESETS[preset]().to_dict(), data)

    return _dict_to_dataclass(SimulationConfig, data).validate()


def load_yaml(path: Union[str, Path]) -> SimulationConfig:
    """
    Read a YAML file into a validated SimulationConfig.

    An empty file yields the default configuration. Sections and keys left
    out keep their defaults; a top-level ``preset`` key selects the base.

    Raises
    ------
    FileNotFoundError
        If ``path`` does not exist.
    ValueError
        If the resulting configuration is inconsistent.
    """
    path = Path(path)
    if not path.is_file():
        raise FileNotFoundError(f"Configuration file not found: {path}")

    raw = yaml.safe_load(path.read_text()) or {}
    logger.info(f"Loaded configuration from {path}")
    return from_dict(raw)


CLI_OVERRIDES = {
    "model": ("turbulence", "model"),
    "regime": ("flow", "regime"),
    "implicit": ("numerics", "implicit"),
    "viscous_correction": ("numerics", "viscous_correction"),
    "transition": ("turbulence", "transition"),
    "intermittency": ("turbulence", "intermittency"),
    "log_level": ("logging", "level"),
}


def apply_cli_overrides(config: SimulationConfig, args) -> SimulationConfig:
    """
    Lay argparse values over ``config``.

    ``CLI_OVERRIDES`` maps attribute names of ``args`` to config sections;
    missing attributes and None values leave the section untouched. The
    result is a new, validated configuration.
    """
    data = config.to_dict()
    for name, (section, key) in CLI_OVERRIDES.items():
        value = getattr(args, name, None)
        if value is not None:
            data[section][key] = value
    return from_dict(data)


def save_yaml(config: SimulationConfig, path: Union[str, Path]) -> None:
    """Write ``config`` as YAML, creating parent directories."""
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(yaml.safe_dump(config.to_dict(), default_flow_style=False, sort_keys=False))
