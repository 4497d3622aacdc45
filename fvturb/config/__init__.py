"""
Configuration module for the turbulence discretization core.

Provides YAML-based configuration with dataclass schema.
"""

from .schema import (
    SimulationConfig,
    FlowConfig,
    GasConfig,
    FreeSurfaceConfig,
    SSTConstants,
    TurbulenceConfig,
    NumericsConfig,
    TimeConfig,
    LoggingConfig,
    sa_compressible_preset,
    sst_compressible_preset,
    incompressible_preset,
)

from .loader import (
    load_yaml,
    from_dict,
    save_yaml,
    apply_cli_overrides,
)

__all__ = [
    # Schema classes
    'SimulationConfig',
    'FlowConfig',
    'GasConfig',
    'FreeSurfaceConfig',
    'SSTConstants',
    'TurbulenceConfig',
    'NumericsConfig',
    'TimeConfig',
    'LoggingConfig',
    # Presets
    'sa_compressible_preset',
    'sst_compressible_preset',
    'incompressible_preset',
    # Loader functions
    'load_yaml',
    'from_dict',
    'save_yaml',
    'apply_cli_overrides',
]
