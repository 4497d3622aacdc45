"""
Configuration schema for the turbulence discretization core.

Dataclass-based configuration that can be loaded from YAML or constructed programmatically.
"""

import math
from dataclasses import dataclass, field, asdict
from typing import Optional

from ..constants import FlowRegime, TurbulenceModel, get_primitive_layout


@dataclass
class FlowConfig:
    """Flow regime and free-stream reference values (non-dimensional)."""

    regime: str = "compressible"   # compressible | incompressible | freesurface
    n_dim: int = 2
    viscous: bool = True
    density_inf: float = 1.0
    viscosity_inf: float = 1.0e-5  # Incompressible/free-surface laminar viscosity
    pressure_inf: float = 1.0

    def layout(self):
        """Primitive layout for this regime and dimension."""
        return get_primitive_layout(self.regime, self.n_dim)


@dataclass
class GasConfig:
    """Equation of state and Sutherland law constants."""

    gamma: float = 1.4
    gas_constant: float = 1.0        # Non-dimensional R
    temperature_ref: float = 288.15  # K, T_dim = T * temperature_ref
    viscosity_ref: float = 1.0       # mu_nondim = mu_dim / viscosity_ref
    prandtl_lam: float = 0.72
    prandtl_turb: float = 0.9


@dataclass
class FreeSurfaceConfig:
    """Level-set free-surface settings (artificial compressibility)."""

    art_comp_factor: float = 1.0   # beta^2
    thickness: float = 0.1         # Smoothed Heaviside half-width
    ratio_density: float = 0.001   # Gas/liquid density ratio
    ratio_viscosity: float = 0.001 # Gas/liquid viscosity ratio


@dataclass
class SSTConstants:
    """Menter SST closure constants (inner set 1, outer set 2)."""

    sigma_k1: float = 0.85
    sigma_k2: float = 1.0
    sigma_om1: float = 0.5
    sigma_om2: float = 0.856
    beta_1: float = 0.075
    beta_2: float = 0.0828
    beta_star: float = 0.09
    a1: float = 0.31
    kappa: float = 0.41

    @property
    def alfa_1(self) -> float:
        return self.beta_1 / self.beta_star - self.sigma_om1 * self.kappa ** 2 / math.sqrt(self.beta_star)

    @property
    def alfa_2(self) -> float:
        return self.beta_2 / self.beta_star - self.sigma_om2 * self.kappa ** 2 / math.sqrt(self.beta_star)


@dataclass
class TurbulenceConfig:
    """Turbulence closure selection."""

    model: str = "sa"              # sa | sst
    transition: bool = False       # Scale SA sources by intermittency
    intermittency: float = 1.0
    sst: SSTConstants = field(default_factory=SSTConstants)

    def kind(self) -> TurbulenceModel:
        return TurbulenceModel(self.model)


@dataclass
class NumericsConfig:
    """Numerical scheme configuration."""

    implicit: bool = True            # Euler implicit: compute Jacobian blocks
    grid_movement: bool = False      # Subtract grid velocity in convective flux
    viscous_correction: bool = True  # Non-orthogonal edge correction of mean gradient


@dataclass
class TimeConfig:
    """Unsteady options that allocate optional per-point buffers."""

    dual_time: bool = False
    time_spectral: bool = False
    wind_gust: bool = False


@dataclass
class LoggingConfig:
    """Logging configuration."""

    level: str = "INFO"
    show_time: bool = True


@dataclass
class SimulationConfig:
    """Complete configuration."""

    flow: FlowConfig = field(default_factory=FlowConfig)
    gas: GasConfig = field(default_factory=GasConfig)
    free_surface: FreeSurfaceConfig = field(default_factory=FreeSurfaceConfig)
    turbulence: TurbulenceConfig = field(default_factory=TurbulenceConfig)
    numerics: NumericsConfig = field(default_factory=NumericsConfig)
    time: TimeConfig = field(default_factory=TimeConfig)
    logging: LoggingConfig = field(default_factory=LoggingConfig)

    def validate(self) -> "SimulationConfig":
        """Check enumerated fields; raises ValueError on bad values."""
        try:
            FlowRegime(self.flow.regime)
        except ValueError:
            raise ValueError(f"Unknown flow regime: {self.flow.regime!r}")
        try:
            self.turbulence.kind()
        except ValueError:
            raise ValueError(f"Unknown turbulence model: {self.turbulence.model!r}")
        if self.flow.n_dim not in (2, 3):
            raise ValueError(f"n_dim must be 2 or 3, got {self.flow.n_dim}")
        return self

    def to_dict(self) -> dict:
        """Convert to nested dictionary."""
        return asdict(self)


# Preset configurations
def sa_compressible_preset() -> SimulationConfig:
    """Compressible RANS with Spalart-Allmaras."""
    return SimulationConfig(
        flow=FlowConfig(regime="compressible"),
        turbulence=TurbulenceConfig(model="sa"),
    )


def sst_compressible_preset() -> SimulationConfig:
    """Compressible RANS with Menter SST."""
    return SimulationConfig(
        flow=FlowConfig(regime="compressible"),
        turbulence=TurbulenceConfig(model="sst"),
    )


def incompressible_preset(model: Optional[str] = "sa") -> SimulationConfig:
    """Artificial-compressibility incompressible RANS."""
    return SimulationConfig(
        flow=FlowConfig(regime="incompressible", density_inf=1.0, viscosity_inf=1.0e-5),
        turbulence=TurbulenceConfig(model=model),
    )
