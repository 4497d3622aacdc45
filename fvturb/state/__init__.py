"""
Per-point solver state: flow primitives and turbulence fields.
"""

from .flow_state import FlowState, ReconstructionResult
from .turbulence_state import TurbulenceState

__all__ = [
    'FlowState',
    'ReconstructionResult',
    'TurbulenceState',
]
