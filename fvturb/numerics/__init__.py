"""
Discretization of the turbulence transport equations.

This module provides:
- Edge geometry packing and the edge projection
- First-order upwind convection
- Averaged-gradient diffusion (plain and corrected)
- SA and SST point sources
- Operator dispatch by model and scatter helpers for assembly
"""

from .geometry import EdgeGeometry, edge_projection

from .gradients import (
    compute_vorticity,
    compute_strain_magnitude,
)

from .operators import (
    ConvectiveScalarOperator,
    ViscousEdgeOperator,
    SourceClosureOperator,
    TurbulenceNumerics,
    EdgeContribution,
    PointContribution,
    AssembledSystem,
    scatter_edge_residuals,
    scatter_edge_jacobian_diagonal,
)

__all__ = [
    # Geometry
    'EdgeGeometry',
    'edge_projection',
    # Gradients
    'compute_vorticity',
    'compute_strain_magnitude',
    # Operators
    'ConvectiveScalarOperator',
    'ViscousEdgeOperator',
    'SourceClosureOperator',
    'TurbulenceNumerics',
    'EdgeContribution',
    'PointContribution',
    'AssembledSystem',
    'scatter_edge_residuals',
    'scatter_edge_jacobian_diagonal',
]
