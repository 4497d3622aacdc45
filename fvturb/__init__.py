"""
fvturb: edge-based turbulence transport operators and flow-state core for
finite-volume RANS solvers.
"""

__version__ = "0.1.0"
