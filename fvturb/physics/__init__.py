"""
Closure and thermodynamic models.

- Ideal-gas equation of state and Sutherland viscosity (Numba scalars)
- Spalart-Allmaras closure functions with analytical derivatives
- Menter SST blending functions and eddy viscosity (JAX)
"""
