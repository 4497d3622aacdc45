"""Enable float64 in JAX before any physics array is created."""

import jax
import jax.numpy as jnp

jax.config.update("jax_enable_x64", True)

__all__ = ['jax', 'jnp']
