"""
Edge geometry of the dual mesh.

Each edge (i, j) carries the endpoint coordinates and the area-weighted
normal of the dual face separating the two control volumes, pointing from i
to j. Meshing and normal computation happen upstream; this module only packs
their output into the contiguous per-edge arrays the kernels read.
"""

from typing import NamedTuple, Optional

import numpy as np
from numba import njit


class EdgeGeometry(NamedTuple):
    """
    Per-edge geometry.

    Attributes
    ----------
    edges : ndarray (n_edges, 2) int64
        Endpoint point indices (i, j).
    coord_i, coord_j : ndarray (n_edges, n_dim)
    normal : ndarray (n_edges, n_dim)
        Area-weighted, pointing from i to j.
    grid_vel_i, grid_vel_j : ndarray (n_edges, n_dim) or None
        Grid velocities at the endpoints when the mesh moves.
    """
    edges: np.ndarray
    coord_i: np.ndarray
    coord_j: np.ndarray
    normal: np.ndarray
    grid_vel_i: Optional[np.ndarray] = None
    grid_vel_j: Optional[np.ndarray] = None

    @property
    def n_edges(self) -> int:
        return self.edges.shape[0]

    @property
    def n_dim(self) -> int:
        return self.normal.shape[1]

    @property
    def moving(self) -> bool:
        return self.grid_vel_i is not None

    @classmethod
    def from_points(cls, edges, coords, normals, grid_vel=None) -> "EdgeGeometry":
        """
        Gather endpoint data from per-point arrays.

        Parameters
        ----------
        edges : array_like (n_edges, 2)
            Point index pairs.
        coords : array_like (n_points, n_dim)
        normals : array_like (n_edges, n_dim)
        grid_vel : array_like (n_points, n_dim), optional
        """
        edges = np.ascontiguousarray(edges, dtype=np.int64)
        coords = np.asarray(coords, dtype=np.float64)
        normals = np.ascontiguousarray(normals, dtype=np.float64)

        if edges.ndim != 2 or edges.shape[1] != 2:
            raise ValueError(f"edges must have shape (n_edges, 2), got {edges.shape}")
        if normals.shape != (edges.shape[0], coords.shape[1]):
            raise ValueError(
                f"normals must have shape ({edges.shape[0]}, {coords.shape[1]}), got {normals.shape}"
            )
        if edges.size and (edges.min() < 0 or edges.max() >= coords.shape[0]):
            raise ValueError("edge endpoint index out of range")

        gv_i = gv_j = None
        if grid_vel is not None:
            grid_vel = np.asarray(grid_vel, dtype=np.float64)
            if grid_vel.shape != coords.shape:
                raise ValueError(f"grid_vel must have shape {coords.shape}, got {grid_vel.shape}")
            gv_i = np.ascontiguousarray(grid_vel[edges[:, 0]])
            gv_j = np.ascontiguousarray(grid_vel[edges[:, 1]])

        return cls(
            edges=edges,
            coord_i=np.ascontiguousarray(coords[edges[:, 0]]),
            coord_j=np.ascontiguousarray(coords[edges[:, 1]]),
            normal=normals,
            grid_vel_i=gv_i,
            grid_vel_j=gv_j,
        )


@njit(cache=True)
def edge_projection(coord_i, coord_j, normal):
    """
    (e·n)/|e|² with e = x_j - x_i; zero for a zero-length edge.
    """
    dist2 = 0.0
    proj = 0.0
    for d in range(normal.shape[0]):
        e = coord_j[d] - coord_i[d]
        dist2 += e * e
        proj += e * normal[d]
    if dist2 == 0.0:
        return 0.0
    return proj / dist2
