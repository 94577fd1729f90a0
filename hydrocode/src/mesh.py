"""
Meshes for the finite volume solvers.

Mesh1D holds ordered node coordinates (fixed in the Eulerian frame, moved by
the Lagrangian, ALE and radial frames). With radial index M the face area is
r^(M-1) and the cell volume (r_R^M - r_L^M)/M; M = 1 is planar geometry.
"""

import numpy as np
from dataclasses import dataclass


@dataclass
class Mesh1D:
    """
    1D mesh on ordered nodes.

    - x_faces: Node (face) coordinates (n_cells + 1)
    - x_cells: Cell centres (n_cells)
    - dx: Cell widths (n_cells)
    - A_faces: Face areas r^(M-1) (n_cells + 1)
    - vol: Cell volumes (n_cells)
    """
    x_faces: np.ndarray
    radial_dim: int = 1

    def __post_init__(self):
        self.x_faces = np.asarray(self.x_faces, dtype=float)
        self._update()

    def _update(self):
        self.n_cells = len(self.x_faces) - 1
        self.x_cells = 0.5 * (self.x_faces[:-1] + self.x_faces[1:])
        self.dx = self.x_faces[1:] - self.x_faces[:-1]
        self.A_faces = self.face_area(self.x_faces)
        self.vol = self.volume(self.x_faces)

    def face_area(self, x: np.ndarray) -> np.ndarray:
        """Area r^(M-1) of faces at radii x."""
        if self.radial_dim == 1:
            return np.ones_like(x)
        return np.abs(x)**(self.radial_dim - 1)

    def volume(self, x_faces: np.ndarray) -> np.ndarray:
        """Cell volumes of the cells spanned by the nodes x_faces."""
        if self.radial_dim == 1:
            return x_faces[1:] - x_faces[:-1]
        M = self.radial_dim
        return (x_faces[1:]**M - x_faces[:-1]**M) / M

    def log_area_gradient(self, x: np.ndarray) -> np.ndarray:
        """Geometric source coefficient A'/A = (M-1)/r (zero in planar geometry)."""
        if self.radial_dim == 1:
            return np.zeros_like(x)
        with np.errstate(divide='ignore'):
            g = (self.radial_dim - 1) / x
        return np.where(np.abs(x) > 0, g, 0.0)

    def move(self, x_faces: np.ndarray):
        """Move the nodes and recompute the derived geometry."""
        self.x_faces = np.asarray(x_faces, dtype=float)
        self._update()

    def copy(self) -> 'Mesh1D':
        return Mesh1D(self.x_faces.copy(), self.radial_dim)

    @classmethod
    def uniform(cls, x_min: float, x_max: float, n_cells: int,
                radial_dim: int = 1) -> 'Mesh1D':
        """
        Create a uniform mesh.

        Args:
            x_min, x_max: Domain bounds (inner and outer radius for M > 1)
            n_cells: Number of cells
            radial_dim: M, 1 planar, 2 cylindrical, 3 spherical
        """
        return cls(np.linspace(x_min, x_max, n_cells + 1), radial_dim)


@dataclass
class Mesh2D:
    """
    Uniform Cartesian mesh of n_x by n_y cells.

    Cell arrays are indexed [i, j] with i along x and j along y.
    """
    n_x: int
    n_y: int
    dx: float
    dy: float
    x_min: float = 0.0
    y_min: float = 0.0

    def __post_init__(self):
        self.x_faces = self.x_min + self.dx * np.arange(self.n_x + 1)
        self.y_faces = self.y_min + self.dy * np.arange(self.n_y + 1)
        self.x_cells = 0.5 * (self.x_faces[:-1] + self.x_faces[1:])
        self.y_cells = 0.5 * (self.y_faces[:-1] + self.y_faces[1:])

    @property
    def shape(self):
        return (self.n_x, self.n_y)

    @property
    def cell_area(self) -> float:
        return self.dx * self.dy
