"""
Unsplit 2D Eulerian solver on a uniform Cartesian mesh.

Cell states are stored as (4, n_x, n_y) primitive arrays with rows
[rho, u, p, v]. Each step sweeps the x faces and the y faces from the same
time level. A sweep works on a view of the state with the sweep direction
as last axis and the face-normal velocity in row 1:

    x sweep: rows [rho, u, p, v], shape (4, n_y, n_x)
    y sweep: rows [rho, v, p, u], shape (4, n_x, n_y)

so the 1D reconstruction, boundary and Riemann/GRP machinery applies
unchanged. With the GRP the tangential slopes of each cell add the
transverse terms to the face time derivatives.
"""

import logging
from typing import Dict, Union

import numpy as np

from .boundary import boundaries_from_code
from .config import Frame, SolverConfig
from .errors import ConfigurationError, InputError, ResourceError
from .flux import flux_scheme_for
from .gas import GasProperties
from .mesh import Mesh2D
from .reconstruction import extend, retained_slopes
from .solver import TimeMarchingSolver
from .state import (U, P, PASSIVE, FlowState, check_admissible, conservative_to_primitive,
                    primitive_to_conservative)
from .timestepping import Reconstruction, interface_fluxes, max_signal_rate, reconstruct

logger = logging.getLogger(__name__)

# Row permutation between the stored layout and the y-sweep layout (self-inverse)
_SWAP_UV = [0, PASSIVE, P, U]


def to_x_sweep(A: np.ndarray) -> np.ndarray:
    return A.transpose(0, 2, 1)


def from_x_sweep(A: np.ndarray) -> np.ndarray:
    return A.transpose(0, 2, 1)


def to_y_sweep(A: np.ndarray) -> np.ndarray:
    return A[_SWAP_UV]


def from_y_sweep(A: np.ndarray) -> np.ndarray:
    return A[_SWAP_UV]


def compute_timestep_2d(rec_x: Reconstruction, rec_y: Reconstruction, dx: float, dy: float,
                        gamma, cfl: float) -> float:
    """tau = cfl / (max over x faces of (|u| + c)/dx + max over y faces of (|v| + c)/dy)."""
    return cfl / (max_signal_rate(rec_x, dx, gamma, gamma) + max_signal_rate(rec_y, dy, gamma, gamma))


class Solver2D(TimeMarchingSolver):
    """2D Godunov/GRP solver (Eulerian frame, single fluid)."""

    def __init__(self, mesh: Mesh2D, gas: GasProperties, config: SolverConfig = None):
        super().__init__(gas, config)
        cfg = self.config
        if cfg.frame != Frame.EULERIAN:
            raise ConfigurationError(f"2D runs are Eulerian only, got {cfg.frame.name}")
        if gas.two_component:
            raise ConfigurationError("Two-component flow is only supported in 1D")
        self.mesh = mesh
        self.flux_scheme = flux_scheme_for(cfg, n_tangential=1)
        self.bc_x = boundaries_from_code(cfg.bound)
        self.bc_y = boundaries_from_code(cfg.bound_y)

        self.W = None
        self.W0 = None
        self.Sx = None
        self.Sy = None
        self.interfaces = None
        self._next = None

    def set_initial_condition(self, state: Union[FlowState, np.ndarray]):
        """Set the initial state, primitive rows [rho, u, p, v] of shape (4, n_x, n_y)."""
        W = state.W if isinstance(state, FlowState) else state
        W = np.asarray(W, dtype=float)
        if W.shape != (4,) + self.mesh.shape:
            raise InputError(f"Input unequal! state shape {W.shape}, mesh {self.mesh.shape}.")
        try:
            self.W = W.copy()
            self.W0 = W.copy()
            self._next = np.empty_like(W)
        except MemoryError as exc:
            raise ResourceError("NOT enough memory for the solution buffers") from exc
        self.Sx = None
        self.Sy = None
        self.time = 0.0
        self.iteration = 0

    def get_state(self) -> FlowState:
        return FlowState(self.W, self.gas, n_tangential=1)

    def _conservative(self) -> np.ndarray:
        return primitive_to_conservative(self.W, self.gas.gamma, 1)

    def _x_faces(self) -> np.ndarray:
        return self.mesh.x_faces

    def _transverse(self, T: np.ndarray, bcs):
        """Tangential slopes on both sides of each face of a sweep."""
        T_ext = extend(T, bcs[0].transverse(T, 'left'), bcs[1].transverse(T, 'right'))
        return T_ext[..., :-1], T_ext[..., 1:]

    def step(self) -> float:
        cfg = self.config
        mesh = self.mesh
        gas = self.gas

        Wx, Wy = to_x_sweep(self.W), to_y_sweep(self.W)
        rec_x = reconstruct(Wx, self.Sx, mesh.dx, cfg, *self.bc_x, to_x_sweep(self.W0), mesh.dx)
        rec_y = reconstruct(Wy, self.Sy, mesh.dy, cfg, *self.bc_y, to_y_sweep(self.W0), mesh.dy)
        tau = self.select_timestep(
            compute_timestep_2d(rec_x, rec_y, mesh.dx, mesh.dy, gas.gamma, cfg.cfl))

        trans_x = trans_y = None
        if cfg.uses_grp and cfg.transverse:
            # d/dy slopes seen from the x faces and d/dx slopes seen from the y faces
            trans_x = self._transverse(to_x_sweep(from_y_sweep(rec_y.S)), self.bc_x)
            trans_y = self._transverse(to_y_sweep(from_x_sweep(rec_x.S)), self.bc_y)

        iface_x = interface_fluxes(Wx, rec_x, gas, cfg, self.flux_scheme, tau,
                                   n_tangential=1, transverse=trans_x)
        iface_y = interface_fluxes(Wy, rec_y, gas, cfg, self.flux_scheme, tau,
                                   n_tangential=1, transverse=trans_y)
        Fx = from_x_sweep(iface_x.F)
        Fy = from_y_sweep(iface_y.F)

        Uc = self._conservative()
        Uc_new = (Uc - tau / mesh.dx * (Fx[:, 1:, :] - Fx[:, :-1, :])
                  - tau / mesh.dy * (Fy[:, :, 1:] - Fy[:, :, :-1]))
        W_new = conservative_to_primitive(Uc_new, gas, n_tangential=1)
        check_admissible(W_new, cfg.eps, 'Update')

        np.copyto(self._next, W_new)
        self.W, self._next = self._next, self.W
        if iface_x.W_next is not None:
            self.Sx = retained_slopes(iface_x.W_next, dx=mesh.dx)
            self.Sy = retained_slopes(iface_y.W_next, dx=mesh.dy)
        self.interfaces = (iface_x, iface_y)

        self.time += tau
        self.iteration += 1
        self.tau = tau
        return tau

    def solve(self, max_time: float = None) -> Dict:
        if self.W is None:
            raise ConfigurationError("Initial condition must be set before solving")
        cfg = self.config
        logger.info("2D EULERIAN solver, %s scheme of order %d",
                    'GRP' if cfg.uses_grp else cfg.scheme, cfg.order)
        logger.info("Cells: %d x %d, CFL: %g, boundaries x: %s / %s, y: %s / %s",
                    self.mesh.n_x, self.mesh.n_y, cfg.cfl,
                    self.bc_x[0].kind.value, self.bc_x[1].kind.value,
                    self.bc_y[0].kind.value, self.bc_y[1].kind.value)
        return super().solve(max_time)
