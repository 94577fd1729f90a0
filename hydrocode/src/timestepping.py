"""
Time step kernels of the finite volume schemes.

One call advances the cell states by one forward Euler step of length tau
in a given coordinate frame:

- Eulerian: fixed faces, U^{n+1} = U^n - tau/V (A_R F_R - A_L F_L) + area source
- Lagrangian (planar M = 1, cylindrical M = 2, spherical M = 3): fixed cell
  masses, nodes move with the mid-time contact velocity
- ALE: faces move with a fraction of the contact velocity and the flux is
  taken relative to the moving face

With the GRP (order 2, exact solver) the face values are advanced to
t_n + tau/2 before the flux is evaluated, and the face values at t_{n+1}
give the slopes retained for the next step.
"""

from dataclasses import dataclass
from typing import NamedTuple, Optional

import numpy as np

from .boundary import BoundaryCondition, GhostCell
from .config import SolverConfig
from .errors import CalculationError
from .flux import ExactGodunovFlux, FluxScheme
from .gas import GasProperties
from .grp import grp_eulerian, grp_lagrangian
from .mesh import Mesh1D
from .reconstruction import (extend, extended_widths, face_states, hancock_predictor,
                             limited_slopes, retained_slopes)
from .riemann import StarState, exact_star_state, sample_interface
from .state import (RHO, U, P, check_admissible, conservative_to_primitive,
                    physical_flux, primitive_to_conservative, sound_speed)


@dataclass
class InterfaceState:
    """
    Per-face data of one step.

    WL, WR: reconstructed states; SL, SR: slopes of the adjacent cells;
    W: resolved face value at t_n and Wt its time derivative (GRP only);
    F: flux; lambda_max: largest signal speed; W_next: face value at t_{n+1}.
    """
    WL: np.ndarray
    WR: np.ndarray
    SL: np.ndarray
    SR: np.ndarray
    F: np.ndarray
    lambda_max: np.ndarray
    W: Optional[np.ndarray] = None
    Wt: Optional[np.ndarray] = None
    W_next: Optional[np.ndarray] = None


class Reconstruction(NamedTuple):
    S: np.ndarray
    ghost_left: GhostCell
    ghost_right: GhostCell
    WL: np.ndarray
    WR: np.ndarray
    SL: np.ndarray
    SR: np.ndarray


class StepResult(NamedTuple):
    W: np.ndarray
    S: Optional[np.ndarray]
    x_faces: np.ndarray
    interfaces: InterfaceState


def reconstruct(W: np.ndarray, S_prev: Optional[np.ndarray], dx, config: SolverConfig,
                bc_left: BoundaryCondition, bc_right: BoundaryCondition,
                W0: np.ndarray = None, dx0=None) -> Reconstruction:
    """
    Ghost cells, limited slopes and face states of one step.

    The ghost states are resolved first, the slopes limited with them, and
    the ghosts resolved again to pick up their slopes.
    """
    zeros = np.zeros_like(W)
    if config.order == 1:
        S = zeros
    else:
        gl = bc_left.resolve(W, zeros, dx, 'left', W0, dx0)
        gr = bc_right.resolve(W, zeros, dx, 'right', W0, dx0)
        S = limited_slopes(W, dx, gl, gr, config.alpha, S_prev)
    ghost_left = bc_left.resolve(W, S, dx, 'left', W0, dx0)
    ghost_right = bc_right.resolve(W, S, dx, 'right', W0, dx0)
    WL, WR, SL, SR = face_states(W, S, dx, ghost_left, ghost_right)
    check_admissible(WL, config.eps, 'Reconstruction')
    check_admissible(WR, config.eps, 'Reconstruction')
    return Reconstruction(S, ghost_left, ghost_right, WL, WR, SL, SR)


def max_signal_rate(rec: Reconstruction, dx, gamma_L, gamma_R) -> float:
    """
    Largest (|u| + c) / h over both states of every face, h being the width
    of the cell the state was extrapolated from.
    """
    n = rec.WL.shape[-1] - 1
    h = extended_widths(dx, n, rec.ghost_left, rec.ghost_right)
    rate_L = (np.abs(rec.WL[U]) + sound_speed(rec.WL, gamma_L)) / h[:-1]
    rate_R = (np.abs(rec.WR[U]) + sound_speed(rec.WR, gamma_R)) / h[1:]
    return float(max(np.max(rate_L), np.max(rate_R)))


def compute_timestep(rec: Reconstruction, dx, gamma_L, gamma_R, cfl: float) -> float:
    """
    Compute time step based on the CFL condition.

    Args:
        rec: Reconstruction of the step (face states and ghost cells)
        dx: Cell widths
        gamma_L, gamma_R: Adiabatic index of the two states of each face
        cfl: CFL number

    Returns:
        tau = cfl * min over faces of h_K / (|u_K| + c_K), K = L, R
    """
    return cfl / max_signal_rate(rec, dx, gamma_L, gamma_R)


def side_gammas(gas: GasProperties, rec: Reconstruction, W: np.ndarray,
                n_tangential: int = 0):
    """Adiabatic index of the n + 2 extended cells and of both sides of each face."""
    gamma_ext = gas.cell_gamma(extend(W, rec.ghost_left.state, rec.ghost_right.state),
                               n_tangential)
    if np.ndim(gamma_ext) == 0:
        return gamma_ext, gamma_ext, gamma_ext
    return gamma_ext, gamma_ext[..., :-1], gamma_ext[..., 1:]


def check_star(star: StarState, eps: float):
    """Star pressure must be positive and finite."""
    bad = ~np.isfinite(star.p_star) | ~np.isfinite(star.u_star)
    if np.any(bad):
        raise CalculationError("NAN or INFinite error",
                               index=int(np.flatnonzero(bad)[0]), stage='STAR')
    if np.any(star.p_star < eps):
        raise CalculationError("<0.0 error",
                               index=int(np.flatnonzero(star.p_star < eps)[0]), stage='STAR')


def interface_fluxes(W: np.ndarray, rec: Reconstruction, gas: GasProperties,
                     config: SolverConfig, flux_scheme: FluxScheme, tau: float,
                     n_tangential: int = 0, geom: np.ndarray = None,
                     transverse=None) -> InterfaceState:
    """
    Fluxes at fixed faces from the GRP solver or from a flux scheme.

    Args:
        W: Cell states (n_vars, ..., n)
        rec: Reconstruction of this step
        geom: Optional A'/A per face for the GRP
        transverse: Optional (TL, TR) slopes along the faces for the GRP
    """
    gamma_ext, gamma_L, gamma_R = side_gammas(gas, rec, W, n_tangential)

    if config.uses_grp:
        res = grp_eulerian(rec.WL, rec.WR, rec.SL, rec.SR, gamma_L, gamma_R,
                           config.eps, config.tol, config.n_iter, geom=geom,
                           transverse=transverse, n_tangential=n_tangential)
        check_star(res.star, config.eps)
        W_mid = res.W + 0.5 * tau * res.Wt
        check_admissible(W_mid, config.eps, 'STAR')
        F = physical_flux(W_mid, gas.cell_gamma(W_mid, n_tangential), n_tangential)
        lam = FluxScheme.signal_speed(rec.WL, rec.WR, gamma_L, gamma_R)
        return InterfaceState(rec.WL, rec.WR, rec.SL, rec.SR, F, lam,
                              W=res.W, Wt=res.Wt, W_next=res.W + tau * res.Wt)

    WL, WR = rec.WL, rec.WR
    if config.order == 2:
        WL, WR = hancock_predictor(WL, WR, W, rec.S, rec.ghost_left, rec.ghost_right,
                                   tau, gamma_ext, n_tangential)
        check_admissible(WL, config.eps, 'Reconstruction')
        check_admissible(WR, config.eps, 'Reconstruction')
    if isinstance(flux_scheme, ExactGodunovFlux):
        star = flux_scheme.star_state(WL, WR, gamma_L, gamma_R)
        check_star(star, config.eps)
        F, lam = flux_scheme.flux_from_star(WL, WR, star, gamma_L, gamma_R)
    else:
        F, lam = flux_scheme.compute_flux_vectorized(WL, WR, gamma_L, gamma_R)
    return InterfaceState(WL, WR, rec.SL, rec.SR, F, lam)


def eulerian_step(W: np.ndarray, rec: Reconstruction, mesh: Mesh1D, gas: GasProperties,
                  config: SolverConfig, flux_scheme: FluxScheme,
                  tau: float) -> StepResult:
    """
    Forward Euler step on fixed faces.

    With M > 1 the faces carry the area r^(M-1) and the momentum equation
    the pressure-area source p dA.
    """
    geom = None if mesh.radial_dim == 1 else mesh.log_area_gradient(mesh.x_faces)
    iface = interface_fluxes(W, rec, gas, config, flux_scheme, tau, geom=geom)

    Uc = primitive_to_conservative(W, gas.cell_gamma(W))
    AF = iface.F * mesh.A_faces
    Uc_new = Uc - tau / mesh.vol * (AF[:, 1:] - AF[:, :-1])
    if mesh.radial_dim > 1:
        dA = mesh.A_faces[1:] - mesh.A_faces[:-1]
        Uc_new[1] += tau * W[P] * dA / mesh.vol

    W_new = conservative_to_primitive(Uc_new, gas)
    check_admissible(W_new, config.eps, 'Update')

    S_next = None
    if iface.W_next is not None:
        S_next = retained_slopes(iface.W_next, dx=mesh.dx)
    return StepResult(W_new, S_next, mesh.x_faces, iface)


def lagrangian_step(W: np.ndarray, rec: Reconstruction, mesh: Mesh1D, mass: np.ndarray,
                    gas: GasProperties, config: SolverConfig, tau: float) -> StepResult:
    """
    Forward Euler step in Lagrangian coordinates (planar or radial).

    Cell masses are fixed. With face areas A taken at the mid-time node
    positions and face values (u, p) at t_n + tau/2:

        m (u^{n+1} - u^n) = -tau (A_R p_R - A_L p_L) + tau p_mean (A_R - A_L)
        m (E^{n+1} - E^n) = -tau (A_R p_R u_R - A_L p_L u_L)

    Nodes move by tau u and the density is the mass over the new volume.
    """
    gamma_ext, gamma_L, gamma_R = side_gammas(gas, rec, W)
    geom = None if mesh.radial_dim == 1 else mesh.log_area_gradient(mesh.x_faces)

    if config.uses_grp:
        res = grp_lagrangian(rec.WL, rec.WR, rec.SL, rec.SR, gamma_L, gamma_R,
                             config.eps, config.tol, config.n_iter, geom=geom)
        star = res.star
        check_star(star, config.eps)
        u_face = res.u_star + 0.5 * tau * res.du_dt
        p_face = res.p_star + 0.5 * tau * res.dp_dt
    else:
        star = exact_star_state(rec.WL, rec.WR, gamma_L, gamma_R,
                                config.eps, config.tol, config.n_iter)
        check_star(star, config.eps)
        u_face, p_face = star.u_star, star.p_star

    x_mid = mesh.x_faces + 0.5 * tau * u_face
    x_new = mesh.x_faces + tau * u_face
    A = mesh.face_area(x_mid)
    p_mean = 0.5 * (p_face[:-1] + p_face[1:])

    gamma = gas.cell_gamma(W)
    E = W[P] / ((gamma - 1.0) * W[RHO]) + 0.5 * W[U]**2
    u_new = W[U] - tau / mass * ((A[1:] * p_face[1:] - A[:-1] * p_face[:-1])
                                 - p_mean * (A[1:] - A[:-1]))
    E_new = E - tau / mass * (A[1:] * p_face[1:] * u_face[1:] - A[:-1] * p_face[:-1] * u_face[:-1])

    vol_new = mesh.volume(x_new)
    if np.any(vol_new <= 0):
        raise CalculationError("Cell volume collapsed",
                               index=int(np.flatnonzero(vol_new <= 0)[0]), stage='Update')
    W_new = np.array(W, dtype=float)
    W_new[RHO] = mass / vol_new
    W_new[U] = u_new
    W_new[P] = (gamma - 1.0) * W_new[RHO] * (E_new - 0.5 * u_new**2)
    check_admissible(W_new, config.eps, 'Update')

    F = np.zeros_like(rec.WL)
    F[U] = p_face
    F[P] = p_face * u_face
    iface = InterfaceState(rec.WL, rec.WR, rec.SL, rec.SR, F,
                           FluxScheme.signal_speed(rec.WL, rec.WR, gamma_L, gamma_R))

    S_next = None
    if config.uses_grp:
        # Face values at t_{n+1}; density differs across the contact
        rho_L = res.rho_star_left + tau * res.drho_left_dt
        rho_R = res.rho_star_right + tau * res.drho_right_dt
        u_next = res.u_star + tau * res.du_dt
        p_next = res.p_star + tau * res.dp_dt
        dx_new = x_new[1:] - x_new[:-1]
        S_next = np.array(rec.S, dtype=float)
        S_next[RHO] = (rho_L[1:] - rho_R[:-1]) / dx_new
        S_next[U] = (u_next[1:] - u_next[:-1]) / dx_new
        S_next[P] = (p_next[1:] - p_next[:-1]) / dx_new
        iface.W = np.array([np.where(star.u_star >= 0, res.rho_star_left, res.rho_star_right),
                            res.u_star, res.p_star])
        iface.Wt = np.array([np.where(star.u_star >= 0, res.drho_left_dt, res.drho_right_dt),
                             res.du_dt, res.dp_dt])
    return StepResult(W_new, S_next, x_new, iface)


def ale_step(W: np.ndarray, rec: Reconstruction, mesh: Mesh1D, gas: GasProperties,
             config: SolverConfig, flux_scheme: FluxScheme, tau: float) -> StepResult:
    """
    Forward Euler step on faces moving with w = ale_weight * u_face.

    The flux through a moving face is F - w U; cell widths follow the nodes,
    so a uniform state stays uniform.
    """
    if config.uses_grp:
        iface = interface_fluxes(W, rec, gas, config, flux_scheme, tau)
        W_mid = iface.W + 0.5 * tau * iface.Wt
    else:
        # Godunov value of the face
        _, gamma_L, gamma_R = side_gammas(gas, rec, W)
        star = exact_star_state(rec.WL, rec.WR, gamma_L, gamma_R,
                                config.eps, config.tol, config.n_iter)
        check_star(star, config.eps)
        W_mid = sample_interface(rec.WL, rec.WR, star, gamma_L, gamma_R)
        iface = InterfaceState(rec.WL, rec.WR, rec.SL, rec.SR,
                               physical_flux(W_mid, gas.cell_gamma(W_mid)),
                               FluxScheme.signal_speed(rec.WL, rec.WR, gamma_L, gamma_R),
                               W=W_mid)
    w = config.ale_weight * W_mid[U]

    U_face = primitive_to_conservative(W_mid, gas.cell_gamma(W_mid))
    G = iface.F - w * U_face

    x_new = mesh.x_faces + tau * w
    dx_new = x_new[1:] - x_new[:-1]
    if np.any(dx_new <= 0):
        raise CalculationError("Cell volume collapsed",
                               index=int(np.flatnonzero(dx_new <= 0)[0]), stage='Update')
    Uc = primitive_to_conservative(W, gas.cell_gamma(W))
    Uc_new = (Uc * mesh.dx - tau * (G[:, 1:] - G[:, :-1])) / dx_new

    W_new = conservative_to_primitive(Uc_new, gas)
    check_admissible(W_new, config.eps, 'Update')
    iface.F = G

    S_next = None
    if iface.W_next is not None:
        S_next = retained_slopes(iface.W_next, dx=dx_new)
    return StepResult(W_new, S_next, x_new, iface)
