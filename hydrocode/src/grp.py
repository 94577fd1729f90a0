"""
Generalized Riemann Problem (GRP) solvers, acoustic linearization.

Given piecewise linear data (face states plus slopes) the GRP returns the
Riemann solution at the face together with its time derivative. The
Riemann invariants p + Z u and p - Z u are transported along u + c and
u - c with the impedances of the star state, Z_K = rho*_K c*_K, which gives

    p_t + Z_L u_t = d_L
    p_t - Z_R u_t = d_R

for the pressure and velocity derivatives; density follows from entropy
transport along the contact. Where the face does not lie in the star region
(supersonic flow, or inside a sonic rarefaction) the quasi-linear form
-A(W0) W' of the upwind side is used instead.

Optional couplings:
- geom: log-area derivative A'/A per face (radial symmetry: (M-1)/r),
  adding -rho c^2 u A'/A to the pressure and density rates
- transverse slopes (2D): the upwind side adds -B(W0) W_y
"""

from typing import NamedTuple, Optional, Tuple

import numpy as np

from .riemann import StarState, exact_star_state, sample_interface, star_densities
from .state import RHO, U, P, PASSIVE, sound_speed, quasilinear_rate, transverse_rate


class GRPResult(NamedTuple):
    """Face value at t_n and its time derivative (Eulerian frame)."""
    W: np.ndarray
    Wt: np.ndarray
    star: StarState


class LagrangianGRPResult(NamedTuple):
    """Contact values and their material derivatives (Lagrangian frame)."""
    u_star: np.ndarray
    p_star: np.ndarray
    rho_star_left: np.ndarray
    rho_star_right: np.ndarray
    du_dt: np.ndarray
    dp_dt: np.ndarray
    drho_left_dt: np.ndarray
    drho_right_dt: np.ndarray
    star: StarState


def _acoustic_system(d_L, d_R, Z_L, Z_R):
    """Solve p_t + Z_L u_t = d_L, p_t - Z_R u_t = d_R."""
    Z_sum = Z_L + Z_R
    u_t = (d_L - d_R) / Z_sum
    p_t = (Z_R * d_L + Z_L * d_R) / Z_sum
    return u_t, p_t


def _star_sound_speeds(WL, WR, star, gamma_L, gamma_R):
    rho_L, rho_R = star_densities(WL, WR, star, gamma_L, gamma_R)
    c_L = np.sqrt(gamma_L * star.p_star / rho_L)
    c_R = np.sqrt(gamma_R * star.p_star / rho_R)
    return rho_L, rho_R, c_L, c_R


def grp_eulerian(WL: np.ndarray, WR: np.ndarray, SL: np.ndarray, SR: np.ndarray,
                 gamma_L, gamma_R, eps: float = 1e-9, tol: float = 1e-9,
                 n_iter: int = 100, geom: Optional[np.ndarray] = None,
                 transverse: Optional[Tuple[np.ndarray, np.ndarray]] = None,
                 n_tangential: int = 0) -> GRPResult:
    """
    GRP at fixed faces.

    Args:
        WL, WR: Left/right primitive face states (n_vars, n_faces)
        SL, SR: Normal slopes of the left and right cells (n_vars, n_faces)
        gamma_L, gamma_R: Adiabatic index of each side
        eps, tol, n_iter: Riemann solver parameters
        geom: Optional A'/A per face
        transverse: Optional (TL, TR) slopes along the face (2D)
        n_tangential: Number of tangential velocity rows

    Returns:
        GRPResult with W at the face and its time derivative Wt
    """
    gamma_L = np.broadcast_to(np.asarray(gamma_L, dtype=float), WL[U].shape)
    gamma_R = np.broadcast_to(np.asarray(gamma_R, dtype=float), WR[U].shape)
    star = exact_star_state(WL, WR, gamma_L, gamma_R, eps, tol, n_iter)
    W0 = sample_interface(WL, WR, star, gamma_L, gamma_R)
    u_s, p_s = star.u_star, star.p_star
    g = np.zeros_like(u_s) if geom is None else geom

    with np.errstate(divide='ignore', invalid='ignore'):
        rho_sL, rho_sR, c_sL, c_sR = _star_sound_speeds(WL, WR, star, gamma_L, gamma_R)
        Z_L = rho_sL * c_sL
        Z_R = rho_sR * c_sR

        # Characteristic equations linearized about the star state
        src_L = Z_L * c_sL * u_s * g
        src_R = Z_R * c_sR * u_s * g
        d_L = -(u_s + c_sL) * (SL[P] + Z_L * SL[U]) - src_L
        d_R = -(u_s - c_sR) * (SR[P] - Z_R * SR[U]) - src_R
        u_t, p_t = _acoustic_system(d_L, d_R, Z_L, Z_R)

        from_left = u_s >= 0
        S_up = np.where(from_left, SL, SR)
        W_up = np.where(from_left, WL, WR)
        c2_up = sound_speed(W_up, np.where(from_left, gamma_L, gamma_R))**2
        c2_star = np.where(from_left, c_sL, c_sR)**2
        rho_t = (p_t + u_s * (S_up[P] - c2_up * S_up[RHO])) / c2_star

        Wt_star = np.empty_like(W0)
        Wt_star[RHO], Wt_star[U], Wt_star[P] = rho_t, u_t, p_t
        Wt_star[PASSIVE:] = -u_s * S_up[PASSIVE:]

        # Faces outside the star region take the upwind quasi-linear rate
        gamma_0 = np.where(from_left, gamma_L, gamma_R)
        Wt_smooth = quasilinear_rate(W0, S_up, gamma_0, geom, n_tangential)

    trail_L = np.where(star.crw_left, u_s - c_sL,
                       WL[U] - sound_speed(WL, gamma_L) *
                       np.sqrt((gamma_L + 1.0) / (2.0 * gamma_L) * p_s / WL[P] +
                               (gamma_L - 1.0) / (2.0 * gamma_L)))
    trail_R = np.where(star.crw_right, u_s + c_sR,
                       WR[U] + sound_speed(WR, gamma_R) *
                       np.sqrt((gamma_R + 1.0) / (2.0 * gamma_R) * p_s / WR[P] +
                               (gamma_R - 1.0) / (2.0 * gamma_R)))
    in_star = np.where(from_left, trail_L < 0, trail_R > 0)
    Wt = np.where(in_star, Wt_star, Wt_smooth)

    if transverse is not None:
        TL, TR = transverse
        T_up = np.where(from_left, TL, TR)
        Wt = Wt + transverse_rate(W0, T_up, gamma_0)

    return GRPResult(W=W0, Wt=Wt, star=star)


def grp_lagrangian(WL: np.ndarray, WR: np.ndarray, SL: np.ndarray, SR: np.ndarray,
                   gamma_L, gamma_R, eps: float = 1e-9, tol: float = 1e-9,
                   n_iter: int = 100,
                   geom: Optional[np.ndarray] = None) -> LagrangianGRPResult:
    """
    GRP following the contact (Lagrangian and radial frames).

    The characteristics move at c*_L and c*_R relative to the contact, so

        d_L = -c*_L (p'_L + Z_L u'_L) - rho c^2 u g
        d_R =  c*_R (p'_R - Z_R u'_R) - rho c^2 u g

    Returns:
        LagrangianGRPResult with star values and material derivatives
    """
    gamma_L = np.broadcast_to(np.asarray(gamma_L, dtype=float), WL[U].shape)
    gamma_R = np.broadcast_to(np.asarray(gamma_R, dtype=float), WR[U].shape)
    star = exact_star_state(WL, WR, gamma_L, gamma_R, eps, tol, n_iter)
    u_s = star.u_star
    g = np.zeros_like(u_s) if geom is None else geom

    with np.errstate(divide='ignore', invalid='ignore'):
        rho_sL, rho_sR, c_sL, c_sR = _star_sound_speeds(WL, WR, star, gamma_L, gamma_R)
        Z_L = rho_sL * c_sL
        Z_R = rho_sR * c_sR
        d_L = -c_sL * (SL[P] + Z_L * SL[U]) - Z_L * c_sL * u_s * g
        d_R = c_sR * (SR[P] - Z_R * SR[U]) - Z_R * c_sR * u_s * g
        du_dt, dp_dt = _acoustic_system(d_L, d_R, Z_L, Z_R)
        drho_L = dp_dt / c_sL**2
        drho_R = dp_dt / c_sR**2

    return LagrangianGRPResult(u_star=u_s, p_star=star.p_star,
                               rho_star_left=rho_sL, rho_star_right=rho_sR,
                               du_dt=du_dt, dp_dt=dp_dt,
                               drho_left_dt=drho_L, drho_right_dt=drho_R,
                               star=star)
