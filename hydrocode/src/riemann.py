"""
Exact Riemann solver for the Euler equations of a perfect gas.

Vectorized over faces: WL and WR are primitive arrays (n_vars, n_faces) and
the adiabatic index may differ between the two sides of each face
(two-component flow). The star pressure is found with Newton-Raphson
iteration on

    f_L(p) + f_R(p) + u_R - u_L = 0

where f_K is the Rankine-Hugoniot shock relation for p > p_K and the
isentropic rarefaction relation otherwise (Toro, chapter 4).
"""

from typing import NamedTuple

import numpy as np

from .errors import RiemannConvergenceError
from .state import RHO, U, P, PASSIVE, sound_speed


class StarState(NamedTuple):
    """Solution of the Riemann problem in the star region, per face."""
    u_star: np.ndarray
    p_star: np.ndarray
    crw_left: np.ndarray     # Left wave is a centred rarefaction (p* <= p_L)
    crw_right: np.ndarray    # Right wave is a centred rarefaction (p* <= p_R)
    vacuum: np.ndarray       # Vacuum generated or present in the data


def wave_function(p, rho_k, p_k, c_k, gamma):
    """
    Pressure function f_K(p) and its derivative for one side.

    Returns:
        f, df: Arrays broadcast over faces
    """
    A = 2.0 / ((gamma + 1.0) * rho_k)
    B = (gamma - 1.0) / (gamma + 1.0) * p_k
    with np.errstate(divide='ignore', invalid='ignore'):
        # Shock branch
        root = np.sqrt(A / (p + B))
        f_shock = (p - p_k) * root
        df_shock = root * (1.0 - 0.5 * (p - p_k) / (p + B))
        # Rarefaction branch
        ratio = p / p_k
        f_raref = 2.0 * c_k / (gamma - 1.0) * (ratio**((gamma - 1.0) / (2.0 * gamma)) - 1.0)
        df_raref = ratio**(-(gamma + 1.0) / (2.0 * gamma)) / (rho_k * c_k)
    shock = p > p_k
    return np.where(shock, f_shock, f_raref), np.where(shock, df_shock, df_raref)


def initial_pressure_guess(WL, WR, cL, cR, gamma_L, gamma_R, eps):
    """
    Adaptive initial guess: PVRS where the pressure ratio is small,
    two-rarefaction below and two-shock above the data pressures.
    """
    rhoL, uL, pL = WL[RHO], WL[U], WL[P]
    rhoR, uR, pR = WR[RHO], WR[U], WR[P]
    du = uR - uL

    p_pv = 0.5 * (pL + pR) - 0.125 * du * (rhoL + rhoR) * (cL + cR)
    p_pv = np.maximum(p_pv, 0.0)
    p_min = np.minimum(pL, pR)
    p_max = np.maximum(pL, pR)

    gamma = 0.5 * (gamma_L + gamma_R)
    z = (gamma - 1.0) / (2.0 * gamma)
    with np.errstate(divide='ignore', invalid='ignore'):
        # Two-rarefaction approximation
        p_tr = ((cL + cR - 0.5 * (gamma - 1.0) * du) /
                (cL / pL**z + cR / pR**z))**(1.0 / z)
        # Two-shock approximation
        gL = np.sqrt(2.0 / ((gamma_L + 1.0) * rhoL) /
                     (p_pv + (gamma_L - 1.0) / (gamma_L + 1.0) * pL))
        gR = np.sqrt(2.0 / ((gamma_R + 1.0) * rhoR) /
                     (p_pv + (gamma_R - 1.0) / (gamma_R + 1.0) * pR))
        p_ts = (gL * pL + gR * pR - du) / (gL + gR)

    use_pv = (p_max / p_min <= 2.0) & (p_pv >= p_min) & (p_pv <= p_max)
    guess = np.where(use_pv, p_pv, np.where(p_pv < p_min, p_tr, p_ts))
    guess = np.where(np.isfinite(guess), guess, 0.5 * (pL + pR))
    return np.maximum(guess, eps)


def exact_star_state(WL: np.ndarray, WR: np.ndarray, gamma_L, gamma_R,
                     eps: float = 1e-9, tol: float = 1e-9,
                     n_iter: int = 100) -> StarState:
    """
    Star velocity and pressure of the Riemann problem at every face.

    Args:
        WL, WR: Left/right primitive states (n_vars, n_faces)
        gamma_L, gamma_R: Adiabatic index on each side (scalar or per face)
        eps: Density/pressure below which a side is treated as vacuum
        tol: Relative pressure change at which Newton iteration stops
        n_iter: Iteration limit

    Returns:
        StarState with per-face arrays

    Raises:
        RiemannConvergenceError: if a face has not converged after n_iter
    """
    rhoL, uL, pL = WL[RHO], WL[U], WL[P]
    rhoR, uR, pR = WR[RHO], WR[U], WR[P]
    gamma_L = np.broadcast_to(np.asarray(gamma_L, dtype=float), uL.shape)
    gamma_R = np.broadcast_to(np.asarray(gamma_R, dtype=float), uR.shape)
    with np.errstate(divide='ignore', invalid='ignore'):
        cL = sound_speed(WL, gamma_L)
        cR = sound_speed(WR, gamma_R)

    vacuum_left = (rhoL < eps) | (pL < eps)
    vacuum_right = (rhoR < eps) | (pR < eps)
    front_L = uL + 2.0 * cL / (gamma_L - 1.0)
    front_R = uR - 2.0 * cR / (gamma_R - 1.0)
    generated = ~vacuum_left & ~vacuum_right & (front_L <= front_R)
    vacuum = vacuum_left | vacuum_right | generated
    regular = ~vacuum

    p_star = np.zeros_like(uL, dtype=float)
    u_star = np.zeros_like(uL, dtype=float)

    if np.any(regular):
        WLr, WRr = WL[:, regular], WR[:, regular]
        cLr, cRr = cL[regular], cR[regular]
        gLr, gRr = gamma_L[regular], gamma_R[regular]
        du = uR[regular] - uL[regular]

        p = initial_pressure_guess(WLr, WRr, cLr, cRr, gLr, gRr, eps)
        active = np.ones_like(p, dtype=bool)
        for _ in range(n_iter):
            fL, dfL = wave_function(p, WLr[RHO], WLr[P], cLr, gLr)
            fR, dfR = wave_function(p, WRr[RHO], WRr[P], cRr, gRr)
            p_new = p - (fL + fR + du) / (dfL + dfR)
            p_new = np.where(active, np.maximum(p_new, eps), p)
            change = 2.0 * np.abs(p_new - p) / (p_new + p)
            p = p_new
            active &= ~(change < tol)
            if not np.any(active):
                break
        else:
            face = int(np.flatnonzero(regular)[np.argmax(active)])
            raise RiemannConvergenceError(
                f"Riemann solver did not converge in {n_iter} iterations",
                index=face, stage='STAR')

        fL, _ = wave_function(p, WLr[RHO], WLr[P], cLr, gLr)
        fR, _ = wave_function(p, WRr[RHO], WRr[P], cRr, gRr)
        p_star[regular] = p
        u_star[regular] = 0.5 * (uL[regular] + uR[regular]) + 0.5 * (fR - fL)

    # Velocity of the vacuum front(s); p* stays zero
    u_star = np.where(vacuum_left & ~vacuum_right, front_R, u_star)
    u_star = np.where(vacuum_right & ~vacuum_left, front_L, u_star)
    u_star = np.where(generated, 0.5 * (front_L + front_R), u_star)
    u_star = np.where(vacuum_left & vacuum_right, 0.5 * (uL + uR), u_star)

    return StarState(u_star=u_star, p_star=p_star,
                     crw_left=p_star <= pL, crw_right=p_star <= pR,
                     vacuum=vacuum)


def star_densities(WL: np.ndarray, WR: np.ndarray, star: StarState,
                   gamma_L, gamma_R):
    """
    Densities on the two sides of the contact in the star region.

    Shock sides follow the Hugoniot, rarefaction sides the isentrope.
    """
    with np.errstate(divide='ignore', invalid='ignore'):
        out = []
        for W, gamma, crw in ((WL, gamma_L, star.crw_left), (WR, gamma_R, star.crw_right)):
            ratio = star.p_star / W[P]
            mu = (gamma - 1.0) / (gamma + 1.0)
            rho_shock = W[RHO] * (ratio + mu) / (mu * ratio + 1.0)
            rho_raref = W[RHO] * ratio**(1.0 / gamma)
            out.append(np.where(crw, rho_raref, rho_shock))
    return out[0], out[1]


def _sample_side(W, gamma, p_star, u_star, crw, s, sign):
    """
    Sample one side of the wave fan at speed s.

    sign = 1 for the left wave, -1 for the right wave (mirror image).
    Returns rho, u, p arrays.
    """
    rho_k, u_k, p_k = W[RHO], W[U], W[P]
    c_k = np.sqrt(gamma * p_k / rho_k)
    ratio = p_star / p_k
    gm1, gp1 = gamma - 1.0, gamma + 1.0

    # Shock: speed and post-shock density
    shock_speed = u_k - sign * c_k * np.sqrt(gp1 / (2.0 * gamma) * ratio + gm1 / (2.0 * gamma))
    rho_shock = rho_k * (ratio + gm1 / gp1) / (gm1 / gp1 * ratio + 1.0)

    # Rarefaction: head, tail and fan interior
    c_star = c_k * ratio**(gm1 / (2.0 * gamma))
    head = u_k - sign * c_k
    tail = u_star - sign * c_star
    rho_raref = rho_k * ratio**(1.0 / gamma)
    c_fan = np.maximum(2.0 / gp1 * (c_k + sign * 0.5 * gm1 * (u_k - s)), 0.0)
    u_fan = 2.0 / gp1 * (sign * c_k + 0.5 * gm1 * u_k + s)
    rho_fan = rho_k * (c_fan / c_k)**(2.0 / gm1)
    p_fan = p_k * (c_fan / c_k)**(2.0 * gamma / gm1)

    # Distances measured away from the contact: positive means outside the wave
    outside_shock = sign * (shock_speed - s) >= 0
    outside_head = sign * (head - s) >= 0
    inside_star = sign * (s - tail) > 0

    rho = np.where(crw,
                   np.where(outside_head, rho_k, np.where(inside_star, rho_raref, rho_fan)),
                   np.where(outside_shock, rho_k, rho_shock))
    u = np.where(crw,
                 np.where(outside_head, u_k, np.where(inside_star, u_star, u_fan)),
                 np.where(outside_shock, u_k, u_star))
    p = np.where(crw,
                 np.where(outside_head, p_k, np.where(inside_star, p_star, p_fan)),
                 np.where(outside_shock, p_k, p_star))
    return rho, u, p


def sample_interface(WL: np.ndarray, WR: np.ndarray, star: StarState,
                     gamma_L, gamma_R, s=0.0) -> np.ndarray:
    """
    Self-similar Riemann solution at x/t = s (the face itself for s = 0).

    Passive rows (tangential velocity, mass fraction) are taken from the
    side the contact comes from.

    Returns:
        Primitive states (n_vars, n_faces)
    """
    W = np.empty(np.broadcast(WL, WR, np.asarray(s)).shape, dtype=float)
    with np.errstate(divide='ignore', invalid='ignore', over='ignore'):
        left = _sample_side(WL, gamma_L, star.p_star, star.u_star, star.crw_left, s, 1.0)
        right = _sample_side(WR, gamma_R, star.p_star, star.u_star, star.crw_right, s, -1.0)
    from_left = s <= star.u_star
    for row in (RHO, U, P):
        W[row] = np.where(from_left, left[row], right[row])
    if W.shape[0] > PASSIVE:
        W[PASSIVE:] = np.where(from_left, WL[PASSIVE:], WR[PASSIVE:])
    return W
