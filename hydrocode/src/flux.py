"""
Numerical flux schemes for the Godunov-type solvers.

Every scheme takes left/right primitive states at all faces, the adiabatic
index of each side, and returns the flux vector together with the largest
signal speed per face. Rows follow the layout of `state`: [rho, u, p, q...]
in, [rho u, rho u^2 + p, u(rho E + p), rho u q...] out.
"""

import numpy as np
from abc import ABC, abstractmethod
from typing import Tuple

from .config import SolverConfig
from .riemann import exact_star_state, sample_interface
from .state import (RHO, U, P, PASSIVE, sound_speed, physical_flux,
                    primitive_to_conservative, kinetic_energy)


class FluxScheme(ABC):
    """Abstract base class for numerical flux schemes."""

    n_tangential = 0

    @abstractmethod
    def compute_flux_vectorized(self, WL: np.ndarray, WR: np.ndarray,
                                gamma_L, gamma_R) -> Tuple[np.ndarray, np.ndarray]:
        """
        Compute numerical fluxes at all faces.

        Args:
            WL: Left primitive states (n_vars, n_faces)
            WR: Right primitive states (n_vars, n_faces)
            gamma_L, gamma_R: Adiabatic index of each side (scalar or per face)

        Returns:
            F: Fluxes at all faces (n_vars, n_faces)
            lambda_max: Maximum wave speed per face (n_faces,)
        """
        pass

    def compute_flux(self, WL: np.ndarray, WR: np.ndarray,
                     gamma_L, gamma_R=None) -> Tuple[np.ndarray, float]:
        """Single-face flux computation."""
        gamma_R = gamma_L if gamma_R is None else gamma_R
        F_2d, lam = self.compute_flux_vectorized(WL.reshape(-1, 1), WR.reshape(-1, 1),
                                                 gamma_L, gamma_R)
        return F_2d[:, 0], float(lam[0])

    @staticmethod
    def signal_speed(WL, WR, gamma_L, gamma_R) -> np.ndarray:
        return np.maximum(np.abs(WL[U]) + sound_speed(WL, gamma_L),
                          np.abs(WR[U]) + sound_speed(WR, gamma_R))


def roe_average(WL: np.ndarray, WR: np.ndarray, gamma_L, gamma_R,
                n_tangential: int = 0):
    """
    Roe-averaged density, velocity, enthalpy, sound speed and passive rows.

    Returns:
        rho, u, H, c, q, gamma (q has shape (n_vars - 3, n_faces))
    """
    sqrt_rhoL = np.sqrt(WL[RHO])
    sqrt_rhoR = np.sqrt(WR[RHO])
    denom_inv = 1.0 / (sqrt_rhoL + sqrt_rhoR)

    HL = (WL[P] / (gamma_L - 1.0) + kinetic_energy(WL, n_tangential) + WL[P]) / WL[RHO]
    HR = (WR[P] / (gamma_R - 1.0) + kinetic_energy(WR, n_tangential) + WR[P]) / WR[RHO]

    rho = sqrt_rhoL * sqrt_rhoR
    u = (sqrt_rhoL * WL[U] + sqrt_rhoR * WR[U]) * denom_inv
    H = (sqrt_rhoL * HL + sqrt_rhoR * HR) * denom_inv
    q = (sqrt_rhoL * WL[PASSIVE:] + sqrt_rhoR * WR[PASSIVE:]) * denom_inv
    gamma = 0.5 * (np.asarray(gamma_L) + np.asarray(gamma_R))

    vel2 = u**2 + np.sum(q[:n_tangential]**2, axis=0)
    c = np.sqrt(np.maximum((gamma - 1.0) * (H - 0.5 * vel2), 0.0))
    return rho, u, H, c, q, gamma


class ExactGodunovFlux(FluxScheme):
    """Godunov flux from the exact Riemann solution sampled at the face."""

    def __init__(self, eps: float = 1e-9, tol: float = 1e-9, n_iter: int = 100,
                 n_tangential: int = 0):
        self.eps = eps
        self.tol = tol
        self.n_iter = n_iter
        self.n_tangential = n_tangential

    def star_state(self, WL, WR, gamma_L, gamma_R):
        return exact_star_state(WL, WR, gamma_L, gamma_R, self.eps, self.tol, self.n_iter)

    def flux_from_star(self, WL, WR, star, gamma_L, gamma_R):
        """Godunov flux of an already solved star state."""
        W = sample_interface(WL, WR, star, gamma_L, gamma_R)
        gamma = np.where(star.u_star >= 0, gamma_L, gamma_R)
        return physical_flux(W, gamma, self.n_tangential), self.signal_speed(WL, WR, gamma_L, gamma_R)

    def compute_flux_vectorized(self, WL, WR, gamma_L, gamma_R):
        return self.flux_from_star(WL, WR, self.star_state(WL, WR, gamma_L, gamma_R),
                                   gamma_L, gamma_R)


class HLLFlux(FluxScheme):
    """
    HLL approximate Riemann solver with Einfeldt wave speed estimates.

    Positively conservative; smears contact discontinuities.
    """

    def __init__(self, n_tangential: int = 0):
        self.n_tangential = n_tangential

    def wave_speeds(self, WL, WR, gamma_L, gamma_R):
        _, u_roe, _, c_roe, _, _ = roe_average(WL, WR, gamma_L, gamma_R, self.n_tangential)
        SL = np.minimum(WL[U] - sound_speed(WL, gamma_L), u_roe - c_roe)
        SR = np.maximum(WR[U] + sound_speed(WR, gamma_R), u_roe + c_roe)
        return SL, SR

    def compute_flux_vectorized(self, WL, WR, gamma_L, gamma_R):
        nt = self.n_tangential
        SL, SR = self.wave_speeds(WL, WR, gamma_L, gamma_R)
        UL = primitive_to_conservative(WL, gamma_L, nt)
        UR = primitive_to_conservative(WR, gamma_R, nt)
        FL = physical_flux(WL, gamma_L, nt)
        FR = physical_flux(WR, gamma_R, nt)

        with np.errstate(divide='ignore', invalid='ignore'):
            F_hll = (SR * FL - SL * FR + SL * SR * (UR - UL)) / (SR - SL)
        F = np.where(SL >= 0, FL, np.where(SR <= 0, FR, F_hll))
        lambda_max = np.maximum(np.abs(SL), np.abs(SR))
        return F, lambda_max


class HLLCFlux(HLLFlux):
    """
    HLLC approximate Riemann solver.

    Restores the contact wave missing from HLL; passive rows jump only
    across the contact.
    """

    def compute_flux_vectorized(self, WL, WR, gamma_L, gamma_R):
        nt = self.n_tangential
        SL, SR = self.wave_speeds(WL, WR, gamma_L, gamma_R)

        rhoL, uL, pL = WL[RHO], WL[U], WL[P]
        rhoR, uR, pR = WR[RHO], WR[U], WR[P]

        # Contact wave speed
        SM = (pR - pL + rhoL * uL * (SL - uL) - rhoR * uR * (SR - uR)) / \
             (rhoL * (SL - uL) - rhoR * (SR - uR))

        UL = primitive_to_conservative(WL, gamma_L, nt)
        UR = primitive_to_conservative(WR, gamma_R, nt)
        FL = physical_flux(WL, gamma_L, nt)
        FR = physical_flux(WR, gamma_R, nt)

        F_star = []
        for W, Uc, F, S in ((WL, UL, FL, SL), (WR, UR, FR, SR)):
            rho, u, p = W[RHO], W[U], W[P]
            with np.errstate(divide='ignore', invalid='ignore'):
                coeff = rho * (S - u) / (S - SM)
                U_star = np.empty_like(Uc)
                U_star[0] = coeff
                U_star[1] = coeff * SM
                U_star[2] = coeff * (Uc[2] / rho + (SM - u) * (SM + p / (rho * (S - u))))
                U_star[PASSIVE:] = coeff * W[PASSIVE:]
            # F* = F + S * (U* - U)
            F_star.append(F + S * (U_star - Uc))

        F = np.where(SL >= 0, FL,
                     np.where(SR <= 0, FR,
                              np.where(SM >= 0, F_star[0], F_star[1])))
        lambda_max = np.maximum(np.abs(SL), np.abs(SR))
        return F, lambda_max


class RoeFlux(FluxScheme):
    """
    Roe linearized Riemann solver with Harten's entropy fix.

    Acoustic eigenvalues closer to zero than delta * (|u| + c) are smoothed to
    (lambda^2 + d^2) / (2 d).
    """

    def __init__(self, delta: float = 0.2, n_tangential: int = 0):
        self.delta = delta
        self.n_tangential = n_tangential

    def wave_decomposition(self, WL, WR, gamma_L, gamma_R):
        """
        Roe eigenvalues, wave strengths and right eigenvectors.

        Returns:
            lambdas, alphas, vectors as lists over waves; each vector has
            shape (n_vars, n_faces)
        """
        nt = self.n_tangential
        rho, u, H, c, q, _ = roe_average(WL, WR, gamma_L, gamma_R, nt)
        d_rho = WR[RHO] - WL[RHO]
        d_u = WR[U] - WL[U]
        d_p = WR[P] - WL[P]
        d_q = WR[PASSIVE:] - WL[PASSIVE:]
        c2 = c**2
        n_vars, shape = WL.shape[0], WL.shape[1:]

        ones = np.ones(shape)
        vel2 = u**2 + np.sum(q[:nt]**2, axis=0)

        def vector(first, second, third, passive):
            r = np.empty((n_vars,) + shape)
            r[0], r[1], r[2] = first, second, third
            r[PASSIVE:] = passive
            return r

        lambdas = [u - c, u, u + c]
        alphas = [(d_p - rho * c * d_u) / (2.0 * c2),
                  d_rho - d_p / c2,
                  (d_p + rho * c * d_u) / (2.0 * c2)]
        vectors = [vector(ones, u - c, H - u * c, q),
                   vector(ones, u, 0.5 * vel2, q),
                   vector(ones, u + c, H + u * c, q)]
        # Shear and passive waves travel with the contact
        for k in range(n_vars - PASSIVE):
            r = np.zeros((n_vars,) + shape)
            r[2] = q[k] if k < nt else 0.0
            r[PASSIVE + k] = 1.0
            lambdas.append(u)
            alphas.append(rho * d_q[k])
            vectors.append(r)
        return lambdas, alphas, vectors, u, c

    def entropy_fix(self, lam, u, c):
        d = self.delta * (np.abs(u) + c)
        abs_lam = np.abs(lam)
        with np.errstate(divide='ignore', invalid='ignore'):
            smoothed = (lam**2 + d**2) / (2.0 * d)
        return np.where(abs_lam < d, smoothed, abs_lam)

    def compute_flux_vectorized(self, WL, WR, gamma_L, gamma_R):
        nt = self.n_tangential
        lambdas, alphas, vectors, u, c = self.wave_decomposition(WL, WR, gamma_L, gamma_R)
        F = 0.5 * (physical_flux(WL, gamma_L, nt) + physical_flux(WR, gamma_R, nt))
        for k, (lam, alpha, r) in enumerate(zip(lambdas, alphas, vectors)):
            # Only the acoustic waves u - c and u + c are entropy fixed
            speed = self.entropy_fix(lam, u, c) if k in (0, 2) else np.abs(lam)
            F -= 0.5 * speed * alpha * r
        lambda_max = np.maximum(self.signal_speed(WL, WR, gamma_L, gamma_R), np.abs(u) + c)
        return F, lambda_max


class RoeHLLFlux(RoeFlux):
    """
    Roe flux with an HLL fallback at faces where the linearized
    intermediate states lose positive density or pressure.
    """

    def __init__(self, delta: float = 0.2, n_tangential: int = 0, eps: float = 1e-9):
        super().__init__(delta, n_tangential)
        self.eps = eps
        self._hll = HLLFlux(n_tangential)

    def compute_flux_vectorized(self, WL, WR, gamma_L, gamma_R):
        nt = self.n_tangential
        lambdas, alphas, vectors, u, c = self.wave_decomposition(WL, WR, gamma_L, gamma_R)
        F_roe, lambda_roe = super().compute_flux_vectorized(WL, WR, gamma_L, gamma_R)

        UL = primitive_to_conservative(WL, gamma_L, nt)
        UR = primitive_to_conservative(WR, gamma_R, nt)
        gamma = 0.5 * (np.asarray(gamma_L) + np.asarray(gamma_R))
        positive = np.ones(WL.shape[1:], dtype=bool)
        for U_mid in (UL + alphas[0] * vectors[0], UR - alphas[2] * vectors[2]):
            rho = U_mid[0]
            with np.errstate(divide='ignore', invalid='ignore'):
                kinetic = 0.5 * (U_mid[1]**2 + np.sum(U_mid[PASSIVE:PASSIVE + nt]**2, axis=0)) / rho
            p = (gamma - 1.0) * (U_mid[2] - kinetic)
            positive &= (rho > self.eps) & (p > self.eps)

        if np.all(positive):
            return F_roe, lambda_roe
        F_hll, lambda_hll = self._hll.compute_flux_vectorized(WL, WR, gamma_L, gamma_R)
        F = np.where(positive, F_roe, F_hll)
        return F, np.maximum(lambda_roe, lambda_hll)


def flux_scheme_for(config: SolverConfig, n_tangential: int = 0) -> FluxScheme:
    """Flux scheme named by config.scheme."""
    if config.scheme == 'exact':
        return ExactGodunovFlux(config.eps, config.tol, config.n_iter, n_tangential)
    if config.scheme == 'HLL':
        return HLLFlux(n_tangential)
    if config.scheme == 'HLLC':
        return HLLCFlux(n_tangential)
    if config.scheme == 'Roe':
        return RoeFlux(config.roe_delta, n_tangential)
    return RoeHLLFlux(config.roe_delta, n_tangential, config.eps)
