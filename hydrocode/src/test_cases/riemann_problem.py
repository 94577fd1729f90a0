"""
Riemann problems with exact solutions - the standard validation cases for
Godunov-type schemes.

A Riemann problem is a single discontinuity at x0 between two constant
states. Its solution is self-similar in s = (x - x0)/t and consists of

1. Left state (undisturbed)
2. Left wave (rarefaction fan or shock)
3. Contact discontinuity
4. Right wave (rarefaction fan or shock)
5. Right state (undisturbed)

Sod's shock tube (Sod, 1978) is the case with a left rarefaction and a
right shock:
- Left:  rho = 1.0,   u = 0, p = 1.0
- Right: rho = 0.125, u = 0, p = 0.1
"""

import logging

import numpy as np

from ..config import SolverConfig
from ..riemann import exact_star_state, sample_interface
from ..solver import initialize, run
from ..state import RHO, U, P

logger = logging.getLogger(__name__)

SOD_LEFT = (1.0, 0.0, 1.0)
SOD_RIGHT = (0.125, 0.0, 0.1)


def riemann_exact(x: np.ndarray, t: float, left, right, gamma: float = 1.4,
                  gamma_right: float = None, x0: float = 0.5) -> dict:
    """
    Exact solution of a Riemann problem.

    Args:
        x: Positions
        t: Time (t = 0 returns the initial data)
        left, right: (rho, u, p) on each side of x0
        gamma: Adiabatic index (of the left fluid if gamma_right is given)
        gamma_right: Adiabatic index of the right fluid

    Returns:
        Dictionary with exact solution: rho, u, p, e
    """
    x = np.asarray(x, dtype=float)
    gamma_right = gamma if gamma_right is None else gamma_right
    WL = np.asarray(left, dtype=float)[:, None]
    WR = np.asarray(right, dtype=float)[:, None]

    if t > 0:
        star = exact_star_state(WL, WR, gamma, gamma_right, eps=1e-12, tol=1e-12)
        W = sample_interface(WL, WR, star, gamma, gamma_right, s=(x - x0) / t)
        from_left = (x - x0) / t <= star.u_star
    else:
        from_left = x < x0
        W = np.where(from_left, WL, WR)

    gamma_x = np.where(from_left, gamma, gamma_right)
    rho, u, p = W[RHO], W[U], W[P]
    return {
        'rho': rho,
        'u': u,
        'p': p,
        'e': p / ((gamma_x - 1.0) * rho),
    }


def sod_shock_tube_exact(x: np.ndarray, t: float, gamma: float = 1.4) -> dict:
    """Exact solution of Sod's shock tube with the diaphragm at x = 0.5."""
    return riemann_exact(x, t, SOD_LEFT, SOD_RIGHT, gamma)


def riemann_fields(x_cells: np.ndarray, left, right, x0: float = 0.5) -> dict:
    """Initial RHO/U/P fields of a Riemann problem on the given cell centres."""
    x_cells = np.asarray(x_cells, dtype=float)
    return {name: np.where(x_cells < x0, left[i], right[i])
            for i, name in enumerate(('RHO', 'U', 'P'))}


def run_shock_tube_test(n_cells: int = 100, t_final: float = 0.2, cfl: float = 0.5,
                        order: int = 1, scheme: str = 'exact', **config_kwargs):
    """
    Run Sod's shock tube on [0, 1] with reflective walls.

    Args:
        n_cells: Number of computational cells
        t_final: Final simulation time
        cfl: CFL number for time stepping
        order: 1 (Godunov) or 2 (GRP / MUSCL-Hancock)
        scheme: Riemann solver name

    Returns:
        result: RunResult of the run
        exact: Exact solution at the final time
    """
    config = SolverConfig(t_all=t_final, cfl=cfl, order=order, scheme=scheme,
                          h=1.0 / n_cells, bound=-2, print_interval=1000, **config_kwargs)
    x_cells = (np.arange(n_cells) + 0.5) / n_cells
    initial = initialize(riemann_fields(x_cells, SOD_LEFT, SOD_RIGHT), config)
    result = run(initial)

    exact = sod_shock_tube_exact(result.mesh.x_cells, result.time, config.gamma)
    state = result.final_state
    logger.info("Sod shock tube, %d cells, t = %.4g: L1 errors rho %.3e, u %.3e, p %.3e",
                n_cells, result.time,
                np.mean(np.abs(state.rho - exact['rho'])),
                np.mean(np.abs(state.u - exact['u'])),
                np.mean(np.abs(state.p - exact['p'])))
    return result, exact
