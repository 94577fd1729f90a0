"""
Piecewise linear reconstruction in primitive variables.

Cells carry a state W and a limited slope S (per unit length). Face values
are extrapolated half a cell from the two neighbouring centres; the ghost
cells supplied by the boundary conditions close the stencil at both ends.
All arrays have the sweep direction as their last axis.
"""

import numpy as np
from typing import Tuple

from .boundary import GhostCell
from .limiter import minmod2, minmod3
from .state import quasilinear_rate


def extend(W: np.ndarray, ghost_left: np.ndarray, ghost_right: np.ndarray) -> np.ndarray:
    """Append ghost values on both ends of the last axis."""
    return np.concatenate([ghost_left[..., None], W, ghost_right[..., None]], axis=-1)


def extended_widths(dx, n: int, ghost_left: GhostCell, ghost_right: GhostCell) -> np.ndarray:
    """Cell widths (n + 2) including the ghost cells."""
    widths = np.broadcast_to(np.asarray(dx, dtype=float), (n,))
    return np.concatenate([np.atleast_1d(ghost_left.width).astype(float)[:1], widths,
                           np.atleast_1d(ghost_right.width).astype(float)[:1]])


def one_sided_slopes(W: np.ndarray, dx, ghost_left: GhostCell,
                     ghost_right: GhostCell) -> Tuple[np.ndarray, np.ndarray]:
    """
    Backward and forward differences of cell values divided by the distance
    between cell centres.

    Returns:
        s_L, s_R: Arrays shaped like W
    """
    n = W.shape[-1]
    W_ext = extend(W, ghost_left.state, ghost_right.state)
    h = extended_widths(dx, n, ghost_left, ghost_right)
    dist = 0.5 * (h[:-1] + h[1:])
    diffs = (W_ext[..., 1:] - W_ext[..., :-1]) / dist
    return diffs[..., :-1], diffs[..., 1:]


def limited_slopes(W: np.ndarray, dx, ghost_left: GhostCell, ghost_right: GhostCell,
                   alpha: float = 1.9, previous: np.ndarray = None) -> np.ndarray:
    """
    Limited cell slopes.

    Without a previous slope (first step) minmod2(s_L, s_R) is used, otherwise
    minmod3(alpha s_L, alpha s_R, previous) where previous is the slope
    retained from the face values at the end of the last step.
    """
    s_L, s_R = one_sided_slopes(W, dx, ghost_left, ghost_right)
    if previous is None:
        return minmod2(s_L, s_R)
    return minmod3(alpha * s_L, alpha * s_R, previous)


def face_states(W: np.ndarray, S: np.ndarray, dx, ghost_left: GhostCell,
                ghost_right: GhostCell):
    """
    Left and right states and slopes at all n + 1 faces.

    Returns:
        WL, WR: Face states (n_vars, ..., n + 1)
        SL, SR: Slopes of the cells left and right of each face
    """
    n = W.shape[-1]
    W_ext = extend(W, ghost_left.state, ghost_right.state)
    S_ext = extend(S, ghost_left.slope, ghost_right.slope)
    h = extended_widths(dx, n, ghost_left, ghost_right)

    WL = W_ext[..., :-1] + 0.5 * h[:-1] * S_ext[..., :-1]
    WR = W_ext[..., 1:] - 0.5 * h[1:] * S_ext[..., 1:]
    return WL, WR, S_ext[..., :-1], S_ext[..., 1:]


def hancock_predictor(WL: np.ndarray, WR: np.ndarray, W: np.ndarray, S: np.ndarray,
                      ghost_left: GhostCell, ghost_right: GhostCell, tau: float,
                      gamma_ext, n_tangential: int = 0) -> Tuple[np.ndarray, np.ndarray]:
    """
    MUSCL-Hancock half step: evolve face states by tau/2 with the
    quasi-linear rate -A(W) S of the cell they were extrapolated from.

    Args:
        WL, WR: Face states from face_states
        W, S: Cell states and slopes
        ghost_left, ghost_right: Ghost cells used for WL/WR
        tau: Time step
        gamma_ext: Adiabatic index of the n + 2 extended cells

    Returns:
        Evolved WL, WR
    """
    W_ext = extend(W, ghost_left.state, ghost_right.state)
    S_ext = extend(S, ghost_left.slope, ghost_right.slope)
    rate = quasilinear_rate(W_ext, S_ext, gamma_ext, n_tangential=n_tangential)
    return WL + 0.5 * tau * rate[..., :-1], WR + 0.5 * tau * rate[..., 1:]


def retained_slopes(W_faces: np.ndarray, x_faces: np.ndarray = None, dx=None) -> np.ndarray:
    """
    Slopes carried to the next step: difference of the face values at
    t_{n+1} divided by the new cell widths.
    """
    if dx is None:
        dx = x_faces[1:] - x_faces[:-1]
    return (W_faces[..., 1:] - W_faces[..., :-1]) / dx
