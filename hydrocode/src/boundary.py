"""
Boundary conditions for the finite volume solvers.

A boundary condition supplies the ghost cell beyond one edge of the domain:
its primitive state, its normal slope and its width. Arrays are laid out as
(n_vars, ..., n) with the last axis running across the faces being swept,
so the same objects serve the 1D solver and both sweeps of the 2D solver.

Integer boundary codes are resolved once, at setup:

    -1   initial values on both sides
    -2   reflective walls on both sides
    -4   free (zero gradient) on both sides
    -5   periodic
    -24  reflective left, free right
    -42  free left, reflective right
"""

import numpy as np
from abc import ABC, abstractmethod
from dataclasses import dataclass
from enum import Enum
from typing import Tuple, Union

from .errors import ConfigurationError
from .state import U


class BoundaryKind(Enum):
    INITIAL = 'initial'
    REFLECTIVE = 'reflective'
    FREE = 'free'
    PERIODIC = 'periodic'


@dataclass
class GhostCell:
    """State, normal slope and width of a ghost cell."""
    state: np.ndarray
    slope: np.ndarray
    width: Union[float, np.ndarray]


def _edge(arr, side: str):
    if side == 'left':
        return arr[..., 0]
    if side == 'right':
        return arr[..., -1]
    raise ValueError(f"side must be 'left' or 'right', got {side}")


def _opposite(side: str) -> str:
    return 'right' if side == 'left' else 'left'


def _width(dx, side: str):
    if np.ndim(dx) == 0:
        return float(dx)
    return _edge(np.asarray(dx), side)


class BoundaryCondition(ABC):
    """Abstract base class for boundary conditions."""

    kind: BoundaryKind

    @abstractmethod
    def resolve(self, W: np.ndarray, S: np.ndarray, dx, side: str,
                W0: np.ndarray = None, dx0=None) -> GhostCell:
        """
        Ghost cell beyond one edge.

        Args:
            W: Current primitive states (n_vars, ..., n)
            S: Current normal slopes, same shape as W
            dx: Cell widths along the last axis (array or scalar)
            side: 'left' or 'right'
            W0: Initial primitive states (used by INITIAL)
            dx0: Initial cell widths (used by INITIAL)

        Returns:
            GhostCell
        """
        pass

    def transverse(self, T: np.ndarray, side: str) -> np.ndarray:
        """Slopes along the face of the ghost cell, given those of the domain."""
        return np.array(_edge(T, side))

    def __repr__(self):
        return f"{type(self).__name__}()"


class InitialBC(BoundaryCondition):
    """Ghost cell keeps the initial state of the edge cell, without slope."""

    kind = BoundaryKind.INITIAL

    def resolve(self, W, S, dx, side, W0=None, dx0=None):
        if W0 is None:
            raise ConfigurationError("Initial boundary condition needs the initial state")
        state = np.array(_edge(W0, side))
        width = _width(dx if dx0 is None else dx0, side)
        return GhostCell(state, np.zeros_like(state), width)

    def transverse(self, T, side):
        return np.zeros_like(_edge(T, side))


class ReflectiveWallBC(BoundaryCondition):
    """
    Inviscid wall: exact mirror image of the edge cell.

    The normal velocity changes sign; so do the normal slopes of all other
    rows, while the slope of the normal velocity is kept.
    """

    kind = BoundaryKind.REFLECTIVE

    def resolve(self, W, S, dx, side, W0=None, dx0=None):
        state = np.array(_edge(W, side))
        state[U] = -state[U]
        slope = -np.array(_edge(S, side))
        slope[U] = -slope[U]
        return GhostCell(state, slope, _width(dx, side))

    def transverse(self, T, side):
        T_ghost = np.array(_edge(T, side))
        T_ghost[U] = -T_ghost[U]
        return T_ghost


class FreeBC(BoundaryCondition):
    """Zero-gradient outflow: the ghost cell copies the edge cell."""

    kind = BoundaryKind.FREE

    def resolve(self, W, S, dx, side, W0=None, dx0=None):
        state = np.array(_edge(W, side))
        return GhostCell(state, np.zeros_like(state), _width(dx, side))


class PeriodicBC(BoundaryCondition):
    """Ghost cell is the edge cell on the opposite side of the domain."""

    kind = BoundaryKind.PERIODIC

    def resolve(self, W, S, dx, side, W0=None, dx0=None):
        other = _opposite(side)
        return GhostCell(np.array(_edge(W, other)), np.array(_edge(S, other)),
                         _width(dx, other))

    def transverse(self, T, side):
        return np.array(_edge(T, _opposite(side)))


_BY_KIND = {
    BoundaryKind.INITIAL: InitialBC,
    BoundaryKind.REFLECTIVE: ReflectiveWallBC,
    BoundaryKind.FREE: FreeBC,
    BoundaryKind.PERIODIC: PeriodicBC,
}

BOUNDARY_CODES = {
    -1: (BoundaryKind.INITIAL, BoundaryKind.INITIAL),
    -2: (BoundaryKind.REFLECTIVE, BoundaryKind.REFLECTIVE),
    -4: (BoundaryKind.FREE, BoundaryKind.FREE),
    -5: (BoundaryKind.PERIODIC, BoundaryKind.PERIODIC),
    -24: (BoundaryKind.REFLECTIVE, BoundaryKind.FREE),
    -42: (BoundaryKind.FREE, BoundaryKind.REFLECTIVE),
}


def boundaries_from_code(code: int) -> Tuple[BoundaryCondition, BoundaryCondition]:
    """
    Left and right boundary conditions for an integer boundary code.

    Raises:
        ConfigurationError: for an unknown code
    """
    try:
        left, right = BOUNDARY_CODES[int(code)]
    except (KeyError, ValueError, TypeError, OverflowError):
        raise ConfigurationError(f"No suitable boundary conditions! The code is {code}.")
    return _BY_KIND[left](), _BY_KIND[right]()
