"""
Solver configuration.

The run is configured by an immutable `SolverConfig`. For compatibility with
the plain-text configuration files, a config can also be decoded from a flat
table of doubles addressed by the integer offsets in `ConfigIndex`. Entries
left at +inf in that table mean "derive from the input data" or "unused".
"""

from dataclasses import dataclass, field, replace
from enum import IntEnum
from typing import Iterable, Sequence, Tuple

import numpy as np

from .errors import ConfigurationError

N_CONF = 128


class ConfigIndex(IntEnum):
    """Offsets into the flat configuration table."""
    DIM = 0             # Dimensionality (1 or 2)
    T_ALL = 1           # Total simulation time
    N_CELLS = 3         # Number of cells in x
    EPS = 4             # Largest value treated as zero
    MAX_STEPS = 5       # Maximum number of time steps
    GAMMA = 6           # Adiabatic index (fluid a)
    CFL = 7             # CFL number
    FRAME = 8           # Coordinate frame, see Frame
    ORDER = 9           # Scheme order (1 or 2)
    H = 10              # Initial cell width in x
    H_Y = 11            # Cell width in y
    N_X = 13            # Cells in x (2D)
    N_Y = 14            # Cells in y (2D)
    TAU = 16            # Fixed time step (used without total time)
    BOUND = 17          # Boundary code in x
    BOUND_Y = 18        # Boundary code in y
    TOL = 19            # Riemann solver tolerance
    N_ITER = 20         # Riemann solver iteration limit
    RADIAL_DIM = 21     # M: 1 planar, 2 cylindrical, 3 spherical
    ALE_WEIGHT = 22     # Grid velocity / fluid velocity in ALE frame
    ROE_DELTA = 23      # Entropy fix parameter of the Roe solver
    TRANSVERSE = 33     # Tangential derivatives in the 2D GRP solver (0/1)
    ALPHA = 41          # Slope limiter parameter
    GAMMA_B = 106       # Adiabatic index of fluid b (two-component flow)


class Frame(IntEnum):
    """Coordinate frame of the run."""
    EULERIAN = 0
    LAGRANGIAN = 1
    ALE = 2
    RADIAL = 3

    @classmethod
    def from_name(cls, name: str) -> 'Frame':
        """Accept the short names used on the command line (EUL, LAG, ALE, RAD)."""
        aliases = {'EUL': cls.EULERIAN, 'LAG': cls.LAGRANGIAN,
                   'ALE': cls.ALE, 'RAD': cls.RADIAL}
        key = name.upper()
        if key in aliases:
            return aliases[key]
        try:
            return cls[key]
        except KeyError:
            raise ConfigurationError(
                f"NOT appropriate coordinate framework! The framework is {name}.")


# Names accepted for the Riemann solver; order 2 with 'exact' is the GRP scheme.
SCHEMES = ('exact', 'HLL', 'HLLC', 'Roe', 'Roe_HLL')
_SCHEME_ALIASES = {
    'riemann_exact': 'exact', 'godunov': 'exact', 'grp': 'exact', 'exact': 'exact',
    'hll': 'HLL', 'hllc': 'HLLC', 'roe': 'Roe', 'roe_hll': 'Roe_HLL',
}


def scheme_name(name: str) -> str:
    """Normalise a scheme name ('GRP', 'Godunov', 'hll', ...) to one of SCHEMES."""
    try:
        return _SCHEME_ALIASES[name.lower()]
    except KeyError:
        raise ConfigurationError(f"Unknown Riemann solver: {name}. Options: {SCHEMES}")


@dataclass(frozen=True)
class SolverConfig:
    """Configuration for the Godunov/GRP finite volume solvers."""
    dim: int = 1
    t_all: float = np.inf            # Total time (inf: run max_steps with fixed tau)
    max_steps: float = np.inf        # Step limit (inf: no limit)
    eps: float = 1e-9
    gamma: float = 1.4
    gamma_b: float = np.inf          # Second fluid; inf for single-fluid flow
    cfl: float = 0.5
    order: int = 1
    scheme: str = 'exact'
    frame: Frame = Frame.EULERIAN
    h: float = np.inf                # Cell width in x (inf: derive from mesh)
    h_y: float = np.inf
    n_cells: float = np.inf
    n_x: float = np.inf
    n_y: float = np.inf
    tau: float = np.inf              # Fixed time step
    bound: int = -4
    bound_y: int = -4
    tol: float = 1e-9
    n_iter: int = 100
    alpha: float = 1.9
    radial_dim: int = 1
    ale_weight: float = 0.5
    roe_delta: float = 0.2
    transverse: bool = True
    convergence_tol: float = 0.0     # Steady-state residual (0 disables)
    check_interval: int = 100
    print_interval: int = 100
    output_times: Tuple[float, ...] = field(default_factory=tuple)

    def __post_init__(self):
        if self.dim not in (1, 2):
            raise ConfigurationError(f"Unsupported dimensionality: {self.dim}")
        if self.order not in (1, 2):
            raise ConfigurationError(
                f"NOT appropriate order of the scheme! The order is {self.order}.")
        object.__setattr__(self, 'scheme', scheme_name(self.scheme))
        object.__setattr__(self, 'frame', Frame(self.frame))
        if self.radial_dim not in (1, 2, 3):
            raise ConfigurationError(
                f"Wrong spatial dimension number! M = {self.radial_dim}")
        if not self.cfl > 0:
            raise ConfigurationError(f"CFL number must be positive, got {self.cfl}")
        if self.gamma <= 1 or (np.isfinite(self.gamma_b) and self.gamma_b <= 1):
            raise ConfigurationError("Adiabatic index must be larger than 1")
        if not 0.0 <= self.ale_weight <= 1.0:
            raise ConfigurationError(f"ALE weight must lie in [0, 1], got {self.ale_weight}")
        object.__setattr__(self, 'output_times',
                           tuple(sorted(float(t) for t in self.output_times)))

    @property
    def two_component(self) -> bool:
        return bool(np.isfinite(self.gamma_b))

    @property
    def uses_grp(self) -> bool:
        """Second-order exact scheme: the GRP solver."""
        return self.order == 2 and self.scheme == 'exact'

    @classmethod
    def from_array(cls, table: Sequence[float], **kwargs) -> 'SolverConfig':
        """
        Decode a flat configuration table.

        Args:
            table: Doubles addressed by ConfigIndex; +inf entries keep the default
            **kwargs: Fields not stored in the table (scheme, output_times, ...)
        """
        table = np.asarray(table, dtype=float)
        values = {}
        for idx in ConfigIndex:
            if idx >= len(table) or not np.isfinite(table[idx]):
                continue
            value = table[idx]
            name = _INDEX_FIELDS[idx]
            if name in _INT_FIELDS:
                value = int(value)
            elif name == 'transverse':
                value = bool(value)
            values[name] = value
        values.update(kwargs)
        return cls(**values)

    def to_array(self) -> np.ndarray:
        """Encode the numeric fields into a flat table (unset entries are +inf)."""
        table = np.full(N_CONF, np.inf)
        for idx, name in _INDEX_FIELDS.items():
            table[idx] = float(getattr(self, name))
        return table

    def with_result(self, steps: int, tau: float) -> 'SolverConfig':
        """Config reporting the actual step count and the last time step."""
        return replace(self, max_steps=steps, tau=tau)


_INDEX_FIELDS = {
    ConfigIndex.DIM: 'dim',
    ConfigIndex.T_ALL: 't_all',
    ConfigIndex.N_CELLS: 'n_cells',
    ConfigIndex.EPS: 'eps',
    ConfigIndex.MAX_STEPS: 'max_steps',
    ConfigIndex.GAMMA: 'gamma',
    ConfigIndex.CFL: 'cfl',
    ConfigIndex.FRAME: 'frame',
    ConfigIndex.ORDER: 'order',
    ConfigIndex.H: 'h',
    ConfigIndex.H_Y: 'h_y',
    ConfigIndex.N_X: 'n_x',
    ConfigIndex.N_Y: 'n_y',
    ConfigIndex.TAU: 'tau',
    ConfigIndex.BOUND: 'bound',
    ConfigIndex.BOUND_Y: 'bound_y',
    ConfigIndex.TOL: 'tol',
    ConfigIndex.N_ITER: 'n_iter',
    ConfigIndex.RADIAL_DIM: 'radial_dim',
    ConfigIndex.ALE_WEIGHT: 'ale_weight',
    ConfigIndex.ROE_DELTA: 'roe_delta',
    ConfigIndex.TRANSVERSE: 'transverse',
    ConfigIndex.ALPHA: 'alpha',
    ConfigIndex.GAMMA_B: 'gamma_b',
}
_INT_FIELDS = {'dim', 'order', 'frame', 'bound', 'bound_y', 'n_iter', 'radial_dim'}


def empty_table() -> np.ndarray:
    """Configuration table with every entry unset."""
    return np.full(N_CONF, np.inf)


def apply_overrides(table: np.ndarray, overrides: Iterable[str]) -> np.ndarray:
    """
    Apply 'n=C' supplements (config[n] = C) to a configuration table.

    Returns a new table; the input is not modified.
    """
    table = np.array(table, dtype=float)
    for item in overrides:
        key, sep, value = item.partition('=')
        try:
            idx = int(key)
            number = float(value)
        except ValueError:
            raise ConfigurationError(f"Configuration supplement must be n=C, got '{item}'")
        if not sep or not 0 <= idx < N_CONF:
            raise ConfigurationError(f"Configuration offset out of range in '{item}'")
        table[idx] = number
    return table
