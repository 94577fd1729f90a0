"""
Flow state representation.

Cell states are stored as primitive arrays W of shape (n_vars, ...) with rows

    W[0] = rho   density
    W[1] = u     velocity normal to the faces being processed
    W[2] = p     pressure
    W[3:]        passive quantities per unit mass: the tangential velocity v
                 (2D, n_tangential = 1) followed by the mass fraction phi of
                 fluid a (two-component flow)

Conservative arrays U use the matching rows

    U[0] = rho,  U[1] = rho * u,  U[2] = rho * E (total energy per volume),
    U[3:] = rho * q for each passive quantity q
"""

from collections import OrderedDict
from dataclasses import dataclass
from typing import Dict, Mapping, Tuple

import numpy as np

from .gas import GasProperties
from .errors import CalculationError, ConfigurationError, InputError

RHO, U, P = 0, 1, 2
PASSIVE = 3


def sound_speed(W: np.ndarray, gamma) -> np.ndarray:
    """Speed of sound c = sqrt(gamma * p / rho)."""
    return np.sqrt(gamma * W[P] / W[RHO])


def kinetic_energy(W: np.ndarray, n_tangential: int = 0) -> np.ndarray:
    """Kinetic energy per volume, including the tangential velocity rows."""
    vel2 = W[U]**2
    for k in range(n_tangential):
        vel2 = vel2 + W[PASSIVE + k]**2
    return 0.5 * W[RHO] * vel2


def primitive_to_conservative(W: np.ndarray, gamma, n_tangential: int = 0) -> np.ndarray:
    """Primitive rows [rho, u, p, q...] to conservative rows [rho, rho u, rho E, rho q...]."""
    Uc = np.empty_like(W, dtype=float)
    Uc[0] = W[RHO]
    Uc[1] = W[RHO] * W[U]
    # rho E = p / (gamma - 1) + 0.5 * rho * |u|^2
    Uc[2] = W[P] / (gamma - 1.0) + kinetic_energy(W, n_tangential)
    if W.shape[0] > PASSIVE:
        Uc[PASSIVE:] = W[RHO] * W[PASSIVE:]
    return Uc


def conservative_to_primitive(Uc: np.ndarray, gas: GasProperties,
                              n_tangential: int = 0) -> np.ndarray:
    """Inverse of primitive_to_conservative; gamma follows from the mass fraction row."""
    W = np.empty_like(Uc, dtype=float)
    W[RHO] = Uc[0]
    W[U] = Uc[1] / Uc[0]
    if Uc.shape[0] > PASSIVE:
        W[PASSIVE:] = Uc[PASSIVE:] / Uc[0]
    gamma = gas.cell_gamma(W, n_tangential)
    W[P] = (gamma - 1.0) * (Uc[2] - kinetic_energy(W, n_tangential))
    return W


def physical_flux(W: np.ndarray, gamma, n_tangential: int = 0) -> np.ndarray:
    """Euler flux [rho u, rho u^2 + p, u (rho E + p), rho u q...] of primitive states."""
    F = np.empty_like(W, dtype=float)
    mass = W[RHO] * W[U]
    F[0] = mass
    F[1] = mass * W[U] + W[P]
    F[2] = W[U] * (W[P] / (gamma - 1.0) + kinetic_energy(W, n_tangential) + W[P])
    if W.shape[0] > PASSIVE:
        F[PASSIVE:] = mass * W[PASSIVE:]
    return F


def quasilinear_rate(W: np.ndarray, dW: np.ndarray, gamma,
                     geom=None, n_tangential: int = 0) -> np.ndarray:
    """
    Time derivative -A(W) dW/dx of smooth primitive data.

    Args:
        W: Primitive states
        dW: Spatial derivatives normal to the faces
        gamma: Adiabatic index
        geom: Optional log-area derivative A'/A (radial: (M-1)/r)
        n_tangential: Number of tangential velocity rows

    Returns:
        Array like W with [rho_t, u_t, p_t, q_t...]
    """
    rho, u, p = W[RHO], W[U], W[P]
    rho_c2 = gamma * p
    Wt = np.empty_like(W, dtype=float)
    Wt[RHO] = -(u * dW[RHO] + rho * dW[U])
    Wt[U] = -(u * dW[U] + dW[P] / rho)
    Wt[P] = -(u * dW[P] + rho_c2 * dW[U])
    if W.shape[0] > PASSIVE:
        Wt[PASSIVE:] = -u * dW[PASSIVE:]
    if geom is not None:
        Wt[RHO] -= rho * u * geom
        Wt[P] -= rho_c2 * u * geom
    return Wt


def transverse_rate(W: np.ndarray, dW_t: np.ndarray, gamma) -> np.ndarray:
    """
    Transverse contribution -B(W) dW/dy for rows [rho, u, p, v].

    u is the normal and v the tangential velocity of the face; dW_t holds
    derivatives along the face.
    """
    rho, u, p, v = W[RHO], W[U], W[P], W[PASSIVE]
    Wt = np.zeros_like(W, dtype=float)
    Wt[RHO] = -(v * dW_t[RHO] + rho * dW_t[PASSIVE])
    Wt[U] = -v * dW_t[U]
    Wt[P] = -(v * dW_t[P] + gamma * p * dW_t[PASSIVE])
    Wt[PASSIVE] = -(v * dW_t[PASSIVE] + dW_t[P] / rho)
    return Wt


@dataclass
class FlowState:
    """
    Flow state of all cells, stored as primitive variables.

    Primitive variables: rho, u, p (+ v, phi); derived quantities are properties.
    """
    W: np.ndarray
    gas: GasProperties
    n_tangential: int = 0

    @property
    def rho(self) -> np.ndarray:
        return self.W[RHO]

    @property
    def u(self) -> np.ndarray:
        return self.W[U]

    @property
    def p(self) -> np.ndarray:
        return self.W[P]

    @property
    def v(self) -> np.ndarray:
        """Tangential velocity (2D)."""
        if self.n_tangential == 0:
            return np.zeros_like(self.W[U])
        return self.W[PASSIVE]

    @property
    def phi(self) -> np.ndarray:
        """Mass fraction of fluid a (ones for single-fluid flow)."""
        row = PASSIVE + self.n_tangential
        if self.W.shape[0] <= row:
            return np.ones_like(self.W[RHO])
        return self.W[row]

    @property
    def gamma(self):
        return self.gas.cell_gamma(self.W, self.n_tangential)

    @property
    def e(self) -> np.ndarray:
        """Specific internal energy."""
        return self.p / (self.rho * (self.gamma - 1.0))

    @property
    def E(self) -> np.ndarray:
        """Specific total energy."""
        return self.e + kinetic_energy(self.W, self.n_tangential) / self.rho

    @property
    def a(self) -> np.ndarray:
        """Speed of sound."""
        return sound_speed(self.W, self.gamma)

    @property
    def M(self) -> np.ndarray:
        """Mach number."""
        return self.u / self.a

    def to_conservative(self) -> np.ndarray:
        return primitive_to_conservative(self.W, self.gamma, self.n_tangential)

    @classmethod
    def from_conservative(cls, Uc: np.ndarray, gas: GasProperties,
                          n_tangential: int = 0) -> 'FlowState':
        return cls(conservative_to_primitive(Uc, gas, n_tangential), gas, n_tangential)

    @classmethod
    def from_primitives(cls, rho, u, p, gas: GasProperties, v=None,
                        phi=None) -> 'FlowState':
        """Stack primitive fields into a state; v and phi are optional rows."""
        rows = [rho, u, p]
        if v is not None:
            rows.append(v)
        if phi is not None:
            rows.append(phi)
        W = np.array(np.broadcast_arrays(*[np.asarray(r, dtype=float) for r in rows]))
        return cls(W, gas, n_tangential=int(v is not None))


# Active fields of each flow model, in the row order of the primitive arrays.
FIELD_SCHEMAS: Dict[str, Tuple[str, ...]] = {
    'single': ('RHO', 'U', 'P'),
    'two_component': ('RHO', 'U', 'P', 'PHI'),
    'planar_2d': ('RHO', 'U', 'P', 'V'),
}


def model_for(dim: int, two_component: bool) -> str:
    """Schema name for a configuration."""
    if dim == 2:
        if two_component:
            raise ConfigurationError("Two-component flow is only supported in 1D")
        return 'planar_2d'
    return 'two_component' if two_component else 'single'


class FieldSet(Mapping):
    """
    Ordered mapping from field name to its cell array.

    All arrays share one shape; the schema fixes which names must be present
    and the row order of `to_primitive`.
    """

    def __init__(self, fields: Mapping[str, np.ndarray], model: str = 'single'):
        if model not in FIELD_SCHEMAS:
            raise ConfigurationError(f"Unknown flow model: {model}")
        self.model = model
        self._fields = OrderedDict()
        shape = None
        for name in FIELD_SCHEMAS[model]:
            if name not in fields:
                raise InputError(f"Missing initial data field: {name}")
            arr = np.asarray(fields[name], dtype=float)
            if shape is None:
                shape = arr.shape
            elif arr.shape != shape:
                raise InputError(
                    f"Input unequal! num_{name}={arr.size}, num_cell={int(np.prod(shape))}.")
            self._fields[name] = arr
        if shape is None or 0 in shape:
            raise InputError("Initial data fields are empty")
        self.shape = shape

    def __getitem__(self, name: str) -> np.ndarray:
        return self._fields[name]

    def __iter__(self):
        return iter(self._fields)

    def __len__(self) -> int:
        return len(self._fields)

    @property
    def n_cells(self) -> int:
        return int(np.prod(self.shape))

    def to_primitive(self) -> np.ndarray:
        """Stack the fields into a primitive array of shape (n_vars, *shape)."""
        return np.array([self._fields[name] for name in FIELD_SCHEMAS[self.model]])

    @classmethod
    def from_primitive(cls, W: np.ndarray, model: str) -> 'FieldSet':
        names = FIELD_SCHEMAS[model]
        return cls({name: W[i] for i, name in enumerate(names)}, model)


def check_admissible(W: np.ndarray, eps: float, stage: str, rows=(RHO, P)):
    """
    Raise CalculationError at the first cell (or face) whose density or
    pressure is below eps, or whose state is not finite.

    Args:
        W: Primitive states (n_vars, ...)
        eps: Smallest admissible density and pressure
        stage: Name of the step stage reported in the error
        rows: Rows that must stay positive
    """
    finite = np.all(np.isfinite(W), axis=0)
    if not np.all(finite):
        raise CalculationError("NAN or INFinite error",
                               index=_first_index(~finite), stage=stage)
    negative = np.zeros(W.shape[1:], dtype=bool)
    for row in rows:
        negative |= W[row] < eps
    if np.any(negative):
        raise CalculationError("<0.0 error", index=_first_index(negative), stage=stage)


def _first_index(mask: np.ndarray):
    idx = tuple(int(i) for i in np.argwhere(mask)[0])
    return idx[0] if len(idx) == 1 else idx
