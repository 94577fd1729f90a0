"""
Time-marching engine for the 1D Godunov/GRP finite volume schemes.

The engine owns the working state (double buffered), the geometry and the
snapshot buffer. Each step resolves the boundary ghost cells, reconstructs
face states, solves the Riemann/GRP problem at every face and updates the
cells in the configured coordinate frame. A step that produces a
non-physical state is never committed: the run stops with FATAL_ERROR and
the error is raised from `solve`.
"""

import logging
import time as _time
from dataclasses import dataclass, field
from enum import Enum
from typing import Dict, List, Optional, Union

import numpy as np

from .boundary import BoundaryCondition, BoundaryKind, boundaries_from_code
from .config import Frame, SolverConfig
from .errors import CalculationError, ConfigurationError, InputError, ResourceError
from .flux import flux_scheme_for
from .gas import GasProperties
from .mesh import Mesh1D, Mesh2D
from .state import FieldSet, FlowState, model_for, primitive_to_conservative
from .timestepping import (InterfaceState, ale_step, compute_timestep, eulerian_step,
                           lagrangian_step, reconstruct, side_gammas)

logger = logging.getLogger(__name__)


class RunStatus(Enum):
    INIT = 'init'
    STEPPING = 'stepping'
    CONVERGED = 'converged'
    TERMINATED_BY_TIME = 'terminated_by_time'
    TERMINATED_BY_STEP_LIMIT = 'terminated_by_step_limit'
    FATAL_ERROR = 'fatal_error'


@dataclass
class Snapshot:
    """Copy of the solution taken at a requested output time."""
    time: float
    step: int
    W: np.ndarray
    x_faces: np.ndarray


class TimeMarchingSolver:
    """
    Stepping loop shared by the 1D and 2D solvers.

    Subclasses provide `step()`, `get_state()` and `_conservative()`.
    """

    def __init__(self, gas: GasProperties, config: SolverConfig = None):
        self.gas = gas
        self.config = config if config is not None else SolverConfig()
        self.status = RunStatus.INIT
        self.time = 0.0
        self.iteration = 0
        self.tau = np.nan
        self.cpu_times: List[float] = []
        self.snapshots: List[Snapshot] = []
        self.residual_history: List[float] = []
        self._t_end = self.config.t_all
        self._pending_outputs: List[float] = []

    def step(self) -> float:
        raise NotImplementedError

    def get_state(self) -> FlowState:
        raise NotImplementedError

    def _conservative(self) -> np.ndarray:
        raise NotImplementedError

    def _x_faces(self) -> np.ndarray:
        raise NotImplementedError

    def select_timestep(self, tau_cfl: float) -> float:
        """
        Time step of the next step: the CFL step, or the fixed step from the
        config when no total time is set, clipped to the end time and to the
        next output time.
        """
        cfg = self.config
        if np.isfinite(self._t_end) or not (np.isfinite(cfg.tau) and cfg.tau > 0):
            tau = tau_cfl
        else:
            tau = cfg.tau
        if self.time + tau > self._t_end - cfg.eps:
            tau = self._t_end - self.time
        if self._pending_outputs and self.time + tau > self._pending_outputs[0]:
            tau = self._pending_outputs[0] - self.time
        return tau

    def compute_residual(self, U_old: np.ndarray, dt: float) -> float:
        """Residual for convergence check (L2 norm of normalized changes)."""
        U_new = self._conservative()
        dU = U_new - U_old
        U_scale = np.maximum(np.abs(U_new), 1e-10)
        return float(np.sqrt(np.mean((dU / U_scale)**2)) / dt)

    def _take_snapshots(self):
        while self._pending_outputs and self.time >= self._pending_outputs[0] - self.config.eps:
            self._pending_outputs.pop(0)
            state = self.get_state()
            self.snapshots.append(Snapshot(self.time, self.iteration, state.W.copy(),
                                           self._x_faces().copy()))

    def _progress(self) -> float:
        if np.isfinite(self._t_end):
            return 100.0 * self.time / self._t_end
        return 100.0 * self.iteration / self.config.max_steps

    def solve(self, max_time: float = None) -> Dict:
        """
        Run until the end time, the step limit or steady state.

        Args:
            max_time: End time (defaults to config.t_all)

        Returns:
            Dictionary with run info

        Raises:
            ConfigurationError: if neither an end time nor a step limit is set
            CalculationError: on a non-physical state; the last valid state
                is kept and the status is FATAL_ERROR
        """
        cfg = self.config
        self._t_end = cfg.t_all if max_time is None else max_time
        if not np.isfinite(self._t_end) and not np.isfinite(cfg.max_steps):
            raise ConfigurationError("Neither the total time nor the step limit is set")
        self._pending_outputs = [t for t in cfg.output_times if t >= self.time - cfg.eps]

        self.status = RunStatus.STEPPING
        self._take_snapshots()
        U_old = self._conservative()

        try:
            while True:
                tic = _time.process_time()
                with np.errstate(all='ignore'):
                    dt = self.step()
                self.cpu_times.append(_time.process_time() - tic)
                self._take_snapshots()

                if cfg.convergence_tol > 0 and self.iteration % cfg.check_interval == 0:
                    residual = self.compute_residual(U_old, dt * cfg.check_interval)
                    self.residual_history.append(residual)
                    U_old = self._conservative()
                    if residual < cfg.convergence_tol:
                        self.status = RunStatus.CONVERGED
                        logger.info("Converged at step %d", self.iteration)
                        break

                if self.iteration % cfg.print_interval == 0:
                    logger.info("Step %6d, t = %.4e, tau = %.4e, %5.1f%%",
                                self.iteration, self.time, dt, self._progress())

                if self.time >= self._t_end - cfg.eps:
                    self.status = RunStatus.TERMINATED_BY_TIME
                    break
                if self.iteration >= cfg.max_steps:
                    self.status = RunStatus.TERMINATED_BY_STEP_LIMIT
                    break
        except CalculationError as err:
            self.status = RunStatus.FATAL_ERROR
            if err.step is None:
                err.step = self.iteration + 1
            logger.error("%s", err)
            raise

        cpu_total = float(np.sum(self.cpu_times))
        logger.info("Time is up at time step %d (t = %.6g, %s).",
                    self.iteration, self.time, self.status.value)
        logger.info("The cost of CPU time for this problem is %g seconds.", cpu_total)

        return {
            'status': self.status,
            'converged': self.status == RunStatus.CONVERGED,
            'iterations': self.iteration,
            'time': self.time,
            'cpu_time': cpu_total,
            'final_residual': self.residual_history[-1] if self.residual_history else None,
        }


class Solver1D(TimeMarchingSolver):
    """
    1D Godunov/GRP solver for the compressible Euler equations.

    Features:
    - Eulerian, Lagrangian, ALE and radially symmetric Lagrangian frames
    - Exact Riemann solver, HLL, HLLC, Roe and Roe-HLL fluxes
    - Second order GRP scheme (exact solver) or MUSCL-Hancock (approximate solvers)
    - Two-component flow with a passively advected mass fraction
    """

    def __init__(self, mesh: Mesh1D, gas: GasProperties, config: SolverConfig = None):
        """
        Initialize the solver.

        Args:
            mesh: Computational mesh
            gas: Gas properties
            config: Solver configuration
        """
        super().__init__(gas, config)
        cfg = self.config
        self.mesh = mesh
        self.frame = cfg.frame

        if self.frame != Frame.EULERIAN and cfg.scheme != 'exact':
            raise ConfigurationError(
                f"The {self.frame.name} frame needs the exact Riemann solver, got {cfg.scheme}")
        if self.frame == Frame.ALE and mesh.radial_dim != 1:
            raise ConfigurationError("The ALE frame is planar only")
        if self.frame == Frame.RADIAL and mesh.radial_dim != cfg.radial_dim:
            raise ConfigurationError(
                f"Mesh dimension M = {mesh.radial_dim} does not match the configured M = {cfg.radial_dim}")

        self.flux_scheme = flux_scheme_for(cfg)
        self.bc_left, self.bc_right = boundaries_from_code(cfg.bound)

        # Solution storage
        self.W = None
        self.S = None
        self.W0 = None
        self.dx0 = None
        self.mass = None
        self.interfaces: Optional[InterfaceState] = None
        self._next = None

    def set_boundary_conditions(self, bc_left: BoundaryCondition,
                                bc_right: BoundaryCondition):
        """Replace the boundary conditions resolved from config.bound."""
        self.bc_left = bc_left
        self.bc_right = bc_right

    def set_initial_condition(self, state: Union[FlowState, np.ndarray]):
        """Set the initial flow state (FlowState or primitive array)."""
        W = state.W if isinstance(state, FlowState) else state
        W = np.asarray(W, dtype=float)
        if W.shape[-1] != self.mesh.n_cells:
            raise InputError(
                f"Input unequal! num_cell={W.shape[-1]}, mesh cells={self.mesh.n_cells}.")
        try:
            self.W = W.copy()
            self._next = np.empty_like(self.W)
            self.W0 = W.copy()
        except MemoryError as exc:
            raise ResourceError("NOT enough memory for the solution buffers") from exc
        self.dx0 = self.mesh.dx.copy()
        self.mass = self.W[0] * self.mesh.vol
        self.S = None
        self.time = 0.0
        self.iteration = 0

    def get_state(self) -> FlowState:
        """Get current flow state."""
        return FlowState(self.W, self.gas)

    def _conservative(self) -> np.ndarray:
        return primitive_to_conservative(self.W, self.gas.cell_gamma(self.W))

    def _x_faces(self) -> np.ndarray:
        return self.mesh.x_faces

    def _check_setup(self):
        if self.W is None:
            raise ConfigurationError("Initial condition must be set before solving")
        inner_wall = self.bc_left.kind == BoundaryKind.REFLECTIVE
        if (self.frame == Frame.RADIAL and self.mesh.radial_dim > 1
                and self.mesh.x_faces[0] == 0 and not inner_wall):
            raise ConfigurationError(
                "The radial frame needs a reflective boundary at r = 0")

    def step(self) -> float:
        """
        Perform one time step.

        Returns:
            dt: Time step taken
        """
        cfg = self.config
        rec = reconstruct(self.W, self.S, self.mesh.dx, cfg, self.bc_left, self.bc_right,
                          self.W0, self.dx0)
        _, gamma_L, gamma_R = side_gammas(self.gas, rec, self.W)
        tau = self.select_timestep(
            compute_timestep(rec, self.mesh.dx, gamma_L, gamma_R, cfg.cfl))

        if self.frame == Frame.EULERIAN:
            result = eulerian_step(self.W, rec, self.mesh, self.gas, cfg, self.flux_scheme, tau)
        elif self.frame == Frame.ALE:
            result = ale_step(self.W, rec, self.mesh, self.gas, cfg, self.flux_scheme, tau)
        else:
            result = lagrangian_step(self.W, rec, self.mesh, self.mass, self.gas, cfg, tau)

        # Commit: swap the double buffer
        np.copyto(self._next, result.W)
        self.W, self._next = self._next, self.W
        self.S = result.S
        if self.frame != Frame.EULERIAN:
            self.mesh.move(result.x_faces)
        self.interfaces = result.interfaces

        self.time += tau
        self.iteration += 1
        self.tau = tau
        return tau

    def solve(self, max_time: float = None) -> Dict:
        self._check_setup()
        cfg = self.config
        logger.info("1D %s solver, %s scheme of order %d", self.frame.name,
                    'GRP' if cfg.uses_grp else cfg.scheme, cfg.order)
        logger.info("Cells: %d, CFL: %g, boundaries: %s / %s", self.mesh.n_cells, cfg.cfl,
                    self.bc_left.kind.value, self.bc_right.kind.value)
        return super().solve(max_time)


@dataclass
class InitialState:
    """Validated fields, mesh and configuration of a run."""
    fields: FieldSet
    mesh: Union[Mesh1D, Mesh2D]
    gas: GasProperties
    config: SolverConfig


@dataclass
class RunResult:
    """Outcome of `run`."""
    final_state: FlowState
    cpu_time: float
    steps: int
    status: RunStatus
    time: float
    config: SolverConfig
    mesh: Union[Mesh1D, Mesh2D]
    snapshots: List[Snapshot] = field(default_factory=list)
    cpu_times: List[float] = field(default_factory=list)


def initialize(fields, config: SolverConfig) -> InitialState:
    """
    Validate the initial fields against the configuration and build the mesh.

    Args:
        fields: FieldSet or mapping of field name to array (RHO, U, P, V, PHI)
        config: Solver configuration

    Returns:
        InitialState

    Raises:
        InputError: missing fields or mismatched cell counts
        ConfigurationError: unsupported combination of settings
    """
    model = model_for(config.dim, config.two_component)
    if not isinstance(fields, FieldSet) or fields.model != model:
        fields = FieldSet(fields, model)
    gas = GasProperties(gamma=config.gamma, gamma_b=config.gamma_b)

    if config.dim == 2:
        if len(fields.shape) != 2:
            raise InputError(f"2D fields must be n_x by n_y, got shape {fields.shape}")
        n_x, n_y = fields.shape
        for expected, actual, name in ((config.n_x, n_x, 'n_x'), (config.n_y, n_y, 'n_y')):
            if np.isfinite(expected) and int(expected) != actual:
                raise InputError(f"Input unequal! {name}={int(expected)}, num_cell={actual}.")
        dx = config.h if np.isfinite(config.h) else 1.0 / n_x
        dy = config.h_y if np.isfinite(config.h_y) else dx
        return InitialState(fields, Mesh2D(n_x, n_y, dx, dy), gas, config)

    if len(fields.shape) != 1:
        raise InputError(f"1D fields must be one line of cells, got shape {fields.shape}")
    n_cells = fields.shape[0]
    if np.isfinite(config.n_cells) and int(config.n_cells) != n_cells:
        raise InputError(
            f"Input unequal! num_cell={int(config.n_cells)}, num_data={n_cells}.")
    h = config.h if np.isfinite(config.h) else 1.0 / n_cells
    radial_dim = 1 if config.frame in (Frame.LAGRANGIAN, Frame.ALE) else config.radial_dim
    try:
        mesh = Mesh1D.uniform(0.0, n_cells * h, n_cells, radial_dim)
    except MemoryError as exc:
        raise ResourceError("NOT enough memory for the mesh") from exc
    return InitialState(fields, mesh, gas, config)


def run(initial: InitialState) -> RunResult:
    """
    Run the configured solver from an initial state.

    Raises:
        CalculationError: from the stepping loop
    """
    config = initial.config
    if config.dim == 2:
        from .solver2d import Solver2D
        solver = Solver2D(initial.mesh, initial.gas, config)
    else:
        solver = Solver1D(initial.mesh.copy(), initial.gas, config)
    solver.set_initial_condition(initial.fields.to_primitive())
    info = solver.solve()
    return RunResult(final_state=solver.get_state(), cpu_time=info['cpu_time'],
                     steps=solver.iteration, status=solver.status, time=solver.time,
                     config=config.with_result(solver.iteration, solver.tau),
                     mesh=solver.mesh, snapshots=solver.snapshots,
                     cpu_times=solver.cpu_times)
