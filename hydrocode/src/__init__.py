"""
Godunov/GRP Finite Volume Solver Package
========================================

Finite volume solvers for the compressible Euler equations in one and two
space dimensions.

Features:
- Eulerian, Lagrangian, ALE and radially symmetric Lagrangian frames (1D)
- Unsplit Eulerian scheme on Cartesian grids (2D)
- Exact Riemann solver plus HLL, HLLC, Roe and Roe-HLL fluxes
- Second order GRP scheme with minmod slope limiting
- Two-component flow with a passively advected mass fraction

State representation (primitive variables):
    rho   - density
    u     - velocity normal to the faces
    p     - pressure
    v     - tangential velocity (2D)
    phi   - mass fraction of fluid a (two-component flow)

Example:
    # Read a case, run it and write the results
    fields, config = load_case('data_in/sod', order=2)
    result = run(initialize(fields, config))
    write_outputs(result, 'data_out/sod')

    # Or drive a solver directly
    solver = Solver1D(Mesh1D.uniform(0.0, 1.0, 100), GasProperties(1.4), config)
    solver.set_initial_condition(FlowState.from_primitives(rho, u, p, gas))
    solver.solve()
"""

from .errors import (HydroError, FileDirectoryError, InputError, CalculationError,
                     RiemannConvergenceError, ConfigurationError, ResourceError)
from .config import SolverConfig, ConfigIndex, Frame, apply_overrides
from .gas import GasProperties
from .state import FlowState, FieldSet
from .mesh import Mesh1D, Mesh2D
from .riemann import StarState, exact_star_state, sample_interface
from .flux import FluxScheme, ExactGodunovFlux, HLLFlux, HLLCFlux, RoeFlux, RoeHLLFlux
from .grp import grp_eulerian, grp_lagrangian
from .boundary import (BoundaryCondition, BoundaryKind, InitialBC, ReflectiveWallBC,
                       FreeBC, PeriodicBC, boundaries_from_code)
from .solver import Solver1D, RunStatus, InitialState, RunResult, initialize, run
from .solver2d import Solver2D
from .io import read_fields, read_config, load_case, write_outputs

__all__ = [
    # Errors
    'HydroError',
    'FileDirectoryError',
    'InputError',
    'CalculationError',
    'RiemannConvergenceError',
    'ConfigurationError',
    'ResourceError',

    # Configuration
    'SolverConfig',
    'ConfigIndex',
    'Frame',
    'apply_overrides',

    # Gas properties and flow state
    'GasProperties',
    'FlowState',
    'FieldSet',

    # Mesh
    'Mesh1D',
    'Mesh2D',

    # Riemann and GRP solvers
    'StarState',
    'exact_star_state',
    'sample_interface',
    'grp_eulerian',
    'grp_lagrangian',

    # Flux schemes
    'FluxScheme',
    'ExactGodunovFlux',
    'HLLFlux',
    'HLLCFlux',
    'RoeFlux',
    'RoeHLLFlux',

    # Boundary conditions
    'BoundaryCondition',
    'BoundaryKind',
    'InitialBC',
    'ReflectiveWallBC',
    'FreeBC',
    'PeriodicBC',
    'boundaries_from_code',

    # Solvers
    'Solver1D',
    'Solver2D',
    'RunStatus',
    'InitialState',
    'RunResult',
    'initialize',
    'run',

    # File input/output
    'read_fields',
    'read_config',
    'load_case',
    'write_outputs',
]

__version__ = '1.0.0'
