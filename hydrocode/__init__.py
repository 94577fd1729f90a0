"""
hydrocode - Godunov/GRP Solver for the Compressible Euler Equations
===================================================================

Re-exports all public components from hydrocode.src
"""

from hydrocode.src import (
    # Errors
    HydroError,
    CalculationError,
    ConfigurationError,
    InputError,
    # Configuration
    SolverConfig,
    Frame,
    # Gas properties and flow state
    GasProperties,
    FlowState,
    FieldSet,
    # Mesh
    Mesh1D,
    Mesh2D,
    # Flux schemes
    FluxScheme,
    ExactGodunovFlux,
    HLLFlux,
    HLLCFlux,
    RoeFlux,
    RoeHLLFlux,
    # Boundary conditions
    BoundaryCondition,
    boundaries_from_code,
    # Solvers
    Solver1D,
    Solver2D,
    RunStatus,
    initialize,
    run,
    # File input/output
    load_case,
    write_outputs,
    __version__,
)

__all__ = [
    'HydroError',
    'CalculationError',
    'ConfigurationError',
    'InputError',
    'SolverConfig',
    'Frame',
    'GasProperties',
    'FlowState',
    'FieldSet',
    'Mesh1D',
    'Mesh2D',
    'FluxScheme',
    'ExactGodunovFlux',
    'HLLFlux',
    'HLLCFlux',
    'RoeFlux',
    'RoeHLLFlux',
    'BoundaryCondition',
    'boundaries_from_code',
    'Solver1D',
    'Solver2D',
    'RunStatus',
    'initialize',
    'run',
    'load_case',
    'write_outputs',
]
