"""
Test cases for the Godunov/GRP solvers.
"""

from .riemann_problem import (riemann_exact, sod_shock_tube_exact, riemann_fields,
                              run_shock_tube_test, SOD_LEFT, SOD_RIGHT)

__all__ = [
    'riemann_exact',
    'sod_shock_tube_exact',
    'riemann_fields',
    'run_shock_tube_test',
    'SOD_LEFT',
    'SOD_RIGHT',
]
