"""
Tests for the Godunov/GRP solvers.

Run tests with pytest:
    pytest hydrocode/tests/ -v

Or run individual test files:
    pytest hydrocode/tests/test_riemann.py -v
    pytest hydrocode/tests/test_shock_tube.py -v
"""
