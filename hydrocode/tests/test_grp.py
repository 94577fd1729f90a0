"""
Pytest tests for the GRP solvers.

Tests verify:
1. Zero slopes reproduce the Godunov value with zero time derivative
2. Smooth data: the time derivative follows the quasi-linear equations
3. Lagrangian derivatives of acoustic data
"""

import numpy as np
import pytest
import sys
from pathlib import Path

# Add project root to path
project_root = Path(__file__).parent.parent.parent
if str(project_root) not in sys.path:
    sys.path.insert(0, str(project_root))

from hydrocode.src.grp import grp_eulerian, grp_lagrangian
from hydrocode.src.riemann import exact_star_state, sample_interface
from hydrocode.src.state import quasilinear_rate


@pytest.fixture
def sod_faces():
    WL = np.array([[1.0, 1.0], [0.0, 0.5], [1.0, 2.0]])
    WR = np.array([[0.125, 0.8], [0.0, 0.4], [0.1, 1.5]])
    return WL, WR


class TestZeroSlopes:

    def test_eulerian_matches_godunov(self, sod_faces):
        WL, WR = sod_faces
        zeros = np.zeros_like(WL)
        res = grp_eulerian(WL, WR, zeros, zeros, 1.4, 1.4)
        star = exact_star_state(WL, WR, 1.4, 1.4)
        assert np.allclose(res.W, sample_interface(WL, WR, star, 1.4, 1.4))
        assert np.allclose(res.Wt, 0.0, atol=1e-12), \
            f"Piecewise constant data must have zero time derivative, got {res.Wt}"

    def test_lagrangian_matches_godunov(self, sod_faces):
        WL, WR = sod_faces
        zeros = np.zeros_like(WL)
        res = grp_lagrangian(WL, WR, zeros, zeros, 1.4, 1.4)
        star = exact_star_state(WL, WR, 1.4, 1.4)
        assert np.allclose(res.u_star, star.u_star)
        assert np.allclose(res.p_star, star.p_star)
        assert np.allclose([res.du_dt, res.dp_dt], 0.0, atol=1e-12)

    def test_passive_rows(self):
        WL = np.array([[1.0], [0.5], [1.0], [0.2]])
        WR = np.array([[1.0], [0.5], [1.0], [0.7]])
        SL = np.array([[0.0], [0.0], [0.0], [0.4]])
        SR = np.array([[0.0], [0.0], [0.0], [-0.1]])
        res = grp_eulerian(WL, WR, SL, SR, 1.4, 1.4)
        assert res.W[3, 0] == pytest.approx(0.2)
        assert res.Wt[3, 0] == pytest.approx(-0.5 * 0.4), \
            "Upwind passive slope is advected with the contact velocity"


class TestSmoothData:

    def test_continuous_data_gives_quasilinear_rate(self):
        """Without a jump the GRP derivative is -A(W) W_x."""
        W = np.array([[1.0], [0.3], [1.0]])
        S = np.array([[0.2], [-0.1], [0.5]])
        res = grp_eulerian(W, W, S, S, 1.4, 1.4)
        expected = quasilinear_rate(W, S, 1.4)
        assert np.allclose(res.W, W)
        assert np.allclose(res.Wt, expected, rtol=1e-6, atol=1e-9)

    def test_supersonic_face_uses_upwind_rate(self):
        WL = np.array([[1.0], [3.0], [1.0]])
        WR = np.array([[0.9], [2.9], [0.95]])
        SL = np.array([[0.1], [0.2], [0.3]])
        SR = np.array([[-0.4], [0.5], [-0.2]])
        res = grp_eulerian(WL, WR, SL, SR, 1.4, 1.4)
        assert np.allclose(res.W, WL)
        assert np.allclose(res.Wt, quasilinear_rate(WL, SL, 1.4))

    def test_lagrangian_pressure_rate(self):
        """A pressure gradient alone accelerates the contact against it."""
        W = np.array([[1.0], [0.0], [1.0]])
        S = np.array([[0.0], [0.0], [1.0]])
        res = grp_lagrangian(W, W, S, S, 1.4, 1.4)
        assert res.du_dt[0] == pytest.approx(-1.0, rel=1e-6), "Du/Dt = -p_x / rho"
        assert res.dp_dt[0] == pytest.approx(0.0, abs=1e-9)


class TestGeometricSource:

    def test_radial_compression_rate(self):
        """Uniform outflow in a cylinder lowers density and pressure at rate rho u A'/A."""
        W = np.array([[1.0], [0.5], [1.0]])
        zeros = np.zeros_like(W)
        geom = np.array([2.0])
        res = grp_eulerian(W, W, zeros, zeros, 1.4, 1.4, geom=geom)
        assert res.Wt[0, 0] == pytest.approx(-1.0 * 0.5 * 2.0, rel=1e-6)
        assert res.Wt[2, 0] == pytest.approx(-1.4 * 0.5 * 2.0, rel=1e-6)
        assert res.Wt[1, 0] == pytest.approx(0.0, abs=1e-9)


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
