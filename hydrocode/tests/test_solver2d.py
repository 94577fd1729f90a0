"""
Pytest tests for the 2D Eulerian solver.
"""

import numpy as np
import pytest
import sys
from pathlib import Path

# Add project root to path
project_root = Path(__file__).parent.parent.parent
if str(project_root) not in sys.path:
    sys.path.insert(0, str(project_root))

from hydrocode.src import (ConfigurationError, Frame, GasProperties, Mesh2D, Solver2D,
                           SolverConfig, initialize, run, write_outputs)
from hydrocode.src.test_cases import SOD_LEFT, SOD_RIGHT, sod_shock_tube_exact


def sod_fields_2d(n_x, n_y, axis):
    """Sod's shock tube along one axis, uniform along the other."""
    x = (np.arange(n_x) + 0.5) / n_x
    y = (np.arange(n_y) + 0.5) / n_y
    X, Y = np.meshgrid(x, y, indexing='ij')
    left = (X if axis == 'x' else Y) < 0.5
    return {
        'RHO': np.where(left, SOD_LEFT[0], SOD_RIGHT[0]),
        'U': np.zeros((n_x, n_y)),
        'P': np.where(left, SOD_LEFT[2], SOD_RIGHT[2]),
        'V': np.zeros((n_x, n_y)),
    }


class TestSolver2D:

    def test_timestep(self):
        W = np.zeros((4, 3, 3))
        W[0] = 1.0
        W[2] = 1.0 / 1.4
        W[1] = 1.0
        solver = Solver2D(Mesh2D(3, 3, 0.1, 0.1), GasProperties(),
                          SolverConfig(dim=2, t_all=1.0, bound=-4, bound_y=-4))
        solver.set_initial_condition(W)
        tau = solver.step()
        assert tau == pytest.approx(0.5 / ((1.0 + 1.0) / 0.1 + 1.0 / 0.1))

    def test_timestep_from_face_states(self):
        config = SolverConfig(dim=2, t_all=1.0, order=2, bound=-2, bound_y=-2)
        solver = Solver2D(Mesh2D(20, 4, 0.05, 0.05), GasProperties(), config)
        fields = sod_fields_2d(20, 4, 'x')
        solver.set_initial_condition(np.array([fields[name] for name in ('RHO', 'U', 'P', 'V')]))
        for _ in range(10):
            tau = solver.step()
            iface_x, iface_y = solver.interfaces
            rate = 0.0
            for iface, h in ((iface_x, 0.05), (iface_y, 0.05)):
                speeds = [np.abs(W[1]) + np.sqrt(1.4 * W[2] / W[0]) for W in (iface.WL, iface.WR)]
                rate += max(np.max(s) for s in speeds) / h
            assert tau * rate <= 0.5 * (1 + 1e-12)

    @pytest.mark.parametrize("order", [1, 2])
    def test_uniform_state_preserved(self, order):
        n_x, n_y = 12, 8
        fields = {'RHO': np.ones((n_x, n_y)), 'U': np.full((n_x, n_y), 0.3),
                  'P': np.ones((n_x, n_y)), 'V': np.full((n_x, n_y), -0.2)}
        config = SolverConfig(dim=2, t_all=0.1, order=order, bound=-5, bound_y=-5)
        result = run(initialize(fields, config))
        W = result.final_state.W
        assert W.shape == (4, n_x, n_y)
        assert np.allclose(W[0], 1.0, rtol=1e-12)
        assert np.allclose(W[1], 0.3, rtol=1e-12)
        assert np.allclose(W[2], 1.0, rtol=1e-12)
        assert np.allclose(W[3], -0.2, rtol=1e-12)

    def test_sod_along_x(self):
        n_x, n_y = 100, 4
        config = SolverConfig(dim=2, t_all=0.2, order=1, bound=-2, bound_y=-2)
        result = run(initialize(sod_fields_2d(n_x, n_y, 'x'), config))
        state = result.final_state

        assert np.allclose(state.v, 0.0, atol=1e-12)
        for j in range(1, n_y):
            assert np.allclose(state.W[:, :, j], state.W[:, :, 0], rtol=1e-12), \
                "Solution must not vary along y"

        x = result.mesh.x_cells
        exact = sod_shock_tube_exact(x, result.time)
        error = np.mean(np.abs(state.rho[:, 0] - exact['rho']))
        assert error < 0.05, f"2D density L1 error {error}"

    @pytest.mark.parametrize("transverse", [True, False])
    def test_grp_sod_along_y(self, transverse):
        n_x, n_y = 4, 100
        config = SolverConfig(dim=2, t_all=0.2, order=2, h=0.01, h_y=0.01,
                              bound=-4, bound_y=-2, transverse=transverse)
        result = run(initialize(sod_fields_2d(n_x, n_y, 'y'), config))
        state = result.final_state

        assert np.allclose(state.u, 0.0, atol=1e-12)
        y = result.mesh.y_cells
        exact = sod_shock_tube_exact(y, result.time)
        error = np.mean(np.abs(state.rho[0, :] - exact['rho']))
        assert error < 0.03, f"2D GRP density L1 error {error}"
        assert np.mean(np.abs(state.v[0, :] - exact['u'])) < 0.05

    def test_periodic_conservation(self):
        n_x, n_y = 20, 16
        x = (np.arange(n_x) + 0.5) / n_x
        y = (np.arange(n_y) + 0.5) / n_y
        X, Y = np.meshgrid(x, y, indexing='ij')
        rho = 1.0 + 0.2 * np.sin(2 * np.pi * X) * np.cos(2 * np.pi * Y)
        fields = {'RHO': rho, 'U': np.full_like(rho, 0.5), 'P': np.ones_like(rho),
                  'V': np.full_like(rho, 0.25)}
        config = SolverConfig(dim=2, t_all=0.1, order=2, h=1.0 / n_x, h_y=1.0 / n_y,
                              bound=-5, bound_y=-5)
        initial = initialize(fields, config)
        result = run(initial)
        mass_before = np.sum(rho)
        mass_after = np.sum(result.final_state.rho)
        assert mass_after == pytest.approx(mass_before, rel=1e-12)
        assert np.all(result.final_state.p > 0)

    def test_lagrangian_frame_rejected(self):
        config = SolverConfig(dim=2, t_all=0.1, frame=Frame.LAGRANGIAN)
        with pytest.raises(ConfigurationError):
            Solver2D(Mesh2D(4, 4, 0.25, 0.25), GasProperties(), config)

    def test_two_component_rejected(self):
        fields = sod_fields_2d(4, 4, 'x')
        fields['PHI'] = np.ones((4, 4))
        with pytest.raises(ConfigurationError):
            initialize(fields, SolverConfig(dim=2, t_all=0.1, gamma_b=1.67))

    def test_write_outputs(self, tmp_path):
        n_x, n_y = 6, 3
        config = SolverConfig(dim=2, t_all=0.05, bound=-2, bound_y=-2)
        initial = initialize(sod_fields_2d(n_x, n_y, 'x'), config)
        result = run(initial)
        written = write_outputs(result, tmp_path / 'out', initial)

        lines = [line for line in written['RHO'].read_text().splitlines() if line.strip()]
        assert len(lines) == 2 * n_y, "Initial and final level, one line per row in y"
        assert all(len(line.split()) == n_x for line in lines)
        assert set(written) >= {'RHO', 'U', 'P', 'V', 'E', 'X', 'cpu_time', 'log'}


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
