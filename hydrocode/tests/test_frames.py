"""
Pytest tests for the Lagrangian, radial Lagrangian and ALE frames and for
two-component flow.
"""

import numpy as np
import pytest
import sys
from pathlib import Path

# Add project root to path
project_root = Path(__file__).parent.parent.parent
if str(project_root) not in sys.path:
    sys.path.insert(0, str(project_root))

from hydrocode.src import (ConfigurationError, FlowState, Frame, GasProperties, Mesh1D,
                           Solver1D, SolverConfig, initialize, run)
from hydrocode.src.state import primitive_to_conservative
from hydrocode.src.test_cases import run_shock_tube_test, sod_shock_tube_exact


@pytest.fixture
def gas():
    return GasProperties(gamma=1.4)


def uniform_state(n_cells, gas, rho=1.0, u=0.0, p=1.0):
    return FlowState.from_primitives(np.full(n_cells, rho), np.full(n_cells, u),
                                     np.full(n_cells, p), gas)


class TestLagrangian:

    @pytest.mark.parametrize("order", [1, 2])
    def test_sod_shock_tube(self, order):
        result, exact = run_shock_tube_test(n_cells=100, order=order, frame=Frame.LAGRANGIAN)
        assert result.time == pytest.approx(0.2)
        error = np.mean(np.abs(result.final_state.rho - exact['rho']))
        assert error < 0.04, f"Lagrangian order {order}: density L1 error {error}"

    def test_nodes_follow_the_flow(self):
        result, _ = run_shock_tube_test(n_cells=100, frame=Frame.LAGRANGIAN)
        x = result.mesh.x_faces
        assert x[0] == pytest.approx(0.0) and x[-1] == pytest.approx(1.0), "Walls do not move"
        assert np.all(np.diff(x) > 0)
        contact = x[50]
        assert contact == pytest.approx(0.5 + 0.92745 * 0.2, abs=0.01), \
            f"Node of the initial discontinuity should ride the contact, found at {contact}"

    def test_cell_masses_are_fixed(self, gas):
        mesh = Mesh1D.uniform(0.0, 1.0, 60)
        x = mesh.x_cells
        state = FlowState.from_primitives(np.where(x < 0.5, 1.0, 0.125), np.zeros(60),
                                          np.where(x < 0.5, 1.0, 0.1), gas)
        config = SolverConfig(t_all=0.1, order=2, frame=Frame.LAGRANGIAN, bound=-2)
        solver = Solver1D(mesh, gas, config)
        solver.set_initial_condition(state)
        mass = state.rho * mesh.vol
        solver.solve()
        assert np.allclose(solver.W[0] * solver.mesh.vol, mass, rtol=1e-12)

    def test_uniform_flow_is_preserved(self, gas):
        mesh = Mesh1D.uniform(0.0, 1.0, 40)
        config = SolverConfig(t_all=0.1, order=2, frame=Frame.LAGRANGIAN, bound=-4)
        solver = Solver1D(mesh, gas, config)
        solver.set_initial_condition(uniform_state(40, gas, u=0.5))
        solver.solve()
        assert np.allclose(solver.W, uniform_state(40, gas, u=0.5).W, rtol=1e-10)
        assert np.allclose(solver.mesh.x_faces, np.linspace(0.0, 1.0, 41) + 0.05)

    def test_approximate_solver_rejected(self, gas):
        config = SolverConfig(t_all=0.1, scheme='HLLC', frame=Frame.LAGRANGIAN)
        with pytest.raises(ConfigurationError):
            Solver1D(Mesh1D.uniform(0.0, 1.0, 10), gas, config)


class TestRadial:

    @pytest.mark.parametrize("radial_dim", [2, 3])
    def test_uniform_state_at_rest(self, gas, radial_dim):
        mesh = Mesh1D.uniform(0.0, 1.0, 50, radial_dim=radial_dim)
        config = SolverConfig(t_all=0.1, order=2, frame=Frame.RADIAL, bound=-2,
                              radial_dim=radial_dim)
        solver = Solver1D(mesh, gas, config)
        solver.set_initial_condition(uniform_state(50, gas))
        solver.solve()
        assert np.allclose(solver.W[1], 0.0, atol=1e-12)
        assert np.allclose(solver.W[2], 1.0, rtol=1e-12)
        assert np.allclose(solver.mesh.x_faces, np.linspace(0.0, 1.0, 51))

    def test_cylindrical_explosion(self, gas):
        n = 100
        mesh = Mesh1D.uniform(0.0, 1.0, n, radial_dim=2)
        x = mesh.x_cells
        state = FlowState.from_primitives(np.where(x < 0.4, 1.0, 0.125), np.zeros(n),
                                          np.where(x < 0.4, 1.0, 0.1), gas)
        config = SolverConfig(t_all=0.15, order=2, frame=Frame.RADIAL, bound=-2, radial_dim=2)
        solver = Solver1D(mesh, gas, config)
        solver.set_initial_condition(state)
        mass = state.rho * mesh.vol
        solver.solve()
        W = solver.W
        assert np.all(W[0] > 0) and np.all(W[2] > 0)
        assert np.max(W[1]) > 0.3, "Gas should be driven outwards"
        assert np.allclose(W[0] * solver.mesh.vol, mass, rtol=1e-12)

    def test_mesh_must_match_configured_dimension(self, gas):
        config = SolverConfig(t_all=0.1, frame=Frame.RADIAL, bound=-2, radial_dim=3)
        with pytest.raises(ConfigurationError):
            Solver1D(Mesh1D.uniform(0.0, 1.0, 10), gas, config)

    def test_needs_wall_at_origin(self, gas):
        mesh = Mesh1D.uniform(0.0, 1.0, 10, radial_dim=2)
        config = SolverConfig(t_all=0.1, frame=Frame.RADIAL, bound=-4, radial_dim=2)
        solver = Solver1D(mesh, gas, config)
        solver.set_initial_condition(uniform_state(10, gas))
        with pytest.raises(ConfigurationError):
            solver.solve()

    def test_initialize_builds_radial_mesh(self):
        fields = {'RHO': np.ones(20), 'U': np.zeros(20), 'P': np.ones(20)}
        config = SolverConfig(t_all=0.05, frame=Frame.RADIAL, radial_dim=3, bound=-24)
        result = run(initialize(fields, config))
        assert result.mesh.radial_dim == 3
        assert np.allclose(result.final_state.p, 1.0)


class TestALE:

    @pytest.mark.parametrize("order", [1, 2])
    def test_sod_shock_tube(self, order):
        result, exact = run_shock_tube_test(n_cells=100, order=order, frame=Frame.ALE)
        error = np.mean(np.abs(result.final_state.rho - exact['rho']))
        assert error < 0.04, f"ALE order {order}: density L1 error {error}"

    def test_uniform_flow_moves_grid_with_weight(self, gas):
        mesh = Mesh1D.uniform(0.0, 1.0, 40)
        config = SolverConfig(t_all=0.2, order=2, frame=Frame.ALE, bound=-4, ale_weight=0.5)
        solver = Solver1D(mesh, gas, config)
        solver.set_initial_condition(uniform_state(40, gas, u=1.0))
        solver.solve()
        assert np.allclose(solver.W, uniform_state(40, gas, u=1.0).W, rtol=1e-10)
        assert np.allclose(solver.mesh.x_faces, np.linspace(0.0, 1.0, 41) + 0.1)

    def test_periodic_conservation(self, gas):
        mesh = Mesh1D.uniform(0.0, 1.0, 50)
        x = mesh.x_cells
        state = FlowState.from_primitives(1.0 + 0.3 * np.sin(2 * np.pi * x), np.full(50, 0.5),
                                          np.ones(50), gas)
        config = SolverConfig(t_all=0.2, frame=Frame.ALE, bound=-5)
        solver = Solver1D(mesh, gas, config)
        solver.set_initial_condition(state)
        before = np.sum(primitive_to_conservative(solver.W, 1.4) * solver.mesh.dx, axis=1)
        solver.solve()
        after = np.sum(primitive_to_conservative(solver.W, 1.4) * solver.mesh.dx, axis=1)
        assert np.allclose(after, before, rtol=1e-12)

    def test_planar_only(self, gas):
        config = SolverConfig(t_all=0.1, frame=Frame.ALE)
        with pytest.raises(ConfigurationError):
            Solver1D(Mesh1D.uniform(0.0, 1.0, 10, radial_dim=2), gas, config)


class TestTwoComponent:

    @pytest.fixture
    def mixture(self):
        return GasProperties(gamma=1.4, gamma_b=1.67)

    def test_mixture_gamma(self, mixture):
        assert mixture.mixture_gamma(np.array([1.0]))[0] == pytest.approx(1.4)
        assert mixture.mixture_gamma(np.array([0.0]))[0] == pytest.approx(1.67)

    def test_lagrangian_material_interface(self, mixture):
        n = 40
        mesh = Mesh1D.uniform(0.0, 1.0, n)
        x = mesh.x_cells
        phi = np.where(x < 0.5, 1.0, 0.0)
        state = FlowState.from_primitives(np.where(x < 0.5, 1.0, 0.2), np.full(n, 0.5),
                                          np.ones(n), mixture, phi=phi)
        config = SolverConfig(t_all=0.1, order=2, frame=Frame.LAGRANGIAN, bound=-4,
                              gamma_b=1.67)
        solver = Solver1D(mesh, mixture, config)
        solver.set_initial_condition(state)
        solver.solve()
        assert np.allclose(solver.W[2], 1.0, rtol=1e-10), "Pressure must stay uniform"
        assert np.allclose(solver.W[1], 0.5, rtol=1e-10)
        assert np.array_equal(solver.W[3], phi), "Mass fraction moves with the cells"

    def test_eulerian_shock_tube(self):
        n = 100
        x = (np.arange(n) + 0.5) / n
        fields = {
            'RHO': np.where(x < 0.5, 1.0, 0.125),
            'U': np.zeros(n),
            'P': np.where(x < 0.5, 1.0, 0.1),
            'PHI': np.where(x < 0.5, 1.0, 0.0),
        }
        config = SolverConfig(t_all=0.15, order=2, bound=-2, gamma_b=1.67)
        initial = initialize(fields, config)
        assert initial.fields.model == 'two_component'
        result = run(initial)

        W = result.final_state.W
        assert W.shape == (4, n)
        assert np.all(W[0] > 0) and np.all(W[2] > 0)
        assert np.all(W[3] > -1e-6) and np.all(W[3] < 1.0 + 1e-6), "Mass fraction out of [0, 1]"
        dx = 1.0 / n
        assert np.sum(W[0] * W[3]) * dx == pytest.approx(0.5, rel=1e-10), \
            "Mass of fluid a must be conserved"


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
