"""
Pytest tests for flow states, field sets and meshes.
"""

import numpy as np
import pytest
import sys
from pathlib import Path

# Add project root to path
project_root = Path(__file__).parent.parent.parent
if str(project_root) not in sys.path:
    sys.path.insert(0, str(project_root))

from hydrocode.src.boundary import PeriodicBC
from hydrocode.src.config import SolverConfig
from hydrocode.src.errors import CalculationError, InputError
from hydrocode.src.gas import GasProperties
from hydrocode.src.mesh import Mesh1D, Mesh2D
from hydrocode.src.solver import Solver1D
from hydrocode.src.state import FieldSet, FlowState, check_admissible


@pytest.fixture
def gas():
    return GasProperties(gamma=1.4)


class TestFlowState:

    def test_derived_quantities(self, gas):
        state = FlowState.from_primitives([1.0, 0.5], [0.0, 2.0], [1.0, 0.4], gas)
        assert np.allclose(state.e, [2.5, 2.0])
        assert np.allclose(state.E, [2.5, 4.0])
        assert np.allclose(state.a, np.sqrt([1.4, 1.12]))
        assert state.M[0] == 0.0
        assert np.allclose(state.phi, 1.0)
        assert np.allclose(state.v, 0.0)

    def test_conservative_round_trip_2d(self, gas):
        state = FlowState.from_primitives([1.0, 0.5], [0.3, -1.0], [1.0, 0.4], gas,
                                          v=[0.2, 0.7])
        Uc = state.to_conservative()
        assert Uc[2][0] == pytest.approx(1.0 / 0.4 + 0.5 * (0.09 + 0.04))
        back = FlowState.from_conservative(Uc, gas, n_tangential=1)
        assert np.allclose(back.W, state.W, rtol=1e-12)
        assert np.allclose(back.v, [0.2, 0.7])

    def test_mixture_energy(self):
        gas = GasProperties(gamma=1.4, gamma_b=1.67)
        state = FlowState.from_primitives([1.0, 1.0], [0.0, 0.0], [1.0, 1.0], gas,
                                          phi=[1.0, 0.0])
        assert np.allclose(state.e, [1.0 / 0.4, 1.0 / 0.67])


class TestFieldSet:

    def test_schema_order(self):
        fields = FieldSet({'P': np.ones(3), 'RHO': np.full(3, 2.0), 'U': np.zeros(3)})
        assert list(fields) == ['RHO', 'U', 'P']
        W = fields.to_primitive()
        assert W.shape == (3, 3)
        assert np.allclose(W[0], 2.0)

    def test_from_primitive(self):
        W = np.arange(8.0).reshape(4, 2)
        fields = FieldSet.from_primitive(W, 'two_component')
        assert list(fields) == ['RHO', 'U', 'P', 'PHI']
        assert np.array_equal(fields['PHI'], W[3])
        assert len(fields) == 4

    def test_missing_field(self):
        with pytest.raises(InputError):
            FieldSet({'RHO': np.ones(3), 'U': np.zeros(3)})

    def test_unequal_fields(self):
        with pytest.raises(InputError):
            FieldSet({'RHO': np.ones(3), 'U': np.zeros(4), 'P': np.ones(3)})


class TestCheckAdmissible:

    def test_passes_positive_states(self):
        check_admissible(np.ones((3, 5)), 1e-9, 'Update')

    def test_reports_first_bad_cell(self):
        W = np.ones((3, 5))
        W[2, 3] = -1.0
        with pytest.raises(CalculationError) as exc_info:
            check_admissible(W, 1e-9, 'Update')
        assert exc_info.value.index == 3
        assert exc_info.value.stage == 'Update'

    def test_non_finite(self):
        W = np.ones((3, 2, 2))
        W[1, 1, 0] = np.nan
        with pytest.raises(CalculationError) as exc_info:
            check_admissible(W, 1e-9, 'STAR')
        assert exc_info.value.index == (1, 0)


class TestMesh:

    def test_uniform_planar(self):
        mesh = Mesh1D.uniform(0.0, 1.0, 4)
        assert np.allclose(mesh.dx, 0.25)
        assert np.allclose(mesh.vol, 0.25)
        assert np.allclose(mesh.x_cells, [0.125, 0.375, 0.625, 0.875])

    def test_spherical_volumes(self):
        mesh = Mesh1D.uniform(0.0, 1.0, 2, radial_dim=3)
        assert np.allclose(mesh.vol, [0.125 / 3, 0.875 / 3])
        assert np.allclose(mesh.A_faces, [0.0, 0.25, 1.0])
        assert np.allclose(mesh.log_area_gradient(mesh.x_faces), [0.0, 4.0, 2.0])

    def test_move(self):
        mesh = Mesh1D.uniform(0.0, 1.0, 2)
        copy = mesh.copy()
        mesh.move([0.0, 0.6, 1.0])
        assert np.allclose(mesh.dx, [0.6, 0.4])
        assert np.allclose(copy.dx, [0.5, 0.5])

    def test_mesh_2d(self):
        mesh = Mesh2D(4, 2, 0.25, 0.5)
        assert mesh.shape == (4, 2)
        assert mesh.cell_area == pytest.approx(0.125)
        assert np.allclose(mesh.y_cells, [0.25, 0.75])


class TestSolverBoundaries:

    def test_replaced_boundary_conditions(self, gas):
        n = 40
        mesh = Mesh1D.uniform(0.0, 1.0, n)
        x = mesh.x_cells
        state = FlowState.from_primitives(1.0 + 0.2 * np.sin(2 * np.pi * x), np.full(n, 0.4),
                                          np.ones(n), gas)
        solver = Solver1D(mesh, gas, SolverConfig(t_all=0.1, order=2, bound=-4))
        solver.set_boundary_conditions(PeriodicBC(), PeriodicBC())
        solver.set_initial_condition(state)
        mass = np.sum(state.rho * mesh.vol)
        solver.solve()
        assert np.sum(solver.W[0] * mesh.vol) == pytest.approx(mass, rel=1e-12)


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
