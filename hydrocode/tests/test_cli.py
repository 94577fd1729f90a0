"""
Pytest tests for the command line entry point and its exit status.
"""

import numpy as np
import pytest
import sys
from pathlib import Path

# Add project root to path
project_root = Path(__file__).parent.parent.parent
if str(project_root) not in sys.path:
    sys.path.insert(0, str(project_root))

from hydrocode.__main__ import main, parse_order
from hydrocode.src.errors import ConfigurationError


def write_case(directory: Path, n_cells: int = 20, pressure_right: float = 0.1,
               config: str = "1 0.05\n17 -2\n"):
    directory.mkdir(parents=True, exist_ok=True)
    x = (np.arange(n_cells) + 0.5) / n_cells
    fields = {
        'RHO': np.where(x < 0.5, 1.0, 0.125),
        'U': np.zeros(n_cells),
        'P': np.where(x < 0.5, 1.0, pressure_right),
    }
    for name, values in fields.items():
        (directory / f"{name}.txt").write_text('\n'.join(f"{v:g}" for v in values) + '\n')
    if config is not None:
        (directory / 'config.txt').write_text(config)
    return directory


class TestParseOrder:

    def test_order_only(self):
        assert parse_order('1') == (1, 'exact')
        assert parse_order('2') == (2, 'exact')

    def test_with_scheme(self):
        assert parse_order('2_GRP') == (2, 'exact')
        assert parse_order('1_Riemann_exact') == (1, 'exact')
        assert parse_order('2_HLLC') == (2, 'HLLC')
        assert parse_order('1_Roe_HLL') == (1, 'Roe_HLL')

    @pytest.mark.parametrize("text", ['3', 'x_GRP', '0'])
    def test_bad_order(self, text):
        with pytest.raises(ConfigurationError):
            parse_order(text)


class TestMain:

    @pytest.mark.parametrize("order, frame", [('1', 'EUL'), ('2_GRP', 'LAG'), ('2_HLLC', 'EUL'),
                                              ('2', 'ALE')])
    def test_success(self, tmp_path, order, frame):
        case = write_case(tmp_path / 'in')
        out = tmp_path / 'out'
        assert main([str(case), str(out), order, frame, '-q']) == 0
        for name in ('RHO', 'U', 'P', 'E', 'X'):
            lines = (out / f"{name}.dat").read_text().splitlines()
            assert len(lines) == 2, f"{name}: initial and final level"
        assert (out / 'cpu_time.dat').exists()
        assert 'TERMINATED_BY_TIME' in (out / 'log.txt').read_text().upper()

    def test_overrides(self, tmp_path):
        case = write_case(tmp_path / 'in')
        out = tmp_path / 'out'
        assert main([str(case), str(out), '1', 'EUL', '5=2', '-q']) == 0
        log = (out / 'log.txt').read_text()
        assert 'steps\t2' in log
        assert 'terminated_by_step_limit' in log

    def test_missing_input_directory(self, tmp_path):
        assert main([str(tmp_path / 'nowhere'), str(tmp_path / 'out'), '1', 'EUL', '-q']) == 1

    def test_unequal_fields(self, tmp_path):
        case = write_case(tmp_path / 'in')
        (case / 'U.txt').write_text('0 0 0\n')
        assert main([str(case), str(tmp_path / 'out'), '1', 'EUL', '-q']) == 2

    def test_negative_pressure(self, tmp_path):
        case = write_case(tmp_path / 'in', pressure_right=-0.1)
        assert main([str(case), str(tmp_path / 'out'), '1', 'EUL', '-q']) == 3

    @pytest.mark.parametrize("order, frame", [('3', 'EUL'), ('1', 'XYZ'), ('1_FOO', 'EUL')])
    def test_bad_arguments(self, tmp_path, order, frame):
        case = write_case(tmp_path / 'in')
        assert main([str(case), str(tmp_path / 'out'), order, frame, '-q']) == 4

    def test_missing_arguments(self):
        assert main(['only_input']) == 4

    def test_approximate_solver_in_lagrangian_frame(self, tmp_path):
        case = write_case(tmp_path / 'in')
        assert main([str(case), str(tmp_path / 'out'), '1_HLL', 'LAG', '-q']) == 4

    def test_plot(self, tmp_path):
        case = write_case(tmp_path / 'in')
        plot = tmp_path / 'sod.png'
        assert main([str(case), str(tmp_path / 'out'), '1', 'EUL', '--plot', str(plot), '-q']) == 0
        assert plot.exists()


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
