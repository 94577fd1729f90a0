"""
Plain-text input and output of cell fields and configuration.

An input directory holds one file per field (RHO, U, P, plus V in 2D and PHI
for two-component flow) with a .txt or .dat suffix, and optionally a
config.txt of "offset value" lines. 1D files list the cell values separated
by whitespace or newlines. 2D files are matrices with one line per row of
cells in y and one column per cell in x.

Output directories receive RHO/U/P/E/X (and V/PHI) files with one line per
stored time level, the CPU time of every step and a log of the run.
"""

import logging
from pathlib import Path
from typing import Dict, List, Tuple, Union

import numpy as np

from .config import ConfigIndex, N_CONF, SolverConfig, apply_overrides, empty_table
from .errors import FileDirectoryError, InputError
from .state import FIELD_SCHEMAS, FieldSet, FlowState, model_for

logger = logging.getLogger(__name__)

PathLike = Union[str, Path]

FIELD_SUFFIXES = ('.txt', '.dat')
CONFIG_FILE = 'config.txt'


def find_field_file(directory: PathLike, name: str) -> Path:
    """Path of a field file, trying the .txt suffix before .dat."""
    directory = Path(directory)
    for suffix in FIELD_SUFFIXES:
        path = directory / f"{name}{suffix}"
        if path.is_file():
            return path
    raise FileDirectoryError(f"Cannot open initial data file: {name}!")


def read_field(path: PathLike, dim: int = 1) -> np.ndarray:
    """
    Read one field file.

    Args:
        path: File to read
        dim: 1 for a flat list of cell values, 2 for an n_y by n_x matrix

    Returns:
        Array of shape (n_cells,) in 1D or (n_x, n_y) in 2D
    """
    path = Path(path)
    try:
        text = path.read_text()
    except OSError as exc:
        raise FileDirectoryError(f"Cannot open initial data file: {path.name}!") from exc

    try:
        if dim == 1:
            values = np.array(text.split(), dtype=float)
        else:
            rows = [line.split() for line in text.splitlines() if line.strip()]
            values = np.array(rows, dtype=float)
    except ValueError as exc:
        raise InputError(f"Error in reading fluid variables in initial data file: {path.name}!") from exc

    if values.size < 1 or (dim == 2 and values.ndim != 2):
        raise InputError(f"Error in counting fluid variables in initial data file: {path.name}!")
    # File lines run along y, columns along x
    return values if dim == 1 else values.T


def read_fields(directory: PathLike, model: str = 'single') -> FieldSet:
    """
    Read the initial fields of a flow model from a directory.

    Raises:
        FileDirectoryError: directory or a field file missing
        InputError: unreadable values or unequal cell counts
    """
    directory = Path(directory)
    if not directory.is_dir():
        raise FileDirectoryError(f"Input directory does not exist: {directory}")
    dim = 2 if model == 'planar_2d' else 1
    fields = {name: read_field(find_field_file(directory, name), dim)
              for name in FIELD_SCHEMAS[model]}
    field_set = FieldSet(fields, model)
    logger.info("%s data initialized, grid cell number = %d.", directory.name, field_set.n_cells)
    return field_set


def read_config(path: PathLike, table: np.ndarray = None) -> np.ndarray:
    """
    Read a configuration file of "offset value" lines into a flat table.

    Blank lines and lines starting with '#' are skipped. Entries not in the
    file keep their value in `table` (unset by default).
    """
    path = Path(path)
    table = empty_table() if table is None else np.array(table, dtype=float)
    try:
        lines = path.read_text().splitlines()
    except OSError as exc:
        raise FileDirectoryError(f"Cannot open configuration file: {path}") from exc

    for lineno, line in enumerate(lines, 1):
        line = line.strip()
        if not line or line.startswith('#'):
            continue
        parts = line.split()
        try:
            idx, value = int(parts[0]), float(parts[1])
        except (IndexError, ValueError) as exc:
            raise InputError(f"Error in configuration file {path.name}, line {lineno}: {line}") from exc
        if not 0 <= idx < N_CONF:
            raise InputError(f"Configuration offset {idx} out of range in {path.name}")
        table[idx] = value
    return table


def load_case(directory: PathLike, overrides: List[str] = (), dim: int = 1,
              **config_kwargs) -> Tuple[FieldSet, SolverConfig]:
    """
    Read config.txt (if present), apply 'n=C' overrides and read the fields.

    Returns:
        fields, config
    """
    directory = Path(directory)
    if not directory.is_dir():
        raise FileDirectoryError(f"Input directory does not exist: {directory}")
    table = empty_table()
    table[ConfigIndex.DIM] = dim
    config_path = directory / CONFIG_FILE
    if config_path.is_file():
        table = read_config(config_path, table)
    table = apply_overrides(table, overrides)
    config = SolverConfig.from_array(table, **config_kwargs)

    fields = read_fields(directory, model_for(config.dim, config.two_component))
    return fields, config


def _format_rows(rows: np.ndarray) -> str:
    return '\n'.join('\t'.join(f"{v:.10g}" for v in np.ravel(row)) for row in rows) + '\n'


def write_outputs(result, directory: PathLike, initial=None) -> Dict[str, Path]:
    """
    Write the results of a run.

    Each field file has one line per stored time level: the initial state
    (if given), every snapshot and the final state. 2D levels are written
    as n_y by n_x matrices separated by a blank line.

    Args:
        result: RunResult from `run`
        directory: Output directory (created if missing)
        initial: InitialState of the run, written as the first level

    Returns:
        Mapping of output name to the written path
    """
    directory = Path(directory)
    try:
        directory.mkdir(parents=True, exist_ok=True)
    except OSError as exc:
        raise FileDirectoryError(f"Cannot create output directory: {directory}") from exc

    state = result.final_state
    levels = []
    if initial is not None:
        levels.append((initial.fields.to_primitive(), initial.mesh.x_faces))
    levels.extend((snap.W, snap.x_faces) for snap in result.snapshots)
    if not result.snapshots or result.snapshots[-1].step != result.steps:
        levels.append((state.W, result.mesh.x_faces))

    names = FIELD_SCHEMAS[_model_of(state)]
    columns = {name: [W[row] for W, _ in levels] for row, name in enumerate(names)}
    columns['E'] = [FlowState(W, state.gas, state.n_tangential).E for W, _ in levels]
    columns['X'] = [x_faces for _, x_faces in levels]

    written = {}
    try:
        for name, rows in columns.items():
            path = directory / f"{name}.dat"
            if name != 'X' and np.ndim(rows[0]) == 2:
                path.write_text('\n'.join(_format_rows(r.T) for r in rows))
            else:
                path.write_text(_format_rows(rows))
            written[name] = path

        path = directory / 'cpu_time.dat'
        path.write_text('\n'.join(f"{t:.6g}" for t in result.cpu_times) + '\n')
        written['cpu_time'] = path

        path = directory / 'log.txt'
        path.write_text(_run_log(result))
        written['log'] = path
    except OSError as exc:
        raise InputError(f"Error in writing output files to {directory}") from exc

    logger.info("Output written to %s", directory)
    return written


def _model_of(state) -> str:
    if state.n_tangential:
        return 'planar_2d'
    return 'two_component' if state.gas.two_component else 'single'


def _run_log(result) -> str:
    cfg = result.config
    lines = [
        f"status\t{result.status.value}",
        f"time\t{result.time:.10g}",
        f"steps\t{result.steps}",
        f"cpu_time\t{result.cpu_time:.6g}",
        f"scheme\t{cfg.scheme}",
        f"frame\t{cfg.frame.name}",
        "# configuration (offset value)",
    ]
    table = cfg.to_array()
    for idx in ConfigIndex:
        if np.isfinite(table[idx]):
            lines.append(f"{int(idx)}\t{table[idx]:.10g}")
    return '\n'.join(lines) + '\n'
