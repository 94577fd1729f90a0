"""
Plots of computed solutions, optionally against a reference solution.
"""

from typing import Dict, Optional

import numpy as np
import matplotlib.pyplot as plt


def plot_solution(x: np.ndarray, state, exact: Optional[Dict[str, np.ndarray]] = None,
                  time: float = None, filename: str = None, title: str = None):
    """
    Density, velocity, pressure and specific internal energy over x.

    Args:
        x: Cell centres
        state: FlowState of the computed solution
        exact: Reference solution with keys rho, u, p, e (optional)
        time: Solution time shown in the title
        filename: Save the figure there if given

    Returns:
        matplotlib Figure
    """
    fig, axes = plt.subplots(2, 2, figsize=(14, 10))
    if title is None:
        title = 'Solution' if time is None else f'Solution: t = {time:.4g}'
    fig.suptitle(title, fontsize=14, fontweight='bold')

    panels = [
        ('rho', state.rho, 'Density', r'$\rho$'),
        ('u', state.u, 'Velocity', '$u$'),
        ('p', state.p, 'Pressure', '$p$'),
        ('e', state.e, 'Specific Internal Energy', '$e$'),
    ]
    for ax, (key, values, name, label) in zip(axes.flat, panels):
        ax.plot(x, values, 'b.-', linewidth=1, markersize=3, label='Computed')
        if exact is not None and key in exact:
            ax.plot(x, exact[key], 'r--', linewidth=2, label='Exact')
            ax.legend()
        ax.set_xlabel('x')
        ax.set_ylabel(label)
        ax.set_title(name)
        ax.grid(True, alpha=0.3)

    fig.tight_layout()
    if filename is not None:
        fig.savefig(filename, dpi=150, bbox_inches='tight')
    return fig


def plot_result(result, exact: Optional[Dict[str, np.ndarray]] = None,
                filename: str = None):
    """Plot the final state of a 1D RunResult."""
    mesh = result.mesh
    return plot_solution(mesh.x_cells, result.final_state, exact, time=result.time,
                         filename=filename,
                         title=f'{result.config.frame.name} {result.config.scheme}, '
                               f'order {result.config.order}: t = {result.time:.4g}')


def plot_field_2d(result, field: str = 'rho', filename: str = None):
    """Colour map of one field of a 2D RunResult."""
    mesh = result.mesh
    values = getattr(result.final_state, field)

    fig, ax = plt.subplots(figsize=(8, 7))
    pcm = ax.pcolormesh(mesh.x_faces, mesh.y_faces, values.T, shading='flat', cmap='viridis')
    fig.colorbar(pcm, ax=ax, label=field)
    ax.set_aspect('equal')
    ax.set_xlabel('x')
    ax.set_ylabel('y')
    ax.set_title(f'{field}: t = {result.time:.4g}')

    fig.tight_layout()
    if filename is not None:
        fig.savefig(filename, dpi=150, bbox_inches='tight')
    return fig
