"""
Run Sod's shock tube with every scheme and frame, compared to the exact
Riemann solution.

This script shows:
1. Godunov and GRP schemes in the Eulerian, Lagrangian and ALE frames
2. The approximate Riemann solvers (HLL, HLLC, Roe, Roe-HLL)
3. A resolution study of the GRP and Godunov schemes

Run from the project root:
    python hydrocode/scripts/run_shock_tube.py
"""

import sys
from pathlib import Path

# Add project root to path
project_root = Path(__file__).parent.parent.parent
if str(project_root) not in sys.path:
    sys.path.insert(0, str(project_root))

import logging

import numpy as np
import matplotlib.pyplot as plt

from hydrocode.src.config import Frame
from hydrocode.src.plotting import plot_result
from hydrocode.src.test_cases import run_shock_tube_test


def plot_error_analysis(result, exact, filename):
    """Absolute error of density, velocity and pressure over x."""
    state = result.final_state
    x = result.mesh.x_cells

    fig, axes = plt.subplots(1, 3, figsize=(15, 4))
    fig.suptitle('Absolute Error Distribution', fontsize=14, fontweight='bold')
    for ax, (name, values, colour) in zip(axes, [('Density', state.rho - exact['rho'], 'b-'),
                                                  ('Velocity', state.u - exact['u'], 'r-'),
                                                  ('Pressure', state.p - exact['p'], 'g-')]):
        ax.plot(x, np.abs(values), colour, linewidth=2)
        ax.set_xlabel('x')
        ax.set_title(f'{name} Error')
        ax.grid(True, alpha=0.3)
        ax.axvline(x=0.5, color='gray', linestyle=':', alpha=0.5)

    plt.tight_layout()
    plt.savefig(filename, dpi=150, bbox_inches='tight')
    print(f"Saved error plot to: {filename}")
    return fig


def scheme_comparison(n_cells=200):
    """L1 density errors of all schemes at one resolution."""
    print("\n" + "=" * 80)
    print(f"SCHEME COMPARISON ({n_cells} cells)")
    print("=" * 80)
    runs = [
        ('Godunov', dict(order=1)),
        ('GRP', dict(order=2)),
        ('GRP Lagrangian', dict(order=2, frame=Frame.LAGRANGIAN)),
        ('GRP ALE', dict(order=2, frame=Frame.ALE)),
        ('HLL', dict(order=2, scheme='HLL')),
        ('HLLC', dict(order=2, scheme='HLLC')),
        ('Roe', dict(order=2, scheme='Roe')),
        ('Roe-HLL', dict(order=2, scheme='Roe_HLL')),
    ]
    print(f"\n{'Scheme':<16} {'steps':<8} {'rho L1':<12} {'u L1':<12} {'p L1':<12}")
    print("-" * 80)
    for name, kwargs in runs:
        result, exact = run_shock_tube_test(n_cells=n_cells, **kwargs)
        state = result.final_state
        print(f"{name:<16} {result.steps:<8d} "
              f"{np.mean(np.abs(state.rho - exact['rho'])):<12.6f} "
              f"{np.mean(np.abs(state.u - exact['u'])):<12.6f} "
              f"{np.mean(np.abs(state.p - exact['p'])):<12.6f}")


def resolution_study():
    """Density L1 error of the Godunov and GRP schemes against the cell width."""
    print("\n" + "=" * 80)
    print("RESOLUTION STUDY")
    print("=" * 80)

    resolutions = [50, 100, 200, 400, 800]
    errors = {1: [], 2: []}
    for order in (1, 2):
        for n_cells in resolutions:
            result, exact = run_shock_tube_test(n_cells=n_cells, order=order)
            errors[order].append(np.mean(np.abs(result.final_state.rho - exact['rho'])))

    dx = 1.0 / np.array(resolutions)
    fig, ax = plt.subplots(figsize=(7, 5))
    ax.loglog(dx, errors[1], 'b-o', linewidth=2, label='Godunov')
    ax.loglog(dx, errors[2], 'r-s', linewidth=2, label='GRP')
    ax.loglog(dx, dx**0.5, 'k--', alpha=0.5, label='slope 1/2')
    ax.set_xlabel('Cell width')
    ax.set_ylabel('Density L1 error')
    ax.set_title('Convergence Study')
    ax.legend()
    ax.grid(True, alpha=0.3)
    ax.invert_xaxis()
    plt.tight_layout()
    plt.savefig('shock_tube_convergence.png', dpi=150, bbox_inches='tight')
    print("\nSaved convergence plot to: shock_tube_convergence.png")

    print(f"\n{'N cells':<10} {'Godunov':<12} {'GRP':<12}")
    print("-" * 80)
    for i, n in enumerate(resolutions):
        print(f"{n:<10} {errors[1][i]:<12.6f} {errors[2][i]:<12.6f}")
    return errors


if __name__ == "__main__":
    logging.basicConfig(level=logging.WARNING)

    print("\n" + "=" * 80)
    print("SOD SHOCK TUBE VALIDATION TEST")
    print("=" * 80)

    result, exact = run_shock_tube_test(n_cells=400, order=2)
    plot_result(result, exact, filename='shock_tube_results.png')
    print("Saved plot to: shock_tube_results.png")
    plot_error_analysis(result, exact, 'shock_tube_errors.png')

    scheme_comparison()

    response = input("\nRun resolution study? [y/N]: ")
    if response.lower() == 'y':
        resolution_study()

    plt.show()
