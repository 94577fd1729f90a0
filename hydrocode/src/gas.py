"""
Gas properties for calorically perfect gases and two-component mixtures.
"""

from dataclasses import dataclass

import numpy as np


@dataclass
class GasProperties:
    """Thermodynamic properties for a calorically perfect gas (or two of them)."""
    gamma: float = 1.4          # Ratio of specific heats (fluid a)
    gamma_b: float = np.inf     # Ratio of specific heats of fluid b, inf if absent

    @property
    def two_component(self) -> bool:
        return bool(np.isfinite(self.gamma_b))

    def mixture_gamma(self, phi: np.ndarray) -> np.ndarray:
        """
        Adiabatic index of the mixture for a fraction phi of fluid a.

        gamma = 1 + 1 / (phi/(gamma_a - 1) + (1 - phi)/(gamma_b - 1))
        """
        if not self.two_component:
            return np.full(np.shape(phi), self.gamma, dtype=float)
        return 1.0 + 1.0 / (phi / (self.gamma - 1.0) + (1.0 - phi) / (self.gamma_b - 1.0))

    def cell_gamma(self, W: np.ndarray, n_tangential: int = 0):
        """
        Adiabatic index per cell.

        Returns the scalar gamma for single-fluid flow, otherwise the mixture
        gamma built from the mass fraction row that follows the velocity rows.
        """
        if not self.two_component:
            return self.gamma
        return self.mixture_gamma(W[3 + n_tangential])
