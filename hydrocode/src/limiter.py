"""
Minmod slope limiters.

Both functions work elementwise on numpy arrays and also accept scalars.
"""

import numpy as np


def minmod2(a, b):
    """
    Two-argument minmod.

    Zero when a and b differ in sign (or either is zero), otherwise the
    argument of smaller magnitude.
    """
    a = np.asarray(a, dtype=float)
    b = np.asarray(b, dtype=float)
    same_sign = (a * b) > 0
    result = np.where(same_sign, np.sign(a) * np.minimum(np.abs(a), np.abs(b)), 0.0)
    return result[()] if result.ndim == 0 else result


def minmod3(a, b, c):
    """Three-argument minmod: smallest magnitude if all share one sign, else zero."""
    a = np.asarray(a, dtype=float)
    b = np.asarray(b, dtype=float)
    c = np.asarray(c, dtype=float)
    same_sign = ((a * b) > 0) & ((b * c) > 0)
    smallest = np.minimum(np.minimum(np.abs(a), np.abs(b)), np.abs(c))
    result = np.where(same_sign, np.sign(a) * smallest, 0.0)
    return result[()] if result.ndim == 0 else result
