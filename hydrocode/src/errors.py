"""
Error taxonomy for the hydrocode.

Every error carries the process exit status the command line reports:

    0  success
    1  file/directory error
    2  data read/write error
    3  calculation error
    4  invalid arguments or configuration
    5  memory error
"""


class HydroError(Exception):
    """Base class for all hydrocode errors."""
    exit_code = 1


class FileDirectoryError(HydroError):
    """An input file or directory is missing or cannot be opened."""
    exit_code = 1


class InputError(HydroError):
    """Field data could not be read, or the cell counts disagree."""
    exit_code = 2


class CalculationError(HydroError):
    """
    Non-physical or non-finite state, or a Riemann solver failure.

    Attributes:
        step: Time step index (1-based) where the failure was found
        index: Cell or face index of the first offending entry
        stage: Part of the step that failed ('Reconstruction', 'STAR', 'Update')
    """
    exit_code = 3

    def __init__(self, message: str, step: int = None, index=None,
                 stage: str = None):
        self.step = step
        self.index = index
        self.stage = stage
        super().__init__(message)

    def __str__(self):
        msg = super().__str__()
        if self.step is not None or self.index is not None:
            msg += f" on [{self.step}, {self.index}] (t_n, x)"
        if self.stage:
            msg += f" - {self.stage}"
        return msg


class RiemannConvergenceError(CalculationError):
    """Newton iteration of the exact Riemann solver did not converge."""


class ConfigurationError(HydroError, ValueError):
    """Unknown boundary code, unsupported scheme order, frame or scheme."""
    exit_code = 4


class ResourceError(HydroError, MemoryError):
    """Allocation of the solution buffers failed."""
    exit_code = 5
