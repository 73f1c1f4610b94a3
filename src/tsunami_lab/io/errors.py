"""Exceptions raised by the tsunami_lab io layer."""


class TsunamiIOError(Exception):
    """Base class for all io-layer failures."""


class ResourceError(TsunamiIOError):
    """A file could not be opened or created, a required variable or
    dimension is missing, or a closed handle was used.

    The message carries the diagnostic of the underlying netCDF library;
    the original exception is chained as ``__cause__`` when there is one.
    """


class GridDegeneracyError(TsunamiIOError, ValueError):
    """A raster or target grid cannot define a positive cell size."""


class OutOfRangeLookup(ResourceError, IndexError):
    """A raster index falls outside the raster's recorded length."""

    def __init__(self, variable, index, shape):
        self.variable = variable
        self.index = tuple(index)
        self.shape = tuple(shape)
        super().__init__(f"index {self.index} outside '{variable}' with shape {self.shape}")
