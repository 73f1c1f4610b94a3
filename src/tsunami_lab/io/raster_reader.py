"""Read-only access to bathymetry and displacement rasters.

A raster file exposes 1D coordinate variables ``x`` and ``y`` and a 2D data
variable ``z`` over the dimensions ``x`` and ``y`` (in either order).
"""

from dataclasses import dataclass
import logging

from tsunami_lab.config import RASTER_X, RASTER_Y, RASTER_Z
from tsunami_lab.io.array_store import ArrayStore
from tsunami_lab.io.errors import GridDegeneracyError, ResourceError, OutOfRangeLookup

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class RasterMetadata:
    """Extent and sample count of one raster.

    ``cell_size`` is derived from the x axis and used for both axes.
    """
    x_length: int
    y_length: int
    min_x: float
    max_x: float
    min_y: float
    max_y: float

    def __post_init__(self):
        if self.x_length < 2 or self.y_length < 2:
            raise GridDegeneracyError(
                f"raster needs at least 2 samples per axis, got {self.x_length} x {self.y_length}")
        if self.max_x == self.min_x:
            raise GridDegeneracyError(f"raster x extent collapses at {self.min_x}")

    @property
    def cell_size(self) -> float:
        return (self.max_x - self.min_x) / (self.x_length - 1)


class SourceRaster:
    """One opened raster file. Holds a read-only handle until `close()`."""

    def __init__(self, path):
        self.path = str(path)
        self._store = ArrayStore.open(self.path, mode='r')
        try:
            self._metadata = self._read_metadata()
        except Exception:
            self._store.close()
            raise
        logger.info('raster %s: %d x %d samples, x=[%g, %g], y=[%g, %g], cell=%g',
                    self.path, self._metadata.x_length, self._metadata.y_length,
                    self._metadata.min_x, self._metadata.max_x,
                    self._metadata.min_y, self._metadata.max_y, self._metadata.cell_size)

    def _read_metadata(self) -> RasterMetadata:
        store = self._store
        for name in (RASTER_X, RASTER_Y, RASTER_Z):
            if not store.has_variable(name):
                raise ResourceError(f"raster '{self.path}' has no variable '{name}'")
        for name in (RASTER_X, RASTER_Y):
            if not store.has_dimension(name):
                raise ResourceError(f"raster '{self.path}' has no dimension '{name}'")

        z_dims = store.variable_dimensions(RASTER_Z)
        if sorted(z_dims) != sorted((RASTER_X, RASTER_Y)):
            raise ResourceError(
                f"raster '{self.path}': '{RASTER_Z}' spans {z_dims}, expected '{RASTER_X}' and '{RASTER_Y}'")
        self._z_dims = z_dims

        x_length = store.dimension_length(RASTER_X)
        y_length = store.dimension_length(RASTER_Y)
        if x_length < 2 or y_length < 2:
            raise GridDegeneracyError(
                f"raster '{self.path}' needs at least 2 samples per axis, got {x_length} x {y_length}")

        return RasterMetadata(
            x_length=x_length,
            y_length=y_length,
            min_x=store.read_scalar(RASTER_X, (0,)),
            max_x=store.read_scalar(RASTER_X, (x_length - 1,)),
            min_y=store.read_scalar(RASTER_Y, (0,)),
            max_y=store.read_scalar(RASTER_Y, (y_length - 1,)),
        )

    def extent(self) -> RasterMetadata:
        return self._metadata

    def sample_nearest(self, ix: int, iy: int) -> float:
        """Read the single sample at raster index (ix, iy)."""
        meta = self._metadata
        if not (0 <= ix < meta.x_length and 0 <= iy < meta.y_length):
            raise OutOfRangeLookup(RASTER_Z, (ix, iy), (meta.x_length, meta.y_length))
        by_dim = {RASTER_X: ix, RASTER_Y: iy}
        return self._store.read_scalar(RASTER_Z, [by_dim[d] for d in self._z_dims])

    @property
    def closed(self) -> bool:
        return self._store.closed

    def close(self) -> None:
        self._store.close()

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc, tb):
        self.close()
        return False

    def __repr__(self):
        return f"SourceRaster({self.path!r})"
