"""Nearest-neighbour reprojection of source rasters onto the simulation grid.

The target grid is derived from the bathymetry raster: its width is split
into ``nx`` cells and the number of cells in y follows from the aspect
ratio. Query coordinates are offsets in metres from the grid origin and
may be cell origins (``ix * cell_size``) or cell centers
(``(ix + 0.5) * cell_size``).

Bathymetry is looked up by scaling the target coordinate into raster-native
index units. Displacement is looked up in world coordinates anchored at the
bathymetry raster's minimum and is zero outside its coverage.
"""

from dataclasses import dataclass
from typing import Optional, Tuple
import logging
import math

import numpy as np

from tsunami_lab.io.errors import GridDegeneracyError, OutOfRangeLookup
from tsunami_lab.io.raster_reader import RasterMetadata, SourceRaster
from tsunami_lab.utils import round_half_up

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class TargetGrid:
    nx: int
    ny: int
    cell_size: float

    def __post_init__(self):
        if self.nx <= 0 or self.ny <= 0:
            raise GridDegeneracyError(f"target grid must be non-empty, got {self.nx} x {self.ny}")
        if not self.cell_size > 0.0:
            raise GridDegeneracyError(f"target cell size must be positive, got {self.cell_size}")

    def cell_centers(self):
        """Return (x, y) cell-center coordinates, ``(i + 0.5) * cell_size``."""
        xs = (np.arange(self.nx) + 0.5) * self.cell_size
        ys = (np.arange(self.ny) + 0.5) * self.cell_size
        return xs, ys


@dataclass(frozen=True)
class ScalingFactors:
    """Ratio of raster sample count to target cell count per axis."""
    x: float
    y: float

    @classmethod
    def for_raster(cls, extent: RasterMetadata, grid: TargetGrid) -> "ScalingFactors":
        return cls(x=extent.x_length / grid.nx, y=extent.y_length / grid.ny)


def derive_target_grid(bathymetry_extent: RasterMetadata, nx: int) -> TargetGrid:
    """Split the bathymetry extent into ``nx`` cells in x.

    The physical width includes one extra raster cell so that every raster
    sample owns a full cell. ``ny`` is the rounded ratio of the physical
    height to the derived cell size, and never less than one.
    """
    if nx <= 0:
        raise GridDegeneracyError(f"nx must be positive, got {nx}")
    ext = bathymetry_extent
    size_x = ext.max_x - ext.min_x + ext.cell_size
    size_y = ext.max_y - ext.min_y + ext.cell_size
    cell_size = size_x / nx
    if not cell_size > 0.0:
        raise GridDegeneracyError(f"bathymetry extent yields cell size {cell_size}")
    ny = max(1, round_half_up(size_y / cell_size))
    return TargetGrid(nx=int(nx), ny=ny, cell_size=cell_size)


def bathymetry_index_for(x: float, y: float, scaling: ScalingFactors, cell_size: float) -> Tuple[int, int]:
    """Map a target-grid coordinate to the nearest bathymetry sample index."""
    ix = math.floor(scaling.x * x / cell_size + scaling.x * 0.5)
    iy = math.floor(scaling.y * y / cell_size + scaling.y * 0.5)
    return int(ix), int(iy)


def _window_index(pos: float, lo: float, hi: float, cell: float, length: int) -> Optional[int]:
    half = 0.5 * cell
    if pos < lo - half or pos > hi + half:
        return None
    idx = math.floor((pos - lo) / cell)
    # the closed window reaches half a cell past either end sample
    return min(max(idx, 0), length - 1)


def displacement_lookup(x: float, y: float, bathymetry_extent: RasterMetadata,
                        displacement: SourceRaster) -> float:
    """Displacement at a target-grid coordinate, or 0.0 outside the raster.

    The world position is the coordinate plus the bathymetry raster's
    minimum, so both rasters must share one coordinate system.
    """
    ext = displacement.extent()
    pos_x = x + bathymetry_extent.min_x
    pos_y = y + bathymetry_extent.min_y
    cell = ext.cell_size

    ix = _window_index(pos_x, ext.min_x, ext.max_x, cell, ext.x_length)
    if ix is None:
        return 0.0
    iy = _window_index(pos_y, ext.min_y, ext.max_y, cell, ext.y_length)
    if iy is None:
        return 0.0
    return displacement.sample_nearest(ix, iy)


class GridResampler:
    """Target grid plus lookups into the bathymetry and displacement rasters.

    The resampler closes the rasters it was given when `close()` is called.
    ``displacement`` may be None, in which case every displacement is 0.0.
    """

    def __init__(self, bathymetry: SourceRaster, displacement: Optional[SourceRaster], nx: int):
        self.bathymetry = bathymetry
        self.displacement = displacement
        self._closed = False
        self.retarget(nx)

    @classmethod
    def from_files(cls, bathymetry_path, displacement_path, nx: int) -> "GridResampler":
        bathymetry = SourceRaster(bathymetry_path)
        displacement = None
        try:
            if displacement_path is not None:
                displacement = SourceRaster(displacement_path)
            return cls(bathymetry, displacement, nx)
        except Exception:
            bathymetry.close()
            if displacement is not None:
                displacement.close()
            raise

    def retarget(self, nx: int) -> TargetGrid:
        """Derive a new target grid for ``nx`` cells and refresh the scaling."""
        extent = self.bathymetry.extent()
        self.grid = derive_target_grid(extent, nx)
        self.scaling = ScalingFactors.for_raster(extent, self.grid)
        logger.info('target grid %d x %d, cell size %g (scaling %g, %g)',
                    self.grid.nx, self.grid.ny, self.grid.cell_size, self.scaling.x, self.scaling.y)
        return self.grid

    def bathymetry_index(self, x: float, y: float) -> Tuple[int, int]:
        return bathymetry_index_for(x, y, self.scaling, self.grid.cell_size)

    def bathymetry_at(self, x: float, y: float) -> float:
        """Raw bathymetry at a coordinate inside the target grid.

        Nearest-neighbour rounding at the far edge of the grid can land one
        sample past the raster; such indices are pulled back onto the last
        sample. Coordinates outside ``[0, nx * cell] x [0, ny * cell]``
        raise OutOfRangeLookup.
        """
        grid = self.grid
        if not (0.0 <= x <= grid.nx * grid.cell_size and 0.0 <= y <= grid.ny * grid.cell_size):
            raise OutOfRangeLookup('bathymetry', (x, y), (grid.nx * grid.cell_size, grid.ny * grid.cell_size))
        extent = self.bathymetry.extent()
        ix, iy = self.bathymetry_index(x, y)
        ix = min(ix, extent.x_length - 1)
        iy = min(iy, extent.y_length - 1)
        return self.bathymetry.sample_nearest(ix, iy)

    def displacement_at(self, x: float, y: float) -> float:
        if self.displacement is None:
            return 0.0
        return displacement_lookup(x, y, self.bathymetry.extent(), self.displacement)

    @property
    def closed(self) -> bool:
        return self._closed

    def close(self) -> None:
        if self._closed:
            return
        self._closed = True
        try:
            self.bathymetry.close()
        finally:
            if self.displacement is not None:
                self.displacement.close()

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc, tb):
        self.close()
        return False
