"""Time-series snapshots of the shallow-water state in netCDF.

A snapshot file holds cell-center coordinates ``x`` and ``y``, an unlimited
``time`` axis, the time-varying fields ``height``, ``momentum_x`` and
``momentum_y`` shaped (time, x, y) and, optionally, a static
``bathymetry`` field shaped (x, y).

The solver hands over flat buffers whose rows may be wider than the grid
(ghost cells, padding). Every write first copies the logical nx x ny region
into a packed row-major array, so cell (ix, iy) sits at flat offset
``iy * nx + ix`` of each stored slice. The (x, y) dimension labels describe
the extents only; read-back reinterprets the flat slice as (ny, nx).

    >>> writer = SnapshotWriter.create('solver.nc', nx, ny, dxy)
    >>> writer.write_bathymetry(b, stride)
    >>> writer.write_time_slice(h, hu, hv, stride, time_step=0, sim_time=0.0)
    >>> writer.close()
"""

from typing import Any, Dict, Optional
import logging

import numpy as np
import xarray as xr

from tsunami_lab.config import (
    DEFAULT_BATHYMETRY_PATH,
    DEFAULT_DISPLACEMENT_PATH,
    MOMENTUM_FIELDS,
    MOMENTUM_UNITS,
    NETCDF_FORMAT,
    SIMPLE_MOMENTUM_UNITS,
    SNAPSHOT_ENGINE,
    SNAPSHOT_SCHEMA,
    TIME_DIM,
    TIME_VARYING_FIELDS,
    X_DIM,
    Y_DIM,
)
from tsunami_lab.io.array_store import ArrayStore
from tsunami_lab.io.resample import GridResampler, TargetGrid
from tsunami_lab.utils import destride, safe_log_exception

logger = logging.getLogger(__name__)


class SnapshotWriter:
    """Owns one output snapshot file and, in source mode, the input rasters.

    Build it with `SnapshotWriter.create` (write-only) or
    `SnapshotWriter.from_sources` (derives the grid from a bathymetry raster
    and keeps the rasters open for the setup queries).
    """

    def __init__(self, store: ArrayStore, grid: TargetGrid,
                 momentum_units: str = SIMPLE_MOMENTUM_UNITS,
                 with_bathymetry: bool = True,
                 resampler: Optional[GridResampler] = None):
        self.store = store
        self.grid = grid
        self.momentum_units = momentum_units
        self.with_bathymetry = with_bathymetry
        self.resampler = resampler
        self.time_steps = 0
        self._closed = False
        try:
            self._define_schema()
            self._write_coordinates()
        except Exception:
            self.close()
            raise

    @classmethod
    def create(cls, path, nx: int, ny: int, cell_size: float,
               momentum_units: str = SIMPLE_MOMENTUM_UNITS, with_bathymetry: bool = True,
               fmt: str = NETCDF_FORMAT) -> "SnapshotWriter":
        """Write-only mode: the caller supplies the grid shape and cell size."""
        grid = TargetGrid(nx=int(nx), ny=int(ny), cell_size=float(cell_size))
        store = ArrayStore.create(path, clobber=True, fmt=fmt)
        return cls(store, grid, momentum_units=momentum_units, with_bathymetry=with_bathymetry)

    @classmethod
    def from_sources(cls, path, nx: int,
                     bathymetry_path=DEFAULT_BATHYMETRY_PATH,
                     displacement_path=DEFAULT_DISPLACEMENT_PATH,
                     fmt: str = NETCDF_FORMAT) -> "SnapshotWriter":
        """Source mode: derive the grid from the bathymetry raster for ``nx`` cells."""
        resampler = GridResampler.from_files(bathymetry_path, displacement_path, nx)
        try:
            store = ArrayStore.create(path, clobber=True, fmt=fmt)
        except Exception:
            resampler.close()
            raise
        return cls(store, resampler.grid, momentum_units=MOMENTUM_UNITS,
                   with_bathymetry=True, resampler=resampler)

    @property
    def nx(self) -> int:
        return self.grid.nx

    @property
    def ny(self) -> int:
        return self.grid.ny

    @property
    def closed(self) -> bool:
        return self._closed

    def _define_schema(self) -> None:
        store = self.store
        store.define_dimension(X_DIM, self.grid.nx)
        store.define_dimension(Y_DIM, self.grid.ny)
        store.define_dimension(TIME_DIM, None)

        for name, (dtype, dims, units) in SNAPSHOT_SCHEMA.items():
            if name == 'bathymetry' and not self.with_bathymetry:
                continue
            if name in MOMENTUM_FIELDS:
                units = self.momentum_units
            store.define_variable(name, dtype, dims, units=units)
        store.end_definition()

    def _write_coordinates(self) -> None:
        xs, ys = self.grid.cell_centers()
        self.store.write_variable('x', xs)
        self.store.write_variable('y', ys)

    def _pack(self, buffer: Any, stride: int, nx: Optional[int], ny: Optional[int]) -> np.ndarray:
        """De-stride ``buffer`` into the (nx, ny) storage shape, row-major by cell."""
        if nx is not None and int(nx) != self.grid.nx:
            raise ValueError(f"nx {nx} does not match the file's {self.grid.nx}")
        if ny is not None and int(ny) != self.grid.ny:
            raise ValueError(f"ny {ny} does not match the file's {self.grid.ny}")
        packed = destride(buffer, stride, self.grid.nx, self.grid.ny)
        return packed.reshape(self.grid.nx, self.grid.ny)

    def write_bathymetry(self, buffer: Any, stride: int,
                         nx: Optional[int] = None, ny: Optional[int] = None) -> None:
        """Store the static bathymetry field, replacing any earlier write."""
        packed = self._pack(buffer, stride, nx, ny)
        self.store.write_variable('bathymetry', packed)
        logger.debug('wrote bathymetry to %s', self.store.path)

    def write_time_slice(self, height: Any, momentum_x: Any, momentum_y: Any, stride: int,
                         time_step: int, sim_time: float,
                         nx: Optional[int] = None, ny: Optional[int] = None) -> None:
        """Write one time-slice at ``time_step`` along the time axis.

        All three fields are copied out of the solver buffers before the
        file is touched. Repeating a ``time_step`` overwrites that slot.
        """
        time_step = int(time_step)
        if time_step < 0:
            raise ValueError(f"time_step must be non-negative, got {time_step}")
        fields = {
            'height': self._pack(height, stride, nx, ny),
            'momentum_x': self._pack(momentum_x, stride, nx, ny),
            'momentum_y': self._pack(momentum_y, stride, nx, ny),
        }

        self.store.write_slice('time', time_step, sim_time)
        for name in TIME_VARYING_FIELDS:
            self.store.write_slice(name, time_step, fields[name])
        self.time_steps = max(self.time_steps, time_step + 1)
        logger.info('snapshot %d at t=%g s', time_step, sim_time)

    def write(self, stride: int, height: Any, momentum_x: Any, momentum_y: Any,
              bathymetry: Any, time_step: int, sim_time: float) -> None:
        """Solver-facing entry point; ``bathymetry`` is accepted for call compatibility and ignored."""
        self.write_time_slice(height, momentum_x, momentum_y, stride, time_step, sim_time)

    def _unpack(self, stored: np.ndarray) -> np.ndarray:
        return np.asarray(stored).reshape(self.grid.ny, self.grid.nx)

    def read_time_slice(self, time_step: int) -> Dict[str, np.ndarray]:
        """Return the stored fields at ``time_step`` as (ny, nx) arrays plus 'time'."""
        out = {name: self._unpack(self.store.read_slice(name, time_step))
               for name in TIME_VARYING_FIELDS}
        out['time'] = float(self.store.read_slice('time', time_step))
        return out

    def read_bathymetry(self) -> np.ndarray:
        return self._unpack(self.store.read_variable('bathymetry'))

    def close(self) -> None:
        """Release the output file and, in source mode, both input rasters."""
        if self._closed:
            return
        self._closed = True
        try:
            self.store.close()
        finally:
            if self.resampler is not None:
                self.resampler.close()

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc, tb):
        self.close()
        return False

    def __del__(self):
        if getattr(self, '_closed', True):
            return
        try:
            self.close()
        except Exception as e:
            safe_log_exception('Failed to close snapshot writer during finalization', e)


def load_snapshot(path, engine: str = SNAPSHOT_ENGINE) -> xr.Dataset:
    """Load a finished snapshot file into memory and release the file."""
    with xr.open_dataset(str(path), engine=engine, decode_times=False) as ds:
        return ds.load()


def snapshot_fields(ds: xr.Dataset, time_step: int) -> Dict[str, np.ndarray]:
    """Time-varying fields of ``ds`` at ``time_step`` as (ny, nx) arrays."""
    ny, nx = ds.sizes[Y_DIM], ds.sizes[X_DIM]
    out = {}
    for name in TIME_VARYING_FIELDS:
        out[name] = ds[name].isel({TIME_DIM: time_step}).values.reshape(ny, nx)
    return out
