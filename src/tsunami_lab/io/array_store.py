"""Handle-per-file wrapper around a netCDF4 dataset.

`ArrayStore` exposes named operations (define a dimension or variable,
write a whole variable or one slice along the leading axis, read a single
element) instead of the raw dataset. Every netCDF failure is re-raised as
`ResourceError` with the library's diagnostic attached.

Lifecycle mirrors the netCDF define-then-write discipline: structural
changes are only accepted until `end_definition()` is called, and the
handle is released exactly once by `close()`.
"""

from typing import Any, Dict, Optional, Sequence, Tuple
import logging

import netCDF4
import numpy as np

from tsunami_lab.config import NETCDF_FORMAT
from tsunami_lab.io.errors import ResourceError, OutOfRangeLookup
from tsunami_lab.utils import safe_log_exception

logger = logging.getLogger(__name__)

_NETCDF_ERRORS = (OSError, RuntimeError, KeyError, IndexError, TypeError, ValueError)


class ArrayStore:
    """One open netCDF file.

    Use `ArrayStore.create` for a new file and `ArrayStore.open` for an
    existing one. Instances are context managers.
    """

    def __init__(self, dataset: netCDF4.Dataset, path: str, writable: bool):
        self._ds = dataset
        self.path = str(path)
        self.writable = writable
        # an opened file is already past its definition phase
        self._defining = writable
        self._closed = False
        self._ds.set_auto_mask(False)

    @classmethod
    def create(cls, path, clobber: bool = True, fmt: str = NETCDF_FORMAT) -> "ArrayStore":
        """Create a new file and enter the definition phase."""
        try:
            ds = netCDF4.Dataset(str(path), mode='w', clobber=clobber, format=fmt)
        except _NETCDF_ERRORS as e:
            raise ResourceError(f"cannot create '{path}': {e}") from e
        logger.info('created netCDF store %s (%s)', path, fmt)
        return cls(ds, path, writable=True)

    @classmethod
    def open(cls, path, mode: str = 'r') -> "ArrayStore":
        """Open an existing file; ``mode`` is 'r' (read-only) or 'a' (append)."""
        if mode not in ('r', 'a'):
            raise ValueError(f"unsupported mode {mode!r}")
        try:
            ds = netCDF4.Dataset(str(path), mode=mode)
        except _NETCDF_ERRORS as e:
            raise ResourceError(f"cannot open '{path}': {e}") from e
        logger.info('opened netCDF store %s (mode=%s)', path, mode)
        store = cls(ds, path, writable=(mode == 'a'))
        store._defining = False
        return store

    # ------------------------------------------------------------------
    # state checks
    # ------------------------------------------------------------------
    @property
    def closed(self) -> bool:
        return self._closed

    @property
    def defining(self) -> bool:
        return self._defining

    def _require_open(self) -> netCDF4.Dataset:
        if self._closed:
            raise ResourceError(f"store '{self.path}' is closed")
        return self._ds

    def _require_definition(self) -> netCDF4.Dataset:
        ds = self._require_open()
        if not self.writable:
            raise ResourceError(f"store '{self.path}' is read-only")
        if not self._defining:
            raise ResourceError(f"store '{self.path}' has left its definition phase")
        return ds

    def _require_data(self) -> netCDF4.Dataset:
        ds = self._require_open()
        if not self.writable:
            raise ResourceError(f"store '{self.path}' is read-only")
        if self._defining:
            raise ResourceError(f"store '{self.path}' is still in its definition phase")
        return ds

    def _variable(self, name: str) -> netCDF4.Variable:
        ds = self._require_open()
        try:
            return ds.variables[name]
        except KeyError as e:
            raise ResourceError(f"variable '{name}' not found in '{self.path}'") from e

    # ------------------------------------------------------------------
    # definition phase
    # ------------------------------------------------------------------
    def define_dimension(self, name: str, size: Optional[int]) -> None:
        """Define a dimension; ``size=None`` makes it unlimited."""
        ds = self._require_definition()
        try:
            ds.createDimension(name, size)
        except _NETCDF_ERRORS as e:
            raise ResourceError(f"cannot define dimension '{name}' in '{self.path}': {e}") from e

    def define_variable(self, name: str, dtype: str, dimensions: Sequence[str],
                        units: Optional[str] = None, **attrs: Any) -> None:
        """Define a variable over existing dimensions and attach its attributes."""
        ds = self._require_definition()
        try:
            var = ds.createVariable(name, dtype, tuple(dimensions))
            if units is not None:
                var.setncattr('units', units)
            for key, value in attrs.items():
                var.setncattr(key, value)
        except _NETCDF_ERRORS as e:
            raise ResourceError(f"cannot define variable '{name}' in '{self.path}': {e}") from e

    def end_definition(self) -> None:
        """Leave the definition phase; only data writes are accepted afterwards."""
        self._require_definition()
        self._defining = False

    # ------------------------------------------------------------------
    # data phase
    # ------------------------------------------------------------------
    def write_variable(self, name: str, data: Any) -> None:
        """Overwrite the whole contents of a fixed-size variable."""
        self._require_data()
        var = self._variable(name)
        try:
            var[:] = np.asarray(data)
        except _NETCDF_ERRORS as e:
            raise ResourceError(f"cannot write '{name}' in '{self.path}': {e}") from e

    def write_slice(self, name: str, index: int, data: Any) -> None:
        """Write ``data`` at position ``index`` along the leading axis.

        Writing past the end of an unlimited dimension grows it.
        """
        self._require_data()
        if index < 0:
            raise ResourceError(f"negative slice index {index} for '{name}'")
        var = self._variable(name)
        try:
            var[index] = np.asarray(data)
        except _NETCDF_ERRORS as e:
            raise ResourceError(f"cannot write slice {index} of '{name}' in '{self.path}': {e}") from e

    def read_scalar(self, name: str, index: Sequence[int]) -> float:
        """Read exactly one element. Indices outside the shape raise OutOfRangeLookup."""
        var = self._variable(name)
        index = tuple(int(i) for i in index)
        shape = var.shape
        if len(index) != len(shape) or any(i < 0 or i >= n for i, n in zip(index, shape)):
            raise OutOfRangeLookup(name, index, shape)
        try:
            return float(var[index])
        except _NETCDF_ERRORS as e:
            raise ResourceError(f"cannot read {index} of '{name}' in '{self.path}': {e}") from e

    def read_slice(self, name: str, index: int) -> np.ndarray:
        """Read position ``index`` along the leading axis."""
        var = self._variable(name)
        if index < 0 or index >= var.shape[0]:
            raise OutOfRangeLookup(name, (index,), var.shape)
        try:
            return np.asarray(var[index])
        except _NETCDF_ERRORS as e:
            raise ResourceError(f"cannot read slice {index} of '{name}' in '{self.path}': {e}") from e

    def read_variable(self, name: str) -> np.ndarray:
        var = self._variable(name)
        try:
            return np.asarray(var[:])
        except _NETCDF_ERRORS as e:
            raise ResourceError(f"cannot read '{name}' in '{self.path}': {e}") from e

    # ------------------------------------------------------------------
    # introspection
    # ------------------------------------------------------------------
    def has_variable(self, name: str) -> bool:
        return name in self._require_open().variables

    def has_dimension(self, name: str) -> bool:
        return name in self._require_open().dimensions

    def variable_dimensions(self, name: str) -> Tuple[str, ...]:
        return tuple(self._variable(name).dimensions)

    def variable_attributes(self, name: str) -> Dict[str, Any]:
        var = self._variable(name)
        return {k: var.getncattr(k) for k in var.ncattrs()}

    def dimension_length(self, name: str) -> int:
        ds = self._require_open()
        try:
            return len(ds.dimensions[name])
        except KeyError as e:
            raise ResourceError(f"dimension '{name}' not found in '{self.path}'") from e

    # ------------------------------------------------------------------
    # lifecycle
    # ------------------------------------------------------------------
    def close(self) -> None:
        """Release the file handle. A second call is a no-op."""
        if self._closed:
            return
        self._closed = True
        try:
            self._ds.close()
        except _NETCDF_ERRORS as e:
            raise ResourceError(f"cannot close '{self.path}': {e}") from e
        logger.debug('closed netCDF store %s', self.path)

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
            safe_log_exception('Failed to close netCDF store during finalization', e, path=getattr(self, 'path', None))

    def __repr__(self):
        state = 'closed' if self._closed else ('define' if self._defining else 'data')
        return f"ArrayStore({self.path!r}, {state})"
