from tsunami_lab.io.errors import TsunamiIOError, ResourceError, GridDegeneracyError, OutOfRangeLookup
from tsunami_lab.io.array_store import ArrayStore
from tsunami_lab.io.raster_reader import RasterMetadata, SourceRaster
from tsunami_lab.io.resample import (
    TargetGrid,
    ScalingFactors,
    GridResampler,
    derive_target_grid,
    bathymetry_index_for,
    displacement_lookup,
)
from tsunami_lab.io.netcdf import SnapshotWriter, load_snapshot, snapshot_fields

__all__ = [
    'TsunamiIOError', 'ResourceError', 'GridDegeneracyError', 'OutOfRangeLookup',
    'ArrayStore', 'RasterMetadata', 'SourceRaster',
    'TargetGrid', 'ScalingFactors', 'GridResampler',
    'derive_target_grid', 'bathymetry_index_for', 'displacement_lookup',
    'SnapshotWriter', 'load_snapshot', 'snapshot_fields',
]
