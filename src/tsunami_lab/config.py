# -*- coding: utf-8 -*-

"""
tsunami_lab/config.py

Central place for the file names, schema and units shared by the snapshot
writer, the raster readers and the tsunami setups. Keeping them here keeps
the on-disk layout consistent between the code that writes a snapshot and
the code (or test) that reads it back.

Contents:
---------
1. DEFAULT FILE NAMES
   - The two input rasters used by the tsunami event setup.

2. NETCDF LAYOUT
   - File format, dimension names and the names of the raster variables.

3. SNAPSHOT_SCHEMA
   - Storage dtype, dimensions and units of every snapshot variable.

Usage:
------
    from tsunami_lab.config import SNAPSHOT_SCHEMA, DEFAULT_BATHYMETRY_PATH
"""

# ───────────────────────────────────────────────────────────────────────────────
# 1) DEFAULT FILE NAMES
# ───────────────────────────────────────────────────────────────────────────────
DEFAULT_BATHYMETRY_PATH = "bathymetry_data.nc"
DEFAULT_DISPLACEMENT_PATH = "displacement_data.nc"

# ───────────────────────────────────────────────────────────────────────────────
# 2) NETCDF LAYOUT
# ───────────────────────────────────────────────────────────────────────────────
NETCDF_FORMAT = "NETCDF4"

X_DIM = "x"
Y_DIM = "y"
TIME_DIM = "time"

# Every input raster exposes 1D coordinates x, y and a 2D data variable z
RASTER_X = "x"
RASTER_Y = "y"
RASTER_Z = "z"

# xarray engine used when reading a finished snapshot back
SNAPSHOT_ENGINE = "h5netcdf"

# ───────────────────────────────────────────────────────────────────────────────
# 3) SNAPSHOT SCHEMA
# ───────────────────────────────────────────────────────────────────────────────
METER = "m"
SECOND = "s"
MOMENTUM_UNITS = "m/s"          # variant that reads source rasters
SIMPLE_MOMENTUM_UNITS = "m"     # write-only variant

FIELD_DTYPE = "f4"              # height / momenta / bathymetry (32-bit storage)
COORD_DTYPE = "f4"              # cell-center coordinates (m)
TIME_DTYPE = "f8"               # simulation time (s)

SNAPSHOT_SCHEMA = {
    # name:        (dtype,        dimensions,                 units)
    'x':          (COORD_DTYPE, (X_DIM,),                   METER),
    'y':          (COORD_DTYPE, (Y_DIM,),                   METER),
    'time':       (TIME_DTYPE,  (TIME_DIM,),                SECOND),
    'height':     (FIELD_DTYPE, (TIME_DIM, X_DIM, Y_DIM),   METER),
    'momentum_x': (FIELD_DTYPE, (TIME_DIM, X_DIM, Y_DIM),   MOMENTUM_UNITS),
    'momentum_y': (FIELD_DTYPE, (TIME_DIM, X_DIM, Y_DIM),   MOMENTUM_UNITS),
    'bathymetry': (FIELD_DTYPE, (X_DIM, Y_DIM),             METER),
}

# Fields that advance together as one time-slice
TIME_VARYING_FIELDS = ('height', 'momentum_x', 'momentum_y')
MOMENTUM_FIELDS = ('momentum_x', 'momentum_y')
