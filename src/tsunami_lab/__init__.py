"""tsunami_lab: snapshot persistence and source-raster resampling for a 2D shallow-water tsunami solver."""

__version__ = "0.1.0"
