import numpy as np
import netCDF4


def create_raster(path, xs, ys, z, z_dims=('y', 'x'), dtype='f8'):
    """Write a minimal raster file with coordinates x, y and data z.

    ``z`` is indexed [iy, ix]; it is transposed on disk when ``z_dims`` is
    ('x', 'y').
    """
    xs = np.asarray(xs, dtype=float)
    ys = np.asarray(ys, dtype=float)
    z = np.asarray(z, dtype=float)
    with netCDF4.Dataset(str(path), 'w', format='NETCDF4') as ds:
        ds.createDimension('x', xs.size)
        ds.createDimension('y', ys.size)
        vx = ds.createVariable('x', 'f8', ('x',))
        vy = ds.createVariable('y', 'f8', ('y',))
        vz = ds.createVariable('z', dtype, tuple(z_dims))
        vx.units = 'm'
        vy.units = 'm'
        vz.units = 'm'
        vx[:] = xs
        vy[:] = ys
        vz[:] = z if tuple(z_dims) == ('y', 'x') else z.T
    return str(path)


def bathymetry_values(nx, ny):
    """Distinct below-sea-level samples: -(100 + ix + 10 * iy)."""
    iy, ix = np.mgrid[0:ny, 0:nx]
    return -(100.0 + ix + 10.0 * iy)


def displacement_values(nx, ny):
    """Distinct positive samples: 1 + ix + 10 * iy."""
    iy, ix = np.mgrid[0:ny, 0:nx]
    return 1.0 + ix + 10.0 * iy


def create_bathymetry(path, xs=(0.0, 50.0, 100.0), ys=(0.0, 50.0, 100.0, 150.0), z_dims=('y', 'x')):
    """3 x 4 bathymetry raster with 50 m spacing unless told otherwise."""
    return create_raster(path, xs, ys, bathymetry_values(len(xs), len(ys)), z_dims=z_dims)


def create_displacement(path, xs=(10.0, 20.0, 30.0), ys=(10.0, 20.0, 30.0)):
    """3 x 3 displacement raster with 10 m spacing unless told otherwise."""
    return create_raster(path, xs, ys, displacement_values(len(xs), len(ys)))
