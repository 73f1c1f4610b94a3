import pytest

from tsunami_lab.io.errors import GridDegeneracyError, OutOfRangeLookup, ResourceError
from tsunami_lab.io.raster_reader import RasterMetadata, SourceRaster
from tsunami_lab.io.resample import (
    GridResampler,
    ScalingFactors,
    TargetGrid,
    bathymetry_index_for,
    derive_target_grid,
    displacement_lookup,
)
from tsunami_lab.tests.fixtures import (
    bathymetry_values,
    create_bathymetry,
    create_displacement,
    create_raster,
    displacement_values,
)


def _extent(max_x=100.0, x_length=3, max_y=150.0, y_length=4, min_x=0.0, min_y=0.0):
    return RasterMetadata(x_length=x_length, y_length=y_length,
                          min_x=min_x, max_x=max_x, min_y=min_y, max_y=max_y)


def test_derive_target_grid_example():
    grid = derive_target_grid(_extent(), nx=2)
    assert grid.cell_size == 75.0
    assert grid.nx == 2
    assert grid.ny == 3


def test_doubling_width_doubles_cell_size():
    narrow = derive_target_grid(_extent(max_x=100.0), nx=4)
    wide = derive_target_grid(_extent(max_x=200.0), nx=4)
    assert wide.cell_size == pytest.approx(2.0 * narrow.cell_size)


@pytest.mark.parametrize('nx', [1, 2, 7, 100, 1000])
def test_target_grid_is_never_empty(nx):
    grid = derive_target_grid(_extent(max_x=1000.0, x_length=11, max_y=10.0, y_length=2), nx=nx)
    assert grid.ny >= 1
    assert grid.cell_size > 0.0


@pytest.mark.parametrize('nx', [0, -3])
def test_non_positive_nx_is_degenerate(nx):
    with pytest.raises(GridDegeneracyError):
        derive_target_grid(_extent(), nx=nx)


def test_decreasing_coordinates_are_degenerate():
    with pytest.raises(GridDegeneracyError):
        derive_target_grid(_extent(min_x=100.0, max_x=0.0), nx=2)


def test_target_grid_rejects_empty():
    with pytest.raises(GridDegeneracyError):
        TargetGrid(nx=0, ny=1, cell_size=1.0)
    with pytest.raises(GridDegeneracyError):
        TargetGrid(nx=1, ny=1, cell_size=0.0)


def test_cell_centers():
    xs, ys = TargetGrid(nx=3, ny=2, cell_size=10.0).cell_centers()
    assert list(xs) == [5.0, 15.0, 25.0]
    assert list(ys) == [5.0, 15.0]


def test_scaling_factors():
    grid = TargetGrid(nx=2, ny=3, cell_size=75.0)
    scaling = ScalingFactors.for_raster(_extent(), grid)
    assert scaling.x == 1.5
    assert scaling.y == pytest.approx(4.0 / 3.0)


def test_bathymetry_index_for():
    scaling = ScalingFactors(x=1.5, y=4.0 / 3.0)
    assert bathymetry_index_for(0.0, 0.0, scaling, 75.0) == (0, 0)
    # 1.5 * 1 + 0.75 -> 2 ; 4/3 * 2 + 2/3 -> 3
    assert bathymetry_index_for(75.0, 150.0, scaling, 75.0) == (2, 3)


def test_bathymetry_index_identity_scaling():
    scaling = ScalingFactors(x=1.0, y=1.0)
    assert bathymetry_index_for(30.0, 10.0, scaling, 10.0) == (3, 1)


def test_resampler_bathymetry_at(tmp_path):
    bath = create_bathymetry(tmp_path / 'bath.nc')
    z = bathymetry_values(3, 4)
    with GridResampler.from_files(bath, None, nx=2) as resampler:
        assert resampler.grid == TargetGrid(nx=2, ny=3, cell_size=75.0)
        assert resampler.bathymetry_at(0.0, 0.0) == z[0, 0]
        assert resampler.bathymetry_at(75.0, 150.0) == z[3, 2]
        assert resampler.displacement_at(75.0, 150.0) == 0.0


def test_resampler_far_edge_maps_to_last_sample(tmp_path):
    bath = create_bathymetry(tmp_path / 'bath.nc')
    z = bathymetry_values(3, 4)
    with GridResampler.from_files(bath, None, nx=2) as resampler:
        # 1.5 * 2 + 0.75 -> index 3, pulled back onto sample 2
        assert resampler.bathymetry_index(150.0, 0.0) == (3, 0)
        assert resampler.bathymetry_at(150.0, 0.0) == z[0, 2]
        # grid is 2 x 3 cells of 75 m: far corner (150, 225)
        assert resampler.bathymetry_at(150.0, 225.0) == z[3, 2]


@pytest.mark.parametrize('x, y', [(150.1, 0.0), (0.0, 225.1), (-0.1, 10.0), (10.0, -0.1)])
def test_resampler_outside_grid_is_fatal(tmp_path, x, y):
    bath = create_bathymetry(tmp_path / 'bath.nc')
    with GridResampler.from_files(bath, None, nx=2) as resampler:
        with pytest.raises(OutOfRangeLookup):
            resampler.bathymetry_at(x, y)


@pytest.mark.parametrize('nx', [1, 2, 3, 5, 8])
def test_every_cell_center_and_origin_maps_inside(tmp_path, nx):
    bath = create_bathymetry(tmp_path / 'bath.nc')
    values = set(bathymetry_values(3, 4).reshape(-1))
    with GridResampler.from_files(bath, None, nx=nx) as resampler:
        grid = resampler.grid
        for iy in range(grid.ny):
            for ix in range(grid.nx):
                for offset in (0.0, 0.5):
                    x = (ix + offset) * grid.cell_size
                    y = (iy + offset) * grid.cell_size
                    assert resampler.bathymetry_at(x, y) in values


def test_resampler_retarget(tmp_path):
    bath = create_bathymetry(tmp_path / 'bath.nc')
    with GridResampler.from_files(bath, None, nx=2) as resampler:
        grid = resampler.retarget(3)
        assert grid.nx == 3
        assert grid.cell_size == 50.0
        assert grid.ny == 4
        assert resampler.scaling == ScalingFactors(x=1.0, y=1.0)


def test_resampler_close_releases_both_rasters(tmp_path):
    bath = create_bathymetry(tmp_path / 'bath.nc')
    displ = create_displacement(tmp_path / 'displ.nc')
    resampler = GridResampler.from_files(bath, displ, nx=2)
    resampler.close()
    resampler.close()
    assert resampler.bathymetry.closed
    assert resampler.displacement.closed


def test_from_files_missing_displacement_raises(tmp_path):
    bath = create_bathymetry(tmp_path / 'bath.nc')
    with pytest.raises(ResourceError):
        GridResampler.from_files(bath, tmp_path / 'missing.nc', nx=2)


# ----------------------------------------------------------------------
# displacement window
# ----------------------------------------------------------------------
@pytest.fixture
def displacement(tmp_path):
    # x, y in [10, 30], cell 10 -> window [5, 35] on both axes
    raster = SourceRaster(create_displacement(tmp_path / 'displ.nc'))
    yield raster
    raster.close()


@pytest.mark.parametrize('x, y', [(4.9, 20.0), (35.1, 20.0), (20.0, 4.9), (20.0, 35.1), (-100.0, -100.0)])
def test_displacement_outside_window_is_zero(displacement, x, y):
    assert displacement_lookup(x, y, _extent(), displacement) == 0.0


def test_displacement_inside_window(displacement):
    z = displacement_values(3, 3)
    assert displacement_lookup(22.0, 10.0, _extent(), displacement) == z[0, 1]
    assert displacement_lookup(30.0, 30.0, _extent(), displacement) == z[2, 2]


def test_displacement_window_is_closed(displacement):
    z = displacement_values(3, 3)
    assert displacement_lookup(5.0, 5.0, _extent(), displacement) == z[0, 0]
    assert displacement_lookup(35.0, 35.0, _extent(), displacement) == z[2, 2]


def test_displacement_is_anchored_at_bathymetry_minimum(displacement):
    z = displacement_values(3, 3)
    shifted = _extent(min_x=10.0, max_x=110.0, min_y=20.0, max_y=170.0)
    # world position (10 + 10, 20 + 0) -> index (1, 1)
    assert displacement_lookup(10.0, 0.0, shifted, displacement) == z[1, 1]
    assert displacement_lookup(0.0, 0.0, shifted, displacement) == z[1, 0]


def test_displacement_y_bound_uses_y_extent(tmp_path):
    # wide in x, narrow in y: y window is [-5, 25]
    xs = [10.0 * i for i in range(11)]
    ys = [0.0, 10.0, 20.0]
    path = create_raster(tmp_path / 'wide.nc', xs, ys, displacement_values(len(xs), len(ys)))
    with SourceRaster(path) as raster:
        assert displacement_lookup(50.0, 50.0, _extent(), raster) == 0.0
        assert displacement_lookup(50.0, 25.0, _extent(), raster) == displacement_values(11, 3)[2, 5]
