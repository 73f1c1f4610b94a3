"""Tsunami event setup: still water over real bathymetry plus a seismic displacement.

The water height is the negated raw bathymetry, so cells below sea level
start with a positive depth. The bathymetry handed to the solver carries the
displacement on top, which is what sets the wave in motion.
"""

import logging

from tsunami_lab.config import DEFAULT_BATHYMETRY_PATH, DEFAULT_DISPLACEMENT_PATH
from tsunami_lab.io.resample import GridResampler
from tsunami_lab.setups.base import Setup

logger = logging.getLogger(__name__)


class TsunamiEvent(Setup):

    def __init__(self, resampler: GridResampler, owns_resampler: bool = False):
        self.resampler = resampler
        self._owns_resampler = owns_resampler

    @classmethod
    def from_files(cls, nx: int,
                   bathymetry_path=DEFAULT_BATHYMETRY_PATH,
                   displacement_path=DEFAULT_DISPLACEMENT_PATH) -> "TsunamiEvent":
        resampler = GridResampler.from_files(bathymetry_path, displacement_path, nx)
        logger.info('tsunami event from %s and %s', bathymetry_path, displacement_path)
        return cls(resampler, owns_resampler=True)

    @property
    def grid(self):
        return self.resampler.grid

    def get_height(self, x: float, y: float) -> float:
        return -self.resampler.bathymetry_at(x, y)

    def get_momentum_x(self, x: float, y: float) -> float:
        return 0.0

    def get_momentum_y(self, x: float, y: float) -> float:
        return 0.0

    def get_bathymetry(self, x: float, y: float) -> float:
        return self.resampler.bathymetry_at(x, y) + self.resampler.displacement_at(x, y)

    def close(self) -> None:
        """Close the rasters if this event opened them."""
        if self._owns_resampler:
            self.resampler.close()

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc, tb):
        self.close()
        return False
