"""Interface every initial-condition setup implements."""

from abc import ABC, abstractmethod


class Setup(ABC):
    """Initial water state queried per grid cell while the solver initializes.

    Coordinates are offsets in metres from the grid origin and need not be
    integral multiples of the cell size.
    """

    @abstractmethod
    def get_height(self, x: float, y: float) -> float:
        ...

    @abstractmethod
    def get_momentum_x(self, x: float, y: float) -> float:
        ...

    @abstractmethod
    def get_momentum_y(self, x: float, y: float) -> float:
        ...

    @abstractmethod
    def get_bathymetry(self, x: float, y: float) -> float:
        ...
