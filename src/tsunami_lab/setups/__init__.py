from tsunami_lab.setups.base import Setup
from tsunami_lab.setups.tsunami_event import TsunamiEvent

__all__ = ['Setup', 'TsunamiEvent']
