from .rule import Phase, next_state, next_states
from .grid import Grid
from .clock import SimulationClock

__all__ = ["Phase", "next_state", "next_states", "Grid", "SimulationClock"]
