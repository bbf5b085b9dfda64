from enum import IntEnum

import numpy as np


class Phase(IntEnum):
    DEAD = 0
    ALIVE = 1


def next_state(current: Phase, live_neighbors: int) -> Phase:
    """
    Conway's B3/S23 rule for a single cell.

    A live cell survives with 2 or 3 live neighbours, a dead cell is born with
    exactly 3; every other cell is dead in the next generation.
    """
    if not 0 <= live_neighbors <= 8:
        raise ValueError(f"Neighbour count must be within [0, 8], got {live_neighbors}")
    if current == Phase.ALIVE:
        return Phase.ALIVE if live_neighbors in (2, 3) else Phase.DEAD
    return Phase.ALIVE if live_neighbors == 3 else Phase.DEAD


def next_states(cells: np.ndarray, counts: np.ndarray) -> np.ndarray:
    """Vectorised `next_state` over a whole grid of phases and neighbour counts."""
    alive = cells == Phase.ALIVE
    survive = alive & ((counts == 2) | (counts == 3))
    born = ~alive & (counts == 3)
    return (survive | born).astype(np.int8)
