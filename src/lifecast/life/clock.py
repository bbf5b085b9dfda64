from typing import Optional

import numpy as np

from lifecast.runtime.exceptions import SimulationExhaustedError
from lifecast.spec.config import DEFAULT_DENSITY
from .grid import Grid


class SimulationClock:
    """
    Drives a Grid one whole-grid generation at a time.

    An extinct population is reseeded at random on the next advance instead
    of being stepped, unless reseeding is disabled, in which case the clock
    is exhausted.
    """

    def __init__(
        self,
        grid: Grid,
        density: float = DEFAULT_DENSITY,
        reseed_on_extinction: bool = True,
        rng: Optional[np.random.Generator] = None,
    ):
        self.grid = grid
        self.density = density
        self.reseed_on_extinction = reseed_on_extinction
        self._rng = rng if rng is not None else np.random.default_rng()
        self.generation = 0
        self.reseeds = 0

    def seed(self):
        self.grid.seed_random(self.density, self._rng)

    def has_next_generation(self) -> bool:
        return self.reseed_on_extinction or not self.grid.is_extinct

    def advance(self) -> bool:
        """
        Produces the next generation. Returns True when the generation came
        from a reseed rather than a sweep.
        """
        if not self.has_next_generation():
            raise SimulationExhaustedError(
                f"Population died out after {self.generation} generations"
            )

        reseeded = self.grid.is_extinct
        if reseeded:
            self.seed()
            self.reseeds += 1
        else:
            self.grid.step()
        self.generation += 1
        return reseeded
