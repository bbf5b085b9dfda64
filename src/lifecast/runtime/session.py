import asyncio
from typing import Optional

import numpy as np

from lifecast.common.messaging import bus
from lifecast.life.clock import SimulationClock
from lifecast.life.grid import Grid
from lifecast.spec.config import DEFAULT_CHANNEL, LifeConfig
from lifecast.spec.protocols import Connector, DrawSurface, GenerationClock
from .publisher import FramePublisher


class PublisherSession:
    """
    Owns everything one publishing run needs: the grid, the clock driving it,
    the publisher holding the connector, and an optional local surface that
    mirrors each published frame.
    """

    def __init__(
        self,
        connector: Connector,
        config: Optional[LifeConfig] = None,
        channel: str = DEFAULT_CHANNEL,
        surface: Optional[DrawSurface] = None,
        grid: Optional[Grid] = None,
        interval: float = 0.0,
        clock: Optional[GenerationClock] = None,
    ):
        self.config = config or LifeConfig()
        self.connector = connector
        self.surface = surface
        self.interval = interval

        if grid is None:
            grid = Grid(self.config.width, self.config.height)
            seeded = False
        else:
            seeded = True
        self.grid = grid
        if clock is None:
            clock = SimulationClock(
                self.grid,
                density=self.config.density,
                reseed_on_extinction=self.config.reseed_on_extinction,
                rng=np.random.default_rng(self.config.seed),
            )
            if not seeded:
                clock.seed()
        # An injected clock must advance self.grid.
        self.clock: GenerationClock = clock

        self.publisher = FramePublisher(
            connector,
            channel=channel,
            life_span=self.config.life_span,
            scan_order=self.config.scan_order,
        )

    async def run(self) -> int:
        """
        Advances and publishes generations until the stream ends.
        Returns the number of frames published. A PublishError propagates
        and aborts the run.
        """
        while not self.publisher.finished:
            if not self.clock.has_next_generation():
                bus.warning(
                    "publisher.extinct", generation=self.clock.generation
                )
                await self.publisher.end_stream()
                break

            if self.clock.advance():
                bus.info("publisher.reseeded", generation=self.clock.generation)
            alive = await self.publisher.publish_frame(self.grid)
            bus.info(
                "publisher.frame",
                frame=self.publisher.frames_published,
                generation=self.clock.generation,
                alive=alive,
            )
            self._mirror()

            if self.interval > 0 and not self.publisher.finished:
                await asyncio.sleep(self.interval)

        return self.publisher.frames_published

    def _mirror(self) -> None:
        if self.surface is None:
            return
        self.surface.clear()
        for x, y in self.grid.alive_cells(self.config.scan_order):
            self.surface.draw_cell(x, y)
        self.surface.present()
