import asyncio
from enum import Enum
from typing import Optional

from lifecast.common.messaging import bus
from lifecast.spec.config import DEFAULT_CHANNEL
from lifecast.spec.protocols import Connector, DrawSurface
from lifecast.spec.wire import (
    CellUpdate,
    Clear,
    EndOfStream,
    Message,
    ParseError,
    Swap,
    decode_batch,
)


class FrameState(Enum):
    IDLE = "idle"
    ACCUMULATING = "accumulating"
    TERMINATED = "terminated"


class FrameDecoder:
    """
    Applies protocol messages to a draw surface.

    IDLE --clear--> ACCUMULATING --data--> ACCUMULATING --swap--> IDLE, and
    any state --_EOF_--> TERMINATED. Updates or swaps arriving without a
    preceding clear are applied to whatever the surface holds, so a consumer
    joining mid-stream recovers at the next frame. Malformed lines are
    reported and dropped without changing state.
    """

    def __init__(self, surface: DrawSurface):
        self.surface = surface
        self.state = FrameState.IDLE
        self.frames_presented = 0
        self.cells_drawn = 0
        self.discarded = 0
        self.desyncs = 0

    @property
    def terminated(self) -> bool:
        return self.state is FrameState.TERMINATED

    def feed(self, payload: str) -> None:
        """Decodes a payload (one or more lines) and applies every command."""
        for item in decode_batch(payload):
            if isinstance(item, ParseError):
                self.discarded += 1
                bus.warning("subscriber.parse_error", line=item.line, reason=item.reason)
                continue
            self.apply(item)

    def apply(self, message: Message) -> None:
        if self.terminated:
            return

        if isinstance(message, Clear):
            self.surface.clear()
            self.state = FrameState.ACCUMULATING
        elif isinstance(message, CellUpdate):
            self._apply_update(message)
        elif isinstance(message, Swap):
            if self.state is FrameState.IDLE:
                self._note_desync("swap")
            self.surface.present()
            self.frames_presented += 1
            self.state = FrameState.IDLE
            bus.debug("subscriber.frame_presented", frame=self.frames_presented)
        elif isinstance(message, EndOfStream):
            self.state = FrameState.TERMINATED

    def _apply_update(self, update: CellUpdate) -> None:
        if self.state is FrameState.IDLE:
            self._note_desync("data")
            self.state = FrameState.ACCUMULATING
        if not update.is_alive:
            return
        if self.surface.draw_cell(update.x, update.y):
            self.cells_drawn += 1
        else:
            bus.warning("subscriber.out_of_bounds", x=update.x, y=update.y)

    def _note_desync(self, command: str) -> None:
        self.desyncs += 1
        bus.debug("subscriber.desync", command=command)


class FrameSubscriber:
    """
    Consumes a frame stream from a channel topic.

    The connector callback only queues payloads; `run` drains the queue
    through a FrameDecoder on a single task, so the surface is never touched
    from two places. The connection is released exactly once, when the
    end-of-stream marker arrives or `stop` is called. There is no timeout: a
    silent channel keeps `run` waiting.
    """

    def __init__(
        self,
        connector: Connector,
        surface: DrawSurface,
        channel: str = DEFAULT_CHANNEL,
    ):
        self.connector = connector
        self.channel = channel
        self.decoder = FrameDecoder(surface)
        self.ready = asyncio.Event()
        self._inbox: "asyncio.Queue[Optional[str]]" = asyncio.Queue()
        self._released = False

    @property
    def terminated(self) -> bool:
        return self.decoder.terminated

    async def on_message(self, topic: str, payload: str) -> None:
        self._inbox.put_nowait(payload)

    def stop(self) -> None:
        """Asks `run` to finish after the payloads already queued."""
        self._inbox.put_nowait(None)

    async def run(self) -> int:
        """Processes the stream until it ends. Returns the frames presented."""
        try:
            await self.connector.subscribe(self.channel, self.on_message)
            self.ready.set()
            bus.info("subscriber.listening", channel=self.channel)
            while not self.decoder.terminated:
                payload = await self._inbox.get()
                if payload is None:
                    bus.info("subscriber.stopped")
                    break
                self.decoder.feed(payload)
            if self.decoder.terminated:
                bus.info(
                    "subscriber.end_of_stream",
                    frames=self.decoder.frames_presented,
                    discarded=self.decoder.discarded,
                )
        finally:
            await self._release()
        return self.decoder.frames_presented

    async def _release(self) -> None:
        if self._released:
            return
        self._released = True
        await self.connector.disconnect()
        bus.info("subscriber.disconnected")
