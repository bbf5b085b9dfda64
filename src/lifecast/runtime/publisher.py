from typing import List

from lifecast.common.messaging import bus
from lifecast.life.grid import Grid
from lifecast.spec.config import DEFAULT_CHANNEL, DEFAULT_LIFE_SPAN
from lifecast.spec.protocols import Connector
from lifecast.spec.wire import CellUpdate, Clear, EndOfStream, Message, Swap, encode
from .exceptions import LifecastError, PublishError, StreamClosedError


def encode_generation(grid: Grid, order: str = "row") -> List[Message]:
    """
    The messages framing one generation: clear, one update per live cell,
    swap. Dead cells produce nothing.
    """
    messages: List[Message] = [Clear()]
    messages.extend(CellUpdate(x, y) for x, y in grid.alive_cells(order))
    messages.append(Swap())
    return messages


class FramePublisher:
    """
    Streams generations to a channel topic.

    Every message is awaited before the next is sent, and a frame is sent
    whole before the caller can produce the next generation, since the
    protocol has no frame ids and relies on order alone. After
    `life_span + 1` frames the end-of-stream marker is sent once and the
    publisher refuses further frames.
    """

    def __init__(
        self,
        connector: Connector,
        channel: str = DEFAULT_CHANNEL,
        life_span: int = DEFAULT_LIFE_SPAN,
        scan_order: str = "row",
    ):
        self.connector = connector
        self.channel = channel
        self.life_span = life_span
        self.scan_order = scan_order
        self.frames_published = 0
        self.messages_published = 0
        self._finished = False

    @property
    def finished(self) -> bool:
        return self._finished

    async def publish_frame(self, grid: Grid) -> int:
        """Publishes one generation. Returns the number of live cells sent."""
        if self._finished:
            raise StreamClosedError(
                f"Stream on '{self.channel}' already ended after {self.frames_published} frames"
            )

        messages = encode_generation(grid, self.scan_order)
        for message in messages:
            await self._emit(message)
        self.frames_published += 1
        alive = len(messages) - 2
        bus.debug(
            "publisher.frame_published", frame=self.frames_published, alive=alive
        )

        if self.frames_published > self.life_span:
            await self.end_stream()
        return alive

    async def end_stream(self) -> None:
        if self._finished:
            return
        await self._emit(EndOfStream())
        self._finished = True
        bus.info("publisher.end_of_stream", frames=self.frames_published)

    async def _emit(self, message: Message) -> None:
        payload = encode(message)
        try:
            await self.connector.publish(self.channel, payload)
        except LifecastError:
            raise
        except Exception as e:
            raise PublishError(self.channel, payload, str(e)) from e
        self.messages_published += 1
