"""
lifecast: stream Conway's Game of Life over a publish/subscribe channel.

A publisher advances a toroidal grid one generation at a time and sends each
generation as `clear`, `data x y Alive` and `swap` commands; a subscriber
rebuilds every frame on its own draw surface and disconnects at `_EOF_`.
"""

from lifecast.spec.wire import (
    CellUpdate,
    Clear,
    EndOfStream,
    Message,
    ParseError,
    Swap,
    decode,
    decode_batch,
    encode,
)
from lifecast.spec.config import ChannelConfig, LifeConfig
from lifecast.life import Grid, Phase, SimulationClock, next_state
from lifecast.runtime.exceptions import (
    ChannelConnectionError,
    LifecastError,
    PublishError,
    SimulationExhaustedError,
    StreamClosedError,
)
from lifecast.runtime.publisher import FramePublisher, encode_generation
from lifecast.runtime.subscriber import FrameDecoder, FrameState, FrameSubscriber
from lifecast.runtime.session import PublisherSession
from lifecast.connectors.local import LocalBusConnector
from lifecast.connectors.redis import RedisConnector
from lifecast.visualization import FrameMatrix, TerminalSurface

__all__ = [
    "CellUpdate",
    "Clear",
    "EndOfStream",
    "Message",
    "ParseError",
    "Swap",
    "decode",
    "decode_batch",
    "encode",
    "ChannelConfig",
    "LifeConfig",
    "Grid",
    "Phase",
    "SimulationClock",
    "next_state",
    "ChannelConnectionError",
    "LifecastError",
    "PublishError",
    "SimulationExhaustedError",
    "StreamClosedError",
    "FramePublisher",
    "encode_generation",
    "FrameDecoder",
    "FrameState",
    "FrameSubscriber",
    "PublisherSession",
    "LocalBusConnector",
    "RedisConnector",
    "FrameMatrix",
    "TerminalSurface",
]
