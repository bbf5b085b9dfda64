class LifecastError(Exception):
    """Base class for errors raised by lifecast."""

    pass


class ChannelConnectionError(LifecastError):
    """Raised when the message channel is unreachable or refuses the connection."""

    def __init__(self, host: str, port: int, reason: str):
        self.host = host
        self.port = port
        self.reason = reason
        super().__init__(f"Cannot connect to channel at {host}:{port}: {reason}")


class PublishError(LifecastError):
    """
    Raised when a message cannot be handed to the channel.
    A lost message would desynchronise the subscriber, so this is fatal for the run.
    """

    def __init__(self, topic: str, payload: str, reason: str):
        self.topic = topic
        self.payload = payload
        self.reason = reason
        super().__init__(f"Failed to publish '{payload}' on '{topic}': {reason}")


class StreamClosedError(LifecastError):
    """Raised when publishing after the end-of-stream marker was sent."""

    pass


class SimulationExhaustedError(LifecastError):
    """Raised when advancing a clock whose population died out and may not reseed."""

    pass
