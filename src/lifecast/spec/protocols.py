from typing import Protocol, Callable, Awaitable

# Invoked once per inbound payload with (topic, payload text).
MessageCallback = Callable[[str, str], Awaitable[None]]


class SubscriptionHandle(Protocol):
    async def unsubscribe(self) -> None: ...


class Connector(Protocol):
    async def connect(self) -> None: ...

    async def disconnect(self) -> None: ...

    async def publish(self, topic: str, payload: str) -> None: ...

    async def subscribe(
        self, topic: str, callback: MessageCallback
    ) -> "SubscriptionHandle": ...


class DrawSurface(Protocol):
    def clear(self) -> None: ...

    def draw_cell(self, x: int, y: int) -> bool: ...

    def present(self) -> None: ...


class GenerationClock(Protocol):
    generation: int

    def has_next_generation(self) -> bool: ...

    def advance(self) -> bool: ...
