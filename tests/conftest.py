import pytest

from lifecast.common.messaging import bus
from lifecast.connectors.local import LocalBusConnector


class SpyRenderer:
    """A test utility to collect messages sent through the message bus."""

    def __init__(self):
        self.messages = []

    def render(self, msg_id, level, **kwargs):
        self.messages.append((msg_id, level, kwargs))

    def ids(self, level=None):
        return [m[0] for m in self.messages if level is None or m[1] == level]


class _Handle:
    def __init__(self):
        self.unsubscribed = False

    async def unsubscribe(self):
        self.unsubscribed = True


class RecordingConnector:
    """A connector that remembers what it was asked to do."""

    def __init__(self):
        self.published = []
        self.subscriptions = []
        self.connects = 0
        self.disconnects = 0

    async def connect(self):
        self.connects += 1

    async def disconnect(self):
        self.disconnects += 1

    async def publish(self, topic, payload):
        self.published.append((topic, payload))

    async def subscribe(self, topic, callback):
        self.subscriptions.append((topic, callback))
        return _Handle()

    def payloads(self):
        return [payload for _, payload in self.published]


@pytest.fixture(autouse=True)
def reset_local_broker():
    LocalBusConnector._reset_broker_state()
    yield
    LocalBusConnector._reset_broker_state()


@pytest.fixture
def bus_spy():
    """Installs a SpyRenderer on the global message bus for one test."""
    spy = SpyRenderer()
    bus.set_renderer(spy)
    yield spy
    bus.set_renderer(None)


@pytest.fixture
def recording_connector():
    return RecordingConnector()
