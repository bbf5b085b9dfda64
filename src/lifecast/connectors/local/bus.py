import asyncio
from collections import defaultdict
from typing import Dict, List, Optional, Tuple

from lifecast.common.messaging import bus
from lifecast.runtime.exceptions import PublishError
from lifecast.spec.protocols import MessageCallback, SubscriptionHandle


class _LocalSubscriptionHandle(SubscriptionHandle):
    def __init__(
        self,
        parent: "LocalBusConnector",
        topic: str,
        queue: asyncio.Queue,
        listener_task: asyncio.Task,
    ):
        self._parent = parent
        self._topic = topic
        self._queue = queue
        self._listener_task = listener_task

    async def unsubscribe(self) -> None:
        self._listener_task.cancel()
        try:
            await self._listener_task
        except asyncio.CancelledError:
            pass

        async with self._parent._get_lock():
            self._parent._detach(self._topic, self._queue)
        entry = (self._topic, self._queue)
        if entry in self._parent._queues:
            self._parent._queues.remove(entry)

        if self._listener_task in self._parent._listener_tasks:
            self._parent._listener_tasks.remove(self._listener_task)


class LocalBusConnector:
    """
    An in-memory stand-in for a pub/sub server.

    Broker state is shared by every instance in the process, so a publisher
    and a subscriber holding separate connectors still talk to each other.
    Each subscription gets its own FIFO queue, which preserves publish order
    per topic. Nothing is retained: a message published before anyone
    subscribes is dropped, as with Redis.
    """

    # --- Broker State (Shared across all instances) ---
    _subscriptions: Dict[str, List["asyncio.Queue"]] = defaultdict(list)
    _lock: Optional[asyncio.Lock] = None

    def __init__(self):
        self._is_connected = False
        self._listener_tasks: List[asyncio.Task] = []
        self._queues: List[Tuple[str, asyncio.Queue]] = []

    @classmethod
    def _get_lock(cls) -> asyncio.Lock:
        """Returns a lock bound to the running loop, recreating it per loop."""
        loop = asyncio.get_running_loop()
        try:
            if cls._lock is None or cls._lock._get_loop() != loop:
                cls._lock = asyncio.Lock()
        except RuntimeError:
            cls._lock = asyncio.Lock()
        return cls._lock

    @classmethod
    def _reset_broker_state(cls):
        """Helper for tests to clear the 'broker'."""
        cls._subscriptions.clear()
        cls._lock = None

    @classmethod
    def _detach(cls, topic: str, queue: asyncio.Queue) -> None:
        """Drops one subscriber queue from the broker. Caller holds the lock."""
        queues = cls._subscriptions.get(topic)
        if queues and queue in queues:
            queues.remove(queue)
            if not queues:
                del cls._subscriptions[topic]

    @property
    def is_connected(self) -> bool:
        return self._is_connected

    async def connect(self) -> None:
        self._is_connected = True

    async def disconnect(self) -> None:
        self._is_connected = False
        for task in self._listener_tasks:
            task.cancel()
        if self._listener_tasks:
            await asyncio.gather(*self._listener_tasks, return_exceptions=True)
        self._listener_tasks.clear()

        async with self._get_lock():
            for topic, queue in self._queues:
                self._detach(topic, queue)
        self._queues.clear()

    async def __aenter__(self):
        await self.connect()
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        await self.disconnect()

    async def publish(self, topic: str, payload: str) -> None:
        if not self._is_connected:
            raise PublishError(topic, payload, "connector is not connected")

        async with self._get_lock():
            for q in self._subscriptions.get(topic, []):
                q.put_nowait((topic, payload))

    async def subscribe(
        self, topic: str, callback: MessageCallback
    ) -> SubscriptionHandle:
        if not self._is_connected:
            raise RuntimeError("Connector is not connected.")

        queue: asyncio.Queue = asyncio.Queue()
        async with self._get_lock():
            self._subscriptions[topic].append(queue)
        self._queues.append((topic, queue))

        task = asyncio.create_task(self._listener_loop(queue, callback))
        self._listener_tasks.append(task)
        return _LocalSubscriptionHandle(self, topic, queue, task)

    async def _listener_loop(self, queue: asyncio.Queue, callback: MessageCallback):
        """Consumes messages from the subscription queue and invokes callback."""
        try:
            while self._is_connected:
                topic, payload = await queue.get()
                try:
                    await callback(topic, payload)
                except Exception as e:
                    # A failing callback must not stop delivery of later messages.
                    bus.error("localbus.callback_error", topic=topic, error=e)
                finally:
                    queue.task_done()
        except asyncio.CancelledError:
            pass
