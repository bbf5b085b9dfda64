import asyncio
import logging
from typing import Any, List, Optional

import redis.asyncio as aioredis
from redis.exceptions import RedisError

from lifecast.runtime.exceptions import ChannelConnectionError, PublishError
from lifecast.spec.config import DEFAULT_HOST, DEFAULT_PORT
from lifecast.spec.protocols import MessageCallback

logger = logging.getLogger(__name__)


class _RedisSubscriptionHandle:
    def __init__(self, parent: "RedisConnector", pubsub: Any, task: asyncio.Task):
        self._parent = parent
        self._pubsub = pubsub
        self._task = task

    async def unsubscribe(self) -> None:
        self._task.cancel()
        try:
            await self._task
        except asyncio.CancelledError:
            pass
        except Exception as e:
            logger.warning(f"Subscription loop had already failed: {e}")
        await self._parent._close_pubsub(self._pubsub)
        if self in self._parent._handles:
            self._parent._handles.remove(self)


class RedisConnector:
    """
    Implements the Connector protocol on Redis PUBLISH/SUBSCRIBE.

    Publishing is awaited message by message, so a caller that awaits each
    publish in turn gets them onto the channel in order. Unlike a telemetry
    connector, failures are not swallowed: a refused connection raises
    ChannelConnectionError and a failed publish raises PublishError.

    Payloads are decoded as UTF-8 with undecodable bytes replaced, so a
    corrupt message reaches the callback as text instead of stopping the
    subscription.
    """

    def __init__(self, host: str = DEFAULT_HOST, port: int = DEFAULT_PORT, **kwargs):
        self.host = host
        self.port = port
        self.client_kwargs = kwargs
        self._client: Optional[aioredis.Redis] = None
        self._handles: List[_RedisSubscriptionHandle] = []

    @property
    def is_connected(self) -> bool:
        return self._client is not None

    def _create_client(self) -> aioredis.Redis:
        options = {"decode_responses": True, "encoding_errors": "replace"}
        options.update(self.client_kwargs)
        return aioredis.Redis(host=self.host, port=self.port, **options)

    async def connect(self) -> None:
        """Opens the client and checks the server answers."""
        if self._client:
            return

        client = self._create_client()
        try:
            await client.ping()
        except (RedisError, OSError) as e:
            await client.aclose()
            raise ChannelConnectionError(self.host, self.port, str(e)) from e
        self._client = client

    async def disconnect(self) -> None:
        """Stops every subscription and closes the client."""
        for handle in list(self._handles):
            await handle.unsubscribe()
        self._handles.clear()

        if self._client:
            await self._client.aclose()
            self._client = None

    async def __aenter__(self):
        await self.connect()
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        await self.disconnect()

    async def publish(self, topic: str, payload: str) -> None:
        if not self._client:
            raise PublishError(topic, payload, "connector is not connected")
        try:
            await self._client.publish(topic, payload)
        except (RedisError, OSError) as e:
            raise PublishError(topic, payload, str(e)) from e

    async def subscribe(
        self, topic: str, callback: MessageCallback
    ) -> _RedisSubscriptionHandle:
        if not self._client:
            raise RuntimeError("Connector is not connected.")

        pubsub = self._client.pubsub()
        try:
            await pubsub.subscribe(topic)
        except (RedisError, OSError) as e:
            await self._close_pubsub(pubsub)
            raise ChannelConnectionError(self.host, self.port, str(e)) from e

        task = asyncio.create_task(self._message_loop(pubsub, callback))
        handle = _RedisSubscriptionHandle(self, pubsub, task)
        self._handles.append(handle)
        return handle

    async def _close_pubsub(self, pubsub: Any) -> None:
        try:
            await pubsub.aclose()
        except (RedisError, OSError) as e:
            logger.warning(f"Error while closing subscription: {e}")

    async def _message_loop(self, pubsub: Any, callback: MessageCallback):
        """Background task delivering published messages to the callback in order."""
        try:
            async for message in pubsub.listen():
                # Subscribe confirmations and other control replies are skipped.
                if message.get("type") != "message":
                    continue
                topic = message["channel"]
                payload = message["data"]
                # Only seen when the caller turned decode_responses off.
                if isinstance(topic, bytes):
                    topic = topic.decode("utf-8", errors="replace")
                if isinstance(payload, bytes):
                    payload = payload.decode("utf-8", errors="replace")
                try:
                    await callback(topic, payload)
                except Exception as e:
                    logger.error(f"Error processing message on topic '{topic}': {e}")
        except asyncio.CancelledError:
            pass
        except Exception as e:
            logger.error(f"Redis message loop stopped: {e}")
