# mentorchat/services/chat/broker.py
"""Real-time fan-out of new messages to everyone viewing a room.

Delivery is at-least-once and ordered per subscriber in publish order.
Consumers dedupe by message id and load history on (re)connect, see
``MessageFeed``.
"""
from typing import Awaitable, Callable, Dict, Optional, Set
from uuid import UUID
import asyncio
import logging

import redis.asyncio as redis
from redis.exceptions import ConnectionError as RedisConnectionError, TimeoutError as RedisTimeoutError

from ...core.config import settings
from ...core.exceptions import TransientIOError
from ...schemas.chat_schemas import MessageRead

logger = logging.getLogger(__name__)

OnMessage = Callable[[MessageRead], Awaitable[None]]

CHANNEL_PREFIX = "mentorchat:room:"


class RoomSubscription:
    """Handle returned by ``subscribe``; ``cancel()`` stops delivery."""

    def __init__(self, broker: "InMemoryRoomBroker", room_id: str, on_message: OnMessage):
        self.broker = broker
        self.room_id = room_id
        self.on_message = on_message
        self.queue: asyncio.Queue = asyncio.Queue()
        self.active = True
        self._task = asyncio.create_task(self._pump())

    async def _pump(self):
        while True:
            message = await self.queue.get()
            try:
                await self.on_message(message)
            except asyncio.CancelledError:
                raise
            except Exception as e:
                # one failing viewer must not stop deliveries to the others
                logger.error(f"Error delivering message {message.id} in room {self.room_id}: {e}")

    def deliver(self, message: MessageRead):
        if self.active:
            self.queue.put_nowait(message)

    async def cancel(self):
        if not self.active:
            return
        self.active = False
        await self.broker._release(self)
        self._task.cancel()
        if self._task is not asyncio.current_task():
            try:
                await self._task
            except asyncio.CancelledError:
                pass


class InMemoryRoomBroker:
    """Fan-out within a single worker process."""

    def __init__(self):
        # Store room subscriptions: {room_id: {subscriptions}}
        self.room_subscriptions: Dict[str, Set[RoomSubscription]] = {}

    async def start(self):
        pass

    async def close(self):
        for subscriptions in list(self.room_subscriptions.values()):
            for subscription in list(subscriptions):
                await subscription.cancel()

    async def subscribe(self, room_id: UUID, on_message: OnMessage) -> RoomSubscription:
        room_key = str(room_id)
        subscription = RoomSubscription(self, room_key, on_message)
        self.room_subscriptions.setdefault(room_key, set()).add(subscription)
        logger.debug(f"Subscribed to room {room_key}, {self.subscriber_count(room_id)} viewers")
        return subscription

    async def publish(self, room_id: UUID, message: MessageRead):
        self._deliver_local(str(room_id), message)

    def subscriber_count(self, room_id: UUID) -> int:
        return len(self.room_subscriptions.get(str(room_id), ()))

    def _deliver_local(self, room_key: str, message: MessageRead):
        for subscription in list(self.room_subscriptions.get(room_key, ())):
            subscription.deliver(message)

    async def _release(self, subscription: RoomSubscription) -> bool:
        """Drop a subscription; returns True when it was the room's last one"""
        subscribers = self.room_subscriptions.get(subscription.room_id)
        if subscribers is None:
            return False
        subscribers.discard(subscription)
        if not subscribers:
            del self.room_subscriptions[subscription.room_id]
            return True
        return False


class RedisRoomBroker(InMemoryRoomBroker):
    """Fan-out across workers through Redis pub/sub.

    Every worker subscribes to the channels of the rooms its own viewers
    watch and hands received messages to them locally.
    """

    # first wait after a lost connection, doubled up to 30s
    reconnect_delay = 0.5

    def __init__(self, redis_url: str):
        super().__init__()
        self.redis_url = redis_url
        self.redis: Optional[redis.Redis] = None
        self._pubsub = None
        self._listener: Optional[asyncio.Task] = None

    async def start(self):
        """Initialize Redis connection."""
        if not self.redis:
            self.redis = redis.from_url(self.redis_url, encoding="utf-8", decode_responses=True)
            self._pubsub = self.redis.pubsub()
            self._listener = asyncio.create_task(self._listen())
            logger.info("Redis room broker started")

    async def close(self):
        await super().close()
        if self._listener:
            self._listener.cancel()
            try:
                await self._listener
            except asyncio.CancelledError:
                pass
        if self._pubsub:
            await self._pubsub.aclose()
        if self.redis:
            await self.redis.aclose()
        self.redis = None

    async def subscribe(self, room_id: UUID, on_message: OnMessage) -> RoomSubscription:
        await self.start()
        first_viewer = self.subscriber_count(room_id) == 0
        subscription = await super().subscribe(room_id, on_message)
        if first_viewer:
            try:
                await self._pubsub.subscribe(self._channel(room_id))
            except (RedisConnectionError, RedisTimeoutError) as e:
                await subscription.cancel()
                raise TransientIOError(f"Could not subscribe to room {room_id}") from e
        return subscription

    async def publish(self, room_id: UUID, message: MessageRead):
        await self.start()
        try:
            await self.redis.publish(self._channel(room_id), message.model_dump_json())
        except (RedisConnectionError, RedisTimeoutError) as e:
            raise TransientIOError(f"Could not publish to room {room_id}") from e

    async def _release(self, subscription: RoomSubscription) -> bool:
        last_viewer = await super()._release(subscription)
        if last_viewer and self._pubsub is not None:
            try:
                await self._pubsub.unsubscribe(self._channel(subscription.room_id))
            except (RedisConnectionError, RedisTimeoutError) as e:
                logger.warning(f"Could not unsubscribe from room {subscription.room_id}: {e}")
        return last_viewer

    async def _listen(self):
        backoff = self.reconnect_delay
        while True:
            try:
                if not self._pubsub.subscribed:
                    await asyncio.sleep(0.1)
                    continue
                message = await self._pubsub.get_message(ignore_subscribe_messages=True, timeout=1.0)
                backoff = self.reconnect_delay
            except (RedisConnectionError, RedisTimeoutError) as e:
                # the pubsub connection resubscribes its channels on reconnect
                logger.error(f"Redis subscription lost, retrying in {backoff}s: {e}")
                await asyncio.sleep(backoff)
                backoff = min(backoff * 2, 30)
                continue

            if message is not None and message.get("type") == "message":
                self._dispatch(message)

    def _dispatch(self, message: dict):
        """Hand one pub/sub payload to the local viewers; bad payloads are dropped"""
        try:
            room_key = message["channel"][len(CHANNEL_PREFIX):]
            payload = MessageRead.model_validate_json(message["data"])
        except (KeyError, TypeError, ValueError) as e:
            logger.error(f"Dropping malformed message on {message.get('channel')}: {e}")
            return
        self._deliver_local(room_key, payload)

    @staticmethod
    def _channel(room_id) -> str:
        return f"{CHANNEL_PREFIX}{room_id}"


def create_room_broker(backend: str = None) -> InMemoryRoomBroker:
    backend = backend or settings.realtime_backend
    if backend == "redis":
        return RedisRoomBroker(settings.redis_url)
    if backend != "memory":
        raise ValueError(f"Unknown realtime backend: {backend}")
    return InMemoryRoomBroker()


# Global room broker instance
room_broker = create_room_broker()
