# mentorchat/services/chat/message_feed.py
"""Merge of a room's stored history with its live deliveries.

The subscription is opened before the backlog is loaded so nothing sent in
between is lost; overlap and transport redeliveries are dropped by position,
and a delivery that skips ahead triggers a catch-up read of everything after
the last known position. What comes out is strictly increasing in ``seq``
with no gaps and no duplicates. Only the last position is kept, so a feed
stays the same size however long it is open.
"""
from typing import Awaitable, Callable, List, Optional
from uuid import UUID
import asyncio
import logging

from .broker import InMemoryRoomBroker, RoomSubscription
from ...schemas.chat_schemas import MessageRead

logger = logging.getLogger(__name__)

FetchAfter = Callable[[int], Awaitable[List[MessageRead]]]
OnMessage = Callable[[MessageRead], Awaitable[None]]


class MessageFeed:
    def __init__(
        self,
        room_id: UUID,
        broker: InMemoryRoomBroker,
        fetch_after: FetchAfter,
        on_message: Optional[OnMessage] = None
    ):
        self.room_id = room_id
        self.broker = broker
        self.fetch_after = fetch_after
        self.on_message = on_message
        self.last_seq = 0
        self._lock = asyncio.Lock()
        self._subscription: Optional[RoomSubscription] = None

    async def start(self, on_backlog: Optional[Callable[[List[MessageRead]], Awaitable[None]]] = None) -> List[MessageRead]:
        """Subscribe, then load the backlog; returns the backlog in order.

        ``on_backlog`` runs before any live message is emitted.
        """
        self._subscription = await self.broker.subscribe(self.room_id, self._on_live)
        async with self._lock:
            backlog = await self.fetch_after(self.last_seq)
            accepted = [message for message in backlog if self._advance(message)]
            if on_backlog:
                await on_backlog(accepted)
        logger.debug(f"Feed for room {self.room_id} started with {len(accepted)} messages")
        return accepted

    async def resync(self) -> List[MessageRead]:
        """Pull whatever was stored after the last known position (e.g. after a reconnect)"""
        async with self._lock:
            return await self._catch_up()

    async def close(self):
        if self._subscription:
            await self._subscription.cancel()
            self._subscription = None

    async def _on_live(self, message: MessageRead):
        # live deliveries wait here while the backlog is still loading
        async with self._lock:
            if self._is_known(message):
                return
            if message.seq > self.last_seq + 1:
                logger.info(f"Gap before message {message.seq} in room {self.room_id}, catching up from {self.last_seq}")
                await self._catch_up()
                if self._is_known(message):
                    return
            if self._advance(message):
                await self._emit(message)

    async def _catch_up(self) -> List[MessageRead]:
        missing = await self.fetch_after(self.last_seq)
        accepted = []
        for message in missing:
            if self._advance(message):
                accepted.append(message)
                await self._emit(message)
        return accepted

    def _is_known(self, message: MessageRead) -> bool:
        # seq is unique within a room, so a position already passed is a duplicate
        return message.seq <= self.last_seq

    def _advance(self, message: MessageRead) -> bool:
        if self._is_known(message):
            return False
        self.last_seq = message.seq
        return True

    async def _emit(self, message: MessageRead):
        if self.on_message:
            await self.on_message(message)
