# mentorchat/services/chat/websocket_manager.py
from typing import Dict, List, Optional
from uuid import UUID, uuid4
from fastapi import WebSocket
from sqlalchemy.ext.asyncio import async_sessionmaker
import json
import logging

from .broker import InMemoryRoomBroker, room_broker
from .message_feed import MessageFeed
from .message_service import MessageService
from ...core.database import AsyncSessionLocal
from ...core.security import CurrentUser
from ...schemas.chat_schemas import MessageRead

logger = logging.getLogger(__name__)


class ChatConnection:
    """One open socket and the rooms it is viewing."""

    def __init__(self, websocket: WebSocket, user: CurrentUser):
        self.id = uuid4().hex
        self.websocket = websocket
        self.user = user
        self.feeds: Dict[str, MessageFeed] = {}

    async def send_json(self, message: dict):
        await self.websocket.send_text(json.dumps(message, default=str))


class WebSocketManager:
    def __init__(
        self,
        broker: Optional[InMemoryRoomBroker] = None,
        session_factory: Optional[async_sessionmaker] = None
    ):
        self.broker = broker or room_broker
        self.session_factory = session_factory or AsyncSessionLocal
        # Store active connections: {connection_id: ChatConnection}
        self.active_connections: Dict[str, ChatConnection] = {}

    async def connect(self, websocket: WebSocket, user: CurrentUser) -> ChatConnection:
        """Accept websocket connection and store user info"""
        await websocket.accept()
        connection = ChatConnection(websocket, user)
        self.active_connections[connection.id] = connection

        logger.info(f"User {user.id} ({user.role.value}) connected")

        # Send connection confirmation
        await self.send_personal_message({
            "type": "connection_status",
            "status": "connected",
            "user_id": str(user.id),
            "user_type": user.role.value
        }, connection)
        return connection

    async def disconnect(self, connection: ChatConnection):
        """Remove connection and close its room feeds"""
        for room_key in list(connection.feeds):
            await self.leave_chat_room(connection, room_key)

        if self.active_connections.pop(connection.id, None):
            logger.info(f"User {connection.user.id} disconnected")

    async def join_chat_room(self, connection: ChatConnection, chat_room_id: UUID) -> List[MessageRead]:
        """Start viewing a room: a room_joined frame with the ordered backlog,
        then new_message frames for everything after it.

        Membership must be checked by the caller. Joining again re-sends
        anything missed since the last delivered message.
        """
        room_key = str(chat_room_id)
        if room_key in connection.feeds:
            missed = await connection.feeds[room_key].resync()
            await self._send_room_joined(connection, chat_room_id, [])
            return missed

        async def deliver(message: MessageRead):
            await self.send_personal_message({
                "type": "new_message",
                "message": message.model_dump(mode="json")
            }, connection)

        feed = MessageFeed(chat_room_id, self.broker, self._history_loader(chat_room_id), on_message=deliver)
        try:
            backlog = await feed.start(
                on_backlog=lambda messages: self._send_room_joined(connection, chat_room_id, messages)
            )
        except Exception:
            await feed.close()
            raise
        if connection.id not in self.active_connections:
            # the socket went away while the backlog was being sent
            await feed.close()
            return backlog
        connection.feeds[room_key] = feed
        logger.info(f"User {connection.user.id} joined room {room_key} with {len(backlog)} messages of history")
        return backlog

    async def leave_chat_room(self, connection: ChatConnection, chat_room_id):
        """Stop viewing a room"""
        feed = connection.feeds.pop(str(chat_room_id), None)
        if feed:
            await feed.close()

    async def send_personal_message(self, message: dict, connection: ChatConnection):
        """Send message to one connection"""
        if connection.id not in self.active_connections:
            return
        try:
            await connection.send_json(message)
        except Exception as e:
            logger.error(f"Error sending message to {connection.user.id}: {e}")
            await self.disconnect(connection)

    async def _send_room_joined(self, connection: ChatConnection, chat_room_id: UUID, messages: List[MessageRead]):
        await self.send_personal_message({
            "type": "room_joined",
            "chat_room_id": str(chat_room_id),
            "messages": [message.model_dump(mode="json") for message in messages]
        }, connection)

    def _history_loader(self, chat_room_id: UUID):
        async def fetch_after(after_seq: int) -> List[MessageRead]:
            async with self.session_factory() as session:
                messages = await MessageService(session, self.broker).load_history(chat_room_id, after_seq)
                return [MessageRead.model_validate(message) for message in messages]
        return fetch_after

# Global WebSocket manager instance
websocket_manager = WebSocketManager()
