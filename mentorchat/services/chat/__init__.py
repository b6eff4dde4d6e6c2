# mentorchat/services/chat/__init__.py
from .broker import InMemoryRoomBroker, RedisRoomBroker, RoomSubscription, room_broker
from .message_feed import MessageFeed
from .message_service import MessageService
from .room_service import RoomService
from .websocket_manager import WebSocketManager, websocket_manager

__all__ = [
    "InMemoryRoomBroker", "RedisRoomBroker", "RoomSubscription", "room_broker",
    "MessageFeed", "MessageService", "RoomService",
    "WebSocketManager", "websocket_manager",
]
