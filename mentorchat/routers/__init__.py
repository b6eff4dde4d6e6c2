from . import health, preferences
from .chat import chat_router, websocket_router

__all__ = [
    "health",
    "preferences",
    "chat_router",
    "websocket_router"
]
