from .anonymity import AnonymityAssignment
from .chat_room import ChatRoom
from .chat_message import ChatMessage

__all__ = ["AnonymityAssignment", "ChatRoom", "ChatMessage"]
