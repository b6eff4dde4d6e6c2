# mentorchat/routers/chat/websocket_router.py
from typing import Optional
from uuid import UUID
from fastapi import APIRouter, WebSocket, WebSocketDisconnect, Query, status
from sqlalchemy.exc import SQLAlchemyError
import json
import logging

from ...core.database import AsyncSessionLocal
from ...core.exceptions import MentorChatException, TransientIOError, ValidationError
from ...core.security import identity_provider
from ...schemas.chat_schemas import MessageRead
from ...services.chat.message_service import MessageService
from ...services.chat.room_service import RoomService
from ...services.chat.websocket_manager import ChatConnection, websocket_manager
from ...services.profile_service import ProfileService

logger = logging.getLogger(__name__)
router = APIRouter()

def _room_id(message_data: dict) -> UUID:
    try:
        return UUID(str(message_data.get("chat_room_id")))
    except ValueError:
        raise ValidationError("Invalid chat_room_id", field="chat_room_id")

async def _send_error(connection: ChatConnection, error: MentorChatException, message_data: dict):
    await websocket_manager.send_personal_message({
        "type": "error",
        "error_type": error.__class__.__name__,
        "message": error.message,
        "chat_room_id": message_data.get("chat_room_id")
    }, connection)

async def _handle_frame(connection: ChatConnection, message_data: dict):
    user = connection.user
    message_type = message_data.get("type")

    if message_type == "join_room":
        chat_room_id = _room_id(message_data)
        async with AsyncSessionLocal() as session:
            await RoomService(session).get_room_for_participant(chat_room_id, user.id)
        await websocket_manager.join_chat_room(connection, chat_room_id)

    elif message_type == "leave_room":
        chat_room_id = _room_id(message_data)
        await websocket_manager.leave_chat_room(connection, chat_room_id)
        await websocket_manager.send_personal_message({
            "type": "room_left",
            "chat_room_id": str(chat_room_id)
        }, connection)

    elif message_type == "send_message":
        chat_room_id = _room_id(message_data)
        async with AsyncSessionLocal() as session:
            message = await MessageService(session, websocket_manager.broker).send_message(
                room_id=chat_room_id,
                sender_id=user.id,
                sender_role=user.role,
                body=message_data.get("body") or "",
                client_message_id=message_data.get("client_message_id")
            )
            sent = MessageRead.model_validate(message)

        # Send confirmation to sender; the message itself arrives through the room feed
        await websocket_manager.send_personal_message({
            "type": "message_sent",
            "message_id": str(sent.id),
            "client_message_id": message_data.get("client_message_id"),
            "seq": sent.seq,
            "timestamp": sent.created_at.isoformat()
        }, connection)

    else:
        # Unknown message type
        raise ValidationError(f"Unknown message type: {message_type}", field="type")

@router.websocket("/ws/chat")
async def websocket_endpoint(
    websocket: WebSocket,
    token: Optional[str] = Query(None)
):
    """WebSocket endpoint for real-time chat"""
    user = identity_provider.get_current_user(token)
    if user is None:
        await websocket.close(code=status.WS_1008_POLICY_VIOLATION)
        return

    async with AsyncSessionLocal() as session:
        await ProfileService(session).sync_profile(user)

    connection = await websocket_manager.connect(websocket, user)

    try:
        while True:
            # Receive message from client
            data = await websocket.receive_text()
            try:
                message_data = json.loads(data)
            except json.JSONDecodeError:
                message_data = None
            if not isinstance(message_data, dict):
                await websocket_manager.send_personal_message({
                    "type": "error",
                    "message": "Frames must be JSON objects"
                }, connection)
                continue

            try:
                await _handle_frame(connection, message_data)
            except MentorChatException as e:
                logger.info(f"Rejected {message_data.get('type')} from {user.id}: {e.message}")
                await _send_error(connection, e, message_data)
            except SQLAlchemyError as e:
                # storage trouble is retryable; the socket stays open
                logger.error(f"Storage unavailable while handling {message_data.get('type')} from {user.id}: {e}")
                await _send_error(connection, TransientIOError(), message_data)

    except WebSocketDisconnect:
        logger.info(f"User {user.id} disconnected from chat")
    finally:
        await websocket_manager.disconnect(connection)
