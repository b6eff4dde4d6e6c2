# mentorchat/routers/chat/chat_router.py
from typing import List
from uuid import UUID
from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from ...core.database import get_db
from ...core.deps import get_current_user, get_current_student
from ...core.exceptions import NotFoundError
from ...core.security import CurrentUser
from ...models.enums import UserRole
from ...schemas.chat_schemas import (
    ChatHistoryResponse, MentorListing, MessageRead, RoomListResponse,
    RoomRead, RoomSummary, SendMessageRequest, StartRoomRequest
)
from ...services.chat.message_service import MessageService
from ...services.chat.room_service import RoomService
from ...services.privacy_resolver import PrivacyResolver
from ...services.profile_service import ProfileService

router = APIRouter(prefix="/api/v1/chat", tags=["Chat System"])

async def _summarize(room: RoomRead, user: CurrentUser, db: AsyncSession) -> RoomSummary:
    """Room as seen by ``user``, labelled with the counterpart's current display name.

    Takes a detached snapshot: resolving a label may allocate an anonymous
    number, and a lost allocation race rolls back and expires loaded rows.
    """
    counterpart_id = room.mentor_id if room.student_id == user.id else room.student_id
    counterpart_role = UserRole.STUDENT if user.is_mentor else UserRole.MENTOR
    label = await PrivacyResolver(db).resolve_display_name(counterpart_id, counterpart_role, user.id)
    return RoomSummary(**room.model_dump(), counterpart_id=counterpart_id, counterpart_label=label)

@router.get("/mentors", response_model=List[MentorListing])
async def list_mentors(
    user: CurrentUser = Depends(get_current_student),
    db: AsyncSession = Depends(get_db)
):
    """Mentors that students can start a chat with"""
    return await ProfileService(db).list_visible_mentors()

@router.post("/rooms", response_model=RoomSummary)
async def start_or_resume_room(
    request: StartRoomRequest,
    user: CurrentUser = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    """Open the caller's room with a counterpart, creating it on first contact"""
    if user.is_mentor:
        mentor_id, student_id = user.id, request.counterpart_id
    else:
        mentor_id, student_id = request.counterpart_id, user.id

    chat_room = await RoomService(db).start_or_resume_room(mentor_id, student_id)
    return await _summarize(RoomRead.model_validate(chat_room), user, db)

@router.get("/rooms", response_model=RoomListResponse)
async def list_rooms(
    user: CurrentUser = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    """All rooms of the caller, newest first"""
    rooms = await RoomService(db).find_rooms_for_user(user.id, user.role)
    snapshots = [RoomRead.model_validate(chat_room) for chat_room in rooms]
    summaries = [await _summarize(room, user, db) for room in snapshots]
    return RoomListResponse(rooms=summaries, total_rooms=len(summaries))

@router.get("/rooms/active", response_model=RoomSummary)
async def get_active_room(
    user: CurrentUser = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    """Most recent active room of a mentor, or of a student"""
    service = RoomService(db)
    if user.is_mentor:
        chat_room = await service.find_active_room_for_mentor(user.id)
    else:
        rooms = await service.find_rooms_for_student(user.id)
        chat_room = rooms[0] if rooms else None

    if chat_room is None:
        raise NotFoundError("Active chat room")
    return await _summarize(RoomRead.model_validate(chat_room), user, db)

@router.get("/rooms/{room_id}", response_model=RoomSummary)
async def get_room(
    room_id: UUID,
    user: CurrentUser = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    chat_room = await RoomService(db).get_room_for_participant(room_id, user.id)
    return await _summarize(RoomRead.model_validate(chat_room), user, db)

@router.get("/rooms/{room_id}/messages", response_model=ChatHistoryResponse)
async def get_chat_history(
    room_id: UUID,
    after_seq: int = Query(0, ge=0),
    user: CurrentUser = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    """Ordered history of a room; ``after_seq`` returns only newer messages"""
    await RoomService(db).get_room_for_participant(room_id, user.id)
    messages = await MessageService(db).load_history(room_id, after_seq)

    return ChatHistoryResponse(
        room_id=room_id,
        messages=[MessageRead.model_validate(message) for message in messages],
        total_messages=len(messages)
    )

@router.post("/rooms/{room_id}/messages", response_model=MessageRead, status_code=status.HTTP_201_CREATED)
async def send_message(
    room_id: UUID,
    request: SendMessageRequest,
    user: CurrentUser = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    """Send a message between mentor and student"""
    message = await MessageService(db).send_message(
        room_id=room_id,
        sender_id=user.id,
        sender_role=user.role,
        body=request.body,
        client_message_id=request.client_message_id
    )
    return MessageRead.model_validate(message)
