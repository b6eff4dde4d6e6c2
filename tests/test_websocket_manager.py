import json
import uuid

import pytest

from conftest import new_user
from mentorchat.core.exceptions import TransientIOError
from mentorchat.models.enums import UserRole
from mentorchat.services.chat.broker import InMemoryRoomBroker
from mentorchat.services.chat.websocket_manager import WebSocketManager
from test_broker import make_message


class FakeWebSocket:
    def __init__(self):
        self.frames = []

    async def accept(self):
        pass

    async def send_text(self, text):
        self.frames.append(json.loads(text))


def history_of(messages):
    async def fetch_after(after_seq):
        return [message for message in messages if message.seq > after_seq]
    return lambda chat_room_id: fetch_after


def unavailable_history(chat_room_id):
    async def fetch_after(after_seq):
        raise TransientIOError("Storage unavailable while running load_history")
    return fetch_after


@pytest.fixture
def broker():
    return InMemoryRoomBroker()


@pytest.mark.asyncio
async def test_failed_join_leaves_nothing_behind(broker):
    manager = WebSocketManager(broker=broker)
    websocket = FakeWebSocket()
    connection = await manager.connect(websocket, new_user(UserRole.STUDENT))
    room_id = uuid.uuid4()
    stored = [make_message(room_id, 1), make_message(room_id, 2)]

    manager._history_loader = unavailable_history
    with pytest.raises(TransientIOError):
        await manager.join_chat_room(connection, room_id)

    assert connection.feeds == {}
    assert broker.subscriber_count(room_id) == 0

    # a retry is a fresh join with the full backlog
    manager._history_loader = history_of(stored)
    backlog = await manager.join_chat_room(connection, room_id)

    assert [m.seq for m in backlog] == [1, 2]
    joined = websocket.frames[-1]
    assert joined["type"] == "room_joined"
    assert [m["seq"] for m in joined["messages"]] == [1, 2]
    assert broker.subscriber_count(room_id) == 1
    await manager.disconnect(connection)
    assert broker.subscriber_count(room_id) == 0


@pytest.mark.asyncio
async def test_disconnect_closes_every_feed(broker):
    manager = WebSocketManager(broker=broker)
    manager._history_loader = history_of([])
    connection = await manager.connect(FakeWebSocket(), new_user(UserRole.MENTOR))
    rooms = [uuid.uuid4(), uuid.uuid4()]
    for room_id in rooms:
        await manager.join_chat_room(connection, room_id)

    await manager.disconnect(connection)

    assert all(broker.subscriber_count(room_id) == 0 for room_id in rooms)
    assert connection.id not in manager.active_connections
