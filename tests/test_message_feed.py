import asyncio
import uuid

import pytest

from mentorchat.services.chat.broker import InMemoryRoomBroker
from mentorchat.services.chat.message_feed import MessageFeed
from test_broker import make_message


class FakeHistory:
    """Stored messages of one room, read the way the store returns them"""

    def __init__(self, room_id):
        self.room_id = room_id
        self.messages = []
        self.reads = []

    def store(self, count: int = 1):
        stored = []
        for _ in range(count):
            message = make_message(self.room_id, len(self.messages) + 1)
            self.messages.append(message)
            stored.append(message)
        return stored

    async def fetch_after(self, after_seq: int):
        self.reads.append(after_seq)
        return [message for message in self.messages if message.seq > after_seq]


async def settle():
    for _ in range(10):
        await asyncio.sleep(0.01)


@pytest.fixture
def room_id():
    return uuid.uuid4()


@pytest.fixture
def history(room_id):
    return FakeHistory(room_id)


@pytest.mark.asyncio
async def test_backlog_then_live_without_duplicates(room_id, history):
    broker = InMemoryRoomBroker()
    history.store(3)
    emitted = []

    async def on_message(message):
        emitted.append(message.seq)

    feed = MessageFeed(room_id, broker, history.fetch_after, on_message=on_message)
    backlog = await feed.start()

    # a redelivery of something already in the backlog, then a new message
    await broker.publish(room_id, history.messages[2])
    for message in history.store(1):
        await broker.publish(room_id, message)
    await settle()

    assert [m.seq for m in backlog] == [1, 2, 3]
    assert emitted == [4]
    assert feed.last_seq == 4
    await feed.close()


@pytest.mark.asyncio
async def test_backlog_is_reported_before_live_messages(room_id, history):
    broker = InMemoryRoomBroker()
    history.store(2)
    events = []

    async def on_backlog(messages):
        events.append(("backlog", [m.seq for m in messages]))
        # published while the backlog is still being handed out
        for message in history.store(1):
            await broker.publish(room_id, message)
        await asyncio.sleep(0.01)

    async def on_message(message):
        events.append(("live", message.seq))

    feed = MessageFeed(room_id, broker, history.fetch_after, on_message=on_message)
    await feed.start(on_backlog=on_backlog)
    await settle()

    assert events == [("backlog", [1, 2]), ("live", 3)]
    await feed.close()


@pytest.mark.asyncio
async def test_gap_triggers_catch_up_from_history(room_id, history):
    broker = InMemoryRoomBroker()
    emitted = []

    async def on_message(message):
        emitted.append(message.seq)

    feed = MessageFeed(room_id, broker, history.fetch_after, on_message=on_message)
    await feed.start()

    stored = history.store(3)
    # messages 1 and 2 were never delivered live
    await broker.publish(room_id, stored[2])
    await broker.publish(room_id, stored[0])
    await settle()

    assert emitted == [1, 2, 3]
    assert history.reads == [0, 0]
    assert feed.last_seq == 3
    await feed.close()


@pytest.mark.asyncio
async def test_resync_returns_only_missed_messages(room_id, history):
    broker = InMemoryRoomBroker()
    history.store(2)
    feed = MessageFeed(room_id, broker, history.fetch_after)
    await feed.start()
    await feed.close()

    history.store(2)
    missed = await feed.resync()

    assert [m.seq for m in missed] == [3, 4]
    assert await feed.resync() == []
    assert broker.subscriber_count(room_id) == 0
