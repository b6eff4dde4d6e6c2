import asyncio
import uuid
from datetime import datetime, timezone

import pytest

from mentorchat.models.enums import UserRole
from mentorchat.schemas.chat_schemas import MessageRead
from mentorchat.services.chat.broker import (
    InMemoryRoomBroker, RedisRoomBroker, create_room_broker
)


def make_message(room_id, seq: int) -> MessageRead:
    return MessageRead(
        id=uuid.uuid4(),
        room_id=room_id,
        seq=seq,
        sender_id=uuid.uuid4(),
        sender_role=UserRole.STUDENT,
        body=f"message {seq}",
        display_name="Anonymous 1",
        created_at=datetime.now(timezone.utc)
    )


class Collector:
    def __init__(self, expected: int):
        self.expected = expected
        self.messages = []
        self.done = asyncio.Event()

    async def __call__(self, message):
        self.messages.append(message)
        if len(self.messages) >= self.expected:
            self.done.set()


@pytest.mark.asyncio
async def test_every_subscriber_gets_messages_in_publish_order():
    broker = InMemoryRoomBroker()
    room_id = uuid.uuid4()
    first, second = Collector(5), Collector(5)
    await broker.subscribe(room_id, first)
    await broker.subscribe(room_id, second)

    for seq in range(1, 6):
        await broker.publish(room_id, make_message(room_id, seq))

    await asyncio.wait_for(asyncio.gather(first.done.wait(), second.done.wait()), timeout=2)
    assert [m.seq for m in first.messages] == [1, 2, 3, 4, 5]
    assert [m.seq for m in second.messages] == [1, 2, 3, 4, 5]
    await broker.close()


@pytest.mark.asyncio
async def test_messages_stay_within_their_room():
    broker = InMemoryRoomBroker()
    room_id, other_room_id = uuid.uuid4(), uuid.uuid4()
    viewer = Collector(1)
    await broker.subscribe(room_id, viewer)

    await broker.publish(other_room_id, make_message(other_room_id, 1))
    await broker.publish(room_id, make_message(room_id, 1))

    await asyncio.wait_for(viewer.done.wait(), timeout=2)
    assert [m.room_id for m in viewer.messages] == [room_id]
    await broker.close()


@pytest.mark.asyncio
async def test_cancelled_subscription_stops_delivery():
    broker = InMemoryRoomBroker()
    room_id = uuid.uuid4()
    viewer = Collector(1)
    subscription = await broker.subscribe(room_id, viewer)
    assert broker.subscriber_count(room_id) == 1

    await subscription.cancel()
    await subscription.cancel()
    await broker.publish(room_id, make_message(room_id, 1))
    await asyncio.sleep(0.05)

    assert viewer.messages == []
    assert broker.subscriber_count(room_id) == 0
    assert str(room_id) not in broker.room_subscriptions


@pytest.mark.asyncio
async def test_failing_subscriber_does_not_block_others():
    broker = InMemoryRoomBroker()
    room_id = uuid.uuid4()
    healthy = Collector(2)

    async def broken(message):
        raise RuntimeError("socket gone")

    await broker.subscribe(room_id, broken)
    await broker.subscribe(room_id, healthy)
    await broker.publish(room_id, make_message(room_id, 1))
    await broker.publish(room_id, make_message(room_id, 2))

    await asyncio.wait_for(healthy.done.wait(), timeout=2)
    assert [m.seq for m in healthy.messages] == [1, 2]
    await broker.close()


def test_create_room_broker_by_backend():
    assert type(create_room_broker("memory")) is InMemoryRoomBroker
    redis_broker = create_room_broker("redis")
    assert isinstance(redis_broker, RedisRoomBroker)
    assert redis_broker.redis is None
    assert RedisRoomBroker._channel("abc") == "mentorchat:room:abc"
    with pytest.raises(ValueError):
        create_room_broker("carrier-pigeon")
