import json

import pytest

from notevault.core import redis_client as redis_module
from notevault.core.redis_client import RedisClient


class FakePubSub:
    def __init__(self, messages):
        self._messages = messages
        self.channels = []
        self.closed = False

    async def subscribe(self, channel):
        self.channels.append(channel)

    async def listen(self):
        for message in self._messages:
            yield message

    async def aclose(self):
        self.closed = True


class FakeRedis:
    def __init__(self, ok=True, messages=()):
        self.ok = ok
        self.published = []
        self.pubsub_instance = FakePubSub(list(messages))
        self.closed = False

    async def ping(self):
        if not self.ok:
            raise ConnectionError("refused")
        return True

    async def publish(self, channel, data):
        self.published.append((channel, data))
        return 1

    def pubsub(self, ignore_subscribe_messages=False):
        return self.pubsub_instance

    async def aclose(self):
        self.closed = True


@pytest.fixture
def fake_redis(monkeypatch):
    fake = FakeRedis(messages=[
        {"type": "subscribe", "data": 1},
        {"type": "message", "data": json.dumps({"collection": "notes", "origin": "p1"})},
        {"type": "message", "data": "not json"},
    ])
    monkeypatch.setattr(redis_module.redis, "from_url", lambda url, **kw: fake)
    return fake


async def test_publish_and_messages(fake_redis):
    client = RedisClient("redis://test", "changes")
    await client.connect()
    assert client.connected

    assert await client.publish({"collection": "notes"})
    assert fake_redis.published == [("changes", '{"collection": "notes"}')]

    events = [event async for event in client.messages()]
    assert events == [{"collection": "notes", "origin": "p1"}]
    assert fake_redis.pubsub_instance.channels == ["changes"]

    await client.disconnect()
    assert fake_redis.closed
    assert fake_redis.pubsub_instance.closed
    assert not client.connected


async def test_connect_failure(monkeypatch):
    monkeypatch.setattr(redis_module.redis, "from_url", lambda url, **kw: FakeRedis(ok=False))
    client = RedisClient("redis://test")

    with pytest.raises(ConnectionError):
        await client.connect()
    assert not client.connected
    assert await client.ping() is False
    assert await client.publish({"collection": "notes"}) is False
