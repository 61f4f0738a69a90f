"""
TokenStore lifecycle: the startup PING and the not-connected guard.
"""
import pytest
from redis.exceptions import RedisError

from blog_api import cache
from blog_api.cache import TokenStore

from conftest import FakeRedis


@pytest.mark.asyncio
async def test_connect_pings_the_server(monkeypatch):
    client = FakeRedis()
    monkeypatch.setattr(cache.redis, "from_url", lambda url, **kwargs: client)

    store = TokenStore()
    await store.connect("redis://localhost:6379/0")
    await store.save(3, "tok", ttl=60)

    assert client.data == {"token:3": "tok"}
    assert client.ttls == {"token:3": 60}


@pytest.mark.asyncio
async def test_connect_fails_when_ping_fails(monkeypatch):
    """A failed startup PING propagates so the application does not start."""
    client = FakeRedis()
    client.broken = True
    monkeypatch.setattr(cache.redis, "from_url", lambda url, **kwargs: client)

    store = TokenStore()
    with pytest.raises(RedisError):
        await store.connect("redis://localhost:6379/0")


@pytest.mark.asyncio
async def test_unconnected_store_raises():
    store = TokenStore()
    with pytest.raises(RedisError):
        await store.load(1)


@pytest.mark.asyncio
async def test_disconnect_drops_the_client():
    store = TokenStore(client=FakeRedis())
    await store.disconnect()
    with pytest.raises(RedisError):
        await store.save(1, "tok", ttl=60)
