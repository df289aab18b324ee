# Copyright 2026 Firefly Software Solutions Inc.
#
# Licensed under the Apache License, Version 2.0 (the "License");
# you may not use this file except in compliance with the License.
# You may obtain a copy of the License at
#
#     http://www.apache.org/licenses/LICENSE-2.0
#
# Unless required by applicable law or agreed to in writing, software
# distributed under the License is distributed on an "AS IS" BASIS,
# WITHOUT WARRANTIES OR CONDITIONS OF ANY KIND, either express or implied.
# See the License for the specific language governing permissions and
# limitations under the License.
"""Tests for session stores: memory, Redis and the await/callback proxy."""

from __future__ import annotations

import asyncio
import functools
import json
import threading
from datetime import timedelta

import pytest

from pysession.session.adapters.memory import MemoryStore
from pysession.session.adapters.proxy import ProxyStore, as_proxy
from pysession.session.adapters.redis import RedisSessionStore
from pysession.session.cookie import utcnow
from pysession.session.exceptions import SessionStoreException
from pysession.session.ports.outbound import SessionStore


class FakeRedis:
    """Minimal in-memory stub matching the redis.asyncio.Redis interface."""

    def __init__(self) -> None:
        self._store: dict[str, bytes] = {}
        self.expiry: dict[str, tuple[str, int]] = {}

    async def get(self, key: str) -> bytes | None:
        return self._store.get(key)

    async def set(self, key: str, value: bytes, ex: int | None = None, px: int | None = None) -> None:
        self._store[key] = value
        if px is not None:
            self.expiry[key] = ("px", px)
        elif ex is not None:
            self.expiry[key] = ("ex", ex)
        else:
            self.expiry.pop(key, None)

    async def delete(self, *keys: str) -> int:
        count = 0
        for k in keys:
            if k in self._store:
                del self._store[k]
                count += 1
        return count


class TestMemoryStore:
    @pytest.mark.asyncio
    async def test_protocol_compliance(self):
        store: SessionStore = MemoryStore()
        assert isinstance(store, SessionStore)

    @pytest.mark.asyncio
    async def test_set_and_get(self):
        store = MemoryStore()
        await store.set("id", {"user": "alice"})
        assert await store.get("id") == {"user": "alice"}
        assert "id" in store
        assert len(store) == 1

    @pytest.mark.asyncio
    async def test_missing_record(self):
        assert await MemoryStore().get("nope") is None

    @pytest.mark.asyncio
    async def test_records_are_copied(self):
        store = MemoryStore()
        record = {"cart": [1]}
        await store.set("id", record)
        record["cart"].append(2)
        loaded = await store.get("id")
        loaded["cart"].append(3)
        assert await store.get("id") == {"cart": [1]}

    @pytest.mark.asyncio
    async def test_destroy(self):
        store = MemoryStore()
        await store.set("id", {"a": 1})
        await store.destroy("id")
        await store.destroy("id")
        assert await store.get("id") is None


class TestRedisSessionStore:
    @pytest.mark.asyncio
    async def test_round_trip_with_prefix(self):
        redis = FakeRedis()
        store = RedisSessionStore(redis, prefix="app:")
        await store.set("id", {"user": "alice", "cookie": {"expires": None}})
        assert json.loads(redis._store["app:id"]) == {"user": "alice", "cookie": {"expires": None}}
        assert await store.get("id") == {"user": "alice", "cookie": {"expires": None}}

    @pytest.mark.asyncio
    async def test_expiry_follows_cookie_expires(self):
        redis = FakeRedis()
        store = RedisSessionStore(redis)
        expires = utcnow() + timedelta(minutes=10)
        await store.set("id", {"cookie": {"expires": expires.isoformat()}})
        kind, value = redis.expiry["sess:id"]
        assert kind == "px"
        assert 9 * 60_000 < value <= 10 * 60_000

    @pytest.mark.asyncio
    async def test_past_expiry_keeps_positive_px(self):
        redis = FakeRedis()
        store = RedisSessionStore(redis)
        await store.set("id", {"expires": (utcnow() - timedelta(minutes=1)).isoformat()})
        assert redis.expiry["sess:id"] == ("px", 1)

    @pytest.mark.asyncio
    async def test_ttl_fallback(self):
        redis = FakeRedis()
        store = RedisSessionStore(redis, ttl=3600)
        await store.set("id", {"cookie": {}})
        assert redis.expiry["sess:id"] == ("ex", 3600)

    @pytest.mark.asyncio
    async def test_no_expiry(self):
        redis = FakeRedis()
        store = RedisSessionStore(redis)
        await store.set("id", {"cookie": {}})
        assert "sess:id" not in redis.expiry

    @pytest.mark.asyncio
    async def test_undecodable_record_reads_as_missing(self):
        redis = FakeRedis()
        redis._store["sess:id"] = b"{not json"
        assert await RedisSessionStore(redis).get("id") is None

    @pytest.mark.asyncio
    async def test_destroy(self):
        redis = FakeRedis()
        store = RedisSessionStore(redis)
        await store.set("id", {"a": 1})
        await store.destroy("id")
        assert await store.get("id") is None


class TestProxyStoreCoroutineBackend:
    @pytest.mark.asyncio
    async def test_await(self):
        proxy = ProxyStore(MemoryStore())
        await proxy.set("id", {"a": 1})
        assert await proxy.get("id") == {"a": 1}
        await proxy.destroy("id")
        assert await proxy.get("id") is None

    @pytest.mark.asyncio
    async def test_callback(self):
        proxy = ProxyStore(MemoryStore())
        done = asyncio.get_running_loop().create_future()
        await proxy.set("id", {"a": 1})
        proxy.get("id", callback=lambda err, value: done.set_result((err, value)))
        assert await done == (None, {"a": 1})

    @pytest.mark.asyncio
    async def test_partial_methods(self):
        backing = MemoryStore()

        class PartialStore:
            get = functools.partial(MemoryStore.get, backing)
            set = functools.partial(MemoryStore.set, backing)
            destroy = functools.partial(MemoryStore.destroy, backing)

        proxy = ProxyStore(PartialStore())
        await proxy.set("id", {"a": 1})
        assert await proxy.get("id") == {"a": 1}

    @pytest.mark.asyncio
    async def test_async_callable_objects(self):
        class Lookup:
            async def __call__(self, session_id):
                return {"id": session_id}

        class CallableStore:
            get = Lookup()

        assert await ProxyStore(CallableStore()).get("x") == {"id": "x"}

    @pytest.mark.asyncio
    async def test_plain_method_returning_awaitable(self):
        backing = MemoryStore()

        class WrappingStore:
            def set(self, session_id, record):
                return backing.set(session_id, record)

            def get(self, session_id):
                return backing.get(session_id)

        proxy = ProxyStore(WrappingStore())
        await proxy.set("id", {"a": 1})
        assert await proxy.get("id") == {"a": 1}


class TestProxyStoreCallbackBackend:
    @pytest.mark.asyncio
    async def test_await(self, callback_store):
        proxy = ProxyStore(callback_store)
        await proxy.set("id", {"a": 1})
        assert await proxy.get("id") == {"a": 1}
        await proxy.destroy("id")
        assert callback_store.records == {}

    @pytest.mark.asyncio
    async def test_error_rejects(self, callback_store):
        callback_store.set_error = SessionStoreException("disk full")
        with pytest.raises(SessionStoreException, match="disk full"):
            await ProxyStore(callback_store).set("id", {})

    @pytest.mark.asyncio
    async def test_error_reaches_callback(self, callback_store):
        callback_store.destroy_error = SessionStoreException("down")
        done = asyncio.get_running_loop().create_future()
        ProxyStore(callback_store).destroy("id", callback=lambda err: done.set_result(err))
        assert isinstance(await done, SessionStoreException)

    @pytest.mark.asyncio
    async def test_callback_from_another_thread(self):
        class ThreadedStore:
            def get(self, session_id, callback):
                threading.Thread(target=callback, args=(None, {"id": session_id})).start()

        assert await ProxyStore(ThreadedStore()).get("x") == {"id": "x"}


class TestProxyStorePassThrough:
    def test_other_attributes_are_forwarded(self, callback_store):
        callback_store.name = "primary"
        proxy = as_proxy(callback_store)
        assert proxy.name == "primary"
        assert proxy.records is callback_store.records
        assert proxy.target is callback_store

    def test_wrapped_store_is_not_modified(self, callback_store):
        original_get = callback_store.get
        as_proxy(callback_store)
        assert callback_store.get == original_get
        assert "get" not in vars(callback_store)

    def test_as_proxy_is_idempotent(self):
        proxy = as_proxy(MemoryStore())
        assert as_proxy(proxy) is proxy
