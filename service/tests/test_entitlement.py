"""
Tests for the entitlement store client.
"""

import json
from unittest.mock import AsyncMock

import pytest
from redis.exceptions import ConnectionError as RedisConnectionError

from app.services.entitlement import DAY_MS, EntitlementStore, EntitlementStoreError
from conftest import START_MS


class TestIsEntitled:
    @pytest.mark.asyncio
    async def test_false_before_registration(self, store):
        assert await store.is_entitled("U1") is False

    @pytest.mark.asyncio
    async def test_true_after_registration(self, store):
        await store.register("U1", "123456789", 30)
        assert await store.is_entitled("U1") is True

    @pytest.mark.asyncio
    async def test_true_just_before_expiry(self, store, clock):
        await store.register("U1", "123456789", 30)
        clock.advance(30 * DAY_MS - 1)
        assert await store.is_entitled("U1") is True

    @pytest.mark.asyncio
    async def test_false_at_expiry_instant(self, store, clock):
        await store.register("U1", "123456789", 30)
        clock.advance(30 * DAY_MS)
        assert await store.is_entitled("U1") is False

    @pytest.mark.asyncio
    async def test_false_after_store_ttl_expiry(self, store, clock, fake_redis):
        await store.register("U1", "123456789", 1)
        clock.advance(2 * DAY_MS)
        assert await store.is_entitled("U1") is False
        assert "sub:U1" not in fake_redis.data

    @pytest.mark.asyncio
    async def test_expired_record_still_in_store_is_rejected(self, clock):
        """Record the store has not evicted yet is checked against the clock."""
        redis = AsyncMock()
        redis.get = AsyncMock(return_value=json.dumps({"orderReference": "A", "expiresAt": START_MS - 1}))
        store = EntitlementStore(redis, clock=clock)
        assert await store.is_entitled("U1") is False

    @pytest.mark.asyncio
    async def test_read_failure_is_not_entitled(self, clock):
        redis = AsyncMock()
        redis.get = AsyncMock(side_effect=RedisConnectionError("down"))
        store = EntitlementStore(redis, clock=clock)
        assert await store.is_entitled("U1") is False

    @pytest.mark.asyncio
    async def test_malformed_record_is_not_entitled(self, clock):
        redis = AsyncMock()
        redis.get = AsyncMock(return_value="not json")
        store = EntitlementStore(redis, clock=clock)
        assert await store.is_entitled("U1") is False

    @pytest.mark.asyncio
    async def test_principals_are_independent(self, store):
        await store.register("U1", "123456789", 30)
        assert await store.is_entitled("U2") is False


class TestRegister:
    @pytest.mark.asyncio
    async def test_record_fields(self, store):
        record = await store.register("U1", "123456789", 30)
        assert record.principal == "U1"
        assert record.order_reference == "123456789"
        assert record.expires_at == START_MS + 30 * DAY_MS

    @pytest.mark.asyncio
    async def test_stored_with_absolute_expiry(self, clock):
        redis = AsyncMock()
        redis.set = AsyncMock(return_value=True)
        store = EntitlementStore(redis, clock=clock)

        await store.register("U1", "123456789", 30)

        redis.set.assert_called_once()
        call_args = redis.set.call_args
        assert call_args[0][0] == "sub:U1"
        stored = json.loads(call_args[0][1])
        assert stored == {"orderReference": "123456789", "expiresAt": START_MS + 30 * DAY_MS}
        assert call_args[1]["pxat"] == START_MS + 30 * DAY_MS

    @pytest.mark.asyncio
    async def test_second_registration_replaces_first(self, store, clock):
        await store.register("U1", "A", 30)
        await store.register("U1", "B", 10)

        record = await store.get_record("U1")
        assert record.order_reference == "B"
        assert record.expires_at == START_MS + 10 * DAY_MS

        clock.advance(10 * DAY_MS)
        assert await store.is_entitled("U1") is False

    @pytest.mark.asyncio
    async def test_renewal_resets_window_from_now(self, store, clock):
        await store.register("U1", "A", 30)
        clock.advance(20 * DAY_MS)
        record = await store.register("U1", "A", 30)
        assert record.expires_at == START_MS + 50 * DAY_MS

    @pytest.mark.asyncio
    @pytest.mark.parametrize("days", [0, -1, 1.5, True])
    async def test_invalid_window_rejected(self, store, days):
        with pytest.raises(ValueError):
            await store.register("U1", "A", days)

    @pytest.mark.asyncio
    async def test_write_failure_raises_store_error(self, clock):
        redis = AsyncMock()
        redis.set = AsyncMock(side_effect=RedisConnectionError("down"))
        store = EntitlementStore(redis, clock=clock)
        with pytest.raises(EntitlementStoreError):
            await store.register("U1", "A", 30)


class TestGetRecord:
    @pytest.mark.asyncio
    async def test_none_when_absent(self, store):
        assert await store.get_record("nobody") is None
