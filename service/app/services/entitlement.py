"""
Entitlement store client.

One record per LINE user under key "sub:<userId>". Expiry is enforced by
Redis itself (absolute PXAT), and re-checked on read against the clock so a
record is never honoured at or after its expiry instant.
"""

from __future__ import annotations

import json
import time
from typing import Callable, Optional

from redis.asyncio import Redis
from redis.exceptions import RedisError

from app.agents.schemas import EntitlementRecord
from app.logging_config import bot_logger

logger = bot_logger.getChild("entitlement")

DAY_MS = 86_400_000


class EntitlementStoreError(Exception):
    """Store write failed (registration cannot be confirmed)."""


def now_ms() -> int:
    return int(time.time() * 1000)


class EntitlementStore:
    def __init__(self, redis: Redis, clock: Callable[[], int] = now_ms):
        self.redis = redis
        self.clock = clock

    async def get_record(self, principal: str) -> Optional[EntitlementRecord]:
        """Current record for principal, or None. Raises RedisError/ValueError on bad reads."""
        raw = await self.redis.get(self._key(principal))
        if raw is None:
            return None

        data = json.loads(raw)
        return EntitlementRecord(
            principal=principal,
            order_reference=str(data["orderReference"]),
            expires_at=int(data["expiresAt"]),
        )

    async def is_entitled(self, principal: str) -> bool:
        try:
            record = await self.get_record(principal)
        except (RedisError, ValueError, KeyError, TypeError) as e:
            logger.error(f"Entitlement read failed for user={principal}: {e}", exc_info=True)
            return False

        if record is None:
            return False
        return record.expires_at > self.clock()

    async def register(self, principal: str, order_reference: str, window_days: int) -> EntitlementRecord:
        """Create or replace the record; the window restarts from now."""
        if isinstance(window_days, bool) or not isinstance(window_days, int) or window_days <= 0:
            raise ValueError(f"window_days must be a positive integer, got {window_days!r}")

        expires_at = self.clock() + window_days * DAY_MS
        record = EntitlementRecord(
            principal=principal,
            order_reference=order_reference,
            expires_at=expires_at,
        )
        value = json.dumps({"orderReference": order_reference, "expiresAt": expires_at})

        try:
            await self.redis.set(self._key(principal), value, pxat=expires_at)
        except RedisError as e:
            logger.error(f"Entitlement write failed for user={principal}: {e}", exc_info=True)
            raise EntitlementStoreError(f"Failed to register user {principal}: {e}") from e

        logger.info(f"Registered user={principal} order={order_reference} expires_at={expires_at}")
        return record

    @staticmethod
    def _key(principal: str) -> str:
        return f"sub:{principal}"


# Global instance
_store: Optional[EntitlementStore] = None


def get_entitlement_store() -> EntitlementStore:
    """Get or create entitlement store singleton."""
    global _store
    if _store is None:
        from app.redis_client import get_redis
        _store = EntitlementStore(get_redis())
    return _store
