"""
Shared fixtures: in-memory subscription store, fixed clock, mocked LINE and
generation clients.
"""

import os
from datetime import datetime, timezone
from unittest.mock import AsyncMock

import pytest

# Required settings must exist before app modules are imported
os.environ.setdefault("LINE_CHANNEL_ACCESS_TOKEN", "test-access-token")
os.environ.setdefault("LINE_CHANNEL_SECRET", "test-channel-secret")
os.environ.setdefault("OPENAI_API_KEY", "test-openai-key")

from app.config import get_settings  # noqa: E402
from app.agents.profiles import get_profile_selector  # noqa: E402
from app.agents.schemas import EventKind, InboundEvent  # noqa: E402
from app.line_bot.dispatcher import get_classifier  # noqa: E402
from app.line_bot.handlers import ReplyOrchestrator  # noqa: E402
from app.services.entitlement import EntitlementStore  # noqa: E402

START_MS = int(datetime(2026, 10, 19, tzinfo=timezone.utc).timestamp() * 1000)


class FakeClock:
    """Epoch-millis clock that only moves when told to."""

    def __init__(self, now: int = START_MS):
        self.now = now

    def __call__(self) -> int:
        return self.now

    def advance(self, ms: int) -> None:
        self.now += ms


class FakeRedis:
    """Enough of redis.asyncio.Redis for the store: GET and SET with PXAT expiry."""

    def __init__(self, clock: FakeClock):
        self.clock = clock
        self.data: dict[str, tuple[str, int | None]] = {}

    async def get(self, key):
        item = self.data.get(key)
        if item is None:
            return None
        value, pxat = item
        if pxat is not None and pxat <= self.clock():
            del self.data[key]
            return None
        return value

    async def set(self, key, value, pxat=None):
        self.data[key] = (value, pxat)
        return True


def make_event(principal="U1", kind=EventKind.TEXT, payload="", reply_token=None) -> InboundEvent:
    return InboundEvent(
        principal=principal,
        kind=kind,
        payload=payload,
        reply_token=reply_token or f"token-{principal}",
    )


@pytest.fixture
def settings():
    return get_settings()


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def fake_redis(clock):
    return FakeRedis(clock)


@pytest.fixture
def store(fake_redis, clock):
    return EntitlementStore(fake_redis, clock=clock)


@pytest.fixture
def generator():
    gen = AsyncMock()
    gen.generate = AsyncMock(return_value="生成された返信")
    return gen


@pytest.fixture
def line():
    client = AsyncMock()
    client.reply = AsyncMock(return_value=None)
    client.get_message_content = AsyncMock(return_value=(b"\xff\xd8\xff", "image/jpeg"))
    return client


@pytest.fixture
def orchestrator(store, generator, line, settings):
    return ReplyOrchestrator(
        store=store,
        generator=generator,
        line=line,
        classifier=get_classifier(settings.order_code_min_digits, settings.order_code_max_digits),
        profiles=get_profile_selector(settings),
        settings=settings,
    )
