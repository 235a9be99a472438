"""
Reply orchestrator - runs the per-event pipeline for a webhook batch.

PER EVENT:
==========
1. Classify (order code / meal report / image / chat)
2. Order code: register the subscription, confirm with the expiry date
3. Otherwise gate on entitlement; unentitled users get a fixed reply and
   NO generation call
4. Resolve profile → (fetch image) → generate → first completion's text
5. Any failure in 3–4 becomes the intent's fallback text
6. Exactly one reply call per event

Events in a batch run concurrently and never affect each other.
"""

import asyncio
from datetime import datetime, timezone
from typing import Optional
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from app.config import Settings, get_settings
from app.agents.schemas import GenerationProfile, InboundEvent, Intent, Modality, ReplyOutcome
from app.agents.profiles import ProfileSelector, get_profile_selector
from app.agents.prompts import (
    GATE_REJECTION_TEXT,
    REGISTRATION_CONFIRMED_TEMPLATE,
    REGISTRATION_FAILED_TEXT,
    VISION_USER_PROMPT,
)
from app.services.entitlement import EntitlementStore, get_entitlement_store
from app.services.generation import GenerationClient, GenerationError, get_generation_client
from app.logging_config import bot_logger
from .dispatcher import IntentClassifier, extract_order_code, get_classifier
from .line_api import LineClient, LineAPIError, get_line_client, split_reply_text, to_data_url

logger = bot_logger.getChild("handlers")


def format_expiry(expires_at_ms: int, tz_name: str = "Asia/Tokyo") -> str:
    """Expiry date as shown to users, e.g. 2026年11月18日. Unknown zones fall back to UTC."""
    try:
        tz = ZoneInfo(tz_name)
    except (ZoneInfoNotFoundError, ValueError):
        logger.warning(f"Unknown timezone {tz_name!r}, formatting expiry in UTC")
        tz = timezone.utc
    dt = datetime.fromtimestamp(expires_at_ms / 1000, tz)
    return f"{dt.year}年{dt.month}月{dt.day}日"


class ReplyOrchestrator:
    def __init__(
        self,
        store: EntitlementStore,
        generator: GenerationClient,
        line: LineClient,
        classifier: IntentClassifier,
        profiles: ProfileSelector,
        settings: Settings,
    ):
        self.store = store
        self.generator = generator
        self.line = line
        self.classifier = classifier
        self.profiles = profiles
        self.settings = settings

    async def process_batch(self, events: list[InboundEvent]) -> list[ReplyOutcome | BaseException]:
        """
        Process all events concurrently; returns one outcome (or exception) per event.
        """
        if not events:
            return []

        results = await asyncio.gather(
            *(self.process_event(event) for event in events),
            return_exceptions=True,
        )

        for event, result in zip(events, results):
            if isinstance(result, BaseException):
                logger.error(
                    f"Event for user={event.principal} failed: {result!r}",
                    exc_info=(type(result), result, result.__traceback__),
                )

        return results

    async def process_event(self, event: InboundEvent) -> ReplyOutcome:
        intent = self.classifier.classify(event)
        logger.info(f"Event from user={event.principal} kind={event.kind.value} classified as {intent.value}")

        if intent == Intent.ORDER_CODE:
            outcome = await self._register(event)
        else:
            outcome = await self._respond(event, intent)

        await self._send(outcome)
        return outcome

    async def _register(self, event: InboundEvent) -> ReplyOutcome:
        code = extract_order_code(event.payload)

        try:
            record = await self.store.register(
                event.principal, code, self.settings.default_window_days
            )
        except Exception as e:
            logger.error(f"Registration failed for user={event.principal}: {e}", exc_info=True)
            return ReplyOutcome.fallback(event, REGISTRATION_FAILED_TEXT, Intent.ORDER_CODE)

        text = REGISTRATION_CONFIRMED_TEMPLATE.format(
            code=code,
            expires=format_expiry(record.expires_at, self.settings.display_timezone),
        )
        return ReplyOutcome.ok(event, text, Intent.ORDER_CODE)

    async def _respond(self, event: InboundEvent, intent: Intent) -> ReplyOutcome:
        try:
            if not await self.store.is_entitled(event.principal):
                logger.info(f"User={event.principal} not entitled, skipping generation")
                return ReplyOutcome.ok(event, GATE_REJECTION_TEXT, intent)

            profile = self.profiles.select(intent)

            if profile.modality == Modality.TEXT_IMAGE:
                text = await self._generate_from_image(event, profile)
                if text is None:
                    return ReplyOutcome.fallback(event, profile.fallback_text, intent)
            else:
                text = await self.generator.generate(profile, event.payload.strip())

            return ReplyOutcome.ok(event, text, intent)

        except GenerationError as e:
            logger.warning(f"Generation failed for user={event.principal} intent={intent.value}: {e}")
        except Exception as e:
            logger.error(f"Unexpected error for user={event.principal} intent={intent.value}: {e}", exc_info=True)

        return ReplyOutcome.fallback(event, self.profiles.fallback_text(intent), intent)

    async def _generate_from_image(self, event: InboundEvent, profile: GenerationProfile) -> Optional[str]:
        """Generated text, or None when the image could not be fetched."""
        try:
            content, content_type = await self.line.get_message_content(event.payload)
        except LineAPIError as e:
            logger.warning(f"Media fetch failed for user={event.principal}: {e}")
            return None

        logger.info(f"Fetched image for user={event.principal}: {len(content)} bytes, {content_type}")
        return await self.generator.generate(
            profile, VISION_USER_PROMPT, to_data_url(content, content_type)
        )

    async def _send(self, outcome: ReplyOutcome) -> None:
        try:
            await self.line.reply(outcome.reply_token, split_reply_text(outcome.text))
            logger.info(f"Replied to user={outcome.principal} status={outcome.status.value}")
        except (LineAPIError, ValueError) as e:
            # Reply tokens are single-use; nothing left to retry with
            logger.error(f"Reply failed for user={outcome.principal}: {e}")


# Global instance
_orchestrator: Optional[ReplyOrchestrator] = None


def get_orchestrator() -> ReplyOrchestrator:
    """Get or create orchestrator wired to the process-wide clients."""
    global _orchestrator
    if _orchestrator is None:
        settings = get_settings()
        _orchestrator = ReplyOrchestrator(
            store=get_entitlement_store(),
            generator=get_generation_client(),
            line=get_line_client(),
            classifier=get_classifier(settings.order_code_min_digits, settings.order_code_max_digits),
            profiles=get_profile_selector(settings),
            settings=settings,
        )
    return _orchestrator
