"""
Webhook ingestion for LINE deliveries.

Parses a delivery, keeps only user message events, runs them through the
orchestrator and waits for all of them to settle. Never raises: the caller
always acknowledges with 200, since LINE redelivers on any other status and
a redelivery would reply twice.
"""

from typing import Any, Optional

from app.agents.schemas import EventKind, InboundEvent
from app.logging_config import bot_logger
from .handlers import ReplyOrchestrator, get_orchestrator

logger = bot_logger.getChild("webhook")

MESSAGE_KINDS = {
    "text": EventKind.TEXT,
    "image": EventKind.IMAGE,
}


def parse_event(raw: dict[str, Any]) -> Optional[InboundEvent]:
    """
    Convert one LINE webhook event into an InboundEvent.

    Returns None for non-message events and for events without a user or reply token.
    """
    if raw.get("type") != "message":
        return None

    message = raw.get("message") or {}
    source = raw.get("source") or {}
    user_id = source.get("userId")
    reply_token = raw.get("replyToken")

    if not user_id or not reply_token:
        return None

    kind = MESSAGE_KINDS.get(message.get("type"), EventKind.OTHER)

    if kind == EventKind.TEXT:
        payload = message.get("text") or ""
    elif kind == EventKind.IMAGE:
        payload = str(message.get("id") or "")
    else:
        payload = ""

    return InboundEvent(
        principal=user_id,
        kind=kind,
        payload=payload,
        reply_token=reply_token,
    )


def parse_delivery(body: Any) -> list[InboundEvent]:
    """Message events of kind text/image from a webhook body."""
    if not isinstance(body, dict):
        return []

    events = []
    for raw in body.get("events") or []:
        if not isinstance(raw, dict):
            continue
        try:
            event = parse_event(raw)
        except (ValueError, AttributeError, TypeError) as e:
            logger.warning(f"Skipping malformed event: {e}")
            continue
        if event is None or event.kind == EventKind.OTHER:
            continue
        events.append(event)
    return events


async def handle_line_delivery(body: Any, orchestrator: Optional[ReplyOrchestrator] = None) -> int:
    """
    Process a verified webhook delivery.

    Returns the number of events dispatched.
    """
    try:
        events = parse_delivery(body)
        if not events:
            logger.debug("Delivery contained no message events")
            return 0

        logger.info(f"Dispatching {len(events)} event(s)")
        orchestrator = orchestrator or get_orchestrator()
        await orchestrator.process_batch(events)
        return len(events)

    except Exception as e:
        logger.error(f"Failed to process delivery: {e}", exc_info=True)
        return 0
