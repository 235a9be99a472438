"""
Subscriptions API

Administrative registration of entitlement windows (e.g. from an order
system's webhook). The chat path registers the same way when a user sends
their order number.
"""

from datetime import datetime, timezone

from fastapi import APIRouter, Depends, Header, HTTPException

from app.config import get_settings
from app.agents.schemas import RegisterRequest, RegisterResponse
from app.services.entitlement import EntitlementStore, EntitlementStoreError, get_entitlement_store

router = APIRouter(prefix="/subscriptions", tags=["subscriptions"])


def verify_admin_key(x_admin_key: str = Header(None)) -> None:
    """Require X-Admin-Key when an admin key is configured."""
    settings = get_settings()
    if settings.admin_api_key and x_admin_key != settings.admin_api_key:
        raise HTTPException(status_code=403, detail="Invalid admin key")


def _iso(expires_at_ms: int) -> str:
    return datetime.fromtimestamp(expires_at_ms / 1000, tz=timezone.utc).isoformat()


@router.post("", response_model=RegisterResponse, dependencies=[Depends(verify_admin_key)])
async def register_subscription(
    request: RegisterRequest,
    store: EntitlementStore = Depends(get_entitlement_store),
):
    """
    Register or renew a user's entitlement.

    Replaces any existing record; the window restarts now.
    """
    settings = get_settings()
    days = request.days or settings.default_window_days

    try:
        record = await store.register(request.user_id, request.order_id, days)
    except EntitlementStoreError:
        raise HTTPException(status_code=503, detail="Subscription store unavailable")

    return RegisterResponse(
        userId=record.principal,
        orderId=record.order_reference,
        expiresAt=record.expires_at,
        expiresAtIso=_iso(record.expires_at),
    )


@router.get("/{user_id}", response_model=RegisterResponse, dependencies=[Depends(verify_admin_key)])
async def get_subscription(
    user_id: str,
    store: EntitlementStore = Depends(get_entitlement_store),
):
    """Current entitlement record for a user."""
    try:
        record = await store.get_record(user_id)
    except Exception:
        raise HTTPException(status_code=503, detail="Subscription store unavailable")

    if record is None or record.expires_at <= store.clock():
        raise HTTPException(status_code=404, detail="No active subscription")

    return RegisterResponse(
        userId=record.principal,
        orderId=record.order_reference,
        expiresAt=record.expires_at,
        expiresAtIso=_iso(record.expires_at),
    )
