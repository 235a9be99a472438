from enum import Enum
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field


class EventKind(str, Enum):
    TEXT = "text"
    IMAGE = "image"
    OTHER = "other"


class Intent(str, Enum):
    ORDER_CODE = "order_code"
    MEAL_REPORT = "meal_report"
    VISION_REQUEST = "vision_request"
    GENERAL_CHAT = "general_chat"


class Modality(str, Enum):
    TEXT = "text"
    TEXT_IMAGE = "text+image"


class InboundEvent(BaseModel):
    principal: str  # LINE userId
    kind: EventKind
    payload: str = ""  # text body, or message id for images
    reply_token: str


class EntitlementRecord(BaseModel):
    principal: str
    order_reference: str
    expires_at: int  # epoch millis


class GenerationProfile(BaseModel):
    model_config = ConfigDict(frozen=True, protected_namespaces=())

    model_id: str
    system_prompt: str
    temperature: float
    max_tokens: int
    modality: Modality
    fallback_text: str


class ReplyStatus(str, Enum):
    OK = "ok"
    FALLBACK = "fallback"


class ReplyOutcome(BaseModel):
    """Result of one event: either generated text or a fixed fallback."""

    principal: str
    reply_token: str
    text: str
    status: ReplyStatus = ReplyStatus.OK
    intent: Optional[Intent] = None

    @classmethod
    def ok(cls, event: InboundEvent, text: str, intent: Optional[Intent] = None) -> "ReplyOutcome":
        return cls(
            principal=event.principal,
            reply_token=event.reply_token,
            text=text,
            status=ReplyStatus.OK,
            intent=intent,
        )

    @classmethod
    def fallback(cls, event: InboundEvent, text: str, intent: Optional[Intent] = None) -> "ReplyOutcome":
        return cls(
            principal=event.principal,
            reply_token=event.reply_token,
            text=text,
            status=ReplyStatus.FALLBACK,
            intent=intent,
        )

    @property
    def is_fallback(self) -> bool:
        return self.status == ReplyStatus.FALLBACK


# API Request/Response models

class RegisterRequest(BaseModel):
    user_id: str = Field(..., alias="userId", min_length=1, description="LINE userId")
    order_id: str = Field(..., alias="orderId", min_length=1, description="Order reference")
    days: Optional[int] = Field(None, gt=0, description="Entitlement window in days")


class RegisterResponse(BaseModel):
    userId: str
    orderId: str
    expiresAt: int
    expiresAtIso: str
