"""
LINE Messaging API client.

Simple wrapper for replying to events and downloading message content.
"""

import base64
import hashlib
import hmac
from typing import Optional

import httpx

from app.config import get_settings

# LINE limits: 5 message objects per reply, 5000 characters per text message
MAX_REPLY_MESSAGES = 5
MAX_TEXT_LENGTH = 5000


class LineAPIError(Exception):
    """LINE API call failed."""


def verify_signature(body: bytes, signature: Optional[str], channel_secret: str) -> bool:
    """
    Check X-Line-Signature: base64(HMAC-SHA256(channel_secret, raw body)).
    """
    if not signature:
        return False
    digest = hmac.new(channel_secret.encode("utf-8"), body, hashlib.sha256).digest()
    expected = base64.b64encode(digest).decode("utf-8")
    return hmac.compare_digest(expected, signature)


def split_reply_text(text: str, limit: int = MAX_TEXT_LENGTH, max_parts: int = MAX_REPLY_MESSAGES) -> list[str]:
    """
    Split text into at most max_parts segments of at most limit characters.

    Prefers breaking on newlines; text beyond the last segment is truncated.
    """
    parts: list[str] = []
    remaining = text

    while remaining and len(parts) < max_parts:
        if len(remaining) <= limit:
            parts.append(remaining)
            break

        cut = remaining.rfind("\n", 0, limit)
        if cut <= 0:
            cut = limit
        parts.append(remaining[:cut])
        remaining = remaining[cut:].lstrip("\n")

    return parts or [""]


class LineClient:
    """
    Client for the LINE reply and content endpoints.
    """

    def __init__(
        self,
        channel_access_token: str,
        api_base_url: str = "https://api.line.me",
        data_api_base_url: str = "https://api-data.line.me",
        timeout: float = 10.0,
    ):
        self.api_base_url = api_base_url.rstrip("/")
        self.data_api_base_url = data_api_base_url.rstrip("/")
        self.client = httpx.AsyncClient(
            timeout=timeout,
            headers={"Authorization": f"Bearer {channel_access_token}"},
        )

    async def reply(self, reply_token: str, texts: list[str]) -> None:
        """
        Send one reply (up to 5 text messages) for a reply token.

        A reply token is single-use; callers must not retry on failure.
        """
        if not texts:
            raise ValueError("At least one message is required")

        payload = {
            "replyToken": reply_token,
            "messages": [{"type": "text", "text": t} for t in texts[:MAX_REPLY_MESSAGES]],
        }

        try:
            response = await self.client.post(
                f"{self.api_base_url}/v2/bot/message/reply",
                json=payload,
            )
            response.raise_for_status()
        except httpx.HTTPError as e:
            raise LineAPIError(f"Reply failed: {e}") from e

    async def get_message_content(self, message_id: str) -> tuple[bytes, str]:
        """
        Download binary content of an image message.

        Returns:
            (content bytes, content type)
        """
        try:
            response = await self.client.get(
                f"{self.data_api_base_url}/v2/bot/message/{message_id}/content"
            )
            response.raise_for_status()
        except httpx.HTTPError as e:
            raise LineAPIError(f"Content fetch failed for message {message_id}: {e}") from e

        content_type = response.headers.get("content-type", "image/jpeg").split(";")[0].strip()
        return response.content, content_type

    async def close(self):
        """Close HTTP client."""
        await self.client.aclose()


def to_data_url(content: bytes, content_type: str) -> str:
    """Encode binary content as a base64 data: URL for the generation API."""
    encoded = base64.b64encode(content).decode("ascii")
    return f"data:{content_type};base64,{encoded}"


# Global instance
_line_client: Optional[LineClient] = None


def get_line_client() -> LineClient:
    """Get or create LINE client singleton."""
    global _line_client
    if _line_client is None:
        settings = get_settings()
        _line_client = LineClient(
            channel_access_token=settings.line_channel_access_token,
            api_base_url=settings.line_api_base_url,
            data_api_base_url=settings.line_data_api_base_url,
            timeout=settings.line_timeout_seconds,
        )
    return _line_client


async def close_line_client() -> None:
    global _line_client
    if _line_client is not None:
        await _line_client.close()
        _line_client = None
