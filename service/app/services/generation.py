from typing import Optional

from openai import AsyncOpenAI, OpenAIError

from app.config import get_settings
from app.agents.schemas import GenerationProfile, Modality


class GenerationError(Exception):
    """Generation call failed or returned nothing usable."""


def build_messages(profile: GenerationProfile, text: str, image_data_url: Optional[str] = None) -> list[dict]:
    """
    Build the chat messages for a profile.

    Args:
        profile: Generation profile (system prompt + modality)
        text: User text (for vision, the instruction accompanying the image)
        image_data_url: data: URL of the image, required for text+image profiles

    Returns:
        Ordered role-tagged messages
    """
    messages = [{"role": "system", "content": profile.system_prompt}]

    if profile.modality == Modality.TEXT_IMAGE:
        if not image_data_url:
            raise ValueError("text+image profile requires an image")
        messages.append({
            "role": "user",
            "content": [
                {"type": "text", "text": text},
                {"type": "image_url", "image_url": {"url": image_data_url}},
            ],
        })
    else:
        messages.append({"role": "user", "content": text})

    return messages


class GenerationClient:
    """Thin wrapper over an OpenAI-compatible chat completions endpoint."""

    def __init__(self, client: AsyncOpenAI):
        self.client = client

    async def generate(self, profile: GenerationProfile, text: str, image_data_url: Optional[str] = None) -> str:
        """
        Run one completion and return the first choice's text.

        Raises GenerationError on transport errors, timeouts and empty output.
        """
        messages = build_messages(profile, text, image_data_url)

        try:
            response = await self.client.chat.completions.create(
                model=profile.model_id,
                messages=messages,
                temperature=profile.temperature,
                max_tokens=profile.max_tokens,
            )
        except OpenAIError as e:
            raise GenerationError(f"{type(e).__name__}: {e}") from e

        if not response.choices:
            raise GenerationError("No choices returned")

        content = (response.choices[0].message.content or "").strip()
        if not content:
            raise GenerationError("Empty completion")

        return content

    async def close(self):
        await self.client.close()


# Global instance
_generation_client: Optional[GenerationClient] = None


def get_generation_client() -> GenerationClient:
    """Get or create generation client singleton."""
    global _generation_client
    if _generation_client is None:
        settings = get_settings()
        _generation_client = GenerationClient(
            AsyncOpenAI(
                api_key=settings.openai_api_key,
                base_url=settings.openai_base_url,
                timeout=settings.generation_timeout_seconds,
            )
        )
    return _generation_client
