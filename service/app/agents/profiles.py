"""
Generation profile selector.

Each generating intent maps to one fixed (model, prompt, sampling) triple.
ORDER_CODE never generates: it is handled by the registration path.
"""

from app.config import Settings, get_settings
from app.agents.schemas import GenerationProfile, Intent, Modality
from app.agents.prompts import (
    VISION_SYSTEM_PROMPT,
    MEAL_SYSTEM_PROMPT,
    CHAT_SYSTEM_PROMPT,
    VISION_FALLBACK_TEXT,
    MEAL_FALLBACK_TEXT,
    CHAT_FALLBACK_TEXT,
)


class UnmappedIntentError(LookupError):
    """Raised when a profile is requested for an intent that has none."""


def build_profiles(settings: Settings) -> dict[Intent, GenerationProfile]:
    return {
        Intent.VISION_REQUEST: GenerationProfile(
            model_id=settings.vision_model,
            system_prompt=VISION_SYSTEM_PROMPT,
            temperature=0.2,
            max_tokens=800,
            modality=Modality.TEXT_IMAGE,
            fallback_text=VISION_FALLBACK_TEXT,
        ),
        Intent.MEAL_REPORT: GenerationProfile(
            model_id=settings.text_model,
            system_prompt=MEAL_SYSTEM_PROMPT,
            temperature=0.5,
            max_tokens=1000,
            modality=Modality.TEXT,
            fallback_text=MEAL_FALLBACK_TEXT,
        ),
        Intent.GENERAL_CHAT: GenerationProfile(
            model_id=settings.text_model,
            system_prompt=CHAT_SYSTEM_PROMPT,
            temperature=0.4,
            max_tokens=500,
            modality=Modality.TEXT,
            fallback_text=CHAT_FALLBACK_TEXT,
        ),
    }


class ProfileSelector:
    """Static intent → profile lookup. No I/O."""

    def __init__(self, profiles: dict[Intent, GenerationProfile]):
        self._profiles = dict(profiles)

    def select(self, intent: Intent) -> GenerationProfile:
        try:
            return self._profiles[intent]
        except KeyError:
            raise UnmappedIntentError(f"No generation profile for intent {intent!r}") from None

    def fallback_text(self, intent: Intent) -> str:
        """Fallback reply for intent; general chat's when the intent has no profile."""
        profile = self._profiles.get(intent) or self._profiles[Intent.GENERAL_CHAT]
        return profile.fallback_text


def get_profile_selector(settings: Settings | None = None) -> ProfileSelector:
    return ProfileSelector(build_profiles(settings or get_settings()))
