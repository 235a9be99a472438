from functools import lru_cache
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from pydantic import field_validator
from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    # LINE Messaging API
    line_channel_access_token: str
    line_channel_secret: str = ""  # Optional: skip signature check when empty (local dev)
    line_api_base_url: str = "https://api.line.me"
    line_data_api_base_url: str = "https://api-data.line.me"
    line_timeout_seconds: float = 10.0

    # Generation (OpenAI-compatible, DeepInfra by default)
    openai_api_key: str
    openai_base_url: str = "https://api.deepinfra.com/v1/openai"
    text_model: str = "meta-llama/Meta-Llama-3.1-8B-Instruct"
    vision_model: str = "meta-llama/Llama-3.2-11B-Vision-Instruct"
    generation_timeout_seconds: float = 30.0

    # Subscription store
    redis_url: str = "redis://localhost:6379/0"

    # Entitlement policy
    default_window_days: int = 30
    order_code_min_digits: int = 9
    order_code_max_digits: int = 10
    display_timezone: str = "Asia/Tokyo"

    # Admin registration surface
    admin_api_key: str = ""  # Optional: require X-Admin-Key when set

    # Environment
    environment: str = "development"

    @field_validator("display_timezone")
    @classmethod
    def check_timezone(cls, value: str) -> str:
        try:
            ZoneInfo(value)
        except (ZoneInfoNotFoundError, ValueError):
            raise ValueError(f"Unknown timezone: {value}")
        return value

    class Config:
        env_file = ".env"
        env_file_encoding = "utf-8"


@lru_cache()
def get_settings() -> Settings:
    return Settings()
