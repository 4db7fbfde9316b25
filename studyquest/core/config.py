from functools import lru_cache
from typing import Optional

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", env_file_encoding="utf-8", extra="ignore")

    api_key: str = Field("ai", alias="API_KEY")

    # Text-generation endpoint (Hugging Face inference API compatible).
    inference_url: str = Field(
        "https://api-inference.huggingface.co/models/mistralai/Mistral-7B-Instruct-v0.2",
        alias="INFERENCE_URL",
    )
    hf_api_key: Optional[str] = Field(None, alias="HF_API_KEY")
    # None keeps the request layer's default (no timeout).
    inference_timeout_seconds: Optional[float] = Field(None, alias="INFERENCE_TIMEOUT_SECONDS")

    slide_deck_max_slides: int = Field(10, alias="SLIDE_DECK_MAX_SLIDES", ge=1)
    max_upload_bytes: int = Field(20 * 1024 * 1024, alias="MAX_UPLOAD_BYTES", ge=1)

    @field_validator("hf_api_key", "inference_timeout_seconds", mode="before")
    @classmethod
    def _blank_as_none(cls, value):
        if isinstance(value, str) and not value.strip():
            return None
        return value


@lru_cache
def get_settings() -> Settings:
    return Settings()
