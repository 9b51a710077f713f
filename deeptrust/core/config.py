from pathlib import Path
from typing import Literal

from pydantic import computed_field
from pydantic_settings import BaseSettings, SettingsConfigDict

BASE_DIR = Path(__file__).resolve().parent.parent.parent
ENV_FILE = BASE_DIR / '.env'


class HuggingFaceConfig(BaseSettings):
    model_config = SettingsConfigDict(
        env_prefix='HUGGINGFACE_',
        env_file=ENV_FILE,
        extra='ignore',
    )
    token: str | None = None
    model: str = "umm-maybe/AI-image-detector"
    api_url: str = "https://api-inference.huggingface.co/models"
    # "binary" posts raw image bytes, "json" posts {"inputs": <base64>}
    payload_mode: Literal["binary", "json"] = "binary"

    @computed_field
    @property
    def endpoint_url(self) -> str:
        return f"{self.api_url.rstrip('/')}/{self.model}"


class LovableConfig(BaseSettings):
    model_config = SettingsConfigDict(
        env_prefix='LOVABLE_',
        env_file=ENV_FILE,
        extra='ignore',
    )
    api_key: str | None = None
    model: str = "google/gemini-2.5-flash"
    gateway_url: str = "https://ai.gateway.lovable.dev/v1/chat/completions"


class Config(BaseSettings):
    app_name: str = "DeepTrust"
    app_version: str = "0.1.0"
    debug: bool = False
    environment: str = "development"

    inference_provider: Literal["huggingface", "lovable"] = "huggingface"
    request_timeout_seconds: float = 30.0
    max_image_bytes: int = 10 * 1024 * 1024

    cors_allow_origins: list[str] = ["*"]

    # Nested configs
    huggingface: HuggingFaceConfig = HuggingFaceConfig()
    lovable: LovableConfig = LovableConfig()

    model_config = SettingsConfigDict(
        env_file=ENV_FILE,
        env_file_encoding='utf-8',
        case_sensitive=False,
        extra='ignore',
    )


config = Config()
