from functools import lru_cache
from typing import List

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # App
    app_env: str = "development"
    log_level: str = "INFO"
    host: str = "0.0.0.0"
    port: int = 3000
    # Comma separated, "*" allows any origin
    cors_allow_origins: str = "*"

    # Upstream (NVIDIA NIM)
    nvidia_api_key: str = ""
    nvidia_base_url: str = "https://integrate.api.nvidia.com/v1"
    upstream_timeout_seconds: float = Field(default=120.0, gt=0)

    # Request defaults, applied when the caller omits a field
    default_model: str = "deepseek-ai/deepseek-r1"
    default_temperature: float = 0.6
    default_max_tokens: int = 2048

    # Response shaping
    stream_chunk_size: int = Field(default=50, gt=0)
    placeholder_prompt_tokens: int = 100

    @property
    def cors_origins_list(self) -> List[str]:
        return [o.strip() for o in self.cors_allow_origins.split(",") if o.strip()]

    @property
    def is_development(self) -> bool:
        return self.app_env == "development"


@lru_cache
def get_settings() -> Settings:
    return Settings()
