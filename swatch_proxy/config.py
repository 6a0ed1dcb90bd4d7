from __future__ import annotations

from dataclasses import dataclass
from typing import Literal

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

_MAX_ADMIN_PAGE_SIZE = 250


class ConfigurationError(RuntimeError):
    pass


@dataclass(frozen=True)
class ShopifyCredentials:
    shop_domain: str
    access_token: str


class Settings(BaseSettings):
    SHOPIFY_DOMAIN: str | None = None
    ADMIN_TOKEN: str | None = None
    SHOPIFY_ADMIN_API_VERSION: str = "2024-07"
    SHOPIFY_REQUEST_TIMEOUT_SECONDS: float = Field(default=20.0, gt=0)

    SWATCHES_METAOBJECT_TYPE: str = "swatches"
    SWATCHES_PAGE_SIZE: int = Field(default=_MAX_ADMIN_PAGE_SIZE, ge=1, le=_MAX_ADMIN_PAGE_SIZE)
    SWATCHES_IMAGE_STRATEGY: Literal["lookup", "inline"] = "lookup"
    SWATCHES_IMAGE_LOOKUP_CONCURRENCY: int = Field(default=8, ge=1)
    SWATCHES_INCLUDE_MAIN_IMAGE_URL: bool = False
    SWATCHES_REQUEST_DEADLINE_SECONDS: float = Field(default=60.0, gt=0)
    SWATCHES_DISCONNECT_POLL_SECONDS: float = Field(default=0.5, gt=0)

    CORS_ENABLED: bool = True
    CORS_ALLOW_ORIGINS: list[str] = ["*"]

    LOG_LEVEL: str = "INFO"

    @field_validator("SHOPIFY_DOMAIN")
    @classmethod
    def normalize_domain(cls, value: str | None) -> str | None:
        if value is None:
            return None
        normalized = value.strip().lower()
        for prefix in ("https://", "http://"):
            if normalized.startswith(prefix):
                normalized = normalized[len(prefix):]
        return normalized.rstrip("/") or None

    @field_validator("ADMIN_TOKEN")
    @classmethod
    def strip_token(cls, value: str | None) -> str | None:
        if value is None:
            return None
        return value.strip() or None

    @field_validator("SWATCHES_METAOBJECT_TYPE")
    @classmethod
    def validate_metaobject_type(cls, value: str) -> str:
        cleaned = value.strip()
        if not cleaned:
            raise ValueError("SWATCHES_METAOBJECT_TYPE must not be empty")
        return cleaned

    @field_validator("LOG_LEVEL")
    @classmethod
    def normalize_log_level(cls, value: str) -> str:
        return value.strip().upper()

    def shopify_credentials(self) -> ShopifyCredentials:
        if not self.SHOPIFY_DOMAIN or not self.ADMIN_TOKEN:
            raise ConfigurationError("Missing environment variables")
        return ShopifyCredentials(shop_domain=self.SHOPIFY_DOMAIN, access_token=self.ADMIN_TOKEN)

    model_config = SettingsConfigDict(env_file=".env", extra="ignore")


def get_settings() -> Settings:
    return Settings()
