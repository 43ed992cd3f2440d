"""Application configuration (settings and environment).

Single source of truth for storage configuration. Uses pydantic-settings
with .env support. Complex values (adapters, variants) are read from the
environment as JSON, e.g. ADAPTERS='{"S3": {"class": "s3", "options": {...}}}'.
"""

import os
from functools import lru_cache
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

DEFAULT_PATH_TEMPLATE = (
    "{model}{ds}{collection}{ds}{randomPath}{ds}{strippedId}{ds}{strippedId}.{extension}"
)
DEFAULT_VARIANT_PATH_TEMPLATE = (
    "{model}{ds}{collection}{ds}{randomPath}{ds}{strippedId}{ds}"
    "{filename}.{hashedVariant}.{extension}"
)
DEFAULT_IMAGE_MIME_TYPES = ["image/gif", "image/jpg", "image/jpeg", "image/png", "image/webp"]
VARIANT_KEY_STRATEGIES = ("model_collection", "model", "collection")


class AdapterSettings(BaseModel):
    """One adapter entry: factory alias or class path plus its options."""

    model_config = ConfigDict(populate_by_name=True)

    class_: str = Field(alias="class")
    options: dict[str, Any] = Field(default_factory=dict)


class Settings(BaseSettings):
    """Storage settings loaded from environment and .env.

    When no adapter is configured a "Local" adapter rooted at storage_root is
    added, so at least one adapter is always registered.
    """

    # App
    app_name: str = "file-storage"
    app_version: str = "1.0.0"
    debug: bool = False

    # Adapters
    default_adapter: str = "Local"
    storage_root: str = "/var/file-storage"
    storage_base_url: str | None = None
    adapters: dict[str, AdapterSettings] = Field(default_factory=dict)

    # Paths
    path_template: str = DEFAULT_PATH_TEMPLATE
    variant_path_template: str = DEFAULT_VARIANT_PATH_TEMPLATE
    random_path_levels: int = 1
    directory_separator: str = os.sep
    filename_max_length: int = 190

    # Processing
    temp_dir: str | None = None
    image_quality: int = 90
    image_mime_types: list[str] = Field(
        default_factory=lambda: list(DEFAULT_IMAGE_MIME_TYPES)
    )
    batch_concurrency: int = 4

    # Variants: {model: {collection: {variant: {"operations": {...}, "optimize": bool}}}}
    variant_key_strategy: str = "model_collection"
    variants: dict[str, dict[str, dict[str, dict[str, Any]]]] = Field(
        default_factory=dict
    )

    # OpenTelemetry
    telemetry_enabled: bool = False
    telemetry_exporter: str = "console"
    telemetry_environment: str = "development"

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
        case_sensitive=False,
    )

    @model_validator(mode="after")
    def validate_adapters_and_processing(self) -> "Settings":
        """Validate adapter configuration and processing limits.

        - No adapters: a Local adapter rooted at storage_root is injected.
        - default_adapter must name a configured adapter.
        """
        if not self.adapters:
            self.adapters = {
                "Local": AdapterSettings(
                    class_="Local", options={"root": self.storage_root}
                )
            }
        for name, adapter in self.adapters.items():
            if not adapter.class_:
                raise ValueError(f"Adapter '{name}' is missing its factory class")
        if self.default_adapter not in self.adapters:
            raise ValueError(
                f"default_adapter '{self.default_adapter}' is not configured. "
                f"Configured adapters: {sorted(self.adapters)}"
            )
        if not 1 <= self.image_quality <= 100:
            raise ValueError(
                f"image_quality must be between 1 and 100, got: {self.image_quality}"
            )
        if self.random_path_levels < 0:
            raise ValueError("random_path_levels must be >= 0")
        if self.filename_max_length < 8:
            raise ValueError("filename_max_length must be >= 8")
        if self.batch_concurrency < 1:
            raise ValueError("batch_concurrency must be >= 1")
        if self.variant_key_strategy not in VARIANT_KEY_STRATEGIES:
            raise ValueError(
                f"variant_key_strategy must be one of {VARIANT_KEY_STRATEGIES}, "
                f"got: {self.variant_key_strategy!r}"
            )
        return self

    def adapter_config(self) -> dict[str, dict[str, Any]]:
        """Return adapters as the plain {name: {"class", "options"}} mapping."""
        return {
            name: {"class": adapter.class_, "options": dict(adapter.options)}
            for name, adapter in self.adapters.items()
        }


@lru_cache
def get_settings() -> Settings:
    """Return cached settings (single instance per process).

    Validation runs on first call, not at import time. In tests, call
    get_settings.cache_clear() before overriding env vars so the next
    get_settings() uses the new values.
    """
    return Settings()
