#!/usr/bin/env python
#
#
# -----------------------------------------------------------------------------
"""
Engine configuration.

All values can be overridden via environment variables or a .env file.
"""
# -----------------------------------------------------------------------------

from __future__ import annotations

from functools import lru_cache
from pathlib import Path
from typing import Literal

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

from docrender._version import __version__ as _pkg_version


# -----------------------------------------------------------------------------

class Settings(BaseSettings):

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # ── Application ────────────────────────────────────────────────────────

    app_name: str = "docrender"
    app_version: str = _pkg_version
    debug: bool = False
    environment: Literal["development", "testing", "production"] = "development"

    # ── Content ────────────────────────────────────────────────────────────

    content_dir: Path = Path("./content")
    prewarm_paths: list[Path] = []

    # ── Render limits ──────────────────────────────────────────────────────

    max_source_bytes: int = Field(default=1024 * 1024, ge=1)   # 1 MiB
    preview_chars: int = Field(default=10_000, ge=0)
    excerpt_length: int = Field(default=160, ge=1)
    default_order: int = 999

    # ── Media ──────────────────────────────────────────────────────────────

    asset_base_url: str = "/api/content/assets"
    image_widths: list[int] = [400, 800, 1200]
    image_modern_format: str = "webp"

    # ── Code blocks ────────────────────────────────────────────────────────

    highlight_css_class: str = "highlight"

    @property
    def is_development(self) -> bool:
        return self.environment == "development"

    @property
    def content_dir_resolved(self) -> Path:
        return self.content_dir.resolve()


# -----------------------------------------------------------------------------

@lru_cache
def get_settings() -> Settings:
    return Settings()


# -----------------------------------------------------------------------------
