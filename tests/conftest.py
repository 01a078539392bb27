#!/usr/bin/env python
#
#
# -----------------------------------------------------------------------------
"""
Pytest fixtures for docrender tests.
Every test gets its own content directory and a fresh Settings instance, so
no state leaks between tests through the cached get_settings().
"""
# -----------------------------------------------------------------------------

from __future__ import annotations

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient

from docrender.core.config import Settings, get_settings
from docrender.main import create_app
from docrender.services.cache import ContentCache


# -----------------------------------------------------------------------------

@pytest.fixture(autouse=True)
def _isolated_settings(tmp_path, monkeypatch):
    """Point content_dir at a temp directory and rebuild settings per test."""
    content_dir = tmp_path / "content"
    content_dir.mkdir()
    monkeypatch.setenv("CONTENT_DIR", str(content_dir))
    monkeypatch.setenv("ENVIRONMENT", "testing")
    monkeypatch.delenv("PREWARM_PATHS", raising=False)
    monkeypatch.delenv("MAX_SOURCE_BYTES", raising=False)
    get_settings.cache_clear()
    yield
    get_settings.cache_clear()


@pytest.fixture
def content_dir(tmp_path):
    return tmp_path / "content"


@pytest.fixture
def settings() -> Settings:
    return get_settings()


@pytest.fixture
def cache(settings) -> ContentCache:
    return ContentCache(settings)


@pytest.fixture
def write_doc(content_dir):
    """Write a markdown file under the content directory and return its path."""
    def _write(name: str, text: str):
        path = content_dir / name
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(text, encoding="utf-8")
        return path
    return _write


@pytest.fixture
def app():
    return create_app()


@pytest_asyncio.fixture(scope="function")
async def client(app):
    """HTTP test client wired to an app built from the per-test settings."""
    async with AsyncClient(
        transport=ASGITransport(app=app),
        base_url="http://test",
    ) as ac:
        yield ac


# -----------------------------------------------------------------------------
