"""Shared fixtures for the Tool Farm test suite."""

from __future__ import annotations

import io
import zipfile
from collections.abc import Iterator
from unittest.mock import MagicMock

import pytest

from tool_farm.config import get_settings


@pytest.fixture(autouse=True)
def _clear_settings_cache() -> Iterator[None]:
    """Make every test read settings fresh from its own environment."""
    get_settings.cache_clear()
    yield
    get_settings.cache_clear()


@pytest.fixture
def mock_log() -> MagicMock:
    """Capturing stand-in for the structlog logger injected into components."""
    return MagicMock()


@pytest.fixture
def make_zip():
    """Build an in-memory zip archive from ``{entry_name: content}``.

    Entry names ending in ``/`` become directory entries.
    """

    def _make(entries: dict[str, str]) -> bytes:
        buf = io.BytesIO()
        with zipfile.ZipFile(buf, "w") as zf:
            for name, content in entries.items():
                zf.writestr(name, content)
        return buf.getvalue()

    return _make
