"""Pytest configuration shared by all suites.

.justid_env is loaded FIRST so settings read during collection see the same
values as the tests themselves.
"""

from __future__ import annotations

from pathlib import Path

from dotenv import load_dotenv

_JUSTID_ENV_FILE = Path(__file__).parent.parent / ".justid_env"
if _JUSTID_ENV_FILE.exists():
    load_dotenv(_JUSTID_ENV_FILE, override=True)

from typing import Generator

import pytest

from just_id.config.settings import get_settings


@pytest.fixture(autouse=True)
def _fresh_settings() -> Generator[None, None, None]:
    """Drop the cached Settings around every test so monkeypatched env applies."""
    get_settings.cache_clear()
    yield
    get_settings.cache_clear()
