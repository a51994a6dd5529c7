"""Shared pytest fixtures for notezcollab tests."""

from __future__ import annotations

from typing import TYPE_CHECKING

import pytest
from dotenv import load_dotenv

if TYPE_CHECKING:
    from collections.abc import Generator

load_dotenv()


@pytest.fixture(autouse=True)
def reset_config_cache() -> Generator[None]:
    """Give every test a fresh Settings instance and mock verifier.

    Tests that monkeypatch environment variables rely on this so the
    cached Settings from a previous test does not leak in.
    """
    from notezcollab.auth.factory import clear_config_cache

    clear_config_cache()
    yield
    clear_config_cache()
