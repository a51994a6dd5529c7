"""Shared fixtures for unit tests."""

from __future__ import annotations

import pytest

from notezcollab.auth.mock import MockCredentialVerifier
from tests.helpers.trees import SAMPLE_EDITOR_ID, SAMPLE_OWNER_ID


@pytest.fixture
def verifier() -> MockCredentialVerifier:
    """Mock verifier with readable display names for the sample users."""
    return MockCredentialVerifier(
        {SAMPLE_OWNER_ID: "Olivia Owner", SAMPLE_EDITOR_ID: "Eddie Editor"}
    )
