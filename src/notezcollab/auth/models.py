"""Data models for credential verification."""

from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True)
class VerifiedCredential:
    """Identity carried by a bearer credential that passed verification.

    Attributes:
        subject_id: The user id the credential was issued to.
        display_name: Name shown to other collaborators.
    """

    subject_id: str
    display_name: str


class InvalidCredentialError(Exception):
    """The credential is missing, malformed, badly signed or expired."""
