"""Hooks a Hocuspocus-style collaboration server is configured with.

The server process is shared by every open document, so nothing here lets
an exception escape ``fetch`` or ``store``: outcomes are logged with the
document name and the server carries on. ``on_authenticate`` is the one
hook that raises, and only ``AccessDeniedError``.
"""

from __future__ import annotations

import logging
from collections.abc import MutableMapping
from typing import TYPE_CHECKING, Any

from notezcollab.collab.gate import authorize_session
from notezcollab.collab.persistence import (
    LoadSource,
    load_document_state,
    save_document_state,
)
from notezcollab.config import get_settings

if TYPE_CHECKING:
    from notezcollab.auth.protocol import CredentialVerifier

logger = logging.getLogger(__name__)


class CollaborationHooks:
    """Adapter between the session server and the bridge and gate.

    Args:
        verifier: Credential verifier; chosen from settings when omitted.
    """

    def __init__(self, verifier: CredentialVerifier | None = None) -> None:
        self._verifier = verifier

    @property
    def verifier(self) -> CredentialVerifier:
        if self._verifier is None:
            from notezcollab.auth.factory import get_credential_verifier

            self._verifier = get_credential_verifier()
        return self._verifier

    @property
    def server_options(self) -> dict[str, Any]:
        """Server name and timing options, in the server's own key names."""
        collab = get_settings().collab
        return {
            "name": collab.server_name,
            "timeout": collab.timeout_ms,
            "debounce": collab.debounce_ms,
            "maxDebounce": collab.max_debounce_ms,
        }

    async def on_authenticate(
        self, token: str | None, document_name: str
    ) -> dict[str, Any]:
        """Authorise a connection and return its awareness context.

        Raises:
            AccessDeniedError: The connection must be refused.
        """
        context = await authorize_session(token, document_name, self.verifier)
        return context.to_hook_context()

    async def on_connect(self, context: dict[str, Any], connection_config: Any) -> None:
        """Make view-only sessions read-only on the connection."""
        if not context.get("readOnly"):
            return
        if isinstance(connection_config, MutableMapping):
            connection_config["readOnly"] = True
        else:
            connection_config.readOnly = True

    async def fetch(self, document_name: str) -> bytes | None:
        """State to open ``document_name`` with; None means start empty."""
        try:
            result = await load_document_state(document_name)
        except Exception:
            logger.exception("Unexpected failure loading document %s", document_name)
            return None

        if result.error is not None:
            logger.error(
                "Failed to load document %s at %s",
                document_name,
                result.phase,
                exc_info=result.error,
            )
        elif result.source is LoadSource.MARKDOWN:
            logger.info("Seeded document %s from markdown", document_name)
        elif result.source is LoadSource.MISSING:
            logger.warning(
                "No live note for document %s%s",
                document_name,
                " (not a note id)" if result.phase else "",
            )
        else:
            logger.debug("Loaded snapshot for document %s", document_name)
        return result.state

    async def store(self, document_name: str, state: bytes) -> None:
        """Persist ``state`` and refresh the markdown mirror."""
        try:
            result = await save_document_state(document_name, state)
        except Exception:
            logger.exception("Unexpected failure storing document %s", document_name)
            return

        if result.error is not None:
            logger.error(
                "Failed to store document %s at %s (snapshot saved: %s)",
                document_name,
                result.phase,
                result.snapshot_saved,
                exc_info=result.error,
            )
        elif not result.snapshot_saved:
            logger.warning("Ignored store for %s: not a note id", document_name)
        elif result.notes_updated == 0:
            logger.info(
                "Stored document %s; note missing or deleted, mirror unchanged",
                document_name,
            )
        else:
            logger.debug("Stored document %s and synced markdown", document_name)
