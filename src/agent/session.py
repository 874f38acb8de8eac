"""Session: the explicit holder of the active credential.

One Session is created per host process and passed to the dispatcher and
the Confluence client. It is the only shared mutable state in the agent.
There is no lock; if two turns authenticate concurrently the last
successful write wins, and in-flight operations keep the credential they
read when they started.
"""

import logging
from typing import Optional

from src.confluence_client.auth import Credentials
from .credential_store import CredentialStore, MemoryCredentialStore

logger = logging.getLogger(__name__)


class Session:
    """Active credential slot backed by a CredentialStore.

    The store is read once at construction and again lazily whenever the
    in-memory slot is found empty, so a credential written by another
    process becomes visible without a restart.
    """

    def __init__(self, store: Optional[CredentialStore] = None):
        self.store = store if store is not None else MemoryCredentialStore()
        self._credentials: Optional[Credentials] = self.store.load()

    @property
    def credentials(self) -> Optional[Credentials]:
        if self._credentials is None:
            self._credentials = self.store.load()
        return self._credentials

    @property
    def is_authenticated(self) -> bool:
        return self.credentials is not None

    def set_credentials(self, credentials: Credentials) -> None:
        """Persist and activate a verified credential.

        The in-memory slot changes only after the store accepted the write.
        """
        self.store.save(credentials)
        self._credentials = credentials
        logger.info(f"Authenticated as {credentials.email} on {credentials.url}")

    def clear(self) -> None:
        self.store.clear()
        self._credentials = None
        logger.info("Cleared stored credential")
