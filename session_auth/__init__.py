"""
Session Auth - Client-side session and token lifecycle.

Persists an authentication credential with an expiry, answers whether it
is still valid, decides when it needs renewal, and restores the session
at application start.

Usage:
    from session_auth import CredentialStore, SessionOrchestrator
    from session_auth.adapters import FileStorageAdapter, HttpSessionAPI

    store = CredentialStore(storage=FileStorageAdapter("~/.myapp/storage.json"))
    orchestrator = SessionOrchestrator(store, HttpSessionAPI(store))

    # At boot
    grant = await orchestrator.attempt_auto_login()

    # Anywhere
    unsubscribe = store.add_listener(lambda: print("credential changed"))
"""

__version__ = "0.1.0"

from session_auth.config import SessionSettings
from session_auth.domain.credential import CredentialRecord, CredentialState
from session_auth.domain.session import SessionFlag, SessionGrant
from session_auth.domain.user import User
from session_auth.services.credential_store import CredentialStore
from session_auth.services.orchestrator import SessionOrchestrator
from session_auth.sdk.client import SessionClient

__all__ = [
    "SessionClient",
    "SessionSettings",
    "CredentialStore",
    "SessionOrchestrator",
    "CredentialRecord",
    "CredentialState",
    "SessionFlag",
    "SessionGrant",
    "User",
]
