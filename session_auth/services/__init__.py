"""
Services - Session lifecycle logic on top of the ports.

- CredentialStore: persisted token, login flag, lazy expiry, notifications
- SessionOrchestrator: auto-login, eligibility, forced refresh
- SessionMonitor: periodic login-state poll
- AuthGuard: gate for protected operations
"""

from session_auth.services.listeners import ListenerRegistry
from session_auth.services.credential_store import CredentialStore
from session_auth.services.orchestrator import SessionOrchestrator
from session_auth.services.monitor import SessionMonitor
from session_auth.services.guard import AuthGuard

__all__ = [
    "ListenerRegistry",
    "CredentialStore",
    "SessionOrchestrator",
    "SessionMonitor",
    "AuthGuard",
]
