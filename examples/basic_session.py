"""
Basic Session Example - Login, restart, auto-login and logout.

Uses the in-process JWT issuer so it runs without a backend.
"""

import asyncio
import tempfile
from pathlib import Path

from session_auth import CredentialStore, SessionClient, User
from session_auth.adapters import FileStorageAdapter, JWTSessionAPI
from session_auth.logging import setup_logging


def build_client(path: Path) -> SessionClient:
    store = CredentialStore(storage=FileStorageAdapter(str(path)))
    api = JWTSessionAPI(secret="my-secret-key-for-the-example-only", token_source=store.get_token)
    api.register_user(User(user_id=1, username="alice", email="alice@example.com"), "wonderland")
    return SessionClient(store, api)


async def main():
    setup_logging(level="WARNING")
    path = Path(tempfile.mkdtemp()) / "storage.json"

    # First launch: nobody is logged in
    async with build_client(path) as client:
        restored = await client.boot(start_monitor=False)
        print(f"Restored on first launch: {restored is not None}")

        grant = await client.login("alice", "wonderland")
        print(f"\nLogin successful: {grant.user.username}")
        print(f"Token: {grant.token[:50]}...")
        print(f"Expires at: {grant.token_expires_at}")

    # Second launch: session comes back without a password
    async with build_client(path) as client:
        restored = await client.boot(start_monitor=False)
        print(f"\nRestored on second launch: {restored.user.username}")

        info = await client.store.get_token_info()
        print(f"Remaining minutes: {info.remaining_minutes} ({info.status_label})")

        report = await client.check_eligibility()
        print(f"Eligibility: {report.reason}")

        await client.logout()
        print("\nLogged out successfully")

    # Third launch: nothing to restore
    async with build_client(path) as client:
        restored = await client.boot(start_monitor=False)
        print(f"Restored after logout: {restored is not None}")


if __name__ == "__main__":
    asyncio.run(main())
