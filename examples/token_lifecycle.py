"""
Token Lifecycle Example - Near-expiry refresh and lazy expiry.

Moves a manual clock instead of waiting, and prints every credential
change seen by a listener.
"""

import asyncio

from session_auth import CredentialStore, SessionOrchestrator, User
from session_auth.adapters import JWTSessionAPI, ManualClock, MemoryStorageAdapter


async def main():
    clock = ManualClock()
    store = CredentialStore(storage=MemoryStorageAdapter(), clock=clock)
    api = JWTSessionAPI(secret="my-secret-key-for-the-example-only", token_source=store.get_token, clock=clock)
    api.register_user(User(user_id=1, username="alice"), "wonderland")
    orchestrator = SessionOrchestrator(store, api)

    unsubscribe = store.add_listener(lambda: print("  (credential changed)"))

    grant = await api.login("alice", "wonderland")
    await store.set_credential_with_server_expiry(grant.token, grant.token_expires_at)
    print(f"Logged in, {await store.get_remaining_minutes()} minutes left")

    # Inside the 30 minute window: auto-login refreshes
    clock.advance(minutes=40)
    print(f"\n{await store.get_remaining_minutes()} minutes left, should refresh: {await store.should_refresh()}")
    refreshed = await orchestrator.attempt_auto_login()
    print(f"Auto-login refreshed token: {refreshed.token != grant.token}")
    print(f"{await store.get_remaining_minutes()} minutes left")

    # Past expiry: the next read evicts the credential
    clock.advance(hours=2)
    print(f"\nToken after expiry: {await store.get_token()}")
    print(f"Logged in: {await store.is_user_logged_in()}")

    unsubscribe()


if __name__ == "__main__":
    asyncio.run(main())
