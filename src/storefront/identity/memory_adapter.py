"""In-memory identity provider.

Accounts may be shared between several provider instances (one per
browser session) by passing the same ``accounts`` mapping.
"""

import hashlib
from collections.abc import Callable
from uuid import uuid4

from storefront.identity.port import AuthenticationError, IdentityProvider, User
from storefront.shared.subscription import ListenerSet, Subscription


def _digest(password: str) -> str:
    return hashlib.sha256(password.encode("utf-8")).hexdigest()


class InMemoryIdentityProvider(IdentityProvider):
    def __init__(self, accounts: dict[str, dict] | None = None) -> None:
        self._accounts = accounts if accounts is not None else {}
        self._current: User | None = None
        self._listeners = ListenerSet()

    @property
    def current_user(self) -> User | None:
        return self._current

    def sign_up(self, email: str, password: str, display_name: str = "") -> User:
        key = email.strip().lower()
        if not key or not password:
            raise AuthenticationError("Email and password are required")
        if key in self._accounts:
            raise AuthenticationError("An account with this email already exists")
        user = User(uid=uuid4().hex, display_name=display_name, email=key)
        self._accounts[key] = {"user": user, "password": _digest(password)}
        self._set_current(user)
        return user

    def sign_in(self, email: str, password: str) -> User:
        account = self._accounts.get(email.strip().lower())
        if account is None or account["password"] != _digest(password):
            raise AuthenticationError("Invalid email or password")
        self._set_current(account["user"])
        return account["user"]

    def sign_out(self) -> None:
        self._set_current(None)

    def on_auth_state_changed(self, listener: Callable[[User | None], None]) -> Subscription:
        subscription = self._listeners.add(listener)
        listener(self._current)
        return subscription

    def _set_current(self, user: User | None) -> None:
        self._current = user
        self._listeners.notify(user)
