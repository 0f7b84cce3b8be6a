"""Identity provider port: the hosted authentication service."""

from abc import ABC, abstractmethod
from collections.abc import Callable
from dataclasses import dataclass

from storefront.shared.subscription import Subscription


@dataclass(frozen=True)
class User:
    """Public view of a signed-in user."""

    uid: str
    display_name: str = ""
    email: str = ""
    photo_url: str | None = None


class AuthenticationError(Exception):
    """Credentials were rejected or the account already exists."""


class IdentityProvider(ABC):
    """Abstract identity provider interface."""

    @property
    @abstractmethod
    def current_user(self) -> User | None: ...

    @abstractmethod
    def sign_in(self, email: str, password: str) -> User: ...

    @abstractmethod
    def sign_up(self, email: str, password: str, display_name: str = "") -> User: ...

    @abstractmethod
    def sign_out(self) -> None: ...

    @abstractmethod
    def on_auth_state_changed(self, listener: Callable[[User | None], None]) -> Subscription:
        """Call ``listener`` with the current user now and after every change."""
        ...
