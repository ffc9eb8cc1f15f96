"""Source of the current user's identity. Authentication itself happens elsewhere."""

from typing import Optional, Protocol

from src.core.models import PlayerId


class AuthProvider(Protocol):
    @property
    def current_user_id(self) -> Optional[PlayerId]:
        """Stable opaque id of the logged in user, None if nobody is logged in."""
        ...


class StaticAuthProvider:
    """Holds the id handed over by whatever performed the login."""

    def __init__(self, user_id: Optional[PlayerId] = None) -> None:
        self._user_id = user_id

    @property
    def current_user_id(self) -> Optional[PlayerId]:
        return self._user_id

    def login(self, user_id: PlayerId) -> None:
        self._user_id = user_id

    def logout(self) -> None:
        self._user_id = None
