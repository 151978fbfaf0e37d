"""Identity as seen by the services: who is acting right now, if anyone."""

import logging
from typing import Callable, List, Optional

from pydantic import BaseModel, ConfigDict

logger = logging.getLogger(__name__)

IdentityListener = Callable[[Optional["UserIdentity"]], None]


class UserIdentity(BaseModel):
    """Stable user id and email handed out by the identity provider."""

    model_config = ConfigDict(frozen=True)

    id: str
    email: str


class IdentityProvider:
    """Observable holder of the current user.

    Services call ``current_user()`` at the moment they run instead of
    caching the identity, so sign-in/sign-out takes effect immediately.
    """

    def __init__(self, user: Optional[UserIdentity] = None):
        self._user = user
        self._listeners: List[IdentityListener] = []

    def current_user(self) -> Optional[UserIdentity]:
        return self._user

    def set_user(self, user: Optional[UserIdentity]) -> None:
        if user == self._user:
            return
        self._user = user
        logger.info("Identity changed", extra={"user_id": user.id if user else None})
        for listener in list(self._listeners):
            listener(user)

    def subscribe(self, listener: IdentityListener) -> Callable[[], None]:
        """Register ``listener`` for identity changes; returns an unsubscribe callable."""
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe
