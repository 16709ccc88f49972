# survey_insights/auth/client.py
from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Callable, Optional, Protocol
from uuid import UUID

import jwt

from survey_insights.core.config import Settings
from survey_insights.core.logging import get_logger
from survey_insights.core.security import decode_token, owner_id_from_claims

logger = get_logger(__name__)

SIGNED_IN = "SIGNED_IN"
SIGNED_OUT = "SIGNED_OUT"
TOKEN_REFRESHED = "TOKEN_REFRESHED"


@dataclass
class AuthSession:
    access_token: str
    user_id: UUID
    claims: dict[str, Any] = field(default_factory=dict)


AuthListener = Callable[[str, Optional[AuthSession]], None]


class Subscription(Protocol):
    def unsubscribe(self) -> None: ...


class AuthClient(Protocol):
    """What the dashboard guard needs from an auth backend."""

    async def get_session(self) -> Optional[AuthSession]: ...

    def on_auth_state_change(self, listener: AuthListener) -> Subscription: ...


class _ListenerSubscription:
    def __init__(self, listeners: list, listener: AuthListener):
        self._listeners = listeners
        self._listener = listener

    def unsubscribe(self) -> None:
        if self._listener in self._listeners:
            self._listeners.remove(self._listener)


class TokenAuthClient:
    """
    In-process AuthClient over signed session JWTs.

    Holds at most one session; sign-in, refresh and sign-out notify every
    subscribed listener with the event name and the new session.
    """

    def __init__(self, settings: Settings):
        self.settings = settings
        self._token: Optional[str] = None
        self._listeners: list[AuthListener] = []

    def _session_from_token(self, token: str) -> AuthSession:
        claims = decode_token(token, self.settings)
        return AuthSession(access_token=token, user_id=owner_id_from_claims(claims), claims=claims)

    async def get_session(self) -> Optional[AuthSession]:
        if self._token is None:
            return None
        try:
            return self._session_from_token(self._token)
        except jwt.InvalidTokenError as e:
            logger.info("Stored session is no longer valid: %s", e)
            self._token = None
            return None

    def sign_in(self, token: str) -> AuthSession:
        session = self._session_from_token(token)
        self._token = token
        self._emit(SIGNED_IN, session)
        return session

    def refresh(self, token: str) -> AuthSession:
        session = self._session_from_token(token)
        self._token = token
        self._emit(TOKEN_REFRESHED, session)
        return session

    def sign_out(self) -> None:
        self._token = None
        self._emit(SIGNED_OUT, None)

    def on_auth_state_change(self, listener: AuthListener) -> Subscription:
        self._listeners.append(listener)
        return _ListenerSubscription(self._listeners, listener)

    def _emit(self, event: str, session: Optional[AuthSession]) -> None:
        for listener in list(self._listeners):
            listener(event, session)
