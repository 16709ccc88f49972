# survey_insights/auth/guard.py
from __future__ import annotations

from enum import Enum
from typing import Callable, Optional, TypeVar

from survey_insights.auth.client import SIGNED_OUT, AuthClient, AuthSession, Subscription
from survey_insights.core.logging import get_logger

logger = get_logger(__name__)

T = TypeVar("T")


class GuardState(str, Enum):
    CHECKING = "checking"
    AUTHENTICATED = "authenticated"
    REDIRECTING = "redirecting"


class DashboardGuard:
    """
    Gates owner-facing views on an authenticated session.

    CHECKING -> AUTHENTICATED | REDIRECTING. While mounted it listens to
    auth-state changes: a sign-out or a lost session sends it to REDIRECTING
    again. Entering REDIRECTING navigates exactly once; staying there does
    not navigate again.
    """

    def __init__(self, auth: AuthClient, navigate: Callable[[str], None], redirect_to: str = "/auth"):
        self.auth = auth
        self.navigate = navigate
        self.redirect_to = redirect_to
        self.state = GuardState.CHECKING
        self.session: Optional[AuthSession] = None
        self._subscription: Optional[Subscription] = None
        self._torn_down = False

    async def mount(self) -> GuardState:
        self._subscription = self.auth.on_auth_state_change(self._on_auth_change)
        try:
            session = await self.auth.get_session()
        except Exception as e:  # any auth-check failure counts as "no session"
            logger.warning("Auth check failed, redirecting: %s", e)
            session = None

        if self._torn_down or self.state is not GuardState.CHECKING:
            # torn down or an auth event already decided the state meanwhile
            return self.state
        if session is None:
            self._redirect()
        else:
            self._authenticate(session)
        return self.state

    def render(self, children: T, loading: Optional[T] = None) -> Optional[T]:
        if self.state is GuardState.AUTHENTICATED:
            return children
        if self.state is GuardState.CHECKING:
            return loading
        return None

    def teardown(self) -> None:
        self._torn_down = True
        if self._subscription is not None:
            self._subscription.unsubscribe()
            self._subscription = None

    # ----------------------- transitions -----------------------

    def _on_auth_change(self, event: str, session: Optional[AuthSession]) -> None:
        if self._torn_down:
            return
        if event == SIGNED_OUT or session is None:
            self._redirect()
        else:
            self._authenticate(session)

    def _authenticate(self, session: AuthSession) -> None:
        self.session = session
        self.state = GuardState.AUTHENTICATED

    def _redirect(self) -> None:
        if self.state is GuardState.REDIRECTING:
            return
        self.session = None
        self.state = GuardState.REDIRECTING
        self.navigate(self.redirect_to)
