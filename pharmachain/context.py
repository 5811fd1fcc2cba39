"""
Application context – the authenticated user, the session store and the
screens opened during the session.

Replaces a browser-wide global: every screen controller receives the
context explicitly, ``restore()`` loads a persisted session and
``logout()`` tears everything down.
"""

from datetime import date
from typing import Dict, Optional

from pharmachain.config import SESSION_KEY
from pharmachain.errors import PermissionDenied
from pharmachain.models import User
from pharmachain.rbac import can_access_screen
from pharmachain.session import check_credentials, load_user, save_user
from pharmachain.tasks import CancellationToken, SimulatedTask


class AppContext:
    def __init__(self, store, delay: Optional[float] = None, today: Optional[date] = None,
                 session_key: str = SESSION_KEY):
        self.store = store
        self.delay = delay
        self.today = today
        self.session_key = session_key
        self.user: Optional[User] = None
        self.screens: Dict[str, object] = {}
        self._token = CancellationToken()

    @property
    def is_authenticated(self) -> bool:
        return self.user is not None

    def current_date(self) -> date:
        return self.today or date.today()

    # ── Lifecycle ────────────────────────────────────────────────────

    def restore(self) -> Optional[User]:
        """Resume a stored session, if any."""
        self.user = load_user(self.store, self.session_key)
        return self.user

    def login(self, email: str, password: str) -> User:
        """Simulated remote login; raises AuthenticationError on mismatch."""
        def apply() -> User:
            user = check_credentials(email.strip(), password)
            save_user(self.store, user, self.session_key)
            self.user = user
            return user

        return SimulatedTask(apply, self._token, delay=self.delay, name="login").run()

    def logout(self) -> None:
        self.close_all()
        self._token.cancel()
        self._token = CancellationToken()
        self.store.remove(self.session_key)
        self.user = None

    # ── Screens ──────────────────────────────────────────────────────

    def screen(self, name: str):
        """Open (or return the already open) controller for *name*."""
        decision = can_access_screen(self.user, name)
        if not decision:
            raise PermissionDenied(decision.message)
        if name not in self.screens:
            from pharmachain.screens.registry import SCREEN_TYPES
            self.screens[name] = SCREEN_TYPES[name](self)
        return self.screens[name]

    def snapshot(self, name: str):
        """
        Data of another screen without the access gate, for dashboards,
        reports and screens sharing a registry. The controller is kept open
        so every caller sees the same collections.
        """
        if name not in self.screens:
            from pharmachain.screens.registry import SCREEN_TYPES
            self.screens[name] = SCREEN_TYPES[name](self)
        return self.screens[name]

    def close_screen(self, name: str) -> None:
        screen = self.screens.pop(name, None)
        if screen is not None:
            screen.close()

    def close_all(self) -> None:
        for name in list(self.screens):
            self.close_screen(name)
