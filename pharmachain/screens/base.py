"""
Shared plumbing for screen controllers.
"""

from datetime import date
from typing import Callable, Iterable, Optional, TypeVar

from pharmachain.errors import PermissionDenied
from pharmachain.models import Decision, User
from pharmachain.tasks import CancellationToken, SimulatedTask

T = TypeVar("T")


def matches(search: Optional[str], *fields: Optional[str]) -> bool:
    """Case-insensitive substring match of *search* against any field."""
    if not search:
        return True
    needle = search.strip().lower()
    return any(needle in (f or "").lower() for f in fields)


def next_id(existing: Iterable[str], prefix: str = "", width: int = 0) -> str:
    """Next numeric id after the largest numeric suffix in *existing*."""
    highest = 0
    for value in map(str, existing):
        suffix = value[len(prefix):]
        if value.startswith(prefix) and suffix.isdigit():
            highest = max(highest, int(suffix))
    return f"{prefix}{highest + 1:0{width}d}"


class Screen:
    """A screen owns its collections and a cancellation token for its tasks."""

    name = "screen"

    def __init__(self, ctx):
        self.ctx = ctx
        self.token = CancellationToken()

    @property
    def user(self) -> Optional[User]:
        return self.ctx.user

    @property
    def today(self) -> date:
        return self.ctx.current_date()

    @staticmethod
    def require(decision: Decision) -> None:
        if not decision:
            raise PermissionDenied(decision.message)

    def simulate(self, update: Callable[[], T], name: str) -> T:
        """Run *update* as a simulated remote call tied to this screen."""
        return SimulatedTask(update, self.token, delay=self.ctx.delay, name=name).run()

    def close(self) -> None:
        self.token.cancel()
