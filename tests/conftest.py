"""
Shared fixtures: signed-in application contexts for each seeded role.
"""

import pytest

from pharmachain.context import AppContext
from pharmachain.seed import CREDENTIALS
from pharmachain.session import MemorySessionStore


def make_ctx(email=None):
    """Fresh context with no simulated delay, signed in as *email* if given."""
    ctx = AppContext(MemorySessionStore(), delay=0)
    if email:
        ctx.login(email, CREDENTIALS[email])
    return ctx


@pytest.fixture
def admin_ctx():
    return make_ctx("admin@caritas.org")


@pytest.fixture
def state_ctx():
    return make_ctx("abia@caritas.org")


@pytest.fixture
def facility_ctx():
    return make_ctx("facility@caritas.org")


@pytest.fixture
def pharm_ctx():
    return make_ctx("pharm@caritas.org")
