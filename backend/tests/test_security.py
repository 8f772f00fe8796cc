from datetime import timedelta

import pytest

from agent_portal.core.errors import AccessDenied
from agent_portal.core.security import (
    Principal, create_access_token, decode_access_token, ensure_acting_as, require_agent,
)


def test_token_round_trip():
    assert decode_access_token(create_access_token("agent-1")) == "agent-1"


def test_expired_token_is_rejected():
    token = create_access_token("agent-1", expires_delta=timedelta(seconds=-5))

    assert decode_access_token(token) is None


def test_garbage_token_is_rejected():
    assert decode_access_token("not-a-jwt") is None


def test_agent_may_act_as_self():
    assert ensure_acting_as(Principal(id="agent-1", role="agent"), "agent-1") == "agent-1"


def test_agent_may_not_act_as_someone_else():
    with pytest.raises(AccessDenied):
        ensure_acting_as(Principal(id="agent-1", role="agent"), "agent-2")


def test_require_agent_rejects_other_roles():
    with pytest.raises(AccessDenied):
        require_agent(Principal(id="admin-1", role="admin"))
