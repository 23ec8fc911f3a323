"""Tests for identifier value objects."""

import pytest

from neo_authz.core.value_objects import RoleId, TenantId, UserId, as_str


@pytest.mark.parametrize("cls", [UserId, TenantId, RoleId])
def test_rejects_empty(cls):
    with pytest.raises(ValueError):
        cls("")


def test_as_str_unwraps_value_objects():
    assert as_str(TenantId("T1")) == "T1"
    assert as_str("T1") == "T1"
    assert as_str(None) is None


@pytest.mark.asyncio
async def test_engine_accepts_value_objects(engine):
    decision = await engine.check_permission(UserId("u1"), TenantId("T1"), "User", "Update")
    
    assert decision.granted
    assert decision.user_id == "u1"


@pytest.mark.asyncio
async def test_engine_rejects_empty_user(engine):
    with pytest.raises(ValueError):
        await engine.check_permission("", "T1", "User", "Update")
