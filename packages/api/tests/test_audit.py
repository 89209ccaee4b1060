# This project was developed with assistance from AI tools.
"""Tests for the audit hash chain and the admin audit endpoints."""

from datetime import UTC, datetime
from unittest.mock import AsyncMock, MagicMock

import pytest
from db import get_db
from db.enums import SubjectType, UserRole
from fastapi import FastAPI
from fastapi.testclient import TestClient

from stayverify.middleware.auth import get_current_user
from stayverify.routes.admin import router
from stayverify.services.audit import (
    _compute_hash,
    get_subject_history,
    verify_audit_chain,
    write_audit_event,
)

from .factories import make_operator_user

# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def _mock_audit_session(prev_event=None):
    """Build a mock session that supports advisory lock + latest-event query."""
    mock_session = AsyncMock()
    mock_session.add = MagicMock()
    # execute is called twice: advisory lock, then latest-event query
    lock_result = MagicMock()
    query_result = MagicMock()
    query_result.scalar_one_or_none.return_value = prev_event
    mock_session.execute = AsyncMock(side_effect=[lock_result, query_result])
    return mock_session


def _event(id, prev_hash, event_data=None, event_type="group_approved"):
    e = MagicMock()
    e.id = id
    e.timestamp = datetime(2026, 3, 1, 10, id, tzinfo=UTC)
    e.event_type = event_type
    e.user_id = "ops-meera"
    e.user_role = "operator"
    e.event_data = event_data or {"kind": "identity", "status": "approved", "sequence": id}
    e.prev_hash = prev_hash
    return e


def _chain(n):
    events = []
    for i in range(1, n + 1):
        if not events:
            prev_hash = "genesis"
        else:
            prev = events[-1]
            prev_hash = _compute_hash(prev.id, str(prev.timestamp), prev.event_data)
        events.append(_event(i, prev_hash))
    return events


def _session_returning(events):
    session = AsyncMock()
    result = MagicMock()
    result.scalars.return_value.all.return_value = events
    session.execute = AsyncMock(return_value=result)
    return session


# ---------------------------------------------------------------------------
# write_audit_event
# ---------------------------------------------------------------------------


@pytest.mark.asyncio
async def test_first_event_links_to_genesis():
    mock_session = _mock_audit_session(prev_event=None)

    await write_audit_event(
        mock_session,
        event_type="group_submitted",
        user_id="asha-rao-001",
        user_role="partner",
        subject_type=SubjectType.PARTNER,
        subject_id=1,
        event_data={"kind": "identity", "status": "pending", "sequence": 1},
    )

    mock_session.add.assert_called_once()
    mock_session.flush.assert_awaited_once()
    added = mock_session.add.call_args[0][0]
    assert added.prev_hash == "genesis"
    assert added.subject_type == "partner"
    assert added.subject_id == 1
    assert added.event_data["status"] == "pending"


@pytest.mark.asyncio
async def test_event_chains_from_previous():
    prev = _event(42, "whatever")
    mock_session = _mock_audit_session(prev_event=prev)

    await write_audit_event(mock_session, event_type="group_rejected", user_id="ops-meera")

    added = mock_session.add.call_args[0][0]
    assert added.prev_hash == _compute_hash(42, str(prev.timestamp), prev.event_data)
    assert added.subject_type is None


@pytest.mark.asyncio
async def test_advisory_lock_taken_first():
    mock_session = _mock_audit_session()
    await write_audit_event(mock_session, event_type="partner_registered")
    first_stmt = mock_session.execute.await_args_list[0].args[0]
    assert "pg_advisory_xact_lock(910001)" in str(first_stmt)


def test_hash_ignores_key_order():
    assert _compute_hash(1, "t", {"a": 1, "b": 2}) == _compute_hash(1, "t", {"b": 2, "a": 1})
    assert _compute_hash(1, "t", {"a": 1}) != _compute_hash(2, "t", {"a": 1})


# ---------------------------------------------------------------------------
# verify_audit_chain / history
# ---------------------------------------------------------------------------


@pytest.mark.asyncio
async def test_intact_chain_verifies():
    result = await verify_audit_chain(_session_returning(_chain(4)))
    assert result == {"status": "OK", "events_checked": 4}


@pytest.mark.asyncio
async def test_empty_chain_verifies():
    result = await verify_audit_chain(_session_returning([]))
    assert result == {"status": "OK", "events_checked": 0}


@pytest.mark.asyncio
async def test_edited_event_breaks_chain_at_next():
    events = _chain(4)
    events[1].event_data = {"kind": "identity", "status": "rejected", "sequence": 2}

    result = await verify_audit_chain(_session_returning(events))

    assert result["status"] == "TAMPERED"
    assert result["first_break_id"] == 3
    assert result["events_checked"] == 3


@pytest.mark.asyncio
async def test_subject_history_queries_once():
    session = _session_returning([])
    assert await get_subject_history(session, SubjectType.PROPERTY, 10) == []
    session.execute.assert_awaited_once()


# ---------------------------------------------------------------------------
# Endpoint tests
# ---------------------------------------------------------------------------


def _make_app(user, events):
    app = FastAPI()
    app.include_router(router, prefix="/api/admin")

    async def fake_user():
        return user

    async def fake_db():
        yield _session_returning(events)

    app.dependency_overrides[get_current_user] = fake_user
    app.dependency_overrides[get_db] = fake_db
    return app


def test_history_endpoint_lists_decisions():
    client = TestClient(_make_app(make_operator_user(), _chain(2)))
    response = client.get("/api/admin/property/10/history")
    assert response.status_code == 200
    body = response.json()
    assert body["count"] == 2
    assert body["data"][0]["event_type"] == "group_approved"


def test_audit_verify_is_admin_only():
    client = TestClient(_make_app(make_operator_user(), _chain(2)))
    assert client.get("/api/admin/audit/verify").status_code == 403


def test_audit_verify_reports_ok_for_admin():
    client = TestClient(_make_app(make_operator_user(UserRole.ADMIN), _chain(3)))
    response = client.get("/api/admin/audit/verify")
    assert response.status_code == 200
    assert response.json() == {"status": "OK", "events_checked": 3, "first_break_id": None}


def test_partner_cannot_reach_admin_routes():
    partner = make_operator_user(UserRole.PARTNER)
    client = TestClient(_make_app(partner, []))
    assert client.get("/api/admin/verification-queue").status_code == 403
