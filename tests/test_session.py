"""Tests for the session service."""

import json
from datetime import datetime, timedelta, UTC

import pytest

from celeiro.domain.entities import (
    OrganizationWithPermissions,
    Permission,
    Role,
    SessionInfo,
    User,
)
from celeiro.domain.errors import AuthenticationError
from celeiro.domain.session import session_from_dict, session_key, session_to_dict


@pytest.fixture
def info():
    now = datetime(2024, 3, 1, tzinfo=UTC)
    user = User(
        id=7,
        name="Ana",
        email="ana@example.com",
        phone=None,
        default_organization_id=3,
        created_at=now,
        updated_at=now,
    )
    org = OrganizationWithPermissions(
        organization_id=3,
        name="Casa",
        user_role=Role.REGULAR_MANAGER,
        user_permissions=(Permission.VIEW_ORGANIZATIONS, Permission.CREATE_REGULAR_USERS),
        is_default=True,
    )
    return SessionInfo(user=user, organizations=(org,))


def test_create_and_load(session_service, info, clock):
    session = session_service.create_session(info)

    assert session.created_at == clock.now()
    assert session.expires_at == clock.now() + timedelta(days=30)
    assert session_service.load_session(session.token) == session


def test_tokens_are_unique(session_service, info):
    first = session_service.create_session(info)
    second = session_service.create_session(info)
    assert first.token != second.token
    assert len(first.token) > 100


def test_record_survives_json(session_service, info):
    session = session_service.create_session(info)
    assert session_from_dict(json.loads(json.dumps(session_to_dict(session)))) == session


def test_unknown_token(session_service):
    with pytest.raises(AuthenticationError) as exc_info:
        session_service.load_session("missing")
    assert exc_info.value.code == "SESSION_NOT_FOUND"


def test_corrupt_record(session_service, store):
    store.set(session_key("broken"), json.dumps({"token": "broken"}))

    with pytest.raises(AuthenticationError) as exc_info:
        session_service.load_session("broken")
    assert exc_info.value.code == "INVALID_SESSION_FORMAT"


def test_expired_record_is_deleted(session_service, info, store, clock):
    """A record outliving its expires_at is removed on load."""
    session = session_service.create_session(info)
    data = session_to_dict(session)
    data["expires_at"] = (clock.now() - timedelta(minutes=1)).isoformat()
    store.set(session_key(session.token), json.dumps(data))

    with pytest.raises(AuthenticationError) as exc_info:
        session_service.load_session(session.token)
    assert exc_info.value.code == "SESSION_EXPIRED"
    assert not store.exists(session_key(session.token))


def test_store_ttl_expires_session(session_service, info, clock):
    session = session_service.create_session(info)
    clock.advance(days=31)

    with pytest.raises(AuthenticationError) as exc_info:
        session_service.load_session(session.token)
    assert exc_info.value.code == "SESSION_NOT_FOUND"


def test_refresh_session(session_service, info, clock, store):
    session = session_service.create_session(info)
    clock.advance(days=2)

    refreshed = session_service.refresh_session(session.token)

    assert refreshed.expires_at == clock.now() + timedelta(days=1)
    assert refreshed.created_at == session.created_at
    assert store.ttl(session_key(session.token)) == 24 * 3600


def test_delete_session(session_service, info):
    session = session_service.create_session(info)
    session_service.delete_session(session.token)
    session_service.delete_session(session.token)

    with pytest.raises(AuthenticationError):
        session_service.load_session(session.token)


def test_update_organizations_keeps_lifetime(session_service, info, store, clock):
    session = session_service.create_session(info)
    clock.advance(hours=1)
    org = OrganizationWithPermissions(
        organization_id=9,
        name="Trabalho",
        user_role=Role.REGULAR_USER,
        user_permissions=(Permission.VIEW_ORGANIZATIONS,),
    )

    updated = session_service.update_organization_in_session(session.token, [org])

    assert updated.info.organizations == (org,)
    assert updated.expires_at == session.expires_at
    assert session_service.load_session(session.token).info.organizations == (org,)
    assert store.ttl(session_key(session.token)) == 30 * 24 * 3600 - 3600
