"""Session lifecycle over the key/value store."""

import json
import math
from datetime import datetime, timedelta
from typing import Any, Optional

from celeiro.config import Settings
from celeiro.domain.entities import (
    OrganizationWithPermissions,
    Permission,
    Role,
    Session,
    SessionInfo,
    User,
)
from celeiro.domain.errors import invalid_session_format, session_expired, session_not_found
from celeiro.logger import get_logger
from celeiro.system import System
from celeiro.transient.base import KeyValueStore

logger = get_logger(__name__)

SESSION_TOKEN_BYTES = 128


def session_key(token: str) -> str:
    return f"session:{token}"


def _dt(value: Optional[datetime]) -> Optional[str]:
    return value.isoformat() if value is not None else None


def _parse_dt(value: Optional[str]) -> Optional[datetime]:
    return datetime.fromisoformat(value) if value is not None else None


def user_to_dict(user: User) -> dict[str, Any]:
    return {
        "id": user.id,
        "name": user.name,
        "email": user.email,
        "phone": user.phone,
        "default_organization_id": user.default_organization_id,
        "created_at": _dt(user.created_at),
        "updated_at": _dt(user.updated_at),
    }


def organization_to_dict(org: OrganizationWithPermissions) -> dict[str, Any]:
    return {
        "organization_id": org.organization_id,
        "name": org.name,
        "user_role": org.user_role.value,
        "user_permissions": [p.value for p in org.user_permissions],
        "is_default": org.is_default,
    }


def session_info_to_dict(info: SessionInfo) -> dict[str, Any]:
    return {
        "user": user_to_dict(info.user),
        "organizations": [organization_to_dict(o) for o in info.organizations],
    }


def session_to_dict(session: Session) -> dict[str, Any]:
    return {
        "token": session.token,
        "info": session_info_to_dict(session.info),
        "created_at": _dt(session.created_at),
        "expires_at": _dt(session.expires_at),
    }


def session_from_dict(data: dict[str, Any]) -> Session:
    """Rebuild a Session. Raises KeyError, TypeError or ValueError on bad input."""
    user_data = data["info"]["user"]
    user = User(
        id=user_data["id"],
        name=user_data["name"],
        email=user_data["email"],
        phone=user_data.get("phone"),
        default_organization_id=user_data.get("default_organization_id"),
        created_at=_parse_dt(user_data.get("created_at")),
        updated_at=_parse_dt(user_data.get("updated_at")),
    )
    organizations = tuple(
        OrganizationWithPermissions(
            organization_id=o["organization_id"],
            name=o["name"],
            user_role=Role(o["user_role"]),
            user_permissions=tuple(Permission(p) for p in o["user_permissions"]),
            is_default=o.get("is_default", False),
        )
        for o in data["info"]["organizations"]
    )
    return Session(
        token=data["token"],
        info=SessionInfo(user=user, organizations=organizations),
        created_at=_parse_dt(data["created_at"]),
        expires_at=_parse_dt(data["expires_at"]),
    )


class SessionService:
    """Create, load, refresh and delete sessions."""

    def __init__(self, store: KeyValueStore, system: System, settings: Settings):
        """Initialize session service.

        Args:
            store: Key/value store holding session records
            system: Clock and token generators
            settings: Provides SESSION_TTL_SECONDS and SESSION_REFRESH_TTL_SECONDS
        """
        self.store = store
        self.system = system
        self.ttl_seconds = settings.SESSION_TTL_SECONDS
        self.refresh_ttl_seconds = settings.SESSION_REFRESH_TTL_SECONDS

    def _write(self, session: Session, ttl_seconds: int) -> None:
        self.store.set_with_ttl(
            session_key(session.token), json.dumps(session_to_dict(session)), ttl_seconds
        )

    def create_session(self, info: SessionInfo) -> Session:
        """Mint a token and store a new session record.

        Args:
            info: User profile and memberships carried by the session

        Returns:
            The stored session
        """
        now = self.system.clock.now()
        session = Session(
            token=self.system.session_tokens.generate(SESSION_TOKEN_BYTES),
            info=info,
            created_at=now,
            expires_at=now + timedelta(seconds=self.ttl_seconds),
        )
        self._write(session, self.ttl_seconds)
        logger.info("session created", user_id=info.user.id)
        return session

    def load_session(self, token: str) -> Session:
        """Load a session by token.

        Raises:
            AuthenticationError: SESSION_NOT_FOUND, INVALID_SESSION_FORMAT or
                SESSION_EXPIRED (the record is deleted in that case)
        """
        raw = self.store.get(session_key(token))
        if raw is None:
            raise session_not_found()

        try:
            session = session_from_dict(json.loads(raw))
        except (KeyError, TypeError, ValueError) as e:
            raise invalid_session_format() from e

        if self.system.clock.now() > session.expires_at:
            self.store.delete(session_key(token))
            raise session_expired()
        return session

    def refresh_session(self, token: str) -> Session:
        """Push expiry to now plus the refresh TTL."""
        session = self.load_session(token)
        refreshed = Session(
            token=session.token,
            info=session.info,
            created_at=session.created_at,
            expires_at=self.system.clock.now() + timedelta(seconds=self.refresh_ttl_seconds),
        )
        self._write(refreshed, self.refresh_ttl_seconds)
        return refreshed

    def delete_session(self, token: str) -> None:
        """Remove a session. Unknown tokens are ignored."""
        self.store.delete(session_key(token))

    def update_organization_in_session(
        self, token: str, organizations: list[OrganizationWithPermissions]
    ) -> Session:
        """Replace the memberships carried by a session, keeping its remaining lifetime."""
        session = self.load_session(token)
        updated = Session(
            token=session.token,
            info=SessionInfo(user=session.info.user, organizations=tuple(organizations)),
            created_at=session.created_at,
            expires_at=session.expires_at,
        )
        remaining = self.store.ttl(session_key(token))
        if remaining is None:
            delta = (session.expires_at - self.system.clock.now()).total_seconds()
            remaining = max(math.ceil(delta), 1)
        self._write(updated, remaining)
        return updated
