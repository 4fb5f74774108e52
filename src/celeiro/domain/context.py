"""Per-request context carriers for the authenticated session and active organization."""

from contextvars import ContextVar, Token
from typing import Optional

from celeiro.domain.entities import OrganizationWithPermissions, Session
from celeiro.domain.errors import unauthorized

_current_session: ContextVar[Optional[Session]] = ContextVar("celeiro_session", default=None)
_active_organization: ContextVar[Optional[OrganizationWithPermissions]] = ContextVar(
    "celeiro_active_organization", default=None
)


def set_session(session: Optional[Session]) -> Token:
    return _current_session.set(session)


def get_session() -> Session:
    """Session of the current request.

    Raises:
        AuthenticationError: If no session is set
    """
    session = _current_session.get()
    if session is None:
        raise unauthorized("no session in context")
    return session


def set_active_organization(organization: Optional[OrganizationWithPermissions]) -> Token:
    return _active_organization.set(organization)


def get_active_organization() -> OrganizationWithPermissions:
    """Active membership of the current request.

    Raises:
        AuthenticationError: If no organization is set
    """
    organization = _active_organization.get()
    if organization is None:
        raise unauthorized("no active organization in context")
    return organization

