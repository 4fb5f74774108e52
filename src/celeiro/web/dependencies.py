"""Request dependencies: services, session and active organization."""

from typing import Callable, Optional

from fastapi import Depends, Request

from celeiro.domain import context
from celeiro.domain.entities import OrganizationWithPermissions, Permission, Session
from celeiro.domain.errors import ValidationError, forbidden, unauthorized
from celeiro.domain.users import require_permissions
from celeiro.web.services import Services


def get_services(request: Request) -> Services:
    return request.app.state.services


def session_token(request: Request) -> Optional[str]:
    """Token from ``Authorization`` (bearer or raw) or ``X-Session-ID``."""
    header = request.headers.get("Authorization", "").strip()
    if header:
        scheme, _, rest = header.partition(" ")
        if scheme.lower() == "bearer":
            return rest.strip() or None
        return header
    return request.headers.get("X-Session-ID", "").strip() or None


async def current_session(
    request: Request, services: Services = Depends(get_services)
) -> Session:
    token = session_token(request)
    if token is None:
        raise unauthorized("missing session token")
    session = services.sessions.load_session(token)
    context.set_session(session)
    return session


async def active_organization(
    request: Request, session: Session = Depends(current_session)
) -> OrganizationWithPermissions:
    """Membership named by ``X-Active-Organization``, else the first one."""
    memberships = session.info.organizations
    header = request.headers.get("X-Active-Organization", "").strip()
    if header:
        try:
            organization_id = int(header)
        except ValueError:
            raise ValidationError(f"invalid X-Active-Organization header: {header}") from None
        chosen = next((m for m in memberships if m.organization_id == organization_id), None)
        if chosen is None:
            raise forbidden(f"not a member of organization {organization_id}")
    elif memberships:
        chosen = memberships[0]
    else:
        raise forbidden("user belongs to no organization")

    context.set_active_organization(chosen)
    return chosen


def require(*permissions: Permission) -> Callable:
    """Dependency enforcing permissions on the active organization."""

    async def dependency(
        organization: OrganizationWithPermissions = Depends(active_organization),
    ) -> OrganizationWithPermissions:
        require_permissions(organization, permissions)
        return organization

    return dependency
