"""Current user, organizations, members and invites."""

from fastapi import APIRouter, Depends, Request
from pydantic import BaseModel

from celeiro.domain.entities import OrganizationWithPermissions, Permission, Role, Session
from celeiro.domain.errors import forbidden
from celeiro.domain.session import session_info_to_dict
from celeiro.web.dependencies import (
    active_organization,
    current_session,
    get_services,
    require,
    session_token,
)
from celeiro.web.responses import success
from celeiro.web.services import Services

router = APIRouter(prefix="/accounts", tags=["accounts"])


class DefaultOrganizationRequest(BaseModel):
    organization_id: int


class InviteRequest(BaseModel):
    email: str
    role: str = Role.REGULAR_USER.value


def _member_of(session: Session, organization_id: int) -> OrganizationWithPermissions:
    for membership in session.info.organizations:
        if membership.organization_id == organization_id:
            return membership
    raise forbidden(f"not a member of organization {organization_id}")


@router.get("/me")
def me(session: Session = Depends(current_session)):
    return success(session_info_to_dict(session.info))


@router.get("/organizations")
def list_organizations(
    session: Session = Depends(current_session), services: Services = Depends(get_services)
):
    return success(services.users.get_organizations_by_user(session.info.user.id))


@router.post("/organizations/default")
def set_default_organization(
    req: DefaultOrganizationRequest,
    request: Request,
    session: Session = Depends(current_session),
    services: Services = Depends(get_services),
):
    """Make an organization the default and refresh the memberships held by the session."""
    user_id = session.info.user.id
    services.organizations.set_default_organization(user_id, req.organization_id)
    organizations = services.users.get_organizations_by_user(user_id)
    updated = services.sessions.update_organization_in_session(session_token(request), organizations)
    return success(session_info_to_dict(updated.info))


@router.get("/organizations/{organization_id}")
def get_organization(
    organization_id: int,
    session: Session = Depends(current_session),
    services: Services = Depends(get_services),
):
    _member_of(session, organization_id)
    return success(services.organizations.get_organization(organization_id))


@router.get("/organizations/{organization_id}/members")
def get_members(
    organization_id: int,
    session: Session = Depends(current_session),
    services: Services = Depends(get_services),
):
    _member_of(session, organization_id)
    return success(services.organizations.get_members(organization_id))


@router.get("/organizations/{organization_id}/invites")
def get_pending_invites(
    organization_id: int,
    session: Session = Depends(current_session),
    services: Services = Depends(get_services),
):
    _member_of(session, organization_id)
    return success(services.organizations.get_pending_invites(organization_id))


@router.post(
    "/organizations/{organization_id}/invites",
    dependencies=[Depends(require(Permission.CREATE_REGULAR_USERS))],
)
def create_invite(
    organization_id: int,
    req: InviteRequest,
    organization: OrganizationWithPermissions = Depends(active_organization),
    session: Session = Depends(current_session),
    services: Services = Depends(get_services),
):
    if organization.organization_id != organization_id:
        raise forbidden("invites can only be created in the active organization")
    invite = services.organizations.create_invite(
        organization_id, req.email, req.role, invited_by_user_id=session.info.user.id
    )
    return success(invite, status_code=201)


@router.delete(
    "/organizations/{organization_id}/invites/{invite_id}",
    dependencies=[Depends(require(Permission.DELETE_REGULAR_USERS))],
)
def cancel_invite(
    organization_id: int,
    invite_id: int,
    organization: OrganizationWithPermissions = Depends(active_organization),
    services: Services = Depends(get_services),
):
    if organization.organization_id != organization_id:
        raise forbidden("invites can only be cancelled in the active organization")
    services.organizations.cancel_invite(organization_id, invite_id)
    return success(message="invite cancelled")
