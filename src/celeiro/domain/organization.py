"""Organization membership and invitations."""

import secrets
from datetime import timedelta

from celeiro.config import Settings
from celeiro.database.base import Database
from celeiro.domain.auth import name_from_email
from celeiro.domain.entities import (
    Authentication,
    Organization,
    OrganizationInvite,
    OrganizationMember,
    Role,
    SessionInfo,
)
from celeiro.domain.errors import (
    NotFoundError,
    already_member,
    email_format_invalid,
    invite_already_accepted,
    invite_expired,
    invite_not_found,
    organization_not_found,
)
from celeiro.domain.session import SessionService
from celeiro.domain.users import is_valid_email, parse_role
from celeiro.logger import get_logger
from celeiro.mailer import ORGANIZATION_INVITE, EmailTemplateMessage, Mailer
from celeiro.system import System

logger = get_logger(__name__)

INVITE_TOKEN_BYTES = 32


class OrganizationService:
    """Service for organizations, their members and invites."""

    def __init__(
        self,
        db: Database,
        mailer: Mailer,
        sessions: SessionService,
        system: System,
        settings: Settings,
    ):
        """Initialize organization service.

        Args:
            db: Database instance
            mailer: Mailer for invite e-mails
            sessions: Session service, used when an invite is accepted
            system: Clock
            settings: Provides FRONTEND_URL and INVITE_TTL_SECONDS
        """
        self.db = db
        self.mailer = mailer
        self.sessions = sessions
        self.system = system
        self.frontend_url = settings.FRONTEND_URL
        self.invite_ttl_seconds = settings.INVITE_TTL_SECONDS

    def get_organization(self, organization_id: int) -> Organization:
        organization = self.db.get_organization(organization_id)
        if organization is None:
            raise NotFoundError(organization_not_found(organization_id))
        return organization

    def get_members(self, organization_id: int) -> list[OrganizationMember]:
        return self.db.list_organization_members(organization_id)

    def set_default_organization(self, user_id: int, organization_id: int) -> None:
        """Make organization_id the user's default.

        Raises:
            NotFoundError: If the user is not a member of that organization
        """
        if self.db.get_membership(user_id, organization_id) is None:
            raise NotFoundError(organization_not_found(organization_id))
        self.db.set_default_organization(user_id, organization_id)

    def create_invite(
        self, organization_id: int, email: str, role: Role | str, invited_by_user_id: int
    ) -> OrganizationInvite:
        """Invite an e-mail address into an organization and mail the link.

        Args:
            organization_id: Target organization
            email: Invitee address
            role: Role granted on acceptance
            invited_by_user_id: Inviting member

        Returns:
            The stored invite

        Raises:
            ValidationError: On malformed e-mail or unknown role
            ConflictError: ALREADY_MEMBER if the address already belongs to the organization
        """
        email = (email or "").strip()
        if not is_valid_email(email):
            raise email_format_invalid()
        role = parse_role(role.value if isinstance(role, Role) else role)
        organization = self.get_organization(organization_id)

        existing = self.db.get_user_by_email(email)
        if existing is not None and self.db.get_membership(existing.id, organization_id) is not None:
            raise already_member(email)

        token = secrets.token_urlsafe(INVITE_TOKEN_BYTES)
        expires_at = self.system.clock.now() + timedelta(seconds=self.invite_ttl_seconds)
        invite_id = self.db.create_invite(
            organization_id=organization_id,
            email=email,
            role=role,
            token=token,
            invited_by_user_id=invited_by_user_id,
            expires_at=expires_at,
        )

        inviter = self.db.get_user(invited_by_user_id)
        self.mailer.send_email(
            EmailTemplateMessage(
                to=(email,),
                subject=f"You have been invited to {organization.name}",
                template=ORGANIZATION_INVITE,
                data={
                    "OrganizationName": organization.name,
                    "InviterName": inviter.name if inviter is not None else "A member",
                    "Role": role.value,
                    "InviteURL": f"{self.frontend_url}/invite?token={token}",
                    "ExpiresAt": expires_at.strftime("%Y-%m-%d"),
                },
            )
        )
        logger.info("invite created", organization_id=organization_id, invite_id=invite_id)
        return self.db.get_invite(invite_id)

    def accept_invite(self, token: str) -> Authentication:
        """Accept an invite, creating the user if needed, and open a session.

        Raises:
            NotFoundError: INVITE_NOT_FOUND
            ConflictError: INVITE_EXPIRED or INVITE_ALREADY_ACCEPTED
        """
        invite = self.db.get_invite_by_token(token)
        if invite is None:
            raise invite_not_found()
        if invite.accepted_at is not None:
            raise invite_already_accepted()
        now = self.system.clock.now()
        if now > invite.expires_at:
            raise invite_expired()

        user = self.db.get_user_by_email(invite.email)
        is_new_user = user is None
        with self.db.transaction():
            if is_new_user:
                user_id = self.db.create_user(
                    name=name_from_email(invite.email),
                    email=invite.email,
                    default_organization_id=invite.organization_id,
                )
            else:
                user_id = user.id
            if self.db.get_membership(user_id, invite.organization_id) is None:
                self.db.create_membership(user_id, invite.organization_id, invite.role)
            self.db.mark_invite_accepted(invite.id, now)

        user = self.db.get_user(user_id)
        logger.info("invite accepted", invite_id=invite.id, user_id=user_id)
        info = SessionInfo(user=user, organizations=tuple(self.db.list_memberships(user_id)))
        return Authentication(session=self.sessions.create_session(info), is_new_user=is_new_user)

    def get_pending_invites(self, organization_id: int) -> list[OrganizationInvite]:
        return self.db.list_pending_invites(organization_id, self.system.clock.now())

    def cancel_invite(self, organization_id: int, invite_id: int) -> None:
        if not self.db.delete_invite(invite_id, organization_id):
            raise invite_not_found()
