"""Magic-code authentication."""

import json
from datetime import datetime, timedelta
from urllib.parse import urlencode

from celeiro.config import Settings
from celeiro.database.base import Database
from celeiro.domain.entities import (
    AccountType,
    Authentication,
    MagicCode,
    Role,
    SessionInfo,
)
from celeiro.domain.errors import (
    activation_failed,
    code_expired,
    email_format_invalid,
    email_required,
    invalid_code,
    user_not_found,
)
from celeiro.domain.session import SessionService
from celeiro.domain.users import is_valid_email
from celeiro.logger import get_logger
from celeiro.mailer import AUTH_CODE, EmailTemplateMessage, Mailer
from celeiro.system import System
from celeiro.transient.base import KeyValueStore

logger = get_logger(__name__)

DEFAULT_ACCOUNT_NAME = "Main Account"
DEFAULT_ACCOUNT_CURRENCY = "BRL"


def magic_code_key(email: str) -> str:
    return f"magic_code:{email}"


def name_from_email(email: str) -> str:
    """Local part of an e-mail address, or the whole address when there is none."""
    at = email.find("@")
    if at <= 0:
        return email
    return email[:at]


class AuthService:
    """Issue and redeem magic codes, provisioning users on first login."""

    def __init__(
        self,
        db: Database,
        store: KeyValueStore,
        mailer: Mailer,
        sessions: SessionService,
        system: System,
        settings: Settings,
    ):
        """Initialize auth service.

        Args:
            db: Database instance
            store: Key/value store holding magic codes
            mailer: Mailer used to deliver codes
            sessions: Session service used after a successful redemption
            system: Clock and random generators
            settings: Provides FRONTEND_URL and MAGIC_CODE_TTL_SECONDS
        """
        self.db = db
        self.store = store
        self.mailer = mailer
        self.sessions = sessions
        self.system = system
        self.frontend_url = settings.FRONTEND_URL
        self.code_ttl_seconds = settings.MAGIC_CODE_TTL_SECONDS

    def request_magic_link(self, email: str, check_user_exists: bool = False) -> MagicCode:
        """Issue a 4-digit code for email and mail it.

        A second request inside the TTL replaces the stored code.

        Args:
            email: Recipient address
            check_user_exists: Refuse unknown addresses instead of allowing
                first-login provisioning

        Returns:
            The stored magic code

        Raises:
            ValidationError: EMAIL_REQUIRED or EMAIL_FORMAT_INVALID
            NotFoundError: USER_NOT_FOUND when check_user_exists is set
            UpstreamError: If the store or the mailer fails
        """
        email = (email or "").strip()
        if not email:
            raise email_required()
        if not is_valid_email(email):
            raise email_format_invalid()

        if check_user_exists and self.db.get_user_by_email(email) is None:
            raise user_not_found(email)

        code = f"{self.system.ints.generate(9999):04d}"
        magic = MagicCode(
            code=code,
            email=email,
            expires_at=self.system.clock.now() + timedelta(seconds=self.code_ttl_seconds),
        )
        value = json.dumps(
            {"code": magic.code, "email": magic.email, "expires_at": magic.expires_at.isoformat()}
        )
        self.store.set_with_ttl(magic_code_key(email), value, self.code_ttl_seconds)
        logger.debug("magic code issued", email=email, code=code)

        self.mailer.send_email(
            EmailTemplateMessage(
                to=(email,),
                subject="Your celeiro sign-in code",
                template=AUTH_CODE,
                data={
                    "Code": code,
                    "LoginURL": f"{self.frontend_url}?{urlencode({'email': email, 'code': code})}",
                },
            )
        )
        logger.info("magic code sent", email=email)
        return magic

    def validate_magic_code(self, email: str, code: str) -> Authentication:
        """Redeem a code and open a session.

        Structural problems collapse into ACTIVATION_FAILED. A wrong code
        leaves the stored one in place; the right one is consumed.

        Raises:
            AuthenticationError: ACTIVATION_FAILED, CODE_EXPIRED or INVALID_CODE
        """
        email = (email or "").strip()
        code = (code or "").strip()
        if not is_valid_email(email) or len(code) != 4:
            raise activation_failed()

        key = magic_code_key(email)
        raw = self.store.get(key)
        if raw is None:
            raise activation_failed()

        try:
            stored = json.loads(raw)
            stored_code = stored["code"]
            expires_at = datetime.fromisoformat(stored["expires_at"])
        except (KeyError, TypeError, ValueError) as e:
            raise activation_failed() from e

        if self.system.clock.now() > expires_at:
            self.store.delete(key)
            raise code_expired()

        if stored_code != code:
            raise invalid_code()

        self.store.delete(key)
        return self.authenticate(email)

    def authenticate(self, email: str) -> Authentication:
        """Open a session for email, provisioning user and organization when unknown."""
        user = self.db.get_user_by_email(email)
        is_new_user = user is None

        if is_new_user:
            with self.db.transaction():
                organization_id = self.db.create_organization(name=email)
                user_id = self.db.create_user(
                    name=name_from_email(email),
                    email=email,
                    default_organization_id=organization_id,
                )
                self.db.create_membership(user_id, organization_id, Role.REGULAR_MANAGER)
            user = self.db.get_user(user_id)
            logger.info("user provisioned", user_id=user.id, organization_id=organization_id)
            self._create_default_account(user.id, organization_id)

        info = SessionInfo(user=user, organizations=tuple(self.db.list_memberships(user.id)))
        session = self.sessions.create_session(info)
        return Authentication(session=session, is_new_user=is_new_user)

    def logout(self, token: str) -> None:
        self.sessions.delete_session(token)

    def _create_default_account(self, user_id: int, organization_id: int) -> None:
        try:
            self.db.create_account(
                user_id=user_id,
                organization_id=organization_id,
                name=DEFAULT_ACCOUNT_NAME,
                account_type=AccountType.CHECKING,
                currency=DEFAULT_ACCOUNT_CURRENCY,
            )
        except Exception:
            logger.exception("failed to create default account", user_id=user_id)
