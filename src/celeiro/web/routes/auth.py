"""Magic-code login, logout and invite acceptance."""

from fastapi import APIRouter, Depends, Request
from pydantic import BaseModel

from celeiro.domain.entities import Authentication
from celeiro.domain.session import session_info_to_dict
from celeiro.web.dependencies import current_session, get_services, session_token
from celeiro.web.responses import success
from celeiro.web.services import Services

router = APIRouter(prefix="/auth", tags=["auth"])


class MagicLinkRequest(BaseModel):
    email: str = ""


class ValidateCodeRequest(BaseModel):
    email: str = ""
    code: str = ""


class AcceptInviteRequest(BaseModel):
    token: str


def authentication_payload(auth: Authentication) -> dict:
    session = auth.session
    return {
        "session_token": session.token,
        "session_created_at": session.created_at,
        "session_expires_at": session.expires_at,
        "is_new_user": auth.is_new_user,
        "session_info": session_info_to_dict(session.info),
    }


@router.post("/request")
def request_magic_link(req: MagicLinkRequest, services: Services = Depends(get_services)):
    """Send a sign-in code; unknown addresses are provisioned on validation."""
    services.auth.request_magic_link(req.email)
    return success({"message": "code sent"})


@router.post("/request/existing")
def request_magic_link_existing(req: MagicLinkRequest, services: Services = Depends(get_services)):
    """Send a sign-in code only to registered users."""
    services.auth.request_magic_link(req.email, check_user_exists=True)
    return success({"message": "code sent"})


@router.post("/validate")
def validate_code(req: ValidateCodeRequest, services: Services = Depends(get_services)):
    auth = services.auth.validate_magic_code(req.email, req.code)
    return success(authentication_payload(auth))


@router.post("/logout", dependencies=[Depends(current_session)])
def logout(request: Request, services: Services = Depends(get_services)):
    services.auth.logout(session_token(request))
    return success(message="logged out")


@router.post("/invites/accept")
def accept_invite(req: AcceptInviteRequest, services: Services = Depends(get_services)):
    auth = services.organizations.accept_invite(req.token)
    return success(authentication_payload(auth))
