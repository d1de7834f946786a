import logging

from fastapi import APIRouter, Depends, Request, Response, status
from sqlmodel import Session

from tourbook.audit.service import AuditRequestContext
from tourbook.auth import service
from tourbook.auth.jwt_handler import create_access_token
from tourbook.auth.schemas import (
    ForgotPasswordRequest,
    LoginRequest,
    MessageResponse,
    ResetPasswordRequest,
    SignupRequest,
    TokenResponse,
    UpdatePasswordRequest,
    UserData,
)
from tourbook.auth.user_model import User, UserRead
from tourbook.config import COOKIE_SECURE, JWT_COOKIE_EXPIRES_DAYS, TOKEN_COOKIE_NAME
from tourbook.db import get_session
from tourbook.dependencies import get_current_user, get_request_audit_context
from tourbook.mailer import Mailer, get_mailer

router = APIRouter(tags=["auth"])
logger = logging.getLogger(__name__)


def _build_token_response(user: User, response: Response) -> TokenResponse:
    """Issue a fresh JWT, mirror it in the 'jwt' cookie and return the sanitized user."""
    token = create_access_token(user.id)
    response.set_cookie(
        key=TOKEN_COOKIE_NAME,
        value=token,
        max_age=JWT_COOKIE_EXPIRES_DAYS * 24 * 60 * 60,
        httponly=True,
        secure=COOKIE_SECURE,
        samesite="lax",
    )
    return TokenResponse(token=token, data=UserData(user=UserRead.model_validate(user)))


@router.post("/signup", response_model=TokenResponse, status_code=status.HTTP_201_CREATED)
def signup(
    payload: SignupRequest,
    response: Response,
    session: Session = Depends(get_session),
    audit_ctx: AuditRequestContext = Depends(get_request_audit_context),
):
    user = service.signup(
        session,
        name=payload.name,
        email=payload.email,
        password=payload.password,
        password_confirm=payload.password_confirm,
        ctx=audit_ctx,
    )
    return _build_token_response(user, response)


@router.post("/login", response_model=TokenResponse)
def login(
    payload: LoginRequest,
    response: Response,
    session: Session = Depends(get_session),
    audit_ctx: AuditRequestContext = Depends(get_request_audit_context),
):
    """
    1. Busca al usuario activo por email.
    2. Verifica la contraseña usando bcrypt.
    3. Emite un JWT con el id del usuario y la hora de emisión.
    """
    user = service.login(session, email=payload.email, password=payload.password, ctx=audit_ctx)
    return _build_token_response(user, response)


@router.get("/logout", response_model=MessageResponse)
def logout(response: Response):
    response.delete_cookie(
        key=TOKEN_COOKIE_NAME,
        httponly=True,
        secure=COOKIE_SECURE,
        samesite="lax",
    )
    return MessageResponse(message="Logged out")


@router.post("/forgotPassword", response_model=MessageResponse)
def forgot_password(
    payload: ForgotPasswordRequest,
    request: Request,
    session: Session = Depends(get_session),
    mailer: Mailer = Depends(get_mailer),
    audit_ctx: AuditRequestContext = Depends(get_request_audit_context),
):
    service.forgot_password(
        session,
        email=payload.email,
        reset_url_for=lambda token: str(request.url_for("reset_password", token=token)),
        mailer=mailer,
        ctx=audit_ctx,
    )
    return MessageResponse(message=service.FORGOT_PASSWORD_MESSAGE)


@router.patch("/resetPassword/{token}", response_model=TokenResponse)
def reset_password(
    token: str,
    payload: ResetPasswordRequest,
    response: Response,
    session: Session = Depends(get_session),
    audit_ctx: AuditRequestContext = Depends(get_request_audit_context),
):
    user = service.reset_password(
        session,
        token=token,
        password=payload.password,
        password_confirm=payload.password_confirm,
        ctx=audit_ctx,
    )
    return _build_token_response(user, response)


@router.patch("/updateMyPassword", response_model=TokenResponse)
def update_my_password(
    payload: UpdatePasswordRequest,
    response: Response,
    current_user: User = Depends(get_current_user),
    session: Session = Depends(get_session),
    audit_ctx: AuditRequestContext = Depends(get_request_audit_context),
):
    user = service.change_password(
        session,
        current_user,
        current_password=payload.current_password,
        password=payload.password,
        password_confirm=payload.password_confirm,
        ctx=audit_ctx,
    )
    return _build_token_response(user, response)
