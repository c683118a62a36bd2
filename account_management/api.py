"""
Account Management API Endpoints
Login (password and magic link), logout, invites and user administration
"""
from fastapi import APIRouter, Depends, Request, Response, status
from sqlalchemy.orm import Session

from account_management.auth_service import AuthService
from account_management.repository import UserRepository
from account_management.schemas import (
    AuthResponse,
    InviteAcceptRequest,
    InviteCreateRequest,
    InviteResponse,
    InviteValidationResponse,
    MagicLinkConsumeRequest,
    MagicLinkRequest,
    MessageResponse,
    PasswordLoginRequest,
    TempPasswordResponse,
    UserResponse,
    UserUpdateRequest,
)
from core.audit import AuditLogger
from core.auth import CurrentSession, clear_session_cookie, get_current_session, set_session_cookie
from core.exceptions import AuthenticationError, NotFoundError
from core.logging import get_logger
from core.rate_limit import LOGIN_LIMIT, default_limit, limiter
from core.rbac import Action, require_action
from database.models import AuditAction
from database.session import get_db
from notifications.email import notifier

logger = get_logger("account_api", domain="account_management")

router = APIRouter(tags=["accounts"])

MAGIC_LINK_MESSAGE = "If an account exists for this email, a login link has been sent"


# Authentication
@router.post("/login-password", response_model=AuthResponse)
@limiter.limit(LOGIN_LIMIT)
def login_password(
    request: Request,
    response: Response,
    data: PasswordLoginRequest,
    db: Session = Depends(get_db),
):
    """Login with email and password"""
    user = AuthService.authenticate_user(db, data.email, data.password.get_secret_value())

    if not user:
        logger.warning("Failed password login")
        raise AuthenticationError("Invalid email or password")

    AuthService.record_login(db, user)
    set_session_cookie(response, user)
    AuditLogger(db, request).record(AuditAction.LOGIN, user.id, "user", user.id, "Password login")

    return AuthResponse(user=UserResponse.model_validate(user))


@router.post("/login-magic-request", response_model=MessageResponse, status_code=status.HTTP_202_ACCEPTED)
@limiter.limit(LOGIN_LIMIT)
def login_magic_request(request: Request, data: MagicLinkRequest, db: Session = Depends(get_db)):
    """Send a magic login link to VA accounts; every address gets the same answer"""
    magic_token = AuthService.create_magic_link(db, data.email)

    if magic_token:
        notifier.send_magic_link(data.email, magic_token.token)

    return MessageResponse(message=MAGIC_LINK_MESSAGE)


@router.post("/login-magic-consume", response_model=AuthResponse)
@limiter.limit(LOGIN_LIMIT)
def login_magic_consume(
    request: Request,
    response: Response,
    data: MagicLinkConsumeRequest,
    db: Session = Depends(get_db),
):
    """Exchange a magic link token for a session"""
    user = AuthService.consume_magic_link(db, data.token)

    if not user:
        raise AuthenticationError("Invalid or expired login link")

    AuthService.record_login(db, user)
    set_session_cookie(response, user)
    AuditLogger(db, request).record(AuditAction.LOGIN, user.id, "user", user.id, "Magic link login")

    return AuthResponse(user=UserResponse.model_validate(user))


@router.post("/logout", response_model=MessageResponse)
@limiter.limit(default_limit)
def logout(
    request: Request,
    response: Response,
    session: CurrentSession = Depends(get_current_session),
    db: Session = Depends(get_db),
):
    clear_session_cookie(response)
    AuditLogger(db, request).record(AuditAction.LOGOUT, session.user_id, "user", session.user_id)
    return MessageResponse(message="Logged out successfully")


@router.get("/user", response_model=UserResponse)
@limiter.limit(default_limit)
def get_current_user(
    request: Request,
    session: CurrentSession = Depends(require_action(Action.VIEW_SELF)),
    db: Session = Depends(get_db),
):
    """Current session's user"""
    user = UserRepository(db).get_user(session.user_id)
    if not user:
        raise AuthenticationError()
    return user


# Invites
@router.post("/invites", response_model=InviteResponse, status_code=status.HTTP_201_CREATED)
@limiter.limit(default_limit)
def create_invite(
    request: Request,
    data: InviteCreateRequest,
    session: CurrentSession = Depends(require_action(Action.MANAGE_INVITES)),
    db: Session = Depends(get_db),
):
    invite = AuthService.create_invite(db, data.email, data.role, created_by=session.user_id)
    notifier.send_invite(invite.email, invite.token, invite.role.value)
    AuditLogger(db, request).record(
        AuditAction.INVITE, session.user_id, "invite", invite.id, f"Invited {invite.email} as {invite.role.value}"
    )
    return invite


@router.get("/invites", response_model=list[InviteResponse])
@limiter.limit(default_limit)
def list_invites(
    request: Request,
    session: CurrentSession = Depends(require_action(Action.MANAGE_INVITES)),
    db: Session = Depends(get_db),
):
    """Pending (unused, unexpired) invites"""
    return AuthService.list_pending_invites(db)


@router.get("/invites/{token}", response_model=InviteValidationResponse)
@limiter.limit(default_limit)
def validate_invite(request: Request, token: str, db: Session = Depends(get_db)):
    invite = AuthService.get_valid_invite(db, token)
    if not invite:
        raise NotFoundError("Invite", token[:8])
    return InviteValidationResponse(email=invite.email, role=invite.role)


@router.post("/invites/accept", response_model=AuthResponse)
@limiter.limit(LOGIN_LIMIT)
def accept_invite(request: Request, data: InviteAcceptRequest, db: Session = Depends(get_db)):
    password = data.password.get_secret_value() if data.password else None
    user = UserRepository(db).accept_invite(data.token, data.email, password=password, name=data.name)
    AuditLogger(db, request).record(AuditAction.CREATE, user.id, "user", user.id, "Invite accepted")
    return AuthResponse(user=UserResponse.model_validate(user))


# User administration
@router.get("/users", response_model=list[UserResponse])
@limiter.limit(default_limit)
def list_users(
    request: Request,
    session: CurrentSession = Depends(require_action(Action.MANAGE_USERS)),
    db: Session = Depends(get_db),
):
    return UserRepository(db).list_users()


@router.patch("/users/{user_id}", response_model=UserResponse)
@limiter.limit(default_limit)
def update_user(
    request: Request,
    user_id: str,
    data: UserUpdateRequest,
    session: CurrentSession = Depends(require_action(Action.MANAGE_USERS)),
    db: Session = Depends(get_db),
):
    """Activate or deactivate a user"""
    user = UserRepository(db).set_active(user_id, data.is_active)
    AuditLogger(db, request).record(
        AuditAction.UPDATE, session.user_id, "user", user_id, f"is_active={data.is_active}"
    )
    return user


@router.post("/users/{user_id}/reset-password", response_model=TempPasswordResponse)
@limiter.limit(default_limit)
def reset_password(
    request: Request,
    user_id: str,
    session: CurrentSession = Depends(require_action(Action.MANAGE_USERS)),
    db: Session = Depends(get_db),
):
    user, temp_password = UserRepository(db).reset_va_password(user_id)
    AuditLogger(db, request).record(
        AuditAction.RESET_PASSWORD, session.user_id, "user", user_id, f"Password reset for VA: {user.email}"
    )
    return TempPasswordResponse(message="Password has been reset successfully", temp_password=temp_password)
