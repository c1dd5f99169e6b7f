import logging

from fastapi import APIRouter, BackgroundTasks, Depends, Response, status
from fastapi.security import OAuth2PasswordRequestForm

from .. import schemas
from ..core.config import Settings
from ..core.dependencies import (
    get_account_service,
    get_current_user,
    get_sender,
    get_settings_dep,
    get_token_from_cookie_or_header,
)
from ..exceptions import LogoutFailed
from ..notifications import send_welcome_email
from ..services import AccountService

logger = logging.getLogger(__name__)

router = APIRouter()


def set_auth_cookie(response: Response, access_token: str, settings: Settings):
    response.set_cookie(
        key="token",
        value=f"Bearer {access_token}",
        httponly=True,
        max_age=settings.ACCESS_TOKEN_EXPIRE_MINUTES * 60,
        expires=settings.ACCESS_TOKEN_EXPIRE_MINUTES * 60,
        samesite="lax",
        secure=settings.COOKIE_SECURE
    )


@router.post("/signup/request-otp", response_model=schemas.Message, status_code=status.HTTP_202_ACCEPTED)
def request_signup_otp(
        data: schemas.OTPRequest,
        service: AccountService = Depends(get_account_service)
):
    service.request_otp(data.email)
    return {"message": "Verification code sent."}


@router.post("/signup/verify", response_model=schemas.User, status_code=status.HTTP_201_CREATED)
def verify_and_create_account(
        data: schemas.SignupVerify,
        background_tasks: BackgroundTasks,
        service: AccountService = Depends(get_account_service),
        sender=Depends(get_sender),
        settings: Settings = Depends(get_settings_dep)
):
    user = service.verify_and_create(
        email=data.email,
        username=data.username,
        password=data.password,
        code=data.otp,
    )
    background_tasks.add_task(send_welcome_email, sender, user.email, user.username, settings.APP_NAME)
    return user


@router.post("/login", response_model=schemas.Token)
def login_for_access_token(
        response: Response,
        form_data: OAuth2PasswordRequestForm = Depends(),
        service: AccountService = Depends(get_account_service),
        settings: Settings = Depends(get_settings_dep)
):
    _, access_token = service.login(form_data.username, form_data.password)
    set_auth_cookie(response, access_token, settings)
    return {"access_token": access_token, "token_type": "bearer"}


@router.post("/logout", response_model=schemas.LogoutResult)
def logout(
        response: Response,
        token: str = Depends(get_token_from_cookie_or_header),
        service: AccountService = Depends(get_account_service)
):
    revoked = False
    if token:
        try:
            service.logout(token)
            revoked = True
        except LogoutFailed:
            logger.warning("Session revocation failed; clearing client state anyway")
    response.delete_cookie(key="token")
    return {
        "message": "Logged out successfully" if revoked else "Logged out locally",
        "session_revoked": revoked,
    }


@router.post("/password-reset/request", response_model=schemas.Message, status_code=status.HTTP_202_ACCEPTED)
def request_password_reset(
        data: schemas.OTPRequest,
        service: AccountService = Depends(get_account_service)
):
    service.request_password_reset(data.email)
    return {"message": "Password reset code sent."}


@router.post("/password-reset/confirm", response_model=schemas.Message)
def confirm_password_reset(
        data: schemas.PasswordResetConfirm,
        service: AccountService = Depends(get_account_service)
):
    service.reset_password(data.email, data.otp, data.new_password)
    return {"message": "Your password has been updated. You can now sign in."}


@router.get("/users/me", response_model=schemas.User)
def read_users_me(current_user=Depends(get_current_user)):
    return current_user
