from fastapi import Request, HTTPException, status, Depends
from sqlalchemy.orm import Session

from .config import Settings
from ..database import get_db
from ..services import AccountService


def get_settings_dep(request: Request) -> Settings:
    return request.app.state.settings


def get_sender(request: Request):
    return request.app.state.sender


def get_account_service(
        request: Request, db: Session = Depends(get_db)
) -> AccountService:
    return AccountService(
        db,
        request.app.state.sender,
        request.app.state.settings,
        clock=request.app.state.clock,
    )


def get_token_from_cookie_or_header(request: Request):
    token = request.cookies.get("token")
    if token:
        return token.replace("Bearer ", "")

    auth_header = request.headers.get("Authorization")
    if auth_header:
        return auth_header.replace("Bearer ", "")

    return None


def get_current_user(
        token: str = Depends(get_token_from_cookie_or_header),
        service: AccountService = Depends(get_account_service)
):
    credentials_exception = HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail="Could not validate credentials",
        headers={"WWW-Authenticate": "Bearer"},
    )
    if not token:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Not authenticated",
            headers={"WWW-Authenticate": "Bearer"},
        )
    user = service.authenticate(token)
    if user is None:
        raise credentials_exception
    return user
