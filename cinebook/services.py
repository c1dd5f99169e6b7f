"""Signup, password reset and session orchestration.

Signup per email moves through Start -> OtpPending -> Completed. The server
keeps no state between calls beyond the ``otps`` and ``users`` rows:

* ``request_otp`` refuses registered emails, upserts the pending code (a newer
  request replaces the older code) and mails it.
* ``verify_and_create`` redeems the code, inserts the user and deletes the
  pending row in one transaction. The unique constraints on ``users`` are the
  only serialization point between concurrent redemptions.
"""
import logging
from datetime import datetime, timedelta
from typing import Callable

from jose import JWTError
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session

from . import crud, models, otp
from .core import security
from .core.config import Settings
from .exceptions import (
    AccountCreationFailed,
    AccountNotFound,
    CredentialStoreError,
    DuplicateAccount,
    InvalidCredentials,
    InvalidOtp,
    LogoutFailed,
)
from .notifications import send_otp_email, send_password_reset_email

logger = logging.getLogger(__name__)


def normalize_email(email: str) -> str:
    return email.strip().lower()


class AccountService:
    def __init__(self, db: Session, sender, settings: Settings, clock: Callable[[], datetime] = models.utc_now):
        self.db = db
        self.sender = sender
        self.settings = settings
        self.clock = clock

    def _store_failure(self, action: str, exc: Exception):
        self.db.rollback()
        logger.exception("Credential store error while %s: %s", action, exc)
        return CredentialStoreError()

    def _issue_otp(self, email: str) -> otp.OtpGrant:
        grant = otp.generate(
            email,
            now=self.clock(),
            length=self.settings.OTP_LENGTH,
            ttl_minutes=self.settings.OTP_EXPIRE_MINUTES,
        )
        crud.upsert_pending_otp(self.db, email=email, otp=grant.code, expires_at=grant.expires_at)
        self.db.commit()
        return grant

    def request_otp(self, email: str) -> None:
        email = normalize_email(email)
        try:
            if crud.get_user_by_email(self.db, email=email):
                raise DuplicateAccount()
            grant = self._issue_otp(email)
        except SQLAlchemyError as e:
            raise self._store_failure("issuing a signup OTP", e)

        # The code is already stored. If mailing fails, a new request overwrites it.
        send_otp_email(
            self.sender,
            email,
            grant.code,
            expire_minutes=self.settings.OTP_EXPIRE_MINUTES,
            app_name=self.settings.APP_NAME,
        )
        logger.info("Signup OTP issued for %s, expires %s", email, grant.expires_at.isoformat())

    def verify_and_create(self, email: str, username: str, password: str, code: str) -> models.User:
        email = normalize_email(email)
        try:
            redeemable = otp.validate(self.db, email, code, now=self.clock())
        except SQLAlchemyError as e:
            raise self._store_failure("validating a signup OTP", e)
        if not redeemable:
            logger.info("Rejected signup OTP for %s", email)
            raise InvalidOtp()

        password_hash = security.get_password_hash(password)
        try:
            user = crud.create_user(self.db, email=email, username=username, password_hash=password_hash)
            consumed = crud.consume_pending_otp(self.db, email=email, otp=code)
            if not consumed:
                # Superseded by a newer request between validation and insert.
                self.db.rollback()
                raise InvalidOtp()
            self.db.commit()
        except IntegrityError as e:
            self.db.rollback()
            logger.warning("Account insert for %s rejected by uniqueness constraint: %s", email, e.orig)
            raise AccountCreationFailed() from e
        except SQLAlchemyError as e:
            self.db.rollback()
            logger.exception("Account insert for %s failed", email)
            raise AccountCreationFailed() from e

        self.db.refresh(user)
        logger.info("Created account %s for %s", user.id, email)
        return user

    def request_password_reset(self, email: str) -> None:
        email = normalize_email(email)
        try:
            if not crud.get_user_by_email(self.db, email=email):
                raise AccountNotFound()
            grant = self._issue_otp(email)
        except SQLAlchemyError as e:
            raise self._store_failure("issuing a password reset OTP", e)

        send_password_reset_email(
            self.sender,
            email,
            grant.code,
            expire_minutes=self.settings.OTP_EXPIRE_MINUTES,
            app_name=self.settings.APP_NAME,
        )
        logger.info("Password reset OTP issued for %s", email)

    def reset_password(self, email: str, code: str, new_password: str) -> None:
        email = normalize_email(email)
        password_hash = security.get_password_hash(new_password)
        try:
            if not otp.validate(self.db, email, code, now=self.clock()):
                raise InvalidOtp()
            user = crud.get_user_by_email(self.db, email=email)
            if user is None:
                raise InvalidOtp()
            if not crud.consume_pending_otp(self.db, email=email, otp=code):
                raise InvalidOtp()
            user.password = password_hash
            revoked = crud.delete_user_sessions(self.db, user_id=user.id)
            self.db.commit()
        except InvalidOtp:
            self.db.rollback()
            logger.info("Rejected password reset OTP for %s", email)
            raise
        except SQLAlchemyError as e:
            raise self._store_failure("resetting a password", e)
        logger.info("Password reset for user %s, %d session(s) revoked", user.id, revoked)

    def login(self, username: str, password: str) -> tuple[models.User, str]:
        try:
            user = crud.authenticate_user(self.db, username=username, password=password)
            if not user:
                raise InvalidCredentials()
            session_id = security.generate_session_id()
            ttl = timedelta(minutes=self.settings.ACCESS_TOKEN_EXPIRE_MINUTES)
            crud.create_session(self.db, session_id=session_id, user_id=user.id, expires_at=self.clock() + ttl)
            self.db.commit()
        except SQLAlchemyError as e:
            raise self._store_failure("creating a session", e)

        token = security.create_access_token(
            data={"sub": user.username, "sid": session_id},
            secret_key=self.settings.SECRET_KEY,
            algorithm=self.settings.ALGORITHM,
            expires_delta=ttl,
        )
        logger.info("User %s logged in", user.id)
        return user, token

    def authenticate(self, token: str):
        """Returns the user behind a live session token, or None."""
        try:
            payload = security.decode_access_token(token, self.settings.SECRET_KEY, self.settings.ALGORITHM)
        except JWTError:
            return None
        session_id = payload.get("sid")
        if not session_id:
            return None
        try:
            session = crud.get_session(self.db, session_id)
            if session is None or otp.as_utc(session.expires_at) <= otp.as_utc(self.clock()):
                return None
            user = crud.get_user(self.db, session.user_id)
        except SQLAlchemyError as e:
            raise self._store_failure("resolving a session", e)
        if user is None or user.username != payload.get("sub"):
            return None
        return user

    def logout(self, token: str) -> None:
        try:
            payload = security.decode_access_token(
                token, self.settings.SECRET_KEY, self.settings.ALGORITHM, verify_exp=False
            )
        except JWTError as e:
            raise LogoutFailed() from e
        session_id = payload.get("sid")
        if not session_id:
            raise LogoutFailed()
        try:
            crud.delete_session(self.db, session_id)
            self.db.commit()
        except SQLAlchemyError as e:
            self.db.rollback()
            logger.exception("Could not revoke session")
            raise LogoutFailed() from e
