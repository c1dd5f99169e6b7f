"""One-time code issuance and validation.

A code is redeemable only while the ``otps`` row for its email still holds it
and the row's expiry has not passed. Every failure collapses into a single
``False`` so callers cannot tell a wrong code from an expired or consumed one.
"""
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone

from sqlalchemy.orm import Session

from . import crud
from .core.security import codes_match, generate_numeric_code


@dataclass(frozen=True)
class OtpGrant:
    email: str
    code: str
    expires_at: datetime


def as_utc(value: datetime) -> datetime:
    # SQLite hands back naive datetimes; everything is stored in UTC.
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


def generate(email: str, now: datetime, length: int = 6, ttl_minutes: int = 10) -> OtpGrant:
    return OtpGrant(
        email=email,
        code=generate_numeric_code(length),
        expires_at=now + timedelta(minutes=ttl_minutes),
    )


def validate(db: Session, email: str, submitted_code: str, now: datetime) -> bool:
    pending = crud.get_pending_otp(db, email=email)
    if pending is None:
        return False
    matches = codes_match(pending.otp, submitted_code or "")
    expired = as_utc(now) > as_utc(pending.expires_at)
    return matches and not expired
