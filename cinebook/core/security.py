from __future__ import annotations
import hmac
import secrets
import string
from datetime import datetime, timedelta, timezone
from jose import jwt
from pwdlib import PasswordHash

password_hash = PasswordHash.recommended()


def verify_password(plain_password, password):
    return password_hash.verify(plain_password, password)


def get_password_hash(password):
    return password_hash.hash(password)


def create_access_token(data: dict, secret_key: str, algorithm: str, expires_delta: timedelta | None = None):
    to_encode = data.copy()
    if expires_delta:
        expire = datetime.now(timezone.utc) + expires_delta
    else:
        expire = datetime.now(timezone.utc) + timedelta(minutes=15)

    to_encode.update({"exp": expire})
    encoded_jwt = jwt.encode(to_encode, secret_key, algorithm=algorithm)
    return encoded_jwt


def decode_access_token(token: str, secret_key: str, algorithm: str, verify_exp: bool = True) -> dict:
    """Raises jose.JWTError when the token is malformed, tampered with or (unless told otherwise) expired."""
    return jwt.decode(token, secret_key, algorithms=[algorithm], options={"verify_exp": verify_exp})


def generate_session_id():
    return secrets.token_urlsafe(32)


def generate_numeric_code(length=6):
    return ''.join(secrets.choice(string.digits) for _ in range(length))


def codes_match(expected: str, submitted: str) -> bool:
    return hmac.compare_digest(expected.encode("utf-8"), submitted.encode("utf-8"))
