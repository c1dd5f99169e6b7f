from __future__ import annotations
from datetime import datetime
from pydantic import BaseModel, EmailStr, Field
from typing import List, Optional

PASSWORD_MIN_LENGTH = 6


class OTPRequest(BaseModel):
    email: EmailStr


class SignupVerify(BaseModel):
    email: EmailStr
    username: str = Field(min_length=3, max_length=32, pattern=r"^[A-Za-z0-9_.-]+$")
    password: str = Field(min_length=PASSWORD_MIN_LENGTH)
    otp: str = Field(max_length=16)


class PasswordResetConfirm(BaseModel):
    email: EmailStr
    otp: str = Field(max_length=16)
    new_password: str = Field(min_length=PASSWORD_MIN_LENGTH)


class Message(BaseModel):
    message: str


class LogoutResult(Message):
    session_revoked: bool


class Token(BaseModel):
    access_token: str
    token_type: str


class User(BaseModel):
    id: int
    username: str
    email: str
    created_at: Optional[datetime] = None

    class Config:
        from_attributes = True


class MovieIn(BaseModel):
    movie_id: int
    title: str = Field(min_length=1)
    poster_url: Optional[str] = None
    release_date: Optional[str] = None
    vote_average: Optional[float] = None


class WatchlistItem(MovieIn):
    added_at: Optional[datetime] = None

    class Config:
        from_attributes = True


class RejectIn(BaseModel):
    movie_id: int


class RejectedList(BaseModel):
    movie_ids: List[int]
