from __future__ import annotations

from pydantic import BaseModel, EmailStr, Field, field_validator

class RegisterRequest(BaseModel):
    email: EmailStr
    child_nickname: str = Field(min_length=1, max_length=120)
    password: str = Field(min_length=8, max_length=128)  # allow chars, enforce bytes below
    invite_code: str | None = Field(default=None, min_length=4, max_length=32)

    @field_validator("password")
    @classmethod
    def password_bcrypt_bytes(cls, v: str) -> str:
        if len(v.encode("utf-8")) > 72:
            raise ValueError("password must be 72 bytes or fewer (bcrypt limit)")
        return v

    @field_validator("child_nickname")
    @classmethod
    def child_nickname_not_blank(cls, v: str) -> str:
        v = v.strip()
        if not v:
            raise ValueError("child_nickname must not be blank")
        return v


class RegisterResponse(BaseModel):
    id: str
    invitation_accepted: bool | None = None


class LoginRequest(BaseModel):
    email: EmailStr
    password: str = Field(min_length=8, max_length=128)  # allow chars, enforce bytes below

    @field_validator("password")
    @classmethod
    def password_bcrypt_bytes(cls, v: str) -> str:
        if len(v.encode("utf-8")) > 72:
            raise ValueError("password must be 72 bytes or fewer (bcrypt limit)")
        return v

class LoginResponse(BaseModel):
    ok: bool


class FirebaseLoginRequest(BaseModel):
    id_token: str = Field(min_length=1)
    child_nickname: str | None = Field(default=None, max_length=120)


class FirebaseLoginResponse(BaseModel):
    id: str
    created: bool


class LogoutResponse(BaseModel):
    ok: bool


class MeResponse(BaseModel):
    id: str
    email: str
    child_nickname: str
    friend_count: int


class UpdateMeRequest(BaseModel):
    child_nickname: str = Field(min_length=1, max_length=120)

    @field_validator("child_nickname")
    @classmethod
    def child_nickname_not_blank(cls, v: str) -> str:
        v = v.strip()
        if not v:
            raise ValueError("child_nickname must not be blank")
        return v
