from typing import Optional

from pydantic import BaseModel, Field


class RegisterRequest(BaseModel):
    username: Optional[str] = Field(default=None, max_length=50)
    email: Optional[str] = Field(default=None, max_length=255)
    password: Optional[str] = Field(default=None, max_length=128)


class RegisterResponse(BaseModel):
    message: str
    email: str
    expires_in_seconds: int
    otp: Optional[str] = None


class VerifyOtpRequest(BaseModel):
    email: Optional[str] = Field(default=None, max_length=255)
    otp: Optional[str] = Field(default=None, max_length=10)


class LoginRequest(BaseModel):
    username: Optional[str] = None
    password: Optional[str] = None


class TokenResponse(BaseModel):
    token: str


class MessageResponse(BaseModel):
    message: str
