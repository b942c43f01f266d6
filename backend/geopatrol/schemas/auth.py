"""
GeoPatrol Backend — Authentication Schemas
============================================

What:  Request/response contracts for /api/register and /api/login, plus the
       decoded bearer-token payload.

Why fields are Optional on the request:
    A missing username must come back as the app's 400 message, not as
    FastAPI's generic 422. Emptiness is checked in AuthService.
"""

from typing import Optional

from pydantic import BaseModel, Field


class CredentialsRequest(BaseModel):
    """Body of POST /api/register and POST /api/login."""

    username: Optional[str] = Field(default=None, description="Courier login name")
    password: Optional[str] = Field(default=None, description="Plaintext password (never stored)")


class MessageResponse(BaseModel):
    message: str = Field(description="Human-readable success message")


class LoginResponse(BaseModel):
    message: str = Field(default="Login sukses")
    token: str = Field(description="Signed bearer token, valid for one hour")


class TokenPayload(BaseModel):
    """
    Claims carried by a session token.

    Exists only for the duration of one request; nothing is persisted.
    """

    id: int = Field(description="Courier id")
    username: str
    exp: int = Field(description="Expiry (seconds since epoch)")
    iat: Optional[int] = None
