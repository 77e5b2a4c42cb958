# =============================================================================
# app/auth/models.py - Authentication Models
# =============================================================================
# Pydantic models for authentication data.
# =============================================================================

from typing import Optional

from pydantic import BaseModel, ConfigDict


class AuthUser(BaseModel):
    """
    Authenticated user extracted from a bearer token.

    This is the minimal user info available from the token itself.
    """
    model_config = ConfigDict(frozen=True)

    id: str
    email: Optional[str] = None
    role: Optional[str] = None


class UserResponse(BaseModel):
    """User info returned by GET /auth/me."""
    id: str
    email: Optional[str] = None
    role: Optional[str] = None
    authenticated: bool = True


class TokenPayload(BaseModel):
    """
    Decoded JWT token payload.

    Standard claims plus the optional email and role.
    """
    sub: str  # User ID
    email: Optional[str] = None
    aud: str  # Audience
    exp: int  # Expiration timestamp
    iat: Optional[int] = None  # Issued at timestamp
    role: Optional[str] = None
