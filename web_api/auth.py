"""
JWT authentication utilities for the web API.

Sessions are issued by the external identity provider; this module only
verifies them. The token is read from the "session" cookie or from an
Authorization: Bearer header.

Tokens are HS256-signed; expiry is enforced when an "exp" claim is present.
"""

import os

import jwt
from fastapi import HTTPException, Request

JWT_SECRET = os.environ.get("JWT_SECRET")
JWT_ALGORITHM = "HS256"


def verify_jwt(token: str) -> dict | None:
    """
    Verify and decode a JWT token.

    Args:
        token: The JWT token string

    Returns:
        Decoded payload dict if valid, None if invalid
    """
    if not JWT_SECRET:
        raise ValueError("JWT_SECRET environment variable not set")

    try:
        return jwt.decode(token, JWT_SECRET, algorithms=[JWT_ALGORITHM])
    except jwt.InvalidTokenError:
        return None


def _extract_token(request: Request) -> str | None:
    token = request.cookies.get("session")
    if token:
        return token

    authorization = request.headers.get("Authorization", "")
    scheme, _, credentials = authorization.partition(" ")
    if scheme.lower() == "bearer" and credentials:
        return credentials.strip()
    return None


async def get_current_user(request: Request) -> dict:
    """
    FastAPI dependency to get the current authenticated user.

    Args:
        request: The FastAPI request object

    Returns:
        The decoded JWT payload with user info

    Raises:
        HTTPException: 401 if not authenticated or invalid token
    """
    token = _extract_token(request)
    if not token:
        raise HTTPException(status_code=401, detail="Not authenticated")

    payload = verify_jwt(token)
    if not payload or not payload.get("sub") or not payload.get("email"):
        raise HTTPException(status_code=401, detail="Invalid or expired token")

    return payload
