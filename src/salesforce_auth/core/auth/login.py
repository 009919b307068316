"""
Member login.

Issues the signed login token for a member once Salesforce has vouched for
them and attaches it to the outgoing response as a cookie.
"""

import uuid
from datetime import datetime, timedelta, timezone

from fastapi import Response
from jose import jwt

from salesforce_auth.config.settings import get_settings
from salesforce_auth.domain.models import Member

TOKEN_TYPE = "login"


def login_lifetime(remember: bool) -> timedelta:
    """Return how long a login lasts."""
    settings = get_settings()
    if remember:
        return timedelta(days=settings.remember_expire_days)
    return timedelta(minutes=settings.session_expire_minutes)


def create_login_token(member: Member, remember: bool = False) -> str:
    """
    Create a JWT login token for a member.

    Args:
        member: Member being logged in
        remember: Whether the login outlives the browser session

    Returns:
        Encoded JWT token string
    """
    settings = get_settings()
    now = datetime.now(timezone.utc)

    to_encode = {
        "sub": str(member.id),
        "email": member.email,
        "remember": remember,
        "exp": now + login_lifetime(remember),
        "iat": now,
        "type": TOKEN_TYPE,
        "jti": str(uuid.uuid4()),
    }

    return jwt.encode(to_encode, settings.jwt_secret_key, algorithm=settings.jwt_algorithm)


def verify_login_token(token: str) -> dict:
    """
    Verify and decode a login token.

    Args:
        token: JWT token string

    Returns:
        Decoded token payload

    Raises:
        JWTError: If token is invalid or expired
        ValueError: If token is not a login token
    """
    settings = get_settings()
    payload = jwt.decode(token, settings.jwt_secret_key, algorithms=[settings.jwt_algorithm])

    if payload.get("type") != TOKEN_TYPE:
        raise ValueError(f"Invalid token type. Expected {TOKEN_TYPE}, got {payload.get('type')}")

    return payload


def log_in(member: Member, response: Response, remember: bool = False) -> str:
    """
    Mark a member as logged in on the given response.

    Remembered logins get a persistent cookie; otherwise the cookie lasts
    for the browser session only.

    Args:
        member: Member being logged in
        response: Response the login cookie is set on
        remember: Whether to remember the login

    Returns:
        The issued login token
    """
    settings = get_settings()
    token = create_login_token(member, remember)

    max_age = int(login_lifetime(remember).total_seconds()) if remember else None
    response.set_cookie(
        key=settings.login_cookie_name,
        value=token,
        max_age=max_age,
        httponly=True,
        secure=settings.login_cookie_secure,
        samesite="lax",
    )

    return token
