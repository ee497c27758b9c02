"""Signing and validation of the tokens this API issues itself."""

from __future__ import annotations

from datetime import datetime, timedelta, timezone

from jose import JWTError, jwt
from pydantic import ValidationError

from family_cloud.config import Settings
from family_cloud.schemas.auth import AwsCredentials, GoogleClaims, SessionClaims

SESSION_AUDIENCE = "family-cloud-api"


class TokenValidationError(Exception):
    """A token is malformed, expired, badly signed, or lacks a required claim."""


def sign_credentials_token(credentials: AwsCredentials, settings: Settings) -> str:
    """Wrap temporary AWS credentials in a short-lived signed token."""
    expires = datetime.now(timezone.utc) + timedelta(minutes=settings.credentials_expire_minutes)
    claims = credentials.model_dump()
    claims["exp"] = expires
    return jwt.encode(claims, settings.secret_key, algorithm=settings.token_algorithm)


def decode_credentials_token(token: str, settings: Settings) -> AwsCredentials:
    try:
        payload = jwt.decode(token, settings.secret_key, algorithms=[settings.token_algorithm])
        return AwsCredentials.model_validate(payload)
    except (JWTError, ValidationError) as exc:
        raise TokenValidationError(str(exc)) from exc


def sign_session_token(claims: GoogleClaims, settings: Settings) -> str:
    now = datetime.now(timezone.utc)
    payload = {
        "sub": claims.sub,
        "aud": SESSION_AUDIENCE,
        "iat": now,
        "exp": now + timedelta(days=settings.session_expire_days),
        "email": claims.email,
        "name": claims.name,
        "picture": claims.picture,
        "provider": "google",
    }
    return jwt.encode(payload, settings.secret_key, algorithm=settings.token_algorithm)


def decode_session_token(token: str, settings: Settings) -> SessionClaims:
    try:
        payload = jwt.decode(
            token,
            settings.secret_key,
            algorithms=[settings.token_algorithm],
            audience=SESSION_AUDIENCE,
        )
        return SessionClaims.model_validate(payload)
    except (JWTError, ValidationError) as exc:
        raise TokenValidationError(str(exc)) from exc
