"""FastAPI dependency injection: settings, auth, credentials and storage."""

from __future__ import annotations

import logging
from typing import Optional

import httpx
from fastapi import Depends, HTTPException, Request, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from jose import JWTError, jwt
from jose.exceptions import JOSEError

from family_cloud.config import Settings
from family_cloud.schemas.auth import AwsCredentials, CognitoClaims, UserInfo
from family_cloud.services import get_cognito_jwks, get_object_store
from family_cloud.services.jwks import JwksFetchError
from family_cloud.services.storage_service import StorageService
from family_cloud.utils.tokens import (
    TokenValidationError,
    decode_credentials_token,
    decode_session_token,
)

logger = logging.getLogger(__name__)

bearer_scheme = HTTPBearer(auto_error=False)

TOKEN_COOKIE = "token"
CREDENTIALS_COOKIE = "credentials"
CREDENTIALS_HEADER = "x-credentials"


def _unauthorized(detail: str) -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail=detail,
        headers={"WWW-Authenticate": "Bearer"},
    )


def get_app_settings(request: Request) -> Settings:
    return request.app.state.settings


async def get_bearer_token(
    request: Request,
    auth: Optional[HTTPAuthorizationCredentials] = Depends(bearer_scheme),
) -> str:
    """Bearer token from the Authorization header, else the ``token`` cookie."""
    if auth and auth.credentials:
        return auth.credentials
    token = request.cookies.get(TOKEN_COOKIE)
    if not token:
        raise _unauthorized("No authentication token provided")
    return token


async def get_current_user(
    token: str = Depends(get_bearer_token),
    settings: Settings = Depends(get_app_settings),
) -> UserInfo:
    """Validate the caller's token.

    Tokens signed with our own algorithm are Google session tokens; anything
    else must be an RS256 Cognito ID token checked against the pool's JWKS.
    """
    try:
        header = jwt.get_unverified_header(token)
    except JWTError:
        raise _unauthorized("Invalid or expired token")

    if header.get("alg") == settings.token_algorithm:
        try:
            session = decode_session_token(token, settings)
        except TokenValidationError:
            raise _unauthorized("Invalid or expired token")
        return UserInfo(
            id=session.sub,
            username=session.email,
            email=session.email,
            name=session.name,
            provider=session.provider,
        )

    if not settings.cognito_jwks_url:
        raise _unauthorized("Cognito sign-in is not configured")

    try:
        key = await get_cognito_jwks().get_key(header.get("kid", ""))
        payload = jwt.decode(
            token,
            key,
            algorithms=["RS256"],
            audience=settings.cognito_client_id or None,
            options={"verify_aud": bool(settings.cognito_client_id), "verify_at_hash": False},
        )
        claims = CognitoClaims.model_validate(payload)
    except (httpx.HTTPError, JwksFetchError) as exc:
        logger.warning("Cognito JWKS unreachable: %s", exc)
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="Identity provider is not reachable",
        )
    except (TokenValidationError, JOSEError, ValueError) as exc:
        logger.debug("Rejected Cognito token: %s", exc)
        raise _unauthorized("Invalid or expired token")

    return UserInfo(
        id=claims.sub,
        username=claims.username or claims.email or claims.sub,
        email=claims.email,
        name=claims.name,
        groups=claims.groups,
        provider="cognito",
    )


async def get_optional_credentials(
    request: Request,
    settings: Settings = Depends(get_app_settings),
) -> Optional[AwsCredentials]:
    """Temporary AWS credentials from the ``x-credentials`` header or cookie."""
    token = request.headers.get(CREDENTIALS_HEADER) or request.cookies.get(CREDENTIALS_COOKIE)
    if not token:
        return None
    try:
        return decode_credentials_token(token, settings)
    except TokenValidationError:
        raise _unauthorized("Invalid credentials")


async def get_storage_service(
    credentials: Optional[AwsCredentials] = Depends(get_optional_credentials),
) -> StorageService:
    store = get_object_store()
    if credentials is not None:
        store = store.with_credentials(credentials)
    return StorageService(store)
