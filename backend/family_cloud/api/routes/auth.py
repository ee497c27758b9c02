"""Auth routes: Cognito hosted UI callback, Google sign-in, credentials."""

from __future__ import annotations

import logging

import httpx
from fastapi import APIRouter, Depends, Form, HTTPException, Request, status
from fastapi.responses import JSONResponse, RedirectResponse, Response
from jose import JWTError, jwt
from pydantic import ValidationError
from sqlalchemy.ext.asyncio import AsyncSession

from family_cloud.api.deps import (
    CREDENTIALS_COOKIE,
    TOKEN_COOKIE,
    get_app_settings,
    get_bearer_token,
    get_current_user,
)
from family_cloud.config import Settings
from family_cloud.database import get_db
from family_cloud.schemas.auth import (
    CognitoClaims,
    CredentialsResponse,
    RefreshResponse,
    UserInfo,
)
from family_cloud.services import get_cognito_service, get_google_verifier
from family_cloud.services.cognito_service import CognitoError, CognitoService
from family_cloud.services.google_sso import GoogleTokenVerifier
from family_cloud.services.jwks import JwksFetchError
from family_cloud.services.users import upsert_user
from family_cloud.utils.tokens import (
    TokenValidationError,
    sign_credentials_token,
    sign_session_token,
)

logger = logging.getLogger(__name__)
router = APIRouter()

ACCESS_TOKEN_COOKIE = "access_token"
REFRESH_TOKEN_COOKIE = "refresh_token"
CSRF_COOKIE = "g_csrf_token"


def _set_cookie(
    response: Response,
    settings: Settings,
    name: str,
    value: str,
    max_age: int | None = None,
    httponly: bool = False,
) -> None:
    response.set_cookie(
        name,
        value,
        max_age=max_age,
        path="/",
        secure=settings.is_production,
        httponly=httponly,
        samesite="lax",
    )


def _sso_redirect(settings: Settings, outcome: str) -> RedirectResponse:
    return RedirectResponse(
        f"{settings.client_url}/home?sso={outcome}",
        status_code=status.HTTP_302_FOUND,
    )


@router.get("/cognito/callback")
async def cognito_callback(
    code: str = "",
    settings: Settings = Depends(get_app_settings),
    cognito: CognitoService = Depends(get_cognito_service),
    db: AsyncSession = Depends(get_db),
):
    """Hosted UI redirect target: exchange the code, mint credentials, set cookies."""
    try:
        tokens = await cognito.exchange_code(code)
        credentials = await cognito.get_credentials(tokens.id_token)
        # Straight from the token endpoint over TLS, so the claims are trusted as is
        claims = CognitoClaims.model_validate(jwt.get_unverified_claims(tokens.id_token))
    except (CognitoError, JWTError, ValidationError) as exc:
        logger.warning("Cognito sign-in failed: %s", exc)
        return _sso_redirect(settings, "error")

    await upsert_user(
        db,
        user_id=claims.sub,
        email=claims.email or claims.username or claims.sub,
        provider="cognito",
        name=claims.name,
        given_name=claims.given_name,
        family_name=claims.family_name,
        picture=claims.picture,
        email_verified=claims.email_verified,
    )

    response = _sso_redirect(settings, "success")
    _set_cookie(
        response,
        settings,
        CREDENTIALS_COOKIE,
        sign_credentials_token(credentials, settings),
        max_age=settings.credentials_expire_minutes * 60,
    )
    _set_cookie(response, settings, TOKEN_COOKIE, tokens.id_token, max_age=tokens.expires_in)
    _set_cookie(response, settings, ACCESS_TOKEN_COOKIE, tokens.access_token, max_age=tokens.expires_in)
    if tokens.refresh_token:
        _set_cookie(response, settings, REFRESH_TOKEN_COOKIE, tokens.refresh_token, httponly=True)
    logger.info("Cognito sign-in for %s", claims.email or claims.sub)
    return response


@router.get("/cognito/refreshtoken", response_model=RefreshResponse)
async def cognito_refresh_token(
    request: Request,
    settings: Settings = Depends(get_app_settings),
    cognito: CognitoService = Depends(get_cognito_service),
):
    """Renew the ID and access token cookies from the refresh token cookie."""
    refresh_token = request.cookies.get(REFRESH_TOKEN_COOKIE)
    if not refresh_token:
        raise HTTPException(status.HTTP_401_UNAUTHORIZED, "No refresh token provided")
    try:
        tokens = await cognito.refresh(refresh_token)
    except CognitoError as exc:
        raise HTTPException(status.HTTP_401_UNAUTHORIZED, f"Token refresh failed: {exc}")

    response = JSONResponse(RefreshResponse(expires_in=tokens.expires_in).model_dump())
    _set_cookie(response, settings, TOKEN_COOKIE, tokens.id_token, max_age=tokens.expires_in)
    _set_cookie(response, settings, ACCESS_TOKEN_COOKIE, tokens.access_token, max_age=tokens.expires_in)
    return response


@router.get("/cognito/credentials", response_model=CredentialsResponse)
async def cognito_credentials(
    token: str = Depends(get_bearer_token),
    current_user: UserInfo = Depends(get_current_user),
    settings: Settings = Depends(get_app_settings),
    cognito: CognitoService = Depends(get_cognito_service),
):
    """Fresh temporary AWS credentials for the caller, as cookie and body."""
    if current_user.provider != "cognito":
        raise HTTPException(status.HTTP_403_FORBIDDEN, "Credentials require a Cognito sign-in")
    try:
        credentials = await cognito.get_credentials(token)
    except CognitoError as exc:
        raise HTTPException(status.HTTP_502_BAD_GATEWAY, str(exc))

    signed = sign_credentials_token(credentials, settings)
    response = JSONResponse(CredentialsResponse(credentials=signed).model_dump())
    _set_cookie(
        response,
        settings,
        CREDENTIALS_COOKIE,
        signed,
        max_age=settings.credentials_expire_minutes * 60,
    )
    return response


@router.post("/google/sso")
async def google_sso(
    request: Request,
    credential: str = Form(""),
    g_csrf_token: str = Form(""),
    settings: Settings = Depends(get_app_settings),
    verifier: GoogleTokenVerifier = Depends(get_google_verifier),
    db: AsyncSession = Depends(get_db),
):
    """Google sign-in button callback (double-submit CSRF cookie)."""
    if not credential:
        raise HTTPException(status.HTTP_400_BAD_REQUEST, "Missing credential")
    if not g_csrf_token or request.cookies.get(CSRF_COOKIE) != g_csrf_token:
        raise HTTPException(status.HTTP_400_BAD_REQUEST, "Failed to verify double submit cookie")

    try:
        claims = await verifier.verify(credential)
    except TokenValidationError as exc:
        logger.warning("Google sign-in rejected: %s", exc)
        raise HTTPException(status.HTTP_401_UNAUTHORIZED, "Invalid Google credential")
    except (httpx.HTTPError, JwksFetchError) as exc:
        logger.warning("Google certificates unreachable: %s", exc)
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="Google is not reachable. Sign-in requires Google connectivity.",
        )

    await upsert_user(
        db,
        user_id=claims.sub,
        email=claims.email,
        provider="google",
        name=claims.name,
        given_name=claims.given_name,
        family_name=claims.family_name,
        picture=claims.picture,
        email_verified=claims.email_verified,
    )

    response = _sso_redirect(settings, "success")
    _set_cookie(
        response,
        settings,
        TOKEN_COOKIE,
        sign_session_token(claims, settings),
        max_age=settings.session_expire_days * 24 * 3600,
    )
    logger.info("Google sign-in for %s", claims.email)
    return response


@router.get("/me", response_model=UserInfo)
async def me(current_user: UserInfo = Depends(get_current_user)):
    return current_user
