"""Cognito hosted UI token exchange and identity-pool credentials."""

from __future__ import annotations

import logging

import httpx
from aiobotocore.session import get_session
from botocore.exceptions import BotoCoreError, ClientError
from pydantic import ValidationError

from family_cloud.config import Settings
from family_cloud.schemas.auth import AwsCredentials, TokenSet

logger = logging.getLogger(__name__)


class CognitoError(Exception):
    """Token exchange or credential lookup against Cognito failed."""


class CognitoService:
    """OAuth2 code/refresh exchange (httpx) and identity pool lookups (aiobotocore)."""

    REQUEST_TIMEOUT = 10.0  # seconds

    def __init__(self, settings: Settings):
        self._client_id = settings.cognito_client_id
        self._client_secret = settings.cognito_client_secret
        self._redirect_url = settings.cognito_redirect_url
        self._auth_host = settings.cognito_auth_host.rstrip("/")
        self._region = settings.cognito_region
        self._user_pool_id = settings.cognito_user_pool_id
        self._identity_pool_id = settings.cognito_identity_pool_id

    @property
    def _provider_name(self) -> str:
        return f"cognito-idp.{self._region}.amazonaws.com/{self._user_pool_id}"

    async def _token_request(self, data: dict[str, str]) -> dict:
        try:
            async with httpx.AsyncClient(timeout=self.REQUEST_TIMEOUT) as client:
                resp = await client.post(
                    f"{self._auth_host}/oauth2/token",
                    data=data,
                    auth=(self._client_id, self._client_secret),
                )
        except httpx.HTTPError as exc:
            logger.warning("Cognito unreachable for token exchange: %s", exc)
            raise CognitoError("Cognito is not reachable") from exc

        if resp.status_code != 200:
            detail = "Token exchange failed"
            try:
                detail = resp.json().get("error", detail)
            except ValueError:
                pass
            logger.warning("Cognito token exchange rejected (%s): %s", resp.status_code, detail)
            raise CognitoError(detail)
        try:
            return resp.json()
        except ValueError as exc:
            logger.warning("Cognito token endpoint returned a non-JSON body")
            raise CognitoError("Malformed token response") from exc

    async def exchange_code(self, code: str) -> TokenSet:
        """Trade an authorization code from the hosted UI for a token set."""
        if not code:
            raise CognitoError("No code provided")
        payload = await self._token_request(
            {
                "grant_type": "authorization_code",
                "code": code,
                "client_id": self._client_id,
                "redirect_uri": self._redirect_url,
            }
        )
        try:
            return TokenSet.model_validate(payload)
        except ValidationError as exc:
            raise CognitoError("Malformed token response") from exc

    async def refresh(self, refresh_token: str) -> TokenSet:
        """Cognito does not rotate refresh tokens; the old one stays valid."""
        payload = await self._token_request(
            {
                "grant_type": "refresh_token",
                "refresh_token": refresh_token,
                "client_id": self._client_id,
            }
        )
        try:
            tokens = TokenSet.model_validate(payload)
        except ValidationError as exc:
            raise CognitoError("Malformed token response") from exc
        if tokens.refresh_token is None:
            tokens.refresh_token = refresh_token
        return tokens

    async def get_credentials(self, id_token: str) -> AwsCredentials:
        """Temporary AWS credentials for the identity behind ``id_token``."""
        logins = {self._provider_name: id_token}
        session = get_session()
        try:
            async with session.create_client("cognito-identity", region_name=self._region) as client:
                identity = await client.get_id(
                    IdentityPoolId=self._identity_pool_id,
                    Logins=logins,
                )
                res = await client.get_credentials_for_identity(
                    IdentityId=identity["IdentityId"],
                    Logins=logins,
                )
        except (ClientError, BotoCoreError) as exc:
            logger.warning("Cognito identity pool lookup failed: %s", exc)
            raise CognitoError("Error getting credentials") from exc

        creds = res["Credentials"]
        return AwsCredentials(
            access_key_id=creds["AccessKeyId"],
            secret_access_key=creds["SecretKey"],
            session_token=creds["SessionToken"],
        )
