"""Google sign-in: ID token verification against Google's published keys."""

from __future__ import annotations

import logging

from jose import JWTError, jwt
from jose.exceptions import JOSEError
from pydantic import ValidationError

from family_cloud.schemas.auth import GoogleClaims
from family_cloud.services.jwks import JwksCache
from family_cloud.utils.tokens import TokenValidationError

logger = logging.getLogger(__name__)


class GoogleTokenVerifier:
    """Validates the ``credential`` posted by the Google sign-in button."""

    ISSUERS = ("accounts.google.com", "https://accounts.google.com")

    def __init__(self, client_id: str, jwks: JwksCache):
        self._client_id = client_id
        self._jwks = jwks

    async def verify(self, credential: str) -> GoogleClaims:
        """Check signature, audience, issuer and expiry, then type the claims.

        Raises TokenValidationError on any failure; httpx.HTTPError or
        JwksFetchError if the key set cannot be fetched.
        """
        if not self._client_id:
            raise TokenValidationError("Google sign-in is not configured")
        try:
            header = jwt.get_unverified_header(credential)
        except JWTError as exc:
            raise TokenValidationError(str(exc)) from exc

        key = await self._jwks.get_key(header.get("kid", ""))
        try:
            payload = jwt.decode(
                credential,
                key,
                algorithms=["RS256"],
                audience=self._client_id,
                options={"verify_at_hash": False},
            )
        except (JOSEError, ValueError) as exc:
            raise TokenValidationError(str(exc)) from exc

        if payload.get("iss") not in self.ISSUERS:
            raise TokenValidationError(f"Unexpected issuer: {payload.get('iss')}")

        try:
            return GoogleClaims.model_validate(payload)
        except ValidationError as exc:
            logger.warning("Google token is missing required claims: %s", exc)
            raise TokenValidationError("Google token is missing required claims") from exc
