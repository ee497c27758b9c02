"""Business logic services: singleton registry."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from family_cloud.config import Settings

if TYPE_CHECKING:
    from family_cloud.services.cognito_service import CognitoService
    from family_cloud.services.google_sso import GoogleTokenVerifier
    from family_cloud.services.jwks import JwksCache
    from family_cloud.services.s3_store import S3ObjectStore

logger = logging.getLogger(__name__)

_cognito_jwks: JwksCache | None = None
_google_verifier: GoogleTokenVerifier | None = None
_cognito_service: CognitoService | None = None
_object_store: S3ObjectStore | None = None


async def init_services(settings: Settings) -> None:
    """Create and wire up all service singletons."""
    global _cognito_jwks, _google_verifier, _cognito_service, _object_store

    from family_cloud.services.cognito_service import CognitoService
    from family_cloud.services.google_sso import GoogleTokenVerifier
    from family_cloud.services.jwks import JwksCache
    from family_cloud.services.s3_store import S3ObjectStore

    _cognito_jwks = JwksCache(settings.cognito_jwks_url, ttl_seconds=settings.jwks_cache_seconds)
    _google_verifier = GoogleTokenVerifier(
        settings.google_client_id,
        JwksCache(settings.google_certs_url, ttl_seconds=settings.jwks_cache_seconds),
    )
    _cognito_service = CognitoService(settings)
    _object_store = S3ObjectStore(
        bucket=settings.s3_bucket,
        region=settings.s3_region,
        endpoint_url=settings.s3_endpoint_url,
        presign_expire_seconds=settings.presign_expire_seconds,
    )

    if not settings.cognito_jwks_url:
        logger.warning(
            "Cognito JWKS URL not configured (FAMILY_CLOUD_COGNITO_JWKS_URL); "
            "only Google session tokens will authenticate"
        )
    if not settings.google_client_id:
        logger.warning("Google client ID not configured, Google sign-in disabled")
    logger.info("Services initialized (bucket: %s)", settings.s3_bucket)


async def shutdown_services() -> None:
    global _cognito_jwks, _google_verifier, _cognito_service, _object_store
    _cognito_jwks = None
    _google_verifier = None
    _cognito_service = None
    _object_store = None
    logger.info("Services shut down")


def get_cognito_jwks() -> JwksCache:
    if _cognito_jwks is None:
        raise RuntimeError("Cognito JWKS cache not initialized")
    return _cognito_jwks


def get_google_verifier() -> GoogleTokenVerifier:
    if _google_verifier is None:
        raise RuntimeError("Google verifier not initialized")
    return _google_verifier


def get_cognito_service() -> CognitoService:
    if _cognito_service is None:
        raise RuntimeError("Cognito service not initialized")
    return _cognito_service


def get_object_store() -> S3ObjectStore:
    if _object_store is None:
        raise RuntimeError("Object store not initialized")
    return _object_store
