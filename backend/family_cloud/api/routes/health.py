"""Health check for load balancers and the web client."""

from fastapi import APIRouter, Depends

from family_cloud import __version__
from family_cloud.api.deps import get_app_settings
from family_cloud.config import Settings
from family_cloud.schemas.system import HealthResponse

router = APIRouter()


def _sign_in_providers(settings: Settings) -> list[str]:
    providers = []
    if settings.cognito_jwks_url and settings.cognito_client_id:
        providers.append("cognito")
    if settings.google_client_id:
        providers.append("google")
    return providers


@router.get("/health", response_model=HealthResponse)
async def health_check(settings: Settings = Depends(get_app_settings)):
    """Reports which bucket is served and which SSO providers are configured.

    Does not call AWS; an unreachable bucket shows up on the /s3 routes.
    """
    return HealthResponse(
        version=__version__,
        environment=settings.environment,
        bucket=settings.s3_bucket,
        sign_in=_sign_in_providers(settings),
    )


@router.get("/ping")
async def ping():
    return {"status": "ok"}
