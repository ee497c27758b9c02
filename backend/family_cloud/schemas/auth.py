"""Auth schemas: typed token claims and SSO responses."""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field


class TokenSet(BaseModel):
    """Response of the Cognito ``/oauth2/token`` endpoint."""
    access_token: str
    id_token: str
    refresh_token: str | None = None
    token_type: str = "Bearer"
    expires_in: int = 3600


class GoogleClaims(BaseModel):
    """Claims of a Google sign-in ID token."""
    sub: str
    email: str
    email_verified: bool
    name: str
    picture: str | None = None
    given_name: str | None = None
    family_name: str | None = None


class CognitoClaims(BaseModel):
    """Claims of a Cognito user pool ID token."""

    model_config = ConfigDict(populate_by_name=True)

    sub: str
    email: str | None = None
    username: str | None = Field(default=None, alias="cognito:username")
    groups: list[str] = Field(default_factory=list, alias="cognito:groups")
    preferred_role: str | None = Field(default=None, alias="cognito:preferred_role")
    roles: list[str] = Field(default_factory=list, alias="cognito:roles")
    name: str | None = None
    given_name: str | None = None
    family_name: str | None = None
    picture: str | None = None
    email_verified: bool = False


class SessionClaims(BaseModel):
    """Claims of the session token we issue after Google sign-in."""
    sub: str
    email: str
    name: str | None = None
    picture: str | None = None
    provider: str = "google"


class AwsCredentials(BaseModel):
    """Temporary AWS credentials from the Cognito identity pool."""
    access_key_id: str
    secret_access_key: str
    session_token: str


class UserInfo(BaseModel):
    """Authenticated caller, regardless of identity provider."""
    id: str
    username: str
    email: str | None = None
    name: str | None = None
    groups: list[str] = []
    provider: str


class CredentialsResponse(BaseModel):
    credentials: str


class RefreshResponse(BaseModel):
    expires_in: int
