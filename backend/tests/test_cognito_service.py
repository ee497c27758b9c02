"""Tests for the Cognito token exchange and identity pool lookups."""

from unittest.mock import AsyncMock, MagicMock, patch

import httpx
import pytest
from botocore.exceptions import ClientError

from family_cloud.services.cognito_service import CognitoError, CognitoService


def _mock_http(status_code: int = 200, payload: dict | None = None) -> AsyncMock:
    mock_resp = MagicMock()
    mock_resp.status_code = status_code
    mock_resp.json.return_value = payload or {}

    mock_http = AsyncMock()
    mock_http.post = AsyncMock(return_value=mock_resp)
    mock_http.__aenter__ = AsyncMock(return_value=mock_http)
    mock_http.__aexit__ = AsyncMock(return_value=False)
    return mock_http


@pytest.fixture
def cognito(settings):
    return CognitoService(
        settings.model_copy(
            update={
                "cognito_client_secret": "client-secret",
                "cognito_redirect_url": "http://localhost:8080/api/auth/cognito/callback",
                "cognito_auth_host": "https://auth.test/",
            }
        )
    )


class TestTokenExchange:
    @pytest.mark.asyncio
    @patch("family_cloud.services.cognito_service.httpx.AsyncClient")
    async def test_exchange_code(self, mock_client_cls, cognito):
        mock_http = _mock_http(
            payload={
                "access_token": "access",
                "id_token": "id",
                "refresh_token": "refresh",
                "token_type": "Bearer",
                "expires_in": 3600,
            }
        )
        mock_client_cls.return_value = mock_http

        tokens = await cognito.exchange_code("the-code")

        assert tokens.id_token == "id"
        assert tokens.refresh_token == "refresh"
        args, kwargs = mock_http.post.call_args
        assert args[0] == "https://auth.test/oauth2/token"
        assert kwargs["data"]["grant_type"] == "authorization_code"
        assert kwargs["data"]["code"] == "the-code"
        assert kwargs["auth"] == ("test-client", "client-secret")

    @pytest.mark.asyncio
    async def test_empty_code(self, cognito):
        with pytest.raises(CognitoError):
            await cognito.exchange_code("")

    @pytest.mark.asyncio
    @patch("family_cloud.services.cognito_service.httpx.AsyncClient")
    async def test_rejected_exchange(self, mock_client_cls, cognito):
        mock_client_cls.return_value = _mock_http(400, {"error": "invalid_grant"})

        with pytest.raises(CognitoError, match="invalid_grant"):
            await cognito.exchange_code("stale")

    @pytest.mark.asyncio
    @patch("family_cloud.services.cognito_service.httpx.AsyncClient")
    async def test_unreachable(self, mock_client_cls, cognito):
        mock_http = _mock_http()
        mock_http.post = AsyncMock(side_effect=httpx.ConnectError("down"))
        mock_client_cls.return_value = mock_http

        with pytest.raises(CognitoError):
            await cognito.exchange_code("code")

    @pytest.mark.asyncio
    @patch("family_cloud.services.cognito_service.httpx.AsyncClient")
    async def test_refresh_keeps_refresh_token(self, mock_client_cls, cognito):
        mock_http = _mock_http(
            payload={"access_token": "access-2", "id_token": "id-2", "expires_in": 1800}
        )
        mock_client_cls.return_value = mock_http

        tokens = await cognito.refresh("refresh")

        assert tokens.id_token == "id-2"
        assert tokens.refresh_token == "refresh"
        assert mock_http.post.call_args.kwargs["data"]["grant_type"] == "refresh_token"


def _mock_boto_session(client: AsyncMock) -> MagicMock:
    client.__aenter__ = AsyncMock(return_value=client)
    client.__aexit__ = AsyncMock(return_value=False)
    session = MagicMock()
    session.create_client.return_value = client
    return session


class TestIdentityCredentials:
    @pytest.mark.asyncio
    @patch("family_cloud.services.cognito_service.get_session")
    async def test_get_credentials(self, mock_get_session, cognito):
        client = AsyncMock()
        client.get_id = AsyncMock(return_value={"IdentityId": "identity-1"})
        client.get_credentials_for_identity = AsyncMock(
            return_value={
                "Credentials": {
                    "AccessKeyId": "AKIA",
                    "SecretKey": "secret",
                    "SessionToken": "session",
                }
            }
        )
        mock_get_session.return_value = _mock_boto_session(client)

        creds = await cognito.get_credentials("id-token")

        assert creds.access_key_id == "AKIA"
        assert creds.session_token == "session"
        logins = {"cognito-idp.us-east-1.amazonaws.com/us-east-1_pool": "id-token"}
        client.get_id.assert_awaited_once_with(
            IdentityPoolId="us-east-1:identity-pool", Logins=logins
        )
        client.get_credentials_for_identity.assert_awaited_once_with(
            IdentityId="identity-1", Logins=logins
        )

    @pytest.mark.asyncio
    @patch("family_cloud.services.cognito_service.get_session")
    async def test_client_error(self, mock_get_session, cognito):
        client = AsyncMock()
        client.get_id = AsyncMock(
            side_effect=ClientError(
                {"Error": {"Code": "NotAuthorizedException", "Message": "nope"}}, "GetId"
            )
        )
        mock_get_session.return_value = _mock_boto_session(client)

        with pytest.raises(CognitoError):
            await cognito.get_credentials("id-token")


@pytest.mark.asyncio
@patch("family_cloud.services.cognito_service.httpx.AsyncClient")
async def test_non_json_token_response(mock_client_cls, cognito):
    mock_http = _mock_http()
    mock_http.post.return_value.json.side_effect = ValueError("Expecting value")
    mock_client_cls.return_value = mock_http

    with pytest.raises(CognitoError, match="Malformed token response"):
        await cognito.exchange_code("code")
