"""
Unit tests for EPİAŞ ticket acquisition
"""

import httpx
import pytest
from unittest.mock import AsyncMock, MagicMock, patch

from core.exceptions import AuthError, AuthFailureReason
from ingestion.auth import TicketProvider

AUTH_URL = "https://giris.epias.com.tr/cas/v1/tickets"


def _mock_post(mock_client_cls, response=None, side_effect=None):
    client = MagicMock()
    client.post = AsyncMock(return_value=response, side_effect=side_effect)
    mock_client_cls.return_value.__aenter__.return_value = client
    return client


def _response(status_code, **kwargs):
    return httpx.Response(status_code, request=httpx.Request("POST", AUTH_URL), **kwargs)


def _provider(**overrides):
    params = {"username": "user@example.com", "password": "secret", "auth_url": AUTH_URL, "timeout": 5.0}
    params.update(overrides)
    return TicketProvider(**params)


class TestTicketProvider:
    """Test ticket acquisition branches"""

    @pytest.mark.asyncio
    async def test_missing_credentials_fail_without_network_call(self):
        with patch("httpx.AsyncClient") as mock_client:
            with pytest.raises(AuthError) as exc_info:
                await _provider(password="").acquire_ticket()

            assert exc_info.value.reason == AuthFailureReason.MISSING_CREDENTIALS
            mock_client.assert_not_called()

    @pytest.mark.asyncio
    async def test_ticket_from_json_object(self):
        with patch("httpx.AsyncClient") as mock_client:
            client = _mock_post(mock_client, _response(201, json={"tgt": "TGT-123-abc", "created": "now"}))

            ticket = await _provider().acquire_ticket()

            assert ticket == "TGT-123-abc"
            _, kwargs = client.post.call_args
            assert kwargs["data"] == {"username": "user@example.com", "password": "secret"}
            assert kwargs["headers"]["Content-Type"] == "application/x-www-form-urlencoded"
            mock_client.assert_called_once_with(timeout=5.0)

    @pytest.mark.asyncio
    async def test_ticket_from_json_string(self):
        with patch("httpx.AsyncClient") as mock_client:
            _mock_post(mock_client, _response(200, json="TGT-json-string"))

            assert await _provider().acquire_ticket() == "TGT-json-string"

    @pytest.mark.asyncio
    async def test_ticket_from_plain_text_body(self):
        with patch("httpx.AsyncClient") as mock_client:
            _mock_post(mock_client, _response(201, text="TGT-plain-text\n"))

            assert await _provider().acquire_ticket() == "TGT-plain-text"

    @pytest.mark.asyncio
    async def test_object_without_ticket_is_invalid_format(self):
        with patch("httpx.AsyncClient") as mock_client:
            _mock_post(mock_client, _response(200, json={"message": "ok"}))

            with pytest.raises(AuthError) as exc_info:
                await _provider().acquire_ticket()

            assert exc_info.value.reason == AuthFailureReason.INVALID_RESPONSE_FORMAT

    @pytest.mark.asyncio
    async def test_json_list_is_invalid_format(self):
        with patch("httpx.AsyncClient") as mock_client:
            _mock_post(mock_client, _response(200, json=["TGT-1"]))

            with pytest.raises(AuthError) as exc_info:
                await _provider().acquire_ticket()

            assert exc_info.value.reason == AuthFailureReason.INVALID_RESPONSE_FORMAT

    @pytest.mark.asyncio
    async def test_rejected_credentials(self):
        with patch("httpx.AsyncClient") as mock_client:
            _mock_post(mock_client, _response(401, text="Unauthorized"))

            with pytest.raises(AuthError) as exc_info:
                await _provider().acquire_ticket()

            assert exc_info.value.reason == AuthFailureReason.AUTHENTICATION_FAILED
            assert exc_info.value.context["status_code"] == 401

    @pytest.mark.asyncio
    async def test_network_error(self):
        with patch("httpx.AsyncClient") as mock_client:
            _mock_post(mock_client, side_effect=httpx.ConnectError("connection refused"))

            with pytest.raises(AuthError) as exc_info:
                await _provider().acquire_ticket()

            assert exc_info.value.reason == AuthFailureReason.AUTHENTICATION_FAILED
            assert isinstance(exc_info.value.__cause__, httpx.ConnectError)

    @pytest.mark.asyncio
    async def test_every_call_reauthenticates(self):
        with patch("httpx.AsyncClient") as mock_client:
            client = _mock_post(mock_client, _response(201, json={"tgt": "TGT-1"}))
            provider = _provider()

            await provider.acquire_ticket()
            await provider.acquire_ticket()

            assert client.post.await_count == 2
