"""
Unit tests for the Resend email client.
"""

import httpx
import pytest
from unittest.mock import AsyncMock, MagicMock, patch

from moodmirror.channels.email import (
    EmailDeliveryError, ResendEmailClient, create_email_client,
)


def _mock_async_client(mock_client, response=None, side_effect=None):
    mock_instance = AsyncMock()
    if side_effect is not None:
        mock_instance.post.side_effect = side_effect
    else:
        mock_instance.post.return_value = response
    mock_instance.__aenter__ = AsyncMock(return_value=mock_instance)
    mock_instance.__aexit__ = AsyncMock(return_value=False)
    mock_client.return_value = mock_instance
    return mock_instance


def _response(status_code, payload):
    response = MagicMock()
    response.status_code = status_code
    response.json.return_value = payload
    return response


class TestResendEmailClient:

    @pytest.mark.asyncio
    async def test_send_success(self):
        client = ResendEmailClient(api_key="re_test", api_url="https://api.resend.test/emails")

        with patch("httpx.AsyncClient") as mock_client:
            mock_instance = _mock_async_client(mock_client, _response(200, {"id": "email-123"}))

            result = await client.send(
                sender="Elder Mood Mirror <noreply@example.com>",
                to=["sam@example.com"],
                subject="Weekly Wellness Report",
                html="<p>hi</p>",
            )

        assert result["id"] == "email-123"
        args, kwargs = mock_instance.post.call_args
        assert args[0] == "https://api.resend.test/emails"
        assert kwargs["json"] == {
            "from": "Elder Mood Mirror <noreply@example.com>",
            "to": ["sam@example.com"],
            "subject": "Weekly Wellness Report",
            "html": "<p>hi</p>",
        }
        assert kwargs["headers"]["Authorization"] == "Bearer re_test"

    @pytest.mark.asyncio
    async def test_provider_error_message_is_kept(self):
        client = ResendEmailClient(api_key="re_test")

        with patch("httpx.AsyncClient") as mock_client:
            _mock_async_client(mock_client, _response(422, {"message": "Invalid `to` field"}))

            with pytest.raises(EmailDeliveryError) as exc_info:
                await client.send("a@example.com", ["bad"], "s", "<p></p>")

        assert exc_info.value.message == "Invalid `to` field"
        assert exc_info.value.status_code == 422

    @pytest.mark.asyncio
    @pytest.mark.parametrize("payload", ["Bad Gateway", ["error"], None])
    async def test_non_object_error_body(self, payload):
        client = ResendEmailClient(api_key="re_test")

        with patch("httpx.AsyncClient") as mock_client:
            _mock_async_client(mock_client, _response(502, payload))

            with pytest.raises(EmailDeliveryError) as exc_info:
                await client.send("a@example.com", ["sam@example.com"], "s", "<p></p>")

        assert exc_info.value.message == "HTTP 502"
        assert exc_info.value.status_code == 502

    @pytest.mark.asyncio
    async def test_unreachable_provider(self):
        client = ResendEmailClient(api_key="re_test")

        with patch("httpx.AsyncClient") as mock_client:
            _mock_async_client(mock_client, side_effect=httpx.ConnectError("connection refused"))

            with pytest.raises(EmailDeliveryError, match="unreachable"):
                await client.send("a@example.com", ["sam@example.com"], "s", "<p></p>")

    @pytest.mark.asyncio
    async def test_missing_id_is_an_error(self):
        client = ResendEmailClient(api_key="re_test")

        with patch("httpx.AsyncClient") as mock_client:
            _mock_async_client(mock_client, _response(200, {}))

            with pytest.raises(EmailDeliveryError, match="no message id"):
                await client.send("a@example.com", ["sam@example.com"], "s", "<p></p>")


class TestCreateEmailClient:

    def test_none_without_api_key(self):
        assert create_email_client() is None

    def test_resend_with_api_key(self):
        client = create_email_client(api_key="re_live")
        assert isinstance(client, ResendEmailClient)
        assert client.api_url == "https://api.resend.com/emails"
