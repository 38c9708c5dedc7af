"""
Outbound Email Integration.
Sends HTML email through the Resend HTTP API.
"""

import logging
from abc import ABC, abstractmethod
from typing import Dict, Any, Optional, List

import httpx

from ..config import settings

logger = logging.getLogger(__name__)


class EmailDeliveryError(Exception):
    """The provider rejected the message or could not be reached."""

    def __init__(self, message: str, status_code: Optional[int] = None):
        super().__init__(message)
        self.message = message
        self.status_code = status_code


class EmailClient(ABC):
    """Contract for outbound email: send(from, to, subject, html) -> {id}."""

    @abstractmethod
    async def send(
        self,
        sender: str,
        to: List[str],
        subject: str,
        html: str,
    ) -> Dict[str, Any]:
        """
        Send an HTML email.

        Args:
            sender: From address ("Name <addr@example.com>")
            to: Recipient addresses
            subject: Subject line
            html: HTML body

        Returns:
            Dict with at least the provider message "id"

        Raises:
            EmailDeliveryError: On transport failure or a non-2xx response
        """
        pass


class ResendEmailClient(EmailClient):
    """
    Resend (https://resend.com) client.
    One POST per message, no retries.
    """

    def __init__(self, api_key: str, api_url: str = "https://api.resend.com/emails",
                 timeout: float = 30.0):
        """
        Initialize Resend client.

        Args:
            api_key: Resend API key
            api_url: Send endpoint
            timeout: Request timeout in seconds
        """
        self.api_key = api_key
        self.api_url = api_url
        self.timeout = timeout

    def _get_auth_headers(self) -> Dict[str, str]:
        return {
            "Authorization": f"Bearer {self.api_key}",
            "Content-Type": "application/json",
        }

    async def send(self, sender: str, to: List[str], subject: str, html: str) -> Dict[str, Any]:
        payload = {"from": sender, "to": to, "subject": subject, "html": html}

        try:
            async with httpx.AsyncClient(timeout=self.timeout) as client:
                resp = await client.post(self.api_url, json=payload, headers=self._get_auth_headers())
        except httpx.HTTPError as e:
            logger.error(f"Email provider unreachable: {e}")
            raise EmailDeliveryError(f"Email provider unreachable: {e}") from e

        try:
            data = resp.json()
        except ValueError:
            data = {}
        if not isinstance(data, dict):
            data = {}

        if resp.status_code >= 400:
            message = data.get("message") or data.get("error") or f"HTTP {resp.status_code}"
            logger.error(f"Resend API error ({resp.status_code}): {message}")
            raise EmailDeliveryError(str(message), status_code=resp.status_code)

        if not data.get("id"):
            raise EmailDeliveryError("Email provider returned no message id", status_code=resp.status_code)

        return data


def create_email_client(
    api_key: Optional[str] = None,
    api_url: Optional[str] = None,
    timeout: Optional[float] = None,
) -> Optional[EmailClient]:
    """
    Create the configured email client.

    Returns:
        EmailClient instance, or None if no API key is configured
    """
    api_key = api_key or settings.resend_api_key
    if not api_key:
        return None
    return ResendEmailClient(
        api_key=api_key,
        api_url=api_url or settings.resend_api_url,
        timeout=timeout or settings.email_timeout,
    )


def get_email_client() -> Optional[EmailClient]:
    """FastAPI dependency returning the configured email client (or None)."""
    return create_email_client()
