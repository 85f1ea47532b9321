"""
Ticket (TGT) acquisition for the EPİAŞ transparency platform.

The platform issues a ticket-granting ticket in exchange for a form-encoded
username/password POST. Tickets are not cached: each market call acquires
a fresh one.
"""

import httpx
from typing import Optional

from core.config import settings
from core.exceptions import AuthError, AuthFailureReason
import logging

logger = logging.getLogger(__name__)


class TicketProvider:
    """
    Acquire authentication tickets for market data calls.

    Accepted response shapes:
    - JSON object with a `tgt` field
    - JSON string
    - Plain-text body containing only the ticket
    """

    def __init__(
        self,
        username: Optional[str] = None,
        password: Optional[str] = None,
        auth_url: Optional[str] = None,
        timeout: Optional[float] = None
    ):
        self.username = username if username is not None else settings.EPIAS_USERNAME
        self.password = password if password is not None else settings.EPIAS_PASSWORD
        self.auth_url = auth_url or settings.EPIAS_AUTH_URL
        self.timeout = timeout or settings.EPIAS_TIMEOUT

    async def acquire_ticket(self) -> str:
        """
        Exchange credentials for a ticket.

        Raises:
            AuthError: missing credentials, rejected request or unreadable response
        """
        if not self.username or not self.password:
            raise AuthError(
                "EPİAŞ credentials are not configured",
                reason=AuthFailureReason.MISSING_CREDENTIALS,
                context={"auth_url": self.auth_url}
            )

        try:
            async with httpx.AsyncClient(timeout=self.timeout) as client:
                response = await client.post(
                    self.auth_url,
                    data={"username": self.username, "password": self.password},
                    headers={
                        "Content-Type": "application/x-www-form-urlencoded",
                        "Accept": "application/json"
                    }
                )
                response.raise_for_status()
        except httpx.HTTPStatusError as e:
            logger.error(f"EPİAŞ authentication rejected: {e.response.status_code}")
            raise AuthError(
                "EPİAŞ authentication failed",
                reason=AuthFailureReason.AUTHENTICATION_FAILED,
                context={
                    "auth_url": self.auth_url,
                    "status_code": e.response.status_code,
                    "response_body": e.response.text[:500]
                },
                original_exception=e
            )
        except httpx.HTTPError as e:
            logger.error(f"EPİAŞ authentication request failed: {str(e)}")
            raise AuthError(
                "EPİAŞ authentication failed",
                reason=AuthFailureReason.AUTHENTICATION_FAILED,
                context={"auth_url": self.auth_url},
                original_exception=e
            )

        ticket = self._extract_ticket(response)
        if not ticket:
            raise AuthError(
                "Unexpected authentication response format",
                reason=AuthFailureReason.INVALID_RESPONSE_FORMAT,
                context={"auth_url": self.auth_url}
            )

        logger.debug("EPİAŞ ticket acquired")
        return ticket

    @staticmethod
    def _extract_ticket(response: httpx.Response) -> Optional[str]:
        try:
            body = response.json()
        except ValueError:
            text = (response.text or "").strip()
            return text or None

        if isinstance(body, dict):
            tgt = body.get("tgt")
            return tgt if isinstance(tgt, str) and tgt else None
        if isinstance(body, str):
            return body.strip() or None
        return None
