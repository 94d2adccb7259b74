"""Resend API client — transactional email delivery with optional attachments."""

import base64
import logging
from dataclasses import dataclass, field

import httpx

from charterdesk.config import settings

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class EmailAttachment:
    filename: str
    content: bytes


@dataclass(frozen=True)
class OutgoingEmail:
    to: str
    subject: str
    html: str
    text: str = ""
    attachments: tuple[EmailAttachment, ...] = field(default=())
    reply_to: str | None = None


class ResendClient:
    """Adapter for the Resend REST API."""

    def __init__(
        self,
        api_key: str,
        sender: str,
        base_url: str = "https://api.resend.com",
        timeout: float = 10.0,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        self._api_key = api_key
        self._sender = sender
        self._base_url = base_url
        self._timeout = timeout
        self._transport = transport
        self._client: httpx.AsyncClient | None = None

    async def _get_client(self) -> httpx.AsyncClient:
        if self._client is None:
            self._client = httpx.AsyncClient(
                base_url=self._base_url,
                timeout=self._timeout,
                transport=self._transport,
                headers={"Authorization": f"Bearer {self._api_key}"},
            )
        return self._client

    async def send(self, email: OutgoingEmail) -> str | None:
        """Send one email. Returns the provider message id; raises httpx errors on failure."""
        payload = {
            "from": self._sender,
            "to": [email.to],
            "subject": email.subject,
            "html": email.html,
        }
        if email.text:
            payload["text"] = email.text
        if email.reply_to:
            payload["reply_to"] = email.reply_to
        if email.attachments:
            payload["attachments"] = [
                {
                    "filename": attachment.filename,
                    "content": base64.b64encode(attachment.content).decode("ascii"),
                }
                for attachment in email.attachments
            ]

        client = await self._get_client()
        resp = await client.post("/emails", json=payload)
        resp.raise_for_status()
        message_id = resp.json().get("id")
        logger.info(f"Email '{email.subject}' accepted by Resend (id={message_id})")
        return message_id

    async def aclose(self) -> None:
        if self._client is not None:
            await self._client.aclose()
            self._client = None


def build_email_client() -> ResendClient | None:
    """The configured client, or None when no delivery credential is set."""
    if not settings.email_enabled:
        logger.info("Email notifications disabled (RESEND_API_KEY not set)")
        return None
    return ResendClient(
        api_key=settings.resend_api_key,
        sender=settings.email_from,
        base_url=settings.resend_base_url,
        timeout=settings.email_timeout_seconds,
    )
