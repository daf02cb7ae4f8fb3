"""Resend email API wrapper.

Sends the order notification to the shop owner (with both images
attached when their bytes are available) and a confirmation to the
customer. Sending never raises: the outcome is reported as an
:class:`~app.models.EmailResult`.
"""
from __future__ import annotations

import base64
import html
import logging
from typing import Any, Dict, Optional

import httpx

from app.config import Settings
from app.models import EmailResult, OrderNotification
from app.utils.keys import extension_from_mime

logger = logging.getLogger(__name__)


class EmailAPIError(Exception):
    """Raised when the Resend API returns an error status."""

    def __init__(self, status: int, message: str, response_json: Optional[dict[str, Any]] = None):
        super().__init__(f"Resend API error {status}: {message}")
        self.status = status
        self.response_json = response_json or {}


class EmailClient:  # pylint: disable=too-few-public-methods
    """Minimal async client for the Resend HTTP API."""

    _BASE_URL = "https://api.resend.com"

    def __init__(
        self,
        *,
        api_key: str | None,
        sender: str,
        owner_email: str | None = None,
        timeout: float = 30.0,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self._api_key = api_key
        self._sender = sender
        self._owner_email = owner_email
        self._timeout = timeout
        self._transport = transport

    @classmethod
    def from_settings(cls, settings: Settings) -> "EmailClient":
        return cls(
            api_key=settings.resend_api_key,
            sender=settings.email_from,
            owner_email=settings.order_notification_email,
            timeout=settings.http_timeout_seconds,
        )

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    async def send_purchase_notification(self, notification: OrderNotification) -> EmailResult:
        if not self._api_key:
            logger.warning("Email not sent for order %s: RESEND_API_KEY not set", notification.order_id)
            return EmailResult(success=False, error="Email provider not configured")

        messages: list[Dict[str, Any]] = []
        if self._owner_email:
            messages.append(self._owner_message(notification))
        if notification.customer_email:
            messages.append(self._customer_message(notification))
        if not messages:
            return EmailResult(success=False, error="No email recipients configured")

        sent = 0
        errors: list[str] = []
        for payload in messages:
            try:
                await self._post_email(payload)
                sent += 1
            except (EmailAPIError, httpx.HTTPError) as exc:
                logger.error("Failed to send email to %s: %s", payload["to"], exc)
                errors.append(str(exc))

        logger.info("Order %s email result: sent=%d failed=%d", notification.order_id, sent, len(errors))
        return EmailResult(
            success=sent > 0 and not errors,
            sent=sent,
            failed=len(errors),
            error="; ".join(errors) or None,
        )

    # ------------------------------------------------------------------
    # Internal helpers
    # ------------------------------------------------------------------

    def _owner_message(self, n: OrderNotification) -> Dict[str, Any]:
        customer = html.escape(n.customer_email or "not provided")
        body = (
            f"<h2>New laser engraving order</h2>"
            f"<p><strong>Order:</strong> {html.escape(n.order_id)}</p>"
            f"<p><strong>Customer:</strong> {customer}</p>"
            f'<p><a href="{html.escape(n.original_url)}">Original image</a></p>'
            f'<p><a href="{html.escape(n.processed_url)}">Engraving preview</a></p>'
        )
        payload: Dict[str, Any] = {
            "from": self._sender,
            "to": [self._owner_email],
            "subject": f"New engraving order {n.order_id}",
            "html": body,
        }
        if n.customer_email:
            payload["reply_to"] = n.customer_email

        attachments = []
        if n.original_bytes:
            attachments.append(_attachment("original", n.original_bytes, n.original_mime_type))
        if n.processed_bytes:
            attachments.append(_attachment("processed", n.processed_bytes, n.processed_mime_type))
        if attachments:
            payload["attachments"] = attachments
        return payload

    def _customer_message(self, n: OrderNotification) -> Dict[str, Any]:
        body = (
            "<h2>Thank you for your order!</h2>"
            "<p>We received your payment and will start engraving your piece shortly.</p>"
            f"<p><strong>Order:</strong> {html.escape(n.order_id)}</p>"
            f'<p><a href="{html.escape(n.processed_url)}">Your engraving preview</a></p>'
        )
        return {
            "from": self._sender,
            "to": [n.customer_email],
            "subject": "Your laser engraving order",
            "html": body,
        }

    async def _post_email(self, payload: dict[str, Any]) -> str:
        url = f"{self._BASE_URL}/emails"
        logger.debug("POST %s -> %s", url, payload["to"])
        headers = {"Authorization": f"Bearer {self._api_key}"}
        async with httpx.AsyncClient(timeout=self._timeout, headers=headers, transport=self._transport) as client:
            resp = await client.post(url, json=payload)
        if resp.status_code >= 400:
            try:
                err_json = resp.json()
            except ValueError:
                err_json = None
            raise EmailAPIError(resp.status_code, resp.text, err_json)
        return resp.json().get("id", "")


def _attachment(role: str, data: bytes, mime_type: str) -> Dict[str, str]:
    return {
        "filename": f"{role}.{extension_from_mime(mime_type)}",
        "content": base64.b64encode(data).decode("ascii"),
    }
