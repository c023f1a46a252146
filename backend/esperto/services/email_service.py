"""
Transactional email through the SendGrid v3 API.

Sending is optional: without an API key every send is skipped and reported
as not sent.
"""
import logging
from typing import Optional

import httpx
from tenacity import (
    retry,
    retry_if_exception_type,
    stop_after_attempt,
    wait_exponential,
)

from esperto.config import get_settings
from esperto.logging_config import mask_email

logger = logging.getLogger(__name__)

SENDGRID_URL = "https://api.sendgrid.com/v3/mail/send"


class EmailService:
    def __init__(
        self,
        api_key: Optional[str] = None,
        from_email: Optional[str] = None,
        client: Optional[httpx.Client] = None,
    ):
        settings = get_settings()
        self.api_key = api_key if api_key is not None else settings.sendgrid_api_key
        self.from_email = from_email or settings.from_email
        self._client = client

    @property
    def enabled(self) -> bool:
        return bool(self.api_key)

    @retry(
        retry=retry_if_exception_type(httpx.TransportError),
        stop=stop_after_attempt(3),
        wait=wait_exponential(multiplier=1, min=1, max=8),
        reraise=True,
    )
    def _post(self, payload: dict) -> httpx.Response:
        headers = {"Authorization": f"Bearer {self.api_key}"}
        if self._client is not None:
            return self._client.post(SENDGRID_URL, json=payload, headers=headers)
        with httpx.Client(timeout=10.0) as client:
            return client.post(SENDGRID_URL, json=payload, headers=headers)

    def send(self, to_email: str, subject: str, html: str) -> bool:
        """Send one email. Returns True when SendGrid accepted it."""
        if not self.enabled:
            logger.debug("SendGrid not configured, skipping email")
            return False
        if not to_email:
            return False

        payload = {
            "personalizations": [{"to": [{"email": to_email}]}],
            "from": {"email": self.from_email},
            "subject": subject,
            "content": [{"type": "text/html", "value": html}],
        }

        try:
            response = self._post(payload)
        except httpx.HTTPError as e:
            logger.error(f"Email to {mask_email(to_email)} failed: {e}")
            return False

        if response.status_code >= 400:
            logger.error(f"SendGrid rejected email to {mask_email(to_email)}: {response.status_code}")
            return False

        logger.info(f"Email sent to {mask_email(to_email)}: {subject}")
        return True


def price_alert_email(product_name: str, price, store_name: str, target_price) -> tuple[str, str]:
    """Subject and HTML body for a triggered price alert."""
    subject = f"Alerta de preço: {product_name} por R$ {price:.2f}"
    html = (
        f"<p>O produto <strong>{product_name}</strong> está por "
        f"<strong>R$ {price:.2f}</strong> em {store_name}.</p>"
        f"<p>Seu preço-alvo era R$ {target_price:.2f}.</p>"
    )
    return subject, html


def get_email_service() -> EmailService:
    """Dependency providing the email service."""
    return EmailService()
