"""
Outbound delivery providers (SMS, push, email) over httpx.

Each provider raises on delivery failure; the dispatcher is the one place
that catches and logs. When credentials are missing a LoggingNoop* provider
stands in and only logs what would have been sent.
"""

import logging

import httpx

from freightmatch.services.phone import format_phone_number, mask_phone_number

logger = logging.getLogger(__name__)

SMS_BATCH_SIZE = 50
RESEND_SEND_URL = "https://api.resend.com/emails"


class ProviderError(Exception):
    """Provider answered with a non-success status."""


def _check(response: httpx.Response, provider: str) -> None:
    if response.status_code >= 400:
        raise ProviderError(f"{provider} returned {response.status_code}: {response.text[:200]}")


# ---- SMS ----

class InfobipSmsProvider:
    def __init__(self, api_key: str, base_url: str, sender: str, timeout: float = 10.0):
        if not base_url.startswith(("http://", "https://")):
            base_url = f"https://{base_url}"
        self.api_key = api_key
        self.url = f"{base_url.rstrip('/')}/sms/2/text/advanced"
        self.sender = sender
        self.timeout = timeout

    def _post(self, phone_numbers: list[str], message: str) -> None:
        payload = {
            "messages": [
                {
                    "destinations": [{"to": format_phone_number(p)} for p in phone_numbers],
                    "from": self.sender,
                    "text": message,
                }
            ]
        }
        headers = {
            "Authorization": f"App {self.api_key}",
            "Content-Type": "application/json",
            "Accept": "application/json",
        }
        response = httpx.post(self.url, json=payload, headers=headers, timeout=self.timeout)
        _check(response, "Infobip")

    def send(self, phone_number: str, message: str) -> None:
        self._post([phone_number], message)
        logger.info("SMS sent to %s", mask_phone_number(phone_number))

    def send_bulk(self, phone_numbers: list[str], message: str) -> tuple[int, int]:
        """Send in batches; a failed batch counts all its numbers as failed."""
        success = failed = 0
        for start in range(0, len(phone_numbers), SMS_BATCH_SIZE):
            batch = phone_numbers[start:start + SMS_BATCH_SIZE]
            try:
                self._post(batch, message)
                success += len(batch)
            except (httpx.HTTPError, ProviderError) as exc:
                logger.warning("SMS batch %d failed: %s", start // SMS_BATCH_SIZE + 1, exc)
                failed += len(batch)
        return success, failed


class LoggingNoopSmsProvider:
    def send(self, phone_number: str, message: str) -> None:
        logger.info("SMS not sent to %s (provider not configured): %s", mask_phone_number(phone_number), message)

    def send_bulk(self, phone_numbers: list[str], message: str) -> tuple[int, int]:
        logger.info("Bulk SMS to %d numbers not sent (provider not configured)", len(phone_numbers))
        return 0, len(phone_numbers)


# ---- Push ----

class HttpPushProvider:
    """Legacy FCM-style HTTP endpoint: one POST per multicast."""

    def __init__(self, server_key: str, api_url: str, timeout: float = 10.0):
        self.server_key = server_key
        self.api_url = api_url
        self.timeout = timeout

    def send(self, device_tokens: list[str], title: str, body: str, url: str | None = None) -> None:
        headers = {
            "Authorization": f"key={self.server_key}",
            "Content-Type": "application/json",
        }
        payload = {
            "registration_ids": device_tokens,
            "notification": {"title": title, "body": body},
            "data": {"url": url or "/"},
            "priority": "high",
        }
        response = httpx.post(self.api_url, json=payload, headers=headers, timeout=self.timeout)
        _check(response, "Push")


class LoggingNoopPushProvider:
    def send(self, device_tokens: list[str], title: str, body: str, url: str | None = None) -> None:
        logger.info("Push to %d device(s) not sent (provider not configured): %s", len(device_tokens), title)


# ---- Email ----

class ResendEmailProvider:
    def __init__(self, api_key: str, from_address: str, default_to: str, timeout: float = 10.0):
        self.api_key = api_key
        self.from_address = from_address
        self.default_to = default_to
        self.timeout = timeout

    def send(self, subject: str, html: str, to: str | None = None) -> None:
        recipient = to or self.default_to
        if not recipient:
            logger.info("Email '%s' dropped: no recipient configured", subject)
            return
        headers = {
            "Authorization": f"Bearer {self.api_key}",
            "Content-Type": "application/json",
        }
        payload = {"from": self.from_address, "to": [recipient], "subject": subject, "html": html}
        response = httpx.post(RESEND_SEND_URL, json=payload, headers=headers, timeout=self.timeout)
        _check(response, "Resend")


class LoggingNoopEmailProvider:
    def send(self, subject: str, html: str, to: str | None = None) -> None:
        logger.info("Email not sent (provider not configured): %s", subject)
