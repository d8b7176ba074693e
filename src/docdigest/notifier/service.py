"""Webhook notification delivery with retry.

POSTs ``{"text": message}`` (plus ``"metadata"`` when enabled) to the
configured webhook URL.  Transport errors and 5xx responses are retried by
tenacity with exponential backoff; 4xx responses fail immediately.  Any
failure that survives the retries surfaces as DeliveryError.
"""

from __future__ import annotations

import logging
import time
from typing import Any
from urllib.parse import urlsplit

import httpx
from tenacity import (
    Retrying,
    before_sleep_log,
    retry_if_exception,
    stop_after_attempt,
    wait_exponential,
)

from docdigest.config.settings import NotifierSettings
from docdigest.errors import DeliveryError

logger = logging.getLogger(__name__)


def _is_transient(exc: BaseException) -> bool:
    if isinstance(exc, httpx.TransportError):
        return True
    return (
        isinstance(exc, httpx.HTTPStatusError)
        and exc.response.status_code >= 500
    )


def redact_url(url: str) -> str:
    """Return scheme and host only; webhook paths carry the credential."""
    parts = urlsplit(url)
    return f"{parts.scheme}://{parts.netloc}" if parts.netloc else "<unset>"


class NotificationDispatcher:
    """Delivers messages to a webhook-based messaging service.

    Owns an ``httpx.Client`` unless one is injected, in which case the
    caller manages its lifecycle.
    """

    # Backoff sleep between retries; tests swap it for a no-op
    sleep = staticmethod(time.sleep)

    def __init__(
        self,
        settings: NotifierSettings,
        http_client: httpx.Client | None = None,
    ):
        self.settings = settings
        self._owns_client = http_client is None
        self._client = http_client or httpx.Client(timeout=settings.timeout_seconds)

    def close(self) -> None:
        if self._owns_client:
            self._client.close()

    def __enter__(self) -> NotificationDispatcher:
        return self

    def __exit__(self, *exc_info) -> None:
        self.close()

    def _post(self, payload: dict[str, Any]) -> None:
        response = self._client.post(
            self.settings.webhook_url,
            json=payload,
            timeout=self.settings.timeout_seconds,
        )
        response.raise_for_status()

    def notify(self, message: str, metadata: dict[str, Any] | None = None) -> None:
        """Send *message* to the webhook.

        Args:
            message: Text for the ``text`` field.
            metadata: Run details; attached as ``metadata`` only when
                ``include_metadata`` is enabled, otherwise just logged.

        Raises:
            DeliveryError: If no webhook is configured or delivery fails
                after retries.
        """
        if not self.settings.webhook_url.strip():
            raise DeliveryError("No webhook URL configured (set NOTIFIER_WEBHOOK_URL)")

        payload: dict[str, Any] = {"text": message}
        if self.settings.include_metadata and metadata:
            payload["metadata"] = metadata

        target = redact_url(self.settings.webhook_url)
        logger.info(
            "Delivering notification to %s (%d chars, metadata=%s)",
            target,
            len(message),
            metadata,
        )

        retrying = Retrying(
            stop=stop_after_attempt(self.settings.max_attempts),
            wait=wait_exponential(multiplier=1, min=1, max=15),
            retry=retry_if_exception(_is_transient),
            sleep=self.sleep,
            before_sleep=before_sleep_log(logger, logging.WARNING),
            reraise=True,
        )
        try:
            for attempt in retrying:
                with attempt:
                    self._post(payload)
        except httpx.HTTPStatusError as e:
            status = e.response.status_code
            logger.error("Webhook %s rejected notification: HTTP %d", target, status)
            raise DeliveryError(
                f"Webhook returned HTTP {status}: {e.response.text[:200]}",
                status_code=status,
            ) from e
        except httpx.TransportError as e:
            logger.error("Webhook %s unreachable: %r", target, e)
            raise DeliveryError(f"Webhook unreachable: {e!r}") from e

        logger.info("Notification delivered to %s", target)
