"""
Completion webhook for finished homework runs.
"""
import logging
from typing import Optional

import requests

from core.config import WEBHOOK_MAX_ATTEMPTS, WEBHOOK_SECRET, WEBHOOK_TIMEOUT, WEBHOOK_URL
from core.transaction import retry_on_transient_error

logger = logging.getLogger(__name__)


class WebhookDeliveryError(Exception):
    """Raised for retryable webhook responses (429 and 5xx)."""
    pass


class CompletionNotifier:
    """Reports the final status of a homework run to a webhook."""

    def __init__(
        self,
        url: Optional[str] = WEBHOOK_URL,
        secret: str = WEBHOOK_SECRET,
        max_attempts: int = WEBHOOK_MAX_ATTEMPTS,
        timeout: float = WEBHOOK_TIMEOUT,
        base_delay: float = 1.0,
    ):
        self.url = url
        self.secret = secret
        self.timeout = timeout
        self._deliver = retry_on_transient_error(
            max_retries=max(1, max_attempts),
            base_delay=base_delay,
            retry_on=(WebhookDeliveryError, requests.ConnectionError, requests.Timeout),
        )(self._post)

    def notify(
        self,
        homework_id: str,
        status: str,
        question_count: int = 0,
        error: Optional[str] = None,
    ) -> bool:
        """
        Send the completion payload.

        Returns:
            True if delivered (or no webhook is configured), False otherwise
        """
        if not self.url:
            logger.debug(f"No webhook configured, skipping notification for {homework_id}")
            return True

        payload = {
            "homeworkId": homework_id,
            "status": status,
            "questionCount": question_count,
        }
        if error:
            payload["error"] = error

        try:
            self._deliver(payload)
            logger.info(f"Sent {status} notification for homework {homework_id}")
            return True
        except Exception as e:
            # Processing already finished; the stored status may now be stale
            logger.error(f"Failed to send webhook for {homework_id}: {e}")
            return False

    def _post(self, payload: dict) -> None:
        response = requests.post(
            self.url,
            json=payload,
            headers={"x-webhook-secret": self.secret},
            timeout=self.timeout,
        )
        if response.status_code == 429 or response.status_code >= 500:
            raise WebhookDeliveryError(f"Webhook returned {response.status_code}")
        response.raise_for_status()
