"""Slack incoming-webhook client for sending alerts."""

from typing import Any

import httpx
import structlog

from bandwidth_guard.config import DEFAULT_TIMEOUT_SECONDS

log = structlog.get_logger()


class DeliveryError(Exception):
    """Raised when the webhook rejects a message or cannot be reached."""

    pass


class SlackClient:
    """Simple Slack webhook client."""

    def __init__(self, webhook_url: str, timeout: float = DEFAULT_TIMEOUT_SECONDS):
        self.webhook_url = webhook_url
        self.timeout = timeout

    def _post(self, payload: dict[str, Any]) -> None:
        try:
            response = httpx.post(self.webhook_url, json=payload, timeout=self.timeout)
            response.raise_for_status()
        except httpx.HTTPStatusError as e:
            raise DeliveryError(
                f"Slack webhook returned {e.response.status_code}: {e.response.text[:200]}"
            ) from e
        except httpx.RequestError as e:
            raise DeliveryError(f"Slack webhook request failed: {e}") from e
        except httpx.InvalidURL as e:
            raise DeliveryError(f"Slack webhook URL is invalid: {e}") from e

    def send(self, message: str) -> None:
        """Send a plain mrkdwn message.

        Raises:
            DeliveryError: If the webhook call fails
        """
        self._post({"text": message})
        log.debug("Slack message sent")

    def send_blocks(self, blocks: list[dict[str, Any]], text: str) -> None:
        """Send a Block Kit message.

        Args:
            blocks: Block Kit blocks
            text: Fallback text shown in notifications

        Raises:
            DeliveryError: If the webhook call fails
        """
        self._post({"text": text, "blocks": blocks})
        log.debug("Slack blocks sent", block_count=len(blocks))
