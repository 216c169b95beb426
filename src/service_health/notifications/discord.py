"""Discord notification for health check results.

Sends one rich embed summarizing a run when the stack is not fully healthy.
"""

import logging
from datetime import datetime, timezone
from typing import Optional

import requests

from ..config import get_settings
from ..monitoring.aggregator import Report
from ..monitoring.evaluator import VerdictStatus
from ..utils.retry import raise_for_retryable_status, retry_with_backoff

logger = logging.getLogger(__name__)


class DiscordNotifier:
    """Discord webhook notification handler."""

    # Colors for embeds (decimal format)
    COLOR_SUCCESS = 5763719  # Green
    COLOR_WARNING = 16776960  # Yellow
    COLOR_ERROR = 15548997  # Red
    COLOR_INFO = 5793266  # Blue

    def __init__(self, webhook_url: Optional[str] = None):
        """Initialize Discord notifier.

        Args:
            webhook_url: Discord webhook URL. If None, uses settings.
        """
        self.webhook_url = webhook_url or get_settings().discord_webhook_url

        if not self.webhook_url:
            logger.warning("Discord webhook URL not configured")

    @property
    def enabled(self) -> bool:
        """Check if Discord notifications are enabled."""
        return bool(self.webhook_url)

    @retry_with_backoff(max_retries=3, initial_delay=1.0)
    def _send_webhook(self, payload: dict) -> bool:
        """Send payload to Discord webhook.

        Args:
            payload: Discord webhook payload

        Returns:
            True if successful, False when notifications are disabled

        Raises:
            RetryableHTTPError: On 429 or 5xx, retried by the decorator
            requests.exceptions.HTTPError: On any other error status
        """
        if not self.enabled:
            logger.debug("Discord notifications disabled, skipping")
            return False

        response = requests.post(
            self.webhook_url,
            json=payload,
            headers={"Content-Type": "application/json"},
            timeout=10,
        )
        raise_for_retryable_status(response)
        logger.info("Discord notification sent successfully")
        return True

    def send_embed(
        self,
        title: str,
        description: str,
        color: int = COLOR_INFO,
        fields: Optional[list[dict]] = None,
        footer: Optional[str] = None,
        timestamp: Optional[datetime] = None,
    ) -> bool:
        """Send a rich embed message.

        Args:
            title: Embed title
            description: Embed description
            color: Embed color (decimal)
            fields: List of field dicts with name, value, inline
            footer: Footer text
            timestamp: Aware embed timestamp. Defaults to now (UTC).

        Returns:
            True if sent successfully
        """
        embed = {
            "title": title,
            "description": description,
            "color": color,
            "timestamp": (timestamp or datetime.now(timezone.utc)).isoformat(),
        }

        if fields:
            embed["fields"] = fields

        if footer:
            embed["footer"] = {"text": footer}

        return self._send_webhook({"embeds": [embed]})

    def send_health_alert(self, report: Report) -> bool:
        """Send a health run summary.

        Args:
            report: Completed health report

        Returns:
            True if sent successfully
        """
        if report.overall == "healthy":
            color = self.COLOR_SUCCESS
            emoji = "✅"
        elif report.overall == "degraded":
            color = self.COLOR_WARNING
            emoji = "⚠️"
        else:
            color = self.COLOR_ERROR
            emoji = "🚨"

        title = f"{emoji} Service Health: {report.overall.upper()}"
        description = (
            f"Healthy: {report.healthy} | Warnings: {report.warning} | Errors: {report.error}"
        )

        healthy = [v for v in report.verdicts if v.status == VerdictStatus.HEALTHY]
        issues = [v for v in report.verdicts if v.status != VerdictStatus.HEALTHY]

        fields = []

        if healthy:
            fields.append(
                {
                    "name": "✅ Passing",
                    "value": "\n".join(f"• {v.service_name}" for v in healthy),
                    "inline": False,
                }
            )

        if issues:
            lines = []
            for v in issues:
                reason = v.detail if v.status == VerdictStatus.ERROR else f"HTTP {v.code}"
                lines.append(f"• {v.service_name}: {reason}")
            fields.append(
                {
                    "name": "❌ Issues",
                    "value": "\n".join(lines),
                    "inline": False,
                }
            )

        now = datetime.now(timezone.utc)
        footer = f"Health Check | {now:%Y-%m-%d %H:%M} UTC"

        return self.send_embed(
            title=title,
            description=description,
            color=color,
            fields=fields,
            footer=footer,
            timestamp=now,
        )


# Module-level convenience functions
_notifier: Optional[DiscordNotifier] = None


def _get_notifier() -> DiscordNotifier:
    """Get or create singleton notifier instance."""
    global _notifier
    if _notifier is None:
        _notifier = DiscordNotifier()
    return _notifier


def send_health_alert(report: Report) -> bool:
    """Send a health alert for a completed run.

    Args:
        report: Completed health report

    Returns:
        True if sent successfully
    """
    return _get_notifier().send_health_alert(report)
