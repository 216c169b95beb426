"""Notifications module for Discord health alerts."""

from .discord import (
    DiscordNotifier,
    send_health_alert,
)

__all__ = [
    "DiscordNotifier",
    "send_health_alert",
]
