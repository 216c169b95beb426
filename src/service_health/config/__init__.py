"""Configuration module.

Usage:
    from service_health.config import get_settings

    settings = get_settings()
    print(settings.backend_health_url)
    print(settings.probe_timeout_seconds)
"""

from .settings import Settings, get_settings

__all__ = ["Settings", "get_settings"]
