"""Registry of the services probed by a health run.

The built-in registry mirrors the dashboard stack. A YAML file can replace it:

    services:
      - name: API Backend
        url: http://localhost:4000/api/chat/health
        critical: true
      - name: Web Frontend
        url: http://localhost:3000
    database_proxy:
      url: http://localhost:4000/api/stats
"""

from dataclasses import dataclass, field
from pathlib import Path
from typing import List, Optional

import yaml
from pydantic import BaseModel, ValidationError

from ..config import Settings

DATABASE_HINT = "Check DATABASE_URL and ensure PostgreSQL is running"


class RegistryError(ValueError):
    """Raised when a registry definition is invalid."""


@dataclass(frozen=True)
class ServiceTarget:
    """A named HTTP endpoint to probe."""

    name: str
    url: str
    critical: bool = False
    proxy: bool = False  # health inferred through another service's endpoint
    failure_hint: Optional[str] = None


@dataclass(frozen=True)
class ServiceRegistry:
    """Ordered targets plus the database proxy check that always runs last."""

    targets: List[ServiceTarget] = field(default_factory=list)
    proxy_check: Optional[ServiceTarget] = None

    def __post_init__(self):
        names = [t.name for t in self.all_targets()]
        duplicates = sorted({n for n in names if names.count(n) > 1})
        if duplicates:
            raise RegistryError(f"Duplicate service names: {', '.join(duplicates)}")

    def all_targets(self) -> List[ServiceTarget]:
        """Targets in report order."""
        targets = list(self.targets)
        if self.proxy_check is not None:
            targets.append(self.proxy_check)
        return targets

    def __len__(self) -> int:
        return len(self.all_targets())


def database_proxy_target(url: str, name: str = "Database") -> ServiceTarget:
    """Database reachability inferred from a backend endpoint that needs it."""
    return ServiceTarget(
        name=name,
        url=url,
        critical=False,
        proxy=True,
        failure_hint=DATABASE_HINT,
    )


def default_registry(settings: Settings) -> ServiceRegistry:
    """Build the dashboard stack registry from settings."""
    return ServiceRegistry(
        targets=[
            ServiceTarget("API Backend", settings.backend_health_url, critical=True),
            ServiceTarget("AI Query Service", settings.ai_service_health_url, critical=True),
            ServiceTarget("Web Frontend", settings.frontend_url, critical=False),
        ],
        proxy_check=database_proxy_target(settings.database_proxy_url),
    )


class _TargetSpec(BaseModel):
    name: str
    url: str
    critical: bool = False
    failure_hint: Optional[str] = None


class _ProxySpec(BaseModel):
    name: str = "Database"
    url: str


class _RegistryFile(BaseModel):
    services: List[_TargetSpec]
    database_proxy: Optional[_ProxySpec] = None


def load_registry(path: Path) -> ServiceRegistry:
    """Load a registry from a YAML file.

    Args:
        path: YAML file with a ``services`` list and optional ``database_proxy``

    Returns:
        ServiceRegistry in file order

    Raises:
        RegistryError: If the file is missing, unparsable or invalid
    """
    path = Path(path)
    try:
        raw = yaml.safe_load(path.read_text(encoding="utf-8"))
    except OSError as e:
        raise RegistryError(f"Cannot read services file {path}: {e}") from e
    except yaml.YAMLError as e:
        raise RegistryError(f"Invalid YAML in {path}: {e}") from e

    try:
        spec = _RegistryFile.model_validate(raw or {})
    except ValidationError as e:
        raise RegistryError(f"Invalid services file {path}: {e}") from e

    proxy = None
    if spec.database_proxy is not None:
        proxy = database_proxy_target(spec.database_proxy.url, spec.database_proxy.name)

    return ServiceRegistry(
        targets=[
            ServiceTarget(s.name, s.url, critical=s.critical, failure_hint=s.failure_hint)
            for s in spec.services
        ],
        proxy_check=proxy,
    )


def build_registry(settings: Settings) -> ServiceRegistry:
    """Registry from the configured services file, or the built-in one."""
    if settings.services_file:
        return load_registry(settings.services_file)
    return default_registry(settings)
