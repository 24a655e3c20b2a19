"""Configuration loading and validation."""

from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, FrozenSet, Optional

import yaml

DEFAULT_TIMEOUT_SECONDS = 30.0

# Any 2xx answer means the receiver took the samples (Prometheus itself
# replies 204, Mimir/Cortex 200, some proxies 202).
DEFAULT_ACCEPTED_STATUSES: FrozenSet[int] = frozenset(range(200, 300))


@dataclass
class ClientConfig:
    """Remote-write client configuration."""

    url: str = "http://localhost:9090/api/v1/write"
    timeout_seconds: Optional[float] = DEFAULT_TIMEOUT_SECONDS
    headers: Dict[str, str] = field(default_factory=dict)
    accepted_statuses: FrozenSet[int] = DEFAULT_ACCEPTED_STATUSES


@dataclass
class Config:
    """Root configuration object."""

    client: ClientConfig = field(default_factory=ClientConfig)
    log_level: str = "INFO"


def _dict_to_dataclass(cls: type, data: dict[str, Any]) -> Any:
    """Convert a flat dictionary to a dataclass instance, ignoring unknown keys."""
    if data is None:
        return cls()

    field_names = set(cls.__dataclass_fields__)
    kwargs = {key: value for key, value in data.items() if key in field_names}
    return cls(**kwargs)


def _client_config(data: dict[str, Any]) -> ClientConfig:
    config = _dict_to_dataclass(ClientConfig, data)

    # YAML gives us lists and arbitrary scalars; normalise them
    if config.timeout_seconds is not None:
        config.timeout_seconds = float(config.timeout_seconds)
    config.headers = {str(k): str(v) for k, v in (config.headers or {}).items()}
    statuses = config.accepted_statuses
    if statuses is None:
        statuses = DEFAULT_ACCEPTED_STATUSES
    elif isinstance(statuses, (int, str)):
        statuses = [statuses]
    config.accepted_statuses = frozenset(int(s) for s in statuses)
    return config


def load_config(config_path: str | Path | None = None) -> Config:
    """Load configuration from a YAML file.

    Example file::

        log_level: DEBUG
        client:
          url: https://mimir.example.com/api/v1/push
          timeout_seconds: 10
          headers:
            X-Scope-OrgID: tenant1
          accepted_statuses: [200, 202, 204]

    Args:
        config_path: Path to config file. If None, searches default locations.

    Returns:
        Config object with all settings.
    """
    search_paths = [
        Path(config_path) if config_path else None,
        Path("config/promwrite.yaml"),
        Path("/etc/promwrite/config.yaml"),
        Path.home() / ".config" / "promwrite" / "config.yaml",
    ]

    config_file = None
    for path in search_paths:
        if path and path.exists():
            config_file = path
            break

    if config_file is None:
        # Return defaults if no config file found
        return Config()

    with open(config_file) as f:
        data = yaml.safe_load(f) or {}

    return Config(
        client=_client_config(data.get("client") or {}),
        log_level=data.get("log_level", "INFO"),
    )
