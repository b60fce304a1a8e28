"""Configuration loading for bandwidth-guard."""

import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

import structlog
import yaml

from bandwidth_guard.usage.models import ThresholdConfig

log = structlog.get_logger()

DEFAULT_API_URL = "https://api.hetzner.cloud/v1"
DEFAULT_TIMEOUT_SECONDS = 30.0
DEFAULT_CONFIG_PATH = Path.home() / ".bandwidth-guard" / "config.yaml"

_TRUE_VALUES = {"true", "1", "yes", "on"}
_FALSE_VALUES = {"false", "0", "no", "off", ""}


class ConfigError(Exception):
    """Raised when required settings are missing or invalid."""

    pass


def _section(data: dict[str, Any], name: str) -> dict[str, Any]:
    section = data.get(name) or {}
    if not isinstance(section, dict):
        raise ConfigError(f"'{name}' section must be a mapping, got {type(section).__name__}")
    return section


def _clean(value: Any) -> str | None:
    """Strip whitespace (e.g. a trailing newline from an env file); empty means unset."""
    if value is None:
        return None
    return str(value).strip() or None


def _parse_percent(name: str, value: Any) -> int:
    try:
        percent = int(value)
    except (TypeError, ValueError) as e:
        raise ConfigError(f"{name} must be an integer percentage, got {value!r}") from e
    if not 0 < percent <= 100:
        raise ConfigError(f"{name} must be in (0, 100], got {percent}")
    return percent


def _parse_bool(name: str, value: Any) -> bool:
    if isinstance(value, bool):
        return value
    text = str(value).strip().lower()
    if text in _TRUE_VALUES:
        return True
    if text in _FALSE_VALUES:
        return False
    raise ConfigError(f"{name} must be a boolean, got {value!r}")


def _parse_timeout(name: str, value: Any) -> float:
    try:
        timeout = float(value)
    except (TypeError, ValueError) as e:
        raise ConfigError(f"{name} must be a number of seconds, got {value!r}") from e
    if timeout <= 0:
        raise ConfigError(f"{name} must be positive, got {timeout}")
    return timeout


@dataclass(frozen=True)
class Config:
    """Application configuration, read once per run."""

    api_token: str
    api_url: str = DEFAULT_API_URL
    slack_webhook_url: str | None = None
    thresholds: ThresholdConfig = field(default_factory=ThresholdConfig)
    send_always: bool = False
    timeout_seconds: float = DEFAULT_TIMEOUT_SECONDS

    @classmethod
    def from_env(cls) -> "Config":
        """Load configuration from environment variables."""
        return cls._build({})

    @classmethod
    def from_file(cls, path: Path) -> "Config":
        """Load configuration from a YAML file, with env var overrides."""
        data: dict[str, Any] = {}
        if path.exists():
            try:
                with open(path) as f:
                    data = yaml.safe_load(f) or {}
            except yaml.YAMLError as e:
                raise ConfigError(f"{path} is not valid YAML: {e}") from e
            if not isinstance(data, dict):
                raise ConfigError(f"{path} must contain a mapping")
            log.debug("Loaded config file", path=str(path))

        return cls._build(data)

    @classmethod
    def _build(cls, data: dict[str, Any]) -> "Config":
        hetzner = _section(data, "hetzner")
        slack = _section(data, "slack")
        thresholds = _section(data, "thresholds")

        def setting(env_name: str, section: dict[str, Any], key: str, default: Any) -> Any:
            value = os.environ.get(env_name)
            if value is not None:
                return value
            return section.get(key, default)

        api_token = _clean(setting("HETZNER_API_TOKEN", hetzner, "api_token", None))
        if not api_token:
            raise ConfigError("Set HETZNER_API_TOKEN first.")

        threshold_config = ThresholdConfig(
            notify_threshold=_parse_percent(
                "THRESHOLD_PERCENT_NOTIF",
                setting("THRESHOLD_PERCENT_NOTIF", thresholds, "notify_percent", 50),
            ),
            kill_threshold=_parse_percent(
                "THRESHOLD_PERCENT_KILL",
                setting("THRESHOLD_PERCENT_KILL", thresholds, "kill_percent", 90),
            ),
        )
        if threshold_config.notify_threshold > threshold_config.kill_threshold:
            log.warning(
                "Notify threshold is above kill threshold; NOTIFY tier will be empty",
                notify_threshold=threshold_config.notify_threshold,
                kill_threshold=threshold_config.kill_threshold,
            )

        return cls(
            api_token=api_token,
            api_url=(
                _clean(setting("HETZNER_API_URL", hetzner, "api_url", None)) or DEFAULT_API_URL
            ),
            slack_webhook_url=_clean(setting("SLACK_WEBHOOK_URL", slack, "webhook_url", None)),
            thresholds=threshold_config,
            send_always=_parse_bool(
                "SEND_USAGE_NOTIF_ALWAYS",
                setting("SEND_USAGE_NOTIF_ALWAYS", thresholds, "send_always", False),
            ),
            timeout_seconds=_parse_timeout(
                "REQUEST_TIMEOUT_SECONDS",
                setting(
                    "REQUEST_TIMEOUT_SECONDS", hetzner, "timeout_seconds", DEFAULT_TIMEOUT_SECONDS
                ),
            ),
        )
