"""Configuration management for the splitIt web front."""
from __future__ import annotations

import os
from dataclasses import dataclass, replace
from pathlib import Path
from typing import Dict, Mapping, Optional

import yaml

DEFAULT_API_URL = "http://localhost:8080"

_ENV_KEYS = {
    "api_base_url": "SPLITIT_API_URL",
    "api_timeout": "SPLITIT_API_TIMEOUT",
    "api_verify": "SPLITIT_API_VERIFY",
    "session_secret": "SPLITIT_SESSION_SECRET",
    "session_ttl_hours": "SPLITIT_SESSION_TTL_HOURS",
    "secure_cookie": "SPLITIT_SESSION_SECURE",
}


def _env_flag(value: Optional[str], default: bool = False) -> bool:
    if value is None:
        return default
    return value.strip().lower() in {"1", "true", "yes", "on"}


def _parse_verify_setting(value: object) -> Optional[str | bool]:
    if isinstance(value, bool):
        return value
    lowered = str(value).strip().lower()
    if lowered in {"", "default"}:
        return None
    if lowered in {"0", "false", "no", "off"}:
        return False
    if lowered in {"1", "true", "yes", "on"}:
        return True
    return str(Path(str(value)).expanduser())


def _normalize_base_url(base_url: str) -> str:
    cleaned = (base_url or "").strip()
    if not cleaned:
        raise ValueError("API base URL must not be empty")
    return cleaned.rstrip("/")


@dataclass(frozen=True)
class Settings:
    """Runtime settings for the REST client and the web application."""

    api_base_url: str = DEFAULT_API_URL
    api_timeout: float = 10.0
    api_verify: Optional[str | bool] = None
    session_secret: Optional[str] = None
    session_ttl_hours: int = 8
    secure_cookie: bool = False

    @staticmethod
    def from_dict(data: Mapping[str, object]) -> "Settings":
        """Create :class:`Settings` from raw dictionary data."""
        unknown = set(data.keys()) - set(_ENV_KEYS)
        if unknown:
            raise ValueError(f"Unknown configuration keys: {', '.join(sorted(unknown))}")

        timeout = float(data.get("api_timeout", 10.0))
        if timeout <= 0:
            raise ValueError("api_timeout must be positive")
        ttl = int(data.get("session_ttl_hours", 8))
        if ttl <= 0:
            raise ValueError("session_ttl_hours must be positive")

        verify = data.get("api_verify")
        secure = data.get("secure_cookie", False)
        secret = data.get("session_secret")

        return Settings(
            api_base_url=_normalize_base_url(str(data.get("api_base_url", DEFAULT_API_URL))),
            api_timeout=timeout,
            api_verify=_parse_verify_setting(verify) if verify is not None else None,
            session_secret=str(secret) if secret else None,
            session_ttl_hours=ttl,
            secure_cookie=secure if isinstance(secure, bool) else _env_flag(str(secure)),
        )

    def with_overrides(self, **changes: object) -> "Settings":
        return replace(self, **changes)


def _environment_values(environ: Mapping[str, str]) -> Dict[str, object]:
    values: Dict[str, object] = {}
    for key, env_name in _ENV_KEYS.items():
        raw = environ.get(env_name)
        if raw is None or not raw.strip():
            continue
        values[key] = raw.strip()
    return values


def load_settings(
    config_path: Optional[Path] = None,
    *,
    environ: Optional[Mapping[str, str]] = None,
) -> Settings:
    """Load settings from an optional YAML file, then apply environment overrides."""
    environ = os.environ if environ is None else environ

    values: Dict[str, object] = {}
    if config_path is not None and config_path.exists():
        with config_path.open("r", encoding="utf-8") as handle:
            raw = yaml.safe_load(handle) or {}
        if not isinstance(raw, dict):
            raise ValueError("Configuration file must contain a mapping of settings")
        values.update(raw)

    values.update(_environment_values(environ))
    return Settings.from_dict(values)


def resolve_config_path(env_value: Optional[str]) -> Path:
    """Resolve the path to the configuration file."""
    if env_value:
        candidate = Path(env_value).expanduser().resolve(strict=False)
    else:
        candidate = (Path(__file__).resolve().parent.parent / "config" / "splitit.yaml").resolve(strict=False)
    return candidate


__all__ = ["DEFAULT_API_URL", "Settings", "load_settings", "resolve_config_path"]
