"""Runtime configuration for the SAP maintenance relay."""
from __future__ import annotations

import logging
import os
from dataclasses import dataclass, fields
from typing import Any, Mapping

from dotenv import load_dotenv

logger = logging.getLogger(__name__)

DEFAULT_PORT = 3000

REQUIRED_VARIABLES: dict[str, str] = {
    "username": "SAP_USERNAME",
    "password": "SAP_PASSWORD",
    "client": "SAP_CLIENT",
    "login_url": "SAP_LOGIN_URL",
    "plant_mapping_url": "SAP_PLANT_MAPPING_URL",
    "notifications_url": "SAP_NOTIFICATIONS_URL",
    "pm_details_url": "SAP_PM_DETAILS_URL",
    "work_orders_url": "SAP_WORK_ORDERS_URL",
}


class ConfigurationError(RuntimeError):
    """Raised when a setting needed for an upstream call is missing."""


def parse_bool(value: Any, default: bool = False) -> bool:
    """Parse an environment flag such as ``true``/``0``/``off``."""
    if isinstance(value, bool):
        return value
    if value is None:
        return default
    lowered = str(value).strip().lower()
    if lowered in {"true", "t", "yes", "y", "on", "1"}:
        return True
    if lowered in {"false", "f", "no", "n", "off", "0"}:
        return False
    return default


def _parse_timeout(value: str | None) -> float | None:
    if value is None or not value.strip():
        return None
    try:
        timeout = float(value)
    except ValueError:
        logger.warning("Ignoring invalid SAP_TIMEOUT value %r", value)
        return None
    return timeout if timeout > 0 else None


def _parse_port(value: str | None) -> int:
    if value is None or not value.strip():
        return DEFAULT_PORT
    try:
        return int(value)
    except ValueError:
        logger.warning("Ignoring invalid PORT value %r, using %s", value, DEFAULT_PORT)
        return DEFAULT_PORT


@dataclass(frozen=True, slots=True)
class Settings:
    """Immutable process configuration, built once at start-up."""

    username: str = ""
    password: str = ""
    client: str = ""
    login_url: str = ""
    plant_mapping_url: str = ""
    notifications_url: str = ""
    pm_details_url: str = ""
    work_orders_url: str = ""
    port: int = DEFAULT_PORT
    verify_tls: bool = True
    csrf_fetch: bool = True
    timeout: float | None = None
    cors_origins: tuple[str, ...] = ("*",)
    log_level: str = "INFO"

    @classmethod
    def from_env(cls, environ: Mapping[str, str] | None = None, *, dotenv: bool = True) -> "Settings":
        """Build settings from ``environ`` (defaults to ``os.environ``).

        A ``.env`` file in the working directory is loaded first unless
        ``dotenv`` is false; variables already present in the environment win.
        """

        if environ is None:
            if dotenv:
                load_dotenv()
            environ = os.environ

        values: dict[str, Any] = {
            attribute: environ.get(variable, "") for attribute, variable in REQUIRED_VARIABLES.items()
        }

        origins = [origin.strip() for origin in environ.get("API_CORS_ORIGINS", "").split(",") if origin.strip()]

        return cls(
            **values,
            port=_parse_port(environ.get("PORT")),
            verify_tls=parse_bool(environ.get("SAP_VERIFY_TLS"), default=True),
            csrf_fetch=parse_bool(environ.get("SAP_CSRF_FETCH"), default=True),
            timeout=_parse_timeout(environ.get("SAP_TIMEOUT")),
            cors_origins=tuple(origins) or ("*",),
            log_level=(environ.get("LOG_LEVEL") or "INFO").upper(),
        )

    def missing_variables(self) -> list[str]:
        """Names of required environment variables that were left empty."""
        return [variable for attribute, variable in REQUIRED_VARIABLES.items() if not getattr(self, attribute)]

    def require(self, attribute: str) -> str:
        value = getattr(self, attribute)
        if not value:
            raise ConfigurationError(f"{REQUIRED_VARIABLES[attribute]} is not configured")
        return value

    def __repr__(self) -> str:
        shown = ", ".join(
            f"{item.name}={'***' if item.name == 'password' else getattr(self, item.name)!r}" for item in fields(self)
        )
        return f"Settings({shown})"


def configure_logging(level: str = "INFO") -> None:
    """Install a single stream handler on the root logger."""

    root = logging.getLogger()
    for handler in list(root.handlers):
        root.removeHandler(handler)
    handler = logging.StreamHandler()
    handler.setFormatter(logging.Formatter("%(asctime)s - [%(levelname)s] - %(name)s - %(message)s"))
    root.addHandler(handler)
    root.setLevel(getattr(logging, level.upper(), logging.INFO))


__all__ = ["ConfigurationError", "DEFAULT_PORT", "Settings", "configure_logging", "parse_bool"]
