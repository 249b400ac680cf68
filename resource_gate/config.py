"""Environment configuration, read once at import time."""

import os

from resource_gate.exceptions import ConfigurationError
from resource_gate.security.allowlist import DEFAULT_DOMAINS, AllowedDomainSet


def _split_csv(raw: str) -> list[str]:
    return [item.strip() for item in raw.split(",") if item.strip()]


def _float_env(name: str, default: float) -> float:
    raw = os.environ.get(name, "").strip()
    if not raw:
        return default
    try:
        value = float(raw)
    except ValueError:
        raise ConfigurationError(name, f"'{raw}' is not a number") from None
    if value <= 0:
        raise ConfigurationError(name, "must be greater than zero")
    return value


def _int_env(name: str, default: int, minimum: int = 0) -> int:
    raw = os.environ.get(name, "").strip()
    if not raw:
        return default
    try:
        value = int(raw)
    except ValueError:
        raise ConfigurationError(name, f"'{raw}' is not an integer") from None
    if value < minimum:
        raise ConfigurationError(name, f"must be at least {minimum}")
    return value


def build_allowed_domains(
    override: str = "", extra: str = ""
) -> AllowedDomainSet:
    """Build the allowlist from the built-in list or an override, plus additions."""
    base = _split_csv(override) or list(DEFAULT_DOMAINS)
    return AllowedDomainSet(base + _split_csv(extra))


DNS_TIMEOUT_SECONDS = _float_env("DNS_TIMEOUT_SECONDS", 3.0)
METADATA_FETCH_TIMEOUT = _float_env("METADATA_FETCH_TIMEOUT", 10.0)
METADATA_MAX_REDIRECTS = _int_env("METADATA_MAX_REDIRECTS", 3)
METADATA_MAX_BYTES = _int_env("METADATA_MAX_BYTES", 1_000_000, minimum=1)
METADATA_RATE_LIMIT = os.environ.get("METADATA_RATE_LIMIT", "30/minute").strip()

API_KEY = os.environ.get("API_KEY", "").strip()
CORS_ORIGINS = _split_csv(os.environ.get("CORS_ORIGINS", ""))

ALLOWED_DOMAINS = build_allowed_domains(
    os.environ.get("RESOURCE_ALLOWED_DOMAINS", ""),
    os.environ.get("RESOURCE_EXTRA_DOMAINS", ""),
)


def get_allowed_domains() -> AllowedDomainSet:
    """Return the process-wide allowlist."""
    return ALLOWED_DOMAINS
