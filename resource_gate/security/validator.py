"""Resource URL validation: protocol, allowlist and resolved-address checks.

``validate_resource_url`` is the single entry point used before any outbound
fetch of a user- or AI-supplied URL. Every failure is returned as a
``ValidationResult`` with a reason code; nothing is raised for bad input.
The reason code is meant for logs and tests, not for untrusted clients.
"""

import enum
import logging
from dataclasses import dataclass
from urllib.parse import urlsplit

from resource_gate.security.allowlist import AllowedDomainSet
from resource_gate.security.resolver import HostResolver, HostStatus

logger = logging.getLogger(__name__)

ALLOWED_SCHEMES = frozenset({"http", "https"})


class ReasonCode(str, enum.Enum):
    INVALID_URL = "InvalidUrl"
    UNSUPPORTED_PROTOCOL = "UnsupportedProtocol"
    DOMAIN_NOT_ALLOWED = "DomainNotAllowed"
    UNRESOLVABLE_HOST = "UnresolvableHost"
    PRIVATE_ADDRESS = "PrivateAddress"


@dataclass(frozen=True)
class ValidationResult:
    valid: bool
    reason: ReasonCode | None = None

    @classmethod
    def ok(cls) -> "ValidationResult":
        return cls(valid=True)

    @classmethod
    def rejected(cls, reason: ReasonCode) -> "ValidationResult":
        return cls(valid=False, reason=reason)

    def to_dict(self) -> dict:
        if self.valid:
            return {"valid": True}
        return {"valid": False, "reason": self.reason.value}


def _parse(url: object) -> tuple[str, str | None] | None:
    """Return (scheme, hostname); None if it is not a URL at all.

    ``hostname`` is None when the URL has no usable authority (``http://``,
    ``mailto:x``) or a malformed port.
    """
    if not isinstance(url, str) or not url.strip():
        return None
    try:
        parts = urlsplit(url.strip())
    except ValueError:
        return None
    if not parts.scheme:
        return None
    try:
        hostname = parts.hostname
        parts.port  # raises ValueError on out-of-range or non-numeric ports
    except ValueError:
        hostname = None
    return parts.scheme.lower(), (hostname.lower() if hostname else None)


class ResourceUrlValidator:
    """Combines the protocol, allowlist and DNS checks into one decision.

    Holds no mutable state; one instance is shared by all concurrent calls.
    """

    def __init__(self, allowed_domains: AllowedDomainSet, resolver: HostResolver):
        self.allowed_domains = allowed_domains
        self.resolver = resolver

    async def validate(self, url: str) -> ValidationResult:
        """Run every check in order; the first failing step decides the result."""
        parsed = _parse(url)
        if parsed is None:
            return self._reject(url, ReasonCode.INVALID_URL)
        scheme, hostname = parsed

        if scheme not in ALLOWED_SCHEMES:
            return self._reject(url, ReasonCode.UNSUPPORTED_PROTOCOL)

        if not hostname:
            return self._reject(url, ReasonCode.INVALID_URL)

        if not self.allowed_domains.matches(hostname):
            return self._reject(url, ReasonCode.DOMAIN_NOT_ALLOWED)

        resolution = await self.resolver.resolve(hostname)
        if resolution.status is HostStatus.UNRESOLVABLE:
            return self._reject(url, ReasonCode.UNRESOLVABLE_HOST)
        if resolution.status is HostStatus.PRIVATE:
            return self._reject(url, ReasonCode.PRIVATE_ADDRESS)

        return ValidationResult.ok()

    @staticmethod
    def _reject(url: object, reason: ReasonCode) -> ValidationResult:
        logger.info(
            "resource_url_rejected",
            extra={"url": str(url)[:512], "reason": reason.value},
        )
        return ValidationResult.rejected(reason)


_default_validator: ResourceUrlValidator | None = None


def get_validator() -> ResourceUrlValidator:
    """Return the process-wide validator built from configuration."""
    global _default_validator
    if _default_validator is None:
        from resource_gate import config

        _default_validator = ResourceUrlValidator(
            allowed_domains=config.get_allowed_domains(),
            resolver=HostResolver(timeout=config.DNS_TIMEOUT_SECONDS),
        )
    return _default_validator


async def validate_resource_url(url: str) -> ValidationResult:
    """Validate that a URL is safe to fetch (allowlist + resolved-IP checks)."""
    return await get_validator().validate(url)
