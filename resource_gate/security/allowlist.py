"""Trusted-domain allowlist for resource metadata fetching."""

import logging
from typing import Iterable, Iterator
from urllib.parse import urlsplit

from resource_gate.exceptions import ConfigurationError

logger = logging.getLogger(__name__)

# Add new trusted domains here as needed
DEFAULT_DOMAINS = (
    # Video platforms
    "youtube.com",
    "www.youtube.com",
    "youtu.be",
    "vimeo.com",
    "www.vimeo.com",
    # Code/interactive platforms
    "codepen.io",
    "www.codepen.io",
    "codesandbox.io",
    "www.codesandbox.io",
    "replit.com",
    "www.replit.com",
    "jsfiddle.net",
    "www.jsfiddle.net",
    # Documentation/learning platforms
    "github.com",
    "www.github.com",
    "gitlab.com",
    "www.gitlab.com",
    "stackoverflow.com",
    "www.stackoverflow.com",
    "developer.mozilla.org",
    "docs.python.org",
    "nodejs.org",
    "www.nodejs.org",
    "reactjs.org",
    "www.reactjs.org",
    "w3schools.com",
    "www.w3schools.com",
    "freecodecamp.org",
    "www.freecodecamp.org",
    "medium.com",
    "www.medium.com",
    "dev.to",
    "www.dev.to",
    "geeksforgeeks.org",
    "www.geeksforgeeks.org",
    "tutorialspoint.com",
    "www.tutorialspoint.com",
    "udemy.com",
    "www.udemy.com",
    "coursera.org",
    "www.coursera.org",
    "edx.org",
    "www.edx.org",
    "khanacademy.org",
    "www.khanacademy.org",
)

_FORBIDDEN_CHARS = set("*/:?#@ \t")


def _normalize_domain(raw: str) -> str:
    domain = raw.strip().lower().rstrip(".")
    if not domain:
        raise ConfigurationError("allowed domain", "empty entry")
    if any(ch in _FORBIDDEN_CHARS for ch in domain):
        raise ConfigurationError(
            "allowed domain", f"'{raw}' must be a bare host (no wildcards or paths)"
        )
    return domain


class AllowedDomainSet:
    """Immutable set of trusted domains.

    A hostname matches an entry when it equals the entry or is a proper
    subdomain of it (dot boundary), never on plain substring containment.
    """

    __slots__ = ("_domains",)

    def __init__(self, domains: Iterable[str]) -> None:
        object.__setattr__(
            self, "_domains", frozenset(_normalize_domain(d) for d in domains)
        )

    def __setattr__(self, name: str, value: object) -> None:
        raise AttributeError("AllowedDomainSet is read-only")

    def __contains__(self, domain: object) -> bool:
        return isinstance(domain, str) and domain.lower() in self._domains

    def __iter__(self) -> Iterator[str]:
        return iter(sorted(self._domains))

    def __len__(self) -> int:
        return len(self._domains)

    def __repr__(self) -> str:
        return f"AllowedDomainSet({len(self._domains)} domains)"

    def matches(self, hostname: str) -> bool:
        """Check whether ``hostname`` is an allowed domain or a subdomain of one."""
        host = hostname.lower().rstrip(".")
        if not host:
            return False
        return any(host == d or host.endswith(f".{d}") for d in self._domains)


DEFAULT_ALLOWED_DOMAINS = AllowedDomainSet(DEFAULT_DOMAINS)


def is_allowed_resource_url(
    url: str, allowed: AllowedDomainSet = DEFAULT_ALLOWED_DOMAINS
) -> bool:
    """Check if a URL's hostname is on the allowlist. Unparsable URLs fail closed."""
    try:
        hostname = urlsplit(url).hostname
    except (ValueError, TypeError, AttributeError):
        return False
    if not hostname:
        return False
    return allowed.matches(hostname)
