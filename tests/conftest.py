"""
Shared pytest fixtures and configuration for all tests.
"""

import socket

import pytest

from resource_gate.security.allowlist import DEFAULT_ALLOWED_DOMAINS
from resource_gate.security.resolver import HostResolver
from resource_gate.security.validator import ResourceUrlValidator


def fake_lookup(records: dict):
    """Build an async lookup from {(hostname, family): list[str] | Exception}.

    Missing entries behave like NXDOMAIN.
    """
    calls: list[tuple[str, int]] = []

    async def lookup(hostname: str, family: int) -> list[str]:
        calls.append((hostname, family))
        result = records.get((hostname, family))
        if result is None:
            raise socket.gaierror(socket.EAI_NONAME, "Name or service not known")
        if isinstance(result, Exception):
            raise result
        return list(result)

    lookup.calls = calls
    return lookup


@pytest.fixture
def make_resolver():
    """Factory for a HostResolver backed by canned DNS answers."""

    def _make(records: dict, timeout: float = 1.0) -> HostResolver:
        return HostResolver(timeout=timeout, lookup=fake_lookup(records))

    return _make


@pytest.fixture
def make_validator(make_resolver):
    """Factory for a ResourceUrlValidator with canned DNS answers."""

    def _make(records: dict, allowed=DEFAULT_ALLOWED_DOMAINS) -> ResourceUrlValidator:
        return ResourceUrlValidator(allowed_domains=allowed, resolver=make_resolver(records))

    return _make


@pytest.fixture
def public_records():
    """Public A records for the hosts used across tests."""
    return {
        ("youtube.com", socket.AF_INET): ["142.250.72.14"],
        ("www.youtube.com", socket.AF_INET): ["142.250.72.14"],
        ("github.com", socket.AF_INET): ["140.82.112.3"],
        ("codepen.io", socket.AF_INET): ["104.18.20.45"],
        ("developer.mozilla.org", socket.AF_INET): ["34.111.97.67"],
        ("medium.com", socket.AF_INET): ["162.159.152.4"],
    }
