"""Tests for resource_gate/security/resolver.py: HostResolver.

DNS is never queried: every resolver is built on canned answers.
"""

import asyncio
import socket
from unittest.mock import AsyncMock, patch

from resource_gate.security.resolver import HostResolver, HostStatus, system_lookup

V4 = socket.AF_INET
V6 = socket.AF_INET6


class TestResolve:
    async def test_public_ipv4_only(self, make_resolver):
        """A failed AAAA lookup is tolerated when A resolves."""
        resolver = make_resolver({("github.com", V4): ["140.82.112.3"]})
        resolution = await resolver.resolve("github.com")
        assert resolution.status is HostStatus.PUBLIC
        assert resolution.addresses == ("140.82.112.3",)
        assert resolution.is_public is True

    async def test_public_ipv6_only(self, make_resolver):
        resolver = make_resolver({("v6.example", V6): ["2001:4860:4860::8888"]})
        resolution = await resolver.resolve("v6.example")
        assert resolution.status is HostStatus.PUBLIC

    async def test_both_families_public(self, make_resolver):
        resolver = make_resolver(
            {
                ("youtube.com", V4): ["142.250.72.14"],
                ("youtube.com", V6): ["2607:f8b0:4005:80a::200e"],
            }
        )
        resolution = await resolver.resolve("youtube.com")
        assert resolution.status is HostStatus.PUBLIC
        assert len(resolution.addresses) == 2

    async def test_nothing_resolves(self, make_resolver):
        resolver = make_resolver({})
        resolution = await resolver.resolve("nxdomain.example")
        assert resolution.status is HostStatus.UNRESOLVABLE
        assert resolution.addresses == ()

    async def test_private_ipv4(self, make_resolver):
        resolver = make_resolver({("rebind.example", V4): ["127.0.0.1"]})
        resolution = await resolver.resolve("rebind.example")
        assert resolution.status is HostStatus.PRIVATE

    async def test_one_private_address_fails_all(self, make_resolver):
        """Any private address among the answers rejects the host."""
        resolver = make_resolver(
            {
                ("mixed.example", V4): ["8.8.8.8", "10.0.0.5"],
                ("mixed.example", V6): ["2001:4860:4860::8888"],
            }
        )
        resolution = await resolver.resolve("mixed.example")
        assert resolution.status is HostStatus.PRIVATE

    async def test_private_ipv6_with_public_ipv4(self, make_resolver):
        resolver = make_resolver(
            {
                ("mixed.example", V4): ["8.8.8.8"],
                ("mixed.example", V6): ["fd00::1"],
            }
        )
        assert (await resolver.resolve("mixed.example")).status is HostStatus.PRIVATE

    async def test_lookup_errors_are_not_raised(self, make_resolver):
        resolver = make_resolver(
            {
                ("flaky.example", V4): OSError("network unreachable"),
                ("flaky.example", V6): socket.gaierror("no AAAA"),
            }
        )
        resolution = await resolver.resolve("flaky.example")
        assert resolution.status is HostStatus.UNRESOLVABLE

    async def test_lookup_failure_is_logged_with_fields(self, make_resolver, caplog):
        resolver = make_resolver({("github.com", V4): ["140.82.112.3"]})
        with caplog.at_level("DEBUG", logger="resource_gate.security.resolver"):
            await resolver.resolve("github.com")
        record = next(r for r in caplog.records if r.getMessage() == "dns_lookup_failed")
        assert record.hostname == "github.com"
        assert record.family == "AF_INET6"
        assert "gaierror" in record.error

    async def test_both_families_are_queried(self, make_resolver):
        resolver = make_resolver({("github.com", V4): ["140.82.112.3"]})
        await resolver.resolve("github.com")
        assert sorted(resolver._lookup.calls) == sorted(
            [("github.com", V4), ("github.com", V6)]
        )


class TestTimeout:
    async def test_timeout_counts_as_failure(self):
        """A lookup slower than the timeout fails closed for that family."""

        async def slow_lookup(hostname, family):
            if family == V4:
                await asyncio.sleep(5)
                return ["8.8.8.8"]
            raise socket.gaierror("no AAAA")

        resolver = HostResolver(timeout=0.01, lookup=slow_lookup)
        resolution = await resolver.resolve("slow.example")
        assert resolution.status is HostStatus.UNRESOLVABLE

    async def test_timeout_on_one_family_keeps_the_other(self):
        async def lookup(hostname, family):
            if family == V6:
                await asyncio.sleep(5)
            return ["8.8.8.8"]

        resolver = HostResolver(timeout=0.01, lookup=lookup)
        resolution = await resolver.resolve("half.example")
        assert resolution.status is HostStatus.PUBLIC
        assert resolution.addresses == ("8.8.8.8",)


class TestResolveAndValidateHost:
    async def test_true_for_public(self, make_resolver):
        resolver = make_resolver({("github.com", V4): ["140.82.112.3"]})
        assert await resolver.resolve_and_validate_host("github.com") is True

    async def test_false_for_private(self, make_resolver):
        resolver = make_resolver({("metadata.example", V4): ["169.254.169.254"]})
        assert await resolver.resolve_and_validate_host("metadata.example") is False

    async def test_false_for_unresolvable(self, make_resolver):
        assert await make_resolver({}).resolve_and_validate_host("gone.example") is False

    async def test_idempotent(self, make_resolver):
        resolver = make_resolver({("github.com", V4): ["140.82.112.3"]})
        first = await resolver.resolve("github.com")
        second = await resolver.resolve("github.com")
        assert first == second


class TestSystemLookup:
    async def test_collects_unique_addresses(self):
        infos = [
            (V4, socket.SOCK_STREAM, 6, "", ("140.82.112.3", 0)),
            (V4, socket.SOCK_STREAM, 6, "", ("140.82.112.3", 0)),
            (V4, socket.SOCK_STREAM, 6, "", ("140.82.112.4", 0)),
        ]
        loop = asyncio.get_running_loop()
        with patch.object(loop, "getaddrinfo", AsyncMock(return_value=infos)) as gai:
            addresses = await system_lookup("github.com", V4)
        assert addresses == ["140.82.112.3", "140.82.112.4"]
        gai.assert_awaited_once_with(
            "github.com", None, family=V4, type=socket.SOCK_STREAM
        )

    async def test_default_resolver_uses_system_lookup(self):
        infos = [(V6, socket.SOCK_STREAM, 6, "", ("2001:4860:4860::8888", 0, 0, 0))]
        loop = asyncio.get_running_loop()

        async def fake_getaddrinfo(host, port, family=0, type=0):
            if family == V6:
                return infos
            raise socket.gaierror("no A")

        with patch.object(loop, "getaddrinfo", side_effect=fake_getaddrinfo):
            resolution = await HostResolver(timeout=1.0).resolve("dns.google")
        assert resolution.status is HostStatus.PUBLIC
        assert resolution.addresses == ("2001:4860:4860::8888",)
