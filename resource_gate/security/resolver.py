"""DNS resolution with private-address checks (anti-SSRF / DNS rebinding).

Addresses are validated at call time only. A caller that later fetches the
URL by hostname re-resolves it, so an answer that changes between the check
and the fetch is not caught here; pin the validated address in the fetch
layer if that matters.
"""

import asyncio
import enum
import logging
import socket
from dataclasses import dataclass
from typing import Awaitable, Callable

from resource_gate.security.addresses import is_private_address

logger = logging.getLogger(__name__)

DEFAULT_DNS_TIMEOUT = 3.0

Lookup = Callable[[str, int], Awaitable[list[str]]]


class HostStatus(str, enum.Enum):
    PUBLIC = "public"
    UNRESOLVABLE = "unresolvable"
    PRIVATE = "private"


@dataclass(frozen=True)
class HostResolution:
    """Outcome of resolving one hostname across both address families."""

    hostname: str
    addresses: tuple[str, ...]
    status: HostStatus

    @property
    def is_public(self) -> bool:
        return self.status is HostStatus.PUBLIC


async def system_lookup(hostname: str, family: int) -> list[str]:
    """Resolve ``hostname`` for one address family via the event loop's getaddrinfo."""
    loop = asyncio.get_running_loop()
    infos = await loop.getaddrinfo(
        hostname, None, family=family, type=socket.SOCK_STREAM
    )
    addresses: list[str] = []
    for _family, _type, _proto, _canonname, sockaddr in infos:
        ip = str(sockaddr[0])
        if ip not in addresses:
            addresses.append(ip)
    return addresses


class HostResolver:
    """Resolves A and AAAA records independently and classifies the results.

    A failed lookup for one family (no record, timeout, network error) counts
    as "no addresses of that family". The host is accepted only when at least
    one address resolved and none of them is private. No retries.
    """

    FAMILIES = (socket.AF_INET, socket.AF_INET6)

    def __init__(
        self, timeout: float = DEFAULT_DNS_TIMEOUT, lookup: Lookup | None = None
    ) -> None:
        self.timeout = timeout
        self._lookup = lookup or system_lookup

    async def _lookup_family(self, hostname: str, family: int) -> list[str]:
        try:
            return await asyncio.wait_for(
                self._lookup(hostname, family), timeout=self.timeout
            )
        except (OSError, asyncio.TimeoutError, UnicodeError) as e:
            # socket.gaierror is an OSError subclass
            logger.debug(
                "dns_lookup_failed",
                extra={
                    "hostname": hostname,
                    "family": socket.AddressFamily(family).name,
                    "error": repr(e),
                },
            )
            return []

    async def resolve(self, hostname: str) -> HostResolution:
        """Resolve ``hostname`` and report whether every address is public."""
        results = await asyncio.gather(
            *(self._lookup_family(hostname, f) for f in self.FAMILIES)
        )
        addresses = tuple(ip for family_ips in results for ip in family_ips)

        if not addresses:
            status = HostStatus.UNRESOLVABLE
        elif any(is_private_address(ip) for ip in addresses):
            status = HostStatus.PRIVATE
        else:
            status = HostStatus.PUBLIC

        if status is not HostStatus.PUBLIC:
            logger.info(
                "host_rejected",
                extra={
                    "hostname": hostname,
                    "status": status.value,
                    "addresses": list(addresses),
                },
            )
        return HostResolution(hostname=hostname, addresses=addresses, status=status)

    async def resolve_and_validate_host(self, hostname: str) -> bool:
        """Return True only if ``hostname`` resolves to public addresses exclusively."""
        return (await self.resolve(hostname)).is_public
