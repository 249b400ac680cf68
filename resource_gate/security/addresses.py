"""Private/reserved address classification for resolved IP literals."""

import ipaddress

# Private/reserved network ranges
PRIVATE_NETS = [
    ipaddress.ip_network("127.0.0.0/8"),
    ipaddress.ip_network("10.0.0.0/8"),
    ipaddress.ip_network("172.16.0.0/12"),
    ipaddress.ip_network("192.168.0.0/16"),
    ipaddress.ip_network("169.254.0.0/16"),  # link-local / cloud metadata
    ipaddress.ip_network("100.64.0.0/10"),  # carrier-grade NAT
    ipaddress.ip_network("0.0.0.0/32"),
    ipaddress.ip_network("::1/128"),
    ipaddress.ip_network("fe80::/10"),
    ipaddress.ip_network("fc00::/7"),
    ipaddress.ip_network("::ffff:127.0.0.0/104"),  # IPv4-mapped loopback
]


def is_private_address(ip: str) -> bool:
    """Return True if ``ip`` falls in one of PRIVATE_NETS.

    Input is expected to be a literal returned by DNS resolution. Strings that
    do not parse as an address are reported as not private; the resolver still
    requires at least one address to resolve before a host is accepted.
    """
    try:
        addr = ipaddress.ip_address(ip)
    except ValueError:
        return False
    return any(addr in net for net in PRIVATE_NETS)
