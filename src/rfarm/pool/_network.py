"""Address resolution for the controller and the local bind interface."""

import ipaddress
import socket

import psutil

from rfarm.exceptions import AddressResolutionError


def resolve_controller_address(host: str) -> str:
    """Resolve the configured controller host to an IP address.

    A literal IPv4 or IPv6 address is returned in canonical form without a
    lookup. Anything else is resolved through DNS and the first returned
    address is used.

    Args:
        host: Literal IP or DNS name.

    Returns:
        The controller IP address as a string.

    Raises:
        AddressResolutionError: If the name yields no address.
    """
    candidate = host.strip()
    if not candidate:
        msg = "Controller host is empty"
        raise AddressResolutionError(msg, host=host)

    try:
        return str(ipaddress.ip_address(candidate))
    except ValueError:
        pass

    try:
        infos = socket.getaddrinfo(candidate, None, proto=socket.IPPROTO_TCP)
    except (socket.gaierror, UnicodeError) as e:
        msg = f"Can't resolve DNS name: {candidate}"
        raise AddressResolutionError(msg, host=host, cause=e) from e

    if not infos:
        msg = f"Can't resolve DNS name: {candidate}"
        raise AddressResolutionError(msg, host=host)

    return str(infos[0][4][0])


def get_local_ip() -> str | None:
    """Return the IPv4 address workers bind to.

    Interfaces that are up are scanned in the order the OS reports them.
    This is deliberately not a plain first match: Linux lists ``lo`` first,
    which would bind every worker to 127.0.0.1 where the controller cannot
    reach it. The first non-loopback address wins; a loopback address is
    returned only when it is the sole candidate.

    Returns:
        The local IPv4 address, or None if no interface qualifies.
    """
    stats = psutil.net_if_stats()
    loopback: str | None = None

    for name, addresses in psutil.net_if_addrs().items():
        if name not in stats or not stats[name].isup:
            continue
        for address in addresses:
            if address.family != socket.AF_INET:
                continue
            if not ipaddress.ip_address(address.address).is_loopback:
                return address.address
            if loopback is None:
                loopback = address.address

    return loopback
