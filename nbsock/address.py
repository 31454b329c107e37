"""Parsing and normalising of IP socket addresses."""

from __future__ import annotations

import ipaddress
import socket
from typing import Tuple, Union

IPAddress = Union[ipaddress.IPv4Address, ipaddress.IPv6Address]
SockAddr = Union[Tuple[str, int], Tuple[str, int, int, int]]


def _check_port(port: object) -> int:
    if isinstance(port, bool) or not isinstance(port, int):
        raise TypeError(f"port must be an int, not {type(port).__name__}")
    if not 0 <= port <= 0xFFFF:
        raise ValueError(f"port out of range: {port}")
    return port


def _parse_port(text: str) -> int:
    if not text or not (text.isascii() and text.isdigit()):
        raise ValueError(f"invalid port: {text!r}")
    return _check_port(int(text))


def _parse_text(text: str) -> tuple[IPAddress, int]:
    if text.startswith("["):
        host, closed, rest = text[1:].partition("]")
        if not closed or not rest.startswith(":"):
            raise ValueError(f"invalid socket address: {text!r}")
        return ipaddress.IPv6Address(host), _parse_port(rest[1:])
    host, colon, port_text = text.rpartition(":")
    if not colon:
        raise ValueError(f"invalid socket address: {text!r}")
    return ipaddress.IPv4Address(host), _parse_port(port_text)


def _parse_host(host: object) -> IPAddress:
    if isinstance(host, (ipaddress.IPv4Address, ipaddress.IPv6Address)):
        return host
    if isinstance(host, str):
        return ipaddress.ip_address(host)
    raise TypeError(f"host must be an IP address, not {type(host).__name__}")


def to_sockaddr(addr: object) -> SockAddr:
    """Normalise ``addr`` into a tuple accepted by the socket module.

    ``addr`` is either text such as ``"127.0.0.1:80"`` or ``"[::1]:80"``, or a
    tuple of an IP address and a port (optionally with IPv6 flow info and
    scope id).  Host names are rejected: only IP literals are valid.
    """
    flowinfo = scope_id = 0
    if isinstance(addr, str):
        ip, port = _parse_text(addr)
    elif isinstance(addr, (tuple, list)):
        if len(addr) == 2:
            host, port = addr
        elif len(addr) == 4:
            host, port, flowinfo, scope_id = addr
        else:
            raise ValueError(f"invalid socket address: {addr!r}")
        ip = _parse_host(host)
        port = _check_port(port)
        if len(addr) == 4 and ip.version != 6:
            raise ValueError("flow info and scope id apply to IPv6 only")
    else:
        raise TypeError(f"unsupported address type: {type(addr).__name__}")

    if ip.version == 4:
        return (str(ip), port)
    return (str(ip), port, int(flowinfo), int(scope_id))


def family_of(addr: object) -> socket.AddressFamily:
    """Return the address family a socket needs to reach ``addr``."""
    return socket.AF_INET6 if len(to_sockaddr(addr)) == 4 else socket.AF_INET