"""Non-blocking UDP sockets."""

from __future__ import annotations

import ipaddress
import socket
import struct
from typing import Iterable, Optional, Sequence

from .address import family_of, to_sockaddr
from .tcp import _take_error, _ttl_option

_IPV6_JOIN = getattr(socket, "IPV6_JOIN_GROUP", None) or getattr(
    socket, "IPV6_ADD_MEMBERSHIP", None
)
_IPV6_LEAVE = getattr(socket, "IPV6_LEAVE_GROUP", None) or getattr(
    socket, "IPV6_DROP_MEMBERSHIP", None
)


def _ipv4(addr) -> ipaddress.IPv4Address:
    return ipaddress.IPv4Address(str(addr))


def _ipv6(addr) -> ipaddress.IPv6Address:
    return ipaddress.IPv6Address(str(addr))


def _mreq_v4(multiaddr, interface) -> bytes:
    return _ipv4(multiaddr).packed + _ipv4(interface).packed


def _mreq_v6(multiaddr, interface: int) -> bytes:
    if isinstance(interface, bool) or not isinstance(interface, int):
        raise TypeError("interface must be an interface index")
    return _ipv6(multiaddr).packed + struct.pack("@I", interface)


class UdpSocket:
    """A non-blocking UDP socket.

    Operations that cannot complete immediately raise ``BlockingIOError``.
    """

    def __init__(self, sock: socket.socket) -> None:
        sock.setblocking(False)
        self._sock = sock

    @classmethod
    def bind(cls, addr) -> "UdpSocket":
        """Create a socket bound to ``addr``."""
        sock = socket.socket(family_of(addr), socket.SOCK_DGRAM)
        try:
            sock.bind(to_sockaddr(addr))
        except BaseException:
            sock.close()
            raise
        return cls(sock)

    @classmethod
    def from_socket(cls, sock: socket.socket) -> "UdpSocket":
        """Wrap an existing datagram socket, switching it to non-blocking mode."""
        return cls(sock)

    def local_addr(self):
        """Return the local address the socket is bound to."""
        return self._sock.getsockname()

    def try_clone(self) -> "UdpSocket":
        """Return a new handle to the same socket."""
        return UdpSocket(self._sock.dup())

    def send_to(self, data, target) -> int:
        """Send ``data`` to ``target`` and return the count sent."""
        return self._sock.sendto(data, to_sockaddr(target))

    def recv_from(self, size: int):
        """Receive one datagram of at most ``size`` bytes and its sender."""
        return self._sock.recvfrom(size)

    def send(self, data) -> int:
        """Send ``data`` to the connected peer and return the count sent."""
        return self._sock.send(data)

    def recv(self, size: int) -> bytes:
        """Receive one datagram of at most ``size`` bytes from the connected peer."""
        return self._sock.recv(size)

    def connect(self, addr) -> None:
        """Set the default destination and restrict incoming datagrams to it."""
        self._sock.connect(to_sockaddr(addr))

    def _flag(self, level: int, option: int) -> bool:
        return bool(self._sock.getsockopt(level, option))

    def _set_flag(self, level: int, option: int, value: bool) -> None:
        self._sock.setsockopt(level, option, int(bool(value)))

    @property
    def broadcast(self) -> bool:
        """Whether sending to broadcast addresses is allowed."""
        return self._flag(socket.SOL_SOCKET, socket.SO_BROADCAST)

    @broadcast.setter
    def broadcast(self, on: bool) -> None:
        self._set_flag(socket.SOL_SOCKET, socket.SO_BROADCAST, on)

    @property
    def multicast_loop_v4(self) -> bool:
        """Whether IPv4 multicast datagrams loop back to local sockets."""
        return self._flag(socket.IPPROTO_IP, socket.IP_MULTICAST_LOOP)

    @multicast_loop_v4.setter
    def multicast_loop_v4(self, on: bool) -> None:
        self._set_flag(socket.IPPROTO_IP, socket.IP_MULTICAST_LOOP, on)

    @property
    def multicast_ttl_v4(self) -> int:
        """Time-to-live of outgoing IPv4 multicast datagrams."""
        return self._sock.getsockopt(socket.IPPROTO_IP, socket.IP_MULTICAST_TTL)

    @multicast_ttl_v4.setter
    def multicast_ttl_v4(self, ttl: int) -> None:
        self._sock.setsockopt(socket.IPPROTO_IP, socket.IP_MULTICAST_TTL, ttl)

    @property
    def multicast_loop_v6(self) -> bool:
        """Whether IPv6 multicast datagrams loop back to local sockets."""
        return self._flag(socket.IPPROTO_IPV6, socket.IPV6_MULTICAST_LOOP)

    @multicast_loop_v6.setter
    def multicast_loop_v6(self, on: bool) -> None:
        self._set_flag(socket.IPPROTO_IPV6, socket.IPV6_MULTICAST_LOOP, on)

    @property
    def ttl(self) -> int:
        """Time-to-live of outgoing IP packets."""
        return self._sock.getsockopt(*_ttl_option(self._sock))

    @ttl.setter
    def ttl(self, value: int) -> None:
        self._sock.setsockopt(*_ttl_option(self._sock), value)

    def join_multicast_v4(self, multiaddr, interface) -> None:
        """Join the IPv4 multicast group ``multiaddr`` on ``interface``."""
        self._sock.setsockopt(
            socket.IPPROTO_IP, socket.IP_ADD_MEMBERSHIP, _mreq_v4(multiaddr, interface)
        )

    def leave_multicast_v4(self, multiaddr, interface) -> None:
        """Leave the IPv4 multicast group ``multiaddr`` on ``interface``."""
        self._sock.setsockopt(
            socket.IPPROTO_IP, socket.IP_DROP_MEMBERSHIP, _mreq_v4(multiaddr, interface)
        )

    def join_multicast_v6(self, multiaddr, interface: int) -> None:
        """Join the IPv6 multicast group ``multiaddr`` on interface index ``interface``."""
        mreq = _mreq_v6(multiaddr, interface)
        if _IPV6_JOIN is None:
            raise OSError("IPv6 multicast is not supported on this platform")
        self._sock.setsockopt(socket.IPPROTO_IPV6, _IPV6_JOIN, mreq)

    def leave_multicast_v6(self, multiaddr, interface: int) -> None:
        """Leave the IPv6 multicast group ``multiaddr`` on interface index ``interface``."""
        mreq = _mreq_v6(multiaddr, interface)
        if _IPV6_LEAVE is None:
            raise OSError("IPv6 multicast is not supported on this platform")
        self._sock.setsockopt(socket.IPPROTO_IPV6, _IPV6_LEAVE, mreq)

    def take_error(self) -> Optional[OSError]:
        """Return and clear the pending socket error, if any."""
        return _take_error(self._sock)

    def recv_bufs(self, bufs: Sequence) -> int:
        """Receive one datagram and scatter it over the writable buffers ``bufs``."""
        views = [memoryview(buf).cast("B") for buf in bufs]
        data = self.recv(sum(len(view) for view in views))
        offset = 0
        for view in views:
            if offset >= len(data):
                break
            chunk = data[offset : offset + len(view)]
            view[: len(chunk)] = chunk
            offset += len(chunk)
        return offset

    def send_bufs(self, bufs: Iterable) -> int:
        """Send the buffers ``bufs`` joined into one datagram."""
        return self.send(b"".join(bytes(buf) for buf in bufs))

    def fileno(self) -> int:
        return self._sock.fileno()

    def close(self) -> None:
        self._sock.close()

    def __enter__(self) -> "UdpSocket":
        return self

    def __exit__(self, *args) -> None:
        self.close()

    def __repr__(self) -> str:
        return f"{type(self).__name__}({self._sock!r})"