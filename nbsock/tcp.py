"""Non-blocking TCP streams and listeners."""

from __future__ import annotations

import enum
import errno
import os
import socket
import struct
import sys
from typing import Iterable, Optional, Sequence

from .address import family_of, to_sockaddr

_IN_PROGRESS = {
    code
    for code in (
        errno.EINPROGRESS,
        errno.EWOULDBLOCK,
        errno.EAGAIN,
        getattr(errno, "WSAEWOULDBLOCK", None),
    )
    if code is not None
}

_LINGER_FORMAT = "HH" if sys.platform == "win32" else "ii"
_KEEPIDLE = getattr(socket, "TCP_KEEPIDLE", None) or getattr(socket, "TCP_KEEPALIVE", None)
_LISTEN_BACKLOG = 1024


class Shutdown(enum.IntEnum):
    """Which half of a connection to shut down."""

    READ = socket.SHUT_RD
    WRITE = socket.SHUT_WR
    BOTH = socket.SHUT_RDWR


def _take_error(sock: socket.socket) -> Optional[OSError]:
    code = sock.getsockopt(socket.SOL_SOCKET, socket.SO_ERROR)
    return OSError(code, os.strerror(code)) if code else None


def _ttl_option(sock: socket.socket) -> tuple[int, int]:
    if sock.family == socket.AF_INET6:
        return socket.IPPROTO_IPV6, socket.IPV6_UNICAST_HOPS
    return socket.IPPROTO_IP, socket.IP_TTL


def _start_connect(sock: socket.socket, addr: object) -> None:
    sock.setblocking(False)
    code = sock.connect_ex(to_sockaddr(addr))
    if code and code not in _IN_PROGRESS:
        raise OSError(code, os.strerror(code))


class TcpStream:
    """A non-blocking TCP connection.

    Operations that cannot complete immediately raise ``BlockingIOError``.
    """

    def __init__(self, sock: socket.socket) -> None:
        sock.setblocking(False)
        self._sock = sock

    @classmethod
    def connect(cls, addr) -> "TcpStream":
        """Start connecting to ``addr``; completion is signalled by writability."""
        sock = socket.socket(family_of(addr), socket.SOCK_STREAM)
        try:
            _start_connect(sock, addr)
        except BaseException:
            sock.close()
            raise
        return cls(sock)

    @classmethod
    def connect_stream(cls, stream: socket.socket, addr) -> "TcpStream":
        """Start connecting an existing, unconnected socket to ``addr``."""
        _start_connect(stream, addr)
        return cls(stream)

    @classmethod
    def from_stream(cls, stream: socket.socket) -> "TcpStream":
        """Wrap an already connected socket, switching it to non-blocking mode."""
        return cls(stream)

    def peer_addr(self):
        """Return the address of the remote end."""
        return self._sock.getpeername()

    def local_addr(self):
        """Return the local address the socket is bound to."""
        return self._sock.getsockname()

    def try_clone(self) -> "TcpStream":
        """Return a new handle to the same connection."""
        return TcpStream(self._sock.dup())

    def shutdown(self, how) -> None:
        """Shut down the read half, the write half or both."""
        self._sock.shutdown(Shutdown(how))

    @property
    def nodelay(self) -> bool:
        """Whether Nagle's algorithm is disabled."""
        return bool(self._sock.getsockopt(socket.IPPROTO_TCP, socket.TCP_NODELAY))

    @nodelay.setter
    def nodelay(self, value: bool) -> None:
        self._sock.setsockopt(socket.IPPROTO_TCP, socket.TCP_NODELAY, int(bool(value)))

    @property
    def recv_buffer_size(self) -> int:
        """Size of the kernel receive buffer."""
        return self._sock.getsockopt(socket.SOL_SOCKET, socket.SO_RCVBUF)

    @recv_buffer_size.setter
    def recv_buffer_size(self, size: int) -> None:
        self._sock.setsockopt(socket.SOL_SOCKET, socket.SO_RCVBUF, size)

    @property
    def send_buffer_size(self) -> int:
        """Size of the kernel send buffer."""
        return self._sock.getsockopt(socket.SOL_SOCKET, socket.SO_SNDBUF)

    @send_buffer_size.setter
    def send_buffer_size(self, size: int) -> None:
        self._sock.setsockopt(socket.SOL_SOCKET, socket.SO_SNDBUF, size)

    @property
    def keepalive(self) -> Optional[float]:
        """Idle seconds before keepalive probes are sent, or None when disabled."""
        if not self._sock.getsockopt(socket.SOL_SOCKET, socket.SO_KEEPALIVE):
            return None
        if _KEEPIDLE is None:
            return 0.0
        return float(self._sock.getsockopt(socket.IPPROTO_TCP, _KEEPIDLE))

    @keepalive.setter
    def keepalive(self, seconds: Optional[float]) -> None:
        if seconds is None:
            self._sock.setsockopt(socket.SOL_SOCKET, socket.SO_KEEPALIVE, 0)
            return
        self._sock.setsockopt(socket.SOL_SOCKET, socket.SO_KEEPALIVE, 1)
        if _KEEPIDLE is not None:
            self._sock.setsockopt(socket.IPPROTO_TCP, _KEEPIDLE, int(seconds))

    @property
    def ttl(self) -> int:
        """Time-to-live of outgoing IP packets."""
        return self._sock.getsockopt(*_ttl_option(self._sock))

    @ttl.setter
    def ttl(self, value: int) -> None:
        self._sock.setsockopt(*_ttl_option(self._sock), value)

    @property
    def linger(self) -> Optional[float]:
        """Seconds a close waits for unsent data, or None when lingering is off."""
        raw = self._sock.getsockopt(
            socket.SOL_SOCKET, socket.SO_LINGER, struct.calcsize(_LINGER_FORMAT)
        )
        onoff, seconds = struct.unpack(_LINGER_FORMAT, raw)
        return float(seconds) if onoff else None

    @linger.setter
    def linger(self, seconds: Optional[float]) -> None:
        value = (0, 0) if seconds is None else (1, int(seconds))
        self._sock.setsockopt(
            socket.SOL_SOCKET, socket.SO_LINGER, struct.pack(_LINGER_FORMAT, *value)
        )

    def take_error(self) -> Optional[OSError]:
        """Return and clear the pending socket error, if any."""
        return _take_error(self._sock)

    def peek(self, size: int) -> bytes:
        """Return up to ``size`` received bytes without consuming them."""
        return self._sock.recv(size, socket.MSG_PEEK)

    def read(self, size: int) -> bytes:
        """Receive up to ``size`` bytes; ``b""`` means the peer closed its side."""
        return self._sock.recv(size)

    def write(self, data) -> int:
        """Send as much of ``data`` as possible and return the count sent."""
        return self._sock.send(data)

    def flush(self) -> None:
        """TCP streams are unbuffered; there is nothing to flush."""

    def read_bufs(self, bufs: Sequence) -> int:
        """Scatter received bytes into the writable buffers ``bufs`` in order."""
        if hasattr(self._sock, "recvmsg_into"):
            return self._sock.recvmsg_into(list(bufs))[0]
        views = [memoryview(buf).cast("B") for buf in bufs]
        data = self._sock.recv(sum(len(view) for view in views))
        offset = 0
        for view in views:
            chunk = data[offset : offset + len(view)]
            view[: len(chunk)] = chunk
            offset += len(chunk)
        return len(data)

    def write_bufs(self, bufs: Iterable) -> int:
        """Send the buffers ``bufs`` as one sequence and return the count sent."""
        bufs = list(bufs)
        if hasattr(self._sock, "sendmsg"):
            return self._sock.sendmsg(bufs)
        return self._sock.send(b"".join(bytes(buf) for buf in bufs))

    def fileno(self) -> int:
        return self._sock.fileno()

    def close(self) -> None:
        self._sock.close()

    def __enter__(self) -> "TcpStream":
        return self

    def __exit__(self, *args) -> None:
        self.close()

    def __repr__(self) -> str:
        return f"{type(self).__name__}({self._sock!r})"


class TcpListener:
    """A non-blocking TCP server socket."""

    def __init__(self, sock: socket.socket) -> None:
        sock.setblocking(False)
        self._sock = sock

    @classmethod
    def bind(cls, addr) -> "TcpListener":
        """Bind to ``addr`` and start listening."""
        sock = socket.socket(family_of(addr), socket.SOCK_STREAM)
        try:
            if os.name == "posix":
                sock.setsockopt(socket.SOL_SOCKET, socket.SO_REUSEADDR, 1)
            sock.bind(to_sockaddr(addr))
            sock.listen(_LISTEN_BACKLOG)
        except BaseException:
            sock.close()
            raise
        return cls(sock)

    @classmethod
    def from_std(cls, listener: socket.socket) -> "TcpListener":
        """Wrap a listening socket, switching it to non-blocking mode."""
        return cls(listener)

    def accept(self) -> tuple[TcpStream, object]:
        """Accept a pending connection as a non-blocking stream."""
        sock, addr = self._sock.accept()
        return TcpStream(sock), addr

    def accept_std(self) -> tuple[socket.socket, object]:
        """Accept a pending connection as a plain socket."""
        return self._sock.accept()

    def local_addr(self):
        """Return the local address the listener is bound to."""
        return self._sock.getsockname()

    def try_clone(self) -> "TcpListener":
        """Return a new handle to the same listening socket."""
        return TcpListener(self._sock.dup())

    @property
    def ttl(self) -> int:
        """Time-to-live of outgoing IP packets."""
        return self._sock.getsockopt(*_ttl_option(self._sock))

    @ttl.setter
    def ttl(self, value: int) -> None:
        self._sock.setsockopt(*_ttl_option(self._sock), value)

    def take_error(self) -> Optional[OSError]:
        """Return and clear the pending socket error, if any."""
        return _take_error(self._sock)

    def fileno(self) -> int:
        return self._sock.fileno()

    def close(self) -> None:
        self._sock.close()

    def __enter__(self) -> "TcpListener":
        return self

    def __exit__(self, *args) -> None:
        self.close()

    def __repr__(self) -> str:
        return f"{type(self).__name__}({self._sock!r})"