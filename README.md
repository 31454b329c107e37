# nbsock

Non-blocking TCP and UDP sockets with a compact API. Each socket is switched
to non-blocking mode when it is created or wrapped. An operation that cannot
finish at once raises `BlockingIOError`. Every socket has a `fileno()`, so you
can drive it from `selectors` or any other readiness loop. Every socket is also
a context manager that closes it on exit.

## Installation

```
pip install nbsock
```

No third-party libraries are needed at run time.

## TCP

```python
import selectors
from nbsock.tcp import TcpListener, TcpStream, Shutdown

with TcpListener.bind(("127.0.0.1", 0)) as listener:
    addr = listener.local_addr()
    client = TcpStream.connect(addr)

    sel = selectors.DefaultSelector()
    sel.register(listener, selectors.EVENT_READ)
    sel.select()

    server_side, peer = listener.accept()
    server_side.write(b"\x01\x02\x03\x04")
    server_side.shutdown(Shutdown.WRITE)

    sel.register(client, selectors.EVENT_READ)
    sel.select()
    print(client.read(10))          # b'\x01\x02\x03\x04'
```

`TcpStream.connect` only starts the connection. It has finished once the
socket becomes writable, and `take_error()` then reports any failure.

`TcpStream` methods:

- `read(size)` returns up to `size` bytes. It returns `b""` once the peer has
  closed its side.
- `write(data)` returns the number of bytes sent.
- `peek(size)` returns received bytes without consuming them.
- `read_bufs(bufs)` scatters received bytes into writable buffers.
  `write_bufs(bufs)` sends several buffers as one sequence. Both return a byte count.
- `flush()` does nothing, because the stream is unbuffered.
- `shutdown(how)` takes a `Shutdown` member: `READ`, `WRITE` or `BOTH`.
- `peer_addr()`, `local_addr()`, `take_error()`, `try_clone()`, `fileno()` and `close()`.

These socket options are read/write properties:

- `nodelay` (bool)
- `recv_buffer_size` and `send_buffer_size` (int)
- `keepalive`: idle seconds, or `None` when keepalive is off.
- `ttl` (int)
- `linger`: seconds, or `None` when lingering is off.

You can wrap existing standard-library sockets with `TcpStream.from_stream`,
`TcpStream.connect_stream` and `TcpListener.from_std`.

`TcpListener.bind` binds the socket and starts listening. On POSIX it sets
`SO_REUSEADDR` first. The listener provides:

- `accept()`, which returns a `(TcpStream, address)` pair.
- `accept_std()`, which returns a plain `socket.socket` and its address.
- `local_addr()`, `try_clone()`, `take_error()`, `fileno()` and `close()`.
- A `ttl` property.

## UDP

```python
from nbsock.udp import UdpSocket

with UdpSocket.bind(("127.0.0.1", 0)) as a, UdpSocket.bind(("127.0.0.1", 0)) as b:
    a.send_to(b"ping", b.local_addr())
    # after b becomes readable:
    data, sender = b.recv_from(1024)
```

`UdpSocket` methods:

- `send_to` and `recv_from` for unconnected use.
- `connect(addr)`, then `send` and `recv`, for a fixed peer.
- `send_bufs(bufs)` joins buffers into one datagram.
- `recv_bufs(bufs)` scatters one datagram over buffers and returns the number of bytes placed.
- Multicast membership: `join_multicast_v4` and `leave_multicast_v4` take an
  address and an interface address. `join_multicast_v6` and
  `leave_multicast_v6` take an address and an interface index.
- `local_addr()`, `try_clone()`, `take_error()`, `fileno()` and `close()`.

These options are read/write properties: `broadcast`, `multicast_loop_v4`,
`multicast_ttl_v4`, `multicast_loop_v6` and `ttl`.

## Addresses

Anywhere a socket takes an address, you can give it as:

- text such as `"127.0.0.1:80"` or `"[::1]:80"`;
- an `(ip, port)` tuple;
- for IPv6, an `(ip, port, flowinfo, scope_id)` tuple.

The IP may be a string or an `ipaddress` object. Only IP literals are accepted,
not host names.

`nbsock.address.to_sockaddr` normalises such an address into a tuple for the
`socket` module. `nbsock.address.family_of` returns the matching
`AF_INET` or `AF_INET6`.

## What it does not do

nbsock has no event loop, poller or readiness registration of its own. It
provides sockets only. Wait for readiness with `selectors` or a similar tool.
It covers TCP and UDP over IP only: there are no Unix-domain sockets or pipes.

## Running the tests

```
pip install -e ".[test]"
pytest
```