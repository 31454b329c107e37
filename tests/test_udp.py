import select
import socket

import pytest

from nbsock.udp import UdpSocket


def _wait_readable(sock, timeout=2.0):
    ready, _, _ = select.select([sock], [], [], timeout)
    assert ready, "socket did not become readable"


@pytest.fixture
def pair():
    a = UdpSocket.bind("127.0.0.1:0")
    b = UdpSocket.bind("127.0.0.1:0")
    yield a, b
    a.close()
    b.close()


def test_bind_assigns_port():
    with UdpSocket.bind("127.0.0.1:0") as sock:
        host, port = sock.local_addr()
        assert host == "127.0.0.1"
        assert port > 0


def test_send_to_recv_from(pair):
    a, b = pair
    assert a.send_to(b"ping", b.local_addr()) == 4
    _wait_readable(b)
    data, sender = b.recv_from(64)
    assert data == b"ping"
    assert sender == a.local_addr()


def test_recv_without_data_would_block(pair):
    a, _ = pair
    with pytest.raises(BlockingIOError):
        a.recv_from(16)


def test_connect_send_recv(pair):
    a, b = pair
    a.connect(b.local_addr())
    b.connect(a.local_addr())
    assert a.send(b"hello") == 5
    _wait_readable(b)
    assert b.recv(64) == b"hello"


def test_send_bufs_joins_buffers(pair):
    a, b = pair
    a.connect(b.local_addr())
    assert a.send_bufs([b"ab", bytearray(b"cd"), memoryview(b"e")]) == 5
    _wait_readable(b)
    assert b.recv_from(64)[0] == b"abcde"


def test_recv_bufs_scatters(pair):
    a, b = pair
    a.connect(b.local_addr())
    b.connect(a.local_addr())
    a.send(b"hello")
    _wait_readable(b)
    first, second = bytearray(2), bytearray(3)
    assert b.recv_bufs([first, second]) == 5
    assert bytes(first) == b"he"
    assert bytes(second) == b"llo"


def test_recv_bufs_short_datagram_leaves_rest(pair):
    a, b = pair
    a.connect(b.local_addr())
    b.connect(a.local_addr())
    a.send(b"abc")
    _wait_readable(b)
    first, second = bytearray(2), bytearray(3)
    assert b.recv_bufs([first, second]) == 3
    assert bytes(first) == b"ab"
    assert bytes(second) == b"c\x00\x00"


def test_broadcast_round_trip():
    with UdpSocket.bind("127.0.0.1:0") as sock:
        sock.broadcast = True
        assert sock.broadcast is True
        sock.broadcast = False
        assert sock.broadcast is False


def test_multicast_loop_v4_round_trip():
    with UdpSocket.bind("127.0.0.1:0") as sock:
        sock.multicast_loop_v4 = False
        assert sock.multicast_loop_v4 is False
        sock.multicast_loop_v4 = True
        assert sock.multicast_loop_v4 is True


def test_multicast_ttl_v4_round_trip():
    with UdpSocket.bind("127.0.0.1:0") as sock:
        sock.multicast_ttl_v4 = 8
        assert sock.multicast_ttl_v4 == 8


def test_ttl_round_trip():
    with UdpSocket.bind("127.0.0.1:0") as sock:
        sock.ttl = 42
        assert sock.ttl == 42


def test_take_error_none_on_fresh_socket():
    with UdpSocket.bind("127.0.0.1:0") as sock:
        assert sock.take_error() is None


def test_try_clone_shares_address(pair):
    a, b = pair
    with a.try_clone() as clone:
        assert clone.local_addr() == a.local_addr()
        assert clone.fileno() != a.fileno()
        b.send_to(b"x", a.local_addr())
        _wait_readable(clone)
        assert clone.recv_from(8)[0] == b"x"


def test_from_socket_makes_non_blocking():
    raw = socket.socket(socket.AF_INET, socket.SOCK_DGRAM)
    raw.bind(("127.0.0.1", 0))
    with UdpSocket.from_socket(raw) as sock:
        assert raw.getblocking() is False
        assert sock.local_addr() == raw.getsockname()


def test_close_via_context_manager():
    with UdpSocket.bind("127.0.0.1:0") as sock:
        pass
    assert sock.fileno() == -1


def test_join_multicast_v4_rejects_ipv6_group():
    with UdpSocket.bind("127.0.0.1:0") as sock:
        with pytest.raises(ValueError):
            sock.join_multicast_v4("ff02::1", "127.0.0.1")


def test_leave_multicast_v4_rejects_bad_interface():
    with UdpSocket.bind("127.0.0.1:0") as sock:
        with pytest.raises(ValueError):
            sock.leave_multicast_v4("224.0.0.1", "not-an-address")


def test_join_multicast_v6_rejects_ipv4_group():
    with UdpSocket.bind("127.0.0.1:0") as sock:
        with pytest.raises(ValueError):
            sock.join_multicast_v6("224.0.0.1", 0)


def test_leave_multicast_v6_requires_index():
    with UdpSocket.bind("127.0.0.1:0") as sock:
        with pytest.raises(TypeError):
            sock.leave_multicast_v6("ff02::1", "eth0")


def test_bind_rejects_host_name():
    with pytest.raises(ValueError):
        UdpSocket.bind("localhost:0")