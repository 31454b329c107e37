import ipaddress
import socket

import pytest

from nbsock.address import family_of, to_sockaddr


def test_ipv4_text():
    assert to_sockaddr("127.0.0.1:8080") == ("127.0.0.1", 8080)


def test_ipv6_text():
    assert to_sockaddr("[::1]:80") == ("::1", 80, 0, 0)


def test_tuple_round_trip():
    assert to_sockaddr(("10.1.2.3", 443)) == ("10.1.2.3", 443)
    assert to_sockaddr(to_sockaddr("[::1]:9")) == to_sockaddr("[::1]:9")


def test_ip_object_host():
    assert to_sockaddr((ipaddress.ip_address("192.168.0.1"), 22)) == ("192.168.0.1", 22)


def test_ipv6_four_tuple_kept():
    assert to_sockaddr(("::1", 53, 1, 2)) == ("::1", 53, 1, 2)


def test_family():
    assert family_of("127.0.0.1:0") == socket.AF_INET
    assert family_of("[::1]:0") == socket.AF_INET6
    assert family_of(("::1", 1)) == socket.AF_INET6


@pytest.mark.parametrize(
    "bad",
    [
        "localhost:80",
        "127.0.0.1",
        "127.0.0.1:",
        "127.0.0.1:70000",
        "127.0.0.1:+1",
        "[::1]80",
        "[::1:80",
        "::1:80",
        ("127.0.0.1", 65536),
        ("127.0.0.1", 1, 0, 0),
        ("127.0.0.1",),
    ],
)
def test_invalid_addresses(bad):
    with pytest.raises(ValueError):
        to_sockaddr(bad)


@pytest.mark.parametrize("bad", [8080, ("127.0.0.1", "80"), (1234, 80), ("127.0.0.1", True)])
def test_wrong_types(bad):
    with pytest.raises(TypeError):
        to_sockaddr(bad)