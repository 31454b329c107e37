"""Non-blocking TCP and UDP sockets and socket address helpers."""

__version__ = "0.1.0"
__all__ = ["address", "tcp", "udp"]