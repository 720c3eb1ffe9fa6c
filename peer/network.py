"""Local network helpers for the peer node."""

import socket


def get_local_ip_address() -> str:
    """
    Get this machine's outward-facing IP address.

    Uses the routing table: connecting a UDP socket sends no packets but
    selects the interface that would be used. Falls back to the address the
    hostname resolves to, then to loopback.
    """
    s = socket.socket(socket.AF_INET, socket.SOCK_DGRAM)
    try:
        s.connect(('8.8.8.8', 80))
        ip = s.getsockname()[0]
    except OSError:
        try:
            ip = socket.gethostbyname(socket.gethostname())
        except OSError:
            ip = '127.0.0.1'
    finally:
        s.close()
    return ip
