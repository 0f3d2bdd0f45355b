"""Free TCP port lookup."""

import socket

from tmppostgres.errors import ResourceAcquisitionError


def get_free_port() -> int:
    """Ask the OS for an unused loopback port.

    The port is released before returning, so another process may still claim
    it before the server binds.
    """
    try:
        with socket.socket(socket.AF_INET, socket.SOCK_STREAM) as sock:
            sock.bind(("127.0.0.1", 0))
            return sock.getsockname()[1]
    except OSError as exc:
        raise ResourceAcquisitionError(f"Could not find a free port: {exc}") from exc
