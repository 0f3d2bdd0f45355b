import socket

import pytest

from tmppostgres.errors import ResourceAcquisitionError
from tmppostgres.services import ports


def test_get_free_port_returns_bindable_port():
    port = ports.get_free_port()

    assert 0 < port < 65536
    with socket.socket(socket.AF_INET, socket.SOCK_STREAM) as sock:
        sock.bind(("127.0.0.1", port))


def test_get_free_port_wraps_os_errors(monkeypatch):
    class BrokenSocket:
        def __init__(self, *_args, **_kwargs):
            raise OSError("no sockets")

    monkeypatch.setattr(ports.socket, "socket", BrokenSocket)

    with pytest.raises(ResourceAcquisitionError, match="no sockets"):
        ports.get_free_port()
