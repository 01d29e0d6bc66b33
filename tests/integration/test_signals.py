"""
Integration tests for signal handling in a real server process.
"""

import os
import signal
import socket
import subprocess
import sys
import time
from pathlib import Path

import pytest


SRC_DIR = Path(__file__).parent.parent.parent / "src"

pytestmark = pytest.mark.skipif(sys.platform == "win32", reason="needs POSIX signals")


def free_port() -> int:
    with socket.socket() as s:
        s.bind(("127.0.0.1", 0))
        return s.getsockname()[1]


def wait_for_port(port: int, proc: subprocess.Popen, timeout: float = 10.0):
    """Poll until the server accepts connections."""
    deadline = time.monotonic() + timeout
    while time.monotonic() < deadline:
        if proc.poll() is not None:
            raise RuntimeError(f"Server exited early with code {proc.returncode}")
        try:
            with socket.create_connection(("127.0.0.1", port), timeout=0.5):
                return
        except OSError:
            time.sleep(0.05)
    raise RuntimeError("Server did not start listening")


@pytest.fixture
def server_process(web_root):
    port = free_port()
    env = dict(os.environ)
    env["PYTHONPATH"] = os.pathsep.join(filter(None, [str(SRC_DIR), env.get("PYTHONPATH")]))

    proc = subprocess.Popen(
        [sys.executable, "-m", "staticserve", str(web_root),
         "--host", "127.0.0.1", "--port", str(port)],
        env=env,
        stdout=subprocess.DEVNULL,
        stderr=subprocess.DEVNULL,
    )
    try:
        wait_for_port(port, proc)
        yield proc, port
    finally:
        if proc.poll() is None:
            proc.kill()
            proc.wait()


@pytest.mark.parametrize("sig", [signal.SIGTERM, signal.SIGINT])
def test_signal_with_silent_client(server_process, sig):
    """A client that never sends must not keep the process alive."""
    proc, port = server_process

    with socket.create_connection(("127.0.0.1", port), timeout=5.0) as silent:
        time.sleep(0.5)  # Let the server accept it and block in recv()
        proc.send_signal(sig)

        assert proc.wait(timeout=5) == 0

        # The server closed its end on the way out
        assert silent.recv(1024) == b""


def test_signal_when_idle(server_process):
    proc, _ = server_process
    proc.send_signal(signal.SIGTERM)
    assert proc.wait(timeout=5) == 0
