"""
Pytest configuration and fixtures for ipfs-race tests.
"""

import threading

import pytest

from ipfs_race.exceptions import RequestCancelledError
from ipfs_race.gateways import GatewayLists


CID_V0 = "QmaiJczLW9X1Gk7rQH7CgYCuquLZMbdWB6hhqznDBoqdLE"
CID_V0_DIR = "QmeSjSinHpPnmXmspMjwiXyN6zS4E9zccariGR3jxcaWtq"
CID_V1 = "bafybeigdyrzt5sfp7udm7hu76uh7y26nf3efuylqabf3oclgtqy55fbzdi"

# Returned by a scripted transport to block until the request is cancelled
HANG = object()


class FakeResponse:
    """Minimal stand-in for a requests.Response."""

    def __init__(self, status_code: int = 200, content: bytes = b"", headers=None):
        self.status_code = status_code
        self.content = content
        self.headers = headers or {}
        self.closed = False

    def iter_content(self, chunk_size: int = 1):
        for i in range(0, len(self.content), chunk_size):
            yield self.content[i:i + chunk_size]

    def close(self):
        self.closed = True


class FakeTransport:
    """
    Scripted transport keyed by URL.

    A script value may be a status code, an exception instance, HANG, or a
    callable taking the RequestOptions and returning a status code.
    """

    def __init__(self, script=None, default=404, expected_calls=None):
        self.script = dict(script or {})
        self.default = default
        self.expected_calls = expected_calls
        self.calls = []
        self.tokens = {}
        self.responses = {}
        self.all_called = threading.Event()
        self._lock = threading.Lock()

    def __call__(self, url, options):
        with self._lock:
            self.calls.append(url)
            self.tokens[url] = options.cancel_token
            if self.expected_calls is not None and len(self.calls) >= self.expected_calls:
                self.all_called.set()

        action = self.script.get(url, self.default)

        if action is HANG:
            options.cancel_token.wait(5)
            raise RequestCancelledError(f"Request to {url} was cancelled")
        if isinstance(action, BaseException):
            raise action
        if callable(action):
            action = action(options)

        response = FakeResponse(action, content=url.encode())
        self.responses[url] = response
        return response


@pytest.fixture
def gateways():
    """Three IPFS gateways and one IPNS gateway."""
    return GatewayLists(
        ipfs=("https://gw-a.example", "https://gw-b.example", "https://gw-c.example"),
        ipns=("https://names.example",),
    )


@pytest.fixture
def fake_transport():
    """Factory for scripted transports."""
    return FakeTransport


def pytest_configure(config):
    """Configure pytest with custom markers."""
    config.addinivalue_line(
        "markers", "concurrency: mark test as a concurrency test"
    )
