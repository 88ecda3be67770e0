"""
IPFS Race - HTTP Transport

The race never owns an HTTP client. It calls an injected transport,
``transport(url, options) -> response``, where the response exposes an integer
``status_code``. This module defines that boundary, the per-request
cancellation token, and a default transport backed by requests.
"""

import logging
import threading
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, List, Optional

import requests
from requests.adapters import HTTPAdapter
from urllib3.util.retry import Retry

from .exceptions import RequestCancelledError

logger = logging.getLogger(__name__)

DEFAULT_USER_AGENT = "ipfs-race/1.0"

# Seconds per connect or read; bounds how long a stalled loser keeps its worker
DEFAULT_TIMEOUT = 30


class CancelToken:
    """
    Advisory cancellation signal owned by one candidate request.

    Transports register callbacks (for example closing a streamed response);
    cancel() fires them exactly once. Errors raised by callbacks are recorded
    on the token and never propagated.
    """

    def __init__(self):
        self._event = threading.Event()
        self._lock = threading.Lock()
        self._callbacks: List[Callable[[], Any]] = []
        self.errors: List[Exception] = []

    @property
    def cancelled(self) -> bool:
        return self._event.is_set()

    def add_callback(self, callback: Callable[[], Any]) -> None:
        """Register a callback; runs immediately if already cancelled."""
        with self._lock:
            if not self._event.is_set():
                self._callbacks.append(callback)
                return
        self._run(callback)

    def cancel(self) -> bool:
        """
        Trigger cancellation.

        Returns:
            True on the first call, False if the token was already cancelled
        """
        with self._lock:
            if self._event.is_set():
                return False
            self._event.set()
            callbacks, self._callbacks = self._callbacks, []

        for callback in callbacks:
            self._run(callback)
        return True

    def raise_if_cancelled(self, url: str) -> None:
        if self._event.is_set():
            raise RequestCancelledError(f"Request to {url} was cancelled")

    def wait(self, timeout: Optional[float] = None) -> bool:
        """Block until cancelled or the timeout elapses."""
        return self._event.wait(timeout)

    def _run(self, callback: Callable[[], Any]) -> None:
        try:
            callback()
        except Exception as e:
            self.errors.append(e)
            logger.debug(f"Cancellation callback failed: {e}")


@dataclass
class RequestOptions:
    """Per-request options handed to the transport."""

    method: str = "GET"
    headers: Dict[str, str] = field(default_factory=dict)
    timeout: Optional[float] = None
    allow_redirects: bool = True
    cancel_token: Optional[CancelToken] = None


Transport = Callable[[str, RequestOptions], Any]


class RequestsTransport:
    """Default transport: a shared requests session with streamed responses."""

    def __init__(self, session: Optional[requests.Session] = None,
                 timeout: Optional[float] = None,
                 user_agent: str = DEFAULT_USER_AGENT,
                 pool_maxsize: int = 16):
        """
        Initialize transport.

        Args:
            session: Existing session to use (a new one is created otherwise)
            timeout: Timeout in seconds when the request sets none (DEFAULT_TIMEOUT if None)
            user_agent: User-Agent header sent with every request
            pool_maxsize: Connections kept per host
        """
        self.timeout = timeout if timeout is not None else DEFAULT_TIMEOUT
        self.session = session or requests.Session()

        # Each gateway is tried once per race
        retry_strategy = Retry(total=0, read=False)
        adapter = HTTPAdapter(pool_maxsize=pool_maxsize, max_retries=retry_strategy)
        self.session.mount("http://", adapter)
        self.session.mount("https://", adapter)
        self.session.headers.update({
            "User-Agent": user_agent,
            "Accept": "*/*",
        })

    def __call__(self, url: str, options: Optional[RequestOptions] = None) -> requests.Response:
        options = options or RequestOptions()
        token = options.cancel_token

        if token is not None:
            token.raise_if_cancelled(url)

        response = self.session.request(
            options.method,
            url,
            headers=options.headers or None,
            timeout=options.timeout if options.timeout is not None else self.timeout,
            allow_redirects=options.allow_redirects,
            stream=True,
        )

        if token is not None:
            # Closing the streamed response drops the connection of a loser
            token.add_callback(response.close)
            if token.cancelled:
                raise RequestCancelledError(f"Request to {url} was cancelled")

        return response

    def close(self) -> None:
        """Close pooled connections."""
        self.session.close()

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.close()
