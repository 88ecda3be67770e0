"""
IPFS Race - Gateway Race Executor

Expands a resolution target into candidate URLs, requests all of them
concurrently and returns the first 2xx response. Every candidate still in
flight when a winner is known has its cancel token triggered; the race only
fails once every candidate has failed.
"""

import logging
from concurrent.futures import Future, ThreadPoolExecutor, as_completed
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

from .classifier import DirectUrl, GatewayRequest, ResolutionTarget
from .exceptions import (
    AllCandidatesFailedError,
    BadStatusError,
    CandidateFailure,
    IpfsRaceError,
    RequestCancelledError,
)
from .gateways import DEFAULT_GATEWAYS, GatewayLists
from .identifiers import is_valid_http_url
from .transport import CancelToken, RequestOptions, Transport

logger = logging.getLogger(__name__)


@dataclass
class ResolveOutcome:
    """
    Winning response and the exact URL that produced it.

    The body is left unread. close() releases the response together with any
    resources resolve() opened on the caller's behalf, such as its transport.
    """

    response: Any
    resolved_from: Optional[str] = None
    resources: List[Any] = field(default_factory=list, repr=False)

    @property
    def status_code(self) -> Optional[int]:
        return getattr(self.response, "status_code", None)

    def close(self) -> None:
        _close_quietly(self.response)
        while self.resources:
            _close_quietly(self.resources.pop())

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.close()


def is_acceptable_status(status_code: Any) -> bool:
    """Only 2xx responses win; redirects and errors are failures."""
    return isinstance(status_code, int) and 200 <= status_code < 300


def build_candidates(target: ResolutionTarget,
                     gateways: GatewayLists = DEFAULT_GATEWAYS,
                     origin: Optional[str] = None) -> List[str]:
    """
    Expand a target into the ordered list of URLs to race.

    Args:
        target: Classified resolution target
        gateways: Gateway lists to expand a GatewayRequest against
        origin: Original input URI; raced as an extra candidate when it is a web URL

    Returns:
        Candidate URLs, each appearing once
    """
    if isinstance(target, DirectUrl):
        return [target.url]

    candidates: List[str] = []
    for gateway in gateways.for_protocol(target.protocol):
        url = target.url_for(gateway)
        if url not in candidates:
            candidates.append(url)

    if origin and is_valid_http_url(origin) and origin not in candidates:
        candidates.append(origin)

    return candidates


def _close_quietly(response: Any) -> None:
    close = getattr(response, "close", None)
    if callable(close):
        try:
            close()
        except Exception as e:
            logger.debug(f"Failed to close discarded response: {e}")


def _discard_late_result(future: Future) -> None:
    """Release the response of a candidate that finished after the winner."""
    if future.cancelled() or future.exception() is not None:
        return
    _close_quietly(future.result().response)


class GatewayRace:
    """Concurrent first-success-wins fetch over a set of candidate URLs."""

    def __init__(self, transport: Transport,
                 gateways: GatewayLists = DEFAULT_GATEWAYS,
                 log_failures: bool = False,
                 timeout: Optional[float] = None,
                 headers: Optional[Dict[str, str]] = None):
        """
        Initialize race executor.

        Args:
            transport: Callable (url, RequestOptions) -> response with status_code
            gateways: Gateway lists keyed by protocol
            log_failures: Log each failed or cancelled candidate
            timeout: Per-request timeout forwarded to the transport
            headers: Extra headers forwarded to the transport
        """
        self.transport = transport
        self.gateways = gateways
        self.log_failures = log_failures
        self.timeout = timeout
        self.headers = dict(headers or {})

    def run(self, target: ResolutionTarget, origin: Optional[str] = None) -> ResolveOutcome:
        """
        Race all candidates of a target.

        Args:
            target: Classified resolution target
            origin: Original input URI, raced alongside gateway candidates if it is a web URL

        Returns:
            ResolveOutcome of the first candidate answering with a 2xx status

        Raises:
            AllCandidatesFailedError: If every candidate failed
        """
        candidates = build_candidates(target, self.gateways, origin)
        if not candidates:
            raise AllCandidatesFailedError([])

        # Every token exists before any attempt starts, so a loser that is
        # scheduled after the winner still sees its cancellation
        tokens = [CancelToken() for _ in candidates]
        failures: List[CandidateFailure] = []

        executor = ThreadPoolExecutor(max_workers=len(candidates), thread_name_prefix="ipfs-race")
        try:
            futures = {
                executor.submit(self._attempt, url, tokens[index]): index
                for index, url in enumerate(candidates)
            }
            logger.debug(f"Racing {len(candidates)} candidates for {target}")

            for future in as_completed(futures):
                index = futures[future]
                try:
                    outcome = future.result()
                except Exception as e:
                    failures.append(CandidateFailure(candidates[index], e))
                    continue

                logger.debug(f"Resolved from {candidates[index]}")
                for pending in futures:
                    if pending is not future and not pending.done():
                        pending.add_done_callback(_discard_late_result)
                self._cancel_losers(tokens, winner=index)
                return outcome
        finally:
            # Losers are never waited for
            executor.shutdown(wait=False, cancel_futures=True)

        raise AllCandidatesFailedError(failures)

    def _attempt(self, url: str, token: CancelToken) -> ResolveOutcome:
        try:
            token.raise_if_cancelled(url)
            options = RequestOptions(
                headers=dict(self.headers),
                timeout=self.timeout,
                cancel_token=token,
            )
            response = self.transport(url, options)

            if response is None:
                raise IpfsRaceError(f"Url ({url}) returned no response")

            status_code = getattr(response, "status_code", None)
            if not is_acceptable_status(status_code):
                _close_quietly(response)
                raise BadStatusError(url, status_code)

            return ResolveOutcome(response=response, resolved_from=url)

        except RequestCancelledError as e:
            if self.log_failures:
                logger.warning(f"Cancelled {url}: {e}")
            raise
        except Exception as e:
            if self.log_failures and not token.cancelled:
                logger.warning(f"Candidate {url} failed: {e}")
            raise

    def _cancel_losers(self, tokens: List[CancelToken], winner: int) -> None:
        for index, token in enumerate(tokens):
            # The winner's token would close the response handed to the caller
            if index == winner or not token.cancel():
                continue
            if self.log_failures:
                for error in token.errors:
                    logger.warning(f"Error while cancelling a losing candidate: {error}")
