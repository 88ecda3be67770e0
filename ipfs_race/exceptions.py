"""
IPFS Race - Exceptions

This module defines the error taxonomy for URI classification and gateway racing.
"""

from dataclasses import dataclass
from typing import List, Optional


class IpfsRaceError(Exception):
    """Base exception for all resolution errors."""
    pass


class MalformedInputError(IpfsRaceError):
    """Raised when a URI matches no classification rule or has an invalid body."""

    def __init__(self, uri: str, message: Optional[str] = None):
        self.uri = uri
        if message is None:
            message = f"The uri ({uri}) passed in was malformed."
        super().__init__(message)


class TransportUnavailableError(IpfsRaceError):
    """Raised when no HTTP transport could be resolved or supplied."""
    pass


class BadStatusError(IpfsRaceError):
    """Raised for a candidate whose response fell outside the 2xx range."""

    def __init__(self, url: str, status_code: int):
        self.url = url
        self.status_code = status_code
        super().__init__(f"Url ({url}) did not return a 2xx response (status {status_code})")


class RequestCancelledError(IpfsRaceError):
    """Raised by a transport when a losing candidate was cancelled."""
    pass


@dataclass
class CandidateFailure:
    """One failed candidate attempt."""

    url: str
    cause: BaseException

    def __str__(self) -> str:
        return f"{self.url}: {self.cause}"


class AllCandidatesFailedError(IpfsRaceError):
    """Raised when every candidate of a race failed."""

    def __init__(self, failures: List[CandidateFailure], message: Optional[str] = None):
        self.failures = list(failures)
        if message is None:
            if self.failures:
                message = f"All {len(self.failures)} candidates failed: " + "; ".join(str(f) for f in self.failures)
            else:
                message = "No candidates to resolve from (empty gateway list)"
        super().__init__(message)
