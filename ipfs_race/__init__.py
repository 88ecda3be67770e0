"""
IPFS Race - Gateway Racing Resolver

This package resolves IPFS/IPNS identifiers in any common textual form by
classifying them into a canonical gateway path and racing several public
gateways, returning the first successful response.
"""

from .exceptions import (
    IpfsRaceError,
    MalformedInputError,
    TransportUnavailableError,
    AllCandidatesFailedError,
    BadStatusError,
    RequestCancelledError,
    CandidateFailure
)

from .gateways import (
    Protocol,
    GatewayLists,
    DEFAULT_GATEWAYS,
    DEFAULT_IPFS_GATEWAYS,
    DEFAULT_IPNS_GATEWAYS
)

from .identifiers import (
    is_cid,
    is_cid_path,
    is_ipns_name,
    is_path,
    is_valid_http_url
)

from .classifier import (
    DirectUrl,
    GatewayRequest,
    ResolutionTarget,
    classify,
    explain
)

from .transport import (
    CancelToken,
    RequestOptions,
    RequestsTransport
)

from .race import (
    GatewayRace,
    ResolveOutcome,
    build_candidates
)

from .resolve import (
    ResolveOptions,
    DEFAULT_RESOLVE_OPTIONS,
    merge_options,
    resolve
)

__version__ = "1.0.0"

__all__ = [
    # Errors
    "IpfsRaceError",
    "MalformedInputError",
    "TransportUnavailableError",
    "AllCandidatesFailedError",
    "BadStatusError",
    "RequestCancelledError",
    "CandidateFailure",

    # Gateways
    "Protocol",
    "GatewayLists",
    "DEFAULT_GATEWAYS",
    "DEFAULT_IPFS_GATEWAYS",
    "DEFAULT_IPNS_GATEWAYS",

    # Identifier syntax
    "is_cid",
    "is_cid_path",
    "is_ipns_name",
    "is_path",
    "is_valid_http_url",

    # Classification
    "DirectUrl",
    "GatewayRequest",
    "ResolutionTarget",
    "classify",
    "explain",

    # Transport and race
    "CancelToken",
    "RequestOptions",
    "RequestsTransport",
    "GatewayRace",
    "ResolveOutcome",
    "build_candidates",

    # Facade
    "ResolveOptions",
    "DEFAULT_RESOLVE_OPTIONS",
    "merge_options",
    "resolve"
]
