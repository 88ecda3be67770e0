"""
IPFS Race - Resolve

Entry point composing option defaults, the URI classifier and the gateway race.
"""

import logging
from dataclasses import dataclass, fields, replace
from typing import Optional, Union

from .classifier import GatewayRequest, classify
from .exceptions import TransportUnavailableError
from .gateways import DEFAULT_GATEWAYS, GatewayLists, Protocol
from .identifiers import is_valid_http_url
from .race import GatewayRace, ResolveOutcome
from .transport import RequestsTransport, Transport

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ResolveOptions:
    """Caller options; any field left as None falls back to the defaults."""

    gateways: Optional[GatewayLists] = None
    default_protocol: Optional[Union[str, Protocol]] = None
    transport: Optional[Transport] = None
    log_failures: Optional[bool] = None
    timeout: Optional[float] = None


DEFAULT_RESOLVE_OPTIONS = ResolveOptions(
    gateways=DEFAULT_GATEWAYS,
    default_protocol=Protocol.IPFS,
    transport=None,  # a RequestsTransport is created per call and owned by the outcome
    log_failures=False,
    timeout=None,
)


def merge_options(options: Optional[ResolveOptions] = None, **overrides) -> ResolveOptions:
    """
    Merge caller options over the defaults.

    Args:
        options: Caller options (None fields are ignored)
        **overrides: Individual fields, applied after options

    Returns:
        Fully populated options (transport may still be None)
    """
    merged = DEFAULT_RESOLVE_OPTIONS
    for source in (options, ResolveOptions(**overrides)):
        if source is None:
            continue
        changes = {
            f.name: getattr(source, f.name)
            for f in fields(ResolveOptions)
            if getattr(source, f.name) is not None
        }
        merged = replace(merged, **changes)

    return replace(merged, default_protocol=Protocol.parse(merged.default_protocol))


def select_transport(options: ResolveOptions) -> Transport:
    """Return the caller's transport or the default requests-backed one."""
    if options.transport is None:
        return RequestsTransport(timeout=options.timeout)
    if not callable(options.transport):
        raise TransportUnavailableError(
            f"Transport {options.transport!r} is not callable; pass a function "
            f"(url, RequestOptions) -> response as 'transport'"
        )
    return options.transport


def resolve(uri: str, options: Optional[ResolveOptions] = None, **overrides) -> ResolveOutcome:
    """
    Fetch an IPFS/IPNS uri by racing gateways and return the first 2xx response.

    Args:
        uri: Identifier in any accepted form (see ipfs_race.classifier)
        options: Resolve options
        **overrides: Individual ResolveOptions fields

    Returns:
        ResolveOutcome with the response and the URL it was resolved from. When
        no transport was supplied, the one created here is closed by
        ResolveOutcome.close(), or right away if the call fails.

    Raises:
        TransportUnavailableError: If the supplied transport is not callable
        MalformedInputError: If the uri could not be classified
        AllCandidatesFailedError: If every candidate failed
    """
    opts = merge_options(options, **overrides)
    transport = select_transport(opts)
    owns_transport = opts.transport is None

    try:
        target = classify(uri, opts.default_protocol)

        # A gateway URL given as input may itself be the fastest source
        origin = uri if isinstance(target, GatewayRequest) and is_valid_http_url(uri) else None

        race = GatewayRace(
            transport,
            gateways=opts.gateways,
            log_failures=opts.log_failures,
            timeout=opts.timeout,
        )
        outcome = race.run(target, origin=origin)
    except Exception:
        if owns_transport:
            transport.close()
        raise

    if owns_transport:
        outcome.resources.append(transport)
    logger.info(f"Resolved {uri} from {outcome.resolved_from}")
    return outcome
