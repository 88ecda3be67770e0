"""
IPFS Race - URI Classification

This module turns an arbitrary input string into a canonical resolution target.
Classification runs an ordered list of rules; the first rule whose predicate
matches and whose transform yields a target wins. A transform may return None
to fall through to the next rule, or raise MalformedInputError to stop.

Accepted forms:
    <CID>                                   <CID>/<path>
    ipfs/<CID>[/<path>]                     ipns/<name>[/<path>]
    http(s)://<CID>.ipfs.<gateway>[/<path>] http(s)://<name>.ipns.<gateway>[/<path>]
    http(s)://<gateway>/ipfs/<CID>[/<path>] http(s)://<gateway>/ipns/<name>[/<path>]
    ipfs://<CID>[/<path>]                   ipns://<name>[/<path>]
    http(s)://<regular url>
"""

import logging
import re
from dataclasses import dataclass
from typing import Callable, Optional, Tuple, Union
from urllib.parse import urlsplit

from .exceptions import MalformedInputError
from .gateways import Protocol
from .identifiers import (
    decode_inlined_dnslink,
    is_cid,
    is_cid_path,
    is_domain_name,
    is_ipns_name_path,
    is_valid_http_url,
    parse_content_path,
)

logger = logging.getLogger(__name__)

SCHEME_PREFIX_LENGTH = len("ipfs://")

# Everything after the authority of a 'scheme://authority' string
_AFTER_AUTHORITY = re.compile(r'^[^:/?#]+://[^/?#]*(.*)$', re.DOTALL)


@dataclass(frozen=True)
class DirectUrl:
    """A plain web URL fetched as-is, without gateway expansion."""

    url: str


@dataclass(frozen=True)
class GatewayRequest:
    """A canonical '/protocol/identifier[/subpath]' request for any gateway."""

    protocol: Protocol
    path: str

    def __post_init__(self):
        object.__setattr__(self, "protocol", Protocol.parse(self.protocol))
        if not self.path.startswith("/"):
            raise ValueError(f"Gateway path must start with '/': {self.path}")

    def url_for(self, gateway: str) -> str:
        """Build the absolute URL of this request on one gateway."""
        return f"{gateway.rstrip('/')}{self.path}"


ResolutionTarget = Union[DirectUrl, GatewayRequest]


@dataclass(frozen=True)
class ClassificationRule:
    """One (predicate, transform) step of the classifier."""

    name: str
    predicate: Callable[[str], bool]
    transform: Callable[[str, Protocol], Optional[ResolutionTarget]]


def _bare_identifier(uri: str, default_protocol: Protocol) -> ResolutionTarget:
    return GatewayRequest(default_protocol, f"/{default_protocol.value}/{uri}")


def _content_path(uri: str, default_protocol: Protocol) -> Optional[ResolutionTarget]:
    parsed = parse_content_path(uri)
    if parsed is None:
        return None
    return GatewayRequest(*parsed)


def _looks_like_subdomain_gateway(uri: str) -> bool:
    if not is_valid_http_url(uri):
        return False
    host = urlsplit(uri).hostname or ""
    return any(f".{protocol.value}." in host for protocol in Protocol)


def _subdomain_identifier(protocol: Protocol, label: str) -> Optional[str]:
    """Recover the identifier from the label before '.<protocol>.'."""
    if protocol is Protocol.IPFS:
        # Subdomain CIDs are case-insensitive base32/base36
        label = label.lower()
        return label if is_cid(label) else None
    if is_cid(label):
        return label
    name = decode_inlined_dnslink(label)
    return name if is_domain_name(name) else None


def _subdomain_gateway(uri: str, default_protocol: Protocol) -> Optional[ResolutionTarget]:
    host = urlsplit(uri).hostname or ""
    tail = _AFTER_AUTHORITY.match(uri).group(1)

    for protocol in Protocol:
        marker = f".{protocol.value}."
        if marker not in host:
            continue
        # Split on the marker only; the gateway host may contain dots of its own
        label, _, gateway_host = host.partition(marker)
        if not label or not gateway_host:
            continue
        identifier = _subdomain_identifier(protocol, label)
        if identifier is None:
            logger.debug(f"Subdomain label {label!r} is not a valid {protocol.value} identifier")
            continue
        return GatewayRequest(protocol, f"/{protocol.value}/{identifier}{tail}")

    return None


def _looks_like_path_gateway(uri: str) -> bool:
    return uri.startswith("/") or is_valid_http_url(uri)


def _path_gateway(uri: str, default_protocol: Protocol) -> Optional[ResolutionTarget]:
    if uri.startswith("/"):
        path, extra = uri, ""
    else:
        parts = urlsplit(uri)
        path = parts.path
        extra = (f"?{parts.query}" if parts.query else "") + (f"#{parts.fragment}" if parts.fragment else "")

    # Drop leading segments until what remains is a content path
    segments = path.split("/")
    while len(segments) > 1:
        segments.pop(0)
        parsed = parse_content_path("/" + "/".join(segments) + extra)
        if parsed is not None:
            return GatewayRequest(*parsed)

    return None


def _has_scheme(uri: str) -> bool:
    return any(uri.startswith(f"{protocol.value}://") for protocol in Protocol)


def _scheme_uri(uri: str, default_protocol: Protocol) -> ResolutionTarget:
    protocol = Protocol(uri.split("://", 1)[0])
    body = uri[SCHEME_PREFIX_LENGTH:]

    if protocol is Protocol.IPFS:
        valid = is_cid(body) or is_cid_path(body)
    else:
        valid = is_ipns_name_path(body)
    if not valid:
        raise MalformedInputError(uri)

    return GatewayRequest(protocol, f"/{protocol.value}/{body}")


def _web_url(uri: str, default_protocol: Protocol) -> ResolutionTarget:
    return DirectUrl(uri)


RULES: Tuple[ClassificationRule, ...] = (
    ClassificationRule("identifier", lambda uri: is_cid(uri) or is_cid_path(uri), _bare_identifier),
    ClassificationRule("content-path", lambda uri: parse_content_path(uri) is not None, _content_path),
    ClassificationRule("subdomain-gateway", _looks_like_subdomain_gateway, _subdomain_gateway),
    ClassificationRule("path-gateway", _looks_like_path_gateway, _path_gateway),
    ClassificationRule("scheme", _has_scheme, _scheme_uri),
    ClassificationRule("web-url", is_valid_http_url, _web_url),
)


def explain(uri: str, default_protocol: Union[str, Protocol] = Protocol.IPFS) -> Tuple[str, ResolutionTarget]:
    """
    Classify a URI and report which rule matched.

    Args:
        uri: Input string in any accepted form
        default_protocol: Protocol assumed for a bare identifier

    Returns:
        Tuple of (rule name, resolution target)

    Raises:
        MalformedInputError: If no rule matched, or a scheme URI has an invalid body
    """
    if not isinstance(uri, str) or not uri:
        raise MalformedInputError(str(uri))
    protocol = Protocol.parse(default_protocol)

    for rule in RULES:
        if not rule.predicate(uri):
            continue
        target = rule.transform(uri, protocol)
        if target is not None:
            logger.debug(f"Classified {uri} as {rule.name}: {target}")
            return rule.name, target

    raise MalformedInputError(uri)


def classify(uri: str, default_protocol: Union[str, Protocol] = Protocol.IPFS) -> ResolutionTarget:
    """Classify a URI into a DirectUrl or GatewayRequest."""
    return explain(uri, default_protocol)[1]
