"""
IPFS Race - Identifier Syntax

Predicates for CIDs, IPNS names, content paths and plain web URLs. CID parsing
is delegated to the multiformats library; nothing here touches the network.
"""

import logging
import re
from typing import Optional, Tuple
from urllib.parse import urlparse

from multiformats import CID

from .gateways import Protocol

logger = logging.getLogger(__name__)

# /ipfs/<id><rest> with the leading slash optional
CONTENT_PATH_PATTERN = re.compile(r'^/?(ipfs|ipns)/([^/?#]+)(.*)$', re.DOTALL)

# First path segment of an identifier-with-subpath
CID_PATH_PATTERN = re.compile(r'^([^/?#]+)([/?#].*)$', re.DOTALL)

DNS_LABEL_PATTERN = re.compile(r'^(?!-)[a-z0-9-]{1,63}(?<!-)$', re.IGNORECASE)

HTTP_SCHEMES = {"http", "https"}


def is_cid(value: str) -> bool:
    """Check whether a string is a valid CID (v0 or v1, any multibase)."""
    if not isinstance(value, str) or not value or value != value.strip():
        return False
    try:
        CID.decode(value)
        return True
    except Exception as e:
        logger.debug(f"Not a CID: {value!r} ({e})")
        return False


def is_cid_path(value: str) -> bool:
    """Check for '<CID>/<path>', where the whole string is not itself a CID."""
    if not isinstance(value, str) or is_cid(value):
        return False
    match = CID_PATH_PATTERN.match(value)
    return bool(match) and is_cid(match.group(1))


def is_domain_name(value: str) -> bool:
    """Check for a fully qualified DNS name such as 'docs.ipfs.tech'."""
    if not value or len(value) > 253 or "." not in value:
        return False
    labels = value.rstrip(".").split(".")
    if not all(DNS_LABEL_PATTERN.match(label) for label in labels):
        return False
    # TLDs are never numeric
    return not labels[-1].isdigit()


def is_ipns_name(value: str) -> bool:
    """Check whether a string can name IPNS content: a CID (key) or a DNSLink domain."""
    return is_cid(value) or is_domain_name(value)


def is_ipns_name_path(value: str) -> bool:
    """Check for '<IPNS name>' or '<IPNS name>/<path>'."""
    if is_ipns_name(value):
        return True
    match = CID_PATH_PATTERN.match(value) if isinstance(value, str) else None
    return bool(match) and is_ipns_name(match.group(1))


def is_identifier_for(protocol: Protocol, value: str) -> bool:
    """Validate an identifier against the rules of its protocol."""
    if protocol is Protocol.IPNS:
        return is_ipns_name(value)
    return is_cid(value)


def parse_content_path(value: str) -> Optional[Tuple[Protocol, str]]:
    """
    Parse 'ipfs/<id>[/sub]' or 'ipns/<id>[/sub]', with or without a leading slash.

    Returns:
        (protocol, canonical path starting with '/') or None if not a valid content path
    """
    if not isinstance(value, str):
        return None
    match = CONTENT_PATH_PATTERN.match(value)
    if not match:
        return None
    protocol = Protocol(match.group(1))
    identifier, rest = match.group(2), match.group(3)
    if not is_identifier_for(protocol, identifier):
        return None
    return protocol, f"/{protocol.value}/{identifier}{rest}"


def is_path(value: str) -> bool:
    """Check whether a string is a valid content path of either protocol."""
    return parse_content_path(value) is not None


def decode_inlined_dnslink(label: str) -> str:
    """
    Decode a DNSLink name inlined into a single subdomain label.

    Subdomain gateways encode 'en.wikipedia-on-ipfs.org' as
    'en-wikipedia--on--ipfs-org': '--' is a literal hyphen, '-' is a dot.
    """
    return label.replace("--", "\0").replace("-", ".").replace("\0", "-")


def is_valid_http_url(url: str) -> bool:
    """Check if a string is a syntactically valid http or https URL."""
    if not isinstance(url, str) or not url or any(c.isspace() for c in url):
        return False
    try:
        parsed = urlparse(url)
        # Accessing port validates it
        parsed.port
    except ValueError:
        return False
    return parsed.scheme.lower() in HTTP_SCHEMES and bool(parsed.hostname)
