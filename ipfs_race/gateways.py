"""
IPFS Race - Gateway Registry

Default public gateway base URLs per protocol, and the immutable gateway list
container selected by protocol during a race.
"""

from dataclasses import dataclass
from enum import Enum
from typing import Dict, Iterable, Optional, Tuple, Union


class Protocol(str, Enum):
    """Addressing modes understood by gateways."""
    IPFS = "ipfs"  # immutable, content addressed
    IPNS = "ipns"  # mutable, name addressed

    @classmethod
    def parse(cls, value: Union[str, "Protocol"]) -> "Protocol":
        """Coerce a string such as 'ipfs' or 'IPNS' into a Protocol."""
        if isinstance(value, cls):
            return value
        try:
            return cls(str(value).strip().lower())
        except ValueError:
            raise ValueError(f"Unknown protocol: {value!r} (expected 'ipfs' or 'ipns')")


DEFAULT_IPFS_GATEWAYS: Tuple[str, ...] = (
    "https://ipfs.io",
    "https://gateway.ipfs.io",
    "https://gateway.pinata.cloud",
    "https://cloudflare-ipfs.com",
    "https://4everland.io",
    "https://w3s.link",
    "https://dweb.link",
    "https://ipfs-gateway.cloud",
)

DEFAULT_IPNS_GATEWAYS: Tuple[str, ...] = (
    "https://ipfs.io",
)


def normalize_gateway(url: str) -> str:
    """Strip whitespace and trailing slashes from a gateway base URL."""
    return url.strip().rstrip("/")


@dataclass(frozen=True)
class GatewayLists:
    """Ordered gateway base URLs, one list per protocol."""

    ipfs: Tuple[str, ...] = DEFAULT_IPFS_GATEWAYS
    ipns: Tuple[str, ...] = DEFAULT_IPNS_GATEWAYS

    def __post_init__(self):
        # Accept any iterable from callers but store normalized tuples
        object.__setattr__(self, "ipfs", tuple(normalize_gateway(g) for g in self.ipfs))
        object.__setattr__(self, "ipns", tuple(normalize_gateway(g) for g in self.ipns))

    def for_protocol(self, protocol: Union[str, Protocol]) -> Tuple[str, ...]:
        """Select the list matching a protocol."""
        if Protocol.parse(protocol) is Protocol.IPNS:
            return self.ipns
        return self.ipfs

    def replace(self, ipfs: Optional[Iterable[str]] = None,
                ipns: Optional[Iterable[str]] = None) -> "GatewayLists":
        """Return a copy with either list overridden."""
        return GatewayLists(
            ipfs=tuple(ipfs) if ipfs is not None else self.ipfs,
            ipns=tuple(ipns) if ipns is not None else self.ipns,
        )

    @classmethod
    def from_dict(cls, data: Dict[str, Optional[Iterable[str]]]) -> "GatewayLists":
        """
        Create from a mapping keyed by protocol name.

        A missing or null key takes the default list; an explicit empty list is kept.
        """
        ipfs = data.get(Protocol.IPFS.value)
        ipns = data.get(Protocol.IPNS.value)
        return cls(
            ipfs=tuple(ipfs) if ipfs is not None else DEFAULT_IPFS_GATEWAYS,
            ipns=tuple(ipns) if ipns is not None else DEFAULT_IPNS_GATEWAYS,
        )


DEFAULT_GATEWAYS = GatewayLists()
