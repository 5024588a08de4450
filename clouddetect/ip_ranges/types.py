"""
clouddetect/ip_ranges/types.py - IP range data types
"""

from __future__ import annotations

import ipaddress
from dataclasses import dataclass
from enum import Enum
from typing import Any

IPNetwork = ipaddress.IPv4Network | ipaddress.IPv6Network
IPAddress = ipaddress.IPv4Address | ipaddress.IPv6Address


class Provider(str, Enum):
    """Cloud providers whose ranges are fetched, in fetch (and match) order"""

    AMAZON = "Amazon Web Services"
    GOOGLE = "Google Cloud"
    MICROSOFT = "Microsoft Azure"

    @classmethod
    def from_name(cls, name: str) -> Provider:
        """Look up by display name ("Google Cloud") or member name ("google")"""
        for provider in cls:
            if name == provider.value or name.upper() == provider.name:
                return provider
        raise ValueError(f"unknown provider: {name!r}")


class CacheSource(str, Enum):
    """Where the in-memory records last came from"""

    NONE = "none"
    WEB = "web"
    DISK = "disk"


@dataclass(frozen=True)
class SubnetRecord:
    """One published range of a provider

    Attributes:
        provider: Owning provider
        subnet: CIDR network
        region: Provider region name ("" when the provider does not publish one)
    """

    provider: Provider
    subnet: IPNetwork
    region: str = ""

    @property
    def provider_name(self) -> str:
        return self.provider.value

    def contains(self, ip: IPAddress) -> bool:
        return ip in self.subnet

    def to_dict(self) -> dict[str, str]:
        """Snapshot wire form"""
        return {
            "providerName": self.provider.value,
            "region": self.region,
            "subnet": str(self.subnet),
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> SubnetRecord:
        """Inverse of ``to_dict``; raises KeyError/ValueError on bad input"""
        return cls(
            provider=Provider.from_name(data["providerName"]),
            subnet=ipaddress.ip_network(data["subnet"], strict=False),
            region=data.get("region") or "",
        )


def make_record(provider: Provider, cidr: str, region: str = "") -> SubnetRecord:
    """Build a record from a CIDR string (raises ValueError when invalid)"""
    return SubnetRecord(provider=provider, subnet=ipaddress.ip_network(cidr.strip(), strict=False), region=region)
