from __future__ import annotations

import ipaddress
from dataclasses import dataclass, field
from datetime import date, datetime
from enum import Enum
from typing import Any, Dict, List, Optional, Union


def parse_timestamp(value: str) -> datetime:
    """Parse Robot timestamps.

    Some endpoints send ISO 8601 with an offset, others ``YYYY-MM-DD HH:MM:SS``
    in Europe/Berlin local time; the latter are returned naive.
    """

    if value.endswith("Z"):
        value = value[:-1] + "+00:00"
    return datetime.fromisoformat(value)


def _string_list(value: Any) -> List[str]:
    if value is None:
        return []
    return [str(item) for item in value]


class ServerStatus(Enum):
    READY = "ready"
    IN_PROGRESS = "in progress"


@dataclass(frozen=True)
class SubnetReference:
    ip: Union[ipaddress.IPv4Address, ipaddress.IPv6Address]
    mask: str

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "SubnetReference":
        return cls(ip=ipaddress.ip_address(data["ip"]), mask=str(data["mask"]))


@dataclass(frozen=True)
class ServerFlags:
    """Which features a server supports.

    Only included by the API when fetching a single server.
    """

    reset: bool
    rescue: bool
    vnc: bool
    windows: bool
    plesk: bool
    cpanel: bool
    wol: bool
    hot_swap: bool
    linked_storagebox: Optional[int] = None

    KEYS = ("reset", "rescue", "vnc", "windows", "plesk", "cpanel", "wol", "hot_swap")

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> Optional["ServerFlags"]:
        if not all(key in data for key in cls.KEYS):
            return None
        return cls(
            linked_storagebox=data.get("linked_storagebox"),
            **{key: bool(data[key]) for key in cls.KEYS},
        )


@dataclass(frozen=True)
class Server:
    id: int
    name: str
    ipv4: Optional[ipaddress.IPv4Address]
    ipv6_net: ipaddress.IPv6Address
    product: str
    dc: str
    traffic: Optional[str]
    status: ServerStatus
    cancelled: bool
    paid_until: date
    ips: List[str] = field(default_factory=list)
    subnets: List[SubnetReference] = field(default_factory=list)
    availability: Optional[ServerFlags] = None

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Server":
        server_ip = data.get("server_ip")
        traffic = data.get("traffic")
        return cls(
            id=int(data["server_number"]),
            name=data["server_name"],
            ipv4=ipaddress.IPv4Address(server_ip) if server_ip else None,
            ipv6_net=ipaddress.IPv6Address(data["server_ipv6_net"]),
            product=data["product"],
            dc=data["dc"],
            traffic=None if traffic == "unlimited" else traffic,
            status=ServerStatus(data["status"]),
            cancelled=bool(data["cancelled"]),
            paid_until=date.fromisoformat(data["paid_until"]),
            ips=_string_list(data.get("ip")),
            subnets=[SubnetReference.from_dict(subnet) for subnet in data.get("subnet") or []],
            availability=ServerFlags.from_dict(data),
        )


@dataclass(frozen=True)
class Cancelled:
    """Server has been cancelled."""

    date: date
    reason: Optional[str]
    reserved: bool

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Cancelled":
        return cls(
            date=date.fromisoformat(data["cancellation_date"]),
            reason=data.get("cancellation_reason"),
            reserved=bool(data["reserved"]),
        )


@dataclass(frozen=True)
class Cancellable:
    """Server is not cancelled yet; describes what a cancellation may look like."""

    earliest_cancellation_date: date
    reservation_possible: bool
    cancellation_reasons: List[str]

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Cancellable":
        return cls(
            earliest_cancellation_date=date.fromisoformat(data["earliest_cancellation_date"]),
            reservation_possible=bool(data["reservation_possible"]),
            cancellation_reasons=_string_list(data.get("cancellation_reason")),
        )


Cancellation = Union[Cancelled, Cancellable]


def parse_cancellation(data: Dict[str, Any]) -> Cancellation:
    if data.get("cancellation_date"):
        return Cancelled.from_dict(data)
    return Cancellable.from_dict(data)


@dataclass(frozen=True)
class Cancel:
    """Cancellation request. ``date=None`` cancels immediately."""

    date: Optional[date] = None
    reason: Optional[str] = None
    reserved: bool = False

    def to_form(self) -> Dict[str, Any]:
        return {
            "cancellation_date": self.date.isoformat() if self.date else "now",
            "cancellation_reason": self.reason,
            "reserved": self.reserved,
        }


@dataclass(frozen=True)
class SshKey:
    name: str
    fingerprint: str
    algorithm: str
    bits: int
    data: str
    created_at: datetime

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "SshKey":
        return cls(
            name=data["name"],
            fingerprint=data["fingerprint"],
            algorithm=data["type"],
            bits=int(data["size"]),
            data=data["data"],
            created_at=parse_timestamp(data["created_at"]),
        )


@dataclass(frozen=True)
class RdnsEntry:
    ip: Union[ipaddress.IPv4Address, ipaddress.IPv6Address]
    ptr: str

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "RdnsEntry":
        return cls(ip=ipaddress.ip_address(data["ip"]), ptr=data["ptr"])


class Reset(Enum):
    MANUAL = "man"
    SOFTWARE = "sw"
    HARDWARE = "hw"
    POWER = "power"
    POWER_LONG = "power_long"


def parse_reset(value: str) -> Union[Reset, str]:
    """Known reset kinds become :class:`Reset`, anything else passes through as str."""

    try:
        return Reset(value)
    except ValueError:
        return value


def parse_reset_options(data: Dict[str, Any]) -> List[Union[Reset, str]]:
    options = data["type"]
    if isinstance(options, str):
        options = [options]
    return [parse_reset(option) for option in options]


__all__ = [
    "parse_timestamp",
    "ServerStatus",
    "SubnetReference",
    "ServerFlags",
    "Server",
    "Cancelled",
    "Cancellable",
    "Cancellation",
    "parse_cancellation",
    "Cancel",
    "SshKey",
    "RdnsEntry",
    "Reset",
    "parse_reset",
    "parse_reset_options",
]
