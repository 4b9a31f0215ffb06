"""Firewall and firewall template models.

Rules are edited through fluent filters::

    Rule.accept("allow https").matching(Ipv4Filter.tcp().to_port(443))

and sent to the API with the bracketed form encoding of
:class:`~hrobot.utils.FormEncoder`.
"""

from __future__ import annotations

import ipaddress
from dataclasses import dataclass, field, replace
from enum import Enum
from typing import Any, Dict, List, Optional, Union

from .utils import FormEncoder

IpNetwork = Union[str, ipaddress.IPv4Network]


class FirewallState(Enum):
    ACTIVE = "active"
    IN_PROCESS = "in process"
    DISABLED = "disabled"


class SwitchPort(Enum):
    MAIN = "main"
    KVM = "kvm"


class Action(Enum):
    ACCEPT = "accept"
    DISCARD = "discard"


class Protocol(Enum):
    TCP = "tcp"
    UDP = "udp"
    GRE = "gre"
    ICMP = "icmp"
    IPIP = "ipip"
    AH = "ah"
    ESP = "esp"


class IpVersion(Enum):
    IPV4 = "ipv4"
    IPV6 = "ipv6"


@dataclass(frozen=True)
class PortRange:
    """Inclusive range of ports, a single port when ``start == end``."""

    start: int
    end: int

    def __post_init__(self) -> None:
        if not 0 <= self.start <= self.end <= 65535:
            raise ValueError(f"invalid port range {self.start}-{self.end}")

    @classmethod
    def port(cls, port: int) -> "PortRange":
        return cls(port, port)

    @classmethod
    def range(cls, start: int, end: int) -> "PortRange":
        return cls(start, end)

    @classmethod
    def parse(cls, value: Union[str, int]) -> "PortRange":
        text = str(value)
        if "-" in text:
            start, end = text.split("-", 1)
            return cls(int(start), int(end))
        return cls.port(int(text))

    def __str__(self) -> str:
        if self.start == self.end:
            return str(self.start)
        return f"{self.start}-{self.end}"


def _port_range(value: Union[PortRange, int, str]) -> PortRange:
    if isinstance(value, PortRange):
        return value
    return PortRange.parse(value)


def _network(value: IpNetwork) -> ipaddress.IPv4Network:
    if isinstance(value, ipaddress.IPv4Network):
        return value
    return ipaddress.IPv4Network(value, strict=False)


@dataclass(frozen=True)
class AnyFilter:
    """Matches IPv4 and IPv6 traffic alike."""

    dst_port: Optional[PortRange] = None
    src_port: Optional[PortRange] = None

    def from_port(self, port: Union[PortRange, int, str]) -> "AnyFilter":
        return replace(self, src_port=_port_range(port))

    def to_port(self, port: Union[PortRange, int, str]) -> "AnyFilter":
        return replace(self, dst_port=_port_range(port))


@dataclass(frozen=True)
class Ipv6Filter:
    protocol: Optional[Protocol] = None
    tcp_flags: Optional[str] = None
    dst_port: Optional[PortRange] = None
    src_port: Optional[PortRange] = None

    @classmethod
    def any(cls) -> "Ipv6Filter":
        return cls()

    @classmethod
    def tcp(cls, flags: Optional[str] = None) -> "Ipv6Filter":
        return cls(protocol=Protocol.TCP, tcp_flags=flags)

    @classmethod
    def udp(cls) -> "Ipv6Filter":
        return cls(protocol=Protocol.UDP)

    @classmethod
    def gre(cls) -> "Ipv6Filter":
        return cls(protocol=Protocol.GRE)

    @classmethod
    def icmp(cls) -> "Ipv6Filter":
        return cls(protocol=Protocol.ICMP)

    @classmethod
    def ipip(cls) -> "Ipv6Filter":
        return cls(protocol=Protocol.IPIP)

    @classmethod
    def ah(cls) -> "Ipv6Filter":
        return cls(protocol=Protocol.AH)

    @classmethod
    def esp(cls) -> "Ipv6Filter":
        return cls(protocol=Protocol.ESP)

    def from_port(self, port: Union[PortRange, int, str]) -> "Ipv6Filter":
        return replace(self, src_port=_port_range(port))

    def to_port(self, port: Union[PortRange, int, str]) -> "Ipv6Filter":
        return replace(self, dst_port=_port_range(port))


@dataclass(frozen=True)
class Ipv4Filter:
    """Matches IPv4 traffic. Address filters only exist for IPv4 on the Robot firewall."""

    protocol: Optional[Protocol] = None
    tcp_flags: Optional[str] = None
    dst_ip: Optional[ipaddress.IPv4Network] = None
    src_ip: Optional[ipaddress.IPv4Network] = None
    dst_port: Optional[PortRange] = None
    src_port: Optional[PortRange] = None

    @classmethod
    def any(cls) -> "Ipv4Filter":
        return cls()

    @classmethod
    def tcp(cls, flags: Optional[str] = None) -> "Ipv4Filter":
        return cls(protocol=Protocol.TCP, tcp_flags=flags)

    @classmethod
    def udp(cls) -> "Ipv4Filter":
        return cls(protocol=Protocol.UDP)

    @classmethod
    def gre(cls) -> "Ipv4Filter":
        return cls(protocol=Protocol.GRE)

    @classmethod
    def icmp(cls) -> "Ipv4Filter":
        return cls(protocol=Protocol.ICMP)

    @classmethod
    def ipip(cls) -> "Ipv4Filter":
        return cls(protocol=Protocol.IPIP)

    @classmethod
    def ah(cls) -> "Ipv4Filter":
        return cls(protocol=Protocol.AH)

    @classmethod
    def esp(cls) -> "Ipv4Filter":
        return cls(protocol=Protocol.ESP)

    def from_port(self, port: Union[PortRange, int, str]) -> "Ipv4Filter":
        return replace(self, src_port=_port_range(port))

    def to_port(self, port: Union[PortRange, int, str]) -> "Ipv4Filter":
        return replace(self, dst_port=_port_range(port))

    def from_ip(self, network: IpNetwork) -> "Ipv4Filter":
        return replace(self, src_ip=_network(network))

    def to_ip(self, network: IpNetwork) -> "Ipv4Filter":
        return replace(self, dst_ip=_network(network))


Filter = Union[AnyFilter, Ipv4Filter, Ipv6Filter]


@dataclass(frozen=True)
class Rule:
    name: str
    filter: Filter = field(default_factory=AnyFilter)
    action: Action = Action.ACCEPT

    @classmethod
    def accept(cls, name: str) -> "Rule":
        return cls(name=name, action=Action.ACCEPT)

    @classmethod
    def discard(cls, name: str) -> "Rule":
        return cls(name=name, action=Action.DISCARD)

    def matching(self, filter: Filter) -> "Rule":
        return replace(self, filter=filter)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Rule":
        def port(key: str) -> Optional[PortRange]:
            value = data.get(key)
            return PortRange.parse(value) if value not in (None, "") else None

        def network(key: str) -> Optional[ipaddress.IPv4Network]:
            value = data.get(key)
            return _network(value) if value else None

        protocol = Protocol(data["protocol"]) if data.get("protocol") else None
        tcp_flags = data.get("tcp_flags") if protocol is Protocol.TCP else None
        ip_version = data.get("ip_version")

        rule_filter: Filter
        if ip_version == IpVersion.IPV4.value:
            rule_filter = Ipv4Filter(
                protocol=protocol,
                tcp_flags=tcp_flags,
                dst_ip=network("dst_ip"),
                src_ip=network("src_ip"),
                dst_port=port("dst_port"),
                src_port=port("src_port"),
            )
        elif ip_version == IpVersion.IPV6.value:
            rule_filter = Ipv6Filter(
                protocol=protocol,
                tcp_flags=tcp_flags,
                dst_port=port("dst_port"),
                src_port=port("src_port"),
            )
        else:
            rule_filter = AnyFilter(dst_port=port("dst_port"), src_port=port("src_port"))

        return cls(name=data["name"], filter=rule_filter, action=Action(data["action"]))

    def encode_into(self, encoder: FormEncoder) -> None:
        rule_filter = self.filter
        encoder.set("[name]", self.name)
        if isinstance(rule_filter, Ipv4Filter):
            encoder.set("[ip_version]", IpVersion.IPV4)
        elif isinstance(rule_filter, Ipv6Filter):
            encoder.set("[ip_version]", IpVersion.IPV6)
        if isinstance(rule_filter, Ipv4Filter):
            if rule_filter.dst_ip is not None:
                encoder.set("[dst_ip]", str(rule_filter.dst_ip))
            if rule_filter.src_ip is not None:
                encoder.set("[src_ip]", str(rule_filter.src_ip))
        if rule_filter.dst_port is not None:
            encoder.set("[dst_port]", str(rule_filter.dst_port))
        if rule_filter.src_port is not None:
            encoder.set("[src_port]", str(rule_filter.src_port))
        if isinstance(rule_filter, (Ipv4Filter, Ipv6Filter)) and rule_filter.protocol is not None:
            encoder.set("[protocol]", rule_filter.protocol)
            if rule_filter.protocol is Protocol.TCP and rule_filter.tcp_flags is not None:
                encoder.set("[tcp_flags]", rule_filter.tcp_flags)
        encoder.set("[action]", self.action)

    def encode(self) -> str:
        encoder = FormEncoder()
        self.encode_into(encoder)
        return encoder.encode()


@dataclass(frozen=True)
class Rules:
    ingress: List[Rule] = field(default_factory=list)
    egress: List[Rule] = field(default_factory=list)

    @classmethod
    def from_dict(cls, data: Optional[Dict[str, Any]]) -> "Rules":
        data = data or {}
        return cls(
            ingress=[Rule.from_dict(rule) for rule in data.get("input") or []],
            egress=[Rule.from_dict(rule) for rule in data.get("output") or []],
        )

    def encode_into(self, encoder: FormEncoder) -> None:
        ingress = encoder.nested("[input]")
        for index, rule in enumerate(self.ingress):
            rule.encode_into(ingress.nested(f"[{index}]"))
        egress = encoder.nested("[output]")
        for index, rule in enumerate(self.egress):
            rule.encode_into(egress.nested(f"[{index}]"))


@dataclass(frozen=True)
class FirewallTemplateConfig:
    """Desired state of a firewall template."""

    name: str
    filter_ipv6: bool = False
    whitelist_hetzner_services: bool = True
    is_default: bool = False
    rules: Rules = field(default_factory=Rules)

    def encode(self) -> str:
        encoder = FormEncoder()
        encoder.set("name", self.name)
        encoder.set("filter_ipv6", self.filter_ipv6)
        encoder.set("whitelist_hos", self.whitelist_hetzner_services)
        encoder.set("is_default", self.is_default)
        self.rules.encode_into(encoder.nested("rules"))
        return encoder.encode()


@dataclass(frozen=True)
class FirewallConfig:
    """Desired state of a server's firewall."""

    status: FirewallState = FirewallState.ACTIVE
    filter_ipv6: bool = False
    whitelist_hetzner_services: bool = True
    rules: Rules = field(default_factory=Rules)

    def to_template_config(self, name: str) -> FirewallTemplateConfig:
        """Build a template config with these rules. Nothing is created until it is uploaded."""

        return FirewallTemplateConfig(
            name=name,
            filter_ipv6=self.filter_ipv6,
            whitelist_hetzner_services=self.whitelist_hetzner_services,
            is_default=False,
            rules=self.rules,
        )

    def encode(self) -> str:
        encoder = FormEncoder()
        encoder.set("status", self.status)
        encoder.set("filter_ipv6", self.filter_ipv6)
        encoder.set("whitelist_hos", self.whitelist_hetzner_services)
        self.rules.encode_into(encoder.nested("rules"))
        return encoder.encode()


@dataclass(frozen=True)
class Firewall:
    """Firewall of a server as reported by the API."""

    status: FirewallState
    filter_ipv6: bool
    whitelist_hetzner_services: bool
    port: SwitchPort
    rules: Rules

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Firewall":
        return cls(
            status=FirewallState(data["status"]),
            filter_ipv6=bool(data["filter_ipv6"]),
            whitelist_hetzner_services=bool(data["whitelist_hos"]),
            port=SwitchPort(data["port"]),
            rules=Rules.from_dict(data.get("rules")),
        )

    def config(self) -> FirewallConfig:
        return FirewallConfig(
            status=self.status,
            filter_ipv6=self.filter_ipv6,
            whitelist_hetzner_services=self.whitelist_hetzner_services,
            rules=self.rules,
        )


@dataclass(frozen=True)
class FirewallTemplateReference:
    """Template descriptor from the template listing, without rules."""

    id: int
    name: str
    filter_ipv6: bool
    whitelist_hetzner_services: bool
    is_default: bool

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "FirewallTemplateReference":
        return cls(
            id=int(data["id"]),
            name=data["name"],
            filter_ipv6=bool(data["filter_ipv6"]),
            whitelist_hetzner_services=bool(data["whitelist_hos"]),
            is_default=bool(data["is_default"]),
        )


@dataclass(frozen=True)
class FirewallTemplate:
    id: int
    name: str
    filter_ipv6: bool
    whitelist_hetzner_services: bool
    is_default: bool
    rules: Rules

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "FirewallTemplate":
        return cls(
            id=int(data["id"]),
            name=data["name"],
            filter_ipv6=bool(data["filter_ipv6"]),
            whitelist_hetzner_services=bool(data["whitelist_hos"]),
            is_default=bool(data["is_default"]),
            rules=Rules.from_dict(data.get("rules")),
        )

    def config(self) -> FirewallTemplateConfig:
        return FirewallTemplateConfig(
            name=self.name,
            filter_ipv6=self.filter_ipv6,
            whitelist_hetzner_services=self.whitelist_hetzner_services,
            is_default=self.is_default,
            rules=self.rules,
        )


__all__ = [
    "FirewallState",
    "SwitchPort",
    "Action",
    "Protocol",
    "IpVersion",
    "PortRange",
    "AnyFilter",
    "Ipv4Filter",
    "Ipv6Filter",
    "Filter",
    "Rule",
    "Rules",
    "Firewall",
    "FirewallConfig",
    "FirewallTemplateReference",
    "FirewallTemplate",
    "FirewallTemplateConfig",
]
