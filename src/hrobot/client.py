from __future__ import annotations

import ipaddress
import logging
from dataclasses import dataclass, field
from typing import Any, List, TypeVar, Union
from urllib.parse import quote

from .envelope import Empty, Many, Raw, Single, decode_response
from .exceptions import WolNotAvailableError
from .firewall import (
    Firewall,
    FirewallConfig,
    FirewallTemplate,
    FirewallTemplateConfig,
    FirewallTemplateReference,
)
from .models import (
    Cancel,
    Cancellation,
    RdnsEntry,
    Reset,
    Server,
    SshKey,
    parse_cancellation,
    parse_reset,
    parse_reset_options,
)
from .structures import Credentials, UnauthenticatedRequest
from .transport import Transport, default_transport

logger = logging.getLogger(__name__)

T = TypeVar("T")

BASE_URL = "https://robot-ws.your-server.de"

IpAddress = Union[str, ipaddress.IPv4Address, ipaddress.IPv6Address]


def _rdns_entry_ptr(data: Any) -> str:
    return data["ptr"]


def _executed_reset(data: Any) -> Union[Reset, str]:
    return parse_reset(data["type"])


@dataclass
class Robot:
    """Hetzner Robot client with sync and async methods.

    Credentials default to the ``HROBOT_USERNAME``/``HROBOT_PASSWORD``
    environment variables, the transport to httpx (requests when httpx is not
    installed). Every call is a single attempt: nothing is retried.
    """

    credentials: Credentials = field(default_factory=Credentials.from_env)
    transport: Transport = field(default_factory=default_transport)
    base_url: str = BASE_URL

    @classmethod
    def from_login(cls, username: str, password: str, **kwargs: Any) -> "Robot":
        return cls(credentials=Credentials.from_login(username, password), **kwargs)

    @classmethod
    def from_env(cls, **kwargs: Any) -> "Robot":
        return cls(credentials=Credentials.from_env(), **kwargs)

    def _url(self, *segments: Any) -> str:
        path = "/".join(quote(str(segment), safe=":") for segment in segments)
        return f"{self.base_url.rstrip('/')}/{path}"

    def _go(self, request: UnauthenticatedRequest[T]) -> T:
        logger.debug("%s %s", request.method, request.uri)
        body = self.transport.send(request.authenticate(self.credentials))
        logger.debug("response body: %s", body.decode("utf-8", errors="replace"))
        return decode_response(body, request.response)

    async def _go_async(self, request: UnauthenticatedRequest[T]) -> T:
        logger.debug("%s %s", request.method, request.uri)
        body = await self.transport.send_async(request.authenticate(self.credentials))
        logger.debug("response body: %s", body.decode("utf-8", errors="replace"))
        return decode_response(body, request.response)

    # Servers

    def _list_servers_props(self) -> UnauthenticatedRequest[List[Server]]:
        return UnauthenticatedRequest(self._url("server"), Many(Server.from_dict))

    def list_servers(self) -> List[Server]:
        return self._go(self._list_servers_props())

    async def list_servers_async(self) -> List[Server]:
        return await self._go_async(self._list_servers_props())

    def _get_server_props(self, server_number: int) -> UnauthenticatedRequest[Server]:
        return UnauthenticatedRequest(self._url("server", server_number), Single(Server.from_dict))

    def get_server(self, server_number: int) -> Server:
        return self._go(self._get_server_props(server_number))

    async def get_server_async(self, server_number: int) -> Server:
        return await self._go_async(self._get_server_props(server_number))

    def _rename_server_props(self, server_number: int, name: str) -> UnauthenticatedRequest[Server]:
        return (
            UnauthenticatedRequest(self._url("server", server_number), Single(Server.from_dict))
            .with_method("POST")
            .with_body({"server_name": name})
        )

    def rename_server(self, server_number: int, name: str) -> Server:
        return self._go(self._rename_server_props(server_number, name))

    async def rename_server_async(self, server_number: int, name: str) -> Server:
        return await self._go_async(self._rename_server_props(server_number, name))

    def _get_server_cancellation_props(self, server_number: int) -> UnauthenticatedRequest[Cancellation]:
        return UnauthenticatedRequest(
            self._url("server", server_number, "cancellation"), Single(parse_cancellation)
        )

    def get_server_cancellation(self, server_number: int) -> Cancellation:
        return self._go(self._get_server_cancellation_props(server_number))

    async def get_server_cancellation_async(self, server_number: int) -> Cancellation:
        return await self._go_async(self._get_server_cancellation_props(server_number))

    def _cancel_server_props(self, server_number: int, cancellation: Cancel) -> UnauthenticatedRequest[Cancellation]:
        return (
            UnauthenticatedRequest(self._url("server", server_number, "cancellation"), Single(parse_cancellation))
            .with_method("POST")
            .with_body(cancellation.to_form())
        )

    def cancel_server(self, server_number: int, cancellation: Cancel) -> Cancellation:
        return self._go(self._cancel_server_props(server_number, cancellation))

    async def cancel_server_async(self, server_number: int, cancellation: Cancel) -> Cancellation:
        return await self._go_async(self._cancel_server_props(server_number, cancellation))

    def _withdraw_server_cancellation_props(self, server_number: int) -> UnauthenticatedRequest[None]:
        return UnauthenticatedRequest(self._url("server", server_number, "cancellation"), Empty()).with_method(
            "DELETE"
        )

    def withdraw_server_cancellation(self, server_number: int) -> None:
        self._go(self._withdraw_server_cancellation_props(server_number))

    async def withdraw_server_cancellation_async(self, server_number: int) -> None:
        await self._go_async(self._withdraw_server_cancellation_props(server_number))

    # Firewall

    def _get_firewall_props(self, server_number: int) -> UnauthenticatedRequest[Firewall]:
        return UnauthenticatedRequest(self._url("firewall", server_number), Single(Firewall.from_dict))

    def get_firewall(self, server_number: int) -> Firewall:
        return self._go(self._get_firewall_props(server_number))

    async def get_firewall_async(self, server_number: int) -> Firewall:
        return await self._go_async(self._get_firewall_props(server_number))

    def _set_firewall_config_props(
        self, server_number: int, config: FirewallConfig
    ) -> UnauthenticatedRequest[Firewall]:
        return (
            UnauthenticatedRequest(self._url("firewall", server_number), Single(Firewall.from_dict))
            .with_method("POST")
            .with_serialized_body(config.encode())
        )

    def set_firewall_config(self, server_number: int, config: FirewallConfig) -> Firewall:
        return self._go(self._set_firewall_config_props(server_number, config))

    async def set_firewall_config_async(self, server_number: int, config: FirewallConfig) -> Firewall:
        return await self._go_async(self._set_firewall_config_props(server_number, config))

    def _apply_firewall_template_props(self, server_number: int, template_id: int) -> UnauthenticatedRequest[Firewall]:
        return (
            UnauthenticatedRequest(self._url("firewall", server_number), Single(Firewall.from_dict))
            .with_method("POST")
            .with_body({"template_id": template_id})
        )

    def apply_firewall_template(self, server_number: int, template_id: int) -> Firewall:
        return self._go(self._apply_firewall_template_props(server_number, template_id))

    async def apply_firewall_template_async(self, server_number: int, template_id: int) -> Firewall:
        return await self._go_async(self._apply_firewall_template_props(server_number, template_id))

    def _delete_firewall_props(self, server_number: int) -> UnauthenticatedRequest[Firewall]:
        return UnauthenticatedRequest(self._url("firewall", server_number), Single(Firewall.from_dict)).with_method(
            "DELETE"
        )

    def delete_firewall(self, server_number: int) -> Firewall:
        """Clear all rules and disable the firewall. Returns the resulting firewall."""

        return self._go(self._delete_firewall_props(server_number))

    async def delete_firewall_async(self, server_number: int) -> Firewall:
        return await self._go_async(self._delete_firewall_props(server_number))

    def _list_firewall_templates_props(self) -> UnauthenticatedRequest[List[FirewallTemplateReference]]:
        return UnauthenticatedRequest(self._url("firewall", "template"), Many(FirewallTemplateReference.from_dict))

    def list_firewall_templates(self) -> List[FirewallTemplateReference]:
        return self._go(self._list_firewall_templates_props())

    async def list_firewall_templates_async(self) -> List[FirewallTemplateReference]:
        return await self._go_async(self._list_firewall_templates_props())

    def _get_firewall_template_props(self, template_id: int) -> UnauthenticatedRequest[FirewallTemplate]:
        return UnauthenticatedRequest(
            self._url("firewall", "template", template_id), Single(FirewallTemplate.from_dict)
        )

    def get_firewall_template(self, template_id: int) -> FirewallTemplate:
        return self._go(self._get_firewall_template_props(template_id))

    async def get_firewall_template_async(self, template_id: int) -> FirewallTemplate:
        return await self._go_async(self._get_firewall_template_props(template_id))

    def _create_firewall_template_props(
        self, template: FirewallTemplateConfig
    ) -> UnauthenticatedRequest[FirewallTemplate]:
        return (
            UnauthenticatedRequest(self._url("firewall", "template"), Single(FirewallTemplate.from_dict))
            .with_method("POST")
            .with_serialized_body(template.encode())
        )

    def create_firewall_template(self, template: FirewallTemplateConfig) -> FirewallTemplate:
        return self._go(self._create_firewall_template_props(template))

    async def create_firewall_template_async(self, template: FirewallTemplateConfig) -> FirewallTemplate:
        return await self._go_async(self._create_firewall_template_props(template))

    def _update_firewall_template_props(
        self, template_id: int, template: FirewallTemplateConfig
    ) -> UnauthenticatedRequest[FirewallTemplate]:
        return (
            UnauthenticatedRequest(self._url("firewall", "template", template_id), Single(FirewallTemplate.from_dict))
            .with_method("POST")
            .with_serialized_body(template.encode())
        )

    def update_firewall_template(self, template_id: int, template: FirewallTemplateConfig) -> FirewallTemplate:
        return self._go(self._update_firewall_template_props(template_id, template))

    async def update_firewall_template_async(
        self, template_id: int, template: FirewallTemplateConfig
    ) -> FirewallTemplate:
        return await self._go_async(self._update_firewall_template_props(template_id, template))

    def _delete_firewall_template_props(self, template_id: int) -> UnauthenticatedRequest[None]:
        return UnauthenticatedRequest(self._url("firewall", "template", template_id), Empty()).with_method("DELETE")

    def delete_firewall_template(self, template_id: int) -> None:
        self._go(self._delete_firewall_template_props(template_id))

    async def delete_firewall_template_async(self, template_id: int) -> None:
        await self._go_async(self._delete_firewall_template_props(template_id))

    # SSH keys

    def _list_ssh_keys_props(self) -> UnauthenticatedRequest[List[SshKey]]:
        return UnauthenticatedRequest(self._url("key"), Many(SshKey.from_dict))

    def list_ssh_keys(self) -> List[SshKey]:
        return self._go(self._list_ssh_keys_props())

    async def list_ssh_keys_async(self) -> List[SshKey]:
        return await self._go_async(self._list_ssh_keys_props())

    def _get_ssh_key_props(self, fingerprint: str) -> UnauthenticatedRequest[SshKey]:
        return UnauthenticatedRequest(self._url("key", fingerprint), Single(SshKey.from_dict))

    def get_ssh_key(self, fingerprint: str) -> SshKey:
        return self._go(self._get_ssh_key_props(fingerprint))

    async def get_ssh_key_async(self, fingerprint: str) -> SshKey:
        return await self._go_async(self._get_ssh_key_props(fingerprint))

    def _create_ssh_key_props(self, name: str, data: str) -> UnauthenticatedRequest[SshKey]:
        return (
            UnauthenticatedRequest(self._url("key"), Single(SshKey.from_dict))
            .with_method("POST")
            .with_body({"name": name, "data": data})
        )

    def create_ssh_key(self, name: str, data: str) -> SshKey:
        """Upload a public key in OpenSSH format under ``name``."""

        return self._go(self._create_ssh_key_props(name, data))

    async def create_ssh_key_async(self, name: str, data: str) -> SshKey:
        return await self._go_async(self._create_ssh_key_props(name, data))

    def _rename_ssh_key_props(self, fingerprint: str, name: str) -> UnauthenticatedRequest[SshKey]:
        return (
            UnauthenticatedRequest(self._url("key", fingerprint), Single(SshKey.from_dict))
            .with_method("POST")
            .with_body({"name": name})
        )

    def rename_ssh_key(self, fingerprint: str, name: str) -> SshKey:
        return self._go(self._rename_ssh_key_props(fingerprint, name))

    async def rename_ssh_key_async(self, fingerprint: str, name: str) -> SshKey:
        return await self._go_async(self._rename_ssh_key_props(fingerprint, name))

    def _remove_ssh_key_props(self, fingerprint: str) -> UnauthenticatedRequest[None]:
        return UnauthenticatedRequest(self._url("key", fingerprint), Empty()).with_method("DELETE")

    def remove_ssh_key(self, fingerprint: str) -> None:
        self._go(self._remove_ssh_key_props(fingerprint))

    async def remove_ssh_key_async(self, fingerprint: str) -> None:
        await self._go_async(self._remove_ssh_key_props(fingerprint))

    # Reverse DNS

    def _list_rdns_entries_props(self) -> UnauthenticatedRequest[List[RdnsEntry]]:
        return UnauthenticatedRequest(self._url("rdns"), Many(RdnsEntry.from_dict))

    def list_rdns_entries(self) -> List[RdnsEntry]:
        return self._go(self._list_rdns_entries_props())

    async def list_rdns_entries_async(self) -> List[RdnsEntry]:
        return await self._go_async(self._list_rdns_entries_props())

    def _get_rdns_entry_props(self, ip: IpAddress) -> UnauthenticatedRequest[str]:
        return UnauthenticatedRequest(self._url("rdns", ip), Single(_rdns_entry_ptr))

    def get_rdns_entry(self, ip: IpAddress) -> str:
        """Return the PTR record of ``ip``."""

        return self._go(self._get_rdns_entry_props(ip))

    async def get_rdns_entry_async(self, ip: IpAddress) -> str:
        return await self._go_async(self._get_rdns_entry_props(ip))

    def _set_rdns_entry_props(self, ip: IpAddress, ptr: str, method: str) -> UnauthenticatedRequest[RdnsEntry]:
        return (
            UnauthenticatedRequest(self._url("rdns", ip), Single(RdnsEntry.from_dict))
            .with_method(method)
            .with_body({"ptr": ptr})
        )

    def create_rdns_entry(self, ip: IpAddress, ptr: str) -> RdnsEntry:
        return self._go(self._set_rdns_entry_props(ip, ptr, "PUT"))

    async def create_rdns_entry_async(self, ip: IpAddress, ptr: str) -> RdnsEntry:
        return await self._go_async(self._set_rdns_entry_props(ip, ptr, "PUT"))

    def update_rdns_entry(self, ip: IpAddress, ptr: str) -> RdnsEntry:
        return self._go(self._set_rdns_entry_props(ip, ptr, "POST"))

    async def update_rdns_entry_async(self, ip: IpAddress, ptr: str) -> RdnsEntry:
        return await self._go_async(self._set_rdns_entry_props(ip, ptr, "POST"))

    def _delete_rdns_entry_props(self, ip: IpAddress) -> UnauthenticatedRequest[None]:
        return UnauthenticatedRequest(self._url("rdns", ip), Empty()).with_method("DELETE")

    def delete_rdns_entry(self, ip: IpAddress) -> None:
        self._go(self._delete_rdns_entry_props(ip))

    async def delete_rdns_entry_async(self, ip: IpAddress) -> None:
        await self._go_async(self._delete_rdns_entry_props(ip))

    # Reset

    def _get_reset_options_props(self, server_number: int) -> UnauthenticatedRequest[List[Union[Reset, str]]]:
        return UnauthenticatedRequest(self._url("reset", server_number), Single(parse_reset_options))

    def get_reset_options(self, server_number: int) -> List[Union[Reset, str]]:
        return self._go(self._get_reset_options_props(server_number))

    async def get_reset_options_async(self, server_number: int) -> List[Union[Reset, str]]:
        return await self._go_async(self._get_reset_options_props(server_number))

    def _trigger_reset_props(self, server_number: int, reset: Union[Reset, str]) -> UnauthenticatedRequest[Any]:
        return (
            UnauthenticatedRequest(self._url("reset", server_number), Single(_executed_reset))
            .with_method("POST")
            .with_body({"type": reset})
        )

    def trigger_reset(self, server_number: int, reset: Union[Reset, str]) -> Union[Reset, str]:
        return self._go(self._trigger_reset_props(server_number, reset))

    async def trigger_reset_async(self, server_number: int, reset: Union[Reset, str]) -> Union[Reset, str]:
        return await self._go_async(self._trigger_reset_props(server_number, reset))

    # Wake-on-LAN

    def _wake_on_lan_props(self, server_number: int, method: str = "GET") -> UnauthenticatedRequest[Any]:
        return UnauthenticatedRequest(self._url("wol", server_number), Single(Raw())).with_method(method)

    def is_wake_on_lan_available(self, server_number: int) -> bool:
        try:
            self._go(self._wake_on_lan_props(server_number))
        except WolNotAvailableError:
            return False
        return True

    async def is_wake_on_lan_available_async(self, server_number: int) -> bool:
        try:
            await self._go_async(self._wake_on_lan_props(server_number))
        except WolNotAvailableError:
            return False
        return True

    def trigger_wake_on_lan(self, server_number: int) -> None:
        self._go(self._wake_on_lan_props(server_number, "POST"))

    async def trigger_wake_on_lan_async(self, server_number: int) -> None:
        await self._go_async(self._wake_on_lan_props(server_number, "POST"))


__all__ = ["Robot", "BASE_URL"]
