from __future__ import annotations

from . import exceptions
from .client import BASE_URL, Robot
from .envelope import Empty, Many, Raw, ResponseType, Single, classify_error, decode_response, unwrap, unwrap_list
from .exceptions import (
    API_ERRORS,
    ApiError,
    AsyncClientUnavailableError,
    DeserializationError,
    GenericApiError,
    HrobotError,
    InvalidInput,
    InvalidInputError,
    MissingCredentialsError,
    NotFoundError,
    RateLimit,
    RateLimitExceededError,
    RequestTimeoutError,
    SerializationError,
    TransportError,
    UnavailableError,
    WolNotAvailableError,
)
from .firewall import (
    Action,
    AnyFilter,
    Firewall,
    FirewallConfig,
    FirewallState,
    FirewallTemplate,
    FirewallTemplateConfig,
    FirewallTemplateReference,
    Ipv4Filter,
    Ipv6Filter,
    PortRange,
    Protocol,
    Rule,
    Rules,
    SwitchPort,
)
from .models import (
    Cancel,
    Cancellable,
    Cancelled,
    RdnsEntry,
    Reset,
    Server,
    ServerFlags,
    ServerStatus,
    SshKey,
    SubnetReference,
)
from .structures import AuthenticatedRequest, Credentials, UnauthenticatedRequest
from .transport import HttpxTransport, RequestsTransport, Transport, default_transport, httpx, requests

__all__ = [
    "Robot",
    "BASE_URL",
    "Credentials",
    "UnauthenticatedRequest",
    "AuthenticatedRequest",
    "Transport",
    "HttpxTransport",
    "RequestsTransport",
    "default_transport",
    "httpx",
    "requests",
    "ResponseType",
    "Raw",
    "Single",
    "Many",
    "Empty",
    "unwrap",
    "unwrap_list",
    "classify_error",
    "decode_response",
    "exceptions",
    "HrobotError",
    "TransportError",
    "RequestTimeoutError",
    "AsyncClientUnavailableError",
    "MissingCredentialsError",
    "SerializationError",
    "DeserializationError",
    "ApiError",
    "GenericApiError",
    "API_ERRORS",
    "InvalidInput",
    "InvalidInputError",
    "RateLimit",
    "RateLimitExceededError",
    "UnavailableError",
    "NotFoundError",
    "WolNotAvailableError",
    "Server",
    "ServerStatus",
    "ServerFlags",
    "SubnetReference",
    "Cancel",
    "Cancelled",
    "Cancellable",
    "SshKey",
    "RdnsEntry",
    "Reset",
    "Firewall",
    "FirewallConfig",
    "FirewallState",
    "FirewallTemplate",
    "FirewallTemplateConfig",
    "FirewallTemplateReference",
    "SwitchPort",
    "Rule",
    "Rules",
    "Action",
    "Protocol",
    "PortRange",
    "AnyFilter",
    "Ipv4Filter",
    "Ipv6Filter",
]
