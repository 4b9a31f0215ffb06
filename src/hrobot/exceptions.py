from __future__ import annotations

from dataclasses import dataclass, field
from typing import Dict, List, Optional, Type


class HrobotError(Exception):
    """Base error for everything raised by hrobot."""


class TransportError(HrobotError):
    """Raised when HTTP client transport fails."""


class RequestTimeoutError(TransportError):
    """Raised when HTTP request exceeds timeout."""


class AsyncClientUnavailableError(HrobotError):
    """Raised when async methods are used with a sync-only transport."""


class MissingCredentialsError(HrobotError):
    """Raised when credentials are neither passed nor set in the environment."""


class SerializationError(HrobotError, ValueError):
    """Raised when request parameters cannot be form-encoded."""


class DeserializationError(HrobotError, ValueError):
    """Raised when an API response body cannot be decoded."""


@dataclass(frozen=True)
class InvalidInput:
    """Fields the API rejected as missing or invalid."""

    missing: List[str] = field(default_factory=list)
    invalid: List[str] = field(default_factory=list)


@dataclass(frozen=True)
class RateLimit:
    """Rate limit reported by the API: at most ``max_request`` per ``interval`` seconds."""

    interval: int
    max_request: int


class ApiError(HrobotError):
    """Error reported by the Robot API itself.

    Subclasses exist for every documented error code, ``code`` holds the
    wire literal. Codes the package does not know about surface as
    :class:`GenericApiError`.
    """

    code: str = ""
    label: str = "api error"

    def __init__(self, message: str, *, status: Optional[int] = None) -> None:
        self.message = message
        self.status = status
        super().__init__(f"{self.label}: {message}")


class UnavailableError(ApiError):
    code = "UNAVAILABLE"
    label = "resource unavailable"


class NotFoundError(ApiError):
    code = "NOT_FOUND"
    label = "not found"


class ServerNotFoundError(ApiError):
    code = "SERVER_NOT_FOUND"
    label = "server not found"


class IpNotFoundError(ApiError):
    code = "IP_NOT_FOUND"
    label = "ip address not found"


class SubnetNotFoundError(ApiError):
    code = "SUBNET_NOT_FOUND"
    label = "subnet not found"


class MacNotFoundError(ApiError):
    code = "MAC_NOT_FOUND"
    label = "mac address not found"


class MacNotAvailableError(ApiError):
    code = "MAC_NOT_AVAILABLE"
    label = "mac address not available"


class MacAlreadySetError(ApiError):
    code = "MAC_ALREADY_SET"
    label = "mac address already set"


class MacFailedError(ApiError):
    code = "MAC_FAILED"
    label = "mac address failure"


class WolNotAvailableError(ApiError):
    code = "WOL_NOT_AVAILABLE"
    label = "wake-on-lan not available"


class WolFailedError(ApiError):
    code = "WOL_FAILED"
    label = "wake-on-lan failed"


class WindowsOutdatedVersionError(ApiError):
    code = "WINDOWS_OUTDATED_VERSION"
    label = "outdated windows version"


class WindowsMissingAddonError(ApiError):
    code = "WINDOWS_MISSING_ADDON"
    label = "windows addon missing"


class PleskMissingAddonError(ApiError):
    code = "PLESK_MISSING_ADDON"
    label = "plesk addon missing"


class CpanelMissingAddonError(ApiError):
    code = "CPANEL_MISSING_ADDON"
    label = "cpanel addon missing"


class RateLimitExceededError(ApiError):
    """Raised for ``RATE_LIMIT_EXCEEDED``, carries the active limit."""

    code = "RATE_LIMIT_EXCEEDED"
    label = "rate limit exceeded"

    def __init__(self, message: str, *, max_request: int, interval: int, status: Optional[int] = None) -> None:
        self.max_request = max_request
        self.interval = interval
        super().__init__(message, status=status)

    def __str__(self) -> str:
        return f"{self.label}: {self.message} (max req: {self.max_request}, interval: {self.interval})"


class ResetNotAvailableError(ApiError):
    code = "RESET_NOT_AVAILABLE"
    label = "reset not available"


class ResetManualActiveError(ApiError):
    code = "RESET_MANUAL_ACTIVE"
    label = "manual reset is active"


class ResetFailedError(ApiError):
    code = "RESET_FAILED"
    label = "reset failed"


class StorageboxNotFoundError(ApiError):
    code = "STORAGEBOX_NOT_FOUND"
    label = "storage box not found"


class StorageboxSubaccountNotFoundError(ApiError):
    code = "STORAGEBOX_SUBACCOUNT_NOT_FOUND"
    label = "storage box sub-account not found"


class StorageboxSubaccountLimitExceededError(ApiError):
    code = "STORAGEBOX_SUBACCOUNT_LIMIT_EXCEEDED"
    label = "storage box sub-account limit exceeded"


class SnapshotNotFoundError(ApiError):
    code = "SNAPSHOT_NOT_FOUND"
    label = "snapshot not found"


class SnapshotLimitExceededError(ApiError):
    code = "SNAPSHOT_LIMIT_EXCEEDED"
    label = "snapshot limit exceeded"


class FirewallPortNotFoundError(ApiError):
    code = "FIREWALL_PORT_NOT_FOUND"
    label = "firewall port not found"


class FirewallNotAvailableError(ApiError):
    code = "FIREWALL_NOT_AVAILABLE"
    label = "firewall not available"


class FirewallTemplateNotFoundError(ApiError):
    code = "FIREWALL_TEMPLATE_NOT_FOUND"
    label = "firewall template not found"


class FirewallInProcessError(ApiError):
    code = "FIREWALL_IN_PROCESS"
    label = "firewall is already processing a request"


class VswitchLimitReachedError(ApiError):
    code = "VSWITCH_LIMIT_REACHED"
    label = "vSwitch limit reached"


class VswitchNotAvailableError(ApiError):
    code = "VSWITCH_NOT_AVAILABLE"
    label = "vSwitch not available"


class VswitchServerLimitReachedError(ApiError):
    code = "VSWITCH_SERVER_LIMIT_REACHED"
    label = "vSwitch server limit reached"


class VswitchPerServerLimitReachedError(ApiError):
    code = "VSWITCH_PER_SERVER_LIMIT_REACHED"
    label = "vSwitch-per-server limit reached"


class VswitchInProcessError(ApiError):
    code = "VSWITCH_IN_PROCESS"
    label = "vSwitch is already processing a request"


class VswitchVlanNotUniqueError(ApiError):
    code = "VSWITCH_VLAN_NOT_UNIQUE"
    label = "vSwitch VLAN-ID must be unique"


class KeyUpdateFailedError(ApiError):
    code = "KEY_UPDATE_FAILED"
    label = "key update failed"


class KeyCreateFailedError(ApiError):
    code = "KEY_CREATE_FAILED"
    label = "key creation failed"


class KeyDeleteFailedError(ApiError):
    code = "KEY_DELETE_FAILED"
    label = "key deletion failed"


class KeyAlreadyExistsError(ApiError):
    code = "KEY_ALREADY_EXISTS"
    label = "key already exists"


class RdnsNotFoundError(ApiError):
    code = "RDNS_NOT_FOUND"
    label = "rdns entry not found"


class RdnsCreateFailedError(ApiError):
    code = "RDNS_CREATE_FAILED"
    label = "rdns creation failed"


class RdnsUpdateFailedError(ApiError):
    code = "RDNS_UPDATE_FAILED"
    label = "rdns update failed"


class RdnsDeleteFailedError(ApiError):
    code = "RDNS_DELETE_FAILED"
    label = "rdns deletion failed"


class RdnsAlreadyExistsError(ApiError):
    code = "RDNS_ALREADY_EXISTS"
    label = "rdns entry already exists"


class InvalidInputError(ApiError):
    """Raised for ``INVALID_INPUT``, lists the offending request fields."""

    code = "INVALID_INPUT"
    label = "invalid input"

    def __init__(
        self,
        message: str,
        *,
        missing: Optional[List[str]] = None,
        invalid: Optional[List[str]] = None,
        status: Optional[int] = None,
    ) -> None:
        self.missing = list(missing or [])
        self.invalid = list(invalid or [])
        super().__init__(message, status=status)


class ConflictError(ApiError):
    code = "CONFLICT"
    label = "conflict"


class ServerCancellationReserveLocationFalseOnlyError(ApiError):
    code = "SERVER_CANCELLATION_RESERVE_LOCATION_FALSE_ONLY"
    label = "server cancellation reserve location must be false"


class TrafficWarningUpdateFailedError(ApiError):
    code = "TRAFFIC_WARNING_UPDATE_FAILED"
    label = "traffic warning update failed"


class BootNotAvailableError(ApiError):
    code = "BOOT_NOT_AVAILABLE"
    label = "boot not available"


class InternalError(ApiError):
    code = "INTERNAL_ERROR"
    label = "internal error"


class FailoverAlreadyRoutedError(ApiError):
    code = "FAILOVER_ALREADY_ROUTED"
    label = "failover already routed"


class FailoverFailedError(ApiError):
    code = "FAILOVER_FAILED"
    label = "failover failed"


class FailoverLockedError(ApiError):
    code = "FAILOVER_LOCKED"
    label = "failover locked"


class FailoverNotCompleteError(ApiError):
    code = "FAILOVER_NOT_COMPLETE"
    label = "failover not complete"


class FailoverNewServerNotFoundError(ApiError):
    code = "FAILOVER_NEW_SERVER_NOT_FOUND"
    label = "new failover server not found"


class ServerReversalNotPossibleError(ApiError):
    code = "SERVER_REVERSAL_NOT_POSSIBLE"
    label = "withdrawal of server order not possible"


class BootActivationFailedError(ApiError):
    code = "BOOT_ACTIVATION_FAILED"
    label = "boot activation failed"


class BootDeactivationFailedError(ApiError):
    code = "BOOT_DEACTIVATION_FAILED"
    label = "boot deactivation failed"


class BootAlreadyEnabledError(ApiError):
    code = "BOOT_ALREADY_ENABLED"
    label = "boot already enabled"


class BootBlockedError(ApiError):
    code = "BOOT_BLOCKED"
    label = "boot blocked"


class GenericApiError(ApiError):
    """Error code not covered by a dedicated subclass.

    Keeps the raw ``status``, ``code`` and ``message`` together with the
    invalid-input and rate-limit details whenever the body carried them.
    """

    label = "unclassified error"

    def __init__(
        self,
        status: int,
        code: str,
        message: str,
        *,
        invalid_input: Optional[InvalidInput] = None,
        rate_limit: Optional[RateLimit] = None,
    ) -> None:
        self.code = code
        self.invalid_input = invalid_input
        self.rate_limit = rate_limit
        super().__init__(message, status=status)

    def __str__(self) -> str:
        return f"{self.label}: {self.status} {self.code}: {self.message}"


def _known_errors() -> Dict[str, Type[ApiError]]:
    registry: Dict[str, Type[ApiError]] = {}
    pending = list(ApiError.__subclasses__())
    while pending:
        error_class = pending.pop()
        pending.extend(error_class.__subclasses__())
        if error_class is not GenericApiError and error_class.code:
            registry[error_class.code] = error_class
    return registry


API_ERRORS: Dict[str, Type[ApiError]] = _known_errors()


__all__ = [
    "HrobotError",
    "TransportError",
    "RequestTimeoutError",
    "AsyncClientUnavailableError",
    "MissingCredentialsError",
    "SerializationError",
    "DeserializationError",
    "InvalidInput",
    "RateLimit",
    "ApiError",
    "GenericApiError",
    "API_ERRORS",
] + sorted(error_class.__name__ for error_class in API_ERRORS.values())
