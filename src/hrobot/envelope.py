"""Decoding of Robot API response bodies.

The Robot API never returns naked objects. A single resource comes back as
``{"server": {...}}`` and a listing as ``[{"server": {...}}, ...]``; the
wrapping key only names the resource type and is thrown away here.

Errors arrive as ``{"error": {"status": ..., "code": ..., "message": ...}}``
with the same HTTP framing as successes, so the body is inspected for the
``error`` key before it is handed to the expected response type.
"""

from __future__ import annotations

import json
import logging
from typing import Any, Callable, Dict, Generic, List, Optional, TypeVar, Union

from .exceptions import (
    API_ERRORS,
    ApiError,
    DeserializationError,
    GenericApiError,
    InvalidInput,
    InvalidInputError,
    RateLimit,
    RateLimitExceededError,
    UnavailableError,
)

logger = logging.getLogger(__name__)

T = TypeVar("T")


def _identity(value: Any) -> Any:
    return value


def unwrap(value: Any) -> Any:
    """Return the value of a single-key ``{"<tag>": value}`` object.

    When an object has more than one key the first one in document order wins.
    """

    if not isinstance(value, dict):
        raise DeserializationError(f"expected a wrapped object, got {type(value).__name__}")
    if not value:
        raise DeserializationError("empty map")
    if len(value) > 1:
        logger.debug("Wrapped object has %d keys, using %r", len(value), next(iter(value)))
    return next(iter(value.values()))


def unwrap_list(value: Any) -> List[Any]:
    """Unwrap every element of ``[{"<tag>": value}, ...]`` preserving order."""

    if not isinstance(value, list):
        raise DeserializationError(f"expected a list of wrapped objects, got {type(value).__name__}")
    return [unwrap(item) for item in value]


class ResponseType(Generic[T]):
    """Describes how a decoded JSON document turns into the caller's type."""

    def __call__(self, value: Any) -> T:
        raise NotImplementedError


class Raw(ResponseType[T]):
    """Response that is not wrapped at all."""

    def __init__(self, parse: Callable[[Any], T] = _identity) -> None:
        self.parse = parse

    def __call__(self, value: Any) -> T:
        return self.parse(value)


class Single(ResponseType[T]):
    """``{"<tag>": T}``"""

    def __init__(self, parse: Callable[[Any], T] = _identity) -> None:
        self.parse = parse

    def __call__(self, value: Any) -> T:
        return self.parse(unwrap(value))


class Many(ResponseType[List[T]]):
    """``[{"<tag>": T}, ...]``"""

    def __init__(self, parse: Callable[[Any], T] = _identity) -> None:
        self.parse = parse

    def __call__(self, value: Any) -> List[T]:
        return [self.parse(item) for item in unwrap_list(value)]


class Empty(ResponseType[None]):
    """Endpoint that answers success with an empty body."""

    def __call__(self, value: Any) -> None:
        raise DeserializationError("expected an empty response body")


def _string_list(payload: Dict[str, Any], key: str) -> List[str]:
    value = payload.get(key)
    if value is None:
        return []
    if not isinstance(value, list):
        raise DeserializationError(f"error field {key!r} must be a list")
    return [str(item) for item in value]


def _integer(payload: Dict[str, Any], key: str) -> int:
    value = payload.get(key)
    if isinstance(value, bool) or not isinstance(value, int):
        raise DeserializationError(f"error field {key!r} must be an integer, got {value!r}")
    return value


def _string(payload: Dict[str, Any], key: str) -> str:
    value = payload.get(key)
    if not isinstance(value, str):
        raise DeserializationError(f"error field {key!r} must be a string, got {value!r}")
    return value


def _optional_status(payload: Dict[str, Any]) -> Optional[int]:
    status = payload.get("status")
    if isinstance(status, int) and not isinstance(status, bool):
        return status
    return None


def classify_error(payload: Any) -> ApiError:
    """Map the inner object of an ``{"error": {...}}`` body to an :class:`ApiError`.

    Unknown codes never fail, they become :class:`GenericApiError`.
    """

    if not isinstance(payload, dict) or not payload:
        raise DeserializationError(f"malformed error object: {payload!r}")

    code = _string(payload, "code")
    error_class = API_ERRORS.get(code)
    status = _optional_status(payload)

    if error_class is None:
        invalid_input = None
        if "missing" in payload or "invalid" in payload:
            invalid_input = InvalidInput(
                missing=_string_list(payload, "missing"),
                invalid=_string_list(payload, "invalid"),
            )
        rate_limit = None
        if "interval" in payload and "max_request" in payload:
            rate_limit = RateLimit(
                interval=_integer(payload, "interval"),
                max_request=_integer(payload, "max_request"),
            )
        return GenericApiError(
            _integer(payload, "status"),
            code,
            _string(payload, "message"),
            invalid_input=invalid_input,
            rate_limit=rate_limit,
        )

    if error_class is InvalidInputError:
        return InvalidInputError(
            _string(payload, "message"),
            missing=_string_list(payload, "missing"),
            invalid=_string_list(payload, "invalid"),
            status=status,
        )
    if error_class is RateLimitExceededError:
        return RateLimitExceededError(
            _string(payload, "message"),
            max_request=_integer(payload, "max_request"),
            interval=_integer(payload, "interval"),
            status=status,
        )
    if error_class is UnavailableError:
        return UnavailableError(payload.get("message") or "", status=status)
    return error_class(_string(payload, "message"), status=status)


def decode_response(body: Union[bytes, str], response: ResponseType[T]) -> T:
    """Turn a raw response body into ``T`` or raise the :class:`ApiError` it carries."""

    text = body.decode("utf-8", errors="replace") if isinstance(body, bytes) else body
    if isinstance(response, Empty) and not text.strip():
        return None  # type: ignore[return-value]

    try:
        document = json.loads(text)
    except ValueError as exc:
        raise DeserializationError(f"Failed to parse API JSON response: {exc}") from exc

    if isinstance(document, dict) and "error" in document:
        raise classify_error(document["error"])

    try:
        return response(document)
    except DeserializationError:
        raise
    except (AttributeError, KeyError, TypeError, ValueError) as exc:
        raise DeserializationError(f"Unexpected API response shape: {exc!r}") from exc


__all__ = [
    "unwrap",
    "unwrap_list",
    "ResponseType",
    "Raw",
    "Single",
    "Many",
    "Empty",
    "classify_error",
    "decode_response",
]
