from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Optional, Protocol

from .exceptions import AsyncClientUnavailableError, RequestTimeoutError, TransportError
from .structures import AuthenticatedRequest

try:
    import httpx
except ImportError:  # pragma: no cover - depends on installed extra
    httpx = None  # type: ignore[assignment]

try:
    import requests
except ImportError:  # pragma: no cover - depends on installed extra
    requests = None  # type: ignore[assignment]

logger = logging.getLogger(__name__)


class Transport(Protocol):
    """Anything that can deliver an authenticated request and hand back the raw body."""

    def send(self, request: AuthenticatedRequest[Any]) -> bytes:
        ...

    async def send_async(self, request: AuthenticatedRequest[Any]) -> bytes:
        ...


def _encoded_body(request: AuthenticatedRequest[Any]) -> Optional[bytes]:
    if request.body is None:
        return None
    return request.body.encode("utf-8")


@dataclass
class HttpxTransport:
    """Reference transport on top of httpx, usable from sync and async code."""

    timeout: float = 10.0

    def send(self, request: AuthenticatedRequest[Any]) -> bytes:
        if httpx is None:
            raise RuntimeError("httpx is not installed. Install httpx.")
        try:
            with httpx.Client(timeout=self.timeout) as client:
                response = client.request(
                    request.method,
                    request.uri,
                    content=_encoded_body(request),
                    headers=request.headers(),
                )
        except httpx.TimeoutException as exc:
            logger.error("HTTP request to %s timed out", request.uri, exc_info=exc)
            raise RequestTimeoutError("HTTP request timeout exceeded.") from exc
        except httpx.HTTPError as exc:
            logger.error("HTTP request to %s failed", request.uri, exc_info=exc)
            raise TransportError("HTTP transport error in httpx client.") from exc
        return response.content

    async def send_async(self, request: AuthenticatedRequest[Any]) -> bytes:
        if httpx is None:
            raise AsyncClientUnavailableError("Async methods require httpx. Install httpx.")
        try:
            async with httpx.AsyncClient(timeout=self.timeout) as client:
                response = await client.request(
                    request.method,
                    request.uri,
                    content=_encoded_body(request),
                    headers=request.headers(),
                )
        except httpx.TimeoutException as exc:
            logger.error("HTTP request to %s timed out", request.uri, exc_info=exc)
            raise RequestTimeoutError("HTTP request timeout exceeded.") from exc
        except httpx.HTTPError as exc:
            logger.error("HTTP request to %s failed", request.uri, exc_info=exc)
            raise TransportError("HTTP transport error in httpx client.") from exc
        return response.content


@dataclass
class RequestsTransport:
    """Sync-only transport on top of requests."""

    timeout: float = 10.0

    def send(self, request: AuthenticatedRequest[Any]) -> bytes:
        if requests is None:
            raise RuntimeError("requests is not installed. Install hrobot[requests].")
        try:
            with requests.Session() as session:
                response = session.request(
                    request.method,
                    request.uri,
                    data=_encoded_body(request),
                    headers=request.headers(),
                    timeout=self.timeout,
                )
        except requests.Timeout as exc:
            logger.error("HTTP request to %s timed out", request.uri, exc_info=exc)
            raise RequestTimeoutError("HTTP request timeout exceeded.") from exc
        except requests.RequestException as exc:
            logger.error("HTTP request to %s failed", request.uri, exc_info=exc)
            raise TransportError("HTTP transport error in requests client.") from exc
        return response.content

    async def send_async(self, request: AuthenticatedRequest[Any]) -> bytes:
        raise AsyncClientUnavailableError("Async methods require httpx. Install httpx.")


def default_transport(timeout: float = 10.0) -> Transport:
    """Pick httpx when it is installed, requests otherwise."""

    if httpx is not None:
        return HttpxTransport(timeout=timeout)
    if requests is not None:
        return RequestsTransport(timeout=timeout)
    raise RuntimeError("No HTTP client is installed. Install httpx or hrobot[requests].")


__all__ = [
    "Transport",
    "HttpxTransport",
    "RequestsTransport",
    "default_transport",
    "httpx",
    "requests",
]
