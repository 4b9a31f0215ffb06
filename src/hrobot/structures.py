from __future__ import annotations

import base64
import os
from dataclasses import dataclass, field, replace
from typing import Any, Dict, Generic, Mapping, Optional, Tuple, TypeVar

from .envelope import Empty, ResponseType
from .exceptions import MissingCredentialsError
from .utils import form_encode

T = TypeVar("T")

USERNAME_ENV = "HROBOT_USERNAME"
PASSWORD_ENV = "HROBOT_PASSWORD"


@dataclass(frozen=True)
class Credentials:
    """Precomputed Basic-Auth header value for the Robot web service user."""

    header_value: str

    @classmethod
    def from_login(cls, username: str, password: str) -> "Credentials":
        if not isinstance(username, str):
            raise TypeError("username must be str")
        if not isinstance(password, str):
            raise TypeError("password must be str")
        token = base64.b64encode(f"{username}:{password}".encode("utf-8")).decode("ascii")
        return cls(header_value=f"Basic {token}")

    @classmethod
    def from_env(cls) -> "Credentials":
        """Read credentials from ``HROBOT_USERNAME`` and ``HROBOT_PASSWORD``."""

        missing = [name for name in (USERNAME_ENV, PASSWORD_ENV) if name not in os.environ]
        if missing:
            raise MissingCredentialsError(f"Environment variable(s) not set: {', '.join(missing)}")
        return cls.from_login(os.environ[USERNAME_ENV], os.environ[PASSWORD_ENV])

    @property
    def username(self) -> Optional[str]:
        """User part of a ``Basic`` header, ``None`` for anything else."""

        scheme, _, encoded = self.header_value.partition(" ")
        if scheme != "Basic":
            return None
        try:
            decoded = base64.b64decode(encoded, validate=True).decode("utf-8")
        except ValueError:
            return None
        return decoded.split(":", 1)[0]

    def __repr__(self) -> str:
        username = self.username
        if username is None:
            return "Credentials(<opaque>)"
        return f"Credentials(username={username!r})"


@dataclass(frozen=True)
class UnauthenticatedRequest(Generic[T]):
    """Single API request bound to the response type it expects.

    Setters return modified copies; the instance itself never changes.
    """

    uri: str
    response: ResponseType[T] = field(default_factory=Empty)
    method: str = "GET"
    body: Optional[str] = None
    headers: Tuple[Tuple[str, str], ...] = ()

    def __post_init__(self) -> None:
        if not isinstance(self.uri, str):
            raise TypeError("uri must be str")
        if not isinstance(self.method, str):
            raise TypeError("method must be str")
        if self.body is not None and not isinstance(self.body, str):
            raise TypeError("body must be str or None")
        if not isinstance(self.headers, tuple):
            raise TypeError("headers must be tuple")

    def with_method(self, method: str) -> "UnauthenticatedRequest[T]":
        return replace(self, method=method)

    def with_body(self, fields: Mapping[str, Any]) -> "UnauthenticatedRequest[T]":
        return replace(self, body=form_encode(fields))

    def with_serialized_body(self, body: str) -> "UnauthenticatedRequest[T]":
        return replace(self, body=body)

    def with_header(self, key: str, value: str) -> "UnauthenticatedRequest[T]":
        return replace(self, headers=self.headers + ((key, value),))

    def authenticate(self, credentials: Credentials) -> "AuthenticatedRequest[T]":
        return AuthenticatedRequest(request=self, credentials=credentials)


@dataclass(frozen=True)
class AuthenticatedRequest(Generic[T]):
    """Request paired with the credentials it will be sent with."""

    request: UnauthenticatedRequest[T]
    credentials: Credentials

    @property
    def uri(self) -> str:
        return self.request.uri

    @property
    def method(self) -> str:
        return self.request.method

    @property
    def body(self) -> Optional[str]:
        return self.request.body

    @property
    def response(self) -> ResponseType[T]:
        return self.request.response

    @property
    def authorization_header(self) -> str:
        return self.credentials.header_value

    def headers(self) -> Dict[str, str]:
        headers = {
            "Authorization": self.authorization_header,
            "Content-Type": "application/x-www-form-urlencoded",
            "Accept": "application/json",
        }
        headers.update(self.request.headers)
        return headers


__all__ = [
    "Credentials",
    "UnauthenticatedRequest",
    "AuthenticatedRequest",
    "USERNAME_ENV",
    "PASSWORD_ENV",
]
