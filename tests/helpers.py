"""Shared test helpers: plain stand-ins for the host's failure objects."""

from __future__ import annotations

from enum import Enum
from typing import Any

from rpcfault.core.constants import RETRY_INFO_METADATA_KEY
from rpcfault.core.errors import encode_retry_info

SESSION_PATH = (
    "projects/<project>/instances/<instance>/databases/<database>/sessions/<session id>"
)
SESSION_NOT_FOUND = f"NOT_FOUND: Session not found: {SESSION_PATH}"


class FakeGrpcStatusCode(Enum):
    """Shaped like ``grpc.StatusCode``: tuple values, meaningful names."""

    NOT_FOUND = (5, "not found")
    RESOURCE_EXHAUSTED = (8, "resource exhausted")
    ABORTED = (10, "aborted")
    INTERNAL = (13, "internal")
    UNAVAILABLE = (14, "unavailable")


class FakeRpcError(Exception):
    """Transport error shaped like ``grpc.RpcError`` / ``grpc.Call``."""

    def __init__(
        self,
        code: Any,
        details: str | None = None,
        trailers: Any = (),
    ) -> None:
        super().__init__(details)
        self._code = code
        self._details = details
        self._trailers = trailers

    def code(self) -> Any:
        return self._code

    def details(self) -> str | None:
        return self._details

    def trailing_metadata(self) -> Any:
        return self._trailers


class FakeApiError(Exception):
    """API-level error shaped like ``google.api_core.exceptions.GoogleAPICallError``."""

    def __init__(
        self,
        message: str,
        grpc_status_code: Any = None,
        response: Any = None,
    ) -> None:
        super().__init__(message)
        self.message = message
        self.grpc_status_code = grpc_status_code
        self.response = response


def retry_trailers(seconds: int = 0, nanos: int = 0) -> tuple[tuple[str, bytes], ...]:
    """Trailing metadata carrying a RetryInfo side channel."""
    return ((RETRY_INFO_METADATA_KEY, encode_retry_info(seconds, nanos)),)
