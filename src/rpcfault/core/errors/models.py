"""Data models for failure classification.

This module provides:
- FailureDescriptor: Normalized input to classification
- ClassifiedException: The classified, retry-aware exception
- CancellationContext: Plain implementation of the cancellation capability
- TransportFailure / ExecutionContext: Structural types for the
  host objects the factory accepts
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import timedelta
from typing import Any, Protocol, runtime_checkable

from rpcfault.core.constants import RETRY_DELAY_ABSENT

from .codes import ErrorKind, StatusCode, Variant
from .taxonomy import kind_of


# =============================================================================
# Host failure shapes
# =============================================================================


@runtime_checkable
class TransportFailure(Protocol):
    """A status-bearing transport error, e.g. ``grpc.RpcError``."""

    def code(self) -> Any: ...

    def details(self) -> str | None: ...

    def trailing_metadata(self) -> Any: ...


@runtime_checkable
class ExecutionContext(Protocol):
    """The capability pair the factory needs from an execution context."""

    def is_cancelled(self) -> bool: ...

    def cancellation_cause(self) -> BaseException | None: ...


@dataclass(frozen=True)
class CancellationContext:
    """Plain execution context for callers and tests.

    Attributes:
        cancelled: Whether the context has been cancelled.
        cause: The failure that cancelled the context, if known.
    """

    cancelled: bool = False
    cause: BaseException | None = None

    def is_cancelled(self) -> bool:
        return self.cancelled

    def cancellation_cause(self) -> BaseException | None:
        return self.cause


# =============================================================================
# Classification input / output
# =============================================================================


@dataclass(frozen=True)
class FailureDescriptor:
    """The normalized input to classification.

    Built once per failure from whichever host representation was
    supplied; never mutated.
    """

    code: StatusCode
    description: str = ""
    side_channel: Any = None
    """Raw RetryInfo bytes (or a decoded RetryInfo), None when absent."""

    def render_message(self) -> str:
        """Render "<CODE>: <description>" without double-prefixing."""
        prefix = self.code.name
        if not self.description:
            return prefix
        if self.description.startswith(f"{prefix}: "):
            return self.description
        return f"{prefix}: {self.description}"


class ClassifiedException(Exception):
    """A remote-call failure with its classification.

    One class for every variant: the ``variant`` tag says which rule
    selected it. All fields are read-only and two instances built from the
    same inputs compare equal.
    """

    def __init__(
        self,
        variant: Variant,
        code: StatusCode,
        message: str,
        retryable: bool = False,
        retry_delay_millis: int = RETRY_DELAY_ABSENT,
        cause: BaseException | None = None,
        resource_name: str | None = None,
    ) -> None:
        super().__init__(message)
        self._variant = variant
        self._code = code
        self._message = message
        self._retryable = retryable
        self._retry_delay_millis = retry_delay_millis
        self._cause = cause
        self._resource_name = resource_name
        self.__cause__ = cause

    def __reduce__(self) -> tuple[Any, ...]:
        # BaseException would rebuild from self.args, which only holds the message.
        return (
            type(self),
            (
                self._variant,
                self._code,
                self._message,
                self._retryable,
                self._retry_delay_millis,
                self._cause,
                self._resource_name,
            ),
        )

    @property
    def variant(self) -> Variant:
        return self._variant

    @property
    def code(self) -> StatusCode:
        return self._code

    @property
    def message(self) -> str:
        return self._message

    @property
    def retryable(self) -> bool:
        return self._retryable

    @property
    def retry_delay_millis(self) -> int:
        """Server-supplied minimum wait in milliseconds, -1 when absent."""
        return self._retry_delay_millis

    @property
    def cause(self) -> BaseException | None:
        return self._cause

    @property
    def resource_name(self) -> str | None:
        """Path of the expired session for SESSION_EXPIRED, else None."""
        return self._resource_name

    @property
    def has_retry_delay(self) -> bool:
        return self._retry_delay_millis != RETRY_DELAY_ABSENT

    @property
    def retry_delay(self) -> timedelta | None:
        """The retry delay as a timedelta, None when absent."""
        if not self.has_retry_delay:
            return None
        return timedelta(milliseconds=self._retry_delay_millis)

    @property
    def kind(self) -> ErrorKind:
        return kind_of(self._variant, self._retryable)

    def to_dict(self) -> dict[str, Any]:
        """Convert to a JSON-serializable dictionary (cause as its repr)."""
        return {
            "variant": self._variant.value,
            "kind": self.kind.value,
            "code": self._code.name,
            "message": self._message,
            "retryable": self._retryable,
            "retry_delay_millis": self._retry_delay_millis,
            "resource_name": self._resource_name,
            "cause": repr(self._cause) if self._cause is not None else None,
        }

    def _key(self) -> tuple[Any, ...]:
        return (
            self._variant,
            self._code,
            self._message,
            self._retryable,
            self._retry_delay_millis,
            self._resource_name,
        )

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, ClassifiedException):
            return NotImplemented
        return self._key() == other._key() and self._cause == other._cause

    def __hash__(self) -> int:
        return hash(self._key())

    def __str__(self) -> str:
        return self._message

    def __repr__(self) -> str:
        return (
            f"ClassifiedException(variant={self._variant.name}, code={self._code.name}, "
            f"retryable={self._retryable}, retry_delay_millis={self._retry_delay_millis}, "
            f"message={self._message!r})"
        )
