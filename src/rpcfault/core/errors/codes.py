"""Status codes, variants and error kinds.

Contains the enums used throughout rpcfault to describe a failure.

This module provides:
- StatusCode: Canonical transport status codes
- Variant: The closed set of classified exception variants
- ErrorKind: Caller-facing handling kinds derived from a classification

Status Code Retry Table
=======================

The default retry verdict for each transport code. Rules are evaluated
top to bottom and the first match wins.

    | Code | Description contains | Retriable |
    |------|----------------------|-----------|
    | INTERNAL | "HTTP/2 error code" | Yes |
    | INTERNAL | "Connection closed" | Yes |
    | UNAVAILABLE | - | Yes |
    | RESOURCE_EXHAUSTED | - | No* |
    | ABORTED | - | Yes |
    | (anything else) | - | No |

    *RESOURCE_EXHAUSTED becomes retriable when the server attaches a
    retry delay; the caller is expected to wait at least that long.

Variants
========

    | Variant | Retriable | Produced by |
    |---------|-----------|-------------|
    | GENERIC | from table | default |
    | ABORTED | always | code == ABORTED |
    | SESSION_EXPIRED | never | "NOT_FOUND: Session not found: ..." text |
    | CANCELLED | never | cancelled execution context only |
"""

from __future__ import annotations

from enum import Enum, IntEnum
from typing import Any


class StatusCode(IntEnum):
    """Canonical status codes shared with the transport.

    Values match the wire values of the gRPC status codes so that a raw
    integer received from the transport maps directly onto a member.
    """

    OK = 0
    CANCELLED = 1
    UNKNOWN = 2
    INVALID_ARGUMENT = 3
    DEADLINE_EXCEEDED = 4
    NOT_FOUND = 5
    ALREADY_EXISTS = 6
    PERMISSION_DENIED = 7
    RESOURCE_EXHAUSTED = 8
    FAILED_PRECONDITION = 9
    ABORTED = 10
    OUT_OF_RANGE = 11
    UNIMPLEMENTED = 12
    INTERNAL = 13
    UNAVAILABLE = 14
    DATA_LOSS = 15
    UNAUTHENTICATED = 16

    @classmethod
    def coerce(cls, value: Any) -> StatusCode:
        """Convert any transport representation of a code into a StatusCode.

        Accepts a StatusCode, a raw integer, a code name ("ABORTED",
        case-insensitive) or an enum-like object exposing ``.name`` such as
        ``grpc.StatusCode.ABORTED``.

        Args:
            value: The code as supplied by the transport.

        Returns:
            The matching StatusCode, or UNKNOWN for anything unrecognised.
        """
        if isinstance(value, cls):
            return value
        if isinstance(value, bool):
            return cls.UNKNOWN
        if isinstance(value, int):
            try:
                return cls(value)
            except ValueError:
                return cls.UNKNOWN
        name = value if isinstance(value, str) else getattr(value, "name", None)
        if isinstance(name, str):
            return cls.__members__.get(name.strip().upper(), cls.UNKNOWN)
        return cls.UNKNOWN


class Variant(str, Enum):
    """The closed set of classified exception variants.

    Exactly one variant tags every ClassifiedException. Selection is a
    table lookup (see ``taxonomy.select_variant``), not subtype dispatch.
    """

    GENERIC = "generic"
    """Default variant; retryability comes from the status code table."""

    ABORTED = "aborted"
    """Transaction aborted by the server; always retryable."""

    SESSION_EXPIRED = "session_expired"
    """The server no longer knows the session; re-acquire before retrying."""

    CANCELLED = "cancelled"
    """Local execution context was cancelled with no other known cause."""


class ErrorKind(str, Enum):
    """How a caller is expected to handle a classified failure."""

    TRANSIENT = "transient"
    """Retry freely; honour a delay only if one was supplied."""

    ABORTED_WITH_BACKOFF = "aborted_with_backoff"
    """Always retry; an attached delay is the minimum wait before retrying."""

    RESOURCE_EXPIRED = "resource_expired"
    """Re-acquire the resource first; never retry as is."""

    CANCELLED = "cancelled"
    """Local abandonment, not a server fault; never retry."""

    GENERIC = "generic"
    """Not retryable according to the status code table."""
