"""Parsers for the data attached to a failed call.

This module provides:
- extract_retry_delay: Decode the retry-delay side channel into milliseconds
- retry_info_from_metadata: Pick the side channel out of trailing metadata
- encode_retry_info: Build a side channel (CLI, tests, fakes)
- parse_session_not_found: Recognise the server's session-expiry message

None of these functions raise on malformed input; they degrade to
"nothing found" so that classification always succeeds.
"""

from __future__ import annotations

import re
from collections.abc import Iterable, Mapping
from typing import Any

from google.protobuf.duration_pb2 import Duration
from google.protobuf.message import DecodeError
from google.rpc.error_details_pb2 import RetryInfo

from rpcfault.core.constants import (
    MILLIS_PER_SECOND,
    NANOS_PER_MILLI,
    RETRY_DELAY_ABSENT,
    RETRY_INFO_METADATA_KEY,
)

# The exact wording the server uses when a session has been deleted or has
# expired. The rest of the taxonomy only ever calls parse_session_not_found().
_SESSION_NOT_FOUND_PATTERN = re.compile(
    r"NOT_FOUND: Session not found: (?P<resource>\S.*)"
)


# =============================================================================
# Retry delay side channel
# =============================================================================


def _nanos_to_millis(nanos: int) -> int:
    """Convert nanoseconds to milliseconds, rounding half away from zero."""
    whole, remainder = divmod(abs(nanos), NANOS_PER_MILLI)
    if remainder * 2 >= NANOS_PER_MILLI:
        whole += 1
    return whole if nanos >= 0 else -whole


def _decode_retry_info(side_channel: Any) -> RetryInfo | None:
    if isinstance(side_channel, RetryInfo):
        return side_channel
    if not isinstance(side_channel, (bytes, bytearray, memoryview)):
        return None
    try:
        return RetryInfo.FromString(bytes(side_channel))
    except DecodeError:
        return None


def extract_retry_delay(side_channel: Any) -> int:
    """Decode a retry-delay side channel into milliseconds.

    The side channel is the binary ``google.rpc.RetryInfo`` message the
    server attaches to a failure; an already-decoded RetryInfo is accepted
    too. A record whose delay is unset or zero carries no usable
    information and resolves to the absent sentinel rather than to 0.

    Args:
        side_channel: Raw bytes, a RetryInfo message, or None.

    Returns:
        Delay in milliseconds, or RETRY_DELAY_ABSENT (-1).
    """
    if side_channel is None:
        return RETRY_DELAY_ABSENT

    retry_info = _decode_retry_info(side_channel)
    if retry_info is None or not retry_info.HasField("retry_delay"):
        return RETRY_DELAY_ABSENT

    delay = retry_info.retry_delay
    if delay.seconds == 0 and delay.nanos == 0:
        return RETRY_DELAY_ABSENT

    millis = delay.seconds * MILLIS_PER_SECOND + _nanos_to_millis(delay.nanos)
    if millis < 0:
        return RETRY_DELAY_ABSENT
    return millis


def retry_info_from_metadata(
    metadata: Any,
    key: str = RETRY_INFO_METADATA_KEY,
) -> bytes | None:
    """Find the retry side channel in transport trailing metadata.

    Accepts what transports hand back as trailers: a sequence of
    ``(key, value)`` pairs (including ``grpc`` metadatum tuples and
    ``grpc.aio.Metadata``) or a plain mapping. Keys are compared
    case-insensitively.

    Args:
        metadata: Trailing metadata, or None.
        key: Metadata key carrying the binary RetryInfo.

    Returns:
        The raw side-channel bytes, or None if absent or unusable.
    """
    if metadata is None or isinstance(metadata, (str, bytes)):
        return None

    items: Any = metadata.items() if isinstance(metadata, Mapping) else metadata
    if not isinstance(items, Iterable):
        return None

    wanted = key.lower()
    for item in items:
        if not isinstance(item, tuple) or len(item) != 2:
            continue
        item_key, value = item
        if not isinstance(item_key, str) or item_key.lower() != wanted:
            continue
        if isinstance(value, (bytes, bytearray)):
            return bytes(value)
    return None


def encode_retry_info(seconds: int = 0, nanos: int = 0) -> bytes:
    """Serialize a RetryInfo side channel carrying the given delay.

    ``encode_retry_info()`` with no arguments yields the zero-valued record
    the transport sends when the delay was never set.
    """
    retry_info = RetryInfo(retry_delay=Duration(seconds=seconds, nanos=nanos))
    return retry_info.SerializeToString()


# =============================================================================
# Session expiry
# =============================================================================


def parse_session_not_found(description: str | None) -> str | None:
    """Recognise the server's "session not found" message.

    The same text arrives through both transport-level and API-level
    failures, and the carried status code is not reliable, so the match is
    on message content alone.

    Args:
        description: Failure description or message.

    Returns:
        The resource path of the missing session, or None if the
        description is not a session-not-found message.
    """
    if not description:
        return None
    match = _SESSION_NOT_FOUND_PATTERN.search(description)
    if match is None:
        return None
    return match.group("resource").strip()
