"""Variant selection for classified failures.

Selection is a priority-ordered lookup:

1. Session-not-found message text  -> SESSION_EXPIRED (any code)
2. ABORTED                         -> ABORTED (always retryable)
3. anything else                   -> GENERIC

CANCELLED is never selected here; only the factory's cancellation path
produces it.
"""

from __future__ import annotations

from typing import Any

from .codes import ErrorKind, StatusCode, Variant
from .parsers import parse_session_not_found


def select_variant(
    code: Any,
    description: str | None,
    retryable: bool,
    delay: int,
) -> Variant:
    """Choose the variant for a classified failure.

    ``retryable`` and ``delay`` do not influence the choice today; they are
    part of the signature so that rules depending on them stay local to
    this function.

    Args:
        code: Status code carried by the failure.
        description: Failure description or API message.
        retryable: Verdict from the status classifier.
        delay: Extracted retry delay in milliseconds (-1 when absent).

    Returns:
        The selected Variant.
    """
    if parse_session_not_found(description) is not None:
        return Variant.SESSION_EXPIRED
    if StatusCode.coerce(code) == StatusCode.ABORTED:
        return Variant.ABORTED
    return Variant.GENERIC


def retryable_for(variant: Variant, retryable: bool) -> bool:
    """Apply the per-variant retry invariants to a classifier verdict."""
    if variant == Variant.ABORTED:
        return True
    if variant in (Variant.SESSION_EXPIRED, Variant.CANCELLED):
        return False
    return retryable


def kind_of(variant: Variant, retryable: bool) -> ErrorKind:
    """Map a variant and retry verdict to the caller-facing ErrorKind."""
    if variant == Variant.ABORTED:
        return ErrorKind.ABORTED_WITH_BACKOFF
    if variant == Variant.SESSION_EXPIRED:
        return ErrorKind.RESOURCE_EXPIRED
    if variant == Variant.CANCELLED:
        return ErrorKind.CANCELLED
    return ErrorKind.TRANSIENT if retryable else ErrorKind.GENERIC
