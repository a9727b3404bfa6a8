"""Failure classification.

Re-exports all public symbols so callers can import from
``rpcfault.core.errors`` directly.
"""

from rpcfault.core.errors.codes import (
    ErrorKind,
    StatusCode,
    Variant,
)
from rpcfault.core.errors.classifier import (
    RetryRule,
    StatusClassifier,
    is_retryable,
)
from rpcfault.core.errors.parsers import (
    encode_retry_info,
    extract_retry_delay,
    parse_session_not_found,
    retry_info_from_metadata,
)
from rpcfault.core.errors.taxonomy import (
    kind_of,
    retryable_for,
    select_variant,
)
from rpcfault.core.errors.models import (
    CancellationContext,
    ClassifiedException,
    ExecutionContext,
    FailureDescriptor,
    TransportFailure,
)
from rpcfault.core.errors.factory import (
    ExceptionFactory,
    from_api_failure,
    from_cancellation,
    from_exception,
    from_transport_failure,
)

__all__ = [
    "ErrorKind",
    "StatusCode",
    "Variant",
    "RetryRule",
    "StatusClassifier",
    "is_retryable",
    "encode_retry_info",
    "extract_retry_delay",
    "parse_session_not_found",
    "retry_info_from_metadata",
    "kind_of",
    "retryable_for",
    "select_variant",
    "CancellationContext",
    "ClassifiedException",
    "ExecutionContext",
    "FailureDescriptor",
    "TransportFailure",
    "ExceptionFactory",
    "from_api_failure",
    "from_cancellation",
    "from_exception",
    "from_transport_failure",
]
