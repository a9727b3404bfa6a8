"""ExceptionFactory: the entry point that turns host failures into
ClassifiedException instances.

Every operation runs the same pipeline:

    FailureDescriptor
        -> StatusClassifier      (retryable?)
        -> extract_retry_delay   (how long to wait?)
        -> select_variant        (which variant?)
        -> ClassifiedException

The factory never raises, never logs and never retries. Malformed input
degrades to a non-retryable instance with no retry delay.
"""

from __future__ import annotations

import asyncio
from typing import Any

from rpcfault.core.config import FactoryConfig
from rpcfault.core.constants import (
    CANCELLED_MESSAGE,
    CONTEXT_CANCELLED_MESSAGE,
    CONTEXT_DEADLINE_MESSAGE,
    RETRY_DELAY_ABSENT,
    TIMEOUT_MESSAGE,
)

from .classifier import StatusClassifier
from .codes import StatusCode, Variant
from .models import (
    ClassifiedException,
    ExecutionContext,
    FailureDescriptor,
    TransportFailure,
)
from .parsers import extract_retry_delay, parse_session_not_found, retry_info_from_metadata
from .taxonomy import retryable_for, select_variant


def _text(value: Any) -> str:
    if value is None:
        return ""
    return value if isinstance(value, str) else str(value)


def _is_api_failure(error: BaseException) -> bool:
    """API-level errors (``google.api_core`` style) carry ``grpc_status_code``."""
    return hasattr(error, "grpc_status_code")


class ExceptionFactory:
    """Builds ClassifiedException instances from host failure representations.

    Stateless apart from its frozen configuration; one instance can be
    shared by any number of threads or tasks.
    """

    def __init__(
        self,
        config: FactoryConfig | None = None,
        classifier: StatusClassifier | None = None,
    ) -> None:
        self.config = config or FactoryConfig()
        self.classifier = classifier or StatusClassifier()

    # -------------------------------------------------------------------------
    # Pipeline
    # -------------------------------------------------------------------------

    def classify(
        self,
        failure: FailureDescriptor,
        cause: BaseException | None = None,
    ) -> ClassifiedException:
        """Run the classification pipeline on a normalized failure."""
        retryable = self.classifier.classify(failure.code, failure.description)
        delay = extract_retry_delay(failure.side_channel)

        # An explicit server backoff turns resource exhaustion into a retry
        # after at least that delay.
        if failure.code == StatusCode.RESOURCE_EXHAUSTED and delay != RETRY_DELAY_ABSENT:
            retryable = True

        variant = select_variant(failure.code, failure.description, retryable, delay)
        resource_name = None
        if variant == Variant.SESSION_EXPIRED:
            resource_name = parse_session_not_found(failure.description)

        return ClassifiedException(
            variant=variant,
            code=failure.code,
            message=failure.render_message(),
            retryable=retryable_for(variant, retryable),
            retry_delay_millis=delay,
            cause=cause,
            resource_name=resource_name,
        )

    # -------------------------------------------------------------------------
    # Public operations
    # -------------------------------------------------------------------------

    def from_transport_failure(
        self,
        code: Any,
        description: str | None = None,
        side_channel: Any = None,
        cause: BaseException | None = None,
    ) -> ClassifiedException:
        """Classify a status-bearing transport failure.

        Args:
            code: Status code in any form ``StatusCode.coerce`` accepts.
            description: Status description.
            side_channel: Raw RetryInfo bytes from the trailers, or None.
            cause: The underlying transport error, if any.

        Returns:
            The classified exception.
        """
        failure = FailureDescriptor(
            code=StatusCode.coerce(code),
            description=_text(description),
            side_channel=side_channel,
        )
        return self.classify(failure, cause)

    def from_api_failure(
        self,
        code: Any,
        message: str | None = None,
        cause: BaseException | None = None,
    ) -> ClassifiedException:
        """Classify an API-level failure, which carries no retry side channel."""
        failure = FailureDescriptor(code=StatusCode.coerce(code), description=_text(message))
        return self.classify(failure, cause)

    def from_cancellation(
        self,
        context: ExecutionContext | None,
        explicit_cause: BaseException | None = None,
    ) -> ClassifiedException:
        """Classify the cancellation of an execution context.

        A known cause is the root failure and is classified through the
        normal pipeline; cancellation is only reported as such when nothing
        more specific is known.

        Args:
            context: Object exposing ``is_cancelled()`` and
                ``cancellation_cause()``, or None.
            explicit_cause: Failure the caller already knows about, if any.

        Returns:
            The classified exception.
        """
        if explicit_cause is not None:
            return self.from_exception(explicit_cause)

        if context is not None and context.is_cancelled():
            cancellation_cause = context.cancellation_cause()
            if cancellation_cause is None:
                return self._cancelled(CONTEXT_CANCELLED_MESSAGE)
            if isinstance(cancellation_cause, TimeoutError):
                failure = FailureDescriptor(
                    code=StatusCode.DEADLINE_EXCEEDED,
                    description=CONTEXT_DEADLINE_MESSAGE,
                )
                return self.classify(failure, cancellation_cause)
            return self.from_exception(cancellation_cause)

        failure = FailureDescriptor(code=StatusCode.CANCELLED, description=CANCELLED_MESSAGE)
        return self.classify(failure)

    def from_exception(self, error: BaseException) -> ClassifiedException:
        """Classify any failure object the host may raise.

        Dispatches on shape: an existing ClassifiedException is returned
        unchanged, transport errors (``grpc.RpcError`` style) and API-level
        errors (``google.api_core`` style) go through their pipelines, local
        timeouts and task cancellation are mapped directly, and anything
        else is UNKNOWN.
        """
        if isinstance(error, ClassifiedException):
            return error

        if isinstance(error, TransportFailure):
            return self.from_transport_failure(
                error.code(),
                error.details(),
                retry_info_from_metadata(
                    error.trailing_metadata(), self.config.retry_info_metadata_key
                ),
                cause=error,
            )

        if _is_api_failure(error):
            failure = FailureDescriptor(
                code=StatusCode.coerce(getattr(error, "grpc_status_code", None)),
                description=_text(getattr(error, "message", None) or error),
                side_channel=self._wrapped_side_channel(error),
            )
            return self.classify(failure, error)

        if isinstance(error, TimeoutError):
            failure = FailureDescriptor(
                code=StatusCode.DEADLINE_EXCEEDED,
                description=_text(error) or TIMEOUT_MESSAGE,
            )
            return self.classify(failure, error)

        if isinstance(error, asyncio.CancelledError):
            return self._cancelled(_text(error) or CANCELLED_MESSAGE, error)

        failure = FailureDescriptor(code=StatusCode.UNKNOWN, description=_text(error))
        return self.classify(failure, error)

    # -------------------------------------------------------------------------
    # Helpers
    # -------------------------------------------------------------------------

    def _wrapped_side_channel(self, error: BaseException) -> bytes | None:
        """Read the retry side channel from a transport error an API error wraps."""
        for wrapped in (getattr(error, "response", None), error.__cause__):
            if isinstance(wrapped, TransportFailure):
                return retry_info_from_metadata(
                    wrapped.trailing_metadata(), self.config.retry_info_metadata_key
                )
        return None

    @staticmethod
    def _cancelled(description: str, cause: BaseException | None = None) -> ClassifiedException:
        failure = FailureDescriptor(code=StatusCode.CANCELLED, description=description)
        return ClassifiedException(
            variant=Variant.CANCELLED,
            code=StatusCode.CANCELLED,
            message=failure.render_message(),
            retryable=retryable_for(Variant.CANCELLED, False),
            cause=cause,
        )


# =============================================================================
# Module-level shortcuts using a default factory
# =============================================================================

_default_factory = ExceptionFactory()


def from_transport_failure(
    code: Any,
    description: str | None = None,
    side_channel: Any = None,
    cause: BaseException | None = None,
) -> ClassifiedException:
    return _default_factory.from_transport_failure(code, description, side_channel, cause)


def from_api_failure(
    code: Any,
    message: str | None = None,
    cause: BaseException | None = None,
) -> ClassifiedException:
    return _default_factory.from_api_failure(code, message, cause)


def from_cancellation(
    context: ExecutionContext | None,
    explicit_cause: BaseException | None = None,
) -> ClassifiedException:
    return _default_factory.from_cancellation(context, explicit_cause)


def from_exception(error: BaseException) -> ClassifiedException:
    return _default_factory.from_exception(error)
