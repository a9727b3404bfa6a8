"""Tests for ExceptionFactory.

Tests cover:
- Transport failures: retry table, retry side channel, ABORTED handling
- Session-not-found detection from transport and API-level errors
- Cancellation of an execution context, with and without a cause
- from_exception() dispatch over every supported failure shape
- Idempotence and value equality of classifications
"""

import asyncio

import pytest
from google.rpc.error_details_pb2 import RetryInfo

from rpcfault.core.config import FactoryConfig
from rpcfault.core.errors import (
    CancellationContext,
    ClassifiedException,
    ErrorKind,
    ExceptionFactory,
    StatusCode,
    Variant,
    encode_retry_info,
    from_cancellation,
    from_exception,
    from_transport_failure,
)
from rpcfault.core.constants import RETRY_INFO_METADATA_KEY

from tests.helpers import (
    SESSION_NOT_FOUND,
    SESSION_PATH,
    FakeApiError,
    FakeGrpcStatusCode,
    FakeRpcError,
    retry_trailers,
)


# =============================================================================
# Transport failures
# =============================================================================


class TestTransportFailures:
    """Failures raised by the transport with a status and trailers."""

    def test_http2_internal_error_is_retryable(self, factory: ExceptionFactory) -> None:
        error = FakeRpcError(StatusCode.INTERNAL, "HTTP/2 error code: INTERNAL_ERROR")
        result = factory.from_exception(error)
        assert result.retryable is True
        assert result.variant == Variant.GENERIC
        assert result.kind == ErrorKind.TRANSIENT

    def test_connection_closed_is_retryable(self, factory: ExceptionFactory) -> None:
        error = FakeRpcError(StatusCode.INTERNAL, "Connection closed with unknown cause")
        assert factory.from_exception(error).retryable is True

    def test_other_internal_error_is_not_retryable(self, factory: ExceptionFactory) -> None:
        error = FakeRpcError(StatusCode.INTERNAL, "Something else broke")
        result = factory.from_exception(error)
        assert result.retryable is False
        assert result.kind == ErrorKind.GENERIC

    def test_unavailable_is_retryable(self, factory: ExceptionFactory) -> None:
        assert factory.from_exception(FakeRpcError(StatusCode.UNAVAILABLE, "down")).retryable

    def test_resource_exhausted(self, factory: ExceptionFactory) -> None:
        error = FakeRpcError(StatusCode.RESOURCE_EXHAUSTED, "Memory pushback")
        result = factory.from_exception(error)
        assert result.retryable is False
        assert result.retry_delay_millis == -1

    def test_resource_exhausted_with_backoff(self, factory: ExceptionFactory) -> None:
        error = FakeRpcError(
            StatusCode.RESOURCE_EXHAUSTED,
            "Memory pushback",
            retry_trailers(seconds=1, nanos=1_000_000),
        )
        result = factory.from_exception(error)
        assert result.retryable is True
        assert result.retry_delay_millis == 1001

    def test_abort_with_retry_info(self, factory: ExceptionFactory) -> None:
        error = FakeRpcError(StatusCode.ABORTED, None, retry_trailers(seconds=1, nanos=1_000_000))
        result = factory.from_exception(error)
        assert result.variant == Variant.ABORTED
        assert result.retry_delay_millis == 1001
        assert result.kind == ErrorKind.ABORTED_WITH_BACKOFF

    def test_abort_without_retry_info(self, factory: ExceptionFactory) -> None:
        result = factory.from_exception(FakeRpcError(StatusCode.ABORTED))
        assert result.variant == Variant.ABORTED
        assert result.retryable is True
        assert result.retry_delay_millis == -1

    def test_abort_without_duration(self, factory: ExceptionFactory) -> None:
        trailers = ((RETRY_INFO_METADATA_KEY, RetryInfo().SerializeToString()),)
        result = factory.from_exception(FakeRpcError(StatusCode.ABORTED, None, trailers))
        assert result.variant == Variant.ABORTED
        assert result.retry_delay_millis == -1

    def test_abort_with_zero_duration(self, factory: ExceptionFactory) -> None:
        result = factory.from_transport_failure(StatusCode.ABORTED, "", encode_retry_info())
        assert result.retry_delay_millis == -1
        assert result.has_retry_delay is False

    @pytest.mark.parametrize(
        "description",
        ["", "Transaction was aborted", "UNAVAILABLE: not really"],
        ids=["empty", "plain", "misleading-text"],
    )
    def test_aborted_always_retryable(self, factory: ExceptionFactory, description: str) -> None:
        result = factory.from_transport_failure(StatusCode.ABORTED, description)
        assert result.variant == Variant.ABORTED
        assert result.retryable is True

    def test_corrupt_side_channel_degrades_to_absent(self, factory: ExceptionFactory) -> None:
        trailers = ((RETRY_INFO_METADATA_KEY, b"\xff\xff\xff"),)
        result = factory.from_exception(FakeRpcError(StatusCode.ABORTED, "aborted", trailers))
        assert result.variant == Variant.ABORTED
        assert result.retry_delay_millis == -1

    def test_grpc_style_status_code(self, factory: ExceptionFactory) -> None:
        result = factory.from_exception(FakeRpcError(FakeGrpcStatusCode.UNAVAILABLE, "down"))
        assert result.code == StatusCode.UNAVAILABLE
        assert result.retryable is True

    def test_cause_is_attached(self, factory: ExceptionFactory) -> None:
        error = FakeRpcError(StatusCode.UNAVAILABLE, "down")
        result = factory.from_exception(error)
        assert result.cause is error
        assert result.__cause__ is error

    def test_custom_metadata_key(self) -> None:
        factory = ExceptionFactory(FactoryConfig(retry_info_metadata_key="X-Backoff-Bin"))
        trailers = (("x-backoff-bin", encode_retry_info(2, 0)),)
        result = factory.from_exception(FakeRpcError(StatusCode.ABORTED, None, trailers))
        assert result.retry_delay_millis == 2000


# =============================================================================
# Messages
# =============================================================================


class TestMessages:
    """Rendered "<CODE>: <description>" messages."""

    def test_message_is_prefixed_with_code(self, factory: ExceptionFactory) -> None:
        result = factory.from_transport_failure(StatusCode.UNAVAILABLE, "backend down")
        assert result.message == "UNAVAILABLE: backend down"
        assert str(result) == "UNAVAILABLE: backend down"

    def test_prefixed_message_is_not_doubled(self, factory: ExceptionFactory) -> None:
        result = factory.from_transport_failure(StatusCode.UNAVAILABLE, "UNAVAILABLE: backend down")
        assert result.message == "UNAVAILABLE: backend down"

    def test_empty_description_renders_code_only(self, factory: ExceptionFactory) -> None:
        assert factory.from_transport_failure(StatusCode.ABORTED).message == "ABORTED"


# =============================================================================
# Session not found
# =============================================================================


class TestSessionNotFound:
    """The server's session-not-found text selects SESSION_EXPIRED."""

    def test_transport_error_session_not_found(self, factory: ExceptionFactory) -> None:
        result = factory.from_exception(FakeRpcError(StatusCode.NOT_FOUND, SESSION_NOT_FOUND))
        assert result.variant == Variant.SESSION_EXPIRED
        assert result.retryable is False
        assert result.resource_name == SESSION_PATH
        assert result.message == SESSION_NOT_FOUND
        assert result.kind == ErrorKind.RESOURCE_EXPIRED

    def test_api_error_session_not_found(self, factory: ExceptionFactory) -> None:
        error = FakeApiError(SESSION_NOT_FOUND, FakeGrpcStatusCode.NOT_FOUND)
        result = factory.from_exception(error)
        assert result.variant == Variant.SESSION_EXPIRED
        assert result.cause is error

    def test_api_failure_session_not_found(self, factory: ExceptionFactory) -> None:
        result = factory.from_api_failure(StatusCode.NOT_FOUND, SESSION_NOT_FOUND)
        assert result.variant == Variant.SESSION_EXPIRED

    @pytest.mark.parametrize(
        "code",
        [StatusCode.UNKNOWN, StatusCode.INTERNAL, StatusCode.ABORTED, StatusCode.UNAVAILABLE],
    )
    def test_session_text_wins_over_code(self, factory: ExceptionFactory, code: StatusCode) -> None:
        result = factory.from_transport_failure(code, SESSION_NOT_FOUND)
        assert result.variant == Variant.SESSION_EXPIRED
        assert result.retryable is False
        assert result.code == code

    def test_other_not_found_is_generic(self, factory: ExceptionFactory) -> None:
        result = factory.from_transport_failure(StatusCode.NOT_FOUND, "Database not found: db")
        assert result.variant == Variant.GENERIC
        assert result.resource_name is None


# =============================================================================
# API-level failures
# =============================================================================


class TestApiFailures:
    """Failures surfaced by the API layer rather than the transport."""

    def test_api_failure_has_no_retry_delay(self, factory: ExceptionFactory) -> None:
        result = factory.from_api_failure(StatusCode.ABORTED, "Transaction aborted")
        assert result.variant == Variant.ABORTED
        assert result.retryable is True
        assert result.retry_delay_millis == -1

    def test_api_resource_exhausted_is_not_retryable(self, factory: ExceptionFactory) -> None:
        result = factory.from_api_failure(StatusCode.RESOURCE_EXHAUSTED, "Quota")
        assert result.retryable is False

    def test_api_error_reads_wrapped_transport_trailers(self, factory: ExceptionFactory) -> None:
        transport = FakeRpcError(
            FakeGrpcStatusCode.RESOURCE_EXHAUSTED, "Quota", retry_trailers(seconds=3)
        )
        error = FakeApiError("Quota", FakeGrpcStatusCode.RESOURCE_EXHAUSTED, response=transport)
        result = factory.from_exception(error)
        assert result.code == StatusCode.RESOURCE_EXHAUSTED
        assert result.retry_delay_millis == 3000
        assert result.retryable is True

    def test_api_error_reads_chained_transport_trailers(self, factory: ExceptionFactory) -> None:
        transport = FakeRpcError(StatusCode.ABORTED, "aborted", retry_trailers(seconds=0, nanos=5_000_000))
        error = FakeApiError("aborted", FakeGrpcStatusCode.ABORTED)
        error.__cause__ = transport
        assert factory.from_exception(error).retry_delay_millis == 5

    def test_api_error_without_status_is_unknown(self, factory: ExceptionFactory) -> None:
        result = factory.from_exception(FakeApiError("odd", None))
        assert result.code == StatusCode.UNKNOWN
        assert result.retryable is False


# =============================================================================
# Cancellation
# =============================================================================


class TestCancellation:
    """from_cancellation() with a plain CancellationContext."""

    def test_null_cancel(self, factory: ExceptionFactory) -> None:
        context = CancellationContext(cancelled=True, cause=None)
        result = factory.from_cancellation(context, None)
        assert result.message == "CANCELLED: Current context was cancelled"
        assert result.variant == Variant.CANCELLED
        assert result.retryable is False
        assert result.kind == ErrorKind.CANCELLED
        assert result.cause is None

    def test_explicit_cause_is_classified(self, factory: ExceptionFactory) -> None:
        cause = FakeRpcError(StatusCode.UNAVAILABLE, "down")
        result = factory.from_cancellation(CancellationContext(cancelled=True), cause)
        assert result.variant == Variant.GENERIC
        assert result.code == StatusCode.UNAVAILABLE
        assert result.retryable is True
        assert result.cause is cause

    def test_explicit_cause_without_context(self, factory: ExceptionFactory) -> None:
        cause = FakeRpcError(StatusCode.ABORTED, "aborted")
        assert factory.from_cancellation(None, cause).variant == Variant.ABORTED

    def test_context_timeout_is_deadline_exceeded(self, factory: ExceptionFactory) -> None:
        timeout = TimeoutError()
        result = factory.from_cancellation(CancellationContext(cancelled=True, cause=timeout))
        assert result.code == StatusCode.DEADLINE_EXCEEDED
        assert result.message == "DEADLINE_EXCEEDED: Current context exceeded deadline"
        assert result.variant == Variant.GENERIC
        assert result.cause is timeout

    def test_context_cause_is_classified(self, factory: ExceptionFactory) -> None:
        cause = FakeRpcError(StatusCode.NOT_FOUND, SESSION_NOT_FOUND)
        result = factory.from_cancellation(CancellationContext(cancelled=True, cause=cause))
        assert result.variant == Variant.SESSION_EXPIRED

    @pytest.mark.parametrize(
        "context",
        [None, CancellationContext(cancelled=False)],
        ids=["no-context", "not-cancelled"],
    )
    def test_no_cancellation_signal(self, factory: ExceptionFactory, context) -> None:
        result = factory.from_cancellation(context)
        assert result.variant == Variant.GENERIC
        assert result.code == StatusCode.CANCELLED
        assert result.message == "CANCELLED: Cancelled"
        assert result.retryable is False

    def test_module_level_shortcut(self) -> None:
        result = from_cancellation(CancellationContext(cancelled=True))
        assert result.variant == Variant.CANCELLED


# =============================================================================
# from_exception() dispatch
# =============================================================================


class TestFromException:
    """Dispatch over the failure shapes a host may raise."""

    def test_classified_exception_is_returned_unchanged(self, factory: ExceptionFactory) -> None:
        original = factory.from_transport_failure(StatusCode.ABORTED, "aborted")
        assert factory.from_exception(original) is original

    def test_timeout_error(self, factory: ExceptionFactory) -> None:
        result = factory.from_exception(TimeoutError())
        assert result.code == StatusCode.DEADLINE_EXCEEDED
        assert result.message == "DEADLINE_EXCEEDED: Operation did not complete in the given time"
        assert result.retryable is False

    def test_timeout_error_keeps_its_message(self, factory: ExceptionFactory) -> None:
        result = factory.from_exception(TimeoutError("read timed out"))
        assert result.message == "DEADLINE_EXCEEDED: read timed out"

    def test_task_cancellation(self, factory: ExceptionFactory) -> None:
        error = asyncio.CancelledError()
        result = factory.from_exception(error)
        assert result.variant == Variant.CANCELLED
        assert result.message == "CANCELLED: Cancelled"
        assert result.cause is error

    def test_anything_else_is_unknown(self, factory: ExceptionFactory) -> None:
        error = ValueError("boom")
        result = factory.from_exception(error)
        assert result.code == StatusCode.UNKNOWN
        assert result.variant == Variant.GENERIC
        assert result.message == "UNKNOWN: boom"
        assert result.retryable is False
        assert result.retry_delay_millis == -1

    def test_result_can_be_raised(self, factory: ExceptionFactory) -> None:
        result = factory.from_exception(FakeRpcError(StatusCode.ABORTED, "aborted"))
        with pytest.raises(ClassifiedException, match="ABORTED: aborted") as exc_info:
            raise result
        assert exc_info.value.variant == Variant.ABORTED

    def test_module_level_shortcut(self) -> None:
        assert from_exception(FakeRpcError(StatusCode.UNAVAILABLE, "x")).retryable is True


# =============================================================================
# Idempotence
# =============================================================================


class TestIdempotence:
    """Classifying the same input twice yields equal values."""

    def test_same_transport_triple_is_equal(self, factory: ExceptionFactory) -> None:
        side_channel = encode_retry_info(1, 1_000_000)
        first = factory.from_transport_failure(StatusCode.ABORTED, "aborted", side_channel)
        second = factory.from_transport_failure(StatusCode.ABORTED, "aborted", side_channel)
        assert first == second
        assert hash(first) == hash(second)
        assert first is not second

    def test_same_error_object_is_equal(self, factory: ExceptionFactory) -> None:
        error = FakeRpcError(StatusCode.NOT_FOUND, SESSION_NOT_FOUND)
        assert factory.from_exception(error) == factory.from_exception(error)

    def test_module_level_and_instance_agree(self, factory: ExceptionFactory) -> None:
        assert from_transport_failure(StatusCode.UNAVAILABLE, "x") == (
            factory.from_transport_failure(StatusCode.UNAVAILABLE, "x")
        )

    def test_different_delay_is_not_equal(self, factory: ExceptionFactory) -> None:
        first = factory.from_transport_failure(StatusCode.ABORTED, "", encode_retry_info(1, 0))
        second = factory.from_transport_failure(StatusCode.ABORTED, "", encode_retry_info(2, 0))
        assert first != second
