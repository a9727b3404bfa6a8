"""Global constants for rpcfault.

Centralizes the well-known identifiers and fixed messages used by the
classification core, making them discoverable and easy to modify.
"""

# =============================================================================
# Transport Side Channel
# =============================================================================

RETRY_INFO_METADATA_KEY = "google.rpc.retryinfo-bin"
"""Trailing-metadata key carrying a binary ``google.rpc.RetryInfo`` message."""

# =============================================================================
# Retry Delay
# =============================================================================

RETRY_DELAY_ABSENT = -1
"""Sentinel retry delay meaning "the server supplied no usable delay"."""

MILLIS_PER_SECOND = 1000

NANOS_PER_MILLI = 1_000_000

# =============================================================================
# Fixed Messages
# =============================================================================

CONTEXT_CANCELLED_MESSAGE = "Current context was cancelled"
"""Description used when an execution context is cancelled with no cause."""

CONTEXT_DEADLINE_MESSAGE = "Current context exceeded deadline"
"""Description used when an execution context is cancelled by a timeout."""

CANCELLED_MESSAGE = "Cancelled"
"""Description used for a cancellation request without a cancelled context."""

TIMEOUT_MESSAGE = "Operation did not complete in the given time"
"""Description used for a local timeout that carries no message of its own."""
