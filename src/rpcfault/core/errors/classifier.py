"""StatusClassifier implementation for the status code retry table.

Maps a (status code, description) pair to a retryability verdict. The
rules are data; ``StatusClassifier`` walks them in order and the first
matching rule decides.
"""

from __future__ import annotations

from typing import Any, NamedTuple

from .codes import StatusCode

# =============================================================================
# Retry rule table.
# Kept at module scope so the rules are reviewable/testable as data.
# =============================================================================


class RetryRule(NamedTuple):
    """A single row of the retry table.

    ``description_contains`` of None matches any description.
    """

    code: StatusCode
    description_contains: str | None
    retryable: bool


_DEFAULT_RETRY_RULES: tuple[RetryRule, ...] = (
    RetryRule(StatusCode.INTERNAL, "HTTP/2 error code", True),
    RetryRule(StatusCode.INTERNAL, "Connection closed", True),
    RetryRule(StatusCode.UNAVAILABLE, None, True),
    # The caller backs off on an attached delay instead of retrying blindly.
    RetryRule(StatusCode.RESOURCE_EXHAUSTED, None, False),
    RetryRule(StatusCode.ABORTED, None, True),
)


# =============================================================================
# Status Classifier
# =============================================================================


class StatusClassifier:
    """Decides whether a failed call is worth retrying.

    Pure and total: any code not matched by a rule is not retryable, and
    a missing description is treated as empty.
    """

    def __init__(self, rules: tuple[RetryRule, ...] = _DEFAULT_RETRY_RULES) -> None:
        self.rules = rules

    def classify(self, code: Any, description: str | None = None) -> bool:
        """Return True if a failure with this code and description is retryable.

        Args:
            code: Status code in any form ``StatusCode.coerce`` accepts.
            description: Free-text description attached to the failure.

        Returns:
            The verdict of the first matching rule, False if none match.
        """
        status = StatusCode.coerce(code)
        text = description or ""
        for rule in self.rules:
            if rule.code != status:
                continue
            if rule.description_contains is None or rule.description_contains in text:
                return rule.retryable
        return False


_default_classifier = StatusClassifier()


def is_retryable(code: Any, description: str | None = None) -> bool:
    """Classify with the default rule table."""
    return _default_classifier.classify(code, description)
