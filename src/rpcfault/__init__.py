"""rpcfault: retry-aware classification of remote-call failures."""

from rpcfault.core.errors import (
    CancellationContext,
    ClassifiedException,
    ErrorKind,
    ExceptionFactory,
    StatusCode,
    Variant,
)

__version__ = "0.1.0"

__all__ = [
    "CancellationContext",
    "ClassifiedException",
    "ErrorKind",
    "ExceptionFactory",
    "StatusCode",
    "Variant",
    "__version__",
]
