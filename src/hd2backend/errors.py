"""
Error types for the status backend

Endpoint failures (FetchError subclasses) are isolated per endpoint and
recovered with fallback data. OrchestrationError signals a defect in the
snapshot pipeline itself and is propagated to the caller.
"""

from typing import Optional


class BackendError(Exception):
    """Base class for all backend errors"""


class FetchError(BackendError):
    """A single endpoint request failed"""

    def __init__(self, path: str, message: str):
        super().__init__(message)
        self.path = path


class NetworkError(FetchError):
    """The upstream answered with a non-2xx status"""

    def __init__(self, path: str, status: int, reason: Optional[str] = None):
        message = f"HTTP {status} for {path}"
        if reason:
            message = f"{message} ({reason})"
        super().__init__(path, message)
        self.status = status


class TransportError(FetchError):
    """Connection failure, timeout or unreadable body"""

    def __init__(self, path: str, reason: str):
        super().__init__(path, f"Transport failure for {path}: {reason}")
        self.reason = reason


class OrchestrationError(BackendError):
    """Snapshot pipeline failed for a reason other than an endpoint rejection"""
