"""Error taxonomy for the store layer."""

from __future__ import annotations


class StoreError(Exception):
    """Base class for all store errors."""


class ObjectNotFoundError(StoreError):
    """Raised when an operation requires an object that does not exist."""

    def __init__(self, path: str):
        self.path = path
        super().__init__(f"Object not found: {path}")


class StoreOperationError(StoreError):
    """A backend call failed (network, database, provider error).

    The original backend exception is kept as ``__cause__``.
    """

    def __init__(self, operation: str, path: str, backend: str, message: str = ""):
        self.operation = operation
        self.path = path
        self.backend = backend
        detail = f": {message}" if message else ""
        super().__init__(f"{backend} {operation} failed for {path}{detail}")


class StoreConfigurationError(StoreError):
    """Store configuration is missing or invalid."""
