"""Domain exceptions shared by storage and messaging components."""


class DomainError(Exception):
    """Base exception for domain layer."""


class ValidationError(DomainError, ValueError):
    """Raised when input validation fails, before any backend is contacted."""


class BlobNotFoundError(DomainError):
    """Raised by adapters when a path does not exist on the backend."""

    def __init__(self, path: str) -> None:
        self.path = path
        super().__init__(f"blob '{path}' not found")


class AccessDeniedError(DomainError):
    """Raised by adapters when the backend refuses access to a path."""

    def __init__(self, path: str) -> None:
        self.path = path
        super().__init__(f"access to '{path}' denied")


class UnsupportedOperationError(DomainError):
    """Raised when a store or decorator cannot perform the requested operation."""
