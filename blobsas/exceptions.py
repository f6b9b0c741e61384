"""
Exceptions raised while issuing SAS tokens.

Author: blobsas contributors
"""

from typing import Optional


class SasError(Exception):
    """Base exception for SAS issuance errors."""

    def __init__(self, message: str, error_code: str = "SasError"):
        self.message = message
        self.error_code = error_code
        super().__init__(message)


class InvalidArgumentError(SasError, ValueError):
    """Raised when an input is rejected before any signing work."""

    def __init__(self, field: str, message: Optional[str] = None):
        self.field = field
        super().__init__(message or f"Invalid value for '{field}'", "InvalidArgument")


class InvalidCredentialError(SasError):
    """Raised when the account key cannot be used for signing."""

    def __init__(self, message: str = "Account key is not valid base64"):
        super().__init__(message, "InvalidCredential")


class ContainerNotFoundError(SasError):
    """Raised when a checked batch targets a container that does not exist."""

    def __init__(self, container: str):
        self.container = container
        super().__init__(f"Container '{container}' does not exist", "ContainerNotFound")


def require_text(field: str, value: Optional[str]) -> str:
    """Return value if it is a non-blank string, raise InvalidArgumentError otherwise."""
    if value is None or not isinstance(value, str) or not value.strip():
        raise InvalidArgumentError(field, f"'{field}' cannot be empty")
    return value


def require_positive(field: str, value: int) -> int:
    """Return value if it is a positive integer."""
    if isinstance(value, bool) or not isinstance(value, int) or value <= 0:
        raise InvalidArgumentError(field, f"'{field}' must be greater than zero, got {value!r}")
    return value
