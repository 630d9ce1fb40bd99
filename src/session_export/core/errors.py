"""Error taxonomy for the export pipeline.

ValidationError covers malformed or missing caller input, AuthorizationError
covers tenant-token failures, and ConfigurationError covers missing
collaborators that make an operation impossible regardless of input.
"""

from typing import Any


class ValidationError(Exception):
    """Raised when caller input is missing or malformed.

    Args:
        message: Human-readable error description.
        details: Optional mapping of field name to error message.
    """

    def __init__(self, message: str, details: dict[str, Any] | None = None) -> None:
        self.message = message
        self.details = details or {}
        super().__init__(message)


class AuthorizationError(Exception):
    """Raised when a tenant token is missing, invalid, or scoped to another tenant."""


class ConfigurationError(Exception):
    """Raised when a required collaborator has not been configured."""
