"""Errors raised by the token store.

Not-found is never an error: lookups return ``None`` and revocations return ``False``.
"""


class TokenStoreError(Exception):
    """Base class for token store failures."""


class DuplicateToken(TokenStoreError):
    """A token with the same fingerprint is already stored.

    Callers should re-issue with a fresh token rather than retry the same one.
    """

    def __init__(self, field: str | None = None):
        self.field = field
        super().__init__(f"duplicate {field or 'token'} fingerprint")


class ValidationError(TokenStoreError, ValueError):
    """Malformed input, rejected before the database is touched."""

    def __init__(self, field: str, message: str):
        self.field = field
        self.message = message
        super().__init__(f"{field}: {message}")


class InfrastructureError(TokenStoreError):
    """Database unavailable, timed out or rejected the statement."""
