from abc import ABC


class UserError(ABC, Exception):
    """Base class for user-related errors.

    All errors that inherit from UserError will have their messages
    displayed to the user. These errors should not contain any
    sensitive information.
    """


class NotFoundError(UserError):
    """Raised when a requested resource is not found."""

    def __init__(self, message: str = "Document not found") -> None:
        super().__init__(message)


class NotAuthenticatedError(UserError):
    """Raised when an operation requires a current user and there is none."""

    def __init__(self, message: str = "Not authenticated") -> None:
        super().__init__(message)


class AccessDeniedError(UserError):
    """Raised when a user tries to access a resource they do not have permission for."""


class ValidationError(UserError):
    """Raised when user input fails validation."""


class FeatureUnavailableError(UserError):
    """Raised when the sharing or notification schema is not present in the store."""

    def __init__(
        self,
        message: str = "Note sharing is not available yet. Please contact your administrator to enable it.",
    ) -> None:
        super().__init__(message)


class NotSupportedInDemoModeError(UserError):
    """Raised when an operation needs the authoritative store but the demo store is active."""

    def __init__(self, message: str = "This action is not available in demo mode") -> None:
        super().__init__(message)


class StoreError(Exception):
    """Failure reported by the persistence boundary, carrying the original message."""


class SchemaMissingError(StoreError):
    """The store does not (yet) have a table or column the caller referenced."""

    def __init__(self, table: str, column: str | None = None) -> None:
        self.table = table
        self.column = column
        target = f"{table}.{column}" if column else table
        super().__init__(f"Schema object does not exist: {target}")


class MissingTableError(SchemaMissingError):
    """Raised when a table has not been created by the applied migrations."""

    def __init__(self, table: str) -> None:
        super().__init__(table)


class MissingColumnError(SchemaMissingError):
    """Raised when a column has not been added by the applied migrations."""

    def __init__(self, table: str, column: str) -> None:
        super().__init__(table, column)
