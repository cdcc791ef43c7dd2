"""
utils/exceptions.py
-------------------
Exception taxonomy shared by the stores, services and handlers.
Handlers catch ExpenzooError and show `str(error)` to the user.
"""


class ExpenzooError(Exception):
    """Base class for every error raised on purpose by Expenzoo."""


class ValidationError(ExpenzooError):
    """
    Malformed or out-of-range input.

    Attributes:
        field: Name of the offending field (e.g. 'title', 'amount', 'budget').
    """

    def __init__(self, field: str, message: str):
        super().__init__(message)
        self.field = field
        self.message = message


class DuplicateError(ExpenzooError):
    """A category with the same name already exists."""

    def __init__(self, name: str):
        super().__init__(f"Category '{name}' already exists.")
        self.name = name


class InvalidBackupError(ExpenzooError):
    """A backup snapshot failed validation before anything was replaced."""


class StorageError(ExpenzooError):
    """The persistence adapter failed to read or write."""
