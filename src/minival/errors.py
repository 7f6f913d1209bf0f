"""Exceptions raised for validator contract violations.

A failed validation is never an exception: it is reported through
``ValidationOutcome``. These errors signal misuse of the validator itself.
"""


class MinivalError(Exception):
    """Base class for minival errors."""


class InvalidTargetError(MinivalError, ValueError):
    """Raised when the object to validate is missing."""

    def __init__(self, argument: str = "target"):
        self.argument = argument
        super().__init__(f"Value cannot be None: '{argument}'")


class UnsupportedAsyncRequirementError(MinivalError, ValueError):
    """Raised when a synchronous validation would need to run async validators."""

    def __init__(self, target_type: type, reason: str | None = None):
        self.target_type = target_type
        message = (
            f"The target type {target_type.__name__} requires async validation. "
            "Call the 'try_validate_async' method instead."
        )
        if reason:
            message = f"{message} ({reason})"
        super().__init__(message)
