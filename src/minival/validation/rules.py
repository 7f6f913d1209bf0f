"""Field-level validation rules.

Every rule except ``Required`` treats ``None`` as valid, so optional members
only need ``Required`` when a value must be present.
"""

import re
from collections.abc import Callable, Sized
from typing import Any

from .framework import ValidationContext, ValidationRule


class Required(ValidationRule):
    """Value must be present; blank strings count as missing by default."""

    is_required = True
    default_message = "The {name} field is required."

    def __init__(self, allow_empty_strings: bool = False, error_message: str | None = None):
        super().__init__(error_message)
        self.allow_empty_strings = allow_empty_strings

    def is_valid(self, value: Any, context: ValidationContext) -> bool:
        if value is None:
            return False
        if isinstance(value, str) and not self.allow_empty_strings:
            return bool(value.strip())
        return True


class MinLength(ValidationRule):
    """Sized value must have at least ``length`` items."""

    default_message = "The field {name} must be a string or array type with a minimum length of '{length}'."

    def __init__(self, length: int, error_message: str | None = None):
        super().__init__(error_message)
        if length < 0:
            raise ValueError("MinLength length must be >= 0")
        self.length = length

    def format_arguments(self) -> dict[str, Any]:
        return {"length": self.length}

    def is_valid(self, value: Any, context: ValidationContext) -> bool:
        if value is None:
            return True
        if not isinstance(value, Sized):
            raise TypeError(f"{self.name} cannot check a value of type {type(value).__name__}")
        return len(value) >= self.length


class MaxLength(ValidationRule):
    """Sized value must have at most ``length`` items."""

    default_message = "The field {name} must be a string or array type with a maximum length of '{length}'."

    def __init__(self, length: int, error_message: str | None = None):
        super().__init__(error_message)
        if length < 0:
            raise ValueError("MaxLength length must be >= 0")
        self.length = length

    def format_arguments(self) -> dict[str, Any]:
        return {"length": self.length}

    def is_valid(self, value: Any, context: ValidationContext) -> bool:
        if value is None:
            return True
        if not isinstance(value, Sized):
            raise TypeError(f"{self.name} cannot check a value of type {type(value).__name__}")
        return len(value) <= self.length


class StringLength(ValidationRule):
    """String length must fall within ``minimum``..``maximum``."""

    def __init__(self, maximum: int, minimum: int = 0, error_message: str | None = None):
        super().__init__(error_message)
        if minimum > maximum:
            raise ValueError("StringLength minimum must not exceed maximum")
        self.maximum = maximum
        self.minimum = minimum

    @property
    def default_message(self) -> str:
        if self.minimum:
            return ("The field {name} must be a string with a minimum length of {minimum} "
                    "and a maximum length of {maximum}.")
        return "The field {name} must be a string with a maximum length of {maximum}."

    def format_arguments(self) -> dict[str, Any]:
        return {"minimum": self.minimum, "maximum": self.maximum}

    def is_valid(self, value: Any, context: ValidationContext) -> bool:
        if value is None:
            return True
        return self.minimum <= len(str(value)) <= self.maximum


class Range(ValidationRule):
    """Comparable value must lie between ``minimum`` and ``maximum`` inclusive."""

    default_message = "The field {name} must be between {minimum} and {maximum}."

    def __init__(self, minimum: Any, maximum: Any, error_message: str | None = None):
        super().__init__(error_message)
        self.minimum = minimum
        self.maximum = maximum

    def format_arguments(self) -> dict[str, Any]:
        return {"minimum": self.minimum, "maximum": self.maximum}

    def is_valid(self, value: Any, context: ValidationContext) -> bool:
        if value is None:
            return True
        return self.minimum <= value <= self.maximum


class RegularExpression(ValidationRule):
    """String value must match ``pattern`` entirely."""

    default_message = "The field {name} must match the regular expression '{pattern}'."

    def __init__(self, pattern: str, error_message: str | None = None):
        super().__init__(error_message)
        self.pattern = pattern
        self._regex = re.compile(pattern)

    def format_arguments(self) -> dict[str, Any]:
        return {"pattern": self.pattern}

    def is_valid(self, value: Any, context: ValidationContext) -> bool:
        if value is None or value == "":
            return True
        return self._regex.fullmatch(str(value)) is not None


class EmailAddress(ValidationRule):
    """Loose e-mail check: exactly one '@' that is neither first nor last."""

    default_message = "The {name} field is not a valid e-mail address."

    def is_valid(self, value: Any, context: ValidationContext) -> bool:
        if value is None:
            return True
        if not isinstance(value, str):
            return False
        index = value.find("@")
        return 0 < index < len(value) - 1 and value.find("@", index + 1) == -1


class AllowedValues(ValidationRule):
    """Value must equal one of the given values."""

    default_message = "The {name} field must be one of: {values}."

    def __init__(self, *values: Any, error_message: str | None = None):
        super().__init__(error_message)
        self.values = values

    def format_arguments(self) -> dict[str, Any]:
        return {"values": ", ".join(repr(v) for v in self.values)}

    def is_valid(self, value: Any, context: ValidationContext) -> bool:
        if value is None:
            return True
        return value in self.values


class Predicate(ValidationRule):
    """Wraps a callable ``check(value) -> bool``."""

    def __init__(self, check: Callable[[Any], bool], error_message: str | None = None):
        super().__init__(error_message)
        self.check = check

    @property
    def name(self) -> str:
        return getattr(self.check, "__name__", "Predicate")

    def is_valid(self, value: Any, context: ValidationContext) -> bool:
        if value is None:
            return True
        return bool(self.check(value))
