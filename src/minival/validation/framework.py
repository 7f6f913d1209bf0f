"""Core validation contracts shared by rules, validatable objects and the engine.

Rules are attached to class members through ``typing.Annotated`` metadata::

    class Widget:
        name: Annotated[str | None, Required(), MinLength(3), Display("Widget name")]
        parts: Annotated[list[Part], SkipRecursion()]

Objects may additionally implement ``ValidatableObject`` or
``AsyncValidatableObject`` to check invariants that span several members.
"""

from abc import ABC, abstractmethod
from collections.abc import Iterable, Mapping
from dataclasses import dataclass, field
from typing import Any


@dataclass(frozen=True)
class ValidationResult:
    """A single failed-validation message, optionally bound to members."""
    error_message: str | None
    member_names: tuple[str, ...] = ()

    def __post_init__(self) -> None:
        # Accept any iterable of names but store a tuple.
        if not isinstance(self.member_names, tuple):
            object.__setattr__(self, "member_names", tuple(self.member_names or ()))

    def __str__(self) -> str:
        return self.error_message or ""


@dataclass
class ValidationContext:
    """Describes the member or object currently being validated."""
    instance: Any
    member_name: str | None = None
    display_name: str | None = None
    services: Any = None
    items: dict[str, Any] = field(default_factory=dict)

    def __post_init__(self) -> None:
        if self.display_name is None:
            self.display_name = self.member_name or type(self.instance).__name__

    def get_service(self, key: Any) -> Any:
        """Resolve a service from the configured provider.

        The provider may be a mapping, an object exposing ``get_service`` or a
        plain callable. Returns None when nothing is configured or found.
        """
        services = self.services
        if services is None:
            return None
        if isinstance(services, Mapping):
            return services.get(key)
        getter = getattr(services, "get_service", None)
        if callable(getter):
            return getter(key)
        if callable(services):
            return services(key)
        return None


class ValidationRule(ABC):
    """Base class for field-level validation rules."""

    #: Rules with ``is_required`` set are evaluated first; when one fails the
    #: remaining rules of the member are not evaluated.
    is_required: bool = False

    default_message = "The field {name} is invalid."

    def __init__(self, error_message: str | None = None):
        self.error_message = error_message

    @property
    def name(self) -> str:
        """Rule name for identification."""
        return type(self).__name__

    @abstractmethod
    def is_valid(self, value: Any, context: ValidationContext) -> bool:
        """Check ``value``; ``context`` describes where it came from."""

    def format_arguments(self) -> dict[str, Any]:
        """Extra placeholders available to the message template."""
        return {}

    def format_message(self, display_name: str) -> str:
        template = self.error_message or self.default_message
        return template.format(name=display_name, **self.format_arguments())

    def get_result(self, value: Any, context: ValidationContext) -> ValidationResult | None:
        """Return a ``ValidationResult`` when ``value`` fails, None otherwise."""
        if self.is_valid(value, context):
            return None
        members = (context.member_name,) if context.member_name else ()
        return ValidationResult(self.format_message(context.display_name or ""), members)

    def __repr__(self) -> str:
        return f"{self.name}()"


class ValidatableObject(ABC):
    """Objects that validate invariants spanning several members."""

    @abstractmethod
    def validate(self, context: ValidationContext) -> Iterable[ValidationResult] | None:
        """Return the failed results; an empty iterable or None means valid."""


class AsyncValidatableObject(ABC):
    """Objects whose cross-member validation must be awaited."""

    @abstractmethod
    async def validate_async(self, context: ValidationContext) -> Iterable[ValidationResult] | None:
        """Return the failed results; an empty iterable or None means valid."""


class SkipRecursion:
    """Member marker: do not walk into the value, only run its own rules."""

    def __repr__(self) -> str:
        return "SkipRecursion()"


@dataclass(frozen=True)
class Display:
    """Member marker: the name shown in messages (error keys keep the member name)."""
    name: str
