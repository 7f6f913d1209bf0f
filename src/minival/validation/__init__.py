"""Recursive object graph validation.

Rules are declared on class members with ``typing.Annotated``; the engine
walks nested objects and collections, detects reference cycles and reports
messages under path keys such as ``Children[1].RequiredCategory``.
"""

from .descriptors import FieldDescriptor, TypeDescriptor, TypeDescriptorCache, default_cache
from .framework import (
    AsyncValidatableObject,
    Display,
    SkipRecursion,
    ValidatableObject,
    ValidationContext,
    ValidationResult,
    ValidationRule,
)
from .rules import (
    AllowedValues,
    EmailAddress,
    MaxLength,
    MinLength,
    Predicate,
    Range,
    RegularExpression,
    Required,
    StringLength,
)
from .validator import (
    MiniValidator,
    ValidationOutcome,
    requires_validation,
    try_validate,
    try_validate_async,
)

__all__ = [
    "MiniValidator",
    "ValidationOutcome",
    "requires_validation",
    "try_validate",
    "try_validate_async",
    "TypeDescriptor",
    "FieldDescriptor",
    "TypeDescriptorCache",
    "default_cache",
    "ValidationContext",
    "ValidationResult",
    "ValidationRule",
    "ValidatableObject",
    "AsyncValidatableObject",
    "SkipRecursion",
    "Display",
    "Required",
    "MinLength",
    "MaxLength",
    "StringLength",
    "Range",
    "RegularExpression",
    "EmailAddress",
    "AllowedValues",
    "Predicate",
]
