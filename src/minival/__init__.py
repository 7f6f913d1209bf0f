"""minival - Recursive validation of Python object graphs.

minival checks rules declared on class members, walks nested objects and
collections, and returns a single pass/fail result with path-keyed errors.
"""

__version__ = "0.1.0"
__author__ = "minival contributors"
__description__ = "Recursive validation of annotated Python object graphs"

from minival.config import NamingPolicy, ValidateOptions
from minival.errors import InvalidTargetError, MinivalError, UnsupportedAsyncRequirementError
from minival.validation import (
    AllowedValues,
    AsyncValidatableObject,
    Display,
    EmailAddress,
    MaxLength,
    MiniValidator,
    MinLength,
    Predicate,
    Range,
    RegularExpression,
    Required,
    SkipRecursion,
    StringLength,
    ValidatableObject,
    ValidationContext,
    ValidationOutcome,
    ValidationResult,
    ValidationRule,
    requires_validation,
    try_validate,
    try_validate_async,
)

__all__ = [
    "__version__",
    "__author__",
    "__description__",
    "MiniValidator",
    "ValidateOptions",
    "NamingPolicy",
    "ValidationOutcome",
    "requires_validation",
    "try_validate",
    "try_validate_async",
    "MinivalError",
    "InvalidTargetError",
    "UnsupportedAsyncRequirementError",
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
