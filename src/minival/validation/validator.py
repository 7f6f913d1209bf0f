"""Public validation entry points.

``MiniValidator`` bridges the single walk coroutine to a synchronous and an
asynchronous API. The synchronous path never waits on async work: it refuses
types that statically need async validation, and fails if the walk suspends
anyway (a runtime subtype can introduce an async validator).
"""

import asyncio
import logging
from collections.abc import Iterator
from dataclasses import dataclass, field
from typing import Any

from ..config import ValidateOptions
from ..diagnostics import EMPTY_ERRORS, ErrorMap, create_error_collector
from ..errors import InvalidTargetError, UnsupportedAsyncRequirementError
from .descriptors import TypeDescriptor, TypeDescriptorCache, default_cache
from .walker import GraphWalker

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ValidationOutcome:
    """Result of validating one object graph.

    Unpacks as ``is_valid, errors = validator.try_validate(target)``.
    """
    is_valid: bool
    errors: ErrorMap = field(default_factory=lambda: EMPTY_ERRORS)

    def __iter__(self) -> Iterator[Any]:
        yield self.is_valid
        yield self.errors

    def to_dict(self) -> dict:
        """Convert to dictionary for JSON output."""
        return {
            "valid": self.is_valid,
            "errors": {key: list(messages) for key, messages in self.errors.items()},
        }


class MiniValidator:
    """Validates object graphs against rules declared on their classes.

    Args:
        options: Immutable options for every call made through this validator
        cache: Descriptor cache; defaults to the process-wide cache
    """

    def __init__(self, options: ValidateOptions | None = None, cache: TypeDescriptorCache | None = None):
        self.options = options or ValidateOptions()
        self.cache = cache or default_cache

    def describe(self, target_type: type) -> TypeDescriptor:
        """Return the cached descriptor for ``target_type``."""
        if target_type is None:
            raise InvalidTargetError("target_type")
        return self.cache.get(target_type)

    def requires_validation(self, target_type: type, recurse: bool = True) -> bool:
        """Determine whether instances of ``target_type`` have anything to validate.

        Args:
            target_type: Type to inspect
            recurse: Also consider members that would be walked into

        Returns:
            False when every instance is valid by definition
        """
        return self.describe(target_type).needs_walk(recurse)

    def try_validate(self, target: Any, recurse: bool = True, allow_async: bool | None = None) -> ValidationOutcome:
        """Validate ``target`` synchronously.

        Args:
            target: Object to validate
            recurse: Walk into nested objects and collections
            allow_async: Permit async object-level validators that complete
                without suspending; defaults to the options setting

        Returns:
            ValidationOutcome with validity and path-keyed errors

        Raises:
            InvalidTargetError: If target is None
            UnsupportedAsyncRequirementError: If async validation is needed
        """
        if target is None:
            raise InvalidTargetError()
        if allow_async is None:
            allow_async = self.options.allow_async_validation
        recurse = recurse and not self.options.disable_recursion

        descriptor = self.cache.get(type(target))
        if not descriptor.needs_walk(recurse):
            return ValidationOutcome(True)

        if descriptor.requires_async and not allow_async:
            raise UnsupportedAsyncRequirementError(type(target))

        walker = self._create_walker(recurse, allow_async)
        walk = walker.walk(target)
        try:
            walk.send(None)
        except StopIteration as done:
            return self._finish(target, walker, done.value)
        except RuntimeError as e:
            # Awaiting real I/O or timers needs a running event loop.
            walk.close()
            raise UnsupportedAsyncRequirementError(
                type(target), "async validation needs a running event loop"
            ) from e

        walk.close()
        raise UnsupportedAsyncRequirementError(type(target), "validation suspended on a synchronous call")

    async def try_validate_async(self, target: Any, recurse: bool = True, timeout: float | None = None) -> ValidationOutcome:
        """Validate ``target``, awaiting async object-level validators.

        Cancelling the awaiting task cancels the pending validator.

        Args:
            target: Object to validate
            recurse: Walk into nested objects and collections
            timeout: Optional limit in seconds for the whole walk

        Returns:
            ValidationOutcome with validity and path-keyed errors

        Raises:
            InvalidTargetError: If target is None
            TimeoutError: If ``timeout`` elapses first
        """
        if target is None:
            raise InvalidTargetError()
        recurse = recurse and not self.options.disable_recursion

        if not self.cache.get(type(target)).needs_walk(recurse):
            return ValidationOutcome(True)

        walker = self._create_walker(recurse, allow_async=True)
        if timeout is None:
            is_valid = await walker.walk(target)
        else:
            is_valid = await asyncio.wait_for(walker.walk(target), timeout)
        return self._finish(target, walker, is_valid)

    def _create_walker(self, recurse: bool, allow_async: bool) -> GraphWalker:
        collector = create_error_collector(
            self.options.convert_key_segment if self.options.naming_policy is not None else None
        )
        return GraphWalker(self.cache, self.options, collector, recurse=recurse, allow_async=allow_async)

    def _finish(self, target: Any, walker: GraphWalker, is_valid: bool) -> ValidationOutcome:
        errors = walker.collector.finalize()
        logger.debug(
            f"Validated {type(target).__name__}: {'valid' if is_valid else 'invalid'}, "
            f"{len(errors)} error keys, {walker.visited_count} objects visited"
        )
        return ValidationOutcome(is_valid and not errors, errors)


_default_validator = MiniValidator()


def requires_validation(target_type: type, recurse: bool = True) -> bool:
    """Module-level shortcut using default options."""
    return _default_validator.requires_validation(target_type, recurse)


def try_validate(target: Any, recurse: bool = True, allow_async: bool = False) -> ValidationOutcome:
    """Module-level shortcut using default options."""
    return _default_validator.try_validate(target, recurse, allow_async)


async def try_validate_async(target: Any, recurse: bool = True, timeout: float | None = None) -> ValidationOutcome:
    """Module-level shortcut using default options."""
    return await _default_validator.try_validate_async(target, recurse, timeout)
