"""Recursive traversal of an object graph.

One coroutine serves both the synchronous and the asynchronous entry points.
It only ever suspends inside an ``AsyncValidatableObject.validate_async`` call,
so a walk over a graph without async validators completes on the first
``send`` and can be driven without an event loop.
"""

import logging
from collections.abc import Collection, Mapping
from typing import Any

from ..config import ValidateOptions
from ..diagnostics import ErrorCollector
from ..errors import UnsupportedAsyncRequirementError
from .descriptors import FieldDescriptor, TypeDescriptor, TypeDescriptorCache, is_walkable_collection
from .framework import ValidationContext

logger = logging.getLogger(__name__)


class GraphWalker:
    """Walks one object graph for a single validation call.

    The walker owns the visited-set for the call. Each object is tracked by
    identity: ``None`` while its validation is in progress, then ``True`` or
    ``False``. Meeting an in-progress object again is a cycle and counts as
    valid on that path.
    """

    def __init__(
        self,
        cache: TypeDescriptorCache,
        options: ValidateOptions,
        collector: ErrorCollector,
        recurse: bool = True,
        allow_async: bool = False,
    ):
        self.cache = cache
        self.options = options
        self.collector = collector
        self.recurse = recurse
        self.allow_async = allow_async
        # id -> (object, state); the object reference keeps ids from being reused
        self._visited: dict[int, tuple[Any, bool | None]] = {}

    @property
    def visited_count(self) -> int:
        return len(self._visited)

    async def walk(self, target: Any, prefix: str = "", depth: int = 0) -> bool:
        """Validate ``target`` and everything below it; return whether it is valid."""
        descriptor = self.cache.get(type(target))
        if not descriptor.needs_walk(self.recurse):
            return True

        key = id(target)
        if key in self._visited:
            state = self._visited[key][1]
            if state is None:
                logger.debug(f"Cycle detected at '{prefix}' ({type(target).__name__}), skipping")
            return state is not False

        self._visited[key] = (target, None)

        is_valid = True
        to_recurse: list[tuple[FieldDescriptor, Any]] = []

        for field in descriptor.fields:
            value = field.get_value(target)

            if field.has_rules:
                messages = self._evaluate_rules(target, field, value)
                if messages:
                    self.collector.extend(self.collector.member_key(prefix, field.name), messages)
                    is_valid = False

            if self.recurse and field.recurse and value is not None:
                to_recurse.append((field, value))

        if self.recurse:
            if depth <= self.options.max_depth:
                if descriptor.is_enumerable:
                    is_valid = await self._walk_items(target, prefix, depth) and is_valid

                for field, value in to_recurse:
                    name = self.collector.convert(field.name)
                    if field.is_enumerable and is_walkable_collection(value):
                        is_valid = await self._walk_items(value, f"{prefix}{name}", depth) and is_valid
                    elif field.is_enumerable and not isinstance(value, Collection):
                        logger.debug(f"Skipping iterator at '{prefix}{name}' ({type(value).__name__}), not consumed")
                    else:
                        is_valid = await self.walk(value, f"{prefix}{name}.", depth + 1) and is_valid
            elif to_recurse or descriptor.is_enumerable:
                logger.debug(f"Max depth {self.options.max_depth} reached at '{prefix}', not recursing")

        if is_valid:
            is_valid = await self._validate_object(target, descriptor, prefix)

        self._visited[key] = (target, is_valid)
        return is_valid

    async def _walk_items(self, items: Any, prefix: str, depth: int) -> bool:
        """Walk collection items, stopping at the first invalid one.

        Mapping values are keyed by their mapping key. Sequence items are
        numbered in order, counting only items that are not None.
        """
        if isinstance(items, Mapping):
            for key, item in items.items():
                if item is None:
                    continue
                if not await self.walk(item, f"{prefix}[{key}].", depth + 1):
                    return False
            return True

        index = 0
        for item in items:
            if item is None:
                continue
            if not await self.walk(item, f"{prefix}[{index}].", depth + 1):
                return False
            index += 1
        return True

    def _context(self, target: Any, field: FieldDescriptor | None = None) -> ValidationContext:
        if field is None:
            return ValidationContext(instance=target, services=self.options.services)
        return ValidationContext(
            instance=target,
            member_name=field.name,
            display_name=field.display_name or field.name,
            services=self.options.services,
        )

    def _evaluate_rules(self, target: Any, field: FieldDescriptor, value: Any) -> list[str]:
        """Messages of the rules ``value`` fails.

        A failing required rule is reported alone; the member's other rules
        are not evaluated against a missing value.
        """
        context = self._context(target, field)

        for rule in field.rules:
            if rule.is_required:
                result = rule.get_result(value, context)
                if result is not None:
                    return [result.error_message or ""]

        messages = []
        for rule in field.rules:
            if rule.is_required:
                continue
            result = rule.get_result(value, context)
            if result is not None:
                messages.append(result.error_message or "")
        return messages

    async def _validate_object(self, target: Any, descriptor: TypeDescriptor, prefix: str) -> bool:
        """Run object-level validation; only called for otherwise valid objects."""
        if descriptor.is_validatable:
            results = target.validate(self._context(target))
            if results is not None and self.collector.add_results(results, prefix):
                return False

        if descriptor.is_async_validatable:
            if not self.allow_async:
                raise UnsupportedAsyncRequirementError(
                    type(target), f"reached at '{self.collector.object_key(prefix)}'"
                )
            results = await target.validate_async(self._context(target))
            if results is not None and self.collector.add_results(results, prefix):
                return False

        return True
