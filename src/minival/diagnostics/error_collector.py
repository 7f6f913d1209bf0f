"""Path-keyed error collection for a single validation call.

Messages are grouped under keys built from member names, collection indices
and dots (``Children[1].RequiredCategory``). The empty key holds object-level
messages of the root object.
"""

import logging
from collections.abc import Callable, Iterable, Mapping
from types import MappingProxyType
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from ..validation.framework import ValidationResult

logger = logging.getLogger(__name__)

ErrorMap = Mapping[str, tuple[str, ...]]

EMPTY_ERRORS: ErrorMap = MappingProxyType({})


class ErrorCollector:
    """Accumulates messages for one validation call.

    Repeated keys append to the existing list; identical messages are kept.
    """

    def __init__(self, naming_policy: Callable[[str], str] | None = None):
        """Initialize error collector.

        Args:
            naming_policy: Optional conversion applied to each member name
                when keys are composed
        """
        self.naming_policy = naming_policy
        self._errors: dict[str, list[str]] = {}

    def convert(self, name: str) -> str:
        """Apply the naming policy to a member name."""
        if self.naming_policy is None or not name:
            return name
        return self.naming_policy(name)

    def member_key(self, prefix: str, member: str) -> str:
        """Key of ``member`` below ``prefix`` (``prefix`` ends with '.' or is empty)."""
        return f"{prefix}{self.convert(member)}"

    @staticmethod
    def object_key(prefix: str) -> str:
        """Key for object-level messages of the object at ``prefix``.

        The prefix is used as is: ``""`` for the root, ``child.`` or
        ``items[1].`` below it.
        """
        return prefix

    def add(self, key: str, message: str | None) -> None:
        """Append one message under ``key``."""
        self._errors.setdefault(key, []).append(message or "")

    def extend(self, key: str, messages: Iterable[str | None]) -> None:
        """Append several messages under ``key``, preserving their order."""
        bucket = self._errors.setdefault(key, [])
        bucket.extend(message or "" for message in messages)

    def add_results(self, results: Iterable["ValidationResult"], prefix: str = "") -> int:
        """Record object-level results, returning how many messages were added.

        Results naming members go under each member's key, the rest under the
        object's own key.
        """
        added = 0
        for result in results:
            if result is None:
                continue
            if isinstance(result, str):
                self.add(self.object_key(prefix), result)
                added += 1
            elif result.member_names:
                for member in result.member_names:
                    self.add(self.member_key(prefix, member), result.error_message)
                    added += 1
            else:
                self.add(self.object_key(prefix), result.error_message)
                added += 1
        return added

    def has_errors(self) -> bool:
        """Check if any messages have been collected."""
        return bool(self._errors)

    def get_error_counts(self) -> dict[str, int]:
        """Number of messages per key."""
        return {key: len(messages) for key, messages in self._errors.items()}

    def __len__(self) -> int:
        return len(self._errors)

    def __contains__(self, key: str) -> bool:
        return key in self._errors

    def finalize(self) -> ErrorMap:
        """Return an immutable snapshot of the collected errors."""
        if not self._errors:
            return EMPTY_ERRORS
        logger.debug(f"Finalizing {len(self._errors)} error keys")
        return MappingProxyType({key: tuple(messages) for key, messages in self._errors.items()})


def create_error_collector(naming_policy: Callable[[str], str] | None = None) -> ErrorCollector:
    """Create error collector for a validation call.

    Args:
        naming_policy: Optional conversion applied to member names in keys

    Returns:
        ErrorCollector instance
    """
    return ErrorCollector(naming_policy)
