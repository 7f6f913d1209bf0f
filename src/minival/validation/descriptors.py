"""Per-type validation metadata, computed once and cached for the process.

A ``TypeDescriptor`` lists the members of a class that carry rules or must be
walked into, and whether anything reachable from the class needs async
object-level validation. Building one descriptor may build many: whether a
member is worth walking depends on what its declared type has to validate.
"""

import dataclasses
import logging
import threading
import types
import typing
from collections.abc import Callable, Collection, Iterable, Mapping
from dataclasses import dataclass, field
from enum import Enum
from typing import Annotated, Any, ClassVar, Literal, Union, get_args, get_origin

from .framework import (
    AsyncValidatableObject,
    Display,
    SkipRecursion,
    ValidatableObject,
    ValidationRule,
)

logger = logging.getLogger(__name__)

# Top-level modules whose classes never carry member rules.
_FINAL_MODULES = frozenset({
    "builtins",
    "collections",
    "datetime",
    "decimal",
    "fractions",
    "ipaddress",
    "numbers",
    "pathlib",
    "re",
    "types",
    "typing",
    "uuid",
})

_NON_WALKABLE = (str, bytes, bytearray, memoryview)


@dataclass(frozen=True)
class FieldDescriptor:
    """A member that has rules to evaluate, or a value to walk into."""
    name: str
    declared_type: Any
    rules: tuple[ValidationRule, ...] = ()
    recurse: bool = False
    element_type: Any = None
    display_name: str | None = None
    getter: Callable[[Any], Any] = field(default=None, repr=False, compare=False)

    @property
    def has_rules(self) -> bool:
        return bool(self.rules)

    @property
    def is_enumerable(self) -> bool:
        return self.element_type is not None

    def get_value(self, instance: Any) -> Any:
        if self.getter is not None:
            return self.getter(instance)
        return getattr(instance, self.name, None)


@dataclass(frozen=True)
class TypeDescriptor:
    """Cached validation metadata for one runtime type."""
    type: type
    fields: tuple[FieldDescriptor, ...] = ()
    requires_async: bool = False
    is_validatable: bool = False
    is_async_validatable: bool = False
    is_enumerable: bool = False

    @property
    def has_fields(self) -> bool:
        return bool(self.fields)

    def needs_walk(self, recurse: bool) -> bool:
        """True when an instance of this type could produce errors."""
        return (
            self.is_validatable
            or self.is_async_validatable
            or (recurse and self.is_enumerable)
            or any(f.has_rules or recurse for f in self.fields)
        )


def is_final_type(cls: type) -> bool:
    """Whether instances of ``cls`` are known to carry no member rules.

    Scalars, standard library value types, enums and classes decorated with
    ``typing.final`` are final. Any other class may be subclassed by one that
    declares rules, so it is treated as polymorphic.
    """
    if cls is object:
        return False
    if getattr(cls, "__final__", False):
        return True
    if issubclass(cls, Enum):
        return True
    module = getattr(cls, "__module__", "") or ""
    return module.split(".")[0] in _FINAL_MODULES


def is_walkable_collection(value: Any) -> bool:
    """Collections whose items are walked; strings and iterators are not."""
    return isinstance(value, Collection) and not isinstance(value, _NON_WALKABLE)


def _make_getter(name: str) -> Callable[[Any], Any]:
    def getter(instance: Any) -> Any:
        try:
            return getattr(instance, name)
        except AttributeError:
            return None
    getter.__name__ = f"get_{name}"
    return getter


@dataclass
class _MemberInfo:
    rules: list[ValidationRule] = field(default_factory=list)
    skip_recursion: bool = False
    display_name: str | None = None
    base_type: Any = object


def split_annotation(hint: Any) -> _MemberInfo:
    """Peel ``Annotated`` and ``Optional`` wrappers off a member annotation."""
    info = _MemberInfo()
    current = hint
    while True:
        if get_origin(current) is Annotated:
            for meta in current.__metadata__:
                if isinstance(meta, ValidationRule):
                    info.rules.append(meta)
                elif isinstance(meta, SkipRecursion) or meta is SkipRecursion:
                    info.skip_recursion = True
                elif isinstance(meta, Display):
                    info.display_name = meta.name
            current = get_args(current)[0]
            continue
        if _is_union(current):
            members = [a for a in get_args(current) if a is not type(None)]
            if len(members) == 1:
                current = members[0]
                continue
            # Several alternatives: only the runtime type can tell.
            current = object
        break
    info.base_type = current
    return info


def _is_union(tp: Any) -> bool:
    origin = get_origin(tp)
    return origin is Union or origin is types.UnionType


def _strip(tp: Any) -> Any:
    """Drop wrappers from an element annotation, keeping only the type."""
    return split_annotation(tp).base_type


def element_annotation(tp: Any) -> Any:
    """Element annotation of a collection annotation, or None."""
    origin = get_origin(tp)
    cls = origin if isinstance(origin, type) else tp
    if not isinstance(cls, type) or issubclass(cls, _NON_WALKABLE):
        return None
    if not issubclass(cls, Iterable):
        return None
    args = get_args(tp) if origin is not None else ()
    if issubclass(cls, Mapping):
        return _strip(args[-1]) if len(args) == 2 else object
    if issubclass(cls, tuple):
        if len(args) == 2 and args[1] is Ellipsis:
            return _strip(args[0])
        distinct = {_strip(a) for a in args}
        return distinct.pop() if len(distinct) == 1 else object
    return _strip(args[0]) if args else object


def target_class(tp: Any) -> type | None:
    """Class to build a descriptor for, ``object`` if polymorphic, None for leaves."""
    if tp is Any or isinstance(tp, (typing.TypeVar, str, typing.ForwardRef)):
        return object
    supertype = getattr(tp, "__supertype__", None)
    if supertype is not None:
        return target_class(supertype)
    origin = get_origin(tp)
    if origin is Literal:
        return None
    if isinstance(origin, type):
        tp = origin
    if isinstance(tp, type):
        return tp
    return object


def _resolve_hints(cls: type) -> dict[str, Any]:
    """Member annotations of ``cls`` in declaration order, base classes first.

    When the hints of ``cls`` cannot be resolved as a whole, each class of the
    MRO is resolved on its own; annotations that still cannot be resolved
    are treated as ``Any``.
    """
    try:
        return typing.get_type_hints(cls, include_extras=True)
    except Exception as e:
        logger.debug(f"Resolving annotations of {cls.__name__} per class: {e}")

    hints: dict[str, Any] = {}
    for klass in reversed(cls.__mro__):
        annotations = klass.__dict__.get("__annotations__", {})
        if not annotations:
            continue
        try:
            resolved = typing.get_type_hints(klass, include_extras=True)
        except Exception:
            resolved = {}
        for name, value in annotations.items():
            value = resolved.get(name, value)
            if isinstance(value, (str, typing.ForwardRef)):
                logger.debug(f"Unresolved annotation {klass.__name__}.{name}: {value!r}")
                value = Any
            hints[name] = value
    return hints


def _iter_members(cls: type) -> Iterable[tuple[str, Any]]:
    """Yield ``(name, annotation)`` for each public instance member."""
    seen = set()
    for name, hint in _resolve_hints(cls).items():
        if name.startswith("_") or get_origin(hint) is ClassVar or hint is ClassVar:
            continue
        if isinstance(hint, dataclasses.InitVar):
            continue
        seen.add(name)
        yield name, hint

    for klass in reversed(cls.__mro__):
        for name, attr in vars(klass).items():
            if name in seen or name.startswith("_") or not isinstance(attr, property):
                continue
            try:
                returns = typing.get_type_hints(attr.fget, include_extras=True).get("return")
            except Exception:
                returns = attr.fget.__annotations__.get("return") if attr.fget else None
            if returns is None:
                continue
            seen.add(name)
            yield name, returns


class _DescriptorBuilder:
    """Builds descriptors for a type and everything reachable from it."""

    def __init__(self, finished: Mapping[type, TypeDescriptor]):
        self._finished = finished
        self._building: set[type] = set()
        self._fields: dict[type, tuple[FieldDescriptor, ...]] = {}
        self._dependencies: dict[type, set[type]] = {}

    def build(self, cls: type) -> dict[type, TypeDescriptor]:
        self._visit(cls)
        requires_async = self._resolve_async()
        return {
            t: TypeDescriptor(
                type=t,
                fields=fields,
                requires_async=requires_async[t],
                is_validatable=issubclass(t, ValidatableObject),
                is_async_validatable=issubclass(t, AsyncValidatableObject),
                is_enumerable=issubclass(t, Collection) and not issubclass(t, _NON_WALKABLE),
            )
            for t, fields in self._fields.items()
        }

    def _known_fields(self, cls: type) -> tuple[FieldDescriptor, ...]:
        if cls in self._finished:
            return self._finished[cls].fields
        return self._fields.get(cls, ())

    def _worth_recursing(self, target: type | None) -> bool:
        if target is None:
            return False
        if target is object:
            return True
        return (
            bool(self._known_fields(target))
            or issubclass(target, (ValidatableObject, AsyncValidatableObject))
            or not is_final_type(target)
        )

    def _visit(self, cls: type | None) -> None:
        if cls is None or cls is object:
            return
        if cls in self._finished or cls in self._fields or cls in self._building:
            return
        self._building.add(cls)

        if is_final_type(cls):
            self._fields[cls] = ()
            self._dependencies[cls] = set()
            self._building.discard(cls)
            return

        fields: list[FieldDescriptor] = []
        own_type_fields: list[FieldDescriptor] = []
        dependencies: set[type] = set()
        has_validatable_fields = False

        for name, hint in _iter_members(cls):
            info = split_annotation(hint)
            element = element_annotation(info.base_type)
            element_class = target_class(element) if element is not None else None
            target = None if element is not None else target_class(info.base_type)
            self._visit(element_class)

            descriptor = FieldDescriptor(
                name=name,
                declared_type=info.base_type,
                rules=tuple(info.rules),
                recurse=False,
                element_type=element_class if element is not None else None,
                display_name=info.display_name,
                getter=_make_getter(name),
            )

            # Members typed as the class being built are decided once the
            # rest of the class is known.
            if target is cls and not info.skip_recursion:
                own_type_fields.append(descriptor)
                continue

            self._visit(target)
            walk_target = element_class if element is not None else target
            recurse = not info.skip_recursion and self._worth_recursing(walk_target)

            if recurse or info.rules:
                if recurse and walk_target is not None and walk_target is not object:
                    dependencies.add(walk_target)
                fields.append(dataclasses.replace(descriptor, recurse=recurse))
                has_validatable_fields = True

        if own_type_fields:
            recurse_into_own = (
                has_validatable_fields
                or issubclass(cls, (ValidatableObject, AsyncValidatableObject))
            )
            for descriptor in own_type_fields:
                if recurse_into_own or descriptor.rules:
                    fields.append(dataclasses.replace(descriptor, recurse=recurse_into_own))
            if recurse_into_own:
                dependencies.add(cls)
            fields.sort(key=_declaration_order(cls))

        self._fields[cls] = tuple(fields)
        self._dependencies[cls] = dependencies
        self._building.discard(cls)
        logger.debug(f"Built descriptor for {cls.__name__}: {[f.name for f in fields]}")

    def _resolve_async(self) -> dict[type, bool]:
        """Propagate async requirements along recursable members to a fix-point."""
        state = {t: issubclass(t, AsyncValidatableObject) for t in self._fields}

        def requires(t: type) -> bool:
            if t in state:
                return state[t]
            if t in self._finished:
                return self._finished[t].requires_async
            return issubclass(t, AsyncValidatableObject)

        changed = True
        while changed:
            changed = False
            for t, dependencies in self._dependencies.items():
                if not state[t] and any(requires(d) for d in dependencies):
                    state[t] = True
                    changed = True
        return state


def _declaration_order(cls: type) -> Callable[[FieldDescriptor], int]:
    order = {name: index for index, (name, _) in enumerate(_iter_members(cls))}
    return lambda descriptor: order.get(descriptor.name, len(order))


class TypeDescriptorCache:
    """Process-wide cache of ``TypeDescriptor`` objects keyed by type.

    Reads are lock-free. Concurrent first use of a type may build its
    descriptor twice; the first one published wins.
    """

    def __init__(self):
        self._cache: dict[type, TypeDescriptor] = {}
        self._lock = threading.Lock()

    def get(self, cls: type) -> TypeDescriptor:
        descriptor = self._cache.get(cls)
        if descriptor is not None:
            return descriptor

        built = _DescriptorBuilder(self._cache).build(cls)
        with self._lock:
            for t, d in built.items():
                self._cache.setdefault(t, d)
            descriptor = self._cache.get(cls)
        if descriptor is None:
            # object itself is never built; it has nothing to validate.
            descriptor = TypeDescriptor(type=cls)
            with self._lock:
                descriptor = self._cache.setdefault(cls, descriptor)
        return descriptor

    def __contains__(self, cls: type) -> bool:
        return cls in self._cache

    def __len__(self) -> int:
        return len(self._cache)

    def clear(self) -> None:
        with self._lock:
            self._cache.clear()


default_cache = TypeDescriptorCache()
