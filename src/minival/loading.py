"""Resolve classes from import paths and build instances from JSON data."""

import importlib
import logging
import typing
from typing import Any

from .validation.descriptors import element_annotation, split_annotation, target_class

logger = logging.getLogger(__name__)


def load_target(path: str) -> type:
    """Import ``package.module:ClassName`` and return the class.

    Raises:
        ValueError: If the path is malformed or does not name a class
    """
    module_name, sep, qualname = path.partition(":")
    if not sep or not module_name or not qualname:
        raise ValueError(f"Target must look like 'package.module:ClassName', got: {path}")

    try:
        obj: Any = importlib.import_module(module_name)
    except ImportError as e:
        raise ValueError(f"Cannot import module '{module_name}': {e}") from e

    for part in qualname.split("."):
        try:
            obj = getattr(obj, part)
        except AttributeError as e:
            raise ValueError(f"Module '{module_name}' has no attribute '{qualname}'") from e

    if not isinstance(obj, type):
        raise ValueError(f"'{path}' is not a class")
    return obj


def build_instance(cls: type, data: Any) -> Any:
    """Build ``cls`` from parsed JSON, converting nested dicts and lists.

    Lists build a list of instances. Nested values are converted when the
    member annotation names a class (or a collection of one).
    """
    if isinstance(data, list):
        return [build_instance(cls, item) for item in data]
    if not isinstance(data, dict):
        return data

    try:
        hints = typing.get_type_hints(cls, include_extras=True)
    except Exception as e:
        logger.debug(f"Cannot resolve annotations of {cls.__name__}: {e}")
        hints = {}

    values = {name: _convert(hints.get(name), value) for name, value in data.items()}

    try:
        return cls(**values)
    except TypeError:
        logger.debug(f"{cls.__name__} does not accept keyword arguments, assigning attributes")
        instance = cls()
        for name, value in values.items():
            setattr(instance, name, value)
        return instance


def _convert(hint: Any, value: Any) -> Any:
    if hint is None or value is None:
        return value
    declared = split_annotation(hint).base_type
    element = element_annotation(declared)
    if element is not None:
        element_class = target_class(element)
        if _is_buildable(element_class) and isinstance(value, list):
            return [build_instance(element_class, item) for item in value]
        if _is_buildable(element_class) and isinstance(value, dict):
            return {key: build_instance(element_class, item) for key, item in value.items()}
        return value
    target = target_class(declared)
    if _is_buildable(target) and isinstance(value, dict):
        return build_instance(target, value)
    return value


def _is_buildable(cls: type | None) -> bool:
    return cls is not None and cls is not object and cls.__module__ != "builtins"
