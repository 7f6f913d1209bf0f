"""Shared pytest fixtures for minival tests."""

import pytest

from minival import MiniValidator, ValidateOptions
from minival.validation import TypeDescriptorCache


@pytest.fixture
def cache():
    """A descriptor cache not shared with other tests."""
    return TypeDescriptorCache()


@pytest.fixture
def validator(cache):
    """Validator with default options and a private cache."""
    return MiniValidator(cache=cache)


@pytest.fixture
def make_validator(cache):
    """Build a validator with custom options."""
    def factory(**options):
        return MiniValidator(ValidateOptions(**options), cache=cache)
    return factory
