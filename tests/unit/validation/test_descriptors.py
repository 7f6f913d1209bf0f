"""Tests for the type descriptor cache."""

from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass
from typing import Annotated, Any, Literal, Optional, Union

import pytest

from minival import Required, SkipRecursion
from minival.validation.descriptors import TypeDescriptorCache, is_final_type
from sample_types import (
    AsyncValidatableType,
    ChildType,
    EmptySelfReferencing,
    FinalLeaf,
    Node,
    Pair,
    PairPartner,
    ParentOfAsync,
    SampleType,
    ValidatableOnlyType,
    Widget,
    WithProperty,
)


class Colour:
    pass


@dataclass
class Shapes:
    tags: list[str]
    literal: Literal["a", "b"]
    either: Union[ChildType, Node, None] = None
    optional_items: Optional[tuple[ChildType, ...]] = None
    anything: Any = None
    _private: Annotated[Optional[str], Required()] = None


class AsyncGrandparent:
    parent: ParentOfAsync


class AsyncThroughList:
    parents: list[ParentOfAsync]


class Unresolvable:
    name: Annotated[Optional[str], Required()]
    mystery: "NoSuchType"

    def __init__(self, name="x", mystery=None):
        self.name = name
        self.mystery = mystery


class AsyncSkipped:
    parent: Annotated[ParentOfAsync, SkipRecursion()]
    name: Annotated[Optional[str], Required()]


class TestFieldSelection:
    """Test which members end up in a descriptor."""

    def test_declaration_order(self, cache):
        descriptor = cache.get(SampleType)

        assert [f.name for f in descriptor.fields] == [
            "required_name",
            "ten_or_more",
            "child",
            "validatable_only_child",
            "poco_child",
            "children",
        ]

    def test_skip_recursion_without_rules_is_pruned(self, cache):
        names = [f.name for f in cache.get(SampleType).fields]

        assert "skipped_child" not in names

    def test_skipped_member_of_walkable_type_is_pruned(self, cache):
        assert [f.name for f in cache.get(AsyncSkipped).fields] == ["name"]

    def test_skip_recursion_with_rules_kept_without_recursion(self, cache):
        class Holder:
            child: Annotated[Optional[ChildType], Required(), SkipRecursion()]

        fields = cache.get(Holder).fields

        assert [f.name for f in fields] == ["child"]
        assert fields[0].recurse is False

    def test_rules_and_recurse_flags(self, cache):
        fields = {f.name: f for f in cache.get(SampleType).fields}

        assert [r.name for r in fields["required_name"].rules] == ["Required"]
        assert fields["required_name"].recurse is False
        assert fields["required_name"].display_name == "Required name"
        assert fields["child"].recurse is True
        assert fields["child"].has_rules is True
        assert fields["validatable_only_child"].recurse is True
        assert fields["poco_child"].recurse is True

    def test_collection_element_type(self, cache):
        fields = {f.name: f for f in cache.get(SampleType).fields}

        assert fields["children"].is_enumerable is True
        assert fields["children"].element_type is ChildType

    def test_mapping_element_type(self, cache):
        fields = {f.name: f for f in cache.get(Widget).fields}

        assert fields["parts_by_bin"].element_type.__name__ == "Part"

    def test_annotation_shapes(self, cache):
        fields = {f.name: f for f in cache.get(Shapes).fields}

        assert "tags" not in fields
        assert "literal" not in fields
        assert "_private" not in fields
        assert fields["either"].recurse is True
        assert fields["either"].is_enumerable is False
        assert fields["optional_items"].element_type is ChildType
        assert fields["anything"].recurse is True

    def test_property_members(self, cache):
        fields = cache.get(WithProperty).fields

        assert [f.name for f in fields] == ["full_name"]

    def test_no_metadata(self, cache):
        assert cache.get(Colour).fields == ()

    def test_unresolvable_annotation_treated_as_any(self, cache):
        fields = {f.name: f for f in cache.get(Unresolvable).fields}

        assert list(fields) == ["name", "mystery"]
        assert [r.name for r in fields["name"].rules] == ["Required"]
        assert fields["mystery"].declared_type is Any
        assert fields["mystery"].recurse is True

    def test_unresolvable_annotation_still_validates(self, validator):
        _, errors = validator.try_validate(Unresolvable(name=None, mystery=ChildType(required_category=None)))

        assert list(errors) == ["name", "mystery.required_category"]


class TestSelfReference:
    """Test members typed as their own class."""

    def test_kept_when_class_has_other_rules(self, cache):
        fields = {f.name: f for f in cache.get(ChildType).fields}

        assert fields["child"].recurse is True
        assert "skipped_child" not in fields

    def test_self_reference_appears_in_declaration_order(self, cache):
        assert [f.name for f in cache.get(Node).fields] == ["name", "next"]

    def test_pruned_when_nothing_else_to_validate(self, cache):
        assert cache.get(EmptySelfReferencing).fields == ()

    def test_mutual_references(self, cache):
        pair = {f.name: f for f in cache.get(Pair).fields}
        partner = {f.name: f for f in cache.get(PairPartner).fields}

        assert pair["other"].recurse is True
        assert partner["pair"].recurse is True


class TestFinality:
    """Test the polymorphism heuristic."""

    @pytest.mark.parametrize("cls", [str, int, float, bool, bytes, FinalLeaf])
    def test_final_types(self, cls):
        assert is_final_type(cls) is True

    @pytest.mark.parametrize("cls", [object, Colour, ChildType])
    def test_open_types(self, cls):
        assert is_final_type(cls) is False

    def test_open_type_without_rules_is_walked(self, cache):
        class Holder:
            colour: Colour

        fields = cache.get(Holder).fields

        assert [f.name for f in fields] == ["colour"]
        assert fields[0].recurse is True


class TestAsyncRequirement:
    """Test the transitive async flag."""

    def test_async_type(self, cache):
        assert cache.get(AsyncValidatableType).requires_async is True

    def test_direct_member(self, cache):
        assert cache.get(ParentOfAsync).requires_async is True

    def test_transitive_member(self, cache):
        assert cache.get(AsyncGrandparent).requires_async is True

    def test_through_collection(self, cache):
        assert cache.get(AsyncThroughList).requires_async is True

    def test_not_through_skipped_member(self, cache):
        assert cache.get(AsyncSkipped).requires_async is False

    def test_sync_only_graph(self, cache):
        assert cache.get(SampleType).requires_async is False
        assert cache.get(ValidatableOnlyType).requires_async is False

    def test_order_of_first_use_does_not_matter(self, cache):
        cache.get(ParentOfAsync)

        assert cache.get(AsyncGrandparent).requires_async is True


class TestCaching:
    """Test memoization and concurrent first use."""

    def test_same_descriptor_returned(self, cache):
        assert cache.get(SampleType) is cache.get(SampleType)

    def test_dependencies_cached_too(self, cache):
        cache.get(SampleType)

        assert ChildType in cache
        assert ValidatableOnlyType in cache

    def test_clear(self, cache):
        cache.get(SampleType)
        cache.clear()

        assert len(cache) == 0

    def test_concurrent_first_use(self):
        cache = TypeDescriptorCache()

        with ThreadPoolExecutor(max_workers=8) as pool:
            descriptors = list(pool.map(lambda _: cache.get(SampleType), range(32)))

        assert len({id(d) for d in descriptors}) == 1
        assert descriptors[0].fields
