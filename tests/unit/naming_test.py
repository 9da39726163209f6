"""Tests for accessor name to property candidate transforms."""

from __future__ import annotations

import pytest

from accessor_nav.core.naming import (
    accessor_names,
    build_candidates,
    camel_to_snake,
    candidate_names,
    is_accessor_name,
)
from accessor_nav.models import NamingConvention


class TestIsAccessorName:
    @pytest.mark.parametrize("name", ["getFoo", "setFooBar", "getX", "getFoo_bar"])
    def test_accessors(self, name: str) -> None:
        assert is_accessor_name(name) is True

    @pytest.mark.parametrize("name", ["calculate", "get", "set", "getfoo", "settings", "$getFoo", "GetFoo"])
    def test_non_accessors(self, name: str) -> None:
        assert is_accessor_name(name) is False


class TestCandidateNames:
    def test_lower_camel(self) -> None:
        assert candidate_names("getFooBar", NamingConvention.LOWER_CAMEL) == ["fooBar", "foo_bar"]

    def test_upper_camel_puts_capitalized_name_first(self) -> None:
        names = candidate_names("getFooBar", NamingConvention.UPPER_CAMEL)
        assert names == ["FooBar", "fooBar", "foo_bar"]
        assert names.index("FooBar") < names.index("fooBar")

    def test_none_behaves_like_lower_camel(self) -> None:
        assert candidate_names("setFooBar", NamingConvention.NONE) == ["fooBar", "foo_bar"]

    def test_single_letter_fragment(self) -> None:
        assert candidate_names("getX", NamingConvention.LOWER_CAMEL) == ["x"]

    def test_bare_prefix_has_no_candidates(self) -> None:
        assert candidate_names("get", NamingConvention.NONE) == []

    def test_no_duplicates(self) -> None:
        names = candidate_names("getName", NamingConvention.NONE)
        assert len(names) == len(set(names))


class TestBuildCandidates:
    def test_mapped_field_comes_first(self) -> None:
        assert build_candidates("getCode", NamingConvention.LOWER_CAMEL, "internalCode") == ["internalCode", "code"]

    def test_mapped_field_equal_to_derived_name_is_not_repeated(self) -> None:
        assert build_candidates("getCode", NamingConvention.NONE, "code") == ["code"]

    def test_without_mapping(self) -> None:
        assert build_candidates("getFooBar", NamingConvention.UPPER_CAMEL) == ["FooBar", "fooBar", "foo_bar"]


class TestHelpers:
    def test_camel_to_snake(self) -> None:
        assert camel_to_snake("FooBarBaz") == "foo_bar_baz"
        assert camel_to_snake("fooBar") == "foo_bar"

    def test_accessor_names(self) -> None:
        assert accessor_names("fooBar") == ("getFooBar", "setFooBar")
        assert accessor_names("$name") == ("getName", "setName")
        assert accessor_names("created_at") == ("getCreatedAt", "setCreatedAt")
