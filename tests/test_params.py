"""Tests for tools/params.py — argument extraction."""
import pytest

from cubicagent.errors import InvalidArgument
from cubicagent.tools.params import (
    as_object,
    optional_number,
    optional_str,
    optional_str_list,
    require_number,
    require_str,
    require_str_list,
)


class TestStrings:
    def test_require_str(self):
        assert require_str({"id": "mem-1"}, "id") == "mem-1"

    def test_require_str_missing(self):
        with pytest.raises(InvalidArgument, match="Missing required parameter: id"):
            require_str({}, "id")

    def test_require_str_wrong_type(self):
        with pytest.raises(InvalidArgument):
            require_str({"id": 5}, "id")

    def test_optional_str(self):
        assert optional_str({}, "content") is None
        assert optional_str({"content": "tea"}, "content") == "tea"


class TestNumbers:
    def test_bool_is_not_a_number(self):
        with pytest.raises(InvalidArgument):
            require_number({"importance": True}, "importance")

    def test_int_and_float(self):
        assert require_number({"importance": 1}, "importance") == 1
        assert optional_number({"importance": 0.5}, "importance") == 0.5
        assert optional_number({}, "importance") is None

    def test_string_rejected(self):
        with pytest.raises(InvalidArgument):
            optional_number({"limit": "10"}, "limit")


class TestLists:
    def test_require_str_list(self):
        assert require_str_list({"tags": ["a", "b"]}, "tags") == ["a", "b"]

    def test_mixed_items_rejected(self):
        with pytest.raises(InvalidArgument, match="must be strings"):
            require_str_list({"tags": ["a", 1]}, "tags")

    def test_not_a_list(self):
        with pytest.raises(InvalidArgument, match="must be an array"):
            optional_str_list({"tags": "a"}, "tags")

    def test_optional_missing(self):
        assert optional_str_list({}, "tags") is None


class TestObject:
    def test_none_is_empty(self):
        assert as_object(None) == {}

    def test_non_object_rejected(self):
        with pytest.raises(InvalidArgument):
            as_object(["id"])
