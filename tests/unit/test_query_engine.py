# =============================================================================
# tests/unit/test_query_engine.py
# Unit Tests for the Query Engine
# =============================================================================

import pytest

from health_store.errors import InvalidQueryError
from health_store.storage.query_engine import (
    Equals,
    In,
    NotEquals,
    apply_limit,
    collation_key,
    filter_entities,
    js_string,
    matches,
    parse_criteria,
    parse_order_by,
    run_query,
    sort_entities,
)


class TestSorting:
    """Test string-coerced ordering"""

    def test_numeric_values_sort_as_strings_descending(self):
        """[2, 10, 1] descending compares "2" > "10" > "1" """
        items = [{"value": 10}, {"value": 1}, {"value": 2}]

        result = sort_entities(items, "-value")

        assert [item["value"] for item in result] == [2, 10, 1]

    def test_numeric_values_sort_as_strings_ascending(self):
        items = [{"value": 2}, {"value": 10}, {"value": 1}]

        result = sort_entities(items, "value")

        assert [item["value"] for item in result] == [1, 10, 2]

    def test_iso_dates_sort_chronologically(self):
        items = [
            {"date": "2026-10-03"},
            {"date": "2026-09-30"},
            {"date": "2026-10-01"},
        ]

        result = sort_entities(items, "-date")

        assert [item["date"] for item in result] == ["2026-10-03", "2026-10-01", "2026-09-30"]

    def test_case_insensitive_before_case(self):
        items = [{"name": "banana"}, {"name": "Apple"}, {"name": "cherry"}]

        result = sort_entities(items, "name")

        assert [item["name"] for item in result] == ["Apple", "banana", "cherry"]

    def test_sort_is_stable_for_equal_keys(self):
        items = [
            {"id": "a", "group": "x"},
            {"id": "b", "group": "x"},
            {"id": "c", "group": "w"},
        ]

        ascending = sort_entities(items, "group")
        descending = sort_entities(items, "-group")

        assert [item["id"] for item in ascending] == ["c", "a", "b"]
        assert [item["id"] for item in descending] == ["a", "b", "c"]

    def test_no_order_by_keeps_input_order(self):
        items = [{"v": 3}, {"v": 1}, {"v": 2}]

        assert sort_entities(items, None) == items
        assert sort_entities(items, "") == items

    def test_sort_returns_new_list(self):
        items = [{"v": "b"}, {"v": "a"}]

        result = sort_entities(items, "v")

        assert items[0]["v"] == "b"
        assert result is not items

    def test_missing_and_null_fields_use_js_names(self):
        """missing -> "undefined", None -> "null" """
        items = [{"id": 1}, {"id": 2, "v": None}, {"id": 3, "v": "m"}]

        result = sort_entities(items, "v")

        assert [item["id"] for item in result] == [3, 2, 1]

    def test_parse_order_by(self):
        assert parse_order_by("-created_at") == ("created_at", True)
        assert parse_order_by("name") == ("name", False)
        assert parse_order_by(None) is None


class TestCollation:
    """Test localeCompare-style ordering of coerced strings"""

    @pytest.mark.parametrize("values,expected", [
        (["A", "a"], ["a", "A"]),
        (["f", "é", "e"], ["e", "é", "f"]),
        (["a-b", "a_b"], ["a_b", "a-b"]),
        (["ab", "a1", "a-b"], ["a-b", "a1", "ab"]),
        (["B", "b", "a"], ["a", "b", "B"]),
        (["apple", "Apple", "Äpfel"], ["Äpfel", "apple", "Apple"]),
    ])
    def test_ordering(self, values, expected):
        assert sorted(values, key=collation_key) == expected

    def test_sort_entities_uses_collation(self):
        items = [{"name": "A"}, {"name": "é"}, {"name": "a"}, {"name": "f"}]

        result = sort_entities(items, "name")

        assert [item["name"] for item in result] == ["a", "A", "é", "f"]


class TestJsString:
    """Test JavaScript-style string coercion"""

    @pytest.mark.parametrize("value,expected", [
        (None, "null"),
        (True, "true"),
        (False, "false"),
        (2.0, "2"),
        (2.5, "2.5"),
        (10, "10"),
        ([1, 2], "1,2"),
        ({"a": 1}, "[object Object]"),
        ("text", "text"),
        (100.0, "100"),
        (-2.5, "-2.5"),
        (0.000001, "0.000001"),
        (1e-7, "1e-7"),
        (1.5e-7, "1.5e-7"),
        (1e21, "1e+21"),
        (1.25e22, "1.25e+22"),
        (10 ** 21, "1e+21"),
        (float("nan"), "NaN"),
    ])
    def test_coercion(self, value, expected):
        assert js_string(value) == expected


class TestLimit:
    """Test truncation"""

    def test_limit_truncates(self):
        assert apply_limit([1, 2, 3], 2) == [1, 2]

    def test_none_and_zero_mean_no_limit(self):
        assert apply_limit([1, 2, 3], None) == [1, 2, 3]
        assert apply_limit([1, 2, 3], 0) == [1, 2, 3]

    def test_limit_larger_than_list(self):
        assert apply_limit([1], 5) == [1]

    def test_run_query_sorts_before_limit(self):
        items = [{"v": "c"}, {"v": "a"}, {"v": "b"}]

        result = run_query(items, "v", 2)

        assert [item["v"] for item in result] == ["a", "b"]


class TestCriteriaParsing:
    """Test conversion of raw criteria into filter ops"""

    def test_scalar_becomes_equals(self):
        assert parse_criteria({"status": "active"}) == {"status": Equals("active")}

    def test_in_operator(self):
        assert parse_criteria({"status": {"$in": ["a", "b"]}}) == {"status": In(("a", "b"))}

    def test_ne_operator(self):
        assert parse_criteria({"status": {"$ne": "x"}}) == {"status": NotEquals("x")}

    def test_in_takes_precedence_over_ne(self):
        ops = parse_criteria({"status": {"$in": ["a"], "$ne": "a"}})

        assert ops == {"status": In(("a",))}

    def test_typed_ops_pass_through(self):
        ops = parse_criteria({"status": NotEquals("x")})

        assert ops == {"status": NotEquals("x")}

    def test_in_requires_sequence(self):
        with pytest.raises(InvalidQueryError) as exc_info:
            parse_criteria({"status": {"$in": "abc"}})

        assert exc_info.value.details["operator"] == "$in"
        assert isinstance(exc_info.value, ValueError)

    def test_non_mapping_criteria_rejected(self):
        with pytest.raises(InvalidQueryError):
            parse_criteria([("status", "a")])


class TestPredicates:
    """Test predicate evaluation"""

    @pytest.fixture
    def entities(self):
        return [
            {"id": "1", "type": "weight", "value": 70, "flag": True},
            {"id": "2", "type": "glucose", "value": 5, "flag": False},
            {"id": "3", "type": "weight", "value": 71},
            {"id": "4", "type": "sleep", "value": None},
        ]

    def test_equality(self, entities):
        result = filter_entities(entities, {"type": "weight"})

        assert [e["id"] for e in result] == ["1", "3"]

    def test_in_membership(self, entities):
        result = filter_entities(entities, {"type": {"$in": ["glucose", "sleep"]}})

        assert [e["id"] for e in result] == ["2", "4"]

    def test_not_equals(self, entities):
        result = filter_entities(entities, {"type": {"$ne": "weight"}})

        assert [e["id"] for e in result] == ["2", "4"]

    def test_criteria_are_anded(self, entities):
        result = filter_entities(entities, {"type": "weight", "value": {"$ne": 70}})

        assert [e["id"] for e in result] == ["3"]

    def test_empty_criteria_matches_everything(self, entities):
        assert filter_entities(entities, {}) == entities

    def test_booleans_do_not_equal_numbers(self, entities):
        assert filter_entities(entities, {"flag": 1}) == []
        assert [e["id"] for e in filter_entities(entities, {"flag": True})] == ["1"]

    def test_missing_field_is_not_null(self, entities):
        assert [e["id"] for e in filter_entities(entities, {"value": None})] == ["4"]
        assert filter_entities(entities, {"flag": None}) == []

    def test_ne_matches_missing_field(self, entities):
        result = filter_entities(entities, {"flag": {"$ne": True}})

        assert [e["id"] for e in result] == ["2", "3", "4"]

    def test_int_and_float_compare_equal(self):
        assert matches({"value": 5}, {"value": Equals(5.0)})
