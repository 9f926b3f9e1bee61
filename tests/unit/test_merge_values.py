"""Tests for the generic deep merge."""

from __future__ import annotations

import copy

from hypothesis import given
from hypothesis import strategies as st

from hookfetch.merge import UNSET, clone, is_plain_record, is_unset, merge_values

_keys = st.sampled_from(["a", "b", "c", "d"])
_leaves = st.one_of(
    st.none(),
    st.just(UNSET),
    st.integers(min_value=0, max_value=9),
    st.text(alphabet="xyz", max_size=3),
    st.lists(st.integers(min_value=0, max_value=3), max_size=3),
)
_records = st.recursive(
    st.dictionaries(_keys, _leaves, max_size=4),
    lambda children: st.dictionaries(_keys, st.one_of(_leaves, children), max_size=4),
    max_leaves=12,
)


class TestMergeValues:
    """Tests for merge_values semantics."""

    def test_overwrite_and_recurse(self) -> None:
        """Test scalars overwrite and records recurse."""
        result = merge_values({"a": 1, "b": {"c": 2}}, {"a": 3, "b": {"d": 4}})

        assert result == {"a": 3, "b": {"c": 2, "d": 4}}

    def test_none_deletes(self) -> None:
        """Test None removes a key."""
        assert merge_values({"a": 1, "b": 2}, {"a": None}) == {"b": 2}

    def test_unset_keeps(self) -> None:
        """Test UNSET leaves a key untouched."""
        assert merge_values({"a": 1}, {"a": UNSET, "b": 2}) == {"a": 1, "b": 2}

    def test_lists_replace(self) -> None:
        """Test lists are replaced wholesale."""
        assert merge_values({"a": [1, 2]}, {"a": [3]}) == {"a": [3]}

    def test_record_replaces_scalar(self) -> None:
        """Test a record income replaces a scalar."""
        assert merge_values({"a": 1}, {"a": {"b": 2}}) == {"a": {"b": 2}}

    def test_none_and_unset_incomes_skipped(self) -> None:
        """Test whole None/UNSET incomes are ignored."""
        assert merge_values({"a": 1}, None, UNSET, {"b": 2}) == {"a": 1, "b": 2}

    def test_inputs_not_mutated(self) -> None:
        """Test neither the original nor the incomes are mutated."""
        original = {"a": {"b": [1, 2]}}
        income = {"a": {"c": 3}}
        snapshot = copy.deepcopy((original, income))

        result = merge_values(original, income)
        result["a"]["b"].append(99)

        assert (original, income) == snapshot

    def test_query_string_income(self) -> None:
        """Test non-record incomes are normalized into records."""
        assert merge_values({"a": "1"}, "b=2&a=3") == {"a": "3", "b": "2"}

    @given(_records, _records, _records)
    def test_associative(self, a, b, c) -> None:
        """Test merging in steps equals merging at once."""
        assert merge_values(merge_values(a, b), c) == merge_values(a, b, c)


class TestValueHelpers:
    """Tests for UNSET and clone helpers."""

    def test_unset_is_singleton(self) -> None:
        """Test UNSET survives copies and is falsy."""
        assert copy.deepcopy(UNSET) is UNSET
        assert is_unset(UNSET)
        assert not UNSET
        assert repr(UNSET) == "UNSET"

    def test_clone_is_deep(self) -> None:
        """Test clone copies nested records and lists."""
        value = {"a": [{"b": 1}]}
        cloned = clone(value)
        cloned["a"][0]["b"] = 2

        assert value == {"a": [{"b": 1}]}

    def test_is_plain_record(self) -> None:
        """Test only dicts count as nested records."""
        assert is_plain_record({})
        assert not is_plain_record([("a", "1")])
        assert not is_plain_record("a=1")
