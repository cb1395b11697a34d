"""
Unit tests for comparator primitives.
"""

from productsync.sync.comparators import (
    is_empty,
    keyed_list_diff,
    localized_equals,
    normalize_localized,
    reference_equals,
    reference_of,
    scalar_equals,
    set_diff,
    unique_by_key,
    values_equal,
)


class TestScalarEquals:
    """Tests for strict structural equality."""

    def test_nested_structures(self):
        assert scalar_equals({"a": [1, {"b": "c"}]}, {"a": [1, {"b": "c"}]}) is True

    def test_list_order_matters(self):
        assert scalar_equals([1, 2], [2, 1]) is False

    def test_extra_key_differs(self):
        assert scalar_equals({"a": 1}, {"a": 1, "b": 2}) is False

    def test_bool_is_not_a_number(self):
        assert scalar_equals(True, 1) is False
        assert scalar_equals(False, 0) is False

    def test_int_and_float_compare_numerically(self):
        assert scalar_equals(1, 1.0) is True

    def test_string_is_not_a_number(self):
        assert scalar_equals("1", 1) is False

    def test_none(self):
        assert scalar_equals(None, None) is True
        assert scalar_equals(None, "") is False


class TestLocalizedEquals:
    """Tests for localized string comparison."""

    def test_same_locales_equal(self):
        assert localized_equals({"en": "Car", "de": "Auto"}, {"de": "Auto", "en": "Car"})

    def test_missing_locale_differs(self):
        assert not localized_equals({"en": "Car"}, {"en": "Car", "de": "Auto"})

    def test_empty_text_counts_as_missing(self):
        assert localized_equals({"en": "Car", "de": ""}, {"en": "Car"})
        assert localized_equals({"en": "Car", "de": None}, {"en": "Car"})

    def test_absent_equals_empty(self):
        assert localized_equals(None, {})
        assert not localized_equals(None, {"en": "Car"})

    def test_normalize_drops_blank_text(self):
        assert normalize_localized({"en": "Car", "fr": ""}) == {"en": "Car"}
        assert normalize_localized(None) == {}


class TestReferences:
    """Tests for reference helpers."""

    def test_equal_by_id_only(self):
        expanded = {"typeId": "category", "id": "c1", "obj": {"name": {"en": "Cars"}}}
        assert reference_equals(expanded, {"id": "c1"})

    def test_different_ids(self):
        assert not reference_equals({"id": "c1"}, {"id": "c2"})

    def test_absent_references_equal(self):
        assert reference_equals(None, None)
        assert not reference_equals(None, {"id": "c1"})

    def test_reference_of_strips_denormalized_data(self):
        ref = {"typeId": "category", "id": "c1", "obj": {"name": {"en": "Cars"}}}
        assert reference_of(ref) == {"typeId": "category", "id": "c1"}
        assert reference_of({"id": "c1"}) == {"id": "c1"}

    def test_values_equal_collapses_nested_references(self):
        a = {"channel": {"typeId": "channel", "id": "ch-1", "obj": {"key": "store"}}}
        b = {"channel": {"typeId": "channel", "id": "ch-1"}}
        assert values_equal(a, b)
        assert not scalar_equals(a, b)


class TestIsEmpty:
    """Tests for emptiness checks."""

    def test_empty_values(self):
        for value in (None, "", [], {}, ()):
            assert is_empty(value) is True

    def test_non_empty_values(self):
        for value in (0, False, "x", [None], {"a": 1}):
            assert is_empty(value) is False


class TestSetDiff:
    """Tests for set-like identifier comparison."""

    def test_adds_and_removes(self):
        diff = set_diff(["A", "B", "C"], ["A", "D"])
        assert diff.to_add == ["B", "C"]
        assert diff.to_remove == ["D"]

    def test_preserves_source_order(self):
        diff = set_diff(["C", "B", "A"], ["E", "D"])
        assert diff.to_add == ["C", "B", "A"]
        assert diff.to_remove == ["E", "D"]

    def test_duplicates_collapse(self):
        diff = set_diff(["A", "A", "B"], ["C", "C"])
        assert diff.to_add == ["A", "B"]
        assert diff.to_remove == ["C"]

    def test_identical_is_empty(self):
        assert set_diff(["A", "B"], ["B", "A"]).is_empty


class TestKeyedListDiff:
    """Tests for keyed list matching."""

    def test_partitions(self):
        target = [{"k": 1, "v": "a"}, {"k": 2}]
        current = [{"k": 3}, {"k": 1, "v": "b"}]

        diff = keyed_list_diff(target, current, lambda item: item["k"])

        assert diff.added == [{"k": 2}]
        assert diff.removed == [{"k": 3}]
        assert diff.matched == [({"k": 1, "v": "a"}, {"k": 1, "v": "b"})]
        assert diff.pairs == [
            ({"k": 1, "v": "a"}, {"k": 1, "v": "b"}),
            ({"k": 2}, None),
        ]

    def test_none_lists_are_empty(self):
        diff = keyed_list_diff(None, None, lambda item: item)
        assert diff.added == [] and diff.removed == [] and diff.matched == []

    def test_unique_by_key_keeps_first(self):
        items = [{"k": 1, "v": "first"}, {"k": 1, "v": "second"}]
        assert unique_by_key(items, lambda item: item["k"]) == [{"k": 1, "v": "first"}]

    def test_shared_keys_pair_in_order(self):
        """Test elements sharing a key pair by occurrence and none are lost."""
        target = [{"k": 1, "v": "t1"}, {"k": 1, "v": "t2"}, {"k": 1, "v": "t3"}]
        current = [{"k": 1, "v": "c1"}, {"k": 2}, {"k": 1, "v": "c2"}]

        diff = keyed_list_diff(target, current, lambda item: item["k"])

        assert diff.matched == [
            ({"k": 1, "v": "t1"}, {"k": 1, "v": "c1"}),
            ({"k": 1, "v": "t2"}, {"k": 1, "v": "c2"}),
        ]
        assert diff.added == [{"k": 1, "v": "t3"}]
        assert diff.removed == [{"k": 2}]
        assert len(diff.pairs) == len(target)

    def test_surplus_current_duplicates_removed(self):
        target = [{"k": 1, "v": "t1"}]
        current = [{"k": 1, "v": "c1"}, {"k": 1, "v": "c2"}]

        diff = keyed_list_diff(target, current, lambda item: item["k"])

        assert diff.matched == [({"k": 1, "v": "t1"}, {"k": 1, "v": "c1"})]
        assert diff.removed == [{"k": 1, "v": "c2"}]

    def test_none_key_never_matches(self):
        """Test keyless elements are always added or removed."""
        target = [{"v": "a"}, {"v": "b"}]
        current = [{"v": "c"}]

        diff = keyed_list_diff(target, current, lambda item: item.get("k"))

        assert diff.added == target
        assert diff.removed == current
        assert diff.matched == []
