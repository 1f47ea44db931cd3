"""Tests for path parsing and path-addressed value operations."""

import pytest

from tablemap.exceptions import (
    ArgumentError,
    NotAList,
    NotAnObject,
    NotIndexable,
    PathNotFound,
)
from tablemap.paths import (
    MISSING,
    deep_equal,
    deep_merge,
    delete_path,
    get_path,
    has_path,
    parse_path,
    push_path,
    remove_path,
    set_path,
)


class TestParsePath:
    """Tests for parse_path()."""

    def test_dotted(self):
        assert parse_path("sub.values.are") == ("sub", "values", "are")

    def test_numeric_segments_are_indexes(self):
        assert parse_path("items.0.name") == ("items", 0, "name")

    def test_bracket_syntax(self):
        """[n] is the same as a dotted numeric segment."""
        assert parse_path("items[0].name") == ("items", 0, "name")
        assert parse_path("matrix[1][2]") == ("matrix", 1, 2)
        assert parse_path("[3].x") == (3, "x")

    def test_empty_is_root(self):
        assert parse_path(None) == ()
        assert parse_path("") == ()

    def test_int_and_sequence(self):
        assert parse_path(2) == (2,)
        assert parse_path(["a", 0, "b"]) == ("a", 0, "b")

    def test_non_ascii_digits_are_keys(self):
        assert parse_path("²") == ("²",)
        assert parse_path("items.١") == ("items", "١")

    @pytest.mark.parametrize("bad", ["a..b", ".a", "a.", "a[x]", -1, True, 1.5, ["a", -1]])
    def test_malformed(self, bad):
        with pytest.raises(ArgumentError):
            parse_path(bad)


class TestGetPath:
    """Tests for reading by path."""

    value = {"sub": {"list": [10, {"deep": "yes"}], "n": None}}

    def test_read_nested(self):
        assert get_path(self.value, ("sub", "list", 1, "deep")) == "yes"
        assert get_path(self.value, ("sub", "n")) is None

    def test_root(self):
        assert get_path(self.value, ()) is self.value

    def test_missing_key(self):
        with pytest.raises(PathNotFound) as info:
            get_path(self.value, ("sub", "nope"), key="k")
        assert info.value.path == ("sub", "nope")
        assert info.value.key == "k"
        assert info.value.kind == "PathNotFound"

    def test_index_out_of_range(self):
        with pytest.raises(PathNotFound):
            get_path(self.value, ("sub", "list", 5))

    def test_into_primitive(self):
        with pytest.raises(NotIndexable) as info:
            get_path(self.value, ("sub", "list", 0, "x"))
        assert info.value.path == ("sub", "list", 0)

    def test_int_step_on_mapping_uses_string_key(self):
        assert get_path({"0": "zero"}, (0,)) == "zero"

    def test_has_path(self):
        assert has_path(self.value, ("sub", "list", 1)) is True
        assert has_path(self.value, ("sub", "missing")) is False
        with pytest.raises(NotIndexable):
            has_path(self.value, ("sub", "list", 0, "x"))


class TestSetPath:
    """Tests for writing by path."""

    def test_replaces_leaf_without_touching_original(self):
        original = {"a": {"b": 1, "c": [1, 2]}, "d": {"e": 5}}
        updated = set_path(original, ("a", "b"), 2)

        assert updated == {"a": {"b": 2, "c": [1, 2]}, "d": {"e": 5}}
        assert original["a"]["b"] == 1
        # Siblings off the path are shared, not copied
        assert updated["d"] is original["d"]
        assert updated["a"]["c"] is original["a"]["c"]

    def test_vivifies_mapping(self):
        assert set_path({}, ("a", "b", "c"), 1) == {"a": {"b": {"c": 1}}}

    def test_vivifies_list_before_index(self):
        assert set_path({}, ("a", 0, "b"), 1) == {"a": [{"b": 1}]}

    def test_none_intermediate_is_replaced(self):
        assert set_path({"a": None}, ("a", "b"), 1) == {"a": {"b": 1}}

    def test_vivify_disabled(self):
        with pytest.raises(PathNotFound):
            set_path({}, ("a", "b"), 1, vivify=False)
        # The final step can still be created
        assert set_path({"a": {}}, ("a", "b"), 1, vivify=False) == {"a": {"b": 1}}

    def test_list_append_and_pad(self):
        assert set_path([1, 2], (2,), 3) == [1, 2, 3]
        assert set_path([1], (3,), 4) == [1, None, None, 4]

    def test_empty_path_replaces_root(self):
        assert set_path({"a": 1}, (), "new") == "new"

    def test_primitive_on_path(self):
        with pytest.raises(NotIndexable):
            set_path({"a": 5}, ("a", "b"), 1)

    def test_key_step_on_list(self):
        with pytest.raises(NotAnObject):
            set_path({"a": [1]}, ("a", "b"), 1)


class TestDeletePath:
    """Tests for deleting by path."""

    def test_delete_mapping_key(self):
        original = {"a": {"b": 1, "c": 2}}
        assert delete_path(original, ("a", "b")) == {"a": {"c": 2}}
        assert original == {"a": {"b": 1, "c": 2}}

    def test_delete_list_index_shifts(self):
        assert delete_path({"l": ["x", "y", "z"]}, ("l", 0)) == {"l": ["y", "z"]}

    def test_missing(self):
        with pytest.raises(PathNotFound):
            delete_path({"a": {}}, ("a", "b"))
        with pytest.raises(PathNotFound):
            delete_path({"l": [1]}, ("l", 1))

    def test_root_not_allowed(self):
        with pytest.raises(ArgumentError):
            delete_path({"a": 1}, ())


class TestArrayOperations:
    """Tests for push_path() and remove_path()."""

    def test_push(self):
        assert push_path({"l": [1]}, ("l",), 2) == {"l": [1, 2]}

    def test_push_creates_list(self):
        assert push_path({}, ("l",), "x") == {"l": ["x"]}

    def test_push_duplicate_is_noop(self):
        root = {"l": [{"a": 1}]}
        assert push_path(root, ("l",), {"a": 1}) is root

    def test_push_duplicate_allowed(self):
        assert push_path([1], (), 1, allow_dupes=True) == [1, 1]

    def test_push_not_a_list(self):
        with pytest.raises(NotAList):
            push_path({"s": ""}, ("s",), 1)

    def test_remove_first_match_only(self):
        assert remove_path([1, 2, 3, 2], (), 2) == [1, 3, 2]

    def test_remove_with_predicate(self):
        assert remove_path({"l": [1, 5, 7]}, ("l",), lambda v: v > 4) == {"l": [1, 7]}

    def test_remove_no_match(self):
        root = [1, 2]
        assert remove_path(root, (), 9) is root

    def test_remove_missing_and_wrong_shape(self):
        with pytest.raises(PathNotFound):
            remove_path({}, ("l",), 1)
        with pytest.raises(NotAList):
            remove_path({"l": {}}, ("l",), 1)


class TestStructuralHelpers:
    """Tests for deep_equal() and deep_merge()."""

    def test_deep_equal(self):
        assert deep_equal({"a": [1, {"b": 2}]}, {"a": [1, {"b": 2}]})
        assert deep_equal(1, 1.0)
        assert not deep_equal(1, True)
        assert not deep_equal(0, False)
        assert not deep_equal({"a": 1}, {"a": 1, "b": 2})
        assert not deep_equal([1, 2], [2, 1])
        assert not deep_equal("1", 1)

    def test_deep_merge(self):
        base = {"a": 1, "nested": {"x": 1, "y": 2}, "list": [1, 2]}
        merged = deep_merge(base, {"nested": {"y": 3, "z": 4}, "list": [9], "b": 2})

        assert merged == {"a": 1, "b": 2, "nested": {"x": 1, "y": 3, "z": 4}, "list": [9]}
        assert base["nested"] == {"x": 1, "y": 2}


class TestMissing:
    """Tests for the MISSING sentinel."""

    def test_singleton_and_falsy(self):
        from tablemap import MISSING as exported

        assert exported is MISSING
        assert not MISSING
        assert repr(MISSING) == "MISSING"
        assert MISSING is not None
