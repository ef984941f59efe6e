"""Tests for category tree construction, selection and aggregation."""

import pytest

from category_tree import (
    CategoryTree,
    SelectionChange,
    aggregate_count,
    build_tree,
    capacity_message,
    flatten,
    group_count,
    sorted_by_order,
    toggle_expanded,
    toggle_selection,
    total_count,
    visible_roots,
)
from tests.helpers import node, shape


def _all_ids(forest):
    ids = []
    stack = list(forest)
    while stack:
        current = stack.pop()
        ids.append(current.id)
        stack.extend(current.children)
    return ids


class TestBuildTree:
    """Tests for build_tree."""

    def test_example_forest_with_orphan(self):
        """Test that children attach to their parent and orphans become roots."""
        flat = [node("A"), node("B", "A"), node("C", "A"), node("D", "Z")]

        forest = build_tree(flat)

        assert shape(forest) == [("A", [("B", []), ("C", [])]), ("D", [])]

    def test_empty_list(self):
        """Test that an empty list builds an empty forest."""
        assert build_tree([]) == []

    def test_child_listed_before_parent(self):
        """Test that input order does not matter for linking."""
        flat = [node("B", "A"), node("C", "B"), node("A")]

        forest = build_tree(flat)

        assert shape(forest) == [("A", [("B", [("C", [])])])]

    def test_empty_parent_id_is_root(self):
        """Test that an empty-string parent is treated like no parent."""
        forest = build_tree([node("A", "")])

        assert shape(forest) == [("A", [])]

    def test_does_not_sort(self):
        """Test that siblings keep input order regardless of their order field."""
        flat = [node("A"), node("C", "A", order=2), node("B", "A", order=1)]

        forest = build_tree(flat)

        assert [child.id for child in forest[0].children] == ["C", "B"]

    def test_input_records_are_not_mutated(self):
        """Test that input records keep their own empty children lists."""
        flat = [node("A"), node("B", "A")]

        build_tree(flat)

        assert flat[0].children == []
        assert flat[1].children == []

    def test_every_node_appears_once(self):
        """Test that no node is lost or duplicated in a larger tree."""
        flat = [node(str(i), str(i // 3) if i else None) for i in range(100)]
        flat.append(node("orphan", "missing"))

        forest = build_tree(flat)
        ids = _all_ids(forest)

        assert sorted(ids) == sorted(n.id for n in flat)
        assert len(ids) == len(set(ids))

    def test_deep_chain_does_not_recurse(self):
        """Test that a very deep chain builds without hitting recursion limits."""
        flat = [node("0")] + [node(str(i), str(i - 1)) for i in range(1, 5000)]

        forest = build_tree(flat)
        flat_again = flatten(forest)

        assert len(forest) == 1
        assert len(flat_again) == 5000

    def test_duplicate_ids_last_record_wins(self):
        """Test that duplicate ids keep the last record at the first position."""
        first = node("A", order=1)
        second = node("A", order=9)
        flat = [first, node("B"), second, node("C", "A")]

        forest = build_tree(flat)

        assert shape(forest) == [("A", [("C", [])]), ("B", [])]
        assert forest[0].order == 9
        assert sorted(_all_ids(forest)) == ["A", "B", "C"]

    def test_self_parent_becomes_root(self):
        """Test that a category listing itself as parent is shown as a root."""
        forest = build_tree([node("A", "A"), node("B", "A")])

        assert shape(forest) == [("A", [("B", [])])]

    def test_parent_cycle_is_broken_at_first_member(self):
        """Test that a two-node cycle keeps both nodes, earliest one as root."""
        flat = [node("X"), node("C", "A"), node("A", "B"), node("B", "A")]

        forest = build_tree(flat)

        assert shape(forest) == [("X", []), ("A", [("C", []), ("B", [])])]

    def test_rebuild_from_flattened_forest_is_identical(self):
        """Test that flattening and rebuilding reproduces the same structure."""
        flat = [
            node("D", "Z"),
            node("B", "A"),
            node("A"),
            node("E", "B"),
            node("C", "A"),
            node("F", "G"),
            node("G", "F"),
        ]

        forest = build_tree(flat)
        rebuilt = build_tree(flatten(forest))

        assert shape(rebuilt) == shape(forest)
        assert build_tree(flatten(rebuilt)) == rebuilt


class TestToggleSelection:
    """Tests for toggle_selection."""

    def test_add_under_cap(self):
        """Test that an absent id is appended."""
        change = toggle_selection(["A"], "B", 3)

        assert change == SelectionChange(["A", "B"], capacity_exceeded=False)

    def test_remove_present_id(self):
        """Test that a present id is removed, keeping the rest in order."""
        change = toggle_selection(["A", "B", "C"], "B", 3)

        assert change.selection == ["A", "C"]
        assert change.capacity_exceeded is False

    def test_add_at_cap_is_refused(self):
        """Test that adding at the cap leaves the selection unchanged."""
        change = toggle_selection(["A", "B", "C"], "D", 3)

        assert change.selection == ["A", "B", "C"]
        assert change.capacity_exceeded is True

    @pytest.mark.parametrize("max_selection", [None, 0])
    def test_unlimited(self, max_selection):
        """Test that None and 0 both mean no cap."""
        selection = [str(i) for i in range(10)]

        change = toggle_selection(selection, "new", max_selection)

        assert change.selection == selection + ["new"]

    def test_append_order_is_click_order(self):
        """Test that selections accumulate in the order they were clicked."""
        selection = []
        for node_id in ["C", "A", "B"]:
            selection = toggle_selection(selection, node_id).selection

        assert selection == ["C", "A", "B"]

    def test_toggle_twice_restores_selection(self):
        """Test that toggling the same absent id twice is a no-op overall."""
        original = ["A", "B"]

        once = toggle_selection(original, "C", 3).selection
        twice = toggle_selection(once, "C", 3).selection

        assert twice == original

    def test_does_not_mutate_input(self):
        """Test that the given selection list is left untouched."""
        selection = ["A"]

        toggle_selection(selection, "B")
        toggle_selection(selection, "A")

        assert selection == ["A"]

    def test_never_exceeds_cap(self):
        """Test that repeated toggles never grow past the cap."""
        selection = []
        for node_id in "ABCDEFG":
            selection = toggle_selection(selection, node_id, 3).selection
            assert len(selection) <= 3

        assert selection == ["A", "B", "C"]

    def test_negative_cap_rejected(self):
        """Test that a negative cap is a programming error."""
        with pytest.raises(ValueError):
            toggle_selection([], "A", -1)


class TestToggleExpanded:
    """Tests for toggle_expanded."""

    def test_add_and_remove(self):
        """Test that toggling adds then removes an id."""
        expanded = toggle_expanded(frozenset(), "A")
        assert expanded == {"A"}

        assert toggle_expanded(expanded, "A") == frozenset()

    def test_input_set_untouched(self):
        """Test that a mutable input set is not modified."""
        expanded = {"A"}

        toggle_expanded(expanded, "B")

        assert expanded == {"A"}


class TestCounts:
    """Tests for aggregate_count and related helpers."""

    def test_group_aggregate_example(self):
        """Test summing top-level counts for one group."""
        forest = build_tree(
            [
                node("H1", content_count=5),
                node("H2", content_count=3),
                node("B1", owner_group="BANK", content_count=2),
            ]
        )

        assert aggregate_count(forest, "HOLDING", "content") == 8
        assert aggregate_count(forest, "BANK", "content") == 2

    def test_children_are_not_added(self):
        """Test that child counts are assumed folded into their parent."""
        forest = build_tree(
            [node("A", content_count=4), node("B", "A", content_count=3)]
        )

        assert aggregate_count(forest, "HOLDING", "content") == 4

    def test_missing_counts_are_zero(self):
        """Test that undefined counts add nothing."""
        forest = build_tree([node("A"), node("B", project_count=2)])

        assert aggregate_count(forest, "HOLDING", "project") == 2
        assert aggregate_count(forest, "HOLDING", "content") == 0

    def test_unknown_mode_raises(self):
        """Test that an unknown count mode is rejected."""
        forest = build_tree([node("A", content_count=1)])

        with pytest.raises(ValueError):
            aggregate_count(forest, "HOLDING", "likes")

    def test_total_count_sums_every_record(self):
        """Test the "show all" fallback over the flat list."""
        flat = [node("A", content_count=4), node("B", "A", content_count=3)]

        assert total_count(flat, "content") == 7

    def test_group_count_prefers_distinct_total(self):
        """Test that a backend distinct total overrides the summed count."""
        forest = build_tree([node("A", project_count=4), node("B", project_count=3)])

        assert group_count(forest, "HOLDING", "project") == 7
        assert group_count(forest, "HOLDING", "project", distinct_total=5) == 5
        assert group_count(forest, "HOLDING", "project", distinct_total=0) == 0


class TestPresentationHelpers:
    """Tests for ordering and visibility helpers."""

    def test_sorted_by_order_is_stable(self):
        """Test that ties keep their original order."""
        nodes = [node("A", order=2), node("B", order=1), node("C", order=1)]

        assert [n.id for n in sorted_by_order(nodes)] == ["B", "C", "A"]

    def test_visible_roots_for_one_group(self):
        """Test that group members only see their own group's roots."""
        forest = build_tree(
            [
                node("H2", order=2),
                node("B1", owner_group="BANK", order=1),
                node("H1", order=1),
            ]
        )

        assert [n.id for n in visible_roots(forest, "HOLDING")] == ["H1", "H2"]
        assert [n.id for n in visible_roots(forest, "BANK")] == ["B1"]

    def test_visible_roots_for_admin(self):
        """Test that without a group every root is shown, HOLDING first."""
        forest = build_tree(
            [
                node("B1", owner_group="BANK", order=1),
                node("H2", order=2),
                node("H1", order=1),
            ]
        )

        assert [n.id for n in visible_roots(forest)] == ["H1", "H2", "B1"]

    def test_capacity_message(self):
        """Test that the notice names the cap."""
        assert "3" in capacity_message(3)


class TestCategoryTree:
    """Tests for the stateful CategoryTree wrapper."""

    def _tree(self, **kwargs):
        flat = [node("A"), node("B", "A"), node("C", "A"), node("D", "Z")]
        return CategoryTree(flat, **kwargs)

    def test_forest_built_on_init(self):
        """Test that the forest is derived from the flat list."""
        tree = self._tree()

        assert shape(tree.forest) == [("A", [("B", []), ("C", [])]), ("D", [])]

    def test_multi_select_notifies_full_selection(self):
        """Test that listeners receive the whole selection after each change."""
        events = []
        tree = self._tree(max_selection=3, on_selection_change=events.append)

        tree.toggle("A")
        tree.toggle("B")
        tree.toggle("A")

        assert events == [["A"], ["A", "B"], ["B"]]
        assert tree.selection == ["B"]

    def test_capacity_exceeded_does_not_notify(self):
        """Test that a refused selection changes nothing and fires nothing."""
        events = []
        tree = self._tree(max_selection=1, on_selection_change=events.append)

        tree.toggle("A")
        change = tree.toggle("B")

        assert change.capacity_exceeded is True
        assert tree.selection == ["A"]
        assert events == [["A"]]

    def test_single_select_replaces_selection(self):
        """Test that browse mode keeps at most one selected category."""
        tree = self._tree(multi_select=False)

        tree.select("A")
        tree.select("B")

        assert tree.selection == ["B"]
        assert tree.is_selected("B")
        assert not tree.is_selected("A")

    def test_single_select_empty_id_shows_all(self):
        """Test that selecting nothing clears both selection and group."""
        tree = self._tree(multi_select=False)
        tree.select_group("HOLDING")
        tree.select("")

        assert tree.selection == []
        assert tree.selected_group is None
        assert tree.showing_all

    def test_mode_mismatch_raises(self):
        """Test that each selection method is tied to its mode."""
        with pytest.raises(ValueError):
            self._tree(multi_select=False).toggle("A")
        with pytest.raises(ValueError):
            self._tree(multi_select=True).select("A")

    def test_select_group_toggles(self):
        """Test that choosing the active group again drops the filter."""
        tree = self._tree(multi_select=False)
        tree.select("A")

        tree.select_group("BANK")
        assert tree.selected_group == "BANK"
        assert tree.selection == []

        tree.select_group("BANK")
        assert tree.selected_group is None

    def test_select_unknown_group_raises(self):
        """Test that only known owner groups can be filtered on."""
        with pytest.raises(ValueError):
            self._tree().select_group("RETAIL")

    def test_expansion_independent_of_selection(self):
        """Test that expanding branches leaves the selection alone."""
        expansions = []
        tree = self._tree(on_expansion_change=expansions.append)
        tree.toggle("B")

        tree.toggle_expand("A")
        tree.toggle_expand("A")

        assert expansions == [frozenset({"A"}), frozenset()]
        assert tree.selection == ["B"]
        assert not tree.is_expanded("A")

    def test_set_categories_keeps_state(self):
        """Test that a new flat list rebuilds the forest without losing state."""
        tree = self._tree()
        tree.toggle("B")
        tree.toggle_expand("A")

        tree.set_categories([node("A"), node("B", "A"), node("Z")])

        assert shape(tree.forest) == [("A", [("B", [])]), ("Z", [])]
        assert tree.selection == ["B"]
        assert tree.is_expanded("A")

    def test_reset_clears_everything(self):
        """Test that navigating away clears selection, expansion and group."""
        selections = []
        tree = self._tree(on_selection_change=selections.append)
        tree.toggle("A")
        tree.toggle_expand("A")
        tree.select_group("HOLDING")

        tree.reset()

        assert tree.selection == []
        assert tree.expanded == frozenset()
        assert tree.selected_group is None
        assert selections == [["A"], []]

    def test_count_for_group(self):
        """Test group counts through the wrapper."""
        tree = CategoryTree(
            [
                node("H1", content_count=5),
                node("H2", content_count=3),
                node("B1", owner_group="BANK", content_count=2),
            ]
        )

        assert tree.count_for_group("HOLDING", "content") == 8
        assert tree.count_for_group("BANK", "content", distinct_total=1) == 1
