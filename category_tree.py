"""Category tree construction, selection and count aggregation.

The backend hands out categories as a flat list. This module turns that list
into a forest of CategoryNode objects and holds the small amount of state a
category sidebar needs: which categories are selected (single-select browse
mode or multi-select assign mode with a cap), which branches are expanded and
which owner group is being filtered on.

Everything except CategoryTree is a pure function that returns new objects and
leaves its arguments untouched. Sibling sorting by ``order`` is not done by
build_tree(); callers sort at render time with sorted_by_order() or
visible_roots().
"""

from dataclasses import dataclass, field, replace
from typing import Callable, Dict, FrozenSet, Iterable, List, Optional, Sequence, Set

from models.category import OWNER_GROUPS, CategoryNode
from logger import get_logger

logger = get_logger("category_tree")


@dataclass(frozen=True)
class SelectionChange:
    """Result of toggling a category in or out of a selection.

    Attributes:
        selection: The full selection after the toggle (a new list).
        capacity_exceeded: True if the category was not added because the
            selection was already at its maximum size.
    """

    selection: List[str] = field(default_factory=list)
    capacity_exceeded: bool = False


def build_tree(flat: Iterable[CategoryNode]) -> List[CategoryNode]:
    """Build a forest from a flat, unordered list of categories.

    Nodes are copied, so the input records keep their own (usually empty)
    children lists. A node whose parent_id is empty or does not match any
    record becomes a root.

    Duplicate ids resolve last-wins: the last record with a given id is kept,
    at the position where that id first appeared. Parent cycles are broken by
    making their earliest member (in input order) a root.

    Args:
        flat: Category records, in any order.

    Returns:
        Root nodes in input order, each with its children linked in.
    """
    nodes: Dict[str, CategoryNode] = {}
    for record in flat:
        if record.id in nodes:
            logger.debug(f"Duplicate category id {record.id}, keeping the last record")
        nodes[record.id] = replace(record, children=[])

    roots: List[CategoryNode] = []
    for node in nodes.values():
        parent = nodes.get(node.parent_id) if node.parent_id else None
        if parent is None:
            roots.append(node)
        else:
            parent.children.append(node)

    _break_cycles(nodes, roots)
    return roots


def _mark_reachable(start: Iterable[CategoryNode], reached: Set[str]) -> None:
    stack = list(start)
    while stack:
        node = stack.pop()
        reached.add(node.id)
        stack.extend(node.children)


def _break_cycles(nodes: Dict[str, CategoryNode], roots: List[CategoryNode]) -> None:
    """Promote cycle members to roots until every node hangs off a root."""
    reached: Set[str] = set()
    _mark_reachable(roots, reached)
    if len(reached) == len(nodes):
        return

    position = {node_id: index for index, node_id in enumerate(nodes)}
    for node in list(nodes.values()):
        if node.id in reached:
            continue

        # Walk up until a node repeats; everything from there on is the cycle
        chain: List[str] = []
        seen: Set[str] = set()
        current = node.id
        while current not in seen:
            seen.add(current)
            chain.append(current)
            current = nodes[current].parent_id
        cycle = chain[chain.index(current):]

        head = nodes[min(cycle, key=position.__getitem__)]
        parent = nodes[head.parent_id]
        parent.children = [child for child in parent.children if child is not head]
        roots.append(head)
        _mark_reachable([head], reached)
        logger.warning(f"Category {head.id} is part of a parent cycle, showing it as a root")


def flatten(forest: Sequence[CategoryNode]) -> List[CategoryNode]:
    """Flatten a forest back into a pre-order list of childless records.

    Feeding the result to build_tree() reproduces the same structure.
    """
    flat: List[CategoryNode] = []
    stack = list(reversed(forest))
    while stack:
        node = stack.pop()
        flat.append(replace(node, children=[]))
        stack.extend(reversed(node.children))
    return flat


def toggle_selection(
    selection: Sequence[str], node_id: str, max_selection: Optional[int] = None
) -> SelectionChange:
    """Toggle a category in or out of a selection.

    Removing always succeeds. Adding appends to the end (click order, not tree
    order) unless max_selection is set and already reached, in which case the
    selection comes back unchanged with capacity_exceeded set.

    Args:
        selection: Currently selected category IDs.
        node_id: Category ID that was clicked.
        max_selection: Maximum selection size; None or 0 means unlimited.

    Returns:
        SelectionChange with the new selection.
    """
    if max_selection is not None and max_selection < 0:
        raise ValueError("max_selection must be 0 (unlimited) or positive")

    if node_id in selection:
        return SelectionChange([selected for selected in selection if selected != node_id])

    if max_selection and len(selection) >= max_selection:
        return SelectionChange(list(selection), capacity_exceeded=True)

    return SelectionChange([*selection, node_id])


def toggle_expanded(expanded: Iterable[str], node_id: str) -> FrozenSet[str]:
    """Add node_id to the expanded set if absent, remove it if present."""
    expanded = frozenset(expanded)
    if node_id in expanded:
        return expanded - {node_id}
    return expanded | {node_id}


def aggregate_count(forest: Sequence[CategoryNode], owner_group: str, mode: str) -> int:
    """Sum the counts of one owner group's top-level categories.

    Children are not visited: the backend already folds a branch's items into
    the count it reports for the branch. Missing counts add nothing.

    Args:
        forest: Output of build_tree().
        owner_group: "HOLDING" or "BANK".
        mode: "content" or "project".

    Returns:
        The summed count.
    """
    return sum(
        node.item_count(mode) or 0 for node in forest if node.owner_group == owner_group
    )


def total_count(flat: Iterable[CategoryNode], mode: str) -> int:
    """Sum counts over every category, the fallback for the "show all" entry."""
    return sum(node.item_count(mode) or 0 for node in flat)


def group_count(
    forest: Sequence[CategoryNode],
    owner_group: str,
    mode: str,
    distinct_total: Optional[int] = None,
) -> int:
    """Get the count shown next to a group heading.

    An item filed under several categories is counted once in distinct_total
    (computed by the backend), so it is preferred when available.
    """
    if distinct_total is not None:
        return distinct_total
    return aggregate_count(forest, owner_group, mode)


def sorted_by_order(nodes: Iterable[CategoryNode]) -> List[CategoryNode]:
    """Sort one sibling group by order. Ties keep their existing order."""
    return sorted(nodes, key=lambda node: node.order)


def visible_roots(
    forest: Sequence[CategoryNode], owner_group: Optional[str] = None
) -> List[CategoryNode]:
    """Get the roots to render, sorted by order.

    Group members only see their own group's categories. Without a group
    (administrators) every group is shown, HOLDING first, then BANK.
    """
    if owner_group:
        return sorted_by_order(node for node in forest if node.owner_group == owner_group)

    known = [
        node
        for group in OWNER_GROUPS
        for node in sorted_by_order(n for n in forest if n.owner_group == group)
    ]
    others = sorted_by_order(n for n in forest if n.owner_group not in OWNER_GROUPS)
    return known + others


def capacity_message(max_selection: int) -> str:
    """User-facing notice for a selection that hit its cap."""
    return f"You can select up to {max_selection} categories."


class CategoryTree:
    """Selection, expansion and group-filter state for one category sidebar.

    In multi-select mode categories are toggled with toggle() and the
    selection is capped at max_selection. In single-select (browse) mode
    select() replaces the selection with one category, or clears it.

    Listeners receive the complete new selection or expanded set, never a
    delta, and only when the state actually changed.

    Args:
        categories: Flat category list from the backend.
        max_selection: Selection cap for multi-select mode; None or 0 means
            unlimited.
        multi_select: True for assign mode, False for browse mode.
        on_selection_change: Optional callback taking the new selection list.
        on_expansion_change: Optional callback taking the new expanded set.
    """

    def __init__(
        self,
        categories: Iterable[CategoryNode] = (),
        max_selection: Optional[int] = None,
        multi_select: bool = True,
        on_selection_change: Optional[Callable[[List[str]], None]] = None,
        on_expansion_change: Optional[Callable[[FrozenSet[str]], None]] = None,
    ):
        if max_selection is not None and max_selection < 0:
            raise ValueError("max_selection must be 0 (unlimited) or positive")
        self.max_selection = max_selection
        self.multi_select = multi_select
        self.on_selection_change = on_selection_change
        self.on_expansion_change = on_expansion_change
        self.selection: List[str] = []
        self.expanded: FrozenSet[str] = frozenset()
        self.selected_group: Optional[str] = None
        self.set_categories(categories)

    def set_categories(self, categories: Iterable[CategoryNode]) -> None:
        """Replace the flat list and rebuild the forest from it."""
        self.categories = list(categories)
        self.forest = build_tree(self.categories)

    def toggle(self, node_id: str) -> SelectionChange:
        """Toggle a category in multi-select mode."""
        if not self.multi_select:
            raise ValueError("toggle() is only available in multi-select mode")

        change = toggle_selection(self.selection, node_id, self.max_selection)
        if change.capacity_exceeded:
            logger.warning(
                f"Selection limit reached ({self.max_selection}), ignoring {node_id}"
            )
            return change

        self._set_selection(change.selection)
        return change

    def select(self, node_id: Optional[str]) -> None:
        """Select one category in browse mode; an empty id means "show all"."""
        if self.multi_select:
            raise ValueError("select() is only available in single-select mode")

        self.selected_group = None
        self._set_selection([node_id] if node_id else [])

    def select_group(self, owner_group: Optional[str]) -> None:
        """Filter on an owner group, or drop the filter if it is already set."""
        if owner_group and owner_group not in OWNER_GROUPS:
            raise ValueError(f"Unknown owner group: {owner_group}")

        if not owner_group or owner_group == self.selected_group:
            self.selected_group = None
        else:
            self.selected_group = owner_group
            if not self.multi_select:
                self._set_selection([])

    def toggle_expand(self, node_id: str) -> FrozenSet[str]:
        """Expand or collapse a branch."""
        self.expanded = toggle_expanded(self.expanded, node_id)
        if self.on_expansion_change:
            self.on_expansion_change(self.expanded)
        return self.expanded

    def is_selected(self, node_id: str) -> bool:
        return node_id in self.selection

    def is_expanded(self, node_id: str) -> bool:
        return node_id in self.expanded

    @property
    def showing_all(self) -> bool:
        """True when neither a category nor a group is selected."""
        return not self.selection and not self.selected_group

    def count_for_group(
        self, owner_group: str, mode: str, distinct_total: Optional[int] = None
    ) -> int:
        return group_count(self.forest, owner_group, mode, distinct_total)

    def reset(self) -> None:
        """Clear transient state, as on navigating away from the page."""
        self.selected_group = None
        self._set_selection([])
        if self.expanded:
            self.expanded = frozenset()
            if self.on_expansion_change:
                self.on_expansion_change(self.expanded)

    def _set_selection(self, selection: List[str]) -> None:
        if selection == self.selection:
            return
        self.selection = selection
        if self.on_selection_change:
            self.on_selection_change(list(selection))
