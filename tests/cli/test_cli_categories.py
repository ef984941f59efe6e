"""Tests for the categories CLI commands and the shared parser."""

import argparse

import pytest

from category_tree import CategoryTree
from cli import categories as categories_cli
from cli.__main__ import build_parser
from tests.helpers import log_lines, node


class TestRenderTree:
    """Tests for the text rendering of the sidebar."""

    def _flat(self):
        return [
            node("H2", owner_group="HOLDING", order=2, content_count=1),
            node("H1", owner_group="HOLDING", order=1, content_count=4),
            node("H1b", "H1", order=2, content_count=1),
            node("H1a", "H1", order=1, content_count=3),
            node("B1", owner_group="BANK", order=1),
        ]

    def test_admin_view_expanded(self):
        """Test both groups rendered with sorted, expanded branches."""
        tree = CategoryTree(self._flat(), multi_select=False)
        tree.toggle_expand("H1")

        lines = categories_cli.render_tree(tree, "content")

        assert lines == [
            "All (9)",
            "",
            "Holding company (5)",
            "    [-] Category H1 (4)",
            "            Category H1a (3)",
            "            Category H1b (1)",
            "        Category H2 (1)",
            "",
            "Bank (0)",
            "        Category B1",
        ]

    def test_group_view_collapsed_with_selection(self):
        """Test one group with a collapsed branch and a marked selection."""
        tree = CategoryTree(self._flat(), multi_select=False)
        tree.select("H2")

        lines = categories_cli.render_tree(
            tree, "content", "HOLDING", group_totals={"HOLDING": 4}, all_total=4
        )

        assert lines == [
            "All (4)",
            "",
            "Holding company (4)",
            "    [+] Category H1 (4)",
            "       *Category H2 (1)",
        ]


class TestCommands:
    """Tests for running category commands against the services container."""

    def _args(self, argv):
        return build_parser().parse_args(argv)

    def test_create_category_logs_activity(self, services, output):
        """Test that creating a category records an activity entry."""
        args = self._args(
            ["--user", "admin", "categories", "create", "CSR", "--group", "HOLDING"]
        )

        args.func(args, services)

        created = services.categories.find_by_name("CSR", "HOLDING")
        entry = services.activity_logs.find().items[0]
        assert created is not None
        assert entry.action_type == "CREATE_CATEGORY"
        assert entry.user_id == "admin"
        assert entry.details["id"] == created.id

    def test_create_category_invalid_parent_exits(self, services):
        """Test that validation errors exit with status 1."""
        args = self._args(
            ["categories", "create", "TV", "--group", "BANK", "--parent", "missing"]
        )

        with pytest.raises(SystemExit) as exc_info:
            args.func(args, services)

        assert exc_info.value.code == 1
        assert services.activity_logs.find().total == 0

    def test_create_duplicate_top_level_exits(self, services, output):
        """Test that a second top-level category with the same name is refused."""
        services.categories.create("CSR", "HOLDING")
        args = self._args(["categories", "create", "CSR", "--group", "HOLDING"])

        with pytest.raises(SystemExit):
            args.func(args, services)

        assert any("already exists" in line for line in log_lines(output))

    def test_tree_command(self, services, output):
        """Test rendering the stored tree."""
        services.categories.init_defaults()
        csr = services.categories.find_by_name("CSR", "HOLDING")
        services.contents.create("Poster", [csr.id])
        args = self._args(["categories", "tree", "--group", "HOLDING"])

        args.func(args, services)

        lines = log_lines(output)
        assert lines[0] == "All (1)"
        assert "Holding company (1)" in lines
        assert "        CSR (1)" in lines
        assert not any("브랜드 PR" in line for line in lines)

    def test_delete_with_yes(self, services, output):
        """Test deleting without the confirmation prompt."""
        category = services.categories.create("CSR", "HOLDING")
        args = self._args(["categories", "delete", category.id, "--yes"])

        args.func(args, services)

        assert services.categories.find(category.id) is None
        assert services.activity_logs.find(action_type="DELETE_CATEGORY").total == 1

    def test_parser_requires_command(self):
        """Test that a bare invocation is a usage error."""
        with pytest.raises(SystemExit):
            build_parser().parse_args([])

    def test_namespace_has_user(self):
        """Test that --user defaults to None."""
        args = self._args(["categories", "init"])

        assert isinstance(args, argparse.Namespace)
        assert args.user is None
