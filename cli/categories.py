#!/usr/bin/env python3

import sys
from category_tree import CategoryTree, sorted_by_order, total_count, visible_roots
from models.category import COUNT_MODES, CONTENT_MODE, OWNER_GROUPS
from logger import get_logger

logger = get_logger()

GROUP_LABELS = {"HOLDING": "Holding company", "BANK": "Bank"}


def cmd_list(args, services):
    """List categories as a flat table."""
    categories = services.categories.find_all(args.group)

    if not categories:
        logger.info("No categories found.")
        return

    names = {category.id: category.name for category in categories}

    logger.info("\nCategories:")
    logger.info("=" * 80)
    for category in categories:
        logger.info(f"ID: {category.id}")
        logger.info(f"Name: {category.name}")
        logger.info(f"Group: {category.owner_group}  Order: {category.order}")
        if category.parent_id:
            parent_name = names.get(category.parent_id, "Unknown")
            logger.info(f"Parent: {parent_name} (ID: {category.parent_id})")
        logger.info(
            f"Contents: {category.content_count}  Projects: {category.project_count}"
        )
        logger.info("-" * 80)

    logger.info(f"\nTotal categories: {len(categories)}")


def render_node(tree, node, mode, level=0, lines=None):
    """Render one node and, if expanded, its children sorted by order."""
    lines = [] if lines is None else lines

    if not node.is_leaf:
        marker = "[-]" if tree.is_expanded(node.id) else "[+]"
    else:
        marker = "   "
    selected = "*" if tree.is_selected(node.id) else " "
    count = node.item_count(mode)
    suffix = f" ({count})" if count else ""
    lines.append(f"{'    ' * level}{marker}{selected}{node.name}{suffix}")

    if not node.is_leaf and tree.is_expanded(node.id):
        for child in sorted_by_order(node.children):
            render_node(tree, child, mode, level + 1, lines)
    return lines


def render_tree(tree, mode, owner_group=None, group_totals=None, all_total=None):
    """Render the sidebar as text lines.

    Args:
        tree: CategoryTree holding the forest and view state.
        mode: "content" or "project".
        owner_group: Show only this group (a group member's view); None shows
            every group with a heading each (an administrator's view).
        group_totals: Optional distinct item count per group.
        all_total: Optional distinct item count for the "All" entry.

    Returns:
        List of lines.
    """
    group_totals = group_totals or {}
    if all_total is None:
        all_total = total_count(tree.categories, mode)

    lines = [f"All ({all_total})"]
    groups = [owner_group] if owner_group else list(OWNER_GROUPS)
    for group in groups:
        roots = visible_roots(tree.forest, group)
        count = tree.count_for_group(group, mode, group_totals.get(group))
        lines.append("")
        lines.append(f"{GROUP_LABELS.get(group, group)} ({count})")
        for root in roots:
            render_node(tree, root, mode, 1, lines)
    return lines


def cmd_tree(args, services):
    """Show categories as a tree."""
    owner_group = args.group or services.config.owner_group
    categories = services.categories.find_all(owner_group)

    tree = CategoryTree(categories, multi_select=False)
    expand = args.expand or []
    if not args.collapsed:
        expand = [category.id for category in categories if category.id not in expand]
    for category_id in expand:
        tree.toggle_expand(category_id)

    group_totals = {
        group: services.categories.count_distinct(args.mode, group)
        for group in ([owner_group] if owner_group else OWNER_GROUPS)
    }
    all_total = services.categories.count_distinct(args.mode, owner_group)

    for line in render_tree(tree, args.mode, owner_group, group_totals, all_total):
        logger.info(line)


def cmd_create(args, services):
    """Create a new category."""
    try:
        category = services.categories.create(
            args.name, args.group, args.parent, args.order
        )
    except ValueError as e:
        logger.error(f"Error creating category: {e}")
        sys.exit(1)

    services.activity_logs.log(
        "CREATE_CATEGORY",
        {"id": category.id, "name": category.name, "owner_group": category.owner_group},
        args.user,
    )

    logger.info(f"\n✓ Category created successfully with ID: {category.id}")
    logger.info(f"  Name: {category.name}")
    logger.info(f"  Group: {category.owner_group}")
    if category.parent_id:
        logger.info(f"  Parent ID: {category.parent_id}")


def cmd_update(args, services):
    """Rename a category or change its order."""
    try:
        category = services.categories.update(args.category_id, args.name, args.order)
    except ValueError as e:
        logger.error(f"Error updating category: {e}")
        sys.exit(1)

    services.activity_logs.log(
        "UPDATE_CATEGORY",
        {"id": category.id, "name": args.name, "order": args.order},
        args.user,
    )
    logger.info(f"✓ Category '{category.name}' updated (order {category.order}).")


def cmd_delete(args, services):
    """Delete a category by ID."""
    category_id = args.category_id

    category = services.categories.find(category_id)
    if not category:
        logger.error(f"Category with ID {category_id} not found.")
        sys.exit(1)

    if not args.yes:
        logger.info("\nCategory to delete:")
        logger.info(f"  ID: {category.id}")
        logger.info(f"  Name: {category.name}")
        confirm = (
            input("\nAre you sure you want to delete this category? (yes/no): ")
            .strip()
            .lower()
        )
        if confirm != "yes":
            logger.info("Deletion cancelled.")
            return

    try:
        deleted = services.categories.delete(category_id)
    except ValueError as e:
        logger.error(f"Error deleting category: {e}")
        sys.exit(1)

    if not deleted:
        logger.error("Failed to delete category.")
        sys.exit(1)

    services.activity_logs.log(
        "DELETE_CATEGORY", {"id": category_id, "name": category.name}, args.user
    )
    logger.info(f"✓ Category '{category.name}' deleted successfully.")


def cmd_init(args, services):
    """Create the default categories of both groups."""
    created = services.categories.init_defaults()
    services.activity_logs.log("INIT_CATEGORIES", {"created": created}, args.user)
    logger.info(f"✓ {created} default categories created.")


def cmd_counts(args, services):
    """Show item counts per group."""
    for mode in COUNT_MODES:
        total = services.categories.count_distinct(mode)
        per_group = ", ".join(
            f"{group}: {services.categories.count_distinct(mode, group)}"
            for group in OWNER_GROUPS
        )
        logger.info(f"{mode.capitalize()}s: {total} ({per_group})")


def setup_parser(subparsers):
    """Setup categories subcommand parser.

    Args:
        subparsers: The subparsers object from the main CLI
    """
    parser = subparsers.add_parser(
        "categories",
        help="Manage categories",
        description="Create, list, and delete archive categories",
    )

    categories_subparsers = parser.add_subparsers(
        title="subcommands",
        description="Available category commands",
        dest="subcommand",
        required=True,
    )

    list_parser = categories_subparsers.add_parser("list", help="List all categories")
    list_parser.add_argument("--group", choices=OWNER_GROUPS, help="Only this group")
    list_parser.set_defaults(func=cmd_list)

    tree_parser = categories_subparsers.add_parser("tree", help="Show the category tree")
    tree_parser.add_argument("--group", choices=OWNER_GROUPS, help="Only this group")
    tree_parser.add_argument(
        "--mode", choices=COUNT_MODES, default=CONTENT_MODE, help="Which counts to show"
    )
    tree_parser.add_argument(
        "--collapsed",
        action="store_true",
        help="Collapse every branch except those given with --expand",
    )
    tree_parser.add_argument(
        "--expand",
        action="append",
        metavar="CATEGORY_ID",
        help="Toggle a branch open (or closed, without --collapsed)",
    )
    tree_parser.set_defaults(func=cmd_tree)

    create_parser = categories_subparsers.add_parser("create", help="Create a category")
    create_parser.add_argument("name", help="Category name")
    create_parser.add_argument("--group", choices=OWNER_GROUPS, required=True)
    create_parser.add_argument("--parent", help="Parent category ID")
    create_parser.add_argument("--order", type=int, default=0, help="Sort order")
    create_parser.set_defaults(func=cmd_create)

    update_parser = categories_subparsers.add_parser(
        "update", help="Rename a category or change its order"
    )
    update_parser.add_argument("category_id", help="ID of the category to update")
    update_parser.add_argument("--name", help="New name")
    update_parser.add_argument("--order", type=int, help="New sort order")
    update_parser.set_defaults(func=cmd_update)

    delete_parser = categories_subparsers.add_parser(
        "delete", help="Delete a category by ID"
    )
    delete_parser.add_argument("category_id", help="ID of the category to delete")
    delete_parser.add_argument("--yes", action="store_true", help="Skip confirmation")
    delete_parser.set_defaults(func=cmd_delete)

    init_parser = categories_subparsers.add_parser(
        "init", help="Create the default categories"
    )
    init_parser.set_defaults(func=cmd_init)

    counts_parser = categories_subparsers.add_parser(
        "counts", help="Show content and project counts per group"
    )
    counts_parser.set_defaults(func=cmd_counts)
