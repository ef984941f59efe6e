#!/usr/bin/env python3

import sys
from category_tree import CategoryTree, capacity_message
from logger import get_logger

logger = get_logger()

# command name -> (services attribute, count mode, activity prefix)
ITEM_COMMANDS = {
    "contents": ("contents", "content", "CONTENT"),
    "projects": ("projects", "project", "PROJECT"),
}


def choose_categories(categories, requested, max_selection):
    """Run the requested category IDs through a capped multi-select.

    Unknown IDs are reported and skipped wherever they appear. IDs past the
    cap are dropped with the same notice the upload form shows, followed by
    the list of dropped IDs.

    Args:
        categories: Flat category list.
        requested: Category IDs in the order they were given.
        max_selection: Selection cap; 0 or None means unlimited.

    Returns:
        The selected category IDs.
    """
    known = {category.id for category in categories}
    tree = CategoryTree(categories, max_selection=max_selection, multi_select=True)
    dropped = []

    for category_id in requested:
        if category_id not in known:
            logger.warning(f"Unknown category ID skipped: {category_id}")
            continue
        if tree.is_selected(category_id):
            continue
        if tree.toggle(category_id).capacity_exceeded and category_id not in dropped:
            dropped.append(category_id)

    if dropped:
        logger.warning(capacity_message(max_selection))
        logger.warning(f"Category IDs dropped: {', '.join(dropped)}")

    return tree.selection


def _service(args, services):
    return getattr(services, ITEM_COMMANDS[args.command][0])


def cmd_create(args, services):
    """Create a content or project filed under the given categories."""
    _, mode, action = ITEM_COMMANDS[args.command]

    categories = services.categories.find_all()
    selected = choose_categories(categories, args.category, services.config.max_selection)

    try:
        item = _service(args, services).create(args.title, selected, args.description)
    except ValueError as e:
        logger.error(f"Error creating {mode}: {e}")
        sys.exit(1)

    services.activity_logs.log(
        f"CREATE_{action}",
        {"id": item.id, "title": item.title, "category_ids": item.category_ids},
        args.user,
    )

    names = {category.id: category.name for category in categories}
    logger.info(f"\n✓ {mode.capitalize()} created successfully with ID: {item.id}")
    logger.info(f"  Title: {item.title}")
    logger.info(
        f"  Categories: {', '.join(names.get(cid, cid) for cid in item.category_ids)}"
    )


def cmd_list(args, services):
    """List contents or projects, optionally within one category."""
    items = _service(args, services).find_all(args.category)

    if not items:
        logger.info(f"No {args.command} found.")
        return

    for item in items:
        created = item.created_at.strftime("%Y-%m-%d %H:%M") if item.created_at else ""
        logger.info(f"{item.id}  {created}  {item.title}")

    logger.info(f"\nTotal {args.command}: {len(items)}")


def cmd_delete(args, services):
    """Delete a content or project."""
    _, mode, action = ITEM_COMMANDS[args.command]

    if not _service(args, services).delete(args.item_id):
        logger.error(f"{mode.capitalize()} with ID {args.item_id} not found.")
        sys.exit(1)

    services.activity_logs.log(f"DELETE_{action}", {"id": args.item_id}, args.user)
    logger.info(f"✓ {mode.capitalize()} {args.item_id} deleted.")


def setup_parser(subparsers):
    """Setup the contents and projects subcommand parsers.

    Args:
        subparsers: The subparsers object from the main CLI
    """
    for command, (_, mode, _) in ITEM_COMMANDS.items():
        parser = subparsers.add_parser(
            command,
            help=f"Manage {command}",
            description=f"Create, list, and delete archived {command}",
        )
        item_subparsers = parser.add_subparsers(
            title="subcommands",
            description=f"Available {mode} commands",
            dest="subcommand",
            required=True,
        )

        create_parser = item_subparsers.add_parser("create", help=f"Create a {mode}")
        create_parser.add_argument("title", help="Title")
        create_parser.add_argument(
            "--category",
            action="append",
            required=True,
            metavar="CATEGORY_ID",
            help="Category to file under (repeatable)",
        )
        create_parser.add_argument("--description", help="Optional description")
        create_parser.set_defaults(func=cmd_create)

        list_parser = item_subparsers.add_parser("list", help=f"List {command}")
        list_parser.add_argument("--category", help="Only this category")
        list_parser.set_defaults(func=cmd_list)

        delete_parser = item_subparsers.add_parser("delete", help=f"Delete a {mode}")
        delete_parser.add_argument("item_id", help=f"ID of the {mode} to delete")
        delete_parser.set_defaults(func=cmd_delete)
