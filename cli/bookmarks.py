#!/usr/bin/env python3

import sys
from logger import get_logger

logger = get_logger()


def _require_user(args):
    if not args.user:
        logger.error("Bookmarks belong to a user: pass --user before the command.")
        sys.exit(1)
    return args.user


def cmd_add(args, services):
    """Bookmark a content, or replace the memo of an existing bookmark."""
    user_id = _require_user(args)
    try:
        bookmark = services.bookmarks.add(user_id, args.content_id, args.memo)
    except ValueError as e:
        logger.error(f"Error adding bookmark: {e}")
        sys.exit(1)

    services.activity_logs.log(
        "ADD_BOOKMARK", {"id": bookmark.id, "content_id": bookmark.content_id}, user_id
    )
    logger.info(f"✓ Bookmarked '{bookmark.content_title}' (ID: {bookmark.id})")


def cmd_list(args, services):
    """List the user's bookmarks."""
    user_id = _require_user(args)
    bookmarks = services.bookmarks.find_all(user_id)

    if not bookmarks:
        logger.info("No bookmarks found.")
        return

    for bookmark in bookmarks:
        memo = f"  ({bookmark.memo})" if bookmark.memo else ""
        logger.info(f"{bookmark.id}  {bookmark.content_title}{memo}")
    logger.info(f"\nTotal bookmarks: {len(bookmarks)}")


def cmd_memo(args, services):
    """Change a bookmark's memo."""
    user_id = _require_user(args)
    bookmark = services.bookmarks.update_memo(args.bookmark_id, user_id, args.memo)

    services.activity_logs.log("UPDATE_BOOKMARK_MEMO", {"id": bookmark.id}, user_id)
    logger.info(f"✓ Memo updated for '{bookmark.content_title}'.")


def cmd_remove(args, services):
    """Remove a bookmark."""
    user_id = _require_user(args)
    if not services.bookmarks.remove(args.bookmark_id, user_id):
        logger.error(f"Bookmark with ID {args.bookmark_id} not found.")
        sys.exit(1)

    services.activity_logs.log("REMOVE_BOOKMARK", {"id": args.bookmark_id}, user_id)
    logger.info(f"✓ Bookmark {args.bookmark_id} removed.")


def setup_parser(subparsers):
    """Setup bookmarks subcommand parser.

    Args:
        subparsers: The subparsers object from the main CLI
    """
    parser = subparsers.add_parser(
        "bookmarks",
        help="Manage your bookmarks",
        description="Bookmark contents for the user given with --user",
    )

    bookmarks_subparsers = parser.add_subparsers(
        title="subcommands",
        description="Available bookmark commands",
        dest="subcommand",
        required=True,
    )

    add_parser = bookmarks_subparsers.add_parser("add", help="Bookmark a content")
    add_parser.add_argument("content_id", help="ID of the content to bookmark")
    add_parser.add_argument("--memo", help="Optional note")
    add_parser.set_defaults(func=cmd_add)

    list_parser = bookmarks_subparsers.add_parser("list", help="List your bookmarks")
    list_parser.set_defaults(func=cmd_list)

    memo_parser = bookmarks_subparsers.add_parser("memo", help="Change a bookmark's memo")
    memo_parser.add_argument("bookmark_id", help="ID of the bookmark")
    memo_parser.add_argument("memo", help="New memo (empty to clear)")
    memo_parser.set_defaults(func=cmd_memo)

    remove_parser = bookmarks_subparsers.add_parser("remove", help="Remove a bookmark")
    remove_parser.add_argument("bookmark_id", help="ID of the bookmark to remove")
    remove_parser.set_defaults(func=cmd_remove)
