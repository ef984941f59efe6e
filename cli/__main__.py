#!/usr/bin/env python3
"""
adarchive CLI - manage the advertising asset archive's categories and items.

Usage:
    python -m cli <command> <subcommand> [options]

Commands:
    categories   Manage the category tree
    contents     Manage archived contents
    projects     Manage archived projects
    shares       Manage external share links
    bookmarks    Manage a user's bookmarks
    logs         Browse the activity log
    migrate      Database migrations

Examples:
    python -m cli migrate apply
    python -m cli categories init
    python -m cli categories tree --group HOLDING --mode project
    python -m cli contents create "Spring campaign poster" --category <id> --category <id>
    python -m cli shares create --project <id> --expires 2026-12-31T18:00+09:00
    python -m cli --user alice bookmarks add <content-id> --memo "for the deck"
    python -m cli logs list --action CREATE_CONTENT
"""

import sys
import argparse
from cli import bookmarks, categories, items, logs, migrate, shares
from config import load_config
from services.base import Services
from db.manager import DatabaseManager
from logger import get_logger, setup_logging

SERVICE_COMMANDS = (
    "categories",
    "contents",
    "projects",
    "shares",
    "bookmarks",
    "logs",
)


def build_parser():
    parser = argparse.ArgumentParser(
        prog="cli",
        description="adarchive - advertising asset archive",
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    parser.add_argument(
        "--user", help="User ID recorded in the activity log for this command"
    )

    subparsers = parser.add_subparsers(
        title="commands",
        description="Available commands",
        dest="command",
        required=True,
    )

    categories.setup_parser(subparsers)
    items.setup_parser(subparsers)
    shares.setup_parser(subparsers)
    bookmarks.setup_parser(subparsers)
    logs.setup_parser(subparsers)
    migrate.setup_parser(subparsers)
    return parser


def main():
    """Main CLI entry point with subcommands."""
    parser = build_parser()
    args = parser.parse_args()

    if not hasattr(args, "func"):
        parser.print_help()
        sys.exit(1)

    try:
        config = load_config()
        setup_logging(config)

        if args.command in SERVICE_COMMANDS:
            args.func(args, Services(config))
        elif args.command == "migrate":
            # Migrate commands need db_manager for raw database operations
            args.func(args, DatabaseManager(config))
        else:
            args.func(args)
    except Exception as e:
        get_logger().error(f"Error: {e}")
        sys.exit(1)


if __name__ == "__main__":
    main()
