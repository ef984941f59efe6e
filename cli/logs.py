#!/usr/bin/env python3

import json
from datetime import datetime
from logger import get_logger

logger = get_logger()


def _parse_datetime(value):
    """argparse type for ISO dates or datetimes."""
    return datetime.fromisoformat(value)


def cmd_list(args, services):
    """List recorded activity, newest first."""
    result = services.activity_logs.find(
        user_id=args.user_filter,
        action_type=args.action,
        start=args.start,
        end=args.end,
        page=args.page,
        page_size=args.page_size,
    )

    if not result.items:
        logger.info("No activity found.")
        return

    for entry in result.items:
        details = json.dumps(entry.details, ensure_ascii=False) if entry.details else ""
        logger.info(
            f"{entry.created_at:%Y-%m-%d %H:%M:%S}  {entry.action_type:<18} "
            f"{entry.user_id or '-':<12} {details}"
        )

    logger.info(
        f"\nPage {result.page}/{result.total_pages} ({result.total} entries)"
    )


def setup_parser(subparsers):
    """Setup logs subcommand parser.

    Args:
        subparsers: The subparsers object from the main CLI
    """
    parser = subparsers.add_parser(
        "logs",
        help="Activity logs",
        description="Browse the activity log",
    )

    logs_subparsers = parser.add_subparsers(
        title="subcommands",
        description="Available log commands",
        dest="subcommand",
        required=True,
    )

    list_parser = logs_subparsers.add_parser("list", help="List activity")
    list_parser.add_argument("--user-filter", help="Only this user's actions")
    list_parser.add_argument("--action", help="Only this action, e.g. CREATE_CATEGORY")
    list_parser.add_argument(
        "--start", type=_parse_datetime, help="From (ISO date, UTC unless it has an offset)"
    )
    list_parser.add_argument(
        "--end", type=_parse_datetime, help="Until (ISO date, UTC unless it has an offset)"
    )
    list_parser.add_argument("--page", type=int, default=1)
    list_parser.add_argument("--page-size", type=int, default=50)
    list_parser.set_defaults(func=cmd_list)
