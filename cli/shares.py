#!/usr/bin/env python3

import sys
from datetime import datetime
from logger import get_logger

logger = get_logger()


def _parse_datetime(value):
    """argparse type for ISO dates or datetimes."""
    return datetime.fromisoformat(value)


def _describe(share):
    expires = f"{share.expires_at:%Y-%m-%d %H:%M} UTC" if share.expires_at else "never"
    status = "active" if share.is_active else "inactive"
    return (
        f"{share.id}  {share.share_url}  {status}  expires: {expires}  "
        f"projects: {len(share.project_ids)}  views: {share.view_count}"
    )


def cmd_create(args, services):
    """Create a share link for one or more projects."""
    try:
        share = services.shares.create(args.project, args.expires, args.user)
    except ValueError as e:
        logger.error(f"Error creating share: {e}")
        sys.exit(1)

    services.activity_logs.log(
        "CREATE_EXTERNAL_SHARE",
        {"id": share.id, "share_id": share.share_id, "project_ids": share.project_ids},
        args.user,
    )
    logger.info(f"\n✓ Share created: {share.share_url}")
    logger.info(f"  ID: {share.id}")
    if share.expires_at:
        logger.info(f"  Expires: {share.expires_at:%Y-%m-%d %H:%M:%S} UTC")


def cmd_list(args, services):
    """List share links."""
    shares = services.shares.find_all(args.active, args.expired)

    if not shares:
        logger.info("No shares found.")
        return

    for share in shares:
        logger.info(_describe(share))
    logger.info(f"\nTotal shares: {len(shares)}")


def cmd_show(args, services):
    """Show one share link with its projects."""
    share = services.shares.find(args.share_pk)
    if not share:
        logger.error(f"Share with ID {args.share_pk} not found.")
        sys.exit(1)

    logger.info(_describe(share))
    for project_id in share.project_ids:
        project = services.projects.find(project_id)
        logger.info(f"  - {project.title if project else project_id}")


def cmd_update(args, services):
    """Change a share's expiry, slug or projects."""
    try:
        share = services.shares.update(
            args.share_pk,
            expires_at=args.expires,
            clear_expiry=args.no_expiry,
            share_id=args.share_id,
            project_ids=args.project,
        )
    except ValueError as e:
        logger.error(f"Error updating share: {e}")
        sys.exit(1)

    services.activity_logs.log(
        "UPDATE_EXTERNAL_SHARE",
        {
            "id": share.id,
            "expires_at": f"{share.expires_at:%Y-%m-%d %H:%M:%S}" if share.expires_at else None,
            "share_id": share.share_id,
        },
        args.user,
    )
    logger.info(f"✓ Share updated: {_describe(share)}")


def cmd_deactivate(args, services):
    """Turn a share link off."""
    if not services.shares.find(args.share_pk):
        logger.error(f"Share with ID {args.share_pk} not found.")
        sys.exit(1)

    share = services.shares.deactivate(args.share_pk)
    services.activity_logs.log("DEACTIVATE_EXTERNAL_SHARE", {"id": share.id}, args.user)
    logger.info(f"✓ Share {share.share_url} deactivated.")


def cmd_delete(args, services):
    """Delete a share link."""
    if not services.shares.delete(args.share_pk):
        logger.error(f"Share with ID {args.share_pk} not found.")
        sys.exit(1)

    services.activity_logs.log("DELETE_EXTERNAL_SHARE", {"id": args.share_pk}, args.user)
    logger.info(f"✓ Share {args.share_pk} deleted.")


def cmd_open(args, services):
    """Open a share link the way an outside viewer would."""
    try:
        share = services.shares.access(args.share_id)
    except ValueError as e:
        logger.error(str(e))
        sys.exit(1)

    for project_id in share.project_ids:
        project = services.projects.find(project_id)
        if project:
            logger.info(project.title)
    logger.info(f"\nViews: {share.view_count}")


def setup_parser(subparsers):
    """Setup shares subcommand parser.

    Args:
        subparsers: The subparsers object from the main CLI
    """
    parser = subparsers.add_parser(
        "shares",
        help="Manage external share links",
        description="Create, list, update, and deactivate links that share projects",
    )

    shares_subparsers = parser.add_subparsers(
        title="subcommands",
        description="Available share commands",
        dest="subcommand",
        required=True,
    )

    create_parser = shares_subparsers.add_parser("create", help="Create a share link")
    create_parser.add_argument(
        "--project",
        action="append",
        required=True,
        metavar="PROJECT_ID",
        help="Project to share (repeatable)",
    )
    create_parser.add_argument(
        "--expires",
        type=_parse_datetime,
        help="Expiry (ISO datetime, UTC unless it has an offset)",
    )
    create_parser.set_defaults(func=cmd_create)

    list_parser = shares_subparsers.add_parser("list", help="List share links")
    active = list_parser.add_mutually_exclusive_group()
    active.add_argument("--active", dest="active", action="store_true")
    active.add_argument("--inactive", dest="active", action="store_false")
    expired = list_parser.add_mutually_exclusive_group()
    expired.add_argument("--expired", dest="expired", action="store_true")
    expired.add_argument("--not-expired", dest="expired", action="store_false")
    list_parser.set_defaults(func=cmd_list, active=None, expired=None)

    show_parser = shares_subparsers.add_parser("show", help="Show a share link")
    show_parser.add_argument("share_pk", metavar="ID", help="Share ID")
    show_parser.set_defaults(func=cmd_show)

    update_parser = shares_subparsers.add_parser("update", help="Update a share link")
    update_parser.add_argument("share_pk", metavar="ID", help="Share ID")
    expiry = update_parser.add_mutually_exclusive_group()
    expiry.add_argument("--expires", type=_parse_datetime, help="New expiry")
    expiry.add_argument("--no-expiry", action="store_true", help="Remove the expiry")
    update_parser.add_argument("--share-id", help="New URL slug (4-20 letters and digits)")
    update_parser.add_argument(
        "--project",
        action="append",
        metavar="PROJECT_ID",
        help="Replace the shared projects (repeatable)",
    )
    update_parser.set_defaults(func=cmd_update)

    deactivate_parser = shares_subparsers.add_parser(
        "deactivate", help="Turn a share link off"
    )
    deactivate_parser.add_argument("share_pk", metavar="ID", help="Share ID")
    deactivate_parser.set_defaults(func=cmd_deactivate)

    delete_parser = shares_subparsers.add_parser("delete", help="Delete a share link")
    delete_parser.add_argument("share_pk", metavar="ID", help="Share ID")
    delete_parser.set_defaults(func=cmd_delete)

    open_parser = shares_subparsers.add_parser(
        "open", help="Open a share link by its URL slug"
    )
    open_parser.add_argument("share_id", metavar="SLUG", help="Share URL slug")
    open_parser.set_defaults(func=cmd_open)
