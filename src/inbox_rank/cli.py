"""Command-line interface for InboxRank.

This module provides the main entry point for the CLI application. Results
are written to stdout as JSON; logs go to stderr.
"""

from __future__ import annotations

import argparse
import asyncio
import json
import logging
import sys
from pathlib import Path

import structlog
from pydantic import TypeAdapter
from pydantic import ValidationError as PydanticValidationError

from inbox_rank import __version__
from inbox_rank.agent import TriageAgent
from inbox_rank.config import get_settings
from inbox_rank.models import Item, ItemSource, Priority
from inbox_rank.store import Contact, TriageRepository
from inbox_rank.triage.scoring import priority_description

logger = structlog.get_logger()

_ITEMS_ADAPTER = TypeAdapter(list[Item])

# Pending items considered per suggestion run, and how many are shown.
PENDING_LIMIT = 20
SUGGESTION_COUNT = 5


def _add_db_argument(parser: argparse.ArgumentParser) -> None:
    parser.add_argument(
        "--db",
        type=Path,
        default=None,
        help="Path to the SQLite store (default: settings store_db_path)",
    )


def _add_verbose_argument(parser: argparse.ArgumentParser) -> None:
    # SUPPRESS keeps a root-level -v from being reset by the subcommand default.
    parser.add_argument(
        "--verbose", "-v", action="store_true", default=argparse.SUPPRESS, help="Log per-item progress"
    )


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="inbox-rank", description="AI-powered inbox triage")
    parser.add_argument("--verbose", "-v", action="store_true", help="Log per-item progress")
    subparsers = parser.add_subparsers(dest="command", required=True)

    rank_parser = subparsers.add_parser("rank", help="Triage untriaged items")
    rank_parser.add_argument(
        "--source",
        "-s",
        choices=[s.value for s in ItemSource],
        default=None,
        help="Only triage items from this source",
    )
    rank_parser.add_argument(
        "--limit",
        "-l",
        type=int,
        default=None,
        help="Maximum items to process (default: settings default_limit)",
    )
    rank_parser.add_argument("--dry-run", "-n", action="store_true", help="Do not save results")
    rank_parser.add_argument("--quick-wins", action="store_true", help="Only output quick wins")
    _add_verbose_argument(rank_parser)
    _add_db_argument(rank_parser)

    suggest_parser = subparsers.add_parser("suggest", help="Suggest the next triaged items to act on")
    suggest_parser.add_argument(
        "--priority",
        "-p",
        choices=[p.value for p in Priority],
        default=None,
        help="Only items with this priority",
    )
    suggest_parser.add_argument(
        "--source",
        "-s",
        choices=[s.value for s in ItemSource],
        default=None,
        help="Only items from this source",
    )
    suggest_parser.add_argument("--quick-wins", action="store_true", help="Only suggest quick wins")
    suggest_parser.add_argument(
        "--limit",
        "-l",
        type=int,
        default=SUGGESTION_COUNT,
        help=f"Number of suggestions (default: {SUGGESTION_COUNT})",
    )
    _add_verbose_argument(suggest_parser)
    _add_db_argument(suggest_parser)

    import_parser = subparsers.add_parser("import", help="Load normalized items from a JSON file")
    import_parser.add_argument("file", type=Path, help="JSON array of items")
    _add_verbose_argument(import_parser)
    _add_db_argument(import_parser)

    vip_parser = subparsers.add_parser("vip", help="Manage VIP contacts")
    vip_sub = vip_parser.add_subparsers(dest="vip_command", required=True)
    vip_add = vip_sub.add_parser("add", help="Add or update a VIP contact")
    vip_add.add_argument("--id", required=True, help="Contact ID")
    vip_add.add_argument("--name", default=None)
    vip_add.add_argument("--email", default=None)
    vip_add.add_argument("--slack-user-id", default=None)
    vip_add.add_argument("--telegram-chat-id", default=None)
    vip_add.add_argument("--reason", default=None, help="Why this contact is a VIP")
    _add_verbose_argument(vip_add)
    _add_db_argument(vip_add)

    summary_parser = subparsers.add_parser("summary", help="Show stored triage counts")
    _add_verbose_argument(summary_parser)
    _add_db_argument(summary_parser)

    return parser


def _open_repository(args: argparse.Namespace) -> TriageRepository:
    db_path: Path = args.db or get_settings().store_db_path
    repo = TriageRepository(db_path)
    repo.initialize()
    return repo


async def _cmd_rank(args: argparse.Namespace) -> int:
    repo = _open_repository(args)
    agent = TriageAgent(repository=repo)

    run = await agent.run(
        source=args.source,
        limit=args.limit,
        dry_run=args.dry_run,
        verbose=args.verbose,
    )

    results = run.quick_wins() if args.quick_wins else run.results
    print(json.dumps([r.model_dump(mode="json") for r in results], indent=2))
    return 0


def _cmd_suggest(args: argparse.Namespace) -> int:
    repo = _open_repository(args)
    pending = repo.query_pending(priority=args.priority, source=args.source, limit=PENDING_LIMIT)
    candidates = pending
    if args.quick_wins:
        candidates = [(item, triage) for item, triage in pending if triage.quick_win]

    suggestions = [
        {
            "item_id": item.id,
            "subject": item.subject or "(no subject)",
            "from": item.sender.display_name,
            "source": item.source.value,
            "priority": triage.priority,
            "priority_description": priority_description(triage.priority),
            "category": triage.category,
            "suggested_action": triage.suggested_action,
            "quick_win": triage.quick_win,
            "estimated_time": triage.estimated_time,
        }
        for item, triage in candidates[: args.limit]
    ]
    print(json.dumps({"total_pending": len(pending), "suggestions": suggestions}, indent=2))
    return 0


def _cmd_import(args: argparse.Namespace) -> int:
    repo = _open_repository(args)
    try:
        items = _ITEMS_ADAPTER.validate_json(args.file.read_bytes())
    except (OSError, PydanticValidationError) as exc:
        logger.error("item_import_failed", file=str(args.file), error=str(exc))
        return 1

    repo.upsert_items(items)
    print(json.dumps({"imported": len(items)}))
    return 0


def _cmd_vip_add(args: argparse.Namespace) -> int:
    repo = _open_repository(args)
    repo.upsert_contact(
        Contact(
            id=args.id,
            name=args.name,
            email=args.email,
            slack_user_id=args.slack_user_id,
            telegram_chat_id=args.telegram_chat_id,
            is_vip=True,
            vip_reason=args.reason,
        )
    )
    print(json.dumps({"vip": args.id}))
    return 0


def _cmd_summary(args: argparse.Namespace) -> int:
    repo = _open_repository(args)
    print(repo.triage_summary().model_dump_json(indent=2))
    return 0


def main(args: list[str] | None = None) -> int:
    """Main entry point for the InboxRank CLI.

    Args:
        args: Command-line arguments. If None, uses sys.argv.

    Returns:
        Exit code (0 for success, non-zero for failure).
    """
    if args is None:
        args = sys.argv[1:]

    settings = get_settings()
    parser = _build_parser()
    parsed = parser.parse_args(args)

    # Configure logging
    level_name = "DEBUG" if parsed.verbose else settings.log_level.upper()
    structlog.configure(
        wrapper_class=structlog.make_filtering_bound_logger(
            getattr(logging, level_name, logging.INFO)
        ),
        logger_factory=structlog.PrintLoggerFactory(file=sys.stderr),
    )

    logger.info("inbox_rank_started", version=__version__, debug=settings.debug)

    if parsed.command == "rank":
        return asyncio.run(_cmd_rank(parsed))
    if parsed.command == "suggest":
        return _cmd_suggest(parsed)
    if parsed.command == "import":
        return _cmd_import(parsed)
    if parsed.command == "vip" and parsed.vip_command == "add":
        return _cmd_vip_add(parsed)
    if parsed.command == "summary":
        return _cmd_summary(parsed)

    logger.error("unknown_command", command=parsed.command)
    return 2


if __name__ == "__main__":
    sys.exit(main())
