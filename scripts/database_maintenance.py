#!/usr/bin/env python3
"""
Database maintenance script for the props backend.

Runs the same maintenance services as the admin API, with system privilege
(no admin gate). Intended for operators holding the service account.

Usage:
    python scripts/database_maintenance.py health-check
    python scripts/database_maintenance.py cleanup emails --days 30             # Dry run
    python scripts/database_maintenance.py cleanup emails --days 30 --execute   # Delete
    python scripts/database_maintenance.py storage-orphans --max-files 500      # Dry run
"""

import argparse
import asyncio
import json
import logging
import os
import sys
from pathlib import Path

# Add parent directory to path for imports
sys.path.insert(0, str(Path(__file__).parent.parent))

from dotenv import load_dotenv

# Load environment variables
load_dotenv()

logging.basicConfig(
    level=getattr(logging, os.getenv("LOG_LEVEL", "INFO").upper(), logging.INFO),
    format='%(asctime)s - %(levelname)s - %(message)s'
)
logger = logging.getLogger(__name__)

from src.constants import DEFAULT_CONCURRENCY, DEFAULT_MAX_FILES
from src.core.exceptions import ServiceError
from src.maintenance.policies import CLEANUP_POLICIES
from src.maintenance.service import (
    get_maintenance_service,
    validate_cleanup_request,
    validate_storage_request,
)


def print_json(title: str, payload: dict) -> None:
    print("\n" + "-" * 60)
    print(title)
    print("-" * 60)
    print(json.dumps(payload, indent=2, default=str))


# =============================================================================
# COMMANDS
# =============================================================================

async def cmd_health_check() -> None:
    service = get_maintenance_service()
    report = await service.build_health_report()
    print_json("Database health report", report.model_dump(by_alias=True))


async def cmd_cleanup(collection: str, days: int, execute: bool) -> None:
    policy, days_old, dry_run = validate_cleanup_request(collection, days, not execute)
    service = get_maintenance_service()
    result = await service.run_manual_cleanup(policy, days_old, dry_run)
    print_json("Cleanup result", result.model_dump(by_alias=True, exclude_none=True))

    if dry_run:
        print("\nTo delete these documents, run:")
        print(f"  python scripts/database_maintenance.py cleanup {collection} --days {days} --execute")


async def cmd_storage_orphans(max_files: int, concurrency: int, execute: bool) -> None:
    dry_run, max_files, concurrency = validate_storage_request(not execute, max_files, concurrency)
    service = get_maintenance_service()
    result = await service.reconcile_storage(dry_run, max_files, concurrency)
    print_json("Storage reconciliation", result.model_dump(by_alias=True))


# =============================================================================
# MAIN
# =============================================================================

def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="Database maintenance for the props backend",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Commands:
  health-check      Show totals and cleanup opportunities per collection
  cleanup           Delete aged documents from an allow-listed collection
  storage-orphans   Report (and optionally delete) unreferenced storage objects

Destructive commands are dry runs unless --execute is given.
        """
    )
    parser.add_argument(
        "--backend",
        choices=["firestore", "memory"],
        help="Document store backend (overrides DOCUMENT_STORE_BACKEND)"
    )
    parser.add_argument(
        "--verbose", "-v",
        action="store_true",
        help="Enable verbose logging"
    )

    commands = parser.add_subparsers(dest="command", required=True)

    commands.add_parser("health-check", help="Show database health report")

    cleanup = commands.add_parser("cleanup", help="Clean an allow-listed collection")
    cleanup.add_argument("collection", choices=sorted(CLEANUP_POLICIES), help="Collection to clean")
    cleanup.add_argument("--days", type=int, default=30, help="Minimum age in days (1-365)")
    cleanup.add_argument(
        "--execute", "-e",
        action="store_true",
        help="Actually delete (default is dry run)"
    )

    orphans = commands.add_parser("storage-orphans", help="Reconcile storage with document references")
    orphans.add_argument("--max-files", type=int, default=DEFAULT_MAX_FILES, help="Objects to list (1-10000)")
    orphans.add_argument("--concurrency", type=int, default=DEFAULT_CONCURRENCY, help="Parallel storage calls (1-50)")
    orphans.add_argument(
        "--execute", "-e",
        action="store_true",
        help="Delete orphaned objects (default is dry run)"
    )
    return parser


def main(argv=None) -> int:
    args = build_parser().parse_args(argv)

    if args.verbose:
        logging.getLogger().setLevel(logging.DEBUG)
    if args.backend:
        os.environ["DOCUMENT_STORE_BACKEND"] = args.backend

    print("\n" + "=" * 60)
    print("Props Backend - Database Maintenance")
    print("=" * 60)
    print(f"Document store: {os.getenv('DOCUMENT_STORE_BACKEND', 'firestore')}")

    try:
        if args.command == "health-check":
            asyncio.run(cmd_health_check())
        elif args.command == "cleanup":
            asyncio.run(cmd_cleanup(args.collection, args.days, args.execute))
        elif args.command == "storage-orphans":
            asyncio.run(cmd_storage_orphans(args.max_files, args.concurrency, args.execute))
    except ServiceError as e:
        logger.error(f"{e.code}: {e.message}")
        return 1
    return 0


if __name__ == "__main__":
    sys.exit(main())
