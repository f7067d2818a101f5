"""
Command line interface for inspecting the sync layer.

Usage:
    python -m raidsync status
    python -m raidsync list race --raid-id 3
    python -m raidsync get user 42
    python -m raidsync token set <TOKEN>
"""

import argparse
import asyncio
import json
import logging
import sys
from typing import Optional

import httpx

from raidsync.client import RaidSyncClient, sync_session
from raidsync.core.config import Settings, configure_logging, get_settings
from raidsync.core.errors import SyncError
from raidsync.models.entities import ENTITY_TYPES, Entity
from raidsync.repositories.base import OutcomeKind, SyncOutcome

logger = logging.getLogger(__name__)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="raidsync", description="Raid sync client")
    parser.add_argument("-v", "--verbose", action="store_true", help="Verbose output")

    commands = parser.add_subparsers(dest="command", required=True)

    commands.add_parser("status", help="Show backend availability and session state")
    commands.add_parser("probe", help="Forget the cached verdict and probe the backend")

    list_cmd = commands.add_parser("list", help="List records of an entity kind")
    list_cmd.add_argument("entity", choices=sorted(ENTITY_TYPES))
    list_cmd.add_argument("--raid-id", type=int, help="Only races of this raid")

    get_cmd = commands.add_parser("get", help="Fetch one record")
    get_cmd.add_argument("entity", choices=sorted(ENTITY_TYPES))
    get_cmd.add_argument("id", type=int)

    token_cmd = commands.add_parser("token", help="Manage the session token")
    token_actions = token_cmd.add_subparsers(dest="action", required=True)
    token_set = token_actions.add_parser("set", help="Store a session token")
    token_set.add_argument("value")
    token_actions.add_parser("clear", help="Remove the session token")

    return parser


def _emit(record: Entity) -> None:
    print(json.dumps(record.to_record(), ensure_ascii=False))


def _note_source(outcome: SyncOutcome) -> None:
    if not outcome.from_remote and outcome.kind is not OutcomeKind.EMPTY:
        print(f"Backend unreachable ({outcome.error}), served from local cache", file=sys.stderr)


async def _dispatch(args: argparse.Namespace, client: RaidSyncClient) -> int:
    if args.command == "status":
        print(json.dumps(await client.get_status()))

    elif args.command == "probe":
        client.monitor.reset_cache()
        available = await client.monitor.check_availability()
        print(json.dumps({"available": available}))

    elif args.command == "list":
        if args.raid_id is not None and args.entity != "race":
            print("--raid-id only applies to races", file=sys.stderr)
            return 2
        repository = client.repository(args.entity)
        params = {"raid_id": args.raid_id} if args.raid_id is not None else None
        outcome = await repository.list_all_outcome(params)
        for record in outcome.unwrap():
            _emit(record)
        _note_source(outcome)

    elif args.command == "get":
        outcome = await client.repository(args.entity).get_by_id_outcome(args.id)
        record = outcome.unwrap()
        if record is None:
            print(f"{args.entity} {args.id} not found", file=sys.stderr)
            return 1
        _emit(record)
        _note_source(outcome)

    elif args.command == "token":
        if args.action == "set":
            client.save_token(args.value)
            print("Token saved")
        else:
            client.clear_token()
            print("Token cleared")

    return 0


async def run(
    args: argparse.Namespace,
    settings: Optional[Settings] = None,
    transport: Optional[httpx.AsyncBaseTransport] = None,
) -> int:
    """Execute a parsed command; returns the process exit code."""
    try:
        async with sync_session(settings, transport=transport) as client:
            return await _dispatch(args, client)
    except SyncError as e:
        logger.debug(f"{args.command} failed", exc_info=True)
        print(f"Error: {e}", file=sys.stderr)
        return 1


def main(argv: Optional[list[str]] = None) -> int:
    args = build_parser().parse_args(argv)

    settings = get_settings()
    if args.verbose:
        settings = settings.model_copy(update={"debug": True})
    configure_logging(settings)
    logger.debug(f"{settings.app_name} {settings.app_version} using {settings.api_base_url}")

    return asyncio.run(run(args, settings))


if __name__ == "__main__":
    sys.exit(main())
