"""Command-line entry point.

Thin layer over the container: parsing, printing and exit codes only.
"""

from __future__ import annotations

import argparse
import asyncio
import logging
import sys
from types import ModuleType
from typing import Optional, Sequence

from .common.datetime_utils import parse_iso_instant, to_iso, utc_now
from .common.logging_utils import configure_logging
from .container import Container, build_container
from .core.enums import ActionCode, SyncOutcome, SyncStatus
from .core.exceptions import DomainError, RemoteError, StoreError
from .records.capture import parse_badge_payload, suggest_action
from .records.history import filter_history, paginate
from .records.model import NewRecord
from .session.connectivity import ConnectivityMonitor, StaticConnectivity
from .settings import load_settings

logger = logging.getLogger(__name__)


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="attendance-sync", description="Offline-first attendance capture and sync")
    parser.add_argument("--offline", action="store_true", help="treat the device as offline")
    sub = parser.add_subparsers(dest="command", required=True)

    capture = sub.add_parser("capture", help="record an attendance event")
    capture.add_argument("--first-name")
    capture.add_argument("--last-name")
    capture.add_argument("--badge", help="decoded badge URL carrying the name fields")
    capture.add_argument("--action", choices=[a.value for a in ActionCode])
    capture.add_argument("--at", help="ISO-8601 capture instant (default: now)")

    listing = sub.add_parser("list", help="show locally stored records")
    group = listing.add_mutually_exclusive_group()
    group.add_argument("--pending", action="store_true")
    group.add_argument("--synced", action="store_true")
    listing.add_argument("--period", choices=["today", "week"])
    listing.add_argument("--search", default="")
    listing.add_argument("--page", type=int, default=1)

    sub.add_parser("pending-count", help="number of records waiting to sync")

    sync = sub.add_parser("sync", help="upload pending records")
    sync.add_argument("--id", type=int, dest="record_id", help="sync a single record")

    remote = sub.add_parser("remote-view", help="show organization-wide records")
    remote.add_argument("--refresh", action="store_true")
    remote.add_argument("--search", default="")
    remote.add_argument("--page", type=int, default=1)

    sub.add_parser("watch", help="keep syncing on a timer and on reconnect")
    return parser


def _new_record_from_args(args: argparse.Namespace, settings: ModuleType) -> NewRecord:
    timestamp = parse_iso_instant(args.at) if args.at else utc_now()
    first_name, last_name = args.first_name or "", args.last_name or ""
    if args.badge:
        first_name, last_name = parse_badge_payload(
            args.badge,
            first_name_field=settings.BADGE_FIRST_NAME_FIELD,
            last_name_field=settings.BADGE_LAST_NAME_FIELD,
        )
    action = ActionCode(args.action) if args.action else suggest_action(timestamp.astimezone())
    return NewRecord(first_name=first_name, last_name=last_name, action=action, timestamp=timestamp)


def _print_rows(rows) -> None:
    for r in rows:
        status = r.sync_status.value
        record_id = getattr(r, "record_id", "-")
        print(f"{record_id!s:>5}  {to_iso(r.timestamp)}  {r.action_label:<20}  {r.first_name} {r.last_name}  [{status}]")


async def _run(args: argparse.Namespace, container: Container, settings: ModuleType) -> int:
    if isinstance(container.connectivity, ConnectivityMonitor):
        await container.connectivity.check()

    if args.command == "capture":
        try:
            result = await container.orchestrator.capture(_new_record_from_args(args, settings))
        except StoreError as exc:
            print(f"Not saved: {exc}", file=sys.stderr)
            return 1
        rec = result.record
        if result.uploaded:
            print(f"{rec.action_label} recorded and uploaded for {rec.first_name} {rec.last_name}")
        elif result.outcome is None:
            print(f"{rec.action_label} recorded for {rec.first_name} {rec.last_name}. Will upload when online and signed in.")
        elif result.outcome == SyncOutcome.STORE_FAILURE:
            print(f"Record saved locally and uploaded, but not marked synced: {result.detail}")
        else:
            print(f"Record saved locally but upload failed: {result.detail}")
        return 0

    if args.command == "list":
        status = SyncStatus.PENDING if args.pending else SyncStatus.SYNCED if args.synced else None
        records = filter_history(await container.store.list_all(), status=status, period=args.period, search=args.search)
        page = paginate(records, page=args.page)
        _print_rows(page.items)
        print(f"page {page.page}/{page.total_pages} ({page.total_items} records)")
        return 0

    if args.command == "pending-count":
        print(await container.pending_counter.count())
        return 0

    if args.command == "sync":
        if args.record_id is not None:
            outcome = await container.orchestrator.run_single_sync(args.record_id)
            print(outcome.value)
            return 0 if outcome in (SyncOutcome.SYNCED, SyncOutcome.ALREADY_SYNCED) else 2
        result = await container.orchestrator.run_batch_sync()
        print(f"Synced {result.succeeded} records, {result.failed} failed")
        return 0 if result.failed == 0 else 2

    if args.command == "remote-view":
        try:
            records = await container.remote_view.get_remote_view(force_refresh=args.refresh)
        except RemoteError as exc:
            print(f"Failed to fetch organization records: {exc}", file=sys.stderr)
            return 2
        page = paginate(filter_history(records, search=args.search), page=args.page)
        _print_rows(page.items)
        print(f"page {page.page}/{page.total_pages} ({page.total_items} records)")
        return 0

    if args.command == "watch":
        container.scheduler.start()
        tasks = [container.scheduler.run()]
        if isinstance(container.connectivity, ConnectivityMonitor):
            tasks.append(container.connectivity.run())
        await container.scheduler.trigger()
        await asyncio.gather(*tasks)
        return 0

    return 1


async def _amain(args: argparse.Namespace, settings: ModuleType) -> int:
    connectivity = StaticConnectivity(online=False) if args.offline else None
    container = build_container(settings, connectivity=connectivity)
    await container.open()
    try:
        return await _run(args, container, settings)
    finally:
        await container.close()


def main(argv: Optional[Sequence[str]] = None) -> int:
    args = _build_parser().parse_args(argv)
    settings = load_settings()
    configure_logging(settings.LOG_LEVEL, log_file=settings.LOG_FILE or None)
    logger.debug("settings=%s db=%s", settings.__name__, settings.DATABASE_URL)

    try:
        return asyncio.run(_amain(args, settings))
    except DomainError as exc:
        print(f"Error: {exc}", file=sys.stderr)
        return 1
    except KeyboardInterrupt:
        return 130


if __name__ == "__main__":
    sys.exit(main())
