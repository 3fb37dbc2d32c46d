# ruff: noqa: T201

from __future__ import annotations

import argparse
import logging
import sys
import time
from datetime import UTC, date, datetime
from pathlib import Path
from signal import SIGINT, signal
from typing import TYPE_CHECKING
from uuid import UUID

from dotenv import load_dotenv

from vehicle_custody.adapters.notifications import LoggingNotifier, UnavailableNotifier
from vehicle_custody.adapters.registry_file import import_registry, load_registry_file
from vehicle_custody.adapters.transcripts import read_transcript, source_kind_for
from vehicle_custody.app import (
    Assignment,
    build_context,
    check_processing,
    commit_batch,
    list_transfers,
    review_transcript,
    run_alert_tick,
)
from vehicle_custody.config import ConfigurationError, configure_logging, get_alert_config
from vehicle_custody.domain.extraction.normalize import normalize_plate
from vehicle_custody.domain.model import CanonicalDriver, CanonicalVehicle, Role, SourceKind

if TYPE_CHECKING:
    from collections.abc import Callable, Sequence
    from types import FrameType

    from vehicle_custody.app import ReviewResult
    from vehicle_custody.config import AlertConfig
    from vehicle_custody.domain.context import CustodyContext
    from vehicle_custody.domain.model import RawLine, ReconciledTransfer
    from vehicle_custody.domain.ports import Notifier

log = logging.getLogger(__name__)

_DATE_LAYOUTS = ("%Y-%m-%d", "%d/%m/%Y")
_ROLE_ALIASES = {
    "vehicle": Role.VEHICLE,
    "from": Role.FROM_DRIVER,
    "from_driver": Role.FROM_DRIVER,
    "to": Role.TO_DRIVER,
    "to_driver": Role.TO_DRIVER,
}
_ASSIGN_HELP = (
    "Resolve one role of a transcript line by hand: LINE:ROLE:ID, where LINE is "
    "a line number or label:number as printed by review, ROLE is vehicle, from "
    "or to, and ID comes from 'registry list'. Repeatable."
)


def _parse_args(argv: Sequence[str]) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Track vehicle custody transfers from chats")
    parser.add_argument(
        "--notifier",
        choices=("log", "queue"),
        default="log",
        help="log: write notifications to the log; queue: store them for manual sending",
    )
    subparsers = parser.add_subparsers(dest="command", required=True)

    review = subparsers.add_parser("review", help="Extract and reconcile transfers")
    review.add_argument("files", nargs="+", type=Path, help="Chat export (.txt) or table (.csv)")
    review.add_argument("--assign", action="append", default=[], help=_ASSIGN_HELP)

    commit = subparsers.add_parser("commit", help="Record a processed batch for a date")
    commit.add_argument("files", nargs="+", type=Path, help="Chat export (.txt) or table (.csv)")
    commit.add_argument("--date", required=True, help="Processing date (YYYY-MM-DD)")
    commit.add_argument("--assign", action="append", default=[], help=_ASSIGN_HELP)
    commit.add_argument(
        "--force",
        action="store_true",
        help="Record the batch even when nothing changed since the last record",
    )

    check = subparsers.add_parser("check", help="Report the processing status of a date")
    check.add_argument("--date", required=True, help="Date to check (YYYY-MM-DD)")

    alerts = subparsers.add_parser("alerts", help="Missing-processing alerts")
    alerts_sub = alerts.add_subparsers(dest="alerts_command", required=True)
    tick = alerts_sub.add_parser("tick", help="Evaluate yesterday and today once")
    tick.add_argument("--now", help="ISO-8601 timestamp to evaluate at (defaults to now)")
    watch = alerts_sub.add_parser("watch", help="Evaluate periodically")
    watch.add_argument(
        "--iterations",
        type=int,
        help="Stop after this many ticks (runs until interrupted otherwise)",
    )
    watch.add_argument(
        "--interval",
        type=int,
        help="Seconds between ticks (defaults to VEHICLE_CUSTODY_ALERT_INTERVAL)",
    )

    transfers = subparsers.add_parser("transfers", help="Committed custody history")
    transfers_sub = transfers.add_subparsers(dest="transfers_command", required=True)
    transfers_list = transfers_sub.add_parser("list", help="List transfers committed for a date")
    transfers_list.add_argument("--date", required=True, help="Processing date (YYYY-MM-DD)")

    pending = subparsers.add_parser("pending", help="Notifications queued for manual sending")
    pending_sub = pending.add_subparsers(dest="pending_command", required=True)
    pending_sub.add_parser("list", help="List queued notifications")
    pending_sub.add_parser("resend", help="Try to deliver every queued notification again")

    registry = subparsers.add_parser("registry", help="Canonical vehicles and drivers")
    registry_sub = registry.add_subparsers(dest="registry_command", required=True)
    add_vehicle = registry_sub.add_parser("add-vehicle", help="Register a vehicle plate")
    add_vehicle.add_argument("plate")
    add_driver = registry_sub.add_parser("add-driver", help="Register a driver")
    add_driver.add_argument("name")
    registry_import = registry_sub.add_parser("import", help="Import a JSON registry file")
    registry_import.add_argument("file", type=Path)
    registry_sub.add_parser("list", help="List registered vehicles and drivers")

    return parser.parse_args(list(argv))


def _parse_date(value: str) -> date:
    text = value.strip()
    for layout in _DATE_LAYOUTS:
        try:
            return datetime.strptime(text, layout).date()  # noqa: DTZ007
        except ValueError:
            continue
    raise ValueError(f"Invalid date: {value}")


def _parse_iso_datetime(value: str) -> datetime:
    try:
        normalized = value.strip()
        if normalized.endswith("Z"):
            normalized = normalized[:-1] + "+00:00"
        dt = datetime.fromisoformat(normalized)
    except ValueError as exc:
        raise ValueError(f"Invalid ISO timestamp: {value}") from exc
    if dt.tzinfo is None:
        dt = dt.replace(tzinfo=UTC)
    return dt


def _parse_assignment(value: str) -> Assignment:
    parts = value.rsplit(":", 2)
    if len(parts) != 3 or not parts[0].strip():
        raise ValueError(f"Invalid assignment (expected LINE:ROLE:ID): {value}")
    line_ref, role_name, registry_id = (part.strip() for part in parts)
    role = _ROLE_ALIASES.get(role_name.lower())
    if role is None:
        raise ValueError(f"Invalid assignment role {role_name!r} in: {value}")
    try:
        return Assignment(line_ref=line_ref, role=role, registry_id=UUID(registry_id))
    except ValueError as exc:
        raise ValueError(f"Invalid registry id in assignment: {value}") from exc


def _validate(args: argparse.Namespace) -> None:
    if args.command in {"commit", "check", "transfers"}:
        args.date = _parse_date(args.date)
    if args.command in {"review", "commit"}:
        args.assign = [_parse_assignment(value) for value in args.assign]
        for path in args.files:
            if not path.is_file():
                raise ValueError(f"No such file: {path}")
    if args.command == "alerts":
        if args.alerts_command == "tick" and args.now:
            args.now = _parse_iso_datetime(args.now)
        if args.alerts_command == "watch":
            if args.iterations is not None and args.iterations <= 0:
                raise ValueError("--iterations must be positive")
            if args.interval is not None and args.interval <= 0:
                raise ValueError("--interval must be positive")


def _load_alert_config(*, required: bool) -> AlertConfig | None:
    try:
        return get_alert_config()
    except ConfigurationError:
        if required:
            raise
        log.debug("Alert configuration unavailable; alerts disabled for this command")
        return None


def _build_notifier(name: str) -> Notifier:
    return UnavailableNotifier() if name == "queue" else LoggingNotifier()


def _read_lines(files: Sequence[Path]) -> list[RawLine]:
    lines: list[RawLine] = []
    for path in files:
        lines.extend(read_transcript(path))
    return lines


def _batch_source_kind(files: Sequence[Path]) -> SourceKind:
    kinds = {source_kind_for(path) for path in files}
    return kinds.pop() if len(kinds) == 1 else SourceKind.MANUAL


def _describe_transfer(transfer: ReconciledTransfer) -> str:
    candidate = transfer.candidate
    vehicle = transfer.vehicle_match.plate if transfer.vehicle_match else "?"
    receiver = transfer.to_driver_match.name if transfer.to_driver_match else "?"
    stamp = (
        candidate.timestamp.isoformat(sep=" ", timespec="minutes") if candidate.timestamp else "-"
    )
    status = "ok" if transfer.is_valid else "review"
    line = (
        f"{candidate.source_label}:{candidate.line_number} [{status}] {stamp} "
        f"{candidate.vehicle_token} ({vehicle}) -> {candidate.to_driver_token} ({receiver}) "
        f"{candidate.pattern_id} {candidate.confidence:.2f}"
    )
    hints: list[str] = []
    if transfer.suggestions.vehicle:
        hints.append("vehicle? " + ", ".join(v.plate for v in transfer.suggestions.vehicle))
    if transfer.suggestions.to_driver:
        hints.append("driver? " + ", ".join(d.name for d in transfer.suggestions.to_driver))
    if hints:
        line += "\n    " + "; ".join(hints)
    return line


def _print_review(review: ReviewResult) -> None:
    for transfer in review.transfers:
        print(_describe_transfer(transfer))
    print(
        f"lines={review.extraction.lines_seen} candidates={len(review.transfers)} "
        f"valid={len(review.valid)} review={len(review.invalid)} "
        f"duplicates={review.extraction.duplicates_collapsed}"
    )


def _run_review(context: CustodyContext, args: argparse.Namespace) -> None:
    _print_review(
        review_transcript(context, _read_lines(args.files), assignments=args.assign)
    )


def _run_commit(context: CustodyContext, args: argparse.Namespace) -> None:
    review = review_transcript(context, _read_lines(args.files), assignments=args.assign)
    result = commit_batch(
        context,
        args.date,
        review,
        file_labels=[path.name for path in args.files],
        source_kind=_batch_source_kind(args.files),
        force=args.force,
    )
    report = result.report
    print(f"recommendation={report.recommendation.value} recorded={result.recorded}")
    for change in report.changes:
        print(f"  {change.describe()}")
    if result.record is not None:
        print(f"fingerprint={result.record.fingerprint}")
        print(f"transfers={len(result.transfers)}")


def _run_check(context: CustodyContext, args: argparse.Namespace) -> None:
    status = check_processing(context, args.date)
    print(
        f"date={status.date.isoformat()} processed={status.processed} "
        f"should_alert={status.should_alert}"
    )
    if status.last_record is not None:
        record = status.last_record
        print(
            f"last recorded {record.recorded_at.isoformat(timespec='seconds')}: "
            f"{record.transfers_processed} transfers, files={', '.join(record.file_labels)}"
        )


def _run_alerts(
    context: CustodyContext,
    args: argparse.Namespace,
    alert_config: AlertConfig,
    *,
    sleep: Callable[[float], None] = time.sleep,
) -> None:
    if args.alerts_command == "tick":
        result = run_alert_tick(context, now=args.now)
        print(
            f"checked={', '.join(d.isoformat() for d in result.checked)} "
            f"sent={len(result.sent)} queued={len(result.queued)} errors={len(result.errors)}"
        )
        return

    interval = args.interval or alert_config.check_interval_seconds
    ticks = 0
    while args.iterations is None or ticks < args.iterations:
        if ticks:
            sleep(interval)
        result = run_alert_tick(context)
        ticks += 1
        for error in result.errors:
            log.error("Alert tick error: %s", error)


def _run_transfers(context: CustodyContext, args: argparse.Namespace) -> None:
    snapshot = context.registry_snapshot()
    plates = {vehicle.id: vehicle.plate for vehicle in snapshot.vehicles}
    names = {driver.id: driver.name for driver in snapshot.drivers}
    transfers = list_transfers(context, args.date)
    for transfer in transfers:
        stamp = (
            transfer.transferred_at.isoformat(sep=" ", timespec="minutes")
            if transfer.transferred_at
            else "-"
        )
        giver = names.get(transfer.from_driver_id, "?") if transfer.from_driver_id else "-"
        print(
            f"{transfer.source_label}:{transfer.line_number} {stamp} "
            f"{plates.get(transfer.vehicle_id, '?')} {giver} -> "
            f"{names.get(transfer.to_driver_id, '?')}"
        )
    print(f"date={args.date.isoformat()} transfers={len(transfers)}")


def _run_pending(context: CustodyContext, args: argparse.Namespace) -> None:
    if args.pending_command == "list":
        queued = context.dispatcher.pending()
        for notification in queued:
            print(
                f"{notification.id} {notification.kind.value} {notification.recipient} "
                f"attempts={notification.attempts} {notification.subject}"
            )
            if notification.error:
                print(f"    error: {notification.error}")
        print(f"pending={len(queued)}")
        return

    result = context.dispatcher.resend_pending()
    print(f"sent={len(result.sent)} failed={len(result.failed)}")


def _run_registry(context: CustodyContext, args: argparse.Namespace) -> None:
    command = args.registry_command
    if command == "import":
        result = import_registry(load_registry_file(args.file), context.registry_uow_factory)
        print(
            f"vehicles_added={result.vehicles_added} drivers_added={result.drivers_added} "
            f"skipped={result.skipped}"
        )
        return
    if command == "list":
        snapshot = context.registry_snapshot()
        names = {driver.id: driver.name for driver in snapshot.drivers}
        for vehicle in snapshot.vehicles:
            holder = names.get(vehicle.current_driver_id, "?") if vehicle.current_driver_id else "-"
            print(f"vehicle {vehicle.id} {vehicle.plate} held_by={holder}")
        for driver in snapshot.drivers:
            print(f"driver  {driver.id} {driver.name}")
        return

    with context.registry_uow_factory() as uow:
        if command == "add-vehicle":
            plate = normalize_plate(args.plate)
            if not plate:
                raise ValueError(f"Invalid plate: {args.plate}")
            if uow.repositories.vehicles.get_by_plate(plate) is not None:
                raise ValueError(f"Vehicle already registered: {plate}")
            entry: CanonicalVehicle | CanonicalDriver = CanonicalVehicle(plate=plate)
            uow.repositories.vehicles.add(entry)
        else:
            name = " ".join(args.name.split())
            if not name:
                raise ValueError("Driver name must not be empty")
            if uow.repositories.drivers.get_by_name(name) is not None:
                raise ValueError(f"Driver already registered: {name}")
            entry = CanonicalDriver(name=name)
            uow.repositories.drivers.add(entry)
        uow.commit()
    log.info("Registered %s %s", command.removeprefix("add-"), entry.id)
    print(entry.id)


def main(argv: Sequence[str] | None = None) -> None:
    """Main application entry point."""
    parsed_args: argparse.Namespace
    args_list = list(argv) if argv is not None else list(sys.argv[1:])
    try:
        configure_logging()
        parsed_args = _parse_args(args_list)
        _validate(parsed_args)
        alert_config = _load_alert_config(required=parsed_args.command == "alerts")
    except (ValueError, ConfigurationError):
        log.exception("CLI validation error")
        sys.exit(2)

    try:
        context = build_context(
            alert_config=alert_config,
            notifier=_build_notifier(parsed_args.notifier),
        )
        if parsed_args.command == "review":
            _run_review(context, parsed_args)
        elif parsed_args.command == "commit":
            _run_commit(context, parsed_args)
        elif parsed_args.command == "check":
            _run_check(context, parsed_args)
        elif parsed_args.command == "alerts" and alert_config is not None:
            _run_alerts(context, parsed_args, alert_config)
        elif parsed_args.command == "transfers":
            _run_transfers(context, parsed_args)
        elif parsed_args.command == "pending":
            _run_pending(context, parsed_args)
        elif parsed_args.command == "registry":
            _run_registry(context, parsed_args)
        else:
            raise ValueError(f"Unsupported command: {parsed_args.command}")  # noqa: TRY301

    except Exception:
        log.exception("Fatal error while running %s", parsed_args.command)
        sys.exit(1)


def sigint_handler(_signal_received: int, _frame: FrameType | None) -> None:
    """Handle SIGINT (Ctrl+C) gracefully."""
    log.info("Closed by user (Ctrl+C)")
    sys.exit(0)


def run() -> None:
    load_dotenv()
    signal(SIGINT, sigint_handler)
    main()


if __name__ == "__main__":
    run()
