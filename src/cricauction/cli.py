"""Command-line interface for running and administering an auction."""

from __future__ import annotations

import argparse
import logging
import os
from pathlib import Path

import uvicorn

from cricauction.config import load_settings
from cricauction.ingest import PlayerCsvError, load_players_csv
from cricauction.persistence import AuctionStore
from cricauction.pool import export_results_to_csv


def _parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Cricket player auction service")
    parser.add_argument("--db", default=None, help="SQLite path (defaults to CRICAUCTION_DB_PATH)")
    subparsers = parser.add_subparsers(dest="command", required=True)

    serve = subparsers.add_parser("serve", help="Run the HTTP API")
    serve.add_argument("--host", default="127.0.0.1", help="Interface to bind")
    serve.add_argument("--port", type=int, default=8000, help="Port to bind")
    serve.add_argument("--reload", action="store_true", help="Reload on source changes")

    importer = subparsers.add_parser("import-players", help="Load players from a CSV file")
    importer.add_argument("csv_path", type=Path, help="Path to the player CSV")
    importer.add_argument(
        "--commit",
        action="store_true",
        help="Create valid and warning rows as players (default only reports)",
    )

    exporter = subparsers.add_parser("export-results", help="Write the auction results CSV")
    exporter.add_argument(
        "--output",
        type=Path,
        default=Path("auction-results.csv"),
        help="Output CSV path",
    )
    return parser.parse_args(argv)


def _serve(args: argparse.Namespace) -> int:
    # The app factory reads its settings from the environment.
    if args.db:
        os.environ["CRICAUCTION_DB_PATH"] = str(args.db)
    uvicorn.run(
        "cricauction.api:create_app",
        factory=True,
        host=args.host,
        port=args.port,
        reload=args.reload,
    )
    return 0


def _import_players(store: AuctionStore, args: argparse.Namespace) -> int:
    existing = [player.name for player in store.list_players()]
    try:
        report = load_players_csv(args.csv_path, existing_names=existing)
    except (OSError, PlayerCsvError) as exc:
        print(f"Could not read {args.csv_path}: {exc}")
        return 1

    for row in report.rows:
        if row.status != "valid":
            print(f"Line {row.line} ({row.name or 'unnamed'}): {row.status} - {row.message}")
    for message in report.rejected_lines:
        print(message)
    print(f"{report.valid} valid, {report.warnings} warning(s), {report.errors} error(s)")

    if args.commit:
        created = store.create_players(row.to_player_fields() for row in report.importable)
        print(f"Created {len(created)} player(s)")
    return 0


def _export_results(store: AuctionStore, args: argparse.Namespace) -> int:
    csv_text = export_results_to_csv(store.list_players(), store.list_teams())
    args.output.write_text(csv_text, encoding="utf-8", newline="")
    print(f"Wrote results to {args.output}")
    return 0


def main(argv: list[str] | None = None) -> int:
    logging.basicConfig(level=logging.INFO, format="%(levelname)s %(name)s: %(message)s")
    args = _parse_args(argv)
    if args.command == "serve":
        return _serve(args)

    settings = load_settings()
    store = AuctionStore(args.db or settings.db_path)
    try:
        if args.command == "import-players":
            return _import_players(store, args)
        return _export_results(store, args)
    finally:
        store.close()


if __name__ == "__main__":
    raise SystemExit(main())
