"""Export one user's data to JSON, or import such a snapshot back."""

from __future__ import annotations

import argparse
import asyncio
import logging
import sys
from pathlib import Path

from momentum.config import StoreSettings
from momentum.db import schemas
from momentum.db.record_store import RecordStore
from momentum.errors import StoreError
from momentum.services import ProductivityService


logger = logging.getLogger("momentum.scripts.momentum_backup")


def parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Back up or restore a Momentum user")
    parser.add_argument(
        "--database-url",
        default=None,
        help="SQLAlchemy URL of the store (default: MOMENTUM_DATABASE_URL or ~/.momentum/momentum.db)",
    )
    sub = parser.add_subparsers(dest="command", required=True)

    export = sub.add_parser("export", help="Write a user's snapshot as JSON")
    export.add_argument("user_id", type=int)
    export.add_argument("output", type=Path)

    restore = sub.add_parser("import", help="Upsert a JSON snapshot into the store")
    restore.add_argument("input", type=Path)
    return parser.parse_args(argv)


def _settings(database_url: str | None) -> StoreSettings:
    settings = StoreSettings.from_env()
    if database_url:
        settings = StoreSettings(
            database_url=database_url,
            echo=settings.echo,
            auto_create_schema=settings.auto_create_schema,
        )
    return settings


async def export_user(settings: StoreSettings, user_id: int, output: Path) -> int:
    async with RecordStore(settings) as store:
        snapshot = await ProductivityService(store).export_user_data(user_id)
    output.write_text(snapshot.model_dump_json(indent=2), encoding="utf-8")
    print(f"Exported user {user_id}: {len(snapshot.tasks)} tasks, {len(snapshot.milestones)} milestones -> {output}")
    return 0


async def import_snapshot(settings: StoreSettings, source: Path) -> int:
    snapshot = schemas.UserDataExport.model_validate_json(source.read_text(encoding="utf-8"))
    async with RecordStore(settings) as store:
        await ProductivityService(store).import_user_data(snapshot)
    print(f"Imported user {snapshot.user.id}: {len(snapshot.tasks)} tasks, {len(snapshot.milestones)} milestones")
    return 0


def main(argv: list[str] | None = None) -> int:
    if not logging.getLogger().handlers:
        logging.basicConfig(level=logging.INFO, format="%(asctime)s %(levelname)s %(name)s: %(message)s")
    args = parse_args(argv)
    settings = _settings(args.database_url)
    try:
        if args.command == "export":
            return asyncio.run(export_user(settings, args.user_id, args.output))
        return asyncio.run(import_snapshot(settings, args.input))
    except StoreError as e:
        print(f"{type(e).__name__}: {e}", file=sys.stderr)
        logger.error(f"Backup command '{args.command}' failed: {e}")
        return 1


if __name__ == "__main__":  # pragma: no cover - manual execution path
    sys.exit(main())
