#!/usr/bin/env python3
from __future__ import annotations

import argparse
import sys
from pathlib import Path

ROOT = Path(__file__).resolve().parents[1]
sys.path.append(str(ROOT))

from boba_pos.core.config import DATABASE_URL  # noqa: E402
from boba_pos.core.database import StorageClient  # noqa: E402
from boba_pos.core.errors import DomainError  # noqa: E402
from boba_pos.services.seed import seed_catalog  # noqa: E402


def parse_args() -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Seed toppings, sample menu, ingredients and a first manager.")
    parser.add_argument("--database-url", default=DATABASE_URL, help="SQLAlchemy URL (default: DATABASE_URL)")
    parser.add_argument("--manager-email", help="Email of the first manager")
    parser.add_argument(
        "--create-schema",
        action="store_true",
        help="Create missing tables first (SQLite/dev only; use alembic elsewhere)",
    )
    return parser.parse_args()


def main() -> int:
    args = parse_args()
    storage = StorageClient(args.database_url)
    try:
        if args.create_schema:
            storage.create_all()
        db = storage.session()
        try:
            created = seed_catalog(db, manager_email=args.manager_email)
        except DomainError as exc:
            print(exc.message)
            return 1
        finally:
            db.close()
    finally:
        storage.dispose()

    summary = " ".join(f"{key}={value}" for key, value in created.items())
    print(f"Seed complete: {summary}")
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
