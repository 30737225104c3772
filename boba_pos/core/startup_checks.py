from __future__ import annotations

import logging
from pathlib import Path

from alembic.config import Config
from alembic.script import ScriptDirectory
from sqlalchemy import inspect

from boba_pos.core.config import ENV_NORMALIZED
from boba_pos.core.database import StorageClient

logger = logging.getLogger(__name__)
MIGRATIONS_PREFIX = "[MIGRATIONS]"
USAGE_LEDGER_TABLE = "inventory_usage"


def validate_database_environment(storage: StorageClient, env: str = ENV_NORMALIZED) -> None:
    if env in {"prod", "production"} and storage.is_sqlite:
        logger.critical("%s SQLite is forbidden in production", MIGRATIONS_PREFIX)
        raise RuntimeError("SQLite is forbidden in production environment")


def ensure_migrations_applied(
    storage: StorageClient,
    *,
    alembic_config_path: Path,
    env: str = ENV_NORMALIZED,
) -> None:
    if env == "test" or storage.is_sqlite:
        logger.info("%s skipped migration check env=%s", MIGRATIONS_PREFIX, env)
        return

    if not alembic_config_path.exists():
        logger.critical("%s alembic config not found path=%s", MIGRATIONS_PREFIX, alembic_config_path)
        raise RuntimeError("alembic config not found")

    alembic_cfg = Config(str(alembic_config_path))
    script_directory = ScriptDirectory.from_config(alembic_cfg)
    known_revisions = {revision.revision for revision in script_directory.walk_revisions()}

    with storage.engine.connect() as connection:
        inspector = inspect(connection)
        if "alembic_version" not in inspector.get_table_names():
            logger.critical("%s alembic_version table missing", MIGRATIONS_PREFIX)
            raise RuntimeError("Database has no migration state")

        current_rows = connection.exec_driver_sql("SELECT version_num FROM alembic_version").fetchall()

    current_heads = {row[0] for row in current_rows if row and row[0]}
    unknown = current_heads - known_revisions
    if not current_heads or unknown:
        logger.critical(
            "%s unexpected migration state current=%s",
            MIGRATIONS_PREFIX,
            sorted(current_heads),
        )
        raise RuntimeError("Unexpected migration state")

    expected_heads = set(script_directory.get_heads())
    if current_heads != expected_heads:
        # The usage ledger revision is optional; running without it only
        # disables detailed usage tracking.
        logger.warning(
            "%s database behind head current=%s expected=%s",
            MIGRATIONS_PREFIX,
            sorted(current_heads),
            sorted(expected_heads),
        )
    else:
        logger.info("%s migration state verified", MIGRATIONS_PREFIX)


def log_feature_state(storage: StorageClient) -> bool:
    enabled = storage.has_table(USAGE_LEDGER_TABLE)
    logger.info("%s usage ledger enabled=%s", MIGRATIONS_PREFIX, enabled)
    return enabled
