from __future__ import annotations

import importlib
import logging

from config import get_settings_module

from attendance_engine.core.logging import configure_logging
from attendance_engine.database.bootstrap import apply_schema, list_tables
from attendance_engine.database.connection import DBConfig, DatabaseConnection
from attendance_engine.main import SCHEMA_PATH

logger = logging.getLogger("init_db")


def main() -> None:
    settings = importlib.import_module(get_settings_module())
    configure_logging(getattr(settings, "LOG_LEVEL", "INFO"))
    config = DBConfig.from_mapping(settings.DB_CONFIG)
    conn = DatabaseConnection.get_instance(config)

    apply_schema(conn, schema_path=SCHEMA_PATH)
    tables = list_tables(conn)
    logger.info(
        "Applied schema.sql -> %s@%s:%s/%s (tables=%d)",
        config.user,
        config.host,
        config.port,
        config.database,
        len(tables),
    )


if __name__ == "__main__":
    main()
