from __future__ import annotations

import sys
from pathlib import Path

import importlib

REPO_ROOT = Path(__file__).resolve().parents[1]
if str(REPO_ROOT) not in sys.path:
    sys.path.insert(0, str(REPO_ROOT))

from dotenv import load_dotenv

from config import get_settings_module

from src.easydoor.easydoor.common.logging_config import get_logger, setup_logging
from src.easydoor.easydoor.database.bootstrap import apply_schema, list_tables
from src.easydoor.easydoor.database.connection import DBConfig

logger = get_logger("easydoor.scripts.init_db")


def main() -> None:
    load_dotenv(override=False)
    settings = importlib.import_module(get_settings_module())
    setup_logging(getattr(settings, "LOG_LEVEL", "INFO"))
    db = DBConfig.from_mapping(settings.DB_CONFIG)

    schema_path = REPO_ROOT / "database" / "schema.sql"
    apply_schema(db, schema_path=schema_path)
    logger.info("Applied schema.sql -> %s (tables=%d)", db.describe(), len(list_tables(db)))


if __name__ == "__main__":
    main()
