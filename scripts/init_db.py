#!/usr/bin/env python3
"""Create the flow engine tables and history indexes in the configured database."""

import sys

from flowengine.config import load_config
from flowengine.core.logging import setup_logging
from flowengine.storage.database import create_tables, get_database_engine
from flowengine.storage.migrations import run_migrations


def main():
    """Initialize the database."""
    config = load_config()
    logger = setup_logging(level=config.log_level.value)

    try:
        logger.info(f"Initializing database at {config.database_url}")
        engine = get_database_engine(
            database_url=config.database_url,
            echo=config.database_echo
        )

        create_tables(engine)
        logger.info("Database tables created successfully")

        run_migrations(engine)
        logger.info("Database initialization completed")

    except Exception as e:
        logger.error(f"Database initialization failed: {e}")
        sys.exit(1)


if __name__ == "__main__":
    main()
