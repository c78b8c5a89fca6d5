"""Database migrations for execution history queries."""

from typing import Optional
from sqlalchemy import Engine, text
from .database import get_database_engine
from ..core.logging import get_logger

logger = get_logger(__name__)


HISTORY_INDEXES = {
    # History listing: newest runs of one workflow first
    "idx_executions_workflow_started": "executions(workflow_id, started_at DESC)",
    # Stats: status counts per workflow
    "idx_executions_workflow_status": "executions(workflow_id, status)",
    # Graph loading in insertion order
    "idx_nodes_workflow_sequence": "nodes(workflow_id, sequence)",
    "idx_edges_workflow_sequence": "edges(workflow_id, sequence)",
}


def create_indexes_for_history_queries(engine: Optional[Engine] = None):
    """Create database indexes used by graph loading and execution history."""
    engine = engine or get_database_engine()
    try:
        with engine.connect() as connection:
            for name, target in HISTORY_INDEXES.items():
                connection.execute(text(f"CREATE INDEX IF NOT EXISTS {name} ON {target}"))
            connection.commit()
            logger.info(f"Created {len(HISTORY_INDEXES)} database indexes for history queries")
            
    except Exception as e:
        logger.error(f"Failed to create database indexes: {str(e)}")
        raise


def optimize_sqlite(engine: Optional[Engine] = None):
    """Enable WAL mode so history reads do not block execution writes."""
    engine = engine or get_database_engine()
    if engine.dialect.name != "sqlite":
        return
    try:
        with engine.connect() as connection:
            connection.execute(text("PRAGMA journal_mode=WAL"))
            connection.commit()
            logger.info("Applied SQLite optimizations")
    except Exception as e:
        logger.error(f"Failed to optimize database: {str(e)}")
        raise


def run_migrations(engine: Optional[Engine] = None):
    """Run all migrations."""
    logger.info("Starting database migrations")
    create_indexes_for_history_queries(engine)
    optimize_sqlite(engine)
    logger.info("Database migrations completed successfully")
