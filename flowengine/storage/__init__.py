"""Database models and storage layer."""

from .database import Base, get_database_engine, build_engine, create_tables, drop_tables
from .models import WorkflowModel, NodeModel, EdgeModel, ExecutionModel
from .store import GraphStore, SqlAlchemyGraphStore
from .memory import InMemoryGraphStore

__all__ = [
    "Base",
    "get_database_engine",
    "build_engine",
    "create_tables",
    "drop_tables",
    "WorkflowModel",
    "NodeModel",
    "EdgeModel",
    "ExecutionModel",
    "GraphStore",
    "SqlAlchemyGraphStore",
    "InMemoryGraphStore",
]
