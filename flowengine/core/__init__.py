"""Core flow engine components."""

from .exceptions import (
    WorkflowEngineError,
    RecordNotFoundError,
    WorkflowNotFoundError,
    WorkflowValidationError,
    EdgeValidationError,
    UnknownNodeTypeError,
    NodeExecutionError,
    CycleDetectedError,
    StorageError,
    ConfigurationError,
)
from .logging import setup_logging, get_logger
from .adjacency import AdjacencyMap, build_adjacency_map
from .context import ExecutionContext
from .handler_registry import NodeHandlerRegistry, create_default_registry
from .graph_walker import GraphWalker
from .execution_engine import ExecutionEngine

__all__ = [
    "WorkflowEngineError",
    "RecordNotFoundError",
    "WorkflowNotFoundError",
    "WorkflowValidationError",
    "EdgeValidationError",
    "UnknownNodeTypeError",
    "NodeExecutionError",
    "CycleDetectedError",
    "StorageError",
    "ConfigurationError",
    "setup_logging",
    "get_logger",
    "AdjacencyMap",
    "build_adjacency_map",
    "ExecutionContext",
    "NodeHandlerRegistry",
    "create_default_registry",
    "GraphWalker",
    "ExecutionEngine",
]
