"""Data models for the flow engine."""

from .core import (
    NodeType,
    ExecutionStatusEnum,
    Workflow,
    Node,
    Edge,
    TriggerConfig,
    DataConfig,
    TransformConfig,
    ActionConfig,
    TriggerEnvelope,
    DataEnvelope,
    TransformEnvelope,
    ActionEnvelope,
    ExecutionRecord,
    RunOutcome,
    ExecutionStats,
    utcnow,
)

__all__ = [
    "NodeType",
    "ExecutionStatusEnum",
    "Workflow",
    "Node",
    "Edge",
    "TriggerConfig",
    "DataConfig",
    "TransformConfig",
    "ActionConfig",
    "TriggerEnvelope",
    "DataEnvelope",
    "TransformEnvelope",
    "ActionEnvelope",
    "ExecutionRecord",
    "RunOutcome",
    "ExecutionStats",
    "utcnow",
]
