"""Core Pydantic models for the flow engine."""

from datetime import datetime, timezone
from enum import Enum
from typing import Any, Dict, List, Optional
from pydantic import BaseModel, ConfigDict, Field, field_validator


def utcnow() -> datetime:
    """Current time as a timezone-aware UTC datetime."""
    return datetime.now(timezone.utc)


class NodeType(str, Enum):
    """Node categories the engine knows how to execute."""
    TRIGGER = "trigger"
    DATA = "data"
    TRANSFORM = "transform"
    ACTION = "action"


class ExecutionStatusEnum(str, Enum):
    """Enumeration of workflow execution statuses."""
    RUNNING = "running"
    COMPLETED = "completed"
    FAILED = "failed"


class Workflow(BaseModel):
    """A named, enableable container for one node/edge graph."""
    model_config = ConfigDict(from_attributes=True)

    id: str = Field(..., description="Workflow ID")
    name: str = Field(..., description="Workflow name")
    description: str = Field(default="", description="Workflow description")
    enabled: bool = Field(default=True, description="Whether the workflow may run")
    created_at: Optional[datetime] = Field(None, description="Creation timestamp")
    updated_at: Optional[datetime] = Field(None, description="Last update timestamp")


class Node(BaseModel):
    """A typed unit of work in a workflow graph.

    ``node_type`` is a plain string. Values outside
    :class:`NodeType` are accepted here and fail the run when the node is
    dispatched.
    """
    model_config = ConfigDict(from_attributes=True)

    id: str = Field(..., description="Node ID")
    workflow_id: str = Field(..., description="Owning workflow ID")
    node_type: str = Field(..., description="Node category")
    label: str = Field(default="", description="Display label")
    config: Dict[str, Any] = Field(default_factory=dict, description="Category specific configuration")
    position_x: float = Field(default=0, description="Editor X position")
    position_y: float = Field(default=0, description="Editor Y position")
    created_at: Optional[datetime] = Field(None, description="Creation timestamp")
    updated_at: Optional[datetime] = Field(None, description="Last update timestamp")

    @field_validator('config', mode='before')
    @classmethod
    def default_config(cls, config):
        """Treat a missing configuration as empty."""
        return config if config is not None else {}


class Edge(BaseModel):
    """A directed connection between two nodes of the same workflow."""
    model_config = ConfigDict(from_attributes=True)

    id: str = Field(..., description="Edge ID")
    workflow_id: str = Field(..., description="Owning workflow ID")
    source_node_id: str = Field(..., description="Source node ID")
    target_node_id: str = Field(..., description="Target node ID")
    created_at: Optional[datetime] = Field(None, description="Creation timestamp")


# Typed views over Node.config. Unknown keys are kept and values pass through
# unchanged, whatever their JSON type.

class TriggerConfig(BaseModel):
    """Configuration of a trigger node."""
    model_config = ConfigDict(extra="allow")

    type: Optional[Any] = Field(None, description="Informational trigger kind, \"scheduled\" when unset")


class DataConfig(BaseModel):
    """Configuration of a data node."""
    model_config = ConfigDict(extra="allow")

    source: Optional[Any] = Field(None, description="Data source name")
    location: Optional[Any] = Field(None, description="Location for weather lookups")
    calendar_id: Optional[Any] = Field(None, description="Calendar to read")
    repository: Optional[Any] = Field(None, description="Repository for code host lookups")


class TransformConfig(BaseModel):
    """Configuration of a transform node."""
    model_config = ConfigDict(extra="allow")

    type: Optional[Any] = Field(None, description="Transform kind")


class ActionConfig(BaseModel):
    """Configuration of an action node."""
    model_config = ConfigDict(extra="allow")

    type: Optional[Any] = Field(None, description="Action kind")
    to: Optional[Any] = Field(None, description="Email recipient")
    subject: Optional[Any] = Field(None, description="Email subject")
    phone: Optional[Any] = Field(None, description="SMS recipient")
    platform: Optional[Any] = Field(None, description="Social platform to post on")
    message: Optional[Any] = Field(None, description="Message body")


# Result envelopes

class TriggerEnvelope(BaseModel):
    """Result of a trigger node."""
    type: str = Field(default=NodeType.TRIGGER.value)
    trigger_type: str
    config: Dict[str, Any] = Field(default_factory=dict)
    triggered_at: datetime = Field(default_factory=utcnow)


class DataEnvelope(BaseModel):
    """Result of a data node."""
    type: str = Field(default=NodeType.DATA.value)
    source: Optional[Any] = None
    data: Dict[str, Any] = Field(default_factory=dict)
    fetched_at: datetime = Field(default_factory=utcnow)


class TransformEnvelope(BaseModel):
    """Result of a transform node."""
    type: str = Field(default=NodeType.TRANSFORM.value)
    transform_type: Optional[Any] = None
    result: Dict[str, Any] = Field(default_factory=dict)
    transformed_at: datetime = Field(default_factory=utcnow)


class ActionEnvelope(BaseModel):
    """Result of an action node."""
    type: str = Field(default=NodeType.ACTION.value)
    action_type: Optional[Any] = None
    result: Dict[str, Any] = Field(default_factory=dict)
    action_time: datetime = Field(default_factory=utcnow)


class ExecutionRecord(BaseModel):
    """Immutable record of one run, written once through the store."""
    model_config = ConfigDict(from_attributes=True, frozen=True)

    id: str = Field(..., description="Execution ID")
    workflow_id: str = Field(..., description="Workflow that was run")
    status: ExecutionStatusEnum = Field(..., description="Terminal status")
    error_message: Optional[str] = Field(None, description="Error message if the run failed")
    execution_data: Optional[Dict[str, Any]] = Field(None, description="Context snapshot on success")
    execution_path: Optional[List[str]] = Field(None, description="Visited node IDs on success")
    started_at: datetime = Field(..., description="Run start")
    ended_at: datetime = Field(..., description="Run end")


class RunOutcome(BaseModel):
    """Caller-visible result of ExecutionEngine.run."""
    success: bool
    execution_id: str
    workflow_id: str
    execution_data: Optional[Dict[str, Any]] = None
    error: Optional[str] = None
    execution_path: List[str] = Field(default_factory=list)
    started_at: datetime
    ended_at: datetime


class ExecutionStats(BaseModel):
    """Aggregate outcome counts for one workflow."""
    total: int = 0
    completed: int = 0
    failed: int = 0
    running: int = 0
    success_rate: float = 0.0
