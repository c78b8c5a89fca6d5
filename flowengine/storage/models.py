"""SQLAlchemy database models for the flow engine."""

from datetime import datetime, timezone
from sqlalchemy import Boolean, Column, String, DateTime, Text, JSON, Float, Integer, ForeignKey
from sqlalchemy.orm import relationship
from .database import Base


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class WorkflowModel(Base):
    """Database model for workflows."""
    __tablename__ = "workflows"
    
    id = Column(String, primary_key=True)
    name = Column(String, nullable=False)
    description = Column(Text, default="")
    enabled = Column(Boolean, nullable=False, default=True)
    created_at = Column(DateTime, default=_utcnow)
    updated_at = Column(DateTime, default=_utcnow, onupdate=_utcnow)
    
    nodes = relationship("NodeModel", back_populates="workflow", cascade="all, delete-orphan")
    edges = relationship("EdgeModel", back_populates="workflow", cascade="all, delete-orphan")


class NodeModel(Base):
    """Database model for workflow nodes."""
    __tablename__ = "nodes"
    
    id = Column(String, primary_key=True)
    workflow_id = Column(String, ForeignKey("workflows.id"), nullable=False, index=True)
    sequence = Column(Integer, nullable=False, default=0)  # insertion order within the workflow
    node_type = Column(String, nullable=False)  # trigger, data, transform, action
    label = Column(String, nullable=False)
    config = Column(JSON, default=dict)
    position_x = Column(Float, default=0)
    position_y = Column(Float, default=0)
    created_at = Column(DateTime, default=_utcnow)
    updated_at = Column(DateTime, default=_utcnow, onupdate=_utcnow)
    
    workflow = relationship("WorkflowModel", back_populates="nodes")


class EdgeModel(Base):
    """Database model for directed edges between nodes."""
    __tablename__ = "edges"
    
    id = Column(String, primary_key=True)
    workflow_id = Column(String, ForeignKey("workflows.id"), nullable=False, index=True)
    sequence = Column(Integer, nullable=False, default=0)  # insertion order within the workflow
    source_node_id = Column(String, ForeignKey("nodes.id"), nullable=False)
    target_node_id = Column(String, ForeignKey("nodes.id"), nullable=False)
    created_at = Column(DateTime, default=_utcnow)
    
    workflow = relationship("WorkflowModel", back_populates="edges")


class ExecutionModel(Base):
    """Database model for execution records.

    ``workflow_id`` has no foreign key: a run against a missing workflow
    still gets its failed record.
    """
    __tablename__ = "executions"
    
    id = Column(String, primary_key=True)
    workflow_id = Column(String, nullable=False, index=True)
    status = Column(String, nullable=False)  # completed, failed
    error_message = Column(Text)
    execution_data = Column(JSON)
    execution_path = Column(JSON)  # List of visited node IDs
    started_at = Column(DateTime, nullable=False)
    ended_at = Column(DateTime, nullable=False)
