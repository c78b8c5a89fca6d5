"""Graph store adapters: the narrow interface the engine reads and writes through."""

import uuid
from abc import ABC, abstractmethod
from contextlib import contextmanager
from typing import Any, Callable, Dict, Iterator, List, Optional
from sqlalchemy import func, or_
from sqlalchemy.orm import Session
from sqlalchemy.exc import SQLAlchemyError

from ..models.core import (
    Edge,
    ExecutionRecord,
    ExecutionStats,
    ExecutionStatusEnum,
    Node,
    Workflow,
)
from ..core.exceptions import (
    EdgeValidationError,
    RecordNotFoundError,
    StorageError,
    WorkflowNotFoundError,
)
from ..core.logging import get_logger
from .database import SessionLocal, get_database_engine
from .models import EdgeModel, ExecutionModel, NodeModel, WorkflowModel

logger = get_logger(__name__)


class GraphStore(ABC):
    """Collaborator interface consumed by the execution engine."""

    @abstractmethod
    def load_workflow(self, workflow_id: str) -> Optional[Workflow]:
        """Return the workflow, or None when it does not exist."""

    @abstractmethod
    def load_nodes(self, workflow_id: str) -> List[Node]:
        """Return the workflow's nodes in insertion order."""

    @abstractmethod
    def load_edges(self, workflow_id: str) -> List[Edge]:
        """Return the workflow's edges in insertion order."""

    @abstractmethod
    def append_execution_record(self, record: ExecutionRecord) -> None:
        """Persist one execution record. Raises StorageError on failure."""


def compute_stats(statuses: List[str]) -> ExecutionStats:
    """Aggregate a list of execution statuses into counts and a success rate."""
    total = len(statuses)
    completed = statuses.count(ExecutionStatusEnum.COMPLETED.value)
    return ExecutionStats(
        total=total,
        completed=completed,
        failed=statuses.count(ExecutionStatusEnum.FAILED.value),
        running=statuses.count(ExecutionStatusEnum.RUNNING.value),
        success_rate=round(completed / total * 100, 2) if total else 0.0,
    )


class SqlAlchemyGraphStore(GraphStore):
    """Relational graph store backed by SQLAlchemy.

    Besides the engine interface it carries the CRUD operations the HTTP
    layer uses for workflows, nodes, edges and execution history.
    """

    def __init__(self, session_factory: Optional[Callable[[], Session]] = None):
        """Initialize the store.

        Args:
            session_factory: Optional callable returning new sessions. Defaults
                to the module level SessionLocal bound to the global engine.
        """
        self._session_factory = session_factory

    @contextmanager
    def _session(self, operation: str) -> Iterator[Session]:
        if self._session_factory is not None:
            session = self._session_factory()
        else:
            get_database_engine()
            session = SessionLocal()
        try:
            yield session
        except SQLAlchemyError as e:
            session.rollback()
            logger.error(f"Database error during {operation}: {str(e)}")
            raise StorageError(f"Failed to {operation}: {str(e)}", operation=operation)
        finally:
            session.close()

    # Engine interface

    def load_workflow(self, workflow_id: str) -> Optional[Workflow]:
        with self._session("load workflow") as db:
            model = db.get(WorkflowModel, workflow_id)
            return Workflow.model_validate(model) if model else None

    def load_nodes(self, workflow_id: str) -> List[Node]:
        with self._session("load nodes") as db:
            models = (
                db.query(NodeModel)
                .filter(NodeModel.workflow_id == workflow_id)
                .order_by(NodeModel.sequence)
                .all()
            )
            return [Node.model_validate(model) for model in models]

    def load_edges(self, workflow_id: str) -> List[Edge]:
        with self._session("load edges") as db:
            models = (
                db.query(EdgeModel)
                .filter(EdgeModel.workflow_id == workflow_id)
                .order_by(EdgeModel.sequence)
                .all()
            )
            return [Edge.model_validate(model) for model in models]

    def append_execution_record(self, record: ExecutionRecord) -> None:
        with self._session("append execution record") as db:
            db.add(ExecutionModel(
                id=record.id,
                workflow_id=record.workflow_id,
                status=record.status.value,
                error_message=record.error_message,
                execution_data=record.execution_data,
                execution_path=record.execution_path,
                started_at=record.started_at,
                ended_at=record.ended_at,
            ))
            db.commit()
            logger.debug(f"Stored execution record {record.id} ({record.status.value})")

    # Workflows

    def create_workflow(self, name: str, description: str = "", enabled: bool = True) -> Workflow:
        with self._session("create workflow") as db:
            model = WorkflowModel(
                id=str(uuid.uuid4()),
                name=name,
                description=description or "",
                enabled=enabled,
            )
            db.add(model)
            db.commit()
            db.refresh(model)
            logger.info(f"Created workflow '{name}' with ID: {model.id}")
            return Workflow.model_validate(model)

    def list_workflows(self) -> List[Workflow]:
        with self._session("list workflows") as db:
            models = db.query(WorkflowModel).order_by(WorkflowModel.created_at.desc()).all()
            return [Workflow.model_validate(model) for model in models]

    def update_workflow(self, workflow_id: str, updates: Dict[str, Any]) -> Optional[Workflow]:
        with self._session("update workflow") as db:
            model = db.get(WorkflowModel, workflow_id)
            if not model:
                return None
            for field in ("name", "description", "enabled"):
                if updates.get(field) is not None:
                    setattr(model, field, updates[field])
            db.commit()
            db.refresh(model)
            return Workflow.model_validate(model)

    def delete_workflow(self, workflow_id: str) -> bool:
        """Delete a workflow together with its nodes, edges and execution history."""
        with self._session("delete workflow") as db:
            model = db.get(WorkflowModel, workflow_id)
            if not model:
                logger.warning(f"Workflow with ID '{workflow_id}' not found for deletion")
                return False
            db.query(EdgeModel).filter(EdgeModel.workflow_id == workflow_id).delete(synchronize_session=False)
            db.query(ExecutionModel).filter(ExecutionModel.workflow_id == workflow_id).delete(synchronize_session=False)
            db.delete(model)
            db.commit()
            logger.info(f"Deleted workflow with ID: {workflow_id}")
            return True

    # Nodes

    def create_node(
        self,
        workflow_id: str,
        node_type: str,
        label: str,
        config: Optional[Dict[str, Any]] = None,
        position_x: float = 0,
        position_y: float = 0,
    ) -> Node:
        with self._session("create node") as db:
            if not db.get(WorkflowModel, workflow_id):
                raise WorkflowNotFoundError(workflow_id)
            sequence = self._next_sequence(db, NodeModel, workflow_id)
            model = NodeModel(
                id=str(uuid.uuid4()),
                workflow_id=workflow_id,
                sequence=sequence,
                node_type=node_type,
                label=label,
                config=config or {},
                position_x=position_x or 0,
                position_y=position_y or 0,
            )
            db.add(model)
            db.commit()
            db.refresh(model)
            return Node.model_validate(model)

    def get_node(self, node_id: str) -> Optional[Node]:
        with self._session("get node") as db:
            model = db.get(NodeModel, node_id)
            return Node.model_validate(model) if model else None

    def update_node(self, node_id: str, updates: Dict[str, Any]) -> Optional[Node]:
        with self._session("update node") as db:
            model = db.get(NodeModel, node_id)
            if not model:
                return None
            for field in ("label", "config", "position_x", "position_y"):
                if updates.get(field) is not None:
                    setattr(model, field, updates[field])
            db.commit()
            db.refresh(model)
            return Node.model_validate(model)

    def delete_node(self, node_id: str) -> bool:
        """Delete a node and every edge touching it."""
        with self._session("delete node") as db:
            model = db.get(NodeModel, node_id)
            if not model:
                return False
            db.query(EdgeModel).filter(
                or_(EdgeModel.source_node_id == node_id, EdgeModel.target_node_id == node_id)
            ).delete(synchronize_session=False)
            db.delete(model)
            db.commit()
            return True

    # Edges

    def create_edge(self, workflow_id: str, source_node_id: str, target_node_id: str) -> Edge:
        """Connect two nodes of one workflow.

        Raises:
            EdgeValidationError: For self-loops and duplicate connections
            RecordNotFoundError: If the workflow or either node is missing
        """
        if source_node_id == target_node_id:
            raise EdgeValidationError(
                "Cannot connect a node to itself",
                source_node_id=source_node_id,
                target_node_id=target_node_id,
            )

        with self._session("create edge") as db:
            if not db.get(WorkflowModel, workflow_id):
                raise WorkflowNotFoundError(workflow_id)

            found = (
                db.query(func.count(NodeModel.id))
                .filter(
                    NodeModel.workflow_id == workflow_id,
                    NodeModel.id.in_([source_node_id, target_node_id]),
                )
                .scalar()
            )
            if found != 2:
                raise RecordNotFoundError("One or both nodes not found in this workflow", resource="node")

            existing = (
                db.query(EdgeModel)
                .filter(
                    EdgeModel.source_node_id == source_node_id,
                    EdgeModel.target_node_id == target_node_id,
                )
                .first()
            )
            if existing:
                raise EdgeValidationError(
                    "Connection already exists between these nodes",
                    source_node_id=source_node_id,
                    target_node_id=target_node_id,
                )

            model = EdgeModel(
                id=str(uuid.uuid4()),
                workflow_id=workflow_id,
                sequence=self._next_sequence(db, EdgeModel, workflow_id),
                source_node_id=source_node_id,
                target_node_id=target_node_id,
            )
            db.add(model)
            db.commit()
            db.refresh(model)
            return Edge.model_validate(model)

    def get_edge(self, edge_id: str) -> Optional[Edge]:
        with self._session("get edge") as db:
            model = db.get(EdgeModel, edge_id)
            return Edge.model_validate(model) if model else None

    def delete_edge(self, edge_id: str) -> bool:
        with self._session("delete edge") as db:
            model = db.get(EdgeModel, edge_id)
            if not model:
                return False
            db.delete(model)
            db.commit()
            return True

    def get_connected_nodes(self, node_id: str, workflow_id: str) -> List[Node]:
        """Nodes reachable from ``node_id`` through one outgoing edge."""
        with self._session("get connected nodes") as db:
            models = (
                db.query(NodeModel)
                .join(EdgeModel, EdgeModel.target_node_id == NodeModel.id)
                .filter(
                    EdgeModel.source_node_id == node_id,
                    EdgeModel.workflow_id == workflow_id,
                )
                .order_by(EdgeModel.sequence)
                .all()
            )
            return [Node.model_validate(model) for model in models]

    # Execution history

    def list_executions(self, workflow_id: str, limit: int = 10, offset: int = 0) -> List[ExecutionRecord]:
        with self._session("list executions") as db:
            models = (
                db.query(ExecutionModel)
                .filter(ExecutionModel.workflow_id == workflow_id)
                .order_by(ExecutionModel.started_at.desc())
                .offset(offset)
                .limit(limit)
                .all()
            )
            return [ExecutionRecord.model_validate(model) for model in models]

    def get_execution(self, execution_id: str) -> Optional[ExecutionRecord]:
        with self._session("get execution") as db:
            model = db.get(ExecutionModel, execution_id)
            return ExecutionRecord.model_validate(model) if model else None

    def get_execution_stats(self, workflow_id: str) -> ExecutionStats:
        with self._session("get execution stats") as db:
            rows = (
                db.query(ExecutionModel.status)
                .filter(ExecutionModel.workflow_id == workflow_id)
                .all()
            )
            return compute_stats([row[0] for row in rows])

    @staticmethod
    def _next_sequence(db: Session, model_class, workflow_id: str) -> int:
        current = (
            db.query(func.max(model_class.sequence))
            .filter(model_class.workflow_id == workflow_id)
            .scalar()
        )
        return (current or 0) + 1
