"""Execution engine: runs one workflow from its trigger and records the outcome."""

import asyncio
import uuid
from typing import TYPE_CHECKING, List, Optional

from ..models.core import (
    ExecutionRecord,
    ExecutionStatusEnum,
    Node,
    NodeType,
    RunOutcome,
    utcnow,
)
from .adjacency import build_adjacency_map
from .context import ExecutionContext
from .exceptions import WorkflowNotFoundError, WorkflowValidationError
from .graph_walker import GraphWalker
from .handler_registry import NodeHandlerRegistry, create_default_registry
from .logging import get_logger, logging_context

if TYPE_CHECKING:
    from ..storage.store import GraphStore

logger = get_logger(__name__)


class ExecutionEngine:
    """Runs workflows loaded from a graph store.

    Each call to :meth:`run` owns its own context and walker, so several runs
    may be awaited concurrently on one engine. Every run ends with exactly one
    execution record handed to the store, whether it succeeded or not.
    """

    def __init__(self, store: "GraphStore", registry: Optional[NodeHandlerRegistry] = None):
        """Initialize the execution engine.

        Args:
            store: Graph store the workflow, nodes and edges are read from
            registry: Handler registry; the built-in handlers when omitted
        """
        self.store = store
        self.registry = registry or create_default_registry()

    async def run(self, workflow_id: str) -> RunOutcome:
        """
        Execute a workflow once.

        Failures never escape as exceptions; they are reported through the
        returned outcome and the stored execution record.

        Args:
            workflow_id: ID of the workflow to run

        Returns:
            RunOutcome with the context snapshot on success or the error on failure
        """
        execution_id = str(uuid.uuid4())
        started_at = utcnow()

        with logging_context(run_id=execution_id, workflow_id=workflow_id):
            logger.info(f"Starting workflow execution: {workflow_id}")
            context = ExecutionContext(execution_id)

            try:
                nodes, edges, trigger = await self._prepare(workflow_id)
                walker = GraphWalker(self.registry, nodes, build_adjacency_map(nodes, edges))
                await walker.walk(trigger, context)
            except Exception as e:
                ended_at = utcnow()
                error_message = str(e)
                logger.error(f"Workflow execution failed: {error_message}")
                await self._persist(ExecutionRecord(
                    id=execution_id,
                    workflow_id=workflow_id,
                    status=ExecutionStatusEnum.FAILED,
                    error_message=error_message,
                    started_at=started_at,
                    ended_at=ended_at,
                ))
                return RunOutcome(
                    success=False,
                    execution_id=execution_id,
                    workflow_id=workflow_id,
                    error=error_message,
                    started_at=started_at,
                    ended_at=ended_at,
                )

            ended_at = utcnow()
            execution_data = context.snapshot()
            execution_path = list(context.execution_path)
            await self._persist(ExecutionRecord(
                id=execution_id,
                workflow_id=workflow_id,
                status=ExecutionStatusEnum.COMPLETED,
                execution_data=execution_data,
                execution_path=execution_path,
                started_at=started_at,
                ended_at=ended_at,
            ))
            logger.info(f"Workflow execution completed: {len(execution_path)} node(s) executed")

            return RunOutcome(
                success=True,
                execution_id=execution_id,
                workflow_id=workflow_id,
                execution_data=execution_data,
                execution_path=execution_path,
                started_at=started_at,
                ended_at=ended_at,
            )

    async def _prepare(self, workflow_id: str):
        """Load the graph and find its single trigger node."""
        workflow = await asyncio.to_thread(self.store.load_workflow, workflow_id)
        if workflow is None:
            raise WorkflowNotFoundError(workflow_id)
        if not workflow.enabled:
            raise WorkflowValidationError("Workflow is disabled", workflow_id=workflow_id)

        nodes: List[Node] = await asyncio.to_thread(self.store.load_nodes, workflow_id)
        if not nodes:
            raise WorkflowValidationError("Workflow has no nodes", workflow_id=workflow_id)

        triggers = [node for node in nodes if node.node_type == NodeType.TRIGGER.value]
        if not triggers:
            raise WorkflowValidationError(
                "No trigger node found. Workflow must start with a trigger",
                workflow_id=workflow_id,
            )
        if len(triggers) > 1:
            raise WorkflowValidationError(
                "Workflow has multiple trigger nodes",
                workflow_id=workflow_id,
            ).add_details(trigger_node_ids=[node.id for node in triggers])

        edges = await asyncio.to_thread(self.store.load_edges, workflow_id)
        return nodes, edges, triggers[0]

    async def _persist(self, record: ExecutionRecord) -> None:
        # Losing the record must not change the run's outcome
        try:
            await asyncio.to_thread(self.store.append_execution_record, record)
        except Exception as e:
            logger.error(f"Failed to log execution {record.id}: {str(e)}")
