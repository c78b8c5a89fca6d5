"""In-memory graph store for testing and embedding.

Workflows, nodes and edges live in dictionaries and lists; nothing
survives the process. Edges are kept unvalidated, so graphs that the
relational store would refuse (dangling targets, cycles) can be built
directly.
"""

import uuid
from typing import Any, Dict, List, Optional

from ..models.core import Edge, ExecutionRecord, ExecutionStats, Node, Workflow
from .store import GraphStore, compute_stats


class InMemoryGraphStore(GraphStore):
    """Dictionary backed GraphStore."""

    def __init__(self):
        self._workflows: Dict[str, Workflow] = {}
        self._nodes: List[Node] = []
        self._edges: List[Edge] = []
        self.records: List[ExecutionRecord] = []

    def add_workflow(self, name: str = "workflow", enabled: bool = True, workflow_id: Optional[str] = None) -> Workflow:
        workflow = Workflow(id=workflow_id or str(uuid.uuid4()), name=name, enabled=enabled)
        self._workflows[workflow.id] = workflow
        return workflow

    def add_node(
        self,
        workflow_id: str,
        node_type: str,
        label: str = "",
        config: Optional[Dict[str, Any]] = None,
        node_id: Optional[str] = None,
    ) -> Node:
        node = Node(
            id=node_id or str(uuid.uuid4()),
            workflow_id=workflow_id,
            node_type=node_type,
            label=label or node_type,
            config=config or {},
        )
        self._nodes.append(node)
        return node

    def add_edge(self, workflow_id: str, source_node_id: str, target_node_id: str) -> Edge:
        edge = Edge(
            id=str(uuid.uuid4()),
            workflow_id=workflow_id,
            source_node_id=source_node_id,
            target_node_id=target_node_id,
        )
        self._edges.append(edge)
        return edge

    def load_workflow(self, workflow_id: str) -> Optional[Workflow]:
        return self._workflows.get(workflow_id)

    def load_nodes(self, workflow_id: str) -> List[Node]:
        return [node for node in self._nodes if node.workflow_id == workflow_id]

    def load_edges(self, workflow_id: str) -> List[Edge]:
        return [edge for edge in self._edges if edge.workflow_id == workflow_id]

    def append_execution_record(self, record: ExecutionRecord) -> None:
        self.records.append(record)

    def records_for(self, workflow_id: str) -> List[ExecutionRecord]:
        return [record for record in self.records if record.workflow_id == workflow_id]

    def get_execution_stats(self, workflow_id: str) -> ExecutionStats:
        return compute_stats([record.status.value for record in self.records_for(workflow_id)])
