"""Depth-first traversal of a workflow graph."""

import inspect
from typing import Any, Dict, Iterable, List, Tuple

from ..models.core import Node
from .adjacency import AdjacencyMap
from .context import ExecutionContext
from .exceptions import CycleDetectedError, NodeExecutionError, WorkflowEngineError
from .handler_registry import NodeHandlerRegistry
from .logging import get_logger

logger = get_logger(__name__)


class GraphWalker:
    """Walks a workflow graph from its trigger, dispatching each node to its handler.

    Visitation is depth-first pre-order with successors taken in adjacency
    list order. The walk runs on an explicit stack, so graph depth is not
    bounded by the interpreter's recursion limit.

    A node with several incoming paths is executed once per path and its
    context entry is overwritten each time. Reaching a node that is already
    on the current path raises CycleDetectedError.
    """
    
    def __init__(self, registry: NodeHandlerRegistry, nodes: Iterable[Node], adjacency: AdjacencyMap):
        self.registry = registry
        self.adjacency = adjacency
        self._nodes_by_id: Dict[str, Node] = {}
        for node in nodes:
            self._nodes_by_id.setdefault(node.id, node)
    
    async def walk(self, start: Node, context: ExecutionContext) -> None:
        """
        Execute ``start`` and everything reachable from it.
        
        Args:
            start: Node to begin at, normally the trigger
            context: Run context that receives every envelope
            
        Raises:
            UnknownNodeTypeError: If a visited node has no registered handler
            NodeExecutionError: If a handler fails
            CycleDetectedError: If the edges loop back onto the current path
        """
        # Each entry carries the ancestors on the path that reached it
        stack: List[Tuple[Node, Tuple[str, ...]]] = [(start, ())]
        
        while stack:
            node, ancestors = stack.pop()
            
            if node.id in ancestors:
                cycle = list(ancestors[ancestors.index(node.id):]) + [node.id]
                logger.error(f"Cycle detected in run {context.run_id}: {' -> '.join(cycle)}")
                raise CycleDetectedError(cycle).add_context(run_id=context.run_id)
            
            envelope = await self.execute_node(node, context)
            context.record(node.id, envelope)
            
            path = ancestors + (node.id,)
            successors = [(successor, path) for successor in self._resolve_successors(node)]
            stack.extend(reversed(successors))
    
    async def execute_node(self, node: Node, context: ExecutionContext) -> Any:
        """Dispatch one node to the handler for its category and return the envelope."""
        logger.info(f"Executing node: {node.label} ({node.node_type})")
        
        try:
            handler = self.registry.get_handler(node.node_type)
            result = handler(node, context)
            if inspect.isawaitable(result):
                result = await result
        except WorkflowEngineError as e:
            logger.error(f"Error executing node {node.id}: {e.message}")
            raise e.add_context(node_id=node.id, run_id=context.run_id)
        except Exception as e:
            logger.error(f"Error executing node {node.id}: {str(e)}")
            raise NodeExecutionError(str(e), node_id=node.id, run_id=context.run_id) from e
        
        logger.debug(f"Completed node {node.id} for run {context.run_id}")
        return result
    
    def _resolve_successors(self, node: Node) -> List[Node]:
        resolved = []
        for next_node_id in self.adjacency.get(node.id, []):
            next_node = self._nodes_by_id.get(next_node_id)
            if next_node is None:
                logger.warning(f"Skipping unknown successor {next_node_id} of node {node.id}")
                continue
            resolved.append(next_node)
        return resolved
