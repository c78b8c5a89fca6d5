"""FastAPI REST endpoints for the flow engine."""

from typing import Any, Dict, Optional
from fastapi import APIRouter, Depends, HTTPException, Query, status
from fastapi.responses import JSONResponse
from pydantic import BaseModel, Field

from ..core.execution_engine import ExecutionEngine
from ..core.logging import get_logger
from ..models.core import NodeType
from ..storage.store import SqlAlchemyGraphStore

logger = get_logger(__name__)

router = APIRouter(prefix="/api", tags=["flow-engine"])

# Global instances (initialized in the application lifespan)
_store: Optional[SqlAlchemyGraphStore] = None
_engine: Optional[ExecutionEngine] = None

VALID_NODE_TYPES = [node_type.value for node_type in NodeType]


def init_dependencies(store: SqlAlchemyGraphStore, engine: ExecutionEngine):
    """Initialize the global dependencies."""
    global _store, _engine
    _store = store
    _engine = engine


def get_store() -> SqlAlchemyGraphStore:
    """Dependency to get the graph store."""
    if _store is None:
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Graph store not initialized"
        )
    return _store


def get_engine() -> ExecutionEngine:
    """Dependency to get the execution engine."""
    if _engine is None:
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Execution engine not initialized"
        )
    return _engine


def _not_found(resource: str, record_id: str) -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_404_NOT_FOUND,
        detail={
            "error": f"{resource}NotFound",
            "message": f"{resource} not found",
            "details": {"id": record_id}
        }
    )


def _bad_request(message: str) -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_400_BAD_REQUEST,
        detail={"error": "BadRequest", "message": message}
    )


# Request models

class CreateWorkflowRequest(BaseModel):
    """Request model for creating a workflow."""
    name: str = Field(..., min_length=1, description="Workflow name")
    description: str = Field(default="", description="Workflow description")


class UpdateWorkflowRequest(BaseModel):
    """Request model for updating a workflow; only provided fields change."""
    name: Optional[str] = Field(None, min_length=1)
    description: Optional[str] = None
    enabled: Optional[bool] = None


class CreateNodeRequest(BaseModel):
    """Request model for creating a node."""
    workflow_id: str = Field(..., min_length=1)
    node_type: str = Field(..., description=f"One of: {', '.join(VALID_NODE_TYPES)}")
    label: str = Field(..., min_length=1)
    config: Dict[str, Any] = Field(default_factory=dict)
    position_x: float = 0
    position_y: float = 0


class UpdateNodeRequest(BaseModel):
    """Request model for updating a node; only provided fields change."""
    label: Optional[str] = None
    config: Optional[Dict[str, Any]] = None
    position_x: Optional[float] = None
    position_y: Optional[float] = None


class CreateEdgeRequest(BaseModel):
    """Request model for connecting two nodes."""
    workflow_id: str = Field(..., min_length=1)
    source_node_id: str = Field(..., min_length=1)
    target_node_id: str = Field(..., min_length=1)


# Workflows

@router.post("/workflows", status_code=status.HTTP_201_CREATED, summary="Create a workflow")
async def create_workflow(request: CreateWorkflowRequest, store: SqlAlchemyGraphStore = Depends(get_store)):
    workflow = store.create_workflow(request.name, request.description)
    return {
        "message": "Workflow created successfully",
        "workflow": workflow.model_dump(mode="json")
    }


@router.get("/workflows", summary="List workflows, newest first")
async def list_workflows(store: SqlAlchemyGraphStore = Depends(get_store)):
    workflows = store.list_workflows()
    return {
        "workflows": [workflow.model_dump(mode="json") for workflow in workflows],
        "count": len(workflows)
    }


@router.get("/workflows/{workflow_id}", summary="Get a workflow with its nodes and edges")
async def get_workflow(workflow_id: str, store: SqlAlchemyGraphStore = Depends(get_store)):
    workflow = store.load_workflow(workflow_id)
    if workflow is None:
        raise _not_found("Workflow", workflow_id)

    return {
        "workflow": workflow.model_dump(mode="json"),
        "nodes": [node.model_dump(mode="json") for node in store.load_nodes(workflow_id)],
        "edges": [edge.model_dump(mode="json") for edge in store.load_edges(workflow_id)]
    }


@router.put("/workflows/{workflow_id}", summary="Update a workflow")
async def update_workflow(
    workflow_id: str,
    request: UpdateWorkflowRequest,
    store: SqlAlchemyGraphStore = Depends(get_store)
):
    workflow = store.update_workflow(workflow_id, request.model_dump(exclude_unset=True))
    if workflow is None:
        raise _not_found("Workflow", workflow_id)

    return {
        "message": "Workflow updated successfully",
        "workflow": workflow.model_dump(mode="json")
    }


@router.delete("/workflows/{workflow_id}", summary="Delete a workflow and everything in it")
async def delete_workflow(workflow_id: str, store: SqlAlchemyGraphStore = Depends(get_store)):
    if not store.delete_workflow(workflow_id):
        raise _not_found("Workflow", workflow_id)
    return {"message": "Workflow deleted successfully"}


# Nodes

@router.post("/nodes", status_code=status.HTTP_201_CREATED, summary="Create a node")
async def create_node(request: CreateNodeRequest, store: SqlAlchemyGraphStore = Depends(get_store)):
    if request.node_type not in VALID_NODE_TYPES:
        raise _bad_request(f"Invalid node_type. Must be one of: {', '.join(VALID_NODE_TYPES)}")

    node = store.create_node(
        request.workflow_id,
        request.node_type,
        request.label,
        config=request.config,
        position_x=request.position_x,
        position_y=request.position_y,
    )
    return {
        "message": "Node created successfully",
        "node": node.model_dump(mode="json")
    }


@router.get("/nodes", summary="List the nodes of a workflow")
async def list_nodes(
    workflow_id: Optional[str] = Query(None),
    store: SqlAlchemyGraphStore = Depends(get_store)
):
    if not workflow_id:
        raise _bad_request("workflow_id query parameter required")

    nodes = store.load_nodes(workflow_id)
    return {
        "nodes": [node.model_dump(mode="json") for node in nodes],
        "count": len(nodes)
    }


@router.get("/nodes/{node_id}", summary="Get a node")
async def get_node(node_id: str, store: SqlAlchemyGraphStore = Depends(get_store)):
    node = store.get_node(node_id)
    if node is None:
        raise _not_found("Node", node_id)
    return node.model_dump(mode="json")


@router.put("/nodes/{node_id}", summary="Update a node")
async def update_node(
    node_id: str,
    request: UpdateNodeRequest,
    store: SqlAlchemyGraphStore = Depends(get_store)
):
    updates = request.model_dump(exclude_unset=True)
    if not updates:
        raise _bad_request("No fields to update")

    node = store.update_node(node_id, updates)
    if node is None:
        raise _not_found("Node", node_id)

    return {
        "message": "Node updated successfully",
        "node": node.model_dump(mode="json")
    }


@router.delete("/nodes/{node_id}", summary="Delete a node and its connections")
async def delete_node(node_id: str, store: SqlAlchemyGraphStore = Depends(get_store)):
    if not store.delete_node(node_id):
        raise _not_found("Node", node_id)
    return {"message": "Node deleted successfully"}


# Edges

@router.post("/edges", status_code=status.HTTP_201_CREATED, summary="Connect two nodes")
async def create_edge(request: CreateEdgeRequest, store: SqlAlchemyGraphStore = Depends(get_store)):
    edge = store.create_edge(request.workflow_id, request.source_node_id, request.target_node_id)
    return {
        "message": "Connection created successfully",
        "edge": edge.model_dump(mode="json")
    }


@router.get("/edges", summary="List the edges of a workflow")
async def list_edges(
    workflow_id: Optional[str] = Query(None),
    store: SqlAlchemyGraphStore = Depends(get_store)
):
    if not workflow_id:
        raise _bad_request("workflow_id query parameter required")

    edges = store.load_edges(workflow_id)
    return {
        "edges": [edge.model_dump(mode="json") for edge in edges],
        "count": len(edges)
    }


@router.get("/edges/connections/{node_id}", summary="List the nodes a node connects to")
async def get_connected_nodes(
    node_id: str,
    workflow_id: Optional[str] = Query(None),
    store: SqlAlchemyGraphStore = Depends(get_store)
):
    if not workflow_id:
        raise _bad_request("workflow_id query parameter required")

    nodes = store.get_connected_nodes(node_id, workflow_id)
    return {
        "sourceNodeId": node_id,
        "connectedNodes": [node.model_dump(mode="json") for node in nodes],
        "count": len(nodes)
    }


@router.get("/edges/{edge_id}", summary="Get an edge")
async def get_edge(edge_id: str, store: SqlAlchemyGraphStore = Depends(get_store)):
    edge = store.get_edge(edge_id)
    if edge is None:
        raise _not_found("Edge", edge_id)
    return edge.model_dump(mode="json")


@router.delete("/edges/{edge_id}", summary="Delete an edge")
async def delete_edge(edge_id: str, store: SqlAlchemyGraphStore = Depends(get_store)):
    if not store.delete_edge(edge_id):
        raise _not_found("Edge", edge_id)
    return {"message": "Connection deleted successfully"}


# Executions

@router.post("/executions/run/{workflow_id}", summary="Run a workflow and wait for the outcome")
async def run_workflow(
    workflow_id: str,
    store: SqlAlchemyGraphStore = Depends(get_store),
    engine: ExecutionEngine = Depends(get_engine)
):
    if store.load_workflow(workflow_id) is None:
        raise _not_found("Workflow", workflow_id)

    logger.info(f"Running workflow: {workflow_id}")
    outcome = await engine.run(workflow_id)

    if outcome.success:
        return {
            "message": "Workflow executed successfully",
            "executionId": outcome.execution_id,
            "executionData": outcome.execution_data
        }

    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content={
            "message": "Workflow execution failed",
            "executionId": outcome.execution_id,
            "error": outcome.error
        }
    )


@router.get("/executions", summary="Execution history of a workflow, newest first")
async def list_executions(
    workflow_id: Optional[str] = Query(None),
    limit: int = Query(10, ge=1, le=100),
    offset: int = Query(0, ge=0),
    store: SqlAlchemyGraphStore = Depends(get_store)
):
    if not workflow_id:
        raise _bad_request("workflow_id query parameter required")

    executions = store.list_executions(workflow_id, limit=limit, offset=offset)
    return {
        "executions": [execution.model_dump(mode="json") for execution in executions],
        "count": len(executions),
        "limit": limit,
        "offset": offset
    }


@router.get("/executions/stats/{workflow_id}", summary="Outcome counts for a workflow")
async def get_execution_stats(workflow_id: str, store: SqlAlchemyGraphStore = Depends(get_store)):
    return store.get_execution_stats(workflow_id).model_dump()


@router.get("/executions/{execution_id}", summary="Get one execution record")
async def get_execution(execution_id: str, store: SqlAlchemyGraphStore = Depends(get_store)):
    execution = store.get_execution(execution_id)
    if execution is None:
        raise _not_found("Execution", execution_id)
    return execution.model_dump(mode="json")
