"""Node handler registry: one handler per node category."""

import inspect
from typing import Any, Awaitable, Callable, Dict, Optional, Union

from pydantic import BaseModel

from ..models.core import (
    ActionConfig,
    ActionEnvelope,
    DataConfig,
    DataEnvelope,
    Node,
    NodeType,
    TransformConfig,
    TransformEnvelope,
    TriggerConfig,
    TriggerEnvelope,
)
from .context import ExecutionContext
from .exceptions import ConfigurationError, UnknownNodeTypeError
from .integrations import DEFAULT_ACTIONS, DEFAULT_DATA_SOURCES, DEFAULT_TRANSFORMS
from .logging import get_logger

logger = get_logger(__name__)

NodeHandler = Callable[[Node, ExecutionContext], Union[BaseModel, Awaitable[BaseModel]]]
DataSource = Callable[[DataConfig], Awaitable[Dict[str, Any]]]
TransformFunction = Callable[[Dict[str, Any], TransformConfig], Dict[str, Any]]
ActionFunction = Callable[[ActionConfig, Dict[str, Any]], Dict[str, Any]]


class NodeHandlerRegistry:
    """Registry mapping node categories, and the subtypes within them, to functions.

    Category handlers take the node and the current execution context and
    return a result envelope. They only read the context; the graph walker
    does the writing.
    """
    
    def __init__(self):
        self._handlers: Dict[str, NodeHandler] = {}
        self._data_sources: Dict[str, DataSource] = {}
        self._transforms: Dict[str, TransformFunction] = {}
        self._actions: Dict[str, ActionFunction] = {}
    
    def register_handler(self, node_type: str, handler: NodeHandler, replace: bool = False) -> None:
        """Register the handler for a node category.
        
        Args:
            node_type: Category name, e.g. ``"trigger"``
            handler: Callable of (node, context) returning an envelope or an awaitable of one
            replace: Allow overriding an existing registration
            
        Raises:
            ConfigurationError: If the name is empty, the handler is not callable,
                or the category is already registered and ``replace`` is False
        """
        self._register(self._handlers, "node type", node_type, handler, replace)
    
    def get_handler(self, node_type: str) -> NodeHandler:
        """Return the handler for a category.
        
        Raises:
            UnknownNodeTypeError: If no handler is registered for ``node_type``
        """
        handler = self._handlers.get(node_type)
        if handler is None:
            raise UnknownNodeTypeError(node_type)
        return handler
    
    def has_handler(self, node_type: str) -> bool:
        return node_type in self._handlers
    
    def register_data_source(self, name: str, source: DataSource, replace: bool = False) -> None:
        self._register(self._data_sources, "data source", name, source, replace)
    
    def register_transform(self, name: str, transform: TransformFunction, replace: bool = False) -> None:
        self._register(self._transforms, "transform", name, transform, replace)
    
    def register_action(self, name: str, action: ActionFunction, replace: bool = False) -> None:
        self._register(self._actions, "action", name, action, replace)
    
    @staticmethod
    def _register(table: Dict[str, Callable], kind: str, name: str, function: Callable, replace: bool) -> None:
        if not name or not str(name).strip():
            raise ConfigurationError(f"{kind.capitalize()} name cannot be empty")
        name = str(name).strip()
        if not callable(function):
            raise ConfigurationError(f"{kind.capitalize()} '{name}' must be callable", config_key=name)
        if name in table and not replace:
            raise ConfigurationError(f"{kind.capitalize()} '{name}' is already registered", config_key=name)
        table[name] = function
        logger.debug(f"Registered {kind} '{name}'")
    
    # Built-in category handlers
    
    def handle_trigger(self, node: Node, context: ExecutionContext) -> TriggerEnvelope:
        config = TriggerConfig.model_validate(node.config)
        trigger_type = str(config.type) if config.type else "scheduled"
        logger.info(f"Trigger: {trigger_type}")
        return TriggerEnvelope(trigger_type=trigger_type, config=dict(node.config))
    
    async def handle_data(self, node: Node, context: ExecutionContext) -> DataEnvelope:
        config = DataConfig.model_validate(node.config)
        logger.info(f"Fetching data: {config.source or 'unknown'}")
        
        source = _lookup(self._data_sources, config.source)
        if source is None:
            data = {"message": "Data source not configured"}
        else:
            data = source(config)
            if inspect.isawaitable(data):
                data = await data
        
        return DataEnvelope(source=config.source, data=data)
    
    def handle_transform(self, node: Node, context: ExecutionContext) -> TransformEnvelope:
        config = TransformConfig.model_validate(node.config)
        logger.info(f"Transforming data: {config.type or 'unknown'}")
        
        snapshot = context.snapshot()
        transform = _lookup(self._transforms, config.type)
        if transform is None:
            result = {"transformed": snapshot}
        else:
            result = transform(snapshot, config)
        
        return TransformEnvelope(transform_type=config.type, result=result)
    
    def handle_action(self, node: Node, context: ExecutionContext) -> ActionEnvelope:
        config = ActionConfig.model_validate(node.config)
        logger.info(f"Action: {config.type or 'unknown'}")
        
        action = _lookup(self._actions, config.type)
        if action is None:
            result = {"message": "Action not configured"}
        else:
            result = action(config, context.snapshot())
        
        return ActionEnvelope(action_type=config.type, result=result)


def create_default_registry() -> NodeHandlerRegistry:
    """Registry with the four built-in categories and the stub integrations."""
    registry = NodeHandlerRegistry()
    
    registry.register_handler(NodeType.TRIGGER.value, registry.handle_trigger)
    registry.register_handler(NodeType.DATA.value, registry.handle_data)
    registry.register_handler(NodeType.TRANSFORM.value, registry.handle_transform)
    registry.register_handler(NodeType.ACTION.value, registry.handle_action)
    
    for name, source in DEFAULT_DATA_SOURCES.items():
        registry.register_data_source(name, source)
    for name, transform in DEFAULT_TRANSFORMS.items():
        registry.register_transform(name, transform)
    for name, action in DEFAULT_ACTIONS.items():
        registry.register_action(name, action)
    
    return registry


def _lookup(table: Dict[str, Callable], name: Any) -> Optional[Callable]:
    # Subtype names come straight from node config and may be any JSON value.
    if not isinstance(name, str):
        return None
    return table.get(name)
