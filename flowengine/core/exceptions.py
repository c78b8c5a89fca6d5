"""Custom exceptions for the flow engine with detailed error information."""

from datetime import datetime, timezone
from typing import Optional, Dict, Any, List
from enum import Enum


class ErrorSeverity(Enum):
    """Error severity levels for categorizing exceptions."""
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"
    CRITICAL = "critical"


class ErrorCategory(Enum):
    """Categories of errors for better classification."""
    NOT_FOUND = "not_found"
    VALIDATION = "validation"
    EXECUTION = "execution"
    STORAGE = "storage"
    CONFIGURATION = "configuration"


class WorkflowEngineError(Exception):
    """Base exception for all flow engine errors."""
    
    def __init__(
        self, 
        message: str, 
        error_code: Optional[str] = None,
        severity: ErrorSeverity = ErrorSeverity.MEDIUM,
        category: ErrorCategory = ErrorCategory.EXECUTION,
        details: Optional[Dict[str, Any]] = None,
        context: Optional[Dict[str, Any]] = None
    ):
        super().__init__(message)
        self.message = message
        self.error_code = error_code or self.__class__.__name__
        self.severity = severity
        self.category = category
        self.details = details or {}
        self.context = context or {}
        self.timestamp = datetime.now(timezone.utc)
    
    def to_dict(self) -> Dict[str, Any]:
        """Convert exception to dictionary for logging and API responses."""
        return {
            "error_code": self.error_code,
            "message": self.message,
            "severity": self.severity.value,
            "category": self.category.value,
            "details": self.details,
            "context": self.context,
            "timestamp": self.timestamp.isoformat(),
            "exception_type": self.__class__.__name__
        }
    
    def add_context(self, **kwargs):
        """Add additional context to the exception."""
        self.context.update(kwargs)
        return self
    
    def add_details(self, **kwargs):
        """Add additional details to the exception."""
        self.details.update(kwargs)
        return self


class RecordNotFoundError(WorkflowEngineError):
    """Raised when a stored record does not exist."""

    def __init__(self, message: str, resource: Optional[str] = None, record_id: Optional[str] = None, **kwargs):
        super().__init__(
            message,
            severity=ErrorSeverity.LOW,
            category=ErrorCategory.NOT_FOUND,
            **kwargs
        )
        if resource:
            self.add_context(resource=resource)
        if record_id:
            self.add_context(record_id=record_id)


class WorkflowNotFoundError(RecordNotFoundError):
    """Raised when a workflow does not exist."""

    def __init__(self, workflow_id: Optional[str] = None, message: str = "Workflow not found", **kwargs):
        super().__init__(message, resource="workflow", record_id=workflow_id, **kwargs)
        if workflow_id:
            self.add_context(workflow_id=workflow_id)


class WorkflowValidationError(WorkflowEngineError):
    """Raised when a workflow is not runnable (disabled, empty, bad trigger setup)."""
    
    def __init__(
        self, 
        message: str, 
        workflow_id: Optional[str] = None,
        **kwargs
    ):
        super().__init__(
            message, 
            severity=ErrorSeverity.MEDIUM,
            category=ErrorCategory.VALIDATION,
            **kwargs
        )
        if workflow_id:
            self.add_context(workflow_id=workflow_id)


class EdgeValidationError(WorkflowEngineError):
    """Raised when an edge cannot be created."""
    
    def __init__(
        self,
        message: str,
        source_node_id: Optional[str] = None,
        target_node_id: Optional[str] = None,
        **kwargs
    ):
        super().__init__(
            message,
            severity=ErrorSeverity.LOW,
            category=ErrorCategory.VALIDATION,
            **kwargs
        )
        if source_node_id:
            self.add_context(source_node_id=source_node_id)
        if target_node_id:
            self.add_context(target_node_id=target_node_id)


class UnknownNodeTypeError(WorkflowEngineError):
    """Raised when no handler is registered for a node's category."""
    
    def __init__(self, node_type: Any, node_id: Optional[str] = None, **kwargs):
        super().__init__(
            f"Unknown node type: {node_type}",
            severity=ErrorSeverity.HIGH,
            category=ErrorCategory.EXECUTION,
            **kwargs
        )
        self.node_type = node_type
        self.add_context(node_type=node_type)
        if node_id:
            self.add_context(node_id=node_id)


class NodeExecutionError(WorkflowEngineError):
    """Raised when a node handler fails."""
    
    def __init__(
        self, 
        message: str, 
        node_id: Optional[str] = None,
        run_id: Optional[str] = None,
        **kwargs
    ):
        super().__init__(
            message, 
            severity=ErrorSeverity.HIGH,
            category=ErrorCategory.EXECUTION,
            **kwargs
        )
        if node_id:
            self.add_context(node_id=node_id)
        if run_id:
            self.add_context(run_id=run_id)


class CycleDetectedError(WorkflowEngineError):
    """Raised when traversal reaches a node that is already on the current path."""
    
    def __init__(self, cycle: List[str], **kwargs):
        super().__init__(
            f"Cycle detected: {' -> '.join(cycle)}",
            severity=ErrorSeverity.HIGH,
            category=ErrorCategory.VALIDATION,
            **kwargs
        )
        self.cycle = list(cycle)
        self.add_details(cycle=self.cycle)


class StorageError(WorkflowEngineError):
    """Raised when storage operations fail."""
    
    def __init__(
        self, 
        message: str, 
        operation: Optional[str] = None,
        table: Optional[str] = None,
        **kwargs
    ):
        super().__init__(
            message, 
            severity=ErrorSeverity.HIGH,
            category=ErrorCategory.STORAGE,
            **kwargs
        )
        if operation:
            self.add_context(operation=operation)
        if table:
            self.add_context(table=table)


class ConfigurationError(WorkflowEngineError):
    """Raised when configuration is invalid or missing."""
    
    def __init__(
        self, 
        message: str, 
        config_key: Optional[str] = None,
        **kwargs
    ):
        super().__init__(
            message, 
            severity=ErrorSeverity.HIGH,
            category=ErrorCategory.CONFIGURATION,
            **kwargs
        )
        if config_key:
            self.add_context(config_key=config_key)


def create_error_response(error: WorkflowEngineError) -> Dict[str, Any]:
    """Create a standardized error response from a WorkflowEngineError."""
    return {
        "error": error.error_code,
        "message": error.message,
        "details": {
            **error.details,
            "severity": error.severity.value,
            "category": error.category.value,
            "timestamp": error.timestamp.isoformat()
        },
        "context": error.context
    }
