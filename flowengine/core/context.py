"""Run-scoped execution context."""

from typing import Any, Dict, List

from pydantic import BaseModel


class ExecutionContext:
    """Accumulates the result envelope of every visited node for one run.

    Owned by a single run and never shared. Entries are written when a
    node is visited and never removed; a node visited again through a
    second path overwrites its entry.
    """

    def __init__(self, run_id: str):
        self.run_id = run_id
        self.results: Dict[str, Any] = {}
        self.execution_path: List[str] = []

    def record(self, node_id: str, envelope: Any) -> None:
        self.results[node_id] = envelope
        self.execution_path.append(node_id)

    def get(self, node_id: str, default: Any = None) -> Any:
        return self.results.get(node_id, default)

    def snapshot(self) -> Dict[str, Any]:
        """JSON-safe copy of all envelopes recorded so far."""
        return {
            node_id: envelope.model_dump(mode="json") if isinstance(envelope, BaseModel) else envelope
            for node_id, envelope in self.results.items()
        }

    def __contains__(self, node_id: str) -> bool:
        return node_id in self.results

    def __len__(self) -> int:
        return len(self.results)
