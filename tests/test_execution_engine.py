"""Tests for the execution engine running against the in-memory store."""

import asyncio

import pytest

from flowengine.core.exceptions import StorageError
from flowengine.core.execution_engine import ExecutionEngine
from flowengine.core.handler_registry import create_default_registry
from flowengine.models.core import ExecutionStatusEnum
from flowengine.storage.memory import InMemoryGraphStore


class FailingRecordStore(InMemoryGraphStore):
    """Store whose execution record writes always fail."""

    def append_execution_record(self, record):
        raise StorageError("disk full", operation="append execution record")


def build_linear_workflow(store):
    """trigger -> weather -> summarize -> email"""
    workflow = store.add_workflow("Morning report")
    trigger = store.add_node(workflow.id, "trigger", "Every morning", {"type": "scheduled"})
    data = store.add_node(workflow.id, "data", "Weather", {"source": "weather", "location": "Paris"})
    transform = store.add_node(workflow.id, "transform", "Summarize", {"type": "summarize"})
    action = store.add_node(workflow.id, "action", "Email", {"type": "email", "to": "me@example.com"})
    store.add_edge(workflow.id, trigger.id, data.id)
    store.add_edge(workflow.id, data.id, transform.id)
    store.add_edge(workflow.id, transform.id, action.id)
    return workflow, [trigger, data, transform, action]


@pytest.mark.asyncio
async def test_linear_chain(memory_store):
    workflow, nodes = build_linear_workflow(memory_store)

    outcome = await ExecutionEngine(memory_store).run(workflow.id)

    assert outcome.success
    assert outcome.error is None
    assert outcome.execution_path == [node.id for node in nodes]
    assert len(outcome.execution_data) == 4
    assert outcome.execution_data[nodes[1].id]["data"] == {"temperature": 72, "condition": "Sunny"}
    assert outcome.execution_data[nodes[3].id]["result"] == {"sent": True, "to": "me@example.com"}

    records = memory_store.records_for(workflow.id)
    assert len(records) == 1
    assert records[0].id == outcome.execution_id
    assert records[0].status == ExecutionStatusEnum.COMPLETED
    assert records[0].execution_data == outcome.execution_data
    assert records[0].execution_path == outcome.execution_path
    assert records[0].ended_at >= records[0].started_at


@pytest.mark.asyncio
async def test_lone_trigger(memory_store):
    workflow = memory_store.add_workflow()
    trigger = memory_store.add_node(workflow.id, "trigger")

    outcome = await ExecutionEngine(memory_store).run(workflow.id)

    assert outcome.success
    assert list(outcome.execution_data) == [trigger.id]
    assert outcome.execution_data[trigger.id]["trigger_type"] == "scheduled"


@pytest.mark.asyncio
async def test_diamond(memory_store):
    workflow = memory_store.add_workflow()
    trigger = memory_store.add_node(workflow.id, "trigger")
    left = memory_store.add_node(workflow.id, "data", config={"source": "weather"})
    right = memory_store.add_node(workflow.id, "data", config={"source": "calendar"})
    merge = memory_store.add_node(workflow.id, "transform", config={"type": "summarize"})
    memory_store.add_edge(workflow.id, trigger.id, left.id)
    memory_store.add_edge(workflow.id, trigger.id, right.id)
    memory_store.add_edge(workflow.id, left.id, merge.id)
    memory_store.add_edge(workflow.id, right.id, merge.id)

    outcome = await ExecutionEngine(memory_store).run(workflow.id)

    assert outcome.success
    assert outcome.execution_path == [trigger.id, left.id, merge.id, right.id, merge.id]
    assert len(outcome.execution_data) == 4
    assert right.id in outcome.execution_data[merge.id]["result"]["summary"]


@pytest.mark.asyncio
async def test_only_reachable_nodes_run(memory_store):
    workflow = memory_store.add_workflow()
    trigger = memory_store.add_node(workflow.id, "trigger")
    memory_store.add_node(workflow.id, "action", config={"type": "email"})

    outcome = await ExecutionEngine(memory_store).run(workflow.id)

    assert outcome.execution_path == [trigger.id]


@pytest.mark.asyncio
async def test_trigger_need_not_be_first_node(memory_store):
    workflow = memory_store.add_workflow()
    action = memory_store.add_node(workflow.id, "action", config={"type": "sms", "phone": "555"})
    trigger = memory_store.add_node(workflow.id, "trigger")
    memory_store.add_edge(workflow.id, trigger.id, action.id)

    outcome = await ExecutionEngine(memory_store).run(workflow.id)

    assert outcome.execution_path == [trigger.id, action.id]


@pytest.mark.asyncio
async def test_runs_are_independent(memory_store):
    workflow, _ = build_linear_workflow(memory_store)
    engine = ExecutionEngine(memory_store)

    first = await engine.run(workflow.id)
    second = await engine.run(workflow.id)

    assert first.success and second.success
    assert first.execution_id != second.execution_id
    assert first.execution_path == second.execution_path
    assert set(first.execution_data) == set(second.execution_data)
    assert len(memory_store.records_for(workflow.id)) == 2


@pytest.mark.asyncio
async def test_concurrent_runs(memory_store):
    workflow, nodes = build_linear_workflow(memory_store)
    engine = ExecutionEngine(memory_store)

    outcomes = await asyncio.gather(*(engine.run(workflow.id) for _ in range(5)))

    assert all(outcome.success for outcome in outcomes)
    assert all(outcome.execution_path == [node.id for node in nodes] for outcome in outcomes)
    assert len({outcome.execution_id for outcome in outcomes}) == 5


@pytest.mark.asyncio
async def test_non_string_config_values(memory_store):
    workflow = memory_store.add_workflow()
    trigger = memory_store.add_node(workflow.id, "trigger", config={"type": 5})
    data = memory_store.add_node(workflow.id, "data", config={"source": ["weather", "calendar"]})
    sms = memory_store.add_node(workflow.id, "action", config={"type": "sms", "phone": 5551234567})
    email = memory_store.add_node(workflow.id, "action", config={"type": "email", "to": ["a@x.com", "b@x.com"]})
    memory_store.add_edge(workflow.id, trigger.id, data.id)
    memory_store.add_edge(workflow.id, data.id, sms.id)
    memory_store.add_edge(workflow.id, data.id, email.id)

    outcome = await ExecutionEngine(memory_store).run(workflow.id)

    assert outcome.success, outcome.error
    assert outcome.execution_data[trigger.id]["trigger_type"] == "5"
    assert outcome.execution_data[data.id]["source"] == ["weather", "calendar"]
    assert outcome.execution_data[data.id]["data"] == {"message": "Data source not configured"}
    assert outcome.execution_data[sms.id]["result"] == {"sent": True, "phone": 5551234567}
    assert outcome.execution_data[email.id]["result"] == {"sent": True, "to": ["a@x.com", "b@x.com"]}


class TestFailedRuns:
    """Every failure is reported in the outcome and recorded without context data."""

    async def assert_failed(self, store, workflow_id, message):
        outcome = await ExecutionEngine(store).run(workflow_id)

        assert not outcome.success
        assert outcome.execution_data is None
        assert message in outcome.error

        records = store.records_for(workflow_id)
        assert len(records) == 1
        assert records[0].status == ExecutionStatusEnum.FAILED
        assert records[0].error_message == outcome.error
        assert records[0].execution_data is None
        return outcome

    @pytest.mark.asyncio
    async def test_missing_workflow(self, memory_store):
        await self.assert_failed(memory_store, "does-not-exist", "Workflow not found")

    @pytest.mark.asyncio
    async def test_disabled_workflow(self, memory_store):
        workflow = memory_store.add_workflow(enabled=False)
        memory_store.add_node(workflow.id, "trigger")

        await self.assert_failed(memory_store, workflow.id, "Workflow is disabled")

    @pytest.mark.asyncio
    async def test_no_nodes(self, memory_store):
        workflow = memory_store.add_workflow()

        await self.assert_failed(memory_store, workflow.id, "Workflow has no nodes")

    @pytest.mark.asyncio
    async def test_no_trigger(self, memory_store):
        workflow = memory_store.add_workflow()
        memory_store.add_node(workflow.id, "action")

        await self.assert_failed(memory_store, workflow.id, "No trigger node found")

    @pytest.mark.asyncio
    async def test_multiple_triggers(self, memory_store):
        workflow = memory_store.add_workflow()
        memory_store.add_node(workflow.id, "trigger")
        memory_store.add_node(workflow.id, "trigger")

        await self.assert_failed(memory_store, workflow.id, "Workflow has multiple trigger nodes")

    @pytest.mark.asyncio
    async def test_unknown_node_type(self, memory_store):
        workflow = memory_store.add_workflow()
        trigger = memory_store.add_node(workflow.id, "trigger")
        webhook = memory_store.add_node(workflow.id, "webhook")
        memory_store.add_edge(workflow.id, trigger.id, webhook.id)

        outcome = await self.assert_failed(memory_store, workflow.id, "webhook")

        assert outcome.error == "Unknown node type: webhook"

    @pytest.mark.asyncio
    async def test_cycle(self, memory_store):
        workflow = memory_store.add_workflow()
        trigger = memory_store.add_node(workflow.id, "trigger")
        first = memory_store.add_node(workflow.id, "action")
        second = memory_store.add_node(workflow.id, "action")
        memory_store.add_edge(workflow.id, trigger.id, first.id)
        memory_store.add_edge(workflow.id, first.id, second.id)
        memory_store.add_edge(workflow.id, second.id, first.id)

        outcome = await self.assert_failed(memory_store, workflow.id, "Cycle detected")

        assert outcome.error.startswith("Cycle detected")

    @pytest.mark.asyncio
    async def test_handler_error_message(self, memory_store):
        registry = create_default_registry()

        def broken_email(config, snapshot):
            raise RuntimeError("SMTP connection refused")

        registry.register_action("email", broken_email, replace=True)
        workflow, _ = build_linear_workflow(memory_store)

        outcome = await ExecutionEngine(memory_store, registry).run(workflow.id)

        assert not outcome.success
        assert outcome.error == "SMTP connection refused"
        assert outcome.execution_data is None


@pytest.mark.asyncio
async def test_record_write_failure_does_not_change_outcome():
    store = FailingRecordStore()
    workflow, _ = build_linear_workflow(store)

    outcome = await ExecutionEngine(store).run(workflow.id)

    assert outcome.success
    assert len(outcome.execution_data) == 4


@pytest.mark.asyncio
async def test_record_write_failure_on_failed_run():
    store = FailingRecordStore()

    outcome = await ExecutionEngine(store).run("missing")

    assert not outcome.success
    assert outcome.error == "Workflow not found"
