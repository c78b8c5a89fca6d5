"""Tests for the HTTP API."""

import pytest


def create_workflow(client, name="API workflow"):
    response = client.post("/api/workflows", json={"name": name, "description": "created in tests"})
    assert response.status_code == 201
    return response.json()["workflow"]


def create_node(client, workflow_id, node_type, label, config=None):
    response = client.post("/api/nodes", json={
        "workflow_id": workflow_id,
        "node_type": node_type,
        "label": label,
        "config": config or {},
    })
    assert response.status_code == 201
    return response.json()["node"]


def connect(client, workflow_id, source, target):
    response = client.post("/api/edges", json={
        "workflow_id": workflow_id,
        "source_node_id": source["id"],
        "target_node_id": target["id"],
    })
    assert response.status_code == 201
    return response.json()["edge"]


@pytest.fixture
def linear_workflow(client):
    workflow = create_workflow(client)
    trigger = create_node(client, workflow["id"], "trigger", "Start")
    data = create_node(client, workflow["id"], "data", "Weather", {"source": "weather"})
    action = create_node(client, workflow["id"], "action", "Email", {"type": "email", "to": "a@example.com"})
    connect(client, workflow["id"], trigger, data)
    connect(client, workflow["id"], data, action)
    return workflow, [trigger, data, action]


def test_health(client):
    response = client.get("/api/health")

    assert response.status_code == 200
    assert response.json()["status"] == "healthy"
    assert "X-Request-ID" in response.headers


class TestWorkflowEndpoints:

    def test_create_list_get(self, client):
        workflow = create_workflow(client, "Listed")

        listing = client.get("/api/workflows").json()
        assert listing["count"] == 1
        assert listing["workflows"][0]["id"] == workflow["id"]

        detail = client.get(f"/api/workflows/{workflow['id']}").json()
        assert detail["workflow"]["name"] == "Listed"
        assert detail["nodes"] == []
        assert detail["edges"] == []

    def test_create_requires_name(self, client):
        assert client.post("/api/workflows", json={"description": "nameless"}).status_code == 422

    def test_get_missing(self, client):
        assert client.get("/api/workflows/missing").status_code == 404

    def test_update(self, client):
        workflow = create_workflow(client)

        response = client.put(f"/api/workflows/{workflow['id']}", json={"enabled": False})

        assert response.status_code == 200
        assert response.json()["workflow"]["enabled"] is False
        assert response.json()["workflow"]["name"] == workflow["name"]

    def test_delete(self, client, linear_workflow):
        workflow, _ = linear_workflow

        assert client.delete(f"/api/workflows/{workflow['id']}").status_code == 200
        assert client.get(f"/api/workflows/{workflow['id']}").status_code == 404
        assert client.delete(f"/api/workflows/{workflow['id']}").status_code == 404


class TestNodeEndpoints:

    def test_invalid_node_type(self, client):
        workflow = create_workflow(client)

        response = client.post("/api/nodes", json={
            "workflow_id": workflow["id"],
            "node_type": "webhook",
            "label": "Hook",
        })

        assert response.status_code == 400
        assert "Invalid node_type" in response.json()["detail"]["message"]

    def test_node_in_missing_workflow(self, client):
        response = client.post("/api/nodes", json={
            "workflow_id": "missing",
            "node_type": "trigger",
            "label": "Start",
        })

        assert response.status_code == 404
        assert response.json()["message"] == "Workflow not found"

    def test_list_requires_workflow_id(self, client):
        assert client.get("/api/nodes").status_code == 400

    def test_list_get_update_delete(self, client, linear_workflow):
        workflow, nodes = linear_workflow

        listing = client.get("/api/nodes", params={"workflow_id": workflow["id"]}).json()
        assert [node["id"] for node in listing["nodes"]] == [node["id"] for node in nodes]

        node_id = nodes[2]["id"]
        assert client.get(f"/api/nodes/{node_id}").json()["label"] == "Email"

        updated = client.put(f"/api/nodes/{node_id}", json={"label": "Notify"})
        assert updated.status_code == 200
        assert updated.json()["node"]["label"] == "Notify"

        assert client.delete(f"/api/nodes/{node_id}").status_code == 200
        assert client.get(f"/api/nodes/{node_id}").status_code == 404

        edges = client.get("/api/edges", params={"workflow_id": workflow["id"]}).json()
        assert edges["count"] == 1

    def test_update_without_fields(self, client, linear_workflow):
        _, nodes = linear_workflow

        response = client.put(f"/api/nodes/{nodes[0]['id']}", json={})

        assert response.status_code == 400
        assert response.json()["detail"]["message"] == "No fields to update"


class TestEdgeEndpoints:

    def test_self_loop(self, client):
        workflow = create_workflow(client)
        node = create_node(client, workflow["id"], "trigger", "Start")

        response = client.post("/api/edges", json={
            "workflow_id": workflow["id"],
            "source_node_id": node["id"],
            "target_node_id": node["id"],
        })

        assert response.status_code == 400
        assert response.json()["message"] == "Cannot connect a node to itself"

    def test_duplicate(self, client, linear_workflow):
        workflow, nodes = linear_workflow

        response = client.post("/api/edges", json={
            "workflow_id": workflow["id"],
            "source_node_id": nodes[0]["id"],
            "target_node_id": nodes[1]["id"],
        })

        assert response.status_code == 400

    def test_unknown_nodes(self, client):
        workflow = create_workflow(client)

        response = client.post("/api/edges", json={
            "workflow_id": workflow["id"],
            "source_node_id": "nope",
            "target_node_id": "nada",
        })

        assert response.status_code == 404

    def test_connections(self, client, linear_workflow):
        workflow, nodes = linear_workflow

        response = client.get(
            f"/api/edges/connections/{nodes[0]['id']}",
            params={"workflow_id": workflow["id"]},
        )

        body = response.json()
        assert body["sourceNodeId"] == nodes[0]["id"]
        assert [node["id"] for node in body["connectedNodes"]] == [nodes[1]["id"]]

    def test_get_and_delete(self, client, linear_workflow):
        workflow, _ = linear_workflow
        edge = client.get("/api/edges", params={"workflow_id": workflow["id"]}).json()["edges"][0]

        assert client.get(f"/api/edges/{edge['id']}").status_code == 200
        assert client.delete(f"/api/edges/{edge['id']}").status_code == 200
        assert client.get(f"/api/edges/{edge['id']}").status_code == 404


class TestExecutionEndpoints:

    def test_run_success(self, client, linear_workflow):
        workflow, nodes = linear_workflow

        response = client.post(f"/api/executions/run/{workflow['id']}")

        assert response.status_code == 200
        body = response.json()
        assert body["executionId"]
        assert set(body["executionData"]) == {node["id"] for node in nodes}
        assert body["executionData"][nodes[1]["id"]]["data"]["condition"] == "Sunny"

        record = client.get(f"/api/executions/{body['executionId']}").json()
        assert record["status"] == "completed"
        assert record["execution_path"] == [node["id"] for node in nodes]

    def test_run_missing_workflow(self, client):
        assert client.post("/api/executions/run/missing").status_code == 404

    def test_run_failure(self, client):
        workflow = create_workflow(client)
        create_node(client, workflow["id"], "action", "Orphan")

        response = client.post(f"/api/executions/run/{workflow['id']}")

        assert response.status_code == 500
        body = response.json()
        assert body["executionId"]
        assert body["error"] == "No trigger node found. Workflow must start with a trigger"

        record = client.get(f"/api/executions/{body['executionId']}").json()
        assert record["status"] == "failed"
        assert record["execution_data"] is None

    def test_history_and_stats(self, client, linear_workflow):
        workflow, _ = linear_workflow
        client.post(f"/api/executions/run/{workflow['id']}")
        client.put(f"/api/workflows/{workflow['id']}", json={"enabled": False})
        client.post(f"/api/executions/run/{workflow['id']}")

        history = client.get("/api/executions", params={"workflow_id": workflow["id"]}).json()
        assert history["count"] == 2
        assert history["limit"] == 10
        assert history["offset"] == 0

        stats = client.get(f"/api/executions/stats/{workflow['id']}").json()
        assert stats == {"total": 2, "completed": 1, "failed": 1, "running": 0, "success_rate": 50.0}

    def test_history_requires_workflow_id(self, client):
        assert client.get("/api/executions").status_code == 400

    def test_missing_execution(self, client):
        assert client.get("/api/executions/missing").status_code == 404
