"""
Tests for API endpoints and the worker WebSocket.
"""

import pytest
from schemas.worker_protocol import MessageFactory, MessageType


class TestRootEndpoints:
    """Test root and health endpoints."""

    def test_root_endpoint(self, client):
        """Test the root endpoint returns correct information."""
        response = client.get("/")

        assert response.status_code == 200
        data = response.json()["data"]
        assert data["status"] == "running"
        assert data["websocket_endpoints"]["worker"] == "/ws/worker"
        assert "X-Process-Time" in response.headers

    def test_health_endpoint(self, client):
        """Test the health check endpoint."""
        response = client.get("/health")

        assert response.status_code == 200
        body = response.json()
        assert body["success"] is True
        assert body["data"]["status"] == "healthy"
        assert "active_sessions" in body["data"]

    def test_not_found(self, client):
        response = client.get("/does-not-exist")

        assert response.status_code == 404
        assert response.json()["success"] is False
        assert response.json()["error"]["code"] == "HTTP_404"


class TestWorkerEndpoints:
    """Test worker HTTP endpoints."""

    def test_presets(self, client):
        response = client.get("/api/worker/presets")

        assert response.status_code == 200
        presets = response.json()["data"]
        assert set(presets) == {"default", "high_pressure", "slow_evolution", "rapid_mutation"}
        assert presets["high_pressure"]["antibioticConcentration"] == 0.8

    def test_sessions(self, client):
        response = client.get("/api/worker/sessions")
        assert response.status_code == 200
        assert "active_sessions" in response.json()["data"]

    def test_unknown_session_performance(self, client):
        response = client.get("/api/worker/sessions/missing/performance")
        assert response.status_code == 404
        assert response.json()["error"]["message"] == "Session missing not found"
        assert response.json()["error"]["code"] == "HTTP_404"


class TestWorkerWebSocket:
    """Test the /ws/worker protocol transport."""

    def test_session(self, client, wire_params):
        """Test ready, initialize, batch and terminate over one connection."""
        with client.websocket_connect("/ws/worker") as websocket:
            ready = websocket.receive_json()
            assert ready["type"] == "WORKER_READY"
            assert ready["id"] == "init"

            websocket.send_json(MessageFactory.create_request(
                "m1", MessageType.INITIALIZE, {"parameters": wire_params}
            ))
            initialized = websocket.receive_json()
            assert initialized["type"] == "INITIALIZE_COMPLETE"
            assert initialized["id"] == "m1"

            websocket.send_json(MessageFactory.create_request("m2", MessageType.BATCH_STEP, {
                "bacteria": initialized["payload"]["bacteria"],
                "parameters": wire_params,
                "steps": 10,
                "reportProgress": True,
            }))
            types = []
            while True:
                message = websocket.receive_json()
                types.append(message["type"])
                if message["type"] == "BATCH_STEP_COMPLETE":
                    break
            assert types == ["BATCH_STEP_PROGRESS", "BATCH_STEP_PROGRESS", "BATCH_STEP_COMPLETE"]

            websocket.send_json(MessageFactory.create_request("m3", MessageType.TERMINATE))
            terminated = websocket.receive_json()
            assert terminated["type"] == "TERMINATE_COMPLETE"
            assert len(terminated["payload"]["performanceHistory"]) == 11

    def test_unknown_type_and_bad_json(self, client, wire_params):
        with client.websocket_connect("/ws/worker") as websocket:
            websocket.receive_json()

            websocket.send_text("{not json")
            error = websocket.receive_json()
            assert error["type"] == "ERROR"
            assert error["payload"]["error"] == "Invalid JSON format"

            websocket.send_json({"id": "u1", "type": "FOO", "payload": {}})
            error = websocket.receive_json()
            assert error["id"] == "u1"
            assert error["payload"]["error"] == "Unknown message type: FOO"

            websocket.send_json(MessageFactory.create_request(
                "m1", MessageType.INITIALIZE, {"parameters": wire_params}
            ))
            assert websocket.receive_json()["type"] == "INITIALIZE_COMPLETE"

            websocket.send_json(MessageFactory.create_request("t1", MessageType.TERMINATE))
            assert websocket.receive_json()["type"] == "TERMINATE_COMPLETE"
