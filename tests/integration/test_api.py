"""Integration tests for the HTTP API."""

import json

import pytest
from fastapi.testclient import TestClient

from fakes import FakeExtractor, FakeSynthesizer, FakeTool, make_tools
from flyer_deck.app import Application
from flyer_deck.main import create_app
from flyer_deck.tools.registry import ToolRegistry


def parse_sse(body: str) -> list[tuple[str, dict]]:
    """Split an SSE body into (event name, payload) pairs, skipping comments."""
    events = []
    for block in body.split("\n\n"):
        lines = [line for line in block.splitlines() if line and not line.startswith(":")]
        if not lines:
            continue
        fields = dict(line.split(": ", 1) for line in lines)
        events.append((fields["event"], json.loads(fields["data"])))
    return events


def build_application(settings, tools=None) -> Application:
    registry = ToolRegistry()
    for tool in (tools or make_tools()).values():
        registry.add(tool)
    return Application(
        settings,
        registry=registry,
        synthesizer=FakeSynthesizer(),
        extractor=FakeExtractor(),
    )


@pytest.fixture
def application(settings) -> Application:
    return build_application(settings)


@pytest.fixture
def client(application):
    with TestClient(create_app(application)) as client:
        yield client


@pytest.fixture
def request_body(primary_input) -> dict:
    return primary_input.model_dump(mode="json")


class TestInfoEndpoints:
    """Tests for read-only endpoints."""

    def test_root(self, client):
        response = client.get("/")
        assert response.status_code == 200
        assert response.json()["name"] == "Flyer Deck API"

    def test_health(self, client):
        response = client.get("/api/v1/health")
        assert response.status_code == 200
        assert response.json()["status"] == "ok"
        assert response.json()["active_runs"] == 0

    def test_plan(self, client):
        response = client.get("/api/v1/plan")
        items = response.json()["items"]
        assert len(items) == 12
        assert items[2]["strategy"] == "generative"
        assert items[10]["strategy"] == "static"

    def test_tools(self, client):
        body = client.get("/api/v1/tools").json()
        assert body["count"] == 9
        assert "geocode" in body["tools"]


class TestGenerateDeck:
    """Tests for the SSE generation endpoint."""

    def test_streams_whole_deck(self, client, application, request_body):
        """Test the stream carries every slide and ends with end-of-run."""
        response = client.post("/api/v1/decks/generate", json=request_body)

        assert response.status_code == 200
        assert response.headers["content-type"].startswith("text/event-stream")
        assert response.headers["x-request-id"]

        events = parse_sse(response.text)
        names = [name for name, _ in events]
        assert names.count("start") == 12
        assert names.count("end") == 12
        assert names[-1] == "end-of-run"

        final = events[-1][1]
        assert [item["index"] for item in final["items"]] == list(range(12))
        assert final["usage"] == {"promptUnits": 300, "completionUnits": 150}
        assert application.active_runs == 0

    def test_degraded_slide_is_reported(self, settings, request_body):
        tools = make_tools()
        tools["nearby_facilities"] = FakeTool("nearby_facilities", error="quota exceeded")

        with TestClient(create_app(build_application(settings, tools))) as client:
            response = client.post("/api/v1/decks/generate", json=request_body)

        final = parse_sse(response.text)[-1][1]
        degraded = [item["index"] for item in final["items"] if item["degraded"]]
        assert degraded == [5]

    def test_extraction_failure_streams_single_error(self, settings, request_body):
        application = build_application(settings)
        application.extractor = FakeExtractor(error=RuntimeError("vision model unavailable"))
        request_body["facts"] = None

        with TestClient(create_app(application)) as client:
            response = client.post("/api/v1/decks/generate", json=request_body)

        events = parse_sse(response.text)
        assert [name for name, _ in events] == ["error"]
        assert "vision model unavailable" in events[0][1]["message"]

    def test_invalid_body(self, client):
        response = client.post("/api/v1/decks/generate", json={"customer_name": "山田太郎"})
        assert response.status_code == 422

    def test_rejected_while_shutting_down(self, client, application, request_body):
        application._is_shutting_down = True
        response = client.post("/api/v1/decks/generate", json=request_body)
        assert response.status_code == 503
