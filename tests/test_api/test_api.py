"""Tests for API endpoints (shared process-wide context)."""

from __future__ import annotations

import asyncio
import json
import threading
import time

import pytest
from fastapi.testclient import TestClient

from rauzy import dependencies
from rauzy.api import points as points_api
from rauzy.dependencies import get_context
from rauzy.engine.config import EngineConfig
from rauzy.engine.context import ComputationContext, create_context
from rauzy.main import app
from rauzy.models.requests import PointsRequest

client = TestClient(app)


def _sse_events(body: str) -> list[tuple[str, dict]]:
    events = []
    for block in body.strip().split("\n\n"):
        lines = dict(line.split(": ", 1) for line in block.splitlines())
        events.append((lines["event"], json.loads(lines["data"])))
    return events


def test_health():
    response = client.get("/api/health")
    assert response.status_code == 200
    data = response.json()
    assert data["status"] == "ok"
    assert data["version"] == "0.1.0"
    assert data["tribonacci_terms"] >= 6


def test_points():
    response = client.post("/api/points", json={"target_count": 100})
    assert response.status_code == 200
    data = response.json()
    assert data["point_count"] == 100
    assert data["word_length"] == 101
    assert data["cache_outcome"] in {"miss", "grow", "shrink"}
    assert len(data["points"]) == 100
    assert set(data["points"][0]) == {"re", "im", "base_type"}
    assert data["points"][0]["base_type"] == 1
    assert sum(data["index_map_sizes"].values()) == 101
    assert data["faults"] == 0


def test_points_shrink_reuses_cache():
    client.post("/api/points", json={"target_count": 300})
    response = client.post("/api/points", json={"target_count": 120, "include_points": False})
    data = response.json()
    assert data["cache_outcome"] == "shrink"
    assert data["reused_points"] == 120
    assert data["points"] == []


def test_points_invalid_count():
    assert client.post("/api/points", json={"target_count": 0}).status_code == 422
    assert client.post("/api/points", json={}).status_code == 422


def test_points_over_limit():
    response = client.post("/api/points", json={"target_count": 10**9})
    assert response.status_code == 422
    assert "exceeds" in response.json()["detail"]


def test_points_stream():
    response = client.post("/api/points/stream", json={"target_count": 250, "include_points": False})
    assert response.status_code == 200
    assert response.headers["content-type"].startswith("text/event-stream")

    events = _sse_events(response.text)
    kinds = [kind for kind, _ in events]
    assert kinds[0] == "progress"
    assert kinds[-2:] == ["result", "done"]

    progress = [data for kind, data in events if kind == "progress"]
    percents = [p["percent"] for p in progress]
    assert percents == sorted(percents)
    assert progress[-1]["status"] == "ok"

    result = events[-2][1]
    assert result["point_count"] == 250


def test_path_weights():
    response = client.post("/api/paths/weights", json={"paths": [[1, 2], [3], [4], []], "target_count": 500})
    assert response.status_code == 200
    data = response.json()
    assert data["point_count"] == 500
    records = {tuple(r["path"]): r for r in data["records"]}
    assert records[(1, 2)]["rp"] == 3
    assert records[(1, 2)]["coeffs"] == {"1": 0, "2": 0, "3": 1}
    assert records[(1, 2)]["cl"] == 1
    assert records[(1, 2)]["sequence"][0] == 3
    assert records[(1, 2)]["first_point"] is not None
    assert records[(3,)]["statistics"]["total_weight"] == 3
    assert set(data["errors"]) == {"4", ""}


def test_path_weights_requires_paths():
    assert client.post("/api/paths/weights", json={"paths": []}).status_code == 422


def test_partitions():
    response = client.get("/api/partitions/4")
    assert response.status_code == 200
    data = response.json()
    assert data["count"] == 7
    assert [1, 3] in data["partitions"]
    assert data["stats"]["max_length"] == 4


def test_partitions_out_of_range():
    assert client.get("/api/partitions/21").status_code == 422
    assert client.get("/api/partitions/0").status_code == 422


def test_paths_by_length():
    response = client.get("/api/paths/length/3")
    assert response.status_code == 200
    data = response.json()
    assert data["count"] == 27
    assert data["paths"][0] == [1, 1, 1]
    assert data["stats"]["max_weight"] == 9


def test_paths_by_length_out_of_range():
    assert client.get("/api/paths/length/11").status_code == 422


@pytest.fixture
def serve_context():
    """Serve requests from a given context instead of the process-wide one."""

    def _serve(ctx: ComputationContext) -> None:
        app.dependency_overrides[get_context] = lambda: ctx

    yield _serve
    app.dependency_overrides.pop(get_context, None)


def test_decomposition_failure_is_500(serve_context):
    serve_context(create_context(EngineConfig(incidence_matrix=((2, 0, 0), (0, 1, 0), (0, 0, 1)))))
    response = client.post("/api/points", json={"target_count": 10})
    assert response.status_code == 500
    assert "conjugate" in response.json()["detail"]


def test_missing_matrix_library_is_500(serve_context):
    serve_context(ComputationContext(matrix_library=None))
    response = client.post("/api/paths/weights", json={"paths": [[1, 2]], "target_count": 10})
    assert response.status_code == 500
    assert "matrix library" in response.json()["detail"]


def test_stream_reports_engine_failure(serve_context):
    serve_context(ComputationContext(matrix_library=None))
    response = client.post("/api/points/stream", json={"target_count": 10})
    events = _sse_events(response.text)
    assert [kind for kind, _ in events][-1] == "done"
    assert "result" not in [kind for kind, _ in events]
    assert events[-2][1]["status"] == "error"


def test_closing_stream_cancels_job(monkeypatch):
    captured = {}
    real_create_job = points_api.create_job

    def capturing_create_job(ctx, target_count, **kwargs):
        captured["should_cancel"] = kwargs["should_cancel"]
        return real_create_job(ctx, target_count, **kwargs)

    monkeypatch.setattr(points_api, "create_job", capturing_create_job)

    async def read_first_event_then_close():
        stream = points_api._stream_points(PointsRequest(target_count=200_000), create_context())
        first = await stream.__anext__()
        assert not captured["should_cancel"]()
        await stream.aclose()
        return first

    first = asyncio.run(read_first_event_then_close())
    assert first.startswith("event: progress")
    assert captured["should_cancel"]()


def test_context_created_once_under_concurrent_requests(monkeypatch):
    monkeypatch.setattr(dependencies, "_context", None)
    calls = []
    real_create_context = dependencies.create_context

    def slow_create_context(config):
        calls.append(config)
        time.sleep(0.05)
        return real_create_context(config)

    monkeypatch.setattr(dependencies, "create_context", slow_create_context)

    barrier = threading.Barrier(4)
    contexts = []

    def request_context():
        barrier.wait()
        contexts.append(get_context())

    threads = [threading.Thread(target=request_context) for _ in range(4)]
    for t in threads:
        t.start()
    for t in threads:
        t.join(timeout=5)

    assert len(calls) == 1
    assert len(contexts) == 4
    assert all(c is contexts[0] for c in contexts)
