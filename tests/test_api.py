import pytest
from fastapi.testclient import TestClient

from prompt_enhancer.main import app
from prompt_enhancer.api.routes import enhancement
from prompt_enhancer.services.prompt_enhancement import EnhancementFactory, EnhancementService

from conftest import FakeProjectAnalyzer, FixedClock, REACT_SNIPPET

client = TestClient(app)


@pytest.fixture
def service(monkeypatch):
    """Install a service with an in-memory cache and a fake project analyzer"""
    factory = (
        EnhancementFactory({"CACHE_ENABLED": True, "CACHE_BACKEND": "memory"})
        .with_project_analyzer(FakeProjectAnalyzer(facts=["Uses React 18 with TypeScript"], snippets=[REACT_SNIPPET]))
        .with_clock(FixedClock())
    )
    enhancement_service = EnhancementService(factory)
    monkeypatch.setattr(enhancement, "_enhancement_service", enhancement_service)
    return enhancement_service


def test_root_endpoint():
    """Test the root endpoint"""
    response = client.get("/")
    assert response.status_code == 200
    data = response.json()
    assert data["message"] == "Prompt Enhancement Service"
    assert "version" in data
    assert data["status"] == "running"


def test_health_endpoint():
    """Test the health check endpoint"""
    response = client.get("/health/")
    assert response.status_code == 200
    data = response.json()
    assert data["status"] == "healthy"
    assert "timestamp" in data
    assert "uptime" in data
    assert "cache_enabled" in data
    assert "ai_enhancement_enabled" in data
    assert "version" in data


def test_enhance_endpoint(service):
    """Test enhancing a prompt with project context"""
    response = client.post("/api/enhancement/enhance", json={
        "prompt": "create a button component",
        "context": {"file": "src/components/Button.tsx"},
        "options": {"use_ai_enhancement": False}
    })
    assert response.status_code == 200
    data = response.json()
    assert data["success"] is True
    assert data["enhanced_prompt"].startswith("create a button component")
    assert data["context_used"]["repo_facts"] == ["Uses React 18 with TypeScript"]
    assert data["metrics"]["frameworks_detected"][0] == "react"
    assert data["cache_hit"] is False
    assert "breakdown" not in data


def test_enhance_endpoint_serves_repeat_from_cache(service):
    """Test that an identical request is answered from the cache"""
    payload = {"prompt": "create a button component", "options": {"use_ai_enhancement": False}}
    first = client.post("/api/enhancement/enhance", json=payload).json()
    second = client.post("/api/enhancement/enhance", json=payload).json()

    assert second["cache_hit"] is True
    assert second["metrics"]["response_time_ms"] == 0
    assert second["enhanced_prompt"] == first["enhanced_prompt"]


def test_enhance_rejects_empty_prompt(service):
    response = client.post("/api/enhancement/enhance", json={"prompt": ""})
    assert response.status_code == 422


def test_enhance_rejects_unknown_option(service):
    response = client.post("/api/enhancement/enhance", json={
        "prompt": "create a button component",
        "options": {"use_cash": True}
    })
    assert response.status_code == 422


def test_enhance_rejects_unknown_enum_value(service):
    response = client.post("/api/enhancement/enhance", json={
        "prompt": "create a button component",
        "options": {"project_type": "spaceship"}
    })
    assert response.status_code == 400


def test_enhance_mandatory_failure_is_unavailable(monkeypatch):
    factory = EnhancementFactory({"CACHE_ENABLED": False}).with_project_analyzer(
        FakeProjectAnalyzer(mandatory=True)
    )
    monkeypatch.setattr(enhancement, "_enhancement_service", EnhancementService(factory))

    response = client.post("/api/enhancement/enhance", json={"prompt": "create a button component"})
    assert response.status_code == 503


def test_enhancement_health_endpoint(service):
    response = client.get("/api/enhancement/health")
    assert response.status_code == 200
    data = response.json()
    assert data["status"] == "healthy"
    assert data["components"]["project_analyzer"]["status"] == "healthy"
    assert data["components"]["cache"]["type"] == "InMemoryCacheStore"


def test_enhancement_metrics_endpoint(service):
    client.post("/api/enhancement/enhance", json={
        "prompt": "create a button component",
        "options": {"use_ai_enhancement": False}
    })

    response = client.get("/api/enhancement/metrics")
    assert response.status_code == 200
    data = response.json()
    assert data["total_requests"] == 1
    assert data["fallbacks"] == 1
    assert data["failures"] == 0
    assert data["cache"]["writes"] == 1


def test_cache_invalidate_endpoint_removes_matching_entries(service):
    payload = {"prompt": "create a button component", "options": {"use_ai_enhancement": False}}
    client.post("/api/enhancement/enhance", json=payload)

    response = client.post("/api/enhancement/cache/invalidate", json={"pattern": "button"})
    assert response.status_code == 200
    assert response.json() == {"invalidated": 1, "pattern": "button"}

    repeat = client.post("/api/enhancement/enhance", json=payload).json()
    assert repeat["cache_hit"] is False

    metrics = client.get("/api/enhancement/metrics").json()
    assert metrics["cache"]["invalidated"] == 1
    assert "purged" in metrics["cache"]


def test_cache_invalidate_endpoint_without_pattern_purges_expired(service):
    response = client.post("/api/enhancement/cache/invalidate")
    assert response.status_code == 200
    assert response.json() == {"invalidated": 0, "pattern": None}


def test_cache_invalidate_rejects_empty_pattern(service):
    response = client.post("/api/enhancement/cache/invalidate", json={"pattern": ""})
    assert response.status_code == 422
