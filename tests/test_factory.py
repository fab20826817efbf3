import asyncio

import pytest

from prompt_enhancer.services.prompt_enhancement import (
    EnhancementFactory,
    EnhancementService,
    EnhancementValidationError
)
from prompt_enhancer.services.prompt_enhancement.cache import InMemoryCacheStore

from conftest import FakeProjectAnalyzer, FakeAIClient, FixedClock


def test_capabilities_reflect_configured_collaborators():
    factory = EnhancementFactory().with_project_analyzer(FakeProjectAnalyzer()).with_framework_detector(None)
    capabilities = factory.build_capabilities()

    assert capabilities.has_project_analyzer
    assert not capabilities.has_framework_detector
    assert not capabilities.has_documentation
    assert not capabilities.has_ai_enhancement
    assert not capabilities.has_task_breakdown


def test_config_overrides_settings():
    factory = EnhancementFactory({"DEFAULT_MAX_TOKENS": 1234})
    assert factory.get_setting("DEFAULT_MAX_TOKENS") == 1234
    assert factory.get_setting("DEFAULT_PROJECT_ID") == "default"


def test_unknown_cache_backend_is_rejected():
    with pytest.raises(ValueError):
        EnhancementFactory({"CACHE_BACKEND": "redis"}).create_cache_store()


def test_cache_disabled_builds_pipeline_without_cache():
    orchestrator = EnhancementFactory({"CACHE_ENABLED": False}).create_orchestrator()
    assert orchestrator.cache is None
    assert orchestrator.invalidator is None


def test_service_enhances_with_dict_options():
    factory = (
        EnhancementFactory({"CACHE_ENABLED": True, "AI_ENHANCEMENT_ENABLED": True})
        .with_cache_store(InMemoryCacheStore())
        .with_clock(FixedClock())
        .with_ai_client(FakeAIClient())
    )
    service = EnhancementService(factory)

    result = asyncio.run(service.enhance("create a button component", {"framework": "react"}, {"max_tokens": 800}))

    assert result["success"] is True
    assert result["metrics"]["ai_enhancement_enabled"] is True
    assert result["strategy"] == "framework_specific(react)"

    metrics = asyncio.run(service.get_metrics())
    assert metrics["total_requests"] == 1
    assert metrics["ai_enhancements"] == 1
    assert metrics["cache"]["writes"] == 1


def test_service_rejects_invalid_options():
    service = EnhancementService(EnhancementFactory({"CACHE_ENABLED": False}))
    with pytest.raises(EnhancementValidationError):
        asyncio.run(service.enhance("create a button component", None, {"max_tokens": -5}))
    with pytest.raises(EnhancementValidationError):
        asyncio.run(service.enhance("create a button component", None, {"enhancement_strategy": "verbose"}))


def test_service_invalidates_cached_enhancements():
    store = InMemoryCacheStore()
    factory = (
        EnhancementFactory({"CACHE_ENABLED": True})
        .with_cache_store(store)
        .with_clock(FixedClock())
    )
    service = EnhancementService(factory)

    async def run():
        await service.enhance("create a button component", None, {"use_ai_enhancement": False})
        await service.enhance("write a sql migration", None, {"use_ai_enhancement": False})
        return await service.invalidate_cache("button")

    assert asyncio.run(run()) == 1
    assert len(store) == 1
    assert asyncio.run(service.get_metrics())["cache"]["invalidated"] == 1


def test_service_invalidate_without_cache_is_a_no_op():
    service = EnhancementService(EnhancementFactory({"CACHE_ENABLED": False}))
    assert asyncio.run(service.invalidate_cache("button")) == 0
