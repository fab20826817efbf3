import asyncio

import pytest

from prompt_enhancer.services.prompt_enhancement import (
    PipelineOrchestrator,
    SimpleMetricsCollector,
    EnhancementOptions,
    RequestHints,
    MandatoryDependencyError,
    EnhancementValidationError
)
from prompt_enhancer.services.prompt_enhancement.analyzers import (
    ContextGatherer,
    FrameworkDetectionWrapper,
    KeywordFrameworkDetector
)
from prompt_enhancer.services.prompt_enhancement.cache import (
    ContentAddressedCache,
    InMemoryCacheStore,
    CacheInvalidator
)
from prompt_enhancer.services.prompt_enhancement.documentation import DocumentationRetriever
from prompt_enhancer.services.prompt_enhancement.tasks import TaskBreakdownAdapter
from prompt_enhancer.services.prompt_enhancement.enhancers import AIEnhancer

from conftest import (
    FakeProjectAnalyzer,
    FailingFrameworkDetector,
    FakeDocumentationSource,
    FakeAIClient,
    FakeTaskBreakdownService,
    FailingCacheStore,
    FixedClock
)

PROMPT = "create a button component"


def build_orchestrator(
    analyzer=None,
    detector=None,
    docs=None,
    ai_client=None,
    breakdown=None,
    store=None,
    clock=None,
    ai_enabled=True
):
    cache = None
    invalidator = None
    if store is not None:
        cache = ContentAddressedCache(store)
        invalidator = CacheInvalidator(cache, clock=clock or FixedClock())

    return PipelineOrchestrator(
        context_gatherer=ContextGatherer(analyzer),
        framework_detector=FrameworkDetectionWrapper(detector or KeywordFrameworkDetector()),
        documentation_retriever=DocumentationRetriever(docs),
        task_breakdown=TaskBreakdownAdapter(breakdown),
        ai_enhancer=AIEnhancer(ai_client) if ai_client else None,
        cache=cache,
        invalidator=invalidator,
        metrics_collector=SimpleMetricsCollector(),
        ai_enhancement_enabled=ai_enabled
    )


def test_enhance_without_context_or_cache():
    orchestrator = build_orchestrator()
    options = EnhancementOptions(use_cache=False, use_ai_enhancement=False)

    response = asyncio.run(orchestrator.enhance(PROMPT, None, options))
    data = response.to_dict()

    assert data["success"] is True
    assert isinstance(data["context_used"]["repo_facts"], list)
    assert PROMPT in data["enhanced_prompt"]
    assert data["cache_hit"] is False
    assert data["metrics"]["token_ratio"] >= 1


def test_identical_request_is_served_from_cache(react_analyzer):
    orchestrator = build_orchestrator(analyzer=react_analyzer, store=InMemoryCacheStore())
    options = EnhancementOptions(use_cache=True, use_ai_enhancement=False)

    async def run():
        first = await orchestrator.enhance(PROMPT, None, options)
        second = await orchestrator.enhance(PROMPT, None, options)
        return first, second

    first, second = asyncio.run(run())

    assert first.cache_hit is False
    assert second.cache_hit is True
    assert second.metrics.response_time_ms == 0
    assert second.enhanced_prompt == first.enhanced_prompt

    metrics = asyncio.run(orchestrator.metrics_collector.get_metrics())
    assert metrics.total_requests == 2
    assert metrics.cache_hits == 1


def test_project_drift_invalidates_and_reruns():
    analyzer = FakeProjectAnalyzer(facts=["Uses React 18"])
    orchestrator = build_orchestrator(analyzer=analyzer, store=InMemoryCacheStore())
    options = EnhancementOptions(use_cache=True, use_ai_enhancement=False)

    async def run():
        first = await orchestrator.enhance(PROMPT, None, options)
        analyzer.facts = ["Uses React 18", "Migrated styling to Tailwind CSS"]
        second = await orchestrator.enhance(PROMPT, None, options)
        return first, second

    first, second = asyncio.run(run())

    assert second.cache_hit is False
    assert second.metrics.response_time_ms > 0
    assert "Migrated styling to Tailwind CSS" in second.enhanced_prompt
    assert orchestrator.cache.get_stats()["invalidated"] == 1


def test_framework_detector_failure_degrades(react_analyzer):
    orchestrator = build_orchestrator(analyzer=react_analyzer, detector=FailingFrameworkDetector())

    response = asyncio.run(orchestrator.enhance(PROMPT, None, EnhancementOptions(use_cache=False)))
    data = response.to_dict()

    assert data["success"] is True
    assert data["metrics"]["frameworks_detected"] == []
    for field in ("repo_facts", "code_snippets", "framework_docs", "project_docs", "libraries_resolved"):
        assert isinstance(data["context_used"][field], list)


def test_ai_failure_falls_back_to_assembled_prompt(react_analyzer):
    options = EnhancementOptions(use_cache=False)
    failing = build_orchestrator(analyzer=react_analyzer, ai_client=FakeAIClient(error=TimeoutError("timeout")))
    without_ai = build_orchestrator(analyzer=react_analyzer)

    fallback = asyncio.run(failing.enhance(PROMPT, None, options))
    assembled = asyncio.run(without_ai.enhance(PROMPT, None, options))

    assert fallback.enhanced_prompt == assembled.enhanced_prompt
    assert fallback.enhanced_prompt != PROMPT
    assert fallback.metrics.ai_enhancement_enabled is False
    assert fallback.metrics.quality_score == 0
    assert fallback.metrics.confidence_score == 0
    assert fallback.metrics.cost == 0


def test_ai_enhancement_replaces_prompt_and_reports_scores(react_analyzer):
    client = FakeAIClient()
    orchestrator = build_orchestrator(analyzer=react_analyzer, ai_client=client)

    response = asyncio.run(orchestrator.enhance(PROMPT, None, EnhancementOptions(use_cache=False)))

    assert response.enhanced_prompt == client.enhanced_prompt
    assert response.metrics.ai_enhancement_enabled is True
    assert response.metrics.quality_score == 0.76
    assert response.metrics.cost == 0.002
    assert response.strategy == "framework_specific(react)"
    prompt_sent, context_sent, _ = client.calls[0]
    assert prompt_sent.startswith(PROMPT)
    assert context_sent["frameworks"] == ["react", "typescript"]


def test_ai_skipped_when_disabled(react_analyzer):
    client = FakeAIClient()
    orchestrator = build_orchestrator(analyzer=react_analyzer, ai_client=client, ai_enabled=False)

    response = asyncio.run(orchestrator.enhance(PROMPT, None, EnhancementOptions(use_cache=False)))

    assert client.calls == []
    assert response.metrics.ai_enhancement_enabled is False


def test_mandatory_failure_is_reraised():
    orchestrator = build_orchestrator(analyzer=FakeProjectAnalyzer(mandatory=True))

    with pytest.raises(MandatoryDependencyError):
        asyncio.run(orchestrator.enhance(PROMPT))

    metrics = asyncio.run(orchestrator.metrics_collector.get_metrics())
    assert metrics.failures == 1
    assert metrics.total_requests == 0


def test_optional_analyzer_failures_do_not_abort():
    analyzer = FakeProjectAnalyzer(fail_facts=True, fail_snippets=True)
    response = asyncio.run(build_orchestrator(analyzer=analyzer).enhance(PROMPT))
    assert response.success is True
    assert response.context_used.repo_facts == []


def test_validation_happens_before_pipeline():
    analyzer = FakeProjectAnalyzer(mandatory=True)
    orchestrator = build_orchestrator(analyzer=analyzer)

    with pytest.raises(EnhancementValidationError):
        asyncio.run(orchestrator.enhance("   "))
    with pytest.raises(EnhancementValidationError):
        EnhancementOptions(max_tokens=0)
    with pytest.raises(EnhancementValidationError):
        EnhancementOptions.from_dict({"use_cash": True})
    with pytest.raises(EnhancementValidationError):
        EnhancementOptions.from_dict({"enhancement_strategy": "magic"})

    metrics = asyncio.run(orchestrator.metrics_collector.get_metrics())
    assert metrics.failures == 0


def test_documentation_is_included(react_analyzer):
    orchestrator = build_orchestrator(analyzer=react_analyzer, docs=FakeDocumentationSource())

    response = asyncio.run(orchestrator.enhance(PROMPT, None, EnhancementOptions(use_cache=False)))

    assert response.context_used.libraries_resolved == ["/facebook/react"]
    assert response.context_used.framework_docs
    assert "## Framework Documentation:" in response.enhanced_prompt


def test_breakdown_included_when_requested():
    orchestrator = build_orchestrator(breakdown=FakeTaskBreakdownService())
    options = EnhancementOptions(use_cache=False, include_breakdown=True, project_id="shop")

    data = asyncio.run(orchestrator.enhance(PROMPT, None, options)).to_dict()

    assert data["breakdown"]["main_tasks"] == 2
    assert data["breakdown"]["subtasks"] == 1
    assert data["breakdown"]["estimated_total_hours"] == 3.0
    assert [todo["status"] for todo in data["todos"]] == ["pending", "pending"]
    assert data["todos"][0]["project_id"] == "shop"
    assert "## Task Plan:" in data["enhanced_prompt"]


def test_breakdown_failure_is_omitted():
    orchestrator = build_orchestrator(breakdown=FakeTaskBreakdownService(error=RuntimeError("db down")))
    options = EnhancementOptions(use_cache=False, include_breakdown=True)

    data = asyncio.run(orchestrator.enhance(PROMPT, None, options)).to_dict()

    assert data["success"] is True
    assert "breakdown" not in data
    assert "todos" not in data


def test_cache_store_failure_is_not_fatal(react_analyzer):
    orchestrator = build_orchestrator(analyzer=react_analyzer, store=FailingCacheStore())

    response = asyncio.run(orchestrator.enhance(PROMPT, None, EnhancementOptions(use_ai_enhancement=False)))

    assert response.success is True
    assert response.cache_hit is False


def test_hints_drive_detection():
    orchestrator = build_orchestrator()
    response = asyncio.run(orchestrator.enhance(
        "make a login form", RequestHints(framework="vue"), EnhancementOptions(use_cache=False)
    ))
    assert response.metrics.frameworks_detected == ["vue"]
    assert response.strategy == "framework_specific(vue)"


def test_health_check_reports_configured_components(react_analyzer):
    orchestrator = build_orchestrator(analyzer=react_analyzer, store=InMemoryCacheStore())

    health = asyncio.run(orchestrator.health_check())

    assert health["status"] == "healthy"
    assert health["components"]["project_analyzer"]["status"] == "healthy"
    assert health["components"]["ai_enhancement"]["status"] == "disabled"
    assert health["components"]["cache"]["type"] == "InMemoryCacheStore"


class SequencedAIClient(FakeAIClient):
    """Returns a different prompt per call, after a per-call delay"""

    def __init__(self, replies):
        super().__init__()
        self.replies = list(replies)

    async def enhance(self, prompt, context, strategy):
        text, delay = self.replies.pop(0)
        self.enhanced_prompt = text
        result = await super().enhance(prompt, context, strategy)
        await asyncio.sleep(delay)
        return result


def test_concurrent_requests_for_same_key_both_succeed_and_last_write_wins(react_analyzer):
    client = SequencedAIClient([
        ("Refined first: build an accessible button component", 0.05),
        ("Refined second: build an accessible button component", 0),
    ])
    orchestrator = build_orchestrator(analyzer=react_analyzer, ai_client=client, store=InMemoryCacheStore())
    options = EnhancementOptions(use_cache=True)

    async def run():
        first, second = await asyncio.gather(
            orchestrator.enhance(PROMPT, None, options),
            orchestrator.enhance(PROMPT, None, options)
        )
        third = await orchestrator.enhance(PROMPT, None, options)
        return first, second, third

    first, second, third = asyncio.run(run())

    assert first.success and second.success
    assert first.cache_hit is False
    assert second.cache_hit is False
    assert first.enhanced_prompt.startswith("Refined first")
    assert second.enhanced_prompt.startswith("Refined second")
    # the slower request finishes, and writes, last
    assert third.cache_hit is True
    assert third.enhanced_prompt == first.enhanced_prompt
    assert orchestrator.cache.get_stats()["writes"] == 2


def test_documentation_and_breakdown_run_concurrently(react_analyzer):
    class RendezvousDocs(FakeDocumentationSource):
        async def fetch(self, library_id, topic, token_budget):
            docs_started.set()
            await asyncio.wait_for(breakdown_started.wait(), 1)
            return await super().fetch(library_id, topic, token_budget)

    class RendezvousBreakdown(FakeTaskBreakdownService):
        async def breakdown(self, prompt, project_id):
            breakdown_started.set()
            await asyncio.wait_for(docs_started.wait(), 1)
            return await super().breakdown(prompt, project_id)

    docs_started = None
    breakdown_started = None

    orchestrator = build_orchestrator(
        analyzer=react_analyzer,
        docs=RendezvousDocs(),
        breakdown=RendezvousBreakdown()
    )
    options = EnhancementOptions(use_cache=False, include_breakdown=True)

    async def run():
        nonlocal docs_started, breakdown_started
        docs_started = asyncio.Event()
        breakdown_started = asyncio.Event()
        return await orchestrator.enhance(PROMPT, RequestHints(framework="react"), options)

    response = asyncio.run(run())

    assert response.context_used.libraries_resolved == ["/facebook/react"]
    assert response.breakdown is not None
    assert "## Task Plan:" in response.enhanced_prompt
