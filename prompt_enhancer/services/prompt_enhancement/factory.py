"""
Factory for creating prompt enhancement components.
Implements dependency injection and configuration.
"""

import time
import logging
from dataclasses import dataclass
from typing import Optional, Dict, Any, Callable

from prompt_enhancer.config import settings

from .interfaces import (
    IProjectAnalyzer,
    IFrameworkDetector,
    IDocumentationSource,
    IAIEnhancementClient,
    ITaskBreakdownService,
    ICacheStore,
    IModelManager,
    IMetricsCollector
)
from .models import EnhancementOptions, RequestHints
from .analyzers import ContextGatherer, FrameworkDetectionWrapper, KeywordFrameworkDetector
from .cache import ContentAddressedCache, InMemoryCacheStore, CacheInvalidator
from .cache.sql_store import SQLCacheStore
from .documentation import DocumentationRetriever
from .tasks import TaskBreakdownAdapter
from .enhancers import AIEnhancer, ModelBackedAIEnhancementClient
from .orchestrator import PipelineOrchestrator, SimpleMetricsCollector

logger = logging.getLogger(__name__)


@dataclass
class Capabilities:
    """Optional collaborators available to a pipeline"""
    project_analyzer: Optional[IProjectAnalyzer] = None
    framework_detector: Optional[IFrameworkDetector] = None
    documentation_source: Optional[IDocumentationSource] = None
    ai_client: Optional[IAIEnhancementClient] = None
    task_breakdown: Optional[ITaskBreakdownService] = None

    @property
    def has_project_analyzer(self) -> bool:
        return self.project_analyzer is not None

    @property
    def has_framework_detector(self) -> bool:
        return self.framework_detector is not None

    @property
    def has_documentation(self) -> bool:
        return self.documentation_source is not None

    @property
    def has_ai_enhancement(self) -> bool:
        return self.ai_client is not None

    @property
    def has_task_breakdown(self) -> bool:
        return self.task_breakdown is not None


class EnhancementFactory:
    """
    Factory for creating enhancement system components.
    Handles dependency injection and configuration.
    """

    def __init__(self, config: Optional[Dict[str, Any]] = None):
        """
        Initialize factory with configuration.

        Args:
            config: Overrides for settings values, keyed by setting name
        """
        self.config = config or {}
        self._project_analyzer = None
        self._framework_detector: Optional[IFrameworkDetector] = KeywordFrameworkDetector()
        self._documentation_source = None
        self._ai_client = None
        self._task_breakdown = None
        self._cache_store = None
        self._clock: Callable[[], float] = time.time
        self._metrics_collector = None

    def get_setting(self, name: str) -> Any:
        return self.config.get(name, getattr(settings, name))

    def with_project_analyzer(self, analyzer: IProjectAnalyzer) -> 'EnhancementFactory':
        self._project_analyzer = analyzer
        return self

    def with_framework_detector(self, detector: Optional[IFrameworkDetector]) -> 'EnhancementFactory':
        """Replace the default keyword detector; None disables detection"""
        self._framework_detector = detector
        return self

    def with_documentation_source(self, source: IDocumentationSource) -> 'EnhancementFactory':
        self._documentation_source = source
        return self

    def with_ai_client(self, client: IAIEnhancementClient) -> 'EnhancementFactory':
        self._ai_client = client
        return self

    def with_model_manager(self, model_manager: IModelManager) -> 'EnhancementFactory':
        """
        Configure AI enhancement backed by a local model.

        Args:
            model_manager: Model manager instance

        Returns:
            EnhancementFactory: Self for method chaining
        """
        self._ai_client = ModelBackedAIEnhancementClient(
            model_manager,
            cost_per_1k_tokens=self.get_setting("AI_COST_PER_1K_TOKENS")
        )
        return self

    def with_task_breakdown(self, service: ITaskBreakdownService) -> 'EnhancementFactory':
        self._task_breakdown = service
        return self

    def with_cache_store(self, store: ICacheStore) -> 'EnhancementFactory':
        self._cache_store = store
        return self

    def with_clock(self, clock: Callable[[], float]) -> 'EnhancementFactory':
        self._clock = clock
        return self

    def build_capabilities(self) -> Capabilities:
        """Snapshot of the collaborators configured so far"""
        return Capabilities(
            project_analyzer=self._project_analyzer,
            framework_detector=self._framework_detector,
            documentation_source=self._documentation_source,
            ai_client=self._ai_client,
            task_breakdown=self._task_breakdown
        )

    def create_cache_store(self) -> ICacheStore:
        """Create the configured cache store"""
        if self._cache_store is None:
            backend = self.get_setting("CACHE_BACKEND")
            if backend == "sql":
                self._cache_store = SQLCacheStore(self.get_setting("CACHE_DATABASE_URL"))
                logger.info("Using SQL cache store for enhancements")
            elif backend == "memory":
                self._cache_store = InMemoryCacheStore(max_size=self.get_setting("CACHE_MAX_ENTRIES"))
                logger.info("Using in-memory cache for enhancements")
            else:
                raise ValueError(f"Unsupported cache backend: {backend}")

        return self._cache_store

    def create_metrics_collector(self) -> IMetricsCollector:
        """Create metrics collector instance"""
        if self._metrics_collector is None:
            self._metrics_collector = SimpleMetricsCollector()

        return self._metrics_collector

    def create_orchestrator(self) -> PipelineOrchestrator:
        """Create pipeline orchestrator from the configured capabilities"""
        capabilities = self.build_capabilities()

        cache = None
        invalidator = None
        if self.get_setting("CACHE_ENABLED"):
            cache = ContentAddressedCache(
                self.create_cache_store(),
                default_ttl=self.get_setting("CACHE_DEFAULT_TTL"),
                max_ttl=self.get_setting("CACHE_MAX_TTL"),
                cleanup_interval=self.get_setting("CACHE_CLEANUP_INTERVAL")
            )
            invalidator = CacheInvalidator(
                cache,
                window_seconds=self.get_setting("INVALIDATION_WINDOW_SECONDS"),
                clock=self._clock
            )

        logger.info(
            f"Creating enhancement pipeline (project_analyzer={capabilities.has_project_analyzer}, "
            f"detector={capabilities.has_framework_detector}, docs={capabilities.has_documentation}, "
            f"ai={capabilities.has_ai_enhancement}, breakdown={capabilities.has_task_breakdown}, "
            f"cache={cache is not None})"
        )

        return PipelineOrchestrator(
            context_gatherer=ContextGatherer(capabilities.project_analyzer),
            framework_detector=FrameworkDetectionWrapper(capabilities.framework_detector),
            documentation_retriever=DocumentationRetriever(
                capabilities.documentation_source,
                doc_cache_ttl=self.get_setting("CACHE_DEFAULT_TTL"),
                max_libraries=self.get_setting("MAX_DOC_LIBRARIES")
            ),
            task_breakdown=TaskBreakdownAdapter(capabilities.task_breakdown),
            ai_enhancer=AIEnhancer(capabilities.ai_client) if capabilities.has_ai_enhancement else None,
            cache=cache,
            invalidator=invalidator,
            metrics_collector=self.create_metrics_collector(),
            ai_enhancement_enabled=self.get_setting("AI_ENHANCEMENT_ENABLED"),
            default_max_tokens=self.get_setting("DEFAULT_MAX_TOKENS")
        )


class EnhancementService:
    """
    High-level service for prompt enhancement.
    Provides simple interface for integration.
    """

    def __init__(self, factory: Optional[EnhancementFactory] = None):
        """
        Initialize enhancement service.

        Args:
            factory: Configured factory; a default one is used when omitted
        """
        self.factory = factory or EnhancementFactory()
        self.orchestrator = self.factory.create_orchestrator()

        logger.info("Enhancement service initialized successfully")

    async def enhance(
        self,
        prompt: str,
        context: Optional[Dict[str, Any]] = None,
        options: Optional[Dict[str, Any]] = None
    ) -> Dict[str, Any]:
        """
        Enhance a prompt.

        Args:
            prompt: Prompt to enhance
            context: Optional hints (file, framework, style)
            options: Optional processing options

        Returns:
            Dict[str, Any]: Enhanced response
        """
        options = dict(options or {})
        options.setdefault("project_id", self.factory.get_setting("DEFAULT_PROJECT_ID"))

        enhancement_options = EnhancementOptions.from_dict(
            options,
            default_max_tokens=self.factory.get_setting("DEFAULT_MAX_TOKENS")
        )
        response = await self.orchestrator.enhance(prompt, RequestHints.from_dict(context), enhancement_options)

        # Return as dictionary for API response
        return response.to_dict()

    async def health_check(self) -> Dict[str, Any]:
        """Check health of enhancement system"""
        return await self.orchestrator.health_check()

    async def get_metrics(self) -> Dict[str, Any]:
        """Get enhancement metrics"""
        metrics = await self.orchestrator.metrics_collector.get_metrics()
        result = {
            "total_requests": metrics.total_requests,
            "cache_hits": metrics.cache_hits,
            "cache_hit_rate": metrics.cache_hit_rate,
            "ai_enhancements": metrics.ai_enhancements,
            "fallbacks": metrics.fallbacks,
            "failures": metrics.failures,
            "average_response_time_ms": metrics.average_response_time_ms,
            "average_token_ratio": metrics.average_token_ratio,
        }
        if self.orchestrator.cache is not None:
            result["cache"] = self.orchestrator.cache.get_stats()
        return result

    async def invalidate_cache(self, pattern: Optional[str] = None) -> int:
        """
        Remove cached enhancements.

        Args:
            pattern: Substring of the cache key or original prompt; without
                one only expired entries are removed

        Returns:
            int: Number of entries removed, 0 when caching is disabled
        """
        if self.orchestrator.cache is None:
            return 0
        return await self.orchestrator.cache.invalidate(pattern)

    async def close(self):
        """Release the cache store"""
        if self.orchestrator.cache is not None:
            await self.orchestrator.cache.store.close()
