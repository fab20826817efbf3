"""
Main orchestrator for the context-aware prompt enhancement pipeline.
Runs the four phases in order and degrades around optional collaborators.
"""

import time
import asyncio
import logging
from typing import Optional, Dict, Any

from .interfaces import IMetricsCollector
from .models import (
    EnhancementOptions,
    EnhancedResponse,
    EnhancementMetrics,
    RequestHints,
    CacheEntry,
    PipelinePhase,
    ProjectContext,
    FrameworkDetectionResult,
    PromptComplexity,
    EnhancementStrategy,
    AIEnhancementResult
)
from .exceptions import EnhancementValidationError, AIEnhancementError
from .analyzers import (
    ContextGatherer,
    FrameworkDetectionWrapper,
    ComplexityAnalyzer,
    QualityRequirementDetector,
    infer_project_type
)
from .cache import CacheKeyGenerator, ContentAddressedCache, CacheInvalidator
from .documentation import DocumentationRetriever, DocumentationResult
from .tasks import TaskBreakdownAdapter
from .enhancers import EnhancementStrategySelector, AIEnhancer
from .assembly import PromptAssembler, ResponseAssembler

logger = logging.getLogger(__name__)


class PipelineOrchestrator:
    """
    Coordinates context gathering, analysis, processing and response generation.

    Only the collaborators passed in are used; everything else is skipped.
    The single fatal failure is a MandatoryDependencyError from context
    gathering, which is logged and re-raised unchanged.
    """

    def __init__(
        self,
        context_gatherer: Optional[ContextGatherer] = None,
        framework_detector: Optional[FrameworkDetectionWrapper] = None,
        documentation_retriever: Optional[DocumentationRetriever] = None,
        task_breakdown: Optional[TaskBreakdownAdapter] = None,
        ai_enhancer: Optional[AIEnhancer] = None,
        cache: Optional[ContentAddressedCache] = None,
        invalidator: Optional[CacheInvalidator] = None,
        metrics_collector: Optional[IMetricsCollector] = None,
        ai_enhancement_enabled: bool = True,
        default_max_tokens: int = 4000
    ):
        """
        Initialize orchestrator.

        Args:
            context_gatherer: Gathers repo facts and code snippets
            framework_detector: Detects frameworks over the gathered context
            documentation_retriever: Fetches and curates framework docs
            task_breakdown: Optional task breakdown adapter
            ai_enhancer: Optional second-pass AI refinement
            cache: Optional enhancement cache
            invalidator: Optional drift detector for the cache
            metrics_collector: Optional metrics collector
            ai_enhancement_enabled: Global switch for AI refinement
            default_max_tokens: Token budget when the caller supplies none
        """
        self.context_gatherer = context_gatherer or ContextGatherer()
        self.framework_detector = framework_detector or FrameworkDetectionWrapper()
        self.documentation_retriever = documentation_retriever or DocumentationRetriever()
        self.task_breakdown = task_breakdown or TaskBreakdownAdapter()
        self.ai_enhancer = ai_enhancer
        self.cache = cache
        self.invalidator = invalidator
        self.metrics_collector = metrics_collector
        self.ai_enhancement_enabled = ai_enhancement_enabled
        self.default_max_tokens = default_max_tokens

        self.complexity_analyzer = ComplexityAnalyzer()
        self.quality_detector = QualityRequirementDetector()
        self.key_generator = CacheKeyGenerator()
        self.strategy_selector = EnhancementStrategySelector()
        self.prompt_assembler = PromptAssembler()
        self.response_assembler = ResponseAssembler()

    async def enhance(
        self,
        prompt: str,
        context: Optional[RequestHints] = None,
        options: Optional[EnhancementOptions] = None
    ) -> EnhancedResponse:
        """
        Enhance a prompt with project context.

        Args:
            prompt: Raw natural-language coding request
            context: Optional caller hints (file, framework, style)
            options: Optional processing options

        Returns:
            EnhancedResponse: Enhanced prompt with context usage and metrics
        """
        if not isinstance(prompt, str) or not prompt.strip():
            raise EnhancementValidationError("Prompt must be a non-empty string")

        hints = context or RequestHints()
        options = options or EnhancementOptions(max_tokens=self.default_max_tokens)

        start_time = time.perf_counter()
        phase = PipelinePhase.CONTEXT_GATHERING

        try:
            # Phase 1: context gathering
            project_context = await self.context_gatherer.gather(prompt, hints.file)

            # Phase 2: context-aware analysis over the complete context
            phase = PipelinePhase.CONTEXT_AWARE_ANALYSIS
            detection = await self.framework_detector.detect(prompt, project_context, hints.framework)
            complexity = self.complexity_analyzer.analyze(prompt, project_context)
            requirements = self.quality_detector.detect(prompt, project_context, detection)
            project_type = options.project_type or infer_project_type(detection.detected_frameworks)

            # Phase 3: context-informed processing
            phase = PipelinePhase.CONTEXT_INFORMED_PROCESSING
            prompt_hash = self.key_generator.prompt_hash(prompt)
            project_signature = None
            if self.invalidator is not None:
                project_signature, _ = self.invalidator.check(
                    project_context, project_type, prompt_hash, detection.detected_frameworks
                )

            signature = self.key_generator.build_signature(
                prompt, project_context, detection, hints, complexity.level, requirements, project_type
            )
            cache_key = self.key_generator.generate_key(prompt, signature)

            if options.use_cache and self.cache is not None:
                cached = await self.cache.get(cache_key, signature)
                if cached is not None:
                    logger.info(f"Cache hit for prompt: {prompt[:50]}...")
                    response = self.response_assembler.from_cache(prompt, cached)
                    await self._record(response)
                    return response

            effective = self.complexity_analyzer.optimize_options(options, complexity)
            strategy = self.strategy_selector.select(
                options.enhancement_strategy,
                detection.detected_frameworks,
                options.quality_focus,
                options.project_type
            )

            run_breakdown = self.complexity_analyzer.should_breakdown(prompt, effective)
            documentation, breakdown = await asyncio.gather(
                self.documentation_retriever.retrieve(
                    prompt, detection.detected_frameworks, complexity, effective.max_tokens
                ),
                self._breakdown(prompt, effective, run_breakdown)
            )

            assembled = self.prompt_assembler.assemble(
                prompt,
                project_context,
                documentation.fragments,
                requirements,
                project_type=project_type,
                breakdown=breakdown.breakdown if breakdown else None,
                max_tokens=effective.max_tokens,
                libraries=documentation.libraries
            )

            ai_result = None
            if self.ai_enhancer is not None and self.ai_enhancement_enabled and options.use_ai_enhancement:
                ai_result = await self._ai_enhance(
                    assembled.text, project_context, detection, complexity, documentation, strategy
                )

            # Phase 4: response generation
            phase = PipelinePhase.RESPONSE_GENERATION
            enhanced_prompt = ai_result.enhanced_prompt if ai_result else assembled.text

            response = self.response_assembler.build(
                original_prompt=prompt,
                enhanced_prompt=enhanced_prompt,
                context_used=assembled.context_used,
                frameworks=detection.detected_frameworks,
                response_time_ms=(time.perf_counter() - start_time) * 1000,
                strategy=strategy,
                ai_result=ai_result,
                breakdown=breakdown
            )

            if options.use_cache and self.cache is not None:
                await self.cache.put(CacheEntry(
                    key=cache_key,
                    enhanced_prompt=enhanced_prompt,
                    context_snapshot=signature,
                    framework_detection=detection,
                    quality_score=response.metrics.quality_score,
                    original_prompt=prompt,
                    project_signature=project_signature,
                    complexity=complexity.level.value
                ))

            await self._record(response)

            logger.info(
                f"Enhanced prompt in {response.metrics.response_time_ms:.1f}ms "
                f"(strategy={response.strategy}, frameworks={detection.detected_frameworks}, "
                f"ai={response.metrics.ai_enhancement_enabled})"
            )
            return response

        except Exception as e:
            logger.error(f"Prompt enhancement failed during {phase.value}: {e}")
            if self.metrics_collector:
                await self.metrics_collector.record_failure()
            raise

    async def _breakdown(self, prompt: str, options: EnhancementOptions, run: bool):
        if not run:
            return None
        return await self.task_breakdown.breakdown(prompt, options.project_id, options.max_tasks)

    async def _ai_enhance(
        self,
        prompt: str,
        project_context: ProjectContext,
        detection: FrameworkDetectionResult,
        complexity: PromptComplexity,
        documentation: DocumentationResult,
        strategy: EnhancementStrategy
    ) -> Optional[AIEnhancementResult]:
        ai_context = {
            "frameworks": list(detection.detected_frameworks),
            "complexity": complexity.level.value,
            "repo_facts": list(project_context.repo_facts),
            "code_files": [s.file for s in project_context.code_snippets],
            "libraries": list(documentation.libraries),
        }
        try:
            return await self.ai_enhancer.enhance(prompt, ai_context, strategy)
        except AIEnhancementError as e:
            logger.warning(f"AI enhancement unavailable, using assembled prompt: {e}")
            return None

    async def _record(self, response: EnhancedResponse):
        if self.metrics_collector:
            await self.metrics_collector.record_enhancement(response)

    async def health_check(self) -> Dict[str, Any]:
        """
        Check health of the enhancement pipeline.

        Returns:
            Dict[str, Any]: Health status of all components
        """
        health_status = {
            "status": "healthy",
            "timestamp": time.time(),
            "components": {
                "project_analyzer": self._configured(self.context_gatherer.project_analyzer),
                "framework_detector": self._configured(self.framework_detector.detector),
                "documentation": self._configured(self.documentation_retriever.source),
                "task_breakdown": self._configured(self.task_breakdown.service),
                "ai_enhancement": self._configured(self.ai_enhancer if self.ai_enhancement_enabled else None),
            }
        }

        if self.cache is not None:
            try:
                await self.cache.store.get("health_check_test")
                health_status["components"]["cache"] = {
                    "status": "healthy",
                    "type": type(self.cache.store).__name__
                }
            except Exception as e:
                health_status["components"]["cache"] = {"status": "error", "error": str(e)}
                health_status["status"] = "degraded"
        else:
            health_status["components"]["cache"] = {"status": "disabled"}

        if self.metrics_collector:
            try:
                metrics = await self.metrics_collector.get_metrics()
                health_status["components"]["metrics"] = {
                    "status": "healthy",
                    "total_requests": metrics.total_requests
                }
            except Exception as e:
                health_status["components"]["metrics"] = {"status": "error", "error": str(e)}
        else:
            health_status["components"]["metrics"] = {"status": "disabled"}

        return health_status

    def _configured(self, component: Any) -> Dict[str, Any]:
        if component is None:
            return {"status": "disabled"}
        return {"status": "healthy", "type": type(component).__name__}


class SimpleMetricsCollector(IMetricsCollector):
    """
    Simple in-memory metrics collector.
    """

    def __init__(self):
        """Initialize metrics collector"""
        self.metrics = EnhancementMetrics()

    async def record_enhancement(self, response: EnhancedResponse):
        """Record a successful response"""
        self.metrics.update(response)

    async def record_failure(self):
        """Record a failed request"""
        self.metrics.failures += 1

    async def get_metrics(self) -> EnhancementMetrics:
        """Get current metrics"""
        return self.metrics

    async def reset_metrics(self):
        """Reset metrics"""
        self.metrics = EnhancementMetrics()
