"""
Prompt Enhancement System

Turns a raw natural-language coding request into an enhanced request annotated
with project facts, framework documentation and, optionally, AI-refined phrasing.
A context-aware cache avoids repeating expensive documentation and AI calls.

Main Components:
- EnhancementService: High-level service interface
- EnhancementFactory: Wires optional collaborators into a pipeline
- PipelineOrchestrator: Four-phase coordination logic
- ContentAddressedCache / CacheInvalidator: Context-aware caching

Usage:
    from prompt_enhancer.services.prompt_enhancement import EnhancementFactory, EnhancementService

    factory = EnhancementFactory().with_project_analyzer(my_analyzer)
    service = EnhancementService(factory)

    result = await service.enhance("create a login component", context={"framework": "react"})
    print(result["enhanced_prompt"])
"""

from .factory import EnhancementService, EnhancementFactory, Capabilities
from .orchestrator import PipelineOrchestrator, SimpleMetricsCollector
from .models import (
    EnhancementOptions,
    EnhancedResponse,
    EnhancementStrategy,
    StrategyType,
    ProjectType,
    ComplexityLevel,
    ProjectContext,
    CodeSnippet,
    FrameworkDetectionResult,
    RequestHints,
    CacheEntry,
    EnhancementMetrics
)
from .exceptions import (
    PromptEnhancementError,
    MandatoryDependencyError,
    EnhancementValidationError,
    AIEnhancementError,
    CacheStoreError
)

# Main exports
__all__ = [
    # Main service interface
    "EnhancementService",

    # Core components
    "EnhancementFactory",
    "Capabilities",
    "PipelineOrchestrator",
    "SimpleMetricsCollector",

    # Data models
    "EnhancementOptions",
    "EnhancedResponse",
    "EnhancementStrategy",
    "ProjectContext",
    "CodeSnippet",
    "FrameworkDetectionResult",
    "RequestHints",
    "CacheEntry",
    "EnhancementMetrics",

    # Enums
    "StrategyType",
    "ProjectType",
    "ComplexityLevel",

    # Errors
    "PromptEnhancementError",
    "MandatoryDependencyError",
    "EnhancementValidationError",
    "AIEnhancementError",
    "CacheStoreError"
]

# Version information
__version__ = "1.0.0"
