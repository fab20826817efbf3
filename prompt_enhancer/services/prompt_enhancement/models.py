"""
Core data models for the prompt enhancement pipeline.
Provides type safety and clear contracts between pipeline phases.
"""

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Optional, Dict, Any, List, FrozenSet, Set

from .exceptions import EnhancementValidationError


class PipelinePhase(Enum):
    """Pipeline phases, executed strictly in order"""
    CONTEXT_GATHERING = "context_gathering"
    CONTEXT_AWARE_ANALYSIS = "context_aware_analysis"
    CONTEXT_INFORMED_PROCESSING = "context_informed_processing"
    RESPONSE_GENERATION = "response_generation"


class PipelineState(Enum):
    """Terminal pipeline states"""
    SUCCESS = "success"
    FAILURE = "failure"


class ComplexityLevel(Enum):
    """Prompt complexity levels"""
    SIMPLE = "simple"
    MEDIUM = "medium"
    COMPLEX = "complex"


class RequirementPriority(Enum):
    """Quality requirement priorities, lowest first"""
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"
    CRITICAL = "critical"

    @property
    def rank(self) -> int:
        return list(RequirementPriority).index(self)


class ProjectType(Enum):
    """Kinds of projects a request can target"""
    FRONTEND = "frontend"
    BACKEND = "backend"
    FULLSTACK = "fullstack"
    LIBRARY = "library"
    MOBILE = "mobile"
    DESKTOP = "desktop"
    CLI = "cli"
    OTHER = "other"


class StrategyType(Enum):
    """Enhancement strategy variants"""
    GENERAL = "general"
    FRAMEWORK_SPECIFIC = "framework_specific"
    QUALITY_FOCUSED = "quality_focused"
    PROJECT_AWARE = "project_aware"


@dataclass(frozen=True)
class CodeSnippet:
    """A relevant piece of project code"""
    file: str
    description: str
    content: str

    def to_dict(self) -> Dict[str, str]:
        return {"file": self.file, "description": self.description, "content": self.content}


@dataclass
class ProjectContext:
    """Facts and code gathered from the project for a single request"""
    repo_facts: List[str] = field(default_factory=list)
    code_snippets: List[CodeSnippet] = field(default_factory=list)

    @property
    def is_empty(self) -> bool:
        return not self.repo_facts and not self.code_snippets


@dataclass(frozen=True)
class FrameworkDetectionResult:
    """Frameworks detected for a request"""
    detected_frameworks: List[str] = field(default_factory=list)
    confidence: float = 0.0
    detection_method: str = "none"

    @classmethod
    def empty(cls, method: str = "none") -> "FrameworkDetectionResult":
        return cls(detected_frameworks=[], confidence=0.0, detection_method=method)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "detected_frameworks": list(self.detected_frameworks),
            "confidence": self.confidence,
            "detection_method": self.detection_method,
        }


@dataclass(frozen=True)
class PromptComplexity:
    """Complexity classification of a prompt"""
    level: ComplexityLevel
    score: float
    indicators: FrozenSet[str] = frozenset()


@dataclass(frozen=True)
class QualityRequirement:
    """A quality concern inferred from prompt and context"""
    type: str
    priority: RequirementPriority
    description: str = ""

    def to_dict(self) -> Dict[str, str]:
        return {"type": self.type, "priority": self.priority.value, "description": self.description}


@dataclass(frozen=True)
class RequestHints:
    """Caller supplied hints about the request"""
    file: Optional[str] = None
    framework: Optional[str] = None
    style: Optional[str] = None

    @classmethod
    def from_dict(cls, data: Optional[Dict[str, Any]]) -> "RequestHints":
        data = data or {}
        return cls(file=data.get("file"), framework=data.get("framework"), style=data.get("style"))

    def to_dict(self) -> Dict[str, Optional[str]]:
        return {"file": self.file, "framework": self.framework, "style": self.style}


@dataclass(frozen=True)
class EnhancementStrategy:
    """The single enhancement approach chosen for a request"""
    type: StrategyType
    framework: Optional[str] = None
    focus: FrozenSet[str] = frozenset()
    project_type: Optional[ProjectType] = None

    @classmethod
    def general(cls) -> "EnhancementStrategy":
        return cls(StrategyType.GENERAL)

    @classmethod
    def framework_specific(cls, framework: Optional[str]) -> "EnhancementStrategy":
        return cls(StrategyType.FRAMEWORK_SPECIFIC, framework=framework)

    @classmethod
    def quality_focused(cls, focus: Set[str]) -> "EnhancementStrategy":
        return cls(StrategyType.QUALITY_FOCUSED, focus=frozenset(focus))

    @classmethod
    def project_aware(cls, project_type: Optional[ProjectType]) -> "EnhancementStrategy":
        return cls(StrategyType.PROJECT_AWARE, project_type=project_type)

    def describe(self) -> str:
        if self.type == StrategyType.FRAMEWORK_SPECIFIC and self.framework:
            return f"{self.type.value}({self.framework})"
        if self.type == StrategyType.QUALITY_FOCUSED and self.focus:
            return f"{self.type.value}({', '.join(sorted(self.focus))})"
        if self.type == StrategyType.PROJECT_AWARE and self.project_type:
            return f"{self.type.value}({self.project_type.value})"
        return self.type.value


@dataclass
class EnhancementOptions:
    """Per-request processing options"""
    use_cache: bool = True
    max_tokens: int = 4000
    enhancement_strategy: Optional[StrategyType] = None
    quality_focus: FrozenSet[str] = frozenset()
    project_type: Optional[ProjectType] = None
    include_breakdown: Optional[bool] = None
    max_tasks: int = 10
    use_ai_enhancement: bool = True
    project_id: str = "default"

    def __post_init__(self):
        """Validate option values"""
        if not isinstance(self.max_tokens, int) or isinstance(self.max_tokens, bool) or self.max_tokens <= 0:
            raise EnhancementValidationError(f"max_tokens must be a positive integer, got {self.max_tokens!r}")
        if not isinstance(self.max_tasks, int) or isinstance(self.max_tasks, bool) or self.max_tasks <= 0:
            raise EnhancementValidationError(f"max_tasks must be a positive integer, got {self.max_tasks!r}")
        if self.enhancement_strategy is not None and not isinstance(self.enhancement_strategy, StrategyType):
            raise EnhancementValidationError(f"Unknown enhancement strategy: {self.enhancement_strategy!r}")
        if self.project_type is not None and not isinstance(self.project_type, ProjectType):
            raise EnhancementValidationError(f"Unknown project type: {self.project_type!r}")
        if isinstance(self.quality_focus, str) or any(not isinstance(f, str) for f in self.quality_focus):
            raise EnhancementValidationError("quality_focus must be a collection of strings")
        self.quality_focus = frozenset(f.strip().lower() for f in self.quality_focus if f.strip())

    @classmethod
    def from_dict(cls, data: Optional[Dict[str, Any]], default_max_tokens: int = 4000) -> "EnhancementOptions":
        """
        Build options from a plain dictionary, rejecting unknown keys and values.

        Args:
            data: Raw options, e.g. from an API request
            default_max_tokens: Token budget used when none is supplied

        Returns:
            EnhancementOptions: Validated options
        """
        data = dict(data or {})
        known = set(cls.__dataclass_fields__)
        unknown = set(data) - known
        if unknown:
            raise EnhancementValidationError(f"Unknown options: {', '.join(sorted(unknown))}")

        data.setdefault("max_tokens", default_max_tokens)

        try:
            if data.get("enhancement_strategy") is not None:
                data["enhancement_strategy"] = StrategyType(data["enhancement_strategy"])
            if data.get("project_type") is not None:
                data["project_type"] = ProjectType(data["project_type"])
        except ValueError as e:
            raise EnhancementValidationError(str(e)) from e

        if data.get("quality_focus") is None:
            data.pop("quality_focus", None)
        elif isinstance(data["quality_focus"], (list, tuple, set, frozenset)):
            data["quality_focus"] = frozenset(data["quality_focus"])

        return cls(**data)


@dataclass
class CacheEntry:
    """A cached enhancement, keyed by prompt and context signature"""
    key: str
    enhanced_prompt: str
    context_snapshot: str
    framework_detection: FrameworkDetectionResult
    quality_score: float = 0.0
    hits: int = 0
    created_at: datetime = field(default_factory=datetime.utcnow)
    original_prompt: str = ""
    project_signature: Optional[str] = None
    complexity: str = ComplexityLevel.MEDIUM.value
    expires_at: Optional[datetime] = None

    def is_expired(self, now: Optional[datetime] = None) -> bool:
        if self.expires_at is None:
            return False
        return (now or datetime.utcnow()) >= self.expires_at


@dataclass(frozen=True)
class Improvement:
    """A single discrete change made by AI enhancement"""
    type: str
    description: str
    before: str = ""
    after: str = ""

    def to_dict(self) -> Dict[str, str]:
        return {"type": self.type, "description": self.description, "before": self.before, "after": self.after}


@dataclass(frozen=True)
class QualityScores:
    clarity: float = 0.0
    specificity: float = 0.0
    actionability: float = 0.0
    completeness: float = 0.0
    relevance: float = 0.0
    overall: float = 0.0


@dataclass(frozen=True)
class ConfidenceScores:
    overall: float = 0.0
    context_relevance: float = 0.0
    framework_accuracy: float = 0.0
    quality_alignment: float = 0.0
    project_fit: float = 0.0


@dataclass
class AIEnhancementResult:
    """Result of a second-pass AI refinement"""
    enhanced_prompt: str
    quality: QualityScores = field(default_factory=QualityScores)
    confidence: ConfidenceScores = field(default_factory=ConfidenceScores)
    improvements: List[Improvement] = field(default_factory=list)
    recommendations: List[str] = field(default_factory=list)
    cost: float = 0.0
    processing_time: float = 0.0


@dataclass
class ContextUsage:
    """Which context fragments ended up in the enhanced prompt"""
    repo_facts: List[str] = field(default_factory=list)
    code_snippets: List[str] = field(default_factory=list)
    framework_docs: List[str] = field(default_factory=list)
    project_docs: List[str] = field(default_factory=list)
    libraries_resolved: List[str] = field(default_factory=list)

    def to_dict(self) -> Dict[str, List[str]]:
        return {
            "repo_facts": list(self.repo_facts),
            "code_snippets": list(self.code_snippets),
            "framework_docs": list(self.framework_docs),
            "project_docs": list(self.project_docs),
            "libraries_resolved": list(self.libraries_resolved),
        }


@dataclass(frozen=True)
class ResponseMetrics:
    response_time_ms: float
    quality_score: float
    confidence_score: float
    token_ratio: float
    frameworks_detected: List[str]
    ai_enhancement_enabled: bool
    cost: float

    def to_dict(self) -> Dict[str, Any]:
        return {
            "response_time_ms": self.response_time_ms,
            "quality_score": self.quality_score,
            "confidence_score": self.confidence_score,
            "token_ratio": self.token_ratio,
            "frameworks_detected": list(self.frameworks_detected),
            "ai_enhancement_enabled": self.ai_enhancement_enabled,
            "cost": self.cost,
        }


@dataclass
class EnhancedResponse:
    """Final result returned to callers"""
    enhanced_prompt: str
    context_used: ContextUsage
    metrics: ResponseMetrics
    breakdown: Optional[Dict[str, Any]] = None
    todos: Optional[List[Dict[str, Any]]] = None
    success: bool = True
    cache_hit: bool = False
    strategy: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary for API responses"""
        result = {
            "success": self.success,
            "enhanced_prompt": self.enhanced_prompt,
            "context_used": self.context_used.to_dict(),
            "metrics": self.metrics.to_dict(),
            "cache_hit": self.cache_hit,
            "strategy": self.strategy,
        }
        if self.breakdown is not None:
            result["breakdown"] = self.breakdown
        if self.todos is not None:
            result["todos"] = self.todos
        return result


@dataclass
class EnhancementMetrics:
    """Metrics for monitoring enhancement performance"""
    total_requests: int = 0
    cache_hits: int = 0
    ai_enhancements: int = 0
    fallbacks: int = 0
    failures: int = 0
    average_response_time_ms: float = 0.0
    average_token_ratio: float = 0.0

    @property
    def cache_hit_rate(self) -> float:
        """Calculate cache hit rate"""
        if self.total_requests == 0:
            return 0.0
        return self.cache_hits / self.total_requests

    def update(self, response: EnhancedResponse):
        """Update metrics with a new response"""
        self.total_requests += 1

        if response.cache_hit:
            self.cache_hits += 1
        elif response.metrics.ai_enhancement_enabled:
            self.ai_enhancements += 1
        else:
            self.fallbacks += 1

        # Update running averages
        self.average_response_time_ms = (
            (self.average_response_time_ms * (self.total_requests - 1) + response.metrics.response_time_ms)
            / self.total_requests
        )
        self.average_token_ratio = (
            (self.average_token_ratio * (self.total_requests - 1) + response.metrics.token_ratio)
            / self.total_requests
        )
