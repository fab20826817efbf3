"""
Core interfaces for the prompt enhancement system.
Defines contracts for every collaborator the pipeline consumes.
"""

from abc import ABC, abstractmethod
from datetime import datetime
from typing import Optional, Dict, Any, List

from .models import (
    CodeSnippet,
    ProjectContext,
    FrameworkDetectionResult,
    EnhancementStrategy,
    AIEnhancementResult,
    CacheEntry,
    EnhancedResponse,
    EnhancementMetrics
)


class IProjectAnalyzer(ABC):
    """Interface for collecting facts and code from the user's project"""

    @abstractmethod
    async def analyze_project(self) -> List[str]:
        """
        Collect repository facts.

        Returns:
            List[str]: Ordered facts; empty list when nothing is known
        """
        pass

    @abstractmethod
    async def find_relevant_code_snippets(self, prompt: str, file: Optional[str] = None) -> List[CodeSnippet]:
        """
        Find code relevant to the prompt.

        Args:
            prompt: User prompt
            file: Optional file the request is about

        Returns:
            List[CodeSnippet]: Ordered snippets; empty list when nothing matches
        """
        pass


class IFrameworkDetector(ABC):
    """Interface for detecting frameworks from prompt and project context"""

    @abstractmethod
    async def detect(
        self,
        prompt: str,
        project_context: ProjectContext,
        framework_hint: Optional[str] = None
    ) -> FrameworkDetectionResult:
        """
        Detect frameworks.

        Args:
            prompt: User prompt
            project_context: Complete gathered project context
            framework_hint: Optional explicit framework from the caller

        Returns:
            FrameworkDetectionResult: Detected frameworks with confidence
        """
        pass


class IDocumentationSource(ABC):
    """Interface for external framework documentation"""

    @abstractmethod
    async def resolve(self, library_name: str) -> List[str]:
        """
        Resolve a library name to documentation library identifiers.

        Args:
            library_name: Framework or library name

        Returns:
            List[str]: Library identifiers, best match first
        """
        pass

    @abstractmethod
    async def fetch(self, library_id: str, topic: Optional[str], token_budget: int) -> str:
        """
        Fetch documentation text.

        Args:
            library_id: Identifier returned by resolve
            topic: Optional topic to focus on
            token_budget: Maximum tokens of documentation wanted

        Returns:
            str: Documentation text
        """
        pass


class IAIEnhancementClient(ABC):
    """Interface for second-pass AI refinement"""

    @abstractmethod
    async def enhance(self, prompt: str, context: Dict[str, Any], strategy: EnhancementStrategy) -> AIEnhancementResult:
        """
        Refine an assembled prompt.

        Args:
            prompt: Assembled prompt to refine
            context: Original prompt, gathered context and detected frameworks
            strategy: Selected enhancement strategy

        Returns:
            AIEnhancementResult: Refined prompt with quality and confidence scores
        """
        pass


class ITaskBreakdownService(ABC):
    """Interface for optional task decomposition"""

    @abstractmethod
    async def breakdown(self, prompt: str, project_id: str) -> Dict[str, Any]:
        """
        Break a prompt down into tasks.

        Args:
            prompt: User prompt
            project_id: Project the tasks belong to

        Returns:
            Dict[str, Any]: {"main_tasks": [...], "subtasks": [...], "dependencies": [...]}
        """
        pass


class ICacheStore(ABC):
    """Interface for cache storage; exact-key point lookups plus maintenance"""

    @abstractmethod
    async def get(self, key: str) -> Optional[CacheEntry]:
        """
        Retrieve an entry.

        Args:
            key: Cache key

        Returns:
            Optional[CacheEntry]: Entry if stored
        """
        pass

    @abstractmethod
    async def put(self, entry: CacheEntry):
        """
        Store an entry, replacing any entry with the same key.

        Args:
            entry: Entry to store
        """
        pass

    async def delete(self, key: str) -> bool:
        """
        Remove an entry.

        Args:
            key: Cache key

        Returns:
            bool: True when the store removed it; False when unsupported
        """
        return False

    async def purge_expired(self, now: Optional[datetime] = None) -> int:
        """
        Remove entries whose expiry has passed.

        Args:
            now: Reference time, defaults to the current UTC time

        Returns:
            int: Number of entries removed
        """
        return 0

    async def invalidate(self, pattern: Optional[str] = None) -> int:
        """
        Remove entries whose key or original prompt contains pattern.
        Without a pattern only expired entries are removed.

        Args:
            pattern: Substring to match

        Returns:
            int: Number of entries removed
        """
        if pattern is None:
            return await self.purge_expired()
        return 0

    async def close(self):
        """Release store resources"""
        pass


class IModelManager(ABC):
    """Interface for model management (abstraction over a local or hosted model)"""

    @abstractmethod
    async def inference(self, prompt: str, max_tokens: int = 512, temperature: float = 0.3) -> Dict[str, Any]:
        """
        Run model inference.

        Args:
            prompt: Input prompt
            max_tokens: Maximum tokens to generate
            temperature: Generation temperature

        Returns:
            Dict[str, Any]: Inference result with text and token usage
        """
        pass

    @abstractmethod
    def is_available(self) -> bool:
        """
        Check if model is available.

        Returns:
            bool: True if model can be used
        """
        pass


class IMetricsCollector(ABC):
    """Interface for collecting enhancement metrics"""

    @abstractmethod
    async def record_enhancement(self, response: EnhancedResponse):
        """Record a completed enhancement"""
        pass

    @abstractmethod
    async def record_failure(self):
        """Record a request that ended in failure"""
        pass

    @abstractmethod
    async def get_metrics(self) -> EnhancementMetrics:
        """Get current metrics snapshot"""
        pass

    @abstractmethod
    async def reset_metrics(self):
        """Reset all metrics to zero"""
        pass
