"""
Project drift detection and cache invalidation.
"""

import json
import time
import logging
from dataclasses import dataclass
from typing import Optional, Callable, Iterable, Tuple

from ..models import ProjectContext, ProjectType
from .key_generator import rolling_hash
from .prompt_cache import ContentAddressedCache

logger = logging.getLogger(__name__)

MAX_SIGNATURE_FACTS = 10
MAX_SIGNATURE_FILES = 5


@dataclass(frozen=True)
class SessionState:
    """Last observed project signature and when it was observed"""
    project_signature: str
    observed_at: float


class CacheInvalidator:
    """
    Detects project-context drift between requests.

    When the project signature changes, or the invalidation window has
    elapsed, entries written under another project signature whose prompt or
    frameworks overlap the current request are marked stale.
    """

    def __init__(
        self,
        cache: Optional[ContentAddressedCache] = None,
        window_seconds: int = 3600,
        clock: Callable[[], float] = time.time
    ):
        self.cache = cache
        self.window_seconds = window_seconds
        self.clock = clock
        self._state: Optional[SessionState] = None

    @property
    def state(self) -> Optional[SessionState]:
        return self._state

    def reset(self):
        """Forget the observed project signature"""
        self._state = None

    def compute_signature(
        self,
        project_context: ProjectContext,
        project_type: Optional[ProjectType],
        now: Optional[float] = None
    ) -> str:
        """
        Hash the project-level view of the context at hour granularity.

        Args:
            project_context: Gathered project context
            project_type: Supplied or inferred project type
            now: Timestamp in seconds, defaults to the clock

        Returns:
            str: Project signature
        """
        now = self.clock() if now is None else now
        record = {
            "repo_facts": project_context.repo_facts[:MAX_SIGNATURE_FACTS],
            "files": [s.file for s in project_context.code_snippets[:MAX_SIGNATURE_FILES]],
            "project_type": project_type.value if project_type else None,
            "hour": int(now // 3600),
        }
        return rolling_hash(json.dumps(record, sort_keys=True))

    def check(
        self,
        project_context: ProjectContext,
        project_type: Optional[ProjectType],
        prompt_hash: str,
        frameworks: Iterable[str]
    ) -> Tuple[str, int]:
        """
        Compare the current project signature with the last observed one.

        Args:
            project_context: Gathered project context
            project_type: Supplied or inferred project type
            prompt_hash: Hash of the normalized prompt
            frameworks: Detected frameworks

        Returns:
            Tuple[str, int]: Current project signature and number of entries marked stale
        """
        now = self.clock()
        signature = self.compute_signature(project_context, project_type, now)

        if self._state is None:
            self._state = SessionState(project_signature=signature, observed_at=now)
            return signature, 0

        changed = signature != self._state.project_signature
        expired = now - self._state.observed_at > self.window_seconds
        if not changed and not expired:
            return signature, 0

        invalidated = 0
        if self.cache is not None:
            current_frameworks = frozenset(frameworks)

            def is_stale(key, entry_signature, entry_prompt_hash, entry_frameworks) -> bool:
                if entry_signature == signature:
                    return False
                return entry_prompt_hash == prompt_hash or bool(entry_frameworks & current_frameworks)

            invalidated = self.cache.mark_stale(is_stale)

        logger.info(
            f"Project context drift detected (changed={changed}, expired={expired}); "
            f"marked {invalidated} cache entries stale"
        )
        self._state = SessionState(project_signature=signature, observed_at=now)
        return signature, invalidated
