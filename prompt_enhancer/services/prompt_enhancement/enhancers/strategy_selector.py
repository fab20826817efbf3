"""
Enhancement strategy selection.
"""

import logging
from typing import Optional, List, FrozenSet

from ..models import EnhancementStrategy, StrategyType, ProjectType

logger = logging.getLogger(__name__)


class EnhancementStrategySelector:
    """
    Picks exactly one strategy per request.

    Precedence, first match wins:
    1. explicit strategy from the caller
    2. framework-specific when any framework was detected
    3. quality-focused when a quality focus was supplied
    4. project-aware when a project type was supplied
    5. general
    """

    def select(
        self,
        explicit: Optional[StrategyType],
        frameworks: List[str],
        quality_focus: FrozenSet[str] = frozenset(),
        project_type: Optional[ProjectType] = None
    ) -> EnhancementStrategy:
        primary_framework = frameworks[0] if frameworks else None

        if explicit is not None:
            strategy = self._from_explicit(explicit, primary_framework, quality_focus, project_type)
        elif primary_framework:
            strategy = EnhancementStrategy.framework_specific(primary_framework)
        elif quality_focus:
            strategy = EnhancementStrategy.quality_focused(set(quality_focus))
        elif project_type is not None:
            strategy = EnhancementStrategy.project_aware(project_type)
        else:
            strategy = EnhancementStrategy.general()

        logger.debug(f"Selected enhancement strategy: {strategy.describe()}")
        return strategy

    def _from_explicit(
        self,
        explicit: StrategyType,
        framework: Optional[str],
        quality_focus: FrozenSet[str],
        project_type: Optional[ProjectType]
    ) -> EnhancementStrategy:
        # Explicit variants carry whatever detail the request has
        if explicit == StrategyType.FRAMEWORK_SPECIFIC:
            return EnhancementStrategy.framework_specific(framework)
        if explicit == StrategyType.QUALITY_FOCUSED:
            return EnhancementStrategy.quality_focused(set(quality_focus))
        if explicit == StrategyType.PROJECT_AWARE:
            return EnhancementStrategy.project_aware(project_type)
        return EnhancementStrategy.general()
