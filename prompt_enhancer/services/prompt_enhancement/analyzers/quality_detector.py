"""
Infers quality requirements (accessibility, performance, ...) from prompt and context.
"""

import re
import logging
from typing import List, Dict, Tuple

from ..models import QualityRequirement, RequirementPriority, ProjectContext, FrameworkDetectionResult

logger = logging.getLogger(__name__)

P = RequirementPriority

_PROMPT_RULES: List[Tuple[str, str, RequirementPriority, str]] = [
    (r'\b(production|enterprise)\b', 'production', P.HIGH, 'Production-ready code with enterprise standards'),
    (r'\b(responsive|mobile)\b', 'responsive', P.MEDIUM, 'Mobile-first responsive design'),
    (r'\b(accessib\w*|a11y|wcag|aria)\b', 'accessibility', P.HIGH, 'WCAG compliant accessibility features'),
    (r'\b(performance|optimi[sz]\w*|fast)\b', 'performance', P.HIGH, 'Optimized for performance and speed'),
    (r'\b(tests?|testing|coverage)\b', 'testing', P.MEDIUM, 'Comprehensive test coverage'),
    (r'\b(secure|security|auth\w*|xss|csrf)\b', 'security', P.HIGH, 'Security best practices implementation'),
]

_FRAMEWORK_RULES: Dict[str, List[Tuple[str, RequirementPriority, str]]] = {
    'react': [
        ('accessibility', P.MEDIUM, 'Semantic markup and keyboard support in components'),
        ('maintainability', P.MEDIUM, 'Typed props and small, composable components'),
    ],
    'vue': [('maintainability', P.MEDIUM, 'Composition API with typed props')],
    'angular': [('maintainability', P.MEDIUM, 'Strict typing and OnPush change detection')],
    'html': [('accessibility', P.HIGH, 'Semantic HTML with ARIA where needed')],
    'express': [('security', P.HIGH, 'Input validation and secure headers')],
    'django': [('security', P.HIGH, 'Use the ORM and built-in CSRF protection')],
    'fastapi': [('security', P.MEDIUM, 'Validate input with pydantic models')],
}

_PROJECT_FACT_RULES: List[Tuple[str, str, RequirementPriority, str]] = [
    (r'\b(jest|vitest|pytest|mocha|playwright|cypress)\b', 'testing', P.MEDIUM, 'Follow the project test setup'),
    (r'\btypescript\b', 'type-safety', P.MEDIUM, 'Strict TypeScript types'),
    (r'\b(eslint|prettier|ruff|black)\b', 'code-style', P.LOW, 'Match the configured linters and formatters'),
    (r'\b(docker|kubernetes|ci/cd|github actions)\b', 'production', P.MEDIUM, 'Keep builds reproducible for deployment'),
]


class QualityRequirementDetector:
    """
    Detects quality requirements from prompt keywords, detected frameworks and project facts.
    Duplicates are merged, keeping the higher priority.
    """

    def detect(
        self,
        prompt: str,
        project_context: ProjectContext,
        framework_detection: FrameworkDetectionResult
    ) -> List[QualityRequirement]:
        """
        Detect quality requirements.

        Args:
            prompt: User prompt
            project_context: Gathered project context
            framework_detection: Detected frameworks

        Returns:
            List[QualityRequirement]: Deduplicated requirements in detection order
        """
        requirements: List[QualityRequirement] = []
        prompt_lower = prompt.lower()

        for pattern, req_type, priority, description in _PROMPT_RULES:
            if re.search(pattern, prompt_lower):
                requirements.append(QualityRequirement(req_type, priority, description))

        for framework in framework_detection.detected_frameworks:
            for req_type, priority, description in _FRAMEWORK_RULES.get(framework.lower(), []):
                requirements.append(QualityRequirement(req_type, priority, description))

        facts = " ".join(project_context.repo_facts).lower()
        for pattern, req_type, priority, description in _PROJECT_FACT_RULES:
            if facts and re.search(pattern, facts):
                requirements.append(QualityRequirement(req_type, priority, description))

        deduplicated = self._deduplicate(requirements)
        logger.debug(f"Detected {len(deduplicated)} quality requirements: {[r.type for r in deduplicated]}")
        return deduplicated

    def _deduplicate(self, requirements: List[QualityRequirement]) -> List[QualityRequirement]:
        merged: Dict[str, QualityRequirement] = {}
        for requirement in requirements:
            existing = merged.get(requirement.type)
            if existing is None or requirement.priority.rank > existing.priority.rank:
                merged[requirement.type] = requirement
        return list(merged.values())
