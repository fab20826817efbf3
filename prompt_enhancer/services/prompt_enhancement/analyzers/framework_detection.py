"""
Framework detection over the complete gathered context.
"""

import re
import logging
from typing import Optional, List, Dict, Tuple

from ..interfaces import IFrameworkDetector
from ..models import FrameworkDetectionResult, ProjectContext, ProjectType

logger = logging.getLogger(__name__)


_FRAMEWORK_PATTERNS: Dict[str, str] = {
    "react": r"\breact(\.js|js)?\b",
    "next.js": r"\bnext\.?js\b",
    "vue": r"\bvue(\.js|js|x)?\b",
    "nuxt": r"\bnuxt(\.js|js)?\b",
    "angular": r"\bangular\b",
    "svelte": r"\bsvelte(kit)?\b",
    "express": r"\bexpress(\.js|js)?\b",
    "node.js": r"\bnode(\.js|js)?\b",
    "typescript": r"\btypescript\b",
    "django": r"\bdjango\b",
    "flask": r"\bflask\b",
    "fastapi": r"\bfastapi\b",
    "spring": r"\bspring( boot)?\b",
    "laravel": r"\blaravel\b",
    "html": r"\bhtml5?\b",
}

# Weak signals used only when nothing explicit was found
_PROMPT_PATTERNS: List[Tuple[str, str]] = [
    (r"\b(component|jsx|tsx|hooks?)\b", "react"),
    (r"\b(vuex|pinia)\b", "vue"),
    (r"\bng-\w+", "angular"),
]

_PROJECT_TYPES: List[Tuple[ProjectType, Tuple[str, ...]]] = [
    (ProjectType.FULLSTACK, ("next.js", "nuxt")),
    (ProjectType.FRONTEND, ("react", "vue", "angular", "svelte", "html")),
    (ProjectType.BACKEND, ("express", "node.js", "django", "flask", "fastapi", "spring", "laravel")),
]


def infer_project_type(frameworks: List[str]) -> ProjectType:
    """
    Infer the project type from detected frameworks.

    Args:
        frameworks: Detected framework names

    Returns:
        ProjectType: Inferred project type, OTHER when unknown
    """
    names = {f.lower() for f in frameworks}
    for project_type, members in _PROJECT_TYPES:
        if names.intersection(members):
            return project_type
    return ProjectType.OTHER


class KeywordFrameworkDetector(IFrameworkDetector):
    """
    Rule-based framework detector.
    Looks at the explicit hint, then project facts and code, then the prompt text.
    """

    def __init__(self, framework_patterns: Optional[Dict[str, str]] = None):
        patterns = framework_patterns or _FRAMEWORK_PATTERNS
        self._patterns = {name: re.compile(p, re.IGNORECASE) for name, p in patterns.items()}

    async def detect(
        self,
        prompt: str,
        project_context: ProjectContext,
        framework_hint: Optional[str] = None
    ) -> FrameworkDetectionResult:
        detected: List[str] = []
        method = "none"
        confidence = 0.0

        if framework_hint and framework_hint.strip():
            hint = framework_hint.strip().lower()
            matched = self._match(hint) or [hint]
            detected.extend(matched)
            method, confidence = "explicit_hint", 0.95

        project_text = "\n".join(
            list(project_context.repo_facts)
            + [f"{s.file} {s.description} {s.content}" for s in project_context.code_snippets]
        )
        for name in self._match(project_text):
            if name not in detected:
                detected.append(name)
                if method == "none":
                    method, confidence = "project_context", 0.85

        for name in self._match(prompt):
            if name not in detected:
                detected.append(name)
                if method == "none":
                    method, confidence = "prompt_keywords", 0.7

        if not detected:
            for pattern, name in _PROMPT_PATTERNS:
                if re.search(pattern, prompt, re.IGNORECASE):
                    detected.append(name)
                    method, confidence = "pattern", 0.5
                    break

        return FrameworkDetectionResult(
            detected_frameworks=detected,
            confidence=confidence,
            detection_method=method
        )

    def _match(self, text: str) -> List[str]:
        if not text:
            return []
        return [name for name, pattern in self._patterns.items() if pattern.search(text)]


class FrameworkDetectionWrapper:
    """
    Runs the configured detector over the complete gathered context.
    Detector failures degrade to an empty detection result.
    """

    def __init__(self, detector: Optional[IFrameworkDetector] = None):
        self.detector = detector

    async def detect(
        self,
        prompt: str,
        project_context: ProjectContext,
        framework_hint: Optional[str] = None
    ) -> FrameworkDetectionResult:
        if self.detector is None:
            return FrameworkDetectionResult.empty()

        try:
            result = await self.detector.detect(prompt, project_context, framework_hint)
        except Exception as e:
            logger.warning(f"Framework detection failed, continuing without frameworks: {e}")
            return FrameworkDetectionResult.empty(method="failed")

        if not isinstance(result, FrameworkDetectionResult):
            logger.warning(f"Framework detector returned {type(result).__name__}, ignoring it")
            return FrameworkDetectionResult.empty(method="failed")

        confidence = max(0.0, min(1.0, float(result.confidence)))
        logger.debug(f"Detected frameworks {result.detected_frameworks} via {result.detection_method}")
        return FrameworkDetectionResult(
            detected_frameworks=list(result.detected_frameworks),
            confidence=confidence,
            detection_method=result.detection_method
        )
