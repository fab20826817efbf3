"""
Prompt complexity analyzer for determining adaptive processing options.
"""

import re
import logging
from dataclasses import replace
from typing import Optional, Set, List

from ..models import PromptComplexity, ComplexityLevel, EnhancementOptions, ProjectContext

logger = logging.getLogger(__name__)


_STOP_WORDS: Set[str] = {
    'the', 'and', 'or', 'but', 'in', 'on', 'at', 'to', 'for', 'of', 'with',
    'by', 'from', 'up', 'about', 'into', 'through', 'during', 'before',
    'after', 'above', 'below', 'between', 'among', 'is', 'are', 'was',
    'were', 'be', 'been', 'being', 'have', 'has', 'had', 'do', 'does',
    'did', 'will', 'would', 'could', 'should', 'may', 'might', 'must',
    'can', 'this', 'that', 'these', 'those', 'you', 'he', 'she',
    'it', 'we', 'they', 'me', 'him', 'her', 'us', 'them', 'how', 'what'
}


def extract_keywords(prompt: str, limit: int = 10) -> List[str]:
    """
    Extract distinct meaningful keywords from a prompt, in order of appearance.

    Args:
        prompt: Text to scan
        limit: Maximum number of keywords

    Returns:
        List[str]: Lowercase keywords
    """
    words = re.sub(r'[^\w\s]', ' ', prompt.lower()).split()
    keywords: List[str] = []
    for word in words:
        if len(word) > 2 and word not in _STOP_WORDS and word not in keywords:
            keywords.append(word)
    return keywords[:limit]


class ComplexityAnalyzer:
    """
    Classifies prompt complexity using length, question shape and development signals.
    Higher scores mean simpler prompts.
    """

    # Token caps per complexity level
    MAX_TOKENS = {
        ComplexityLevel.SIMPLE: 400,
        ComplexityLevel.MEDIUM: 1200,
        ComplexityLevel.COMPLEX: 3200,
    }

    def __init__(self):
        self._simple_patterns = [
            re.compile(p, re.IGNORECASE) for p in (
                r'^(yes|no|ok|sure|maybe)\s*$',
                r'^(what|how|when|where|why)\s+\w+\?$',
                r'^(is|are|was|were|do|does|did|can|could|will|would)\s+\w+',
                r'^(what\s+is\s+)?\d+\s*[\+\-\*\/]\s*\d+\s*\??$',
                r'^how\s+(do\s+i|to)\s+(create|make)\s+an?\s+\w+\??$',
            )
        ]

        self._development_patterns = [
            re.compile(p, re.IGNORECASE) for p in (
                r'\b(create|build|implement|develop)\b',
                r'\b(component|function|class|service)\b',
                r'\b(api|endpoint|database|schema)\b',
                r'\b(test|testing|debug|fix)\b',
                r'\b(deploy|production|staging)\b',
            )
        ]

        self._framework_keywords: Set[str] = {
            'react', 'vue', 'angular', 'typescript', 'javascript',
            'node', 'express', 'next', 'nuxt', 'svelte'
        }

        self._complex_breakdown_keywords: Set[str] = {'build', 'create', 'develop', 'implement', 'design', 'setup'}
        self._simple_breakdown_keywords: Set[str] = {'fix', 'debug', 'update', 'change', 'modify', 'add', 'remove'}

    def analyze(self, prompt: str, project_context: Optional[ProjectContext] = None) -> PromptComplexity:
        """
        Analyze prompt complexity.

        Args:
            prompt: User prompt
            project_context: Optional gathered context; a large context nudges towards complex

        Returns:
            PromptComplexity: Level, score and the indicators that fired
        """
        text = prompt.strip()
        indicators: Set[str] = set()
        score = 0.0

        # Length-based scoring
        if len(text) < 20:
            score += 3
            indicators.add('very-short')
        elif len(text) < 50:
            score += 2
            indicators.add('short')
        elif len(text) > 200:
            score += 1
            indicators.add('long')

        if any(p.search(text) for p in self._simple_patterns):
            score += 2
            indicators.add('simple-question')

        development_matches = sum(1 for p in self._development_patterns if p.search(text))
        if development_matches:
            score -= development_matches
            indicators.add('development-task')

        words = set(re.findall(r'\b\w+\b', text.lower()))
        framework_matches = words.intersection(self._framework_keywords)
        if framework_matches:
            score -= len(framework_matches) * 0.5
            indicators.add('framework-specific')

        if project_context is not None and len(project_context.code_snippets) >= 3:
            score -= 1
            indicators.add('rich-project-context')

        level = self._determine_level(score)

        logger.debug(f"Prompt complexity: level={level.value} score={score} indicators={sorted(indicators)}")
        return PromptComplexity(level=level, score=score, indicators=frozenset(indicators))

    def _determine_level(self, score: float) -> ComplexityLevel:
        if score >= 2:
            return ComplexityLevel.SIMPLE
        if score >= 0:
            return ComplexityLevel.MEDIUM
        return ComplexityLevel.COMPLEX

    def optimize_options(self, options: EnhancementOptions, complexity: PromptComplexity) -> EnhancementOptions:
        """
        Derive adaptive processing options from complexity.

        Args:
            options: Caller options
            complexity: Analyzed complexity

        Returns:
            EnhancementOptions: Copy of options with the token budget capped for the level
        """
        max_tokens = min(options.max_tokens, self.MAX_TOKENS[complexity.level])
        return replace(options, max_tokens=max_tokens)

    def should_breakdown(self, prompt: str, options: EnhancementOptions) -> bool:
        """
        Decide whether task breakdown would help.

        Args:
            prompt: User prompt
            options: Request options; an explicit include_breakdown always wins

        Returns:
            bool: True if breakdown should run
        """
        if options.include_breakdown is not None:
            return options.include_breakdown

        words = set(re.findall(r'\b\w+\b', prompt.lower()))
        has_complex_keywords = bool(words & self._complex_breakdown_keywords)
        has_simple_keywords = bool(words & self._simple_breakdown_keywords)

        is_long_prompt = len(prompt) > 100
        has_multiple_parts = len([s for s in prompt.split('.') if s.strip()]) > 2
        has_bullet_points = bool(re.search(r'^\s*([-*•]|\d+\.)\s+', prompt, re.MULTILINE))

        if has_complex_keywords and (is_long_prompt or has_multiple_parts or has_bullet_points):
            return True

        if has_simple_keywords and not is_long_prompt:
            return False

        return is_long_prompt and (has_complex_keywords or has_multiple_parts)
