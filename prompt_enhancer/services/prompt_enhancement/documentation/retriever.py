"""
Selects, fetches and curates external framework documentation.
"""

import re
import math
import time
import asyncio
import logging
from dataclasses import dataclass, field
from typing import Optional, List, Dict, Tuple

from ..interfaces import IDocumentationSource
from ..models import PromptComplexity, ComplexityLevel
from ..analyzers.complexity_analyzer import extract_keywords

logger = logging.getLogger(__name__)


_TOPIC_MAP: List[Tuple[str, str]] = [
    ('component', 'components'),
    ('routing', 'routing'),
    ('route', 'routing'),
    ('auth', 'authentication'),
    ('login', 'authentication'),
    ('api', 'api'),
    ('endpoint', 'api'),
    ('styling', 'styling'),
    ('css', 'styling'),
    ('test', 'testing'),
    ('error', 'error handling'),
    ('exception', 'error handling'),
    ('performance', 'performance'),
    ('optimiz', 'performance'),
    ('security', 'security'),
    ('deploy', 'deployment'),
    ('docker', 'deployment'),
    ('database', 'database'),
    ('migration', 'database'),
    ('hook', 'hooks'),
    ('lifecycle', 'lifecycle'),
    ('state', 'state management'),
    ('redux', 'state management'),
]

_FRAMEWORK_TOPICS: Dict[str, List[str]] = {
    'react': ['components', 'hooks', 'state', 'props', 'jsx', 'button', 'form'],
    'next.js': ['routing', 'api', 'pages', 'server', 'rendering'],
    'vue': ['components', 'reactivity', 'directives', 'composition'],
    'angular': ['components', 'services', 'modules', 'dependency injection'],
    'express': ['routing', 'middleware', 'api', 'server'],
    'typescript': ['types', 'interfaces', 'generics'],
    'html': ['elements', 'forms', 'semantic', 'accessibility', 'button'],
}

MAX_LIBRARIES = {
    ComplexityLevel.SIMPLE: 1,
    ComplexityLevel.MEDIUM: 2,
    ComplexityLevel.COMPLEX: 3,
}


def estimate_tokens(text: str) -> int:
    """Approximate token count (four characters per token)"""
    return math.ceil(len(text) / 4)


def extract_topic(prompt: str) -> str:
    """
    Extract a documentation topic from a prompt.

    Args:
        prompt: User prompt

    Returns:
        str: Topic, "best practices" when nothing specific matches
    """
    prompt_lower = prompt.lower()
    for keyword, topic in _TOPIC_MAP:
        if keyword in prompt_lower:
            return topic
    return 'best practices'


@dataclass
class DocumentationResult:
    """Curated documentation for a request"""
    fragments: List[str] = field(default_factory=list)
    libraries: List[str] = field(default_factory=list)
    topic: Optional[str] = None


class DocumentationRetriever:
    """
    Resolves detected frameworks to documentation libraries, fetches the best
    ones concurrently and curates the text down to the token budget.

    Every source failure degrades to missing documentation.
    """

    def __init__(
        self,
        source: Optional[IDocumentationSource] = None,
        doc_cache_ttl: int = 3600,
        max_libraries: int = 3
    ):
        self.source = source
        self.max_libraries = max_libraries
        self.doc_cache_ttl = doc_cache_ttl
        self._doc_cache: Dict[Tuple[str, str, int], Tuple[float, str]] = {}

    async def retrieve(
        self,
        prompt: str,
        frameworks: List[str],
        complexity: PromptComplexity,
        max_tokens: int
    ) -> DocumentationResult:
        """
        Retrieve curated documentation.

        Args:
            prompt: User prompt
            frameworks: Detected frameworks
            complexity: Prompt complexity, bounds the number of libraries
            max_tokens: Total documentation token budget

        Returns:
            DocumentationResult: Curated fragments and the libraries they came from
        """
        if self.source is None or not frameworks:
            return DocumentationResult()

        try:
            libraries = await self.select_libraries(prompt, frameworks, complexity)
        except Exception as e:
            logger.warning(f"Documentation library selection failed, continuing without docs: {e}")
            return DocumentationResult()

        if not libraries:
            return DocumentationResult()

        topic = extract_topic(prompt)
        budget = max(1, max_tokens // len(libraries))

        fetched = await asyncio.gather(*(self._fetch(library_id, topic, budget) for library_id in libraries))

        keywords = extract_keywords(prompt)
        result = DocumentationResult(topic=topic)
        for library_id, docs in zip(libraries, fetched):
            if not docs:
                continue
            curated = self.curate(docs, keywords, budget)
            if curated:
                result.fragments.append(curated)
                result.libraries.append(library_id)

        logger.debug(f"Retrieved documentation from {result.libraries} on topic '{topic}'")
        return result

    async def select_libraries(
        self,
        prompt: str,
        frameworks: List[str],
        complexity: PromptComplexity
    ) -> List[str]:
        """
        Resolve frameworks to library ids and keep the most relevant ones.

        Args:
            prompt: User prompt
            frameworks: Detected frameworks
            complexity: Prompt complexity

        Returns:
            List[str]: Selected library ids, best first
        """
        prompt_lower = prompt.lower()
        keywords = extract_keywords(prompt)
        scored: List[Tuple[int, int, str]] = []

        for position, framework in enumerate(frameworks):
            try:
                library_ids = await self.source.resolve(framework)
            except Exception as e:
                logger.warning(f"Failed to resolve documentation library for {framework}: {e}")
                continue
            if not library_ids:
                continue

            topics = _FRAMEWORK_TOPICS.get(framework.lower(), [])
            # Detected frameworks always qualify; keywords and topics rank them
            score = 10
            for keyword in keywords:
                if any(keyword in topic for topic in topics):
                    score += 5
            if framework.lower() in prompt_lower:
                score += 8
            scored.append((score, -position, library_ids[0]))

        scored.sort(reverse=True)
        selected: List[str] = []
        for _, _, library_id in scored:
            if library_id not in selected:
                selected.append(library_id)

        return selected[:min(MAX_LIBRARIES[complexity.level], self.max_libraries)]

    async def _fetch(self, library_id: str, topic: str, budget: int) -> str:
        cache_key = (library_id, topic, budget)
        cached = self._doc_cache.get(cache_key)
        if cached and time.time() - cached[0] < self.doc_cache_ttl:
            logger.debug(f"Documentation cache hit for {library_id} ({topic})")
            return cached[1]

        try:
            docs = await self.source.fetch(library_id, topic, budget)
        except Exception as e:
            logger.warning(f"Failed to fetch documentation for {library_id}: {e}")
            return ""

        docs = docs or ""
        if docs:
            self._doc_cache[cache_key] = (time.time(), docs)
        return docs

    def curate(self, docs: str, keywords: List[str], max_tokens: int) -> str:
        """
        Keep the documentation sections most relevant to the prompt within the budget.

        Args:
            docs: Raw documentation text
            keywords: Prompt keywords
            max_tokens: Token budget for this library

        Returns:
            str: Curated documentation, original section order preserved
        """
        sections = self._split_sections(docs)
        if not sections:
            return ""

        scored = []
        for index, section in enumerate(sections):
            section_lower = section.lower()
            score = sum(section_lower.count(k) for k in keywords)
            if '```' in section:
                score += 2
            scored.append((score, -index, section))

        selected: List[Tuple[int, str]] = []
        used = 0
        for score, neg_index, section in sorted(scored, reverse=True):
            tokens = estimate_tokens(section)
            if used + tokens > max_tokens:
                continue
            selected.append((-neg_index, section))
            used += tokens

        if not selected:
            # Budget smaller than every section: truncate the best one
            best = sorted(scored, reverse=True)[0][2]
            return best[:max_tokens * 4].rstrip()

        return "\n\n".join(section for _, section in sorted(selected))

    def _split_sections(self, docs: str) -> List[str]:
        parts = re.split(r'\n(?=#{1,6}\s)|\n\s*-{3,}\s*\n|\n{2,}(?=[A-Z#])', docs.strip())
        return [p.strip() for p in parts if p and p.strip()]
