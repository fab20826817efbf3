"""
Gathers repository facts and relevant code snippets for a request.
"""

import asyncio
import logging
from typing import Optional, List

from ..interfaces import IProjectAnalyzer
from ..models import ProjectContext, CodeSnippet
from ..exceptions import MandatoryDependencyError

logger = logging.getLogger(__name__)


class ContextGatherer:
    """
    Collects project context from a ProjectAnalyzer.

    Facts and snippets are fetched concurrently. A failure of either fetch
    substitutes an empty list; only MandatoryDependencyError propagates.
    """

    def __init__(self, project_analyzer: Optional[IProjectAnalyzer] = None):
        self.project_analyzer = project_analyzer

    async def gather(self, prompt: str, file: Optional[str] = None) -> ProjectContext:
        """
        Gather project context for a prompt.

        Args:
            prompt: User prompt
            file: Optional file hint

        Returns:
            ProjectContext: Fresh context; fields are never None
        """
        if self.project_analyzer is None:
            logger.debug("No project analyzer configured, using empty project context")
            return ProjectContext()

        repo_facts, code_snippets = await asyncio.gather(
            self._gather_repo_facts(),
            self._gather_code_snippets(prompt, file)
        )

        logger.debug(f"Gathered {len(repo_facts)} repo facts and {len(code_snippets)} code snippets")
        return ProjectContext(repo_facts=repo_facts, code_snippets=code_snippets)

    async def _gather_repo_facts(self) -> List[str]:
        try:
            facts = await self.project_analyzer.analyze_project()
            return [str(fact) for fact in facts or []]
        except MandatoryDependencyError:
            raise
        except Exception as e:
            logger.warning(f"Repo fact gathering failed, continuing without facts: {e}")
            return []

    async def _gather_code_snippets(self, prompt: str, file: Optional[str]) -> List[CodeSnippet]:
        try:
            snippets = await self.project_analyzer.find_relevant_code_snippets(prompt, file)
        except MandatoryDependencyError:
            raise
        except Exception as e:
            logger.warning(f"Code snippet gathering failed, continuing without snippets: {e}")
            return []

        result = []
        for item in snippets or []:
            snippet = self._to_snippet(item)
            if snippet is None:
                logger.warning(f"Ignoring unusable code snippet of type {type(item).__name__}")
                continue
            result.append(snippet)
        return result

    def _to_snippet(self, item) -> Optional[CodeSnippet]:
        if isinstance(item, CodeSnippet):
            return item
        if isinstance(item, dict) and item.get("file") and item.get("content") is not None:
            return CodeSnippet(
                file=str(item["file"]),
                description=str(item.get("description") or ""),
                content=str(item["content"])
            )
        return None
