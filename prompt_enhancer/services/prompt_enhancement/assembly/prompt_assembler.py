"""
Merges gathered context into the enhanced prompt text.
"""

import logging
from dataclasses import dataclass, field
from typing import Optional, List, Dict, Any

from ..models import (
    ProjectContext,
    QualityRequirement,
    ProjectType,
    ContextUsage,
    CodeSnippet
)
from ..documentation.retriever import estimate_tokens

logger = logging.getLogger(__name__)

MAX_REPO_FACTS = 8
MAX_CODE_SNIPPETS = 3
MAX_SNIPPET_CHARS = 1200


@dataclass
class AssembledPrompt:
    text: str
    context_used: ContextUsage = field(default_factory=ContextUsage)


class PromptAssembler:
    """
    Appends context sections to the original prompt.

    The original prompt is always kept verbatim at the start. Sections are
    added in priority order while the approximate token budget allows, and
    every fragment that makes it in is recorded in ContextUsage.
    """

    def assemble(
        self,
        prompt: str,
        project_context: ProjectContext,
        documentation: List[str],
        quality_requirements: List[QualityRequirement],
        project_type: Optional[ProjectType] = None,
        breakdown: Optional[Dict[str, Any]] = None,
        max_tokens: int = 4000,
        libraries: Optional[List[str]] = None
    ) -> AssembledPrompt:
        """
        Build the enhanced prompt.

        Args:
            prompt: Original prompt
            project_context: Gathered project context
            documentation: Curated documentation fragments
            quality_requirements: Detected quality requirements
            project_type: Supplied or inferred project type
            breakdown: Optional task breakdown
            max_tokens: Approximate budget for the added context
            libraries: Library id of each documentation fragment, in the same order

        Returns:
            AssembledPrompt: Text plus the fragments that were used
        """
        usage = ContextUsage()
        sections: List[str] = []
        remaining = max_tokens

        def take(fragment: str) -> bool:
            nonlocal remaining
            cost = estimate_tokens(fragment)
            if cost > remaining:
                return False
            remaining -= cost
            return True

        # libraries is parallel to documentation; only sources of used fragments are reported
        sources = list(libraries or [])
        used_docs = []
        for position, doc in enumerate(documentation):
            if take(doc):
                used_docs.append(doc)
                if position < len(sources):
                    usage.libraries_resolved.append(sources[position])
        if used_docs:
            usage.framework_docs.extend(used_docs)
            sections.append("## Framework Documentation:\n" + "\n\n".join(used_docs))

        project_docs = []
        if project_type is not None and project_type != ProjectType.OTHER:
            project_docs.append(f"Project type: {project_type.value}")
        project_docs.extend(
            f"{r.type} ({r.priority.value} priority): {r.description}".rstrip(": ")
            for r in quality_requirements
        )
        project_docs = [line for line in project_docs if take(line)]
        if project_docs:
            usage.project_docs.extend(project_docs)
            sections.append("## Quality Requirements:\n" + "\n".join(f"- {line}" for line in project_docs))

        facts = [fact for fact in project_context.repo_facts[:MAX_REPO_FACTS] if take(fact)]
        if facts:
            usage.repo_facts.extend(facts)
            sections.append("## Project Context:\n" + "\n".join(f"- {fact}" for fact in facts))

        snippets = []
        for snippet in project_context.code_snippets[:MAX_CODE_SNIPPETS]:
            formatted = self._format_snippet(snippet)
            if take(formatted):
                snippets.append(formatted)
        if snippets:
            usage.code_snippets.extend(snippets)
            sections.append("## Existing Code Patterns:\n" + "\n\n".join(snippets))

        if breakdown and breakdown.get("tasks"):
            titles = [self._task_title(task) for task in breakdown["tasks"]]
            sections.append("## Task Plan:\n" + "\n".join(f"{i}. {t}" for i, t in enumerate(titles, 1)))

        text = prompt
        if sections:
            text += "\n\n" + "\n\n".join(sections)
            text += (
                "\n\n## Instructions:\nMake your response consistent with the project's existing "
                "patterns, best practices, and the requirements above."
            )

        logger.debug(
            f"Assembled prompt with {len(usage.framework_docs)} docs, {len(usage.repo_facts)} facts, "
            f"{len(usage.code_snippets)} snippets, {len(usage.project_docs)} project notes"
        )
        return AssembledPrompt(text=text, context_used=usage)

    def _format_snippet(self, snippet: CodeSnippet) -> str:
        header = f"// {snippet.file}"
        if snippet.description:
            header += f": {snippet.description}"
        return f"{header}\n```\n{snippet.content[:MAX_SNIPPET_CHARS]}\n```"

    def _task_title(self, task: Any) -> str:
        if isinstance(task, dict):
            return str(task.get("title") or task.get("name") or task)
        return str(task)
