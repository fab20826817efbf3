"""
Adapter around an optional task breakdown service.
"""

import logging
from dataclasses import dataclass, field
from typing import Optional, Dict, Any, List

from ..interfaces import ITaskBreakdownService

logger = logging.getLogger(__name__)


@dataclass
class BreakdownResult:
    breakdown: Dict[str, Any]
    todos: List[Dict[str, Any]] = field(default_factory=list)


class TaskBreakdownAdapter:
    """
    Runs task breakdown when a service is configured.
    Any failure or empty result yields None.
    """

    def __init__(self, service: Optional[ITaskBreakdownService] = None):
        self.service = service

    async def breakdown(self, prompt: str, project_id: str, max_tasks: int) -> Optional[BreakdownResult]:
        """
        Break a prompt down into tasks and derive todos.

        Args:
            prompt: User prompt
            project_id: Project identifier
            max_tasks: Maximum number of main tasks to keep

        Returns:
            Optional[BreakdownResult]: Breakdown and todos, or None
        """
        if self.service is None:
            return None

        try:
            raw = await self.service.breakdown(prompt, project_id)
        except Exception as e:
            logger.warning(f"Task breakdown failed, continuing without it: {e}")
            return None

        if not isinstance(raw, dict) or not raw.get("main_tasks"):
            logger.warning("Task breakdown returned no results")
            return None

        main_tasks = list(raw.get("main_tasks") or [])[:max_tasks]
        subtasks = list(raw.get("subtasks") or [])
        dependencies = list(raw.get("dependencies") or [])

        breakdown = {
            "tasks": main_tasks,
            "main_tasks": len(main_tasks),
            "subtasks": len(subtasks),
            "dependencies": len(dependencies),
            "estimated_total_hours": self._estimate_hours(main_tasks),
        }
        todos = [self._to_todo(task, project_id) for task in main_tasks]

        logger.info(f"Task breakdown produced {len(main_tasks)} main tasks for project {project_id}")
        return BreakdownResult(breakdown=breakdown, todos=todos)

    def _to_todo(self, task: Any, project_id: str) -> Dict[str, Any]:
        if isinstance(task, dict):
            return {
                "title": task.get("title") or task.get("name") or str(task),
                "description": task.get("description", ""),
                "priority": task.get("priority", "medium"),
                "status": "pending",
                "project_id": project_id,
            }
        return {"title": str(task), "description": "", "priority": "medium", "status": "pending", "project_id": project_id}

    def _estimate_hours(self, tasks: List[Any]) -> float:
        total = 0.0
        for task in tasks:
            hours = task.get("estimated_hours") if isinstance(task, dict) else None
            total += float(hours) if isinstance(hours, (int, float)) else 1.0
        return total
