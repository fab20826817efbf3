"""
Second-pass AI refinement of assembled prompts.
"""

import time
import logging
from typing import Dict, Any, List

from ..interfaces import IAIEnhancementClient, IModelManager
from ..models import (
    AIEnhancementResult,
    EnhancementStrategy,
    StrategyType,
    QualityScores,
    ConfidenceScores,
    Improvement
)
from ..exceptions import AIEnhancementError
from prompt_enhancer.utils.json_parser import parse_model_json

logger = logging.getLogger(__name__)


class AIEnhancer:
    """
    Runs an AI enhancement client and validates what it returns.
    Anything unusable is raised as AIEnhancementError so the caller can fall back.
    """

    def __init__(self, client: IAIEnhancementClient):
        self.client = client

    async def enhance(
        self,
        prompt: str,
        context: Dict[str, Any],
        strategy: EnhancementStrategy
    ) -> AIEnhancementResult:
        """
        Refine an assembled prompt.

        Args:
            prompt: Assembled prompt
            context: Plain context summary for the client
            strategy: Selected strategy

        Returns:
            AIEnhancementResult: Validated result
        """
        start_time = time.perf_counter()

        try:
            result = await self.client.enhance(prompt, context, strategy)
        except AIEnhancementError:
            raise
        except Exception as e:
            raise AIEnhancementError(f"AI enhancement client failed: {e}") from e

        self._validate(result)

        if not result.processing_time:
            result.processing_time = (time.perf_counter() - start_time) * 1000

        logger.info(
            f"AI enhancement succeeded with strategy {strategy.describe()} "
            f"(quality={result.quality.overall:.2f}, confidence={result.confidence.overall:.2f})"
        )
        return result

    def _validate(self, result: Any):
        if not isinstance(result, AIEnhancementResult):
            raise AIEnhancementError(f"Unexpected AI result type: {type(result).__name__}")
        if not isinstance(result.enhanced_prompt, str) or not result.enhanced_prompt.strip():
            raise AIEnhancementError("AI enhancement returned an empty prompt")

        for name, scores in (("quality", result.quality), ("confidence", result.confidence)):
            for field_name, value in vars(scores).items():
                if not isinstance(value, (int, float)) or not 0.0 <= value <= 1.0:
                    raise AIEnhancementError(f"{name}.{field_name} out of range: {value!r}")

        if result.cost < 0:
            raise AIEnhancementError(f"Negative AI enhancement cost: {result.cost}")


class ModelBackedAIEnhancementClient(IAIEnhancementClient):
    """
    AI enhancement client that prompts a local model for a JSON verdict.
    Instructions vary by strategy.
    """

    _STRATEGY_INSTRUCTIONS = {
        StrategyType.GENERAL: (
            "Make the request clear, specific and actionable. Add missing acceptance criteria."
        ),
        StrategyType.FRAMEWORK_SPECIFIC: (
            "Rewrite the request using the idioms and conventions of {framework}. "
            "Reference the relevant APIs from the documentation provided."
        ),
        StrategyType.QUALITY_FOCUSED: (
            "Strengthen the request around these quality concerns: {focus}. "
            "State concrete, checkable requirements for each."
        ),
        StrategyType.PROJECT_AWARE: (
            "Tailor the request to a {project_type} project and its existing structure."
        ),
    }

    def __init__(
        self,
        model_manager: IModelManager,
        cost_per_1k_tokens: float = 0.0,
        max_tokens: int = 1024,
        temperature: float = 0.3
    ):
        """
        Initialize client.

        Args:
            model_manager: Model used for inference
            cost_per_1k_tokens: Price used to report cost
            max_tokens: Generation limit
            temperature: Generation temperature
        """
        self.model_manager = model_manager
        self.cost_per_1k_tokens = cost_per_1k_tokens
        self.max_tokens = max_tokens
        self.temperature = temperature

    async def enhance(self, prompt: str, context: Dict[str, Any], strategy: EnhancementStrategy) -> AIEnhancementResult:
        if not self.model_manager.is_available():
            raise AIEnhancementError("Model is not available")

        start_time = time.perf_counter()
        model_result = await self.model_manager.inference(
            prompt=self._create_instruction_prompt(prompt, context, strategy),
            max_tokens=self.max_tokens,
            temperature=self.temperature
        )

        raw_output = model_result.get("text", "")
        logger.debug(f"Raw AI output: {raw_output[:200]!r}")

        parsed = parse_model_json(raw_output)
        if parsed is None:
            raise AIEnhancementError("Model output did not contain a JSON object")

        tokens = model_result.get("token_usage", {}).get("total_tokens", 0)
        try:
            return AIEnhancementResult(
                enhanced_prompt=str(parsed.get("enhanced_prompt", "")).strip(),
                quality=self._quality(parsed.get("quality") or {}),
                confidence=self._confidence(parsed.get("confidence") or {}),
                improvements=self._improvements(parsed.get("improvements") or []),
                recommendations=[str(r) for r in parsed.get("recommendations") or []],
                cost=round(tokens / 1000 * self.cost_per_1k_tokens, 6),
                processing_time=(time.perf_counter() - start_time) * 1000
            )
        except (TypeError, ValueError, AttributeError) as e:
            raise AIEnhancementError(f"Malformed AI enhancement output: {e}") from e

    def _create_instruction_prompt(self, prompt: str, context: Dict[str, Any], strategy: EnhancementStrategy) -> str:
        instruction = self._STRATEGY_INSTRUCTIONS[strategy.type].format(
            framework=strategy.framework or "the detected framework",
            focus=", ".join(sorted(strategy.focus)) or "general quality",
            project_type=strategy.project_type.value if strategy.project_type else "software"
        )

        frameworks = ", ".join(context.get("frameworks", [])) or "none detected"
        return f"""You improve coding requests before they are sent to a coding assistant.

{instruction}

Detected frameworks: {frameworks}
Complexity: {context.get("complexity", "medium")}

Request:
\"\"\"
{prompt}
\"\"\"

Respond with JSON only:
{{"enhanced_prompt": "...",
 "quality": {{"clarity": 0-1, "specificity": 0-1, "actionability": 0-1, "completeness": 0-1, "relevance": 0-1, "overall": 0-1}},
 "confidence": {{"overall": 0-1, "context_relevance": 0-1, "framework_accuracy": 0-1, "quality_alignment": 0-1, "project_fit": 0-1}},
 "improvements": [{{"type": "...", "description": "...", "before": "...", "after": "..."}}],
 "recommendations": ["..."]}}"""

    def _quality(self, data: Dict[str, Any]) -> QualityScores:
        fields = {k: float(data.get(k, 0.0)) for k in ("clarity", "specificity", "actionability", "completeness", "relevance")}
        overall = float(data["overall"]) if "overall" in data else sum(fields.values()) / len(fields)
        return QualityScores(overall=overall, **fields)

    def _confidence(self, data: Dict[str, Any]) -> ConfidenceScores:
        fields = {k: float(data.get(k, 0.0)) for k in ("context_relevance", "framework_accuracy", "quality_alignment", "project_fit")}
        overall = float(data["overall"]) if "overall" in data else sum(fields.values()) / len(fields)
        return ConfidenceScores(overall=overall, **fields)

    def _improvements(self, items: List[Any]) -> List[Improvement]:
        improvements = []
        for item in items:
            if not isinstance(item, dict):
                continue
            improvements.append(Improvement(
                type=str(item.get("type", "general")),
                description=str(item.get("description", "")),
                before=str(item.get("before", "")),
                after=str(item.get("after", ""))
            ))
        return improvements
