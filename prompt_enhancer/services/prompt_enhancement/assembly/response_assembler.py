"""
Builds the final EnhancedResponse and its metrics.
"""

import math
from typing import Optional, List

from ..models import (
    EnhancedResponse,
    ResponseMetrics,
    ContextUsage,
    AIEnhancementResult,
    EnhancementStrategy,
    CacheEntry
)
from ..tasks.breakdown_adapter import BreakdownResult


def token_ratio(enhanced: str, original: str) -> float:
    """
    Approximate token expansion of the enhanced prompt.

    Both sides are estimated at four characters per token, so the value is
    an approximation rather than a tokenizer count.
    """
    original_tokens = max(1, math.ceil(len(original) / 4))
    enhanced_tokens = math.ceil(len(enhanced) / 4)
    return round(enhanced_tokens / original_tokens, 4)


class ResponseAssembler:
    """Creates responses for fresh enhancements and cache hits"""

    def build(
        self,
        original_prompt: str,
        enhanced_prompt: str,
        context_used: ContextUsage,
        frameworks: List[str],
        response_time_ms: float,
        strategy: EnhancementStrategy,
        ai_result: Optional[AIEnhancementResult] = None,
        breakdown: Optional[BreakdownResult] = None
    ) -> EnhancedResponse:
        """
        Build the response for a freshly processed request.

        Args:
            original_prompt: Prompt as submitted
            enhanced_prompt: Final enhanced prompt text
            context_used: Fragments included in the prompt
            frameworks: Detected frameworks
            response_time_ms: Wall time of the request
            strategy: Strategy used for the request
            ai_result: AI refinement result, None if AI did not run or failed
            breakdown: Optional task breakdown

        Returns:
            EnhancedResponse: Final response
        """
        metrics = ResponseMetrics(
            response_time_ms=round(response_time_ms, 3),
            quality_score=ai_result.quality.overall if ai_result else 0.0,
            confidence_score=ai_result.confidence.overall if ai_result else 0.0,
            token_ratio=token_ratio(enhanced_prompt, original_prompt),
            frameworks_detected=list(frameworks),
            ai_enhancement_enabled=ai_result is not None,
            cost=ai_result.cost if ai_result else 0.0
        )

        return EnhancedResponse(
            enhanced_prompt=enhanced_prompt,
            context_used=context_used,
            metrics=metrics,
            breakdown=breakdown.breakdown if breakdown else None,
            todos=breakdown.todos if breakdown else None,
            cache_hit=False,
            strategy=strategy.describe()
        )

    def from_cache(self, original_prompt: str, entry: CacheEntry) -> EnhancedResponse:
        """
        Build the response for a cache hit.

        Context usage is not recorded in the cache, and a hit does no
        processing, so the response time is reported as zero.
        """
        metrics = ResponseMetrics(
            response_time_ms=0.0,
            quality_score=entry.quality_score,
            confidence_score=0.0,
            token_ratio=token_ratio(entry.enhanced_prompt, original_prompt),
            frameworks_detected=list(entry.framework_detection.detected_frameworks),
            ai_enhancement_enabled=False,
            cost=0.0
        )

        return EnhancedResponse(
            enhanced_prompt=entry.enhanced_prompt,
            context_used=ContextUsage(),
            metrics=metrics,
            cache_hit=True
        )
