"""
API routes for prompt enhancement functionality.
Provides endpoints for prompt enhancement, health and metrics.
"""

import logging
from typing import Optional, Dict, Any, List
from fastapi import APIRouter, HTTPException
from pydantic import BaseModel, Field

from prompt_enhancer.services.prompt_enhancement import (
    EnhancementService,
    EnhancementValidationError,
    MandatoryDependencyError
)

logger = logging.getLogger(__name__)

# Initialize enhancement service (singleton pattern)
_enhancement_service: Optional[EnhancementService] = None


def get_enhancement_service() -> EnhancementService:
    """
    Get or create enhancement service instance.

    Returns:
        EnhancementService: Configured enhancement service
    """
    global _enhancement_service

    if _enhancement_service is None:
        try:
            _enhancement_service = EnhancementService()
        except Exception as e:
            logger.error(f"Failed to initialize enhancement service: {e}")
            raise HTTPException(status_code=500, detail="Enhancement service unavailable")

    return _enhancement_service


async def shutdown_enhancement_service():
    """Close the service's cache store and drop the singleton"""
    global _enhancement_service

    if _enhancement_service is not None:
        await _enhancement_service.close()
        _enhancement_service = None


# Request/Response models
class EnhanceContext(BaseModel):
    """Optional hints about the request"""
    model_config = {"extra": "forbid"}

    file: Optional[str] = Field(None, description="File the request is about")
    framework: Optional[str] = Field(None, description="Framework hint")
    style: Optional[str] = Field(None, description="Preferred style")


class EnhanceOptions(BaseModel):
    """Processing options; unknown fields are rejected"""
    model_config = {"extra": "forbid"}

    use_cache: Optional[bool] = None
    max_tokens: Optional[int] = Field(None, gt=0)
    enhancement_strategy: Optional[str] = Field(
        None, description="general | framework_specific | quality_focused | project_aware"
    )
    quality_focus: Optional[List[str]] = None
    project_type: Optional[str] = Field(
        None, description="frontend | backend | fullstack | library | mobile | desktop | cli | other"
    )
    include_breakdown: Optional[bool] = None
    max_tasks: Optional[int] = Field(None, gt=0)
    use_ai_enhancement: Optional[bool] = None
    project_id: Optional[str] = None


class EnhanceRequest(BaseModel):
    """Request model for prompt enhancement"""
    prompt: str = Field(..., min_length=1, description="Prompt to enhance")
    context: Optional[EnhanceContext] = Field(None, description="Optional request hints")
    options: Optional[EnhanceOptions] = Field(None, description="Optional processing options")

    model_config = {
        "json_schema_extra": {
            "example": {
                "prompt": "create a login form component",
                "context": {"file": "src/components/Login.tsx", "framework": "react"},
                "options": {"use_cache": True, "max_tokens": 2000}
            }
        }
    }


class EnhanceResponse(BaseModel):
    """Response model for prompt enhancement"""
    success: bool = Field(..., description="Whether the request succeeded")
    enhanced_prompt: str = Field(..., description="Enhanced prompt")
    context_used: Dict[str, List[str]] = Field(..., description="Context fragments included in the prompt")
    metrics: Dict[str, Any] = Field(..., description="Response metrics")
    cache_hit: bool = Field(False, description="Whether the result came from the cache")
    strategy: Optional[str] = Field(None, description="Enhancement strategy used")
    breakdown: Optional[Dict[str, Any]] = Field(None, description="Task breakdown, when produced")
    todos: Optional[List[Dict[str, Any]]] = Field(None, description="Todos derived from the breakdown")


class HealthResponse(BaseModel):
    """Response model for health check"""
    status: str = Field(..., description="Overall health status")
    timestamp: float = Field(..., description="Health check timestamp")
    components: Dict[str, Any] = Field(..., description="Component health details")


class MetricsResponse(BaseModel):
    """Response model for enhancement metrics"""
    total_requests: int = Field(..., description="Total successful enhancement requests")
    cache_hits: int = Field(..., description="Cache hits")
    cache_hit_rate: float = Field(..., ge=0.0, le=1.0, description="Cache hit rate")
    ai_enhancements: int = Field(..., description="Responses refined by AI")
    fallbacks: int = Field(..., description="Responses without AI refinement")
    failures: int = Field(..., description="Failed requests")
    average_response_time_ms: float = Field(..., description="Average response time in ms")
    average_token_ratio: float = Field(..., description="Average approximate token ratio")
    cache: Optional[Dict[str, Any]] = Field(None, description="Cache statistics")


# Create router
router = APIRouter(prefix="/api/enhancement", tags=["Enhancement"])


@router.post("/enhance", response_model=EnhanceResponse, response_model_exclude_none=True)
async def enhance_prompt(request: EnhanceRequest):
    """
    Enhance a prompt with project context, framework documentation
    and optional AI refinement.
    """
    enhancement_service = get_enhancement_service()

    try:
        result = await enhancement_service.enhance(
            prompt=request.prompt,
            context=request.context.model_dump(exclude_none=True) if request.context else None,
            options=request.options.model_dump(exclude_none=True) if request.options else None
        )
        return EnhanceResponse(**result)

    except EnhancementValidationError as e:
        raise HTTPException(status_code=400, detail=str(e))
    except MandatoryDependencyError as e:
        logger.error(f"Enhancement aborted, mandatory dependency failed: {e}")
        raise HTTPException(status_code=503, detail=f"Enhancement unavailable: {str(e)}")
    except Exception as e:
        logger.error(f"Enhancement failed: {e}")
        raise HTTPException(
            status_code=500,
            detail=f"Enhancement failed: {str(e)}"
        )


@router.get("/health", response_model=HealthResponse)
async def health_check():
    """
    Check health of enhancement system components.

    Reports which optional collaborators are configured, plus cache
    and metrics collection status.
    """
    try:
        enhancement_service = get_enhancement_service()
        health_data = await enhancement_service.health_check()

        return HealthResponse(**health_data)

    except Exception as e:
        logger.error(f"Enhancement health check failed: {e}")
        raise HTTPException(
            status_code=503,
            detail=f"Health check failed: {str(e)}"
        )


@router.get("/metrics", response_model=MetricsResponse)
async def get_metrics():
    """Get enhancement system performance metrics"""
    try:
        enhancement_service = get_enhancement_service()
        metrics_data = await enhancement_service.get_metrics()
        return MetricsResponse(**metrics_data)
    except Exception as e:
        logger.error(f"Failed to get enhancement metrics: {e}")
        raise HTTPException(status_code=500, detail=f"Failed to get metrics: {str(e)}")


class InvalidateRequest(BaseModel):
    """Request model for cache invalidation"""
    model_config = {"extra": "forbid"}

    pattern: Optional[str] = Field(
        None, min_length=1, description="Substring of cache key or original prompt; omit to purge expired entries"
    )


class InvalidateResponse(BaseModel):
    """Response model for cache invalidation"""
    invalidated: int = Field(..., ge=0, description="Number of cache entries removed")
    pattern: Optional[str] = Field(None, description="Pattern that was applied")


@router.post("/cache/invalidate", response_model=InvalidateResponse)
async def invalidate_cache(request: Optional[InvalidateRequest] = None):
    """Remove cached enhancements by pattern, or purge expired ones"""
    pattern = request.pattern if request else None
    try:
        enhancement_service = get_enhancement_service()
        removed = await enhancement_service.invalidate_cache(pattern)
        return InvalidateResponse(invalidated=removed, pattern=pattern)
    except Exception as e:
        logger.error(f"Cache invalidation failed: {e}")
        raise HTTPException(status_code=500, detail=f"Cache invalidation failed: {str(e)}")
