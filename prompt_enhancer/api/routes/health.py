from fastapi import APIRouter
from prompt_enhancer.models.api import HealthCheck
from prompt_enhancer.config import settings
import time
from datetime import datetime

router = APIRouter()

# Store start time for uptime calculation
start_time = time.time()


@router.get("/", response_model=HealthCheck)
async def health_check():
    """Health check endpoint"""
    return HealthCheck(
        status="healthy",
        timestamp=datetime.utcnow(),
        uptime=time.time() - start_time,
        cache_enabled=settings.CACHE_ENABLED,
        cache_backend=settings.CACHE_BACKEND,
        ai_enhancement_enabled=settings.AI_ENHANCEMENT_ENABLED,
        version="1.0.0"
    )
