from pydantic import BaseModel
from datetime import datetime


class HealthCheck(BaseModel):
    status: str
    timestamp: datetime
    uptime: float
    cache_enabled: bool
    cache_backend: str
    ai_enhancement_enabled: bool
    version: str
