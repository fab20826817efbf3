from .api import HealthCheck

__all__ = ["HealthCheck"]
