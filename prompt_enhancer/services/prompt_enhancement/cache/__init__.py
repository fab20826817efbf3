from .key_generator import CacheKeyGenerator, rolling_hash, normalize_prompt
from .prompt_cache import ContentAddressedCache, InMemoryCacheStore
from .invalidator import CacheInvalidator, SessionState

__all__ = [
    "CacheKeyGenerator",
    "rolling_hash",
    "normalize_prompt",
    "ContentAddressedCache",
    "InMemoryCacheStore",
    "CacheInvalidator",
    "SessionState"
]
