"""
Exception types raised by the prompt enhancement pipeline.
"""


class PromptEnhancementError(Exception):
    """Base class for enhancement pipeline errors"""


class MandatoryDependencyError(PromptEnhancementError):
    """
    Raised when the minimum infrastructure needed to gather any context is unusable.

    This is the only failure that aborts a request; it is re-raised to the caller unwrapped.
    """


class EnhancementValidationError(PromptEnhancementError, ValueError):
    """Raised for malformed requests before the pipeline starts"""


class AIEnhancementError(PromptEnhancementError):
    """Raised when AI enhancement returns malformed or unusable output"""


class CacheStoreError(PromptEnhancementError):
    """Raised by cache stores when the backing storage fails"""
