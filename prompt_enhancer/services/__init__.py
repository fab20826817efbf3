from .prompt_enhancement import EnhancementService, EnhancementFactory

__all__ = ["EnhancementService", "EnhancementFactory"]
