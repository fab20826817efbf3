from .strategy_selector import EnhancementStrategySelector
from .ai_enhancer import AIEnhancer, ModelBackedAIEnhancementClient

__all__ = ["EnhancementStrategySelector", "AIEnhancer", "ModelBackedAIEnhancementClient"]
