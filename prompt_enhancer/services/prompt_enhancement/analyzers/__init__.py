from .context_gatherer import ContextGatherer
from .framework_detection import FrameworkDetectionWrapper, KeywordFrameworkDetector, infer_project_type
from .complexity_analyzer import ComplexityAnalyzer
from .quality_detector import QualityRequirementDetector

__all__ = [
    "ContextGatherer",
    "FrameworkDetectionWrapper",
    "KeywordFrameworkDetector",
    "infer_project_type",
    "ComplexityAnalyzer",
    "QualityRequirementDetector"
]
