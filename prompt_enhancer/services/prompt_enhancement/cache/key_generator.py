"""
Deterministic cache key derivation for enhanced prompts.

Keys have the form ``enhance_<promptHash>_<contextHash>``. Both hashes are a
32-bit polynomial rolling hash. It is NOT cryptographic and collisions are
possible; the full signature is stored with each entry and compared on read.
"""

import json
import re
from typing import List, Optional, Dict, Any

from ..models import (
    ProjectContext,
    FrameworkDetectionResult,
    RequestHints,
    ComplexityLevel,
    QualityRequirement,
    ProjectType
)

MAX_SIGNATURE_FACTS = 5
MAX_SIGNATURE_SNIPPETS = 3
MAX_SNIPPET_CHARS = 200


def rolling_hash(text: str) -> str:
    """
    32-bit polynomial rolling hash, rendered as 8 hex digits.

    Args:
        text: Input text

    Returns:
        str: Hash string
    """
    h = 0
    for ch in text:
        h = (h * 31 + ord(ch)) & 0xFFFFFFFF
    return format(h, "08x")


def normalize_prompt(prompt: str) -> str:
    """Lowercase, strip punctuation and collapse whitespace"""
    without_punctuation = re.sub(r"[^\w\s]", "", prompt.lower())
    return " ".join(without_punctuation.split())


class CacheKeyGenerator:
    """Builds context signatures and cache keys"""

    def build_signature(
        self,
        prompt: str,
        project_context: ProjectContext,
        framework_detection: FrameworkDetectionResult,
        hints: RequestHints,
        complexity_level: ComplexityLevel,
        quality_requirements: List[QualityRequirement],
        project_type: Optional[ProjectType] = None
    ) -> str:
        """
        Serialize the context signature for a request.

        Args:
            prompt: Original prompt
            project_context: Gathered project context
            framework_detection: Detected frameworks
            hints: Caller hints
            complexity_level: Prompt complexity level
            quality_requirements: Detected quality requirements
            project_type: Supplied or inferred project type

        Returns:
            str: Canonical JSON signature
        """
        record: Dict[str, Any] = {
            "repo_facts": project_context.repo_facts[:MAX_SIGNATURE_FACTS],
            "code_snippets": [
                {
                    "file": s.file,
                    "description": s.description,
                    "content": s.content[:MAX_SNIPPET_CHARS],
                }
                for s in project_context.code_snippets[:MAX_SIGNATURE_SNIPPETS]
            ],
            "project_type": project_type.value if project_type else None,
            "frameworks": list(framework_detection.detected_frameworks),
            "framework_confidence": round(framework_detection.confidence, 4),
            "detection_method": framework_detection.detection_method,
            "hints": hints.to_dict(),
            "prompt_length": len(prompt),
            "complexity": complexity_level.value,
            "quality_requirements": [r.type for r in quality_requirements],
        }
        return json.dumps(record, sort_keys=True, separators=(",", ":"))

    def generate_key(self, prompt: str, signature: str) -> str:
        """
        Generate the cache key for a prompt and serialized signature.

        Args:
            prompt: Original prompt
            signature: Output of build_signature

        Returns:
            str: Cache key
        """
        return f"enhance_{self.prompt_hash(prompt)}_{rolling_hash(signature)}"

    def prompt_hash(self, prompt: str) -> str:
        return rolling_hash(normalize_prompt(prompt))
