import asyncio
import json

import pytest

from prompt_enhancer.services.prompt_enhancement.enhancers import AIEnhancer, ModelBackedAIEnhancementClient
from prompt_enhancer.services.prompt_enhancement.interfaces import IModelManager
from prompt_enhancer.services.prompt_enhancement.models import (
    AIEnhancementResult,
    EnhancementStrategy,
    QualityScores
)
from prompt_enhancer.services.prompt_enhancement.exceptions import AIEnhancementError
from prompt_enhancer.utils.json_parser import parse_model_json

from conftest import FakeAIClient


class StubModelManager(IModelManager):
    def __init__(self, text, available=True, tokens=500):
        self.text = text
        self.available = available
        self.tokens = tokens
        self.prompts = []

    async def inference(self, prompt, max_tokens=512, temperature=0.3):
        self.prompts.append(prompt)
        return {"text": self.text, "token_usage": {"total_tokens": self.tokens}}

    def is_available(self):
        return self.available


MODEL_OUTPUT = "Here you go:\n```json\n" + json.dumps({
    "enhanced_prompt": "Create an accessible React Button component with onClick and disabled props.",
    "quality": {"clarity": 0.9, "specificity": 0.8, "actionability": 0.9, "completeness": 0.7, "relevance": 0.9},
    "confidence": {"overall": 0.8, "framework_accuracy": 0.9},
    "improvements": [{"type": "specificity", "description": "Listed props", "before": "button", "after": "Button"}],
    "recommendations": ["Add a storybook story"],
}) + "\n```"


def test_parse_model_json_handles_fences_and_commentary():
    assert parse_model_json('noise {"a": 1, "b": [1, 2,],} trailing') == {"a": 1, "b": [1, 2]}
    assert parse_model_json('```json\n{"a": "}"}\n```') == {"a": "}"}
    assert parse_model_json("no json here") is None
    assert parse_model_json("", fallback={}) == {}


def test_model_backed_client_parses_result():
    manager = StubModelManager(MODEL_OUTPUT)
    client = ModelBackedAIEnhancementClient(manager, cost_per_1k_tokens=0.01)

    result = asyncio.run(client.enhance(
        "create a button", {"frameworks": ["react"]}, EnhancementStrategy.framework_specific("react")
    ))

    assert result.enhanced_prompt.startswith("Create an accessible React Button")
    assert result.quality.overall == pytest.approx(0.84)
    assert result.confidence.overall == 0.8
    assert result.improvements[0].after == "Button"
    assert result.recommendations == ["Add a storybook story"]
    assert result.cost == pytest.approx(0.005)
    assert "conventions of react" in manager.prompts[0]


def test_model_backed_client_rejects_unusable_output():
    client = ModelBackedAIEnhancementClient(StubModelManager("I cannot help with that"))
    with pytest.raises(AIEnhancementError):
        asyncio.run(client.enhance("create a button", {}, EnhancementStrategy.general()))


def test_model_backed_client_requires_available_model():
    client = ModelBackedAIEnhancementClient(StubModelManager(MODEL_OUTPUT, available=False))
    with pytest.raises(AIEnhancementError):
        asyncio.run(client.enhance("create a button", {}, EnhancementStrategy.general()))


def test_enhancer_wraps_client_exceptions():
    enhancer = AIEnhancer(FakeAIClient(error=TimeoutError("model timed out")))
    with pytest.raises(AIEnhancementError):
        asyncio.run(enhancer.enhance("p", {}, EnhancementStrategy.general()))


def test_enhancer_rejects_out_of_range_scores():
    class BadClient(FakeAIClient):
        async def enhance(self, prompt, context, strategy):
            return AIEnhancementResult(enhanced_prompt="x", quality=QualityScores(overall=1.5))

    with pytest.raises(AIEnhancementError):
        asyncio.run(AIEnhancer(BadClient()).enhance("p", {}, EnhancementStrategy.general()))


def test_enhancer_rejects_empty_prompt():
    with pytest.raises(AIEnhancementError):
        asyncio.run(AIEnhancer(FakeAIClient(enhanced_prompt="   ")).enhance("p", {}, EnhancementStrategy.general()))


def test_enhancer_returns_valid_result():
    result = asyncio.run(AIEnhancer(FakeAIClient()).enhance("p", {}, EnhancementStrategy.general()))
    assert result.enhanced_prompt == "Refined: build an accessible button component"
    assert result.processing_time > 0
