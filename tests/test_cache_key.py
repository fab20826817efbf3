import re

from prompt_enhancer.services.prompt_enhancement.cache import CacheKeyGenerator, rolling_hash, normalize_prompt
from prompt_enhancer.services.prompt_enhancement.models import (
    ProjectContext,
    FrameworkDetectionResult,
    RequestHints,
    ComplexityLevel,
    QualityRequirement,
    RequirementPriority,
    ProjectType
)

generator = CacheKeyGenerator()


def _signature(prompt="create a button component", facts=None, frameworks=None, hints=None):
    return generator.build_signature(
        prompt,
        ProjectContext(repo_facts=list(facts if facts is not None else ["Uses React 18"])),
        FrameworkDetectionResult(frameworks if frameworks is not None else ["react"], 0.85, "project_context"),
        hints or RequestHints(file="src/Button.tsx"),
        ComplexityLevel.MEDIUM,
        [QualityRequirement("accessibility", RequirementPriority.HIGH)],
        ProjectType.FRONTEND
    )


def test_rolling_hash_is_32_bit_hex():
    value = rolling_hash("hello world")
    assert re.fullmatch(r"[0-9a-f]{8}", value)
    assert rolling_hash("") == "00000000"


def test_rolling_hash_matches_polynomial_definition():
    expected = 0
    for ch in "abc":
        expected = (expected * 31 + ord(ch)) & 0xFFFFFFFF
    assert rolling_hash("abc") == format(expected, "08x")


def test_normalize_prompt_ignores_case_punctuation_and_spacing():
    assert normalize_prompt("  Create a   Button, please!  ") == "create a button please"


def test_key_is_deterministic():
    prompt = "create a button component"
    first = generator.generate_key(prompt, _signature(prompt))
    second = generator.generate_key(prompt, _signature(prompt))
    assert first == second
    assert re.fullmatch(r"enhance_[0-9a-f]{8}_[0-9a-f]{8}", first)


def test_key_changes_when_repo_fact_added():
    prompt = "create a button component"
    base = generator.generate_key(prompt, _signature(prompt))
    changed = generator.generate_key(prompt, _signature(prompt, facts=["Uses React 18", "Uses Tailwind"]))
    assert base != changed


def test_key_changes_with_frameworks_and_hints():
    prompt = "create a button component"
    base = generator.generate_key(prompt, _signature(prompt))
    assert base != generator.generate_key(prompt, _signature(prompt, frameworks=["vue"]))
    assert base != generator.generate_key(prompt, _signature(prompt, hints=RequestHints(style="minimal")))


def test_prompt_hash_shared_by_equivalent_prompts():
    assert generator.prompt_hash("Create a button!") == generator.prompt_hash("create a   button")
    key = generator.generate_key("Create a button!", _signature())
    assert key.split("_")[1] == generator.prompt_hash("create a button")


def test_signature_is_canonical_json():
    signature = _signature()
    assert '"frameworks":["react"]' in signature
    assert '"project_type":"frontend"' in signature
