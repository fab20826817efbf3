import pytest

from prompt_enhancer.services.prompt_enhancement.interfaces import (
    IProjectAnalyzer,
    IFrameworkDetector,
    IDocumentationSource,
    IAIEnhancementClient,
    ITaskBreakdownService,
    ICacheStore
)
from prompt_enhancer.services.prompt_enhancement.models import (
    AIEnhancementResult,
    QualityScores,
    ConfidenceScores,
    Improvement,
    CodeSnippet
)
from prompt_enhancer.services.prompt_enhancement.exceptions import MandatoryDependencyError


class FakeProjectAnalyzer(IProjectAnalyzer):
    def __init__(self, facts=None, snippets=None, fail_facts=False, fail_snippets=False, mandatory=False):
        self.facts = list(facts or [])
        self.snippets = list(snippets or [])
        self.fail_facts = fail_facts
        self.fail_snippets = fail_snippets
        self.mandatory = mandatory

    async def analyze_project(self):
        if self.mandatory:
            raise MandatoryDependencyError("project root is not readable")
        if self.fail_facts:
            raise RuntimeError("fact scan failed")
        return list(self.facts)

    async def find_relevant_code_snippets(self, prompt, file=None):
        if self.fail_snippets:
            raise RuntimeError("snippet search failed")
        return list(self.snippets)


class FailingFrameworkDetector(IFrameworkDetector):
    async def detect(self, prompt, project_context, framework_hint=None):
        raise RuntimeError("detector crashed")


class FakeDocumentationSource(IDocumentationSource):
    def __init__(self, docs=None, fail_fetch=False):
        self.docs = docs or {
            "/facebook/react": "# Components\nUse function components with hooks.\n\n"
                               "# Buttons\nA button component should accept an onClick handler."
        }
        self.fail_fetch = fail_fetch
        self.fetch_calls = []

    async def resolve(self, library_name):
        return [library_id for library_id in self.docs if library_name.lower() in library_id]

    async def fetch(self, library_id, topic, token_budget):
        self.fetch_calls.append((library_id, topic, token_budget))
        if self.fail_fetch:
            raise ConnectionError("documentation service unreachable")
        return self.docs[library_id]


class FakeAIClient(IAIEnhancementClient):
    def __init__(self, error=None, enhanced_prompt="Refined: build an accessible button component", cost=0.002):
        self.error = error
        self.enhanced_prompt = enhanced_prompt
        self.cost = cost
        self.calls = []

    async def enhance(self, prompt, context, strategy):
        self.calls.append((prompt, context, strategy))
        if self.error is not None:
            raise self.error
        return AIEnhancementResult(
            enhanced_prompt=self.enhanced_prompt,
            quality=QualityScores(0.8, 0.7, 0.9, 0.6, 0.8, overall=0.76),
            confidence=ConfidenceScores(overall=0.85, context_relevance=0.8),
            improvements=[Improvement("clarity", "Named the component", "button", "Button component")],
            recommendations=["Add tests"],
            cost=self.cost
        )


class FakeTaskBreakdownService(ITaskBreakdownService):
    def __init__(self, result=None, error=None):
        self.result = result if result is not None else {
            "main_tasks": [
                {"title": "Create Button component", "estimated_hours": 2},
                {"title": "Add styles", "description": "Tailwind classes", "priority": "low"},
            ],
            "subtasks": [{"title": "Props interface"}],
            "dependencies": [],
        }
        self.error = error

    async def breakdown(self, prompt, project_id):
        if self.error is not None:
            raise self.error
        return self.result


class FailingCacheStore(ICacheStore):
    async def get(self, key):
        raise ConnectionError("cache offline")

    async def put(self, entry):
        raise ConnectionError("cache offline")


class FixedClock:
    def __init__(self, now=1_700_000_000.0):
        self.now = now

    def __call__(self):
        return self.now

    def advance(self, seconds):
        self.now += seconds


REACT_SNIPPET = CodeSnippet(
    file="src/components/Header.tsx",
    description="Existing header component",
    content="export function Header() { return <header className='p-4' /> }"
)


@pytest.fixture
def react_analyzer():
    return FakeProjectAnalyzer(
        facts=["Uses React 18 with TypeScript", "Tests run with jest"],
        snippets=[REACT_SNIPPET]
    )


@pytest.fixture
def clock():
    return FixedClock()
