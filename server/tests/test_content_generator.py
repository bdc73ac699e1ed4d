import json
from types import SimpleNamespace

import pytest

from config import GoogleAIConfig
from errors import GenerationError
from schemas import BatchProfileRequest, Repository, RepositoryAnalysis
from services.content_generator import (
    ContentGenerator,
    build_system_instruction,
    build_user_prompt,
    parse_batch_response,
)
from services.gemini import JSON_OUTPUT_RULES, GeminiClient, extract_json

VALID_REPLY = {
    "profile_pitch": "I build things.",
    "project_summaries": [{"project_name": "alpha", "summary": "Fast.", "skills": ["Go"]}],
    "extracted_skills": ["Go", "Docker"],
    "confidence": 0.8,
}


def _request(**extra):
    data = {
        "username": "octocat",
        "target_role": "Backend Engineer",
        "tone_of_voice": "casual",
        "projects": [
            RepositoryAnalysis(
                repository=Repository(name="alpha", description="CLI tool", stargazers_count=7, topics=["cli"]),
                languages={"Go": 100},
                dependencies={"pip": ["a", "b", "c", "d", "e", "f", "g"], "npm": []},
            )
        ],
    }
    data.update(extra)
    return BatchProfileRequest(**data)


# =============================================================================
# JSON EXTRACTION
# =============================================================================

def test_extract_json_from_fenced_block():
    text = 'Here you go:\n```json\n{"a": 1}\n```\nThanks'
    assert extract_json(text) == '{"a": 1}'


def test_extract_json_from_plain_fence():
    assert extract_json('```\n{"a": {"b": 2}}\n```') == '{"a": {"b": 2}}'


def test_extract_json_from_surrounding_prose():
    assert extract_json('Sure! {"a": 1, "b": {"c": 2}} hope it helps') == '{"a": 1, "b": {"c": 2}}'


def test_extract_json_bare_object():
    assert extract_json("  {}  ") == "{}"


def test_extract_json_nothing_found():
    assert extract_json("I cannot help with that.") == ""


# =============================================================================
# RESPONSE PARSING
# =============================================================================

def test_parse_valid_response():
    response = parse_batch_response("```json\n" + json.dumps(VALID_REPLY) + "\n```")
    assert response.profile_pitch == "I build things."
    assert response.project_summaries[0].skills == ["Go"]
    assert response.confidence == 0.8


@pytest.mark.parametrize(
    "text, message",
    [
        ("no json here", "no JSON content found"),
        ('{"profile_pitch": [}', "invalid response format"),
        ('{"profile_pitch": "", "project_summaries": []}', "missing profile_pitch"),
        ('{"profile_pitch": "Hi", "project_summaries": []}', "missing project_summaries"),
    ],
)
def test_parse_rejects_bad_responses(text, message):
    with pytest.raises(GenerationError, match=message):
        parse_batch_response(text)


# =============================================================================
# PROMPTS
# =============================================================================

def test_system_instruction_mentions_role_tone_and_skills():
    instruction = build_system_instruction(_request(emphasized_skills=["Go", "gRPC"]))
    assert "TARGET ROLE: Backend Engineer" in instruction
    assert "TONE: casual" in instruction
    assert "EMPHASIZE SKILLS: Go, gRPC" in instruction
    assert '"profile_pitch"' in instruction


def test_system_instruction_without_skills():
    assert "EMPHASIZE SKILLS" not in build_system_instruction(_request())


def test_user_prompt_lists_projects():
    prompt = build_user_prompt(_request(bio="Builds things", company=""))
    assert "Username: octocat" in prompt
    assert "Bio: Builds things" in prompt
    assert "Company:" not in prompt
    assert "=== 1 PROJECTS TO ANALYZE ===" in prompt
    assert "--- PROJECT 1: alpha ---" in prompt
    assert "Description: CLI tool" in prompt
    assert "Stars: 7 | Forks: 0" in prompt
    assert "Topics: cli" in prompt


def test_user_prompt_caps_dependencies_per_ecosystem():
    prompt = build_user_prompt(_request())
    assert "  - pip: a, b, c, d, e\n" in prompt
    assert "npm" not in prompt


# =============================================================================
# GENERATOR
# =============================================================================

class FakeGemini:
    def __init__(self, reply):
        self.reply = reply
        self.prompts = []

    async def generate_structured_content(self, system_instruction, prompt):
        self.prompts.append((system_instruction, prompt))
        return self.reply


async def test_generator_uses_callers_key(monkeypatch):
    generator = ContentGenerator(GoogleAIConfig())
    fake = FakeGemini(json.dumps(VALID_REPLY))
    keys = []

    def create_client(api_key):
        keys.append(api_key)
        return fake

    monkeypatch.setattr(generator, "create_client", create_client)
    response = await generator.generate_batched_profile("user-key", _request())

    assert keys == ["user-key"]
    assert response.extracted_skills == ["Go", "Docker"]
    assert "--- PROJECT 1: alpha ---" in fake.prompts[0][1]


class FakeModels:
    def __init__(self, outcomes):
        self.outcomes = list(outcomes)
        self.calls = []

    async def generate_content(self, model, contents, config):
        self.calls.append((model, contents, config))
        outcome = self.outcomes.pop(0)
        if isinstance(outcome, Exception):
            raise outcome
        return SimpleNamespace(text=outcome)


def _gemini(outcomes, **config):
    client = GeminiClient(GoogleAIConfig(**config), api_key="test-key")
    models = FakeModels(outcomes)
    client.client = SimpleNamespace(aio=SimpleNamespace(models=models))
    return client, models


async def test_gemini_retries_then_succeeds():
    client, models = _gemini([RuntimeError("503"), "hello"], max_retries=2)
    assert await client.generate_content("system", "prompt") == "hello"
    assert len(models.calls) == 2


async def test_gemini_gives_up_after_retries():
    client, models = _gemini([RuntimeError("quota exceeded")], max_retries=1)
    with pytest.raises(GenerationError, match="quota exceeded"):
        await client.generate_content("system", "prompt")


async def test_gemini_empty_reply_is_an_error():
    client, _ = _gemini([""], max_retries=1)
    with pytest.raises(GenerationError, match="empty response"):
        await client.generate_content("system", "prompt")


async def test_structured_content_appends_json_rules():
    client, models = _gemini(["{}"], model="gemini-test", max_retries=1)
    await client.generate_structured_content("system", "prompt")

    model, contents, config = models.calls[0]
    assert model == "gemini-test"
    assert contents == "prompt"
    assert config.system_instruction == "system" + JSON_OUTPUT_RULES
    assert config.tools is None


def test_grounding_adds_search_tool():
    client, _ = _gemini([], use_grounding=True)
    config = client._generation_config("system")
    assert len(config.tools) == 1
    assert config.tools[0].google_search is not None
