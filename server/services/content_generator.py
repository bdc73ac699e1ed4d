"""
Batched profile writing: one LLM call produces the pitch, every project
summary and the extracted skills.
"""

import json
import logging

from pydantic import ValidationError as PydanticValidationError

from config import GoogleAIConfig
from errors import GenerationError
from schemas import BatchProfileRequest, BatchProfileResponse
from services.gemini import GeminiClient, extract_json

logger = logging.getLogger(__name__)

MAX_DEPENDENCIES_PER_ECOSYSTEM = 5


def build_system_instruction(request: BatchProfileRequest) -> str:
    lines = [
        "You are an expert GitHub Profile Writer creating professional, compelling README profiles.",
        "",
        f"TARGET ROLE: {request.target_role}",
        f"TONE: {request.tone_of_voice}",
    ]
    if request.emphasized_skills:
        lines.append(f"EMPHASIZE SKILLS: {', '.join(request.emphasized_skills)}")

    lines.append("")
    lines.append("=== RESPONSE FORMAT (STRICT JSON) ===")
    lines.append("Return ONLY valid JSON with this EXACT structure (no markdown, no explanations):")
    lines.append("""{
  "profile_pitch": "2-3 compelling paragraphs introducing the developer",
  "project_summaries": [
    {
      "project_name": "exact project name from input",
      "summary": "2-3 sentences highlighting impact and technical sophistication",
      "skills": ["skill1", "skill2", ...]
    }
  ],
  "extracted_skills": ["all unique skills from all projects"],
  "confidence": 0.9
}""")
    lines.append("")
    lines.append("CRITICAL RULES:")
    lines.append("1. Output ONLY the JSON object - no markdown code blocks")
    lines.append("2. Match project_name EXACTLY to input names")
    lines.append("3. Write in FIRST PERSON (I/my) to show ownership")
    lines.append("4. Emphasize quantifiable achievements and technical complexity")
    lines.append("5. Keep summaries concise but impactful (2-3 sentences each)")
    lines.append("6. Extract 10-15 most relevant skills across all projects")
    return "\n".join(lines) + "\n"


def build_user_prompt(request: BatchProfileRequest) -> str:
    lines = ["=== DEVELOPER PROFILE ===", f"Username: {request.username}"]
    if request.bio:
        lines.append(f"Bio: {request.bio}")
    if request.location:
        lines.append(f"Location: {request.location}")
    if request.company:
        lines.append(f"Company: {request.company}")
    lines.append("")
    lines.append(f"=== {len(request.projects)} PROJECTS TO ANALYZE ===")
    lines.append("")

    for i, project in enumerate(request.projects, start=1):
        repo = project.repository
        name = repo.name if repo else ""
        lines.append(f"--- PROJECT {i}: {name} ---")
        if repo and repo.description:
            lines.append(f"Description: {repo.description}")
        lines.append(f"Stars: {repo.stargazers_count if repo else 0} | Forks: {repo.forks_count if repo else 0}")

        if project.languages:
            lines.append(f"Languages: {', '.join(project.languages)}")

        if project.dependencies:
            lines.append("Dependencies:")
            for ecosystem, deps in project.dependencies.items():
                if deps:
                    lines.append(f"  - {ecosystem}: {', '.join(deps[:MAX_DEPENDENCIES_PER_ECOSYSTEM])}")

        if repo and repo.topics:
            lines.append(f"Topics: {', '.join(repo.topics)}")
        lines.append("")

    lines.append("Generate the complete profile response in the specified JSON format.")
    return "\n".join(lines) + "\n"


def parse_batch_response(text: str) -> BatchProfileResponse:
    payload = extract_json(text)
    if not payload:
        logger.error(f"No JSON found in response: {text[:500]}")
        raise GenerationError("invalid response: no JSON content found")

    try:
        response = BatchProfileResponse.model_validate(json.loads(payload))
    except (json.JSONDecodeError, PydanticValidationError) as e:
        logger.error(f"Failed to parse JSON: {e} json={payload[:500]}")
        raise GenerationError(f"invalid response format: {e}")

    if not response.profile_pitch:
        raise GenerationError("missing profile_pitch in response")
    if not response.project_summaries:
        raise GenerationError("missing project_summaries in response")
    return response


class ContentGenerator:
    def __init__(self, config: GoogleAIConfig):
        self.config = config

    def create_client(self, api_key: str) -> GeminiClient:
        return GeminiClient(self.config, api_key)

    async def generate_batched_profile(self, api_key: str, request: BatchProfileRequest) -> BatchProfileResponse:
        # New client per call: the key belongs to the caller
        client = self.create_client(api_key)
        text = await client.generate_structured_content(
            build_system_instruction(request), build_user_prompt(request)
        )
        return parse_batch_response(text)
