"""
Profile generation pipeline:

    validate -> cache lookup -> batched LLM call -> config upsert
             -> badges + Markdown -> cache write

Only the LLM call is non-deterministic; badges and Markdown are pure
functions of the request, the user and the model's prose.
"""

import logging
from typing import Callable

from pydantic import ValidationError as PydanticValidationError
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from errors import ValidationError
from models import User
from readme import build_badges, build_markdown
from repositories import ProfileCacheRepository, ProfileConfigRepository, get_cache_key
from repositories.profile_config_repository import to_config_data
from schemas import (
    BatchProfileRequest,
    ContentGenerationRequest,
    ContentGenerationResponse,
    ProfileConfigData,
    ProjectSummary,
)
from services.content_generator import ContentGenerator
from services.github_service import GitHubService

logger = logging.getLogger(__name__)

API_KEY_REQUIRED = "API key required - get free key: https://aistudio.google.com/app/apikey"

ProgressCallback = Callable[[str, float, str], None]


def _noop_progress(stage: str, progress: float, message: str) -> None:
    pass


def validate_request(request: ContentGenerationRequest) -> None:
    if not request.user_api_key.strip():
        raise ValidationError(API_KEY_REQUIRED)
    if not request.projects:
        raise ValidationError("at least one project required")


class ProfileService:
    def __init__(self, session: Session, content_generator: ContentGenerator, github_service: GitHubService):
        self.session = session
        self.content_generator = content_generator
        self.github_service = github_service
        self.cache = ProfileCacheRepository(session)
        self.configs = ProfileConfigRepository(session)

    def _rollback(self) -> None:
        try:
            self.session.rollback()
        except SQLAlchemyError as e:
            logger.warning(f"Rollback failed: {e}")

    def _cached(self, cache_key: str) -> ContentGenerationResponse | None:
        try:
            return self.cache.get(cache_key)
        except PydanticValidationError as e:
            logger.warning(f"Discarding corrupt cached profile {cache_key}: {e}")
            self.cache.invalidate(cache_key)
        except SQLAlchemyError as e:
            logger.warning(f"Profile cache read failed for {cache_key}: {e}")
            self._rollback()
        return None

    def _save_config(self, user: User, request: ContentGenerationRequest) -> tuple[ProfileConfigData, int | None]:
        """Merge the request's settings into the stored config. Returns the config and its row id."""
        data = ProfileConfigData(
            target_role=request.target_role,
            skills_emphasis=list(request.emphasized_skills),
            tone_of_voice=request.tone_of_voice or "professional",
            contact_prefs=request.contact_prefs,
        )
        try:
            existing = self.configs.get_by_user(user.id)
            if existing is not None:
                stored = to_config_data(existing)
                data = data.model_copy(update={
                    "template_id": stored.template_id,
                    "show_private_repos": stored.show_private_repos,
                })
            row = self.configs.upsert(user.id, data)
        except SQLAlchemyError as e:
            logger.warning(f"Failed to save profile config for {user.username}: {e}")
            self._rollback()
            return data, None
        return data, row.id

    async def generate_profile(
        self,
        request: ContentGenerationRequest,
        user: User,
        progress: ProgressCallback = _noop_progress,
    ) -> ContentGenerationResponse:
        validate_request(request)

        progress("analyzing", 0.1, f"Analyzing {len(request.projects)} projects")
        cache_key = get_cache_key(user.username, request)
        cached = self._cached(cache_key)
        if cached is not None:
            logger.info(f"Profile cache hit for {user.username}")
            progress("generating", 0.4, "Using cached profile content")
            progress("finalizing", 0.95, "Assembling README")
            return cached

        progress("generating", 0.4, "Writing profile content")
        batch = await self.content_generator.generate_batched_profile(
            request.user_api_key,
            BatchProfileRequest(
                username=user.username,
                bio=user.bio or "",
                location=user.location or "",
                company=user.company or "",
                target_role=request.target_role,
                tone_of_voice=request.tone_of_voice,
                emphasized_skills=request.emphasized_skills,
                projects=request.projects,
            ),
        )

        progress("finalizing", 0.95, "Assembling README")
        summaries = [
            ProjectSummary(
                repository=project.repository,
                summary=item.summary,
                tech_stack=item.skills,
            )
            for item, project in zip(batch.project_summaries, request.projects)
        ]

        config, config_id = self._save_config(user, request)
        badges = build_badges(request.projects, batch.extracted_skills, request.emphasized_skills)
        markdown = build_markdown(user, request, batch.profile_pitch, summaries, badges, config)

        response = ContentGenerationResponse(
            markdown=markdown,
            extracted_skills=batch.extracted_skills,
            suggested_badges=badges,
            confidence=batch.confidence,
        )

        try:
            self.cache.set(cache_key, user.id, config_id, response)
        except SQLAlchemyError as e:
            logger.warning(f"Failed to cache profile generation result for {user.username}: {e}")
            self._rollback()

        return response

    async def deploy_profile(self, user: User, token: str, markdown: str) -> None:
        await self.github_service.deploy_profile_readme(token, user.username, markdown)

        try:
            profile = self.cache.find_by_markdown(user.id, markdown)
            if profile is None:
                config = self.configs.get_by_user(user.id)
                profile = self.cache.record(user.id, config.id if config else None, markdown)
            self.cache.mark_deployed(profile)
        except SQLAlchemyError as e:
            # README is already live on GitHub; only the history row is lost
            logger.warning(f"Failed to record deployment for {user.username}: {e}")
            self._rollback()

    def invalidate_user_profiles(self, user_id: int) -> int:
        return self.cache.invalidate_by_user_id(user_id)

    def get_config(self, user_id: int) -> ProfileConfigData | None:
        config = self.configs.get_by_user(user_id)
        return to_config_data(config) if config is not None else None

    def update_config(self, user_id: int, data: ProfileConfigData) -> ProfileConfigData:
        config = to_config_data(self.configs.upsert(user_id, data))
        # Cached generations were built from the old settings
        self.invalidate_user_profiles(user_id)
        return config
