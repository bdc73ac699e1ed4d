"""
GitHub service: repository listing and analysis behind the database caches,
batch analysis and profile README deployment.
"""

import json
import logging

import httpx
from pydantic import ValidationError as PydanticValidationError
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from errors import BatchAnalysisError, GitRightError, ValidationError
from repositories import RepositoryCacheRepository
from schemas import Repository, RepositoryAnalysis
from services.analyzer import RepositoryAnalyzer
from services.github_client import GitHubClient

logger = logging.getLogger(__name__)

# Cache rows that fail to load are treated as misses
CACHE_READ_ERRORS = (SQLAlchemyError, json.JSONDecodeError, PydanticValidationError, TypeError)


def split_full_name(full_name: str) -> tuple[str, str]:
    """'owner/repo' -> ('owner', 'repo'). Raises ValidationError otherwise."""
    parts = full_name.split("/")
    if len(parts) != 2 or not parts[0] or not parts[1]:
        raise ValidationError(f"invalid repository name: {full_name} (expected owner/repo)")
    return parts[0], parts[1]


class GitHubService:
    def __init__(self, client: GitHubClient, session: Session):
        self.client = client
        self.analyzer = RepositoryAnalyzer(client)
        self.session = session
        self.cache = RepositoryCacheRepository(session)

    def _rollback(self) -> None:
        try:
            self.session.rollback()
        except SQLAlchemyError as e:
            logger.warning(f"Rollback after cache error failed: {e}")

    async def list_user_repositories(self, user_id: int, token: str, include_private: bool) -> list[Repository]:
        try:
            cached = self.cache.get_list(user_id, include_private)
        except CACHE_READ_ERRORS as e:
            logger.warning(f"Repository list cache read failed for user {user_id}: {e}")
            self._rollback()
            cached = None
        if cached is not None:
            logger.debug(f"Repository list cache hit for user {user_id}")
            return cached

        repos = await self.client.list_repositories(token, include_private)
        if not include_private:
            repos = [repo for repo in repos if not repo.private]

        try:
            self.cache.set_list(user_id, include_private, repos)
        except SQLAlchemyError as e:
            logger.warning(f"Failed to cache repository list for user {user_id}: {e}")
            self._rollback()

        return repos

    async def get_repository(self, token: str, owner: str, repo: str) -> Repository:
        return await self.client.get_repository(token, owner, repo)

    async def validate_repository_access(self, token: str, owner: str, repo: str) -> bool:
        await self.client.get_repository(token, owner, repo)
        return True

    async def analyze_repository(self, token: str, owner: str, repo: str) -> RepositoryAnalysis:
        repository = await self.client.get_repository(token, owner, repo)

        try:
            cached = self.cache.get_analysis(repository.github_id)
        except CACHE_READ_ERRORS as e:
            logger.warning(f"Analysis cache read failed for {owner}/{repo}: {e}")
            self._rollback()
            cached = None
        if cached is not None:
            logger.debug(f"Analysis cache hit for {owner}/{repo}")
            return cached

        analysis = await self.analyzer.analyze_repository(token, owner, repo)

        try:
            self.cache.set_analysis(analysis)
        except SQLAlchemyError as e:
            logger.warning(f"Failed to cache analysis for {owner}/{repo}: {e}")
            self._rollback()

        return analysis

    async def batch_analyze_repositories(
        self, token: str, full_names: list[str]
    ) -> tuple[list[RepositoryAnalysis], BatchAnalysisError | None]:
        """Analyze each owner/repo in order. Failures are collected, not raised."""
        results = []
        errors = []
        for full_name in full_names:
            try:
                owner, repo = split_full_name(full_name)
                results.append(await self.analyze_repository(token, owner, repo))
            except (GitRightError, httpx.HTTPError, SQLAlchemyError) as e:
                logger.warning(f"Batch analysis failed for {full_name}: {e}")
                errors.append(Exception(f"{full_name}: {e}"))

        return results, (BatchAnalysisError(errors) if errors else None)

    def clear_user_cache(self, user_id: int) -> None:
        try:
            self.cache.invalidate_list(user_id)
        except SQLAlchemyError as e:
            logger.warning(f"Failed to clear repository cache for user {user_id}: {e}")
            self._rollback()

    async def deploy_profile_readme(self, token: str, username: str, content: str) -> None:
        sha = await self.client.get_profile_readme_sha(token, username)
        message = "Update profile README via GitRight" if sha else "Create profile README via GitRight"
        await self.client.create_or_update_file(
            token, username, username, "README.md", message, content, sha
        )
        logger.info(f"Profile README deployed for {username}")
