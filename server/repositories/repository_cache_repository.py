import json
from datetime import timedelta

from sqlalchemy.orm import Session

from models import RepositoryAnalysisCache, RepositoryListCache, utcnow
from schemas import Repository, RepositoryAnalysis

REPOSITORY_LIST_TTL = timedelta(minutes=5)
REPOSITORY_ANALYSIS_TTL = timedelta(days=7)


class RepositoryCacheRepository:
    def __init__(self, session: Session):
        self.session = session

    # -------------------------------------------------------------------------
    # Repository list, 5 minute TTL
    # -------------------------------------------------------------------------

    def get_list(self, user_id: int, include_private: bool) -> list[Repository] | None:
        row = (
            self.session.query(RepositoryListCache)
            .filter(
                RepositoryListCache.user_id == user_id,
                RepositoryListCache.include_private == include_private,
                RepositoryListCache.expires_at > utcnow(),
            )
            .first()
        )
        if row is None:
            return None
        return [Repository.model_validate(item) for item in json.loads(row.repositories)]

    def set_list(self, user_id: int, include_private: bool, repos: list[Repository]) -> None:
        now = utcnow()
        row = (
            self.session.query(RepositoryListCache)
            .filter(
                RepositoryListCache.user_id == user_id,
                RepositoryListCache.include_private == include_private,
            )
            .first()
        )
        if row is None:
            row = RepositoryListCache(user_id=user_id, include_private=include_private)
            self.session.add(row)
        row.repositories = json.dumps([repo.model_dump(mode="json") for repo in repos])
        row.cached_at = now
        row.expires_at = now + REPOSITORY_LIST_TTL
        self.session.commit()

    def invalidate_list(self, user_id: int) -> None:
        self.session.query(RepositoryListCache).filter(
            RepositoryListCache.user_id == user_id
        ).delete(synchronize_session=False)
        self.session.commit()

    # -------------------------------------------------------------------------
    # Repository analysis, 7 day TTL
    # -------------------------------------------------------------------------

    def get_analysis(self, github_id: int) -> RepositoryAnalysis | None:
        row = (
            self.session.query(RepositoryAnalysisCache)
            .filter(
                RepositoryAnalysisCache.github_id == github_id,
                RepositoryAnalysisCache.expires_at > utcnow(),
            )
            .first()
        )
        if row is None:
            return None
        return RepositoryAnalysis(
            repository=Repository.model_validate(json.loads(row.repository)),
            languages=json.loads(row.languages),
            dependencies=json.loads(row.dependencies),
            key_files=json.loads(row.key_files),
            files=json.loads(row.files),
            commit_count=row.commit_count or 0,
            contributor_count=row.contributor_count or 0,
        )

    def set_analysis(self, analysis: RepositoryAnalysis) -> None:
        repo = analysis.repository
        now = utcnow()
        row = (
            self.session.query(RepositoryAnalysisCache)
            .filter(RepositoryAnalysisCache.github_id == repo.github_id)
            .first()
        )
        if row is None:
            row = RepositoryAnalysisCache(github_id=repo.github_id)
            self.session.add(row)
        row.full_name = repo.full_name
        row.repository = repo.model_dump_json()
        row.languages = json.dumps(analysis.languages)
        row.dependencies = json.dumps(analysis.dependencies)
        row.key_files = json.dumps(analysis.key_files)
        row.files = json.dumps(analysis.files)
        row.commit_count = analysis.commit_count
        row.contributor_count = analysis.contributor_count
        row.analyzed_at = now
        row.expires_at = now + REPOSITORY_ANALYSIS_TTL
        self.session.commit()
