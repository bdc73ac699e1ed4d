"""
Generated profile storage and the 24h generation cache.

A cached generation is a generated_profiles row with a cache_key and expires_at.
Deployed rows are never invalidated so deployment history survives.
"""

import hashlib
import logging
from datetime import timedelta

from sqlalchemy.orm import Session

from models import GeneratedProfile, utcnow
from schemas import ContentGenerationRequest, ContentGenerationResponse

logger = logging.getLogger(__name__)

PROFILE_CACHE_TTL = timedelta(hours=24)


def get_cache_key(username: str, request: ContentGenerationRequest) -> str:
    """
    profile:v3:<username>:<role>:<tone>:<project count>:<digest>

    The digest covers the analyzed projects' full names in request order, so
    two requests with the same number of different projects do not collide.
    """
    names = [
        (project.repository.full_name if project.repository else "")
        for project in request.projects
    ]
    digest = hashlib.sha256("\n".join(names).encode("utf-8")).hexdigest()[:16]
    return (
        f"profile:v3:{username}:{request.target_role}:{request.tone_of_voice}"
        f":{len(request.projects)}:{digest}"
    )


class ProfileCacheRepository:
    def __init__(self, session: Session):
        self.session = session

    def get(self, cache_key: str) -> ContentGenerationResponse | None:
        """Return a live cache entry, bumping its hit count, or None."""
        row = (
            self.session.query(GeneratedProfile)
            .filter(
                GeneratedProfile.cache_key == cache_key,
                GeneratedProfile.expires_at > utcnow(),
            )
            .first()
        )
        if row is None:
            return None

        row.cache_hit_count = (row.cache_hit_count or 0) + 1
        row.last_accessed_at = utcnow()
        self.session.commit()
        return ContentGenerationResponse.model_validate_json(row.content)

    def set(
        self,
        cache_key: str,
        user_id: int,
        config_id: int | None,
        response: ContentGenerationResponse,
    ) -> GeneratedProfile:
        now = utcnow()
        row = (
            self.session.query(GeneratedProfile)
            .filter(GeneratedProfile.cache_key == cache_key)
            .first()
        )
        if row is None:
            row = GeneratedProfile(cache_key=cache_key, user_id=user_id, version=1)
            self.session.add(row)
        else:
            row.version = (row.version or 1) + 1

        row.config_id = config_id
        row.content = response.model_dump_json()
        row.markdown_preview = response.markdown
        row.expires_at = now + PROFILE_CACHE_TTL
        row.last_accessed_at = now
        row.cache_hit_count = 0
        self.session.commit()
        self.session.refresh(row)
        return row

    def invalidate(self, cache_key: str) -> None:
        self.session.query(GeneratedProfile).filter(
            GeneratedProfile.cache_key == cache_key,
            GeneratedProfile.deployed.is_(False),
        ).delete(synchronize_session=False)
        self.session.commit()

    def invalidate_by_user_id(self, user_id: int) -> int:
        deleted = (
            self.session.query(GeneratedProfile)
            .filter(
                GeneratedProfile.user_id == user_id,
                GeneratedProfile.cache_key.isnot(None),
                GeneratedProfile.deployed.is_(False),
            )
            .delete(synchronize_session=False)
        )
        self.session.commit()
        logger.info(f"Invalidated {deleted} cached profiles for user {user_id}")
        return deleted

    def find_by_markdown(self, user_id: int, markdown: str) -> GeneratedProfile | None:
        """Most recent profile of this user that rendered exactly this README."""
        return (
            self.session.query(GeneratedProfile)
            .filter(
                GeneratedProfile.user_id == user_id,
                GeneratedProfile.markdown_preview == markdown,
            )
            .order_by(GeneratedProfile.id.desc())
            .first()
        )

    def mark_deployed(self, profile: GeneratedProfile) -> GeneratedProfile:
        profile.deployed = True
        profile.deployed_at = utcnow()
        self.session.commit()
        self.session.refresh(profile)
        return profile

    def record(self, user_id: int, config_id: int | None, markdown: str) -> GeneratedProfile:
        """Store a deployed README that did not come out of the cache."""
        response = ContentGenerationResponse(markdown=markdown)
        row = GeneratedProfile(
            user_id=user_id,
            config_id=config_id,
            content=response.model_dump_json(),
            markdown_preview=markdown,
        )
        self.session.add(row)
        self.session.commit()
        self.session.refresh(row)
        return row
