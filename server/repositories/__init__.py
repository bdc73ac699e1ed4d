"""
GitRight data access layer

One repository class per table group, each bound to a SQLAlchemy Session:
- UserRepository: GitHub users
- SessionRepository: OAuth state and revoked JWT ids
- ProjectRepository: user-selected projects
- ProfileConfigRepository: README customization settings
- ProfileCacheRepository: generated profiles / 24h generation cache
- RepositoryCacheRepository: repository list and analysis caches
"""

from .user_repository import UserRepository
from .session_repository import SessionRepository, cleanup_expired
from .project_repository import ProjectRepository
from .profile_config_repository import ProfileConfigRepository
from .profile_cache_repository import ProfileCacheRepository, get_cache_key
from .repository_cache_repository import RepositoryCacheRepository

__all__ = [
    "UserRepository",
    "SessionRepository",
    "cleanup_expired",
    "ProjectRepository",
    "ProfileConfigRepository",
    "ProfileCacheRepository",
    "get_cache_key",
    "RepositoryCacheRepository",
]
