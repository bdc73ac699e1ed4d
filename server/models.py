"""
SQLAlchemy models for the GitRight profile generator.
"""

from datetime import datetime, timezone

from sqlalchemy import (
    BigInteger,
    Boolean,
    Column,
    DateTime,
    ForeignKey,
    Integer,
    String,
    Text,
    UniqueConstraint,
)
from sqlalchemy.orm import declarative_base, relationship

Base = declarative_base()


def utcnow() -> datetime:
    """Naive UTC timestamp; all DateTime columns store naive UTC."""
    return datetime.now(timezone.utc).replace(tzinfo=None)


class User(Base):
    """Authenticated GitHub user, upserted on every OAuth callback"""
    __tablename__ = "users"

    id = Column(Integer, primary_key=True, autoincrement=True)
    github_id = Column(BigInteger, nullable=False, unique=True, index=True)
    username = Column(String(255), nullable=False, index=True)
    email = Column(String(255), default="")
    avatar_url = Column(Text, default="")
    bio = Column(Text, default="")
    location = Column(String(255), default="")
    company = Column(String(255), default="")
    blog = Column(String(500), default="")
    access_token = Column(Text, nullable=False)
    refresh_token = Column(Text, default="")
    token_expires_at = Column(DateTime)
    created_at = Column(DateTime, default=utcnow, nullable=False)
    updated_at = Column(DateTime, default=utcnow, onupdate=utcnow, nullable=False)
    last_login_at = Column(DateTime, default=utcnow, nullable=False)

    projects = relationship("Project", back_populates="user", cascade="all, delete-orphan")
    profile_config = relationship("ProfileConfig", back_populates="user", uselist=False, cascade="all, delete-orphan")

    def __repr__(self):
        return f"<User(id={self.id}, username='{self.username}')>"


class Project(Base):
    """A repository the user selected for their profile"""
    __tablename__ = "projects"
    __table_args__ = (UniqueConstraint("user_id", "github_id", name="uq_projects_user_github"),)

    id = Column(Integer, primary_key=True, autoincrement=True)
    user_id = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    github_id = Column(BigInteger, nullable=False, index=True)  # GitHub repo id, not a FK
    full_name = Column(String(500), nullable=False)  # owner/repo
    priority = Column(Integer, nullable=False, default=0)
    focus_tag = Column(String(50))  # "best_performance", "team_project", "personal_favorite"
    custom_summary = Column(Text, default="")
    generated_summary = Column(Text, default="")
    include_in_profile = Column(Boolean, default=True, nullable=False)
    created_at = Column(DateTime, default=utcnow, nullable=False)
    updated_at = Column(DateTime, default=utcnow, onupdate=utcnow, nullable=False)

    user = relationship("User", back_populates="projects")

    def __repr__(self):
        return f"<Project(id={self.id}, full_name='{self.full_name}', priority={self.priority})>"


class ProfileConfig(Base):
    """Per-user README customization settings"""
    __tablename__ = "profile_configs"

    id = Column(Integer, primary_key=True, autoincrement=True)
    user_id = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, unique=True)
    target_role = Column(String(255), default="")
    skills_emphasis = Column(Text, nullable=False, default="[]")  # JSON: list of strings
    tone_of_voice = Column(String(50), default="professional")  # "professional", "friendly", "technical"
    template_id = Column(String(100), default="hiring_manager_scan")
    contact_prefs = Column(Text, nullable=False, default="{}")  # JSON: ContactPreferences
    show_private_repos = Column(Boolean, default=False, nullable=False)
    created_at = Column(DateTime, default=utcnow, nullable=False)
    updated_at = Column(DateTime, default=utcnow, onupdate=utcnow, nullable=False)

    user = relationship("User", back_populates="profile_config")

    def __repr__(self):
        return f"<ProfileConfig(id={self.id}, user_id={self.user_id}, role='{self.target_role}')>"


class GeneratedProfile(Base):
    """Generated README, doubling as the 24h profile generation cache"""
    __tablename__ = "generated_profiles"

    id = Column(Integer, primary_key=True, autoincrement=True)
    user_id = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    config_id = Column(Integer, ForeignKey("profile_configs.id", ondelete="SET NULL"))
    content = Column(Text, nullable=False)  # JSON: ContentGenerationResponse
    markdown_preview = Column(Text, nullable=False)
    deployed = Column(Boolean, default=False, nullable=False)
    deployed_at = Column(DateTime)
    version = Column(Integer, nullable=False, default=1)
    cache_key = Column(String(500), unique=True)
    expires_at = Column(DateTime, index=True)
    cache_hit_count = Column(Integer, nullable=False, default=0)
    last_accessed_at = Column(DateTime, default=utcnow)
    created_at = Column(DateTime, default=utcnow, nullable=False)

    def __repr__(self):
        return f"<GeneratedProfile(id={self.id}, user_id={self.user_id}, deployed={self.deployed})>"


class SessionState(Base):
    """OAuth state and revoked JWT ids, keyed 'oauth_state:<state>' / 'revoked:<jti>'"""
    __tablename__ = "sessions"

    id = Column(String(255), primary_key=True)
    user_id = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"))
    state_type = Column(String(50), nullable=False, default="oauth_state")  # "oauth_state", "revoked_token"
    state_value = Column(Text)
    created_at = Column(DateTime, default=utcnow, nullable=False)
    expires_at = Column(DateTime, nullable=False, index=True)

    def __repr__(self):
        return f"<SessionState(id='{self.id}', type='{self.state_type}')>"


class RepositoryListCache(Base):
    """Cached repository list per (user, include_private), 5 minute TTL"""
    __tablename__ = "repository_list_cache"
    __table_args__ = (UniqueConstraint("user_id", "include_private", name="uq_repo_list_user_private"),)

    id = Column(Integer, primary_key=True, autoincrement=True)
    user_id = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False)
    include_private = Column(Boolean, nullable=False)
    repositories = Column(Text, nullable=False)  # JSON: list of Repository
    cached_at = Column(DateTime, default=utcnow, nullable=False)
    expires_at = Column(DateTime, nullable=False, index=True)


class RepositoryAnalysisCache(Base):
    """Cached repository analysis keyed by GitHub repo id, 7 day TTL"""
    __tablename__ = "repository_analysis_cache"

    id = Column(Integer, primary_key=True, autoincrement=True)
    github_id = Column(BigInteger, nullable=False, unique=True)
    full_name = Column(String(500), nullable=False, index=True)
    repository = Column(Text, nullable=False, default="{}")  # JSON: Repository
    languages = Column(Text, nullable=False, default="{}")  # JSON: language -> bytes
    dependencies = Column(Text, nullable=False, default="{}")  # JSON: ecosystem -> names
    key_files = Column(Text, nullable=False, default="{}")  # JSON: path -> content
    files = Column(Text, nullable=False, default="[]")  # JSON: list of paths
    commit_count = Column(Integer, default=0)
    contributor_count = Column(Integer, default=0)
    analyzed_at = Column(DateTime, default=utcnow, nullable=False)
    expires_at = Column(DateTime, nullable=False, index=True)
