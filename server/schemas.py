"""
GitRight API Schema Definitions

Pydantic models defining the API contract. Request models default their
fields so business validation (and its error messages) lives in the services.
"""

from datetime import datetime
from typing import Literal

from pydantic import BaseModel, ConfigDict, Field


FocusTag = Literal["best_performance", "team_project", "personal_favorite"]


# =============================================================================
# USERS
# =============================================================================

class UserOut(BaseModel):
    """Public view of a user. OAuth tokens are never serialized."""
    model_config = ConfigDict(from_attributes=True)

    id: int
    github_id: int
    username: str
    email: str | None = ""
    avatar_url: str | None = ""
    bio: str | None = ""
    location: str | None = ""
    company: str | None = ""
    blog: str | None = ""
    created_at: datetime | None = None
    updated_at: datetime | None = None
    last_login_at: datetime | None = None


# =============================================================================
# REPOSITORIES
# =============================================================================

class Repository(BaseModel):
    """GitHub repository metadata"""
    id: int = 0
    github_id: int = 0
    name: str
    full_name: str = ""
    description: str | None = ""
    private: bool = False
    fork: bool = False
    language: str | None = ""
    stargazers_count: int = 0
    forks_count: int = 0
    open_issues_count: int = 0
    default_branch: str | None = ""
    topics: list[str] = Field(default_factory=list)
    html_url: str = ""
    clone_url: str = ""
    created_at: datetime | None = None
    updated_at: datetime | None = None
    pushed_at: datetime | None = None


class RepositoryAnalysis(BaseModel):
    """Analyzed repository: languages, key files and dependencies"""
    repository: Repository | None = None
    languages: dict[str, int] = Field(default_factory=dict, description="Language -> bytes mapping")
    files: list[str] = Field(default_factory=list)
    dependencies: dict[str, list[str]] = Field(default_factory=dict, description="Ecosystem -> dependency names")
    key_files: dict[str, str] = Field(default_factory=dict, description="Path -> file content")
    commit_count: int = 0
    contributor_count: int = 0


class BatchAnalyzeRequest(BaseModel):
    repositories: list[str] = Field(default_factory=list, description="owner/repo names")


# =============================================================================
# PROFILE GENERATION
# =============================================================================

class ContactPreferences(BaseModel):
    linkedin: str = ""
    personal_website: str = ""
    email: str = ""
    twitter: str = ""
    preferred_order: list[str] = Field(default_factory=list)


class ContentGenerationRequest(BaseModel):
    target_role: str = ""
    emphasized_skills: list[str] = Field(default_factory=list)
    tone_of_voice: str = ""
    contact_prefs: ContactPreferences = Field(default_factory=ContactPreferences)
    projects: list[RepositoryAnalysis] = Field(default_factory=list)
    user_api_key: str = Field("", description="Caller's Gemini API key (BYOK)")


class Badge(BaseModel):
    """Technology badge rendered through shields.io"""
    name: str
    url: str = ""
    color: str


class ContentGenerationResponse(BaseModel):
    markdown: str
    extracted_skills: list[str] = Field(default_factory=list)
    suggested_badges: list[Badge] = Field(default_factory=list)
    confidence: float = 0.0


class ProjectSummary(BaseModel):
    """Project details combined with generated content"""
    repository: Repository | None = None
    summary: str = ""
    tech_stack: list[str] = Field(default_factory=list)


class ProfileConfigData(BaseModel):
    """User's profile customization settings"""
    model_config = ConfigDict(from_attributes=True)

    target_role: str = ""
    skills_emphasis: list[str] = Field(default_factory=list)
    tone_of_voice: str = "professional"
    template_id: str = "hiring_manager_scan"
    contact_prefs: ContactPreferences = Field(default_factory=ContactPreferences)
    show_private_repos: bool = False


class ProgressUpdate(BaseModel):
    """Progress message streamed over the generation WebSocket"""
    stage: str
    progress: float = 0.0
    message: str = ""
    error: str | None = None


# =============================================================================
# PROJECTS
# =============================================================================

class ProjectCreate(BaseModel):
    github_id: int
    full_name: str
    priority: int = 0
    focus_tag: FocusTag | None = None
    custom_summary: str = ""
    include_in_profile: bool = True


class ProjectUpdate(BaseModel):
    priority: int | None = None
    focus_tag: FocusTag | None = None
    custom_summary: str | None = None
    generated_summary: str | None = None
    include_in_profile: bool | None = None


class ProjectOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    user_id: int
    github_id: int
    full_name: str
    priority: int
    focus_tag: str | None = None
    custom_summary: str | None = ""
    generated_summary: str | None = ""
    include_in_profile: bool
    created_at: datetime | None = None
    updated_at: datetime | None = None


# =============================================================================
# LLM BATCH GENERATION
# =============================================================================

class BatchProfileRequest(BaseModel):
    """Everything the model needs to write a profile in one call"""
    username: str
    bio: str = ""
    location: str = ""
    company: str = ""
    target_role: str = ""
    tone_of_voice: str = ""
    emphasized_skills: list[str] = Field(default_factory=list)
    projects: list[RepositoryAnalysis] = Field(default_factory=list)


class ProjectSummaryData(BaseModel):
    project_name: str = ""
    summary: str = ""
    skills: list[str] = Field(default_factory=list)


class BatchProfileResponse(BaseModel):
    profile_pitch: str = ""
    project_summaries: list[ProjectSummaryData] = Field(default_factory=list)
    extracted_skills: list[str] = Field(default_factory=list)
    confidence: float = 0.0
