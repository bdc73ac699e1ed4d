"""
Configuration for the GitRight API.

All settings come from environment variables (a local .env is loaded first).
Missing required variables are reported together so a misconfigured deploy
shows every problem in one go.
"""

import os
from dataclasses import dataclass, field

from dotenv import load_dotenv

from errors import ConfigError

load_dotenv()


REQUIRED_VARS = (
    "GITHUB_CLIENT_ID",
    "GITHUB_CLIENT_SECRET",
    "SESSION_SECRET",
)


@dataclass
class GitHubConfig:
    client_id: str
    client_secret: str
    redirect_uri: str = "http://localhost:3000/auth/callback"
    scopes: list[str] = field(default_factory=lambda: ["repo", "user:email"])
    base_url: str = "https://github.com"
    api_url: str = "https://api.github.com"


@dataclass
class GoogleAIConfig:
    model: str = "gemini-2.5-flash"
    use_grounding: bool = False
    timeout: float = 300.0  # seconds
    max_retries: int = 2


@dataclass
class CORSConfig:
    allowed_origins: list[str] = field(default_factory=lambda: ["http://localhost:3000"])
    allowed_methods: list[str] = field(default_factory=lambda: ["GET", "POST", "PUT", "DELETE", "OPTIONS"])
    allowed_headers: list[str] = field(default_factory=lambda: ["Content-Type", "Authorization"])


@dataclass
class Settings:
    github: GitHubConfig
    session_secret: str
    database_url: str = "sqlite:///./database.db"
    environment: str = "development"
    host: str = "0.0.0.0"
    port: int = 8080
    log_level: str = "INFO"
    session_max_age: int = 86400  # seconds
    google_ai: GoogleAIConfig = field(default_factory=GoogleAIConfig)
    cors: CORSConfig = field(default_factory=CORSConfig)
    rate_limit_per_minute: int = 60
    cleanup_interval: int = 3600  # seconds

    @property
    def is_production(self) -> bool:
        return self.environment.lower() == "production"


# =============================================================================
# ENV HELPERS
# =============================================================================

def _get_env(key: str, default: str) -> str:
    value = os.getenv(key)
    return value if value else default


def _get_env_int(key: str, default: int) -> int:
    value = os.getenv(key)
    if not value:
        return default
    try:
        return int(value)
    except ValueError:
        return default


def _get_env_float(key: str, default: float) -> float:
    value = os.getenv(key)
    if not value:
        return default
    try:
        return float(value)
    except ValueError:
        return default


def _get_env_bool(key: str, default: bool) -> bool:
    value = os.getenv(key)
    if not value:
        return default
    lowered = value.strip().lower()
    if lowered in ("1", "t", "true", "yes", "on"):
        return True
    if lowered in ("0", "f", "false", "no", "off"):
        return False
    return default


def _get_env_list(key: str, default: str) -> list[str]:
    return [item.strip() for item in _get_env(key, default).split(",") if item.strip()]


# =============================================================================
# LOADER
# =============================================================================

def load_settings() -> Settings:
    """Build Settings from the environment. Raises ConfigError listing every missing variable."""
    missing = [key for key in REQUIRED_VARS if not os.getenv(key)]
    if missing:
        raise ConfigError(
            "configuration errors:\n"
            + "\n".join(f"required environment variable {key} is not set" for key in missing)
        )

    return Settings(
        github=GitHubConfig(
            client_id=os.environ["GITHUB_CLIENT_ID"],
            client_secret=os.environ["GITHUB_CLIENT_SECRET"],
            redirect_uri=_get_env("GITHUB_REDIRECT_URI", "http://localhost:3000/auth/callback"),
            scopes=_get_env_list("GITHUB_OAUTH_SCOPES", "repo,user:email"),
        ),
        session_secret=os.environ["SESSION_SECRET"],
        database_url=_get_env("DATABASE_URL", "sqlite:///./database.db"),
        environment=_get_env("ENVIRONMENT", "development"),
        host=_get_env("HOST", "0.0.0.0"),
        port=_get_env_int("PORT", 8080),
        log_level=_get_env("LOG_LEVEL", "INFO"),
        session_max_age=_get_env_int("SESSION_MAX_AGE", 86400),
        google_ai=GoogleAIConfig(
            model=_get_env("GOOGLE_AI_MODEL", "gemini-2.5-flash"),
            use_grounding=_get_env_bool("GOOGLE_AI_USE_GROUNDING", False),
            timeout=_get_env_float("GOOGLE_AI_TIMEOUT", 300.0),
            max_retries=_get_env_int("GOOGLE_AI_MAX_RETRIES", 2),
        ),
        cors=CORSConfig(
            allowed_origins=_get_env_list("CORS_ALLOWED_ORIGINS", "http://localhost:3000"),
            allowed_methods=_get_env_list("CORS_ALLOWED_METHODS", "GET,POST,PUT,DELETE,OPTIONS"),
            allowed_headers=_get_env_list("CORS_ALLOWED_HEADERS", "Content-Type,Authorization"),
        ),
        rate_limit_per_minute=_get_env_int("RATE_LIMIT_REQUESTS_PER_MINUTE", 60),
        cleanup_interval=_get_env_int("CLEANUP_INTERVAL_SECONDS", 3600),
    )
