"""Domain exceptions shared by services and routers."""


class GitRightError(Exception):
    """Base class for all application errors."""


class ConfigError(GitRightError):
    """Missing or invalid configuration."""


class AuthError(GitRightError):
    """Authentication or authorization failure (maps to 401)."""


class ValidationError(GitRightError):
    """Request failed business validation (maps to 400)."""


class NotFoundError(GitRightError):
    """Requested record does not exist (maps to 404)."""


class UpstreamError(GitRightError):
    """An external dependency (GitHub, Gemini) failed (maps to 500)."""


class GitHubAPIError(UpstreamError):
    def __init__(self, status_code: int, message: str):
        self.status_code = status_code
        self.message = message
        super().__init__(f"GitHub API error {status_code}: {message}")


class GenerationError(UpstreamError):
    """The LLM call failed or returned unusable content."""


class BatchAnalysisError(GitRightError):
    """Several independent failures reported together, one per line."""

    def __init__(self, errors: list[Exception]):
        self.errors = list(errors)
        super().__init__("\n".join(str(e) for e in self.errors))
