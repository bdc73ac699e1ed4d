"""
Async GitHub REST client.

Each call opens a short-lived httpx.AsyncClient with the caller's OAuth token.
Tests pass an httpx.MockTransport through `transport`.
"""

import base64
import logging
from urllib.parse import parse_qs, urlencode, urlparse

import httpx

from config import GitHubConfig
from errors import GitHubAPIError
from schemas import Repository

logger = logging.getLogger(__name__)

API_VERSION = "2022-11-28"
PER_PAGE = 100


def _error_message(response: httpx.Response) -> str:
    try:
        return response.json().get("message") or response.reason_phrase
    except ValueError:
        return response.text[:200] or response.reason_phrase


def to_repository(data: dict) -> Repository:
    """Map a GitHub REST repository payload to our Repository model."""
    return Repository(
        id=data.get("id", 0),
        github_id=data.get("id", 0),
        name=data.get("name", ""),
        full_name=data.get("full_name", ""),
        description=data.get("description") or "",
        private=bool(data.get("private")),
        fork=bool(data.get("fork")),
        language=data.get("language") or "",
        stargazers_count=data.get("stargazers_count") or 0,
        forks_count=data.get("forks_count") or 0,
        open_issues_count=data.get("open_issues_count") or 0,
        default_branch=data.get("default_branch") or "",
        topics=data.get("topics") or [],
        html_url=data.get("html_url") or "",
        clone_url=data.get("clone_url") or "",
        created_at=data.get("created_at"),
        updated_at=data.get("updated_at"),
        pushed_at=data.get("pushed_at"),
    )


class GitHubClient:
    def __init__(self, config: GitHubConfig, transport: httpx.AsyncBaseTransport | None = None, timeout: float = 30.0):
        self.config = config
        self.transport = transport
        self.timeout = timeout

    def _client(self, token: str | None = None) -> httpx.AsyncClient:
        headers = {
            "Accept": "application/vnd.github+json",
            "X-GitHub-Api-Version": API_VERSION,
            "User-Agent": "GitRight",
        }
        if token:
            headers["Authorization"] = f"Bearer {token}"
        return httpx.AsyncClient(
            base_url=self.config.api_url,
            headers=headers,
            timeout=self.timeout,
            transport=self.transport,
        )

    async def _get(self, token: str, path: str, params: dict | None = None) -> httpx.Response:
        async with self._client(token) as client:
            response = await client.get(path, params=params)
        if response.status_code >= 400:
            raise GitHubAPIError(response.status_code, _error_message(response))
        return response

    # -------------------------------------------------------------------------
    # OAuth
    # -------------------------------------------------------------------------

    def get_authorization_url(self, state: str) -> str:
        query = urlencode({
            "client_id": self.config.client_id,
            "redirect_uri": self.config.redirect_uri,
            "scope": ",".join(self.config.scopes),
            "state": state,
        })
        return f"{self.config.base_url}/login/oauth/authorize?{query}"

    async def exchange_code(self, code: str) -> str:
        """Trade an OAuth code for an access token."""
        async with httpx.AsyncClient(timeout=self.timeout, transport=self.transport) as client:
            response = await client.post(
                f"{self.config.base_url}/login/oauth/access_token",
                data={
                    "client_id": self.config.client_id,
                    "client_secret": self.config.client_secret,
                    "code": code,
                    "redirect_uri": self.config.redirect_uri,
                },
                headers={"Accept": "application/json"},
            )
        if response.status_code >= 400:
            raise GitHubAPIError(response.status_code, _error_message(response))

        payload = response.json()
        token = payload.get("access_token")
        if not token:
            # GitHub reports bad codes with a 200 and an "error" field
            raise GitHubAPIError(response.status_code, payload.get("error_description") or payload.get("error") or "no access token returned")
        return token

    # -------------------------------------------------------------------------
    # Users
    # -------------------------------------------------------------------------

    async def get_user(self, token: str) -> dict:
        return (await self._get(token, "/user")).json()

    async def get_user_emails(self, token: str) -> list[dict]:
        return (await self._get(token, "/user/emails")).json()

    # -------------------------------------------------------------------------
    # Repositories
    # -------------------------------------------------------------------------

    async def list_repositories(self, token: str, include_private: bool) -> list[Repository]:
        """All of the user's repositories, newest updates first, following pagination."""
        params = {
            "per_page": PER_PAGE,
            "sort": "updated",
            "direction": "desc",
            "visibility": "all" if include_private else "public",
        }
        repos = []
        async with self._client(token) as client:
            response = await client.get("/user/repos", params=params)
            while True:
                if response.status_code >= 400:
                    raise GitHubAPIError(response.status_code, _error_message(response))
                repos.extend(to_repository(item) for item in response.json())

                next_url = response.links.get("next", {}).get("url")
                if not next_url:
                    break
                response = await client.get(next_url)

        logger.debug(f"Fetched {len(repos)} repositories")
        return repos

    async def get_repository(self, token: str, owner: str, repo: str) -> Repository:
        return to_repository((await self._get(token, f"/repos/{owner}/{repo}")).json())

    async def get_languages(self, token: str, owner: str, repo: str) -> dict[str, int]:
        return (await self._get(token, f"/repos/{owner}/{repo}/languages")).json()

    async def list_contents(self, token: str, owner: str, repo: str, path: str = "") -> list[dict]:
        data = (await self._get(token, f"/repos/{owner}/{repo}/contents/{path}")).json()
        # A file path returns a single object instead of a listing
        return data if isinstance(data, list) else [data]

    async def get_file_content(self, token: str, owner: str, repo: str, path: str) -> str:
        data = (await self._get(token, f"/repos/{owner}/{repo}/contents/{path}")).json()
        if isinstance(data, list) or data.get("type") != "file":
            raise GitHubAPIError(400, f"{path} is not a file")
        raw = data.get("content") or ""
        if data.get("encoding") == "base64":
            return base64.b64decode(raw).decode("utf-8", errors="replace")
        return raw

    async def get_commit_count(self, token: str, owner: str, repo: str) -> int:
        response = await self._get(token, f"/repos/{owner}/{repo}/commits", params={"per_page": 1})
        last_url = response.links.get("last", {}).get("url")
        if last_url:
            page = parse_qs(urlparse(last_url).query).get("page", ["0"])[0]
            if page.isdigit() and int(page) > 0:
                return int(page)
        return len(response.json())

    async def get_contributor_count(self, token: str, owner: str, repo: str) -> int:
        response = await self._get(token, f"/repos/{owner}/{repo}/contributors", params={"per_page": PER_PAGE})
        if response.status_code == 204:
            return 0
        return len(response.json())

    # -------------------------------------------------------------------------
    # Profile README
    # -------------------------------------------------------------------------

    async def get_profile_readme_sha(self, token: str, username: str) -> str:
        """SHA of <username>/<username>/README.md, or "" when it does not exist."""
        try:
            data = (await self._get(token, f"/repos/{username}/{username}/contents/README.md")).json()
        except GitHubAPIError as e:
            if e.status_code == 404:
                return ""
            raise
        return data.get("sha") or ""

    async def create_or_update_file(
        self, token: str, owner: str, repo: str, path: str, message: str, content: str, sha: str = ""
    ) -> None:
        body = {
            "message": message,
            "content": base64.b64encode(content.encode("utf-8")).decode("ascii"),
            "branch": "main",
        }
        if sha:
            body["sha"] = sha

        async with self._client(token) as client:
            response = await client.put(f"/repos/{owner}/{repo}/contents/{path}", json=body)
        if response.status_code not in (200, 201):
            raise GitHubAPIError(response.status_code, _error_message(response))
