"""
Shared fixtures: an app on in-memory SQLite, a fake GitHub API served through
httpx.MockTransport and a fake content generator in place of Gemini.
"""

import base64
import json
import os
from datetime import timedelta

import httpx
import pytest
from fastapi.testclient import TestClient

os.environ.setdefault("GITHUB_CLIENT_ID", "test-client-id")
os.environ.setdefault("GITHUB_CLIENT_SECRET", "test-client-secret")
os.environ.setdefault("SESSION_SECRET", "test-session-secret")

from config import CORSConfig, GitHubConfig, Settings  # noqa: E402
from errors import GenerationError  # noqa: E402
from main import create_app  # noqa: E402
from models import User  # noqa: E402
from schemas import BatchProfileResponse, ProjectSummaryData  # noqa: E402
from services.github_client import GitHubClient  # noqa: E402
from services.tokens import generate_jwt  # noqa: E402

SECRET = "test-session-secret"
ALLOWED_ORIGIN = "http://localhost:3000"


def repo_payload(owner: str, name: str, github_id: int, **extra) -> dict:
    data = {
        "id": github_id,
        "name": name,
        "full_name": f"{owner}/{name}",
        "description": f"{name} description",
        "private": False,
        "fork": False,
        "language": "Python",
        "stargazers_count": 12,
        "forks_count": 3,
        "open_issues_count": 0,
        "default_branch": "main",
        "topics": ["cli", "api"],
        "html_url": f"https://github.com/{owner}/{name}",
        "clone_url": f"https://github.com/{owner}/{name}.git",
    }
    data.update(extra)
    return data


class FakeGitHub:
    """In-memory stand-in for github.com and api.github.com."""

    def __init__(self):
        self.user = {
            "id": 1001,
            "login": "octocat",
            "email": "public@example.com",
            "avatar_url": "https://avatars.example.com/octocat.png",
            "bio": "Builds things",
            "location": "Toronto",
            "company": "@github",
            "blog": "https://octo.example.com",
        }
        self.emails = [
            {"email": "secondary@example.com", "primary": False, "verified": True},
            {"email": "octo@example.com", "primary": True, "verified": True},
        ]
        self.repos = {
            "octocat/alpha": repo_payload("octocat", "alpha", 1),
            "octocat/beta": repo_payload("octocat", "beta", 2, language="Go", topics=["go", "cli"]),
            "octocat/secret": repo_payload("octocat", "secret", 3, private=True),
        }
        self.languages = {
            "octocat/alpha": {"Python": 5000, "Shell": 200},
            "octocat/beta": {"Go": 8000},
            "octocat/secret": {"Python": 10},
        }
        self.files = {
            "octocat/alpha": {
                "requirements.txt": "fastapi==0.110\n# comment\nsqlalchemy>=2.0\n\nhttpx\n",
                "README.md": "# alpha\n",
                "main.py": "print('hi')\n",
            },
            "octocat/beta": {
                "go.mod": "module beta\n\nrequire (\n\tgithub.com/gin-gonic/gin v1.9.1\n)\n",
            },
            "octocat/secret": {},
        }
        self.readme_sha = ""
        self.puts = []
        self.requests = []
        self.fail_exchange = False
        # path -> exception raised, or raw payload served, for that request
        self.broken = {}

    # -------------------------------------------------------------------------

    def _repo_or_404(self, full_name):
        if full_name not in self.repos:
            return httpx.Response(404, json={"message": "Not Found"})
        return None

    def handler(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        path = request.url.path.rstrip("/")

        if path in self.broken:
            failure = self.broken[path]
            if isinstance(failure, Exception):
                raise failure
            return httpx.Response(200, json=failure)

        if request.url.host == "github.com" and path == "/login/oauth/access_token":
            if self.fail_exchange:
                return httpx.Response(200, json={"error": "bad_verification_code"})
            return httpx.Response(200, json={"access_token": "gho_test", "token_type": "bearer"})

        if path == "/user":
            return httpx.Response(200, json=self.user)
        if path == "/user/emails":
            return httpx.Response(200, json=self.emails)
        if path == "/user/repos":
            return self._list_repos(request)

        parts = path.split("/")
        if len(parts) < 4 or parts[1] != "repos":
            return httpx.Response(404, json={"message": "Not Found"})
        full_name = f"{parts[2]}/{parts[3]}"
        rest = parts[4:]

        if rest[:2] == ["contents", "README.md"] and parts[2] == parts[3]:
            return self._profile_readme(request, full_name)

        missing = self._repo_or_404(full_name)
        if missing is not None:
            return missing

        if not rest:
            return httpx.Response(200, json=self.repos[full_name])
        if rest == ["languages"]:
            return httpx.Response(200, json=self.languages.get(full_name, {}))
        if rest == ["commits"]:
            last = f"https://api.github.com/repos/{full_name}/commits?per_page=1&page=42"
            return httpx.Response(200, json=[{"sha": "abc"}], headers={"Link": f'<{last}>; rel="last"'})
        if rest == ["contributors"]:
            return httpx.Response(200, json=[{"login": "octocat"}, {"login": "hubot"}])
        if rest[:1] == ["contents"]:
            return self._contents(full_name, "/".join(rest[1:]))

        return httpx.Response(404, json={"message": "Not Found"})

    def _list_repos(self, request):
        page = int(request.url.params.get("page", "1"))
        visibility = request.url.params.get("visibility")
        repos = [r for r in self.repos.values() if visibility == "all" or not r["private"]]
        # Two pages: first repo, then the rest
        if page == 1 and len(repos) > 1:
            next_url = "https://api.github.com/user/repos?page=2&per_page=100"
            if visibility:
                next_url += f"&visibility={visibility}"
            return httpx.Response(200, json=repos[:1], headers={"Link": f'<{next_url}>; rel="next"'})
        return httpx.Response(200, json=repos[1:] if page == 2 else repos)

    def _contents(self, full_name, path):
        files = self.files.get(full_name, {})
        if not path:
            listing = [{"type": "file", "path": name, "name": name} for name in files]
            listing.append({"type": "dir", "path": "src", "name": "src"})
            return httpx.Response(200, json=listing)
        if path not in files:
            return httpx.Response(404, json={"message": "Not Found"})
        encoded = base64.b64encode(files[path].encode()).decode()
        return httpx.Response(200, json={"type": "file", "path": path, "encoding": "base64", "content": encoded})

    def _profile_readme(self, request, full_name):
        if request.method == "PUT":
            body = json.loads(request.content)
            self.puts.append(body)
            self.readme_sha = "sha-" + str(len(self.puts))
            return httpx.Response(201, json={"content": {"sha": self.readme_sha}})
        if not self.readme_sha:
            return httpx.Response(404, json={"message": "Not Found"})
        return httpx.Response(200, json={"type": "file", "sha": self.readme_sha, "content": ""})


class FakeContentGenerator:
    """Returns canned prose; counts calls so cache hits can be asserted."""

    def __init__(self):
        self.calls = []
        self.error = None

    async def generate_batched_profile(self, api_key, request):
        self.calls.append((api_key, request))
        if self.error is not None:
            raise self.error
        return BatchProfileResponse(
            profile_pitch="I build developer tools.",
            project_summaries=[
                ProjectSummaryData(
                    project_name=p.repository.name if p.repository else "",
                    summary=f"Summary of {p.repository.name if p.repository else ''}.",
                    skills=["Python", "FastAPI"],
                )
                for p in request.projects
            ],
            extracted_skills=["Docker", "PostgreSQL"],
            confidence=0.9,
        )


@pytest.fixture
def settings():
    return Settings(
        github=GitHubConfig(client_id="test-client-id", client_secret="test-client-secret"),
        session_secret=SECRET,
        database_url="sqlite://",
        rate_limit_per_minute=1000,
        cors=CORSConfig(allowed_origins=[ALLOWED_ORIGIN]),
    )


@pytest.fixture
def fake_github():
    return FakeGitHub()


@pytest.fixture
def fake_generator():
    return FakeContentGenerator()


@pytest.fixture
def github_client(settings, fake_github):
    return GitHubClient(settings.github, transport=httpx.MockTransport(fake_github.handler))


@pytest.fixture
def app(settings, github_client, fake_generator):
    app = create_app(settings)
    app.state.github_client = github_client
    app.state.content_generator = fake_generator
    yield app
    app.state.engine.dispose()


@pytest.fixture
def client(app):
    return TestClient(app)


@pytest.fixture
def db(app):
    session = app.state.session_factory()
    yield session
    session.close()


@pytest.fixture
def user(db):
    user = User(
        github_id=1001,
        username="octocat",
        email="octo@example.com",
        avatar_url="https://avatars.example.com/octocat.png",
        bio="Builds things",
        location="Toronto",
        company="@github",
        blog="https://octo.example.com",
        access_token="gho_test",
    )
    db.add(user)
    db.commit()
    db.refresh(user)
    return user


@pytest.fixture
def token(user):
    return generate_jwt(user.id, user.username, SECRET, timedelta(hours=1))


@pytest.fixture
def auth_headers(token):
    return {"Authorization": f"Bearer {token}"}


@pytest.fixture
def failing_generator(fake_generator):
    fake_generator.error = GenerationError("model unavailable")
    return fake_generator
