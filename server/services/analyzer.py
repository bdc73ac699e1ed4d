"""
Repository analysis: languages, top-level files, key config files and
the dependencies declared in them.
"""

import json
import logging
import posixpath
import re

import httpx

from errors import GitHubAPIError
from schemas import RepositoryAnalysis
from services.github_client import GitHubClient

logger = logging.getLogger(__name__)


KEY_FILES = {
    "package.json", "package-lock.json", "requirements.txt", "Pipfile",
    "pyproject.toml", "go.mod", "go.sum", "Cargo.toml", "Gemfile",
    "pom.xml", "build.gradle", "composer.json", "Dockerfile",
    ".dockerignore", "docker-compose.yml", "README.md",
    "tsconfig.json", "vite.config.ts", "webpack.config.js",
}

PIP_SPLIT = re.compile(r"[=><~!]")
GEM_NAME = re.compile(r"""^gem\s+['"]([^'"]+)['"]""")


# =============================================================================
# DEPENDENCY PARSERS
# =============================================================================

def extract_npm_dependencies(content: str) -> list[str]:
    try:
        package = json.loads(content)
    except json.JSONDecodeError:
        return []
    if not isinstance(package, dict):
        return []

    deps = []
    for section in ("dependencies", "devDependencies"):
        block = package.get(section)
        if isinstance(block, dict):
            deps.extend(block.keys())
    return deps


def extract_pip_dependencies(content: str) -> list[str]:
    deps = []
    for line in content.splitlines():
        line = line.strip()
        if not line or line.startswith("#"):
            continue
        name = PIP_SPLIT.split(line, maxsplit=1)[0].strip()
        if name:
            deps.append(name)
    return deps


def extract_go_dependencies(content: str) -> list[str]:
    deps = []
    in_require_block = False
    for line in content.splitlines():
        line = line.strip()
        if line.startswith("require ("):
            in_require_block = True
            continue
        if in_require_block:
            if line == ")":
                in_require_block = False
            elif line and not line.startswith("//"):
                deps.append(line.split()[0])
            continue
        if line.startswith("require "):
            parts = line.split()
            if len(parts) >= 2:
                deps.append(parts[1])
    return deps


def extract_cargo_dependencies(content: str) -> list[str]:
    deps = []
    in_deps = False
    for line in content.splitlines():
        line = line.strip()
        if line.startswith("[dependencies]"):
            in_deps = True
            continue
        if line.startswith("["):
            in_deps = False
            continue
        if in_deps and "=" in line and not line.startswith("#"):
            name = line.split("=", 1)[0].strip()
            if name:
                deps.append(name)
    return deps


def extract_gem_dependencies(content: str) -> list[str]:
    deps = []
    for line in content.splitlines():
        match = GEM_NAME.match(line.strip())
        if match:
            deps.append(match.group(1))
    return deps


DEPENDENCY_PARSERS = {
    "package.json": ("npm", extract_npm_dependencies),
    "requirements.txt": ("pip", extract_pip_dependencies),
    "go.mod": ("go", extract_go_dependencies),
    "Cargo.toml": ("cargo", extract_cargo_dependencies),
    "Gemfile": ("gem", extract_gem_dependencies),
}


def extract_dependencies(key_files: dict[str, str]) -> dict[str, list[str]]:
    """Ecosystem -> dependency names. Ecosystems with nothing declared are left out."""
    dependencies = {}
    for path, content in key_files.items():
        parser = DEPENDENCY_PARSERS.get(posixpath.basename(path))
        if parser is None:
            continue
        ecosystem, extract = parser
        deps = extract(content)
        if deps:
            dependencies[ecosystem] = deps
    return dependencies


# =============================================================================
# ANALYZER
# =============================================================================

class RepositoryAnalyzer:
    def __init__(self, client: GitHubClient):
        self.client = client

    async def analyze_repository(self, token: str, owner: str, repo: str) -> RepositoryAnalysis:
        repository = await self.client.get_repository(token, owner, repo)
        languages = await self.client.get_languages(token, owner, repo)
        files = await self.list_files(token, owner, repo)
        key_files = await self.fetch_key_files(token, owner, repo, files)

        try:
            commit_count = await self.client.get_commit_count(token, owner, repo)
        except (GitHubAPIError, httpx.HTTPError) as e:
            logger.warning(f"Commit count failed for {owner}/{repo}: {e}")
            commit_count = 0

        try:
            contributor_count = await self.client.get_contributor_count(token, owner, repo)
        except (GitHubAPIError, httpx.HTTPError) as e:
            logger.warning(f"Contributor count failed for {owner}/{repo}: {e}")
            contributor_count = 0

        return RepositoryAnalysis(
            repository=repository,
            languages=languages,
            files=files,
            dependencies=extract_dependencies(key_files),
            key_files=key_files,
            commit_count=commit_count,
            contributor_count=contributor_count,
        )

    async def list_files(self, token: str, owner: str, repo: str) -> list[str]:
        contents = await self.client.list_contents(token, owner, repo)
        return [item["path"] for item in contents if item.get("type") == "file"]

    async def fetch_key_files(self, token: str, owner: str, repo: str, files: list[str]) -> dict[str, str]:
        key_files = {}
        for path in files:
            if posixpath.basename(path) not in KEY_FILES:
                continue
            try:
                key_files[path] = await self.client.get_file_content(token, owner, repo, path)
            except (GitHubAPIError, httpx.HTTPError, ValueError) as e:
                logger.debug(f"Skipping key file {owner}/{repo}/{path}: {e}")
        return key_files
