import logging

import httpx
from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.exc import SQLAlchemyError

from dependencies import AuthContext, get_current_user, get_github_service
from errors import GitRightError
from schemas import BatchAnalyzeRequest
from services.github_service import GitHubService

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/v1/github", tags=["github"])

MAX_BATCH_SIZE = 10


@router.get("/repositories")
async def list_repositories(
    include_private: bool = False,
    auth: AuthContext = Depends(get_current_user),
    github_service: GitHubService = Depends(get_github_service),
):
    user = auth.user
    try:
        repos = await github_service.list_user_repositories(user.id, user.access_token, include_private)
    except (GitRightError, httpx.HTTPError) as e:
        logger.error(f"Failed to list repositories for {user.username}: {e}")
        raise HTTPException(status_code=500, detail="Failed to fetch repositories")
    return {"repositories": repos, "count": len(repos)}


@router.post("/repositories/batch-analyze")
async def batch_analyze(
    body: BatchAnalyzeRequest,
    auth: AuthContext = Depends(get_current_user),
    github_service: GitHubService = Depends(get_github_service),
):
    if not body.repositories or len(body.repositories) > MAX_BATCH_SIZE:
        raise HTTPException(
            status_code=400,
            detail=f"Provide between 1 and {MAX_BATCH_SIZE} repositories",
        )

    analyses, error = await github_service.batch_analyze_repositories(auth.user.access_token, body.repositories)
    errors = [str(e) for e in error.errors] if error else []

    if not analyses:
        logger.error(f"Batch analysis failed for every repository: {error}")
        raise HTTPException(status_code=500, detail=str(error))

    return {"analyses": analyses, "errors": errors}


@router.get("/repositories/{owner}/{repo}")
async def get_repository(
    owner: str,
    repo: str,
    auth: AuthContext = Depends(get_current_user),
    github_service: GitHubService = Depends(get_github_service),
):
    try:
        return await github_service.get_repository(auth.user.access_token, owner, repo)
    except (GitRightError, httpx.HTTPError) as e:
        logger.info(f"Repository {owner}/{repo} not available: {e}")
        raise HTTPException(status_code=404, detail="Repository not found")


@router.get("/repositories/{owner}/{repo}/analyze")
async def analyze_repository(
    owner: str,
    repo: str,
    auth: AuthContext = Depends(get_current_user),
    github_service: GitHubService = Depends(get_github_service),
):
    try:
        return await github_service.analyze_repository(auth.user.access_token, owner, repo)
    except (GitRightError, SQLAlchemyError, httpx.HTTPError) as e:
        logger.error(f"Failed to analyze {owner}/{repo}: {e}")
        raise HTTPException(status_code=500, detail="Failed to analyze repository")


@router.delete("/cache")
def clear_cache(
    auth: AuthContext = Depends(get_current_user),
    github_service: GitHubService = Depends(get_github_service),
):
    github_service.clear_user_cache(auth.user.id)
    return {"message": "Cache cleared successfully"}
