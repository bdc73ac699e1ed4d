import asyncio
import json
import logging

import httpx
from fastapi import APIRouter, Depends, HTTPException, WebSocket, WebSocketDisconnect
from pydantic import ValidationError as PydanticValidationError
from sqlalchemy.exc import SQLAlchemyError

from dependencies import AuthContext, authenticate_websocket, get_current_user, get_profile_service
from errors import AuthError, GitRightError, ValidationError
from models import User
from schemas import ContentGenerationRequest, ContentGenerationResponse, ProfileConfigData, ProgressUpdate
from services.github_service import GitHubService
from services.profile_service import ProfileService, ProgressCallback

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/v1/profile", tags=["profile"])

PROGRESS_QUEUE_SIZE = 10
POLICY_VIOLATION = 1008


async def _generate(service: ProfileService, body: ContentGenerationRequest, user: User) -> ContentGenerationResponse:
    try:
        return await service.generate_profile(body, user)
    except ValidationError as e:
        raise HTTPException(status_code=400, detail=str(e))
    except (GitRightError, SQLAlchemyError, httpx.HTTPError) as e:
        logger.error(f"Profile generation failed for {user.username}: {e}")
        raise HTTPException(status_code=500, detail=f"generation failed: {e}")


@router.post("/generate", response_model=ContentGenerationResponse)
async def generate(
    body: ContentGenerationRequest,
    auth: AuthContext = Depends(get_current_user),
    service: ProfileService = Depends(get_profile_service),
):
    return await _generate(service, body, auth.user)


@router.post("/preview")
async def preview(
    body: ContentGenerationRequest,
    auth: AuthContext = Depends(get_current_user),
    service: ProfileService = Depends(get_profile_service),
):
    response = await _generate(service, body, auth.user)
    return {"markdown": response.markdown, "preview": True}


@router.post("/deploy")
async def deploy(
    body: ContentGenerationRequest,
    auth: AuthContext = Depends(get_current_user),
    service: ProfileService = Depends(get_profile_service),
):
    user = auth.user
    response = await _generate(service, body, user)
    try:
        await service.deploy_profile(user, user.access_token, response.markdown)
    except (GitRightError, httpx.HTTPError) as e:
        logger.error(f"Profile deploy failed for {user.username}: {e}")
        raise HTTPException(status_code=500, detail=f"failed to deploy profile: {e}")

    return {
        "message": "Profile deployed successfully",
        "url": f"https://github.com/{user.username}",
    }


@router.get("/config", response_model=ProfileConfigData)
def get_config(
    auth: AuthContext = Depends(get_current_user),
    service: ProfileService = Depends(get_profile_service),
):
    config = service.get_config(auth.user.id)
    if config is None:
        raise HTTPException(status_code=404, detail="Profile config not found")
    return config


@router.put("/config", response_model=ProfileConfigData)
def update_config(
    body: ProfileConfigData,
    auth: AuthContext = Depends(get_current_user),
    service: ProfileService = Depends(get_profile_service),
):
    try:
        return service.update_config(auth.user.id, body)
    except SQLAlchemyError as e:
        logger.error(f"Failed to save profile config for {auth.user.username}: {e}")
        raise HTTPException(status_code=500, detail="Failed to save profile config")


# =============================================================================
# WEBSOCKET GENERATION WITH PROGRESS
# =============================================================================

def progress_reporter(queue: asyncio.Queue) -> ProgressCallback:
    """Callback that enqueues progress without blocking; updates are dropped while the queue is full."""

    def report(stage: str, progress: float, message: str) -> None:
        try:
            queue.put_nowait(ProgressUpdate(stage=stage, progress=progress, message=message))
        except asyncio.QueueFull:
            logger.debug(f"Progress queue full, dropping {stage} update")

    return report


async def _forward_progress(websocket: WebSocket, queue: asyncio.Queue) -> None:
    """Drain the queue onto the socket until the None sentinel arrives."""
    while True:
        update = await queue.get()
        if update is None:
            return
        await websocket.send_json(update.model_dump(exclude_none=True))


@router.websocket("/ws")
async def generate_ws(websocket: WebSocket):
    app_state = websocket.app.state
    origin = websocket.headers.get("origin")
    if not origin or origin not in app_state.settings.cors.allowed_origins:
        logger.warning(f"WebSocket rejected, origin not allowed: {origin!r}")
        await websocket.close(code=POLICY_VIOLATION)
        return

    session = app_state.session_factory()
    try:
        try:
            auth = authenticate_websocket(websocket, session)
        except AuthError as e:
            logger.info(f"WebSocket rejected, unauthorized: {e}")
            await websocket.close(code=POLICY_VIOLATION)
            return

        await websocket.accept()
        await _run_generation(websocket, auth.user, session, app_state)
    except WebSocketDisconnect:
        logger.info("WebSocket client disconnected")
    finally:
        session.close()


async def _run_generation(websocket: WebSocket, user: User, session, app_state) -> None:
    try:
        request = ContentGenerationRequest.model_validate(await websocket.receive_json())
    except (json.JSONDecodeError, PydanticValidationError) as e:
        await websocket.send_json({"stage": "error", "message": "Invalid request body", "error": str(e)})
        return

    queue: asyncio.Queue = asyncio.Queue(maxsize=PROGRESS_QUEUE_SIZE)
    report = progress_reporter(queue)
    consumer = asyncio.create_task(_forward_progress(websocket, queue))
    service = ProfileService(
        session,
        app_state.content_generator,
        GitHubService(app_state.github_client, session),
    )

    report("init", 0.0, "Starting profile generation")
    try:
        result = await service.generate_profile(request, user, progress=report)
    except (GitRightError, SQLAlchemyError, httpx.HTTPError) as e:
        logger.error(f"WebSocket generation failed for {user.username}: {e}")
        await queue.put(None)
        await consumer
        message = str(e) if isinstance(e, ValidationError) else "Profile generation failed"
        await websocket.send_json({"stage": "error", "message": message, "error": str(e)})
        return
    except BaseException:
        consumer.cancel()
        raise

    await queue.put(None)
    await consumer
    await websocket.send_json({
        "stage": "complete",
        "progress": 1.0,
        "message": "Profile generated successfully",
        "result": result.model_dump(mode="json"),
    })
