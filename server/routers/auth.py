import logging
from datetime import timedelta

import httpx
from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.exc import SQLAlchemyError

from config import Settings
from dependencies import AuthContext, get_auth_service, get_current_user, get_settings
from errors import AuthError, GitRightError
from schemas import UserOut
from services.auth_service import AuthService
from services.tokens import generate_jwt

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/v1", tags=["auth"])


@router.get("/auth/login")
def login(auth_service: AuthService = Depends(get_auth_service)):
    try:
        state = auth_service.generate_oauth_state()
    except SQLAlchemyError as e:
        logger.error(f"Failed to store OAuth state: {e}")
        raise HTTPException(status_code=500, detail="Failed to start login")
    return {"auth_url": auth_service.get_authorization_url(state), "state": state}


@router.get("/auth/callback")
async def callback(
    code: str = "",
    state: str = "",
    auth_service: AuthService = Depends(get_auth_service),
    settings: Settings = Depends(get_settings),
):
    if not code or not state:
        raise HTTPException(status_code=400, detail="Missing code or state")

    try:
        auth_service.validate_oauth_state(state)
    except AuthError:
        raise HTTPException(status_code=400, detail="Invalid or expired state")

    try:
        user, _ = await auth_service.handle_callback(code)
    except (GitRightError, SQLAlchemyError, httpx.HTTPError) as e:
        logger.error(f"OAuth callback failed: {e}")
        raise HTTPException(status_code=500, detail="Authentication failed")

    token = generate_jwt(
        user.id,
        user.username,
        settings.session_secret,
        timedelta(seconds=settings.session_max_age),
    )

    try:
        auth_service.delete_oauth_state(state)
    except SQLAlchemyError as e:
        logger.warning(f"Failed to delete OAuth state: {e}")

    return {"user": UserOut.model_validate(user), "token": token}


@router.post("/auth/logout")
def logout(
    auth: AuthContext = Depends(get_current_user),
    auth_service: AuthService = Depends(get_auth_service),
):
    if not auth.jti:
        raise HTTPException(status_code=401, detail="Unauthorized")

    try:
        auth_service.revoke_session(auth.jti, auth.expires_at)
    except SQLAlchemyError as e:
        logger.error(f"Failed to revoke session for {auth.user.username}: {e}")
        raise HTTPException(status_code=500, detail="Failed to log out")

    return {"message": "Logged out successfully"}


@router.get("/me", response_model=UserOut)
def me(auth: AuthContext = Depends(get_current_user)):
    return auth.user
