"""
FastAPI dependencies: settings, database session, services and the
authenticated user.
"""

import logging
from dataclasses import dataclass
from datetime import datetime

from fastapi import Depends, HTTPException, Request, WebSocket
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from config import Settings
from database import get_db
from errors import AuthError, NotFoundError
from models import User
from repositories import SessionRepository, UserRepository
from services.auth_service import AuthService
from services.content_generator import ContentGenerator
from services.github_client import GitHubClient
from services.github_service import GitHubService
from services.profile_service import ProfileService
from services.tokens import validate_jwt

logger = logging.getLogger(__name__)


@dataclass
class AuthContext:
    user: User
    jti: str
    expires_at: datetime


def get_settings(request: Request) -> Settings:
    return request.app.state.settings


def get_github_client(request: Request) -> GitHubClient:
    return request.app.state.github_client


def get_content_generator(request: Request) -> ContentGenerator:
    return request.app.state.content_generator


def get_auth_service(
    client: GitHubClient = Depends(get_github_client),
    db: Session = Depends(get_db),
) -> AuthService:
    return AuthService(client, db)


def get_github_service(
    client: GitHubClient = Depends(get_github_client),
    db: Session = Depends(get_db),
) -> GitHubService:
    return GitHubService(client, db)


def get_profile_service(
    db: Session = Depends(get_db),
    generator: ContentGenerator = Depends(get_content_generator),
    github_service: GitHubService = Depends(get_github_service),
) -> ProfileService:
    return ProfileService(db, generator, github_service)


# =============================================================================
# AUTHENTICATION
# =============================================================================

def parse_bearer(header: str | None) -> str:
    if not header:
        raise AuthError("authorization header required")
    parts = header.split(" ")
    if len(parts) != 2 or parts[0] != "Bearer" or not parts[1]:
        raise AuthError("invalid authorization header format")
    return parts[1]


def authenticate(token: str, secret: str, db: Session) -> AuthContext:
    """Validate the JWT, check revocation (failing closed) and load the user."""
    claims = validate_jwt(token, secret)

    if claims.jti:
        try:
            revoked = SessionRepository(db).is_token_revoked(claims.jti)
        except SQLAlchemyError as e:
            logger.error(f"Revocation check failed, rejecting token: {e}")
            db.rollback()
            revoked = True
        if revoked:
            raise AuthError("token has been revoked")

    try:
        user = UserRepository(db).get_by_id(claims.user_id)
    except NotFoundError:
        raise AuthError("user not found")
    except SQLAlchemyError as e:
        logger.error(f"User lookup failed, rejecting token: {e}")
        db.rollback()
        raise AuthError("user lookup failed")
    return AuthContext(user=user, jti=claims.jti, expires_at=claims.expires_at)


def get_current_user(
    request: Request,
    settings: Settings = Depends(get_settings),
    db: Session = Depends(get_db),
) -> AuthContext:
    try:
        token = parse_bearer(request.headers.get("Authorization"))
        return authenticate(token, settings.session_secret, db)
    except AuthError as e:
        logger.info(f"Unauthorized request to {request.url.path}: {e}")
        raise HTTPException(status_code=401, detail="Unauthorized")


def authenticate_websocket(websocket: WebSocket, db: Session) -> AuthContext:
    """Header first, then ?token= (browsers cannot set headers on WebSocket upgrades)."""
    settings: Settings = websocket.app.state.settings
    header = websocket.headers.get("Authorization")
    token = parse_bearer(header) if header else websocket.query_params.get("token", "")
    if not token:
        raise AuthError("token required")
    return authenticate(token, settings.session_secret, db)
