import logging
import secrets
from datetime import datetime, timedelta

import httpx
from sqlalchemy.orm import Session

from errors import AuthError, GitHubAPIError
from models import User, utcnow
from repositories import SessionRepository, UserRepository
from services.github_client import GitHubClient

logger = logging.getLogger(__name__)

OAUTH_STATE_TTL = timedelta(minutes=10)


def primary_email(emails: list[dict]) -> str:
    for entry in emails:
        if entry.get("primary") and entry.get("verified"):
            return entry.get("email") or ""
    return ""


class AuthService:
    def __init__(self, client: GitHubClient, session: Session):
        self.client = client
        self.users = UserRepository(session)
        self.sessions = SessionRepository(session)

    def generate_oauth_state(self) -> str:
        state = secrets.token_urlsafe(32)
        self.sessions.create_oauth_state(state, utcnow() + OAUTH_STATE_TTL)
        return state

    def get_authorization_url(self, state: str) -> str:
        return self.client.get_authorization_url(state)

    def validate_oauth_state(self, state: str) -> None:
        if not self.sessions.validate_oauth_state(state):
            raise AuthError("state not found or expired")

    def delete_oauth_state(self, state: str) -> None:
        self.sessions.delete_oauth_state(state)

    async def handle_callback(self, code: str) -> tuple[User, str]:
        """Exchange the code, load the GitHub profile and upsert the user."""
        access_token = await self.client.exchange_code(code)
        github_user = await self.client.get_user(access_token)

        try:
            email = primary_email(await self.client.get_user_emails(access_token))
        except (GitHubAPIError, httpx.HTTPError) as e:
            # user:email scope may be missing; fall back to the public email
            logger.warning(f"Failed to fetch emails for {github_user.get('login')}: {e}")
            email = ""

        user = self.users.upsert(
            github_user["id"],
            username=github_user.get("login") or "",
            email=email or github_user.get("email") or "",
            avatar_url=github_user.get("avatar_url") or "",
            bio=github_user.get("bio") or "",
            location=github_user.get("location") or "",
            company=github_user.get("company") or "",
            blog=github_user.get("blog") or "",
            access_token=access_token,
        )
        logger.info(f"User {user.username} logged in")
        return user, access_token

    def revoke_session(self, jti: str, expires_at: datetime) -> None:
        self.sessions.revoke_token(jti, expires_at)
        logger.info(f"Session {jti[:8]}... revoked")
