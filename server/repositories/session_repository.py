"""
OAuth state and JWT revocation storage.

Both live in the `sessions` table, keyed by prefix:
- oauth_state:<state>  -> state_value "valid", 10 minute TTL
- revoked:<jti>        -> state_value "revoked", kept until the token would expire
"""

import logging
from datetime import datetime

from sqlalchemy.orm import Session

from models import (
    GeneratedProfile,
    RepositoryAnalysisCache,
    RepositoryListCache,
    SessionState,
    utcnow,
)

logger = logging.getLogger(__name__)

OAUTH_STATE = "oauth_state"
REVOKED_TOKEN = "revoked_token"


class SessionRepository:
    def __init__(self, session: Session):
        self.session = session

    def _upsert(self, key: str, state_type: str, state_value: str, expires_at: datetime) -> None:
        row = self.session.query(SessionState).filter(SessionState.id == key).first()
        if row is None:
            row = SessionState(id=key, state_type=state_type)
            self.session.add(row)
        row.state_value = state_value
        row.expires_at = expires_at
        self.session.commit()

    # -------------------------------------------------------------------------
    # OAuth state
    # -------------------------------------------------------------------------

    def create_oauth_state(self, state: str, expires_at: datetime) -> None:
        self._upsert(f"oauth_state:{state}", OAUTH_STATE, "valid", expires_at)

    def validate_oauth_state(self, state: str) -> bool:
        row = (
            self.session.query(SessionState)
            .filter(
                SessionState.id == f"oauth_state:{state}",
                SessionState.state_type == OAUTH_STATE,
                SessionState.expires_at > utcnow(),
            )
            .first()
        )
        return row is not None and row.state_value == "valid"

    def delete_oauth_state(self, state: str) -> None:
        self.session.query(SessionState).filter(
            SessionState.id == f"oauth_state:{state}",
            SessionState.state_type == OAUTH_STATE,
        ).delete(synchronize_session=False)
        self.session.commit()

    # -------------------------------------------------------------------------
    # JWT revocation
    # -------------------------------------------------------------------------

    def revoke_token(self, jti: str, expires_at: datetime) -> None:
        self._upsert(f"revoked:{jti}", REVOKED_TOKEN, "revoked", expires_at)

    def is_token_revoked(self, jti: str) -> bool:
        row = (
            self.session.query(SessionState.id)
            .filter(
                SessionState.id == f"revoked:{jti}",
                SessionState.state_type == REVOKED_TOKEN,
                SessionState.expires_at > utcnow(),
            )
            .first()
        )
        return row is not None


def cleanup_expired(session: Session) -> dict[str, int]:
    """Delete expired sessions and cache rows. Deployed profiles are kept for history."""
    now = utcnow()
    counts = {
        "sessions": session.query(SessionState)
        .filter(SessionState.expires_at < now)
        .delete(synchronize_session=False),
        "generated_profiles": session.query(GeneratedProfile)
        .filter(
            GeneratedProfile.expires_at < now,
            GeneratedProfile.cache_key.isnot(None),
            GeneratedProfile.deployed.is_(False),
        )
        .delete(synchronize_session=False),
        "repository_list_cache": session.query(RepositoryListCache)
        .filter(RepositoryListCache.expires_at < now)
        .delete(synchronize_session=False),
        "repository_analysis_cache": session.query(RepositoryAnalysisCache)
        .filter(RepositoryAnalysisCache.expires_at < now)
        .delete(synchronize_session=False),
    }
    session.commit()
    logger.info(f"Expired data cleaned up: {counts}")
    return counts
