from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from errors import NotFoundError
from models import User, utcnow


class UserRepository:
    def __init__(self, session: Session):
        self.session = session

    def get_by_id(self, user_id: int) -> User:
        user = self.session.get(User, user_id)
        if user is None:
            raise NotFoundError("user not found")
        return user

    def get_by_github_id(self, github_id: int) -> User | None:
        return self.session.query(User).filter(User.github_id == github_id).first()

    def upsert(self, github_id: int, **fields) -> User:
        """Create the user or refresh every given field. Handles concurrent inserts."""
        now = utcnow()
        user = self.get_by_github_id(github_id)

        if user is None:
            try:
                user = User(github_id=github_id, last_login_at=now, **fields)
                self.session.add(user)
                self.session.commit()
            except IntegrityError:
                # Another concurrent login created it - rollback and update instead
                self.session.rollback()
                user = self.get_by_github_id(github_id)
                if user is None:
                    raise
            else:
                self.session.refresh(user)
                return user

        for name, value in fields.items():
            setattr(user, name, value)
        user.last_login_at = now
        self.session.commit()
        self.session.refresh(user)
        return user
