from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from errors import NotFoundError, ValidationError
from models import Project


class ProjectRepository:
    def __init__(self, session: Session):
        self.session = session

    def create(self, user_id: int, **fields) -> Project:
        project = Project(user_id=user_id, **fields)
        self.session.add(project)
        try:
            self.session.commit()
        except IntegrityError:
            self.session.rollback()
            raise ValidationError(f"project {fields.get('full_name')!r} already added")
        self.session.refresh(project)
        return project

    def list_by_user(self, user_id: int) -> list[Project]:
        return (
            self.session.query(Project)
            .filter(Project.user_id == user_id)
            .order_by(Project.priority.asc(), Project.id.asc())
            .all()
        )

    def get_for_user(self, project_id: int, user_id: int) -> Project:
        project = (
            self.session.query(Project)
            .filter(Project.id == project_id, Project.user_id == user_id)
            .first()
        )
        if project is None:
            raise NotFoundError("project not found")
        return project

    def update(self, project: Project, **fields) -> Project:
        for name, value in fields.items():
            setattr(project, name, value)
        self.session.commit()
        self.session.refresh(project)
        return project

    def delete(self, project: Project) -> None:
        self.session.delete(project)
        self.session.commit()
