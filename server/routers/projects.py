from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.orm import Session

from database import get_db
from dependencies import AuthContext, get_current_user
from errors import NotFoundError, ValidationError
from repositories import ProjectRepository
from schemas import ProjectCreate, ProjectOut, ProjectUpdate

router = APIRouter(prefix="/api/v1/projects", tags=["projects"])


@router.get("", response_model=list[ProjectOut])
def list_projects(auth: AuthContext = Depends(get_current_user), db: Session = Depends(get_db)):
    return ProjectRepository(db).list_by_user(auth.user.id)


@router.post("", response_model=ProjectOut, status_code=201)
def create_project(
    body: ProjectCreate,
    auth: AuthContext = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    try:
        return ProjectRepository(db).create(auth.user.id, **body.model_dump())
    except ValidationError as e:
        raise HTTPException(status_code=400, detail=str(e))


@router.put("/{project_id}", response_model=ProjectOut)
def update_project(
    project_id: int,
    body: ProjectUpdate,
    auth: AuthContext = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    projects = ProjectRepository(db)
    try:
        project = projects.get_for_user(project_id, auth.user.id)
    except NotFoundError:
        raise HTTPException(status_code=404, detail="Project not found")
    return projects.update(project, **body.model_dump(exclude_unset=True))


@router.delete("/{project_id}")
def delete_project(
    project_id: int,
    auth: AuthContext = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    projects = ProjectRepository(db)
    try:
        project = projects.get_for_user(project_id, auth.user.id)
    except NotFoundError:
        raise HTTPException(status_code=404, detail="Project not found")
    projects.delete(project)
    return {"message": "Project deleted successfully"}
