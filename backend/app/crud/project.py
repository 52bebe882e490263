from sqlalchemy.orm import Session
from typing import List, Optional
from app.models.project import Project
from app.schemas.project import ProjectCreate, ProjectUpdate


def create_project(db: Session, project: ProjectCreate, owner_id: str) -> Project:
    """Create a new project for a user"""
    db_project = Project(
        name=project.name,
        description=project.description,
        color=project.color,
        owner_id=owner_id
    )
    db.add(db_project)
    db.commit()
    db.refresh(db_project)
    return db_project


def get_project(db: Session, project_id: str, owner_id: str) -> Optional[Project]:
    """Get a specific project by ID for a user"""
    return db.query(Project).filter(
        Project.id == project_id,
        Project.owner_id == owner_id
    ).first()


def get_user_projects(db: Session, owner_id: str) -> List[Project]:
    """Get all projects for a user in creation order"""
    return db.query(Project).filter(
        Project.owner_id == owner_id
    ).order_by(Project.created_at, Project.id).all()


def update_project(db: Session, project_id: str, project_update: ProjectUpdate, owner_id: str) -> Optional[Project]:
    """Update name, description or color; the owner never changes"""
    db_project = get_project(db, project_id, owner_id)
    if not db_project:
        return None

    update_data = project_update.model_dump(exclude_unset=True, exclude_none=True)
    for field, value in update_data.items():
        setattr(db_project, field, value)

    db.commit()
    db.refresh(db_project)
    return db_project
