from fastapi import APIRouter, Depends, HTTPException, status
from typing import List

from app.core.config import settings
from app.core.dependencies import get_session_context
from app.core.logging import get_logger
from app.core.session import SessionContext
from app.crud import cascade
from app.crud import folder as folder_crud
from app.crud import project as project_crud
from app.schemas.folder import FolderTreeNode
from app.schemas.project import Project, ProjectCreate, ProjectUpdate
from app.services.folder_tree import build_folder_tree

logger = get_logger(__name__)
router = APIRouter(prefix="/projects", tags=["projects"])


def _check_name_length(name) -> None:
    if name is not None and len(name) > settings.project_name_max_length:
        raise HTTPException(
            status_code=400,
            detail=f"Project name must be less than {settings.project_name_max_length} characters"
        )


@router.post("/", response_model=Project, status_code=status.HTTP_201_CREATED)
async def create_project(
    project: ProjectCreate,
    context: SessionContext = Depends(get_session_context)
):
    """Create a new project"""
    _check_name_length(project.name)
    try:
        db_project = project_crud.create_project(context.db, project, context.user_id)
        logger.info(f"Created project {db_project.id} for user {context.user_id}")
        return db_project
    except Exception as e:
        logger.error(f"Failed to create project for user {context.user_id}: {str(e)}")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to create project"
        )


@router.get("/", response_model=List[Project])
async def get_projects(context: SessionContext = Depends(get_session_context)):
    """Get all projects for the current user"""
    return project_crud.get_user_projects(context.db, context.user_id)


@router.get("/{project_id}", response_model=Project)
async def get_project(
    project_id: str,
    context: SessionContext = Depends(get_session_context)
):
    db_project = project_crud.get_project(context.db, project_id, context.user_id)
    if not db_project:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Project not found")
    return db_project


@router.patch("/{project_id}", response_model=Project)
async def update_project(
    project_id: str,
    project_update: ProjectUpdate,
    context: SessionContext = Depends(get_session_context)
):
    """Update a project's name, description or color"""
    _check_name_length(project_update.name)
    db_project = project_crud.update_project(context.db, project_id, project_update, context.user_id)
    if not db_project:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Project not found")
    logger.info(f"Updated project {project_id} for user {context.user_id}")
    return db_project


@router.delete("/{project_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_project(
    project_id: str,
    context: SessionContext = Depends(get_session_context)
):
    """Delete a project with all of its folders, prompts and versions"""
    if not project_crud.get_project(context.db, project_id, context.user_id):
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Project not found")

    try:
        removed = cascade.delete_project(context.db, project_id)
        logger.info("Project deleted", project_id=project_id, user_id=context.user_id, removed=removed)
    except Exception as e:
        logger.error(f"Failed to delete project {project_id} for user {context.user_id}: {str(e)}")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to delete project"
        )


@router.get("/{project_id}/folders/tree", response_model=List[FolderTreeNode])
async def get_folder_tree(
    project_id: str,
    context: SessionContext = Depends(get_session_context)
):
    """The project's folders nested under their parents"""
    if not project_crud.get_project(context.db, project_id, context.user_id):
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Project not found")

    folders = folder_crud.get_user_folders(context.db, context.user_id, project_id=project_id)
    return build_folder_tree(folders).to_nested()
