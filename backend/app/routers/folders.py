from fastapi import APIRouter, Depends, HTTPException, status
from typing import List, Optional

from app.core.dependencies import get_session_context
from app.core.logging import get_logger
from app.core.session import SessionContext
from app.crud import cascade
from app.crud import folder as folder_crud
from app.crud import project as project_crud
from app.schemas.folder import Folder, FolderCreate, FolderUpdate

logger = get_logger(__name__)
router = APIRouter(prefix="/folders", tags=["folders"])


@router.get("/", response_model=List[Folder])
async def get_folders(
    project_id: Optional[str] = None,
    favorites: bool = False,
    context: SessionContext = Depends(get_session_context)
):
    """List folders, optionally for one project or favorites only"""
    return folder_crud.get_user_folders(
        context.db, context.user_id, project_id=project_id, favorites_only=favorites
    )


@router.post("/", response_model=Folder, status_code=status.HTTP_201_CREATED)
async def create_folder(
    folder: FolderCreate,
    context: SessionContext = Depends(get_session_context)
):
    """Create a folder inside a project, optionally under a parent folder"""
    if not project_crud.get_project(context.db, folder.project_id, context.user_id):
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Project not found")

    try:
        db_folder = folder_crud.create_folder(context.db, folder, context.user_id)
    except ValueError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))
    except Exception as e:
        logger.error(f"Error creating folder for user {context.user_id}: {str(e)}")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to create folder"
        )

    logger.info(f"Created folder {db_folder.id} in project {folder.project_id}")
    return db_folder


@router.get("/{folder_id}", response_model=Folder)
async def get_folder(
    folder_id: str,
    context: SessionContext = Depends(get_session_context)
):
    db_folder = folder_crud.get_folder(context.db, folder_id, context.user_id)
    if not db_folder:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Folder not found")
    return db_folder


@router.patch("/{folder_id}", response_model=Folder)
async def update_folder(
    folder_id: str,
    folder_update: FolderUpdate,
    context: SessionContext = Depends(get_session_context)
):
    """Rename, move or (un)favorite a folder"""
    try:
        db_folder = folder_crud.update_folder(context.db, folder_id, folder_update, context.user_id)
    except ValueError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))
    if not db_folder:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Folder not found")
    return db_folder


@router.post("/{folder_id}/favorite", response_model=Folder)
async def toggle_folder_favorite(
    folder_id: str,
    context: SessionContext = Depends(get_session_context)
):
    db_folder = folder_crud.toggle_favorite(context.db, folder_id, context.user_id)
    if not db_folder:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Folder not found")
    return db_folder


@router.delete("/{folder_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_folder(
    folder_id: str,
    context: SessionContext = Depends(get_session_context)
):
    """Delete a folder, its subfolders and every prompt inside them"""
    if not folder_crud.get_folder(context.db, folder_id, context.user_id):
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Folder not found")

    try:
        removed = cascade.delete_folder(context.db, folder_id)
        logger.info("Folder deleted", folder_id=folder_id, user_id=context.user_id, removed=removed)
    except Exception as e:
        logger.error(f"Failed to delete folder {folder_id}: {str(e)}")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to delete folder"
        )
