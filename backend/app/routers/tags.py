from fastapi import APIRouter, Depends, HTTPException, status
from typing import List

from app.core.dependencies import get_session_context
from app.core.logging import get_logger
from app.core.session import SessionContext
from app.crud import cascade
from app.crud import tag as tag_crud
from app.schemas.tag import Tag, TagCreate

logger = get_logger(__name__)
router = APIRouter(prefix="/tags", tags=["tags"])


@router.get("/", response_model=List[Tag])
async def get_tags(context: SessionContext = Depends(get_session_context)):
    """All tags; tags are shared across users and projects"""
    return tag_crud.get_all_tags(context.db)


@router.post("/", response_model=Tag)
async def create_tag(
    tag: TagCreate,
    context: SessionContext = Depends(get_session_context)
):
    """Return the tag with this name, creating it when it does not exist yet"""
    try:
        return tag_crud.get_or_create_tag(context.db, tag)
    except ValueError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))


@router.delete("/{tag_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_tag(
    tag_id: str,
    context: SessionContext = Depends(get_session_context)
):
    """Delete a tag and remove it from every prompt"""
    if not tag_crud.get_tag(context.db, tag_id):
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Tag not found")

    try:
        removed = cascade.delete_tag(context.db, tag_id)
        logger.info("Tag deleted", tag_id=tag_id, detached=removed.get("prompt_tags", 0))
    except Exception as e:
        logger.error(f"Failed to delete tag {tag_id}: {str(e)}")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to delete tag"
        )
