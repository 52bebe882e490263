from fastapi import APIRouter, Depends, HTTPException, Query, status
from typing import List, Optional

from app.core.config import settings
from app.core.dependencies import get_session_context
from app.core.logging import prompt_logger as logger
from app.core.session import SessionContext
from app.crud import cascade
from app.crud import project as project_crud
from app.crud import prompt as prompt_crud
from app.schemas.prompt import Prompt, PromptCreate, PromptUpdate
from app.services.view_filter import ViewSelection, filter_prompts

router = APIRouter(prefix="/prompts", tags=["prompts"])


def _check_content_length(content: Optional[str]) -> None:
    if content is not None and len(content) > settings.max_prompt_length:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=f"Prompt must be less than {settings.max_prompt_length} characters"
        )


@router.get("/", response_model=List[Prompt])
async def get_prompts(
    project_id: Optional[str] = None,
    folder_id: Optional[str] = None,
    tag_id: Optional[str] = None,
    show_all: bool = Query(False, alias="all"),
    context: SessionContext = Depends(get_session_context)
):
    """Prompts visible for a selection.

    ``all=true`` lists every prompt (narrowed by ``tag_id``); otherwise the
    prompts of ``project_id``, optionally of one folder and one tag.
    """
    selection = ViewSelection(
        project_id=None if show_all else project_id,
        folder_id=None if show_all else folder_id,
        tag_id=tag_id,
        show_all=show_all,
    )
    prompts = prompt_crud.get_user_prompts(context.db, context.user_id)
    return filter_prompts(prompts, selection)


@router.post("/", response_model=Prompt, status_code=status.HTTP_201_CREATED)
async def create_prompt(
    prompt: PromptCreate,
    context: SessionContext = Depends(get_session_context)
):
    """Create a prompt with its first version"""
    _check_content_length(prompt.content)
    if not project_crud.get_project(context.db, prompt.project_id, context.user_id):
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Project not found")

    try:
        db_prompt = prompt_crud.create_prompt(context.db, prompt, context.user_id)
    except ValueError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))
    except Exception as e:
        logger.error("Failed to create prompt", user_id=context.user_id, error=str(e))
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to create prompt"
        )

    logger.info("Prompt created", prompt_id=db_prompt.id, project_id=db_prompt.project_id)
    return db_prompt


@router.get("/{prompt_id}", response_model=Prompt)
async def get_prompt(
    prompt_id: str,
    context: SessionContext = Depends(get_session_context)
):
    db_prompt = prompt_crud.get_prompt(context.db, prompt_id, context.user_id)
    if not db_prompt:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Prompt not found")
    return db_prompt


@router.put("/{prompt_id}", response_model=Prompt)
async def update_prompt(
    prompt_id: str,
    prompt_update: PromptUpdate,
    context: SessionContext = Depends(get_session_context)
):
    """Save edits; changed content or model settings become a new version"""
    _check_content_length(prompt_update.content)
    try:
        db_prompt = prompt_crud.update_prompt(context.db, prompt_id, prompt_update, context.user_id)
    except ValueError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))
    except Exception as e:
        logger.error("Failed to update prompt", prompt_id=prompt_id, error=str(e))
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to update prompt"
        )

    if not db_prompt:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Prompt not found")
    logger.info(
        "Prompt updated",
        prompt_id=prompt_id,
        current_version_id=db_prompt.current_version_id,
        versions=len(db_prompt.versions)
    )
    return db_prompt


@router.post("/{prompt_id}/versions/{version_id}/restore", response_model=Prompt)
async def restore_prompt_version(
    prompt_id: str,
    version_id: str,
    context: SessionContext = Depends(get_session_context)
):
    """Copy an earlier version forward as the current one"""
    try:
        db_prompt = prompt_crud.restore_version(context.db, prompt_id, version_id, context.user_id)
    except LookupError:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Version not found")
    if not db_prompt:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Prompt not found")
    return db_prompt


@router.delete("/{prompt_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_prompt(
    prompt_id: str,
    context: SessionContext = Depends(get_session_context)
):
    """Delete a prompt and all of its versions"""
    if not prompt_crud.get_prompt(context.db, prompt_id, context.user_id):
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Prompt not found")

    try:
        cascade.delete_prompt(context.db, prompt_id)
    except Exception as e:
        logger.error("Failed to delete prompt", prompt_id=prompt_id, error=str(e))
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to delete prompt"
        )
