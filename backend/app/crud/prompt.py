import uuid
from sqlalchemy.orm import Session
from typing import List, Optional, Sequence
from app.crud import tag as tag_crud
from app.crud.project import get_project
from app.crud.folder import get_folder
from app.database.connection import atomic
from app.models.prompt import (
    Prompt, PromptVersion, PromptTag, DEFAULT_MODEL, DEFAULT_TEMPERATURE, DEFAULT_MAX_TOKENS
)
from app.schemas.prompt import PromptCreate, PromptUpdate


def default_model_settings() -> dict:
    return {
        "model": DEFAULT_MODEL,
        "temperature": DEFAULT_TEMPERATURE,
        "max_tokens": DEFAULT_MAX_TOKENS,
    }


def get_prompt(db: Session, prompt_id: str, owner_id: str) -> Optional[Prompt]:
    return db.query(Prompt).filter(
        Prompt.id == prompt_id,
        Prompt.owner_id == owner_id
    ).first()


def get_user_prompts(db: Session, owner_id: str) -> List[Prompt]:
    """All of a user's prompts in creation order"""
    return db.query(Prompt).filter(
        Prompt.owner_id == owner_id
    ).order_by(Prompt.created_at, Prompt.id).all()


def _validate_folder(db: Session, project_id: str, folder_id: Optional[str], owner_id: str) -> None:
    if folder_id is None:
        return
    folder = get_folder(db, folder_id, owner_id)
    if not folder:
        raise ValueError("Folder not found")
    if folder.project_id != project_id:
        raise ValueError("Folder belongs to a different project")


def _validate_tags(db: Session, tag_ids: Sequence[str]) -> List[str]:
    unique_ids = list(dict.fromkeys(tag_ids))
    missing = tag_crud.missing_tag_ids(db, unique_ids)
    if missing:
        raise ValueError(f"Unknown tag ids: {', '.join(missing)}")
    return unique_ids


def _set_tags(prompt: Prompt, tag_ids: List[str]) -> None:
    """Make the prompt's tag links match ``tag_ids``, keeping links that stay"""
    existing = {link.tag_id: link for link in prompt.tag_links}
    links = []
    for position, tag_id in enumerate(tag_ids):
        link = existing.get(tag_id) or PromptTag(tag_id=tag_id)
        link.position = position
        links.append(link)
    prompt.tag_links = links


def _append_version(prompt: Prompt, content: str, model_settings: dict) -> PromptVersion:
    next_number = max((v.version_number for v in prompt.versions), default=0) + 1
    version = PromptVersion(
        id=str(uuid.uuid4()),
        version_number=next_number,
        content=content,
        model=model_settings["model"],
        temperature=model_settings["temperature"],
        max_tokens=model_settings["max_tokens"],
    )
    prompt.versions.append(version)
    prompt.current_version_id = version.id
    return version


def create_prompt(db: Session, prompt: PromptCreate, owner_id: str) -> Prompt:
    """Create a prompt together with its first version in one commit"""
    _validate_folder(db, prompt.project_id, prompt.folder_id, owner_id)
    tag_ids = _validate_tags(db, prompt.tags)

    with atomic(db, "create_prompt"):
        db_prompt = Prompt(
            id=str(uuid.uuid4()),
            project_id=prompt.project_id,
            folder_id=prompt.folder_id,
            title=prompt.title,
            is_favorite=prompt.is_favorite,
            owner_id=owner_id,
        )
        _set_tags(db_prompt, tag_ids)
        version_settings = (
            prompt.model_settings.model_dump() if prompt.model_settings else default_model_settings()
        )
        _append_version(db_prompt, prompt.content, version_settings)
        db.add(db_prompt)

    db.refresh(db_prompt)
    return db_prompt


def update_prompt(db: Session, prompt_id: str, prompt_update: PromptUpdate, owner_id: str) -> Optional[Prompt]:
    """Update a prompt's metadata and, when its text or settings change, add a version.

    Versions are never edited: new content or model settings become version
    N+1 and the current version pointer moves to it.
    """
    db_prompt = get_prompt(db, prompt_id, owner_id)
    if not db_prompt:
        return None

    update_data = prompt_update.model_dump(exclude_unset=True)

    project_id = db_prompt.project_id
    if update_data.get("project_id") and update_data["project_id"] != project_id:
        if not get_project(db, update_data["project_id"], owner_id):
            raise ValueError("Project not found")
        project_id = update_data["project_id"]
    folder_id = update_data["folder_id"] if "folder_id" in update_data else db_prompt.folder_id
    if project_id != db_prompt.project_id and "folder_id" not in update_data:
        # The old folder does not exist in the new project
        folder_id = None
    _validate_folder(db, project_id, folder_id, owner_id)

    tag_ids = None
    if prompt_update.tags is not None:
        tag_ids = _validate_tags(db, prompt_update.tags)

    with atomic(db, "update_prompt"):
        db_prompt.project_id = project_id
        db_prompt.folder_id = folder_id
        if prompt_update.title is not None:
            db_prompt.title = prompt_update.title
        if prompt_update.is_favorite is not None:
            db_prompt.is_favorite = prompt_update.is_favorite
        if tag_ids is not None:
            _set_tags(db_prompt, tag_ids)

        current = db_prompt.current_version
        current_settings = current.model_settings if current else default_model_settings()
        new_content = prompt_update.content if prompt_update.content is not None else (current.content if current else "")
        new_settings = prompt_update.model_settings.model_dump() if prompt_update.model_settings else current_settings
        if current is None or new_content != current.content or new_settings != current_settings:
            _append_version(db_prompt, new_content, new_settings)

    db.refresh(db_prompt)
    return db_prompt


def restore_version(db: Session, prompt_id: str, version_id: str, owner_id: str) -> Optional[Prompt]:
    """Make an earlier version current again by copying it as the newest version"""
    db_prompt = get_prompt(db, prompt_id, owner_id)
    if not db_prompt:
        return None

    source = next((v for v in db_prompt.versions if v.id == version_id), None)
    if source is None:
        raise LookupError("Version not found")
    if source.id == db_prompt.current_version_id:
        return db_prompt

    with atomic(db, "restore_prompt_version"):
        _append_version(db_prompt, source.content, source.model_settings)

    db.refresh(db_prompt)
    return db_prompt
