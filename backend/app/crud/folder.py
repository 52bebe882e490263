from sqlalchemy.orm import Session
from typing import List, Optional
from app.crud.cascade import folder_closure
from app.models.folder import Folder
from app.schemas.folder import FolderCreate, FolderUpdate


def get_folder(db: Session, folder_id: str, owner_id: str) -> Optional[Folder]:
    return db.query(Folder).filter(
        Folder.id == folder_id,
        Folder.owner_id == owner_id
    ).first()


def get_user_folders(
    db: Session,
    owner_id: str,
    project_id: Optional[str] = None,
    favorites_only: bool = False
) -> List[Folder]:
    """Get a user's folders, optionally limited to one project or to favorites"""
    query = db.query(Folder).filter(Folder.owner_id == owner_id)

    if project_id:
        query = query.filter(Folder.project_id == project_id)
    if favorites_only:
        query = query.filter(Folder.is_favorite.is_(True))

    return query.order_by(Folder.created_at, Folder.id).all()


def _validate_parent(db: Session, project_id: str, parent_folder_id: Optional[str], owner_id: str) -> None:
    if parent_folder_id is None:
        return
    parent = get_folder(db, parent_folder_id, owner_id)
    if not parent:
        raise ValueError("Parent folder not found")
    if parent.project_id != project_id:
        raise ValueError("Parent folder belongs to a different project")


def create_folder(db: Session, folder: FolderCreate, owner_id: str) -> Folder:
    """Create a folder; the caller has already checked the project belongs to the user"""
    _validate_parent(db, folder.project_id, folder.parent_folder_id, owner_id)

    db_folder = Folder(
        project_id=folder.project_id,
        name=folder.name,
        parent_folder_id=folder.parent_folder_id,
        is_favorite=False,
        owner_id=owner_id
    )
    db.add(db_folder)
    db.commit()
    db.refresh(db_folder)
    return db_folder


def update_folder(db: Session, folder_id: str, folder_update: FolderUpdate, owner_id: str) -> Optional[Folder]:
    """Rename, move or (un)favorite a folder.

    Moving a folder under itself or one of its descendants would break the
    tree, so such a move is rejected.
    """
    db_folder = get_folder(db, folder_id, owner_id)
    if not db_folder:
        return None

    update_data = folder_update.model_dump(exclude_unset=True)

    if "parent_folder_id" in update_data:
        new_parent = update_data["parent_folder_id"]
        _validate_parent(db, db_folder.project_id, new_parent, owner_id)
        if new_parent is not None and new_parent in folder_closure(db, folder_id):
            raise ValueError("A folder cannot be moved into itself or one of its subfolders")
        db_folder.parent_folder_id = new_parent

    if update_data.get("name") is not None:
        db_folder.name = update_data["name"]
    if update_data.get("is_favorite") is not None:
        db_folder.is_favorite = update_data["is_favorite"]

    db.commit()
    db.refresh(db_folder)
    return db_folder


def toggle_favorite(db: Session, folder_id: str, owner_id: str) -> Optional[Folder]:
    db_folder = get_folder(db, folder_id, owner_id)
    if not db_folder:
        return None
    db_folder.is_favorite = not db_folder.is_favorite
    db.commit()
    db.refresh(db_folder)
    return db_folder
