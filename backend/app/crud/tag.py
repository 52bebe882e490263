import random
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session
from typing import List, Optional, Sequence
from app.crud.cascade import query_in_chunks
from app.models.tag import Tag
from app.schemas.tag import TagCreate

TAG_COLORS = [
    "bg-red-500",
    "bg-orange-500",
    "bg-amber-500",
    "bg-emerald-500",
    "bg-teal-500",
    "bg-sky-500",
    "bg-indigo-500",
    "bg-fuchsia-500",
]


def get_all_tags(db: Session) -> List[Tag]:
    return db.query(Tag).order_by(Tag.created_at, Tag.id).all()


def get_tag(db: Session, tag_id: str) -> Optional[Tag]:
    return db.query(Tag).filter(Tag.id == tag_id).first()


def get_tag_by_name(db: Session, name: str) -> Optional[Tag]:
    return db.query(Tag).filter(Tag.name == Tag.normalize_name(name)).first()


def get_or_create_tag(db: Session, tag: TagCreate) -> Tag:
    """Return the tag with this name (case-insensitive), creating it if needed.

    The unique index on the normalized name is the source of truth: when a
    concurrent request inserts the same name first, the insert fails and the
    winner's row is returned.
    """
    name = Tag.normalize_name(tag.name)
    if not name:
        raise ValueError("Tag name is required")

    existing = get_tag_by_name(db, name)
    if existing:
        return existing

    db_tag = Tag(name=name, color=tag.color or random.choice(TAG_COLORS))
    db.add(db_tag)
    try:
        db.commit()
    except IntegrityError:
        db.rollback()
        existing = get_tag_by_name(db, name)
        if existing is None:
            raise
        return existing
    db.refresh(db_tag)
    return db_tag


def missing_tag_ids(db: Session, tag_ids: Sequence[str]) -> List[str]:
    """Ids from ``tag_ids`` that do not name an existing tag"""
    if not tag_ids:
        return []
    found = {row.id for row in query_in_chunks(db.query(Tag.id), Tag.id, list(set(tag_ids)))}
    return [tag_id for tag_id in tag_ids if tag_id not in found]
