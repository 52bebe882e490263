"""Cascading deletes over the project / folder / prompt / tag hierarchy.

Which rows depend on which is declared once in ``CASCADE_GRAPH``: each entity
type maps to the child types that point at it and the foreign-key attribute
they point with. ``collect_dependents`` walks that graph breadth-first from a
set of root ids, so a folder's subtree, a project's folders and prompts, and
every prompt's versions and tag links all fall out of the same loop.

``delete_cascade`` removes everything the walk found, children first, inside
a single transaction: either every row goes or none does.
"""
from collections import deque
from dataclasses import dataclass
from typing import Dict, Iterable, Iterator, List, Optional, Sequence, Tuple

from sqlalchemy.orm import Query, Session

from app.core.config import settings
from app.core.logging import cascade_logger
from app.core.monitoring import record_cascade_delete
from app.database.connection import atomic
from app.models import Folder, Project, Prompt, PromptTag, PromptVersion, Tag


@dataclass(frozen=True)
class Dependent:
    """Rows of ``model`` whose ``foreign_key`` column holds a parent id"""
    model: type
    foreign_key: str

    @property
    def column(self):
        return getattr(self.model, self.foreign_key)


CASCADE_GRAPH: Dict[type, Tuple[Dependent, ...]] = {
    Project: (Dependent(Folder, "project_id"), Dependent(Prompt, "project_id")),
    Folder: (Dependent(Folder, "parent_folder_id"), Dependent(Prompt, "folder_id")),
    Prompt: (Dependent(PromptVersion, "prompt_id"), Dependent(PromptTag, "prompt_id")),
    Tag: (Dependent(PromptTag, "tag_id"),),
}


def chunked(values: Sequence, size: int) -> Iterator[list]:
    if size < 1:
        raise ValueError("chunk size must be positive")
    for start in range(0, len(values), size):
        yield list(values[start:start + size])


def query_in_chunks(query: Query, column, values: Sequence, chunk_size: Optional[int] = None) -> list:
    """Run ``query`` filtered on ``column IN values`` in bounded batches.

    The store caps the number of values in one membership filter, so the
    values are split into groups of at most ``chunk_size`` (the configured
    ``membership_query_limit`` by default) and the results concatenated.
    """
    chunk_size = chunk_size or settings.membership_query_limit
    results = []
    for chunk in chunked(values, chunk_size):
        results.extend(query.filter(column.in_(chunk)).all())
    return results


def collect_dependents(db: Session, model: type, ids: Iterable[str]) -> Dict[type, List[str]]:
    """Breadth-first walk of CASCADE_GRAPH starting from ``ids`` of ``model``.

    Returns entity type -> ids in discovery order, roots included. Each id is
    reported once even when it is reachable along several edges (a prompt in
    a folder of a deleted project is found through both).
    """
    root_ids = list(dict.fromkeys(ids))
    found: Dict[type, List[str]] = {model: root_ids}
    seen: Dict[type, set] = {model: set(root_ids)}
    frontier = deque([(model, root_ids)])

    while frontier:
        parent, parent_ids = frontier.popleft()
        for dependent in CASCADE_GRAPH.get(parent, ()):
            rows = query_in_chunks(db.query(dependent.model.id), dependent.column, parent_ids)
            known = seen.setdefault(dependent.model, set())
            fresh = []
            for (row_id,) in rows:
                if row_id not in known:
                    known.add(row_id)
                    fresh.append(row_id)
            if fresh:
                found.setdefault(dependent.model, []).extend(fresh)
                frontier.append((dependent.model, fresh))

    return found


def folder_closure(db: Session, folder_id: str) -> List[str]:
    """The folder and all of its descendants, nearest first"""
    return collect_dependents(db, Folder, [folder_id])[Folder]


def _detach_self_references(db: Session, target: type, target_ids: List[str]) -> None:
    # A folder found through its project can come before its parent in the plan
    for dependent in CASCADE_GRAPH.get(target, ()):
        if dependent.model is not target:
            continue
        for chunk in chunked(target_ids, settings.membership_query_limit):
            db.query(target).filter(target.id.in_(chunk)).update(
                {dependent.foreign_key: None}, synchronize_session=False
            )


def delete_cascade(db: Session, model: type, ids: Iterable[str]) -> Dict[str, int]:
    """Delete ``ids`` of ``model`` and everything that depends on them.

    Types are deleted in reverse discovery order, so every child row is gone
    before the row it references. Within a self-referencing type (folders)
    the parent links are cleared first. Returns rows removed per table.
    """
    entity = model.__tablename__
    removed: Dict[str, int] = {}
    try:
        with atomic(db, f"cascade_delete_{entity}"):
            plan = collect_dependents(db, model, ids)
            for target in reversed(list(plan)):
                target_ids = list(reversed(plan[target]))
                _detach_self_references(db, target, target_ids)
                count = 0
                for chunk in chunked(target_ids, settings.membership_query_limit):
                    count += (
                        db.query(target)
                        .filter(target.id.in_(chunk))
                        .delete(synchronize_session=False)
                    )
                removed[target.__tablename__] = count
    except Exception as e:
        cascade_logger.error("Cascade delete failed", entity=entity, error=str(e))
        record_cascade_delete(entity, {}, success=False)
        raise

    # Bulk deletes bypass the identity map
    db.expire_all()
    cascade_logger.info("Cascade delete committed", entity=entity, removed=removed)
    record_cascade_delete(entity, removed)
    return removed


def delete_project(db: Session, project_id: str) -> Dict[str, int]:
    return delete_cascade(db, Project, [project_id])


def delete_folder(db: Session, folder_id: str) -> Dict[str, int]:
    return delete_cascade(db, Folder, [folder_id])


def delete_prompt(db: Session, prompt_id: str) -> Dict[str, int]:
    return delete_cascade(db, Prompt, [prompt_id])


def delete_tag(db: Session, tag_id: str) -> Dict[str, int]:
    """Delete a tag and detach it from every prompt that carries it"""
    return delete_cascade(db, Tag, [tag_id])
