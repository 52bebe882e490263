"""
Cascade delete tests.

Covers the dependency walk (folder closure, project and tag fan-out),
chunked membership queries and all-or-nothing commits.

Run with: pytest backend/tests/test_cascade.py -v
"""
import pytest
from sqlalchemy import event
from unittest.mock import patch

from app.crud import cascade
from app.database.connection import engine
from app.models import Folder, Project, Prompt, PromptTag, PromptVersion, Tag


class StatementCounter:
    """Counts SELECT statements issued on the engine while active."""

    def __init__(self):
        self.selects = 0

    def _count(self, conn, cursor, statement, parameters, context, executemany):
        if statement.lstrip().upper().startswith("SELECT"):
            self.selects += 1

    def __enter__(self):
        event.listen(engine, "before_cursor_execute", self._count)
        return self

    def __exit__(self, *exc):
        event.remove(engine, "before_cursor_execute", self._count)


# =============================================================================
# Dependency walk
# =============================================================================

class TestFolderClosure:
    """closure(f) holds f and its whole subtree, nothing else."""

    def test_closure_contains_self_children_and_descendants(self, make_project, make_folder, db):
        project = make_project()
        root = make_folder(project, "root")
        child = make_folder(project, "child", parent=root)
        grandchild = make_folder(project, "grandchild", parent=child)
        sibling = make_folder(project, "sibling")
        nephew = make_folder(project, "nephew", parent=sibling)

        closure = cascade.folder_closure(db, root.id)

        assert closure[0] == root.id
        assert set(closure) == {root.id, child.id, grandchild.id}
        assert sibling.id not in closure
        assert nephew.id not in closure

    def test_closure_of_leaf_is_itself(self, make_project, make_folder, db):
        project = make_project()
        leaf = make_folder(project, "leaf")

        assert cascade.folder_closure(db, leaf.id) == [leaf.id]

    def test_prompt_reachable_twice_is_reported_once(self, make_project, make_folder, make_prompt, db):
        project = make_project()
        folder = make_folder(project)
        prompt = make_prompt(project, folder=folder)

        plan = cascade.collect_dependents(db, Project, [project.id])

        assert plan[Prompt] == [prompt.id]
        assert plan[PromptVersion] == [prompt.current_version_id]

    def test_root_ids_are_deduplicated(self, make_project, db):
        project = make_project()

        plan = cascade.collect_dependents(db, Project, [project.id, project.id])

        assert plan == {Project: [project.id]}


# =============================================================================
# Chunked membership queries
# =============================================================================

class TestChunkedQueries:
    """Membership filters never carry more than the configured number of values."""

    def test_chunked_splits_into_bounded_groups(self):
        groups = list(cascade.chunked(list(range(65)), 30))

        assert [len(g) for g in groups] == [30, 30, 5]
        assert [v for g in groups for v in g] == list(range(65))

    def test_chunked_rejects_non_positive_size(self):
        with pytest.raises(ValueError):
            list(cascade.chunked([1, 2], 0))

    def test_35_ids_issue_two_queries(self, make_project, make_folder, db):
        project = make_project()
        ids = [make_folder(project, f"folder {i}").id for i in range(35)]
        single = {f.id for f in db.query(Folder).filter(Folder.id.in_(ids)).all()}

        with StatementCounter() as counter:
            rows = cascade.query_in_chunks(db.query(Folder), Folder.id, ids, chunk_size=30)

        assert counter.selects == 2
        assert {f.id for f in rows} == single
        assert len(rows) == 35

    def test_default_chunk_size_comes_from_settings(self, make_project, make_folder, db):
        project = make_project()
        ids = [make_folder(project, f"folder {i}").id for i in range(7)]

        with patch.object(cascade.settings, "membership_query_limit", 3):
            with StatementCounter() as counter:
                rows = cascade.query_in_chunks(db.query(Folder.id), Folder.id, ids)

        assert counter.selects == 3
        assert len(rows) == 7

    def test_empty_values_issue_no_query(self, db):
        with StatementCounter() as counter:
            assert cascade.query_in_chunks(db.query(Folder), Folder.id, []) == []
        assert counter.selects == 0


# =============================================================================
# Deletes
# =============================================================================

class TestDeleteProject:

    def test_removes_everything_under_the_project(self, make_project, make_folder, make_prompt, make_tag, db):
        project = make_project()
        other = make_project("Other")
        tag = make_tag("writing")
        folder = make_folder(project)
        sub = make_folder(project, "sub", parent=folder)
        make_prompt(project, folder=sub, tags=[tag])
        make_prompt(project)
        survivor = make_prompt(other, tags=[tag])
        project_id = project.id

        removed = cascade.delete_project(db, project_id)

        assert removed["projects"] == 1
        assert removed["folders"] == 2
        assert removed["prompts"] == 2
        assert db.query(Project).filter(Project.id == project_id).count() == 0
        assert db.query(Folder).filter(Folder.project_id == project_id).count() == 0
        assert db.query(Prompt).filter(Prompt.project_id == project_id).count() == 0
        remaining_versions = db.query(PromptVersion).all()
        assert [v.prompt_id for v in remaining_versions] == [survivor.id]
        # The tag itself is shared and stays
        assert db.query(Tag).filter(Tag.id == tag.id).count() == 1
        assert db.query(PromptTag).filter(PromptTag.prompt_id == survivor.id).count() == 1

    def test_prompt_without_folder_is_removed(self, make_project, make_prompt, db):
        project = make_project()
        make_prompt(project, folder=None)
        project_id = project.id

        cascade.delete_project(db, project_id)

        assert db.query(Prompt).filter(Prompt.project_id == project_id).count() == 0

    def test_many_nested_folders_beyond_one_chunk(self, make_project, make_folder, db):
        project = make_project()
        parent = None
        for i in range(40):
            parent = make_folder(project, f"level {i}", parent=parent)

        removed = cascade.delete_project(db, project.id)

        assert removed["folders"] == 40
        assert db.query(Folder).count() == 0

    def test_failure_leaves_everything_in_place(self, make_project, make_folder, make_prompt, db):
        project = make_project()
        folder = make_folder(project)
        make_prompt(project, folder=folder)
        real_detach = cascade._detach_self_references

        def fail_on_folders(session, target, target_ids):
            if target is Folder:
                raise RuntimeError("store unavailable")
            real_detach(session, target, target_ids)

        with patch.object(cascade, "_detach_self_references", side_effect=fail_on_folders):
            with pytest.raises(RuntimeError):
                cascade.delete_project(db, project.id)

        db.expire_all()
        assert db.query(Project).count() == 1
        assert db.query(Folder).count() == 1
        assert db.query(Prompt).count() == 1
        assert db.query(PromptVersion).count() == 1


class TestDeleteFolder:

    def test_siblings_survive(self, make_project, make_folder, make_prompt, db):
        project = make_project()
        target = make_folder(project, "target")
        child = make_folder(project, "child", parent=target)
        sibling = make_folder(project, "sibling")
        doomed = make_prompt(project, folder=child)
        kept = make_prompt(project, folder=sibling)
        doomed_id = doomed.id

        cascade.delete_folder(db, target.id)

        remaining = {f.id for f in db.query(Folder).all()}
        assert remaining == {sibling.id}
        assert db.query(Prompt).filter(Prompt.id == doomed_id).count() == 0
        assert db.query(PromptVersion).filter(PromptVersion.prompt_id == doomed_id).count() == 0
        assert db.query(Prompt).filter(Prompt.id == kept.id).count() == 1

    def test_leaf_folder_deletes_itself_and_its_prompts(self, make_project, make_folder, make_prompt, db):
        project = make_project()
        leaf = make_folder(project)
        make_prompt(project, folder=leaf)
        loose = make_prompt(project)

        removed = cascade.delete_folder(db, leaf.id)

        assert removed["folders"] == 1
        assert removed["prompts"] == 1
        assert [p.id for p in db.query(Prompt).all()] == [loose.id]


class TestDeleteTag:

    def test_tag_is_detached_and_other_tags_remain(self, make_project, make_prompt, make_tag, db):
        project = make_project()
        doomed = make_tag("draft")
        kept = make_tag("email")
        prompt = make_prompt(project, tags=[doomed, kept])
        other = make_prompt(project, tags=[doomed])

        removed = cascade.delete_tag(db, doomed.id)

        assert removed == {"prompt_tags": 2, "tags": 1}
        db.expire_all()
        assert db.get(Prompt, prompt.id).tags == [kept.id]
        assert db.get(Prompt, other.id).tags == []
        assert db.query(Prompt).count() == 2
