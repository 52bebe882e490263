"""
View filter tests - which prompts are visible for a sidebar selection.

Run with: pytest backend/tests/test_view_filter.py -v
"""
from types import SimpleNamespace

import pytest

from app.services.view_filter import ViewSelection, filter_prompts


def prompt(id, project_id, folder_id=None, tags=()):
    return SimpleNamespace(id=id, project_id=project_id, folder_id=folder_id, tags=list(tags))


@pytest.fixture
def prompts():
    return [
        prompt("p1", "proj1", None, ["t1"]),
        prompt("p2", "proj1", "f1", []),
        prompt("p3", "proj2", None, ["t1"]),
        prompt("p4", "proj1", "f1", ["t1", "t2"]),
    ]


def ids(result):
    return [p.id for p in result]


class TestProjectMode:

    def test_project_folder_and_tag_narrow_together(self, prompts):
        selection = ViewSelection(project_id="proj1", folder_id=None, tag_id="t1")

        assert ids(filter_prompts(prompts[:3], selection)) == ["p1"]

    def test_project_only_keeps_input_order(self, prompts):
        assert ids(filter_prompts(prompts, ViewSelection(project_id="proj1"))) == ["p1", "p2", "p4"]

    def test_folder_narrows_project(self, prompts):
        selection = ViewSelection(project_id="proj1", folder_id="f1")

        assert ids(filter_prompts(prompts, selection)) == ["p2", "p4"]

    def test_folder_and_tag(self, prompts):
        selection = ViewSelection(project_id="proj1", folder_id="f1", tag_id="t2")

        assert ids(filter_prompts(prompts, selection)) == ["p4"]

    def test_no_project_selected_shows_nothing(self, prompts):
        assert filter_prompts(prompts, ViewSelection(tag_id="t1")) == []


class TestAllPromptsMode:

    def test_all_prompts_without_tag(self, prompts):
        assert ids(filter_prompts(prompts, ViewSelection(show_all=True))) == ["p1", "p2", "p3", "p4"]

    def test_all_prompts_with_tag(self, prompts):
        selection = ViewSelection(show_all=True, tag_id="t1")

        assert ids(filter_prompts(prompts, selection)) == ["p1", "p3", "p4"]


class TestIdempotence:

    def test_same_selection_same_output(self, prompts):
        selection = ViewSelection(project_id="proj1", tag_id="t1")

        first = filter_prompts(prompts, selection)
        second = filter_prompts(prompts, selection)

        assert ids(first) == ids(second)

    def test_filter_does_not_mutate_input(self, prompts):
        before = ids(prompts)
        filter_prompts(prompts, ViewSelection(show_all=True, tag_id="t2"))

        assert ids(prompts) == before


class TestTransitions:

    def test_select_project_resets_folder_and_leaves_all_mode(self):
        start = ViewSelection(project_id="proj1", folder_id="f1", tag_id="t1", show_all=True)

        selection = start.select_project("proj2")

        assert selection == ViewSelection(project_id="proj2", folder_id=None, tag_id="t1", show_all=False)

    def test_select_folder_keeps_tag_and_leaves_all_mode(self):
        start = ViewSelection(project_id="proj1", tag_id="t1", show_all=True)

        selection = start.select_folder("f1")

        assert selection.folder_id == "f1"
        assert selection.tag_id == "t1"
        assert selection.show_all is False

    def test_show_all_clears_project_and_folder(self):
        start = ViewSelection(project_id="proj1", folder_id="f1", tag_id="t1")

        selection = start.show_all_prompts()

        assert selection.project_id is None
        assert selection.folder_id is None
        assert selection.tag_id == "t1"
        assert selection.show_all is True

    def test_transitions_return_new_selections(self):
        start = ViewSelection(project_id="proj1")

        start.select_tag("t1")

        assert start.tag_id is None
