"""Which prompts are visible for the current sidebar selection."""
from dataclasses import dataclass, replace
from typing import Iterable, List, Optional, Protocol, Sequence


class FilterablePrompt(Protocol):
    project_id: str
    folder_id: Optional[str]
    tags: Sequence[str]


@dataclass(frozen=True)
class ViewSelection:
    """Selection state of the prompt list.

    ``show_all`` and the project/folder pair are mutually exclusive modes;
    the tag narrows either mode. Transitions return a new selection.
    """
    project_id: Optional[str] = None
    folder_id: Optional[str] = None
    tag_id: Optional[str] = None
    show_all: bool = False

    def select_project(self, project_id: str) -> "ViewSelection":
        return replace(self, project_id=project_id, folder_id=None, show_all=False)

    def select_folder(self, folder_id: Optional[str]) -> "ViewSelection":
        return replace(self, folder_id=folder_id, show_all=False)

    def select_tag(self, tag_id: Optional[str]) -> "ViewSelection":
        return replace(self, tag_id=tag_id)

    def show_all_prompts(self) -> "ViewSelection":
        return replace(self, project_id=None, folder_id=None, show_all=True)


def _has_tag(prompt: FilterablePrompt, tag_id: Optional[str]) -> bool:
    return tag_id is None or tag_id in prompt.tags


def filter_prompts(prompts: Iterable[FilterablePrompt], selection: ViewSelection) -> List[FilterablePrompt]:
    """Visible prompts, in the order of ``prompts``"""
    if selection.show_all:
        return [p for p in prompts if _has_tag(p, selection.tag_id)]

    if not selection.project_id:
        return []

    return [
        p for p in prompts
        if p.project_id == selection.project_id
        and (selection.folder_id is None or p.folder_id == selection.folder_id)
        and _has_tag(p, selection.tag_id)
    ]
