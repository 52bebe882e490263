"""Materialized folder tree built once per refresh from a flat folder list."""
from dataclasses import dataclass, field
from typing import Any, Dict, Iterable, List, Optional


@dataclass
class FolderNode:
    folder: Any
    children: List[int] = field(default_factory=list)


@dataclass
class FolderTree:
    """Arena of folder nodes; ``children`` and ``roots`` hold arena indices"""
    nodes: List[FolderNode] = field(default_factory=list)
    index: Dict[str, int] = field(default_factory=dict)
    roots: List[int] = field(default_factory=list)

    def node(self, folder_id: str) -> FolderNode:
        return self.nodes[self.index[folder_id]]

    def children_of(self, folder_id: Optional[str]) -> List[Any]:
        """Folders directly under ``folder_id`` (top level for None)"""
        if folder_id is None:
            positions = self.roots
        elif folder_id in self.index:
            positions = self.node(folder_id).children
        else:
            positions = []
        return [self.nodes[i].folder for i in positions]

    def to_nested(self) -> List[dict]:
        """Nested dicts from the roots down, in input order at every level"""
        def render(position: int) -> dict:
            node = self.nodes[position]
            folder = node.folder
            return {
                "id": folder.id,
                "name": folder.name,
                "parent_folder_id": folder.parent_folder_id,
                "is_favorite": bool(folder.is_favorite),
                "children": [render(child) for child in node.children],
            }

        return [render(root) for root in self.roots]


def build_folder_tree(folders: Iterable[Any]) -> FolderTree:
    """Index ``folders`` by id and link each one under its parent.

    The parent graph must be acyclic. A folder whose parent is not in the
    input is kept in the arena but hangs off no root, so it is not rendered.
    """
    tree = FolderTree()
    for folder in folders:
        tree.index[folder.id] = len(tree.nodes)
        tree.nodes.append(FolderNode(folder=folder))

    for position, node in enumerate(tree.nodes):
        parent_id = node.folder.parent_folder_id
        if parent_id is None:
            tree.roots.append(position)
        elif parent_id in tree.index:
            tree.nodes[tree.index[parent_id]].children.append(position)

    return tree
