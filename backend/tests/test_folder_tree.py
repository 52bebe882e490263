"""
Folder tree tests - arena built once from a flat folder list.

Run with: pytest backend/tests/test_folder_tree.py -v
"""
from types import SimpleNamespace

from app.services.folder_tree import build_folder_tree


def folder(id, parent=None, name=None, favorite=False):
    return SimpleNamespace(id=id, name=name or id, parent_folder_id=parent, is_favorite=favorite)


class TestBuildFolderTree:

    def test_roots_and_children_follow_input_order(self):
        folders = [
            folder("a"),
            folder("a2", parent="a"),
            folder("b"),
            folder("a1", parent="a"),
        ]

        tree = build_folder_tree(folders)

        assert [f.id for f in tree.children_of(None)] == ["a", "b"]
        assert [f.id for f in tree.children_of("a")] == ["a2", "a1"]
        assert tree.children_of("b") == []

    def test_children_hold_arena_indices(self):
        tree = build_folder_tree([folder("root"), folder("leaf", parent="root")])

        root = tree.node("root")
        assert root.children == [tree.index["leaf"]]
        assert tree.nodes[root.children[0]].folder.id == "leaf"

    def test_child_listed_before_parent_is_still_linked(self):
        tree = build_folder_tree([folder("child", parent="parent"), folder("parent")])

        assert [f.id for f in tree.children_of("parent")] == ["child"]
        assert [f.id for f in tree.children_of(None)] == ["parent"]

    def test_orphan_is_indexed_but_not_rendered(self):
        tree = build_folder_tree([folder("top"), folder("orphan", parent="gone")])

        assert "orphan" in tree.index
        assert [node["id"] for node in tree.to_nested()] == ["top"]

    def test_unknown_folder_has_no_children(self):
        assert build_folder_tree([]).children_of("missing") == []

    def test_to_nested_renders_every_level(self):
        tree = build_folder_tree([
            folder("a", favorite=True),
            folder("b", parent="a"),
            folder("c", parent="b"),
        ])

        nested = tree.to_nested()

        assert nested == [{
            "id": "a",
            "name": "a",
            "parent_folder_id": None,
            "is_favorite": True,
            "children": [{
                "id": "b",
                "name": "b",
                "parent_folder_id": "a",
                "is_favorite": False,
                "children": [{
                    "id": "c",
                    "name": "c",
                    "parent_folder_id": "b",
                    "is_favorite": False,
                    "children": [],
                }],
            }],
        }]
