"""
Workspace Hierarchy Snapshot & Name Lookup

The hierarchy is fetched fresh per request (spaces -> folderless lists,
folders -> lists) and searched by case-insensitive exact name. Duplicate
names resolve to the FIRST node in traversal order; no ambiguity error.
"""

import logging
from dataclasses import dataclass, field
from typing import Dict, Iterator, List, Optional, Tuple

logger = logging.getLogger(__name__)

NODE_TYPES = ("workspace", "space", "folder", "list", "task")


@dataclass
class HierarchyNode:
    id: str
    name: str
    type: str
    children: List["HierarchyNode"] = field(default_factory=list)


def walk(root: HierarchyNode) -> Iterator[HierarchyNode]:
    """Pre-order depth-first walk using an explicit stack."""
    stack = [root]
    while stack:
        node = stack.pop()
        yield node
        # reversed so the first child is visited first
        stack.extend(reversed(node.children))


class HierarchyIndex:
    """
    Read-only index over one hierarchy snapshot.

    Nodes are kept in an arena keyed by ``(type, id)`` (ids are only unique
    per entity type) plus a traversal-ordered list used for name lookups.
    """

    def __init__(self, root: HierarchyNode):
        self.root = root
        self._arena: Dict[Tuple[str, str], HierarchyNode] = {}
        self._order: List[HierarchyNode] = []
        for node in walk(root):
            self._arena.setdefault((node.type, node.id), node)
            self._order.append(node)

    def get(self, kind: str, node_id: str) -> Optional[HierarchyNode]:
        return self._arena.get((kind, str(node_id)))

    def nodes(self, kind: Optional[str] = None) -> List[HierarchyNode]:
        if kind is None:
            return list(self._order)
        return [n for n in self._order if n.type == kind]

    def lists(self) -> List[HierarchyNode]:
        """Every list in traversal order (folderless lists before folder lists per space)."""
        return self.nodes("list")

    def find_all_by_name(self, name: str, kind: str) -> List[HierarchyNode]:
        wanted = (name or "").lower()
        if not wanted:
            return []
        return [
            n for n in self._order if n.type == kind and n.name.lower() == wanted
        ]

    def find_by_name(self, name: str, kind: str) -> Optional[HierarchyNode]:
        matches = self.find_all_by_name(name, kind)
        if not matches:
            return None
        if len(matches) > 1:
            logger.warning(
                "%d %ss named %r; using first match %s (other ids: %s)",
                len(matches),
                kind,
                name,
                matches[0].id,
                ", ".join(m.id for m in matches[1:]),
            )
        return matches[0]


def find_by_name(
    tree: HierarchyNode, name: str, kind: str
) -> Optional[HierarchyNode]:
    """Case-insensitive exact lookup of the first ``kind`` node named ``name``."""
    return HierarchyIndex(tree).find_by_name(name, kind)


def fetch_workspace_hierarchy(service) -> HierarchyNode:
    """
    Build a hierarchy snapshot through the time-tracking service.

    Each space gets its folderless lists first, then its folders (each with
    its lists). Tasks are not included; list contents are fetched on demand.
    """
    root = HierarchyNode(
        id=str(service.team_id or "workspace"), name="Workspace", type="workspace"
    )

    for space in service.get_spaces():
        space_node = HierarchyNode(
            id=str(space["id"]), name=space.get("name", ""), type="space"
        )

        for lst in service.get_folderless_lists(space_node.id):
            space_node.children.append(
                HierarchyNode(id=str(lst["id"]), name=lst.get("name", ""), type="list")
            )

        for folder in service.get_folders(space_node.id):
            folder_node = HierarchyNode(
                id=str(folder["id"]), name=folder.get("name", ""), type="folder"
            )
            for lst in folder.get("lists", []):
                folder_node.children.append(
                    HierarchyNode(
                        id=str(lst["id"]), name=lst.get("name", ""), type="list"
                    )
                )
            space_node.children.append(folder_node)

        root.children.append(space_node)

    logger.debug(
        "Hierarchy snapshot: %d spaces, %d lists",
        len(root.children),
        sum(1 for n in walk(root) if n.type == "list"),
    )
    return root
