"""
In-memory hierarchy construction over parent-pointer organization nodes.

Nodes are anything exposing the organization attributes (ORM rows in the
service, plain objects in tests). The whole table is indexed once by
``parent_id`` and trees are built iteratively from that index, so building
a tree costs one query regardless of its size.
"""
from __future__ import annotations
from typing import Any, Dict, Iterable, List, Optional

from .schema import OrganizationSchema, OrganizationTreeNode


def index_children(nodes: Iterable[Any]) -> Dict[Optional[int], List[Any]]:
    """Map parent id -> child nodes, keeping the order the nodes came in."""
    index: Dict[Optional[int], List[Any]] = {}
    for node in nodes:
        index.setdefault(node.parent_id, []).append(node)
    return index


def _to_tree(node: Any) -> OrganizationTreeNode:
    return OrganizationTreeNode.model_validate(node)


def _expand(roots: List[OrganizationTreeNode], index: Dict[Optional[int], List[Any]], seen: set) -> None:
    stack = list(roots)
    while stack:
        current = stack.pop()
        for child in index.get(current.id, []):
            # a node is placed once even if the parent graph has a cycle
            if child.id in seen:
                continue
            seen.add(child.id)
            subtree = _to_tree(child)
            current.children.append(subtree)
            stack.append(subtree)


def build_tree(nodes: Iterable[Any], root_id: int) -> Optional[OrganizationTreeNode]:
    """Tree rooted at ``root_id``, or None when no node has that id."""
    nodes = list(nodes)
    root = next((n for n in nodes if n.id == root_id), None)
    if root is None:
        return None

    tree = _to_tree(root)
    _expand([tree], index_children(nodes), {root.id})
    return tree


def build_forest(nodes: Iterable[Any]) -> List[OrganizationTreeNode]:
    """Trees for every top-level node (``parent_id`` is null)."""
    index = index_children(nodes)
    roots = [_to_tree(n) for n in index.get(None, [])]
    _expand(roots, index, {r.id for r in roots})
    return roots


def ancestry_path(nodes: Iterable[Any], node_id: int) -> List[OrganizationSchema]:
    """
    Walk ``parent_id`` upward from ``node_id`` and return the chain root first.

    Stops quietly on a dangling parent reference or a repeated node; an
    unknown starting id gives an empty path.
    """
    by_id = {n.id: n for n in nodes}
    path: List[OrganizationSchema] = []
    visited = set()
    current_id: Optional[int] = node_id
    while current_id is not None and current_id not in visited:
        node = by_id.get(current_id)
        if node is None:
            break
        visited.add(current_id)
        path.append(OrganizationSchema.model_validate(node))
        current_id = node.parent_id
    path.reverse()
    return path
