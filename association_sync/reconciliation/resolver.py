"""
Grouping node normalization and find-or-create path resolution.

Both operations mutate the tree in place and return live references, so the
caller can publish the same ``AssociationTree`` object afterwards.

Matching is exact and case-sensitive on ``(type, name)``. "Area 1" and
"area 1 " are different nodes: the remote store's own uniqueness rules are
unknown, so names are never normalized here.
"""

import logging
from dataclasses import dataclass, field
from typing import List, Optional, Sequence, Tuple

from association_sync.reconciliation.tree import (
    CHILD_TYPE,
    AssociationTree,
    LocationNode,
    NodeType,
    new_location_node,
)

logger = logging.getLogger(__name__)

GROUPING_NODE_NAME = "High Level Diagram"

PathSegment = Tuple[str, str]


@dataclass
class PathResolution:
    """Result of resolving one path."""

    leaf: LocationNode
    created: List[LocationNode] = field(default_factory=list)

    @property
    def changed(self) -> bool:
        return bool(self.created)


def ensure_grouping_node(
    tree: AssociationTree,
    name: str = GROUPING_NODE_NAME,
    created: Optional[List[LocationNode]] = None,
) -> LocationNode:
    """
    Return the singleton grouping node of ``tree``, creating it if needed.

    A new grouping node is inserted as the first root child. Calling this
    twice on the same tree returns the same node.

    Args:
        tree: Tree to normalize (mutated in place)
        name: Reserved name of the grouping node
        created: Optional list that receives the node if it was created
    """
    if tree.children is None:
        tree.children = []

    for child in tree.children:
        if child.type == NodeType.DIAGRAM.value and child.name == name:
            if child.children is None:
                child.children = []
            return child

    node = LocationNode(
        id=None,
        name=name,
        type=NodeType.DIAGRAM.value,
        parent_id=tree.parent_id,
        summary={"list": [], "type": "house", "title": "", "description": ""},
        description="",
        children=[],
    )
    tree.children.insert(0, node)
    logger.debug(f"Created grouping node '{name}' under {tree.parent_id}")
    if created is not None:
        created.append(node)
    return node


def find_child(parent: LocationNode, node_type: str, name: str) -> Optional[LocationNode]:
    """Find a direct child by exact ``(type, name)``."""
    for child in parent.children or []:
        if child.type == node_type and child.name == name:
            return child
    return None


def resolve_path(start: LocationNode, path: Sequence[PathSegment]) -> PathResolution:
    """
    Walk ``path`` below ``start``, reusing existing nodes and creating the rest.

    Every level is find-or-create, so rows sharing a prefix converge on one
    subtree and re-running a row creates nothing. Existing children are never
    removed or reordered.

    Args:
        start: Node to resolve from (usually the grouping node)
        path: ``(type, name)`` segments, outermost first

    Returns:
        PathResolution with the deepest node and the nodes created on the way

    Raises:
        ValueError: If a segment's type may not nest under the current node
    """
    current = start
    created: List[LocationNode] = []

    for node_type, name in path:
        node_type = NodeType(node_type).value
        expected = CHILD_TYPE.get(current.type)
        if node_type != expected:
            raise ValueError(
                f"A {node_type} cannot be placed under {current.type} '{current.name}'"
            )

        if current.children is None:
            current.children = []

        child = find_child(current, node_type, name)
        if child is None:
            child = new_location_node(node_type, name, parent=current)
            current.children.append(child)
            created.append(child)
            logger.debug(f"Created {node_type} '{name}' under {current.type} '{current.name}'")
        elif child.children is None:
            child.children = []

        current = child

    return PathResolution(leaf=current, created=created)


def apply_path(
    tree: AssociationTree,
    path: Sequence[PathSegment],
    grouping_name: str = GROUPING_NODE_NAME,
) -> PathResolution:
    """
    Ensure the grouping node exists and resolve ``path`` below it.

    ``created`` lists every node added to ``tree``, grouping node included.
    """
    created: List[LocationNode] = []
    grouping = ensure_grouping_node(tree, grouping_name, created=created)
    resolution = resolve_path(grouping, path)
    resolution.created[:0] = created
    return resolution
