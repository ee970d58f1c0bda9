"""
Association tree model.

An association tree describes the logical layout of one site:

    AssociationTree (parentId = site id)
    └── diagram "High Level Diagram"   (grouping node)
        └── area
            └── building
                └── floor
                    └── room

Nodes are kept as mutable dataclasses so the resolver can append children in
place and the whole document can be published once per record.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, FrozenSet, Iterator, List, Optional, Tuple, Union


class NodeType(str, Enum):
    """Node types, listed from the top of the tree down."""

    DIAGRAM = "diagram"
    AREA = "area"
    BUILDING = "building"
    FLOOR = "floor"
    ROOM = "room"


# The only type that may appear directly below each type.
CHILD_TYPE: Dict[str, str] = {
    NodeType.DIAGRAM.value: NodeType.AREA.value,
    NodeType.AREA.value: NodeType.BUILDING.value,
    NodeType.BUILDING.value: NodeType.FLOOR.value,
    NodeType.FLOOR.value: NodeType.ROOM.value,
}

_KNOWN_KEYS = ("id", "name", "type", "parentId", "summary", "description", "children")
_OPTIONAL_KEYS = ("parentId", "summary", "description", "children")


def default_summary() -> Dict[str, Any]:
    """Summary block given to nodes created by the resolver."""
    return {
        "list": [{"label": "", "value": ""}],
        "type": "",
        "title": "",
        "description": "",
    }


@dataclass
class LocationNode:
    """
    A node of the association tree.

    Attributes:
        name: Display label; unique among siblings together with ``type``
        type: One of the NodeType values (kept as a plain string so nodes of
            types this package does not manage survive a round trip)
        id: Identifier assigned by the remote store; None for new nodes
        parent_id: Denormalized id of the owning node, when known
        summary: Opaque metadata, carried through unchanged
        description: Opaque metadata, carried through unchanged
        children: Child nodes; None when the server sent none
        extra: Keys of the server document this model does not interpret
    """

    name: Optional[str]
    type: Optional[str]
    id: Optional[str] = None
    parent_id: Optional[str] = None
    summary: Any = None
    description: Any = None
    children: Optional[List["LocationNode"]] = None
    extra: Dict[str, Any] = field(default_factory=dict)
    source_keys: FrozenSet[str] = field(default=frozenset(), repr=False, compare=False)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "LocationNode":
        """
        Build a node (and its subtree) from the remote JSON shape.

        Raises:
            ValueError: If the node is not an object or ``children`` is neither
                a list nor null
        """
        if not isinstance(data, dict):
            raise ValueError(f"Tree node must be an object, got {type(data).__name__}")
        children = _child_list(data)
        return cls(
            id=data.get("id"),
            name=data.get("name"),
            type=data.get("type"),
            parent_id=data.get("parentId"),
            summary=data.get("summary"),
            description=data.get("description"),
            children=None if children is None else [cls.from_dict(c) for c in children],
            extra={k: v for k, v in data.items() if k not in _KNOWN_KEYS},
            source_keys=frozenset(k for k in _OPTIONAL_KEYS if k in data),
        )

    def to_dict(self) -> Dict[str, Any]:
        """
        Serialize back to the remote JSON shape.

        ``id`` is always written (null for new nodes). Optional keys are written
        when they hold a value or were present in the fetched document.
        """
        payload: Dict[str, Any] = {"id": self.id, "name": self.name, "type": self.type}
        if self.parent_id is not None or "parentId" in self.source_keys:
            payload["parentId"] = self.parent_id
        if self.summary is not None or "summary" in self.source_keys:
            payload["summary"] = self.summary
        if self.description is not None or "description" in self.source_keys:
            payload["description"] = self.description
        payload.update(self.extra)
        if self.children is not None or "children" in self.source_keys:
            payload["children"] = (
                None if self.children is None else [c.to_dict() for c in self.children]
            )
        return payload

    @property
    def is_new(self) -> bool:
        """True until the remote store assigns an id."""
        return self.id is None

    def key(self) -> Tuple[Optional[str], Optional[str]]:
        """Sibling uniqueness key."""
        return (self.type, self.name)


@dataclass
class AssociationTree:
    """Root document of a site: ``{parentId, children}``."""

    parent_id: Optional[str] = None
    children: List[LocationNode] = field(default_factory=list)
    extra: Dict[str, Any] = field(default_factory=dict)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "AssociationTree":
        """
        Build the tree from a fetched document. A null ``children`` is empty.

        Raises:
            ValueError: If the document or any node in it is malformed
        """
        if not isinstance(data, dict):
            raise ValueError(f"Tree document must be an object, got {type(data).__name__}")
        children = _child_list(data)
        return cls(
            parent_id=data.get("parentId"),
            children=[LocationNode.from_dict(c) for c in children or []],
            extra={k: v for k, v in data.items() if k not in ("parentId", "children")},
        )

    def to_payload(self) -> Dict[str, Any]:
        """Full document submitted on publish. Never a diff."""
        return {
            "parentId": self.parent_id,
            "children": [c.to_dict() for c in self.children],
        }


def _child_list(data: Dict[str, Any]) -> Optional[List[Any]]:
    children = data.get("children")
    if children is not None and not isinstance(children, list):
        raise ValueError(
            f"'children' of {data.get('type')} '{data.get('name')}' must be a list, "
            f"got {type(children).__name__}"
        )
    return children


def new_location_node(
    node_type: Union[NodeType, str],
    name: str,
    parent: Optional[LocationNode] = None,
) -> LocationNode:
    """
    Create an in-memory node unknown to the remote store.

    The node gets ``id=None``, default summary/description and an empty child
    list. ``parent_id`` is only set when the parent already has an id.
    """
    return LocationNode(
        id=None,
        name=name,
        type=NodeType(node_type).value,
        parent_id=parent.id if parent is not None and parent.id else None,
        summary=default_summary(),
        description="",
        children=[],
    )


def iter_nodes(root: Union[AssociationTree, LocationNode]) -> Iterator[LocationNode]:
    """Yield every node below ``root`` depth-first, parents before children."""
    stack = list(reversed(root.children or []))
    while stack:
        node = stack.pop()
        yield node
        stack.extend(reversed(node.children or []))


def find_placement_node(
    tree: AssociationTree,
    floor_name: Optional[str],
    room_name: Optional[str] = None,
) -> Optional[LocationNode]:
    """
    Find the node equipment should be attached to.

    A room named ``room_name`` on a floor named ``floor_name`` is preferred;
    otherwise the first floor named ``floor_name`` is returned. When
    ``floor_name`` is None, any room named ``room_name`` matches.
    """
    fallback = None
    for node in iter_nodes(tree):
        if node.type != NodeType.FLOOR.value:
            continue
        if floor_name is not None and node.name != floor_name:
            continue
        if room_name is not None:
            for child in node.children or []:
                if child.type == NodeType.ROOM.value and child.name == room_name:
                    return child
        if fallback is None and floor_name is not None:
            fallback = node
    return fallback


def find_duplicate_siblings(
    root: Union[AssociationTree, LocationNode],
) -> List[Tuple[Optional[str], Optional[str], Optional[str]]]:
    """
    Report sibling sets that break ``(type, name)`` uniqueness.

    Returns:
        List of (parent name, type, name) tuples, one per duplicated key.
        The parent name is None for the root's children.
    """
    duplicates = []
    parents: List[Tuple[Optional[str], List[LocationNode]]] = [(None, root.children or [])]
    parents.extend((node.name, node.children or []) for node in iter_nodes(root))

    for parent_name, children in parents:
        seen = set()
        reported = set()
        for child in children:
            key = child.key()
            if key in seen and key not in reported:
                duplicates.append((parent_name, key[0], key[1]))
                reported.add(key)
            seen.add(key)
    return duplicates
