"""
Association tree reconciliation.

This package contains:
- sentinels: classification of "no data" field values
- validator: row acceptance checks and path construction
- tree: LocationNode / AssociationTree model
- resolver: grouping node and find-or-create path resolution
- client: fetch/publish adapter over the association API
- engine: the per-record fetch -> resolve -> publish loop
- racks: rack insertion under the room/floor named by a record
"""

from association_sync.reconciliation.errors import (
    ReconciliationError,
    RowFailure,
    FetchFailure,
    PublishFailure,
    PrefilterFailure,
    FatalError,
    InputSourceError,
)
from association_sync.reconciliation.sentinels import is_absent
from association_sync.reconciliation.tree import AssociationTree, LocationNode, NodeType
from association_sync.reconciliation.resolver import ensure_grouping_node, resolve_path

__all__ = [
    "ReconciliationError",
    "RowFailure",
    "FetchFailure",
    "PublishFailure",
    "PrefilterFailure",
    "FatalError",
    "InputSourceError",
    "is_absent",
    "AssociationTree",
    "LocationNode",
    "NodeType",
    "ensure_grouping_node",
    "resolve_path",
]
