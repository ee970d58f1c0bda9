"""
association-sync: reconcile facility location records into remote association trees.

Each validated record (area/building/floor/room for a site) is applied to the
site's association tree with a fetch -> find-or-create -> publish cycle, so the
same location path is only ever created once.
"""

from association_sync.reconciliation.tree import AssociationTree, LocationNode, NodeType
from association_sync.reconciliation.engine import AssociationReconciler, ReconciliationReport

__version__ = "0.1.0"

__all__ = [
    "AssociationTree",
    "LocationNode",
    "NodeType",
    "AssociationReconciler",
    "ReconciliationReport",
]
