"""
Pydantic models for the external data shapes this package reads and writes.

Usage:
    from association_sync.schemas import FetchEnvelope, PublishAck, SiteEntry
"""

from .envelopes import FetchEnvelope, PublishAck, TreeDocumentShape, TreeNodeShape
from .sites import SiteEntry

__all__ = [
    'FetchEnvelope',
    'PublishAck',
    'TreeDocumentShape',
    'TreeNodeShape',
    'SiteEntry',
]
