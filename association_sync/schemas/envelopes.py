"""
Response envelopes returned by the association API.

The fetch endpoint wraps the tree document under ``data``; the publish endpoint
answers with a status code field (``messageCode`` by default) and whatever else
the server chooses to send back.
"""

from typing import Any, Dict, List, Optional
from pydantic import BaseModel, ConfigDict, Field


class FetchEnvelope(BaseModel):
    """
    Envelope of ``GET /association/{site_id}``.

    Only ``data`` is interpreted; it must be a JSON object holding the
    ``parentId`` and ``children`` of the site's association tree.
    """

    model_config = ConfigDict(extra='allow')

    data: Dict[str, Any] = Field(description="Association tree document")


class TreeNodeShape(BaseModel):
    """
    Structural check of one tree node.

    Only the nesting is checked: every node is an object and ``children``, when
    present, is a list of nodes or null. Values are not kept; the tree model is
    built from the raw document so unknown keys round-trip untouched.
    """

    model_config = ConfigDict(extra='allow')

    children: Optional[List['TreeNodeShape']] = None


class TreeDocumentShape(BaseModel):
    """Structural check of the ``data`` document: ``{parentId, children}``."""

    model_config = ConfigDict(extra='allow')

    children: Optional[List[TreeNodeShape]] = None


class PublishAck(BaseModel):
    """
    Acknowledgement of a tree publish.

    ``status_code`` is populated by the client from the configured status field
    so the field name can differ between deployments.
    """

    model_config = ConfigDict(extra='allow')

    status_code: Optional[str] = Field(default=None, description="Status code reported by the server")
    raw: Dict[str, Any] = Field(default_factory=dict, description="Full decoded response body")

    def is_success(self, success_codes) -> bool:
        """A missing status code is accepted; a present one must be listed."""
        if self.status_code is None:
            return True
        accepted = {str(code).strip().upper() for code in success_codes}
        return self.status_code.strip().upper() in accepted
