"""Fetch and publish association trees, and create racks, through the association API."""
from typing import Any, Dict, Iterable, Optional
from urllib.parse import quote
import logging

import requests
from pydantic import ValidationError

from association_sync.connectors.api_connector import APIConnector
from association_sync.config.settings import settings
from association_sync.reconciliation.errors import FatalError, FetchFailure, PublishFailure
from association_sync.reconciliation.tree import AssociationTree
from association_sync.schemas.envelopes import FetchEnvelope, PublishAck, TreeDocumentShape

logger = logging.getLogger(__name__)


class AssociationClient:
    """
    Adapter between the reconciliation engine and the association API.

    Connection refusals are fatal for the run. Every other transport or
    payload problem is raised as a row-local FetchFailure / PublishFailure.
    """

    def __init__(
        self,
        connector: APIConnector,
        fetch_endpoint: str = settings.ASSOC_FETCH_ENDPOINT,
        publish_endpoint: str = settings.ASSOC_PUBLISH_ENDPOINT,
        success_codes: Iterable[str] = tuple(settings.ASSOC_SUCCESS_CODES),
        status_field: str = settings.ASSOC_STATUS_FIELD,
        rack_endpoint: str = settings.ASSOC_RACK_ENDPOINT,
    ):
        self.connector = connector
        self.fetch_endpoint = fetch_endpoint
        self.publish_endpoint = publish_endpoint
        self.success_codes = tuple(success_codes)
        self.status_field = status_field
        self.rack_endpoint = rack_endpoint

    @classmethod
    def from_settings(cls, api_key: Optional[str] = None) -> 'AssociationClient':
        """Build a client and its connector from the global settings."""
        connector = APIConnector(
            name='association',
            base_url=settings.ASSOC_BASE_URL,
            api_key=api_key or settings.ASSOC_API_KEY,
            timeout=settings.ASSOC_TIMEOUT,
            retry_attempts=settings.ASSOC_RETRY_ATTEMPTS,
            retry_delay=settings.ASSOC_RETRY_DELAY,
            health_endpoint=settings.ASSOC_HEALTH_ENDPOINT,
        )
        return cls(connector)

    def __enter__(self):
        self.connector.__enter__()
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        return self.connector.__exit__(exc_type, exc_val, exc_tb)

    def fetch_tree(self, site_id: str) -> AssociationTree:
        """
        Retrieve the current association tree of a site.

        The whole document is checked before use: a node that is not an object,
        or a ``children`` value that is not a list, makes the fetch fail rather
        than being dropped from the tree that is published later.

        Raises:
            FetchFailure: HTTP error, timeout, or malformed/empty envelope
            FatalError: The API cannot be reached at all
        """
        endpoint = self.fetch_endpoint.format(site_id=quote(site_id, safe=''))
        try:
            body = self.connector.get(endpoint)
        except requests.ConnectionError as e:
            raise FatalError(f'Association API unreachable: {e}') from e
        except (requests.RequestException, ValueError) as e:
            raise FetchFailure(f'GET {endpoint} failed: {e}', site=site_id) from e

        if not isinstance(body, dict):
            raise FetchFailure(f'Invalid response from GET {endpoint}', site=site_id)
        try:
            envelope = FetchEnvelope.model_validate(body)
            if not envelope.data:
                raise FetchFailure(f'Empty association tree from GET {endpoint}', site=site_id)
            TreeDocumentShape.model_validate(envelope.data)
            tree = AssociationTree.from_dict(envelope.data)
        except ValueError as e:
            # pydantic's ValidationError is a ValueError
            raise FetchFailure(f'Invalid response from GET {endpoint}: {e}', site=site_id) from e

        if tree.parent_id is None:
            tree.parent_id = site_id
        logger.debug(f'Fetched tree for {site_id} with {len(tree.children)} root children')
        return tree

    def publish_tree(self, tree: AssociationTree) -> PublishAck:
        """
        Submit the full tree of a site.

        Raises:
            PublishFailure: HTTP error, timeout, unexpected body or a
                non-success status code
            FatalError: The API cannot be reached at all
        """
        return self._post(self.publish_endpoint, tree.to_payload(), site=tree.parent_id)

    def create_rack(self, payload: Dict[str, Any]) -> PublishAck:
        """
        Create one rack under an existing room or floor.

        Raises:
            PublishFailure: HTTP error, timeout, unexpected body or a
                non-success status code
            FatalError: The API cannot be reached at all
        """
        return self._post(
            self.rack_endpoint,
            payload,
            site=payload.get('parent_location_id'),
            level='rack',
        )

    def _post(
        self,
        endpoint: str,
        payload: Dict[str, Any],
        site: Optional[str] = None,
        level: Optional[str] = None,
    ) -> PublishAck:
        try:
            body = self.connector.post(endpoint, json=payload)
        except requests.ConnectionError as e:
            raise FatalError(f'Association API unreachable: {e}') from e
        except (requests.RequestException, ValueError) as e:
            raise PublishFailure(f'POST {endpoint} failed: {e}', site=site, level=level) from e

        if body is None:
            body = {}
        if not isinstance(body, dict):
            raise PublishFailure(
                f'POST {endpoint} answered with a {type(body).__name__}, expected an object',
                site=site,
                level=level,
            )
        code = body.get(self.status_field)
        ack = PublishAck(status_code=None if code is None else str(code), raw=body)
        if not ack.is_success(self.success_codes):
            raise PublishFailure(
                f'POST {endpoint} answered {self.status_field}={ack.status_code}',
                site=site,
                level=level,
            )
        return ack
