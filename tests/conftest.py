"""Pytest configuration and fixtures."""
import copy
import pytest
from unittest.mock import MagicMock
from typing import Any, Dict, List, Optional

from association_sync.config.sites import SiteRegistry
from association_sync.extractors.base_extractor import SourceRecord
from association_sync.reconciliation.errors import FetchFailure, PublishFailure
from association_sync.reconciliation.tree import AssociationTree
from association_sync.schemas.envelopes import PublishAck

SITE_IDS = {
    'DCH': '8191e270-5870-437e-9d5e-f165c6e37ec8',
    'MCH': '20ee539d-ddbf-484a-b292-73df53ce1907',
}


class FakeTreeStore:
    """
    In-memory stand-in for the association API.

    Stores published payloads per site and hands out fresh copies on fetch,
    so every fetch sees only what was actually published.
    """

    def __init__(self, documents: Optional[Dict[str, Dict[str, Any]]] = None):
        self.documents = copy.deepcopy(documents or {})
        self.fetches: List[str] = []
        self.publishes: List[Dict[str, Any]] = []
        self.fail_fetch_for: set = set()
        self.fail_publish_times = 0
        self.fatal_on_fetch: Optional[Exception] = None
        self.racks: List[Dict[str, Any]] = []
        self.fail_rack_times = 0

    def fetch_tree(self, site_id: str) -> AssociationTree:
        self.fetches.append(site_id)
        if self.fatal_on_fetch is not None:
            raise self.fatal_on_fetch
        if site_id in self.fail_fetch_for:
            raise FetchFailure('GET failed: 500', site=site_id)
        document = self.documents.get(site_id, {'parentId': site_id, 'children': []})
        return AssociationTree.from_dict(copy.deepcopy(document))

    def publish_tree(self, tree: AssociationTree) -> PublishAck:
        payload = copy.deepcopy(tree.to_payload())
        self.publishes.append(payload)
        if self.fail_publish_times:
            self.fail_publish_times -= 1
            raise PublishFailure('POST failed: 502', site=tree.parent_id)
        self.documents[tree.parent_id] = payload
        return PublishAck(status_code='OK', raw={'messageCode': 'OK'})

    def create_rack(self, payload: Dict[str, Any]) -> PublishAck:
        if self.fail_rack_times:
            self.fail_rack_times -= 1
            raise PublishFailure('POST failed: 400', site=payload.get('parent_location_id'), level='rack')
        self.racks.append(copy.deepcopy(payload))
        return PublishAck(status_code=None, raw={})


@pytest.fixture
def sites() -> SiteRegistry:
    """Site table with two sites."""
    return SiteRegistry.from_mapping(SITE_IDS)


@pytest.fixture
def fake_store() -> FakeTreeStore:
    """Empty in-memory association store."""
    return FakeTreeStore()


@pytest.fixture
def make_record():
    """Factory for source records with the default column names."""
    counter = {'index': 0}

    def _make(
        area: Optional[str] = 'Area1',
        building: Optional[str] = None,
        floor: Optional[str] = None,
        room: Optional[str] = None,
        house: Optional[str] = 'DCH',
        include: Optional[str] = 'Yes',
        sheet: str = 'structure-dch',
    ) -> SourceRecord:
        record = SourceRecord(
            sheet=sheet,
            index=counter['index'],
            values={
                'include': include,
                'house': house,
                'area': area,
                'building': building,
                'floor': floor,
                'room': room,
            },
        )
        counter['index'] += 1
        return record

    return _make


@pytest.fixture
def mock_api_connector():
    """Mock API connector."""
    connector = MagicMock()
    connector.authenticate.return_value = True
    connector.validate_connection.return_value = True
    connector.get.return_value = {
        'data': {'parentId': SITE_IDS['DCH'], 'children': []},
    }
    connector.post.return_value = {'messageCode': 'OK'}
    return connector


@pytest.fixture
def mock_database_connection():
    """Mock psycopg2 connection whose cursor works as a context manager."""
    conn = MagicMock()
    cursor = MagicMock()
    conn.cursor.return_value.__enter__.return_value = cursor
    conn.close.return_value = None
    return conn
