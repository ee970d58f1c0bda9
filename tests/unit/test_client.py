"""Unit tests for the association API adapter."""
from unittest.mock import MagicMock

import pytest
import requests

from association_sync.connectors.api_connector import APIConnector
from association_sync.reconciliation.client import AssociationClient
from association_sync.reconciliation.errors import FatalError, FetchFailure, PublishFailure
from association_sync.reconciliation.tree import AssociationTree

SITE = '8191e270-5870-437e-9d5e-f165c6e37ec8'


def _client(connector, **kwargs):
    kwargs.setdefault('fetch_endpoint', '/api/v1/cordinator/association/{site_id}')
    kwargs.setdefault('publish_endpoint', '/api/v1/cordinator/create-association-v2')
    kwargs.setdefault('success_codes', ('OK', 'SUCCESS'))
    kwargs.setdefault('status_field', 'messageCode')
    return AssociationClient(connector, **kwargs)


class TestFetchTree:
    """Test tree retrieval."""

    def test_fetch_unwraps_data(self, mock_api_connector):
        mock_api_connector.get.return_value = {
            'data': {'parentId': SITE, 'children': [{'id': 'd1', 'name': 'X', 'type': 'diagram'}]},
        }
        tree = _client(mock_api_connector).fetch_tree(SITE)

        mock_api_connector.get.assert_called_once_with(f'/api/v1/cordinator/association/{SITE}')
        assert tree.parent_id == SITE
        assert tree.children[0].id == 'd1'

    def test_site_id_is_url_quoted(self, mock_api_connector):
        _client(mock_api_connector).fetch_tree('a/b c')
        mock_api_connector.get.assert_called_once_with('/api/v1/cordinator/association/a%2Fb%20c')

    def test_missing_parent_defaults_to_site(self, mock_api_connector):
        mock_api_connector.get.return_value = {'data': {'children': []}}
        assert _client(mock_api_connector).fetch_tree(SITE).parent_id == SITE

    @pytest.mark.parametrize("body", [
        None,
        [],
        {},
        {'data': None},
        {'data': {}},
        {'data': 'tree'},
    ])
    def test_malformed_envelope(self, mock_api_connector, body):
        mock_api_connector.get.return_value = body
        with pytest.raises(FetchFailure) as exc_info:
            _client(mock_api_connector).fetch_tree(SITE)
        assert exc_info.value.site == SITE

    @pytest.mark.parametrize("children", [
        ['oops'],
        [None],
        {'id': 'x', 'name': 'Existing'},
        'Existing',
        [{'id': 'd1', 'name': 'High Level Diagram', 'type': 'diagram', 'children': [None]}],
        [{'id': 'd1', 'name': 'High Level Diagram', 'type': 'diagram', 'children': {'id': 'a1'}}],
    ])
    def test_malformed_tree_is_fetch_failure(self, mock_api_connector, children):
        mock_api_connector.get.return_value = {'data': {'parentId': SITE, 'children': children}}
        with pytest.raises(FetchFailure) as exc_info:
            _client(mock_api_connector).fetch_tree(SITE)
        assert exc_info.value.site == SITE

    def test_null_children_are_accepted(self, mock_api_connector):
        mock_api_connector.get.return_value = {'data': {
            'parentId': SITE,
            'children': [{'id': 'd1', 'name': 'X', 'type': 'diagram', 'children': None}],
        }}
        tree = _client(mock_api_connector).fetch_tree(SITE)
        assert tree.children[0].children is None

    def test_http_error_is_fetch_failure(self, mock_api_connector):
        mock_api_connector.get.side_effect = requests.HTTPError('404 Not Found')
        with pytest.raises(FetchFailure):
            _client(mock_api_connector).fetch_tree(SITE)

    def test_timeout_is_fetch_failure(self, mock_api_connector):
        mock_api_connector.get.side_effect = requests.ReadTimeout('read timed out')
        with pytest.raises(FetchFailure):
            _client(mock_api_connector).fetch_tree(SITE)

    def test_invalid_json_is_fetch_failure(self, mock_api_connector):
        mock_api_connector.get.side_effect = ValueError('Expecting value')
        with pytest.raises(FetchFailure):
            _client(mock_api_connector).fetch_tree(SITE)

    def test_connection_error_is_fatal(self, mock_api_connector):
        mock_api_connector.get.side_effect = requests.ConnectionError('refused')
        with pytest.raises(FatalError):
            _client(mock_api_connector).fetch_tree(SITE)


class TestPublishTree:
    """Test tree submission."""

    def _tree(self):
        return AssociationTree.from_dict({
            'parentId': SITE,
            'children': [{'id': None, 'name': 'High Level Diagram', 'type': 'diagram', 'children': []}],
        })

    def test_posts_full_tree(self, mock_api_connector):
        tree = self._tree()
        ack = _client(mock_api_connector).publish_tree(tree)

        mock_api_connector.post.assert_called_once_with(
            '/api/v1/cordinator/create-association-v2',
            json=tree.to_payload(),
        )
        assert ack.status_code == 'OK'

    def test_success_code_is_case_insensitive(self, mock_api_connector):
        mock_api_connector.post.return_value = {'messageCode': 'success'}
        assert _client(mock_api_connector).publish_tree(self._tree()).status_code == 'success'

    def test_missing_status_code_is_accepted(self, mock_api_connector):
        mock_api_connector.post.return_value = None
        ack = _client(mock_api_connector).publish_tree(self._tree())
        assert ack.status_code is None
        assert ack.raw == {}

    def test_non_success_code_is_publish_failure(self, mock_api_connector):
        mock_api_connector.post.return_value = {'messageCode': 'VALIDATION_ERROR'}
        with pytest.raises(PublishFailure) as exc_info:
            _client(mock_api_connector).publish_tree(self._tree())
        assert 'VALIDATION_ERROR' in str(exc_info.value)
        assert exc_info.value.site == SITE

    @pytest.mark.parametrize("body", ['created', ['OK'], 1])
    def test_non_object_body_is_publish_failure(self, mock_api_connector, body):
        mock_api_connector.post.return_value = body
        with pytest.raises(PublishFailure):
            _client(mock_api_connector).publish_tree(self._tree())

    def test_numeric_status_code(self, mock_api_connector):
        mock_api_connector.post.return_value = {'statusCode': 201}
        client = _client(mock_api_connector, status_field='statusCode', success_codes=('200', '201'))
        assert client.publish_tree(self._tree()).status_code == '201'

    def test_http_error_is_publish_failure(self, mock_api_connector):
        mock_api_connector.post.side_effect = requests.HTTPError('500 Server Error')
        with pytest.raises(PublishFailure):
            _client(mock_api_connector).publish_tree(self._tree())

    def test_connection_error_is_fatal(self, mock_api_connector):
        mock_api_connector.post.side_effect = requests.ConnectionError('refused')
        with pytest.raises(FatalError):
            _client(mock_api_connector).publish_tree(self._tree())


class TestCreateRack:
    """Test rack creation."""

    PAYLOAD = {
        'name': 'Rack-01',
        'make': 'APC',
        'u_count': 42,
        'model': 'AR3100',
        'parent_location_id': 'room-1',
    }

    def test_posts_rack(self, mock_api_connector):
        _client(mock_api_connector, rack_endpoint='/api/v1/rack').create_rack(self.PAYLOAD)
        mock_api_connector.post.assert_called_once_with('/api/v1/rack', json=self.PAYLOAD)

    def test_http_error_is_publish_failure(self, mock_api_connector):
        mock_api_connector.post.side_effect = requests.HTTPError('400 Bad Request')
        with pytest.raises(PublishFailure) as exc_info:
            _client(mock_api_connector).create_rack(self.PAYLOAD)
        assert exc_info.value.level == 'rack'
        assert exc_info.value.site == 'room-1'


class TestClientLifecycle:
    def test_context_manager_opens_and_closes_connector(self):
        connector = APIConnector('association', 'http://api.local', api_key='k')
        connector.session = MagicMock()
        connector.session.headers = {}

        with _client(connector) as client:
            assert client.connector is connector
            assert connector.session.headers['Authorization'] == 'Bearer k'
        connector.session.close.assert_called_once()
