"""Unit tests for the HTTP connector."""
from unittest.mock import MagicMock

import pytest
import requests

from association_sync.connectors.api_connector import APIConnector


def _response(status=200, body=None, content=b'{}'):
    response = MagicMock()
    response.status_code = status
    response.content = content
    response.json.return_value = body
    if status >= 400:
        response.raise_for_status.side_effect = requests.HTTPError(f'{status} Error')
    return response


@pytest.fixture
def connector():
    api = APIConnector('association', 'http://api.local/', api_key='secret', timeout=7)
    api.session = MagicMock()
    api.session.headers = {}
    return api


class TestAPIConnector:
    """Test request handling."""

    def test_authenticate_sets_headers(self, connector):
        assert connector.authenticate() is True
        assert connector.session.headers['Authorization'] == 'Bearer secret'
        assert connector.session.headers['Content-Type'] == 'application/json'

    def test_no_api_key_no_authorization(self):
        api = APIConnector('association', 'http://api.local')
        api.authenticate()
        assert 'Authorization' not in api.session.headers
        api.close()

    def test_get_joins_url(self, connector):
        connector.session.get.return_value = _response(body={'data': {}})

        assert connector.get('/api/v1/thing') == {'data': {}}
        connector.session.get.assert_called_once_with(
            'http://api.local/api/v1/thing', params=None, timeout=7
        )

    def test_get_http_error(self, connector):
        connector.session.get.return_value = _response(status=500)

        with pytest.raises(requests.HTTPError):
            connector.get('/x')

    def test_post_empty_body(self, connector):
        connector.session.post.return_value = _response(content=b'')

        assert connector.post('/publish', json={'a': 1}) is None
        connector.session.post.assert_called_once_with(
            'http://api.local/publish', json={'a': 1}, timeout=7
        )

    def test_validate_connection(self, connector):
        connector.session.get.return_value = _response(status=200)
        assert connector.validate_connection() is True

        connector.session.get.return_value = _response(status=503)
        assert connector.validate_connection() is False

        connector.session.get.side_effect = requests.ConnectionError('refused')
        assert connector.validate_connection() is False
