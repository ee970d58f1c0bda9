"""Connector for the persisted location store (PostgreSQL)."""
import logging
import psycopg2

from association_sync.connectors.base_connector import BaseConnector
from association_sync.reconciliation.errors import FatalError, PrefilterFailure

logger = logging.getLogger(__name__)

AREA_EXISTS_QUERY = (
    "SELECT 1 FROM locations "
    "WHERE type = 'area' AND parent_location_id = %s AND name = %s "
    "LIMIT 1"
)

RACK_EXISTS_QUERY = (
    "SELECT 1 FROM racks "
    "WHERE name = %s AND parent_location_id = %s "
    "LIMIT 1"
)


class LocationStoreConnector(BaseConnector):
    """
    Read-only access to the ``locations`` and ``racks`` tables.

    Used as a pre-filter: rows whose area (or rack) is already stored are
    skipped before anything is sent to the association API.
    """

    def __init__(self, dsn: str, timeout: int = 30):
        """
        Initialize the location store connector.

        Args:
            dsn: PostgreSQL connection string
            timeout: Connect timeout in seconds
        """
        super().__init__('location_store', timeout)
        self.dsn = dsn
        self.conn = None

    def authenticate(self) -> bool:
        """
        Connect to the database.

        Raises:
            FatalError: If the database cannot be reached
        """
        if self.ready:
            return True
        try:
            self.conn = psycopg2.connect(self.dsn, connect_timeout=self.timeout)
            self.conn.autocommit = True
        except psycopg2.Error as e:
            self.logger.error(f'Database connection failed: {str(e)}')
            raise FatalError(f'Cannot connect to location store: {e}') from e
        self.ready = True
        self.logger.info('Connected to location store')
        return True

    def validate_connection(self) -> bool:
        """Run a trivial query."""
        try:
            self.ensure_ready()
            with self.conn.cursor() as cursor:
                cursor.execute('SELECT 1')
                cursor.fetchone()
            self.logger.info('Connection to location store validated')
            return True
        except (FatalError, psycopg2.Error) as e:
            self.logger.error(f'Connection validation error: {str(e)}')
            return False

    def area_exists(self, parent_location_id: str, area_name: str) -> bool:
        """
        Check whether an area with this exact name is stored under the site.

        Args:
            parent_location_id: Site identifier
            area_name: Area name (exact, case-sensitive)

        Returns:
            True if a matching row exists

        Raises:
            PrefilterFailure: If the query fails
        """
        return self._exists(
            AREA_EXISTS_QUERY,
            (parent_location_id, area_name),
            site=parent_location_id,
            level='area',
        )

    def rack_exists(self, rack_name: str, parent_location_id: str) -> bool:
        """
        Check whether a rack with this exact name is stored under the room/floor.

        Raises:
            PrefilterFailure: If the query fails
        """
        return self._exists(
            RACK_EXISTS_QUERY,
            (rack_name, parent_location_id),
            site=parent_location_id,
            level='rack',
        )

    def _exists(self, query: str, params: tuple, site: str, level: str) -> bool:
        self.ensure_ready()
        try:
            with self.conn.cursor() as cursor:
                cursor.execute(query, params)
                return cursor.fetchone() is not None
        except psycopg2.Error as e:
            raise PrefilterFailure(
                f'Location store check failed: {e}',
                site=site,
                level=level,
            ) from e

    def close(self) -> None:
        """Close database connection."""
        if self.conn is not None:
            self.conn.close()
            self.conn = None
            self.logger.info('Disconnected from location store')
        self.ready = False
