"""
Connector contract shared by the association API and the location store.

A connector is opened with ``authenticate()`` (or by entering it as a context
manager) and released with ``close()``. Opening a connector that cannot reach
its system raises ``FatalError``: nothing in a run can succeed without it.
``validate_connection()`` is the health check used by ``association-sync
check`` and reports problems as False instead of raising.
"""
from abc import ABC, abstractmethod
import logging

logger = logging.getLogger(__name__)


class BaseConnector(ABC):
    """
    Base class for the connectors a sync run holds open.

    Subclasses set ``self.ready`` once ``authenticate`` succeeded and clear
    it in ``close``; ``ensure_ready`` opens the connector lazily.
    """

    def __init__(self, name: str, timeout: int = 30):
        """
        Args:
            name: Connector name, used as the logger suffix
            timeout: Connect/request timeout in seconds
        """
        self.name = name
        self.timeout = timeout
        self.ready = False
        self.logger = logging.getLogger(f'{__name__}.{name}')

    @abstractmethod
    def authenticate(self) -> bool:
        """
        Open the connector.

        Raises:
            FatalError: If the external system cannot be reached
        """

    @abstractmethod
    def validate_connection(self) -> bool:
        """Return True if the external system answers. Never raises."""

    @abstractmethod
    def close(self) -> None:
        """Release the connection. Safe to call on a closed connector."""

    def ensure_ready(self) -> None:
        if not self.ready:
            self.authenticate()

    def __enter__(self):
        self.ensure_ready()
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.close()
        return False
