"""Base extractor class for record sources."""
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Dict, List, Optional
import logging
from datetime import datetime

logger = logging.getLogger(__name__)


@dataclass
class SourceRecord:
    """One input row together with where it came from."""

    sheet: str
    index: int
    values: Dict[str, Optional[str]] = field(default_factory=dict)

    def location(self) -> str:
        return f'Sheet {self.sheet} Row {self.index}'


class BaseExtractor(ABC):
    """
    Abstract base class for record extractors.
    Defines the interface that all extractors must implement.
    """

    def __init__(self, name: str):
        """
        Initialize the extractor.

        Args:
            name: Name of the extractor (for logging)
        """
        self.name = name
        self.logger = logging.getLogger(f'{__name__}.{name}')
        self.extracted_at = None
        self.record_count = 0

    @abstractmethod
    def extract(self, **kwargs) -> List[SourceRecord]:
        """
        Read records from the source.

        Returns:
            List of SourceRecord in source order
        """
        pass

    @abstractmethod
    def validate_extraction(self, records: List[SourceRecord]) -> bool:
        """
        Validate the extracted records.

        Args:
            records: Extracted records to validate

        Returns:
            True if validation passes, False otherwise
        """
        pass

    def log_extraction(self, record_count: int) -> None:
        """Log extraction completion details."""
        self.extracted_at = datetime.now()
        self.record_count = record_count
        self.logger.info(
            f'Extraction completed: {record_count} records extracted at '
            f'{self.extracted_at.isoformat()}'
        )
