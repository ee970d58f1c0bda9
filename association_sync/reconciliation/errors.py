"""Exceptions raised during reconciliation."""
from typing import Optional


class ReconciliationError(Exception):
    """Base class for reconciliation errors."""


class RowFailure(ReconciliationError):
    """
    A failure confined to a single input record.

    The run logs it and moves on to the next record. Any in-memory tree
    mutation made for the record is dropped.
    """

    def __init__(self, message: str, site: Optional[str] = None, level: Optional[str] = None):
        super().__init__(message)
        self.site = site
        self.level = level


class FetchFailure(RowFailure):
    """The site's association tree could not be retrieved or was malformed."""


class PublishFailure(RowFailure):
    """The mutated tree was computed but the remote store did not accept it."""


class PrefilterFailure(RowFailure):
    """The location store membership check could not be executed."""


class FatalError(ReconciliationError):
    """Connection-level failure that aborts the whole run."""


class InputSourceError(FatalError):
    """The input workbook or CSV file cannot be read."""
