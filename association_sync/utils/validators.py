"""Data validation utilities."""
from typing import Any, Dict, Iterable, List, Tuple
import logging

logger = logging.getLogger(__name__)


def validate_required_columns(
    rows: Iterable[Tuple[str, Dict[str, Any]]],
    required_columns: set[str],
) -> tuple[bool, List[str]]:
    """
    Validate that every row carries the required columns.

    Args:
        rows: (group name, row dict) pairs, e.g. (sheet, values)
        required_columns: Set of required column names

    Returns:
        Tuple of (is_valid, one error per group with missing columns)
    """
    errors = []
    reported = set()

    for group, row in rows:
        missing = required_columns - set(row.keys())
        if missing and group not in reported:
            errors.append(f'{group}: missing columns {sorted(missing)}')
            reported.add(group)

    return len(errors) == 0, errors
