"""Classification of field values that stand for "no data"."""
import math
from typing import Any

# "-" is part of the canonical set: spreadsheets use it as a placeholder for
# levels that do not exist (e.g. a building without floors).
ABSENT_SENTINELS = frozenset({'n/a', 'na', 'null', '-'})


def is_absent(value: Any) -> bool:
    """
    Return True if ``value`` counts as absent.

    Absent values are None, NaN (an empty pandas cell), blank strings and the
    sentinels in ``ABSENT_SENTINELS`` compared after trimming and lower-casing.
    """
    if value is None:
        return True
    if isinstance(value, float) and math.isnan(value):
        return True
    text = str(value).strip().lower()
    return not text or text in ABSENT_SENTINELS
