"""
Site table: maps the site key found in input records to a site identifier.

The table is loaded once per run from a single file and handed to the row
validator. Two file formats are accepted:

    sites.json   {"DCH": "8191e270-...", ...}
                 or [{"name": "DCH", "site_id": "8191e270-..."}, ...]
    sites.csv    columns: name, site_id
"""
import json
import logging
from pathlib import Path
from typing import Dict, Iterable, Iterator, List, Optional, Union

import pandas as pd
from pydantic import ValidationError

from association_sync.schemas.sites import SiteEntry

logger = logging.getLogger(__name__)


class SiteConfigError(ValueError):
    """Raised when the site table cannot be loaded or is inconsistent."""


class SiteRegistry:
    """Read-only lookup from site key to site identifier."""

    def __init__(self, entries: Iterable[SiteEntry]):
        self._sites: Dict[str, str] = {}
        for entry in entries:
            existing = self._sites.get(entry.name)
            if existing is not None and existing != entry.site_id:
                raise SiteConfigError(
                    f'Site "{entry.name}" mapped to both {existing} and {entry.site_id}'
                )
            self._sites[entry.name] = entry.site_id

    @classmethod
    def from_mapping(cls, mapping: Dict[str, str]) -> 'SiteRegistry':
        """Build a registry from a plain ``{name: site_id}`` dict."""
        try:
            return cls(SiteEntry(name=name, site_id=site_id) for name, site_id in mapping.items())
        except ValidationError as e:
            raise SiteConfigError(f'Invalid site table: {e}') from e

    @classmethod
    def from_file(cls, path: Union[str, Path]) -> 'SiteRegistry':
        """
        Load the site table from a JSON or CSV file.

        Raises:
            SiteConfigError: If the file is missing, malformed or inconsistent
        """
        path = Path(path)
        if not path.exists():
            raise SiteConfigError(f'Site table not found: {path}')

        try:
            if path.suffix.lower() == '.csv':
                df = pd.read_csv(path, dtype=str).fillna('')
                missing = {'name', 'site_id'} - set(df.columns)
                if missing:
                    raise SiteConfigError(f'{path}: missing columns {sorted(missing)}')
                raw = df[['name', 'site_id']].to_dict('records')
            else:
                with open(path) as f:
                    raw = json.load(f)
        except (OSError, json.JSONDecodeError, pd.errors.ParserError) as e:
            raise SiteConfigError(f'Could not read site table {path}: {e}') from e

        if isinstance(raw, dict):
            registry = cls.from_mapping(raw)
        elif isinstance(raw, list):
            try:
                registry = cls(SiteEntry.model_validate(item) for item in raw)
            except ValidationError as e:
                raise SiteConfigError(f'Invalid site table {path}: {e}') from e
        else:
            raise SiteConfigError(f'{path}: expected an object or a list of entries')

        logger.info(f'Loaded {len(registry)} sites from {path}')
        return registry

    def lookup(self, name: Optional[str]) -> Optional[str]:
        """Return the site identifier for ``name`` (exact match) or None."""
        if name is None:
            return None
        return self._sites.get(name)

    def names(self) -> List[str]:
        return sorted(self._sites)

    def __contains__(self, name: object) -> bool:
        return name in self._sites

    def __iter__(self) -> Iterator[str]:
        return iter(self._sites)

    def __len__(self) -> int:
        return len(self._sites)
