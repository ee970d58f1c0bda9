"""
Row validation.

A facility record is accepted when, in order:
    1. its include flag is "yes" (case-insensitive),
    2. it names a site,
    3. the site is listed in the site table,
    4. its area is present.

Building, floor and room are optional. The first absent level ends the path,
so a row with a floor but no building only resolves its area.

Rack records name a site, a rack and the floor/room it stands in. They are
accepted when the site is known, the rack has a name and the U count, if
given, is a whole number.
"""

from dataclasses import dataclass
from typing import Any, Dict, List, Mapping, Optional, Tuple, Union

from association_sync.config.sites import SiteRegistry
from association_sync.reconciliation.sentinels import is_absent
from association_sync.reconciliation.tree import NodeType


@dataclass(frozen=True)
class RecordFields:
    """Column names of a facility record."""

    include: str = 'include'
    site: str = 'house'
    area: str = 'area'
    building: str = 'building'
    floor: str = 'floor'
    room: str = 'room'

    def required_columns(self) -> List[str]:
        return [self.include, self.site, self.area]

    def all_columns(self) -> List[str]:
        return [self.include, self.site, self.area, self.building, self.floor, self.room]


DEFAULT_FIELDS = RecordFields()


@dataclass(frozen=True)
class LocationRow:
    """An accepted record, ready for reconciliation."""

    site_key: str
    site_id: str
    area: str
    building: Optional[str] = None
    floor: Optional[str] = None
    room: Optional[str] = None

    def path(self) -> List[Tuple[str, str]]:
        """``(type, name)`` segments from area down to the deepest present level."""
        segments = [(NodeType.AREA.value, self.area)]
        for node_type, value in (
            (NodeType.BUILDING.value, self.building),
            (NodeType.FLOOR.value, self.floor),
            (NodeType.ROOM.value, self.room),
        ):
            if is_absent(value):
                break
            segments.append((node_type, value))
        return segments

    def describe(self) -> str:
        return ' > '.join(name for _, name in self.path())


@dataclass(frozen=True)
class ValidationRejection:
    """Why a record was not accepted."""

    reason: str
    field: Optional[str] = None


@dataclass
class ValidationResult:
    row: Optional[Union[LocationRow, "RackRow"]] = None
    rejection: Optional[ValidationRejection] = None

    @property
    def accepted(self) -> bool:
        return self.row is not None


def _text(value: Any) -> Optional[str]:
    if is_absent(value):
        return None
    return value if isinstance(value, str) else str(value)


def validate_record(
    record: Mapping[str, Any],
    sites: SiteRegistry,
    fields: RecordFields = DEFAULT_FIELDS,
) -> ValidationResult:
    """
    Check a raw record and build a LocationRow from it.

    Checks short-circuit on the first failure. Data problems are reported in
    the result and never raised.

    Args:
        record: Column name -> cell value (already trimmed by the reader)
        sites: Site table used to resolve the site key
        fields: Column names

    Returns:
        ValidationResult holding either the row or the rejection
    """
    include = record.get(fields.include)
    if include is None or str(include).strip().lower() != 'yes':
        return _reject(f"{fields.include} is not 'yes' ({include!r})", fields.include)

    site_key = _text(record.get(fields.site))
    if site_key is None:
        return _reject(f'missing {fields.site} value', fields.site)

    site_id = sites.lookup(site_key)
    if site_id is None:
        return _reject(f'{fields.site} "{site_key}" is not in the site table', fields.site)

    area = _text(record.get(fields.area))
    if area is None:
        return _reject(f'{fields.area} is absent ({record.get(fields.area)!r})', fields.area)

    return ValidationResult(row=LocationRow(
        site_key=site_key,
        site_id=site_id,
        area=area,
        building=_text(record.get(fields.building)),
        floor=_text(record.get(fields.floor)),
        room=_text(record.get(fields.room)),
    ))


def _reject(reason: str, field_name: str) -> ValidationResult:
    return ValidationResult(rejection=ValidationRejection(reason=reason, field=field_name))



@dataclass(frozen=True)
class RackFields:
    """Column names of a rack record."""

    site: str = 'house'
    rack: str = 'rack'
    floor: str = 'floor'
    room: str = 'room'
    u_count: str = 'rack-u-count'
    make: str = 'rack-make'
    model: str = 'rack-model'

    def required_columns(self) -> List[str]:
        return [self.site, self.rack]


DEFAULT_RACK_FIELDS = RackFields()


@dataclass(frozen=True)
class RackRow:
    """An accepted rack record."""

    site_key: str
    site_id: str
    name: str
    floor: Optional[str] = None
    room: Optional[str] = None
    make: Optional[str] = None
    model: Optional[str] = None
    u_count: Optional[int] = None

    def payload(self, parent_location_id: str) -> Dict[str, Any]:
        """Body of the rack creation request."""
        return {
            'name': self.name,
            'make': self.make,
            'u_count': self.u_count,
            'model': self.model,
            'parent_location_id': parent_location_id,
        }


def validate_rack_record(
    record: Mapping[str, Any],
    sites: SiteRegistry,
    fields: RackFields = DEFAULT_RACK_FIELDS,
) -> ValidationResult:
    """Check a raw rack record and build a RackRow from it."""
    site_key = _text(record.get(fields.site))
    if site_key is None:
        return _reject(f'missing {fields.site} value', fields.site)

    site_id = sites.lookup(site_key)
    if site_id is None:
        return _reject(f'{fields.site} "{site_key}" is not in the site table', fields.site)

    name = _text(record.get(fields.rack))
    if name is None:
        return _reject(f'{fields.rack} is absent ({record.get(fields.rack)!r})', fields.rack)

    raw_count = _text(record.get(fields.u_count))
    u_count = None
    if raw_count is not None:
        try:
            number = float(raw_count)
        except ValueError:
            number = None
        if number is None or not number.is_integer():
            return _reject(f'{fields.u_count} is not a whole number ({raw_count!r})', fields.u_count)
        u_count = int(number)

    return ValidationResult(row=RackRow(
        site_key=site_key,
        site_id=site_id,
        name=name,
        floor=_text(record.get(fields.floor)),
        room=_text(record.get(fields.room)),
        make=_text(record.get(fields.make)),
        model=_text(record.get(fields.model)),
        u_count=u_count,
    ))
