"""Unit tests for row validation."""
import pytest

from association_sync.reconciliation.validator import (
    LocationRow,
    RackFields,
    RecordFields,
    validate_rack_record,
    validate_record,
)


def _record(**overrides):
    record = {
        'include': 'Yes',
        'house': 'DCH',
        'area': 'Area1',
        'building': 'B1',
        'floor': 'F1',
        'room': 'R1',
    }
    record.update(overrides)
    return record


class TestValidateRecord:
    """Test the ordered acceptance checks."""

    def test_accepts_complete_record(self, sites):
        """A complete record becomes a LocationRow with the site id."""
        result = validate_record(_record(), sites)
        assert result.accepted
        assert result.row == LocationRow(
            site_key='DCH',
            site_id='8191e270-5870-437e-9d5e-f165c6e37ec8',
            area='Area1',
            building='B1',
            floor='F1',
            room='R1',
        )

    @pytest.mark.parametrize("include", ['yes', 'YES', ' Yes '])
    def test_include_flag_is_case_insensitive(self, sites, include):
        """'yes' in any casing is accepted."""
        assert validate_record(_record(include=include), sites).accepted

    @pytest.mark.parametrize("include", [None, '', 'no', 'y', 'true'])
    def test_rejects_when_not_included(self, sites, include):
        """Anything but 'yes' rejects on the include field."""
        result = validate_record(_record(include=include), sites)
        assert not result.accepted
        assert result.rejection.field == 'include'

    def test_rejects_missing_site(self, sites):
        """A record without a site key is rejected."""
        result = validate_record(_record(house=None), sites)
        assert result.rejection.field == 'house'
        assert 'missing' in result.rejection.reason

    def test_rejects_unknown_site(self, sites):
        """A site key not in the table is rejected."""
        result = validate_record(_record(house='XYZ'), sites)
        assert result.rejection.field == 'house'
        assert 'XYZ' in result.rejection.reason

    @pytest.mark.parametrize("area", [None, '', 'N/A', 'null', '-'])
    def test_rejects_absent_area(self, sites, area):
        """Area is mandatory."""
        result = validate_record(_record(area=area), sites)
        assert result.rejection.field == 'area'

    def test_checks_short_circuit_in_order(self, sites):
        """The include flag is reported before the other problems."""
        result = validate_record(_record(include='no', house='XYZ', area=None), sites)
        assert result.rejection.field == 'include'

    def test_custom_field_names(self, sites):
        """Column names can be overridden."""
        fields = RecordFields(include='Include?', site='Site')
        record = {'Include?': 'yes', 'Site': 'MCH', 'area': 'North'}
        result = validate_record(record, sites, fields)
        assert result.row.site_id == '20ee539d-ddbf-484a-b292-73df53ce1907'

    def test_optional_levels_become_none(self, sites):
        """Absent optional levels are stored as None."""
        result = validate_record(_record(building='n/a', floor='', room=None), sites)
        assert result.row.building is None
        assert result.row.floor is None
        assert result.row.room is None


class TestLocationRowPath:
    """Test path construction from a row."""

    def test_full_path(self):
        row = LocationRow('DCH', 'id', 'A', 'B', 'F', 'R')
        assert row.path() == [('area', 'A'), ('building', 'B'), ('floor', 'F'), ('room', 'R')]

    def test_area_only(self):
        row = LocationRow('DCH', 'id', 'A')
        assert row.path() == [('area', 'A')]

    def test_absent_level_truncates_deeper_levels(self):
        """A missing building drops floor and room even when they are present."""
        row = LocationRow('DCH', 'id', 'A', None, 'F', 'R')
        assert row.path() == [('area', 'A')]

    def test_missing_floor_keeps_building(self):
        row = LocationRow('DCH', 'id', 'A', 'B', None, 'R')
        assert row.path() == [('area', 'A'), ('building', 'B')]

    def test_describe(self):
        row = LocationRow('DCH', 'id', 'A', 'B')
        assert row.describe() == 'A > B'


class TestValidateRackRecord:
    """Test rack record checks."""

    def test_accepts_and_builds_payload(self, sites):
        result = validate_rack_record({
            'house': 'DCH',
            'rack': 'Rack-01',
            'floor': 'F1',
            'room': '-',
            'rack-u-count': '42.0',
            'rack-make': 'APC',
            'rack-model': None,
        }, sites)

        assert result.accepted
        rack = result.row
        assert rack.room is None
        assert rack.payload('f1') == {
            'name': 'Rack-01',
            'make': 'APC',
            'u_count': 42,
            'model': None,
            'parent_location_id': 'f1',
        }

    def test_missing_u_count_is_allowed(self, sites):
        result = validate_rack_record({'house': 'DCH', 'rack': 'R1'}, sites)
        assert result.row.u_count is None

    def test_custom_columns(self, sites):
        fields = RackFields(site='site', rack='rack_name')
        result = validate_rack_record({'site': 'MCH', 'rack_name': 'R1'}, sites, fields)
        assert result.row.site_key == 'MCH'

    def test_unknown_site_checked_before_rack(self, sites):
        result = validate_rack_record({'house': 'XYZ', 'rack': None}, sites)
        assert result.rejection.field == 'house'
