"""
Rack insertion.

Racks are not part of the association tree. They are created one by one
through the rack endpoint, attached to the room (or, failing that, the floor)
named by the record. The location store is consulted first so that a rack
already stored under that room/floor is never created twice.
"""

from typing import Any, Dict, Iterable, Optional, Protocol
import logging

from association_sync.config.sites import SiteRegistry
from association_sync.extractors.base_extractor import SourceRecord
from association_sync.reconciliation.engine import (
    ReconciliationReport,
    RowOutcome,
    RowStatus,
    failure_status,
)
from association_sync.reconciliation.errors import FatalError, RowFailure
from association_sync.reconciliation.tree import AssociationTree, find_placement_node
from association_sync.reconciliation.validator import (
    DEFAULT_RACK_FIELDS,
    RackFields,
    validate_rack_record,
)
from association_sync.schemas.envelopes import PublishAck

logger = logging.getLogger(__name__)


class RackStore(Protocol):
    """Remote operations rack insertion needs."""

    def fetch_tree(self, site_id: str) -> AssociationTree: ...

    def create_rack(self, payload: Dict[str, Any]) -> PublishAck: ...


class RackIndex(Protocol):
    """Membership check against the stored racks."""

    def rack_exists(self, rack_name: str, parent_location_id: str) -> bool: ...


class RackInserter:
    """
    Creates the racks listed in rack records, skipping those already stored.

    Args:
        store: Fetch/create adapter (usually an AssociationClient)
        sites: Site table
        rack_index: Location store used to detect existing racks
        fields: Column names of the rack records
        dry_run: Resolve parents without creating racks
        logger: Logger for progress and failures (default: module logger)
    """

    def __init__(
        self,
        store: RackStore,
        sites: SiteRegistry,
        rack_index: RackIndex,
        *,
        fields: RackFields = DEFAULT_RACK_FIELDS,
        dry_run: bool = False,
        logger: Optional[logging.Logger] = None,
    ):
        self.store = store
        self.sites = sites
        self.rack_index = rack_index
        self.fields = fields
        self.dry_run = dry_run
        self.logger = logger or logging.getLogger(__name__)

    def run(self, records: Iterable[SourceRecord]) -> ReconciliationReport:
        """
        Insert racks strictly in order.

        Raises:
            FatalError: Connection-level failure; the run stops immediately
        """
        report = ReconciliationReport()
        try:
            for record in records:
                report.add(self.insert_record(record))
        except FatalError:
            report.finish()
            self.logger.exception(f"Fatal error, aborting rack run after: {report.summary()}")
            raise

        report.finish()
        self.logger.info(f"Done: {report.summary()}")
        return report

    def insert_record(self, record: SourceRecord) -> RowOutcome:
        """Run validate -> fetch -> locate parent -> check -> create for one record."""
        where = record.location()

        result = validate_rack_record(record.values, self.sites, self.fields)
        if not result.accepted:
            rejection = result.rejection
            self.logger.warning(f"{where}: {rejection.reason} -> skipping")
            return RowOutcome(
                source=where,
                status=RowStatus.REJECTED,
                field=rejection.field,
                message=rejection.reason,
            )

        rack = result.row
        try:
            tree = self.store.fetch_tree(rack.site_id)
            parent = find_placement_node(tree, rack.floor, rack.room)
            if parent is None or parent.id is None:
                message = f"no stored room/floor for floor={rack.floor!r} room={rack.room!r}"
                self.logger.warning(f"{where}: {message}, rack {rack.name} skipped")
                return RowOutcome(
                    source=where,
                    status=RowStatus.NO_PARENT,
                    site=rack.site_key,
                    field=self.fields.room,
                    message=message,
                )

            if self.rack_index.rack_exists(rack.name, parent.id):
                message = f"rack {rack.name} already exists under {parent.type} {parent.id}"
                self.logger.info(f"{where}: {message}")
                return RowOutcome(
                    source=where,
                    status=RowStatus.SKIPPED_EXISTING,
                    site=rack.site_key,
                    field=self.fields.rack,
                    message=message,
                )

            if self.dry_run:
                self.logger.info(f"{where}: dry run, would insert rack {rack.name} under {parent.id}")
                return RowOutcome(
                    source=where,
                    status=RowStatus.DRY_RUN,
                    site=rack.site_key,
                    message=f"would insert rack {rack.name}",
                    created=1,
                )

            self.store.create_rack(rack.payload(parent.id))
            self.logger.info(f"{where}: rack {rack.name} inserted under {parent.type} {parent.id}")
            return RowOutcome(
                source=where,
                status=RowStatus.INSERTED,
                site=rack.site_key,
                message=f"inserted rack {rack.name}",
                created=1,
            )

        except RowFailure as e:
            status = failure_status(e)
            self.logger.error(
                f"{where}: {status.value} for rack {rack.name} "
                f"(level={e.level or 'tree'}): {e}"
            )
            return RowOutcome(
                source=where,
                status=status,
                site=rack.site_key,
                field=e.level,
                message=str(e),
            )
