"""
Per-record reconciliation loop.

Records are processed one at a time: validate, optionally pre-filter against
the location store, fetch the site's tree, find-or-create the record's path,
publish the whole tree. The next record always starts from a fresh fetch, so
a failed publish leaves nothing behind and a re-run converges on the same tree.

There is no locking on the remote document. Two runs against the same site at
the same time can overwrite each other's changes; never run them concurrently.
"""

from collections import Counter
from dataclasses import dataclass, field
from enum import Enum
from typing import Callable, Iterable, List, Optional, Protocol
import logging
import time

from association_sync.config.settings import settings
from association_sync.config.sites import SiteRegistry
from association_sync.extractors.base_extractor import SourceRecord
from association_sync.reconciliation.errors import (
    FatalError,
    PrefilterFailure,
    PublishFailure,
    RowFailure,
)
from association_sync.reconciliation.resolver import apply_path
from association_sync.reconciliation.tree import AssociationTree
from association_sync.reconciliation.validator import DEFAULT_FIELDS, RecordFields, validate_record
from association_sync.schemas.envelopes import PublishAck
from association_sync.utils.helpers import format_duration

logger = logging.getLogger(__name__)


class TreeStore(Protocol):
    """Fetch/publish interface the engine needs from the remote store."""

    def fetch_tree(self, site_id: str) -> AssociationTree: ...

    def publish_tree(self, tree: AssociationTree) -> PublishAck: ...


class AreaIndex(Protocol):
    """Membership check against the persisted location store."""

    def area_exists(self, parent_location_id: str, area_name: str) -> bool: ...


class RowStatus(str, Enum):
    PUBLISHED = "published"
    INSERTED = "inserted"
    UNCHANGED = "unchanged"
    DRY_RUN = "dry_run"
    REJECTED = "rejected"
    SKIPPED_EXISTING = "skipped_existing"
    NO_PARENT = "no_parent"
    PREFILTER_FAILED = "prefilter_failed"
    FETCH_FAILED = "fetch_failed"
    PUBLISH_FAILED = "publish_failed"


FAILED_STATUSES = {
    RowStatus.PREFILTER_FAILED,
    RowStatus.FETCH_FAILED,
    RowStatus.PUBLISH_FAILED,
}


@dataclass
class RowOutcome:
    """What happened to one input record."""

    source: str
    status: RowStatus
    site: Optional[str] = None
    field: Optional[str] = None
    message: str = ""
    created: int = 0

    @property
    def failed(self) -> bool:
        return self.status in FAILED_STATUSES


@dataclass
class ReconciliationReport:
    """Outcomes of a run, in processing order."""

    outcomes: List[RowOutcome] = field(default_factory=list)
    started_at: float = field(default_factory=time.monotonic)
    finished_at: Optional[float] = None

    def add(self, outcome: RowOutcome) -> None:
        self.outcomes.append(outcome)

    def finish(self) -> None:
        self.finished_at = time.monotonic()

    def counts(self) -> Counter:
        return Counter(outcome.status.value for outcome in self.outcomes)

    @property
    def failures(self) -> List[RowOutcome]:
        return [outcome for outcome in self.outcomes if outcome.failed]

    @property
    def created_nodes(self) -> int:
        return sum(
            outcome.created
            for outcome in self.outcomes
            if outcome.status in (RowStatus.PUBLISHED, RowStatus.INSERTED, RowStatus.DRY_RUN)
        )

    def summary(self) -> str:
        end = self.finished_at if self.finished_at is not None else time.monotonic()
        counts = ", ".join(f"{status}={count}" for status, count in sorted(self.counts().items()))
        return (
            f"{len(self.outcomes)} records ({counts or 'none'}); "
            f"{self.created_nodes} nodes created in {format_duration(end - self.started_at)}"
        )


class AssociationReconciler:
    """
    Applies facility records to association trees, one record at a time.

    Args:
        store: Fetch/publish adapter (usually an AssociationClient)
        sites: Site table used by the row validator
        fields: Column names of the input records
        grouping_name: Name of the singleton grouping node
        throttle_seconds: Minimum pause between successive publishes
        area_index: Optional location store pre-filter
        dry_run: Compute changes without publishing
        logger: Logger for progress and failures (default: module logger)
        sleep: Sleep function (injectable for tests)
        clock: Monotonic clock (injectable for tests)
    """

    def __init__(
        self,
        store: TreeStore,
        sites: SiteRegistry,
        *,
        fields: RecordFields = DEFAULT_FIELDS,
        grouping_name: str = settings.GROUPING_NODE_NAME,
        throttle_seconds: float = settings.PUBLISH_THROTTLE_SECONDS,
        area_index: Optional[AreaIndex] = None,
        dry_run: bool = False,
        logger: Optional[logging.Logger] = None,
        sleep: Callable[[float], None] = time.sleep,
        clock: Callable[[], float] = time.monotonic,
    ):
        self.store = store
        self.sites = sites
        self.fields = fields
        self.grouping_name = grouping_name
        self.throttle_seconds = throttle_seconds
        self.area_index = area_index
        self.dry_run = dry_run
        self.logger = logger or logging.getLogger(__name__)
        self._sleep = sleep
        self._clock = clock
        self._last_publish_at: Optional[float] = None

    def run(self, records: Iterable[SourceRecord]) -> ReconciliationReport:
        """
        Reconcile records strictly in order.

        Row-local failures are recorded and the run continues.

        Raises:
            FatalError: Connection-level failure; the run stops immediately
        """
        report = ReconciliationReport()
        try:
            for record in records:
                report.add(self.reconcile_record(record))
        except FatalError:
            report.finish()
            self.logger.exception(f"Fatal error, aborting run after: {report.summary()}")
            raise

        report.finish()
        self.logger.info(f"Done: {report.summary()}")
        return report

    def reconcile_record(self, record: SourceRecord) -> RowOutcome:
        """Run validate -> fetch -> resolve -> publish for one record."""
        where = record.location()

        result = validate_record(record.values, self.sites, self.fields)
        if not result.accepted:
            rejection = result.rejection
            self.logger.warning(f"{where}: {rejection.reason} -> skipping")
            return RowOutcome(
                source=where,
                status=RowStatus.REJECTED,
                field=rejection.field,
                message=rejection.reason,
            )

        row = result.row
        self.logger.info(
            f'{where}: processing {self.fields.site}={row.site_key}({row.site_id}), '
            f'path="{row.describe()}"'
        )

        try:
            if self.area_index is not None and self.area_index.area_exists(row.site_id, row.area):
                message = f'area "{row.area}" already stored under {row.site_id}'
                self.logger.info(f"{where}: {message} -> skipping")
                return RowOutcome(
                    source=where,
                    status=RowStatus.SKIPPED_EXISTING,
                    site=row.site_key,
                    field=self.fields.area,
                    message=message,
                )

            tree = self.store.fetch_tree(row.site_id)
            resolution = apply_path(tree, row.path(), self.grouping_name)

            if not resolution.changed:
                self.logger.info(f"{where}: path already present -> nothing to publish")
                return RowOutcome(source=where, status=RowStatus.UNCHANGED, site=row.site_key)

            created = ", ".join(f"{n.type} '{n.name}'" for n in resolution.created)
            if self.dry_run:
                self.logger.info(f"{where}: dry run, would create {created}")
                return RowOutcome(
                    source=where,
                    status=RowStatus.DRY_RUN,
                    site=row.site_key,
                    message=f"would create {created}",
                    created=len(resolution.created),
                )

            ack = self._publish(tree)
            self.logger.info(f"{where}: created {created}; publish result: {ack.status_code or 'OK'}")
            return RowOutcome(
                source=where,
                status=RowStatus.PUBLISHED,
                site=row.site_key,
                message=f"created {created}",
                created=len(resolution.created),
            )

        except RowFailure as e:
            status = failure_status(e)
            self.logger.error(
                f"{where}: {status.value} for {self.fields.site}={row.site_key} "
                f"(level={e.level or 'tree'}): {e}"
            )
            return RowOutcome(
                source=where,
                status=status,
                site=row.site_key,
                field=e.level,
                message=str(e),
            )

    def _publish(self, tree: AssociationTree) -> PublishAck:
        """Publish with the configured pause since the previous publish."""
        if self._last_publish_at is not None and self.throttle_seconds > 0:
            remaining = self.throttle_seconds - (self._clock() - self._last_publish_at)
            if remaining > 0:
                self._sleep(remaining)
        try:
            return self.store.publish_tree(tree)
        finally:
            self._last_publish_at = self._clock()


def failure_status(error: RowFailure) -> RowStatus:
    """Map a row-local failure to the status recorded for the row."""
    if isinstance(error, PrefilterFailure):
        return RowStatus.PREFILTER_FAILED
    if isinstance(error, PublishFailure):
        return RowStatus.PUBLISH_FAILED
    return RowStatus.FETCH_FAILED
