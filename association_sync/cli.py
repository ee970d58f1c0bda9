"""
Command line entry point for association sync.

Usage:
    python -m association_sync <command> [options]

Commands:
    run         Reconcile workbook rows into the sites' association trees
    racks       Insert the racks listed in workbook rows under their room/floor
    inspect     Print a site's association tree as JSON
    locate      Print the id of the room (or floor) node for a placement
    check       Validate connectivity to the association API and location store

Run options:
    --input PATH            Workbook (.xlsx) or CSV file (default: WORKBOOK_PATH)
    --sheet NAME            Sheet to read (can repeat, default: SHEET_NAMES or all)
    --sites PATH            Site table JSON/CSV (default: SITE_MAP_FILE)
    --dry-run               Resolve paths without publishing
    --skip-existing-areas   Skip rows whose area is already in the location store
    --limit N               Process only the first N records
    --throttle SECONDS      Pause between publishes (default: PUBLISH_THROTTLE_SECONDS)
    --verbose               Debug logging

Racks options:
    --input, --sheet, --limit, --dry-run as for run. Racks already stored in
    the location store under the same room/floor are skipped.

Exit codes: 0 success, 1 some rows failed to fetch/publish, 2 fatal error.
"""

import argparse
import json
import logging
import sys
from contextlib import ExitStack
from itertools import islice

from association_sync.config.settings import settings
from association_sync.config.sites import SiteConfigError, SiteRegistry
from association_sync.connectors.location_store import LocationStoreConnector
from association_sync.extractors.workbook_extractor import WorkbookExtractor
from association_sync.reconciliation.client import AssociationClient
from association_sync.reconciliation.engine import AssociationReconciler, ReconciliationReport
from association_sync.reconciliation.errors import FatalError, RowFailure
from association_sync.reconciliation.racks import RackInserter
from association_sync.reconciliation.tree import find_duplicate_siblings, find_placement_node
from association_sync.reconciliation.validator import DEFAULT_FIELDS, DEFAULT_RACK_FIELDS
from association_sync.utils.logger import configure_logging

logger = logging.getLogger(__name__)

EXIT_OK = 0
EXIT_ROW_FAILURES = 1
EXIT_FATAL = 2


def _load_sites(args) -> SiteRegistry:
    return SiteRegistry.from_file(args.sites or settings.SITE_MAP_FILE)


def _resolve_site(sites: SiteRegistry, name: str) -> str:
    site_id = sites.lookup(name)
    if site_id is None:
        raise SiteConfigError(f'Site "{name}" is not in the site table')
    return site_id


def _read_records(args, fields):
    extractor = WorkbookExtractor(args.input or settings.WORKBOOK_PATH, fields)
    records = extractor.extract(sheets=args.sheet or settings.SHEET_NAMES or None)
    extractor.validate_extraction(records)
    if args.limit is not None:
        records = list(islice(records, args.limit))
    return records


def _print_report(report: ReconciliationReport) -> int:
    print(report.summary())
    for failure in report.failures:
        print(f'  {failure.source} [{failure.status.value}] {failure.site}: {failure.message}')
    return EXIT_ROW_FAILURES if report.failures else EXIT_OK


def cmd_run(args) -> int:
    """Reconcile input rows."""
    sites = _load_sites(args)
    records = _read_records(args, DEFAULT_FIELDS)

    with ExitStack() as stack:
        area_index = None
        if args.skip_existing_areas:
            area_index = stack.enter_context(LocationStoreConnector(settings.get_database_url()))
        client = stack.enter_context(AssociationClient.from_settings())
        reconciler = AssociationReconciler(
            client,
            sites,
            grouping_name=settings.GROUPING_NODE_NAME,
            throttle_seconds=(
                args.throttle if args.throttle is not None
                else settings.PUBLISH_THROTTLE_SECONDS
            ),
            area_index=area_index,
            dry_run=args.dry_run,
        )
        report = reconciler.run(records)

    return _print_report(report)


def cmd_racks(args) -> int:
    """Insert racks under their room/floor."""
    sites = _load_sites(args)
    records = _read_records(args, DEFAULT_RACK_FIELDS)

    with LocationStoreConnector(settings.get_database_url()) as store:
        with AssociationClient.from_settings() as client:
            inserter = RackInserter(client, sites, store, dry_run=args.dry_run)
            report = inserter.run(records)

    return _print_report(report)


def cmd_inspect(args) -> int:
    """Print a site's tree."""
    sites = _load_sites(args)
    site_id = _resolve_site(sites, args.site)
    with AssociationClient.from_settings() as client:
        tree = client.fetch_tree(site_id)

    print(json.dumps(tree.to_payload(), indent=2, default=str))

    if args.check_duplicates:
        duplicates = find_duplicate_siblings(tree)
        for parent, node_type, name in duplicates:
            print(f'Duplicate {node_type} "{name}" under {parent or "<root>"}', file=sys.stderr)
        return EXIT_ROW_FAILURES if duplicates else EXIT_OK
    return EXIT_OK


def cmd_locate(args) -> int:
    """Print the placement node id for a floor/room."""
    sites = _load_sites(args)
    site_id = _resolve_site(sites, args.site)
    with AssociationClient.from_settings() as client:
        tree = client.fetch_tree(site_id)

    node = find_placement_node(tree, args.floor, args.room)
    if node is None or node.id is None:
        print(f'No room/floor found for floor={args.floor!r} room={args.room!r}', file=sys.stderr)
        return EXIT_ROW_FAILURES
    print(node.id)
    return EXIT_OK


def cmd_check(args) -> int:
    """Validate connections."""
    ok = True
    with AssociationClient.from_settings() as client:
        ok = client.connector.validate_connection() and ok

    if args.database:
        try:
            with LocationStoreConnector(settings.get_database_url()) as store:
                ok = store.validate_connection() and ok
        except FatalError as e:
            print(f'Location store: {e}', file=sys.stderr)
            ok = False

    missing = settings.validate_required_settings()
    for key in missing:
        print(f'Missing setting: {key}', file=sys.stderr)

    print('OK' if ok and not missing else 'FAILED')
    return EXIT_OK if ok and not missing else EXIT_ROW_FAILURES


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog='association-sync',
        description='Reconcile facility locations into remote association trees',
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog=__doc__,
    )
    parser.add_argument(
        '--verbose', '-v',
        action='store_true',
        help='Debug logging',
    )
    parser.add_argument(
        '--sites',
        metavar='PATH',
        help='Site table JSON/CSV (default: SITE_MAP_FILE)',
    )
    subparsers = parser.add_subparsers(dest='command', required=True)

    run = subparsers.add_parser('run', help='Reconcile workbook rows')
    run.add_argument('--input', metavar='PATH', help='Workbook or CSV file')
    run.add_argument(
        '--sheet',
        action='append',
        metavar='NAME',
        help='Sheet(s) to read (can repeat, default: all)',
    )
    run.add_argument('--dry-run', action='store_true', help='Do not publish')
    run.add_argument(
        '--skip-existing-areas',
        action='store_true',
        help='Skip rows whose area already exists in the location store',
    )
    run.add_argument('--limit', type=int, metavar='N', help='Process only N records')
    run.add_argument('--throttle', type=float, metavar='SECONDS', help='Pause between publishes')
    run.set_defaults(func=cmd_run)

    racks = subparsers.add_parser('racks', help='Insert racks from workbook rows')
    racks.add_argument('--input', metavar='PATH', help='Workbook or CSV file')
    racks.add_argument(
        '--sheet',
        action='append',
        metavar='NAME',
        help='Sheet(s) to read (can repeat, default: all)',
    )
    racks.add_argument('--dry-run', action='store_true', help='Do not create racks')
    racks.add_argument('--limit', type=int, metavar='N', help='Process only N records')
    racks.set_defaults(func=cmd_racks)

    inspect = subparsers.add_parser('inspect', help="Print a site's association tree")
    inspect.add_argument('--site', required=True, help='Site key from the site table')
    inspect.add_argument(
        '--check-duplicates',
        action='store_true',
        help='Report sibling nodes sharing type and name',
    )
    inspect.set_defaults(func=cmd_inspect)

    locate = subparsers.add_parser('locate', help='Find the placement node of a floor/room')
    locate.add_argument('--site', required=True, help='Site key from the site table')
    locate.add_argument('--floor', required=True, help='Floor name')
    locate.add_argument('--room', help='Room name (preferred over the floor when found)')
    locate.set_defaults(func=cmd_locate)

    check = subparsers.add_parser('check', help='Validate connectivity')
    check.add_argument('--database', action='store_true', help='Also check the location store')
    check.set_defaults(func=cmd_check)

    return parser


def main(argv=None) -> int:
    """Main CLI entry point."""
    args = build_parser().parse_args(argv)
    configure_logging('association-sync', level='DEBUG' if args.verbose else None)

    try:
        return args.func(args)
    except SiteConfigError as e:
        print(f'ERROR: {e}', file=sys.stderr)
        return EXIT_FATAL
    except RowFailure as e:
        print(f'ERROR: {e}', file=sys.stderr)
        return EXIT_ROW_FAILURES
    except FatalError as e:
        logger.error(f'Fatal error: {e}')
        print(f'FATAL: {e}', file=sys.stderr)
        return EXIT_FATAL


if __name__ == '__main__':
    sys.exit(main())
