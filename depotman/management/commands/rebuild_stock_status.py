"""
Management command to rebuild the StockStatus projection from the ledger.

Usage:
    python manage.py rebuild_stock_status
    python manage.py rebuild_stock_status --location downtown
    python manage.py rebuild_stock_status --dry-run
"""

from django.core.management.base import BaseCommand, CommandError
from django.db.models import Q

from depotman import stock_status
from depotman.models import LedgerEntry, Location, StockStatus


class Command(BaseCommand):
    """Rebuild stock status command."""

    help = 'Recompute stock status rows from ledger entries'

    def add_arguments(self, parser):
        parser.add_argument(
            '--location',
            metavar='CODE',
            help='Only rebuild rows for this location code',
        )
        parser.add_argument(
            '--dry-run',
            action='store_true',
            help='Show how many rows would be recomputed without writing',
        )

    def handle(self, *args, **options):
        location = None
        if options['location']:
            try:
                location = Location.objects.get(code=options['location'])
            except Location.DoesNotExist:
                raise CommandError(f"Unknown location: {options['location']}")

        if options['dry_run']:
            entries = LedgerEntry.objects.all()
            statuses = StockStatus.objects.all()
            if location is not None:
                entries = entries.filter(location=location)
                statuses = statuses.filter(location=location)
            keys = set(entries.values_list('location_id', 'product_id'))
            keys |= set(statuses.values_list('location_id', 'product_id'))
            self.stdout.write(f'{len(keys)} row(s) would be recomputed')
            return

        count = stock_status.rebuild(location=location)
        self.stdout.write(self.style.SUCCESS(f'{count} row(s) recomputed'))
