"""
Management command to check ledger entries against their moves.

Usage:
    python manage.py verify_ledger
    python manage.py verify_ledger --fix
    python manage.py verify_ledger --prune
"""

from django.core.management.base import BaseCommand, CommandError
from django.db import transaction
from django.db.models import Count, Sum
from django.db.models.functions import Coalesce

from depotman import stock_status
from depotman.conf import depotman_settings
from depotman.models import LedgerEntry, Move
from depotman.services.audit import record_event


class Command(BaseCommand):
    """Verify ledger command."""

    help = 'Compare cached entry quantities with the sum of their moves'

    def add_arguments(self, parser):
        parser.add_argument(
            '--fix',
            action='store_true',
            help='Rewrite drifted quantities from the move history',
        )
        parser.add_argument(
            '--prune',
            action='store_true',
            help='Delete emptied entries and their moves (needs PRUNE_EMPTY_ENTRIES)',
        )

    def handle(self, *args, **options):
        if options['prune'] and not depotman_settings.PRUNE_EMPTY_ENTRIES:
            raise CommandError('Pruning is disabled: set DEPOTMAN["PRUNE_EMPTY_ENTRIES"] = True')

        entries = LedgerEntry.objects.select_related('product', 'location').annotate(
            moved=Coalesce(Sum('moves__delta'), 0),
        )
        drifted = [entry for entry in entries if entry.moved != entry._quantity]

        for entry in drifted:
            self.stdout.write(
                self.style.WARNING(f'{entry}: moves sum to {entry.moved}')
            )
            if options['fix']:
                with transaction.atomic():
                    entry.recalculate()
                    stock_status.recompute(entry.location, entry.product)

        if options['fix']:
            self.stdout.write(self.style.SUCCESS(f'{len(drifted)} entr(y/ies) fixed'))
        else:
            self.stdout.write(f'{len(drifted)} entr(y/ies) drifted')

        if options['prune']:
            self.stdout.write(self.style.SUCCESS(f'{self.prune()} empty entr(y/ies) pruned'))

    def prune(self) -> int:
        """
        Delete entries that are empty and whose moves net to zero, moves
        included. Primary keys are never reused, so a later receipt gets a
        fresh entry.
        """
        candidates = (
            LedgerEntry.objects.filter(_quantity=0)
            .annotate(moved=Coalesce(Sum('moves__delta'), 0))
            .filter(moved=0)
            .values_list('pk', flat=True)
        )

        with transaction.atomic():
            empty = list(
                LedgerEntry.objects.select_for_update(of=('self',))
                .select_related('product', 'location')
                .filter(pk__in=list(candidates), _quantity=0)
                .order_by('pk')
            )
            ids = [entry.pk for entry in empty]
            move_counts = dict(
                Move.objects.filter(entry_id__in=ids)
                .values_list('entry_id')
                .annotate(n=Count('pk'))
            )
            for entry in empty:
                record_event('LedgerEntry', entry.pk, 'PRUNE', '', {
                    'product': entry.product.sku,
                    'location': entry.location.code,
                    'status': entry.status,
                    'moves': move_counts.get(entry.pk, 0),
                })

            Move.objects.filter(entry_id__in=ids).delete()
            LedgerEntry.objects.filter(pk__in=ids).delete()
        return len(ids)
