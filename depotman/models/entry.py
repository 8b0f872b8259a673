"""
LedgerEntry model — Quantity cache per (product, location, status).
"""

import logging
from decimal import Decimal

from django.db import models
from django.db.models import Q, Sum
from django.db.models.functions import Coalesce
from django.utils.translation import gettext_lazy as _

from depotman.models.enums import EntryStatus

logger = logging.getLogger('depotman')


class LedgerEntryQuerySet(models.QuerySet):
    """QuerySet with helper filters for ledger entries."""

    def for_product(self, product):
        return self.filter(product=product)

    def at_location(self, location):
        return self.filter(location=location)

    def with_status(self, status):
        return self.filter(status=status)

    def non_empty(self):
        return self.filter(_quantity__gt=0)

    def total(self) -> int:
        """Sum of quantities in the queryset."""
        return self.aggregate(t=Coalesce(Sum('_quantity'), 0))['t']


class LedgerEntry(models.Model):
    """
    Quantity of a product at a location, in one status bucket.

    Coordinates:
    - product:  WHAT
    - location: WHERE
    - status:   WHICH BUCKET (available, in transit, damaged, ...)

    Performance:
    - _quantity is a cache updated atomically by Move
    - Read is O(1), not O(N)
    - Use recalculate() for audit/correction

    An entry is never deleted while it holds stock. Empty entries may be
    pruned; their primary key is never reused.
    """

    product = models.ForeignKey(
        'depotman.Product',
        on_delete=models.PROTECT,
        related_name='ledger_entries',
        verbose_name=_('Product'),
    )
    location = models.ForeignKey(
        'depotman.Location',
        on_delete=models.PROTECT,
        related_name='ledger_entries',
        verbose_name=_('Location'),
    )
    status = models.CharField(
        max_length=20,
        choices=EntryStatus.choices,
        default=EntryStatus.AVAILABLE,
        verbose_name=_('Status'),
    )

    # Quantity cache (updated atomically by Move)
    _quantity = models.IntegerField(
        default=0,
        verbose_name=_('Quantity'),
    )

    # Price snapshot taken when the entry was created
    unit_cost_price = models.DecimalField(
        max_digits=12,
        decimal_places=2,
        default=Decimal('0.00'),
        verbose_name=_('Unit cost price'),
    )
    unit_retail_price = models.DecimalField(
        max_digits=12,
        decimal_places=2,
        default=Decimal('0.00'),
        verbose_name=_('Unit retail price'),
    )

    metadata = models.JSONField(default=dict, blank=True)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    objects = LedgerEntryQuerySet.as_manager()

    class Meta:
        verbose_name = _('Ledger entry')
        verbose_name_plural = _('Ledger entries')
        constraints = [
            models.UniqueConstraint(
                fields=['product', 'location', 'status'],
                name='unique_ledger_entry_key',
            ),
            models.CheckConstraint(
                condition=Q(_quantity__gte=0),
                name='ledger_entry_quantity_non_negative',
            ),
        ]
        indexes = [
            models.Index(fields=['location', 'status'], name='depotman_le_locatio_6b1f0e_idx'),
        ]

    @property
    def quantity(self) -> int:
        """Total quantity — O(1) cache read."""
        return self._quantity

    def recalculate(self) -> int:
        """
        Recalculate quantity from Moves.

        Use for:
        - Integrity audit
        - Correction after detected inconsistency

        Returns:
            New calculated quantity
        """
        total = self.moves.aggregate(
            t=Coalesce(Sum('delta'), 0)
        )['t']

        if total != self._quantity:
            old = self._quantity
            self._quantity = total
            self.save(update_fields=['_quantity', 'updated_at'])

            logger.warning(
                "LedgerEntry %s recalculated: %s -> %s (diff: %s)",
                self.pk, old, total, total - old,
            )

        return total

    def __str__(self) -> str:
        return f"{self.product.sku} [{self.location.code}/{self.status}]: {self._quantity}"
