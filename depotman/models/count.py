"""
Stock count models — physical counts reconciled against the ledger.
"""

from django.db import models
from django.db.models import Q
from django.utils.translation import gettext_lazy as _

from depotman.models.enums import CountItemStatus, StockCountStatus


class StockCountQuerySet(models.QuerySet):

    def open(self):
        """Counts that can still change."""
        return self.filter(status__in=[StockCountStatus.PLANNED, StockCountStatus.IN_PROGRESS])

    def at_location(self, location):
        return self.filter(location=location)


class StockCount(models.Model):
    """
    A physical count of AVAILABLE stock at one location.

    LIFECYCLE:

        PLANNED ──start()──► IN_PROGRESS ──complete()──► COMPLETED
           │                     │
           │ cancel()            │ cancel()
           ▼                     ▼
        CANCELLED            CANCELLED

    start() snapshots the expected quantity of every line. complete()
    books each counted difference as a SET adjustment with reason COUNT.
    """

    count_number = models.CharField(
        max_length=40,
        unique=True,
        null=True,
        blank=True,
        verbose_name=_('Count number'),
        help_text=_('Assigned on creation: CNT-YYYYMMDD-NNNN'),
    )
    location = models.ForeignKey(
        'depotman.Location',
        on_delete=models.PROTECT,
        related_name='stock_counts',
        verbose_name=_('Location'),
    )
    status = models.CharField(
        max_length=20,
        choices=StockCountStatus.choices,
        default=StockCountStatus.PLANNED,
        db_index=True,
        verbose_name=_('Status'),
    )
    notes = models.TextField(blank=True, default='', verbose_name=_('Notes'))
    cancellation_reason = models.TextField(blank=True, default='', verbose_name=_('Cancellation reason'))

    created_by = models.CharField(max_length=64, blank=True, default='')
    started_by = models.CharField(max_length=64, blank=True, default='')
    completed_by = models.CharField(max_length=64, blank=True, default='')

    created_at = models.DateTimeField(auto_now_add=True, db_index=True)
    updated_at = models.DateTimeField(auto_now=True)
    started_at = models.DateTimeField(null=True, blank=True)
    completed_at = models.DateTimeField(null=True, blank=True)
    cancelled_at = models.DateTimeField(null=True, blank=True)

    objects = StockCountQuerySet.as_manager()

    class Meta:
        verbose_name = _('Stock count')
        verbose_name_plural = _('Stock counts')
        ordering = ['-created_at', '-pk']

    @property
    def progress(self) -> int:
        """Percentage of lines counted."""
        total = self.items.count()
        if not total:
            return 0
        counted = self.items.exclude(status=CountItemStatus.PENDING).count()
        return counted * 100 // total

    def __str__(self) -> str:
        return f"{self.count_number or 'draft'} ({self.location.code})"


class StockCountItem(models.Model):
    """
    One product line of a count.

    variance = counted_quantity - expected_quantity, set once counted.
    """

    count = models.ForeignKey(
        StockCount,
        on_delete=models.CASCADE,
        related_name='items',
        verbose_name=_('Stock count'),
    )
    product = models.ForeignKey(
        'depotman.Product',
        on_delete=models.PROTECT,
        related_name='count_items',
        verbose_name=_('Product'),
    )

    expected_quantity = models.PositiveIntegerField(default=0, verbose_name=_('Expected'))
    counted_quantity = models.PositiveIntegerField(null=True, blank=True, verbose_name=_('Counted'))
    variance = models.IntegerField(null=True, blank=True, verbose_name=_('Variance'))
    status = models.CharField(
        max_length=20,
        choices=CountItemStatus.choices,
        default=CountItemStatus.PENDING,
        verbose_name=_('Status'),
    )
    notes = models.TextField(blank=True, default='', verbose_name=_('Notes'))

    counted_by = models.CharField(max_length=64, blank=True, default='')
    counted_at = models.DateTimeField(null=True, blank=True)

    class Meta:
        verbose_name = _('Stock count item')
        verbose_name_plural = _('Stock count items')
        ordering = ['pk']
        constraints = [
            models.UniqueConstraint(
                fields=['count', 'product'],
                name='unique_product_per_stock_count',
            ),
            models.CheckConstraint(
                condition=Q(counted_quantity__isnull=True) | Q(variance__isnull=False),
                name='stock_count_item_variance_when_counted',
            ),
        ]

    @property
    def is_counted(self) -> bool:
        return self.counted_quantity is not None

    def __str__(self) -> str:
        return f"{self.product.sku}: {self.counted_quantity}/{self.expected_quantity}"
