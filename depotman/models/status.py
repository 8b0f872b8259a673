"""
StockStatus model — derived sellability view per (location, product).
"""

from django.db import models
from django.utils import timezone
from django.utils.translation import gettext_lazy as _


class StockStatusQuerySet(models.QuerySet):

    def out_of_stock(self):
        return self.filter(out_of_stock=True)

    def low_stock(self, threshold: int):
        """0 < available_stock <= threshold."""
        return self.filter(
            out_of_stock=False,
            available_stock__gt=0,
            available_stock__lte=threshold,
        )

    def in_stock(self):
        return self.filter(out_of_stock=False, available_stock__gt=0)


class StockStatus(models.Model):
    """
    Projection of the ledger used for cheap "is this sellable" lookups.

    Not authoritative: rows are rebuilt from ledger entries by the
    aggregator after every mutation and never edited by hand.

    current_stock   = AVAILABLE + RESERVED
    reserved_stock  = RESERVED
    available_stock = current_stock - reserved_stock
    out_of_stock    = available_stock <= 0
    """

    location = models.ForeignKey(
        'depotman.Location',
        on_delete=models.CASCADE,
        related_name='stock_statuses',
        verbose_name=_('Location'),
    )
    product = models.ForeignKey(
        'depotman.Product',
        on_delete=models.CASCADE,
        related_name='stock_statuses',
        verbose_name=_('Product'),
    )

    current_stock = models.IntegerField(default=0, verbose_name=_('Current stock'))
    reserved_stock = models.IntegerField(default=0, verbose_name=_('Reserved stock'))
    available_stock = models.IntegerField(default=0, verbose_name=_('Available stock'))
    out_of_stock = models.BooleanField(default=True, db_index=True, verbose_name=_('Out of stock'))

    last_movement_at = models.DateTimeField(default=timezone.now, verbose_name=_('Last movement'))
    updated_at = models.DateTimeField(auto_now=True)

    objects = StockStatusQuerySet.as_manager()

    class Meta:
        verbose_name = _('Stock status')
        verbose_name_plural = _('Stock statuses')
        ordering = ['location', 'product']
        constraints = [
            models.UniqueConstraint(
                fields=['location', 'product'],
                name='unique_stock_status_per_location_product',
            ),
        ]

    def __str__(self) -> str:
        flag = 'OUT' if self.out_of_stock else self.available_stock
        return f"{self.product.sku} @ {self.location.code}: {flag}"
