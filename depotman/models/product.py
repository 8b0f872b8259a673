"""
Product model — read-only catalog mirror used by the ledger.
"""

from decimal import Decimal

from django.db import models
from django.utils.translation import gettext_lazy as _


class Product(models.Model):
    """
    Catalog product, referenced by its unique SKU.

    Prices and thresholds belong to catalog management; the inventory core
    snapshots prices onto ledger entries and transfer lines but never
    writes back here.
    """

    sku = models.CharField(
        max_length=64,
        unique=True,
        verbose_name=_('SKU'),
    )
    name = models.CharField(
        max_length=200,
        verbose_name=_('Name'),
    )
    unit = models.CharField(
        max_length=20,
        default='pcs',
        verbose_name=_('Unit of measure'),
    )
    cost_price = models.DecimalField(
        max_digits=12,
        decimal_places=2,
        default=Decimal('0.00'),
        verbose_name=_('Cost price'),
    )
    retail_price = models.DecimalField(
        max_digits=12,
        decimal_places=2,
        default=Decimal('0.00'),
        verbose_name=_('Retail price'),
    )
    min_stock_level = models.PositiveIntegerField(
        default=0,
        verbose_name=_('Minimum stock level'),
    )
    reorder_point = models.PositiveIntegerField(
        default=0,
        verbose_name=_('Reorder point'),
    )
    is_active = models.BooleanField(default=True, verbose_name=_('Active'))

    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        verbose_name = _('Product')
        verbose_name_plural = _('Products')
        ordering = ['sku']

    def __str__(self) -> str:
        return f"{self.name} ({self.sku})"
