"""
Transfer models — shipment of products between two locations.
"""

from decimal import Decimal

from django.db import models
from django.db.models import F, Q
from django.utils.translation import gettext_lazy as _

from depotman.models.enums import (
    ItemCondition,
    TERMINAL_TRANSFER_STATUSES,
    TransferStatus,
    TransferType,
)


class TransferQuerySet(models.QuerySet):

    def open(self):
        """Transfers that have not reached a terminal status."""
        return self.exclude(status__in=TERMINAL_TRANSFER_STATUSES)

    def involving(self, location):
        """Transfers leaving or arriving at the location."""
        return self.filter(Q(source=location) | Q(destination=location))


class Transfer(models.Model):
    """
    Header of a tracked movement of goods between two locations.

    LIFECYCLE:

        DRAFT ──submit()──► SUBMITTED ──approve()──► APPROVED ──ship()──► SENT
          │                    │    │                    │                 │
          │ cancel()           │    │ reject()           │ cancel()        │ receive()
          ▼                    ▼    ▼                    ▼                 ▼
        CANCELLED ◄────────────┘  REJECTED           CANCELLED     PARTIALLY_RECEIVED
                                                                           │ receive()
                                                                           ▼
                                                                       RECEIVED

    Only ship() and receive() touch the ledger. Everything else is a
    status change.
    """

    transfer_number = models.CharField(
        max_length=40,
        unique=True,
        null=True,
        blank=True,
        verbose_name=_('Transfer number'),
        help_text=_('Assigned on creation: TRF-YYYYMMDD-NNNN'),
    )
    transfer_type = models.CharField(
        max_length=20,
        choices=TransferType.choices,
        verbose_name=_('Type'),
    )
    source = models.ForeignKey(
        'depotman.Location',
        on_delete=models.PROTECT,
        related_name='outbound_transfers',
        verbose_name=_('Source'),
    )
    destination = models.ForeignKey(
        'depotman.Location',
        on_delete=models.PROTECT,
        related_name='inbound_transfers',
        verbose_name=_('Destination'),
    )
    status = models.CharField(
        max_length=20,
        choices=TransferStatus.choices,
        default=TransferStatus.DRAFT,
        db_index=True,
        verbose_name=_('Status'),
    )

    # Totals, recomputed from lines on create and submit
    total_items = models.PositiveIntegerField(default=0, verbose_name=_('Total units'))
    total_cost = models.DecimalField(
        max_digits=14, decimal_places=2, default=Decimal('0.00'), verbose_name=_('Total cost'),
    )
    total_retail = models.DecimalField(
        max_digits=14, decimal_places=2, default=Decimal('0.00'), verbose_name=_('Total retail'),
    )

    notes = models.TextField(blank=True, default='', verbose_name=_('Notes'))
    cancellation_reason = models.TextField(blank=True, default='', verbose_name=_('Cancellation / rejection reason'))

    # Actors (external principals, weak references)
    created_by = models.CharField(max_length=64, blank=True, default='')
    approved_by = models.CharField(max_length=64, blank=True, default='')
    shipped_by = models.CharField(max_length=64, blank=True, default='')
    completed_by = models.CharField(max_length=64, blank=True, default='')

    created_at = models.DateTimeField(auto_now_add=True, db_index=True)
    updated_at = models.DateTimeField(auto_now=True)
    submitted_at = models.DateTimeField(null=True, blank=True)
    approved_at = models.DateTimeField(null=True, blank=True)
    shipped_at = models.DateTimeField(null=True, blank=True)
    completed_at = models.DateTimeField(null=True, blank=True)
    cancelled_at = models.DateTimeField(null=True, blank=True)

    objects = TransferQuerySet.as_manager()

    class Meta:
        verbose_name = _('Transfer')
        verbose_name_plural = _('Transfers')
        ordering = ['-created_at', '-pk']
        constraints = [
            models.CheckConstraint(
                condition=~Q(source=F('destination')),
                name='transfer_source_differs_from_destination',
            ),
        ]
        indexes = [
            models.Index(fields=['source', 'status'], name='depotman_tr_source__8e41c7_idx'),
            models.Index(fields=['destination', 'status'], name='depotman_tr_destina_5a7b90_idx'),
        ]

    @property
    def is_terminal(self) -> bool:
        return self.status in TERMINAL_TRANSFER_STATUSES

    @property
    def is_fully_received(self) -> bool:
        """Every line received up to its shipped quantity."""
        return not self.items.filter(received_quantity__lt=F('shipped_quantity')).exists()

    def __str__(self) -> str:
        return f"{self.transfer_number or 'draft'} ({self.source.code} → {self.destination.code})"


class TransferItem(models.Model):
    """
    One product line of a transfer.

    Invariant: 0 <= received_quantity <= shipped_quantity <= requested_quantity.
    """

    transfer = models.ForeignKey(
        Transfer,
        on_delete=models.CASCADE,
        related_name='items',
        verbose_name=_('Transfer'),
    )
    product = models.ForeignKey(
        'depotman.Product',
        on_delete=models.PROTECT,
        related_name='transfer_items',
        verbose_name=_('Product'),
    )

    requested_quantity = models.PositiveIntegerField(verbose_name=_('Requested'))
    shipped_quantity = models.PositiveIntegerField(default=0, verbose_name=_('Shipped'))
    received_quantity = models.PositiveIntegerField(default=0, verbose_name=_('Received'))
    condition = models.CharField(
        max_length=20,
        choices=ItemCondition.choices,
        default=ItemCondition.GOOD,
        verbose_name=_('Condition'),
    )

    # Price snapshot at creation
    unit_cost = models.DecimalField(
        max_digits=12, decimal_places=2, default=Decimal('0.00'), verbose_name=_('Unit cost'),
    )
    unit_retail = models.DecimalField(
        max_digits=12, decimal_places=2, default=Decimal('0.00'), verbose_name=_('Unit retail'),
    )

    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        verbose_name = _('Transfer item')
        verbose_name_plural = _('Transfer items')
        ordering = ['pk']
        constraints = [
            models.UniqueConstraint(
                fields=['transfer', 'product'],
                name='unique_product_per_transfer',
            ),
            models.CheckConstraint(
                condition=Q(requested_quantity__gt=0),
                name='transfer_item_requested_positive',
            ),
            models.CheckConstraint(
                condition=Q(shipped_quantity__lte=F('requested_quantity')),
                name='transfer_item_shipped_within_requested',
            ),
            models.CheckConstraint(
                condition=Q(received_quantity__lte=F('shipped_quantity')),
                name='transfer_item_received_within_shipped',
            ),
        ]

    @property
    def remaining_quantity(self) -> int:
        """Shipped but not yet received."""
        return self.shipped_quantity - self.received_quantity

    @property
    def line_cost(self) -> Decimal:
        return self.requested_quantity * self.unit_cost

    @property
    def line_retail(self) -> Decimal:
        return self.requested_quantity * self.unit_retail

    def __str__(self) -> str:
        return f"{self.product.sku} x{self.requested_quantity}"
