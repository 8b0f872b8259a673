"""
Depotman Admin with Unfold theme.

This module provides Unfold-styled admin classes for Depotman models.
To use, add 'depotman.contrib.admin_unfold' to INSTALLED_APPS after 'depotman'.

The admins will automatically register the Unfold versions.
"""

import logging

from django.contrib import admin
from django.utils.translation import gettext_lazy as _
from unfold.decorators import display

from depotman.contrib.admin_unfold.base import (
    BaseModelAdmin,
    BaseTabularInline,
    ReadOnlyModelAdmin,
    format_datetime,
    format_money,
)
from depotman.exceptions import InventoryError
from depotman.models import (
    CountItemStatus,
    EntryStatus,
    LedgerEntry,
    Location,
    Move,
    Product,
    StockCount,
    StockCountItem,
    StockCountStatus,
    StockStatus,
    Transfer,
    TransferItem,
    TransferStatus,
)
from depotman.protocols.auth import principal_for_user

logger = logging.getLogger(__name__)


# =============================================================================
# LOCATION / PRODUCT ADMIN
# =============================================================================


@admin.register(Location)
class LocationAdmin(BaseModelAdmin):
    list_display = ['code', 'name', 'kind', 'is_active']
    list_filter = ['kind', 'is_active']
    search_fields = ['code', 'name']
    readonly_fields = ['created_at', 'updated_at']
    warn_unsaved_form = True


@admin.register(Product)
class ProductAdmin(BaseModelAdmin):
    list_display = ['sku', 'name', 'unit', 'cost_display', 'retail_display',
                    'reorder_point', 'is_active']
    list_filter = ['is_active', 'unit']
    search_fields = ['sku', 'name']
    readonly_fields = ['created_at', 'updated_at']
    warn_unsaved_form = True

    @display(description=_('Cost'), ordering='cost_price')
    def cost_display(self, obj):
        return format_money(obj.cost_price)

    @display(description=_('Retail'), ordering='retail_price')
    def retail_display(self, obj):
        return format_money(obj.retail_price)


# =============================================================================
# LEDGER ADMIN
# =============================================================================


@admin.register(LedgerEntry)
class LedgerEntryAdmin(ReadOnlyModelAdmin):
    """Ledger entries (read-only).

    Quantities change only through depotman.inventory so that every change
    leaves a Move behind.
    """

    list_display = ['product', 'location', 'status_display', 'quantity_display', 'updated_at']
    list_filter = ['status', 'location']
    search_fields = ['product__sku', 'product__name']
    list_select_related = ['product', 'location']
    readonly_fields = ['product', 'location', 'status', '_quantity',
                       'unit_cost_price', 'unit_retail_price', 'metadata',
                       'created_at', 'updated_at']

    @display(
        description=_('Status'),
        label={
            EntryStatus.AVAILABLE: 'success',
            EntryStatus.RESERVED: 'info',
            EntryStatus.IN_TRANSIT: 'info',
            EntryStatus.DAMAGED: 'danger',
            EntryStatus.EXPIRED: 'danger',
            EntryStatus.QUARANTINED: 'warning',
        },
    )
    def status_display(self, obj):
        return obj.status

    @display(description=_('Quantity'), ordering='_quantity')
    def quantity_display(self, obj):
        return obj.quantity


@admin.register(Move)
class MoveAdmin(ReadOnlyModelAdmin):
    """Moves (read-only). Immutable audit trail."""

    list_display = ['timestamp_display', 'entry', 'delta_display', 'reason', 'user_id']
    list_filter = ['timestamp', 'entry__status']
    search_fields = ['reason', 'user_id', 'entry__product__sku']
    readonly_fields = ['entry', 'delta', 'reference_type', 'reference_id',
                       'reason', 'metadata', 'timestamp', 'user_id']

    @display(description=_('Date'), ordering='timestamp')
    def timestamp_display(self, obj):
        return format_datetime(obj.timestamp)

    @display(description=_('Delta'), label=True)
    def delta_display(self, obj):
        return f'+{obj.delta}' if obj.delta > 0 else str(obj.delta)


# =============================================================================
# TRANSFER ADMIN
# =============================================================================


class TransferItemInline(BaseTabularInline):
    model = TransferItem
    extra = 0
    fields = ['product', 'requested_quantity', 'shipped_quantity',
              'received_quantity', 'condition', 'unit_cost', 'unit_retail']
    readonly_fields = fields

    def has_add_permission(self, request, obj=None):
        return False

    def has_delete_permission(self, request, obj=None):
        return False


@admin.register(Transfer)
class TransferAdmin(ReadOnlyModelAdmin):
    """Transfers (read-only). Transitions go through depotman.transfers."""

    list_display = ['transfer_number', 'transfer_type', 'source', 'destination',
                    'status_display', 'total_items', 'total_cost_display',
                    'created_at_display']
    list_filter = ['status', 'transfer_type', 'source', 'destination']
    search_fields = ['transfer_number', 'notes']
    list_select_related = ['source', 'destination']
    inlines = [TransferItemInline]
    actions = ['cancel_transfers']

    @display(
        description=_('Status'),
        label={
            TransferStatus.DRAFT: 'info',
            TransferStatus.SUBMITTED: 'info',
            TransferStatus.APPROVED: 'warning',
            TransferStatus.SENT: 'warning',
            TransferStatus.PARTIALLY_RECEIVED: 'warning',
            TransferStatus.RECEIVED: 'success',
            TransferStatus.REJECTED: 'danger',
            TransferStatus.CANCELLED: 'danger',
        },
    )
    def status_display(self, obj):
        return obj.status

    @display(description=_('Cost'), ordering='total_cost')
    def total_cost_display(self, obj):
        return format_money(obj.total_cost)

    @display(description=_('Created'), ordering='created_at')
    def created_at_display(self, obj):
        return format_datetime(obj.created_at)

    @admin.action(description=_('Cancel selected transfers'))
    def cancel_transfers(self, request, queryset):
        from depotman import transfers

        principal = principal_for_user(request.user)
        count = 0
        for transfer in queryset:
            try:
                transfers.cancel(transfer, 'Cancelled via admin', principal=principal)
                count += 1
            except InventoryError as exc:
                logger.warning("cancel_transfers: failed to cancel %s: %s",
                               transfer.transfer_number, exc)

        self.message_user(request, _('{count} transfer(s) cancelled.').format(count=count))


# =============================================================================
# STOCK STATUS ADMIN
# =============================================================================


@admin.register(StockStatus)
class StockStatusAdmin(ReadOnlyModelAdmin):
    list_display = ['product', 'location', 'current_stock', 'reserved_stock',
                    'available_display', 'last_movement_display']
    list_filter = ['out_of_stock', 'location']
    search_fields = ['product__sku', 'product__name']
    list_select_related = ['product', 'location']
    actions = ['recompute_rows']

    @display(description=_('Available'), ordering='available_stock', label=True)
    def available_display(self, obj):
        if obj.out_of_stock:
            return _('OUT')
        return obj.available_stock

    @display(description=_('Last movement'), ordering='last_movement_at')
    def last_movement_display(self, obj):
        return format_datetime(obj.last_movement_at)

    @admin.action(description=_('Recompute from ledger'))
    def recompute_rows(self, request, queryset):
        from depotman import stock_status

        for row in queryset:
            stock_status.recompute(row.location_id, row.product_id)

        self.message_user(request, _('{count} row(s) recomputed.').format(count=queryset.count()))


# =============================================================================
# STOCK COUNT ADMIN
# =============================================================================


class StockCountItemInline(BaseTabularInline):
    model = StockCountItem
    extra = 0
    fields = ['product', 'expected_quantity', 'counted_quantity', 'variance',
              'status_display', 'counted_by', 'counted_at']
    readonly_fields = fields

    def has_add_permission(self, request, obj=None):
        return False

    def has_delete_permission(self, request, obj=None):
        return False

    @display(
        description=_('Status'),
        label={
            CountItemStatus.PENDING: 'info',
            CountItemStatus.COUNTED: 'success',
            CountItemStatus.DISCREPANCY: 'warning',
            CountItemStatus.RECONCILED: 'success',
        },
    )
    def status_display(self, obj):
        return obj.status


@admin.register(StockCount)
class StockCountAdmin(ReadOnlyModelAdmin):
    """Stock counts (read-only). Counting goes through depotman.stock_counts."""

    list_display = ['count_number', 'location', 'status_display', 'progress_display',
                    'created_at_display']
    list_filter = ['status', 'location']
    search_fields = ['count_number', 'notes']
    list_select_related = ['location']
    inlines = [StockCountItemInline]
    actions = ['complete_counts']

    @display(
        description=_('Status'),
        label={
            StockCountStatus.PLANNED: 'info',
            StockCountStatus.IN_PROGRESS: 'warning',
            StockCountStatus.COMPLETED: 'success',
            StockCountStatus.CANCELLED: 'danger',
        },
    )
    def status_display(self, obj):
        return obj.status

    @display(description=_('Progress'))
    def progress_display(self, obj):
        return f'{obj.progress}%'

    @display(description=_('Created'), ordering='created_at')
    def created_at_display(self, obj):
        return format_datetime(obj.created_at)

    @admin.action(description=_('Complete selected counts'))
    def complete_counts(self, request, queryset):
        from depotman import stock_counts

        principal = principal_for_user(request.user)
        done = 0
        for count in queryset:
            try:
                stock_counts.complete(count, principal=principal)
                done += 1
            except InventoryError as exc:
                logger.warning("complete_counts: failed to complete %s: %s",
                               count.count_number, exc)

        self.message_user(request, _('{count} count(s) completed.').format(count=done))
