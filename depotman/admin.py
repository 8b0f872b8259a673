"""
Depotman Admin — basic fallback (works without Unfold).

For the Unfold-styled version, add 'depotman.contrib.admin_unfold' to INSTALLED_APPS.
When the Unfold contrib is loaded, this module does nothing (avoids double registration).

Provides:
- Location, Product: list + edit
- LedgerEntry: read-only (stock only changes through the inventory service)
- Move: read-only audit trail
- Transfer: read-only with items inline and a "cancel" action
- StockStatus: read-only with a "recompute" action
- StockCount: read-only with items inline and a "complete" action
"""

import logging

from django.apps import apps
from django.contrib import admin
from django.utils.translation import gettext_lazy as _

logger = logging.getLogger(__name__)


class ReadOnlyMixin:

    def has_add_permission(self, request, obj=None):
        return False

    def has_change_permission(self, request, obj=None):
        return False

    def has_delete_permission(self, request, obj=None):
        return False


# Skip registration if the Unfold contrib is installed (it will register its own admins)
if not apps.is_installed('depotman.contrib.admin_unfold'):
    from depotman.exceptions import InventoryError
    from depotman.protocols.auth import principal_for_user
    from depotman.models import (
        LedgerEntry,
        Location,
        Move,
        Product,
        StockCount,
        StockCountItem,
        StockStatus,
        Transfer,
        TransferItem,
    )

    # =========================================================================
    # CATALOG
    # =========================================================================

    @admin.register(Location)
    class LocationAdmin(admin.ModelAdmin):
        list_display = ['code', 'name', 'kind', 'is_active']
        list_filter = ['kind', 'is_active']
        search_fields = ['code', 'name']
        readonly_fields = ['created_at', 'updated_at']

    @admin.register(Product)
    class ProductAdmin(admin.ModelAdmin):
        list_display = ['sku', 'name', 'unit', 'cost_price', 'retail_price',
                        'reorder_point', 'is_active']
        list_filter = ['is_active', 'unit']
        search_fields = ['sku', 'name']
        readonly_fields = ['created_at', 'updated_at']

    # =========================================================================
    # LEDGER (read-only)
    # =========================================================================

    @admin.register(LedgerEntry)
    class LedgerEntryAdmin(ReadOnlyMixin, admin.ModelAdmin):
        """Ledger entries — read-only. Stock only changes via the inventory service."""

        list_display = ['product', 'location', 'status', 'quantity_display', 'updated_at']
        list_filter = ['status', 'location']
        search_fields = ['product__sku', 'product__name']
        list_select_related = ['product', 'location']
        readonly_fields = ['product', 'location', 'status', '_quantity',
                           'unit_cost_price', 'unit_retail_price', 'metadata',
                           'created_at', 'updated_at']

        @admin.display(description=_('Quantity'), ordering='_quantity')
        def quantity_display(self, obj):
            return obj.quantity

    @admin.register(Move)
    class MoveAdmin(ReadOnlyMixin, admin.ModelAdmin):
        """Move admin — read-only. Immutable audit trail."""

        list_display = ['timestamp', 'entry', 'delta', 'reason', 'user_id']
        list_filter = ['timestamp', 'entry__status']
        search_fields = ['reason', 'user_id', 'entry__product__sku']
        readonly_fields = ['entry', 'delta', 'reference_type', 'reference_id',
                           'reason', 'metadata', 'timestamp', 'user_id']
        date_hierarchy = 'timestamp'

    # =========================================================================
    # TRANSFERS
    # =========================================================================

    class TransferItemInline(ReadOnlyMixin, admin.TabularInline):
        model = TransferItem
        extra = 0
        fields = ['product', 'requested_quantity', 'shipped_quantity',
                  'received_quantity', 'condition', 'unit_cost', 'unit_retail']
        readonly_fields = fields

    @admin.register(Transfer)
    class TransferAdmin(ReadOnlyMixin, admin.ModelAdmin):
        """Transfer admin — read-only. Transitions go through the workflow service."""

        list_display = ['transfer_number', 'transfer_type', 'source', 'destination',
                        'status', 'total_items', 'created_at']
        list_filter = ['status', 'transfer_type', 'source', 'destination']
        search_fields = ['transfer_number', 'notes']
        list_select_related = ['source', 'destination']
        inlines = [TransferItemInline]
        date_hierarchy = 'created_at'
        actions = ['cancel_transfers']

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

    # =========================================================================
    # STOCK STATUS (read-only projection)
    # =========================================================================

    @admin.register(StockStatus)
    class StockStatusAdmin(ReadOnlyMixin, admin.ModelAdmin):
        list_display = ['product', 'location', 'current_stock', 'reserved_stock',
                        'available_stock', 'out_of_stock', 'last_movement_at']
        list_filter = ['out_of_stock', 'location']
        search_fields = ['product__sku', 'product__name']
        list_select_related = ['product', 'location']
        actions = ['recompute_rows']

        @admin.action(description=_('Recompute from ledger'))
        def recompute_rows(self, request, queryset):
            from depotman import stock_status

            count = 0
            for row in queryset:
                stock_status.recompute(row.location_id, row.product_id)
                count += 1

            self.message_user(request, _('{count} row(s) recomputed.').format(count=count))

    # =========================================================================
    # STOCK COUNTS
    # =========================================================================

    class StockCountItemInline(ReadOnlyMixin, admin.TabularInline):
        model = StockCountItem
        extra = 0
        fields = ['product', 'expected_quantity', 'counted_quantity', 'variance',
                  'status', 'counted_by', 'counted_at']
        readonly_fields = fields

    @admin.register(StockCount)
    class StockCountAdmin(ReadOnlyMixin, admin.ModelAdmin):
        """Stock count admin — read-only. Counting goes through the workflow service."""

        list_display = ['count_number', 'location', 'status', 'created_at', 'completed_at']
        list_filter = ['status', 'location']
        search_fields = ['count_number', 'notes']
        list_select_related = ['location']
        inlines = [StockCountItemInline]
        date_hierarchy = 'created_at'
        actions = ['complete_counts']

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
