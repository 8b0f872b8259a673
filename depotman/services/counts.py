"""
Stock count workflow — PLANNED → IN_PROGRESS → COMPLETED.

A count lists the products to check at one location. start() freezes the
expected AVAILABLE quantity of every line, record() stores what was found
on the shelf and complete() books the differences through
InventoryGateway.adjust(SET, COUNT) in one transaction.
"""

import logging

from django.db import transaction
from django.utils import timezone

from depotman.conf import depotman_settings
from depotman.exceptions import InvalidState, InventoryError, NotFound
from depotman.models.count import StockCount, StockCountItem
from depotman.models.entry import LedgerEntry
from depotman.models.enums import (
    CANCELLABLE_COUNT_STATUSES,
    AdjustmentType,
    CountItemStatus,
    EntryStatus,
    ReasonCode,
    StockCountStatus,
)
from depotman.protocols.auth import require_principal
from depotman.services.audit import record_event
from depotman.services.gateway import InventoryGateway, check_quantity
from depotman.services.ledger import StockLedger
from depotman.services.lookup import ensure_active, resolve_location, resolve_product

logger = logging.getLogger('depotman')


class StockCountWorkflow:
    """Stock count lifecycle methods."""

    @classmethod
    def get(cls, count) -> StockCount:
        """
        Fetch a count by instance, pk or count number.

        Raises:
            NotFound('COUNT_NOT_FOUND')
        """
        try:
            return StockCount.objects.select_related('location').get(**cls._lookup(count))
        except (StockCount.DoesNotExist, TypeError, ValueError):
            raise NotFound('COUNT_NOT_FOUND', count=str(count))

    @classmethod
    def list(cls, status=None, location=None):
        """Counts newest first, optionally by status and/or location."""
        qs = StockCount.objects.select_related('location')
        if status is not None:
            qs = qs.filter(status=status)
        if location is not None:
            qs = qs.at_location(resolve_location(location))
        return qs.order_by('-created_at', '-pk')

    @classmethod
    def create(cls, location, products=None, *, principal, notes='') -> StockCount:
        """
        Plan a count.

        Args:
            location: Location object, code or pk (must be active)
            products: products to count; None counts every product that
                has an AVAILABLE entry at the location

        Raises:
            InventoryError('EMPTY_COUNT'): nothing to count
        """
        principal = require_principal(principal)
        location = ensure_active(resolve_location(location))

        if products is None:
            selected = [
                entry.product
                for entry in LedgerEntry.objects.filter(
                    location=location, status=EntryStatus.AVAILABLE,
                ).select_related('product').order_by('product__sku')
            ]
        else:
            selected = []
            for product in products:
                product = resolve_product(product)
                if product not in selected:
                    selected.append(product)

        if not selected:
            raise InventoryError('EMPTY_COUNT', location=location.code)

        with transaction.atomic():
            count = StockCount.objects.create(
                location=location,
                notes=notes,
                created_by=principal.user_id,
            )
            StockCountItem.objects.bulk_create([
                StockCountItem(count=count, product=product) for product in selected
            ])
            count.count_number = cls.number_for(count)
            count.save(update_fields=['count_number', 'updated_at'])

            cls._audit(count, 'CREATE', principal, products=[p.sku for p in selected])

        cls._log("stock_count.created", count, principal, lines=len(selected))
        return count

    @classmethod
    def number_for(cls, count: StockCount) -> str:
        """PREFIX-YYYYMMDD-NNNN, NNNN being the zero-padded primary key."""
        stamp = count.created_at or timezone.now()
        if timezone.is_aware(stamp):
            stamp = timezone.localtime(stamp)
        return f"{depotman_settings.COUNT_NUMBER_PREFIX}-{stamp:%Y%m%d}-{count.pk:04d}"

    @classmethod
    def start(cls, count, *, principal) -> StockCount:
        """
        PLANNED → IN_PROGRESS. Snapshots each line's expected quantity.

        Starting an IN_PROGRESS count is a no-op.
        """
        principal = require_principal(principal)

        with transaction.atomic():
            count = cls._lock(count)
            if count.status == StockCountStatus.IN_PROGRESS:
                return count
            cls._check_status(count, [StockCountStatus.PLANNED], 'start')

            items = list(count.items.select_related('product'))
            for item in items:
                item.expected_quantity = StockLedger.get_quantity(
                    item.product, count.location, EntryStatus.AVAILABLE,
                )
            StockCountItem.objects.bulk_update(items, ['expected_quantity'])

            count.status = StockCountStatus.IN_PROGRESS
            count.started_at = timezone.now()
            count.started_by = principal.user_id
            count.save()
            cls._audit(count, 'START', principal, expected={
                item.product.sku: item.expected_quantity for item in items
            })

        cls._log("stock_count.started", count, principal)
        return count

    @classmethod
    def record(cls, count, lines, *, principal) -> StockCount:
        """
        Store counted quantities on an IN_PROGRESS count.

        Args:
            lines: iterable of {"product": ..., "quantity": int >= 0,
                "notes": optional}

        Recording a product again replaces the earlier figure.

        Raises:
            NotFound('COUNT_LINE_NOT_FOUND'): product isn't on the count
            InvalidQuantity: negative or non-integer quantity
        """
        principal = require_principal(principal)

        with transaction.atomic():
            count = cls._lock(count)
            cls._check_status(count, [StockCountStatus.IN_PROGRESS], 'record')

            items = {item.product_id: item for item in count.items.select_related('product')}
            now = timezone.now()
            recorded = []

            for index, line in enumerate(lines or []):
                product = resolve_product(line.get('product'))
                item = items.get(product.pk)
                if item is None:
                    raise NotFound(
                        'COUNT_LINE_NOT_FOUND',
                        count=count.count_number,
                        line=index,
                        product=product.sku,
                    )
                quantity = check_quantity(
                    line.get('quantity'), allow_zero=True, line=index, product=product.sku,
                )

                item.counted_quantity = quantity
                item.variance = quantity - item.expected_quantity
                item.status = (
                    CountItemStatus.DISCREPANCY if item.variance else CountItemStatus.COUNTED
                )
                item.notes = line.get('notes') or item.notes
                item.counted_by = principal.user_id
                item.counted_at = now
                item.save()
                recorded.append({
                    'product': product.sku,
                    'counted': quantity,
                    'variance': item.variance,
                })

            cls._audit(count, 'RECORD', principal, lines=recorded)

        return count

    @classmethod
    def complete(cls, count, *, principal) -> StockCount:
        """
        IN_PROGRESS → COMPLETED.

        Uncounted lines are closed as matching the snapshot. Every line
        with a variance becomes a SET adjustment to the counted quantity
        (reason COUNT) and is marked RECONCILED. A failing adjustment
        rolls the whole completion back. Completing a COMPLETED count is
        a no-op.
        """
        principal = require_principal(principal)

        with transaction.atomic():
            count = cls._lock(count)
            if count.status == StockCountStatus.COMPLETED:
                return count
            cls._check_status(count, [StockCountStatus.IN_PROGRESS], 'complete')

            items = list(count.items.select_related('product').order_by('product_id'))
            StockLedger.lock_keys(
                (item.product_id, count.location_id, EntryStatus.AVAILABLE)
                for item in items
                if item.variance
            )
            now = timezone.now()
            adjusted = []

            for item in items:
                if not item.is_counted:
                    item.counted_quantity = item.expected_quantity
                    item.variance = 0
                    item.status = CountItemStatus.COUNTED
                    item.counted_by = principal.user_id
                    item.counted_at = now
                elif item.variance:
                    InventoryGateway.adjust(
                        item.product, count.location,
                        AdjustmentType.SET, item.counted_quantity, ReasonCode.COUNT,
                        principal=principal,
                        notes=f"Stock count {count.count_number}",
                    )
                    item.status = CountItemStatus.RECONCILED
                    adjusted.append({
                        'product': item.product.sku,
                        'expected': item.expected_quantity,
                        'counted': item.counted_quantity,
                        'variance': item.variance,
                    })
                item.save()

            count.status = StockCountStatus.COMPLETED
            count.completed_at = now
            count.completed_by = principal.user_id
            count.save()
            cls._audit(count, 'COMPLETE', principal, adjustments=adjusted)

        cls._log("stock_count.completed", count, principal, adjustments=len(adjusted))
        return count

    @classmethod
    def cancel(cls, count, reason, *, principal) -> StockCount:
        """PLANNED / IN_PROGRESS → CANCELLED. The ledger is never touched."""
        principal = require_principal(principal)
        reason = (reason or '').strip()
        if not reason:
            raise InventoryError('REASON_REQUIRED')

        with transaction.atomic():
            count = cls._lock(count)
            if count.status == StockCountStatus.CANCELLED:
                return count
            cls._check_status(count, CANCELLABLE_COUNT_STATUSES, 'cancel')

            count.status = StockCountStatus.CANCELLED
            count.cancellation_reason = reason
            count.cancelled_at = timezone.now()
            count.save()
            cls._audit(count, 'CANCEL', principal, reason=reason)

        cls._log("stock_count.cancelled", count, principal, reason=reason)
        return count

    @classmethod
    def _lookup(cls, count) -> dict:
        if isinstance(count, StockCount):
            return {'pk': count.pk}
        if isinstance(count, str) and not count.isdigit():
            return {'count_number': count}
        return {'pk': int(count)}

    @classmethod
    def _lock(cls, count) -> StockCount:
        qs = StockCount.objects.select_for_update(of=('self',)).select_related('location')
        try:
            return qs.get(**cls._lookup(count))
        except (StockCount.DoesNotExist, TypeError, ValueError):
            raise NotFound('COUNT_NOT_FOUND', count=str(count))

    @classmethod
    def _check_status(cls, count, allowed, action) -> None:
        if count.status not in allowed:
            raise InvalidState(
                count=count.count_number,
                action=action,
                current=count.status,
                expected=[str(status) for status in allowed],
            )

    @classmethod
    def _audit(cls, count, action, principal, **details) -> None:
        record_event('StockCount', count.count_number, action, principal.user_id, {
            'status': count.status,
            'location': count.location.code,
            **details,
        })

    @classmethod
    def _log(cls, event, count, principal, **extra) -> None:
        logger.info(
            event,
            extra={
                "count": count.count_number,
                "location": count.location.code,
                "status": count.status,
                "user_id": principal.user_id,
                **extra,
            },
        )
