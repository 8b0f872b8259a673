"""
Transfer workflow — DRAFT → SUBMITTED → APPROVED → SENT → RECEIVED.

Every transition locks a fresh copy of the transfer row, checks the current
status and saves inside one transaction. Only ship() and receive() touch
the ledger, through InventoryGateway, so a failing line rolls back the
whole transition. Both lock every ledger row they will touch up front,
in StockLedger.lock_keys() order, before the first delta.
"""

import logging
from decimal import Decimal

from django.db import transaction
from django.utils import timezone

from depotman.conf import depotman_settings
from depotman.exceptions import (
    InvalidQuantity,
    InvalidState,
    InvalidTransfer,
    InventoryError,
    NotFound,
)
from depotman.models.enums import (
    CANCELLABLE_TRANSFER_STATUSES,
    CONDITION_BUCKETS,
    RECEIVABLE_TRANSFER_STATUSES,
    EntryStatus,
    ItemCondition,
    TransferStatus,
    TransferType,
)
from depotman.models.transfer import Transfer, TransferItem
from depotman.protocols.auth import require_manager, require_principal
from depotman.services.audit import record_event
from depotman.services.gateway import InventoryGateway, check_quantity
from depotman.services.ledger import StockLedger
from depotman.services.lookup import ensure_active, resolve_location, resolve_product

logger = logging.getLogger('depotman')


class TransferWorkflow:
    """Transfer lifecycle methods."""

    # ══════════════════════════════════════════════════════════════
    # READ
    # ══════════════════════════════════════════════════════════════

    @classmethod
    def get(cls, transfer) -> Transfer:
        """
        Fetch a transfer by instance, pk or transfer number.

        Raises:
            NotFound('TRANSFER_NOT_FOUND')
        """
        qs = Transfer.objects.select_related('source', 'destination')
        try:
            return qs.get(**cls._lookup(transfer))
        except (Transfer.DoesNotExist, TypeError, ValueError):
            raise NotFound('TRANSFER_NOT_FOUND', transfer=str(transfer))

    @classmethod
    def list(cls, status=None, location=None):
        """Transfers newest first, optionally by status and/or location."""
        qs = Transfer.objects.select_related('source', 'destination')
        if status is not None:
            qs = qs.filter(status=status)
        if location is not None:
            qs = qs.involving(location)
        return qs.order_by('-created_at', '-pk')

    @classmethod
    def infer_type(cls, source, destination) -> str:
        """RESTOCK (wh→store), RETURN (store→wh) or REDISTRIBUTE (wh→wh)."""
        if source.is_warehouse and destination.is_store:
            return TransferType.RESTOCK
        if source.is_store and destination.is_warehouse:
            return TransferType.RETURN
        if source.is_warehouse and destination.is_warehouse:
            return TransferType.REDISTRIBUTE
        raise InvalidTransfer(
            'INVALID_TRANSFER_TYPE',
            source=source.code,
            destination=destination.code,
        )

    # ══════════════════════════════════════════════════════════════
    # CREATE
    # ══════════════════════════════════════════════════════════════

    @classmethod
    def create(cls, source, destination, lines, *, principal,
               transfer_type=None, notes='') -> Transfer:
        """
        Create a DRAFT transfer.

        Args:
            source, destination: Location objects, codes or pks
            lines: iterable of {"product": ..., "quantity": int}
            transfer_type: optional, must match the one implied by the
                location kinds

        Unit prices are snapshotted from the product at creation time.
        """
        principal = require_principal(principal)
        source = ensure_active(resolve_location(source))
        destination = ensure_active(resolve_location(destination))

        if source.pk == destination.pk:
            raise InvalidTransfer('SAME_LOCATION', location=source.code)

        inferred = cls.infer_type(source, destination)
        if transfer_type and transfer_type != inferred:
            raise InvalidTransfer(
                'INVALID_TRANSFER_TYPE',
                transfer_type=transfer_type,
                expected=inferred,
            )

        parsed = []
        seen = set()
        for index, line in enumerate(lines or []):
            product = resolve_product(line.get('product'))
            quantity = check_quantity(line.get('quantity'), line=index, product=product.sku)
            if product.pk in seen:
                raise InvalidTransfer('DUPLICATE_LINE', line=index, product=product.sku)
            seen.add(product.pk)
            parsed.append((product, quantity))

        if not parsed:
            raise InvalidTransfer('EMPTY_TRANSFER')

        with transaction.atomic():
            transfer = Transfer.objects.create(
                transfer_type=inferred,
                source=source,
                destination=destination,
                notes=notes,
                created_by=principal.user_id,
            )
            TransferItem.objects.bulk_create([
                TransferItem(
                    transfer=transfer,
                    product=product,
                    requested_quantity=quantity,
                    unit_cost=product.cost_price,
                    unit_retail=product.retail_price,
                )
                for product, quantity in parsed
            ])

            transfer.transfer_number = cls.number_for(transfer)
            cls._update_totals(transfer)
            transfer.save(update_fields=[
                'transfer_number', 'total_items', 'total_cost', 'total_retail', 'updated_at',
            ])

            record_event('Transfer', transfer.transfer_number, 'CREATE', principal.user_id, {
                'transfer_type': inferred,
                'source': source.code,
                'destination': destination.code,
                'lines': [
                    {'product': product.sku, 'quantity': quantity}
                    for product, quantity in parsed
                ],
            })

        logger.info(
            "transfer.created",
            extra={
                "transfer": transfer.transfer_number,
                "transfer_type": inferred,
                "source": source.code,
                "destination": destination.code,
                "lines": len(parsed),
            },
        )
        return transfer

    @classmethod
    def number_for(cls, transfer: Transfer) -> str:
        """PREFIX-YYYYMMDD-NNNN, NNNN being the zero-padded primary key."""
        stamp = transfer.created_at or timezone.now()
        if timezone.is_aware(stamp):
            stamp = timezone.localtime(stamp)
        prefix = depotman_settings.TRANSFER_NUMBER_PREFIX
        return f"{prefix}-{stamp:%Y%m%d}-{transfer.pk:04d}"

    # ══════════════════════════════════════════════════════════════
    # STATUS-ONLY TRANSITIONS
    # ══════════════════════════════════════════════════════════════

    @classmethod
    def submit(cls, transfer, *, principal) -> Transfer:
        """DRAFT → SUBMITTED. Submitting a SUBMITTED transfer is a no-op."""
        principal = require_principal(principal)

        with transaction.atomic():
            transfer = cls._lock(transfer)
            if transfer.status == TransferStatus.SUBMITTED:
                return transfer
            cls._check_status(transfer, [TransferStatus.DRAFT], 'submit')

            cls._update_totals(transfer)
            transfer.status = TransferStatus.SUBMITTED
            transfer.submitted_at = timezone.now()
            transfer.save()
            cls._audit(transfer, 'SUBMIT', principal)

        cls._log("transfer.submitted", transfer, principal)
        return transfer

    @classmethod
    def approve(cls, transfer, *, principal) -> Transfer:
        """SUBMITTED → APPROVED. Manager roles only."""
        principal = require_manager(principal, 'approve')

        with transaction.atomic():
            transfer = cls._lock(transfer)
            if transfer.status == TransferStatus.APPROVED:
                return transfer
            cls._check_status(transfer, [TransferStatus.SUBMITTED], 'approve')

            transfer.status = TransferStatus.APPROVED
            transfer.approved_at = timezone.now()
            transfer.approved_by = principal.user_id
            transfer.save()
            cls._audit(transfer, 'APPROVE', principal)

        cls._log("transfer.approved", transfer, principal)
        return transfer

    @classmethod
    def reject(cls, transfer, reason, *, principal) -> Transfer:
        """SUBMITTED → REJECTED. Manager roles only, reason required."""
        principal = require_manager(principal, 'reject')
        reason = cls._require_reason(reason)

        with transaction.atomic():
            transfer = cls._lock(transfer)
            if transfer.status == TransferStatus.REJECTED:
                return transfer
            cls._check_status(transfer, [TransferStatus.SUBMITTED], 'reject')

            transfer.status = TransferStatus.REJECTED
            transfer.cancellation_reason = reason
            transfer.cancelled_at = timezone.now()
            transfer.save()
            cls._audit(transfer, 'REJECT', principal, reason=reason)

        cls._log("transfer.rejected", transfer, principal, reason=reason)
        return transfer

    @classmethod
    def cancel(cls, transfer, reason, *, principal) -> Transfer:
        """
        DRAFT / SUBMITTED / APPROVED → CANCELLED.

        Goods already shipped can't be cancelled: a SENT transfer raises
        InvalidState and has to be received (possibly as damaged).
        """
        principal = require_principal(principal)
        reason = cls._require_reason(reason)

        with transaction.atomic():
            transfer = cls._lock(transfer)
            if transfer.status == TransferStatus.CANCELLED:
                return transfer
            cls._check_status(transfer, CANCELLABLE_TRANSFER_STATUSES, 'cancel')

            transfer.status = TransferStatus.CANCELLED
            transfer.cancellation_reason = reason
            transfer.cancelled_at = timezone.now()
            transfer.save()
            cls._audit(transfer, 'CANCEL', principal, reason=reason)

        cls._log("transfer.cancelled", transfer, principal, reason=reason)
        return transfer

    # ══════════════════════════════════════════════════════════════
    # LEDGER TRANSITIONS
    # ══════════════════════════════════════════════════════════════

    @classmethod
    def ship(cls, transfer, lines=None, *, principal) -> Transfer:
        """
        APPROVED → SENT.

        Moves each line's shipped quantity from AVAILABLE to IN_TRANSIT at
        the source. Lines not mentioned in `lines` ship their full requested
        quantity; an explicit 0 ships nothing for that product.

        Raises:
            InsufficientStock: annotated with the failing line and product;
                nothing is moved
            InvalidQuantity('INVALID_SHIPPED_QUANTITY'): override outside
                0..requested, or nothing left to ship
        """
        principal = require_principal(principal)

        with transaction.atomic():
            transfer = cls._lock(transfer)
            cls._check_status(transfer, [TransferStatus.APPROVED], 'ship')

            items = list(transfer.items.select_related('product').order_by('pk'))
            overrides = cls._ship_overrides(transfer, items, lines)
            reason = f"Transfer {transfer.transfer_number} shipped"
            shipped_total = 0

            StockLedger.lock_keys(
                (item.product_id, transfer.source_id, status)
                for item in items
                if overrides.get(item.product_id, item.requested_quantity)
                for status in (EntryStatus.AVAILABLE, EntryStatus.IN_TRANSIT)
            )

            for index, item in enumerate(items):
                quantity = overrides.get(item.product_id, item.requested_quantity)
                if quantity:
                    with cls._annotate(transfer, index, item):
                        InventoryGateway.change_status(
                            item.product, transfer.source, quantity,
                            EntryStatus.AVAILABLE, EntryStatus.IN_TRANSIT,
                            principal=principal,
                            reason=reason,
                            reference=transfer,
                        )
                item.shipped_quantity = quantity
                item.save(update_fields=['shipped_quantity'])
                shipped_total += quantity

            if not shipped_total:
                raise InvalidQuantity(
                    'INVALID_SHIPPED_QUANTITY',
                    transfer=transfer.transfer_number,
                    requested=0,
                )

            transfer.status = TransferStatus.SENT
            transfer.shipped_at = timezone.now()
            transfer.shipped_by = principal.user_id
            transfer.save()
            cls._audit(transfer, 'SHIP', principal, lines=[
                {'product': item.product.sku, 'quantity': item.shipped_quantity}
                for item in items
            ])

        cls._log("transfer.shipped", transfer, principal, units=shipped_total)
        return transfer

    @classmethod
    def receive(cls, transfer, lines, *, principal) -> Transfer:
        """
        SENT / PARTIALLY_RECEIVED → PARTIALLY_RECEIVED / RECEIVED.

        Args:
            lines: iterable of {"product": ..., "quantity": int,
                "condition": "GOOD" | "DAMAGED" | "EXPIRED"}

        Each line moves stock from IN_TRANSIT at the source into the
        destination bucket matching its condition. The same product may
        appear on several lines (e.g. 7 GOOD + 3 DAMAGED). Once every
        item's received quantity reaches its shipped quantity the
        transfer becomes RECEIVED.

        Raises:
            NotFound('TRANSFER_LINE_NOT_FOUND'): product isn't on the transfer
            InvalidQuantity('INVALID_RECEIVED_QUANTITY'): more than was
                shipped and not yet received
        """
        principal = require_principal(principal)
        lines = list(lines or [])
        if not lines:
            raise InvalidTransfer('EMPTY_TRANSFER')

        with transaction.atomic():
            transfer = cls._lock(transfer)
            cls._check_status(transfer, RECEIVABLE_TRANSFER_STATUSES, 'receive')

            items = {
                item.product_id: item
                for item in transfer.items.select_related('product')
            }
            reason = f"Transfer {transfer.transfer_number} received"
            received = []
            planned = []
            pending = {}

            for index, line in enumerate(lines):
                product = resolve_product(line.get('product'))
                item = items.get(product.pk)
                if item is None:
                    raise NotFound(
                        'TRANSFER_LINE_NOT_FOUND',
                        transfer=transfer.transfer_number,
                        line=index,
                        product=product.sku,
                    )

                condition = line.get('condition') or ItemCondition.GOOD
                if condition not in ItemCondition.values:
                    raise InventoryError('INVALID_CONDITION', line=index, condition=condition)

                quantity = check_quantity(line.get('quantity'), line=index, product=product.sku)
                remaining = item.remaining_quantity - pending.get(product.pk, 0)
                if quantity > remaining:
                    raise InvalidQuantity(
                        'INVALID_RECEIVED_QUANTITY',
                        transfer=transfer.transfer_number,
                        line=index,
                        product=product.sku,
                        requested=quantity,
                        remaining=remaining,
                    )
                pending[product.pk] = pending.get(product.pk, 0) + quantity
                planned.append((index, product, item, condition, quantity))

            StockLedger.lock_keys(
                key
                for _, product, _, condition, _ in planned
                for key in (
                    (product.pk, transfer.source_id, EntryStatus.IN_TRANSIT),
                    (product.pk, transfer.destination_id, CONDITION_BUCKETS[condition]),
                )
            )

            for index, product, item, condition, quantity in planned:
                with cls._annotate(transfer, index, item):
                    InventoryGateway.move_for_transfer(
                        item.product, transfer.source, transfer.destination, quantity,
                        principal=principal,
                        status=EntryStatus.IN_TRANSIT,
                        destination_status=CONDITION_BUCKETS[condition],
                        reason=reason,
                        reference=transfer,
                    )

                item.received_quantity += quantity
                if condition != ItemCondition.GOOD:
                    item.condition = condition
                item.save(update_fields=['received_quantity', 'condition'])
                received.append({
                    'product': product.sku,
                    'quantity': quantity,
                    'condition': condition,
                })

            if all(i.received_quantity >= i.shipped_quantity for i in items.values()):
                transfer.status = TransferStatus.RECEIVED
                transfer.completed_at = timezone.now()
                transfer.completed_by = principal.user_id
            else:
                transfer.status = TransferStatus.PARTIALLY_RECEIVED
            transfer.save()
            cls._audit(transfer, 'RECEIVE', principal, lines=received)

        cls._log(
            "transfer.received", transfer, principal,
            units=sum(line['quantity'] for line in received),
        )
        return transfer

    # ══════════════════════════════════════════════════════════════
    # HELPERS
    # ══════════════════════════════════════════════════════════════

    @classmethod
    def _lookup(cls, transfer) -> dict:
        if isinstance(transfer, Transfer):
            return {'pk': transfer.pk}
        if isinstance(transfer, str) and not transfer.isdigit():
            return {'transfer_number': transfer}
        return {'pk': int(transfer)}

    @classmethod
    def _lock(cls, transfer) -> Transfer:
        """Fresh row with FOR UPDATE. Must run inside a transaction."""
        qs = Transfer.objects.select_for_update().select_related('source', 'destination')
        try:
            return qs.get(**cls._lookup(transfer))
        except (Transfer.DoesNotExist, TypeError, ValueError):
            raise NotFound('TRANSFER_NOT_FOUND', transfer=str(transfer))

    @classmethod
    def _check_status(cls, transfer, allowed, action) -> None:
        if transfer.status not in allowed:
            raise InvalidState(
                transfer=transfer.transfer_number,
                action=action,
                current=transfer.status,
                expected=[str(status) for status in allowed],
            )

    @classmethod
    def _require_reason(cls, reason) -> str:
        reason = (reason or '').strip()
        if not reason:
            raise InventoryError('REASON_REQUIRED')
        return reason

    @classmethod
    def _ship_overrides(cls, transfer, items, lines) -> dict[int, int]:
        """{product_id: quantity} for the lines the caller overrode."""
        if lines is None:
            return {}

        by_product = {item.product_id: item for item in items}
        overrides = {}
        for index, line in enumerate(lines):
            product = resolve_product(line.get('product'))
            item = by_product.get(product.pk)
            if item is None:
                raise NotFound(
                    'TRANSFER_LINE_NOT_FOUND',
                    transfer=transfer.transfer_number,
                    line=index,
                    product=product.sku,
                )
            if product.pk in overrides:
                raise InvalidTransfer('DUPLICATE_LINE', line=index, product=product.sku)

            quantity = check_quantity(
                line.get('quantity'),
                allow_zero=True,
                code='INVALID_SHIPPED_QUANTITY',
                line=index,
                product=product.sku,
            )
            if quantity > item.requested_quantity:
                raise InvalidQuantity(
                    'INVALID_SHIPPED_QUANTITY',
                    transfer=transfer.transfer_number,
                    line=index,
                    product=product.sku,
                    requested=quantity,
                    maximum=item.requested_quantity,
                )
            overrides[product.pk] = quantity
        return overrides

    @classmethod
    def _update_totals(cls, transfer) -> None:
        """Recompute header totals from the items (requested quantities)."""
        items = list(transfer.items.all())
        transfer.total_items = sum(item.requested_quantity for item in items)
        transfer.total_cost = sum((item.line_cost for item in items), Decimal('0'))
        transfer.total_retail = sum((item.line_retail for item in items), Decimal('0'))

    @classmethod
    def _annotate(cls, transfer, index, item):
        return _LineContext(transfer.transfer_number, index, item.product.sku)

    @classmethod
    def _audit(cls, transfer, action, principal, **details) -> None:
        record_event('Transfer', transfer.transfer_number, action, principal.user_id, {
            'status': transfer.status,
            **details,
        })

    @classmethod
    def _log(cls, event, transfer, principal, **extra) -> None:
        logger.info(
            event,
            extra={
                "transfer": transfer.transfer_number,
                "status": transfer.status,
                "user_id": principal.user_id,
                **extra,
            },
        )


class _LineContext:
    """Tag inventory errors raised while processing a transfer line."""

    def __init__(self, transfer_number, index, sku):
        self.context = {'transfer': transfer_number, 'line': index, 'product': sku}

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc, tb):
        if isinstance(exc, InventoryError):
            for key, value in self.context.items():
                exc.data.setdefault(key, value)
        return False
