"""
Inventory gateway — state-changing operations (receive, adjust, sell, move).

Every method requires a Principal, resolves products and locations through
the catalog and funnels its quantity changes into StockLedger.apply_delta().
Multi-step operations run in one transaction.atomic() block.
"""

import logging

from django.db import transaction

from depotman.exceptions import (
    InvalidAdjustmentType,
    InvalidQuantity,
    InvalidState,
    InvalidTransfer,
    InventoryError,
)
from depotman.models.enums import (
    WRITE_OFF_BUCKETS,
    AdjustmentType,
    EntryStatus,
    ReasonCode,
)
from depotman.protocols.auth import require_principal
from depotman.services.ledger import StockLedger, is_whole_number
from depotman.services.lookup import ensure_active, resolve_location, resolve_product

logger = logging.getLogger('depotman')


def check_quantity(quantity, *, allow_zero=False, code='INVALID_QUANTITY', **context):
    """Raise InvalidQuantity unless quantity is a positive (or zero) integer."""
    if not is_whole_number(quantity) or quantity < 0 or (quantity == 0 and not allow_zero):
        raise InvalidQuantity(code, requested=quantity, **context)
    return quantity


class InventoryGateway:
    """State-changing inventory methods."""

    @classmethod
    def apply_delta(cls, product, location, status, delta, *, principal,
                    reason, reference=None, **metadata):
        """Raw ledger delta on behalf of a principal."""
        principal = require_principal(principal)
        product = resolve_product(product)
        location = resolve_location(location)
        if is_whole_number(delta) and delta > 0:
            ensure_active(location)

        return StockLedger.apply_delta(
            product, location, status, delta,
            reason=reason,
            user_id=principal.user_id,
            reference=reference,
            metadata=metadata,
        )

    @classmethod
    def receive_stock(cls, product, location, quantity, *, principal,
                      status=EntryStatus.AVAILABLE, reason='Stock receipt',
                      reference=None, **metadata):
        """
        Stock entry from outside the network (supplier delivery, opening balance).

        Returns:
            The credited LedgerEntry
        """
        principal = require_principal(principal)
        product = resolve_product(product)
        location = ensure_active(resolve_location(location))
        check_quantity(quantity, product=product.sku)

        entry = StockLedger.apply_delta(
            product, location, status, quantity,
            reason=reason,
            user_id=principal.user_id,
            reference=reference,
            metadata=metadata,
        )
        logger.info(
            "inventory.receive",
            extra={
                "product": product.sku,
                "location": location.code,
                "qty": quantity,
                "user_id": principal.user_id,
            },
        )
        return entry

    @classmethod
    def adjust(cls, product, location, adjustment_type, quantity, reason_code,
               *, principal, notes=''):
        """
        Manual correction of AVAILABLE stock.

        ADD and SUBTRACT apply +/- quantity. SET computes the delta against
        the locked entry and does nothing when it is zero. SUBTRACT with a
        DAMAGE or EXPIRY reason also credits the DAMAGED / EXPIRED bucket.

        Returns:
            The AVAILABLE LedgerEntry, or None for a no-op SET on a
            missing entry
        """
        principal = require_principal(principal)

        if adjustment_type not in AdjustmentType.values:
            raise InvalidAdjustmentType(
                adjustment_type=adjustment_type,
                expected=list(AdjustmentType.values),
            )
        if not reason_code:
            raise InventoryError('REASON_REQUIRED')
        if reason_code not in ReasonCode.values:
            raise InventoryError('INVALID_REASON_CODE', reason_code=reason_code)

        product = resolve_product(product)
        location = resolve_location(location)
        check_quantity(
            quantity,
            allow_zero=adjustment_type == AdjustmentType.SET,
            product=product.sku,
        )

        reason = f"Adjustment {adjustment_type} ({reason_code})"
        if notes:
            reason = f"{reason}: {notes}"
        metadata = {
            'adjustment_type': adjustment_type,
            'reason_code': reason_code,
            'notes': notes,
        }
        ledger = dict(reason=reason, user_id=principal.user_id, metadata=metadata)

        with transaction.atomic():
            if adjustment_type == AdjustmentType.ADD:
                ensure_active(location)
                entry = StockLedger.apply_delta(
                    product, location, EntryStatus.AVAILABLE, quantity, **ledger
                )
                delta = quantity

            elif adjustment_type == AdjustmentType.SUBTRACT:
                bucket = WRITE_OFF_BUCKETS.get(reason_code)
                if bucket:
                    StockLedger.lock_keys([
                        (product, location, EntryStatus.AVAILABLE),
                        (product, location, bucket),
                    ])
                entry = StockLedger.apply_delta(
                    product, location, EntryStatus.AVAILABLE, -quantity, **ledger
                )
                delta = -quantity
                if bucket:
                    StockLedger.apply_delta(product, location, bucket, quantity, **ledger)

            else:
                entry = StockLedger.lock_entry(product, location, EntryStatus.AVAILABLE)
                current = entry._quantity if entry else 0
                delta = quantity - current
                if delta > 0:
                    ensure_active(location)
                if delta:
                    entry = StockLedger.apply_delta(
                        product, location, EntryStatus.AVAILABLE, delta, **ledger
                    )

        logger.info(
            "inventory.adjust",
            extra={
                "product": product.sku,
                "location": location.code,
                "adjustment_type": adjustment_type,
                "reason_code": reason_code,
                "delta": delta,
                "user_id": principal.user_id,
            },
        )
        return entry

    @classmethod
    def reserve_for_sale(cls, product, location, quantity, *, principal,
                         reference=None, reason='Sale', **metadata):
        """
        Debit AVAILABLE stock for a point-of-sale transaction.

        Raises:
            InsufficientStock: not enough AVAILABLE at the location
        """
        principal = require_principal(principal)
        product = resolve_product(product)
        location = resolve_location(location)
        check_quantity(quantity, product=product.sku)

        entry = StockLedger.apply_delta(
            product, location, EntryStatus.AVAILABLE, -quantity,
            reason=reason,
            user_id=principal.user_id,
            reference=reference,
            metadata=metadata,
        )
        logger.info(
            "inventory.sale",
            extra={
                "product": product.sku,
                "location": location.code,
                "qty": quantity,
                "user_id": principal.user_id,
            },
        )
        return entry

    @classmethod
    def move_for_transfer(cls, product, source, destination, quantity, *, principal,
                          status=EntryStatus.AVAILABLE, destination_status=None,
                          reason='Transfer', reference=None, **metadata):
        """
        Move stock from one (location, status) to another in one transaction.

        destination_status defaults to AVAILABLE when moving out of
        IN_TRANSIT, otherwise to the source status. Stock already in
        transit may be booked into an inactive destination; anything else
        needs an active one.

        Returns:
            (source_entry, destination_entry)
        """
        principal = require_principal(principal)
        product = resolve_product(product)
        source = resolve_location(source)
        destination = resolve_location(destination)
        if status != EntryStatus.IN_TRANSIT:
            ensure_active(destination)
        check_quantity(quantity, product=product.sku)

        if destination_status is None:
            destination_status = (
                EntryStatus.AVAILABLE if status == EntryStatus.IN_TRANSIT else status
            )
        if source.pk == destination.pk and status == destination_status:
            raise InvalidTransfer('SAME_LOCATION', location=source.code)

        return cls._move(
            product, source, status, destination, destination_status, quantity,
            user_id=principal.user_id,
            reason=reason,
            reference=reference,
            metadata=metadata,
        )

    @classmethod
    def change_status(cls, product, location, quantity, from_status, to_status,
                      *, principal, reason='Status change', reference=None, **metadata):
        """
        Re-bucket stock within one location (e.g. AVAILABLE -> QUARANTINED).

        The location's on-hand total doesn't change, so this works at
        inactive locations too, like a DAMAGE or EXPIRY write-off.

        Returns:
            (from_entry, to_entry)
        """
        principal = require_principal(principal)
        product = resolve_product(product)
        location = resolve_location(location)
        check_quantity(quantity, product=product.sku)

        if from_status == to_status:
            raise InvalidState('SAME_STATUS', status=from_status)

        return cls._move(
            product, location, from_status, location, to_status, quantity,
            user_id=principal.user_id,
            reason=reason,
            reference=reference,
            metadata=metadata,
        )

    @classmethod
    def _move(cls, product, source, source_status, destination, destination_status,
              quantity, *, user_id, reason, reference, metadata):
        """Paired debit/credit. The debit runs first so shortages fail fast."""
        with transaction.atomic():
            StockLedger.lock_keys([
                (product, source, source_status),
                (product, destination, destination_status),
            ])
            out_entry = StockLedger.apply_delta(
                product, source, source_status, -quantity,
                reason=reason,
                user_id=user_id,
                reference=reference,
                metadata=metadata,
            )
            in_entry = StockLedger.apply_delta(
                product, destination, destination_status, quantity,
                reason=reason,
                user_id=user_id,
                reference=reference,
                metadata=metadata,
            )

        logger.info(
            "inventory.move",
            extra={
                "product": product.sku,
                "source": f"{source.code}/{source_status}",
                "destination": f"{destination.code}/{destination_status}",
                "qty": quantity,
                "user_id": user_id,
            },
        )
        return out_entry, in_entry
