"""
Enums for Depotman models.
"""

from django.db import models
from django.utils.translation import gettext_lazy as _


class LocationKind(models.TextChoices):
    """
    Physical custody unit.

    WAREHOUSE: Back-office storage, source of restocks.
    STORE:     Point of sale, stock here is sold to customers.
    """
    WAREHOUSE = 'WAREHOUSE', _('Warehouse')
    STORE = 'STORE', _('Store')


class EntryStatus(models.TextChoices):
    """
    Bucket a unit of stock occupies at a location.

    A unit is in exactly one bucket at a time. Moving it between buckets
    is a decrement on one ledger entry plus an increment on a sibling.
    """
    AVAILABLE = 'AVAILABLE', _('Available')        # Sellable / transferable
    RESERVED = 'RESERVED', _('Reserved')           # Held aside, not sellable
    IN_TRANSIT = 'IN_TRANSIT', _('In transit')     # Shipped, not yet received
    DAMAGED = 'DAMAGED', _('Damaged')
    EXPIRED = 'EXPIRED', _('Expired')
    QUARANTINED = 'QUARANTINED', _('Quarantined')  # Awaiting quality control


class TransferType(models.TextChoices):
    """Direction of a transfer, derived from the location kinds."""
    RESTOCK = 'RESTOCK', _('Restock (warehouse → store)')
    RETURN = 'RETURN', _('Return (store → warehouse)')
    REDISTRIBUTE = 'REDISTRIBUTE', _('Redistribute (warehouse → warehouse)')


class TransferStatus(models.TextChoices):
    """Transfer lifecycle status."""
    DRAFT = 'DRAFT', _('Draft')
    SUBMITTED = 'SUBMITTED', _('Submitted')
    APPROVED = 'APPROVED', _('Approved')
    SENT = 'SENT', _('Sent')
    PARTIALLY_RECEIVED = 'PARTIALLY_RECEIVED', _('Partially received')
    RECEIVED = 'RECEIVED', _('Received')
    REJECTED = 'REJECTED', _('Rejected')
    CANCELLED = 'CANCELLED', _('Cancelled')


TERMINAL_TRANSFER_STATUSES = (
    TransferStatus.RECEIVED,
    TransferStatus.REJECTED,
    TransferStatus.CANCELLED,
)

CANCELLABLE_TRANSFER_STATUSES = (
    TransferStatus.DRAFT,
    TransferStatus.SUBMITTED,
    TransferStatus.APPROVED,
)

RECEIVABLE_TRANSFER_STATUSES = (
    TransferStatus.SENT,
    TransferStatus.PARTIALLY_RECEIVED,
)


class ItemCondition(models.TextChoices):
    """Disposition of transferred goods discovered at receipt."""
    GOOD = 'GOOD', _('Good')
    DAMAGED = 'DAMAGED', _('Damaged')
    EXPIRED = 'EXPIRED', _('Expired')


# Bucket that received goods land in, per condition
CONDITION_BUCKETS = {
    ItemCondition.GOOD: EntryStatus.AVAILABLE,
    ItemCondition.DAMAGED: EntryStatus.DAMAGED,
    ItemCondition.EXPIRED: EntryStatus.EXPIRED,
}


class AdjustmentType(models.TextChoices):
    """Manual adjustment kinds."""
    ADD = 'ADD', _('Add')
    SUBTRACT = 'SUBTRACT', _('Subtract')
    SET = 'SET', _('Set')


class ReasonCode(models.TextChoices):
    """Why a manual adjustment happened."""
    ADJUSTMENT = 'ADJUSTMENT', _('Adjustment')
    COUNT = 'COUNT', _('Stock count')
    DAMAGE = 'DAMAGE', _('Damage')
    EXPIRY = 'EXPIRY', _('Expiry')
    THEFT = 'THEFT', _('Theft / shrinkage')
    RETURN = 'RETURN', _('Customer return')
    OTHER = 'OTHER', _('Other')


# SUBTRACT with these reasons keeps the units, in the matching bucket
WRITE_OFF_BUCKETS = {
    ReasonCode.DAMAGE: EntryStatus.DAMAGED,
    ReasonCode.EXPIRY: EntryStatus.EXPIRED,
}


class StockCountStatus(models.TextChoices):
    """Physical stock count lifecycle."""
    PLANNED = 'PLANNED', _('Planned')
    IN_PROGRESS = 'IN_PROGRESS', _('In progress')
    COMPLETED = 'COMPLETED', _('Completed')
    CANCELLED = 'CANCELLED', _('Cancelled')


CANCELLABLE_COUNT_STATUSES = (
    StockCountStatus.PLANNED,
    StockCountStatus.IN_PROGRESS,
)


class CountItemStatus(models.TextChoices):
    """
    Progress of one counted product.

    PENDING:     Not counted yet.
    COUNTED:     Counted, matches the expected quantity.
    DISCREPANCY: Counted, differs from the expected quantity.
    RECONCILED:  Difference booked to the ledger on completion.
    """
    PENDING = 'PENDING', _('Pending')
    COUNTED = 'COUNTED', _('Counted')
    DISCREPANCY = 'DISCREPANCY', _('Discrepancy')
    RECONCILED = 'RECONCILED', _('Reconciled')
