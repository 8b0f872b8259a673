"""
Move model — Immutable ledger of quantity changes.
"""

from django.contrib.contenttypes.fields import GenericForeignKey
from django.contrib.contenttypes.models import ContentType
from django.db import models, transaction
from django.db.models import F
from django.utils import timezone
from django.utils.translation import gettext_lazy as _


class Move(models.Model):
    """
    Immutable record of a quantity change on one ledger entry.

    Rules:
    - NEVER update() or delete()
    - Only verify_ledger --prune removes them, together with their
      emptied entry, once they net to zero
    - Corrections are new Moves with inverse delta
    - Updates LedgerEntry._quantity atomically on save()

    This is the ONLY model that changes quantity.
    """

    entry = models.ForeignKey(
        'depotman.LedgerEntry',
        on_delete=models.PROTECT,
        related_name='moves',
        verbose_name=_('Ledger entry'),
    )

    delta = models.IntegerField(
        verbose_name=_('Delta'),
        help_text=_('Positive = in, negative = out'),
    )

    # External reference (transfer, sale, adjustment document...)
    reference_type = models.ForeignKey(
        ContentType,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name='+',
        verbose_name=_('Reference type'),
    )
    reference_id = models.PositiveBigIntegerField(null=True, blank=True, verbose_name=_('Reference id'))
    reference = GenericForeignKey('reference_type', 'reference_id')

    reason = models.CharField(
        max_length=255,
        verbose_name=_('Reason'),
        help_text=_('Required. E.g. "Sale", "Transfer TRF-20261019-0001"'),
    )
    metadata = models.JSONField(default=dict, blank=True, verbose_name=_('Metadata'))

    timestamp = models.DateTimeField(default=timezone.now, db_index=True, verbose_name=_('Timestamp'))
    user_id = models.CharField(
        max_length=64,
        blank=True,
        default='',
        verbose_name=_('User'),
    )

    class Meta:
        verbose_name = _('Move')
        verbose_name_plural = _('Moves')
        ordering = ['timestamp', 'pk']
        indexes = [
            models.Index(fields=['entry', 'timestamp'], name='depotman_mo_entry_i_3c9d2a_idx'),
        ]

    def save(self, *args, **kwargs):
        """Save move and update the entry cache atomically."""
        if self.pk:
            raise ValueError(
                "Moves are immutable. "
                "To correct one, create a new Move with the inverse delta."
            )

        if not self.reason:
            raise ValueError("Reason is required")

        if not self.delta:
            raise ValueError("Delta must be non-zero")

        with transaction.atomic():
            super().save(*args, **kwargs)

            from depotman.models.entry import LedgerEntry

            LedgerEntry.objects.filter(pk=self.entry_id).update(
                _quantity=F('_quantity') + self.delta,
                updated_at=timezone.now()
            )

    def delete(self, *args, **kwargs):
        """Prevent deletion — moves are immutable."""
        raise ValueError(
            "Moves are immutable. "
            "To reverse one, create a new Move with the inverse delta."
        )

    def __str__(self) -> str:
        signal = '+' if self.delta > 0 else ''
        return f"{signal}{self.delta} | {self.reason}"
