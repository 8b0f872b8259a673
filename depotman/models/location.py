"""
Location model — Where stock is held.
"""

from django.db import models
from django.utils.translation import gettext_lazy as _

from depotman.models.enums import LocationKind


class Location(models.Model):
    """
    Physical custody unit: a warehouse or a store.

    Locations are stable entities, maintained by catalog management.
    The inventory core only reads them.

    Examples:
        Location.objects.create(code='wh-central', name='Central Warehouse', kind=LocationKind.WAREHOUSE)
        Location.objects.create(code='store-01', name='Downtown Store', kind=LocationKind.STORE)
    """

    code = models.SlugField(
        unique=True,
        max_length=50,
        verbose_name=_('Code'),
        help_text=_('Unique identifier (e.g. wh-central, store-01)'),
    )
    name = models.CharField(
        max_length=100,
        verbose_name=_('Name'),
    )
    kind = models.CharField(
        max_length=20,
        choices=LocationKind.choices,
        default=LocationKind.WAREHOUSE,
        verbose_name=_('Kind'),
    )
    is_active = models.BooleanField(
        default=True,
        verbose_name=_('Active'),
        help_text=_('Inactive locations accept no stock mutations.'),
    )
    metadata = models.JSONField(
        default=dict,
        blank=True,
        verbose_name=_('Metadata'),
    )

    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        verbose_name = _('Location')
        verbose_name_plural = _('Locations')
        ordering = ['code']

    @property
    def is_store(self) -> bool:
        return self.kind == LocationKind.STORE

    @property
    def is_warehouse(self) -> bool:
        return self.kind == LocationKind.WAREHOUSE

    def __str__(self) -> str:
        return self.name
