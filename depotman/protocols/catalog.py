"""
Catalog Protocol — Interface for product and location lookups.

Depotman defines this protocol; the catalog system (or the bundled
ModelCatalog) implements it. The inventory core never mutates what it
reads through here.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Protocol, runtime_checkable

if TYPE_CHECKING:
    from depotman.models import Location, Product


@runtime_checkable
class CatalogBackend(Protocol):
    """
    Protocol for read-only catalog lookups.

    Implementations return None for unknown identifiers; the core turns
    that into NotFound errors.
    """

    def get_product(self, product_id) -> Product | None:
        """
        Look up a product by SKU or primary key.

        Args:
            product_id: SKU string or primary key

        Returns:
            Product or None if not found
        """
        ...

    def get_location(self, location_id) -> Location | None:
        """
        Look up a location by code or primary key.

        Args:
            location_id: Location code or primary key

        Returns:
            Location or None if not found
        """
        ...
