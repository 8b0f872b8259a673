"""
Catalog lookups — turn identifiers into Product / Location instances.

Operations accept model instances, SKUs / location codes or primary keys.
"""

from depotman.adapters.catalog import get_catalog
from depotman.exceptions import InvalidState, NotFound
from depotman.models import Location, Product


def resolve_product(product) -> Product:
    """Return the Product, looking it up in the catalog if needed."""
    if isinstance(product, Product):
        return product

    found = get_catalog().get_product(product) if product is not None else None
    if found is None:
        raise NotFound('PRODUCT_NOT_FOUND', product=product)
    return found


def resolve_location(location) -> Location:
    """Return the Location, looking it up in the catalog if needed."""
    if isinstance(location, Location):
        return location

    found = get_catalog().get_location(location) if location is not None else None
    if found is None:
        raise NotFound('LOCATION_NOT_FOUND', location=location)
    return found


def ensure_active(location: Location) -> Location:
    """Inactive locations accept no incoming stock."""
    if not location.is_active:
        raise InvalidState('LOCATION_INACTIVE', location=location.code)
    return location
