"""
Depotman Catalog Adapter — product/location lookups.

This adapter loads the configured CatalogBackend from settings.

Usage:
    from depotman.adapters import get_catalog

    catalog = get_catalog()
    product = catalog.get_product("TEE-BLK-M")

Settings:
    DEPOTMAN = {
        "CATALOG_BACKEND": "depotman.adapters.catalog.ModelCatalog",
    }
"""

from __future__ import annotations

import logging
import threading

from django.core.exceptions import ImproperlyConfigured
from django.utils.module_loading import import_string

from depotman.conf import depotman_settings
from depotman.protocols.catalog import CatalogBackend

logger = logging.getLogger(__name__)


class ModelCatalog:
    """
    Default catalog backend: reads Depotman's own Product and Location tables.

    Strings are tried as SKU / location code first; all-digit strings that
    match nothing fall back to the primary key.
    """

    def get_product(self, product_id):
        from depotman.models import Product
        return self._find(Product.objects, 'sku', product_id)

    def get_location(self, location_id):
        from depotman.models import Location
        return self._find(Location.objects, 'code', location_id)

    def _find(self, qs, natural_key, identifier):
        if isinstance(identifier, str):
            found = qs.filter(**{natural_key: identifier}).first()
            if found is not None or not identifier.isdigit():
                return found
        try:
            return qs.filter(pk=identifier).first()
        except (TypeError, ValueError):
            return None


# Cached backend instance, keyed by its dotted path
_lock = threading.Lock()
_catalog: CatalogBackend | None = None
_catalog_path: str | None = None


def get_catalog() -> CatalogBackend:
    """
    Return the configured catalog backend.

    Raises:
        ImproperlyConfigured: If CATALOG_BACKEND is empty or import fails
    """
    global _catalog, _catalog_path

    backend_path = depotman_settings.CATALOG_BACKEND

    if _catalog is None or _catalog_path != backend_path:
        with _lock:
            if _catalog is None or _catalog_path != backend_path:  # double-checked
                if not backend_path:
                    raise ImproperlyConfigured(
                        "DEPOTMAN['CATALOG_BACKEND'] must be configured. "
                        "Example: 'depotman.adapters.catalog.ModelCatalog'"
                    )

                try:
                    backend_class = import_string(backend_path)
                except ImportError as e:
                    raise ImproperlyConfigured(
                        f"Failed to import catalog backend '{backend_path}': {e}"
                    ) from e

                _catalog = backend_class()
                _catalog_path = backend_path
                logger.debug("Loaded catalog backend: %s", backend_path)

    return _catalog


def reset_catalog() -> None:
    """Reset the cached backend. Useful for testing."""
    global _catalog, _catalog_path
    _catalog = None
    _catalog_path = None
