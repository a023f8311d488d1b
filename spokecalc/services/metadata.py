"""Component metadata lookup with variant-over-product fallback.

Metadata is a sparse map of componentId -> {key -> value}. A variant can
override any property its product defines; properties missing from both
fall back to a caller-supplied default. Numeric parsing is permissive and
never raises.
"""

import logging
import threading
from collections.abc import Callable, Mapping
from typing import Any, Optional

from cachetools import LRUCache

from spokecalc.models.components import ComponentReference
from spokecalc.utils.converters import safe_float

logger = logging.getLogger(__name__)

MetadataMap = Mapping[str, Mapping[str, Any]]
MetadataFetcher = Callable[[str], Optional[Mapping[str, Any]]]


class MetadataResolver:
    """Resolve component properties for one build report computation.

    Args:
        metadata: Pre-fetched metadata keyed by component id.
        fetch: Optional lookup for ids absent from ``metadata`` (e.g. the
            storefront metafield API). Results are memoised for the lifetime
            of this resolver so a build never asks twice for the same id.
        cache_size: Max memoised ids.
    """

    def __init__(
        self,
        metadata: MetadataMap | None = None,
        fetch: MetadataFetcher | None = None,
        cache_size: int = 256,
    ) -> None:
        self._metadata: MetadataMap = metadata or {}
        self._fetch = fetch
        self._cache: LRUCache[str, Mapping[str, Any]] = LRUCache(maxsize=cache_size)
        self._lock = threading.Lock()

    def _scope(self, component_id: str | None) -> Mapping[str, Any]:
        if not component_id:
            return {}
        if component_id in self._metadata:
            return self._metadata[component_id]
        if self._fetch is None:
            return {}
        with self._lock:
            cached = self._cache.get(component_id)
        if cached is not None:
            return cached
        fetched = self._fetch(component_id) or {}
        logger.debug("Fetched metadata for %s (%d keys)", component_id, len(fetched))
        with self._lock:
            self._cache[component_id] = fetched
        return fetched

    def lookup(self, variant_id: str | None, product_id: str | None, key: str) -> Any:
        """Raw value for ``key``: variant scope first, then product scope."""
        for scope_id in (variant_id, product_id):
            value = self._scope(scope_id).get(key)
            if value is not None and value != "":
                return value
        return None

    def resolve(
        self,
        variant_id: str | None,
        product_id: str | None,
        key: str,
        as_number: bool = False,
        default: Any = None,
    ) -> Any:
        """Resolve a property with fallback and optional numeric coercion.

        With ``as_number`` the stored value is parsed as float; absent or
        non-numeric values yield ``default`` (0.0 when not given). Without it,
        absent values yield ``default`` (None when not given).
        """
        value = self.lookup(variant_id, product_id, key)
        if as_number:
            fallback = 0.0 if default is None else default
            return safe_float(value, fallback)
        if value is None:
            return default
        return value

    def resolve_component(
        self,
        component: ComponentReference,
        key: str,
        as_number: bool = False,
        default: Any = None,
    ) -> Any:
        return self.resolve(
            component.variant_id,
            component.product_id,
            key,
            as_number=as_number,
            default=default,
        )

    def has(self, component: ComponentReference, key: str) -> bool:
        return self.lookup(component.variant_id, component.product_id, key) is not None
