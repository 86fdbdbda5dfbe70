# market_core/domain/catalog/resolver.py
"""Decide whether a submitted product already exists in the catalog.

Strategies run in a fixed order and the first hit wins:

1. exact barcode
2. exact normalized name
3. exact slug (older rows whose ``normalized_name`` predates the current
   normalizer still carry a usable slug)

Anything else creates a new product. Matches are enriched in one direction
only: empty fields on the stored product are filled from the submission,
populated fields are never touched.

Lookups and the insert run under a claim on the normalized name, so two
submissions of the same name never both miss and both create.
"""
import logging
from dataclasses import dataclass
from typing import Any, AsyncContextManager, Dict, List, Optional, Protocol

from market_core.core.config import settings
from market_core.core.errors import CatalogConflict
from market_core.db.models.products import ENRICHMENT_FIELDS, Product
from market_core.domain.catalog.meta import MetaExtractor, default_extractor
from market_core.domain.catalog.normalize import normalize, slugify
from market_core.domain.catalog.schemas import ProductCandidate

logger = logging.getLogger(__name__)

MATCHED_BY_BARCODE = "barcode"
MATCHED_BY_NAME = "normalized_name"
MATCHED_BY_SLUG = "slug"


class CatalogLookup(Protocol):
    def claim(self, normalized_name: str) -> AsyncContextManager[None]:
        """Hold off other resolutions of the same name until this one is settled."""
        ...

    async def find_by_barcode(self, barcode: str) -> Optional[Product]: ...

    async def find_by_normalized_name(self, normalized_name: str) -> List[Product]: ...

    async def find_by_slug(self, slug: str) -> List[Product]: ...

    async def insert(self, fields: Dict[str, Any]) -> Product:
        """Persist a new product; raise CatalogConflict on a uniqueness violation."""
        ...

    async def update(self, product: Product, changes: Dict[str, Any]) -> Product: ...


@dataclass
class ResolveResult:
    product: Product
    created: bool
    matched_by: Optional[str] = None


def barcode_compatible(product: Product, barcode: Optional[str]) -> bool:
    # A one-sided barcode still matches on name. Only two different
    # barcodes keep the rows apart.
    return barcode is None or product.barcode is None or product.barcode == barcode


def _first_compatible(products: List[Product], barcode: Optional[str]) -> Optional[Product]:
    for product in products:
        if barcode_compatible(product, barcode):
            return product
    return None


def _candidate_fields(candidate: ProductCandidate, extractor: MetaExtractor) -> Dict[str, Any]:
    meta = extractor.extract(candidate.name)
    fields = {name: getattr(candidate, name) for name in ENRICHMENT_FIELDS}
    fields["brand"] = fields["brand"] or meta.brand
    fields["size"] = fields["size"] or meta.size
    return fields


def missing_field_changes(product: Product, fields: Dict[str, Any]) -> Dict[str, Any]:
    """Values from ``fields`` for every column that is still empty on ``product``."""
    changes = {}
    for name, value in fields.items():
        if value is not None and getattr(product, name) is None:
            changes[name] = value
    return changes


async def _find_match(catalog: CatalogLookup, normalized: str, slug: str, barcode: Optional[str]):
    if barcode:
        product = await catalog.find_by_barcode(barcode)
        if product is not None:
            return product, MATCHED_BY_BARCODE

    product = _first_compatible(await catalog.find_by_normalized_name(normalized), barcode)
    if product is not None:
        return product, MATCHED_BY_NAME

    if slug:
        product = _first_compatible(await catalog.find_by_slug(slug), barcode)
        if product is not None:
            return product, MATCHED_BY_SLUG

    return None, None


async def _resolve_once(
    catalog: CatalogLookup,
    name: str,
    normalized: str,
    slug: str,
    fields: Dict[str, Any],
) -> ResolveResult:
    product, matched_by = await _find_match(catalog, normalized, slug, fields["barcode"])

    if product is None:
        product = await catalog.insert(
            {
                "name": name,
                "normalized_name": normalized,
                "slug": slug or None,
                **fields,
            }
        )
        logger.info("Created product %s for %r", product.id, name)
        return ResolveResult(product=product, created=True)

    changes = missing_field_changes(product, fields)
    if not product.slug and slug:
        changes["slug"] = slug
    if changes:
        logger.debug("Enriching product %s with %s", product.id, sorted(changes))
        product = await catalog.update(product, changes)

    logger.debug("Resolved %r to product %s by %s", name, product.id, matched_by)
    return ResolveResult(product=product, created=False, matched_by=matched_by)


async def resolve(
    candidate: ProductCandidate,
    catalog: CatalogLookup,
    *,
    extractor: MetaExtractor = default_extractor,
    max_retries: Optional[int] = None,
) -> ResolveResult:
    name = (candidate.name or "").strip()
    if not name:
        raise ValueError("Cannot resolve a product without a name")

    if max_retries is None:
        max_retries = settings.RESOLVE_MAX_RETRIES

    normalized = normalize(name)
    if not normalized:
        raise ValueError(f"{name!r} has no usable characters")
    slug = slugify(name)
    fields = _candidate_fields(candidate, extractor)

    attempt = 0
    while True:
        try:
            async with catalog.claim(normalized):
                return await _resolve_once(catalog, name, normalized, slug, fields)
        except CatalogConflict:
            attempt += 1
            if attempt > max_retries:
                logger.error("Giving up on %r after %d conflicting writes", name, attempt)
                raise
            logger.warning("Concurrent write for %r, retrying lookup (attempt %d)", name, attempt)
