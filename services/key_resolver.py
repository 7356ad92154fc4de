"""
Existing-key lookup for import classification.

Insert/update counts in the summary come from this lookup. The upsert
itself does not depend on it, so a failed lookup only skews the counts.
"""

from typing import Optional, Sequence
import structlog

from config import settings
from services.catalog_service import CatalogStore

logger = structlog.get_logger(__name__)


def resolve_existing_keys(
    store: CatalogStore,
    codes: Sequence[str],
    chunk_size: Optional[int] = None,
) -> set[str]:
    """
    Find which codes already exist in the catalog.

    One store lookup per chunk of codes. A chunk whose lookup fails is
    logged and treated as having no existing codes.

    Args:
        store: Catalog store
        codes: Distinct codes to classify
        chunk_size: Codes per lookup (default from settings)

    Returns:
        Union of existing codes across all chunks
    """
    if chunk_size is None:
        chunk_size = settings.import_lookup_chunk_size

    existing: set[str] = set()
    failed_chunks = 0

    for start in range(0, len(codes), chunk_size):
        chunk = list(codes[start:start + chunk_size])
        try:
            existing |= store.find_existing_codes(chunk)
        except Exception as e:
            failed_chunks += 1
            logger.warning(
                "key_lookup_chunk_failed",
                chunk=start // chunk_size,
                size=len(chunk),
                error=str(e)
            )

    logger.info(
        "existing_keys_resolved",
        codes=len(codes),
        existing=len(existing),
        failed_chunks=failed_chunks
    )

    return existing
