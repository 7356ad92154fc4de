"""
Subgroup normalization for inventory imports.

Spreadsheets spell the same subgroup many ways ("Polpa de Fruta",
"POLPA  DE FRUTA"). One SubgroupCatalog per import job maps every spelling
to a single stored value: the catalog's existing value if there is one,
otherwise the first spelling seen in the job.
"""

from typing import Iterable, Optional
import structlog

from utils.text_utils import normalize_category

logger = structlog.get_logger(__name__)


class SubgroupCatalog:
    """
    Normalized subgroup key → canonical display text.

    Owned by a single import job. Not thread-safe; the job runs on one
    worker.
    """

    def __init__(self):
        self._canonical: dict[str, str] = {}

    def __len__(self) -> int:
        return len(self._canonical)

    def __contains__(self, value: str) -> bool:
        key = normalize_category(value)
        return key is not None and key in self._canonical

    def seed(self, values: Iterable[Optional[str]]) -> int:
        """
        Register existing catalog values as canonical.

        Values are stored as-is; the first value seen for a key wins.

        Args:
            values: Distinct subgroup values currently in the catalog

        Returns:
            Number of keys registered
        """
        added = 0
        for value in values:
            key = normalize_category(value)
            if key is None or key in self._canonical:
                continue
            self._canonical[key] = value
            added += 1

        logger.debug("subgroup_catalog_seeded", added=added, total=len(self._canonical))
        return added

    def resolve(self, raw: Optional[str]) -> Optional[str]:
        """
        Resolve a raw subgroup to its canonical text.

        Unknown values are registered as uppercase(trim(raw)) and returned.

        Args:
            raw: Subgroup text from a spreadsheet cell

        Returns:
            Canonical subgroup, or None for blank input
        """
        key = normalize_category(raw)
        if key is None:
            return None

        existing = self._canonical.get(key)
        if existing is not None:
            return existing

        canonical = raw.strip().upper()
        self._canonical[key] = canonical
        logger.debug("subgroup_registered", key=key, canonical=canonical)
        return canonical

    def as_dict(self) -> dict[str, str]:
        """Copy of the key → canonical mapping."""
        return dict(self._canonical)
