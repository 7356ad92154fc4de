"""
Text utilities for handling Portuguese text with accents.

Used for spreadsheet header matching and subgroup normalization.
"""

import re
import unicodedata
from typing import Optional

_WHITESPACE_RUN = re.compile(r"\s+")
_NON_ALPHANUMERIC = re.compile(r"[^a-z0-9]")


def strip_accents(text: str) -> str:
    """
    Remove accent marks from text.

    - "Descrição" → "Descricao"
    - "Família" → "Familia"

    Args:
        text: Original text (may have accents)

    Returns:
        Same text with combining marks removed
    """
    # Normalize unicode (NFD decomposition separates base chars from accents)
    normalized = unicodedata.normalize('NFD', text)

    # Remove accent marks (combining characters in Unicode category 'Mn')
    return ''.join(
        c for c in normalized
        if unicodedata.category(c) != 'Mn'
    )


def normalize_header(header: Optional[str]) -> str:
    """
    Normalize a spreadsheet header for keyword matching.

    Keeps spacing and punctuation:
    - "  Preço Custo " → "preco custo"
    - "Cód. Barras" → "cod. barras"
    """
    if not header:
        return ""
    return strip_accents(str(header).strip().lower())


def alphanumeric_form(text: Optional[str]) -> str:
    """
    Reduce text to lowercase ASCII letters and digits only.

    - "Cód. Barras" → "codbarras"
    - "pr.custo" → "prcusto"
    """
    if not text:
        return ""
    return _NON_ALPHANUMERIC.sub("", normalize_header(text))


def normalize_category(value: Optional[str]) -> Optional[str]:
    """
    Normalize a categorical value for identity comparison.

    Handles case, accents and repeated spaces:
    - "Polpa de Fruta" → "POLPA DE FRUTA"
    - "  polpa  DE frúta " → "POLPA DE FRUTA"

    Args:
        value: Raw categorical text from a spreadsheet or the catalog

    Returns:
        Normalized uppercase string, or None if input is empty
    """
    if not value:
        return None

    value = value.strip()

    if not value:
        return None

    ascii_value = strip_accents(value.upper())

    return _WHITESPACE_RUN.sub(" ", ascii_value)
