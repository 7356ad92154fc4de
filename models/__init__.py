"""
Pydantic models and field definitions for inventory imports.
"""

from models.base import BaseSchema
from models.inventory_item import (
    CanonicalField,
    FieldKind,
    FIELD_KINDS,
    NON_NEGATIVE_FIELDS,
    DEFAULT_UNIT,
    ColumnMapping,
)
from models.imports import (
    RowErrorResponse,
    ImportPlanResponse,
    RejectedFileResponse,
    ImportUploadResponse,
    ImportProgressResponse,
    ImportSummaryResponse,
    ImportStatusResponse,
)

__all__ = [
    # Base
    "BaseSchema",
    # Inventory item
    "CanonicalField",
    "FieldKind",
    "FIELD_KINDS",
    "NON_NEGATIVE_FIELDS",
    "DEFAULT_UNIT",
    "ColumnMapping",
    # Imports
    "RowErrorResponse",
    "ImportPlanResponse",
    "RejectedFileResponse",
    "ImportUploadResponse",
    "ImportProgressResponse",
    "ImportSummaryResponse",
    "ImportStatusResponse",
]
