"""
Inventory item field definitions.

The catalog has one target schema. Each canonical field is also the
catalog column name.
"""

from enum import Enum


class CanonicalField(str, Enum):
    """
    Target attributes of an inventory item.

    Declaration order matters: header matching tries fields in this order.
    """
    CODE = "code"
    BARCODE = "barcode"
    NAME = "name"
    GROUP = "group"
    SUBGROUP = "subgroup"
    REFERENCE = "reference"
    BRAND = "brand"
    COST_PRICE = "cost_price"
    SALE_PRICE = "sale_price"
    PROMO_PRICE = "promo_price"
    STOCK_CURRENT = "stock_current"
    STOCK_MIN = "stock_min"
    STOCK_MAX = "stock_max"
    TAX_CODE = "tax_code"
    UNIT = "unit"
    GROSS_WEIGHT = "gross_weight"
    NET_WEIGHT = "net_weight"
    LOCATION = "location"
    BALANCE = "balance"


class FieldKind(str, Enum):
    """How a field's cell value is coerced."""
    REQUIRED_NUMERIC = "required_numeric"   # Unparsable → 0
    OPTIONAL_NUMERIC = "optional_numeric"   # Unparsable → None
    REQUIRED_TEXT = "required_text"         # Missing → ""
    OPTIONAL_TEXT = "optional_text"         # Missing → None


FIELD_KINDS: dict[CanonicalField, FieldKind] = {
    CanonicalField.CODE: FieldKind.REQUIRED_TEXT,
    CanonicalField.BARCODE: FieldKind.OPTIONAL_TEXT,
    CanonicalField.NAME: FieldKind.REQUIRED_TEXT,
    CanonicalField.GROUP: FieldKind.OPTIONAL_TEXT,
    CanonicalField.SUBGROUP: FieldKind.OPTIONAL_TEXT,
    CanonicalField.REFERENCE: FieldKind.OPTIONAL_TEXT,
    CanonicalField.BRAND: FieldKind.OPTIONAL_TEXT,
    CanonicalField.COST_PRICE: FieldKind.REQUIRED_NUMERIC,
    CanonicalField.SALE_PRICE: FieldKind.REQUIRED_NUMERIC,
    CanonicalField.PROMO_PRICE: FieldKind.OPTIONAL_NUMERIC,
    CanonicalField.STOCK_CURRENT: FieldKind.REQUIRED_NUMERIC,
    CanonicalField.STOCK_MIN: FieldKind.REQUIRED_NUMERIC,
    CanonicalField.STOCK_MAX: FieldKind.REQUIRED_NUMERIC,
    CanonicalField.TAX_CODE: FieldKind.OPTIONAL_TEXT,
    CanonicalField.UNIT: FieldKind.OPTIONAL_TEXT,
    CanonicalField.GROSS_WEIGHT: FieldKind.OPTIONAL_NUMERIC,
    CanonicalField.NET_WEIGHT: FieldKind.OPTIONAL_NUMERIC,
    CanonicalField.LOCATION: FieldKind.OPTIONAL_TEXT,
    CanonicalField.BALANCE: FieldKind.OPTIONAL_NUMERIC,
}

# Prices cannot be negative; stock quantities can
NON_NEGATIVE_FIELDS = frozenset({
    CanonicalField.COST_PRICE,
    CanonicalField.SALE_PRICE,
})

# Catalog column default for rows without a unit
DEFAULT_UNIT = "UN"

# Column index → field, built once per file
ColumnMapping = dict[int, CanonicalField]
