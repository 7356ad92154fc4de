"""
Header mapper for inventory spreadsheets.

Maps raw header strings to canonical inventory fields by keyword matching.
Spreadsheets come from different ERP exports, so column order and naming
vary; the synonym table covers Portuguese and English retail vocabulary.
"""

from typing import Optional, Sequence
import structlog

from models.inventory_item import CanonicalField, ColumnMapping
from exceptions import UnrecognizedSchemaError
from utils.text_utils import normalize_header, alphanumeric_form

logger = structlog.get_logger(__name__)


# Ordered (field, keywords) pairs. Field order decides which field claims an
# ambiguous header, so keep it aligned with CanonicalField declaration order.
FIELD_KEYWORDS: tuple[tuple[CanonicalField, tuple[str, ...]], ...] = (
    (CanonicalField.CODE, (
        "codigo", "código", "cod", "code", "cod.", "cód", "cód.",
        "codprod", "cod_prod", "codproduto", "codpro",
    )),
    (CanonicalField.BARCODE, (
        "ean", "gtin", "codigo de barras", "código de barras", "barcode",
        "codbarras", "cod_barras", "codigobarras", "código barras",
        "codigo barras", "ean13", "ean8", "upc", "cod.barras", "cód.barras",
        "codbar",
    )),
    (CanonicalField.NAME, (
        "nome", "descrição", "descricao", "produto", "name", "description",
        "desc", "item", "mercadoria", "descr", "desc.",
    )),
    (CanonicalField.GROUP, (
        "grupo", "categoria", "group", "category", "depto", "departamento",
        "setor", "secao", "seção", "codgru",
    )),
    (CanonicalField.SUBGROUP, (
        "subgrupo", "subcategoria", "subgroup", "sub-grupo", "sub grupo",
        "familia", "família",
    )),
    (CanonicalField.REFERENCE, (
        "referencia", "referência", "ref", "ref.",
    )),
    (CanonicalField.BRAND, (
        "marca", "brand", "fabricante", "fornecedor",
    )),
    (CanonicalField.COST_PRICE, (
        "custo", "preco_custo", "preço custo", "preco custo", "cost",
        "pr.custo", "pr custo", "valor custo", "vlr custo", "vlrcusto",
        "p.custo", "pcusto", "precocusto", "pr. custo", "un. custo",
        "pç custo",
    )),
    (CanonicalField.SALE_PRICE, (
        "venda", "preco_venda", "preço venda", "preco venda", "price",
        "pr.venda", "pr venda", "valor venda", "vlr venda", "vlrvenda",
        "p.venda", "pvenda", "precovenda", "pr. venda", "un. venda",
        "pç venda",
    )),
    (CanonicalField.PROMO_PRICE, (
        "promocao", "promoção", "preco_promocao", "precopromocao",
        "preco promocao", "preço promoção", "oferta", "desconto",
    )),
    (CanonicalField.STOCK_CURRENT, (
        "estoque", "estoque_atual", "quantidade", "qty", "stock", "qtd",
        "qtde", "atual", "est", "est.", "quant", "quant.",
    )),
    (CanonicalField.STOCK_MIN, (
        "estoquemin", "minimo", "mínimo", "estoque_minimo", "min", "min.",
        "est.min", "est min", "estmin", "qtd min", "qtd.min",
    )),
    (CanonicalField.STOCK_MAX, (
        "estoquemax", "maximo", "máximo", "estoque_maximo", "max", "max.",
        "est.max", "est max", "estmax", "qtd max", "qtd.max",
    )),
    (CanonicalField.TAX_CODE, (
        "ncm", "ncm/sh", "codigo ncm", "código ncm",
    )),
    (CanonicalField.UNIT, (
        "unidade", "un", "coduni", "cod_uni", "un.", "unit", "umed", "unid",
    )),
    (CanonicalField.GROSS_WEIGHT, (
        "pesobruto", "peso_bruto", "peso bruto", "p.bruto", "pbruto",
        "gross weight",
    )),
    (CanonicalField.NET_WEIGHT, (
        "pesoliquido", "peso_liquido", "peso liquido", "peso líquido",
        "p.liquido", "pliquido", "net weight",
    )),
    (CanonicalField.LOCATION, (
        "localizacao", "localização", "local", "codloc", "cod_loc",
        "endereco", "endereço", "location",
    )),
    (CanonicalField.BALANCE, (
        "saldo", "balance", "saldo atual",
    )),
)


def _prepare_keywords() -> list[tuple[CanonicalField, list[tuple[str, str]]]]:
    """Precompute (normalized, alphanumeric) forms for every keyword."""
    prepared = []
    for field, keywords in FIELD_KEYWORDS:
        forms = [(normalize_header(k), alphanumeric_form(k)) for k in keywords]
        prepared.append((field, forms))
    return prepared


_PREPARED_KEYWORDS = _prepare_keywords()


def _any_keyword_matches(
    normalized: str,
    compact: str,
    forms: list[tuple[str, str]]
) -> bool:
    for keyword, keyword_compact in forms:
        if keyword and keyword in normalized:
            return True
        if keyword_compact and keyword_compact in compact:
            return True
    return False


def match_header(
    header: str,
    claimed: Optional[set[CanonicalField]] = None
) -> Optional[CanonicalField]:
    """
    Find the first unclaimed field matching a header.

    Args:
        header: Raw header text
        claimed: Fields already taken by earlier columns

    Returns:
        Matching CanonicalField, or None if no unclaimed field matches
    """
    claimed = claimed or set()
    normalized = normalize_header(header)
    compact = alphanumeric_form(header)

    if not normalized and not compact:
        return None

    for field, forms in _PREPARED_KEYWORDS:
        if field in claimed:
            continue
        if _any_keyword_matches(normalized, compact, forms):
            return field
    return None


def map_headers(
    headers: Sequence[Optional[str]],
    file_name: Optional[str] = None
) -> ColumnMapping:
    """
    Build the column mapping for one file.

    Each field is claimed by at most one column: the lowest-index column
    that matches it. Later columns matching the same field fall through to
    their next matching field, or stay unmapped.

    Args:
        headers: Header row cells, in column order
        file_name: Used for logging and error details

    Returns:
        Mapping of column index to CanonicalField

    Raises:
        UnrecognizedSchemaError: If no column maps to any field
    """
    mapping: ColumnMapping = {}
    claimed: set[CanonicalField] = set()

    for index, header in enumerate(headers):
        text = "" if header is None else str(header)
        field = match_header(text, claimed)
        if field is None:
            continue
        mapping[index] = field
        claimed.add(field)

    if not mapping:
        logger.warning(
            "unrecognized_schema",
            file_name=file_name,
            headers=[str(h) for h in headers]
        )
        raise UnrecognizedSchemaError(
            headers=["" if h is None else str(h) for h in headers],
            file_name=file_name
        )

    logger.debug(
        "headers_mapped",
        file_name=file_name,
        mapped=len(mapping),
        unmapped=len(headers) - len(mapping),
        fields=[f.value for f in mapping.values()]
    )

    return mapping
