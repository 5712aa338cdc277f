"""
Column Mapping Module

Schema-less column resolution for uploaded spreadsheets.
Raw headers are folded into canonical tokens and matched against a fixed
alias table, so "Código", "COD." and "product_id" all land on the same field.
"""

import re
import unicodedata
from types import MappingProxyType
from typing import Any, Dict, List, Mapping, Optional

import pandas as pd


# ═══════════════════════════════════════════════════════════════
# ALIAS TABLE
# ═══════════════════════════════════════════════════════════════

# ORDER MATTERS: the first alias present in a row wins.
FIELD_ALIASES = MappingProxyType({
    "id": (
        "product_id", "id_produto", "id", "codigo", "cod", "sku",
        "referencia", "ref", "codigo_produto",
    ),
    "name": (
        "product_name", "nome_produto", "produto", "name", "nome",
        "descricao", "item", "titulo", "mercadoria",
    ),
    "category": (
        "category", "categoria", "cat", "departamento", "grupo", "secao",
    ),
    "cost": (
        "cost", "custo", "valor_custo", "preco_custo", "pc", "vlr_custo",
    ),
    "price": (
        "price", "preco", "valor", "valor_venda", "preco_venda", "pv", "unitario",
    ),
    "min_stock": (
        "min_stock", "estoque_minimo", "min", "minimo", "ponto_pedido", "alertar_em",
    ),
    "current_stock": (
        "current_stock", "estoque_atual", "estoque", "saldo",
        "quantidade_estoque", "qtd_atual",
    ),
    "quantity_sold": (
        "quantity_sold", "quantidade_vendida", "qtd_vendida", "vendas",
        "qtd", "quantidade", "saida",
    ),
    "date": (
        "date", "data", "data_venda", "dia", "emissao", "data_movimento",
    ),
})

LOGICAL_FIELDS = tuple(FIELD_ALIASES.keys())

# Header row of the downloadable import template.
TEMPLATE_COLUMNS = (
    "date", "product_id", "product_name", "category", "cost",
    "price", "quantity_sold", "current_stock", "min_stock",
)

_NON_ALNUM = re.compile(r"[^a-z0-9]+")


# ═══════════════════════════════════════════════════════════════
# KEY NORMALIZATION
# ═══════════════════════════════════════════════════════════════

def normalize_key(key: Any) -> str:
    """
    Fold a raw header into a canonical token.

    Lower-cases, strips accents, collapses every run of non [a-z0-9]
    characters into one underscore and trims underscores at both ends.
    Never fails; symbol-only headers become "".
    """
    if key is None:
        return ""
    text = str(key).lower()
    text = unicodedata.normalize("NFD", text)
    text = "".join(ch for ch in text if not unicodedata.combining(ch))
    text = _NON_ALNUM.sub("_", text.strip())
    return text.strip("_")


def is_blank(value: Any) -> bool:
    """True for None, NaN/NaT and whitespace-only strings."""
    if value is None:
        return True
    if isinstance(value, str):
        return not value.strip()
    try:
        return bool(pd.isna(value))
    except (TypeError, ValueError):
        return False


# ═══════════════════════════════════════════════════════════════
# ROW CANONICALIZATION
# ═══════════════════════════════════════════════════════════════

def normalize_row(row: Mapping[Any, Any]) -> Dict[str, Any]:
    """
    Re-key a raw row by canonical token.

    Headers that normalize to "" are dropped. When two headers fold to the
    same token, the first one (in column order) is kept.
    """
    normalized = {}
    for raw_key, value in row.items():
        token = normalize_key(raw_key)
        if token and token not in normalized:
            normalized[token] = value
    return normalized


def resolve_field(normalized_row: Mapping[str, Any], field: str) -> Optional[Any]:
    """
    Return the value of the highest priority alias of `field` that carries
    data in the row, or None when the field is absent.
    """
    for alias in FIELD_ALIASES[field]:
        value = normalized_row.get(alias)
        if not is_blank(value):
            return value
    return None


def canonicalize_row(row: Mapping[Any, Any]) -> Dict[str, Optional[Any]]:
    """Map one raw row to the logical field set (every field present as a key)."""
    normalized = normalize_row(row)
    return {field: resolve_field(normalized, field) for field in LOGICAL_FIELDS}


def normalized_columns(row: Mapping[Any, Any]) -> List[str]:
    """Canonical tokens of a row's headers, in column order, empties removed."""
    return list(normalize_row(row).keys())
