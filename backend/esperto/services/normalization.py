"""
Name normalisation for matching user-typed products and stores.

Contributors type "Arroz Tipo 1 5kg", "arroz tipo 1" or "ARROZ" for the same
item, so catalogue lookups compare normalised forms rather than raw strings.
"""
import re
import unicodedata
from typing import Any, Iterable

QUANTITY_SUFFIX = re.compile(
    r"\s+\d+\s*(kg|g|ml|l|un|unid|unidades?|litros?|gramas?|quilos?|pacotes?|pct|cx|caixas?)\s*$",
    re.IGNORECASE,
)
TRAILING_NUMBER = re.compile(r"\s+\d+\s*$")

BASE_NAME_PATTERNS = [
    re.compile(
        r"\s*-?\s*\d+\s*(kg|g|ml|l|un|unid|unidades?|litros?|gramas?|quilos?|pacotes?|pct|cx|caixas?)\s*$",
        re.IGNORECASE,
    ),
    re.compile(r"\s+\d+\s*$"),
    re.compile(r"\s*\(\d+.*?\)\s*$"),
]


def strip_accents(value: str) -> str:
    decomposed = unicodedata.normalize("NFD", value)
    return "".join(ch for ch in decomposed if unicodedata.category(ch) != "Mn")


def normalize_string(value: str) -> str:
    """Lowercase, drop all whitespace and accents."""
    return strip_accents(re.sub(r"\s+", "", value.lower()))


def are_strings_similar(first: str, second: str) -> bool:
    """Equal after normalisation, or one contains the other ("Arroz Tipo 1" vs "Arroz")."""
    a = normalize_string(first)
    b = normalize_string(second)
    if a == b:
        return True
    return a in b or b in a


def normalize_product_name(name: str) -> str:
    """Normalise a product name and drop a trailing quantity such as '5kg' or '2 l'."""
    value = strip_accents(name.lower().strip())
    value = QUANTITY_SUFFIX.sub("", value)
    value = TRAILING_NUMBER.sub("", value)
    return re.sub(r"\s+", " ", value).strip()


def get_product_base_name(name: str) -> str:
    """Product name without its quantity variation, keeping the original casing."""
    base_name = name.strip()
    for pattern in BASE_NAME_PATTERNS:
        base_name = pattern.sub("", base_name).strip()
    return base_name


def levenshtein_distance(first: str, second: str) -> int:
    previous = list(range(len(second) + 1))
    for i, ch_a in enumerate(first, start=1):
        current = [i]
        for j, ch_b in enumerate(second, start=1):
            if ch_a == ch_b:
                current.append(previous[j - 1])
            else:
                current.append(min(previous[j], current[j - 1], previous[j - 1]) + 1)
        previous = current
    return previous[-1]


def calculate_similarity(first: str, second: str) -> float:
    """Similarity between two product names in [0, 1]."""
    a = normalize_product_name(first)
    b = normalize_product_name(second)
    if a == b:
        return 1.0

    longer, shorter = (a, b) if len(a) > len(b) else (b, a)
    if not longer:
        return 1.0
    return (len(longer) - levenshtein_distance(longer, shorter)) / len(longer)


def group_duplicate_products(products: Iterable[Any]) -> list[dict]:
    """
    Group catalogue products whose normalised names match.

    The most recently created product leads each group.
    """
    groups: dict[str, list[Any]] = {}
    for product in products:
        groups.setdefault(normalize_product_name(product.name), []).append(product)

    result = []
    for items in groups.values():
        ordered = sorted(
            items,
            key=lambda p: p.created_at.timestamp() if p.created_at else 0,
            reverse=True,
        )
        main = ordered[0]
        result.append({
            "product": main,
            "display_name": get_product_base_name(main.name) or main.name,
            "variant_count": len(items),
            "variants": ordered,
        })
    return result
