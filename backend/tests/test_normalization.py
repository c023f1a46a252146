"""Tests for product and store name normalisation."""

from datetime import datetime
from types import SimpleNamespace

import pytest

from esperto.services.normalization import (
    are_strings_similar,
    calculate_similarity,
    get_product_base_name,
    group_duplicate_products,
    levenshtein_distance,
    normalize_product_name,
    normalize_string,
)

pytestmark = pytest.mark.unit


def test_normalize_string_drops_case_spaces_and_accents():
    assert normalize_string("  Açúcar Refinado ") == "acucarrefinado"


def test_similar_when_one_name_contains_the_other():
    assert are_strings_similar("Arroz Tipo 1", "arroz")
    assert are_strings_similar("Mercado São João", "mercado sao joao")
    assert not are_strings_similar("Feijão", "Arroz")


def test_normalize_product_name_drops_quantity_suffix():
    assert normalize_product_name("Leite Integral 1L") == "leite integral"
    assert normalize_product_name("Café  Pilão 500 g") == "cafe pilao"


def test_base_name_keeps_casing():
    assert get_product_base_name("Leite Integral 1L") == "Leite Integral"
    assert get_product_base_name("Biscoito (200g)") == "Biscoito"


def test_levenshtein_distance():
    assert levenshtein_distance("kitten", "sitting") == 3
    assert levenshtein_distance("", "abc") == 3


def test_similarity_ignores_quantity():
    assert calculate_similarity("Leite 1L", "leite") == 1.0
    assert 0 < calculate_similarity("leite integral", "leite desnatado") < 1


def test_group_duplicate_products_leads_with_newest():
    older = SimpleNamespace(id=1, name="Leite Integral 1L", created_at=datetime(2026, 1, 1))
    newer = SimpleNamespace(id=2, name="leite integral 2l", created_at=datetime(2026, 2, 1))
    other = SimpleNamespace(id=3, name="Arroz 5kg", created_at=None)

    groups = group_duplicate_products([older, newer, other])

    milk = next(g for g in groups if g["variant_count"] == 2)
    assert milk["product"] is newer
    assert milk["variants"] == [newer, older]
    assert len(groups) == 2
