"""Tests for personal-data masking."""

import pytest

from esperto.logging_config import PROTECTED, mask_email, mask_sensitive_data

pytestmark = pytest.mark.unit


def test_mask_email_keeps_prefix_and_domain():
    assert mask_email("maria@example.com") == "mar***@example.com"
    assert mask_email("ab@example.com") == "***@example.com"
    assert mask_email(None) == "***"
    assert mask_email("not-an-email") == "***"


def test_mask_sensitive_data_recurses():
    masked = mask_sensitive_data({
        "email": "maria@example.com",
        "stripe_customer_id": "cus_123",
        "note": "contato joao.silva@example.com",
        "count": 3,
        "items": [{"user_email": "ana.paula@example.com"}],
    })

    assert masked == {
        "email": "mar***@example.com",
        "stripe_customer_id": PROTECTED,
        "note": "contato joa***@example.com",
        "count": 3,
        "items": [{"user_email": "ana***@example.com"}],
    }


def test_mask_sensitive_data_passes_empty_values():
    assert mask_sensitive_data(None) is None
    assert mask_sensitive_data({}) == {}
