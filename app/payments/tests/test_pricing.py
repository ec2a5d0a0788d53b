"""
Tests for token pricing and purchase limits.
"""

import pytest

from core.exceptions import ValidationError
from payments.pricing import (
    MAX_TOKENS_PER_PURCHASE,
    MIN_TOKENS_PER_PURCHASE,
    TOKEN_VALUES,
    compute_tokens,
    price_for,
    token_value_for,
    validate_token_quantity,
)
from payments.state_machines import ServiceType


class TestTokenValues:
    def test_every_service_has_a_price(self):
        assert set(TOKEN_VALUES) == set(ServiceType.values)

    @pytest.mark.parametrize(
        "service_type,value",
        [
            ("auto", 750),
            ("cata_catanis", 500),
            ("school_fees", 500),
            ("motors", 250),
            ("telephone", 250),
            ("first_aid", 500),
        ],
    )
    def test_token_value_for(self, service_type, value):
        assert token_value_for(service_type) == value

    def test_unknown_service_is_worth_zero(self):
        assert token_value_for("boats") == 0
        assert token_value_for(None) == 0

    def test_price_for(self):
        assert price_for("auto", 10) == 7500
        assert price_for("motors", 20) == 5000


class TestComputeTokens:
    def test_floor_division(self):
        assert compute_tokens(7500, "auto") == 10
        assert compute_tokens(7600, "auto") == 10
        assert compute_tokens(749, "auto") == 0

    def test_supplied_count_wins(self):
        assert compute_tokens(7500, "auto", 12) == 12

    def test_non_positive_supplied_count_is_ignored(self):
        assert compute_tokens(5000, "motors", 0) == 20
        assert compute_tokens(5000, "motors", -3) == 20

    def test_unknown_service_yields_zero(self):
        assert compute_tokens(7500, "boats") == 0

    @pytest.mark.parametrize("amount", [0, -500, None])
    def test_non_positive_amount_yields_zero(self, amount):
        assert compute_tokens(amount, "auto") == 0


class TestValidateTokenQuantity:
    @pytest.mark.parametrize("tokens", [MIN_TOKENS_PER_PURCHASE, 30, MAX_TOKENS_PER_PURCHASE])
    def test_within_limits(self, tokens):
        validate_token_quantity(tokens)

    @pytest.mark.parametrize("tokens", [0, 9, 61, 100])
    def test_outside_limits(self, tokens):
        with pytest.raises(ValidationError) as exc_info:
            validate_token_quantity(tokens)

        assert exc_info.value.error_code == "INVALID_TOKEN_QUANTITY"
        assert exc_info.value.details["tokens"] == tokens
