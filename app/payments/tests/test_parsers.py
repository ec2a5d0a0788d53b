"""
Tests for provider webhook payload parsers.
"""

import pytest

from payments.state_machines import PaymentMethod
from payments.webhooks.parsers import ConfirmationOutcome, PayloadError, parse_payload


class TestParsePayload:
    @pytest.mark.parametrize("payload", [None, "text", ["order_id"], 42])
    def test_non_object_rejected(self, payload):
        with pytest.raises(PayloadError):
            parse_payload(PaymentMethod.ORANGE_MONEY, payload)

    def test_unknown_provider_rejected(self):
        with pytest.raises(PayloadError, match="No webhook parser"):
            parse_payload("paypal", {"status": "SUCCESS"})


class TestOrangeMoneyParser:
    def test_success(self):
        event = parse_payload(
            PaymentMethod.ORANGE_MONEY,
            {"status": "SUCCESS", "order_id": "TOKENS_auto_U1_1", "amount": "7500", "txnid": "MP1"},
        )

        assert event.is_success is True
        assert event.reference == "TOKENS_auto_U1_1"
        assert event.amount == 7500
        assert event.user_id is None

    @pytest.mark.parametrize(
        "payload,reference",
        [
            ({"status": "completed", "reference": "R1"}, "R1"),
            ({"status_code": "ok", "ref": "R2"}, "R2"),
            ({"status": "SUCCESS", "order_id": "", "orderId": "R3"}, "R3"),
        ],
    )
    def test_field_aliases(self, payload, reference):
        event = parse_payload(PaymentMethod.ORANGE_MONEY, payload)

        assert event.is_success is True
        assert event.reference == reference

    @pytest.mark.parametrize("status", ["FAILED", "PENDING", "", None])
    def test_anything_else_is_other(self, status):
        event = parse_payload(PaymentMethod.ORANGE_MONEY, {"status": status, "order_id": "R1"})

        assert event.outcome == ConfirmationOutcome.OTHER

    def test_missing_reference(self):
        assert parse_payload(PaymentMethod.ORANGE_MONEY, {"status": "SUCCESS"}).reference is None


class TestCinetPayParser:
    def test_identity_comes_from_transaction_id(self):
        event = parse_payload(
            PaymentMethod.CINETPAY,
            {"cpm_trans_id": "TOKENS_school_fees_U9_1700000000000", "cpm_result": "ACCEPTED", "cpm_amount": "5000"},
        )

        assert event.is_success is True
        assert event.reference == "TOKENS_school_fees_U9_1700000000000"
        assert event.user_id == "U9"
        assert event.service_type == "school_fees"
        assert event.amount == 5000

    def test_status_is_case_insensitive(self):
        event = parse_payload(
            PaymentMethod.CINETPAY, {"transaction_id": "TOKENS_auto_U1_1", "status": "accepted"}
        )

        assert event.is_success is True

    def test_refused(self):
        event = parse_payload(
            PaymentMethod.CINETPAY, {"transaction_id": "TOKENS_auto_U1_1", "status": "REFUSED"}
        )

        assert event.outcome == ConfirmationOutcome.OTHER

    def test_foreign_transaction_id(self):
        event = parse_payload(PaymentMethod.CINETPAY, {"transaction_id": "ORDER-9", "status": "ACCEPTED"})

        assert event.reference == "ORDER-9"
        assert event.user_id is None
        assert event.service_type is None


class TestSamaMoneyParser:
    @pytest.mark.parametrize(
        "status,outcome",
        [
            ("success", ConfirmationOutcome.SUCCESS),
            ("COMPLETED", ConfirmationOutcome.SUCCESS),
            (1, ConfirmationOutcome.SUCCESS),
            ("failed", ConfirmationOutcome.FAILURE),
            ("cancelled", ConfirmationOutcome.FAILURE),
            (0, ConfirmationOutcome.FAILURE),
            ("processing", ConfirmationOutcome.OTHER),
        ],
    )
    def test_status_mapping(self, status, outcome):
        event = parse_payload(PaymentMethod.SAMA_MONEY, {"status": status, "idCommande": "R1"})

        assert event.outcome == outcome

    def test_etat_and_montant(self):
        event = parse_payload(
            PaymentMethod.SAMA_MONEY, {"etat": "1", "idCommande": "TOKENS_motors_U1_1", "montant": "5000"}
        )

        assert event.is_success is True
        assert event.reference == "TOKENS_motors_U1_1"
        assert event.amount == 5000
