"""
Tests for payment reference building and parsing.
"""

import pytest

from payments.references import (
    ParsedReference,
    build_reference,
    can_embed_user_id,
    parse_reference,
)


class TestBuildReference:
    def test_format(self):
        assert build_reference("auto", "U1", now_ms=1700000000000) == "TOKENS_auto_U1_1700000000000"

    def test_defaults_to_current_time(self):
        reference = build_reference("motors", "U7")

        assert reference.startswith("TOKENS_motors_U7_")
        assert reference.rsplit("_", 1)[1].isdigit()

    def test_built_reference_parses_back(self):
        reference = build_reference("school_fees", "USER42", now_ms=1)

        assert parse_reference(reference) == ParsedReference("school_fees", "USER42")

    @pytest.mark.parametrize("user_id", ["usr_1", "_", "U1_", ""])
    def test_rejects_user_ids_that_cannot_parse_back(self, user_id):
        with pytest.raises(ValueError):
            build_reference("auto", user_id, now_ms=1)

    @pytest.mark.parametrize(
        "user_id,expected",
        [("USER42", True), ("user-42.x", True), ("usr_1", False), ("", False), (None, False)],
    )
    def test_can_embed_user_id(self, user_id, expected):
        assert can_embed_user_id(user_id) is expected


class TestParseReference:
    @pytest.mark.parametrize(
        "reference,service_type,user_id",
        [
            ("TOKENS_auto_USER123_1700000000", "auto", "USER123"),
            ("TOKENS_first_aid_42_1700000000000", "first_aid", "42"),
            ("TOKENS_cata_catanis_abc-def_1", "cata_catanis", "abc-def"),
            ("tokens_AUTO_U1_1", "auto", "U1"),
            ("  TOKENS_telephone_U9_5  ", "telephone", "U9"),
        ],
    )
    def test_valid(self, reference, service_type, user_id):
        assert parse_reference(reference) == ParsedReference(service_type, user_id)

    @pytest.mark.parametrize(
        "reference",
        [
            None,
            "",
            "ORDER-123",
            "TOKENS_auto_U1",
            "TOKENS_auto_U1_notanumber",
            "TOKENS_boats_U1_1700000000",
            "PREFIX_TOKENS_auto_U1_1",
        ],
    )
    def test_invalid(self, reference):
        assert parse_reference(reference) is None
