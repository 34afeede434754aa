"""
Tests for validation.code_validator

Test Coverage:
- validate(): valid codes per kind, each rejection reason, non-string input
- Round-trip: every complete legal selection generates a valid code
- parse_code(): structural decode and bone names
"""

import pytest

from ao_hand_codec.generation import generate
from ao_hand_codec.validation import parse_code, validate


class TestValidateCode:
    @pytest.mark.parametrize(
        "code",
        ["71A", "72B", "72B(b)", "72C(a,b,c)", "74A", "76.1.C", "77.2.2B", "77.1.1B", "78.1.3.1A", "78.5.2.3C", "79"],
    )
    def test_validate_when_legal_code_then_valid(self, taxonomy, code):
        # Act
        result = validate(code, taxonomy)

        # Assert
        assert result.valid, result.reason
        assert result.reason is None
        assert result.parsed is not None

    @pytest.mark.parametrize(
        "code, prefix",
        [
            ("", "EMPTY_CODE"),
            ("A72", "BAD_FAMILY_CODE"),
            ("7", "BAD_FAMILY_CODE"),
            ("80A", "UNKNOWN_FAMILY"),
            ("72", "BAD_FORMAT"),
            ("72b", "BAD_FORMAT"),
            ("72B()", "BAD_FORMAT"),
            ("76.1A", "BAD_FORMAT"),
            ("77.2.B", "BAD_FORMAT"),
            ("79A", "BAD_FORMAT"),
            ("76.4.A", "UNKNOWN_SUB_BONE"),
            ("77.6.2B", "UNKNOWN_FINGER"),
            ("78.2.4.1A", "UNKNOWN_PHALANX"),
            ("78.1.2.1A", "EXCLUDED_PHALANX"),
            ("77.2.4B", "UNKNOWN_SEGMENT"),
            ("71D", "UNKNOWN_TYPE"),
            ("77.2.2D", "UNKNOWN_TYPE"),
            ("73B(a)", "QUALIFICATIONS_NOT_DECLARED"),
            ("72A(a)", "QUALIFICATIONS_NOT_SUPPORTED"),
            ("72B(d)", "UNKNOWN_QUALIFICATION"),
            ("72B(b,b)", "DUPLICATE_QUALIFICATION"),
        ],
    )
    def test_validate_when_illegal_code_then_reason_names_the_problem(self, taxonomy, code, prefix):
        # Act
        result = validate(code, taxonomy)

        # Assert
        assert not result.valid
        assert result.reason.startswith(prefix)

    @pytest.mark.parametrize(
        "code, prefix",
        [
            ("72B\n", "BAD_FORMAT"),
            ("72B(b)\n", "BAD_FORMAT"),
            ("76.2.A\n", "BAD_FORMAT"),
            ("77.2.2B\n", "BAD_FORMAT"),
            ("78.2.3.1A\n", "BAD_FORMAT"),
            ("79\n", "BAD_FORMAT"),
            ("77.2.2B ", "BAD_FORMAT"),
            (" 77.2.2B", "BAD_FAMILY_CODE"),
            ("\u0667\u0662B", "BAD_FAMILY_CODE"),
            ("77.\u0662.2B", "BAD_FORMAT"),
        ],
    )
    def test_validate_when_whitespace_or_non_ascii_digits_then_rejected(self, taxonomy, code, prefix):
        # Act
        result = validate(code, taxonomy)

        # Assert
        assert not result.valid
        assert result.reason.startswith(prefix)
        assert parse_code(code, taxonomy) is None

    @pytest.mark.parametrize("code", [None, 72, ["72B"], 7.2])
    def test_validate_when_not_a_string_then_invalid_without_raising(self, taxonomy, code):
        # Act
        result = validate(code, taxonomy)

        # Assert
        assert not result.valid
        assert result.reason.startswith("NOT_A_STRING")

    def test_validate_when_thumb_middle_phalanx_then_reason_names_thumb(self, taxonomy):
        # Act
        result = validate("78.1.2.2A", taxonomy)

        # Assert
        assert result.reason == "EXCLUDED_PHALANX: Thumb has no middle phalanx"

    def test_validate_when_qualifiers_out_of_table_order_then_still_valid(self, taxonomy):
        assert validate("72B(c,a)", taxonomy).valid

    def test_validate_when_invalid_then_to_dict_has_reason(self, taxonomy):
        # Act
        data = validate("80A", taxonomy).to_dict()

        # Assert
        assert data["valid"] is False
        assert "reason" in data


class TestRoundTrip:
    def test_validate_when_generated_from_any_complete_selection_then_valid(self, taxonomy, all_complete_selections):
        # Arrange
        assert len(all_complete_selections) == 210

        # Act
        failures = []
        for selection in all_complete_selections:
            code = generate(selection, taxonomy)
            result = validate(code, taxonomy)
            if not result.valid:
                failures.append((code, result.reason))

        # Assert
        assert failures == []

    def test_generate_when_all_selections_then_codes_are_unique(self, taxonomy, all_complete_selections):
        # Act
        codes = [generate(selection, taxonomy) for selection in all_complete_selections]

        # Assert
        assert len(set(codes)) == len(codes)


class TestDeterminism:
    def test_generate_and_validate_when_called_twice_then_identical(self, taxonomy, all_complete_selections):
        # Act
        mismatches = []
        for selection in all_complete_selections:
            first_code, second_code = generate(selection, taxonomy), generate(selection, taxonomy)
            if first_code != second_code or validate(first_code, taxonomy) != validate(second_code, taxonomy):
                mismatches.append(first_code)

        # Assert
        assert mismatches == []

    @pytest.mark.parametrize("code", ["", "80A", "72B\n", "78.1.2.1A", "72B(b,b)", None])
    def test_validate_when_invalid_code_twice_then_identical_result(self, taxonomy, code):
        # Act
        first = validate(code, taxonomy)
        second = validate(code, taxonomy)

        # Assert
        assert first == second
        assert not first.valid


class TestParseCode:
    def test_parse_code_when_phalanx_then_fields_and_bone_name(self, taxonomy):
        # Act
        parsed = parse_code("78.3.2.3C", taxonomy)

        # Assert
        assert parsed.family_code == "78"
        assert (parsed.finger, parsed.phalanx, parsed.segment, parsed.fracture_type) == ("3", "2", "3", "C")
        assert parsed.bone_name == "Middle Middle Phalanx"

    def test_parse_code_when_scaphoid_qualifiers_then_letters_in_code_order(self, taxonomy):
        # Act
        parsed = parse_code("72C(b,a)", taxonomy)

        # Assert
        assert parsed.qualifications == ("b", "a")
        assert parsed.bone_name == "Scaphoid"

    def test_parse_code_when_sub_bone_then_sub_bone_name(self, taxonomy):
        assert parse_code("76.3.B", taxonomy).bone_name == "Trapezoid"

    def test_parse_code_when_grammar_only_then_unknown_members_still_decode(self, taxonomy):
        # Act
        parsed = parse_code("77.9.9Z", taxonomy)

        # Assert
        assert parsed is not None
        assert parsed.bone_name == "Metacarpal"

    @pytest.mark.parametrize("code", ["", "80A", "77.2B", None])
    def test_parse_code_when_undecodable_then_none(self, taxonomy, code):
        assert parse_code(code, taxonomy) is None

    def test_parse_code_when_valid_then_details_match(self, taxonomy):
        # Act
        details = parse_code("77.1.1C", taxonomy).to_details()

        # Assert
        assert details.to_dict() == {"familyCode": "77", "type": "C", "finger": "1", "segment": "1"}
