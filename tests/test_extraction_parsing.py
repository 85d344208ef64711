"""Tests for provider response cleanup, repair and parsing."""

import pytest
from decimal import Decimal

from nairasync.services.extraction import (
    DataFormatError,
    TRANSACTION_LIST_SCHEMA,
    parse_transactions,
    repair_truncated_array,
    strip_code_fences,
)

from tests.conftest import RENT_ROW, SALARY_ROW


class TestStripCodeFences:

    def test_json_fence_removed(self):
        assert strip_code_fences("```json\n[]\n```") == "[]"

    def test_plain_fence_removed(self):
        assert strip_code_fences("```[1]```") == "[1]"

    def test_unfenced_text_untouched(self):
        assert strip_code_fences("  [] ") == "[]"


class TestRepairTruncatedArray:
    """Tests for closing a cut-off array."""

    def test_complete_array_untouched(self):
        text = f"[{SALARY_ROW}]"
        assert repair_truncated_array(text) == text

    def test_cut_after_partial_object(self):
        text = f'[{SALARY_ROW}, {{"date": "2024-01'
        assert repair_truncated_array(text) == f"[{SALARY_ROW}]"

    def test_no_complete_object_left_alone(self):
        assert repair_truncated_array('[{"date": "20') == '[{"date": "20'

    def test_non_array_left_alone(self):
        assert repair_truncated_array('{"a": 1}') == '{"a": 1}'


class TestParseTransactions:
    """Tests for parse_transactions."""

    def test_valid_array(self):
        parsed = parse_transactions(f"[{SALARY_ROW}, {RENT_ROW}]")
        assert len(parsed.transactions) == 2
        assert parsed.transactions[0].amount == Decimal("600000.00")
        assert not parsed.repaired

    def test_single_object_array(self):
        parsed = parse_transactions(f"[{SALARY_ROW}]")
        assert [t.description for t in parsed.transactions] == ["Salary Jan"]

    def test_fenced_response(self):
        parsed = parse_transactions(f"```json\n[{RENT_ROW}]\n```")
        assert len(parsed.transactions) == 1

    def test_empty_array(self):
        assert parse_transactions("[]").transactions == []

    def test_truncated_response_repaired(self):
        parsed = parse_transactions(f'[{SALARY_ROW}, {RENT_ROW}, {{"date": "2024-01-3')
        assert len(parsed.transactions) == 2
        assert parsed.repaired
        assert parsed.repaired_length < parsed.original_length

    def test_decimal_amounts_not_floats(self):
        parsed = parse_transactions(
            '[{"date": "2024-01-05", "description": "Fee", "amount": 0.1, "type": "DEBIT"}]'
        )
        assert parsed.transactions[0].amount == Decimal("0.10")

    @pytest.mark.parametrize("raw", [
        "not json at all",
        '{"date": "2024-01-05"}',
        "[",
        '"just a string"',
    ])
    def test_malformed_raises_data_format_error(self, raw):
        with pytest.raises(DataFormatError) as exc_info:
            parse_transactions(raw)
        assert str(exc_info.value) == (
            "Failed to parse the financial data. The document might be illegible."
        )

    def test_one_bad_row_rejects_everything(self):
        bad_row = '{"date": "2024-01-06", "description": "Odd", "amount": 10, "type": "REFUND"}'
        with pytest.raises(DataFormatError):
            parse_transactions(f"[{SALARY_ROW}, {bad_row}]")

    @pytest.mark.parametrize("amount", ["100000000000000000000000000", "1e30"])
    def test_amount_beyond_decimal_precision_rejected(self, amount):
        row = f'{{"date": "2024-01-01", "description": "x", "amount": {amount}, "type": "CREDIT"}}'
        with pytest.raises(DataFormatError):
            parse_transactions(f"[{row}]")

    def test_negative_amount_rejected(self):
        row = '{"date": "2024-01-06", "description": "Reversal", "amount": -10, "type": "DEBIT"}'
        with pytest.raises(DataFormatError):
            parse_transactions(f"[{row}]")


class TestResponseSchema:

    def test_schema_requires_all_fields(self):
        items = TRANSACTION_LIST_SCHEMA["items"]
        assert TRANSACTION_LIST_SCHEMA["type"] == "ARRAY"
        assert set(items["required"]) == {"date", "description", "amount", "type"}
        assert items["properties"]["type"]["enum"] == ["CREDIT", "DEBIT"]
