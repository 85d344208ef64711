"""
Provider Response Parsing and Repair

The provider returns opaque text. This module is the only place that text
becomes Transactions:

1. Strip markdown code fences
2. Repair a truncated JSON array (cut at the last complete object, close it)
3. Decode JSON (numbers as Decimal, never float)
4. Validate every element as a Transaction

Anything that still fails is a DataFormatError. Nothing is guessed:
a response is either fully valid or rejected.
"""

import json
import re
from decimal import Decimal
from typing import Any

from pydantic import BaseModel, Field, TypeAdapter, ValidationError

from nairasync.models.transaction import Transaction, TransactionType
from nairasync.services.extraction.errors import DataFormatError


# Structured-output schema handed to the provider. Exactly the four
# Transaction fields, all required.
TRANSACTION_LIST_SCHEMA: dict[str, Any] = {
    "type": "ARRAY",
    "items": {
        "type": "OBJECT",
        "properties": {
            "date": {"type": "STRING"},
            "description": {"type": "STRING"},
            "amount": {"type": "NUMBER"},
            "type": {
                "type": "STRING",
                "enum": [t.value for t in TransactionType],
            },
        },
        "required": ["date", "description", "amount", "type"],
    },
}

_FENCE_PATTERN = re.compile(r"```(?:json)?", re.IGNORECASE)

_transaction_list = TypeAdapter(list[Transaction])


class ParsedResponse(BaseModel):
    """Transactions plus what had to be done to get them."""
    transactions: list[Transaction] = Field(default_factory=list)
    repaired: bool = False
    original_length: int = 0
    repaired_length: int = 0


def strip_code_fences(text: str) -> str:
    """Remove ```json / ``` markers wherever the model put them."""
    return _FENCE_PATTERN.sub("", text).strip()


def repair_truncated_array(text: str) -> str:
    """
    Close a JSON array that was cut off mid-stream.

    Only applies when the text opens with '[' and does not end with ']'.
    The incomplete trailing fragment after the last '}' is dropped.
    Text without any complete object is returned unchanged and will
    fail to decode.
    """
    if not text.startswith("[") or text.endswith("]"):
        return text
    last_brace = text.rfind("}")
    if last_brace == -1:
        return text
    return text[:last_brace + 1] + "]"


def parse_transactions(raw_text: str) -> ParsedResponse:
    """
    Turn provider text into validated Transactions.

    Raises:
        DataFormatError: If the text is not a JSON array of valid transactions
    """
    cleaned = strip_code_fences(raw_text)
    repaired = repair_truncated_array(cleaned)

    try:
        payload = json.loads(repaired, parse_float=Decimal)
    except json.JSONDecodeError as e:
        raise DataFormatError() from e

    if not isinstance(payload, list):
        raise DataFormatError() from TypeError(
            f"Expected a JSON array, got {type(payload).__name__}"
        )

    try:
        transactions = _transaction_list.validate_python(payload)
    except (ValidationError, ArithmeticError) as e:
        raise DataFormatError() from e

    return ParsedResponse(
        transactions=transactions,
        repaired=repaired != cleaned,
        original_length=len(cleaned),
        repaired_length=len(repaired),
    )
