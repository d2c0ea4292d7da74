"""
Transaction Extraction

Sends a statement PDF to Gemini and turns its JSON answer into
Transaction records. The model sometimes stops mid-answer on long
statements; a truncated array is cut back to its last complete record
and closed before giving up.
"""

import asyncio
import json
import logging
import re
from abc import ABC, abstractmethod

from .errors import (
    GENERIC_EXTRACTION_MESSAGE,
    ExtractionError,
    InvalidResponseError,
    TruncatedResponseError,
)
from .models import Transaction

logger = logging.getLogger(__name__)

UNKNOWN_LABEL = "Inconnu"

PROMPT_TEMPLATE = """
You are an expert financial data extraction engine.
Analyze the attached PDF bank statement page(s).

Extract ALL financial transactions found in the table.

Rules:
1. Ignore headers, footers, previous balances, and summary sections. Only extract line items.
2. Dates must be formatted as DD/MM/YYYY.
3. Identify if a value is a Debit (negative flow usually) or Credit (positive flow).
4. Return numeric values for debit/credit as positive numbers in their respective fields. If a transaction is a debit, 'debit' should be the number and 'credit' null. If credit, 'credit' is the number and 'debit' null.
5. The 'label' should be the full description text. Clean up extra spaces or newlines.

Additional Context from user: {context}
"""

RESPONSE_SCHEMA = {
    "type": "ARRAY",
    "items": {
        "type": "OBJECT",
        "properties": {
            "date": {"type": "STRING", "description": "Transaction date in DD/MM/YYYY"},
            "label": {"type": "STRING", "description": "Description or Label of the transaction"},
            "debit": {"type": "NUMBER", "nullable": True,
                      "description": "Debit amount (positive number) or null if credit"},
            "credit": {"type": "NUMBER", "nullable": True,
                       "description": "Credit amount (positive number) or null if debit"},
        },
        "required": ["date", "label"],
    },
}

# Markdown fences the model sometimes adds despite the JSON MIME type
FENCE_PATTERN = re.compile(r'^```(?:json)?', re.MULTILINE)


def build_prompt(context):
    return PROMPT_TEMPLATE.format(context=context)


def strip_code_fences(text):
    text = FENCE_PATTERN.sub("", text or "").strip()
    if text.endswith("```"):
        text = text[:-3].rstrip()
    return text


def _repair_truncated(payload):
    """Cuts the payload after the last closing brace and closes the array."""
    last_brace = payload.rfind('}')
    if last_brace == -1:
        raise InvalidResponseError()

    repaired = payload[:last_brace + 1] + "]"
    try:
        data = json.loads(repaired)
    except json.JSONDecodeError as exc:
        logger.error("Failed to repair JSON: %s", exc)
        raise TruncatedResponseError() from exc

    logger.info("Successfully repaired truncated JSON response")
    return data


def parse_response(text):
    """
    Parses the raw model output into a list of dicts.

    Args:
        text: Model output, possibly wrapped in code fences or truncated

    Returns:
        list: Raw records (an empty answer is a valid empty list)

    Raises:
        TruncatedResponseError: Truncated and the repair pass failed
        InvalidResponseError: No complete record, or not an array of objects
    """
    payload = strip_code_fences(text) or "[]"

    try:
        data = json.loads(payload)
    except json.JSONDecodeError as exc:
        logger.warning("JSON parse error (likely truncation): %s", exc)
        data = _repair_truncated(payload)

    if not isinstance(data, list) or not all(isinstance(item, dict) for item in data):
        raise InvalidResponseError()
    return data


def _amount(value):
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return None
    return float(value)


def to_transactions(items):
    """
    Builds Transaction records from raw model output.

    Every record gets a new id; the date validity flag is recomputed
    here whatever the model claims; a blank label becomes "Inconnu".
    """
    transactions = []
    for item in items:
        date = item.get("date")
        label = item.get("label")
        transactions.append(Transaction.create(
            date=date if isinstance(date, str) else "",
            label=label if isinstance(label, str) and label.strip() else UNKNOWN_LABEL,
            debit=_amount(item.get("debit")),
            credit=_amount(item.get("credit")),
        ))
    return transactions


class TransactionExtractor(ABC):
    """Interface for services turning a PDF statement into transactions."""

    @abstractmethod
    async def extract(self, upload, context):
        """Returns the list of Transaction found in the upload."""
        pass


class GeminiExtractor(TransactionExtractor):
    """Extraction through the Gemini API."""

    def __init__(self, api_key, model="gemini-2.5-flash"):
        import google.generativeai as genai

        genai.configure(api_key=api_key)
        self.model_name = model
        self.model = genai.GenerativeModel(model)
        self.generation_config = {
            "response_mime_type": "application/json",
            "response_schema": RESPONSE_SCHEMA,
        }

    async def extract(self, upload, context):
        logger.info("Extracting %s with %s", upload.name, self.model_name)

        # The SDK base64-encodes the inline blob for transport
        pdf_part = {"mime_type": upload.mime_type, "data": upload.data}

        try:
            # The SDK async client is bound to its first event loop; each batch runs a new one
            response = await asyncio.to_thread(
                self.model.generate_content,
                [pdf_part, build_prompt(context)],
                generation_config=self.generation_config,
            )
            text = response.text
        except Exception as exc:
            logger.error("Gemini extraction error for %s: %s", upload.name, exc)
            raise ExtractionError(str(exc) or GENERIC_EXTRACTION_MESSAGE) from exc

        transactions = to_transactions(parse_response(text))
        logger.info("Extracted %d transactions from %s", len(transactions), upload.name)
        return transactions
