"""
PDF Inspection

Reads the text layer of an uploaded statement with pdfplumber to count
its pages and recognise the issuing bank. The bank only refines the
context hint sent along with the file; a PDF that cannot be read locally
is still sent for extraction.
"""

import io
import logging
from dataclasses import dataclass

import pdfplumber

from .models import BANK_TEMPLATES

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class PdfInfo:
    page_count: int | None = None
    bank: object = None  # BankTemplate or None


def identify_bank(text):
    """
    Scans statement text for bank fingerprints.

    Returns:
        BankTemplate: The first template whose keywords appear, or None
    """
    text_lower = (text or "").lower()
    for template in BANK_TEMPLATES:
        if any(keyword in text_lower for keyword in template.keywords):
            return template
    return None


def inspect_pdf(data, max_pages=3):
    """
    Opens the PDF bytes and identifies the bank from the first pages.

    Args:
        data: Raw PDF bytes
        max_pages: Number of leading pages scanned for bank keywords

    Returns:
        PdfInfo: Page count and detected bank, both None if unreadable
    """
    try:
        with pdfplumber.open(io.BytesIO(data)) as pdf:
            if not pdf.pages:
                return PdfInfo(page_count=0)

            text = ""
            for page in pdf.pages[:max_pages]:
                page_text = page.extract_text()
                if page_text:
                    text += page_text + "\n"

            return PdfInfo(page_count=len(pdf.pages), bank=identify_bank(text))

    except Exception as e:
        logger.warning("Could not read PDF locally: %s", e)
        return PdfInfo()


def context_for(info, default_context):
    """Extraction context hint, refined with the detected bank format."""
    if info.bank is None:
        return default_context
    return f"{default_context} - {info.bank.name} ({info.bank.description})"
