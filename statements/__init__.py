"""
Bank Statement Extraction

This package holds the session store, the Gemini extraction client and
the export helpers behind the Streamlit app.
"""

from .errors import ExtractionError, UploadRejectedError
from .extraction import GeminiExtractor, TransactionExtractor
from .models import BankStatement, Stats, Status, Transaction, Upload
from .store import ALL_VIEW, StatementStore

__all__ = [
    'ALL_VIEW', 'BankStatement', 'ExtractionError', 'GeminiExtractor', 'Stats',
    'StatementStore', 'Status', 'Transaction', 'TransactionExtractor',
    'Upload', 'UploadRejectedError',
]
