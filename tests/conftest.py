"""Shared test fixtures."""

import pytest

from statements.models import Transaction
from statements.pdf import PdfInfo
from statements.store import StatementStore
from tests.helpers import make_upload


@pytest.fixture
def store() -> StatementStore:
    return StatementStore()


@pytest.fixture
def debit_line() -> Transaction:
    return Transaction.create("05/01/2024", "CARTE SUPERMARCHE", debit=100.0)


@pytest.fixture
def credit_line() -> Transaction:
    return Transaction.create("06/01/2024", "VIREMENT SALAIRE", credit=60.0)


@pytest.fixture
def ready_store(store, debit_line, credit_line) -> StatementStore:
    """janvier.pdf and fevrier.pdf ready, mars.pdf still processing."""
    first, second, _ = store.add_documents(
        [make_upload("janvier.pdf"), make_upload("fevrier.pdf"), make_upload("mars.pdf")]
    )
    store.complete_document(first.id, [debit_line])
    store.complete_document(second.id, [credit_line])
    return store


@pytest.fixture(autouse=True)
def no_local_pdf_reading(monkeypatch):
    """Keeps processing tests away from pdfplumber; PDF inspection has its own tests."""
    monkeypatch.setattr("statements.processing.inspect_pdf", lambda data: PdfInfo(page_count=1))
