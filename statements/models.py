"""
Data Model

Transactions, bank statements (one per uploaded file) and the aggregate
figures shown above the transaction table. Records are immutable: the
store replaces a whole statement or transaction instead of mutating it.
"""

import re
import uuid
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum

PDF_MIME_TYPE = "application/pdf"

# DD/MM/YYYY, syntax only (31/02/2024 passes)
DATE_PATTERN = re.compile(r'^\d{2}/\d{2}/\d{4}$')


def new_id():
    """Returns a fresh opaque identifier."""
    return str(uuid.uuid4())


def is_valid_date(value):
    """True if value is a string in strict DD/MM/YYYY form."""
    if not value or not isinstance(value, str):
        return False
    return DATE_PATTERN.match(value) is not None


class Status(str, Enum):
    PROCESSING = "processing"
    READY = "ready"
    ERROR = "error"


@dataclass(frozen=True)
class Transaction:
    id: str
    date: str
    label: str
    debit: float | None = None
    credit: float | None = None
    is_valid: bool = False

    @classmethod
    def create(cls, date, label, debit=None, credit=None):
        """Builds a transaction with a new id and a computed date validity flag."""
        return cls(
            id=new_id(),
            date=date,
            label=label,
            debit=debit,
            credit=credit,
            is_valid=is_valid_date(date),
        )


@dataclass(frozen=True)
class BankStatement:
    """One uploaded file and the outcome of its extraction."""

    id: str
    file_name: str
    status: Status = Status.PROCESSING
    transactions: tuple[Transaction, ...] = ()
    upload_date: datetime = field(default_factory=datetime.now)
    error: str | None = None
    page_count: int | None = None

    @property
    def is_ready(self):
        return self.status is Status.READY


@dataclass(frozen=True)
class Stats:
    total_transactions: int = 0
    total_debit: float = 0.0
    total_credit: float = 0.0

    @property
    def balance(self):
        return self.total_credit - self.total_debit


@dataclass(frozen=True)
class Upload:
    """A file handed over by the browser: name, declared MIME type and raw bytes."""

    name: str
    mime_type: str
    data: bytes

    @property
    def is_pdf(self):
        return self.mime_type == PDF_MIME_TYPE


@dataclass(frozen=True)
class BankTemplate:
    id: str
    name: str
    description: str
    keywords: tuple[str, ...] = ()


BANK_TEMPLATES = (
    BankTemplate('bnp', 'BNP Paribas', 'Format spécifique BNP',
                 ('bnp paribas', 'bnpparibas')),
    BankTemplate('sg', 'Société Générale', 'Format spécifique SG',
                 ('société générale', 'societe generale', 'sg.fr')),
    BankTemplate('ca', 'Crédit Agricole', 'Format spécifique CA',
                 ('crédit agricole', 'credit agricole', 'credit-agricole')),
    BankTemplate('cic', 'CIC / Crédit Mutuel', 'Format spécifique CIC/CM',
                 ('crédit mutuel', 'credit mutuel', 'cic.fr')),
)
