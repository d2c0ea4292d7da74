"""
Statement Store

Holds the uploaded statements of one browser session, their transactions
and processing status, and which view (all statements or a single one) is
currently selected. Every mutation is keyed by id, so extraction results
arriving in any order land on the right statement, and a result arriving
after its statement was deleted is dropped.
"""

import logging
from dataclasses import replace
from datetime import datetime

from .models import BankStatement, Status, is_valid_date, new_id

logger = logging.getLogger(__name__)

ALL_VIEW = "ALL"

EDITABLE_FIELDS = ('date', 'label', 'debit', 'credit')


def _is_positive(value):
    return isinstance(value, (int, float)) and not isinstance(value, bool) and value > 0


class StatementStore:
    """In-memory source of truth for one session's statements."""

    def __init__(self):
        self._statements = []
        self.active_view = ALL_VIEW

    @property
    def statements(self):
        return tuple(self._statements)

    def __len__(self):
        return len(self._statements)

    def get(self, statement_id):
        for statement in self._statements:
            if statement.id == statement_id:
                return statement
        return None

    def _replace(self, statement_id, **changes):
        for index, statement in enumerate(self._statements):
            if statement.id == statement_id:
                updated = replace(statement, **changes)
                self._statements[index] = updated
                return updated
        return None

    # --- Lifecycle ---

    def add_documents(self, files):
        """
        Registers one statement per file, in 'processing' state.

        Args:
            files: Iterable of uploads (anything with a ``name``)

        Returns:
            list: The created BankStatement records, in input order, so the
                caller can match extraction results back by id.
        """
        now = datetime.now()
        created = [
            BankStatement(id=new_id(), file_name=f.name, upload_date=now)
            for f in files
        ]
        self._statements.extend(created)
        for statement in created:
            logger.info("Accepted %s as statement %s", statement.file_name, statement.id)
        return created

    def complete_document(self, statement_id, transactions):
        """Marks a processing statement as ready. Returns False if it is gone or already settled."""
        statement = self.get(statement_id)
        if statement is None:
            logger.info("Dropping extraction result for deleted statement %s", statement_id)
            return False
        if statement.status is not Status.PROCESSING:
            logger.warning("Statement %s already settled as %s", statement_id, statement.status.value)
            return False
        self._replace(statement_id, status=Status.READY, transactions=tuple(transactions), error=None)
        return True

    def fail_document(self, statement_id, message):
        """Marks a processing statement as failed. Returns False if it is gone or already settled."""
        statement = self.get(statement_id)
        if statement is None:
            logger.info("Dropping extraction failure for deleted statement %s", statement_id)
            return False
        if statement.status is not Status.PROCESSING:
            logger.warning("Statement %s already settled as %s", statement_id, statement.status.value)
            return False
        self._replace(statement_id, status=Status.ERROR, error=message)
        return True

    def set_page_count(self, statement_id, page_count):
        return self._replace(statement_id, page_count=page_count) is not None

    def delete_document(self, statement_id):
        """
        Removes a statement and all of its transactions.

        The caller is responsible for asking the user first; this cannot be
        undone. Deleting the selected statement switches back to the
        consolidated view.
        """
        before = len(self._statements)
        self._statements = [s for s in self._statements if s.id != statement_id]
        if len(self._statements) == before:
            return False
        if self.active_view == statement_id:
            self.active_view = ALL_VIEW
        logger.info("Deleted statement %s", statement_id)
        return True

    def clear(self):
        """Forgets everything (new session)."""
        self._statements = []
        self.active_view = ALL_VIEW

    # --- View selection ---

    def select(self, view):
        if view != ALL_VIEW and self.get(view) is None:
            raise ValueError(f"Unknown statement id: {view}")
        self.active_view = view

    @property
    def selected_statement(self):
        if self.active_view == ALL_VIEW:
            return None
        return self.get(self.active_view)

    # --- Transactions ---

    def find_owner(self, transaction_id):
        """Returns the statement holding the transaction, or None."""
        for statement in self._statements:
            if any(t.id == transaction_id for t in statement.transactions):
                return statement
        return None

    def delete_transaction(self, transaction_id):
        owner = self.find_owner(transaction_id)
        if owner is None:
            return False
        remaining = tuple(t for t in owner.transactions if t.id != transaction_id)
        self._replace(owner.id, transactions=remaining)
        return True

    def update_transaction(self, transaction_id, field, value):
        """
        Edits one field of one transaction.

        Editing the date recomputes its validity flag. Setting a positive
        debit clears the credit and vice versa, so a line carries a single
        amount after any edit.

        Returns:
            Transaction: The updated transaction, or None if the id is unknown
        """
        if field not in EDITABLE_FIELDS:
            raise ValueError(f"Field {field!r} is not editable")

        owner = self.find_owner(transaction_id)
        if owner is None:
            return None

        changes = {field: value}
        if field == 'date':
            changes['is_valid'] = is_valid_date(value)
        elif field == 'debit' and _is_positive(value):
            changes['credit'] = None
        elif field == 'credit' and _is_positive(value):
            changes['debit'] = None

        updated = None
        transactions = []
        for transaction in owner.transactions:
            if transaction.id == transaction_id:
                updated = replace(transaction, **changes)
                transactions.append(updated)
            else:
                transactions.append(transaction)
        self._replace(owner.id, transactions=tuple(transactions))
        return updated

    @property
    def total_transactions(self):
        return sum(len(s.transactions) for s in self._statements)
