"""
View Derivation

Computes what the table shows for the selected view and the figures of
the summary cards. Nothing here is stored: everything is recomputed from
the store on each render.
"""

from datetime import datetime

from .models import Stats
from .store import ALL_VIEW

SORTABLE_FIELDS = ('date', 'label', 'debit', 'credit')


def displayed_transactions(store, view=None):
    """
    Returns the transactions of the selected view.

    For the consolidated view, ready statements are concatenated in upload
    order, each in extraction order. Statements still processing or in
    error contribute nothing.

    Args:
        store: StatementStore
        view: ALL_VIEW or a statement id; defaults to the store's active view

    Returns:
        list: Transactions in display order (before any column sort)
    """
    view = store.active_view if view is None else view

    if view == ALL_VIEW:
        return [
            t
            for statement in store.statements
            if statement.is_ready
            for t in statement.transactions
        ]

    statement = store.get(view)
    if statement is None or not statement.is_ready:
        return []
    return list(statement.transactions)


def compute_stats(transactions):
    """Totals of the displayed set; a missing debit or credit counts as 0."""
    return Stats(
        total_transactions=len(transactions),
        total_debit=sum(t.debit or 0 for t in transactions),
        total_credit=sum(t.credit or 0 for t in transactions),
    )


def _sort_key(transaction, field):
    value = getattr(transaction, field)
    if field == 'date':
        try:
            return datetime.strptime(value, "%d/%m/%Y")
        except (TypeError, ValueError):
            return None
    if field == 'label':
        return (value or "").lower()
    return value


def sort_transactions(transactions, field='date', descending=False):
    """
    Column sort used by the table. Returns a new list; stored order is untouched.
    Missing amounts and unreadable dates always go last.
    """
    if field not in SORTABLE_FIELDS:
        raise ValueError(f"Cannot sort on {field!r}")

    keyed = [(_sort_key(t, field), t) for t in transactions]
    present = [pair for pair in keyed if pair[0] is not None]
    missing = [t for key, t in keyed if key is None]

    present.sort(key=lambda pair: pair[0], reverse=descending)
    return [t for _, t in present] + missing


def format_currency(amount, currency="MAD", signed=False):
    """French-style amount, e.g. 1 234,56 MAD. With signed=True, positive amounts get a '+'."""
    text = "{:,.2f}".format(abs(amount)).replace(",", " ").replace(".", ",")
    sign = ""
    if amount < 0 and abs(amount) >= 0.005:
        sign = "-"
    elif signed and amount >= 0.005:
        sign = "+"
    return f"{sign}{text} {currency}"
