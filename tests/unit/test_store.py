"""Unit tests for the statement store."""

import pytest

from statements.models import Status, Transaction
from statements.store import ALL_VIEW
from tests.helpers import make_upload


class TestAddDocuments:
    def test_one_processing_statement_per_file(self, store) -> None:
        created = store.add_documents([make_upload("a.pdf"), make_upload("b.pdf")])

        assert [s.file_name for s in created] == ["a.pdf", "b.pdf"]
        assert store.statements == tuple(created)
        for statement in created:
            assert statement.status is Status.PROCESSING
            assert statement.transactions == ()
            assert statement.error is None

    def test_ids_are_unique(self, store) -> None:
        created = store.add_documents([make_upload()] * 5)
        assert len({s.id for s in created}) == 5

    def test_appends_to_existing(self, store) -> None:
        store.add_documents([make_upload("a.pdf")])
        store.add_documents([make_upload("b.pdf")])
        assert [s.file_name for s in store.statements] == ["a.pdf", "b.pdf"]


class TestSettlement:
    def test_complete_sets_ready(self, store, debit_line) -> None:
        (statement,) = store.add_documents([make_upload()])

        assert store.complete_document(statement.id, [debit_line]) is True
        settled = store.get(statement.id)
        assert settled.status is Status.READY
        assert settled.transactions == (debit_line,)

    def test_fail_sets_error(self, store) -> None:
        (statement,) = store.add_documents([make_upload()])

        assert store.fail_document(statement.id, "boom") is True
        settled = store.get(statement.id)
        assert settled.status is Status.ERROR
        assert settled.error == "boom"

    def test_late_result_for_deleted_statement_is_dropped(self, store, debit_line) -> None:
        (statement,) = store.add_documents([make_upload()])
        store.delete_document(statement.id)

        assert store.complete_document(statement.id, [debit_line]) is False
        assert store.fail_document(statement.id, "boom") is False
        assert len(store) == 0

    def test_settled_statement_does_not_transition_again(self, store, debit_line) -> None:
        (statement,) = store.add_documents([make_upload()])
        store.fail_document(statement.id, "boom")

        assert store.complete_document(statement.id, [debit_line]) is False
        assert store.get(statement.id).status is Status.ERROR

    def test_settling_one_statement_leaves_siblings(self, store, debit_line) -> None:
        first, second = store.add_documents([make_upload("a.pdf"), make_upload("b.pdf")])
        store.complete_document(first.id, [debit_line])
        assert store.get(second.id) is second


class TestDeleteDocument:
    def test_removes_statement(self, ready_store) -> None:
        first = ready_store.statements[0]
        assert ready_store.delete_document(first.id) is True
        assert ready_store.get(first.id) is None
        assert len(ready_store) == 2

    def test_unknown_id(self, ready_store) -> None:
        assert ready_store.delete_document("nope") is False
        assert len(ready_store) == 3

    def test_deleting_selected_resets_view(self, ready_store) -> None:
        first = ready_store.statements[0]
        ready_store.select(first.id)

        ready_store.delete_document(first.id)
        assert ready_store.active_view == ALL_VIEW

    def test_deleting_other_keeps_view(self, ready_store) -> None:
        first, second, _ = ready_store.statements
        ready_store.select(first.id)

        ready_store.delete_document(second.id)
        assert ready_store.active_view == first.id


class TestSelect:
    def test_select_statement_and_back(self, ready_store) -> None:
        first = ready_store.statements[0]
        ready_store.select(first.id)
        assert ready_store.selected_statement == first

        ready_store.select(ALL_VIEW)
        assert ready_store.selected_statement is None

    def test_unknown_id_rejected(self, ready_store) -> None:
        with pytest.raises(ValueError):
            ready_store.select("nope")
        assert ready_store.active_view == ALL_VIEW


class TestDeleteTransaction:
    def test_removes_from_owner_only(self, ready_store, debit_line, credit_line) -> None:
        assert ready_store.delete_transaction(debit_line.id) is True
        first, second, _ = ready_store.statements
        assert first.transactions == ()
        assert second.transactions == (credit_line,)

    def test_unknown_id_is_noop(self, ready_store) -> None:
        before = ready_store.statements
        assert ready_store.delete_transaction("nope") is False
        assert ready_store.statements == before


class TestUpdateTransaction:
    def test_invalid_date_flags_line(self, ready_store, debit_line) -> None:
        updated = ready_store.update_transaction(debit_line.id, "date", "31/13/2024")
        assert updated.date == "31/13/2024"
        assert updated.is_valid is False

    def test_valid_date_clears_flag(self, store) -> None:
        line = Transaction.create("2024-01-01", "X", debit=1.0)
        (statement,) = store.add_documents([make_upload()])
        store.complete_document(statement.id, [line])
        assert line.is_valid is False

        updated = store.update_transaction(line.id, "date", "01/01/2024")
        assert updated.is_valid is True

    def test_no_calendar_check(self, ready_store, debit_line) -> None:
        assert ready_store.update_transaction(debit_line.id, "date", "31/02/2024").is_valid is True

    def test_positive_debit_clears_credit(self, ready_store, credit_line) -> None:
        updated = ready_store.update_transaction(credit_line.id, "debit", 100)
        assert updated.debit == 100
        assert updated.credit is None

    def test_positive_credit_clears_debit(self, ready_store, debit_line) -> None:
        updated = ready_store.update_transaction(debit_line.id, "credit", 50)
        assert updated.credit == 50
        assert updated.debit is None

    def test_clearing_debit_keeps_credit(self, store) -> None:
        line = Transaction.create("01/01/2024", "X", debit=5.0, credit=7.0)
        (statement,) = store.add_documents([make_upload()])
        store.complete_document(statement.id, [line])

        updated = store.update_transaction(line.id, "debit", None)
        assert updated.debit is None
        assert updated.credit == 7.0

    def test_label_is_plain_replace(self, ready_store, debit_line) -> None:
        updated = ready_store.update_transaction(debit_line.id, "label", "LOYER")
        assert updated.label == "LOYER"
        assert updated.debit == debit_line.debit
        assert updated.is_valid == debit_line.is_valid

    def test_siblings_untouched(self, store) -> None:
        lines = [Transaction.create("01/01/2024", f"L{i}", debit=1.0) for i in range(3)]
        first, other = store.add_documents([make_upload("a.pdf"), make_upload("b.pdf")])
        store.complete_document(first.id, lines)
        store.complete_document(other.id, [])
        other_before = store.get(other.id)

        store.update_transaction(lines[1].id, "label", "EDITED")

        current = store.get(first.id).transactions
        assert current[0] is lines[0]
        assert current[2] is lines[2]
        assert current[1].label == "EDITED"
        assert store.get(other.id) is other_before

    def test_unknown_transaction(self, ready_store) -> None:
        assert ready_store.update_transaction("nope", "label", "X") is None

    def test_unknown_field_rejected(self, ready_store, debit_line) -> None:
        with pytest.raises(ValueError):
            ready_store.update_transaction(debit_line.id, "id", "other")


class TestClear:
    def test_clear_resets_everything(self, ready_store) -> None:
        ready_store.select(ready_store.statements[0].id)
        ready_store.clear()
        assert len(ready_store) == 0
        assert ready_store.active_view == ALL_VIEW
