import unittest
from unittest.mock import MagicMock

from sqlalchemy.exc import IntegrityError, OperationalError

from cinelist.services.errors import (
    CapacityExceededError,
    StorageConflictError,
    TransientStoreError,
)
from cinelist.services.transactions import run_in_transaction


class TestRunInTransaction(unittest.TestCase):
    def setUp(self) -> None:
        self.db = MagicMock()

    def test_commits_result(self) -> None:
        result = run_in_transaction(self.db, lambda session: "done")

        self.assertEqual(result, "done")
        self.db.commit.assert_called_once()
        self.db.rollback.assert_not_called()

    def test_retries_conflict_then_succeeds(self) -> None:
        outcomes = [StorageConflictError("lost"), StorageConflictError("lost"), "won"]

        def operation(session):
            outcome = outcomes.pop(0)
            if isinstance(outcome, Exception):
                raise outcome
            return outcome

        self.assertEqual(run_in_transaction(self.db, operation), "won")
        self.assertEqual(self.db.rollback.call_count, 2)
        self.db.commit.assert_called_once()

    def test_retries_unique_violation(self) -> None:
        calls = []

        def operation(session):
            calls.append(1)
            if len(calls) == 1:
                raise IntegrityError("INSERT", {}, Exception("duplicate key"))
            return "ok"

        self.assertEqual(run_in_transaction(self.db, operation), "ok")
        self.assertEqual(len(calls), 2)

    def test_repeated_unique_violation_is_not_a_race(self) -> None:
        operation = MagicMock(
            side_effect=IntegrityError("UPDATE", {}, Exception("UNIQUE constraint failed"))
        )

        with self.assertRaises(IntegrityError):
            run_in_transaction(self.db, operation, attempts=5)

        self.assertEqual(operation.call_count, 2)
        self.assertEqual(self.db.rollback.call_count, 2)
        self.db.commit.assert_not_called()

    def test_gives_up_with_storage_conflict(self) -> None:
        operation = MagicMock(side_effect=StorageConflictError("lost"))

        with self.assertRaises(StorageConflictError):
            run_in_transaction(self.db, operation, attempts=3)

        self.assertEqual(operation.call_count, 3)
        self.db.commit.assert_not_called()

    def test_typed_errors_are_not_retried(self) -> None:
        operation = MagicMock(side_effect=CapacityExceededError("full"))

        with self.assertRaises(CapacityExceededError):
            run_in_transaction(self.db, operation)

        operation.assert_called_once()
        self.db.rollback.assert_called_once()

    def test_store_outage_is_transient(self) -> None:
        operation = MagicMock(side_effect=OperationalError("SELECT 1", {}, Exception("gone")))

        with self.assertRaises(TransientStoreError):
            run_in_transaction(self.db, operation)

        operation.assert_called_once()
        self.db.rollback.assert_called_once()

    def test_unexpected_errors_roll_back_and_propagate(self) -> None:
        operation = MagicMock(side_effect=RuntimeError("boom"))

        with self.assertRaises(RuntimeError):
            run_in_transaction(self.db, operation)

        self.db.rollback.assert_called_once()
        self.db.commit.assert_not_called()
