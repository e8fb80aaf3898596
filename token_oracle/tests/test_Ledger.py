"""Unit tests for Ledger."""

import pytest

from token_oracle.src.Ledger import Ledger


class Counter:
    def __init__(self) -> None:
        self.value = 0
        self.history: list[int] = []


class Holder:
    def __init__(self, counter: Counter) -> None:
        self.counter = counter
        self.items: dict[str, int] = {}


class TestLedgerTransaction:
    """Test commit and rollback behavior."""

    def test_commit_keeps_writes(self) -> None:
        """Writes inside a successful block should persist."""
        counter = Counter()
        ledger = Ledger(counter)

        with ledger.transaction():
            counter.value = 5
            counter.history.append(5)

        assert counter.value == 5
        assert counter.history == [5]

    def test_rollback_restores_all_components(self) -> None:
        """An exception should undo writes on every component and propagate."""
        counter = Counter()
        holder = Holder(counter)
        ledger = Ledger(counter, holder)

        with pytest.raises(RuntimeError, match="boom"):
            with ledger.transaction():
                counter.value = 7
                counter.history.append(7)
                holder.items["a"] = 1
                raise RuntimeError("boom")

        assert counter.value == 0
        assert counter.history == []
        assert holder.items == {}

    def test_rollback_preserves_cross_references(self) -> None:
        """Restored components should still reference the live objects."""
        counter = Counter()
        holder = Holder(counter)
        ledger = Ledger(counter, holder)

        with pytest.raises(ValueError):
            with ledger.transaction():
                holder.items["a"] = 1
                raise ValueError()

        assert holder.counter is counter

    def test_nested_transaction_is_savepoint(self) -> None:
        """A failing inner block should only undo its own writes."""
        counter = Counter()
        ledger = Ledger(counter)

        with ledger.transaction():
            counter.value = 1
            with pytest.raises(KeyError):
                with ledger.transaction():
                    counter.value = 2
                    raise KeyError("inner")
            assert counter.value == 1

        assert counter.value == 1

    def test_in_transaction_flag(self) -> None:
        """in_transaction should only be True inside a block."""
        ledger = Ledger()
        ledger.register(Counter())

        assert not ledger.in_transaction
        with ledger.transaction():
            assert ledger.in_transaction
        assert not ledger.in_transaction
