"""Ledger: Atomic-per-call commit boundary for oracle state.

Each public oracle call runs inside :meth:`Ledger.transaction`. Registered
components are snapshotted on entry; if the block raises, every component is
restored and the exception propagates, so a call applies all of its writes or
none of them. Nested transactions behave as savepoints.
"""

from __future__ import annotations

import copy
import logging
from contextlib import contextmanager
from typing import Any, Iterator

logger = logging.getLogger(__name__)


class Ledger:
    """Transactional boundary around a set of stateful components.

    :ivar components: Objects whose ``__dict__`` makes up the ledger state.
    """

    def __init__(self, *components: Any) -> None:
        self.components: list[Any] = list(components)
        self._depth = 0

    def register(self, component: Any) -> None:
        """Add a component to the transactional state.

        :param component: Object whose attributes are ledger state.
        """
        self.components.append(component)

    @property
    def in_transaction(self) -> bool:
        """Check if a transaction is currently open."""
        return self._depth > 0

    def _snapshot(self) -> list[dict[str, Any]]:
        # Components referencing each other keep pointing at the live objects.
        memo = {id(c): c for c in self.components}
        return [copy.deepcopy(vars(c), memo) for c in self.components]

    def _restore(self, snapshot: list[dict[str, Any]]) -> None:
        for component, state in zip(self.components, snapshot, strict=True):
            vars(component).clear()
            vars(component).update(state)

    @contextmanager
    def transaction(self) -> Iterator[None]:
        """Run a block atomically.

        :raises Exception: Re-raises whatever the block raised, after rollback.
        """
        snapshot = self._snapshot()
        self._depth += 1
        try:
            yield
        except BaseException:
            self._restore(snapshot)
            logger.debug("Transaction rolled back (depth %d)", self._depth)
            raise
        finally:
            self._depth -= 1
