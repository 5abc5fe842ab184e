"""
Undo journal backing the all-or-nothing transaction semantics.

Every state mutation made inside a transaction records a closure that
reverts it. When a transaction raises, the closures recorded since its
checkpoint run in reverse order and the exception propagates. Nested
transactions (a recipient re-entering the raffle during a transfer) get
their own checkpoint, so a failed inner call only unwinds its own work.
Rollback cost is proportional to the mutations made, never to the size
of the state being protected.
"""
from __future__ import annotations

import logging
from contextlib import contextmanager
from typing import Any, Callable, Deque, Iterator, List

log = logging.getLogger("journal")

Undo = Callable[[], None]


class Journal:
    def __init__(self) -> None:
        self._undo: List[Undo] = []
        self._depth = 0
        self._on_commit: List[Callable[[], None]] = []

    @property
    def depth(self) -> int:
        return self._depth

    @property
    def active(self) -> bool:
        return self._depth > 0

    def record(self, undo: Undo) -> None:
        if not self.active:
            raise RuntimeError("State mutation outside of a transaction.")
        self._undo.append(undo)

    def append_bounded(self, items: Deque[Any], item: Any) -> None:
        """Append to a maxlen deque; undo also restores the entry it evicted."""
        full = items.maxlen is not None and len(items) == items.maxlen
        evicted = items[0] if full else None
        items.append(item)

        def undo() -> None:
            items.pop()
            if full:
                items.appendleft(evicted)

        self.record(undo)

    def after_commit(self, fn: Callable[[], None]) -> None:
        """Run fn once the outermost transaction commits; dropped on rollback."""
        if not self.active:
            self._run_hook(fn)
            return
        mark = len(self._on_commit)
        self._on_commit.append(fn)
        self.record(lambda: self._truncate_commit_hooks(mark))

    def _truncate_commit_hooks(self, mark: int) -> None:
        del self._on_commit[mark:]

    @contextmanager
    def transaction(self, name: str) -> Iterator[None]:
        checkpoint = len(self._undo)
        self._depth += 1
        try:
            yield
        except BaseException:
            undone = len(self._undo) - checkpoint
            while len(self._undo) > checkpoint:
                self._undo.pop()()
            log.warning("Rolled back %s (%d change(s) undone)", name, undone)
            raise
        finally:
            self._depth -= 1

        if self._depth == 0:
            self._undo.clear()
            hooks, self._on_commit = self._on_commit, []
            for fn in hooks:
                self._run_hook(fn)

    @staticmethod
    def _run_hook(fn: Callable[[], None]) -> None:
        # The transaction is already committed here.
        try:
            fn()
        except Exception:
            log.exception("Post-commit hook %r failed", fn)
