from collections import deque

import pytest

from pooled_raffle.journal import Journal


def test_record_outside_transaction_is_rejected():
    with pytest.raises(RuntimeError):
        Journal().record(lambda: None)


def test_failed_inner_transaction_only_undoes_its_own_work():
    journal = Journal()
    state = []

    def push(v):
        state.append(v)
        journal.record(state.pop)

    with journal.transaction("outer"):
        push("a")
        try:
            with journal.transaction("inner"):
                push("b")
                raise ValueError("inner")
        except ValueError:
            pass
        push("c")

    assert state == ["a", "c"]
    assert not journal.active


def test_outer_failure_undoes_committed_inner_work():
    journal = Journal()
    state = []

    def push(v):
        state.append(v)
        journal.record(state.pop)

    with pytest.raises(KeyError):
        with journal.transaction("outer"):
            push("a")
            with journal.transaction("inner"):
                push("b")
            raise KeyError("outer")

    assert state == []


def test_commit_hooks_run_once_after_outermost_commit():
    journal = Journal()
    calls = []

    with journal.transaction("outer"):
        with journal.transaction("inner"):
            journal.after_commit(lambda: calls.append("inner"))
        assert calls == []
    assert calls == ["inner"]


def test_commit_hooks_dropped_on_rollback():
    journal = Journal()
    calls = []

    with journal.transaction("outer"):
        try:
            with journal.transaction("inner"):
                journal.after_commit(lambda: calls.append("lost"))
                raise ValueError
        except ValueError:
            pass
        journal.after_commit(lambda: calls.append("kept"))

    assert calls == ["kept"]


def test_failing_commit_hook_does_not_stop_the_rest():
    journal = Journal()
    calls = []

    def broken():
        raise RuntimeError("listener crashed")

    with journal.transaction("outer"):
        journal.after_commit(broken)
        journal.after_commit(lambda: calls.append("second"))

    assert calls == ["second"]
    assert not journal.active


def test_append_bounded_rollback_restores_evicted_entry():
    journal = Journal()
    items = deque(maxlen=2)

    with journal.transaction("fill"):
        journal.append_bounded(items, "a")
        journal.append_bounded(items, "b")

    with pytest.raises(ValueError):
        with journal.transaction("overflow"):
            journal.append_bounded(items, "c")
            assert list(items) == ["b", "c"]
            raise ValueError

    assert list(items) == ["a", "b"]
