"""Tests for the alert/confirm prompt queue."""

from projectflow.workflow.prompts import PromptKind, PromptQueue


def test_fifo_order():
    queue = PromptQueue()
    first = queue.alert("Save failed", "disk full")
    second = queue.confirm("Restore commit?", "sure?", lambda: None)
    assert len(queue) == 2
    assert queue.peek() is first
    assert queue.pop() is first
    assert queue.pop() is second
    assert queue.pop() is None


def test_accepted_confirm_runs_continuation():
    queue = PromptQueue()
    calls = []
    prompt = queue.confirm("Mission Incomplete", "Submit anyway?", lambda: calls.append("go") or "done")
    assert prompt.kind is PromptKind.CONFIRM
    assert queue.resolve(prompt, True) == "done"
    assert calls == ["go"]
    assert len(queue) == 0


def test_declined_confirm_does_nothing():
    queue = PromptQueue()
    calls = []
    prompt = queue.confirm("Restore commit?", "sure?", lambda: calls.append("go"))
    assert queue.resolve(prompt, False) is None
    assert calls == []
    assert len(queue) == 0


def test_alert_resolves_to_none():
    queue = PromptQueue()
    prompt = queue.alert("Generation Failed", "service down")
    assert prompt.kind is PromptKind.ALERT
    assert queue.resolve(prompt, True) is None
