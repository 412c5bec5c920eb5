from __future__ import annotations

import uuid

import pytest

from agent.errors import RunAdmissionError
from app.services.run_registry import RunRegistry


def test_reserve_up_to_capacity_then_refuse():
    registry = RunRegistry(max_active_runs=1)
    first = uuid.uuid4()
    registry.reserve(first)

    with pytest.raises(RunAdmissionError):
        registry.reserve(uuid.uuid4())
    assert registry.active_count() == 1


def test_same_run_cannot_be_reserved_twice():
    registry = RunRegistry(max_active_runs=3)
    run_id = uuid.uuid4()
    registry.reserve(run_id)
    with pytest.raises(RunAdmissionError):
        registry.reserve(str(run_id))


def test_release_frees_a_slot():
    registry = RunRegistry(max_active_runs=1)
    run_id = uuid.uuid4()
    registry.reserve(run_id)
    registry.release(run_id)
    registry.reserve(uuid.uuid4())
    assert registry.active_count() == 1


def test_attach_and_get_orchestrator():
    registry = RunRegistry(max_active_runs=2)
    run_id = uuid.uuid4()
    registry.reserve(run_id)
    assert registry.get(run_id) is None

    sentinel = object()
    registry.attach(run_id, sentinel)
    assert registry.get(str(run_id)) is sentinel
    registry.release(run_id)
    assert registry.get(run_id) is None
