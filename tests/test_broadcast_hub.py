from __future__ import annotations

import threading

import pytest

from app.services.run_events import QueueObserver, RunBroadcastHub
from fakes import RecordingObserver


def _snapshot():
    return {"run": {"id": "r1"}, "events": [], "frictionPoints": []}


def test_attach_delivers_init_first_then_live_messages():
    hub = RunBroadcastHub()
    hub.open("r1")
    obs = RecordingObserver()

    assert hub.attach("r1", obs, _snapshot) is True
    hub.broadcast("r1", "event", {"sequence": 1})
    hub.broadcast("r1", "friction", {"id": "f1"})

    assert obs.types() == ["init", "event", "friction"]
    assert obs.messages[0]["run"] == {"id": "r1"}
    assert obs.messages[1] == {"type": "event", "data": {"sequence": 1}}


def test_attach_without_channel_gets_init_only():
    hub = RunBroadcastHub()
    obs = RecordingObserver()

    assert hub.attach("gone", obs, _snapshot) is False
    assert obs.types() == ["init"]
    assert obs.closed


def test_failing_observer_is_dropped_and_others_keep_receiving():
    hub = RunBroadcastHub()
    hub.open("r1")
    good = RecordingObserver()
    bad = RecordingObserver()
    hub.attach("r1", good, _snapshot)
    hub.attach("r1", bad, _snapshot)
    bad.fail = True

    hub.broadcast("r1", "event", {"sequence": 1})
    hub.broadcast("r1", "event", {"sequence": 2})

    assert hub.observer_count("r1") == 1
    assert good.types() == ["init", "event", "event"]


def test_unknown_message_type_rejected():
    hub = RunBroadcastHub()
    hub.open("r1")
    with pytest.raises(ValueError):
        hub.broadcast("r1", "init", {})


def test_detach_stops_delivery():
    hub = RunBroadcastHub()
    hub.open("r1")
    obs = RecordingObserver()
    hub.attach("r1", obs, _snapshot)
    hub.detach("r1", obs)
    hub.broadcast("r1", "event", {})
    assert obs.types() == ["init"]


def test_teardown_closes_observers_and_drops_channel():
    hub = RunBroadcastHub()
    hub.open("r1")
    obs = RecordingObserver()
    hub.attach("r1", obs, _snapshot)

    hub.teardown("r1")

    assert obs.closed
    assert not hub.has_channel("r1")
    late = RecordingObserver()
    assert hub.attach("r1", late, _snapshot) is False


def test_scheduled_teardown_runs_after_grace():
    hub = RunBroadcastHub(teardown_grace_s=0.01)
    hub.open("r1")
    obs = QueueObserver()
    hub.attach("r1", obs, _snapshot)
    hub.broadcast("r1", "complete", {"status": "completed"})
    hub.schedule_teardown("r1")

    received = list(obs.messages(poll_s=0.05))

    assert [m["type"] for m in received] == ["init", "complete"]
    assert not hub.has_channel("r1")


def test_snapshot_taken_under_hold_is_not_doubled_by_live_broadcast():
    hub = RunBroadcastHub()
    hub.open("r1")
    persisted: list[int] = []
    obs = RecordingObserver()
    entered = threading.Event()
    release = threading.Event()

    def writer():
        with hub.hold("r1"):
            entered.set()
            release.wait(1)
            persisted.append(1)
            hub.broadcast("r1", "event", {"sequence": 1})

    t = threading.Thread(target=writer)
    t.start()
    entered.wait(1)
    attacher = threading.Thread(
        target=hub.attach, args=("r1", obs, lambda: {"run": {}, "events": list(persisted), "frictionPoints": []})
    )
    attacher.start()
    release.set()
    t.join(1)
    attacher.join(1)

    # the attach waited for the writer, so the event is in the snapshot and not sent again
    assert obs.types() == ["init"]
    assert obs.messages[0]["events"] == [1]


def test_queue_observer_full_queue_fails_the_write():
    obs = QueueObserver(maxsize=1)
    obs.send({"type": "event"})
    with pytest.raises(Exception):
        obs.send({"type": "event"})
