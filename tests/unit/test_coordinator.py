"""
tests/unit/test_coordinator.py
Barrier semantics of EventCoordinator: membership, firing, policies, registry.
"""
import pytest

from rendezvous.base.config import CoordinatorConfig
from rendezvous.errors import ErrorCode, RendezvousError
from rendezvous.events.coordinator import EventCoordinator


def test_upload_fires_after_last_member(events):
    received = []
    events.add_group("upload", "file1")
    events.add_group("upload", "file2")
    events.attach("upload", received.append)

    assert events.trigger("upload", "file1", "first") is False
    assert received == []

    assert events.trigger("upload", "file2", "second") is True
    assert received == ["second"]


def test_group_without_members_fires_immediately_in_order(events):
    calls = []
    events.attach("x", lambda data: calls.append(("cb1", data)))
    events.attach("x", lambda data: calls.append(("cb2", data)))

    assert events.trigger("x") is True
    assert calls == [("cb1", None), ("cb2", None)]


def test_detach_stops_future_fires(events, clock):
    calls = []
    events.attach("x", calls.append)
    events.attach("x", calls.append)
    events.trigger("x")

    assert events.detach("x") is True
    clock.advance(1000)
    assert events.trigger("x") is False
    assert len(calls) == 2


def test_trigger_without_registration_returns_false(events):
    events.add_group("lonely", "a")
    assert events.trigger("lonely", "a") is False
    assert events.trigger("missing", "a") is False
    # Flags only change once a registration exists
    assert events.members("lonely") == {"a": False}


def test_add_group_rearms_single_member(events):
    events.add_group("g", "a")
    events.add_group("g", "b")
    events.attach("g", lambda data: None)
    events.trigger("g", "a")
    events.trigger("g", "b")
    assert events.has_outstanding("g") is False

    events.add_group("g", "a")
    assert events.members("g") == {"a": False, "b": True}
    assert events.has_outstanding("g") is True


def test_has_outstanding():
    events = EventCoordinator()
    assert events.has_outstanding("absent") is False

    events.add_group("g", "a")
    assert events.has_outstanding("g") is True


def test_reset_clears_flags_but_keeps_callbacks(events):
    events.add_group("g", "a")
    events.add_group("g", "b")
    events.attach("g", lambda data: None)
    events.trigger("g", "a")

    events.reset("g")
    assert events.members("g") == {"a": False, "b": False}
    assert events.is_attached("g")

    # Absent group is a no-op
    events.reset("absent")
    assert events.groups() == ["g"]


def test_reset_policy_allows_another_round(events, clock):
    calls = []
    events.add_group("round", "a")
    events.add_group("round", "b")
    events.attach("round", calls.append, reset=True)

    events.trigger("round", "a", 1)
    assert events.trigger("round", "b", 1) is True
    assert events.members("round") == {"a": False, "b": False}

    clock.advance(600)
    assert events.trigger("round", "b", 2) is False
    assert events.trigger("round", "a", 2) is True
    assert calls == [1, 2]


def test_remove_policy_is_one_shot(events, clock):
    calls = []
    events.add_group("once", "a")
    events.attach("once", calls.append, remove=True)

    assert events.trigger("once", "a") is True
    assert events.is_attached("once") is False
    assert events.groups() == []

    clock.advance(600)
    assert events.trigger("once", "a") is False
    assert calls == [None]


def test_remove_wins_over_reset(events):
    events.add_group("both", "a")
    events.attach("both", lambda data: None, remove=True, reset=True)
    events.trigger("both", "a")
    assert "both" not in events
    assert events.members("both") == {}


def test_first_attach_fixes_policy(events):
    events.attach("g", lambda data: None, remove=True)
    assert events.attach("g", lambda data: None, remove=False, reset=True) is True

    registration = events.snapshot().registration("g")
    assert registration.callbacks == 2
    assert registration.remove is True
    assert registration.reset is False


def test_undeclared_member_does_not_block(events):
    calls = []
    events.add_group("g", "a")
    events.attach("g", calls.append)

    assert events.trigger("g", "stranger") is False
    assert events.members("g") == {"a": False, "stranger": True}
    assert events.trigger("g", "a") is True
    assert calls == [None]


def test_count_is_registrations_not_callbacks(events):
    events.add_group("members-only", "a")
    events.attach("a", lambda data: None)
    events.attach("a", lambda data: None)
    events.attach("b", lambda data: None)
    assert events.count() == 2
    assert len(events) == 2


def test_detach_reports_what_existed(events):
    events.add_group("members-only", "a")
    assert events.detach("members-only") is True
    assert events.detach("members-only") is False
    assert events.detach("never") is False


def test_attach_rejects_non_callable(events):
    with pytest.raises(RendezvousError) as exc:
        events.attach("g", "not a function")
    assert exc.value.code == ErrorCode.CALLBACK_NOT_CALLABLE
    assert events.count() == 0


def test_failing_callback_is_isolated(events, caplog):
    calls = []

    def broken(data):
        raise ValueError("boom")

    events.attach("g", broken)
    events.attach("g", calls.append)

    with caplog.at_level("ERROR"):
        assert events.trigger("g", data="payload") is True

    assert calls == ["payload"]
    assert "Callback for 'g' failed" in caplog.text


def test_failing_callback_propagates_when_not_isolated(clock):
    events = EventCoordinator(CoordinatorConfig(isolate_callback_errors=False), clock=clock)
    calls = []

    def broken(data):
        raise ValueError("boom")

    events.attach("g", broken, remove=True)
    events.attach("g", calls.append)

    with pytest.raises(ValueError):
        events.trigger("g")
    assert calls == []
    # Policy is not applied after a propagated failure
    assert events.is_attached("g")


def test_callback_may_detach_its_own_group(events):
    calls = []
    events.add_group("g", "a")

    def first(data):
        calls.append("first")
        events.detach("g")

    events.attach("g", first, reset=True)
    events.attach("g", lambda data: calls.append("second"))

    assert events.trigger("g", "a") is True
    # The already-copied callback list still runs to the end
    assert calls == ["first", "second"]
    assert events.is_attached("g") is False


def test_callback_reentering_same_group_is_debounced(events):
    results = []
    events.attach("g", lambda data: results.append(events.trigger("g")))
    assert events.trigger("g") is True
    assert results == [False]


def test_snapshot_describes_state(events, clock):
    events.add_group("g", "a")
    events.add_group("g", "b")
    events.attach("g", lambda data: None)
    events.trigger("g", "a")

    snapshot = events.snapshot()
    assert snapshot.taken_at == clock.now
    assert snapshot.debounce_window_ms == 500.0
    group = snapshot.group("g")
    assert group.members == {"a": True, "b": False}
    assert group.outstanding == ["b"]
    assert snapshot.registration("g").last_run is None
    assert snapshot.group("missing") is None


def test_negative_debounce_window_is_rejected():
    with pytest.raises(RendezvousError) as exc:
        EventCoordinator(debounce_window=-1)
    assert exc.value.code == ErrorCode.CONFIG_INVALID
