import threading

from src.dock_negotiator.services.sessions.store import PushbackTracker, SessionStore, extract_call_id


class FakeClock:
    def __init__(self, now: float = 1000.0) -> None:
        self.now = now

    def __call__(self) -> float:
        return self.now


def test_entries_expire_after_ttl():
    clock = FakeClock()
    store: SessionStore[str] = SessionStore(ttl_seconds=60, clock=clock)
    store.set("call-1", "hello")

    clock.now += 59
    assert store.get("call-1") == "hello"

    clock.now += 1
    assert store.get("call-1") is None
    assert len(store) == 0


def test_sweep_removes_only_expired_entries():
    clock = FakeClock()
    store: SessionStore[int] = SessionStore(ttl_seconds=60, clock=clock)
    store.set("old", 1)
    clock.now += 30
    store.set("new", 2)
    clock.now += 40

    assert store.sweep() == 1
    assert store.get("new") == 2
    assert store.get("old") is None


def test_update_refreshes_ttl_and_delete_reports_presence():
    clock = FakeClock()
    store: SessionStore[int] = SessionStore(ttl_seconds=60, clock=clock)
    assert store.update("k", lambda current: (current or 0) + 5) == 5
    clock.now += 50
    assert store.update("k", lambda current: (current or 0) + 5) == 10
    clock.now += 50
    assert store.get("k") == 10

    assert store.delete("k") is True
    assert store.delete("k") is False


def test_pushback_tracker_counts_per_call():
    tracker = PushbackTracker(SessionStore(ttl_seconds=60))
    assert tracker.count("a") == 0
    assert tracker.increment("a") == 1
    assert tracker.increment("a") == 2
    assert tracker.increment("b") == 1
    assert tracker.count("a") == 2

    assert tracker.reset("a") is True
    assert tracker.reset("a") is False
    assert tracker.count("a") == 0
    assert tracker.count("b") == 1


def test_pushback_increments_are_atomic_across_threads():
    tracker = PushbackTracker(SessionStore(ttl_seconds=60))

    def worker():
        for _ in range(100):
            tracker.increment("shared")

    threads = [threading.Thread(target=worker) for _ in range(8)]
    for thread in threads:
        thread.start()
    for thread in threads:
        thread.join()

    assert tracker.count("shared") == 800


def test_extract_call_id_from_known_envelope_shapes():
    assert extract_call_id({"message": {"call": {"id": "m-1"}}}) == "m-1"
    assert extract_call_id({"call": {"id": "c-1"}}) == "c-1"
    assert extract_call_id({"callId": "direct"}) == "direct"
    assert extract_call_id({"toolCalls": [{"callId": "tc-1"}]}) == "tc-1"
    assert extract_call_id({"message": {"toolCalls": []}}) is None
    assert extract_call_id(["not", "a", "dict"]) is None
