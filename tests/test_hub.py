import queue
from datetime import datetime, timezone

import pytest

from corenet.observatory.hub import Event, Hub


def test_hub_buffer_and_broadcast():
    h = Hub(3)
    ch = queue.Queue(maxsize=4)
    h.subscribe(ch)

    for i in range(5):
        h.add(Event(id=chr(ord("a") + i), kind="test"))

    recent = h.recent(10)
    assert len(recent) == 3

    got = 0
    while True:
        try:
            ch.get_nowait()
        except queue.Empty:
            break
        got += 1
    assert got >= 3


def test_recent_keeps_newest_in_order():
    h = Hub(3)
    for i in range(5):
        h.add(Event(id=chr(ord("a") + i)))
    assert [e.id for e in h.recent(10)] == ["c", "d", "e"]
    assert [e.id for e in h.recent(2)] == ["d", "e"]


@pytest.mark.parametrize("n", [0, -1])
def test_recent_non_positive_is_empty(n):
    h = Hub(5)
    h.add(Event(id="x"))
    assert h.recent(n) == []


def test_add_fills_missing_id_and_timestamp():
    h = Hub(5)
    ev = Event(kind="procedure")
    stored = h.add(ev)
    assert stored.id.startswith("ev-")
    assert stored.ts is not None
    assert ev.id == ""


def test_add_keeps_given_id_and_timestamp():
    h = Hub(5)
    ts = datetime(2024, 1, 2, 3, 4, 5, tzinfo=timezone.utc)
    stored = h.add(Event(id="keep", ts=ts))
    assert stored.id == "keep"
    assert stored.ts == ts


def test_unsubscribe_stops_delivery():
    h = Hub(5)
    ch = queue.Queue()
    h.subscribe(ch)
    h.add(Event(id="one"))
    h.unsubscribe(ch)
    h.add(Event(id="two"))
    assert ch.get_nowait().id == "one"
    assert ch.empty()


def test_clear_and_default_capacity():
    h = Hub(0)
    assert h.max == 500
    h.add(Event(id="a"))
    h.clear()
    assert h.recent(10) == []


def test_event_dict_round_trip():
    ts = datetime(2024, 5, 6, 7, 8, 9, tzinfo=timezone.utc)
    ev = Event(id="test-1", kind="procedure", source="gNB", target="AMF",
               type="NGSetupRequest", spec="TS 38.413", ts=ts, extra={"ue": "UE-001"})
    data = ev.to_dict()
    assert data["from"] == "gNB"
    assert data["to"] == "AMF"
    assert Event.from_dict(data) == ev


def test_event_from_dict_rejects_bad_types():
    with pytest.raises(ValueError):
        Event.from_dict({"id": 5})
    with pytest.raises(ValueError):
        Event.from_dict(["not", "an", "object"])