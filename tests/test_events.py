from dataclasses import dataclass

from app.utils.events import publish, subscribe, unsubscribe


@dataclass(frozen=True)
class Pinged:
    value: int


def test_failing_handler_does_not_stop_others():
    received = []

    def explode(event):
        raise ValueError("boom")

    def record(event):
        received.append(event.value)

    subscribe(Pinged, explode)
    subscribe(Pinged, record)
    try:
        publish(Pinged(7))
    finally:
        unsubscribe(Pinged, explode)
        unsubscribe(Pinged, record)

    assert received == [7]


def test_subscribe_is_idempotent():
    received = []

    def record(event):
        received.append(event.value)

    subscribe(Pinged, record)
    subscribe(Pinged, record)
    try:
        publish(Pinged(1))
    finally:
        unsubscribe(Pinged, record)

    publish(Pinged(2))
    assert received == [1]
