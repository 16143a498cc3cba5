"""EventBus: subscription, delivery count, handler isolation."""

from rental_services.events import EventBus


def test_delivers_to_subscribers_in_order():
    bus = EventBus()
    seen = []
    bus.subscribe("bookingCompleted", lambda n, p: seen.append(("a", p["id"])))
    bus.subscribe("bookingCompleted", lambda n, p: seen.append(("b", p["id"])))
    bus.subscribe("other", lambda n, p: seen.append(("c", p["id"])))

    assert bus.emit("bookingCompleted", {"id": 1}) == 2
    assert seen == [("a", 1), ("b", 1)]


def test_unsubscribe():
    bus = EventBus()
    seen = []
    unsubscribe = bus.subscribe("e", lambda n, p: seen.append(p))
    unsubscribe()
    unsubscribe()
    assert bus.emit("e", {}) == 0
    assert seen == []


def test_failing_handler_does_not_block_others(captured_logs):
    bus = EventBus()
    seen = []

    def broken(name, payload):
        raise ValueError("handler bug")

    bus.subscribe("e", broken)
    bus.subscribe("e", lambda n, p: seen.append(p))

    assert bus.emit("e", {"x": 1}) == 1
    assert seen == [{"x": 1}]
    assert any(r["message"] == "event_handler_failed" for r in captured_logs())


def test_no_subscribers():
    assert EventBus().emit("nobody", {}) == 0
