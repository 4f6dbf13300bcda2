from mc_session.events import EventBus, EventName


def test_subscribers_run_in_registration_order() -> None:
    bus = EventBus()
    calls: list[str] = []
    bus.subscribe(EventName.LOGIN, lambda: calls.append("first"))
    bus.subscribe("login", lambda: calls.append("second"))

    assert bus.publish(EventName.LOGIN) == 2
    assert calls == ["first", "second"]


def test_unsubscribe_is_explicit_and_idempotent() -> None:
    bus = EventBus()
    seen: list[int] = []
    callback = seen.append
    unsubscribe = bus.subscribe(EventName.ITEM_CLEAR_NOTICE, callback)

    assert unsubscribe() is True
    assert unsubscribe() is False
    assert bus.unsubscribe(EventName.ITEM_CLEAR_NOTICE, callback) is False
    assert bus.publish(EventName.ITEM_CLEAR_NOTICE, 30) == 0
    assert seen == []


def test_failing_subscriber_does_not_stop_fan_out(caplog) -> None:
    bus = EventBus()
    seen: list[str] = []

    def broken(reason: str) -> None:
        raise RuntimeError(reason)

    bus.subscribe(EventName.KICKED, broken)
    bus.subscribe(EventName.KICKED, seen.append)

    bus.publish(EventName.KICKED, "restart")

    assert seen == ["restart"]
    assert bus.subscriber_count(EventName.KICKED) == 2
    assert "event_subscriber_failed" in caplog.text
