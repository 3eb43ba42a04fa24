from smart_structure.notifications import NotificationChannel


def test_items_expire_after_lifetime(clock):
    channel = NotificationChannel(lifetime=3.0, clock=clock)
    channel.success("one")
    clock.now = 1.0
    channel.error("two")

    assert [n.message for n in channel.visible()] == ["one", "two"]
    clock.now = 3.5
    assert [n.message for n in channel.visible()] == ["two"]
    clock.now = 4.0
    assert channel.visible() == []


def test_unknown_severity_falls_back_to_info(clock):
    channel = NotificationChannel(clock=clock)
    assert channel.notify("hello", "shout").severity == "info"


def test_failing_subscriber_does_not_break_notify(clock):
    channel = NotificationChannel(clock=clock)
    seen = []

    def broken(item):
        raise RuntimeError("boom")

    channel.subscribe(broken)
    channel.subscribe(seen.append)
    item = channel.warning("careful")
    assert seen == [item]
    assert channel.history() == [item]


def test_queue_is_pruned_without_reading_it(clock):
    channel = NotificationChannel(lifetime=3.0, clock=clock)
    for step in range(200):
        clock.now = step * 4.0
        channel.info(f"message {step}")

    assert [n.message for n in channel.history()] == ["message 199"]


def test_queue_is_bounded_within_lifetime(clock):
    channel = NotificationChannel(lifetime=3.0, clock=clock, max_items=5)
    for step in range(20):
        channel.error(f"message {step}")

    history = channel.history()
    assert len(history) == 5
    assert history[-1].message == "message 19"
