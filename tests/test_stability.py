from chess_tracker.vision.stability import StabilityTracker, VisionEvent, VisionEventKind

GAINED = VisionEvent(VisionEventKind.STABILITY_GAINED)
LOST = VisionEvent(VisionEventKind.STABILITY_LOST)


def feed(tracker, sets, step=0.1, start=0.0):
    events = []
    for i, active in enumerate(sets):
        events.extend(tracker.update(active, now=start + i * step))
    return events


def test_held_pair_emits_once_in_order():
    tracker = StabilityTracker(1.0)
    events = feed(tracker, [(12, 28)] * 30)
    assert events == [
        GAINED,
        VisionEvent(VisionEventKind.MOVE_DETECTED, (12, 28)),
    ]
    assert tracker.stable


def test_nothing_before_window_elapses():
    tracker = StabilityTracker(1.0)
    assert feed(tracker, [(12, 28)] * 10) == []
    assert not tracker.stable


def test_oscillating_set_never_detects():
    tracker = StabilityTracker(1.0)
    sets = [(12, 28), (12, 28, 40)] * 50
    events = feed(tracker, sets)
    assert not any(e.kind is VisionEventKind.MOVE_DETECTED for e in events)


def test_single_square_or_many_squares_never_detect():
    for active in [(12,), (1, 2, 3), ()]:
        tracker = StabilityTracker(1.0)
        assert feed(tracker, [active] * 40) == []


def test_change_after_stable_emits_loss_then_can_detect_again():
    tracker = StabilityTracker(1.0)
    feed(tracker, [(12, 28)] * 15)
    assert tracker.update((), now=10.0) == [LOST]
    assert not tracker.stable

    events = feed(tracker, [(52, 36)] * 15, start=11.0)
    assert events[-1] == VisionEvent(VisionEventKind.MOVE_DETECTED, (52, 36))


def test_window_restarts_when_set_changes():
    tracker = StabilityTracker(1.0)
    tracker.update((12, 28), now=0.0)
    tracker.update((12, 28), now=0.9)
    tracker.update((12, 20), now=1.0)
    assert tracker.update((12, 20), now=1.5) == []
    assert tracker.update((12, 20), now=2.1)[-1].squares == (12, 20)


def test_reset_clears_state():
    tracker = StabilityTracker(1.0)
    feed(tracker, [(12, 28)] * 15)
    tracker.reset()
    assert not tracker.stable
    assert tracker.last_active == ()
