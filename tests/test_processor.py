import cv2
import numpy as np
import pytest

from chess_tracker.vision.overlay import DrawPoint, DrawPolygon, DrawRect, DrawText
from chess_tracker.vision.processor import VisionProcessor
from chess_tracker.vision.stability import VisionEventKind

from conftest import IDENTITY_CORNERS, blank_frame, frame_with


@pytest.fixture
def vision():
    v = VisionProcessor(stability_seconds=1.0)
    v.init()
    return v


def calibrate(vision, corners=IDENTITY_CORNERS):
    for x, y in corners:
        vision.add_corner(x, y)


def run_ticks(vision, frame, count, step=0.1, start=0.0):
    events = []
    for i in range(count):
        events.extend(vision.process(frame, now=start + i * step))
    return events


def test_process_requires_init():
    with pytest.raises(RuntimeError):
        VisionProcessor().process(blank_frame())


def test_missing_frame_is_skipped(vision):
    assert vision.process(None) == []


def test_unlocked_processor_never_reports(vision):
    calibrate(vision)
    vision.process(blank_frame())
    assert run_ticks(vision, frame_with(12, 28), 30) == []


def test_held_move_detected_once(vision):
    calibrate(vision)
    vision.process(blank_frame())
    vision.set_locked(True)

    events = run_ticks(vision, frame_with(12, 28), 30)
    kinds = [e.kind for e in events]
    assert kinds == [VisionEventKind.STABILITY_GAINED, VisionEventKind.MOVE_DETECTED]
    assert events[1].squares == (12, 28)


def test_identical_frame_stays_quiet(vision):
    calibrate(vision)
    vision.process(blank_frame())
    vision.set_locked(True)
    assert run_ticks(vision, blank_frame(), 30) == []
    assert vision.last_result.active == ()


def test_oscillation_never_detects(vision):
    calibrate(vision)
    vision.process(blank_frame())
    vision.set_locked(True)
    a, b = frame_with(12, 28), frame_with(12, 28, 40)
    events = []
    for i in range(40):
        events.extend(vision.process(a if i % 2 == 0 else b, now=i * 0.1))
    assert not any(e.kind is VisionEventKind.MOVE_DETECTED for e in events)


def test_fallback_mode_without_calibration(vision):
    vision.process(blank_frame())
    vision.set_locked(True)
    events = run_ticks(vision, frame_with(12, 28), 20)
    assert events[-1].squares == (12, 28)


def test_warp_uses_calibration(vision):
    # Board occupies the centre of a larger camera frame
    camera = np.full((600, 800), 100, dtype=np.uint8)
    calibrate(vision, [(200, 100), (600, 100), (600, 500), (200, 500)])
    vision.process(camera)
    assert vision.pipeline.working_frame().shape == (400, 400)

    vision.set_locked(True)
    moved = camera.copy()
    moved[100:500, 200:600] = frame_with(12, 28)
    events = run_ticks(vision, moved, 20)
    assert events[-1].squares == (12, 28)


def test_corners_ignored_while_locked(vision):
    vision.process(blank_frame())
    vision.set_locked(True)
    assert not vision.add_corner(10, 10)
    assert vision.calibration.corners == []


def test_relock_recaptures_baseline(vision):
    first = blank_frame(90)
    vision.process(first)
    vision.set_locked(True)
    np.testing.assert_array_equal(vision.pipeline.buffers.baseline, first)

    vision.set_locked(False)
    second = frame_with(5, 6, base=120)
    vision.process(second)
    vision.set_locked(True)
    np.testing.assert_array_equal(vision.pipeline.buffers.baseline, second)


def test_dimension_mismatch_reallocates_and_skips(vision):
    vision.process(blank_frame(size=400))
    vision.set_locked(True)
    smaller = blank_frame(size=320)
    assert vision.process(smaller) == []
    assert vision.pipeline.buffers.baseline.shape == (320, 320)
    assert vision.process(smaller, now=0.0) == []


def test_runtime_knobs_take_effect_next_tick(vision):
    calibrate(vision)
    vision.process(blank_frame())
    vision.set_locked(True)
    moved = frame_with(12, 28)

    vision.set_sensitivity(1000)
    vision.process(moved, now=0.0)
    assert vision.last_result.active == ()

    vision.set_sensitivity(80)
    vision.process(moved, now=0.1)
    assert vision.last_result.active == (12, 28)

    vision.set_threshold(250)
    vision.process(moved, now=0.2)
    assert vision.last_result.active == ()


def test_stop_is_idempotent(vision):
    VisionProcessor().stop()
    calibrate(vision)
    vision.process(blank_frame())
    vision.set_locked(True)
    vision.stop()
    vision.stop()
    assert vision.pipeline.buffers.baseline is None
    assert vision.calibration.transform is None
    assert not vision.locked


def test_overlay_prompts_for_next_corner(vision):
    vision.add_corner(10, 20)
    vision.add_corner(300, 25)
    items = vision.overlay()
    points = [i for i in items if isinstance(i, DrawPoint)]
    texts = [i.text for i in items if isinstance(i, DrawText)]
    assert [(p.x, p.y) for p in points] == [(10, 20), (300, 25)]
    assert texts == ["1", "2", "Click Bottom-Right"]
    assert not any(isinstance(i, DrawPolygon) for i in items)


def test_overlay_outlines_full_calibration(vision):
    calibrate(vision)
    items = vision.overlay()
    polygons = [i for i in items if isinstance(i, DrawPolygon)]
    assert len(polygons) == 1
    assert polygons[0].points == tuple((float(x), float(y)) for x, y in IDENTITY_CORNERS)
    assert not any(isinstance(i, DrawText) and i.text.startswith("Click") for i in items)


def test_overlay_has_no_prompt_when_locked(vision):
    vision.process(blank_frame())
    vision.set_locked(True)
    vision.process(frame_with(12), now=0.0)
    items = vision.overlay()
    assert not any(isinstance(i, DrawText) for i in items)
    filled = [i for i in items if isinstance(i, DrawRect) and i.filled]
    assert len(filled) == 1


@pytest.mark.parametrize("code", [cv2.COLOR_GRAY2BGR, cv2.COLOR_GRAY2BGRA])
def test_colour_camera_frames(vision, code):
    calibrate(vision)
    vision.process(cv2.cvtColor(blank_frame(), code))
    vision.set_locked(True)

    events = run_ticks(vision, cv2.cvtColor(frame_with(12, 28), code), 30)
    moves = [e for e in events if e.kind is VisionEventKind.MOVE_DETECTED]
    assert len(moves) == 1
    assert moves[0].squares == (12, 28)
