import numpy as np

from chess_tracker.display import LoggingDisplay, Status, render_overlay, render_status
from chess_tracker.vision.overlay import (
    MARKER_COLOR,
    DrawPoint,
    DrawPolygon,
    DrawRect,
    DrawText,
    active_minimap,
    calibration_overlay,
)


def test_render_overlay_paints_a_copy():
    image = np.zeros((100, 100, 3), dtype=np.uint8)
    out = render_overlay(image, [
        DrawPoint(50, 50, 5, MARKER_COLOR),
        DrawPolygon(((10, 10), (90, 10), (90, 90), (10, 90)), MARKER_COLOR),
        DrawRect(0, 0, 5, 5, (0, 0, 255), filled=True),
        DrawText("1", 58, 42, MARKER_COLOR),
    ])
    assert image.sum() == 0
    assert tuple(out[50, 50]) == MARKER_COLOR
    assert tuple(out[2, 2]) == (0, 0, 255)


def test_render_overlay_accepts_grey_images():
    out = render_overlay(np.zeros((20, 20), dtype=np.uint8), [])
    assert out.shape == (20, 20, 3)


def test_calibration_overlay_prompt_names_first_corner():
    items = calibration_overlay([], locked=False)
    assert items == [DrawText("Click Top-Left", 20, 30, items[0].color, scale=0.8)]
    assert calibration_overlay([], locked=True) == []


def test_corner_labels_are_offset_from_points():
    items = calibration_overlay([(100.0, 50.0)], locked=False)
    label = [i for i in items if isinstance(i, DrawText) and i.text == "1"][0]
    assert (label.x, label.y) == (108.0, 42.0)


def test_minimap_cells():
    items = active_minimap([0, 63])
    cells = [i for i in items if i.filled]
    assert [(c.x, c.y) for c in cells] == [(10, 10), (10 + 7 * 12.5, 10 + 7 * 12.5)]


def test_logging_display_records():
    display = LoggingDisplay()
    display.update_status("hello", Status.READY)
    display.log_move("e4")
    display.update_best_move("e7e5")
    display.update_evaluation(35)
    assert display.status == ("hello", Status.READY)
    assert display.move_log == ["e4"]
    display.clear_log()
    assert display.move_log == []

    image = np.zeros((120, 400, 3), dtype=np.uint8)
    assert render_status(image, display) is image
    assert image.sum() > 0
