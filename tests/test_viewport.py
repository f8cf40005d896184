"""Viewport scrolling over rendered lines."""

from unittest.mock import MagicMock

from prompt_toolkit.mouse_events import MouseEventType

from askgpt.viewport import Viewport, ViewportControl


def make_viewport(lines=10, height=4):
    viewport = Viewport(width=20, height=height)
    viewport.set_content("\n".join(f"line {i}" for i in range(lines)))
    return viewport


def test_scroll_percent():
    viewport = make_viewport()
    assert viewport.scroll_percent() == 0.0
    viewport.scroll_down(3)
    assert viewport.scroll_percent() == 0.5
    viewport.goto_bottom()
    assert viewport.y_offset == 6
    assert viewport.scroll_percent() == 1.0


def test_content_that_fits_is_fully_scrolled():
    viewport = make_viewport(lines=3, height=4)
    assert viewport.scroll_percent() == 1.0
    assert viewport.max_offset() == 0


def test_scrolling_is_clamped():
    viewport = make_viewport()
    viewport.scroll_up(5)
    assert viewport.y_offset == 0
    viewport.scroll_down(100)
    assert viewport.y_offset == 6
    assert viewport.at_bottom()


def test_pages():
    viewport = make_viewport(lines=20, height=4)
    viewport.page_down()
    assert viewport.y_offset == 4
    viewport.half_page_down()
    assert viewport.y_offset == 6
    viewport.half_page_up()
    viewport.page_up()
    assert viewport.y_offset == 0
    viewport.goto_bottom()
    viewport.goto_top()
    assert viewport.y_offset == 0


def test_view_is_padded_to_height():
    viewport = make_viewport(lines=2, height=4)
    assert viewport.view().split("\n") == ["line 0", "line 1", "", ""]


def test_view_shows_window_at_offset():
    viewport = make_viewport()
    viewport.scroll_down(2)
    assert viewport.view().split("\n") == ["line 2", "line 3", "line 4", "line 5"]


def test_shrinking_content_pulls_offset_back():
    viewport = make_viewport()
    viewport.goto_bottom()
    viewport.set_content("only\ntwo")
    assert viewport.y_offset == 0


def test_resize_keeps_offset_valid():
    viewport = make_viewport()
    viewport.goto_bottom()
    viewport.set_size(20, 8)
    assert viewport.y_offset == 2
    viewport.set_size(20, -3)
    assert viewport.height == 0


def test_mouse_wheel_scrolls():
    viewport = make_viewport(lines=20, height=4)
    control = ViewportControl(viewport, lambda: viewport.view(), scroll_lines=3)

    control.mouse_handler(MagicMock(event_type=MouseEventType.SCROLL_DOWN))
    assert viewport.y_offset == 3
    control.mouse_handler(MagicMock(event_type=MouseEventType.SCROLL_UP))
    assert viewport.y_offset == 0
    assert control.mouse_handler(MagicMock(event_type=MouseEventType.MOUSE_UP)) is None
