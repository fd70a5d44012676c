import pytest

from designer.core.errors import Rejected
from designer.core.state import NOT_READY_MESSAGE, SessionPhase
from designer.canvas.selection import WHEEL_STEP, normalize_key
from conftest import png_bytes


@pytest.fixture
def text(editor, graphics):
    """A committed (not editing) text object at the canvas center."""
    obj = editor.add_text()
    graphics.run_pending()
    editor.surface.exit_editing(obj)
    return obj


@pytest.fixture
def image(editor, graphics):
    editor.upload_image(png_bytes(40, 40))
    graphics.run_pending()
    return editor.surface.get_active_object()


def test_normalize_key():
    assert normalize_key("BackSpace") == "Backspace"
    assert normalize_key("KP_Delete") == "Delete"
    assert normalize_key("a") == "a"


def test_delete_without_selection_is_noop(editor, graphics):
    before = editor.surface.objects
    frames = len(graphics.frames)
    assert editor.delete_selected() is None
    assert editor.surface.objects == before
    assert len(graphics.frames) == frames


def test_delete_while_editing_is_noop(editor, graphics):
    obj = editor.add_text()
    graphics.run_pending()
    assert obj.editing
    assert editor.delete_selected() is None
    assert obj in editor.surface
    assert editor.surface.get_active_object() is obj


def test_delete_removes_selected_object(editor, image):
    overlays = editor.surface.overlays()
    assert editor.delete_selected() is image
    assert image not in editor.surface
    assert editor.surface.get_active_object() is None
    assert len(editor.surface.overlays()) == len(overlays) - 1
    assert editor.background.current in editor.surface


def test_delete_before_ready_is_rejected(make_editor):
    ed = make_editor()
    result = ed.delete_selected()
    assert isinstance(result, Rejected)
    assert ed.session.pending_message == NOT_READY_MESSAGE


@pytest.mark.parametrize("key", ["Delete", "BackSpace", "KP_Delete"])
def test_delete_keys_remove_selection(editor, graphics, image, key):
    assert graphics.press(key) is True
    assert image not in editor.surface
    assert editor.surface.get_active_object() is None


def test_backspace_while_editing_reaches_the_text(editor, graphics):
    obj = editor.add_text()
    graphics.run_pending()
    assert graphics.press("BackSpace") is False
    assert obj in editor.surface
    assert obj.editing


def test_delete_key_without_selection_is_not_consumed(editor, graphics):
    assert graphics.press("Delete") is False


def test_other_keys_are_ignored(editor, image):
    assert editor.selection.on_key("a") is False
    assert editor.selection.on_key("Return") is False
    assert image in editor.surface


def test_keys_ignored_when_not_ready(editor, image):
    editor.session.set_phase(SessionPhase.INITIALIZING)
    assert editor.selection.on_key("Delete") is False
    assert image in editor.surface
    assert editor.session.pending_message is None


def test_press_selects_topmost_object(editor, text, image):
    assert editor.selection.on_press(200, 250) is image
    assert editor.surface.get_active_object() is image
    # text extends beyond the small image
    assert editor.selection.on_press(90, 250) is text
    assert editor.surface.get_active_object() is text


def test_press_on_background_clears_selection(editor, text):
    editor.surface.set_active_object(text)
    assert editor.selection.on_press(5, 5) is None
    assert editor.surface.get_active_object() is None
    assert editor.background.current.selectable is False


def test_background_can_never_become_active(editor):
    for x, y in ((1, 1), (200, 250), (399, 499)):
        editor.selection.on_press(x, y)
        assert editor.surface.get_active_object() is None
    with pytest.raises(ValueError):
        editor.surface.set_active_object(editor.background.current)


def test_drag_moves_active_object(editor, graphics, text):
    editor.selection.on_press(200, 250)
    editor.selection.on_drag(210, 245)
    editor.selection.on_drag(230, 260)
    editor.selection.on_release()
    assert (text.left, text.top) == (230, 260)
    editor.selection.on_drag(300, 300)
    assert (text.left, text.top) == (230, 260)
    assert graphics.frames[-1][1] is text


def test_drag_without_press_does_nothing(editor, text):
    editor.surface.set_active_object(text)
    editor.selection.on_drag(10, 10)
    assert (text.left, text.top) == (200, 250)


def test_double_click_edits_text(editor, graphics, text):
    assert editor.selection.on_double_click(200, 250) is True
    assert text.editing
    assert graphics.edits[-1][0] is text


def test_double_click_on_image_does_not_edit(editor, image):
    assert editor.selection.on_double_click(200, 250) is False
    assert not image.editing


def test_press_on_editing_text_does_not_drag(editor, graphics):
    obj = editor.add_text()
    graphics.run_pending()
    editor.selection.on_press(200, 250)
    editor.selection.on_drag(220, 270)
    assert (obj.left, obj.top) == (200, 250)
    assert obj.editing


def test_wheel_scales_active_object(editor, image):
    start = image.scale_x
    editor.selection.on_wheel(120)
    assert image.scale_x == pytest.approx(start * WHEEL_STEP)
    editor.selection.on_wheel(-120)
    editor.selection.on_wheel(-120)
    assert image.scale_x == pytest.approx(start / WHEEL_STEP)
    editor.selection.on_wheel(0)
    assert image.scale_x == pytest.approx(start / WHEEL_STEP)


def test_pointer_ignored_when_not_ready(editor, text):
    editor.session.set_phase(SessionPhase.INITIALIZING)
    assert editor.selection.on_press(200, 250) is None
    assert editor.selection.on_double_click(200, 250) is False
    assert editor.surface.get_active_object() is text
    assert not text.editing
    assert editor.session.pending_message is None


def test_commands_rejected_after_dispose(editor):
    editor.dispose()
    for result in (editor.add_text(), editor.upload_image(b"x"), editor.delete_selected()):
        assert isinstance(result, Rejected)
    assert editor.session.pending_message == NOT_READY_MESSAGE
