import io

import pytest
from PIL import Image

from designer.core.errors import NotReady, Rejected, ResourceLoadFailure
from designer.core.state import NOT_READY_MESSAGE, SessionPhase
from designer.canvas.object import CanvasObject
from designer.canvas import overlay as overlay_module
from conftest import png_bytes


def test_add_text_before_mount_is_rejected(make_editor, graphics):
    ed = make_editor()
    result = ed.add_text()
    assert isinstance(result, Rejected)
    assert result.reason is NotReady
    assert ed.session.pending_message == NOT_READY_MESSAGE
    assert graphics.frames == []


def test_add_text_while_initializing_is_rejected(editor, graphics):
    editor.session.set_phase(SessionPhase.INITIALIZING)
    before = len(editor.surface.overlays())
    result = editor.add_text()
    assert isinstance(result, Rejected)
    assert len(editor.surface.overlays()) == before


def test_add_text_creates_one_active_text(editor):
    before = len(editor.surface.overlays())
    obj = editor.add_text()
    assert isinstance(obj, CanvasObject)
    assert len(editor.surface.overlays()) == before + 1
    assert editor.surface.get_active_object() is obj
    assert obj.type == "text"
    assert obj.text == "Your Design Text"
    assert (obj.font_family, obj.font_size, obj.fill) == ("Inter", 30, "#000000")
    assert (obj.left, obj.top) == (200, 250)
    assert (obj.origin_x, obj.origin_y) == ("center", "center")
    assert obj.editable and obj.selectable and obj.evented
    assert obj.has_controls and obj.has_borders
    assert editor.surface.index_of(obj) == len(editor.surface.objects) - 1


def test_add_text_enters_editing_after_render(editor, graphics):
    frames = len(graphics.frames)
    obj = editor.add_text()
    assert len(graphics.frames) == frames + 1
    assert not obj.editing
    assert graphics.edits == []
    graphics.run_pending()
    assert obj.editing
    assert graphics.edits[-1][0] is obj


def test_edit_continuation_skipped_for_removed_text(editor, graphics):
    obj = editor.add_text()
    editor.delete_selected()
    graphics.run_pending()
    assert not obj.editing
    assert graphics.edits == []


def test_edit_continuation_skipped_after_dispose(editor, graphics):
    obj = editor.add_text()
    editor.dispose()
    graphics.run_pending()
    assert not obj.editing


def test_upload_before_ready_is_rejected(make_editor):
    ed = make_editor()
    result = ed.upload_image(png_bytes(10, 10))
    assert isinstance(result, Rejected)
    assert ed.session.pending_message == NOT_READY_MESSAGE


def test_upload_large_image_is_scaled_down(wide_editor, graphics):
    done = []
    assert wide_editor.upload_image(png_bytes(1000, 1000), on_done=lambda o, e: done.append((o, e))) is True
    assert wide_editor.surface.overlays() == []
    graphics.run_pending()
    obj, err = done[0]
    assert err is None
    assert obj.scale_x == pytest.approx(0.4)
    assert obj.scale_y == pytest.approx(0.4)
    assert (obj.left, obj.top) == (400, 250)
    assert (obj.origin_x, obj.origin_y) == ("center", "center")
    assert obj.selectable and obj.evented and obj.has_controls and obj.has_borders
    assert wide_editor.surface.get_active_object() is obj
    assert wide_editor.surface.objects[-1] is obj
    assert obj.source.startswith("data:")


def test_upload_small_image_is_not_upscaled(wide_editor, graphics):
    wide_editor.upload_image(png_bytes(200, 200))
    graphics.run_pending()
    obj = wide_editor.surface.get_active_object()
    assert (obj.scale_x, obj.scale_y) == (1.0, 1.0)


def test_upload_from_path_and_file_object(editor, graphics, tmp_path):
    p = tmp_path / "logo.png"
    p.write_bytes(png_bytes(50, 60))
    editor.upload_image(str(p))
    editor.upload_image(io.BytesIO(png_bytes(70, 80)))
    graphics.run_pending()
    sizes = [(o.width, o.height) for o in editor.surface.overlays()]
    assert sizes == [(50, 60), (70, 80)]


def test_upload_stacks_above_existing_overlays(editor, graphics):
    text = editor.add_text()
    editor.upload_image(png_bytes(20, 20))
    graphics.run_pending()
    img = editor.surface.get_active_object()
    assert editor.surface.overlays() == [text, img]
    assert not text.editing


def test_upload_non_image_inserts_nothing(editor, graphics):
    done = []
    before = editor.surface.objects
    editor.upload_image(b"%PDF-1.4 not an image", on_done=lambda o, e: done.append((o, e)))
    graphics.run_pending()
    assert editor.surface.objects == before
    obj, err = done[0]
    assert obj is None
    assert isinstance(err, ResourceLoadFailure)
    assert editor.session.is_ready


def test_upload_unreadable_file(editor, graphics, tmp_path):
    done = []
    before = editor.surface.objects
    assert editor.upload_image(tmp_path / "gone.png", on_done=lambda o, e: done.append(e)) is True
    assert done == []
    graphics.run_pending()
    assert isinstance(done[0], ResourceLoadFailure)
    assert editor.surface.objects == before


def test_oversized_upload_reports_failure(editor, graphics, monkeypatch):
    monkeypatch.setattr(Image, "MAX_IMAGE_PIXELS", 100)
    done = []
    before = editor.surface.objects
    editor.upload_image(png_bytes(200, 200), on_done=lambda o, e: done.append((o, e)))
    graphics.run_pending()
    assert len(done) == 1
    obj, err = done[0]
    assert obj is None
    assert isinstance(err, ResourceLoadFailure)
    assert editor.surface.objects == before


def test_upload_read_on_worker(editor, graphics, monkeypatch):
    reads = []
    real = overlay_module.read_as_data_uri
    monkeypatch.setattr(overlay_module, "read_as_data_uri", lambda blob: reads.append(blob) or real(blob))
    blob = png_bytes(10, 10)
    editor.upload_image(blob)
    assert reads == []
    graphics.run_pending()
    assert reads == [blob]


@pytest.mark.parametrize("blob", [None, "", b""])
def test_upload_without_file_does_nothing(editor, graphics, blob):
    assert editor.upload_image(blob) is None
    assert not graphics.pending


def test_upload_completing_after_dispose_is_dropped(editor, graphics):
    editor.upload_image(png_bytes(20, 20))
    editor.dispose()
    graphics.run_pending()
    assert editor.surface.objects == ()
