from PySide6.QtCore import QCoreApplication

from lazyvid.core.editing import EditOperations
from lazyvid.core.source import Resolution, SourceMedia
from lazyvid.media.playback import TimelinePlaybackController

_app = None


def _ensure_app():
    global _app
    if _app is None:
        _app = QCoreApplication.instance() or QCoreApplication([])


def _controller():
    ops = EditOperations()
    a = ops.place(SourceMedia("/media/a.mp4", 3.0, Resolution(32, 32))).item_ids[0]
    b = ops.place(SourceMedia("/media/b.mp4", 2.0, Resolution(32, 32))).item_ids[0]
    return TimelinePlaybackController(ops.model, ops.playhead), a, b


def test_playback_controller_signals():
    _ensure_app()
    controller, a, b = _controller()
    received = {"source": [], "items": [], "positions": [], "states": []}
    controller.sourceRequested.connect(lambda path, t: received["source"].append((path, t)))
    controller.itemChanged.connect(received["items"].append)
    controller.positionChanged.connect(received["positions"].append)
    controller.stateChanged.connect(received["states"].append)

    assert controller.play()
    assert controller.is_playing()
    assert received["source"] == [("/media/a.mp4", 0.0)]
    controller.tick(1.5)
    assert controller.position() == 1.5
    controller.tick(3.0)
    assert received["source"][-1] == ("/media/b.mp4", 0.0)
    assert received["items"] == [a, b]
    assert controller.current_item().id == b
    controller.tick(2.0)
    assert not controller.is_playing()
    assert controller.position() == 5.0
    assert received["states"] == ["playing", "stopped"]
    assert received["positions"] == sorted(received["positions"])


def test_playback_controller_seek_pauses_and_clamps():
    _ensure_app()
    controller, a, b = _controller()
    positions = []
    controller.positionChanged.connect(positions.append)
    controller.play()
    controller.seek(4.0)
    assert not controller.is_playing()
    assert positions[-1] == 4.0
    controller.seek(99.0)
    assert controller.position() == 5.0
    controller.play()
    assert controller.current_item().id == a  # playhead at end restarts from the top


def test_playback_controller_drops_frames_from_previous_file():
    _ensure_app()
    controller, a, b = _controller()
    controller.play()
    controller.tick(3.0, "/media/a.mp4")
    assert controller.current_item().id == b
    controller.tick(2.9, "/media/a.mp4")
    assert controller.position() == 3.0
    controller.tick(2.5, "/media/b.mp4")
    assert not controller.is_playing()
    assert controller.position() == 5.0
