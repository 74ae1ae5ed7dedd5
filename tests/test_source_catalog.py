import math

import pytest

from lazyvid.core.errors import InvalidSourceError
from lazyvid.core.source import (
    Resolution,
    SourceCatalog,
    SourceMedia,
    display_name_for,
    is_supported_video,
    resolve_duration,
)


def fake_probe(path, duration_override=None):
    # Files named "live*" behave like a capture whose container reports no duration.
    probed = math.inf if display_name_for(path).startswith("live") else 12.0
    return SourceMedia(
        path,
        resolve_duration(probed, duration_override, path),
        Resolution(640, 360),
        file_size_bytes=1024,
    )


def test_supported_extensions():
    assert is_supported_video("clip.MP4")
    assert is_supported_video("/a/b/c.mov")
    assert is_supported_video("capture.webm")
    assert not is_supported_video("song.mp3")
    assert not is_supported_video("mp4")


def test_display_name_handles_both_separators():
    assert display_name_for("C:\\videos\\take 1.mp4") == "take 1.mp4"
    assert display_name_for("/home/me/clip.mov") == "clip.mov"


def test_resolve_duration_rules():
    assert resolve_duration(8.0) == 8.0
    assert resolve_duration(8.0, 20.0) == 8.0  # probe wins; mismatch is only logged
    assert resolve_duration(math.inf, 20.0) == 20.0
    assert resolve_duration(None, 3.0) == 3.0
    for probed, override in ((None, None), (math.nan, None), (0.0, -1.0), (math.inf, math.inf)):
        with pytest.raises(InvalidSourceError):
            resolve_duration(probed, override, "x.webm")


def test_add_assigns_ids_and_metadata():
    catalog = SourceCatalog(prober=fake_probe)
    first = catalog.add("/media/beach.mp4", tags=["holiday", "sea"])
    second = catalog.add("/media/city.mov", display_name="Downtown")
    assert (first.media_id, second.media_id) == (0, 1)
    assert first.display_name == "beach.mp4"
    assert second.display_name == "Downtown"
    assert first.tags == ("holiday", "sea")
    assert first.added_at is not None
    assert len(catalog) == 2
    assert 1 in catalog
    assert catalog.get(0) == first


def test_add_rejects_unsupported_and_unusable_media():
    catalog = SourceCatalog(prober=fake_probe)
    with pytest.raises(InvalidSourceError):
        catalog.add("/media/notes.txt")
    with pytest.raises(InvalidSourceError):
        catalog.add("/media/live-stream.webm")
    assert len(catalog) == 0


def test_add_live_capture_with_override():
    catalog = SourceCatalog(prober=fake_probe)
    media = catalog.add("/media/live-stream.webm", duration_override=42.0)
    assert media.total_duration == 42.0


def test_search_remove_and_statistics():
    catalog = SourceCatalog(prober=fake_probe)
    catalog.add("/media/beach.mp4", tags=["Holiday"])
    catalog.add("/media/city.mov")
    assert [m.display_name for m in catalog.search("holi")] == ["beach.mp4"]
    assert [m.display_name for m in catalog.search("CITY")] == ["city.mov"]
    stats = catalog.statistics()
    assert stats["total"] == 2
    assert stats["total_duration"] == 24.0
    assert stats["oldest"] <= stats["newest"]
    assert catalog.remove(0)
    assert not catalog.remove(0)
    assert [m.media_id for m in catalog.all()] == [1]


def test_clear_resets_ids():
    catalog = SourceCatalog(prober=fake_probe)
    catalog.add("/media/a.mp4")
    catalog.clear()
    assert len(catalog) == 0
    assert catalog.statistics()["oldest"] is None
    assert catalog.add("/media/b.mp4").media_id == 0


def test_scan_directory_skips_unusable_files(tmp_path):
    for name in ("b.mov", "a.mp4", "readme.txt", "live.webm"):
        (tmp_path / name).write_bytes(b"")
    (tmp_path / "nested.mp4").mkdir()
    catalog = SourceCatalog(prober=fake_probe)
    added = catalog.scan_directory(tmp_path)
    assert [m.display_name for m in added] == ["a.mp4", "b.mov"]
