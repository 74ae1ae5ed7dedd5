from lazyvid.config import EditorSettings


def test_defaults():
    s = EditorSettings()
    assert s.min_quantum == 0.1
    assert s.snap_threshold_px == 10.0
    assert (s.min_pixels_per_second, s.max_pixels_per_second) == (5.0, 50.0)
    assert s.temp_dir is None
    assert not s.debug


def test_from_env_overrides_fields():
    s = EditorSettings.from_env(
        {
            "LAZYVID_MIN_QUANTUM": "0.04",
            "LAZYVID_DEBUG": "yes",
            "LAZYVID_VIDEO_CODEC": "libx265",
            "LAZYVID_TEMP_DIR": "/var/tmp/lazyvid",
            "UNRELATED": "1",
        }
    )
    assert s.min_quantum == 0.04
    assert s.debug is True
    assert s.video_codec == "libx265"
    assert s.temp_dir == "/var/tmp/lazyvid"
    assert s.audio_codec == "aac"


def test_from_env_ignores_invalid_values():
    s = EditorSettings.from_env({"LAZYVID_SNAP_THRESHOLD_PX": "wide", "LAZYVID_DEBUG": "maybe"})
    assert s.snap_threshold_px == 10.0
    assert s.debug is False


def test_from_env_empty_temp_dir_means_system_default():
    assert EditorSettings.from_env({"LAZYVID_TEMP_DIR": ""}).temp_dir is None


def test_from_env_rejects_non_positive_numbers():
    s = EditorSettings.from_env(
        {
            "LAZYVID_MIN_QUANTUM": "-0.5",
            "LAZYVID_MIN_PIXELS_PER_SECOND": "0",
            "LAZYVID_ZOOM_STEP": "nan",
            "LAZYVID_MAX_PIXELS_PER_SECOND": "inf",
        }
    )
    assert s.min_quantum == 0.1
    assert s.min_pixels_per_second == 5.0
    assert s.zoom_step == 1.25
    assert s.max_pixels_per_second == 50.0
