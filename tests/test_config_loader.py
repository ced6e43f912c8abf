"""
Tests for configuration loading and validation.
"""

import os
from dataclasses import fields

import pytest
import yaml

from drop_game.drop_core.config_loader import (
    SOUND_CUES,
    SoundConfig,
    get_config,
    load_config,
    reload_config,
)
from drop_game.drop_core.rng import RandomSource


DEFAULT_PATH = os.path.join(
    os.path.dirname(os.path.dirname(__file__)), "drop_game", "drop_config.yaml"
)


@pytest.fixture
def config():
    return load_config()


@pytest.fixture
def raw():
    with open(DEFAULT_PATH, "r") as f:
        return yaml.safe_load(f)


def write_config(tmp_path, raw):
    path = tmp_path / "drop_config.yaml"
    with open(path, "w") as f:
        yaml.safe_dump(raw, f)
    return str(path)


class TestDefaults:
    """Test the shipped configuration."""

    def test_viewport(self, config):
        """Viewport matches the stream overlay size."""
        assert config.viewport.width == 1920
        assert config.viewport.height == 1080

    def test_engine(self, config):
        """Engine defaults: 90 s idle timeout and the sample nick."""
        assert config.engine.idle_time_ms == 90000
        assert config.engine.default_name == "SampleNickGoesHere"

    def test_rules(self, config):
        """Cutting and abdication are on with a 750-1500 ms cut delay."""
        assert config.rules.cut_allowed
        assert config.rules.cut_range == (750.0, 1500.0)
        assert config.rules.cut_lockout == 1080
        assert config.rules.abdicate_allowed

    def test_dropper_motion(self, config):
        """Motion constants are loaded as configured."""
        d = config.dropper
        assert d.x_speed_range == (3.0, 5.0)
        assert d.y_speed_range == (8.0, 10.0)
        assert d.brake_height_range == (1, 8)
        assert d.brake_factor == pytest.approx(1.05)
        assert d.cut_acceleration == pytest.approx(1.08)
        assert d.terminal_velocity == 12
        assert d.death_time_ms == 5000

    def test_sprite_sheets(self, config):
        """Sheet frame geometry is loaded for every sheet."""
        emote = config.sprites.emote
        assert (emote.frame_width, emote.frame_height, emote.frame_count) == (56, 56, 20)
        assert config.sprites.parachute.frame_count == 9
        assert config.sprites.target.frame_width == 390

    def test_every_cue_configured(self, config):
        """Every cue the core fires has sound settings."""
        for cue in SOUND_CUES:
            assert config.get_sound(cue).cue == cue

    def test_unknown_cue_raises(self, config):
        """Unknown cue names are rejected."""
        with pytest.raises(ValueError):
            config.get_sound("kazoo")

    def test_playback_rate_in_range(self, config):
        """Playback rates stay inside the configured range."""
        rng = RandomSource(3)
        sound = config.get_sound("parachute")
        for _ in range(50):
            assert 0.5 <= sound.playback_rate(rng) < 2.0

    def test_sound_settings_fields(self):
        """Sound settings carry only what the presenters use."""
        assert [f.name for f in fields(SoundConfig)] == ["cue", "file", "playback", "volume"]

    def test_config_is_frozen(self, config):
        """Config values cannot be modified at runtime."""
        with pytest.raises(Exception):
            config.viewport.width = 10


class TestCaching:
    """Test the module-level cached config."""

    def test_get_config_is_cached(self):
        """Repeated get_config calls return the same object."""
        assert get_config() is get_config()

    def test_reload_replaces_cache(self):
        """reload_config swaps in a fresh cached config."""
        first = get_config()
        second = reload_config()
        assert second is not first
        assert get_config() is second


class TestValidation:
    """Test that bad configurations are rejected."""

    def test_missing_file(self, tmp_path):
        """A missing config file raises FileNotFoundError."""
        with pytest.raises(FileNotFoundError):
            load_config(str(tmp_path / "nope.yaml"))

    def test_null_cut_range_allowed(self, tmp_path, raw):
        """A null cut range means instant cuts."""
        raw["rules"]["cut_range"] = None
        config = load_config(write_config(tmp_path, raw))
        assert config.rules.cut_range is None

    def test_inverted_cut_range(self, tmp_path, raw):
        """min > max in the cut range is rejected."""
        raw["rules"]["cut_range"] = [1500, 750]
        with pytest.raises(ValueError):
            load_config(write_config(tmp_path, raw))

    def test_bad_range_length(self, tmp_path, raw):
        """Ranges need exactly two values."""
        raw["dropper"]["x_speed_range"] = [3]
        with pytest.raises(ValueError):
            load_config(write_config(tmp_path, raw))

    def test_scream_chance_out_of_range(self, tmp_path, raw):
        """Scream chance must be a probability."""
        raw["dropper"]["scream_chance"] = 2
        with pytest.raises(ValueError):
            load_config(write_config(tmp_path, raw))

    def test_missing_sound_cue(self, tmp_path, raw):
        """Every cue must have a sound entry."""
        raw["sounds"] = [s for s in raw["sounds"] if s["cue"] != "buzz"]
        with pytest.raises(ValueError, match="buzz"):
            load_config(write_config(tmp_path, raw))

    def test_too_many_frames_for_sheet(self, tmp_path, raw):
        """Frame count may not exceed the sheet capacity."""
        raw["sprites"]["emote"]["count"] = 21
        with pytest.raises(ValueError):
            load_config(write_config(tmp_path, raw))

    def test_negative_idle_time(self, tmp_path, raw):
        """Idle time cannot be negative."""
        raw["engine"]["idle_time_ms"] = -1
        with pytest.raises(ValueError):
            load_config(write_config(tmp_path, raw))
