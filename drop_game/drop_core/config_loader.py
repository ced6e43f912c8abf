"""
Configuration Loader
====================

Loads and validates drop_config.yaml, providing typed access to all parameters.
"""

from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path
from typing import List, Tuple, Optional

import yaml


# Every cue the core can fire; each must have an entry under `sounds`.
SOUND_CUES = ("parachute", "snip", "buzz", "land", "winner", "scream")


@dataclass(frozen=True)
class ViewportConfig:
    """Size of the surface the droppers fall through."""
    width: int
    height: int


@dataclass(frozen=True)
class EngineConfig:
    """Render loop parameters."""
    idle_time_ms: float      # 0 disables idle suspension
    frame_time_ms: float     # Fixed step for headless runs
    default_name: str        # Prefix for unnamed droppers


@dataclass(frozen=True)
class RulesConfig:
    """Player command policy."""
    cut_allowed: bool
    cut_range: Optional[Tuple[float, float]]  # None for instant cuts
    cut_lockout: float
    abdicate_allowed: bool


@dataclass(frozen=True)
class DropperConfig:
    """Dropper geometry and motion tuning."""
    width: int
    height: int
    spawn_y: float
    spawn_margin_divisor: int
    x_speed_range: Tuple[float, float]
    y_speed_range: Tuple[float, float]
    brake_height_range: Tuple[int, int]
    brake_factor: float          # y_speed divisor while braking
    min_descent_speed: float     # Braking stops at this speed
    cut_acceleration: float      # y_speed multiplier after a cut
    terminal_velocity: float
    landing_depth: float         # Fraction of target height the landing plane sits above the floor
    death_time_ms: float
    fade_time_ms: float
    scream_chance: float


@dataclass(frozen=True)
class SpriteSheetConfig:
    """Geometry of a single sprite sheet."""
    css_class: str
    sheet_width: int
    sheet_height: int
    frame_width: int
    frame_height: int
    frame_count: int


@dataclass(frozen=True)
class SpritesConfig:
    """All sprite sheets used by the game."""
    emote: SpriteSheetConfig
    parachute: SpriteSheetConfig
    target: SpriteSheetConfig


@dataclass(frozen=True)
class SoundConfig:
    """Settings for a single sound cue."""
    cue: str
    file: str
    playback: Optional[Tuple[float, float]]  # None for normal playback rate
    volume: float

    def playback_rate(self, rng) -> float:
        """Pick a playback rate from the configured range."""
        if self.playback is None:
            return 1.0
        return rng.uniform_float(self.playback[0], self.playback[1])


@dataclass(frozen=True)
class SnapshotConfig:
    """State snapshot parameters."""
    max_droppers: int


@dataclass(frozen=True)
class GameConfig:
    """
    Complete game configuration loaded from YAML.

    All values are immutable to prevent accidental modification during runtime.
    """
    viewport: ViewportConfig
    engine: EngineConfig
    rules: RulesConfig
    dropper: DropperConfig
    sprites: SpritesConfig
    sounds: Tuple[SoundConfig, ...]
    snapshot: SnapshotConfig

    def get_sound(self, cue: str) -> SoundConfig:
        """Get sound settings by cue name."""
        for sound in self.sounds:
            if sound.cue == cue:
                return sound
        raise ValueError(f"Invalid sound cue: {cue}")


def _parse_range(data: Optional[List], what: str) -> Optional[Tuple[float, float]]:
    """Parse a [min, max] pair from YAML."""
    if data is None:
        return None
    if len(data) != 2:
        raise ValueError(f"{what} must have 2 values [min, max], got {data}")
    return (float(data[0]), float(data[1]))


def _parse_pair(data: List, what: str) -> Tuple[int, int]:
    """Parse a [width, height] pair from YAML."""
    if len(data) != 2:
        raise ValueError(f"{what} must have 2 values [width, height], got {data}")
    return (int(data[0]), int(data[1]))


def _parse_sheet(sheet_data: dict) -> SpriteSheetConfig:
    """Parse a single sprite sheet configuration from YAML."""
    css_class = str(sheet_data["css_class"])
    sheet_w, sheet_h = _parse_pair(sheet_data["sheet"], f"{css_class}.sheet")
    frame_w, frame_h = _parse_pair(sheet_data["frame"], f"{css_class}.frame")
    return SpriteSheetConfig(
        css_class=css_class,
        sheet_width=sheet_w,
        sheet_height=sheet_h,
        frame_width=frame_w,
        frame_height=frame_h,
        frame_count=int(sheet_data["count"])
    )


def _parse_sound(sound_data: dict) -> SoundConfig:
    """Parse a single sound cue configuration from YAML."""
    cue = str(sound_data["cue"])
    return SoundConfig(
        cue=cue,
        file=str(sound_data["file"]),
        playback=_parse_range(sound_data.get("playback"), f"{cue}.playback"),
        volume=float(sound_data.get("volume", 1.0))
    )


def validate_sheet(sheet) -> None:
    """
    Validate sprite sheet geometry.

    Accepts anything carrying the SpriteSheetConfig fields, so the layout
    type shares these checks.

    Raises:
        ValueError: If a dimension is non-positive or the frames do not fit.
    """
    if min(sheet.sheet_width, sheet.sheet_height, sheet.frame_width, sheet.frame_height) <= 0:
        raise ValueError(f"Sprite sheet '{sheet.css_class}' has non-positive dimensions")
    if sheet.frame_count <= 0:
        raise ValueError(f"Sprite sheet '{sheet.css_class}' must contain at least one frame")
    capacity = (sheet.sheet_width // sheet.frame_width) * (sheet.sheet_height // sheet.frame_height)
    if sheet.frame_count > capacity:
        raise ValueError(
            f"Sprite sheet '{sheet.css_class}' holds at most {capacity} frames, "
            f"got frame count {sheet.frame_count}"
        )


def _validate_config(config: GameConfig) -> None:
    """Validate configuration consistency."""
    if config.viewport.width <= 0 or config.viewport.height <= 0:
        raise ValueError(
            f"Viewport must have positive dimensions, got "
            f"{config.viewport.width}x{config.viewport.height}"
        )

    if config.engine.idle_time_ms < 0:
        raise ValueError(f"idle_time_ms must be >= 0, got {config.engine.idle_time_ms}")

    if config.engine.frame_time_ms <= 0:
        raise ValueError(f"frame_time_ms must be > 0, got {config.engine.frame_time_ms}")

    cut_range = config.rules.cut_range
    if cut_range is not None and (cut_range[0] < 0 or cut_range[0] > cut_range[1]):
        raise ValueError(f"cut_range must satisfy 0 <= min <= max, got {list(cut_range)}")

    dropper = config.dropper
    if dropper.width <= 0 or dropper.height <= 0:
        raise ValueError("Dropper must have positive dimensions")
    if dropper.brake_factor <= 1.0 or dropper.cut_acceleration <= 1.0:
        raise ValueError("brake_factor and cut_acceleration must both be > 1")
    if dropper.spawn_margin_divisor <= 0:
        raise ValueError("spawn_margin_divisor must be > 0")
    if not 0.0 <= dropper.scream_chance <= 1.0:
        raise ValueError(f"scream_chance must be in [0, 1], got {dropper.scream_chance}")

    for sheet in (config.sprites.emote, config.sprites.parachute, config.sprites.target):
        validate_sheet(sheet)

    # The emote hangs off the bottom of the parachute inside the dropper box
    if config.sprites.parachute.frame_width > dropper.width:
        raise ValueError("Parachute frame is wider than the dropper")

    cues = [sound.cue for sound in config.sounds]
    for cue in SOUND_CUES:
        if cue not in cues:
            raise ValueError(f"Missing sound configuration for cue '{cue}'")
    for sound in config.sounds:
        if not 0.0 <= sound.volume <= 1.0:
            raise ValueError(f"Volume for '{sound.cue}' must be in [0, 1], got {sound.volume}")

    if config.snapshot.max_droppers <= 0:
        raise ValueError("snapshot.max_droppers must be > 0")


def load_config(config_path: Optional[str] = None) -> GameConfig:
    """
    Load and validate game configuration from YAML.

    Args:
        config_path: Path to drop_config.yaml. If None, uses default location.

    Returns:
        Validated GameConfig instance.

    Raises:
        FileNotFoundError: If config file doesn't exist.
        ValueError: If config validation fails.
    """
    if config_path is None:
        config_path = os.path.join(
            os.path.dirname(os.path.dirname(__file__)),
            "drop_config.yaml"
        )

    config_path = Path(config_path)
    if not config_path.exists():
        raise FileNotFoundError(f"Config file not found: {config_path}")

    with open(config_path, "r") as f:
        raw = yaml.safe_load(f)

    viewport_data = raw["viewport"]
    viewport = ViewportConfig(
        width=int(viewport_data["width"]),
        height=int(viewport_data["height"])
    )

    engine_data = raw.get("engine", {})
    engine = EngineConfig(
        idle_time_ms=float(engine_data.get("idle_time_ms", 90000)),
        frame_time_ms=float(engine_data.get("frame_time_ms", 1000.0 / 60.0)),
        default_name=str(engine_data.get("default_name", "SampleNickGoesHere"))
    )

    rules_data = raw.get("rules", {})
    rules = RulesConfig(
        cut_allowed=bool(rules_data.get("cut_allowed", True)),
        cut_range=_parse_range(rules_data.get("cut_range"), "rules.cut_range"),
        cut_lockout=float(rules_data.get("cut_lockout", viewport.height)),
        abdicate_allowed=bool(rules_data.get("abdicate_allowed", True))
    )

    dropper_data = raw["dropper"]
    dropper = DropperConfig(
        width=int(dropper_data["width"]),
        height=int(dropper_data["height"]),
        spawn_y=float(dropper_data.get("spawn_y", -int(dropper_data["height"]))),
        spawn_margin_divisor=int(dropper_data.get("spawn_margin_divisor", 7)),
        x_speed_range=_parse_range(dropper_data["x_speed_range"], "dropper.x_speed_range"),
        y_speed_range=_parse_range(dropper_data["y_speed_range"], "dropper.y_speed_range"),
        brake_height_range=tuple(
            int(v) for v in _parse_range(dropper_data["brake_height_range"], "dropper.brake_height_range")
        ),
        brake_factor=float(dropper_data.get("brake_factor", 1.05)),
        min_descent_speed=float(dropper_data.get("min_descent_speed", 0.5)),
        cut_acceleration=float(dropper_data.get("cut_acceleration", 1.08)),
        terminal_velocity=float(dropper_data.get("terminal_velocity", 12)),
        landing_depth=float(dropper_data.get("landing_depth", 0.25)),
        death_time_ms=float(dropper_data.get("death_time_ms", 5000)),
        fade_time_ms=float(dropper_data.get("fade_time_ms", 1000)),
        scream_chance=float(dropper_data.get("scream_chance", 0.05))
    )

    sprites_data = raw["sprites"]
    sprites = SpritesConfig(
        emote=_parse_sheet(sprites_data["emote"]),
        parachute=_parse_sheet(sprites_data["parachute"]),
        target=_parse_sheet(sprites_data["target"])
    )

    sounds = tuple(_parse_sound(s) for s in raw["sounds"])

    snapshot_data = raw.get("snapshot", {})
    snapshot = SnapshotConfig(
        max_droppers=int(snapshot_data.get("max_droppers", 64))
    )

    config = GameConfig(
        viewport=viewport,
        engine=engine,
        rules=rules,
        dropper=dropper,
        sprites=sprites,
        sounds=sounds,
        snapshot=snapshot
    )

    _validate_config(config)
    return config


# Module-level singleton for convenience
_cached_config: Optional[GameConfig] = None


def get_config() -> GameConfig:
    """Get the cached game configuration, loading if necessary."""
    global _cached_config
    if _cached_config is None:
        _cached_config = load_config()
    return _cached_config


def reload_config(config_path: Optional[str] = None) -> GameConfig:
    """Reload the configuration (useful for testing)."""
    global _cached_config
    _cached_config = load_config(config_path)
    return _cached_config
