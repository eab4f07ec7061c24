"""
Tracker configuration with JSON persistence.
"""

from __future__ import annotations

import json
import logging
from dataclasses import asdict, dataclass, fields
from pathlib import Path
from typing import Any, Dict, Optional, Union

log = logging.getLogger(__name__)

DEFAULT_CONFIG_FILE = "tracker_config.json"


@dataclass
class TrackerConfig:
    """Settings for the tracker, with defaults tuned for a 640×480 webcam."""
    sensitivity: float = 80.0              # base changed pixels per square
    pixel_threshold: float = 10.0          # grey-level difference per pixel
    warp_size: int = 400                   # canonical board side (px)
    stability_ms: int = 1000               # stability window
    camera_source: Union[int, str] = 0     # device index or video path
    frame_width: int = 640
    frame_height: int = 480
    fps: float = 30.0
    engine_path: Optional[str] = None      # None → search PATH
    analysis_depth: int = 12
    auto_promote: bool = False             # apply first promotion choice

    @property
    def stability_seconds(self) -> float:
        return self.stability_ms / 1000.0

    def validate(self) -> None:
        """Raise ``ValueError`` on out-of-range values."""
        if self.sensitivity < 0:
            raise ValueError(f"sensitivity must be >= 0, got {self.sensitivity}")
        if not 0 <= self.pixel_threshold <= 255:
            raise ValueError(
                f"pixel_threshold must be in [0, 255], got {self.pixel_threshold}"
            )
        if self.warp_size < 8:
            raise ValueError(f"warp_size must be >= 8, got {self.warp_size}")
        if self.stability_ms < 0:
            raise ValueError(f"stability_ms must be >= 0, got {self.stability_ms}")
        if self.fps <= 0:
            raise ValueError(f"fps must be > 0, got {self.fps}")
        if self.analysis_depth < 1:
            raise ValueError(
                f"analysis_depth must be >= 1, got {self.analysis_depth}"
            )

    def merged(self, **overrides: Any) -> "TrackerConfig":
        """Copy with every non-``None`` override applied."""
        data = asdict(self)
        data.update({k: v for k, v in overrides.items() if v is not None})
        return TrackerConfig(**data)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "TrackerConfig":
        if not isinstance(data, dict):
            raise ValueError(f"expected a JSON object, got {type(data).__name__}")
        known = {f.name for f in fields(cls)}
        unknown = sorted(set(data) - known)
        if unknown:
            log.warning("Ignoring unknown config keys: %s", ", ".join(unknown))
        return cls(**{k: v for k, v in data.items() if k in known})

    @classmethod
    def load(cls, filename: Optional[Union[str, Path]] = None) -> "TrackerConfig":
        """Load from a JSON file; missing or unreadable files give defaults."""
        path = Path(filename or DEFAULT_CONFIG_FILE)
        if not path.exists():
            return cls()
        try:
            with open(path, "r") as f:
                config = cls.from_dict(json.load(f))
            config.validate()
        except (OSError, ValueError, TypeError) as e:
            log.warning("Error loading config %s: %s, using defaults", path, e)
            return cls()
        log.info("Loaded config from %s", path)
        return config

    def save(self, filename: Optional[Union[str, Path]] = None) -> Path:
        path = Path(filename or DEFAULT_CONFIG_FILE)
        with open(path, "w") as f:
            json.dump(asdict(self), f, indent=2)
        log.info("Saved config to %s", path)
        return path
