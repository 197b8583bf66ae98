"""TOML configuration loader."""

from __future__ import annotations

import os
import sys
from dataclasses import dataclass, field
from pathlib import Path

if sys.version_info >= (3, 11):
    import tomllib
else:
    try:
        import tomli as tomllib
    except ImportError:
        tomllib = None  # type: ignore[assignment]


@dataclass
class CameraConfig:
    indices: list[int] = field(default_factory=lambda: [0])
    rotation: int = 0  # degrees the camera is mounted away from upright
    save_dir: str = ""  # keep a copy of each capture when set


@dataclass
class ImagingConfig:
    max_dimension: int = 1024
    quality: int = 85


@dataclass
class ClaudeVisionConfig:
    api_key: str = ""
    model: str = "claude-sonnet-4-5-20250929"


@dataclass
class GeminiVisionConfig:
    api_key: str = ""
    model: str = "gemini-1.5-flash"


@dataclass
class VisionConfig:
    backend: str = "gemini"
    min_confidence: float = 0.6
    claude: ClaudeVisionConfig = field(default_factory=ClaudeVisionConfig)
    gemini: GeminiVisionConfig = field(default_factory=GeminiVisionConfig)


@dataclass
class DatabaseConfig:
    path: str = "~/.config/pantryscan/inventory.db"


@dataclass
class PantryConfig:
    camera: CameraConfig = field(default_factory=CameraConfig)
    imaging: ImagingConfig = field(default_factory=ImagingConfig)
    vision: VisionConfig = field(default_factory=VisionConfig)
    database: DatabaseConfig = field(default_factory=DatabaseConfig)


def load_config(path: str | Path | None = None) -> PantryConfig:
    """Load configuration from a TOML file.

    Falls back to defaults if no path is given or the file doesn't exist.
    API keys and the database path can be overridden via environment variables.
    """
    raw: dict = {}

    if path is not None:
        p = Path(path)
        if p.exists():
            if tomllib is None:
                raise ImportError(
                    "tomli is required on Python < 3.11: pip install tomli"
                )
            with open(p, "rb") as f:
                raw = tomllib.load(f)

    cam = raw.get("camera", {})
    img = raw.get("imaging", {})
    vis = raw.get("vision", {})
    dbs = raw.get("database", {})

    claude_cfg = vis.get("claude", {})
    gemini_cfg = vis.get("gemini", {})

    # Resolve API keys: config file → environment variable
    claude_api_key = claude_cfg.get("api_key", "") or os.environ.get(
        "ANTHROPIC_API_KEY", ""
    )
    gemini_api_key = gemini_cfg.get("api_key", "") or os.environ.get(
        "GEMINI_API_KEY", ""
    )

    return PantryConfig(
        camera=CameraConfig(
            indices=cam.get("indices", [0]),
            rotation=cam.get("rotation", 0),
            save_dir=cam.get("save_dir", ""),
        ),
        imaging=ImagingConfig(
            max_dimension=img.get("max_dimension", 1024),
            quality=img.get("quality", 85),
        ),
        vision=VisionConfig(
            backend=vis.get("backend", "gemini"),
            min_confidence=vis.get("min_confidence", 0.6),
            claude=ClaudeVisionConfig(
                api_key=claude_api_key,
                model=claude_cfg.get("model", "claude-sonnet-4-5-20250929"),
            ),
            gemini=GeminiVisionConfig(
                api_key=gemini_api_key,
                model=gemini_cfg.get("model", "gemini-1.5-flash"),
            ),
        ),
        database=DatabaseConfig(
            path=os.environ.get("PANTRYSCAN_DB")
            or dbs.get("path", "~/.config/pantryscan/inventory.db"),
        ),
    )
