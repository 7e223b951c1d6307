from __future__ import annotations
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any
import yaml

from vncore.narrative.reveal import RevealParams

_DEFAULTS_PATH = Path(__file__).resolve().parents[1] / "vngame" / "config" / "defaults.yaml"


@dataclass
class RevealCfg:
    default_interval: float = 0.05      # Seconds per char when a line sets no speed
    pause_short_s: float = 0.0          # , ; :
    pause_long_s: float = 0.0           # . ! ? and new lines
    pause_ellipsis_s: float = 0.0       # "..."


@dataclass
class CursorCfg:
    auto_advance: bool = True           # Move to the fallback node without input
    auto_advance_delay: float = 0.0     # Seconds to hold a finished line first


@dataclass
class StoryCfg:
    path: str = "content/prologue.yaml" # Relative to the vngame package
    start: str | None = None            # None = the graph's own start node


@dataclass
class SaveCfg:
    directory: str = "saves"
    slot: str = "default"


@dataclass
class AppCfg:
    fps: int = 60
    log_level: str = "INFO"
    reveal: RevealCfg = field(default_factory=RevealCfg)
    cursor: CursorCfg = field(default_factory=CursorCfg)
    story: StoryCfg = field(default_factory=StoryCfg)
    saves: SaveCfg = field(default_factory=SaveCfg)


def _get(d: dict, path: str, default: Any):
    cur = d
    for part in path.split("."):
        if not isinstance(cur, dict) or part not in cur:
            return default
        cur = cur[part]
    return cur


def load_settings(path: str | Path = _DEFAULTS_PATH) -> AppCfg:
    data = {}
    p = Path(path)
    if p.exists():
        with p.open("r", encoding="utf-8") as f:
            data = yaml.safe_load(f) or {}

    start = _get(data, "story.start", None)
    return AppCfg(
        fps=int(_get(data, "fps", 60)),
        log_level=str(_get(data, "logging.level", "INFO")).upper(),
        reveal=RevealCfg(
            default_interval=float(_get(data, "reveal.default_interval", 0.05)),
            pause_short_s=float(_get(data, "reveal.pause_short_s", 0.0)),
            pause_long_s=float(_get(data, "reveal.pause_long_s", 0.0)),
            pause_ellipsis_s=float(_get(data, "reveal.pause_ellipsis_s", 0.0)),
        ),
        cursor=CursorCfg(
            auto_advance=bool(_get(data, "cursor.auto_advance", True)),
            auto_advance_delay=float(_get(data, "cursor.auto_advance_delay", 0.0)),
        ),
        story=StoryCfg(
            path=str(_get(data, "story.path", "content/prologue.yaml")),
            start=None if start is None else str(start),
        ),
        saves=SaveCfg(
            directory=str(_get(data, "saves.directory", "saves")),
            slot=str(_get(data, "saves.slot", "default")),
        ),
    )


def reveal_params_from(cfg: AppCfg) -> RevealParams:
    rv = cfg.reveal
    return RevealParams(
        default_interval=rv.default_interval,
        pause_short_s=rv.pause_short_s,
        pause_long_s=rv.pause_long_s,
        pause_ellipsis_s=rv.pause_ellipsis_s,
    )
