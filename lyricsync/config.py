from __future__ import annotations

import json
from dataclasses import dataclass
import os
from pathlib import Path

SUPPORTED_LANGS = ("EN", "FR")


def _config_dir() -> Path:
    xdg = os.getenv("XDG_CONFIG_HOME")
    if xdg:
        return Path(xdg) / "lyricsync"
    return Path.home() / ".config" / "lyricsync"


def _config_file() -> Path:
    return _config_dir() / "config.json"


@dataclass(frozen=True)
class AppConfig:
    # Storage
    data_dir: Path
    store_db_path: Path
    config_dir: Path

    # Locale
    lang: str

    # Persistence
    backend: str
    supabase_url: str | None
    supabase_key: str | None
    request_timeout_s: float

    # Export
    srt_last_line_s: float

    # Playback / tap-to-sync
    preferred_player: str | None
    poll_hz: float
    adjust_step_s: float

    # Rendering
    context_lines: int  # lines above/below current
    use_alt_screen: bool


def load_config() -> AppConfig:
    # XDG base dir fallback
    xdg = os.getenv("XDG_DATA_HOME")
    data_dir = Path(xdg) if xdg else Path.home() / ".local" / "share"
    data_dir = data_dir / "lyricsync"

    config_dir = _config_dir()
    lang = _load_lang(config_dir)

    return AppConfig(
        data_dir=data_dir,
        store_db_path=data_dir / "lyricsync.sqlite3",
        config_dir=config_dir,
        lang=lang,
        backend=os.getenv("LYRICSYNC_BACKEND", "sqlite"),
        supabase_url=os.getenv("LYRICSYNC_SUPABASE_URL") or None,
        supabase_key=os.getenv("LYRICSYNC_SUPABASE_KEY") or None,
        request_timeout_s=float(os.getenv("LYRICSYNC_TIMEOUT", "10.0")),
        srt_last_line_s=float(os.getenv("LYRICSYNC_SRT_LAST_LINE", "3.0")),
        preferred_player=os.getenv("LYRICSYNC_PLAYER") or None,
        poll_hz=float(os.getenv("LYRICSYNC_POLL_HZ", "10.0")),
        adjust_step_s=float(os.getenv("LYRICSYNC_ADJUST_STEP", "0.1")),
        context_lines=int(os.getenv("LYRICSYNC_CONTEXT_LINES", "2")),
        use_alt_screen=os.getenv("LYRICSYNC_ALT_SCREEN", "1") not in ("0", "false", "False"),
    )


def _load_lang(config_dir: Path) -> str:
    # Priority: config.json → LYRICSYNC_LANG → "EN"
    cfg_path = config_dir / "config.json"
    if cfg_path.exists():
        try:
            data = json.loads(cfg_path.read_text(encoding="utf-8"))
            raw = (data.get("lang") or "en").upper()
            if raw in SUPPORTED_LANGS:
                return raw
        except (OSError, ValueError, AttributeError):
            pass
    env_lang = os.getenv("LYRICSYNC_LANG")
    if env_lang and env_lang.upper() in SUPPORTED_LANGS:
        return env_lang.upper()
    return "EN"


def save_config_lang(lang: str) -> None:
    if lang.upper() not in SUPPORTED_LANGS:
        raise ValueError(f"lang must be one of: {', '.join(SUPPORTED_LANGS)}")
    cfg_path = _config_file()
    cfg_path.parent.mkdir(parents=True, exist_ok=True)
    data: dict[str, str] = {}
    if cfg_path.exists():
        try:
            data = json.loads(cfg_path.read_text(encoding="utf-8"))
        except ValueError:
            pass
    data["lang"] = lang.upper()
    cfg_path.write_text(json.dumps(data, indent=2, ensure_ascii=False), encoding="utf-8")
