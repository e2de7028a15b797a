from __future__ import annotations

import logging

from lyricsync.config import AppConfig

from .base import LyricsStore, StoreError
from .sqlite import SqliteStore
from .supabase import SupabaseStore

logger = logging.getLogger(__name__)


def build_store(cfg: AppConfig) -> LyricsStore:
    backend = cfg.backend.strip().lower()
    if backend == "sqlite":
        return SqliteStore(cfg.store_db_path, timeout_s=cfg.request_timeout_s)
    if backend == "supabase":
        if not cfg.supabase_url or not cfg.supabase_key:
            raise StoreError("Supabase backend needs LYRICSYNC_SUPABASE_URL and LYRICSYNC_SUPABASE_KEY")
        logger.debug("Using Supabase at %s", cfg.supabase_url)
        return SupabaseStore(cfg.supabase_url, cfg.supabase_key, timeout_s=cfg.request_timeout_s)
    raise StoreError(f"Unknown backend '{cfg.backend}' (expected sqlite or supabase)")
