from __future__ import annotations

import json
from pathlib import Path
import typer

from lyricsync.app import describe_load_failure, describe_save_result, play_loop, run_tap_sync
from lyricsync.config import SUPPORTED_LANGS, AppConfig, load_config, save_config_lang
from lyricsync.i18n import set_lang, t
from lyricsync.logging_setup import setup_logging
from lyricsync.lrc.export import EXPORT_FORMATS, export_document
from lyricsync.lrc.model import SyncedLyricsDocument
from lyricsync.lrc.parse import (
    NoSyncedLyricsError,
    extract_plain_lyrics,
    import_lrc,
    looks_like_lrc,
    parse_lrc,
    parse_lrc_with_stats,
)
from lyricsync.mpris.client import MprisClient, MprisTransport
from lyricsync.mpris.errors import NoPlayersFound
from lyricsync.render.ansi import AnsiRenderer
from lyricsync.store.base import LyricsStore, StoreError
from lyricsync.store.service import build_store
from lyricsync.store.types import Found, LoadFailed, Saved
from lyricsync.sync.editor import SyncEditor
from lyricsync.sync.transport import PlaybackTransport, Stopwatch


app = typer.Typer(no_args_is_help=True, add_completion=False)


@app.callback()
def _root(debug: bool = typer.Option(False, "--debug", help="Enable debug logging")):
    """Synchronize song lyrics to audio and convert between LRC, SRT and JSON."""
    setup_logging(debug)
    set_lang(load_config().lang)


def _open_store(cfg: AppConfig) -> LyricsStore:
    try:
        return build_store(cfg)
    except StoreError as e:
        typer.echo(str(e), err=True)
        raise typer.Exit(code=1)


def _open_transport(cfg: AppConfig, player: str | None, stopwatch: bool) -> PlaybackTransport:
    if stopwatch:
        return Stopwatch()
    try:
        return MprisTransport(MprisClient.pick_player(preferred=player or cfg.preferred_player))
    except NoPlayersFound:
        typer.echo(t("no_mpris_players"), err=True)
        raise typer.Exit(code=1)


def _write_output(data: str, out: Path | None) -> None:
    if out:
        out.write_text(data, encoding="utf-8")
    else:
        typer.echo(data)


def _check_format(fmt: str) -> str:
    fmt_l = fmt.lower()
    if fmt_l not in EXPORT_FORMATS:
        raise typer.BadParameter(f"format must be one of: {', '.join(EXPORT_FORMATS)}")
    return fmt_l


def _load_document(store: LyricsStore, song_id: str) -> SyncedLyricsDocument | None:
    """Stored document, None when the song has no sync yet; exits on failure."""
    res = store.load(song_id)
    if isinstance(res, Found):
        return res.document
    if isinstance(res, LoadFailed):
        typer.echo(describe_load_failure(res), err=True)
        raise typer.Exit(code=1)
    return None


@app.command()
def parse(lrc_path: Path):
    """Parse LRC and print stats."""
    text = lrc_path.read_text(encoding="utf-8")
    doc, stats = parse_lrc_with_stats(text)
    typer.echo(f"lines_total={stats.lines_total}")
    typer.echo(f"lines_with_timestamps={stats.lines_with_timestamps}")
    typer.echo(f"lines_ignored={stats.lines_ignored}")
    typer.echo(f"metadata_lines={stats.metadata_lines}")
    typer.echo(f"events_total={stats.events_total}")
    typer.echo(f"title={doc.title or ''}")
    typer.echo(f"artist={doc.artist or ''}")
    typer.echo(f"album={doc.album or ''}")


@app.command()
def export(
    lrc_path: Path,
    fmt: str = typer.Option("srt", "--format", case_sensitive=False, help="lrc|srt|json"),
    out: Path | None = typer.Option(None, "--out", help="Output file (default: stdout)"),
    song_id: str = typer.Option("", "--song-id", help="song_id written into JSON output"),
    title: str | None = typer.Option(None, "--title"),
    artist: str | None = typer.Option(None, "--artist"),
    album: str | None = typer.Option(None, "--album"),
    duration: float | None = typer.Option(None, "--duration", help="Track length in seconds"),
):
    """Export LRC to SRT/JSON/LRC (normalized)."""
    fmt_l = _check_format(fmt)
    cfg = load_config()
    doc = parse_lrc(lrc_path.read_text(encoding="utf-8"))
    doc = SyncedLyricsDocument(
        lines=doc.lines,
        title=title or doc.title,
        artist=artist or doc.artist,
        album=album or doc.album,
        duration_s=duration if duration is not None else doc.duration_s,
        source=doc.source,
    )
    _write_output(export_document(doc, fmt_l, song_id=song_id, srt_last_line_s=cfg.srt_last_line_s), out)


@app.command()
def plain(
    lrc_path: Path,
    out: Path | None = typer.Option(None, "--out", help="Output file (default: stdout)"),
):
    """Strip timestamps from an LRC file, keeping the lyric text."""
    _write_output(extract_plain_lyrics(lrc_path.read_text(encoding="utf-8")), out)


@app.command()
def lrc(
    song_id: str,
    fmt: str = typer.Option("json", "--format", case_sensitive=False, help="lrc|srt|json"),
    out: Path | None = typer.Option(None, "--out", help="Output file (default: stdout)"),
):
    """Render a song's stored synced lyrics."""
    fmt_l = _check_format(fmt)
    cfg = load_config()
    doc = _load_document(_open_store(cfg), song_id)
    if doc is None:
        typer.echo(t("lyrics_not_synced"), err=True)
        return
    _write_output(export_document(doc, fmt_l, song_id=song_id, srt_last_line_s=cfg.srt_last_line_s), out)


@app.command("import")
def import_cmd(
    lrc_path: Path,
    song_id: str = typer.Option(..., "--song", help="Song to attach the synced lyrics to"),
):
    """Store an existing LRC file as the song's synced lyrics."""
    cfg = load_config()
    try:
        doc = import_lrc(lrc_path.read_text(encoding="utf-8"))
    except NoSyncedLyricsError:
        typer.echo(t("no_synced_content"), err=True)
        raise typer.Exit(code=1)

    res = _open_store(cfg).save(song_id, doc)
    if not isinstance(res, Saved):
        typer.echo(describe_save_result(res), err=True)
        raise typer.Exit(code=1)
    typer.echo(t("lyrics_imported", count=len(doc.lines), song_id=song_id, version=res.version))


@app.command("add-song")
def add_song(
    lyrics_path: Path,
    title: str = typer.Option(..., "--title"),
    artist: str = typer.Option(..., "--artist"),
    album: str | None = typer.Option(None, "--album"),
    duration: float | None = typer.Option(None, "--duration", help="Track length in seconds"),
    status: str = typer.Option("draft", "--status"),
):
    """
    Add a song with its lyrics.

    An LRC file is accepted in place of plain lyrics: its text becomes the
    song lyrics and its timing is stored as an lrc_import sync.
    """
    cfg = load_config()
    store = _open_store(cfg)
    text = lyrics_path.read_text(encoding="utf-8")

    synced: SyncedLyricsDocument | None = None
    lyrics_text = text
    if looks_like_lrc(text):
        try:
            synced = import_lrc(text)
        except NoSyncedLyricsError:
            typer.echo(t("no_synced_content"), err=True)
            raise typer.Exit(code=1)
        lyrics_text = extract_plain_lyrics(text)
        if duration is None:
            duration = synced.duration_s

    try:
        song = store.add_song(
            title=title,
            artist_name=artist,
            album=album,
            duration_seconds=duration,
            lyrics_text=lyrics_text,
            status=status,
        )
    except StoreError as e:
        typer.echo(str(e), err=True)
        raise typer.Exit(code=1)
    typer.echo(t("song_added", song_id=song.id))

    if synced is not None:
        res = store.save(song.id, synced)
        if not isinstance(res, Saved):
            typer.echo(describe_save_result(res), err=True)
            raise typer.Exit(code=1)
        typer.echo(t("lyrics_imported", count=len(synced.lines), song_id=song.id, version=res.version))


@app.command()
def songs(
    status: str | None = typer.Option(None, "--status", help="Filter by status (e.g. published)"),
    search: str | None = typer.Option(None, "--search", "-q", help="Match title, artist or album"),
    page: int = typer.Option(1, "--page", min=1),
    limit: int = typer.Option(20, "--limit", "-n", min=1, help="Songs per page"),
    json_output: bool = typer.Option(False, "--json", help="Output as JSON"),
):
    """List songs."""
    cfg = load_config()
    try:
        result = _open_store(cfg).list_songs(status=status, search=search, page=page, limit=limit)
    except StoreError as e:
        typer.echo(str(e), err=True)
        raise typer.Exit(code=1)

    if json_output:
        typer.echo(
            json.dumps(
                {
                    "songs": [
                        {
                            "id": s.id,
                            "title": s.title,
                            "artist_name": s.artist_name,
                            "album": s.album,
                            "duration_seconds": s.duration_seconds,
                            "status": s.status,
                        }
                        for s in result.songs
                    ],
                    "pagination": {
                        "page": result.page,
                        "limit": result.limit,
                        "total": result.total,
                        "totalPages": result.total_pages,
                    },
                },
                indent=2,
                ensure_ascii=False,
            )
        )
        return

    if not result.songs:
        typer.echo(t("no_songs"))
        return
    for s in result.songs:
        album_str = f" [{s.album}]" if s.album else ""
        typer.echo(f"{s.id}  {s.display}{album_str}  ({s.status})")
    typer.echo(t("songs_page", page=result.page, pages=result.total_pages, total=result.total))


@app.command()
def sync(
    song_id: str,
    player: str | None = typer.Option(None, "--player", help="MPRIS service or short name (e.g. vlc)"),
    stopwatch: bool = typer.Option(False, "--stopwatch", help="Time taps with a wall clock instead of a player"),
):
    """Tap-to-sync a song's lyrics while it plays."""
    cfg = load_config()
    store = _open_store(cfg)
    try:
        song = store.get_song(song_id)
    except StoreError as e:
        typer.echo(str(e), err=True)
        raise typer.Exit(code=1)
    if song is None:
        typer.echo(t("song_not_found", song_id=song_id), err=True)
        raise typer.Exit(code=1)

    editor = SyncEditor(song, _open_transport(cfg, player, stopwatch), store)
    if not editor.session.lines:
        typer.echo(t("no_lyrics_to_sync"), err=True)
        raise typer.Exit(code=1)

    typer.echo(song.display)
    res = run_tap_sync(editor, read_command=input, echo=typer.echo, adjust_step_s=cfg.adjust_step_s)
    if res is not None and not isinstance(res, Saved):
        raise typer.Exit(code=1)


@app.command()
def play(
    song_id: str | None = typer.Argument(None, help="Stored song to play"),
    lrc_path: Path | None = typer.Option(None, "--lrc", help="Play an LRC file instead of a stored song"),
    player: str | None = typer.Option(None, "--player", help="MPRIS service or short name (e.g. vlc)"),
    stopwatch: bool = typer.Option(False, "--stopwatch", help="Follow a wall clock instead of a player"),
    context_lines: int | None = typer.Option(None, "--context", help="Lines above the current line"),
    no_alt_screen: bool = typer.Option(False, "--no-alt-screen", help="Do not use alternate screen buffer"),
):
    """Show synced lyrics karaoke-style, following playback."""
    cfg = load_config()
    if lrc_path is not None:
        doc = parse_lrc(lrc_path.read_text(encoding="utf-8"))
        title = doc.title or lrc_path.stem
    elif song_id is not None:
        loaded = _load_document(_open_store(cfg), song_id)
        if loaded is None:
            typer.echo(t("lyrics_not_synced"))
            return
        doc = loaded
        title = doc.title or song_id
    else:
        raise typer.BadParameter("give a SONG_ID or --lrc")

    if not doc.lines:
        typer.echo(t("no_synced_content"), err=True)
        raise typer.Exit(code=1)
    if doc.artist:
        title = f"{doc.artist} - {title}"

    transport = _open_transport(cfg, player, stopwatch)
    if stopwatch:
        transport.play()

    renderer = AnsiRenderer(use_alt_screen=cfg.use_alt_screen and not no_alt_screen)
    try:
        with renderer:
            play_loop(
                doc,
                transport,
                renderer,
                title=title,
                tick_s=1.0 / max(cfg.poll_hz, 1.0),
                context_lines=context_lines if context_lines is not None else cfg.context_lines,
            )
    except KeyboardInterrupt:
        pass


@app.command()
def players():
    """List available MPRIS players."""
    for p in MprisClient.list_players():
        typer.echo(p)


@app.command()
def config(
    lang: str | None = typer.Option(None, "--lang", help="UI language: EN or FR"),
):
    """Show or change settings."""
    if lang is not None:
        if lang.upper() not in SUPPORTED_LANGS:
            raise typer.BadParameter(f"lang must be one of: {', '.join(SUPPORTED_LANGS)}")
        save_config_lang(lang)
        set_lang(lang)
        typer.echo(t("lang_saved", lang=lang.upper()))
        return
    cfg = load_config()
    typer.echo(f"lang={cfg.lang}")
    typer.echo(f"backend={cfg.backend}")
    typer.echo(f"store_db_path={cfg.store_db_path}")
    typer.echo(f"request_timeout_s={cfg.request_timeout_s}")
    typer.echo(f"poll_hz={cfg.poll_hz}")


def main() -> None:
    app()


if __name__ == "__main__":
    main()
