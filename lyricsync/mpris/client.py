from __future__ import annotations

from dataclasses import dataclass
import logging
from typing import Any

import dbus

from .errors import NoPlayersFound, PlayerUnavailable

logger = logging.getLogger(__name__)

_PLAYER_IFACE = "org.mpris.MediaPlayer2.Player"


@dataclass(frozen=True, slots=True)
class TrackInfo:
    title: str
    artist: str
    album: str
    length_s: float | None


def _to_str(value: Any) -> str:
    try:
        return str(value)
    except Exception:
        return ""


def _join_artist(value: Any) -> str:
    if isinstance(value, (list, tuple, dbus.Array)):
        return ", ".join(_to_str(x) for x in value if _to_str(x))
    return _to_str(value)


class MprisClient:
    def __init__(self, service_name: str):
        self.service_name = service_name
        self._bus = dbus.SessionBus()
        self._obj = self._bus.get_object(service_name, "/org/mpris/MediaPlayer2")
        self._props = dbus.Interface(self._obj, "org.freedesktop.DBus.Properties")
        self._player = dbus.Interface(self._obj, _PLAYER_IFACE)

    @staticmethod
    def list_players() -> list[str]:
        try:
            bus = dbus.SessionBus()
            return [s for s in bus.list_names() if s.startswith("org.mpris.MediaPlayer2.")]
        except dbus.DBusException as e:
            # In restricted environments (tests/sandbox/CI), connecting to the
            # session bus can fail (e.g. AccessDenied). Treat as "no players".
            logger.debug("Unable to connect to D-Bus session bus: %s", e)
            return []

    @staticmethod
    def pick_player(preferred: str | None = None) -> "MprisClient":
        players = MprisClient.list_players()
        if not players:
            raise NoPlayersFound("No active MPRIS players")

        if preferred:
            # allow passing short name like "vlc"
            for s in players:
                if s == preferred or s.endswith("." + preferred):
                    return MprisClient(s)
            logger.warning("Preferred player '%s' not found, falling back", preferred)

        # prefer Playing
        for s in players:
            try:
                c = MprisClient(s)
                if c.playback_status().lower() == "playing":
                    return c
            except (dbus.DBusException, PlayerUnavailable):
                continue

        return MprisClient(players[0])

    def playback_status(self) -> str:
        try:
            return _to_str(self._props.Get(_PLAYER_IFACE, "PlaybackStatus"))
        except dbus.DBusException as e:
            raise PlayerUnavailable(str(e)) from e

    def metadata(self) -> dict[str, Any]:
        try:
            md = self._props.Get(_PLAYER_IFACE, "Metadata")
            # dbus.Dictionary acts like dict
            return dict(md)
        except dbus.DBusException as e:
            raise PlayerUnavailable(str(e)) from e

    def position_s(self) -> float:
        """
        MPRIS Position is microseconds.
        """
        try:
            pos_us = self._props.Get(_PLAYER_IFACE, "Position")
            return int(pos_us) / 1_000_000
        except dbus.DBusException as e:
            raise PlayerUnavailable(str(e)) from e

    def _call(self, method: str, *args: Any) -> None:
        try:
            getattr(self._player, method)(*args)
        except dbus.DBusException as e:
            raise PlayerUnavailable(str(e)) from e

    def play(self) -> None:
        self._call("Play")

    def pause(self) -> None:
        self._call("Pause")

    def seek_to(self, seconds: float) -> None:
        # Seek is relative; SetPosition would need the current track id
        delta_us = int((max(0.0, seconds) - self.position_s()) * 1_000_000)
        self._call("Seek", dbus.Int64(delta_us))

    def track_info(self) -> TrackInfo:
        md = self.metadata()
        length_us = md.get("mpris:length")
        return TrackInfo(
            title=_to_str(md.get("xesam:title", "")) or "",
            artist=_join_artist(md.get("xesam:artist", [])) or "",
            album=_to_str(md.get("xesam:album", "")) or "",
            length_s=int(length_us) / 1_000_000 if length_us else None,
        )


class MprisTransport:
    """PlaybackTransport backed by an MPRIS player."""

    def __init__(self, client: MprisClient):
        self.client = client

    def play(self) -> None:
        self.client.play()

    def pause(self) -> None:
        self.client.pause()

    def seek(self, seconds: float) -> None:
        self.client.seek_to(seconds)

    def position(self) -> float:
        return self.client.position_s()
