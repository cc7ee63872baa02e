# app/services/playback_bridge.py
"""
Player side of the web player.

Wires the Web Playback SDK widget to the transport controls. The widget
itself (audio decode, device registration) is external: whatever hosts it
forwards its notifications here through sdk_loaded(), on_ready(),
on_not_ready() and on_state_changed().

States:

    UNINITIALIZED --initialize()--> AWAITING_READY --ready--> READY
    READY / AWAITING_READY --not_ready--> DISCONNECTED --ready--> READY

Without a READY widget the bridge degrades to the track's preview clip.
"""
import logging
import threading
from dataclasses import dataclass, field
from enum import Enum
from typing import Callable, Dict, List, Optional

from app.services.errors import SpotifyError
from app.services.web_player_client import WebPlayerClient

logger = logging.getLogger(__name__)

PREMIUM_REQUIRED_MESSAGE = "Playback requires Premium or track preview not available."
CONTROLS_REQUIRE_SDK_MESSAGE = "Use SDK / Premium to control."
DEFAULT_VOLUME = 0.5


class BridgeState(str, Enum):
    UNINITIALIZED = "uninitialized"
    AWAITING_READY = "awaiting_ready"
    READY = "ready"
    DISCONNECTED = "disconnected"


class PlayOutcome(str, Enum):
    REMOTE = "remote"            # sent to the SDK device through /api/play
    PREVIEW = "preview"          # fallback preview clip
    UNAVAILABLE = "unavailable"  # user was told Premium is required


@dataclass
class NowPlaying:
    name: str
    artists: List[str] = field(default_factory=list)

    @property
    def label(self) -> str:
        return f"{self.name} - {', '.join(self.artists)}" if self.artists else self.name

    @classmethod
    def from_track(cls, track: Dict) -> "NowPlaying":
        return cls(
            name=track.get("name", ""),
            artists=[a.get("name", "") for a in track.get("artists") or []],
        )


class PreviewAudio:
    """
    Fallback audio element for 30 second preview clips.

    Only tracks the source and paused flag; actually producing sound is up to
    whatever renders the player.
    """

    def __init__(self):
        self.src: Optional[str] = None
        self.paused = True
        self.current_time = 0.0

    def load(self, url: str) -> None:
        self.src = url
        self.current_time = 0.0

    def play(self) -> None:
        if self.src:
            self.paused = False

    def pause(self) -> None:
        self.paused = True

    def stop(self) -> None:
        self.paused = True
        self.current_time = 0.0


def _log_notice(message: str) -> None:
    logger.warning(message)


def _run_in_background(task: Callable[[], None]) -> None:
    threading.Thread(target=task, daemon=True).start()


class PlaybackBridge:
    def __init__(
        self,
        client: WebPlayerClient,
        preview: Optional[PreviewAudio] = None,
        notify: Optional[Callable[[str], None]] = None,
        widget_volume: Optional[Callable[[float], None]] = None,
        dispatch: Optional[Callable[[Callable[[], None]], None]] = None,
    ):
        self._client = client
        self._preview = preview or PreviewAudio()
        self._notify = notify or _log_notice
        self._widget_volume = widget_volume
        self._dispatch = dispatch or _run_in_background
        self._lock = threading.Lock()
        self._sdk_loaded = threading.Event()
        self._listeners: List[Callable[["PlaybackBridge"], None]] = []

        self.state = BridgeState.UNINITIALIZED
        self.device_id: Optional[str] = None
        self.is_playing = False
        self.now_playing: Optional[NowPlaying] = None
        self.seek = 0
        self.volume = DEFAULT_VOLUME

    # --------------------------
    # Subscribers
    # --------------------------
    def subscribe(self, listener: Callable[["PlaybackBridge"], None]) -> Callable[[], None]:
        with self._lock:
            self._listeners.append(listener)

        def unsubscribe():
            with self._lock:
                if listener in self._listeners:
                    self._listeners.remove(listener)

        return unsubscribe

    def _emit(self) -> None:
        with self._lock:
            listeners = list(self._listeners)
        for listener in listeners:
            listener(self)

    @property
    def connected(self) -> bool:
        return self.state == BridgeState.READY and bool(self.device_id)

    @property
    def preview(self) -> PreviewAudio:
        return self._preview

    # --------------------------
    # Initialization
    # --------------------------
    def sdk_loaded(self) -> None:
        """The global "SDK ready" notification."""
        self._sdk_loaded.set()

    def initialize(self, sdk_present: bool = False, timeout: Optional[float] = None) -> bool:
        """
        Wait once for the SDK, then check there is a token for it.

        Returns True when the widget may connect (state AWAITING_READY or
        later). False leaves the bridge in preview-only mode.
        """
        if self.state != BridgeState.UNINITIALIZED:
            return True

        if sdk_present:
            self._sdk_loaded.set()
        if not self._sdk_loaded.wait(timeout):
            logger.info("Web Playback SDK did not load within %ss", timeout)
            return False

        try:
            token = self._client.get_token()
        except SpotifyError as e:
            logger.warning("Could not fetch a token for the player: %s", e)
            return False
        if not token:
            return False

        with self._lock:
            self.state = BridgeState.AWAITING_READY
        self._emit()
        return True

    # --------------------------
    # Widget notifications
    # --------------------------
    def on_ready(self, device_id: str) -> None:
        with self._lock:
            self.device_id = device_id
            self.state = BridgeState.READY
        logger.info("Player ready %s", device_id)
        self._emit()

        # fire-and-forget：不擋住送通知的 thread，失敗只記 log
        def transfer():
            try:
                self._client.transfer(device_id)
            except SpotifyError as e:
                logger.warning("Transfer to %s failed: %s", device_id, e)

        self._dispatch(transfer)

    def on_not_ready(self, device_id: Optional[str] = None) -> None:
        with self._lock:
            self.device_id = None
            self.state = BridgeState.DISCONNECTED
        logger.info("Player went offline %s", device_id)
        self._emit()

    def on_state_changed(self, payload: Optional[Dict]) -> None:
        # null → no active session on this device
        if not payload:
            return

        current = (payload.get("track_window") or {}).get("current_track")
        duration = payload.get("duration") or 0
        position = payload.get("position") or 0

        with self._lock:
            self.is_playing = not payload.get("paused", True)
            if current:
                self.now_playing = NowPlaying.from_track(current)
            self.seek = int(position / duration * 100) if duration else 0
        self._emit()

    # --------------------------
    # User actions
    # --------------------------
    def play_track(self, track: Dict) -> PlayOutcome:
        """
        Device connected → /api/play on it. Otherwise, or when that request
        fails, fall back to the preview clip, and failing that tell the user.
        """
        with self._lock:
            self.now_playing = NowPlaying.from_track(track)
        self._preview.stop()

        if self.connected:
            try:
                self._client.play(uris=[track["uri"]], device_id=self.device_id)
            except SpotifyError as e:
                logger.warning("Play request for %s failed: %s", track.get("uri"), e)
            else:
                self._emit()
                return PlayOutcome.REMOTE

        preview_url = track.get("preview_url")
        if preview_url:
            self._preview.load(preview_url)
            self._preview.play()
            with self._lock:
                self.is_playing = True
            self._emit()
            return PlayOutcome.PREVIEW

        with self._lock:
            self.is_playing = False
        self._notify(PREMIUM_REQUIRED_MESSAGE)
        self._emit()
        return PlayOutcome.UNAVAILABLE

    def toggle(self) -> None:
        if not self.connected:
            if not self._preview.src:
                return
            if self._preview.paused:
                self._preview.play()
            else:
                self._preview.pause()
            with self._lock:
                self.is_playing = not self._preview.paused
            self._emit()
            return

        # Remote state comes back through on_state_changed.
        try:
            if self.is_playing:
                self._client.pause(device_id=self.device_id)
            else:
                self._client.play(device_id=self.device_id)
        except SpotifyError as e:
            logger.warning("Toggle playback failed: %s", e)

    def next(self) -> None:
        self._skip("next")

    def previous(self) -> None:
        self._skip("previous")

    def _skip(self, direction: str) -> None:
        if not self.connected:
            self._notify(CONTROLS_REQUIRE_SDK_MESSAGE)
            return
        try:
            getattr(self._client, direction)(device_id=self.device_id)
        except SpotifyError as e:
            logger.warning("Skip %s failed: %s", direction, e)

    def set_volume(self, value: float) -> bool:
        """
        Forward a 0..1 volume to the widget. Ignored (returns False) until
        initialize() has given us a widget to talk to.
        """
        if self.state == BridgeState.UNINITIALIZED or self._widget_volume is None:
            return False

        value = min(max(float(value), 0.0), 1.0)
        with self._lock:
            self.volume = value
        self._widget_volume(value)
        self._emit()
        return True
