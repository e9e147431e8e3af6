# app/services/scan_normalizer.py
"""
Barcode input normalization.

Three input channels feed the same canonical token:
  - keystroke: USB scanners type the code as a fast key burst ending in Enter
  - camera:    a decoder fires the same value many times per second while a card is held up
  - manual:    an officer types the number and submits

Every channel ends in normalize_token(): control characters removed, whitespace
trimmed, leading zero padding stripped (printed cards carry zeros the stored
barcodes don't). Nothing here raises; "no event" is None.

Timestamps are seconds on the caller's clock (time.monotonic() for live input).
"""

import re
import threading
import time
from dataclasses import dataclass
from enum import Enum
from typing import Optional

from app.config import settings
from app.utils.logger import get_logger

logger = get_logger(__name__)

_CONTROL_CHARS = re.compile(r"[\x00-\x1f\x7f]")

ENTER_KEYS = {"Enter", "\r", "\n"}


class ScanSource(str, Enum):
    KEYSTROKE = "keystroke"
    CAMERA = "camera"
    MANUAL = "manual"


@dataclass
class ScanEvent:
    raw: str
    source: ScanSource
    timestamp: float


def normalize_token(raw) -> Optional[str]:
    """Canonical token for raw scanner/typed input, or None if nothing usable remains."""
    if not isinstance(raw, str):
        return None
    token = _CONTROL_CHARS.sub("", raw)
    # "0 0123" must settle in one call, so strip until stable
    while True:
        cleaned = token.strip().lstrip("0")
        if cleaned == token:
            break
        token = cleaned
    return token or None


class KeystrokeBuffer:
    """Assembles a USB scanner burst; slow typing never produces an event."""

    def __init__(self, idle_window: float = None):
        if idle_window is None:
            idle_window = settings.SCAN_IDLE_WINDOW_MS / 1000.0
        self.idle_window = idle_window
        self._buffer = ""
        self._last_at: Optional[float] = None

    @property
    def pending(self) -> str:
        return self._buffer

    def reset(self):
        self._buffer = ""
        self._last_at = None

    def feed(self, key: str, timestamp: float) -> Optional[str]:
        if self._last_at is not None and timestamp - self._last_at > self.idle_window:
            self._buffer = ""

        if key in ENTER_KEYS:
            burst, self._buffer, self._last_at = self._buffer, "", None
            if not burst:
                return None
            return normalize_token(burst)

        # Shift, Tab, ArrowLeft ...
        if not key or len(key) > 1:
            return None

        self._buffer += key
        self._last_at = timestamp
        return None


class CameraDebouncer:
    """
    Accepts a camera decode once per card presentation. The same value is
    ignored until the re-arm window has passed; a different value is accepted.
    """

    def __init__(self, rearm_window: float = None):
        self.rearm_window = settings.CAMERA_REARM_SECONDS if rearm_window is None else rearm_window
        self._last_token: Optional[str] = None
        self._accepted_at: Optional[float] = None

    def reset(self):
        self._last_token = None
        self._accepted_at = None

    def armed_for(self, token: str, timestamp: float) -> bool:
        if self._last_token is None or token != self._last_token:
            return True
        return timestamp - self._accepted_at >= self.rearm_window

    def offer(self, text: str, timestamp: float) -> Optional[str]:
        token = normalize_token(text)
        if token is None or not self.armed_for(token, timestamp):
            return None
        self._last_token = token
        self._accepted_at = timestamp
        return token


class ScanSession:
    """Per-terminal input state. Routes ScanEvents to their channel."""

    def __init__(self, idle_window: float = None, rearm_window: float = None):
        self.keystrokes = KeystrokeBuffer(idle_window)
        self.camera = CameraDebouncer(rearm_window)
        self.active_source: Optional[ScanSource] = None

    def activate(self, source: ScanSource):
        """Switching source cancels any half-read burst and re-arms the camera."""
        self.keystrokes.reset()
        self.camera.reset()
        self.active_source = source

    def handle(self, event: ScanEvent) -> Optional[str]:
        if event.source == ScanSource.KEYSTROKE:
            return self.keystrokes.feed(event.raw, event.timestamp)
        if event.source == ScanSource.CAMERA:
            return self.camera.offer(event.raw, event.timestamp)
        return normalize_token(event.raw)


class ScanSessionRegistry:
    """
    In-process sessions keyed by terminal id, shared across request threads.

    Terminal ids come straight from the URL, so the registry is bounded: a
    session idle for `idle_ttl` seconds (on the server clock, not the caller's
    event timestamps) is dropped, and past `max_sessions` the least recently
    used one goes. A dropped terminal simply starts a fresh session next time.
    """

    def __init__(self, idle_ttl: float = None, max_sessions: int = None, clock=time.monotonic):
        self.idle_ttl = settings.SCAN_SESSION_IDLE_SECONDS if idle_ttl is None else idle_ttl
        self.max_sessions = settings.SCAN_SESSION_LIMIT if max_sessions is None else max_sessions
        self._clock = clock
        self._sessions: dict = {}
        self._last_seen: dict = {}
        self._lock = threading.Lock()

    def __len__(self):
        with self._lock:
            return len(self._sessions)

    def _evict(self, now: float):
        idle = [tid for tid, seen in self._last_seen.items() if now - seen > self.idle_ttl]
        for tid in idle:
            self._drop(tid)
        while len(self._sessions) > self.max_sessions:
            self._drop(min(self._last_seen, key=self._last_seen.get))
        if idle:
            logger.info(f"[SCAN] dropped {len(idle)} idle terminal session(s)")

    def _drop(self, terminal_id: str):
        self._sessions.pop(terminal_id, None)
        self._last_seen.pop(terminal_id, None)

    def _touch(self, terminal_id: str) -> ScanSession:
        # caller holds the lock
        now = self._clock()
        session = self._sessions.get(terminal_id)
        if session is None:
            session = self._sessions[terminal_id] = ScanSession()
        self._last_seen[terminal_id] = now
        self._evict(now)
        return session

    def get(self, terminal_id: str) -> ScanSession:
        with self._lock:
            return self._touch(terminal_id)

    def handle(self, terminal_id: str, raw: str, source: ScanSource, timestamp: float = None) -> Optional[str]:
        ts = time.monotonic() if timestamp is None else timestamp
        with self._lock:
            token = self._touch(terminal_id).handle(ScanEvent(raw=raw, source=source, timestamp=ts))
        if token:
            logger.info(f"[SCAN] terminal={terminal_id} source={source.value} token={token}")
        return token

    def activate(self, terminal_id: str, source: ScanSource):
        with self._lock:
            self._touch(terminal_id).activate(source)

    def end(self, terminal_id: str) -> bool:
        with self._lock:
            self._last_seen.pop(terminal_id, None)
            return self._sessions.pop(terminal_id, None) is not None


scan_sessions = ScanSessionRegistry()
