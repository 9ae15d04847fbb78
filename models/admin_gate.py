import hmac
import time
from collections import deque

UNLOCK_TAPS = 3
UNLOCK_WINDOW_MS = 900


def unlock_gesture(event_timestamps, window_ms=UNLOCK_WINDOW_MS, needed=UNLOCK_TAPS):
    """True iff `needed` activations fall inside the window ending at the latest one.

    Timestamps are milliseconds, oldest first.
    """
    if not event_timestamps:
        return False
    latest = event_timestamps[-1]
    recent = [t for t in event_timestamps if latest - t < window_ms]
    return len(recent) >= needed


class TapTracker:
    """Rolling buffer of recent title taps on the Start screen."""

    def __init__(self, window_ms=UNLOCK_WINDOW_MS, needed=UNLOCK_TAPS, clock=None):
        self.window_ms = window_ms
        self.needed = needed
        self._clock = clock or (lambda: time.monotonic() * 1000)
        self._taps = deque()

    def register(self, now_ms=None):
        now = self._clock() if now_ms is None else now_ms
        while self._taps and now - self._taps[0] >= self.window_ms:
            self._taps.popleft()
        self._taps.append(now)
        unlocked = unlock_gesture(list(self._taps), self.window_ms, self.needed)
        if unlocked:
            self._taps.clear()
        return unlocked

    def __len__(self):
        return len(self._taps)


class AdminGate:
    def __init__(self, admin_pin, tracker=None):
        # Single shared static PIN, kept at parity with the deployed kiosk
        self.admin_pin = str(admin_pin)
        self.tracker = tracker or TapTracker()
        self.prompt_open = False

    def check_pin(self, candidate):
        """One attempt per opened prompt; refused when no prompt is open."""
        if not self.prompt_open:
            return False
        self.prompt_open = False
        if not isinstance(candidate, str):
            return False
        return hmac.compare_digest(candidate.encode('utf-8'), self.admin_pin.encode('utf-8'))

    def tap(self, now_ms=None):
        if self.tracker.register(now_ms):
            self.prompt_open = True
        return self.prompt_open

    def long_press(self):
        self.prompt_open = True
        return True

    def cancel_prompt(self):
        self.prompt_open = False
