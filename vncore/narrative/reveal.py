from __future__ import annotations

import bisect
from dataclasses import dataclass
from typing import Callable, Iterator, List, Optional


@dataclass
class RevealParams:
    default_interval: float = 0.05      # Seconds per char when the line does not set one

    # Optional punctuation pauses, applied before the NEXT char
    pause_short_s: float = 0.0          # Comma, semicolon, colon
    pause_long_s: float = 0.0           # Period, question, exclamation, new line
    pause_ellipsis_s: float = 0.0       # Inside "..."

    def interval_for(self, speed: float) -> float:
        return speed if speed > 0 else self.default_interval


def compute_schedule(text: str, interval: float, rp: Optional[RevealParams] = None) -> List[float]:
    """
    Returns cumulative reveal times: the k-th entry (0-based) is the elapsed
    time at which k+1 characters are visible.
    - Each char costs `interval` plus any pause carried from the previous char.
    - Punctuation shows immediately, then pauses BEFORE the next char.
    - Ellipsis '...' pauses before the second dot only.
    """
    rp = rp or RevealParams()
    base = max(0.0, float(interval))
    chars = list(text or "")
    n = len(chars)

    times: List[float] = []
    acc = 0.0
    carry = 0.0
    i = 0
    while i < n:
        c = chars[i]
        acc += base + carry
        carry = 0.0
        times.append(acc)

        if c == "." and i + 2 < n and chars[i + 1] == "." and chars[i + 2] == ".":
            # Second dot waits for the ellipsis pause, third is plain
            acc += base + rp.pause_ellipsis_s
            times.append(acc)
            acc += base
            times.append(acc)
            i += 3
            carry = rp.pause_long_s
            continue

        if c in ",;:":
            carry = rp.pause_short_s
        elif c in ".!?\n":
            carry = rp.pause_long_s
        i += 1

    return times


class TextRevealTimer:
    """
    Per-character reveal progress for one line, driven by tick(dt).
    No rendering here: callers read `revealed` / `visible_text`.
    """
    def __init__(self,
                 text: str,
                 interval: float,
                 params: Optional[RevealParams] = None,
                 on_complete: Optional[Callable[[], None]] = None):
        self.text = text or ""
        self.interval = float(interval)
        self.params = params or RevealParams()
        self.on_complete = on_complete
        self._schedule = compute_schedule(self.text, self.interval, self.params)
        self.restart()

    # ---------- lifecycle ----------
    def restart(self) -> None:
        self.elapsed: float = 0.0
        self.revealed: int = 0
        self._signaled = False

    def tick(self, dt: float) -> Optional[int]:
        """
        Advance by dt seconds. Returns the new revealed count if it changed,
        otherwise None. Completion fires once, on the tick that finishes the line.
        """
        if self._signaled:
            return None
        self.elapsed += max(0.0, dt)
        count = bisect.bisect_right(self._schedule, self.elapsed + 1e-9)
        changed = count != self.revealed
        self.revealed = count
        if self.revealed >= self.total:
            self._complete()
        return count if changed else None

    def skip(self) -> bool:
        """ Show everything now. Returns False if the line had already completed. """
        if self._signaled:
            return False
        self.revealed = self.total
        self.elapsed = self.duration
        self._complete()
        return True

    def _complete(self) -> None:
        if self._signaled:
            return
        self._signaled = True
        if self.on_complete:
            self.on_complete()

    # ---------- queries ----------
    @property
    def total(self) -> int:
        return len(self.text)

    @property
    def duration(self) -> float:
        return self._schedule[-1] if self._schedule else 0.0

    @property
    def done(self) -> bool:
        return self._signaled

    @property
    def visible_text(self) -> str:
        return self.text[:self.revealed]

    def progress(self) -> Iterator[int]:
        """
        Lazily reveal the rest of the line one char at a time, yielding each
        new count, then signal completion. Yields nothing once the line has
        completed (by ticks, skip or an earlier progress()); restart() re-arms it.
        """
        while not self._signaled and self.revealed < self.total:
            self.revealed += 1
            self.elapsed = max(self.elapsed, self._schedule[self.revealed - 1])
            yield self.revealed
        self._complete()

    def __repr__(self) -> str:
        return f"TextRevealTimer({self.revealed}/{self.total}, done={self.done})"
