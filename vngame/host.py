from __future__ import annotations

import logging
import sys
import time
from pathlib import Path
from typing import Callable, Optional, TextIO

from vncore.context import StoryContext
from vncore.errors import DialogueError
from vncore.events import DialogueEvent, Event
from vncore.narrative.cursor import CursorState
from vncore.narrative.loader import load_story_file
from vncore.narrative.types import StoryGraph
from vncore.settings import AppCfg
from vncore.state.saves import SaveSlots

logger = logging.getLogger(__name__)

_PKG_ROOT = Path(__file__).resolve().parent


def content_path(rel: str) -> Path:
    """ Story paths in settings are relative to the vngame package. """
    p = Path(rel)
    return p if p.is_absolute() else _PKG_ROOT / p


class ConsoleHost:
    """
    Plays a story in the terminal. It is the render collaborator: it
    listens to cursor events, prints text as it is revealed and forwards
    the player's commands. Timing comes from a frame loop calling tick(dt).
    """

    def __init__(self,
                 cfg: AppCfg,
                 *,
                 out: Optional[TextIO] = None,
                 input_func: Optional[Callable[[str], str]] = None,
                 clock: Callable[[], float] = time.monotonic,
                 sleep: Callable[[float], None] = time.sleep,
                 instant: bool = False):
        self.cfg = cfg
        self.out = out if out is not None else sys.stdout
        self.input = input_func if input_func is not None else input
        self.clock = clock
        self.sleep = sleep
        self.instant = instant

        self.ctx = StoryContext(cfg)
        self.cursor = self.ctx.cursor()
        self.slots = SaveSlots(cfg.saves.directory)
        self.running = True
        self._shown = 0

        ev = self.ctx.events
        ev.subscribe(DialogueEvent.NODE_ENTERED, self._on_node_entered)
        ev.subscribe(DialogueEvent.REVEAL_PROGRESS, self._on_reveal)
        ev.subscribe(DialogueEvent.CHOICES_AVAILABLE, self._on_choices)
        ev.subscribe(DialogueEvent.SCENE_TRANSITION, self._on_transition)
        ev.subscribe(DialogueEvent.DIALOGUE_ENDED, self._on_ended)

    # ------------------------------------------------------------------ #
    # Main loop
    # ------------------------------------------------------------------ #
    def run(self, story: Optional[StoryGraph] = None, *, resume: bool = False) -> int:
        graph = story or load_story_file(content_path(self.cfg.story.path))
        if resume:
            self.ctx.load(self.slots, self.cfg.saves.slot)
        else:
            self.ctx.new_game()

        try:
            self.cursor.start(graph, self.cfg.story.start)
        except DialogueError as e:
            logger.error("Could not start '%s': %s", graph.name, e)
            return 1

        frame = 1.0 / max(1, self.cfg.fps)
        last = self.clock()
        while self.running and self.cursor.is_active:
            state = self.cursor.state
            if state is CursorState.AWAITING_CHOICE:
                self._prompt_choice()
                last = self.clock()
                continue
            if state is CursorState.AWAITING_ADVANCE and self._advance_wait_is_manual():
                self._prompt_advance()
                last = self.clock()
                continue

            # ---- update ----------------------------------------------------
            now = self.clock()
            self.cursor.tick(now - last)
            last = now
            self.sleep(frame)
        return 0

    def _advance_wait_is_manual(self) -> bool:
        return not self.cfg.cursor.auto_advance

    # ------------------------------------------------------------------ #
    # Input
    # ------------------------------------------------------------------ #
    def _prompt_choice(self) -> None:
        raw = self._read("> ")
        if raw is None or self._handle_command(raw):
            return
        try:
            self.cursor.select_choice(int(raw) - 1)
        except ValueError:
            # InvalidChoice is a ValueError too
            self._line(f"Pick a number between 1 and {len(self.cursor.choices)}.")

    def _prompt_advance(self) -> None:
        raw = self._read("")
        if raw is None or self._handle_command(raw):
            return
        self.cursor.advance()

    def _handle_command(self, raw: str) -> bool:
        cmd = raw.strip().lower()
        if cmd in ("q", "quit"):
            self.running = False
            return True
        if cmd in ("s", "save"):
            path = self.ctx.save(self.slots, self.cfg.saves.slot)
            self._line(f"[saved to {path}]")
            return True
        if cmd in ("l", "load"):
            ok = self.ctx.load(self.slots, self.cfg.saves.slot)
            self._line("[loaded]" if ok else "[no usable save]")
            return True
        return False

    def _read(self, prompt: str) -> Optional[str]:
        try:
            return self.input(prompt)
        except EOFError:
            self.running = False
            return None

    # ------------------------------------------------------------------ #
    # Event handlers (the "renderer")
    # ------------------------------------------------------------------ #
    def _on_node_entered(self, e: Event) -> None:
        line = e["node"].line
        self._shown = 0
        for label, key in (("bg", line.background), ("sprite", line.sprite), ("voice", line.voice)):
            if key:
                self._line(f"[{label}: {key}]")
        if line.speaker:
            self.out.write(f"{line.speaker}: ")
        if line.is_empty:
            self._line("")
        elif self.instant:
            self.cursor.skip_reveal()

    def _on_reveal(self, e: Event) -> None:
        text = e["node"].line.text
        count = e["count"]
        self.out.write(text[self._shown:count])
        self._shown = count
        if count >= len(text):
            self.out.write("\n")
        self.out.flush()

    def _on_choices(self, e: Event) -> None:
        for i, choice in enumerate(e["choices"], start=1):
            self._line(f"  {i}. {choice.text}")

    def _on_transition(self, e: Event) -> None:
        self._line(f"[scene: {e['tag']}]")

    def _on_ended(self, e: Event) -> None:
        self._line("[end]")

    def _line(self, text: str) -> None:
        self.out.write(text + "\n")
        self.out.flush()
