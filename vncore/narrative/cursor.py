from __future__ import annotations

import logging
import threading
from contextlib import contextmanager
from enum import Enum, auto
from typing import Any, List, Optional, Tuple

from vncore.errors import InvalidChoice
from vncore.events import DialogueEvent, EventBus
from vncore.narrative.reveal import RevealParams, TextRevealTimer
from vncore.narrative.types import Choice, DialogueNode, StoryGraph
from vncore.settings import CursorCfg
from vncore.state.flags import FlagStore

logger = logging.getLogger(__name__)


class CursorState(Enum):
    IDLE = auto()
    AWAITING_REVEAL = auto()    # Text animating
    AWAITING_ADVANCE = auto()   # Text done, no choices; waiting for delay or advance()
    AWAITING_CHOICE = auto()    # Choices shown
    ENDED = auto()


class DialogueCursor:
    """
    Walks a StoryGraph one node at a time.

    The host drives it with tick(dt) and forwards skip_reveal(),
    select_choice() and advance(). Everything the host should show comes
    back as events on `self.events`; nothing here renders.

    Events raised during an operation are delivered once the operation has
    finished, so listeners always see a settled cursor and may call back in.
    """
    def __init__(self,
                 flags: FlagStore,
                 events: Optional[EventBus] = None,
                 reveal: Optional[RevealParams] = None,
                 options: Optional[CursorCfg] = None,
                 name: str = "main"):
        self.flags = flags
        self.events = events or EventBus()
        self.reveal = reveal or RevealParams()
        self.options = options or CursorCfg()
        self.name = name

        self._lock = threading.RLock()
        self._depth = 0
        self._pending: List[Tuple[DialogueEvent, dict]] = []
        self._hops = 0

        self._state = CursorState.IDLE
        self._graph: Optional[StoryGraph] = None
        self._node: Optional[DialogueNode] = None
        self._timer: Optional[TextRevealTimer] = None
        self._choices: Tuple[Choice, ...] = ()
        self._advance_wait: Optional[float] = None

    # ------------------------------------------------------------------ #
    # Commands
    # ------------------------------------------------------------------ #
    def start(self, graph: StoryGraph, node_id: Any = None) -> DialogueNode:
        """
        Begin (or restart) at `node_id`, default the graph's start node.
        Raises NodeNotFound and leaves the cursor as it was if the id is unknown.
        """
        with self._transition():
            node = graph.get_node(graph.start if node_id is None else node_id)
            # Undelivered events belong to the line being replaced
            self._pending.clear()
            self._graph = graph
            logger.info("Dialogue '%s' started at node '%s'", graph.name, node.id)
            self._enter(node)
            return node

    def tick(self, dt: float) -> None:
        with self._transition():
            if self._state is CursorState.AWAITING_REVEAL:
                node, timer = self._node, self._timer
                count = timer.tick(dt)
                if count is not None:
                    self._emit(DialogueEvent.REVEAL_PROGRESS, node=node, count=count)
                if timer.done:
                    self._reveal_finished()
            elif self._state is CursorState.AWAITING_ADVANCE and self._advance_wait is not None:
                self._advance_wait -= max(0.0, dt)
                if self._advance_wait <= 0.0:
                    self._leave(self._node.next)

    def skip_reveal(self) -> bool:
        """ Show the whole line now. Only meaningful while text is animating. """
        with self._transition():
            if self._state is not CursorState.AWAITING_REVEAL:
                return False
            before = self._timer.revealed
            self._timer.skip()
            if self._timer.revealed != before:
                self._emit(DialogueEvent.REVEAL_PROGRESS, node=self._node, count=self._timer.revealed)
            self._reveal_finished()
            return True

    def advance(self) -> bool:
        """ Move on from a finished line that has no choices. """
        with self._transition():
            if self._state is not CursorState.AWAITING_ADVANCE:
                return False
            self._leave(self._node.next)
            return True

    def select_choice(self, choice: Choice | int | str) -> Choice:
        """
        Pick one of the displayed choices by object, index or text.
        Anything else raises InvalidChoice and changes nothing.
        """
        with self._transition():
            picked = self._resolve_choice(choice)
            for flag in picked.sets:
                self.flags.set_flag(flag)
            logger.debug("Choice '%s' picked at node '%s'", picked.text, self._node.id)
            self._choices = ()
            self._leave(picked.target)
            return picked

    def reset(self) -> None:
        """ Drop any running dialogue and return to IDLE without events. """
        with self._lock:
            self._state = CursorState.IDLE
            self._graph = None
            self._node = None
            self._timer = None
            self._choices = ()
            self._advance_wait = None
            self._pending.clear()

    # ------------------------------------------------------------------ #
    # Queries
    # ------------------------------------------------------------------ #
    @property
    def state(self) -> CursorState:
        return self._state

    @property
    def graph(self) -> Optional[StoryGraph]:
        return self._graph

    @property
    def node(self) -> Optional[DialogueNode]:
        return self._node

    @property
    def choices(self) -> List[Choice]:
        return list(self._choices)

    @property
    def visible_text(self) -> str:
        return self._timer.visible_text if self._timer else ""

    @property
    def is_active(self) -> bool:
        return self._state in (CursorState.AWAITING_REVEAL,
                               CursorState.AWAITING_ADVANCE,
                               CursorState.AWAITING_CHOICE)

    def visible_choices(self, node: DialogueNode) -> Tuple[Choice, ...]:
        return tuple(c for c in node.choices if self.flags.has_all(c.requires))

    # ------------------------------------------------------------------ #
    # Internals
    # ------------------------------------------------------------------ #
    @contextmanager
    def _transition(self):
        outermost = False
        try:
            with self._lock:
                if self._depth == 0:
                    self._hops = 0
                self._depth += 1
                try:
                    yield
                finally:
                    self._depth -= 1
                    outermost = self._depth == 0
        finally:
            # Listeners run without the cursor lock held
            if outermost:
                self._flush()

    def _emit(self, kind: DialogueEvent, **data) -> None:
        self._pending.append((kind, data))

    def _flush(self) -> None:
        while True:
            with self._lock:
                if not self._pending:
                    return
                kind, data = self._pending.pop(0)
            self.events.publish(kind, source=self, **data)

    def _enter(self, node: DialogueNode) -> None:
        # Replacing the timer is what cancels an in-flight reveal
        self._node = node
        self._choices = ()
        self._advance_wait = None
        self._timer = TextRevealTimer(node.line.text, self.reveal.interval_for(node.line.speed), self.reveal)
        self._state = CursorState.AWAITING_REVEAL
        self._hops += 1
        self._emit(DialogueEvent.NODE_ENTERED, node=node)

        if node.line.is_empty:
            self._timer.skip()
            if self._hops > len(self._graph):
                logger.warning("Node '%s' loops through empty lines; waiting for advance()", node.id)
                self._state = CursorState.AWAITING_ADVANCE
                return
            self._reveal_finished()

    def _reveal_finished(self) -> None:
        node = self._node
        visible = self.visible_choices(node)
        if visible:
            self._choices = visible
            self._state = CursorState.AWAITING_CHOICE
            self._emit(DialogueEvent.CHOICES_AVAILABLE, node=node, choices=list(visible))
        elif node.next is None:
            self._leave(None)
        elif self.options.auto_advance and self.options.auto_advance_delay <= 0.0:
            self._leave(node.next)
        else:
            self._state = CursorState.AWAITING_ADVANCE
            self._advance_wait = self.options.auto_advance_delay if self.options.auto_advance else None

    def _leave(self, target: Optional[str]) -> None:
        node = self._node
        if node is not None and node.transition:
            self._emit(DialogueEvent.SCENE_TRANSITION, node=node, tag=node.transition)
        if target is None:
            self._state = CursorState.ENDED
            self._choices = ()
            self._advance_wait = None
            logger.info("Dialogue '%s' ended", self._graph.name if self._graph else "")
            self._emit(DialogueEvent.DIALOGUE_ENDED, node=node)
            return
        self._enter(self._graph.get_node(target))

    def _resolve_choice(self, choice: Choice | int | str) -> Choice:
        if self._state is not CursorState.AWAITING_CHOICE:
            raise InvalidChoice(f"No choices are being displayed (state {self._state.name})")
        shown = self._choices
        if isinstance(choice, bool):
            raise InvalidChoice(f"Not a choice: {choice!r}")
        if isinstance(choice, int):
            if 0 <= choice < len(shown):
                return shown[choice]
            raise InvalidChoice(f"Choice index {choice} out of range (0..{len(shown) - 1})")
        if isinstance(choice, str):
            for c in shown:
                if c.text == choice:
                    return c
            raise InvalidChoice(f"No displayed choice with text {choice!r}")
        if isinstance(choice, Choice) and choice in shown:
            return shown[shown.index(choice)]
        raise InvalidChoice(f"Choice {choice!r} is not currently displayed")

    def __repr__(self) -> str:
        nid = self._node.id if self._node else None
        return f"DialogueCursor({self.name!r}, state={self._state.name}, node={nid!r})"
