from __future__ import annotations

from typing import Dict, Optional

from vncore.events import EventBus
from vncore.narrative.cursor import DialogueCursor
from vncore.narrative.reveal import RevealParams
from vncore.settings import AppCfg, reveal_params_from
from vncore.state.flags import FlagStore
from vncore.state.saves import DEFAULT_SLOT, SaveSlots


class StoryContext:
    """
    Owns the game state for one session: a FlagStore, the event bus and the
    dialogue cursors that share them. Pass it (or its parts) to whatever
    needs them instead of looking up globals.
    """
    def __init__(self,
                 cfg: Optional[AppCfg] = None,
                 flags: Optional[FlagStore] = None,
                 events: Optional[EventBus] = None):
        self.cfg = cfg or AppCfg()
        self.flags = flags or FlagStore()
        self.events = events or EventBus()
        self.reveal: RevealParams = reveal_params_from(self.cfg)
        self._cursors: Dict[str, DialogueCursor] = {}

    def cursor(self, name: str = "main") -> DialogueCursor:
        """ Get a cursor by name, creating it on first use. """
        cur = self._cursors.get(name)
        if cur is None:
            cur = DialogueCursor(self.flags, self.events, reveal=self.reveal,
                                 options=self.cfg.cursor, name=name)
            self._cursors[name] = cur
        return cur

    @property
    def cursors(self) -> Dict[str, DialogueCursor]:
        return dict(self._cursors)

    def new_game(self) -> None:
        for cur in self._cursors.values():
            cur.reset()
        self.flags.new_game()

    def save(self, slots: SaveSlots, slot: str = DEFAULT_SLOT):
        return slots.save(self.flags, slot)

    def load(self, slots: SaveSlots, slot: str = DEFAULT_SLOT) -> bool:
        return slots.load(self.flags, slot)
