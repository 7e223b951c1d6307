from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Dict, List, Optional, Set, Tuple

from vncore.narrative.cursor import DialogueCursor
from vncore.narrative.types import StoryGraph
from vncore.state.flags import FlagStore

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class InteractiveElement:
    """ Something in a scene the player can poke to start a dialogue. """
    name: str
    description: str = ""
    dialogue: Optional[StoryGraph] = None
    start: Any = None                   # Node id, None = the graph's start
    one_time: bool = False
    requires: Tuple[str, ...] = ()


class InteractionRegistry:
    """
    Decides which elements are usable right now and starts their dialogue.
    Hit-testing belongs to the host; this only answers "may I?" and "go".
    """
    def __init__(self, flags: FlagStore, cursor: DialogueCursor) -> None:
        self.flags = flags
        self.cursor = cursor
        self._elements: Dict[str, InteractiveElement] = {}
        self._used: Set[str] = set()

    def register(self, element: InteractiveElement) -> None:
        if element.name in self._elements:
            raise ValueError(f"Interactive element '{element.name}' is already registered")
        self._elements[element.name] = element

    def get(self, name: str) -> InteractiveElement:
        return self._elements[name]

    def can_interact(self, name: str) -> bool:
        el = self._elements.get(name)
        if el is None:
            return False
        if el.one_time and name in self._used:
            return False
        return self.flags.has_all(el.requires)

    def available(self) -> List[InteractiveElement]:
        return [el for name, el in self._elements.items() if self.can_interact(name)]

    def interact(self, name: str) -> bool:
        """
        Start the element's dialogue. Refused while another dialogue is
        running, when flags are missing, or a one-time element was used.
        """
        if self.cursor.is_active or not self.can_interact(name):
            return False
        el = self._elements[name]
        logger.info("Interacting with: %s", name)
        if el.dialogue is not None:
            self.cursor.start(el.dialogue, el.start)
        if el.one_time:
            self._used.add(name)
        return True

    def reset(self, name: Optional[str] = None) -> None:
        if name is None:
            self._used.clear()
        else:
            self._used.discard(name)
