from __future__ import annotations
from dataclasses import dataclass, field
from typing import Optional, Dict, Tuple, Iterator, Any, List

from vncore.errors import NodeNotFound, StoryValidationError

# Reserved spellings for "no further node". Runtime sentinel is None.
TERMINAL_NAMES = frozenset({"", "end", "none", "null"})


def node_key(raw: Any) -> Optional[str]:
    """
    Normalize a node reference. Ints become strings (0 -> "0"). Negative ints,
    written as ints or as strings, and reserved names are terminal and map to None.
    """
    if raw is None or isinstance(raw, bool):
        return None
    if isinstance(raw, int):
        return None if raw < 0 else str(raw)
    s = str(raw).strip()
    if s.lower() in TERMINAL_NAMES:
        return None
    if s.startswith("-") and s[1:].isdigit():
        return None
    return s


def is_terminal(node_id: Optional[str]) -> bool:
    return node_id is None


@dataclass(frozen=True)
class DialogueLine:
    speaker: str = ""
    text: str = ""
    sprite: Optional[str] = None        # Character sprite key
    background: Optional[str] = None    # Background key
    voice: Optional[str] = None         # Voice clip reference
    speed: float = 0.0                  # Seconds per char; <= 0 uses the configured default

    @property
    def is_empty(self) -> bool:
        return self.text == ""


@dataclass(frozen=True)
class Choice:
    text: str
    target: Optional[str] = None        # None = end the dialogue
    requires: Tuple[str, ...] = ()      # All must be set to show this choice
    sets: Tuple[str, ...] = ()          # Set to True when chosen

    def __post_init__(self):
        object.__setattr__(self, "target", node_key(self.target))
        object.__setattr__(self, "requires", tuple(self.requires or ()))
        object.__setattr__(self, "sets", tuple(self.sets or ()))


@dataclass(frozen=True)
class DialogueNode:
    id: str
    line: DialogueLine = field(default_factory=DialogueLine)
    choices: Tuple[Choice, ...] = ()
    next: Optional[str] = None          # Fallback when no choice is shown; None = terminal
    transition: Optional[str] = None    # Scene tag to hand to the host on leaving

    def __post_init__(self):
        if self.id is not None and not isinstance(self.id, str):
            object.__setattr__(self, "id", str(self.id))
        object.__setattr__(self, "next", node_key(self.next))
        object.__setattr__(self, "choices", tuple(self.choices or ()))

    @property
    def has_choices(self) -> bool:
        return len(self.choices) > 0


class StoryGraph:
    """
    Read-only set of dialogue nodes keyed by id.

    Validation happens here so a broken graph never reaches a cursor: ids
    must be unique and every choice target / fallback must be terminal or
    an existing node.
    """
    def __init__(self, name: str, nodes: List[DialogueNode] | Tuple[DialogueNode, ...],
                 start: Optional[str] = None, source: str = ""):
        self.name = name
        self.source = source or name or "<story>"
        problems: List[str] = []

        index: Dict[str, DialogueNode] = {}
        for node in nodes:
            if node.id is None or node_key(node.id) is None:
                problems.append(f"node id {node.id!r} is reserved for the end of dialogue")
                continue
            if node.id in index:
                problems.append(f"duplicate node id '{node.id}'")
                continue
            index[node.id] = node

        if not index and not problems:
            problems.append("graph has no nodes")

        for node in index.values():
            if node.next is not None and node.next not in index:
                problems.append(f"node '{node.id}': next -> unknown node '{node.next}'")
            for i, ch in enumerate(node.choices):
                if ch.target is not None and ch.target not in index:
                    problems.append(
                        f"node '{node.id}': choice {i} ({ch.text!r}) -> unknown node '{ch.target}'"
                    )

        if start is None and index:
            start = next(iter(index))
        if start is not None and index and start not in index:
            problems.append(f"start node '{start}' does not exist")

        if problems:
            raise StoryValidationError(self.source, problems)

        self._nodes = index
        self.start: str = start or ""

    # ---------- lookup ----------
    def get_node(self, node_id: Any) -> DialogueNode:
        key = node_key(node_id)
        node = self._nodes.get(key) if key is not None else None
        if node is None:
            raise NodeNotFound(node_id, self.name)
        return node

    def has_node(self, node_id: Any) -> bool:
        key = node_key(node_id)
        return key is not None and key in self._nodes

    @property
    def nodes(self) -> Dict[str, DialogueNode]:
        return dict(self._nodes)

    def __len__(self) -> int:
        return len(self._nodes)

    def __iter__(self) -> Iterator[str]:
        return iter(self._nodes)

    def __contains__(self, node_id: Any) -> bool:
        return self.has_node(node_id)

    def __repr__(self) -> str:
        return f"StoryGraph(name={self.name!r}, nodes={len(self._nodes)}, start={self.start!r})"
