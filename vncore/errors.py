from __future__ import annotations
from typing import Iterable, List


class DialogueError(Exception):
    """ Base class for everything the dialogue core reports to its caller. """


class NodeNotFound(DialogueError, KeyError):
    """ A start or target id does not name a node in the graph. """
    def __init__(self, node_id, graph_name: str = ""):
        self.node_id = node_id
        self.graph_name = graph_name
        where = f" in '{graph_name}'" if graph_name else ""
        super().__init__(f"No dialogue node with id {node_id!r}{where}")

    def __str__(self) -> str:
        # KeyError would repr() the message
        return str(self.args[0])


class InvalidChoice(DialogueError, ValueError):
    """ Selection is not one of the currently displayed choices. """


class StoryValidationError(DialogueError, ValueError):
    """ A story graph failed validation at load time. """
    def __init__(self, source: str, problems: Iterable[str]):
        self.source = source
        self.problems: List[str] = list(problems)
        lines = "\n  - ".join(self.problems)
        super().__init__(f"{source}: invalid story graph\n  - {lines}")


class CorruptSaveData(DialogueError):
    """ A save blob could not be decoded. Never escapes FlagStore. """
