from __future__ import annotations
import json
from pathlib import Path
from typing import Dict, Any, List, Tuple
import yaml

from vncore.errors import StoryValidationError
from vncore.narrative.types import StoryGraph, DialogueNode, DialogueLine, Choice, node_key


def _text_block(raw: Any) -> str:
    """ say: allow str or list[str] (join lists into a single block) """
    if isinstance(raw, list):
        return "\n".join(str(s) for s in raw)
    if isinstance(raw, str):
        return raw
    return str(raw if raw is not None else "")


def _names(raw: Any) -> Tuple[str, ...]:
    """ Flag lists may be written as a single string or a list. """
    if raw is None:
        return ()
    if isinstance(raw, str):
        return (raw,) if raw.strip() else ()
    return tuple(str(s) for s in raw if str(s).strip())


def _opt_str(raw: Any) -> str | None:
    if raw is None:
        return None
    s = str(raw).strip()
    return s or None


def _iter_node_bodies(raw_nodes: Any, source: str):
    """
    Nodes are either a mapping {key: body} (file order preserved) or a
    list of bodies that carry their own `id`.
    """
    if isinstance(raw_nodes, dict):
        for key, body in raw_nodes.items():
            yield key, body
    elif isinstance(raw_nodes, list):
        for idx, body in enumerate(raw_nodes):
            if not isinstance(body, dict) or "id" not in body:
                raise StoryValidationError(source, [f"node #{idx} must be a mapping with an 'id'"])
            yield body["id"], body
    else:
        raise StoryValidationError(source, ["'nodes' must be a mapping or a list"])


def _parse_node(key: Any, body: Any, defaults: Dict[str, Any], source: str) -> DialogueNode:
    if not isinstance(body, dict):
        raise StoryValidationError(source, [f"node '{key}' must be a mapping"])

    raw_speed = body.get("speed", defaults.get("speed", 0.0))
    try:
        speed = float(raw_speed or 0.0)
    except (TypeError, ValueError) as e:
        raise StoryValidationError(source, [f"node '{key}': speed must be a number, got {raw_speed!r}"]) from e

    line = DialogueLine(
        speaker=str(body.get("speaker", defaults.get("speaker", "")) or ""),
        text=_text_block(body.get("say", body.get("text", ""))),
        sprite=_opt_str(body.get("sprite")),
        background=_opt_str(body.get("bg", body.get("background"))),
        voice=_opt_str(body.get("voice")),
        speed=speed,
    )

    # choices: list of {text, goto?, requires?, sets?}
    choices: List[Choice] = []
    for idx, c in enumerate(body.get("choices", []) or []):
        if not isinstance(c, dict):
            raise StoryValidationError(source, [f"node '{key}': choice {idx} must be a mapping"])
        choices.append(Choice(
            text=str(c.get("text") or ""),
            target=node_key(c.get("goto", c.get("target"))),
            requires=_names(c.get("requires")),
            sets=_names(c.get("sets")),
        ))

    return DialogueNode(
        id=str(key).strip() if isinstance(key, str) else key,
        line=line,
        choices=tuple(choices),
        next=node_key(body.get("next")),
        transition=_opt_str(body.get("transition")),
    )


def story_from_dict(data: Dict[str, Any], source: str = "<story>") -> StoryGraph:
    """
    Build a validated StoryGraph from parsed data:
        name: <str>
        start: <node id>            (optional, defaults to the first node)
        defaults: {speaker, speed}  (optional)
        nodes: { <key> : {say: <str or list>, choices: [...], next: <id>} }
    """
    if not isinstance(data, dict):
        raise StoryValidationError(source, ["top level must be a mapping"])

    raw_nodes = data.get("nodes")
    if not raw_nodes:
        raise StoryValidationError(source, ["'nodes' must be a non-empty mapping or list"])

    defaults = data.get("defaults", {}) or {}
    nodes = [_parse_node(key, body, defaults, source) for key, body in _iter_node_bodies(raw_nodes, source)]

    name = str(data.get("name") or Path(source).stem or "story")
    start = node_key(data.get("start")) if data.get("start") is not None else None
    return StoryGraph(name=name, nodes=nodes, start=start, source=source)


def load_story_file(path: str | Path) -> StoryGraph:
    """
    Loads a single YAML (or JSON) story file and returns a validated graph.
    Dangling references fail here, not during playback.
    """
    p = Path(path)
    with p.open("r", encoding="utf-8") as f:
        try:
            if p.suffix.lower() == ".json":
                data = json.load(f)
            else:
                data = yaml.safe_load(f) or {}
        except (json.JSONDecodeError, yaml.YAMLError) as e:
            raise StoryValidationError(str(p), [f"could not parse file: {e}"]) from e

    return story_from_dict(data, source=str(p))
