from __future__ import annotations

import json
import logging
import threading
from typing import Any, Dict, Iterable, Optional

from vncore.errors import CorruptSaveData

logger = logging.getLogger(__name__)

SAVE_FORMAT_VERSION = 1


class FlagStore:
    """
    Game state that gates dialogue: named booleans, ints and strings.

    Absent keys read as defaults, never as errors. One lock guards all three
    mappings so new_game()/deserialize() are never seen half-applied.
    """
    def __init__(self) -> None:
        self._lock = threading.RLock()
        self._flags: Dict[str, bool] = {}
        self._ints: Dict[str, int] = {}
        self._strings: Dict[str, str] = {}

    # ---------- flags ----------
    def set_flag(self, name: str, value: bool = True) -> None:
        with self._lock:
            self._flags[name] = bool(value)
        logger.debug("Flag set: %s = %s", name, bool(value))

    def get_flag(self, name: str) -> bool:
        with self._lock:
            return self._flags.get(name, False)

    def clear_flag(self, name: str) -> None:
        with self._lock:
            self._flags.pop(name, None)

    def has_all(self, names: Optional[Iterable[str]]) -> bool:
        if not names:
            return True
        with self._lock:
            return all(self._flags.get(n, False) for n in names)

    # ---------- variables ----------
    def set_int(self, name: str, value: int) -> None:
        with self._lock:
            self._ints[name] = int(value)

    def get_int(self, name: str, default: int = 0) -> int:
        with self._lock:
            return self._ints.get(name, default)

    def set_string(self, name: str, value: str) -> None:
        with self._lock:
            self._strings[name] = str(value)

    def get_string(self, name: str, default: str = "") -> str:
        with self._lock:
            return self._strings.get(name, default)

    # ---------- whole-store ----------
    def new_game(self) -> None:
        with self._lock:
            self._flags.clear()
            self._ints.clear()
            self._strings.clear()
        logger.info("New game started - all state cleared")

    def snapshot(self) -> Dict[str, Dict[str, Any]]:
        with self._lock:
            return {
                "flags": dict(self._flags),
                "ints": dict(self._ints),
                "strings": dict(self._strings),
            }

    def serialize(self) -> bytes:
        payload = {"version": SAVE_FORMAT_VERSION, **self.snapshot()}
        return json.dumps(payload, indent=2, sort_keys=True).encode("utf-8")

    def deserialize(self, data: Optional[bytes]) -> bool:
        """
        Replace the contents with a serialized blob. A missing or corrupt
        blob leaves a fresh empty store and logs a warning; returns False.
        """
        try:
            flags, ints, strings = _decode(data)
        except CorruptSaveData as e:
            logger.warning("Discarding save data: %s", e)
            flags, ints, strings = {}, {}, {}
            ok = False
        else:
            ok = True

        with self._lock:
            self._flags = flags
            self._ints = ints
            self._strings = strings
        return ok

    @classmethod
    def from_bytes(cls, data: Optional[bytes]) -> "FlagStore":
        store = cls()
        store.deserialize(data)
        return store

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, FlagStore):
            return NotImplemented
        return self.snapshot() == other.snapshot()

    def __repr__(self) -> str:
        s = self.snapshot()
        return f"FlagStore(flags={len(s['flags'])}, ints={len(s['ints'])}, strings={len(s['strings'])})"


def _typed_mapping(raw: Any, kind: type, label: str) -> Dict[str, Any]:
    if raw is None:
        return {}
    if not isinstance(raw, dict):
        raise CorruptSaveData(f"'{label}' is not a mapping")
    out: Dict[str, Any] = {}
    for k, v in raw.items():
        # bool is an int subclass; keep the mappings apart
        if kind is int and (isinstance(v, bool) or not isinstance(v, int)):
            raise CorruptSaveData(f"'{label}.{k}' is not an int")
        if not isinstance(v, kind):
            raise CorruptSaveData(f"'{label}.{k}' is not a {kind.__name__}")
        out[str(k)] = v
    return out


def _decode(data: Optional[bytes]):
    if not data:
        raise CorruptSaveData("no save data")
    try:
        text = data.decode("utf-8") if isinstance(data, (bytes, bytearray)) else str(data)
        payload = json.loads(text)
    except (ValueError, TypeError, RecursionError) as e:
        # ValueError: bad UTF-8 or JSON. RecursionError: nesting too deep
        raise CorruptSaveData(f"unreadable payload ({e})") from e
    if not isinstance(payload, dict):
        raise CorruptSaveData("payload is not a mapping")
    version = payload.get("version", SAVE_FORMAT_VERSION)
    if version != SAVE_FORMAT_VERSION:
        raise CorruptSaveData(f"unsupported save version {version!r}")
    return (
        _typed_mapping(payload.get("flags"), bool, "flags"),
        _typed_mapping(payload.get("ints"), int, "ints"),
        _typed_mapping(payload.get("strings"), str, "strings"),
    )
