from __future__ import annotations

import logging
import os
import re
from pathlib import Path
from typing import List

from vncore.state.flags import FlagStore

logger = logging.getLogger(__name__)

DEFAULT_SLOT = "default"
_SLOT_SUFFIX = ".sav"
_INVALID_CHARS = re.compile(r"[^A-Za-z0-9_\-]+")


def sanitize_slot(slot: str) -> str:
    """ Slot names become file names: drop anything that is not [A-Za-z0-9_-]. """
    name = _INVALID_CHARS.sub("", str(slot or "").strip())
    if not name:
        raise ValueError(f"Invalid save slot name: {slot!r}")
    return name


class SaveSlots:
    """
    Named save slots on disk. Each slot holds one FlagStore blob; the
    blob format belongs to FlagStore.
    """
    def __init__(self, directory: str | Path = "saves") -> None:
        self.directory = Path(directory)

    def path_for(self, slot: str = DEFAULT_SLOT) -> Path:
        return self.directory / f"{sanitize_slot(slot)}{_SLOT_SUFFIX}"

    # ---------- public API ----------
    def save(self, store: FlagStore, slot: str = DEFAULT_SLOT) -> Path:
        path = self.path_for(slot)
        self.directory.mkdir(parents=True, exist_ok=True)
        tmp = path.with_suffix(path.suffix + ".tmp")
        try:
            tmp.write_bytes(store.serialize())
            os.replace(tmp, path)
        finally:
            # Only left over when the write or rename failed
            tmp.unlink(missing_ok=True)
        logger.info("Game saved to slot '%s' (%s)", slot, path)
        return path

    def load(self, store: FlagStore, slot: str = DEFAULT_SLOT) -> bool:
        """
        Load a slot into `store`. A missing slot leaves the store untouched;
        a corrupt one resets it. Both log a warning and return False.
        """
        path = self.path_for(slot)
        if not path.exists():
            logger.warning("No save data found for slot '%s'", slot)
            return False
        try:
            data = path.read_bytes()
        except OSError as e:
            logger.warning("Could not read save slot '%s': %s", slot, e)
            data = b""
        ok = store.deserialize(data)
        if ok:
            logger.info("Game loaded from slot '%s'", slot)
        return ok

    def exists(self, slot: str = DEFAULT_SLOT) -> bool:
        return self.path_for(slot).exists()

    def delete(self, slot: str = DEFAULT_SLOT) -> bool:
        path = self.path_for(slot)
        if not path.exists():
            return False
        path.unlink()
        return True

    def slots(self) -> List[str]:
        if not self.directory.exists():
            return []
        return sorted(p.stem for p in self.directory.glob(f"*{_SLOT_SUFFIX}"))
