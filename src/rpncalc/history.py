"""Persisted calculation history: a newest-first, size-capped JSON log."""

from __future__ import annotations

import json
import logging
import time
from dataclasses import asdict, dataclass
from pathlib import Path
from typing import Any

from rpncalc.errors import HistoryError

logger = logging.getLogger("rpncalc.history")

DEFAULT_MAX_ENTRIES = 200


@dataclass(frozen=True, slots=True)
class HistoryEntry:
    expr: str
    result: str
    ts: int  # epoch milliseconds


def _now_ms() -> int:
    return int(time.time() * 1000)


def _entry_from_json(item: Any) -> HistoryEntry | None:
    if not isinstance(item, dict):
        return None
    expr = item.get("expr")
    result = item.get("result")
    ts = item.get("ts", 0)
    if not isinstance(expr, str) or not isinstance(result, str):
        return None
    if not isinstance(ts, int) or isinstance(ts, bool):
        ts = 0
    return HistoryEntry(expr=expr, result=result, ts=ts)


class History:
    def __init__(self, path: Path, *, max_entries: int = DEFAULT_MAX_ENTRIES) -> None:
        self.path = path
        self.max_entries = max_entries
        self._entries: list[HistoryEntry] = self.load()

    def load(self) -> list[HistoryEntry]:
        """Read the log from disk. A missing or unreadable file is an empty log."""

        try:
            text = self.path.read_text(encoding="utf-8")
        except FileNotFoundError:
            return []
        except OSError as e:
            logger.warning("could not read history %s: %s", self.path, e)
            return []

        try:
            data = json.loads(text or "[]")
        except json.JSONDecodeError as e:
            logger.warning("discarding malformed history %s: %s", self.path, e)
            return []
        if not isinstance(data, list):
            logger.warning("discarding malformed history %s: expected a JSON array", self.path)
            return []

        entries = [e for e in (_entry_from_json(item) for item in data) if e is not None]
        return entries[: self.max_entries]

    def entries(self) -> list[HistoryEntry]:
        return list(self._entries)

    def __len__(self) -> int:
        return len(self._entries)

    def record(self, expr: str, result: str, *, ts: int | None = None) -> HistoryEntry:
        entry = HistoryEntry(expr=expr, result=result, ts=_now_ms() if ts is None else ts)
        previous = self._entries
        self._entries = [entry, *previous][: self.max_entries]
        try:
            self.save()
        except HistoryError:
            self._entries = previous
            raise
        return entry

    def to_json(self, *, indent: int | None = None) -> str:
        return json.dumps([asdict(e) for e in self._entries], indent=indent)

    def save(self) -> None:
        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            self.path.write_text(self.to_json(), encoding="utf-8")
        except OSError as e:
            raise HistoryError(f"Failed writing history file: {self.path}") from e

    def clear(self) -> None:
        try:
            self.path.unlink(missing_ok=True)
        except OSError as e:
            raise HistoryError(f"Failed removing history file: {self.path}") from e
        self._entries = []

    def export(self, dest: Path) -> Path:
        try:
            dest.write_text(self.to_json(indent=2) + "\n", encoding="utf-8")
        except OSError as e:
            raise HistoryError(f"Failed exporting history to: {dest}") from e
        return dest
