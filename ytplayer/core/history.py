from __future__ import annotations

import json
import logging
import time
from pathlib import Path
from typing import Any, MutableMapping

from pydantic import ValidationError

from .errors import HistoryError
from .models import HistoryEntry
from .playback import MpvIpcClient, Notifier
from .settings import history_config

logger = logging.getLogger(__name__)


class HistoryStore:
    """Play history kept newest first as a JSON array, one entry per url."""

    def __init__(self, path: str | None = None, max_entries: int = 100):
        self.path = Path(path) if path else Path(history_config(None)["path"])
        self.max_entries = max_entries

    @classmethod
    def from_settings(cls, settings: dict[str, Any] | None) -> HistoryStore:
        cfg = history_config(settings)
        return cls(path=cfg["path"], max_entries=cfg["max_entries"])

    def get(self) -> list[HistoryEntry]:
        try:
            content = self.path.read_text(encoding="utf-8")
        except FileNotFoundError:
            return []
        except OSError as exc:
            logger.warning("Could not read history %s: %s", self.path, exc)
            return []
        if not content.strip():
            return []

        try:
            data = json.loads(content)
        except ValueError:
            logger.warning("Ignoring corrupt history file %s", self.path)
            return []
        if not isinstance(data, list):
            return []

        entries: list[HistoryEntry] = []
        for item in data:
            try:
                entries.append(HistoryEntry.model_validate(item))
            except ValidationError:
                continue
        return entries

    def _save(self, entries: list[HistoryEntry]) -> None:
        payload = json.dumps([entry.model_dump() for entry in entries])
        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            self.path.write_text(payload, encoding="utf-8")
        except OSError as exc:
            raise HistoryError("HISTORY_WRITE_FAILED", f"Could not write history {self.path}: {exc}") from exc

    def add(self, entry: HistoryEntry | dict[str, Any]) -> list[HistoryEntry]:
        raw = entry.model_dump() if isinstance(entry, HistoryEntry) else dict(entry or {})
        url = raw.get("url")
        if not isinstance(url, str) or not url:
            return self.get()

        title = raw.get("title")
        duration = raw.get("duration")
        fresh = HistoryEntry(
            title=title if isinstance(title, str) and title else "Unknown",
            url=url,
            duration=float(duration) if isinstance(duration, (int, float)) and not isinstance(duration, bool) else 0,
            timestamp=int(time.time()),
        )

        entries = [fresh] + [item for item in self.get() if item.url != url]
        entries = entries[: self.max_entries]
        self._save(entries)
        return entries

    def clear(self) -> None:
        self._save([])


def queue_entry(
    entry: HistoryEntry,
    engine: MpvIpcClient,
    session: MutableMapping[str, str],
    notifier: Notifier,
) -> str:
    """Append a history entry to mpv's queue, or start mpv with it when none is running."""
    session[entry.url] = entry.title
    if not engine.is_running():
        engine.launch(entry.url)
        notifier.notify(f"Playing → {entry.title}", "info")
        return "launched"

    engine.send_command(["loadfile", entry.url, "append-play"])
    notifier.notify(f"Queued → {entry.title}", "info")
    return "queued"


def format_duration(sec: Any) -> str:
    if isinstance(sec, bool) or not isinstance(sec, (int, float)) or sec <= 0:
        return ""
    sec = int(sec)
    return f"{sec // 60}:{sec % 60:02d}"


def relative_time(ts: int, now: int | None = None) -> str:
    diff = (now if now is not None else int(time.time())) - ts
    if diff < 60:
        return "just now"
    if diff < 3600:
        return f"{diff // 60}m ago"
    if diff < 86400:
        return f"{diff // 3600}h ago"
    return f"{diff // 86400}d ago"
