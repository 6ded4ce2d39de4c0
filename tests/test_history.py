from __future__ import annotations

import json
from pathlib import Path

import pytest

from ytplayer.core.errors import HistoryError
from ytplayer.core.history import HistoryStore, format_duration, queue_entry, relative_time
from ytplayer.core.models import HistoryEntry


def _store(tmp_path: Path, max_entries: int = 100) -> HistoryStore:
    return HistoryStore(path=str(tmp_path / "data" / "history.json"), max_entries=max_entries)


def test_get_missing_file_is_empty(tmp_path: Path) -> None:
    assert _store(tmp_path).get() == []


@pytest.mark.parametrize("content", ["", "not json", '{"url": "x"}', "42"])
def test_get_corrupt_file_is_empty(tmp_path: Path, content: str) -> None:
    store = _store(tmp_path)
    store.path.parent.mkdir(parents=True)
    store.path.write_text(content)
    assert store.get() == []


def test_get_skips_invalid_entries(tmp_path: Path) -> None:
    store = _store(tmp_path)
    store.path.parent.mkdir(parents=True)
    store.path.write_text(json.dumps([{"url": "https://x/a", "title": "A", "duration": 10, "timestamp": 5}, {"title": "no url"}]))

    entries = store.get()
    assert entries == [HistoryEntry(url="https://x/a", title="A", duration=10, timestamp=5)]


def test_add_prepends_with_defaults(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setattr("ytplayer.core.history.time.time", lambda: 1000.0)
    store = _store(tmp_path)

    store.add({"url": "https://x/a", "title": "A", "duration": 200})
    store.add({"url": "https://x/b"})

    entries = store.get()
    assert [e.url for e in entries] == ["https://x/b", "https://x/a"]
    assert entries[0].title == "Unknown"
    assert entries[0].duration == 0
    assert entries[0].timestamp == 1000
    assert entries[1].duration == 200


def test_add_existing_url_moves_to_head_with_fresh_timestamp(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    store = _store(tmp_path)
    monkeypatch.setattr("ytplayer.core.history.time.time", lambda: 100.0)
    store.add(HistoryEntry(url="https://x/a", title="A"))
    store.add(HistoryEntry(url="https://x/b", title="B"))

    monkeypatch.setattr("ytplayer.core.history.time.time", lambda: 500.0)
    entries = store.add(HistoryEntry(url="https://x/a", title="A again"))

    assert [e.url for e in entries] == ["https://x/a", "https://x/b"]
    assert entries[0].timestamp == 500
    assert entries[0].title == "A again"
    assert [e.url for e in store.get()].count("https://x/a") == 1


def test_add_caps_entries(tmp_path: Path) -> None:
    store = _store(tmp_path)
    for i in range(130):
        store.add({"url": f"https://x/{i}", "title": str(i)})

    entries = store.get()
    assert len(entries) == 100
    assert entries[0].url == "https://x/129"
    assert entries[-1].url == "https://x/30"


def test_add_without_url_is_ignored(tmp_path: Path) -> None:
    store = _store(tmp_path)
    store.add({"title": "nothing"})
    store.add({"url": ""})
    assert store.get() == []
    assert not store.path.exists()


def test_clear_empties_history(tmp_path: Path) -> None:
    store = _store(tmp_path)
    store.add({"url": "https://x/a"})
    store.clear()
    assert store.get() == []
    assert json.loads(store.path.read_text()) == []


def test_write_failure_raises_history_error(tmp_path: Path) -> None:
    blocker = tmp_path / "blocker"
    blocker.write_text("file, not a directory")
    store = HistoryStore(path=str(blocker / "history.json"))

    with pytest.raises(HistoryError) as exc:
        store.add({"url": "https://x/a"})
    assert exc.value.code == "HISTORY_WRITE_FAILED"


def test_from_settings_uses_configured_path(tmp_path: Path) -> None:
    path = tmp_path / "h.json"
    store = HistoryStore.from_settings({"history": {"path": str(path), "max_entries": 3}})
    assert store.path == path
    assert store.max_entries == 3


def test_format_duration() -> None:
    assert format_duration(0) == ""
    assert format_duration(None) == ""
    assert format_duration(59) == "0:59"
    assert format_duration(61) == "1:01"
    assert format_duration(3725) == "62:05"


def test_relative_time() -> None:
    now = 1_000_000
    assert relative_time(now - 10, now=now) == "just now"
    assert relative_time(now - 120, now=now) == "2m ago"
    assert relative_time(now - 7200, now=now) == "2h ago"
    assert relative_time(now - 3 * 86400, now=now) == "3d ago"


def test_get_keeps_fractional_durations(tmp_path: Path) -> None:
    store = _store(tmp_path)
    store.path.parent.mkdir(parents=True)
    store.path.write_text(json.dumps([{"title": "T", "url": "https://x/t", "duration": 213.5, "timestamp": 1}]))

    entries = store.get()
    assert len(entries) == 1
    assert entries[0].duration == 213.5
    assert format_duration(entries[0].duration) == "3:33"


def test_add_keeps_fractional_duration(tmp_path: Path) -> None:
    store = _store(tmp_path)
    store.add({"url": "https://x/t", "title": "T", "duration": 213.45})
    assert store.get()[0].duration == 213.45


class _Mpv:
    def __init__(self, running: bool):
        self.running = running
        self.commands: list[list[str]] = []
        self.launched: list[str] = []

    def is_running(self) -> bool:
        return self.running

    def send_command(self, command) -> dict:
        self.commands.append(list(command))
        return {"error": "success"}

    def launch(self, url: str) -> None:
        self.launched.append(url)


class _Notifier:
    def __init__(self):
        self.messages: list[tuple[str, str]] = []

    def notify(self, message: str, level: str = "info") -> None:
        self.messages.append((message, level))


def test_queue_entry_appends_when_mpv_running() -> None:
    mpv, notifier, session = _Mpv(running=True), _Notifier(), {}
    entry = HistoryEntry(url="https://x/a", title="A", timestamp=1)

    assert queue_entry(entry, mpv, session, notifier) == "queued"

    assert mpv.commands == [["loadfile", "https://x/a", "append-play"]]
    assert mpv.launched == []
    assert session == {"https://x/a": "A"}
    assert notifier.messages == [("Queued → A", "info")]


def test_queue_entry_starts_mpv_when_stopped() -> None:
    mpv, notifier, session = _Mpv(running=False), _Notifier(), {}
    entry = HistoryEntry(url="https://x/a", title="A", timestamp=1)

    assert queue_entry(entry, mpv, session, notifier) == "launched"

    assert mpv.launched == ["https://x/a"]
    assert mpv.commands == []
    assert session == {"https://x/a": "A"}
    assert notifier.messages == [("Playing → A", "info")]
