#!/usr/bin/env python3
from __future__ import annotations

import argparse
import sys
from pathlib import Path

ROOT = Path(__file__).resolve().parents[2]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))


def main() -> None:
    parser = argparse.ArgumentParser(description="Show, clear or queue from the play history")
    parser.add_argument("action", choices=["list", "clear", "queue"], nargs="?", default="list")
    parser.add_argument("index", type=int, nargs="?", help="1-based history entry to queue")
    parser.add_argument("--json", action="store_true", help="Print raw entries as JSON")
    parser.add_argument("--socket", default=None, help="mpv IPC socket path (default from settings)")
    args = parser.parse_args()

    from ytplayer.core.errors import PlaybackError
    from ytplayer.core.history import format_duration, queue_entry, relative_time
    from ytplayer.core.playback import LogNotifier, MpvIpcClient
    from ytplayer.core.settings import load_settings, mpv_config
    from ytplayer.tools._common import get_history, print_json, setup_logging

    store = get_history()
    if args.action == "clear":
        store.clear()
        print("History cleared")
        return

    entries = store.get()
    if args.action == "queue":
        if args.index is None or not 1 <= args.index <= len(entries):
            parser.error(f"queue needs an entry number between 1 and {len(entries)}")
        setup_logging()
        cfg = mpv_config(load_settings())
        engine = MpvIpcClient(args.socket or cfg["socket_path"], mpv_path=cfg["path"])
        session: dict[str, str] = {}
        try:
            result = queue_entry(entries[args.index - 1], engine, session, LogNotifier())
        except PlaybackError as exc:
            print_json({"code": exc.code, "message": exc.message})
            sys.exit(1)
        print_json({"result": result, "queued_titles": session})
        return

    if args.json:
        print_json([entry.model_dump() for entry in entries])
        return
    if not entries:
        print("No history yet")
        return
    for idx, entry in enumerate(entries, start=1):
        print(f"{idx:>3}. {entry.title}")
        print(f"     {format_duration(entry.duration) or '-'}  •  {relative_time(entry.timestamp)}  •  {entry.url}")


if __name__ == "__main__":
    main()
