#!/usr/bin/env python3
from __future__ import annotations

import argparse
import asyncio
import sys
from pathlib import Path

ROOT = Path(__file__).resolve().parents[2]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))


async def _autoplay_once(url: str, socket_path: str | None) -> dict:
    from ytplayer.core import HistoryStore, RadioController
    from ytplayer.core.playback import LogNotifier, MpvIpcClient
    from ytplayer.core.settings import load_settings, mpv_config

    settings = load_settings()
    cfg = mpv_config(settings)
    engine = MpvIpcClient(socket_path or cfg["socket_path"], mpv_path=cfg["path"])
    session: dict[str, str] = {}
    controller = RadioController(
        engine,
        session,
        LogNotifier(),
        settings=settings,
        history=HistoryStore.from_settings(settings),
    )
    if not controller.enabled:
        controller.toggle()
    controller.track_started(url)

    trigger = controller.on_queue_end()
    outcome = await controller.wait_idle()
    return {
        "trigger": trigger.model_dump(mode="json"),
        "outcome": outcome.model_dump(mode="json") if outcome else None,
        "last_url": controller.last_url,
        "queued_titles": session,
    }


def main() -> None:
    parser = argparse.ArgumentParser(description="Queue a related track on a running mpv, as radio mode does at queue end")
    parser.add_argument("url", help="URL of the track that just finished")
    parser.add_argument("--socket", default=None, help="mpv IPC socket path (default from settings)")
    parser.add_argument("-v", "--verbose", action="store_true", help="Debug logging")
    args = parser.parse_args()

    from ytplayer.tools._common import print_json, setup_logging

    setup_logging(args.verbose)
    print_json(asyncio.run(_autoplay_once(args.url, args.socket)))


if __name__ == "__main__":
    main()
