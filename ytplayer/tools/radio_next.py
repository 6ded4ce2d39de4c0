#!/usr/bin/env python3
from __future__ import annotations

import argparse
import asyncio
import sys
from pathlib import Path

ROOT = Path(__file__).resolve().parents[2]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))


def main() -> None:
    parser = argparse.ArgumentParser(description="Find one track related to a URL using yt-dlp")
    parser.add_argument("url", help="URL of the track that just finished")
    parser.add_argument("-v", "--verbose", action="store_true", help="Debug logging")
    args = parser.parse_args()

    from ytplayer.core.discovery import DiscoveryRunner
    from ytplayer.core.settings import load_settings
    from ytplayer.tools._common import print_json, setup_logging

    setup_logging(args.verbose)
    runner = DiscoveryRunner(load_settings())
    outcome = asyncio.run(runner.run(args.url))
    print_json(outcome)
    if not outcome.ok:
        sys.exit(1)


if __name__ == "__main__":
    main()
