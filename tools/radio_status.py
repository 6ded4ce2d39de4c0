#!/usr/bin/env python3
from __future__ import annotations

import argparse
import sys
from pathlib import Path

ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))


def main() -> None:
    parser = argparse.ArgumentParser(description="Print the resolved radio, history and mpv settings")
    parser.add_argument("--settings", default=None, help="Path to settings YAML")
    args = parser.parse_args()

    from ytplayer.core.discovery import build_related_command
    from ytplayer.core.settings import history_config, load_settings, mpv_config, radio_config
    from ytplayer.tools._common import print_json

    settings = load_settings(args.settings)
    print_json(
        {
            "radio": radio_config(settings),
            "history": history_config(settings),
            "mpv": mpv_config(settings),
            "example_command": build_related_command("<last-url>", settings),
        }
    )


if __name__ == "__main__":
    main()
