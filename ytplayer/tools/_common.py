from __future__ import annotations

import json
import logging
from typing import Any

from ytplayer.core import HistoryStore
from ytplayer.core.settings import load_settings


def setup_logging(verbose: bool = False) -> None:
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.INFO,
        format="%(asctime)s %(levelname)-7s %(name)s: %(message)s",
    )


def get_history() -> HistoryStore:
    return HistoryStore.from_settings(load_settings())


def print_json(data: Any) -> None:
    if hasattr(data, "model_dump"):
        print(json.dumps(data.model_dump(mode="json"), indent=2, ensure_ascii=False))
        return
    print(json.dumps(data, indent=2, ensure_ascii=False))
