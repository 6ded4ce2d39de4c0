from __future__ import annotations

import asyncio
import logging
from typing import Any, MutableMapping

from .discovery import DiscoveryRunner
from .errors import HistoryError, PlaybackError
from .history import HistoryStore
from .models import DiscoveryOutcome, HistoryEntry, TriggerResult
from .playback import Notifier, PlaybackEngine
from .settings import radio_config

logger = logging.getLogger(__name__)

_FAILURE_NOTICES = {
    "RADIO_SPAWN_FAILED": "📻 Could not launch yt-dlp",
    "RADIO_NO_CANDIDATES": "📻 No related tracks found",
}
_DEFAULT_FAILURE_NOTICE = "📻 Failed to find related tracks"


class RadioController:
    """
    Radio mode: when the play queue drains, queue a track related to the one
    that just finished.

    All state mutation happens on the event loop, inside the completion
    callback of the discovery run, and at most one run is active at a time.
    """

    def __init__(
        self,
        engine: PlaybackEngine,
        session: MutableMapping[str, str],
        notifier: Notifier,
        runner: DiscoveryRunner | None = None,
        settings: dict[str, Any] | None = None,
        history: HistoryStore | None = None,
    ):
        cfg = radio_config(settings)
        self.engine = engine
        self.session = session
        self.notifier = notifier
        self.runner = runner or DiscoveryRunner(settings)
        self.history = history if cfg["record_history"] else None
        self.enabled: bool = cfg["enabled_by_default"]
        self.last_url: str | None = None
        self._pending: asyncio.Future[DiscoveryOutcome] | None = None

    @property
    def in_flight(self) -> bool:
        return self._pending is not None and not self._pending.done()

    def toggle(self) -> bool:
        self.enabled = not self.enabled
        self.notifier.notify(f"Radio mode {'ON 📻' if self.enabled else 'OFF'}", "info")
        return self.enabled

    def track_started(self, url: str | None) -> None:
        if url:
            self.last_url = url

    def on_queue_end(self) -> TriggerResult:
        if not self.enabled:
            return TriggerResult(status="skipped", reason="radio_disabled")
        if not self.last_url:
            return TriggerResult(status="skipped", reason="no_last_url")
        if not self.engine.is_running():
            return TriggerResult(status="skipped", reason="player_not_running")
        if self.in_flight:
            logger.debug("Queue end ignored, discovery already running")
            return TriggerResult(status="skipped", reason="discovery_in_flight")

        self.notifier.notify("📻 Finding related track...", "info")
        self._pending = asyncio.get_running_loop().create_future()
        self.runner.start(self.last_url, self._on_discovery_complete)
        return TriggerResult(status="started")

    async def wait_idle(self) -> DiscoveryOutcome | None:
        if self._pending is None:
            return None
        return await asyncio.shield(self._pending)

    def _on_discovery_complete(self, outcome: DiscoveryOutcome) -> None:
        try:
            if outcome.ok:
                self._apply(outcome)
            else:
                self.notifier.notify(_FAILURE_NOTICES.get(outcome.error_code or "", _DEFAULT_FAILURE_NOTICE), "warn")
        finally:
            if self._pending is not None and not self._pending.done():
                self._pending.set_result(outcome)

    def _apply(self, outcome: DiscoveryOutcome) -> None:
        pick = outcome.raise_for_error()

        self.session[pick.url] = pick.title
        try:
            self.engine.send_command(["loadfile", pick.url, "append-play"])
        except PlaybackError as exc:
            logger.warning("Could not queue %s: %s", pick.url, exc.message)
            self.notifier.notify(f"📻 Could not queue → {pick.title}", "warn")
            return

        self.last_url = pick.url
        self.notifier.notify(f"📻 Auto-playing → {pick.title}", "info")

        if self.history is not None:
            try:
                self.history.add(HistoryEntry(url=pick.url, title=pick.title))
            except HistoryError as exc:
                logger.warning("History not updated: %s", exc.message)
