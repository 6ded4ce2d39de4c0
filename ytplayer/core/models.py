from __future__ import annotations

import time
from enum import Enum
from typing import Literal

from pydantic import BaseModel, Field

from .errors import DiscoveryError


class RunState(str, Enum):
    IDLE = "idle"
    SPAWNING = "spawning"
    STREAMING = "streaming"
    SUCCEEDED = "succeeded"
    FAILED = "failed"
    SPAWN_FAILED = "spawn_failed"


class PlayCandidate(BaseModel):
    url: str = Field(min_length=1)
    title: str = "Unknown"


class DiscoveryOutcome(BaseModel):
    seed_url: str
    state: RunState = RunState.IDLE
    candidate: PlayCandidate | None = None
    error_code: str | None = None
    message: str | None = None
    candidates_seen: int = 0

    @property
    def ok(self) -> bool:
        return self.state is RunState.SUCCEEDED and self.candidate is not None

    def raise_for_error(self) -> PlayCandidate:
        if not self.ok:
            raise DiscoveryError(self.error_code or "RADIO_FAILED", self.message or "discovery run failed")
        return self.candidate  # type: ignore[return-value]


class TriggerResult(BaseModel):
    status: Literal["started", "skipped"]
    reason: Literal["radio_disabled", "no_last_url", "player_not_running", "discovery_in_flight"] | None = None

    @property
    def started(self) -> bool:
        return self.status == "started"


class HistoryEntry(BaseModel):
    title: str = "Unknown"
    url: str
    duration: float = 0
    timestamp: int = Field(default_factory=lambda: int(time.time()))
