from __future__ import annotations

import asyncio
import contextlib
import json
import logging
import random
from typing import Any, Callable, Sequence

from .models import DiscoveryOutcome, PlayCandidate, RunState
from .settings import radio_config

logger = logging.getLogger(__name__)

# How long to wait for yt-dlp to exit after SIGTERM before SIGKILL
TERMINATE_TIMEOUT_SECONDS = 2.0
KILL_TIMEOUT_SECONDS = 1.0

FAILURE_MESSAGES = {
    "RADIO_SPAWN_FAILED": "could not launch discovery tool",
    "RADIO_TOOL_FAILED": "tool reported error",
    "RADIO_NO_CANDIDATES": "no related tracks found",
    "RADIO_TIMEOUT": "discovery tool timed out",
    "RADIO_CANCELLED": "discovery run cancelled",
    "RADIO_INTERNAL_ERROR": "discovery run crashed",
}

CompletionCallback = Callable[[DiscoveryOutcome], None]


def parse_candidate(line: str) -> PlayCandidate | None:
    line = line.strip()
    if not line:
        return None
    try:
        item = json.loads(line)
    except (ValueError, RecursionError):
        return None
    if not isinstance(item, dict):
        return None

    url = item.get("webpage_url")
    if not isinstance(url, str):
        url = item.get("url") if isinstance(item.get("url"), str) else ""
    if not url:
        return None

    title = item.get("title")
    return PlayCandidate(url=url, title=title if isinstance(title, str) else "Unknown")


def parse_candidates(text: str) -> list[PlayCandidate]:
    candidates: list[PlayCandidate] = []
    for line in text.split("\n"):
        candidate = parse_candidate(line)
        if candidate is None:
            if line.strip():
                logger.debug("Skipping unusable discovery line: %.80s", line)
            continue
        candidates.append(candidate)
    return candidates


def select_candidate(
    candidates: Sequence[PlayCandidate],
    exclude_url: str | None,
    top_n: int = 3,
    rng: random.Random | None = None,
) -> PlayCandidate | None:
    """Pick a random winner among the top ranked candidates, never the excluded url."""
    filtered = [candidate for candidate in candidates if candidate.url != exclude_url]
    if not filtered:
        return None
    pool = filtered[: max(1, min(top_n, len(filtered)))]
    return pool[(rng or random).randrange(len(pool))]


def build_related_command(seed_url: str, settings: dict[str, Any] | None = None) -> list[str]:
    cfg = radio_config(settings)
    return [
        cfg["executable"],
        "--flat-playlist",
        "--dump-json",
        "--no-warnings",
        "--no-download",
        "--default-search",
        "ytsearch",
        f"ytsearch{cfg['max_results']}:related to {seed_url}",
    ]


async def terminate_process(
    process: asyncio.subprocess.Process,
    timeout: float = TERMINATE_TIMEOUT_SECONDS,
    kill_timeout: float = KILL_TIMEOUT_SECONDS,
) -> None:
    """
    Terminate a subprocess gracefully with escalation to SIGKILL.

    Safe to call on a process that already exited.
    """
    if process.returncode is not None:
        return

    with contextlib.suppress(ProcessLookupError, OSError):
        process.terminate()
    try:
        await asyncio.wait_for(process.wait(), timeout=timeout)
        return
    except asyncio.TimeoutError:
        pass

    if process.returncode is None:
        with contextlib.suppress(ProcessLookupError, OSError):
            process.kill()
        try:
            await asyncio.wait_for(process.wait(), timeout=kill_timeout)
        except asyncio.TimeoutError:
            logger.warning("Discovery process PID %s did not die after SIGKILL", process.pid)


class DiscoveryRun:
    """State of one yt-dlp invocation: process handle, stdout chunks and exit status."""

    def __init__(self, seed_url: str, command: list[str]):
        self.seed_url = seed_url
        self.command = command
        self.state = RunState.IDLE
        self.process: asyncio.subprocess.Process | None = None
        self.chunks: list[bytes] = []
        self.returncode: int | None = None

    def text(self) -> str:
        return b"".join(self.chunks).decode("utf-8", errors="replace")

    def succeed(self, candidate: PlayCandidate, seen: int) -> DiscoveryOutcome:
        self.state = RunState.SUCCEEDED
        return DiscoveryOutcome(seed_url=self.seed_url, state=self.state, candidate=candidate, candidates_seen=seen)

    def fail(self, code: str, state: RunState = RunState.FAILED, seen: int = 0) -> DiscoveryOutcome:
        self.state = state
        return DiscoveryOutcome(
            seed_url=self.seed_url,
            state=state,
            error_code=code,
            message=FAILURE_MESSAGES.get(code, code),
            candidates_seen=seen,
        )

    async def release(self) -> None:
        process = self.process
        if process is None:
            return
        self.process = None

        if process.returncode is None:
            await terminate_process(process)


class DiscoveryRunner:
    def __init__(self, settings: dict[str, Any] | None = None, rng: random.Random | None = None):
        self.settings = settings or {}
        cfg = radio_config(self.settings)
        self.top_n: int = cfg["top_n"]
        self.timeout_sec: float | None = cfg["timeout_sec"]
        self.read_chunk_size: int = cfg["read_chunk_size"]
        self.rng = rng

    def start(self, seed_url: str, on_complete: CompletionCallback) -> asyncio.Task[DiscoveryOutcome]:
        """
        Schedule a discovery run on the running loop and return immediately.

        on_complete is called exactly once with the terminal outcome. Task done
        callbacks are queued with loop.call_soon, so it runs as its own loop step
        and never inside the stdout read.
        """
        task = asyncio.get_running_loop().create_task(self.run(seed_url))

        def _deliver(done: asyncio.Task[DiscoveryOutcome]) -> None:
            if done.cancelled():
                outcome = DiscoveryRun(seed_url, []).fail("RADIO_CANCELLED")
            elif done.exception() is not None:
                logger.error("Discovery run for %s crashed", seed_url, exc_info=done.exception())
                outcome = DiscoveryRun(seed_url, []).fail("RADIO_INTERNAL_ERROR")
            else:
                outcome = done.result()
            try:
                on_complete(outcome)
            except Exception:
                logger.exception("Discovery completion callback failed for %s", seed_url)

        task.add_done_callback(_deliver)
        return task

    async def run(self, seed_url: str) -> DiscoveryOutcome:
        run = DiscoveryRun(seed_url, build_related_command(seed_url, self.settings))
        try:
            if self.timeout_sec is None:
                outcome = await self._execute(run)
            else:
                try:
                    outcome = await asyncio.wait_for(self._execute(run), timeout=self.timeout_sec)
                except asyncio.TimeoutError:
                    logger.warning("Discovery for %s timed out after %.1fs", seed_url, self.timeout_sec)
                    outcome = run.fail("RADIO_TIMEOUT")
        finally:
            await run.release()

        if outcome.ok:
            logger.info("Discovery for %s picked %s (%d candidates)", seed_url, outcome.candidate.url, outcome.candidates_seen)
        else:
            logger.info("Discovery for %s failed: %s", seed_url, outcome.error_code)
        return outcome

    async def _execute(self, run: DiscoveryRun) -> DiscoveryOutcome:
        run.state = RunState.SPAWNING
        logger.debug("Starting discovery: %s", " ".join(run.command))
        try:
            run.process = await asyncio.create_subprocess_exec(
                *run.command,
                stdin=asyncio.subprocess.DEVNULL,
                stdout=asyncio.subprocess.PIPE,
                stderr=asyncio.subprocess.DEVNULL,
            )
        except OSError as exc:
            logger.warning("Could not launch %s: %s", run.command[0], exc)
            return run.fail("RADIO_SPAWN_FAILED", state=RunState.SPAWN_FAILED)

        run.state = RunState.STREAMING
        stdout = run.process.stdout
        if stdout is not None:
            while True:
                chunk = await stdout.read(self.read_chunk_size)
                if not chunk:
                    break
                run.chunks.append(chunk)

        run.returncode = await run.process.wait()
        logger.debug("Discovery process exited with %s after %d chunks", run.returncode, len(run.chunks))
        if run.returncode != 0:
            return run.fail("RADIO_TOOL_FAILED")

        candidates = parse_candidates(run.text())
        winner = select_candidate(candidates, run.seed_url, top_n=self.top_n, rng=self.rng)
        if winner is None:
            return run.fail("RADIO_NO_CANDIDATES", seen=len(candidates))
        return run.succeed(winner, seen=len(candidates))
