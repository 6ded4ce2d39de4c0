from __future__ import annotations

import json
import logging
import socket
import subprocess
from typing import Any, Literal, Protocol, Sequence

from .errors import PlaybackError

logger = logging.getLogger(__name__)

NotifyLevel = Literal["info", "warn"]


class PlaybackEngine(Protocol):
    def is_running(self) -> bool: ...

    def send_command(self, command: Sequence[Any]) -> Any: ...


class Notifier(Protocol):
    def notify(self, message: str, level: NotifyLevel = "info") -> None: ...


class LogNotifier:
    """Fire-and-forget status messages routed through logging."""

    prefix = "YT Control: "

    def __init__(self, log: logging.Logger | None = None):
        self.log = log or logging.getLogger("ytplayer.notify")

    def notify(self, message: str, level: NotifyLevel = "info") -> None:
        if level == "warn":
            self.log.warning("%s%s", self.prefix, message)
        else:
            self.log.info("%s%s", self.prefix, message)


class MpvIpcClient:
    """
    Talks to a running mpv through its JSON IPC unix socket
    (mpv --input-ipc-server=<socket_path>).

    Each command opens a short-lived connection, so the client holds no state
    between calls and a restarted mpv is picked up transparently.
    """

    def __init__(self, socket_path: str, timeout_s: float = 1.0, mpv_path: str = "mpv"):
        self.socket_path = socket_path
        self.timeout_s = timeout_s
        self.mpv_path = mpv_path
        self._request_id = 0

    def _connect(self) -> socket.socket:
        sock = socket.socket(socket.AF_UNIX, socket.SOCK_STREAM)
        sock.settimeout(self.timeout_s)
        try:
            sock.connect(self.socket_path)
        except OSError:
            sock.close()
            raise
        return sock

    def is_running(self) -> bool:
        try:
            sock = self._connect()
        except OSError:
            return False
        sock.close()
        return True

    def send_command(self, command: Sequence[Any]) -> dict[str, Any]:
        """
        Send one command and wait for mpv's reply to it.

        Raises PlaybackError when mpv is unreachable, does not answer, or
        answers with anything other than "success".
        """
        self._request_id += 1
        request_id = self._request_id
        line = (json.dumps({"command": list(command), "request_id": request_id}) + "\n").encode("utf-8")
        try:
            sock = self._connect()
        except OSError as exc:
            raise PlaybackError("PLAYBACK_IPC_UNAVAILABLE", f"mpv socket not reachable: {self.socket_path}") from exc
        try:
            sock.sendall(line)
            reply = self._read_reply(sock, request_id)
        except OSError as exc:
            raise PlaybackError("PLAYBACK_IPC_SEND_FAILED", f"mpv command {list(command)!r} failed: {exc}") from exc
        finally:
            sock.close()

        if reply is None:
            raise PlaybackError("PLAYBACK_IPC_NO_REPLY", f"mpv closed the connection without answering {list(command)!r}")
        if reply.get("error") != "success":
            raise PlaybackError("PLAYBACK_COMMAND_REJECTED", f"mpv rejected {list(command)!r}: {reply.get('error')}")
        logger.debug("Sent mpv command %s", list(command))
        return reply

    @staticmethod
    def _read_reply(sock: socket.socket, request_id: int) -> dict[str, Any] | None:
        buf = b""
        while True:
            chunk = sock.recv(4096)
            if not chunk:
                return None
            buf += chunk
            while b"\n" in buf:
                raw, buf = buf.split(b"\n", 1)
                if not raw.strip():
                    continue
                try:
                    msg = json.loads(raw.decode("utf-8", errors="replace"))
                except ValueError:
                    continue
                # mpv interleaves events with replies on the same socket
                if isinstance(msg, dict) and msg.get("request_id") == request_id:
                    return msg

    def launch(self, url: str) -> None:
        """Start a new audio-only mpv playing url, listening on this client's socket."""
        args = [
            self.mpv_path,
            "--no-video",
            "--audio-display=no",
            "--terminal=no",
            f"--input-ipc-server={self.socket_path}",
            url,
        ]
        try:
            subprocess.Popen(
                args,
                stdin=subprocess.DEVNULL,
                stdout=subprocess.DEVNULL,
                stderr=subprocess.DEVNULL,
                start_new_session=True,
            )
        except OSError as exc:
            raise PlaybackError("PLAYBACK_MPV_LAUNCH_FAILED", f"could not start {self.mpv_path}: {exc}") from exc
        logger.info("Started mpv for %s", url)
