from __future__ import annotations


class YTPlayerError(Exception):
    def __init__(self, code: str, message: str):
        super().__init__(message)
        self.code = code
        self.message = message


class DiscoveryError(YTPlayerError):
    pass


class PlaybackError(YTPlayerError):
    pass


class HistoryError(YTPlayerError):
    pass
