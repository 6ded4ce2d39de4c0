from .discovery import DiscoveryRunner
from .history import HistoryStore
from .radio import RadioController

__all__ = ["DiscoveryRunner", "HistoryStore", "RadioController"]
