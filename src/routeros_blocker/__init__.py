"""RouterOS Blocker - Keep router block records in line with a remote hosts list."""

__version__ = "1.0.0"

from .apply import DirectApply, Outcome, ScriptedApply, SyncResult, synchronize
from .client import RouterClient
from .config import Settings, build_settings
from .exceptions import (
    BlockerError,
    ConfigurationError,
    ConnectError,
    AuthError,
    FetchError,
    QueryError,
    ApplyError,
    TransferError,
)
from .fetcher import fetch_blocklist, parse_hosts
from .reconciler import ChangeSet, compute_changes, reconcile

__all__ = [
    "__version__",
    "RouterClient",
    "Settings",
    "build_settings",
    "ChangeSet",
    "compute_changes",
    "reconcile",
    "fetch_blocklist",
    "parse_hosts",
    "DirectApply",
    "ScriptedApply",
    "Outcome",
    "SyncResult",
    "synchronize",
    "BlockerError",
    "ConfigurationError",
    "ConnectError",
    "AuthError",
    "FetchError",
    "QueryError",
    "ApplyError",
    "TransferError",
]
