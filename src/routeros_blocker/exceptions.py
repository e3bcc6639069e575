"""Custom exceptions for RouterOS Blocker."""


class BlockerError(Exception):
    """Base exception for RouterOS Blocker."""


class ConfigurationError(BlockerError):
    """Raised when settings are missing or invalid."""


class ConnectError(BlockerError):
    """Raised when a session with the router cannot be established."""


class AuthError(BlockerError):
    """Raised when the router rejects the credentials."""


class FetchError(BlockerError):
    """Raised when the remote blocklist is unreachable or unreadable."""


class QueryError(BlockerError):
    """Raised when reading records from the router fails."""


class ApplyError(BlockerError):
    """Raised when an add, remove, import or cleanup call fails."""


class TransferError(BlockerError):
    """Raised when uploading a file to the router fails."""
