"""Common utilities shared between RouterOS Blocker modules."""

import fcntl
import ipaddress
import re
import stat
from datetime import datetime
from pathlib import Path

from platformdirs import user_log_dir


# =============================================================================
# SHARED CONSTANTS
# =============================================================================

APP_NAME = "routeros-blocker"

# Secure file permissions (owner read/write only)
SECURE_FILE_MODE = stat.S_IRUSR | stat.S_IWUSR  # 0o600

# Domain validation constants (RFC 1035)
MAX_DOMAIN_LENGTH = 253
MAX_LABEL_LENGTH = 63

# Domain validation pattern (RFC 1035 compliant, no trailing dot).
# Underscores are tolerated because published hosts files contain them.
DOMAIN_PATTERN = re.compile(
    r'^(?:[a-zA-Z0-9_](?:[a-zA-Z0-9_-]{0,61}[a-zA-Z0-9_])?\.)*'
    r'[a-zA-Z0-9_](?:[a-zA-Z0-9_-]{0,61}[a-zA-Z0-9_])?$'
)

# URL pattern for the blocklist source
URL_PATTERN = re.compile(
    r'^https?://'  # http:// or https://
    r'(?:[a-zA-Z0-9](?:[a-zA-Z0-9-]{0,61}[a-zA-Z0-9])?\.)+'  # domain labels
    r'[a-zA-Z]{2,}'  # TLD (at least 2 chars)
    r'(?::\d{1,5})?'  # optional port
    r'(?:/[^\s]*)?$',  # optional path
    re.IGNORECASE
)


# =============================================================================
# DIRECTORY MANAGEMENT
# =============================================================================

def get_log_dir() -> Path:
    """Get the log directory path (platform specific user log dir)."""
    return Path(user_log_dir(APP_NAME))


def get_audit_log_file() -> Path:
    """Get the audit log file path."""
    return get_log_dir() / "audit.log"


def ensure_log_dir() -> None:
    """Ensure log directory exists. Called lazily when needed."""
    get_log_dir().mkdir(parents=True, exist_ok=True)


# =============================================================================
# VALIDATION FUNCTIONS
# =============================================================================

def validate_domain(domain: str) -> bool:
    """
    Validate a domain name according to RFC 1035.

    Args:
        domain: Domain name to validate

    Returns:
        True if valid, False otherwise
    """
    if not domain or len(domain) > MAX_DOMAIN_LENGTH:
        return False
    # Reject trailing dots (FQDN notation not supported)
    if domain.endswith('.'):
        return False
    return DOMAIN_PATTERN.match(domain) is not None


def validate_url(url: str) -> bool:
    """
    Validate a URL string (must be http or https).

    Args:
        url: URL string to validate

    Returns:
        True if valid URL format, False otherwise
    """
    if not url or not isinstance(url, str):
        return False
    return URL_PATTERN.match(url) is not None


def validate_ip(value: str) -> bool:
    """Return True if value is an IPv4 or IPv6 address."""
    try:
        ipaddress.ip_address(value)
    except ValueError:
        return False
    return True


def validate_port(port: int) -> bool:
    """Return True if port is within the TCP port range."""
    return isinstance(port, int) and 0 < port < 65536


# =============================================================================
# FILE I/O FUNCTIONS
# =============================================================================

def audit_log(action: str, detail: str = "") -> None:
    """
    Log a router mutation to the audit log file with file locking.

    Args:
        action: The action being logged (e.g., 'ADD', 'REMOVE', 'IMPORT')
        detail: Additional details about the action
    """
    try:
        ensure_log_dir()
        audit_file = get_audit_log_file()

        # Create file with secure permissions if it doesn't exist
        if not audit_file.exists():
            audit_file.touch(mode=SECURE_FILE_MODE)

        log_entry = " | ".join([datetime.now().isoformat(), action, detail]) + "\n"

        # Write with exclusive lock to prevent corruption from concurrent writes
        with open(audit_file, 'a') as f:
            fcntl.flock(f.fileno(), fcntl.LOCK_EX)
            try:
                f.write(log_entry)
            finally:
                fcntl.flock(f.fileno(), fcntl.LOCK_UN)

    except OSError:
        pass  # Fail silently for audit logging
