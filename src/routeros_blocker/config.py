"""Settings construction and validation for RouterOS Blocker."""

import logging
from dataclasses import dataclass
from typing import Optional

from .common import validate_ip, validate_port, validate_url
from .exceptions import ConfigurationError

# =============================================================================
# CONSTANTS
# =============================================================================

DEFAULT_ADDRESS = "192.168.0.1"
DEFAULT_API_PORT = 443
DEFAULT_SSH_PORT = 22
DEFAULT_TIMEOUT = 30
DEFAULT_TAG = "adishe"
DEFAULT_LIST_NAME = "adishe"
DEFAULT_SINK_ADDRESS = "127.0.0.1"
DEFAULT_SOURCE_URL = (
    "https://raw.githubusercontent.com/StevenBlack/hosts/master/alternates/gambling/hosts"
)

TARGET_CHOICES = ("dns-static", "address-list")
STRATEGY_CHOICES = ("auto", "direct", "scripted")

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Settings:
    """Run settings, built once at startup and passed to every component."""

    address: str = DEFAULT_ADDRESS
    api_port: int = DEFAULT_API_PORT
    ssh_port: int = DEFAULT_SSH_PORT
    login: str = ""
    password: str = ""
    target: str = "dns-static"
    strategy: str = "auto"
    tag: str = DEFAULT_TAG
    list_name: str = DEFAULT_LIST_NAME
    sink_address: str = DEFAULT_SINK_ADDRESS
    source_url: str = DEFAULT_SOURCE_URL
    timeout: int = DEFAULT_TIMEOUT
    verify_tls: bool = True
    dry_run: bool = False

    @property
    def api_url(self) -> str:
        """Base URL of the router's REST API."""
        scheme = "http" if self.api_port == 80 else "https"
        host = self.address
        if ":" in host and not host.startswith("["):
            host = f"[{host}]"
        return f"{scheme}://{host}:{self.api_port}/rest"


def validate_settings(settings: Settings) -> list[str]:
    """
    Validate a Settings instance.

    Args:
        settings: Settings to check

    Returns:
        List of error messages (empty if valid)
    """
    errors: list[str] = []

    if not settings.address or not settings.address.strip():
        errors.append("Router address must not be empty")
    if not validate_port(settings.api_port):
        errors.append(f"Invalid API port: {settings.api_port}")
    if not validate_port(settings.ssh_port):
        errors.append(f"Invalid SSH port: {settings.ssh_port}")
    if not settings.login:
        errors.append("Missing router login")
    if settings.target not in TARGET_CHOICES:
        errors.append(f"Unknown target '{settings.target}'")
    if settings.strategy not in STRATEGY_CHOICES:
        errors.append(f"Unknown strategy '{settings.strategy}'")
    if not settings.tag or not settings.tag.strip():
        errors.append("Managed record tag must not be empty")
    if not settings.list_name or not settings.list_name.strip():
        errors.append("Address list name must not be empty")
    if not validate_ip(settings.sink_address):
        errors.append(f"Invalid sink address '{settings.sink_address}'")
    if not validate_url(settings.source_url):
        errors.append(
            f"Invalid source URL '{settings.source_url}'. Must be a valid http:// or https:// URL"
        )
    if settings.timeout <= 0:
        errors.append(f"Timeout must be a positive integer, got: {settings.timeout}")

    return errors


def build_settings(
    address: str = DEFAULT_ADDRESS,
    api_port: int = DEFAULT_API_PORT,
    ssh_port: int = DEFAULT_SSH_PORT,
    login: Optional[str] = None,
    password: Optional[str] = None,
    target: str = "dns-static",
    strategy: str = "auto",
    tag: str = DEFAULT_TAG,
    list_name: str = DEFAULT_LIST_NAME,
    sink_address: str = DEFAULT_SINK_ADDRESS,
    source_url: str = DEFAULT_SOURCE_URL,
    timeout: int = DEFAULT_TIMEOUT,
    verify_tls: bool = True,
    dry_run: bool = False,
) -> Settings:
    """
    Build validated settings from command-line values.

    Raises:
        ConfigurationError: If any value is missing or invalid
    """
    settings = Settings(
        address=(address or "").strip(),
        api_port=api_port,
        ssh_port=ssh_port,
        login=login or "",
        password=password or "",
        target=target,
        strategy=strategy,
        tag=tag,
        list_name=list_name,
        sink_address=sink_address,
        source_url=source_url,
        timeout=timeout,
        verify_tls=verify_tls,
        dry_run=dry_run,
    )

    errors = validate_settings(settings)
    if errors:
        for error in errors:
            logger.error(error)
        raise ConfigurationError(f"Invalid settings: {'; '.join(errors)}")

    return settings
