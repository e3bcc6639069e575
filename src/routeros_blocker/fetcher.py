"""Remote hosts-file blocklist retrieval and parsing."""

import logging
from typing import Iterable

import requests

from .common import validate_domain
from .exceptions import FetchError

# =============================================================================
# CONSTANTS
# =============================================================================

# Everything above this line is the publisher's own section and is ignored
SENTINEL = "# End of custom host records."
SINK_PREFIX = "0.0.0.0 "
COMMENT_CHAR = "#"

logger = logging.getLogger(__name__)


def parse_hosts(lines: Iterable[str]) -> set[str]:
    """
    Parse hosts-file lines into a set of bare hostnames.

    Lines before the sentinel marker are skipped. After it, trailing
    comments and the sink address prefix are stripped; empty and
    comment-only lines are dropped.

    Args:
        lines: Text lines of a hosts file

    Returns:
        Set of lowercase hostnames
    """
    hostnames: set[str] = set()
    active = False

    for line in lines:
        if not active:
            active = line.strip() == SENTINEL
            continue

        text = line.split(COMMENT_CHAR, 1)[0].strip()
        if not text:
            continue

        if text.startswith(SINK_PREFIX):
            text = text[len(SINK_PREFIX):].strip()

        hostname = text.lower()
        if not validate_domain(hostname):
            logger.debug(f"Skipping malformed hosts entry: {text!r}")
            continue
        hostnames.add(hostname)

    if not active:
        logger.warning("Blocklist sentinel line not found, no hostnames parsed")

    return hostnames


def fetch_blocklist(url: str, timeout: int) -> set[str]:
    """
    Download and parse the remote blocklist.

    Args:
        url: Hosts-file URL
        timeout: Request timeout in seconds

    Returns:
        Set of hostnames to block

    Raises:
        FetchError: If the list cannot be downloaded or read
    """
    logger.info(f"Retrieving remote blocklist from {url}")
    try:
        with requests.get(url, timeout=timeout, stream=True) as response:
            response.raise_for_status()
            if response.encoding is None:
                response.encoding = "utf-8"
            hostnames = parse_hosts(response.iter_lines(decode_unicode=True))
    except requests.exceptions.RequestException as e:
        raise FetchError(f"Failed to fetch blocklist from {url}: {e}") from e

    logger.info(f"Remote blocklist retrieved: {len(hostnames)} hostnames")
    return hostnames
