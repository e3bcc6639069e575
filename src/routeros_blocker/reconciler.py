"""Router state reading and remote/router set reconciliation."""

import logging
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass
from functools import partial
from typing import Callable, Optional

from .client import RouterClient
from .config import Settings
from .fetcher import fetch_blocklist
from .targets import RecordTarget

logger = logging.getLogger(__name__)

# Hostname -> RouterOS record id
RouterRecords = dict[str, str]


@dataclass(frozen=True)
class ChangeSet:
    """Hostnames to add to and delete from the router."""

    to_add: frozenset[str]
    to_delete: frozenset[str]

    @property
    def is_empty(self) -> bool:
        return not self.to_add and not self.to_delete


def read_router_records(client: RouterClient, target: RecordTarget) -> RouterRecords:
    """
    Read the records managed by the blocker from the router.

    Only records matching the target's managed filter are returned, so
    records created by hand never become deletion candidates.

    Args:
        client: Connected router client
        target: Record type to read

    Returns:
        Mapping of hostname to record id

    Raises:
        QueryError: If the router read fails
    """
    logger.info(f"Retrieving managed {target.name} records from router")
    rows = client.query(target.path, [".id", target.key_field], dict(target.managed_filter))

    records: RouterRecords = {}
    for row in rows:
        hostname = row.get(target.key_field)
        record_id = row.get(".id")
        if not hostname or not record_id:
            logger.warning(f"Skipping incomplete router record: {row!r}")
            continue
        records[hostname] = record_id

    logger.info(f"Router records retrieved: {len(records)} managed entries")
    return records


def compute_changes(remote: set[str], records: RouterRecords) -> ChangeSet:
    """
    Compute what must change on the router to match the remote list.

    Args:
        remote: Hostnames the router should block
        records: Hostnames the router currently blocks, with their ids

    Returns:
        ChangeSet with disjoint add and delete sets
    """
    current = set(records)
    return ChangeSet(
        to_add=frozenset(remote - current),
        to_delete=frozenset(current - remote),
    )


def collect_state(
    fetch: Callable[[], set[str]],
    read: Callable[[], RouterRecords],
) -> tuple[set[str], RouterRecords]:
    """
    Run the remote fetch and the router read concurrently and wait for both.

    Raises:
        BlockerError: The first failure of either task
    """
    with ThreadPoolExecutor(max_workers=2, thread_name_prefix="collect") as executor:
        remote_future = executor.submit(fetch)
        records_future = executor.submit(read)
        records = records_future.result()
        remote = remote_future.result()
    return remote, records


def reconcile(
    settings: Settings,
    client: RouterClient,
    target: RecordTarget,
    fetch: Optional[Callable[[], set[str]]] = None,
) -> tuple[ChangeSet, RouterRecords]:
    """
    Retrieve remote and router state and compute the change set.

    Args:
        settings: Run settings
        client: Connected router client
        target: Record type being reconciled
        fetch: Optional replacement for the remote fetch

    Returns:
        Tuple of (change set, router records)
    """
    if fetch is None:
        fetch = partial(fetch_blocklist, settings.source_url, settings.timeout)

    remote, records = collect_state(fetch, lambda: read_router_records(client, target))
    changes = compute_changes(remote, records)

    logger.info(f"Records to add: {len(changes.to_add)}")
    logger.debug(f"Set to add: {sorted(changes.to_add)}")
    logger.info(f"Records to delete: {len(changes.to_delete)}")
    logger.debug(f"Set to delete: {sorted(changes.to_delete)}")

    return changes, records
