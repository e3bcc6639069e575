"""Apply engine: converges router records to the computed change set."""

import logging
import os
import tempfile
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass
from enum import Enum
from pathlib import Path
from typing import Callable, Iterable, Optional

from .client import RouterClient
from .common import audit_log
from .config import Settings
from .exceptions import ApplyError, ConfigurationError
from .reconciler import ChangeSet, RouterRecords, reconcile
from .targets import RecordTarget
from .transfer import SFTPUploader

SCRIPT_PREFIX = "routeros-blocker-"
SCRIPT_SUFFIX = ".rsc"

logger = logging.getLogger(__name__)


# =============================================================================
# RESULTS
# =============================================================================

class Outcome(Enum):
    """How a sync run ended."""

    APPLIED = "applied"
    NOTHING_TO_DO = "nothing-to-do"
    DRY_RUN = "dry-run"


@dataclass
class SyncResult:
    """Summary of a sync run."""

    outcome: Outcome
    added: int = 0
    deleted: int = 0


# =============================================================================
# STRATEGIES
# =============================================================================

class ApplyStrategy:
    """Shared removal path of both apply strategies."""

    name = ""

    def __init__(self, client: RouterClient, target: RecordTarget) -> None:
        self.client = client
        self.target = target

    def remove_obsolete(self, hostnames: Iterable[str], records: RouterRecords) -> None:
        """
        Remove managed records in one batched call.

        Args:
            hostnames: Hostnames to remove, all present in records
            records: Hostname to record id mapping read from the router
        """
        ids = [records[hostname] for hostname in sorted(hostnames)]
        logger.info(f"Removing {len(ids)} obsolete records from router")
        self.client.remove(self.target.path, ids)
        audit_log("REMOVE", f"{len(ids)} {self.target.name} records")
        logger.info("Obsolete records have been removed from router")

    def apply(self, changes: ChangeSet, records: RouterRecords) -> None:
        raise NotImplementedError


class DirectApply(ApplyStrategy):
    """Adds and removes records straight through the router API."""

    name = "direct"

    def add_missing(self, hostnames: Iterable[str]) -> None:
        """Add one record per hostname."""
        added = 0
        for hostname in sorted(hostnames):
            self.client.add(self.target.path, self.target.add_params(hostname))
            added += 1
        audit_log("ADD", f"{added} {self.target.name} records")
        logger.info(f"{added} records have been added to router")

    def apply(self, changes: ChangeSet, records: RouterRecords) -> None:
        """Run removal and the add loop concurrently; they do not depend on each other."""
        with ThreadPoolExecutor(max_workers=2, thread_name_prefix="direct") as executor:
            futures = []
            if changes.to_delete:
                futures.append(executor.submit(self.remove_obsolete, changes.to_delete, records))
            if changes.to_add:
                futures.append(executor.submit(self.add_missing, changes.to_add))
            for future in futures:
                future.result()


class ScriptedApply(ApplyStrategy):
    """Adds records by uploading an import script and running it on the router."""

    name = "scripted"

    def __init__(
        self,
        client: RouterClient,
        target: RecordTarget,
        uploader: SFTPUploader,
    ) -> None:
        super().__init__(client, target)
        self.uploader = uploader

    def build_script(self, hostnames: Iterable[str]) -> str:
        """
        Build an import script adding every hostname.

        The first line switches to the target menu; each following line is
        one add directive.
        """
        lines = [self.target.script_header]
        lines.extend(self.target.script_line(hostname) for hostname in sorted(hostnames))
        return "\n".join(lines) + "\n"

    def write_script(self, hostnames: Iterable[str]) -> Path:
        """Write the import script to a local scratch file and return its path."""
        fd, name = tempfile.mkstemp(prefix=SCRIPT_PREFIX, suffix=SCRIPT_SUFFIX)
        with os.fdopen(fd, "w") as f:
            f.write(self.build_script(hostnames))
        logger.debug(f"Import script written to {name}")
        return Path(name)

    def upload_script(self, hostnames: Iterable[str]) -> str:
        """
        Write the script and copy it to the router.

        Returns:
            File name of the script on the router
        """
        script_path = self.write_script(hostnames)
        try:
            with self.uploader:
                self.uploader.upload(script_path, script_path.name)
        finally:
            script_path.unlink(missing_ok=True)
        return script_path.name

    def import_script(self, remote_name: str) -> None:
        """
        Run the uploaded script.

        On failure the uploaded file stays on the router for inspection.
        """
        logger.info(f"Importing script {remote_name}")
        try:
            self.client.import_file(remote_name)
        except ApplyError:
            logger.error(f"Import failed, {remote_name} left on router")
            raise
        audit_log("IMPORT", remote_name)
        logger.info("Script has been imported")

    def remove_script(self, remote_name: str) -> None:
        logger.info(f"Removing script {remote_name}")
        self.client.remove_file(remote_name)
        logger.info("Script has been removed")

    def apply(self, changes: ChangeSet, records: RouterRecords) -> None:
        """
        Remove obsolete records while the import script is uploaded, then
        import it once both have finished and remove it afterwards.
        """
        if not changes.to_add:
            if changes.to_delete:
                self.remove_obsolete(changes.to_delete, records)
            return

        with ThreadPoolExecutor(max_workers=2, thread_name_prefix="scripted") as executor:
            delete_future = None
            if changes.to_delete:
                delete_future = executor.submit(self.remove_obsolete, changes.to_delete, records)
            upload_future = executor.submit(self.upload_script, changes.to_add)

            remote_name = upload_future.result()
            if delete_future is not None:
                delete_future.result()

        self.import_script(remote_name)
        self.remove_script(remote_name)


def select_strategy(
    settings: Settings,
    client: RouterClient,
    target: RecordTarget,
    uploader_factory: Callable[[Settings], SFTPUploader] = SFTPUploader,
) -> ApplyStrategy:
    """
    Pick the apply strategy for this run.

    'auto' uses the target's default: scripted import for static DNS,
    direct calls for address lists.
    """
    name = target.default_strategy if settings.strategy == "auto" else settings.strategy
    if name == "direct":
        return DirectApply(client, target)
    if name == "scripted":
        return ScriptedApply(client, target, uploader_factory(settings))
    raise ConfigurationError(f"Unknown strategy '{settings.strategy}'")


# =============================================================================
# RUN
# =============================================================================

def synchronize(
    settings: Settings,
    client: RouterClient,
    target: RecordTarget,
    strategy: Optional[ApplyStrategy] = None,
    fetch: Optional[Callable[[], set[str]]] = None,
) -> SyncResult:
    """
    Reconcile the router with the remote blocklist.

    Args:
        settings: Run settings
        client: Connected router client
        target: Record type to manage
        strategy: Apply strategy (selected from settings if omitted)
        fetch: Optional replacement for the remote fetch

    Returns:
        SyncResult describing the outcome

    Raises:
        BlockerError: On the first failure; nothing is rolled back
    """
    changes, records = reconcile(settings, client, target, fetch=fetch)
    added, deleted = len(changes.to_add), len(changes.to_delete)

    if changes.is_empty:
        logger.info("Nothing to do here")
        return SyncResult(Outcome.NOTHING_TO_DO)

    if settings.dry_run:
        logger.info("Dry run, router left unchanged")
        return SyncResult(Outcome.DRY_RUN, added=added, deleted=deleted)

    if strategy is None:
        strategy = select_strategy(settings, client, target)

    logger.info(f"Applying changes using {strategy.name} strategy")
    strategy.apply(changes, records)
    return SyncResult(Outcome.APPLIED, added=added, deleted=deleted)
