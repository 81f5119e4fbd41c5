"""Backup runner.

Executes backup-then-purge passes across regions and owns the polling loop.
"""

from __future__ import annotations

import logging
import time
from typing import Any, Callable, Dict, NoReturn, Optional, Sequence

from ..aws.provider import BackupProvider
from ..models.pass_result import ActionStatus, BackupRecord, PassResult, PurgeRecord
from ..policy.engine import BackupPolicyEngine
from ..policy.tags import BACKUP_ENABLED_TAG, BACKUP_ENABLED_VALUE, BACKUP_PURGE_TAG, get_tag_value

ProviderFactory = Callable[[Optional[str]], BackupProvider]


def _epoch_now() -> int:
    return int(time.time())


class BackupRunner:
    """Backup pass orchestrator.

    A pass runs the backup phase for every region, in the order given, before
    the purge phase starts for any region. Dry-run mode logs every action that
    would be taken and issues no mutating provider call.

    Attributes:
        provider_factory: Callable returning a BackupProvider for a region (None = default region)
        engine: Policy engine making backup and purge decisions
        logger: Logger receiving action messages (anything with info/warning/error)
        clock: Callable returning the current time in epoch seconds
        sleep: Callable used to wait between polling passes
    """

    def __init__(
        self,
        provider_factory: ProviderFactory,
        engine: Optional[BackupPolicyEngine] = None,
        logger: Optional[Any] = None,
        clock: Optional[Callable[[], int]] = None,
        sleep: Optional[Callable[[float], None]] = None,
    ) -> None:
        self.provider_factory = provider_factory
        self.engine = engine or BackupPolicyEngine()
        self.logger = logger or logging.getLogger(__name__)
        self.clock = clock or _epoch_now
        self.sleep = sleep or time.sleep

    def run(
        self,
        regions: Optional[Sequence[str]] = None,
        interval_seconds: Optional[int] = None,
        dry_run: bool = False,
    ) -> PassResult:
        """Run a single pass, or poll forever when an interval is given.

        Args:
            regions: Ordered regions to process (None or empty = default region)
            interval_seconds: Seconds between passes; None runs one pass and returns
            dry_run: Log intended actions without applying them

        Returns:
            PassResult of the single pass (polling mode never returns)
        """
        if interval_seconds is None:
            return self.run_one_pass(regions, dry_run=dry_run)
        self.run_forever(regions, interval_seconds, dry_run=dry_run)

    def run_one_pass(self, regions: Optional[Sequence[str]] = None, dry_run: bool = False) -> PassResult:
        """Run one backup-then-purge pass.

        Provider errors propagate to the caller.

        Args:
            regions: Ordered regions to process (None or empty = default region)
            dry_run: Log intended actions without applying them

        Returns:
            PassResult describing every action taken or planned
        """
        result = self._new_result(regions, dry_run)
        self._execute_pass(result)
        return result

    def run_pass_isolated(self, regions: Optional[Sequence[str]] = None, dry_run: bool = False) -> PassResult:
        """Run one pass, capturing a failure in the result instead of raising.

        Actions completed before the failure remain recorded in the result.
        """
        result = self._new_result(regions, dry_run)
        try:
            self._execute_pass(result)
        except Exception as e:
            result.error = e
            self.logger.error(f"Backup pass failed: {e}")
        return result

    def run_forever(
        self,
        regions: Optional[Sequence[str]],
        interval_seconds: int,
        dry_run: bool = False,
    ) -> NoReturn:
        """Repeat passes with a fixed sleep between them.

        A failed pass is logged and the next pass starts on schedule. There is
        no backoff; the loop ends only when the process is interrupted.

        Raises:
            ValueError: If interval_seconds is negative
        """
        if interval_seconds < 0:
            raise ValueError(f"Polling interval must be non-negative, got {interval_seconds}")

        self.logger.info(f"EBS backup monitor started (interval {interval_seconds}s)")
        while True:
            result = self.run_pass_isolated(regions, dry_run=dry_run)
            if not result.ok:
                self.logger.info(f"Next pass in {interval_seconds}s despite failure")
            self.sleep(interval_seconds)

    def _new_result(self, regions: Optional[Sequence[str]], dry_run: bool) -> PassResult:
        region_list = list(regions) if regions else [None]
        return PassResult(now=self.clock(), regions=region_list, dry_run=dry_run)

    def _execute_pass(self, result: PassResult) -> None:
        labels = ", ".join(_region_label(region) for region in result.regions)
        self.logger.info(f"Backing up volumes and purging snapshots in region(s) {labels}")
        if result.dry_run:
            self.logger.info("** Dry run specified, no changes will be applied")

        providers: Dict[Optional[str], BackupProvider] = {}
        for region in result.regions:
            providers[region] = self.provider_factory(region)

        for region in result.regions:
            self._backup_region(providers[region], region, result)

        for region in result.regions:
            self._purge_region(providers[region], region, result)

        self.logger.info(
            f"Pass complete: {len(result.backups)} backup(s), {len(result.purges)} purge(s)"
            + (" planned" if result.dry_run else "")
        )

    def _backup_region(self, provider: BackupProvider, region: Optional[str], result: PassResult) -> None:
        now = result.now
        volumes = provider.list_volumes(BACKUP_ENABLED_TAG, BACKUP_ENABLED_VALUE)

        for volume in volumes:
            if not self.engine.is_backup_due(volume, now):
                continue

            intent = self.engine.build_snapshot_intent(volume, now)
            self.logger.info(f"Backing up volume {volume.resource_id} in {_region_label(region)}")

            if result.dry_run:
                self.logger.info(
                    f"[dry-run] Would create snapshot {intent.name} of volume {volume.resource_id} "
                    f"(purge at {intent.purge_at}) and set backup.last={now}"
                )
                result.backups.append(
                    BackupRecord(
                        region=region,
                        volume_id=volume.resource_id,
                        intent=intent,
                        status=ActionStatus.PLANNED,
                    )
                )
                continue

            # Left as failed unless every call below completes
            record = BackupRecord(
                region=region,
                volume_id=volume.resource_id,
                intent=intent,
                status=ActionStatus.FAILED,
            )
            result.backups.append(record)

            snapshot_id = provider.create_snapshot(volume.resource_id, description=f"Backup of {volume.resource_id}")
            record.snapshot_id = snapshot_id
            self.logger.info(f"Created snapshot {snapshot_id} for volume {volume.resource_id}")

            provider.set_tags(snapshot_id, intent.snapshot_tags())
            provider.set_tags(volume.resource_id, intent.volume_tags())
            record.status = ActionStatus.SUCCEEDED
            self.logger.info(
                f"Tagged snapshot {snapshot_id} (purge at {intent.purge_at}) and volume {volume.resource_id}"
            )

    def _purge_region(self, provider: BackupProvider, region: Optional[str], result: PassResult) -> None:
        now = result.now
        snapshots = provider.list_snapshots(BACKUP_PURGE_TAG)

        for snapshot in snapshots:
            decision = self.engine.decide_purge(snapshot, now)

            if decision.purge_at is None:
                raw_value = get_tag_value(snapshot, BACKUP_PURGE_TAG)
                self.logger.warning(
                    f"Skipping snapshot {snapshot.resource_id}: unparseable {BACKUP_PURGE_TAG} value {raw_value!r}"
                )
                result.skipped_snapshots.append(snapshot.resource_id)
                continue

            if not decision.eligible:
                continue

            self.logger.info(f"Purging snapshot {snapshot.resource_id} in {_region_label(region)}")

            if result.dry_run:
                self.logger.info(
                    f"[dry-run] Would delete snapshot {snapshot.resource_id} (purge at {decision.purge_at})"
                )
                result.purges.append(
                    PurgeRecord(
                        region=region,
                        snapshot_id=snapshot.resource_id,
                        purge_at=decision.purge_at,
                        status=ActionStatus.PLANNED,
                    )
                )
                continue

            record = PurgeRecord(
                region=region,
                snapshot_id=snapshot.resource_id,
                purge_at=decision.purge_at,
                status=ActionStatus.FAILED,
            )
            result.purges.append(record)

            provider.delete_snapshot(snapshot.resource_id)
            record.status = ActionStatus.SUCCEEDED
            self.logger.info(f"Deleted snapshot {snapshot.resource_id}")


def _region_label(region: Optional[str]) -> str:
    return region or "default"
