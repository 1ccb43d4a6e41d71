"""Resume orchestration.

Rebuilds everything needed to continue a run after a restart: run metadata,
the persisted session log, the latest working-tree snapshot (restored into the
local repository when possible), the conversation so far and the last device.

Contract:
- Inputs: Task/run identifiers, TaskRunClient, repository path
- Outputs: ResumeResult
- Side Effects: Network fetches; working-tree restoration when a restorable snapshot exists
"""

import logging
from pathlib import Path

from ..client.api import TaskRunClient
from ..config.settings import ClientSettings
from ..conversation.replayer import rebuild_conversation
from ..models.snapshots import ResumeResult
from ..models.snapshots import TreeSnapshotEvent
from ..snapshots.applier import SnapshotApplier
from ..snapshots.applier import TreeTracker
from ..snapshots.locator import find_last_device
from ..snapshots.locator import find_latest_snapshot
from .steps import Step
from .steps import StepContext
from .steps import StepRunner

logger = logging.getLogger(__name__)


class ResumeOrchestrator:
    """Runs the resume steps for one repository.

    Steps, in order:
        fetch_task_run, fetch_logs, find_snapshot, apply_snapshot,
        rebuild_conversation, find_device

    Only the two fetch steps can fail the resume. A snapshot that cannot be
    applied is logged and the resume continues without it.

    Example:
        >>> orchestrator = ResumeOrchestrator(client, "/path/to/repo")
        >>> result = await orchestrator.resume("task-1", "run-1")
        >>> len(result.conversation)
        4
    """

    def __init__(
        self,
        client: TaskRunClient,
        repository_path: Path | str,
        tracker: TreeTracker | None = None,
        settings: ClientSettings | None = None,
    ):
        self.client = client
        self.repository_path = Path(repository_path)
        self.tracker = tracker or TreeTracker(self.repository_path)
        self.settings = settings or ClientSettings()

    async def resume(self, task_id: str, run_id: str) -> ResumeResult:
        """Rebuild resume state for a run.

        Args:
            task_id: Task identifier
            run_id: Run identifier

        Returns:
            ResumeResult; ResumeResult.empty() when the run has no log

        Raises:
            StepFailedError: Run metadata or logs could not be fetched
        """
        logger.info(f"Resuming task {task_id} run {run_id}")

        async def fetch_task_run(ctx: StepContext):
            run = await self.client.get_task_run(task_id, run_id)
            if not run.log_url:
                logger.info("No log URL found, starting fresh")
                ctx.halt()
            return run

        async def fetch_logs(ctx: StepContext):
            entries = await self.client.fetch_run_logs(ctx["fetch_task_run"])
            if not entries:
                logger.info("No log entries found, starting fresh")
                ctx.halt()
            else:
                logger.info(f"Fetched {len(entries)} log entries")
            return entries

        async def apply_snapshot(ctx: StepContext) -> bool:
            return await self._apply_snapshot(ctx["find_snapshot"], task_id, run_id)

        steps = [
            Step("fetch_task_run", fetch_task_run),
            Step("fetch_logs", fetch_logs),
            Step("find_snapshot", lambda ctx: find_latest_snapshot(ctx["fetch_logs"])),
            Step("apply_snapshot", apply_snapshot),
            Step(
                "rebuild_conversation",
                lambda ctx: rebuild_conversation(ctx["fetch_logs"], self.settings.tool_meta_key),
            ),
            Step("find_device", lambda ctx: find_last_device(ctx["fetch_logs"])),
        ]

        ctx = await StepRunner("resume").run(steps)
        if ctx.halted:
            return ResumeResult.empty()

        snapshot: TreeSnapshotEvent | None = ctx["find_snapshot"]
        result = ResumeResult(
            conversation=ctx["rebuild_conversation"],
            latest_snapshot=snapshot,
            snapshot_applied=ctx["apply_snapshot"],
            interrupted=bool(snapshot and snapshot.interrupted),
            last_device=ctx["find_device"],
            log_entry_count=len(ctx["fetch_logs"]),
        )

        logger.info(
            f"Resume state rebuilt: turns={len(result.conversation)}, "
            f"has_snapshot={snapshot is not None}, snapshot_applied={result.snapshot_applied}, "
            f"interrupted={result.interrupted}"
        )
        return result

    async def _apply_snapshot(self, snapshot: TreeSnapshotEvent | None, task_id: str, run_id: str) -> bool:
        if snapshot is None:
            return False

        if not snapshot.restorable:
            changes = len(snapshot.changes or [])
            logger.warning(
                f"Snapshot {snapshot.tree_hash} has no archive URL, files cannot be restored ({changes} changes)"
            )
            return False

        if not self.settings.apply_snapshots:
            logger.info(f"Snapshot application disabled, skipping {snapshot.tree_hash}")
            return False

        applier = SnapshotApplier(
            self.client,
            self.repository_path,
            task_id=task_id,
            run_id=run_id,
            tracker=self.tracker,
            scratch_dir=self.settings.scratch_dir,
        )
        try:
            await applier.apply(snapshot)
        except Exception as e:
            # The applier already undid its own completed steps
            logger.warning(f"Failed to apply tree snapshot {snapshot.tree_hash}, continuing without it: {e}")
            return False

        logger.info(f"Tree snapshot applied: {snapshot.tree_hash}")
        return True
