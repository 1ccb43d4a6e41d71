"""Working-tree snapshot restoration.

Restores the recorded working-tree state of a run into a local git
repository: downloads the snapshot archive, moves to the base commit when
needed, extracts the archive over the working tree and removes deleted
files. Each action is a step; completed steps are undone when a later one
fails, and every file the archive or the deletions touch is put back the way
it was before the run.

Contract:
- Inputs: TreeSnapshotEvent, TaskRunClient, repository path
- Outputs: Restored working tree, updated TreeTracker baseline
- Side Effects: Git checkout, file writes and deletions, scratch archive files
"""

import asyncio
import logging
import tarfile
from pathlib import Path

from git import Repo

from ..client.api import TaskRunClient
from ..errors import SnapshotApplyError
from ..models.snapshots import TreeSnapshotEvent
from ..sagas.steps import Step
from ..sagas.steps import StepRunner

logger = logging.getLogger(__name__)

DEFAULT_SCRATCH_DIR = ".acp-session/tmp"


class TreeTracker:
    """Tracks the last known tree hash of a repository's working state."""

    def __init__(self, repository_path: Path | str, last_tree_hash: str | None = None):
        self.repository_path = Path(repository_path)
        self.last_tree_hash = last_tree_hash

    def mark_applied(self, snapshot: TreeSnapshotEvent) -> None:
        self.last_tree_hash = snapshot.tree_hash
        logger.debug(f"Tree baseline for {self.repository_path} is now {snapshot.tree_hash}")


class SnapshotApplier:
    """Applies a tree snapshot to a local repository.

    Steps, in order:
        1. download_archive: fetch the archive into the scratch directory
        2. check_working_tree: refuse to move HEAD over uncommitted changes
        3. checkout_base: check out the snapshot's base commit if it differs from HEAD
        4. backup_existing_files: record the current bytes (or absence) of every
           archive member and every deleted path; undone by writing them back
        5. extract_archive: extract the archive over the working tree
        6. apply_deletions: remove files recorded as deleted
        7. cleanup_archive: remove the downloaded archive

    Example:
        >>> applier = SnapshotApplier(client, repo_path, task_id="t", run_id="r")
        >>> await applier.apply(snapshot)
    """

    def __init__(
        self,
        client: TaskRunClient,
        repository_path: Path | str,
        task_id: str,
        run_id: str,
        tracker: TreeTracker | None = None,
        scratch_dir: str = DEFAULT_SCRATCH_DIR,
    ):
        self.client = client
        self.repository_path = Path(repository_path).resolve()
        self.task_id = task_id
        self.run_id = run_id
        self.tracker = tracker or TreeTracker(self.repository_path)
        self.scratch_dir = scratch_dir

    async def apply(self, snapshot: TreeSnapshotEvent) -> None:
        """Restore the snapshot into the repository.

        Raises:
            StepFailedError: A step failed; completed steps were undone
            git.InvalidGitRepositoryError: repository_path is not a git repository
        """
        logger.info(f"Applying tree snapshot {snapshot.tree_hash} to {self.repository_path}")
        repo = Repo(self.repository_path)
        archive_path = self.repository_path / self.scratch_dir / f"{snapshot.tree_hash}.tar.gz"

        steps = [
            Step(
                "download_archive",
                lambda ctx: self._download_archive(snapshot, archive_path),
                compensate=self._remove_archive,
            ),
            Step("check_working_tree", lambda ctx: asyncio.to_thread(self._check_working_tree, repo, snapshot)),
            Step(
                "checkout_base",
                lambda ctx: asyncio.to_thread(self._checkout_base, repo, snapshot),
                compensate=lambda original: asyncio.to_thread(self._restore_head, repo, original),
            ),
            Step(
                "backup_existing_files",
                lambda ctx: asyncio.to_thread(self._backup_existing_files, archive_path, snapshot),
                compensate=lambda backup: asyncio.to_thread(self._restore_files, backup),
            ),
            Step("extract_archive", lambda ctx: asyncio.to_thread(self._extract_archive, archive_path)),
            Step("apply_deletions", lambda ctx: asyncio.to_thread(self._apply_deletions, snapshot)),
            Step("cleanup_archive", lambda ctx: self._remove_archive(archive_path)),
        ]

        await StepRunner("apply_snapshot").run(steps)

        self.tracker.mark_applied(snapshot)
        logger.info(f"Applied tree snapshot {snapshot.tree_hash}")

    # --- Steps ---

    async def _download_archive(self, snapshot: TreeSnapshotEvent, archive_path: Path) -> Path:
        if not snapshot.archive_url:
            raise SnapshotApplyError("Snapshot has no archive URL")

        content = await self.client.download_artifact(self.task_id, self.run_id, snapshot.archive_url)
        if content is None:
            raise SnapshotApplyError(f"Failed to download archive {snapshot.archive_url}")

        archive_path.parent.mkdir(parents=True, exist_ok=True)
        await asyncio.to_thread(archive_path.write_bytes, content)
        logger.debug(f"Downloaded archive ({len(content)} bytes) to {archive_path}")
        return archive_path

    def _needs_checkout(self, repo: Repo, snapshot: TreeSnapshotEvent) -> bool:
        if not snapshot.base_commit:
            return False
        return not repo.head.commit.hexsha.startswith(snapshot.base_commit)

    def _check_working_tree(self, repo: Repo, snapshot: TreeSnapshotEvent) -> None:
        if not self._needs_checkout(repo, snapshot):
            return

        scratch_root = Path(self.scratch_dir).parts[0]
        changed = [diff.a_path for diff in repo.index.diff(None)]
        changed += [diff.a_path for diff in repo.index.diff("HEAD")]
        changed += [path for path in repo.untracked_files if Path(path).parts[0] != scratch_root]
        if changed:
            raise SnapshotApplyError(
                f"Cannot apply snapshot: repository has uncommitted changes ({', '.join(changed[:5])})"
            )

    def _checkout_base(self, repo: Repo, snapshot: TreeSnapshotEvent) -> str | None:
        """Check out the base commit, returning the ref to go back to."""
        if not self._needs_checkout(repo, snapshot):
            return None

        original = repo.head.commit.hexsha if repo.head.is_detached else repo.active_branch.name
        repo.git.checkout(snapshot.base_commit)
        logger.warning(
            f"Checked out base commit {snapshot.base_commit}; repository is now in detached HEAD state "
            f"(was {original})"
        )
        return original

    def _restore_head(self, repo: Repo, original: str | None) -> None:
        if original is None:
            return
        repo.git.checkout(original)
        logger.info(f"Restored {self.repository_path} to {original}")

    def _resolve(self, relative_path: str) -> Path | None:
        target = (self.repository_path / relative_path).resolve()
        if not target.is_relative_to(self.repository_path):
            return None
        return target

    def _backup_existing_files(self, archive_path: Path, snapshot: TreeSnapshotEvent) -> dict[Path, bytes | None]:
        """Record what every path about to be written or deleted holds now.

        Returns:
            Mapping of absolute path to its current bytes, or None if absent
        """
        names = []
        try:
            with tarfile.open(archive_path, "r:gz") as archive:
                for member in archive:
                    if not member.isdir():
                        names.append(member.name)
        except (tarfile.TarError, EOFError, OSError) as e:
            # Extraction fails on the same error; back up the members read so far.
            logger.debug(f"Stopped reading archive members after {len(names)}: {e}")
        names += [change.path for change in snapshot.changes or [] if change.status == "D"]

        backup: dict[Path, bytes | None] = {}
        for name in names:
            target = self._resolve(name)
            if target is None or target in backup:
                continue
            if target.is_file() and not target.is_symlink():
                backup[target] = target.read_bytes()
            elif not target.exists() and not target.is_symlink():
                backup[target] = None
        logger.debug(f"Backed up {len(backup)} paths before extraction")
        return backup

    def _restore_files(self, backup: dict[Path, bytes | None]) -> None:
        for target, content in backup.items():
            if content is None:
                if target.is_file() or target.is_symlink():
                    target.unlink()
                continue
            if target.is_symlink():
                target.unlink()
            target.parent.mkdir(parents=True, exist_ok=True)
            target.write_bytes(content)
        logger.info(f"Restored {len(backup)} files in {self.repository_path}")

    def _extract_archive(self, archive_path: Path) -> None:
        with tarfile.open(archive_path, "r:gz") as archive:
            archive.extractall(self.repository_path, filter="data")
        logger.debug(f"Extracted {archive_path.name} into {self.repository_path}")

    def _apply_deletions(self, snapshot: TreeSnapshotEvent) -> list[str]:
        deleted = []
        for change in snapshot.changes or []:
            if change.status != "D":
                continue
            target = self._resolve(change.path)
            if target is None:
                logger.warning(f"Refusing to delete path outside repository: {change.path}")
                continue
            if target.is_file() or target.is_symlink():
                target.unlink()
                deleted.append(change.path)
        if deleted:
            logger.debug(f"Deleted {len(deleted)} files")
        return deleted

    async def _remove_archive(self, archive_path: Path) -> None:
        await asyncio.to_thread(archive_path.unlink, missing_ok=True)
