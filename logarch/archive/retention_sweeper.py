"""
Retention sweep of the source tree.

A source file is only deleted when its archive artifact is present on disk
at the moment of deletion. The check is a fresh filesystem query, so a sweep
is safe to run on its own after an earlier archive-only invocation.
"""

import logging
import os
import warnings
from pathlib import Path
from typing import Iterable, Optional, Set, Union

from .age_selector import AgePredicate, AgeSelector
from .archive_models import ArchiveMode, SweepResult
from .errors import ConsistencyWarning
from .path_pattern import destination_for, normalize_root

logger = logging.getLogger(__name__)


def artifact_is_present(artifact: Path) -> bool:
    """True when ``artifact`` is a non-empty regular file right now."""
    try:
        return artifact.is_file() and artifact.stat().st_size > 0
    except OSError:
        return False


class RetentionSweeper:
    """Deletes archived source files and prunes emptied directories."""

    def __init__(self, selector: AgeSelector, mode: ArchiveMode = ArchiveMode.REAL):
        self.selector = selector
        self.mode = mode

    def sweep(self, src_root: Union[str, Path], dst_root: Union[str, Path], glob: str,
              predicate: AgePredicate, pending_artifacts: Optional[Iterable[Path]] = None) -> SweepResult:
        """
        Delete every eligible source file whose artifact exists.

        Args:
            src_root: Root of the source tree.
            dst_root: Root of the archive tree.
            glob: Discovery glob used for the archive pass.
            predicate: Retention predicate, identical to the archive pass.
            pending_artifacts: Artifacts a simulated archive pass would have
                written. Only consulted in simulate mode.

        Returns:
            SweepResult with deletion and pruning counts.
        """
        simulated = self.mode.is_simulated
        pending = {Path(p) for p in pending_artifacts or ()}
        root = normalize_root(src_root)
        result = SweepResult(simulated=simulated)
        removed_files = set()

        logger.info(f"Starting cleanup of {predicate.describe()} (retention {predicate.retention_days} days)")

        for source in self.selector.eligible_files(root, glob, predicate):
            artifact = destination_for(root, dst_root, source.path)
            archived = artifact_is_present(artifact)

            if simulated:
                if archived or artifact in pending:
                    logger.debug(f"[DRY-RUN] Would delete: {source.path}")
                    removed_files.add(str(source.path))
                    result.deleted += 1
                else:
                    self._warn_not_archived(source.path, artifact, "[DRY-RUN] Would skip deletion")
                    result.skipped += 1
                continue

            if not archived:
                self._warn_not_archived(source.path, artifact, "Skipping deletion")
                result.skipped += 1
                continue

            try:
                os.remove(source.path)
            except FileNotFoundError:
                # already gone, e.g. removed by a concurrent run
                logger.debug(f"Already deleted: {source.path}")
            except OSError as e:
                logger.warning(f"Failed to delete: {source.path} ({e})")
                result.failed += 1
            else:
                logger.debug(f"Deleted: {source.path}")
                result.deleted += 1

        prefix = "[DRY-RUN] Would delete" if simulated else "Deleted"
        logger.info(f"{prefix} {result.deleted} files, {result.failed} failures, "
                    f"{result.skipped} skipped (not archived)")

        result.directories_removed = self.prune_empty_directories(root, removed_files)
        return result

    def prune_empty_directories(self, src_root: Union[str, Path],
                                removed_files: Optional[Set[str]] = None) -> int:
        """
        Remove empty directories under ``src_root``, deepest first.

        ``src_root`` itself is never removed. In simulate mode files listed in
        ``removed_files`` are treated as already deleted and nothing is touched.
        """
        root = normalize_root(src_root)
        simulated = self.mode.is_simulated
        removed_files = removed_files or set()
        removed_dirs: Set[str] = set()

        logger.info("Cleaning up empty directories")

        for dirpath, dirnames, filenames in os.walk(root, topdown=False):
            if dirpath == root:
                continue

            if simulated:
                files_left = [f for f in filenames if os.path.join(dirpath, f) not in removed_files]
                dirs_left = [d for d in dirnames if os.path.join(dirpath, d) not in removed_dirs]
                if not files_left and not dirs_left:
                    logger.debug(f"[DRY-RUN] Would remove empty directory: {dirpath}")
                    removed_dirs.add(dirpath)
                continue

            try:
                if os.listdir(dirpath):
                    continue
                os.rmdir(dirpath)
            except OSError as e:
                logger.warning(f"Failed to remove directory: {dirpath} ({e})")
                continue
            logger.debug(f"Removed empty directory: {dirpath}")
            removed_dirs.add(dirpath)

        if simulated:
            logger.info(f"[DRY-RUN] Would remove {len(removed_dirs)} empty directories")
        else:
            logger.info(f"Removed {len(removed_dirs)} empty directories")
        return len(removed_dirs)

    def _warn_not_archived(self, source: Path, artifact: Path, action: str):
        message = f"{action} (not archived): {source}"
        logger.warning(message)
        warnings.warn(f"{message}; expected artifact {artifact}", ConsistencyWarning, stacklevel=3)
